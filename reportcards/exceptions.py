"""
Errors raised by report card services.

Views translate these into JSON responses; bulk operations collect them per
student instead of stopping.
"""


class ReportCardError(Exception):
    """Base class for report card errors."""
    status_code = 400

    def as_dict(self):
        return {'error': self.__class__.__name__, 'message': str(self)}


class ReportValidationError(ReportCardError):
    """Malformed key, out-of-range marks or missing identifiers."""
    status_code = 400

    def __init__(self, field, reason):
        self.field = field
        self.reason = reason
        super().__init__(f'{field}: {reason}')

    def as_dict(self):
        data = super().as_dict()
        data.update({'field': self.field, 'reason': self.reason})
        return data


class NotFoundError(ReportCardError):
    """A report card, student or class does not exist."""
    status_code = 404

    def __init__(self, kind, identifier):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f'{kind} not found: {identifier}')

    def as_dict(self):
        data = super().as_dict()
        data.update({'kind': self.kind, 'identifier': str(self.identifier)})
        return data


class ConflictError(ReportCardError):
    """The acting user may not change this field."""
    status_code = 403

    def __init__(self, role, user_id, subject, field):
        self.role = role
        self.user_id = user_id
        self.subject = subject
        self.field = field
        target = f'{field} of {subject}' if subject else field
        super().__init__(f'{role} {user_id} may not edit {target}')

    def as_dict(self):
        data = super().as_dict()
        data.update({
            'role': self.role,
            'user_id': self.user_id,
            'subject': self.subject,
            'field': self.field,
        })
        return data


class PersistenceError(ReportCardError):
    """The database rejected or failed a read or write."""
    status_code = 500
