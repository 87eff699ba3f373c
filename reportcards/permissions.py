"""
Who may change what on a report card.

Every decision is a pure function of the acting user's role, the subjects
they are assigned to, and whether the report card already holds summative or
attendance data. Both the save path and the views call these functions, so
there is exactly one copy of the rules.
"""
from dataclasses import dataclass, field

from accounts.models import Role

from .structure import SCIENCE, SCIENCE_PAPERS


@dataclass(frozen=True)
class Actor:
    """The user performing an operation, passed explicitly to every call."""
    role: str
    user_id: object = None
    assigned_subjects: frozenset = field(default_factory=frozenset)

    @property
    def is_admin(self):
        return self.role == Role.ADMIN

    @property
    def is_teacher(self):
        return self.role == Role.TEACHER

    @property
    def is_student(self):
        return self.role == Role.STUDENT


def teacher_covers_subject(subject_name, assigned_subjects):
    """
    Check if a teacher's assignments cover a subject.

    A Physics or Biology teacher also covers the Science aggregate, and a
    Science teacher covers both Science papers.
    """
    assigned = set(assigned_subjects or ())
    if subject_name in assigned:
        return True
    if subject_name == SCIENCE and assigned.intersection(SCIENCE_PAPERS):
        return True
    if subject_name in SCIENCE_PAPERS and SCIENCE in assigned:
        return True
    return False


def can_edit(role, subject_name, assigned_subjects, has_downstream_data):
    """
    Decide whether a subject-scoped field is editable.

    - students: never
    - teachers: only subjects they are assigned to
    - admins: only until summative or attendance data exists
    """
    if role == Role.TEACHER:
        return teacher_covers_subject(subject_name, assigned_subjects)
    if role == Role.ADMIN:
        return not has_downstream_data
    return False


def can_edit_final_grade(role, has_downstream_data):
    """The manual overall grade is admin-only, under the same data guard."""
    return role == Role.ADMIN and not has_downstream_data


def can_edit_general(role, has_downstream_data):
    """Student details, second language and co-curricular marks: admin-only."""
    return role == Role.ADMIN and not has_downstream_data


def can_publish(role):
    return role == Role.ADMIN


def can_view(role, is_published, is_own_report=False):
    """Staff see every report card; students only their own published one."""
    if role in (Role.ADMIN, Role.TEACHER):
        return True
    if role == Role.STUDENT:
        return is_published and is_own_report
    return False


def actor_can_edit(actor, subject_name, has_downstream_data):
    return can_edit(actor.role, subject_name, actor.assigned_subjects, has_downstream_data)


def editable_subjects(actor, subject_names, has_downstream_data):
    """Subset of ``subject_names`` the actor may edit, in the given order."""
    return [
        name for name in subject_names
        if actor_can_edit(actor, name, has_downstream_data)
    ]
