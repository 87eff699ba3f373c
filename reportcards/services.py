"""
Report card lifecycle: create/update drafts, publish and unpublish, and the
class-level views over them.

Every operation takes the acting user as an explicit ``Actor`` and raises
``reportcards.exceptions`` errors; views translate those to responses.
"""
import datetime
import logging
import uuid
from dataclasses import dataclass, field, asdict
from decimal import Decimal

from django.db import DatabaseError, transaction
from django.utils import timezone

from academics.models import Class
from schools.models import School
from students.models import Student

from . import config
from .calculations import (
    build_report_view, has_downstream_data, round_half_up, blank_summative_entry,
    blank_co_curricular_entry, blank_attendance_entry,
)
from .exceptions import (
    ReportCardError, ReportValidationError, NotFoundError, ConflictError, PersistenceError,
)
from .forms import validate_key, validate_payload, validate_academic_year
from .models import (
    ReportCard, FormativeAssessment, SummativeAssessment, CoCurricularAssessment,
    AttendanceMonth, ReportCardAuditLog,
)
from .permissions import (
    actor_can_edit, can_edit_general, can_edit_final_grade, can_publish, can_view,
    editable_subjects,
)
from .providers import (
    get_class_subjects, get_second_language, get_formative_marks, get_summative_marks,
)
from .structure import (
    FORMATIVE_PERIODS, FORMATIVE_TOOLS, SUMMATIVE_PERIODS, CO_CURRICULAR_SUBJECTS,
    CO_CURRICULAR_ASSESSMENTS, ATTENDANCE_MONTHS, papers_for_subject, paper_edit_subject,
    report_subject, report_subjects,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportKey:
    """Natural key of a report card."""
    student_id: int
    school_id: int
    academic_year: str
    template_key: str = ReportCard.TemplateKey.CBSE_STATE
    term: str = ''

    @classmethod
    def coerce(cls, value):
        """Build a validated key from a ReportKey or a dict of its fields."""
        if isinstance(value, cls):
            value = asdict(value)
        return cls(**validate_key(value))

    def lookup(self):
        return {
            'student_id': self.student_id,
            'school_id': self.school_id,
            'academic_year': self.academic_year,
            'template_key': self.template_key,
            'term': self.term,
        }

    def __str__(self):
        parts = [str(self.student_id), str(self.school_id), self.academic_year, self.template_key]
        if self.term:
            parts.append(self.term)
        return '/'.join(parts)


@dataclass
class SaveResult:
    report: ReportCard
    created: bool
    changes: list = field(default_factory=list)

    @property
    def changed(self):
        return self.created or bool(self.changes)


# ============ Lookups ============

def _get(model, kind, pk):
    try:
        return model.objects.get(pk=pk)
    except (model.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(kind, pk)


def _get_class(class_id):
    try:
        return Class.objects.select_related('school').get(pk=class_id)
    except (Class.DoesNotExist, ValueError, TypeError):
        raise NotFoundError('class', class_id)


def get_report(report_id):
    try:
        report_id = uuid.UUID(str(report_id))
    except ValueError:
        raise ReportValidationError('report_id', 'not a valid report card id')
    try:
        return ReportCard.objects.select_related('student', 'school', 'class_assigned').get(pk=report_id)
    except ReportCard.DoesNotExist:
        raise NotFoundError('report card', report_id)


def _roster(class_obj):
    return Student.objects.filter(current_class=class_obj).order_by('last_name', 'first_name', 'pk')


def _reports_for(students, class_obj, academic_year, template_key, term):
    return {
        report.student_id: report
        for report in ReportCard.objects.filter(
            student__in=students,
            school=class_obj.school,
            academic_year=academic_year,
            template_key=template_key,
            term=term,
        )
    }


def snapshot_student_info(student, school):
    """Student details as printed on a new report card."""
    class_obj = student.current_class
    return {
        'school_heading': school.report_card_heading,
        'student_name': student.full_name,
        'father_name': student.father_name,
        'mother_name': student.mother_name,
        'class_name': class_obj.name if class_obj else '',
        'section': class_obj.section if class_obj else '',
        'student_id_number': student.student_id_number,
        'roll_number': student.roll_number,
        'admission_number': student.admission_number,
        'exam_number': student.exam_number,
        'date_of_birth': student.date_of_birth,
        'medium': class_obj.medium if class_obj else '',
    }


def _subject_positions(report):
    if report.class_assigned is None:
        return {}
    subjects = report_subjects(s['subject_name'] for s in get_class_subjects(report.class_assigned))
    return {name: index for index, name in enumerate(subjects)}


def _position(positions, subject_name, fallback):
    return positions.get(subject_name, len(positions) + fallback)


# ============ Saving ============

def _blank_tools():
    return {tool: None for tool in FORMATIVE_TOOLS}


def _deny(actor, subject, field_name):
    logger.warning(
        f"Rejected edit of {field_name}{' (' + subject + ')' if subject else ''} "
        f"by {actor.role} {actor.user_id}"
    )
    raise ConflictError(actor.role, actor.user_id, subject, field_name)


def _plan_changes(report, snapshot, data, actor, downstream):
    """
    Compare ``data`` with the stored report and work out what to write.

    Entries equal to what is stored are skipped without a permission check;
    any other entry the actor may not edit raises ``ConflictError``.

    Returns:
        (report_fields, rows, labels): report field values to set, a list
        of (model, lookup, defaults) upserts, and change labels for the log
    """
    report_fields = {}
    rows = []
    labels = []

    if 'student_info' in data:
        stored = snapshot['student_info']
        for name, value in data['student_info'].items():
            if (value or None) != (stored.get(name) or None):
                if not can_edit_general(actor.role, downstream):
                    _deny(actor, None, f'student_info.{name}')
                if name == 'date_of_birth' and value:
                    value = datetime.date.fromisoformat(value)
                report_fields[name] = value
                labels.append(f'student_info.{name}')

    if 'second_language' in data and data['second_language'] != snapshot['second_language']:
        if not can_edit_general(actor.role, downstream):
            _deny(actor, None, 'second_language')
        report_fields['second_language'] = data['second_language']
        labels.append('second_language')

    if 'final_overall_grade' in data and data['final_overall_grade'] != snapshot['final_overall_grade']:
        if not can_edit_final_grade(actor.role, downstream):
            _deny(actor, None, 'final_overall_grade')
        report_fields['final_overall_grade'] = data['final_overall_grade']
        labels.append('final_overall_grade')

    positions = _subject_positions(report)

    stored_formative = {
        (entry['subject_name'], period): tools
        for entry in snapshot['formative_assessments']
        for period, tools in entry['periods'].items()
    }
    for index, entry in enumerate(data.get('formative_assessments', [])):
        subject_name = entry['subject_name']
        for period, tools in entry['periods'].items():
            if tools == stored_formative.get((subject_name, period), _blank_tools()):
                continue
            if not actor_can_edit(actor, subject_name, downstream):
                _deny(actor, subject_name, f'formative_assessments.{period}')
            rows.append((
                FormativeAssessment,
                {'subject_name': subject_name, 'period': period},
                {**tools, 'position': _position(positions, subject_name, index)},
            ))
            labels.append(f'formative:{subject_name}:{period}')

    stored_summative = {
        (entry['subject_name'], entry['paper']): entry
        for entry in snapshot['summative_assessments']
    }
    for index, entry in enumerate(data.get('summative_assessments', [])):
        subject_name, paper = entry['subject_name'], entry['paper']
        stored = stored_summative.get((subject_name, paper)) or blank_summative_entry(subject_name, paper)
        if entry == stored:
            continue
        owner = paper_edit_subject(subject_name, paper)
        if not actor_can_edit(actor, owner, downstream):
            _deny(actor, owner, f'summative_assessments.{paper}')
        papers = papers_for_subject(subject_name)
        rows.append((
            SummativeAssessment,
            {'subject_name': subject_name, 'paper': paper},
            {
                'sa1_marks': entry['sa1']['marks'],
                'sa1_max_marks': entry['sa1']['max_marks'],
                'sa2_marks': entry['sa2']['marks'],
                'sa2_max_marks': entry['sa2']['max_marks'],
                'fa_total_200m': entry['fa_total_200m'],
                'position': _position(positions, subject_name, index) * 10 + papers.index(paper),
            },
        ))
        labels.append(f'summative:{subject_name}:{paper}')

    stored_co_curricular = {
        entry['subject_name']: entry for entry in snapshot['co_curricular_assessments']
    }
    for entry in data.get('co_curricular_assessments', []):
        subject_name = entry['subject_name']
        stored = stored_co_curricular.get(subject_name) or blank_co_curricular_entry(subject_name)
        if entry == stored:
            continue
        if not can_edit_general(actor.role, downstream):
            _deny(actor, subject_name, 'co_curricular_assessments')
        defaults = {'position': CO_CURRICULAR_SUBJECTS.index(subject_name)}
        for key in CO_CURRICULAR_ASSESSMENTS:
            defaults[f'{key}_marks'] = entry[key]['marks']
            defaults[f'{key}_max_marks'] = entry[key]['max_marks']
        rows.append((CoCurricularAssessment, {'subject_name': subject_name}, defaults))
        labels.append(f'co_curricular:{subject_name}')

    stored_attendance = {entry['month']: entry for entry in snapshot['attendance']}
    for entry in data.get('attendance', []):
        month = entry['month']
        stored = stored_attendance.get(month) or blank_attendance_entry(month)
        if entry == stored:
            continue
        if not can_edit_general(actor.role, downstream):
            _deny(actor, None, f'attendance.{month}')
        rows.append((
            AttendanceMonth,
            {'month': month},
            {
                'working_days': entry['working_days'],
                'present_days': entry['present_days'],
                'position': ATTENDANCE_MONTHS.index(month),
            },
        ))
        labels.append(f'attendance:{month}')

    return report_fields, rows, labels


def save_report_card(key, payload, actor):
    """
    Create or update the report card identified by ``key``.

    The first save creates a draft with a snapshot of the student's details.
    Later saves update in place and never change the publication flag. Only
    entries that differ from what is stored are written, one row at a time,
    so concurrent saves by different subject teachers do not overwrite each
    other.

    Args:
        key: ReportKey or dict with student_id, school_id, academic_year,
            and optionally template_key and term
        payload: dict of sections (see ``forms.validate_payload``)
        actor: the acting user

    Returns:
        SaveResult

    Raises:
        ReportValidationError: malformed key or payload, nothing written
        NotFoundError: unknown student or school
        ConflictError: the actor may not change a submitted value
        PersistenceError: the database failed
    """
    key = ReportKey.coerce(key)
    data = validate_payload(payload)

    if not (actor.is_admin or actor.is_teacher):
        _deny(actor, None, 'report_card')

    student = _get(Student, 'student', key.student_id)
    school = _get(School, 'school', key.school_id)

    try:
        with transaction.atomic():
            report, created = ReportCard.objects.get_or_create(
                **key.lookup(),
                defaults={
                    **snapshot_student_info(student, school),
                    'class_assigned': student.current_class,
                    'second_language': get_second_language(student.current_class),
                    'generated_by_id': actor.user_id,
                }
            )
            report = ReportCard.objects.select_for_update().get(pk=report.pk)
            snapshot = report.to_snapshot()
            downstream = has_downstream_data(snapshot)

            report_fields, rows, labels = _plan_changes(report, snapshot, data, actor, downstream)

            if report_fields:
                for name, value in report_fields.items():
                    setattr(report, name, value)
                report.save(update_fields=[*report_fields, 'updated_at'])

            for model, lookup, defaults in rows:
                model.objects.update_or_create(report_card=report, **lookup, defaults=defaults)

            if created or labels:
                recalculate(report)
                ReportCardAuditLog.objects.create(
                    report_card=report,
                    user_id=actor.user_id,
                    action='CREATE' if created else 'UPDATE',
                    changes={'fields': labels},
                )
    except ReportCardError:
        raise
    except DatabaseError as e:
        logger.exception(f"Failed to save report card {key}")
        raise PersistenceError(f'Could not save report card {key}: {e}') from e

    if created or labels:
        logger.info(
            f"Report card {report.pk} {'created' if created else 'updated'} by "
            f"{actor.role} {actor.user_id}: {len(labels)} change(s)"
        )
    return SaveResult(report=report, created=created, changes=labels)


def _sync(row, values, commit):
    """Set derived ``values`` on ``row``; return the names that differed."""
    changed = [name for name, value in values.items() if getattr(row, name) != value]
    if changed:
        for name in changed:
            setattr(row, name, values[name])
        if commit:
            row.save(update_fields=changed)
    return changed


def recalculate(report, commit=True):
    """
    Recompute the stored derived fields of a report card from its raw marks.

    Args:
        report: ReportCard
        commit: write the differences; with False only report them

    Returns:
        list of 'row: field' strings whose stored value was stale
    """
    view = build_report_view(report.to_snapshot())
    drift = []

    formative = {entry['subject_name']: entry for entry in view['formative_assessments']}
    for row in report.formative_assessments.all():
        derived = formative[row.subject_name]['periods'][row.period]
        changed = _sync(row, {'total': derived['total'], 'grade': derived['grade'] or ''}, commit)
        drift.extend(f'{row.subject_name} {row.period}: {name}' for name in changed)

    summative = {(entry['subject_name'], entry['paper']): entry for entry in view['summative_assessments']}
    for row in report.summative_assessments.all():
        derived = summative[(row.subject_name, row.paper)]
        changed = _sync(row, {
            'sa1_grade': derived['sa1']['grade'] or '',
            'sa2_grade': derived['sa2']['grade'] or '',
            'fa_average_plus_sa1_100m': derived['fa_average_plus_sa1_100m'],
            'internal_marks_20m': derived['internal_marks_20m'],
            'final_total_100m': derived['final_total_100m'],
            'final_grade': derived['final_grade'] or '',
        }, commit)
        drift.extend(f'{row.subject_name} {row.paper}: {name}' for name in changed)

    co_curricular = {entry['subject_name']: entry for entry in view['co_curricular_assessments']}
    for row in report.co_curricular_assessments.all():
        derived = co_curricular[row.subject_name]
        changed = _sync(row, {'percentage': derived['percentage'], 'grade': derived['grade']}, commit)
        drift.extend(f'{row.subject_name}: {name}' for name in changed)

    changed = _sync(report, {'computed_overall_grade': view['computed_overall_grade']}, commit)
    drift.extend(f'report: {name}' for name in changed)
    return drift


# ============ Publication ============

def _flip(report_id, desired, actor):
    """Conditionally set the publication flag; True if a row changed."""
    with transaction.atomic():
        updated = ReportCard.objects.filter(pk=report_id).exclude(
            is_published=desired
        ).update(is_published=desired, updated_at=timezone.now())
        if updated:
            ReportCardAuditLog.objects.create(
                report_card_id=report_id,
                user_id=actor.user_id,
                action='PUBLISH' if desired else 'UNPUBLISH',
                changes={'is_published': desired},
            )
    return bool(updated)


def set_published(report_id, desired, actor):
    """
    Publish or unpublish one report card.

    Idempotent: setting the current state again changes nothing.

    Returns:
        bool: whether the flag changed
    """
    if not can_publish(actor.role):
        _deny(actor, None, 'is_published')
    report = get_report(report_id)
    desired = bool(desired)

    try:
        changed = _flip(report.pk, desired, actor)
    except DatabaseError as e:
        logger.exception(f"Failed to update publication of report card {report.pk}")
        raise PersistenceError(f'Could not update report card {report.pk}: {e}') from e

    if changed:
        logger.info(f"Report card {report.pk} {'published' if desired else 'unpublished'} by {actor.user_id}")
    return changed


def bulk_set_published(class_id, academic_year, desired, actor, template_key=None, term=''):
    """
    Publish or unpublish every existing report card of a class.

    Students without a report card are skipped, never created. A failure on
    one student is recorded and the rest continue.

    Returns:
        dict: {'changed_count', 'unchanged_count', 'skipped': [...],
               'failed': [...]}, each student entry carrying student_id and
               student_name, failures also report_id and error
    """
    if not can_publish(actor.role):
        _deny(actor, None, 'is_published')
    academic_year = validate_academic_year(academic_year)
    template_key = template_key or config.DEFAULT_TEMPLATE_KEY
    class_obj = _get_class(class_id)
    desired = bool(desired)

    result = {'changed_count': 0, 'unchanged_count': 0, 'skipped': [], 'failed': []}
    students = list(_roster(class_obj))
    chunk_size = config.BULK_PUBLISH_CHUNK_SIZE

    for start in range(0, len(students), chunk_size):
        chunk = students[start:start + chunk_size]
        reports = _reports_for(chunk, class_obj, academic_year, template_key, term)

        for student in chunk:
            report = reports.get(student.pk)
            if report is None:
                result['skipped'].append({'student_id': student.pk, 'student_name': student.full_name})
                continue
            try:
                changed = _flip(report.pk, desired, actor)
            except (ReportCardError, DatabaseError) as e:
                logger.warning(f"Bulk publication failed for student {student.pk} (report {report.pk}): {e}")
                result['failed'].append({
                    'student_id': student.pk,
                    'student_name': student.full_name,
                    'report_id': str(report.pk),
                    'error': str(e),
                })
                continue
            if changed:
                result['changed_count'] += 1
            else:
                result['unchanged_count'] += 1

    logger.info(
        f"Bulk {'publish' if desired else 'unpublish'} for class {class_obj.pk} {academic_year} by "
        f"{actor.user_id}: {result['changed_count']} changed, {len(result['skipped'])} skipped, "
        f"{len(result['failed'])} failed"
    )
    return result


def class_publication_status(class_id, academic_year, template_key=None, term=''):
    """
    Report card state of every student in a class.

    Returns:
        list of {'student_id', 'student_name', 'admission_id', 'report_id',
        'has_report', 'is_published'}
    """
    academic_year = validate_academic_year(academic_year)
    template_key = template_key or config.DEFAULT_TEMPLATE_KEY
    class_obj = _get_class(class_id)
    students = list(_roster(class_obj))
    reports = _reports_for(students, class_obj, academic_year, template_key, term)

    status = []
    for student in students:
        report = reports.get(student.pk)
        status.append({
            'student_id': student.pk,
            'student_name': student.full_name,
            'admission_id': student.admission_number,
            'report_id': str(report.pk) if report else None,
            'has_report': report is not None,
            'is_published': bool(report and report.is_published),
        })
    return status


# ============ Reading ============

def report_card_detail(report, actor, published_only=False):
    """
    Derived view of a report card plus what ``actor`` may do with it.

    Raises:
        NotFoundError: the actor may not see this report card
    """
    is_own = report.student.user_id is not None and report.student.user_id == actor.user_id
    if (published_only and not report.is_published) or not can_view(actor.role, report.is_published, is_own):
        raise NotFoundError('report card', report.pk)

    view = build_report_view(report.to_snapshot())
    downstream = view['has_downstream_data']

    subjects = [entry['subject_name'] for entry in view['formative_assessments']]
    for entry in view['summative_assessments']:
        subjects.append(paper_edit_subject(entry['subject_name'], entry['paper']))
    editable = editable_subjects(actor, dict.fromkeys(subjects), downstream)

    view.update({
        'id': str(report.pk),
        'student_id': report.student_id,
        'school_id': report.school_id,
        'academic_year': report.academic_year,
        'template_key': report.template_key,
        'term': report.term,
        'is_published': report.is_published,
        'updated_at': report.updated_at.isoformat() if report.updated_at else None,
        'permissions': {
            'editable_subjects': editable,
            'can_edit_general': can_edit_general(actor.role, downstream),
            'can_edit_final_grade': can_edit_final_grade(actor.role, downstream),
            'can_publish': can_publish(actor.role),
        },
    })
    return view


def get_report_card(key, actor, published_only=False):
    """
    Load a report card by its natural key and return its derived view.

    Students only ever see their own published report card; anything else
    is reported as not found.
    """
    key = ReportKey.coerce(key)
    try:
        report = ReportCard.objects.select_related('student').get(**key.lookup())
    except ReportCard.DoesNotExist:
        raise NotFoundError('report card', key)
    return report_card_detail(report, actor, published_only)


def get_report_card_by_id(report_id, actor, published_only=False):
    return report_card_detail(get_report(report_id), actor, published_only)


def build_initial_payload(student, class_obj, academic_year):
    """
    Pre-fill a save payload for a new report card from the marks store.

    Formative rows come from ``FA*-Tool*`` marks of each report subject.
    Physics and Biology marks fill the Science record; where both carry a
    mark for the same tool the two are averaged, rounded half up.
    Summative rows come from ``SA*-Paper*`` marks; Science papers use the
    Physics/Biology marks (paper 1) or the Science paper of the same number.
    ``fa_total_200m`` is the formative total of the row's report subject, so
    both Science papers carry the Science total; it stays empty when the
    subject has no formative mark.
    """
    academic_year = validate_academic_year(academic_year)
    subjects = report_subjects(s['subject_name'] for s in get_class_subjects(class_obj))

    tool_marks = {}
    for mark in get_formative_marks(student, class_obj, academic_year):
        key = (report_subject(mark['subject_name']), mark['period'], mark['tool'])
        tool_marks.setdefault(key, []).append(mark['marks_obtained'])

    tools_by_period = {}
    fa_totals = {}
    for (subject_name, period, tool), values in tool_marks.items():
        value = round_half_up(Decimal(sum(values)) / len(values))
        tools_by_period.setdefault((subject_name, period), {})[tool] = value
        fa_totals[subject_name] = fa_totals.get(subject_name, 0) + value

    papers_by_key = {
        (mark['subject_name'], mark['period'], mark['paper_number']): mark
        for mark in get_summative_marks(student, class_obj, academic_year)
    }

    formative = []
    summative = []
    for subject_name in subjects:
        formative.append({
            'subject_name': subject_name,
            'periods': {
                period: {
                    tool: tools_by_period.get((subject_name, period), {}).get(tool)
                    for tool in FORMATIVE_TOOLS
                }
                for period in FORMATIVE_PERIODS
            },
        })

        for number, paper in enumerate(papers_for_subject(subject_name), start=1):
            owner = paper_edit_subject(subject_name, paper)
            entry = {'subject_name': subject_name, 'paper': paper}
            for period in SUMMATIVE_PERIODS:
                mark = None
                if owner != subject_name:
                    mark = papers_by_key.get((owner, period, 1))
                mark = mark or papers_by_key.get((subject_name, period, number))
                entry[period.lower()] = {
                    'marks': mark['marks_obtained'] if mark else None,
                    'max_marks': mark['max_marks'] if mark else config.DEFAULT_SA_MAX_MARKS,
                }
            entry['fa_total_200m'] = fa_totals.get(subject_name)
            summative.append(entry)

    student_info = snapshot_student_info(student, class_obj.school)
    if student_info['date_of_birth']:
        student_info['date_of_birth'] = student_info['date_of_birth'].isoformat()

    return {
        'student_info': student_info,
        'second_language': get_second_language(class_obj),
        'formative_assessments': formative,
        'summative_assessments': summative,
        'co_curricular_assessments': [blank_co_curricular_entry(name) for name in CO_CURRICULAR_SUBJECTS],
        'attendance': [blank_attendance_entry(month) for month in ATTENDANCE_MONTHS],
        'final_overall_grade': '',
    }
