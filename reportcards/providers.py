"""
Read-side adapters over the school data the report card engine consumes:
class rosters, subject allocations and the raw marks store.
"""
import logging

from academics.models import ClassSubject, AssessmentMark
from academics.utils import parse_assessment_name

from .permissions import Actor

logger = logging.getLogger(__name__)


def get_class_subjects(class_obj):
    """
    Subjects taught to a class, in report card order.

    Returns:
        list of {'subject_name', 'teacher_id'}
    """
    allocations = ClassSubject.objects.filter(
        class_assigned=class_obj,
        subject__is_active=True
    ).select_related('subject').order_by('order', 'subject__name')

    return [
        {'subject_name': allocation.subject.name, 'teacher_id': allocation.teacher_id}
        for allocation in allocations
    ]


def get_second_language(class_obj):
    return class_obj.second_language if class_obj else ''


def get_assigned_subjects(user, class_obj):
    """Names of the subjects ``user`` teaches to ``class_obj``."""
    if not user or not user.is_authenticated or class_obj is None:
        return frozenset()
    return frozenset(
        ClassSubject.objects.filter(
            class_assigned=class_obj,
            teacher=user
        ).values_list('subject__name', flat=True)
    )


def actor_for_user(user, class_obj=None):
    """
    Build the acting-user context for one request.

    Teachers carry the subjects they teach to ``class_obj``; other roles
    carry none.
    """
    role = user.role or ''
    assigned = get_assigned_subjects(user, class_obj) if user.is_teacher else frozenset()
    return Actor(role=role, user_id=user.pk, assigned_subjects=assigned)


def _marks_for(student, class_obj, academic_year):
    return AssessmentMark.objects.filter(
        student=student,
        class_assigned=class_obj,
        academic_year=academic_year
    ).select_related('subject')


def get_formative_marks(student, class_obj, academic_year):
    """
    Formative tool marks recorded for a student.

    Returns:
        list of {'subject_name', 'period', 'tool', 'marks_obtained'}
    """
    marks = []
    for mark in _marks_for(student, class_obj, academic_year):
        try:
            period, kind, number = parse_assessment_name(mark.assessment_name)
        except ValueError:
            logger.warning(f"Ignoring mark {mark.pk} with unknown assessment name {mark.assessment_name!r}")
            continue
        if kind != 'tool':
            continue
        marks.append({
            'subject_name': mark.subject.name,
            'period': period,
            'tool': f'tool{number}',
            'marks_obtained': mark.marks_obtained,
        })
    return marks


def get_summative_marks(student, class_obj, academic_year):
    """
    Summative paper marks recorded for a student.

    Returns:
        list of {'subject_name', 'period' ('SA1'/'SA2'), 'paper_number',
        'marks_obtained', 'max_marks'}
    """
    marks = []
    for mark in _marks_for(student, class_obj, academic_year):
        try:
            period, kind, number = parse_assessment_name(mark.assessment_name)
        except ValueError:
            logger.warning(f"Ignoring mark {mark.pk} with unknown assessment name {mark.assessment_name!r}")
            continue
        if kind != 'paper':
            continue
        marks.append({
            'subject_name': mark.subject.name,
            'period': period,
            'paper_number': number,
            'marks_obtained': mark.marks_obtained,
            'max_marks': mark.max_marks,
        })
    return marks
