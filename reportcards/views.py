import json
import logging
from functools import wraps

from django.contrib.auth.decorators import login_required
from django.core.cache import cache
from django.http import HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET, require_POST

from academics.models import Class
from accounts.models import Role
from students.models import Student

from . import config, services
from .exceptions import ReportCardError, ReportValidationError
from .export import build_class_results_workbook
from .forms import validate_academic_year
from .models import ReportCardAuditLog
from .providers import actor_for_user

logger = logging.getLogger(__name__)


# ============ Decorators ============

def ratelimit(rate='200/h'):
    """
    Cache-based per-user rate limiter.

    Args:
        rate: "number/period", period being s/m/h/d
    """
    limit, period = rate.split('/')
    limit = int(limit)
    period_seconds = {'s': 1, 'm': 60, 'h': 3600, 'd': 86400}.get(period, 3600)

    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            cache_key = f"ratelimit:{view_func.__name__}:user:{request.user.pk}"
            if not cache.add(cache_key, 1, period_seconds):
                try:
                    current = cache.incr(cache_key)
                except ValueError:
                    # Key expired between add and incr
                    cache.set(cache_key, 1, period_seconds)
                    current = 1
                if current > limit:
                    logger.warning(f"Rate limit exceeded for {cache_key}")
                    return JsonResponse({'error': 'Too many requests. Please try again later.'}, status=429)
            return view_func(request, *args, **kwargs)
        return wrapper
    return decorator


def role_required(*roles):
    """Reject users whose role is not one of ``roles`` with a 403."""
    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            if request.user.role not in roles:
                return JsonResponse({'error': 'Forbidden', 'message': 'Not authorized'}, status=403)
            return view_func(request, *args, **kwargs)
        return wrapper
    return decorator


admin_required = role_required(Role.ADMIN)
teacher_or_admin_required = role_required(Role.ADMIN, Role.TEACHER)


def json_errors(view_func):
    """Translate report card errors into JSON error responses."""
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        try:
            return view_func(request, *args, **kwargs)
        except ReportCardError as e:
            return JsonResponse(e.as_dict(), status=e.status_code)
    return wrapper


def _json_body(request):
    try:
        body = json.loads(request.body or b'{}')
    except ValueError:
        raise ReportValidationError('body', 'invalid JSON')
    if not isinstance(body, dict):
        raise ReportValidationError('body', 'expected an object')
    return body


def _student_class(student_id):
    try:
        student_id = int(student_id)
    except (TypeError, ValueError):
        return None
    student = Student.objects.select_related('current_class').filter(pk=student_id).first()
    return student.current_class if student else None


def _filters(request):
    return {
        'template_key': request.GET.get('template_key') or None,
        'term': request.GET.get('term', ''),
    }


# ============ Report Cards ============

@login_required
@require_GET
@json_errors
def report_card_detail(request, report_id):
    """Derived view of one report card."""
    report = services.get_report(report_id)
    actor = actor_for_user(request.user, report.class_assigned)
    return JsonResponse(services.report_card_detail(report, actor))


@login_required
@require_GET
@json_errors
def report_card_lookup(request):
    """Find a report card by student, school and academic year."""
    key = {
        'student_id': request.GET.get('student_id'),
        'school_id': request.GET.get('school_id'),
        'academic_year': request.GET.get('academic_year'),
        **_filters(request),
    }
    actor = actor_for_user(request.user, _student_class(key['student_id']))
    return JsonResponse(services.get_report_card(key, actor, published_only=actor.is_student))


@login_required
@require_POST
@teacher_or_admin_required
@ratelimit(rate='200/h')
@json_errors
def report_card_save(request):
    """
    Create or update a report card.

    Body: {"key": {student_id, school_id, academic_year, [template_key],
    [term]}, "payload": {sections...}}
    """
    body = _json_body(request)
    key = body.get('key') or {}
    actor = actor_for_user(request.user, _student_class(key.get('student_id')))
    result = services.save_report_card(key, body.get('payload') or {}, actor)
    return JsonResponse({
        'id': str(result.report.pk),
        'created': result.created,
        'changes': result.changes,
        'report': services.report_card_detail(result.report, actor),
    }, status=201 if result.created else 200)


@login_required
@require_POST
@admin_required
@json_errors
def report_card_publish(request, report_id):
    """Body: {"published": true|false}"""
    body = _json_body(request)
    if not isinstance(body.get('published'), bool):
        raise ReportValidationError('published', 'expected true or false')
    actor = actor_for_user(request.user)
    changed = services.set_published(report_id, body['published'], actor)
    return JsonResponse({'id': str(report_id), 'is_published': body['published'], 'changed': changed})


@login_required
@require_GET
@admin_required
@json_errors
def report_card_audit_history(request, report_id):
    report = services.get_report(report_id)
    logs = ReportCardAuditLog.objects.filter(
        report_card=report
    ).select_related('user').order_by('-created_at')[:config.AUDIT_LOG_DISPLAY_LIMIT]

    return JsonResponse({'logs': [
        {
            'action': log.action,
            'user': log.user.email if log.user else None,
            'changes': log.changes,
            'created_at': log.created_at.isoformat(),
        }
        for log in logs
    ]})


# ============ Class level ============

@login_required
@require_GET
@teacher_or_admin_required
@json_errors
def class_status(request, class_id):
    """Publication state of every student's report card in a class."""
    students = services.class_publication_status(
        class_id, request.GET.get('academic_year'), **_filters(request)
    )
    return JsonResponse({'students': students})


@login_required
@require_POST
@admin_required
@json_errors
def class_bulk_publish(request, class_id):
    """Body: {"academic_year": "2024-2025", "published": true|false}"""
    body = _json_body(request)
    if not isinstance(body.get('published'), bool):
        raise ReportValidationError('published', 'expected true or false')
    result = services.bulk_set_published(
        class_id,
        body.get('academic_year'),
        body['published'],
        actor_for_user(request.user),
        template_key=body.get('template_key'),
        term=body.get('term') or '',
    )
    return JsonResponse(result)


@login_required
@require_GET
@teacher_or_admin_required
@json_errors
def class_initial_payload(request, class_id, student_id):
    """Pre-filled payload for a student's new report card."""
    class_obj = get_object_or_404(Class.objects.select_related('school'), pk=class_id)
    student = get_object_or_404(Student, pk=student_id, current_class=class_obj)
    payload = services.build_initial_payload(student, class_obj, request.GET.get('academic_year'))
    return JsonResponse({
        'key': {
            'student_id': student.pk,
            'school_id': class_obj.school_id,
            'academic_year': request.GET.get('academic_year'),
        },
        'payload': payload,
    })


@login_required
@require_GET
@teacher_or_admin_required
@json_errors
def class_results_export(request, class_id):
    """Download the class's report card results as an Excel workbook."""
    class_obj = get_object_or_404(Class, pk=class_id)
    academic_year = validate_academic_year(request.GET.get('academic_year'))
    wb = build_class_results_workbook(class_obj, academic_year, **_filters(request))

    response = HttpResponse(
        content_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    )
    section = f"_{class_obj.section}" if class_obj.section else ""
    filename = f"report_cards_{class_obj.name}{section}_{academic_year}.xlsx"
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    wb.save(response)
    return response
