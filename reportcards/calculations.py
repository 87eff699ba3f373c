"""
Report card calculations.

Pure functions over a report card snapshot (plain dicts, see
``ReportCard.to_snapshot``). Nothing here touches the database, so the same
functions serve saving, rendering and recalculation.
"""
from decimal import Decimal, ROUND_HALF_UP

from . import config
from .grading import (
    grade_for, FA_PERIOD, OVERALL_SUBJECT, SUMMATIVE, FINAL, CO_CURRICULAR,
)
from .structure import (
    FORMATIVE_PERIODS, FORMATIVE_TOOLS, CO_CURRICULAR_ASSESSMENTS, CO_CURRICULAR_SUBJECTS,
    ATTENDANCE_MONTHS, papers_for_subject, report_subjects,
)

# Legacy internal-marks formula constants: SA components are capped at 80
# and the FA(200) + SA1 + SA2 sum is divided by 18.
SA_CAP = 80
INTERNAL_MARKS_DIVISOR = 18


def round_half_up(value):
    """Round to the nearest integer, halves away from zero."""
    return int(Decimal(str(value)).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def is_second_language(subject_name, second_language):
    return bool(second_language) and subject_name == second_language


# ============ Formative Assessment ============

def period_total(tools):
    """
    Sum the four tool scores of a formative period.

    Missing tools count as 0, so a period with nothing entered totals 0.
    """
    tools = tools or {}
    return sum(tools.get(tool) or 0 for tool in FORMATIVE_TOOLS)


def period_grade(total, second_language=False):
    return grade_for(FA_PERIOD, total, second_language)


def formative_subject_summary(entry, second_language=''):
    """
    Derive period totals/grades and the overall (200 M) result for a subject.

    Args:
        entry: {'subject_name': str, 'periods': {'FA1': {'tool1': ..}, ..}}
        second_language: the report's second-language subject name

    Returns:
        dict with every raw tool score plus 'total' and 'grade' per period,
        'overall_total' and 'overall_grade'
    """
    subject_name = entry['subject_name']
    second = is_second_language(subject_name, second_language)
    raw_periods = entry.get('periods') or {}

    periods = {}
    overall_total = 0
    for period in FORMATIVE_PERIODS:
        tools = raw_periods.get(period) or {}
        total = period_total(tools)
        overall_total += total
        periods[period] = {
            **{tool: tools.get(tool) for tool in FORMATIVE_TOOLS},
            'total': total,
            'grade': period_grade(total, second),
        }

    return {
        'subject_name': subject_name,
        'is_second_language': second,
        'periods': periods,
        'overall_total': overall_total,
        'overall_grade': grade_for(OVERALL_SUBJECT, overall_total),
    }


# ============ Summative Assessment ============

def percentage_of(marks, max_marks):
    """Return marks as a Decimal percentage of max_marks, or None if unknown."""
    if marks is None or not max_marks:
        return None
    return Decimal(str(marks)) * 100 / Decimal(str(max_marks))


def _score(score):
    score = score or {}
    max_marks = score.get('max_marks')
    if max_marks is None:
        max_marks = config.DEFAULT_SA_MAX_MARKS
    return score.get('marks'), max_marks


def paper_has_data(entry):
    """True when any raw summative value has been entered for a paper row."""
    if entry.get('fa_total_200m') is not None:
        return True
    return any(
        (entry.get(period) or {}).get('marks') is not None
        for period in ('sa1', 'sa2')
    )


def summative_paper_summary(entry, second_language=''):
    """
    Derive grades and totals for one subject paper row.

    Rows with nothing entered have no derived values. Once any value is
    entered, missing values count as 0 in the totals.

    Returns:
        dict with the raw values and sa1/sa2 percentage and grade,
        'fa_average_plus_sa1_100m', 'internal_marks_20m', 'final_total_100m'
        and 'final_grade'
    """
    subject_name = entry['subject_name']
    second = is_second_language(subject_name, second_language)

    sa = {}
    for period in ('sa1', 'sa2'):
        marks, max_marks = _score(entry.get(period))
        percentage = percentage_of(marks, max_marks)
        sa[period] = {
            'marks': marks,
            'max_marks': max_marks,
            'percentage': round_half_up(percentage) if percentage is not None else None,
            'grade': grade_for(SUMMATIVE, percentage, second) if percentage is not None else None,
        }

    fa_total = entry.get('fa_total_200m')
    summary = {
        'subject_name': subject_name,
        'paper': entry['paper'],
        'is_second_language': second,
        'sa1': sa['sa1'],
        'sa2': sa['sa2'],
        'fa_total_200m': fa_total,
        'fa_average_plus_sa1_100m': None,
        'internal_marks_20m': None,
        'final_total_100m': None,
        'final_grade': None,
    }
    if not paper_has_data(entry):
        return summary

    fa_value = Decimal(fa_total or 0)
    sa1_marks = sa['sa1']['marks'] or 0
    sa2_marks = sa['sa2']['marks'] or 0

    sa1_out_of_50 = Decimal(sa1_marks) * 50 / Decimal(sa['sa1']['max_marks'])
    summary['fa_average_plus_sa1_100m'] = round_half_up(fa_value / 4 + sa1_out_of_50)

    sa1_capped = min(sa1_marks, SA_CAP)
    sa2_capped = min(sa2_marks, SA_CAP)
    internal = round_half_up((fa_value + sa1_capped + sa2_capped) / INTERNAL_MARKS_DIVISOR)
    final_total = internal + sa2_capped

    summary['internal_marks_20m'] = internal
    summary['final_total_100m'] = final_total
    summary['final_grade'] = grade_for(FINAL, final_total, second)
    return summary


def overall_report_grade(final_grades):
    """
    Most frequent final grade across subject paper rows.

    Ties go to the grade that first reached the highest count in row order.
    Returns '' when no row has a grade.
    """
    counts = {}
    for grade in final_grades:
        if grade:
            counts[grade] = counts.get(grade, 0) + 1

    best_grade, best_count = '', 0
    for grade, count in counts.items():
        if count > best_count:
            best_grade, best_count = grade, count
    return best_grade


# ============ Co-Curricular ============

def co_curricular_summary(entry):
    """
    Grade a co-curricular subject on its combined percentage.

    The percentage is total marks over total maximum marks across the three
    sub-assessments (0 when no maximum is set).
    """
    obtained = 0
    possible = 0
    assessments = {}
    for key in CO_CURRICULAR_ASSESSMENTS:
        score = entry.get(key) or {}
        marks = score.get('marks')
        max_marks = score.get('max_marks')
        if max_marks is None:
            max_marks = config.DEFAULT_CO_CURRICULAR_MAX_MARKS
        assessments[key] = {'marks': marks, 'max_marks': max_marks}
        obtained += marks or 0
        possible += max_marks or 0

    percentage = Decimal(obtained) * 100 / Decimal(possible) if possible > 0 else Decimal('0')
    return {
        'subject_name': entry['subject_name'],
        **assessments,
        'percentage': round_half_up(percentage),
        'grade': grade_for(CO_CURRICULAR, percentage),
    }


# ============ Attendance ============

def attendance_summary(months):
    """
    Total working and present days across the academic months.

    Returns:
        dict: {'months': [...], 'total_working_days', 'total_present_days',
               'attendance_percentage'}; the percentage is 0 when no working
               days are recorded
    """
    months = list(months or [])
    total_working = sum(m.get('working_days') or 0 for m in months)
    total_present = sum(m.get('present_days') or 0 for m in months)

    if total_working > 0:
        percentage = round_half_up(Decimal(total_present) * 100 / Decimal(total_working))
    else:
        percentage = 0

    return {
        'months': months,
        'total_working_days': total_working,
        'total_present_days': total_present,
        'attendance_percentage': percentage,
    }


def attendance_has_data(months):
    return any(
        m.get('working_days') is not None or m.get('present_days') is not None
        for m in months or []
    )


def has_downstream_data(snapshot):
    """
    True once summative or attendance data exists for a report card.

    From then on the record is owned by the subject teachers and closed to
    admin edits.
    """
    if any(paper_has_data(entry) for entry in snapshot.get('summative_assessments') or []):
        return True
    return attendance_has_data(snapshot.get('attendance'))


# ============ Card layout ============

def blank_formative_entry(subject_name):
    return {'subject_name': subject_name, 'periods': {}}


def blank_summative_entry(subject_name, paper):
    return {
        'subject_name': subject_name,
        'paper': paper,
        'sa1': {'marks': None, 'max_marks': config.DEFAULT_SA_MAX_MARKS},
        'sa2': {'marks': None, 'max_marks': config.DEFAULT_SA_MAX_MARKS},
        'fa_total_200m': None,
    }


def blank_co_curricular_entry(subject_name):
    entry = {'subject_name': subject_name}
    for key in CO_CURRICULAR_ASSESSMENTS:
        entry[key] = {'marks': None, 'max_marks': config.DEFAULT_CO_CURRICULAR_MAX_MARKS}
    return entry


def blank_attendance_entry(month):
    return {'month': month, 'working_days': None, 'present_days': None}


def complete_layout(snapshot, class_subject_names):
    """
    Fill a snapshot out to the full card layout.

    Every report subject of the class gets a formative record and its
    summative papers; every co-curricular subject and attendance month gets
    an entry. Missing ones are blank. Stored entries outside the layout are
    kept after it.
    """
    subjects = report_subjects(class_subject_names)

    stored = {e['subject_name']: e for e in snapshot.get('formative_assessments') or []}
    formative = [stored.pop(name, None) or blank_formative_entry(name) for name in subjects]
    formative.extend(stored.values())

    stored = {(e['subject_name'], e['paper']): e for e in snapshot.get('summative_assessments') or []}
    summative = [
        stored.pop((name, paper), None) or blank_summative_entry(name, paper)
        for name in subjects
        for paper in papers_for_subject(name)
    ]
    summative.extend(stored.values())

    stored = {e['subject_name']: e for e in snapshot.get('co_curricular_assessments') or []}
    co_curricular = [stored.pop(name, None) or blank_co_curricular_entry(name) for name in CO_CURRICULAR_SUBJECTS]
    co_curricular.extend(stored.values())

    stored = {e['month']: e for e in snapshot.get('attendance') or []}
    attendance = [stored.pop(month, None) or blank_attendance_entry(month) for month in ATTENDANCE_MONTHS]

    return {
        **snapshot,
        'formative_assessments': formative,
        'summative_assessments': summative,
        'co_curricular_assessments': co_curricular,
        'attendance': attendance,
    }


# ============ Full report ============

def build_report_view(snapshot):
    """
    Derive every computed value of a report card.

    The result carries all raw fields plus all derived fields, so renderers
    and exports need no further computation.
    """
    second_language = snapshot.get('second_language') or ''

    formative = [
        formative_subject_summary(entry, second_language)
        for entry in snapshot.get('formative_assessments') or []
    ]
    summative = [
        summative_paper_summary(entry, second_language)
        for entry in snapshot.get('summative_assessments') or []
    ]
    co_curricular = [
        co_curricular_summary(entry)
        for entry in snapshot.get('co_curricular_assessments') or []
    ]

    computed_grade = overall_report_grade(row['final_grade'] for row in summative)
    override = snapshot.get('final_overall_grade') or ''

    return {
        'student_info': dict(snapshot.get('student_info') or {}),
        'second_language': second_language,
        'formative_assessments': formative,
        'summative_assessments': summative,
        'co_curricular_assessments': co_curricular,
        'attendance': attendance_summary(snapshot.get('attendance')),
        'computed_overall_grade': computed_grade,
        'final_overall_grade_override': override,
        'final_overall_grade': override or computed_grade,
        'has_downstream_data': has_downstream_data(snapshot),
    }
