"""
Validation of report card keys and save payloads.

Each section entry of a payload is checked with a small Django form, the
same way score entry is validated. The first failing field is raised as
``ReportValidationError`` with a dotted path such as
``summative_assessments[2].sa1_marks``, before anything is written.
"""
import re

from django import forms

from . import config
from .exceptions import ReportValidationError
from .models import ReportCard
from .structure import (
    FORMATIVE_PERIODS, FORMATIVE_TOOLS, TOOL_MAX_MARKS, FORMATIVE_TOTAL_MAX_MARKS,
    CO_CURRICULAR_ASSESSMENTS, CO_CURRICULAR_SUBJECTS, ATTENDANCE_MONTHS,
    SECOND_LANGUAGES, papers_for_subject,
)

ACADEMIC_YEAR_RE = re.compile(r'^(\d{4})-(\d{4})$')


def is_academic_year(value):
    """True for consecutive years written as YYYY-YYYY."""
    match = ACADEMIC_YEAR_RE.match(value or '')
    return bool(match) and int(match.group(2)) == int(match.group(1)) + 1


SECTIONS = (
    'student_info', 'second_language', 'formative_assessments',
    'summative_assessments', 'co_curricular_assessments', 'attendance',
    'final_overall_grade',
)


def _choices(values):
    return [(value, value) for value in values]


def _marks_field(**kwargs):
    return forms.IntegerField(required=False, min_value=0, **kwargs)


class ReportKeyForm(forms.Form):
    """Natural key of a report card."""
    student_id = forms.IntegerField(min_value=1)
    school_id = forms.IntegerField(min_value=1)
    academic_year = forms.CharField(max_length=9)
    template_key = forms.ChoiceField(choices=ReportCard.TemplateKey.choices, required=False)
    term = forms.CharField(max_length=20, required=False)

    def clean_academic_year(self):
        academic_year = self.cleaned_data['academic_year'].strip()
        if not is_academic_year(academic_year):
            raise forms.ValidationError('Academic year must look like 2024-2025.')
        return academic_year

    def clean_template_key(self):
        return self.cleaned_data.get('template_key') or config.DEFAULT_TEMPLATE_KEY


class StudentInfoForm(forms.Form):
    """Student details printed on the card."""
    school_heading = forms.CharField(max_length=200, required=False)
    student_name = forms.CharField(max_length=200, required=False)
    father_name = forms.CharField(max_length=200, required=False)
    mother_name = forms.CharField(max_length=200, required=False)
    class_name = forms.CharField(max_length=20, required=False)
    section = forms.CharField(max_length=5, required=False)
    student_id_number = forms.CharField(max_length=50, required=False)
    roll_number = forms.CharField(max_length=20, required=False)
    admission_number = forms.CharField(max_length=50, required=False)
    exam_number = forms.CharField(max_length=50, required=False)
    date_of_birth = forms.DateField(required=False)
    medium = forms.CharField(max_length=30, required=False)

    def clean(self):
        cleaned_data = super().clean()
        if cleaned_data.get('date_of_birth'):
            cleaned_data['date_of_birth'] = cleaned_data['date_of_birth'].isoformat()
        return cleaned_data


class FormativePeriodForm(forms.Form):
    """Tool scores of one subject for one formative period."""
    subject_name = forms.CharField(max_length=100)
    period = forms.ChoiceField(choices=_choices(FORMATIVE_PERIODS))
    tool1 = _marks_field(max_value=TOOL_MAX_MARKS['tool1'])
    tool2 = _marks_field(max_value=TOOL_MAX_MARKS['tool2'])
    tool3 = _marks_field(max_value=TOOL_MAX_MARKS['tool3'])
    tool4 = _marks_field(max_value=TOOL_MAX_MARKS['tool4'])


class SummativePaperForm(forms.Form):
    """SA1/SA2 marks and formative total for one subject paper."""
    subject_name = forms.CharField(max_length=100)
    paper = forms.CharField(max_length=20)
    sa1_marks = _marks_field()
    sa1_max_marks = forms.IntegerField(required=False, min_value=1)
    sa2_marks = _marks_field()
    sa2_max_marks = forms.IntegerField(required=False, min_value=1)
    fa_total_200m = _marks_field(max_value=FORMATIVE_TOTAL_MAX_MARKS)

    def clean_sa1_max_marks(self):
        return self.cleaned_data.get('sa1_max_marks') or config.DEFAULT_SA_MAX_MARKS

    def clean_sa2_max_marks(self):
        return self.cleaned_data.get('sa2_max_marks') or config.DEFAULT_SA_MAX_MARKS

    def clean(self):
        cleaned_data = super().clean()
        subject_name = cleaned_data.get('subject_name')
        paper = cleaned_data.get('paper')
        if subject_name and paper and paper not in papers_for_subject(subject_name):
            self.add_error('paper', f'{subject_name} has no paper {paper}.')

        for period in ('sa1', 'sa2'):
            marks = cleaned_data.get(f'{period}_marks')
            max_marks = cleaned_data.get(f'{period}_max_marks')
            if marks is not None and max_marks is not None and marks > max_marks:
                self.add_error(f'{period}_marks', f'Maximum marks is {max_marks}.')
        return cleaned_data


class CoCurricularForm(forms.Form):
    """Three sub-assessments of a co-curricular subject."""
    subject_name = forms.ChoiceField(choices=_choices(CO_CURRICULAR_SUBJECTS))
    sa1_marks = _marks_field()
    sa1_max_marks = forms.IntegerField(required=False, min_value=0)
    sa2_marks = _marks_field()
    sa2_max_marks = forms.IntegerField(required=False, min_value=0)
    sa3_marks = _marks_field()
    sa3_max_marks = forms.IntegerField(required=False, min_value=0)

    def clean(self):
        cleaned_data = super().clean()
        for key in CO_CURRICULAR_ASSESSMENTS:
            if cleaned_data.get(f'{key}_max_marks') is None:
                cleaned_data[f'{key}_max_marks'] = config.DEFAULT_CO_CURRICULAR_MAX_MARKS
            marks = cleaned_data.get(f'{key}_marks')
            max_marks = cleaned_data[f'{key}_max_marks']
            if marks is not None and marks > max_marks:
                self.add_error(f'{key}_marks', f'Maximum marks is {max_marks}.')
        return cleaned_data


class AttendanceMonthForm(forms.Form):
    """Working and present days for one month."""
    month = forms.ChoiceField(choices=_choices(ATTENDANCE_MONTHS))
    working_days = _marks_field(max_value=31)
    present_days = _marks_field(max_value=31)

    def clean(self):
        cleaned_data = super().clean()
        working = cleaned_data.get('working_days')
        present = cleaned_data.get('present_days')
        if working is not None and present is not None and present > working:
            self.add_error('present_days', 'Present days cannot exceed working days.')
        return cleaned_data


def _run(form_class, data, path):
    """Validate ``data`` with ``form_class``; raise the first error found."""
    if not isinstance(data, dict):
        raise ReportValidationError(path, 'expected an object')
    form = form_class(data=data)
    if not form.is_valid():
        field, errors = next(iter(form.errors.items()))
        target = path if field == '__all__' else f'{path}.{field}' if path else field
        raise ReportValidationError(target, errors[0])
    return form.cleaned_data


def _entries(payload, section):
    entries = payload.get(section) or []
    if not isinstance(entries, (list, tuple)):
        raise ReportValidationError(section, 'expected a list')
    return entries


def _flatten_scores(entry, keys):
    """{'sa1': {'marks', 'max_marks'}} -> {'sa1_marks', 'sa1_max_marks'}"""
    data = {k: v for k, v in entry.items() if k not in keys}
    for key in keys:
        score = entry.get(key) or {}
        if not isinstance(score, dict):
            score = {'marks': score}
        data[f'{key}_marks'] = score.get('marks')
        data[f'{key}_max_marks'] = score.get('max_marks')
    return data


def _nest_scores(cleaned, keys):
    entry = {k: v for k, v in cleaned.items() if not k.startswith(tuple(f'{key}_' for key in keys))}
    for key in keys:
        entry[key] = {'marks': cleaned[f'{key}_marks'], 'max_marks': cleaned[f'{key}_max_marks']}
    return entry


def validate_key(data):
    """
    Validate a report card key.

    Returns:
        dict with student_id, school_id, academic_year, template_key, term

    Raises:
        ReportValidationError
    """
    cleaned = _run(ReportKeyForm, data, '')
    cleaned['term'] = cleaned.get('term') or ''
    return cleaned


def validate_academic_year(value):
    if not isinstance(value, str) or not is_academic_year(value.strip()):
        raise ReportValidationError('academic_year', 'Academic year must look like 2024-2025.')
    return value.strip()


def validate_payload(payload):
    """
    Validate and normalise a save payload.

    Only sections present in ``payload`` appear in the result, so a partial
    payload touches only what it carries.

    Raises:
        ReportValidationError: for the first invalid field
    """
    if not isinstance(payload, dict):
        raise ReportValidationError('payload', 'expected an object')
    unknown = set(payload) - set(SECTIONS)
    if unknown:
        raise ReportValidationError(sorted(unknown)[0], 'unknown section')

    data = {}

    if 'student_info' in payload:
        info = payload['student_info'] or {}
        cleaned = _run(StudentInfoForm, info, 'student_info')
        data['student_info'] = {name: value for name, value in cleaned.items() if name in info}

    if 'second_language' in payload:
        second_language = payload['second_language'] or ''
        if second_language and second_language not in SECOND_LANGUAGES:
            raise ReportValidationError('second_language', f'must be one of {", ".join(SECOND_LANGUAGES)}')
        data['second_language'] = second_language

    if 'final_overall_grade' in payload:
        grade = (payload['final_overall_grade'] or '').strip()
        if len(grade) > 5:
            raise ReportValidationError('final_overall_grade', 'at most 5 characters')
        data['final_overall_grade'] = grade

    if 'formative_assessments' in payload:
        formative = []
        for index, entry in enumerate(_entries(payload, 'formative_assessments')):
            path = f'formative_assessments[{index}]'
            if not isinstance(entry, dict):
                raise ReportValidationError(path, 'expected an object')
            if not entry.get('subject_name'):
                raise ReportValidationError(f'{path}.subject_name', 'This field is required.')
            periods = entry.get('periods') or {}
            if not isinstance(periods, dict):
                raise ReportValidationError(f'{path}.periods', 'expected an object')
            cleaned_periods = {}
            for period, tools in periods.items():
                if not isinstance(tools, dict):
                    raise ReportValidationError(f'{path}.periods.{period}', 'expected an object')
                cleaned = _run(
                    FormativePeriodForm,
                    {**tools, 'subject_name': entry.get('subject_name'), 'period': period},
                    f'{path}.periods.{period}',
                )
                cleaned_periods[period] = {tool: cleaned[tool] for tool in FORMATIVE_TOOLS}
            formative.append({'subject_name': entry['subject_name'], 'periods': cleaned_periods})
        data['formative_assessments'] = formative

    if 'summative_assessments' in payload:
        summative = []
        for index, entry in enumerate(_entries(payload, 'summative_assessments')):
            path = f'summative_assessments[{index}]'
            if not isinstance(entry, dict):
                raise ReportValidationError(path, 'expected an object')
            cleaned = _run(SummativePaperForm, _flatten_scores(entry, ('sa1', 'sa2')), path)
            summative.append(_nest_scores(cleaned, ('sa1', 'sa2')))
        data['summative_assessments'] = summative

    if 'co_curricular_assessments' in payload:
        co_curricular = []
        for index, entry in enumerate(_entries(payload, 'co_curricular_assessments')):
            path = f'co_curricular_assessments[{index}]'
            if not isinstance(entry, dict):
                raise ReportValidationError(path, 'expected an object')
            cleaned = _run(CoCurricularForm, _flatten_scores(entry, CO_CURRICULAR_ASSESSMENTS), path)
            co_curricular.append(_nest_scores(cleaned, CO_CURRICULAR_ASSESSMENTS))
        data['co_curricular_assessments'] = co_curricular

    if 'attendance' in payload:
        attendance = []
        for index, entry in enumerate(_entries(payload, 'attendance')):
            attendance.append(_run(AttendanceMonthForm, entry, f'attendance[{index}]'))
        data['attendance'] = attendance

    return data
