import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from .structure import (
    FORMATIVE_PERIODS, FORMATIVE_TOOLS, TOOL_MAX_MARKS, FORMATIVE_TOTAL_MAX_MARKS,
    CO_CURRICULAR_ASSESSMENTS, ATTENDANCE_MONTHS, SECOND_LANGUAGES,
)


def _default_sa_max_marks():
    from . import config
    return config.DEFAULT_SA_MAX_MARKS


def _default_co_curricular_max_marks():
    from . import config
    return config.DEFAULT_CO_CURRICULAR_MAX_MARKS


class ReportCard(models.Model):
    """
    One student's report card for an academic year.

    Identified by its natural key (student, school, academic year, template,
    term). Holds a snapshot of the student's details taken when the card was
    first created, the entered marks in child rows, and the publication flag.
    """
    class TemplateKey(models.TextChoices):
        CBSE_STATE = 'cbse_state', _('CBSE State Pattern')

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    student = models.ForeignKey(
        'students.Student',
        on_delete=models.CASCADE,
        related_name='report_cards',
        db_index=True
    )
    school = models.ForeignKey(
        'schools.School',
        on_delete=models.CASCADE,
        related_name='report_cards'
    )
    class_assigned = models.ForeignKey(
        'academics.Class',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='report_cards',
        help_text='Class whose subject list this report card follows'
    )
    academic_year = models.CharField(max_length=9, help_text='e.g., 2024-2025')
    template_key = models.CharField(
        max_length=30,
        choices=TemplateKey.choices,
        default=TemplateKey.CBSE_STATE
    )
    term = models.CharField(max_length=20, blank=True, default='')

    # Student details as printed, captured at creation
    school_heading = models.CharField(max_length=200, blank=True, help_text='UDISE code and school name')
    student_name = models.CharField(max_length=200, blank=True)
    father_name = models.CharField(max_length=200, blank=True)
    mother_name = models.CharField(max_length=200, blank=True)
    class_name = models.CharField(max_length=20, blank=True)
    section = models.CharField(max_length=5, blank=True)
    student_id_number = models.CharField(max_length=50, blank=True)
    roll_number = models.CharField(max_length=20, blank=True)
    admission_number = models.CharField(max_length=50, blank=True)
    exam_number = models.CharField(max_length=50, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    medium = models.CharField(max_length=30, blank=True)

    second_language = models.CharField(
        max_length=10,
        blank=True,
        choices=[(lang, lang) for lang in SECOND_LANGUAGES]
    )

    # Overall grade
    final_overall_grade = models.CharField(
        max_length=5,
        blank=True,
        help_text='Manually entered overall grade; overrides the computed grade when set'
    )
    computed_overall_grade = models.CharField(
        max_length=5,
        blank=True,
        help_text='Most frequent final grade across subject papers, stored at last save'
    )

    is_published = models.BooleanField(default=False)
    generated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='generated_report_cards'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    STUDENT_INFO_FIELDS = (
        'school_heading', 'student_name', 'father_name', 'mother_name',
        'class_name', 'section', 'student_id_number', 'roll_number',
        'admission_number', 'exam_number', 'date_of_birth', 'medium',
    )

    class Meta:
        db_table = 'report_card'
        ordering = ['academic_year', 'student_name']
        verbose_name = 'Report Card'
        verbose_name_plural = 'Report Cards'
        unique_together = ['student', 'school', 'academic_year', 'template_key', 'term']
        indexes = [
            models.Index(fields=['class_assigned', 'academic_year'], name='report_card_class_year_idx'),
        ]

    def __str__(self):
        return f"{self.student_name or self.student_id} - {self.academic_year} ({self.get_template_key_display()})"

    @property
    def overall_grade(self):
        """Manual grade if set, otherwise the computed one."""
        return self.final_overall_grade or self.computed_overall_grade

    def student_info(self):
        info = {name: getattr(self, name) for name in self.STUDENT_INFO_FIELDS}
        if info['date_of_birth']:
            info['date_of_birth'] = info['date_of_birth'].isoformat()
        return info

    def to_snapshot(self, class_subject_names=None):
        """
        Raw report card data as plain dicts, the input of
        ``calculations.build_report_view``.

        Filled out to the whole card layout of the class, so subjects,
        papers and months without marks appear as blank entries.
        ``class_subject_names`` defaults to the class's subject allocation.
        """
        from .calculations import complete_layout

        if class_subject_names is None:
            from .providers import get_class_subjects
            class_subject_names = [
                s['subject_name'] for s in get_class_subjects(self.class_assigned)
            ] if self.class_assigned_id else []

        formative = {}
        for row in self.formative_assessments.all():
            entry = formative.setdefault(row.subject_name, {
                'subject_name': row.subject_name,
                'position': row.position,
                'periods': {},
            })
            entry['periods'][row.period] = row.tools()

        return complete_layout({
            'student_info': self.student_info(),
            'second_language': self.second_language,
            'formative_assessments': sorted(formative.values(), key=lambda e: e['position']),
            'summative_assessments': [row.to_entry() for row in self.summative_assessments.all()],
            'co_curricular_assessments': [row.to_entry() for row in self.co_curricular_assessments.all()],
            'attendance': [row.to_entry() for row in self.attendance_months.all()],
            'final_overall_grade': self.final_overall_grade,
        }, class_subject_names)


class FormativeAssessment(models.Model):
    """Tool scores of one subject for one formative period (FA1-FA4)."""
    report_card = models.ForeignKey(
        ReportCard,
        on_delete=models.CASCADE,
        related_name='formative_assessments'
    )
    subject_name = models.CharField(max_length=100)
    position = models.PositiveSmallIntegerField(default=0, help_text='Subject order on the card')
    period = models.CharField(
        max_length=3,
        choices=[(period, period) for period in FORMATIVE_PERIODS]
    )
    tool1 = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MaxValueValidator(TOOL_MAX_MARKS['tool1'])]
    )
    tool2 = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MaxValueValidator(TOOL_MAX_MARKS['tool2'])]
    )
    tool3 = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MaxValueValidator(TOOL_MAX_MARKS['tool3'])]
    )
    tool4 = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MaxValueValidator(TOOL_MAX_MARKS['tool4'])]
    )

    # Derived (stored at save)
    total = models.PositiveSmallIntegerField(default=0)
    grade = models.CharField(max_length=2, blank=True)

    class Meta:
        db_table = 'report_card_formative'
        ordering = ['report_card', 'position', 'period']
        unique_together = ['report_card', 'subject_name', 'period']

    def __str__(self):
        return f"{self.subject_name} {self.period}: {self.total}"

    def tools(self):
        return {tool: getattr(self, tool) for tool in FORMATIVE_TOOLS}


class SummativeAssessment(models.Model):
    """SA1/SA2 marks and the carried formative total for one subject paper."""
    report_card = models.ForeignKey(
        ReportCard,
        on_delete=models.CASCADE,
        related_name='summative_assessments'
    )
    subject_name = models.CharField(max_length=100)
    paper = models.CharField(max_length=20, help_text='I, II, Physics, Biology')
    position = models.PositiveSmallIntegerField(default=0)

    sa1_marks = models.PositiveSmallIntegerField(null=True, blank=True)
    sa1_max_marks = models.PositiveSmallIntegerField(
        default=_default_sa_max_marks, validators=[MinValueValidator(1)]
    )
    sa2_marks = models.PositiveSmallIntegerField(null=True, blank=True)
    sa2_max_marks = models.PositiveSmallIntegerField(
        default=_default_sa_max_marks, validators=[MinValueValidator(1)]
    )
    fa_total_200m = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MaxValueValidator(FORMATIVE_TOTAL_MAX_MARKS)],
        help_text='Combined formative total carried onto the summative side'
    )

    # Derived (stored at save)
    sa1_grade = models.CharField(max_length=2, blank=True)
    sa2_grade = models.CharField(max_length=2, blank=True)
    fa_average_plus_sa1_100m = models.PositiveSmallIntegerField(null=True, blank=True)
    internal_marks_20m = models.PositiveSmallIntegerField(null=True, blank=True)
    final_total_100m = models.PositiveSmallIntegerField(null=True, blank=True)
    final_grade = models.CharField(max_length=2, blank=True)

    class Meta:
        db_table = 'report_card_summative'
        ordering = ['report_card', 'position']
        unique_together = ['report_card', 'subject_name', 'paper']

    def __str__(self):
        return f"{self.subject_name} ({self.paper}): {self.final_total_100m}"

    def clean(self):
        """Validate that marks don't exceed their maximum"""
        for period in ('sa1', 'sa2'):
            marks = getattr(self, f'{period}_marks')
            max_marks = getattr(self, f'{period}_max_marks')
            if marks is not None and max_marks is not None and marks > max_marks:
                raise ValidationError({
                    f'{period}_marks': f'Marks ({marks}) cannot exceed max marks ({max_marks})'
                })

    def to_entry(self):
        return {
            'subject_name': self.subject_name,
            'paper': self.paper,
            'sa1': {'marks': self.sa1_marks, 'max_marks': self.sa1_max_marks},
            'sa2': {'marks': self.sa2_marks, 'max_marks': self.sa2_max_marks},
            'fa_total_200m': self.fa_total_200m,
        }


class CoCurricularAssessment(models.Model):
    """Three sub-assessment scores for a co-curricular subject."""
    report_card = models.ForeignKey(
        ReportCard,
        on_delete=models.CASCADE,
        related_name='co_curricular_assessments'
    )
    subject_name = models.CharField(max_length=50)
    position = models.PositiveSmallIntegerField(default=0)

    sa1_marks = models.PositiveSmallIntegerField(null=True, blank=True)
    sa1_max_marks = models.PositiveSmallIntegerField(default=_default_co_curricular_max_marks)
    sa2_marks = models.PositiveSmallIntegerField(null=True, blank=True)
    sa2_max_marks = models.PositiveSmallIntegerField(default=_default_co_curricular_max_marks)
    sa3_marks = models.PositiveSmallIntegerField(null=True, blank=True)
    sa3_max_marks = models.PositiveSmallIntegerField(default=_default_co_curricular_max_marks)

    # Derived (stored at save)
    percentage = models.PositiveSmallIntegerField(default=0)
    grade = models.CharField(max_length=2, blank=True)

    class Meta:
        db_table = 'report_card_co_curricular'
        ordering = ['report_card', 'position']
        unique_together = ['report_card', 'subject_name']

    def __str__(self):
        return f"{self.subject_name}: {self.grade}"

    def to_entry(self):
        entry = {'subject_name': self.subject_name}
        for key in CO_CURRICULAR_ASSESSMENTS:
            entry[key] = {
                'marks': getattr(self, f'{key}_marks'),
                'max_marks': getattr(self, f'{key}_max_marks'),
            }
        return entry


class AttendanceMonth(models.Model):
    """Working and present days for one academic month (June-April)."""
    report_card = models.ForeignKey(
        ReportCard,
        on_delete=models.CASCADE,
        related_name='attendance_months'
    )
    month = models.CharField(
        max_length=10,
        choices=[(month, month) for month in ATTENDANCE_MONTHS]
    )
    position = models.PositiveSmallIntegerField(default=0)
    working_days = models.PositiveSmallIntegerField(null=True, blank=True, validators=[MaxValueValidator(31)])
    present_days = models.PositiveSmallIntegerField(null=True, blank=True, validators=[MaxValueValidator(31)])

    class Meta:
        db_table = 'report_card_attendance'
        ordering = ['report_card', 'position']
        unique_together = ['report_card', 'month']

    def __str__(self):
        return f"{self.month}: {self.present_days}/{self.working_days}"

    def clean(self):
        """Validate that present days don't exceed working days"""
        if self.present_days is not None and self.working_days is not None:
            if self.present_days > self.working_days:
                raise ValidationError({
                    'present_days': f'Present days ({self.present_days}) cannot exceed working days ({self.working_days})'
                })

    def to_entry(self):
        return {
            'month': self.month,
            'working_days': self.working_days,
            'present_days': self.present_days,
        }


class ReportCardAuditLog(models.Model):
    """
    Audit log for report card changes. Tracks who changed what and when.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    ACTION_CHOICES = [
        ('CREATE', 'Created'),
        ('UPDATE', 'Updated'),
        ('PUBLISH', 'Published'),
        ('UNPUBLISH', 'Unpublished'),
    ]

    report_card = models.ForeignKey(
        ReportCard,
        on_delete=models.CASCADE,
        related_name='audit_logs'
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='report_card_audit_logs'
    )
    action = models.CharField(max_length=10, choices=ACTION_CHOICES)
    changes = models.JSONField(default=dict, blank=True, help_text='Sections and rows touched')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'report_card_audit_log'
        ordering = ['-created_at']
        verbose_name = 'Report Card Audit Log'
        verbose_name_plural = 'Report Card Audit Logs'
        indexes = [
            models.Index(fields=['report_card', 'created_at'], name='report_card_audit_idx'),
        ]

    def __str__(self):
        return f"{self.get_action_display()} {self.report_card} by {self.user}"
