from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils.translation import gettext_lazy as _


class Class(models.Model):
    """
    Represents a class/classroom grouping of students for one academic year.

    Name format follows the report card header: class "X", section "A".
    """
    class SecondLanguage(models.TextChoices):
        HINDI = 'Hindi', _('Hindi')
        TELUGU = 'Telugu', _('Telugu')

    school = models.ForeignKey(
        'schools.School',
        on_delete=models.CASCADE,
        related_name='classes'
    )
    name = models.CharField(
        max_length=20,
        help_text="e.g., IX, X"
    )
    section = models.CharField(
        max_length=5,
        blank=True,
        help_text="A, B, C, etc."
    )
    academic_year = models.CharField(
        max_length=9,
        help_text="e.g., 2024-2025"
    )
    medium = models.CharField(
        max_length=30,
        default='English',
        help_text="Medium of instruction"
    )
    second_language = models.CharField(
        max_length=10,
        choices=SecondLanguage.choices,
        blank=True,
        help_text="Subject graded on the second-language scales"
    )

    class_teacher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_classes',
        help_text="The class teacher responsible for this class."
    )

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['academic_year', 'name', 'section']
        verbose_name = "Class"
        verbose_name_plural = "Classes"
        unique_together = ['school', 'name', 'section', 'academic_year']

    def __str__(self):
        if self.section:
            return f"{self.name}-{self.section} ({self.academic_year})"
        return f"{self.name} ({self.academic_year})"


class Subject(models.Model):
    """
    Represents a subject taught at the school.

    Science is taught as two papers (Physics and Biology) which may have
    separate teachers; those are subjects of their own.
    """
    name = models.CharField(
        max_length=100,
        unique=True,
        help_text="e.g., Telugu, English, Maths, Science, Physics"
    )
    short_name = models.CharField(
        max_length=20,
        blank=True,
        help_text="e.g., TEL, ENG, MAT"
    )
    code = models.CharField(
        max_length=20,
        blank=True,
        help_text="Optional subject code"
    )

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']
        verbose_name = "Subject"
        verbose_name_plural = "Subjects"

    def __str__(self):
        return self.name


class ClassSubject(models.Model):
    """
    Links a Class to a Subject and assigns a specific Teacher.
    Example: 'Mrs. Rao' teaches 'Maths' to 'X A'.
    """
    class_assigned = models.ForeignKey(
        Class,
        on_delete=models.CASCADE,
        related_name='subjects'
    )
    subject = models.ForeignKey(
        Subject,
        on_delete=models.CASCADE,
        related_name='class_allocations'
    )
    teacher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='subject_assignments'
    )
    order = models.PositiveSmallIntegerField(
        default=0,
        help_text="Display order on the report card (lower numbers appear first)"
    )

    class Meta:
        ordering = ['class_assigned', 'order', 'subject__name']
        unique_together = ['class_assigned', 'subject']
        verbose_name = "Subject Allocation"
        verbose_name_plural = "Subject Allocations"

    def __str__(self):
        return f"{self.subject.name} - {self.class_assigned}"


class AssessmentMark(models.Model):
    """
    Raw mark recorded by a subject teacher for one assessment component.

    ``assessment_name`` encodes the component, e.g. ``FA1-Tool1`` or
    ``SA2-Paper1`` (see ``academics.utils``).
    """
    student = models.ForeignKey(
        'students.Student',
        on_delete=models.CASCADE,
        related_name='assessment_marks'
    )
    class_assigned = models.ForeignKey(
        Class,
        on_delete=models.CASCADE,
        related_name='assessment_marks'
    )
    subject = models.ForeignKey(
        Subject,
        on_delete=models.CASCADE,
        related_name='assessment_marks'
    )
    assessment_name = models.CharField(max_length=20)
    academic_year = models.CharField(max_length=9)
    marks_obtained = models.PositiveSmallIntegerField()
    max_marks = models.PositiveSmallIntegerField()
    marked_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='recorded_marks'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['student', 'subject', 'assessment_name']
        unique_together = ['student', 'class_assigned', 'subject', 'assessment_name', 'academic_year']
        indexes = [
            models.Index(fields=['student', 'class_assigned', 'academic_year'], name='assessment_mark_lookup_idx'),
        ]

    def __str__(self):
        return f"{self.student} - {self.subject.name} {self.assessment_name}: {self.marks_obtained}/{self.max_marks}"

    def clean(self):
        """Validate the assessment name and that marks don't exceed max marks"""
        from .utils import parse_assessment_name

        try:
            parse_assessment_name(self.assessment_name)
        except ValueError as e:
            raise ValidationError({'assessment_name': str(e)})

        if self.max_marks is not None and self.max_marks < 1:
            raise ValidationError({'max_marks': 'Max marks must be at least 1.'})
        if self.marks_obtained is not None and self.max_marks is not None:
            if self.marks_obtained > self.max_marks:
                raise ValidationError({
                    'marks_obtained': f'Marks obtained ({self.marks_obtained}) cannot exceed max marks ({self.max_marks})'
                })
