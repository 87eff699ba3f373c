"""
Tests for the academics app.

Focuses on:
- Assessment name format/parse helpers
- AssessmentMark validation
"""
from django.core.exceptions import ValidationError
from django.test import SimpleTestCase, TestCase

from academics.models import Class, Subject, ClassSubject, AssessmentMark
from academics.utils import format_assessment_name, parse_assessment_name
from schools.models import School
from students.models import Student


class AssessmentNameTest(SimpleTestCase):
    """Tests for the marks-store assessment names."""

    def test_format_formative_tool(self):
        self.assertEqual(format_assessment_name('FA1', 1), 'FA1-Tool1')
        self.assertEqual(format_assessment_name('FA4', 4), 'FA4-Tool4')

    def test_format_summative_paper(self):
        self.assertEqual(format_assessment_name('SA2', 2), 'SA2-Paper2')

    def test_format_out_of_range(self):
        with self.assertRaises(ValueError):
            format_assessment_name('FA1', 5)
        with self.assertRaises(ValueError):
            format_assessment_name('SA1', 3)
        with self.assertRaises(ValueError):
            format_assessment_name('FA5', 1)

    def test_parse(self):
        self.assertEqual(parse_assessment_name('FA3-Tool2'), ('FA3', 'tool', 2))
        self.assertEqual(parse_assessment_name('SA1-Paper1'), ('SA1', 'paper', 1))

    def test_parse_rejects_mismatched_kind(self):
        with self.assertRaises(ValueError):
            parse_assessment_name('FA1-Paper1')
        with self.assertRaises(ValueError):
            parse_assessment_name('SA1-Tool1')

    def test_parse_rejects_garbage(self):
        for name in ('', None, 'FA1Tool1', 'FA1-Tool9', 'fa1-tool1', 'SA3-Paper1'):
            with self.subTest(name=name):
                with self.assertRaises(ValueError):
                    parse_assessment_name(name)

    def test_every_name_parses_back(self):
        for period in ('FA1', 'FA2', 'FA3', 'FA4'):
            for number in range(1, 5):
                name = format_assessment_name(period, number)
                self.assertEqual(parse_assessment_name(name), (period, 'tool', number))


class AssessmentMarkModelTest(TestCase):
    """Tests for AssessmentMark validation."""

    def setUp(self):
        self.school = School.objects.create(name='ZPHS Kondapur', udise_code='36051000101')
        self.class_obj = Class.objects.create(
            school=self.school, name='X', section='A', academic_year='2024-2025'
        )
        self.subject = Subject.objects.create(name='Maths')
        ClassSubject.objects.create(class_assigned=self.class_obj, subject=self.subject)
        self.student = Student.objects.create(
            first_name='Ravi', last_name='Kumar', admission_number='ADM001',
            current_class=self.class_obj
        )

    def _mark(self, **kwargs):
        data = {
            'student': self.student,
            'class_assigned': self.class_obj,
            'subject': self.subject,
            'assessment_name': 'FA1-Tool1',
            'academic_year': '2024-2025',
            'marks_obtained': 8,
            'max_marks': 10,
        }
        data.update(kwargs)
        return AssessmentMark(**data)

    def test_valid_mark(self):
        self._mark().full_clean()

    def test_invalid_assessment_name(self):
        with self.assertRaises(ValidationError) as ctx:
            self._mark(assessment_name='FA9-Tool1').full_clean()
        self.assertIn('assessment_name', ctx.exception.message_dict)

    def test_marks_exceed_max(self):
        with self.assertRaises(ValidationError) as ctx:
            self._mark(marks_obtained=12).full_clean()
        self.assertIn('marks_obtained', ctx.exception.message_dict)

    def test_str_representation(self):
        mark = self._mark()
        self.assertEqual(str(mark), 'Ravi Kumar (ADM001) - Maths FA1-Tool1: 8/10')
