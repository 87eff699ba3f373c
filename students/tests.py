from django.test import TestCase

from academics.models import Class
from schools.models import School
from students.models import Student


class StudentModelTests(TestCase):
    """Tests for the Student model."""

    def setUp(self):
        self.school = School.objects.create(name='ZPHS Kondapur')
        self.class_obj = Class.objects.create(
            school=self.school, name='X', section='A', academic_year='2024-2025'
        )

    def test_full_name(self):
        student = Student.objects.create(
            first_name='Ravi', last_name='Kumar', admission_number='ADM001'
        )
        self.assertEqual(student.full_name, 'Ravi Kumar')
        self.assertEqual(str(student), 'Ravi Kumar (ADM001)')

    def test_full_name_with_other_names(self):
        student = Student(first_name='Sai', other_names='Teja', last_name='Reddy', admission_number='ADM002')
        self.assertEqual(student.full_name, 'Sai Teja Reddy')

    def test_class_roster(self):
        Student.objects.create(first_name='Ravi', last_name='Kumar', admission_number='ADM001', current_class=self.class_obj)
        Student.objects.create(first_name='Anil', last_name='Babu', admission_number='ADM002', current_class=self.class_obj)
        Student.objects.create(first_name='Lost', last_name='Student', admission_number='ADM003')

        names = [s.full_name for s in self.class_obj.students.all()]
        self.assertEqual(names, ['Anil Babu', 'Ravi Kumar'])


class SchoolHeadingTests(TestCase):

    def test_heading_with_udise_code(self):
        school = School(name='ZPHS Kondapur', udise_code='36051000101')
        self.assertEqual(school.report_card_heading, '36051000101 ZPHS Kondapur')

    def test_heading_without_udise_code(self):
        self.assertEqual(School(name='ZPHS Kondapur').report_card_heading, 'ZPHS Kondapur')
