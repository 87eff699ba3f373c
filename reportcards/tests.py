import io
import json
from itertools import product
from unittest import mock

import openpyxl
from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.core.management.base import CommandError
from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import reverse

from academics.models import Class, Subject, ClassSubject, AssessmentMark
from accounts.models import Role
from schools.models import School
from students.models import Student

from . import services
from .calculations import (
    round_half_up, period_total, formative_subject_summary, summative_paper_summary,
    overall_report_grade, co_curricular_summary, attendance_summary, has_downstream_data,
    build_report_view, complete_layout, percentage_of,
)
from .exceptions import ReportValidationError, NotFoundError, ConflictError
from .grading import (
    lookup_grade, grade_for, get_scale, scale_ranges,
    FA_PERIOD, OVERALL_SUBJECT, SUMMATIVE, FINAL, CO_CURRICULAR,
)
from .models import ReportCard, SummativeAssessment, ReportCardAuditLog
from .permissions import (
    Actor, can_edit, can_edit_final_grade, can_edit_general, can_publish, can_view,
    teacher_covers_subject, editable_subjects,
)
from .providers import get_class_subjects, get_assigned_subjects, actor_for_user
from .structure import report_subjects, papers_for_subject, paper_edit_subject

User = get_user_model()

YEAR = '2024-2025'


def sa_entry(subject_name, paper, sa1=None, sa2=None, fa_total=None, max_marks=80):
    return {
        'subject_name': subject_name,
        'paper': paper,
        'sa1': {'marks': sa1, 'max_marks': max_marks},
        'sa2': {'marks': sa2, 'max_marks': max_marks},
        'fa_total_200m': fa_total,
    }


def fa_entry(subject_name, **periods):
    return {
        'subject_name': subject_name,
        'periods': {
            period: dict(zip(('tool1', 'tool2', 'tool3', 'tool4'), tools))
            for period, tools in periods.items()
        },
    }


# =============================================================================
# GRADE TABLES
# =============================================================================

class GradeScaleTest(SimpleTestCase):
    """Tests for grade band lookup."""

    def test_band_boundaries(self):
        self.assertEqual(grade_for(FA_PERIOD, 46), 'A1')
        self.assertEqual(grade_for(FA_PERIOD, 45), 'A2')
        self.assertEqual(grade_for(FA_PERIOD, 18), 'D1')
        self.assertEqual(grade_for(FA_PERIOD, 17), 'D2')
        self.assertEqual(grade_for(FA_PERIOD, 0), 'D2')

    def test_second_language_variant(self):
        self.assertEqual(grade_for(FA_PERIOD, 45, second_language=True), 'A1')
        self.assertEqual(grade_for(FA_PERIOD, 10, second_language=True), 'D1')
        self.assertEqual(grade_for(FINAL, 90, second_language=True), 'A1')
        self.assertEqual(grade_for(FINAL, 90), 'A2')

    def test_overall_subject_scale(self):
        self.assertEqual(grade_for(OVERALL_SUBJECT, 200), 'A+')
        self.assertEqual(grade_for(OVERALL_SUBJECT, 180), 'A+')
        self.assertEqual(grade_for(OVERALL_SUBJECT, 179), 'A1')
        self.assertEqual(grade_for(OVERALL_SUBJECT, 39), 'D2')

    def test_summative_legends(self):
        # Lowest marks per band as printed for 80- and 100-mark papers
        legends = {
            (80, False): [73, 65, 57, 49, 41, 33, 28, 0],
            (80, True): [72, 63, 54, 46, 37, 28, 16, 0],
            (100, False): [91, 81, 71, 61, 51, 41, 35, 0],
            (100, True): [90, 79, 68, 57, 46, 35, 20, 0],
        }
        for (max_marks, second_language), minima in legends.items():
            grades = [grade for _, grade in get_scale(SUMMATIVE, second_language)]
            expected = {}
            upper = max_marks
            for minimum, grade in zip(minima, grades):
                for marks in range(minimum, upper + 1):
                    expected[marks] = grade
                upper = minimum - 1
            actual = {
                marks: grade_for(SUMMATIVE, percentage_of(marks, max_marks), second_language)
                for marks in range(max_marks + 1)
            }
            with self.subTest(max_marks=max_marks, second_language=second_language):
                self.assertEqual(actual, expected)

    def test_second_language_80_mark_boundaries(self):
        self.assertEqual(grade_for(SUMMATIVE, percentage_of(63, 80), True), 'A2')
        self.assertEqual(grade_for(SUMMATIVE, percentage_of(62, 80), True), 'B1')
        self.assertEqual(grade_for(SUMMATIVE, percentage_of(54, 80), True), 'B1')
        self.assertEqual(grade_for(SUMMATIVE, percentage_of(53, 80), True), 'B2')

    def test_fractional_percentage(self):
        # 90.5% has not reached the 91 band
        self.assertEqual(grade_for(SUMMATIVE, '90.5'), 'A2')

    def test_none_has_no_grade(self):
        self.assertIsNone(lookup_grade(None, get_scale(FINAL)))

    def test_unknown_kind(self):
        with self.assertRaises(KeyError):
            get_scale('attendance')

    def test_grades_never_invert(self):
        maxima = {FA_PERIOD: 50, OVERALL_SUBJECT: 200, SUMMATIVE: 100, FINAL: 100, CO_CURRICULAR: 100}
        for kind, maximum in maxima.items():
            for second_language in (False, True):
                scale = get_scale(kind, second_language)
                order = [grade for _, grade in scale]
                ranks = [order.index(grade_for(kind, score, second_language)) for score in range(maximum + 1)]
                with self.subTest(kind=kind, second_language=second_language):
                    self.assertEqual(ranks, sorted(ranks, reverse=True))

    def test_scale_ranges(self):
        ranges = scale_ranges(get_scale(CO_CURRICULAR), 100)
        self.assertEqual(ranges[0], {'grade': 'A+', 'min': 85, 'max': 100})
        self.assertEqual(ranges[1], {'grade': 'A', 'min': 71, 'max': 84})
        self.assertEqual(ranges[-1], {'grade': 'D', 'min': 0, 'max': 40})


# =============================================================================
# CALCULATIONS
# =============================================================================

class FormativeCalculationTest(SimpleTestCase):

    def test_full_marks_period(self):
        summary = formative_subject_summary(fa_entry('Maths', FA1=(10, 10, 10, 20)))
        self.assertEqual(summary['periods']['FA1']['total'], 50)
        self.assertEqual(summary['periods']['FA1']['grade'], 'A1')

    def test_missing_tools_count_as_zero(self):
        self.assertEqual(period_total({'tool1': 7, 'tool2': None, 'tool4': 15}), 22)
        self.assertEqual(period_total({}), 0)
        self.assertEqual(period_total(None), 0)

    def test_period_totals_within_bounds(self):
        for tools in product((None, 0, 5, 10), (None, 0, 10), (None, 3, 10), (None, 0, 11, 20)):
            total = period_total(dict(zip(('tool1', 'tool2', 'tool3', 'tool4'), tools)))
            self.assertEqual(total, sum(t or 0 for t in tools))
            self.assertTrue(0 <= total <= 50)

    def test_empty_period_grades_lowest_band(self):
        summary = formative_subject_summary(fa_entry('Maths'))
        self.assertEqual(summary['periods']['FA3']['total'], 0)
        self.assertEqual(summary['periods']['FA3']['grade'], 'D2')

    def test_overall_total(self):
        entry = fa_entry('English', FA1=(10, 10, 10, 20), FA2=(8, 8, 8, 16), FA3=(5, 5, 5, 10), FA4=(0, 0, 0, 0))
        summary = formative_subject_summary(entry)
        self.assertEqual(summary['overall_total'], 50 + 40 + 25)
        self.assertEqual(summary['overall_grade'], 'B2')

    def test_second_language_period_grade(self):
        entry = fa_entry('Hindi', FA1=(10, 10, 5, 20))
        self.assertEqual(formative_subject_summary(entry, 'Hindi')['periods']['FA1']['grade'], 'A1')
        self.assertEqual(formative_subject_summary(entry, 'Telugu')['periods']['FA1']['grade'], 'A2')


class SummativeCalculationTest(SimpleTestCase):

    def test_second_language_half_marks(self):
        entry = sa_entry('Hindi', 'I', sa1=40)
        self.assertEqual(summative_paper_summary(entry, 'Hindi')['sa1']['grade'], 'C1')
        self.assertEqual(summative_paper_summary(entry, 'Telugu')['sa1']['grade'], 'C2')

    def test_paper_totals(self):
        summary = summative_paper_summary(sa_entry('Maths', 'I', sa1=60, sa2=70, fa_total=160))
        self.assertEqual(summary['sa1']['percentage'], 75)
        self.assertEqual(summary['sa1']['grade'], 'B1')
        self.assertEqual(summary['sa2']['percentage'], 88)
        self.assertEqual(summary['sa2']['grade'], 'A2')
        self.assertEqual(summary['fa_average_plus_sa1_100m'], 78)
        self.assertEqual(summary['internal_marks_20m'], 16)
        self.assertEqual(summary['final_total_100m'], 86)
        self.assertEqual(summary['final_grade'], 'A2')

    def test_sa_marks_capped_at_80(self):
        summary = summative_paper_summary(sa_entry('Maths', 'I', sa1=95, sa2=90, fa_total=200, max_marks=100))
        self.assertEqual(summary['fa_average_plus_sa1_100m'], 98)
        self.assertEqual(summary['internal_marks_20m'], 20)
        self.assertEqual(summary['final_total_100m'], 100)
        self.assertEqual(summary['final_grade'], 'A1')

    def test_half_rounds_up(self):
        summary = summative_paper_summary(sa_entry('Maths', 'I', sa1=0, sa2=0, fa_total=9))
        self.assertEqual(summary['internal_marks_20m'], 1)
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up('0.49'), 0)

    def test_row_without_data(self):
        summary = summative_paper_summary(sa_entry('Social', 'II'))
        self.assertIsNone(summary['sa1']['grade'])
        self.assertIsNone(summary['final_total_100m'])
        self.assertIsNone(summary['final_grade'])

    def test_missing_max_uses_default(self):
        entry = {'subject_name': 'Maths', 'paper': 'I', 'sa1': {'marks': 40}, 'fa_total_200m': None}
        self.assertEqual(summative_paper_summary(entry)['sa1']['max_marks'], 80)

    def test_overall_grade_is_most_frequent(self):
        self.assertEqual(overall_report_grade(['B1', 'A1', 'B1', 'C1']), 'B1')

    def test_overall_grade_tie_goes_to_first(self):
        self.assertEqual(overall_report_grade(['A1', 'B1', 'B1', 'A1', 'C1']), 'A1')
        self.assertEqual(overall_report_grade(['B1', 'A1', 'A1', 'B1']), 'B1')

    def test_overall_grade_empty(self):
        self.assertEqual(overall_report_grade([None, '', None]), '')


class CoCurricularAndAttendanceTest(SimpleTestCase):

    def test_co_curricular_grade(self):
        entry = {
            'subject_name': 'Art. Edn.',
            'sa1': {'marks': 40, 'max_marks': 50},
            'sa2': {'marks': 45, 'max_marks': 50},
            'sa3': {'marks': 50, 'max_marks': 50},
        }
        summary = co_curricular_summary(entry)
        self.assertEqual(summary['percentage'], 90)
        self.assertEqual(summary['grade'], 'A+')

    def test_co_curricular_without_maximum(self):
        entry = {'subject_name': 'Work Edn.'}
        for key in ('sa1', 'sa2', 'sa3'):
            entry[key] = {'marks': None, 'max_marks': 0}
        self.assertEqual(co_curricular_summary(entry)['percentage'], 0)
        self.assertEqual(co_curricular_summary(entry)['grade'], 'D')

    def test_attendance_percentage(self):
        months = [{'working_days': 20, 'present_days': 18}, {'working_days': 22, 'present_days': 20}]
        months += [{'working_days': 0, 'present_days': 0}] * 9
        summary = attendance_summary(months)
        self.assertEqual(summary['total_working_days'], 42)
        self.assertEqual(summary['total_present_days'], 38)
        self.assertEqual(summary['attendance_percentage'], 90)

    def test_attendance_without_working_days(self):
        months = [{'working_days': 0, 'present_days': 0}] * 11
        self.assertEqual(attendance_summary(months)['attendance_percentage'], 0)
        self.assertEqual(attendance_summary([])['attendance_percentage'], 0)

    def test_downstream_data(self):
        self.assertFalse(has_downstream_data({'summative_assessments': [sa_entry('Maths', 'I')], 'attendance': []}))
        self.assertTrue(has_downstream_data({'summative_assessments': [sa_entry('Maths', 'I', fa_total=0)]}))
        self.assertTrue(has_downstream_data({'attendance': [{'month': 'June', 'working_days': 0, 'present_days': None}]}))

    def test_override_wins(self):
        snapshot = {
            'summative_assessments': [sa_entry('Maths', 'I', sa1=60, sa2=70, fa_total=160)],
            'final_overall_grade': 'A1',
        }
        view = build_report_view(snapshot)
        self.assertEqual(view['computed_overall_grade'], 'A2')
        self.assertEqual(view['final_overall_grade'], 'A1')
        snapshot['final_overall_grade'] = ''
        self.assertEqual(build_report_view(snapshot)['final_overall_grade'], 'A2')

    def test_layout_fills_blank_entries(self):
        snapshot = {
            'second_language': 'Hindi',
            'formative_assessments': [fa_entry('Maths', FA1=(9, 9, 9, 18))],
            'summative_assessments': [sa_entry('Maths', 'II', sa1=40), sa_entry('Drawing', 'I', sa1=30)],
            'attendance': [{'month': 'July', 'working_days': 24, 'present_days': 20}],
        }
        layout = complete_layout(snapshot, ['Hindi', 'Maths', 'Physics', 'Biology'])

        self.assertEqual(
            [e['subject_name'] for e in layout['formative_assessments']], ['Hindi', 'Maths', 'Science']
        )
        self.assertEqual(layout['formative_assessments'][1]['periods']['FA1']['tool4'], 18)
        self.assertEqual(
            [(e['subject_name'], e['paper']) for e in layout['summative_assessments']],
            [('Hindi', 'I'), ('Maths', 'I'), ('Maths', 'II'), ('Science', 'Physics'),
             ('Science', 'Biology'), ('Drawing', 'I')]
        )
        self.assertEqual(layout['summative_assessments'][2]['sa1']['marks'], 40)
        self.assertEqual(len(layout['co_curricular_assessments']), 4)
        self.assertEqual(len(layout['attendance']), 11)
        self.assertEqual(layout['attendance'][1]['working_days'], 24)
        self.assertEqual(layout['second_language'], 'Hindi')

        view = build_report_view(layout)
        self.assertIsNone(view['summative_assessments'][0]['final_total_100m'])
        self.assertEqual(view['attendance']['total_working_days'], 24)


class StructureTest(SimpleTestCase):

    def test_science_papers_collapse(self):
        self.assertEqual(
            report_subjects(['Telugu', 'Physics', 'Maths', 'Biology', 'Social']),
            ['Telugu', 'Science', 'Maths', 'Social']
        )

    def test_paper_table(self):
        self.assertEqual(papers_for_subject('Science'), ('Physics', 'Biology'))
        self.assertEqual(papers_for_subject('Hindi'), ('I',))
        self.assertEqual(papers_for_subject('Drawing'), ('I',))

    def test_paper_owner(self):
        self.assertEqual(paper_edit_subject('Science', 'Physics'), 'Physics')
        self.assertEqual(paper_edit_subject('Maths', 'II'), 'Maths')


# =============================================================================
# EDITABILITY
# =============================================================================

class EditabilityTest(SimpleTestCase):

    SUBJECTS = ['Telugu', 'Hindi', 'English', 'Maths', 'Science', 'Physics', 'Biology', 'Social']

    def test_matrix(self):
        for role, subject, downstream in product(Role.values, self.SUBJECTS, (False, True)):
            if role == Role.TEACHER:
                expected = subject == 'Maths'
            elif role == Role.ADMIN:
                expected = not downstream
            else:
                expected = False
            with self.subTest(role=role, subject=subject, downstream=downstream):
                self.assertEqual(can_edit(role, subject, {'Maths'}, downstream), expected)

    def test_maths_teacher_never_edits_english(self):
        for downstream in (False, True):
            self.assertFalse(can_edit(Role.TEACHER, 'English', {'Maths'}, downstream))
            self.assertTrue(can_edit(Role.TEACHER, 'Maths', {'Maths'}, downstream))

    def test_unknown_role(self):
        self.assertFalse(can_edit('', 'Maths', {'Maths'}, False))
        self.assertFalse(can_edit(None, 'Maths', {'Maths'}, False))

    def test_science_coverage(self):
        self.assertTrue(teacher_covers_subject('Science', {'Physics'}))
        self.assertTrue(teacher_covers_subject('Science', {'Biology'}))
        self.assertTrue(teacher_covers_subject('Biology', {'Science'}))
        self.assertFalse(teacher_covers_subject('Biology', {'Physics'}))
        self.assertFalse(teacher_covers_subject('Maths', set()))

    def test_editable_subjects(self):
        subjects = ['Telugu', 'Maths', 'Science', 'Physics', 'Biology']
        teacher = Actor(Role.TEACHER, 5, frozenset({'Physics'}))
        admin = Actor(Role.ADMIN, 1)
        self.assertEqual(editable_subjects(teacher, subjects, True), ['Science', 'Physics'])
        self.assertEqual(editable_subjects(admin, subjects, False), subjects)
        self.assertEqual(editable_subjects(admin, subjects, True), [])

    def test_admin_only_fields(self):
        self.assertTrue(can_edit_final_grade(Role.ADMIN, False))
        self.assertFalse(can_edit_final_grade(Role.ADMIN, True))
        self.assertFalse(can_edit_final_grade(Role.TEACHER, False))
        self.assertTrue(can_edit_general(Role.ADMIN, False))
        self.assertFalse(can_edit_general(Role.STUDENT, False))
        self.assertTrue(can_publish(Role.ADMIN))
        self.assertFalse(can_publish(Role.TEACHER))

    def test_can_view(self):
        self.assertTrue(can_view(Role.TEACHER, False))
        self.assertTrue(can_view(Role.ADMIN, False))
        self.assertFalse(can_view(Role.STUDENT, False, is_own_report=True))
        self.assertFalse(can_view(Role.STUDENT, True, is_own_report=False))
        self.assertTrue(can_view(Role.STUDENT, True, is_own_report=True))


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

class ReportCardTestCase(TestCase):
    """School with class X-A, its subject teachers and one student."""

    def setUp(self):
        self.school = School.objects.create(name='ZPHS Kondapur', udise_code='36051000101')
        self.class_obj = Class.objects.create(
            school=self.school, name='X', section='A', academic_year=YEAR,
            second_language=Class.SecondLanguage.HINDI
        )

        self.admin = User.objects.create_school_admin(email='head@school.com', password='x')
        self.maths_teacher = User.objects.create_teacher(email='maths@school.com', password='x')
        self.english_teacher = User.objects.create_teacher(email='english@school.com', password='x')
        self.physics_teacher = User.objects.create_teacher(email='physics@school.com', password='x')

        teachers = {
            'Maths': self.maths_teacher,
            'English': self.english_teacher,
            'Physics': self.physics_teacher,
        }
        self.subjects = {}
        for order, name in enumerate(['Telugu', 'Hindi', 'English', 'Maths', 'Physics', 'Biology', 'Social']):
            subject = Subject.objects.create(name=name)
            self.subjects[name] = subject
            ClassSubject.objects.create(
                class_assigned=self.class_obj, subject=subject,
                teacher=teachers.get(name), order=order
            )

        self.student_user = User.objects.create_student(email='ravi@school.com', password='x')
        self.student = Student.objects.create(
            first_name='Ravi', last_name='Kumar', admission_number='ADM001',
            father_name='Suresh Kumar', roll_number='1',
            current_class=self.class_obj, user=self.student_user
        )

        self.key = {'student_id': self.student.pk, 'school_id': self.school.pk, 'academic_year': YEAR}

    def actor(self, user):
        return actor_for_user(user, self.class_obj)

    def add_student(self, number, with_report=False):
        student = Student.objects.create(
            first_name=f'Student{number:02d}', last_name='Test',
            admission_number=f'ADM{number:03d}', current_class=self.class_obj
        )
        if with_report:
            ReportCard.objects.create(
                student=student, school=self.school, class_assigned=self.class_obj,
                academic_year=YEAR, student_name=student.full_name
            )
        return student


class ProvidersTest(ReportCardTestCase):

    def test_class_subjects_in_order(self):
        names = [s['subject_name'] for s in get_class_subjects(self.class_obj)]
        self.assertEqual(names, ['Telugu', 'Hindi', 'English', 'Maths', 'Physics', 'Biology', 'Social'])

    def test_assigned_subjects(self):
        self.assertEqual(get_assigned_subjects(self.maths_teacher, self.class_obj), frozenset({'Maths'}))
        self.assertEqual(get_assigned_subjects(self.maths_teacher, None), frozenset())

    def test_actor_for_user(self):
        actor = self.actor(self.physics_teacher)
        self.assertEqual(actor.role, Role.TEACHER)
        self.assertEqual(actor.assigned_subjects, frozenset({'Physics'}))
        self.assertEqual(self.actor(self.admin), Actor(Role.ADMIN, self.admin.pk, frozenset()))


# =============================================================================
# SAVING
# =============================================================================

class SaveReportCardTest(ReportCardTestCase):

    def test_first_save_creates_draft(self):
        result = services.save_report_card(
            self.key, {'formative_assessments': [fa_entry('Maths', FA1=(10, 10, 10, 20))]},
            self.actor(self.maths_teacher)
        )
        report = result.report
        self.assertTrue(result.created)
        self.assertFalse(report.is_published)
        self.assertEqual(report.student_name, 'Ravi Kumar')
        self.assertEqual(report.father_name, 'Suresh Kumar')
        self.assertEqual(report.school_heading, '36051000101 ZPHS Kondapur')
        self.assertEqual(report.class_name, 'X')
        self.assertEqual(report.second_language, 'Hindi')
        self.assertEqual(report.generated_by, self.maths_teacher)

        row = report.formative_assessments.get(subject_name='Maths', period='FA1')
        self.assertEqual(row.total, 50)
        self.assertEqual(row.grade, 'A1')
        self.assertEqual(ReportCardAuditLog.objects.get(report_card=report).action, 'CREATE')

    def test_student_info_is_a_snapshot(self):
        result = services.save_report_card(self.key, {}, self.actor(self.admin))
        self.student.first_name = 'Ravindra'
        self.student.save()
        result.report.refresh_from_db()
        self.assertEqual(result.report.student_name, 'Ravi Kumar')

    def test_save_twice_is_idempotent(self):
        payload = {
            'summative_assessments': [
                sa_entry('Maths', 'I', sa1=60, sa2=70, fa_total=160),
                sa_entry('Maths', 'II', sa1=40, sa2=50, fa_total=120),
            ],
        }
        actor = self.actor(self.maths_teacher)
        first = services.save_report_card(self.key, payload, actor)
        before = services.get_report_card(self.key, actor)

        second = services.save_report_card(self.key, payload, actor)
        after = services.get_report_card(self.key, actor)

        self.assertFalse(second.created)
        self.assertEqual(second.changes, [])
        self.assertEqual(first.report.pk, second.report.pk)
        before.pop('updated_at')
        after.pop('updated_at')
        self.assertEqual(before, after)
        self.assertEqual(ReportCardAuditLog.objects.filter(report_card=first.report).count(), 1)

    def test_stored_derived_values(self):
        payload = {
            'summative_assessments': [
                sa_entry('Maths', 'I', sa1=60, sa2=70, fa_total=160),
                sa_entry('Maths', 'II', sa1=40, sa2=50, fa_total=120),
            ],
        }
        report = services.save_report_card(self.key, payload, self.actor(self.maths_teacher)).report
        paper_one = report.summative_assessments.get(paper='I')
        paper_two = report.summative_assessments.get(paper='II')
        self.assertEqual(paper_one.internal_marks_20m, 16)
        self.assertEqual(paper_one.final_total_100m, 86)
        self.assertEqual(paper_one.final_grade, 'A2')
        self.assertEqual(paper_two.final_total_100m, 62)
        self.assertEqual(paper_two.final_grade, 'B2')
        report.refresh_from_db()
        self.assertEqual(report.computed_overall_grade, 'A2')

    def test_stored_values_match_recomputation(self):
        payload = {
            'summative_assessments': [
                sa_entry('Hindi', 'I', sa1=33, sa2=41, fa_total=97),
                sa_entry('Maths', 'I', sa1=79, sa2=80, fa_total=189),
            ],
            'formative_assessments': [fa_entry('Hindi', FA1=(7, 8, 9, 13), FA2=(3, None, 10, 20))],
        }
        report = services.save_report_card(self.key, payload, self.actor(self.admin)).report
        report = ReportCard.objects.get(pk=report.pk)

        self.assertEqual(services.recalculate(report, commit=False), [])
        view = build_report_view(report.to_snapshot())
        for row in report.summative_assessments.all():
            derived = next(
                e for e in view['summative_assessments']
                if (e['subject_name'], e['paper']) == (row.subject_name, row.paper)
            )
            self.assertEqual(row.final_total_100m, derived['final_total_100m'])
            self.assertEqual(row.final_grade, derived['final_grade'])

    def test_save_keeps_publication_flag(self):
        report = services.save_report_card(self.key, {}, self.actor(self.admin)).report
        services.set_published(report.pk, True, self.actor(self.admin))

        services.save_report_card(
            self.key, {'summative_assessments': [sa_entry('Maths', 'I', sa1=50)]},
            self.actor(self.maths_teacher)
        )
        report.refresh_from_db()
        self.assertTrue(report.is_published)

    def test_teacher_cannot_edit_other_subject(self):
        with self.assertRaises(ConflictError) as ctx:
            services.save_report_card(
                self.key, {'summative_assessments': [sa_entry('English', 'I', sa1=50)]},
                self.actor(self.maths_teacher)
            )
        self.assertEqual(ctx.exception.subject, 'English')
        self.assertEqual(ctx.exception.role, Role.TEACHER)
        self.assertFalse(ReportCard.objects.exists())

    def test_unchanged_rows_of_other_subjects_are_accepted(self):
        english = sa_entry('English', 'I', sa1=55, sa2=61, fa_total=150)
        services.save_report_card(
            self.key, {'summative_assessments': [english]}, self.actor(self.english_teacher)
        )
        result = services.save_report_card(
            self.key,
            {'summative_assessments': [english, sa_entry('Maths', 'I', sa1=70)]},
            self.actor(self.maths_teacher)
        )
        self.assertEqual(result.changes, ['summative:Maths:I'])
        self.assertEqual(result.report.summative_assessments.get(subject_name='English').sa1_marks, 55)

    def test_teachers_do_not_overwrite_each_other(self):
        services.save_report_card(
            self.key, {'summative_assessments': [sa_entry('English', 'I', sa1=55)]},
            self.actor(self.english_teacher)
        )
        services.save_report_card(
            self.key, {'summative_assessments': [sa_entry('Maths', 'I', sa1=70)]},
            self.actor(self.maths_teacher)
        )
        report = ReportCard.objects.get()
        self.assertEqual(report.summative_assessments.count(), 2)

    def test_physics_teacher_owns_physics_paper(self):
        actor = self.actor(self.physics_teacher)
        services.save_report_card(
            self.key, {'summative_assessments': [sa_entry('Science', 'Physics', sa1=66)]}, actor
        )
        services.save_report_card(
            self.key, {'formative_assessments': [fa_entry('Science', FA1=(9, 9, 9, 18))]}, actor
        )
        with self.assertRaises(ConflictError) as ctx:
            services.save_report_card(
                self.key, {'summative_assessments': [sa_entry('Science', 'Biology', sa1=60)]}, actor
            )
        self.assertEqual(ctx.exception.subject, 'Biology')

    def test_admin_locked_once_summative_data_exists(self):
        actor = self.actor(self.admin)
        services.save_report_card(
            self.key, {'summative_assessments': [sa_entry('Maths', 'I', sa1=60)]}, actor
        )
        with self.assertRaises(ConflictError):
            services.save_report_card(self.key, {'final_overall_grade': 'A1'}, actor)
        with self.assertRaises(ConflictError):
            services.save_report_card(
                self.key, {'summative_assessments': [sa_entry('Maths', 'I', sa1=61)]}, actor
            )
        # subject teachers carry on
        services.save_report_card(
            self.key, {'summative_assessments': [sa_entry('Maths', 'I', sa1=61)]},
            self.actor(self.maths_teacher)
        )

    def test_admin_locked_once_attendance_exists(self):
        actor = self.actor(self.admin)
        services.save_report_card(
            self.key, {'attendance': [{'month': 'June', 'working_days': 20, 'present_days': 18}]}, actor
        )
        with self.assertRaises(ConflictError):
            services.save_report_card(self.key, {'second_language': 'Telugu'}, actor)

    def test_admin_edits_before_downstream_data(self):
        actor = self.actor(self.admin)
        services.save_report_card(self.key, {'final_overall_grade': 'B1', 'second_language': 'Telugu'}, actor)
        result = services.save_report_card(self.key, {'student_info': {'roll_number': '7'}}, actor)
        self.assertEqual(result.report.roll_number, '7')
        self.assertEqual(result.report.father_name, 'Suresh Kumar')
        self.assertEqual(result.report.overall_grade, 'B1')
        self.assertEqual(result.report.second_language, 'Telugu')

    def test_teacher_cannot_set_final_grade(self):
        with self.assertRaises(ConflictError) as ctx:
            services.save_report_card(self.key, {'final_overall_grade': 'A1'}, self.actor(self.maths_teacher))
        self.assertEqual(ctx.exception.field, 'final_overall_grade')

    def test_student_cannot_save(self):
        with self.assertRaises(ConflictError):
            services.save_report_card(self.key, {}, self.actor(self.student_user))

    def test_marks_above_maximum_rejected(self):
        with self.assertRaises(ReportValidationError) as ctx:
            services.save_report_card(
                self.key, {'summative_assessments': [sa_entry('Maths', 'I', sa1=90)]}, self.actor(self.admin)
            )
        self.assertEqual(ctx.exception.field, 'summative_assessments[0].sa1_marks')
        self.assertFalse(ReportCard.objects.exists())

    def test_invalid_payload_values(self):
        cases = [
            ({'formative_assessments': [fa_entry('Maths', FA1=(11, 0, 0, 0))]}, 'formative_assessments[0].periods.FA1.tool1'),
            ({'formative_assessments': [fa_entry('Maths', FA5=(1, 0, 0, 0))]}, 'formative_assessments[0].periods.FA5.period'),
            ({'summative_assessments': [sa_entry('Maths', 'III', sa1=1)]}, 'summative_assessments[0].paper'),
            ({'summative_assessments': [sa_entry('Maths', 'I', fa_total=201)]}, 'summative_assessments[0].fa_total_200m'),
            ({'attendance': [{'month': 'May', 'working_days': 1}]}, 'attendance[0].month'),
            ({'attendance': [{'month': 'June', 'working_days': 10, 'present_days': 12}]}, 'attendance[0].present_days'),
            ({'second_language': 'French'}, 'second_language'),
            ({'remarks': 'Good'}, 'remarks'),
        ]
        for payload, field in cases:
            with self.subTest(field=field):
                with self.assertRaises(ReportValidationError) as ctx:
                    services.save_report_card(self.key, payload, self.actor(self.admin))
                self.assertEqual(ctx.exception.field, field)

    def test_invalid_key(self):
        with self.assertRaises(ReportValidationError) as ctx:
            services.save_report_card({**self.key, 'academic_year': '2024-2026'}, {}, self.actor(self.admin))
        self.assertEqual(ctx.exception.field, 'academic_year')

        with self.assertRaises(ReportValidationError) as ctx:
            services.save_report_card({'school_id': self.school.pk, 'academic_year': YEAR}, {}, self.actor(self.admin))
        self.assertEqual(ctx.exception.field, 'student_id')

    def test_unknown_student(self):
        with self.assertRaises(NotFoundError) as ctx:
            services.save_report_card({**self.key, 'student_id': 9999}, {}, self.actor(self.admin))
        self.assertEqual(ctx.exception.kind, 'student')

    def test_terms_are_separate_records(self):
        actor = self.actor(self.admin)
        services.save_report_card(self.key, {}, actor)
        services.save_report_card({**self.key, 'term': 'Term 2'}, {}, actor)
        self.assertEqual(ReportCard.objects.count(), 2)


# =============================================================================
# PUBLICATION
# =============================================================================

class PublicationTest(ReportCardTestCase):

    def test_set_published_is_idempotent(self):
        report = services.save_report_card(self.key, {}, self.actor(self.admin)).report
        actor = self.actor(self.admin)

        self.assertTrue(services.set_published(report.pk, True, actor))
        self.assertFalse(services.set_published(report.pk, True, actor))
        self.assertTrue(services.set_published(report.pk, False, actor))

        actions = list(
            ReportCardAuditLog.objects.filter(report_card=report).order_by('created_at').values_list('action', flat=True)
        )
        self.assertEqual(actions, ['CREATE', 'PUBLISH', 'UNPUBLISH'])

    def test_only_admins_publish(self):
        report = services.save_report_card(self.key, {}, self.actor(self.admin)).report
        with self.assertRaises(ConflictError):
            services.set_published(report.pk, True, self.actor(self.maths_teacher))
        report.refresh_from_db()
        self.assertFalse(report.is_published)

    def test_unknown_report(self):
        with self.assertRaises(ReportValidationError):
            services.set_published('not-a-uuid', True, self.actor(self.admin))
        with self.assertRaises(NotFoundError):
            services.set_published('3f1f8a52-4c2e-4a43-9f40-1d3c5b7c2e10', True, self.actor(self.admin))

    @override_settings(REPORTCARDS_BULK_PUBLISH_CHUNK_SIZE=7)
    def test_bulk_publish_skips_students_without_report(self):
        # setUp's student has no report; 29 more, 25 of them with one
        for number in range(2, 31):
            self.add_student(number, with_report=number <= 26)

        result = services.bulk_set_published(self.class_obj.pk, YEAR, True, self.actor(self.admin))

        self.assertEqual(result['changed_count'], 25)
        self.assertEqual(len(result['skipped']), 5)
        self.assertEqual(result['failed'], [])
        self.assertEqual(ReportCard.objects.count(), 25)
        self.assertEqual(ReportCard.objects.filter(is_published=True).count(), 25)

        again = services.bulk_set_published(self.class_obj.pk, YEAR, True, self.actor(self.admin))
        self.assertEqual(again['changed_count'], 0)
        self.assertEqual(again['unchanged_count'], 25)

    def test_bulk_publish_reports_failures(self):
        students = [self.add_student(number, with_report=True) for number in range(2, 5)]
        broken = ReportCard.objects.get(student=students[1])
        flip = services._flip

        def flaky_flip(report_id, desired, actor):
            if report_id == broken.pk:
                raise DatabaseError('disk full')
            return flip(report_id, desired, actor)

        with mock.patch('reportcards.services._flip', side_effect=flaky_flip):
            result = services.bulk_set_published(self.class_obj.pk, YEAR, True, self.actor(self.admin))

        self.assertEqual(result['changed_count'], 2)
        self.assertEqual(len(result['failed']), 1)
        self.assertEqual(result['failed'][0]['student_id'], students[1].pk)
        self.assertIn('disk full', result['failed'][0]['error'])

    def test_bulk_publish_requires_admin(self):
        with self.assertRaises(ConflictError):
            services.bulk_set_published(self.class_obj.pk, YEAR, True, self.actor(self.maths_teacher))

    def test_bulk_publish_unknown_class(self):
        with self.assertRaises(NotFoundError):
            services.bulk_set_published(9999, YEAR, True, self.actor(self.admin))

    def test_class_publication_status(self):
        other = self.add_student(2, with_report=True)
        services.set_published(ReportCard.objects.get(student=other).pk, True, self.actor(self.admin))

        status = {row['student_id']: row for row in services.class_publication_status(self.class_obj.pk, YEAR)}
        self.assertEqual(status[self.student.pk]['has_report'], False)
        self.assertIsNone(status[self.student.pk]['report_id'])
        self.assertEqual(status[other.pk]['has_report'], True)
        self.assertEqual(status[other.pk]['is_published'], True)
        self.assertEqual(status[other.pk]['admission_id'], 'ADM002')


# =============================================================================
# READING
# =============================================================================

class ReportCardReadTest(ReportCardTestCase):

    def setUp(self):
        super().setUp()
        self.report = services.save_report_card(
            self.key, {'summative_assessments': [sa_entry('Maths', 'I', sa1=60, sa2=70, fa_total=160)]},
            self.actor(self.maths_teacher)
        ).report

    def test_teacher_view(self):
        view = services.get_report_card(self.key, self.actor(self.maths_teacher))
        self.assertEqual(view['id'], str(self.report.pk))
        self.assertEqual(view['final_overall_grade'], 'A2')
        self.assertEqual(view['permissions']['editable_subjects'], ['Maths'])
        self.assertFalse(view['permissions']['can_publish'])

    def test_admin_view_after_downstream_data(self):
        view = services.get_report_card(self.key, self.actor(self.admin))
        self.assertTrue(view['has_downstream_data'])
        self.assertEqual(view['permissions']['editable_subjects'], [])
        self.assertFalse(view['permissions']['can_edit_final_grade'])
        self.assertTrue(view['permissions']['can_publish'])

    def test_student_sees_only_own_published_report(self):
        actor = self.actor(self.student_user)
        with self.assertRaises(NotFoundError):
            services.get_report_card(self.key, actor)

        services.set_published(self.report.pk, True, self.actor(self.admin))
        self.assertEqual(services.get_report_card(self.key, actor)['final_overall_grade'], 'A2')

        classmate = User.objects.create_student(email='classmate@school.com', password='x')
        with self.assertRaises(NotFoundError):
            services.get_report_card(self.key, self.actor(classmate))

    def test_view_covers_whole_card(self):
        key = {**self.key, 'term': 'Term 2'}
        services.save_report_card(key, {}, self.actor(self.admin))
        view = services.get_report_card(key, self.actor(self.admin))

        self.assertEqual(
            [e['subject_name'] for e in view['formative_assessments']],
            ['Telugu', 'Hindi', 'English', 'Maths', 'Science', 'Social']
        )
        self.assertEqual(len(view['summative_assessments']), 11)
        self.assertEqual(
            [e['paper'] for e in view['summative_assessments'] if e['subject_name'] == 'Science'],
            ['Physics', 'Biology']
        )
        self.assertEqual(len(view['co_curricular_assessments']), 4)
        self.assertEqual(len(view['attendance']['months']), 11)
        self.assertFalse(view['has_downstream_data'])
        self.assertIn('Science', view['permissions']['editable_subjects'])

    def test_published_only(self):
        with self.assertRaises(NotFoundError):
            services.get_report_card(self.key, self.actor(self.admin), published_only=True)

    def test_missing_report(self):
        with self.assertRaises(NotFoundError):
            services.get_report_card({**self.key, 'term': 'Term 2'}, self.actor(self.admin))


class InitialPayloadTest(ReportCardTestCase):

    def mark(self, subject, name, marks, max_marks):
        AssessmentMark.objects.create(
            student=self.student, class_assigned=self.class_obj, subject=self.subjects[subject],
            assessment_name=name, academic_year=YEAR, marks_obtained=marks, max_marks=max_marks
        )

    def test_prefills_from_marks(self):
        self.mark('Maths', 'FA1-Tool1', 9, 10)
        self.mark('Maths', 'FA1-Tool4', 17, 20)
        self.mark('Maths', 'SA1-Paper2', 64, 80)
        self.mark('Physics', 'FA2-Tool2', 8, 10)
        self.mark('Biology', 'FA2-Tool2', 5, 10)
        self.mark('Biology', 'FA2-Tool3', 6, 10)
        self.mark('Physics', 'SA1-Paper1', 58, 80)

        payload = services.build_initial_payload(self.student, self.class_obj, YEAR)

        subjects = [entry['subject_name'] for entry in payload['formative_assessments']]
        self.assertEqual(subjects, ['Telugu', 'Hindi', 'English', 'Maths', 'Science', 'Social'])

        maths = payload['formative_assessments'][3]
        self.assertEqual(maths['periods']['FA1'], {'tool1': 9, 'tool2': None, 'tool3': None, 'tool4': 17})

        # Physics and Biology marks meet in the Science record, averaged half up
        science = payload['formative_assessments'][4]
        self.assertEqual(science['subject_name'], 'Science')
        self.assertEqual(science['periods']['FA2'], {'tool1': None, 'tool2': 7, 'tool3': 6, 'tool4': None})
        self.assertEqual(science['periods']['FA1'], {'tool1': None, 'tool2': None, 'tool3': None, 'tool4': None})

        rows = {(e['subject_name'], e['paper']): e for e in payload['summative_assessments']}
        self.assertEqual(rows[('Maths', 'II')]['sa1']['marks'], 64)
        self.assertIsNone(rows[('Maths', 'I')]['sa1']['marks'])
        self.assertEqual(rows[('Maths', 'I')]['fa_total_200m'], 26)
        self.assertEqual(rows[('Science', 'Physics')]['sa1']['marks'], 58)
        self.assertEqual(rows[('Science', 'Physics')]['fa_total_200m'], 13)
        self.assertEqual(rows[('Science', 'Biology')]['fa_total_200m'], 13)
        self.assertIsNone(rows[('Science', 'Biology')]['sa1']['marks'])
        self.assertIsNone(rows[('Telugu', 'I')]['fa_total_200m'])

        self.assertEqual(payload['second_language'], 'Hindi')
        self.assertEqual(len(payload['attendance']), 11)
        self.assertEqual(payload['student_info']['student_name'], 'Ravi Kumar')

    def test_payload_saves_cleanly(self):
        self.mark('Maths', 'FA1-Tool1', 9, 10)
        payload = services.build_initial_payload(self.student, self.class_obj, YEAR)
        result = services.save_report_card(self.key, payload, self.actor(self.admin))
        self.assertTrue(result.created)
        self.assertEqual(result.report.co_curricular_assessments.count(), 0)
        self.assertEqual(result.report.formative_assessments.get(subject_name='Maths', period='FA1').total, 9)

        view = services.get_report_card(self.key, self.actor(self.admin))
        self.assertEqual(len(view['formative_assessments']), 6)
        self.assertEqual(len(view['summative_assessments']), 11)
        self.assertEqual(len(view['attendance']['months']), 11)
        self.assertEqual(view['formative_assessments'][3]['periods']['FA1']['tool1'], 9)


# =============================================================================
# VIEWS
# =============================================================================

class ReportCardViewTest(ReportCardTestCase):

    def post_json(self, url, body):
        return self.client.post(url, data=json.dumps(body), content_type='application/json')

    def test_save_and_detail(self):
        self.client.force_login(self.maths_teacher)
        body = {'key': self.key, 'payload': {'summative_assessments': [sa_entry('Maths', 'I', sa1=60, sa2=70, fa_total=160)]}}

        response = self.post_json(reverse('reportcards:save'), body)
        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data['report']['final_overall_grade'], 'A2')

        response = self.post_json(reverse('reportcards:save'), body)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['changes'], [])

        response = self.client.get(reverse('reportcards:detail', args=[data['id']]))
        self.assertEqual(response.status_code, 200)
        rows = {(e['subject_name'], e['paper']): e for e in response.json()['summative_assessments']}
        self.assertEqual(rows[('Maths', 'I')]['final_total_100m'], 86)
        self.assertIsNone(rows[('Maths', 'II')]['final_total_100m'])

    def test_save_errors(self):
        self.client.force_login(self.maths_teacher)
        response = self.post_json(reverse('reportcards:save'), {
            'key': self.key, 'payload': {'summative_assessments': [sa_entry('English', 'I', sa1=10)]}
        })
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()['error'], 'ConflictError')
        self.assertEqual(response.json()['subject'], 'English')

        response = self.post_json(reverse('reportcards:save'), {
            'key': self.key, 'payload': {'summative_assessments': [sa_entry('Maths', 'I', sa1=81)]}
        })
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['field'], 'summative_assessments[0].sa1_marks')

        response = self.client.post(reverse('reportcards:save'), data='{', content_type='application/json')
        self.assertEqual(response.status_code, 400)

    def test_student_cannot_save(self):
        self.client.force_login(self.student_user)
        response = self.post_json(reverse('reportcards:save'), {'key': self.key, 'payload': {}})
        self.assertEqual(response.status_code, 403)

    def test_login_required(self):
        response = self.client.get(reverse('reportcards:lookup'), self.key)
        self.assertEqual(response.status_code, 302)

    def test_student_lookup(self):
        report = services.save_report_card(self.key, {}, self.actor(self.admin)).report
        self.client.force_login(self.student_user)

        response = self.client.get(reverse('reportcards:lookup'), self.key)
        self.assertEqual(response.status_code, 404)

        services.set_published(report.pk, True, self.actor(self.admin))
        response = self.client.get(reverse('reportcards:lookup'), self.key)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['student_info']['student_name'], 'Ravi Kumar')

    def test_publish(self):
        report = services.save_report_card(self.key, {}, self.actor(self.admin)).report
        url = reverse('reportcards:publish', args=[report.pk])

        self.client.force_login(self.maths_teacher)
        self.assertEqual(self.post_json(url, {'published': True}).status_code, 403)

        self.client.force_login(self.admin)
        self.assertEqual(self.post_json(url, {'published': 'yes'}).status_code, 400)
        response = self.post_json(url, {'published': True})
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()['changed'])
        self.assertFalse(self.post_json(url, {'published': True}).json()['changed'])

        response = self.client.get(reverse('reportcards:audit', args=[report.pk]))
        self.assertEqual([log['action'] for log in response.json()['logs']], ['PUBLISH', 'CREATE'])

    def test_class_status_and_bulk_publish(self):
        self.add_student(2, with_report=True)
        self.client.force_login(self.admin)

        response = self.post_json(
            reverse('reportcards:class_bulk_publish', args=[self.class_obj.pk]),
            {'academic_year': YEAR, 'published': True}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['changed_count'], 1)
        self.assertEqual(len(response.json()['skipped']), 1)

        response = self.client.get(
            reverse('reportcards:class_status', args=[self.class_obj.pk]), {'academic_year': YEAR}
        )
        published = [row['is_published'] for row in response.json()['students']]
        self.assertEqual(sorted(published), [False, True])

        response = self.client.get(
            reverse('reportcards:class_status', args=[self.class_obj.pk]), {'academic_year': '2024'}
        )
        self.assertEqual(response.status_code, 400)

    def test_initial_payload(self):
        self.client.force_login(self.maths_teacher)
        response = self.client.get(
            reverse('reportcards:initial_payload', args=[self.class_obj.pk, self.student.pk]),
            {'academic_year': YEAR}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['key']['school_id'], self.school.pk)
        self.assertEqual(len(response.json()['payload']['summative_assessments']), 11)

    def test_export(self):
        services.save_report_card(
            self.key, {'summative_assessments': [sa_entry('Maths', 'I', sa1=60, sa2=70, fa_total=160)]},
            self.actor(self.maths_teacher)
        )
        self.client.force_login(self.admin)
        response = self.client.get(
            reverse('reportcards:class_export', args=[self.class_obj.pk]), {'academic_year': YEAR}
        )
        self.assertEqual(response.status_code, 200)
        self.assertIn('report_cards_X_A_2024-2025.xlsx', response['Content-Disposition'])

        wb = openpyxl.load_workbook(io.BytesIO(response.content))
        results = wb['Results']
        self.assertEqual(results.cell(row=1, column=3).value, 'Subject')
        rows = {
            (row[2], row[3]): row for row in results.iter_rows(min_row=2, values_only=True)
        }
        self.assertEqual(len(rows), 11)
        self.assertEqual(rows[('Maths', 'I')][1], 'Ravi Kumar')
        self.assertEqual(rows[('Maths', 'I')][11], 86)
        self.assertEqual(rows[('Maths', 'I')][12], 'A2')
        self.assertIsNone(rows[('Science', 'Biology')][11])
        self.assertEqual(wb['Summary'].cell(row=2, column=3).value, 'A2')


# =============================================================================
# MANAGEMENT COMMAND
# =============================================================================

class RecalculateCommandTest(ReportCardTestCase):

    def test_check_and_fix(self):
        services.save_report_card(
            self.key, {'summative_assessments': [sa_entry('Maths', 'I', sa1=60, sa2=70, fa_total=160)]},
            self.actor(self.maths_teacher)
        )
        out = io.StringIO()
        call_command('recalculate_report_cards', '--check', stdout=out)

        SummativeAssessment.objects.update(final_grade='D2', final_total_100m=0)
        with self.assertRaises(CommandError):
            call_command('recalculate_report_cards', '--check', stdout=out)

        call_command('recalculate_report_cards', '--academic-year', YEAR, stdout=out)
        row = SummativeAssessment.objects.get()
        self.assertEqual(row.final_total_100m, 86)
        self.assertEqual(row.final_grade, 'A2')
        call_command('recalculate_report_cards', '--check', stdout=out)

    def test_invalid_academic_year(self):
        with self.assertRaises(CommandError):
            call_command('recalculate_report_cards', '--academic-year', '2024', stdout=io.StringIO())
