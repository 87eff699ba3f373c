from django.test import TestCase
from django.contrib.auth import get_user_model

from .models import Role

User = get_user_model()


class UserManagerTests(TestCase):
    """Tests for the role helpers of the UserManager."""

    def test_email_is_normalised(self):
        user = User.objects.create_user(email='Head@SCHOOL.com', password='x')
        self.assertEqual(user.email, 'Head@school.com')
        self.assertTrue(user.check_password('x'))

    def test_email_required(self):
        with self.assertRaises(ValueError):
            User.objects.create_user(email='', password='x')

    def test_superuser_needs_staff_flag(self):
        with self.assertRaises(ValueError):
            User.objects.create_superuser(email='root@school.com', password='x', is_staff=False)

    def test_role_helpers_set_one_flag(self):
        cases = [
            (User.objects.create_school_admin, 'is_school_admin'),
            (User.objects.create_teacher, 'is_teacher'),
            (User.objects.create_student, 'is_student'),
        ]
        for index, (create, flag) in enumerate(cases):
            user = create(email=f'user{index}@school.com', password='x')
            with self.subTest(flag=flag):
                flags = {name: getattr(user, name) for name in ('is_school_admin', 'is_teacher', 'is_student')}
                self.assertEqual([name for name, value in flags.items() if value], [flag])
                self.assertFalse(user.is_staff)


class UserRoleTests(TestCase):
    """Tests for the report card role of a user."""

    def test_school_admin(self):
        user = User.objects.create_school_admin(email='head@school.com', password='x')
        self.assertEqual(user.role, Role.ADMIN)
        self.assertEqual(user.role_label, 'School Admin')

    def test_superuser_acts_as_admin(self):
        user = User.objects.create_superuser(email='root@school.com', password='x')
        self.assertEqual(user.role, Role.ADMIN)
        self.assertEqual(user.role_label, 'Super Admin')

    def test_admin_flag_wins_over_teacher(self):
        user = User.objects.create_teacher(email='head@school.com', password='x', is_school_admin=True)
        self.assertEqual(user.role, Role.ADMIN)

    def test_teacher(self):
        user = User.objects.create_teacher(email='t@school.com', password='x')
        self.assertEqual(user.role, Role.TEACHER)

    def test_student(self):
        user = User.objects.create_student(email='s@school.com', password='x')
        self.assertEqual(user.role, Role.STUDENT)
        self.assertEqual(user.role_label, 'Student')

    def test_no_role(self):
        user = User.objects.create_user(email='u@school.com', password='x')
        self.assertIsNone(user.role)
        self.assertEqual(user.role_label, 'User')
