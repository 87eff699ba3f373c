import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("schools", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Subject",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(help_text="e.g., Telugu, English, Maths, Science, Physics", max_length=100, unique=True)),
                ("short_name", models.CharField(blank=True, help_text="e.g., TEL, ENG, MAT", max_length=20)),
                ("code", models.CharField(blank=True, help_text="Optional subject code", max_length=20)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Subject",
                "verbose_name_plural": "Subjects",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Class",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(help_text="e.g., IX, X", max_length=20)),
                ("section", models.CharField(blank=True, help_text="A, B, C, etc.", max_length=5)),
                ("academic_year", models.CharField(help_text="e.g., 2024-2025", max_length=9)),
                ("medium", models.CharField(default="English", help_text="Medium of instruction", max_length=30)),
                ("second_language", models.CharField(
                    blank=True,
                    choices=[("Hindi", "Hindi"), ("Telugu", "Telugu")],
                    help_text="Subject graded on the second-language scales",
                    max_length=10,
                )),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("class_teacher", models.ForeignKey(
                    blank=True,
                    help_text="The class teacher responsible for this class.",
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="assigned_classes",
                    to=settings.AUTH_USER_MODEL,
                )),
                ("school", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="classes",
                    to="schools.school",
                )),
            ],
            options={
                "verbose_name": "Class",
                "verbose_name_plural": "Classes",
                "ordering": ["academic_year", "name", "section"],
                "unique_together": {("school", "name", "section", "academic_year")},
            },
        ),
        migrations.CreateModel(
            name="ClassSubject",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("order", models.PositiveSmallIntegerField(
                    default=0,
                    help_text="Display order on the report card (lower numbers appear first)",
                )),
                ("class_assigned", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="subjects",
                    to="academics.class",
                )),
                ("subject", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="class_allocations",
                    to="academics.subject",
                )),
                ("teacher", models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="subject_assignments",
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                "verbose_name": "Subject Allocation",
                "verbose_name_plural": "Subject Allocations",
                "ordering": ["class_assigned", "order", "subject__name"],
                "unique_together": {("class_assigned", "subject")},
            },
        ),
    ]
