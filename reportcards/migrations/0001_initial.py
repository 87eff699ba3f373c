import uuid

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

import reportcards.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("academics", "0002_assessmentmark"),
        ("schools", "0001_initial"),
        ("students", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ReportCard",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("academic_year", models.CharField(help_text="e.g., 2024-2025", max_length=9)),
                ("template_key", models.CharField(
                    choices=[("cbse_state", "CBSE State Pattern")], default="cbse_state", max_length=30,
                )),
                ("term", models.CharField(blank=True, default="", max_length=20)),
                ("school_heading", models.CharField(blank=True, help_text="UDISE code and school name", max_length=200)),
                ("student_name", models.CharField(blank=True, max_length=200)),
                ("father_name", models.CharField(blank=True, max_length=200)),
                ("mother_name", models.CharField(blank=True, max_length=200)),
                ("class_name", models.CharField(blank=True, max_length=20)),
                ("section", models.CharField(blank=True, max_length=5)),
                ("student_id_number", models.CharField(blank=True, max_length=50)),
                ("roll_number", models.CharField(blank=True, max_length=20)),
                ("admission_number", models.CharField(blank=True, max_length=50)),
                ("exam_number", models.CharField(blank=True, max_length=50)),
                ("date_of_birth", models.DateField(blank=True, null=True)),
                ("medium", models.CharField(blank=True, max_length=30)),
                ("second_language", models.CharField(
                    blank=True, choices=[("Hindi", "Hindi"), ("Telugu", "Telugu")], max_length=10,
                )),
                ("final_overall_grade", models.CharField(
                    blank=True,
                    help_text="Manually entered overall grade; overrides the computed grade when set",
                    max_length=5,
                )),
                ("computed_overall_grade", models.CharField(
                    blank=True,
                    help_text="Most frequent final grade across subject papers, stored at last save",
                    max_length=5,
                )),
                ("is_published", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("class_assigned", models.ForeignKey(
                    blank=True,
                    help_text="Class whose subject list this report card follows",
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="report_cards",
                    to="academics.class",
                )),
                ("generated_by", models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="generated_report_cards",
                    to=settings.AUTH_USER_MODEL,
                )),
                ("school", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="report_cards",
                    to="schools.school",
                )),
                ("student", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="report_cards",
                    to="students.student",
                )),
            ],
            options={
                "verbose_name": "Report Card",
                "verbose_name_plural": "Report Cards",
                "db_table": "report_card",
                "ordering": ["academic_year", "student_name"],
                "unique_together": {("student", "school", "academic_year", "template_key", "term")},
                "indexes": [
                    models.Index(fields=["class_assigned", "academic_year"], name="report_card_class_year_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="FormativeAssessment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("subject_name", models.CharField(max_length=100)),
                ("position", models.PositiveSmallIntegerField(default=0, help_text="Subject order on the card")),
                ("period", models.CharField(
                    choices=[("FA1", "FA1"), ("FA2", "FA2"), ("FA3", "FA3"), ("FA4", "FA4")], max_length=3,
                )),
                ("tool1", models.PositiveSmallIntegerField(
                    blank=True, null=True, validators=[django.core.validators.MaxValueValidator(10)],
                )),
                ("tool2", models.PositiveSmallIntegerField(
                    blank=True, null=True, validators=[django.core.validators.MaxValueValidator(10)],
                )),
                ("tool3", models.PositiveSmallIntegerField(
                    blank=True, null=True, validators=[django.core.validators.MaxValueValidator(10)],
                )),
                ("tool4", models.PositiveSmallIntegerField(
                    blank=True, null=True, validators=[django.core.validators.MaxValueValidator(20)],
                )),
                ("total", models.PositiveSmallIntegerField(default=0)),
                ("grade", models.CharField(blank=True, max_length=2)),
                ("report_card", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="formative_assessments",
                    to="reportcards.reportcard",
                )),
            ],
            options={
                "db_table": "report_card_formative",
                "ordering": ["report_card", "position", "period"],
                "unique_together": {("report_card", "subject_name", "period")},
            },
        ),
        migrations.CreateModel(
            name="SummativeAssessment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("subject_name", models.CharField(max_length=100)),
                ("paper", models.CharField(help_text="I, II, Physics, Biology", max_length=20)),
                ("position", models.PositiveSmallIntegerField(default=0)),
                ("sa1_marks", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("sa1_max_marks", models.PositiveSmallIntegerField(
                    default=reportcards.models._default_sa_max_marks,
                    validators=[django.core.validators.MinValueValidator(1)],
                )),
                ("sa2_marks", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("sa2_max_marks", models.PositiveSmallIntegerField(
                    default=reportcards.models._default_sa_max_marks,
                    validators=[django.core.validators.MinValueValidator(1)],
                )),
                ("fa_total_200m", models.PositiveSmallIntegerField(
                    blank=True,
                    help_text="Combined formative total carried onto the summative side",
                    null=True,
                    validators=[django.core.validators.MaxValueValidator(200)],
                )),
                ("sa1_grade", models.CharField(blank=True, max_length=2)),
                ("sa2_grade", models.CharField(blank=True, max_length=2)),
                ("fa_average_plus_sa1_100m", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("internal_marks_20m", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("final_total_100m", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("final_grade", models.CharField(blank=True, max_length=2)),
                ("report_card", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="summative_assessments",
                    to="reportcards.reportcard",
                )),
            ],
            options={
                "db_table": "report_card_summative",
                "ordering": ["report_card", "position"],
                "unique_together": {("report_card", "subject_name", "paper")},
            },
        ),
        migrations.CreateModel(
            name="CoCurricularAssessment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("subject_name", models.CharField(max_length=50)),
                ("position", models.PositiveSmallIntegerField(default=0)),
                ("sa1_marks", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("sa1_max_marks", models.PositiveSmallIntegerField(
                    default=reportcards.models._default_co_curricular_max_marks,
                )),
                ("sa2_marks", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("sa2_max_marks", models.PositiveSmallIntegerField(
                    default=reportcards.models._default_co_curricular_max_marks,
                )),
                ("sa3_marks", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("sa3_max_marks", models.PositiveSmallIntegerField(
                    default=reportcards.models._default_co_curricular_max_marks,
                )),
                ("percentage", models.PositiveSmallIntegerField(default=0)),
                ("grade", models.CharField(blank=True, max_length=2)),
                ("report_card", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="co_curricular_assessments",
                    to="reportcards.reportcard",
                )),
            ],
            options={
                "db_table": "report_card_co_curricular",
                "ordering": ["report_card", "position"],
                "unique_together": {("report_card", "subject_name")},
            },
        ),
        migrations.CreateModel(
            name="AttendanceMonth",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("month", models.CharField(
                    choices=[
                        ("June", "June"), ("July", "July"), ("August", "August"),
                        ("September", "September"), ("October", "October"), ("November", "November"),
                        ("December", "December"), ("January", "January"), ("February", "February"),
                        ("March", "March"), ("April", "April"),
                    ],
                    max_length=10,
                )),
                ("position", models.PositiveSmallIntegerField(default=0)),
                ("working_days", models.PositiveSmallIntegerField(
                    blank=True, null=True, validators=[django.core.validators.MaxValueValidator(31)],
                )),
                ("present_days", models.PositiveSmallIntegerField(
                    blank=True, null=True, validators=[django.core.validators.MaxValueValidator(31)],
                )),
                ("report_card", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="attendance_months",
                    to="reportcards.reportcard",
                )),
            ],
            options={
                "db_table": "report_card_attendance",
                "ordering": ["report_card", "position"],
                "unique_together": {("report_card", "month")},
            },
        ),
        migrations.CreateModel(
            name="ReportCardAuditLog",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("action", models.CharField(
                    choices=[
                        ("CREATE", "Created"), ("UPDATE", "Updated"),
                        ("PUBLISH", "Published"), ("UNPUBLISH", "Unpublished"),
                    ],
                    max_length=10,
                )),
                ("changes", models.JSONField(blank=True, default=dict, help_text="Sections and rows touched")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("report_card", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="audit_logs",
                    to="reportcards.reportcard",
                )),
                ("user", models.ForeignKey(
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="report_card_audit_logs",
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                "verbose_name": "Report Card Audit Log",
                "verbose_name_plural": "Report Card Audit Logs",
                "db_table": "report_card_audit_log",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["report_card", "created_at"], name="report_card_audit_idx"),
                ],
            },
        ),
    ]
