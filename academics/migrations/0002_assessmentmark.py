import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("academics", "0001_initial"),
        ("students", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="AssessmentMark",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("assessment_name", models.CharField(max_length=20)),
                ("academic_year", models.CharField(max_length=9)),
                ("marks_obtained", models.PositiveSmallIntegerField()),
                ("max_marks", models.PositiveSmallIntegerField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("class_assigned", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="assessment_marks",
                    to="academics.class",
                )),
                ("marked_by", models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="recorded_marks",
                    to=settings.AUTH_USER_MODEL,
                )),
                ("student", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="assessment_marks",
                    to="students.student",
                )),
                ("subject", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="assessment_marks",
                    to="academics.subject",
                )),
            ],
            options={
                "ordering": ["student", "subject", "assessment_name"],
                "unique_together": {("student", "class_assigned", "subject", "assessment_name", "academic_year")},
                "indexes": [
                    models.Index(fields=["student", "class_assigned", "academic_year"], name="assessment_mark_lookup_idx"),
                ],
            },
        ),
    ]
