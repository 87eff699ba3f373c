"""
Management command to recompute stored report card grades and totals.
Usage: python manage.py recalculate_report_cards [--academic-year 2024-2025] [--class 12] [--check]
"""
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from reportcards.forms import is_academic_year
from reportcards.models import ReportCard
from reportcards.services import recalculate


class Command(BaseCommand):
    help = 'Recompute derived totals and grades of report cards from their raw marks'

    def add_arguments(self, parser):
        parser.add_argument(
            '--academic-year',
            type=str,
            help='Only report cards of this academic year (e.g. 2024-2025)',
        )
        parser.add_argument(
            '--class',
            type=int,
            dest='class_id',
            help='Only report cards of this class',
        )
        parser.add_argument(
            '--check',
            action='store_true',
            help='Report stale values without writing; exits with an error if any are found',
        )

    def handle(self, *args, **options):
        academic_year = options.get('academic_year')
        class_id = options.get('class_id')
        check = options.get('check', False)

        reports = ReportCard.objects.prefetch_related(
            'formative_assessments', 'summative_assessments', 'co_curricular_assessments',
            'attendance_months',
        ).order_by('academic_year', 'student_name')
        if academic_year:
            if not is_academic_year(academic_year):
                raise CommandError(f"Invalid academic year '{academic_year}'")
            reports = reports.filter(academic_year=academic_year)
        if class_id:
            reports = reports.filter(class_assigned_id=class_id)

        stale_count = 0
        for report in reports:
            with transaction.atomic():
                drift = recalculate(report, commit=not check)
            if drift:
                stale_count += 1
                self.stdout.write(f"  {report}: {', '.join(drift)}")

        if check and stale_count:
            raise CommandError(f"{stale_count} report card(s) have stale derived values")

        verb = 'have stale values' if check else 'updated'
        self.stdout.write(self.style.SUCCESS(f"{stale_count} report card(s) {verb}"))
