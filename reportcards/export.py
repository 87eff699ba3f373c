"""
Excel export of a class's report card results.
"""
import logging

import openpyxl
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side
from openpyxl.utils import get_column_letter

from . import config
from .calculations import build_report_view
from .models import ReportCard
from .providers import get_class_subjects

logger = logging.getLogger(__name__)

RESULT_HEADERS = [
    "Admission No", "Student Name", "Subject", "Paper",
    "SA1", "SA1 Grade", "SA2", "SA2 Grade", "FA Total (200)",
    "FA Avg + SA1 (100)", "Internal (20)", "Final (100)", "Final Grade",
]
SUMMARY_HEADERS = [
    "Admission No", "Student Name", "Overall Grade", "Working Days",
    "Present Days", "Attendance %", "Published",
]


def _style_header(ws, headers):
    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(start_color=config.EXCEL_HEADER_COLOR, end_color=config.EXCEL_HEADER_COLOR, fill_type="solid")
    thin_border = Border(
        left=Side(style='thin'),
        right=Side(style='thin'),
        top=Side(style='thin'),
        bottom=Side(style='thin')
    )
    for col, header in enumerate(headers, 1):
        cell = ws.cell(row=1, column=col, value=header)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal='center', wrap_text=True)
        cell.border = thin_border

    ws.column_dimensions['A'].width = 15
    ws.column_dimensions['B'].width = 28
    for col in range(3, len(headers) + 1):
        ws.column_dimensions[get_column_letter(col)].width = 14
    ws.freeze_panes = 'C2'


def build_class_results_workbook(class_obj, academic_year, template_key=None, term=''):
    """
    One row per student per subject paper on the "Results" sheet, and one
    row per student on the "Summary" sheet. Students without a report card
    are left out.
    """
    reports = ReportCard.objects.filter(
        class_assigned=class_obj,
        academic_year=academic_year,
        template_key=template_key or config.DEFAULT_TEMPLATE_KEY,
        term=term,
    ).prefetch_related(
        'formative_assessments', 'summative_assessments',
        'co_curricular_assessments', 'attendance_months',
    ).order_by('student_name')

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Results"
    _style_header(ws, RESULT_HEADERS)

    summary_ws = wb.create_sheet("Summary")
    _style_header(summary_ws, SUMMARY_HEADERS)

    subject_names = [s['subject_name'] for s in get_class_subjects(class_obj)]
    row = 2
    summary_row = 2
    for report in reports:
        view = build_report_view(report.to_snapshot(subject_names))
        for entry in view['summative_assessments']:
            values = [
                report.admission_number, report.student_name,
                entry['subject_name'], entry['paper'],
                entry['sa1']['marks'], entry['sa1']['grade'],
                entry['sa2']['marks'], entry['sa2']['grade'],
                entry['fa_total_200m'], entry['fa_average_plus_sa1_100m'],
                entry['internal_marks_20m'], entry['final_total_100m'],
                entry['final_grade'],
            ]
            for col, value in enumerate(values, 1):
                cell = ws.cell(row=row, column=col, value=value)
                if col > 2:
                    cell.alignment = Alignment(horizontal='center')
            row += 1

        attendance = view['attendance']
        summary_values = [
            report.admission_number, report.student_name, view['final_overall_grade'],
            attendance['total_working_days'], attendance['total_present_days'],
            attendance['attendance_percentage'], 'Yes' if report.is_published else 'No',
        ]
        for col, value in enumerate(summary_values, 1):
            summary_ws.cell(row=summary_row, column=col, value=value)
        summary_row += 1

    logger.info(f"Exported {summary_row - 2} report card(s) for class {class_obj.pk} {academic_year}")
    return wb
