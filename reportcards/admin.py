from django.contrib import admin

from unfold.admin import ModelAdmin, TabularInline

from .models import (
    ReportCard, FormativeAssessment, SummativeAssessment, CoCurricularAssessment,
    AttendanceMonth, ReportCardAuditLog,
)


class FormativeAssessmentInline(TabularInline):
    model = FormativeAssessment
    extra = 0
    fields = ('subject_name', 'period', 'tool1', 'tool2', 'tool3', 'tool4', 'total', 'grade')
    readonly_fields = ('total', 'grade')


class SummativeAssessmentInline(TabularInline):
    model = SummativeAssessment
    extra = 0
    fields = (
        'subject_name', 'paper', 'sa1_marks', 'sa1_max_marks', 'sa2_marks', 'sa2_max_marks',
        'fa_total_200m', 'internal_marks_20m', 'final_total_100m', 'final_grade',
    )
    readonly_fields = ('internal_marks_20m', 'final_total_100m', 'final_grade')


class CoCurricularAssessmentInline(TabularInline):
    model = CoCurricularAssessment
    extra = 0
    fields = ('subject_name', 'sa1_marks', 'sa2_marks', 'sa3_marks', 'percentage', 'grade')
    readonly_fields = ('percentage', 'grade')


class AttendanceMonthInline(TabularInline):
    model = AttendanceMonth
    extra = 0
    fields = ('month', 'working_days', 'present_days')


@admin.register(ReportCard)
class ReportCardAdmin(ModelAdmin):
    """
    Report cards are read-only here; marks change through the report card
    endpoints so the editing rules and audit log apply.
    """
    list_display = (
        'student_name', 'admission_number', 'class_name', 'section', 'academic_year',
        'overall_grade', 'is_published', 'updated_at',
    )
    list_filter = ('academic_year', 'is_published', 'template_key', 'school')
    search_fields = ('student_name', 'admission_number', 'student_id_number')
    inlines = [
        FormativeAssessmentInline, SummativeAssessmentInline,
        CoCurricularAssessmentInline, AttendanceMonthInline,
    ]

    def has_change_permission(self, request, obj=None):
        return False

    def has_add_permission(self, request):
        return False


@admin.register(ReportCardAuditLog)
class ReportCardAuditLogAdmin(ModelAdmin):
    list_display = ('report_card', 'action', 'user', 'created_at')
    list_filter = ('action',)
    readonly_fields = ('report_card', 'user', 'action', 'changes', 'created_at')

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
