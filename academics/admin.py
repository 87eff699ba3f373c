from django.contrib import admin

from unfold.admin import ModelAdmin, TabularInline

from .models import Class, Subject, ClassSubject, AssessmentMark


class ClassSubjectInline(TabularInline):
    model = ClassSubject
    extra = 0
    fields = ('subject', 'teacher', 'order')


@admin.register(Class)
class ClassAdmin(ModelAdmin):
    list_display = ('name', 'section', 'academic_year', 'school', 'second_language', 'class_teacher', 'is_active')
    list_filter = ('academic_year', 'school', 'is_active')
    search_fields = ('name', 'section')
    inlines = [ClassSubjectInline]


@admin.register(Subject)
class SubjectAdmin(ModelAdmin):
    list_display = ('name', 'short_name', 'code', 'is_active')
    search_fields = ('name', 'short_name', 'code')


@admin.register(AssessmentMark)
class AssessmentMarkAdmin(ModelAdmin):
    list_display = ('student', 'subject', 'assessment_name', 'marks_obtained', 'max_marks', 'academic_year')
    list_filter = ('academic_year', 'subject', 'class_assigned')
    search_fields = ('student__first_name', 'student__last_name', 'student__admission_number', 'assessment_name')
