from django.contrib import admin

from unfold.admin import ModelAdmin

from .models import Student


@admin.register(Student)
class StudentAdmin(ModelAdmin):
    list_display = ('admission_number', 'full_name', 'current_class', 'roll_number', 'status', 'is_active')
    list_filter = ('status', 'is_active', 'current_class')
    search_fields = ('first_name', 'last_name', 'admission_number', 'student_id_number')
