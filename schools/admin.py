from django.contrib import admin

from unfold.admin import ModelAdmin

from .models import School


@admin.register(School)
class SchoolAdmin(ModelAdmin):
    list_display = ('name', 'short_name', 'udise_code', 'city', 'created_on')
    search_fields = ('name', 'short_name', 'udise_code')
