from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.translation import gettext_lazy as _

from unfold.admin import ModelAdmin, TabularInline
from unfold.forms import AdminPasswordChangeForm, UserChangeForm, UserCreationForm

from academics.models import ClassSubject

from .models import User


class SubjectAssignmentInline(TabularInline):
    """Subjects a teacher marks; these decide which report card rows they may edit."""
    model = ClassSubject
    fk_name = 'teacher'
    fields = ('class_assigned', 'subject', 'order')
    extra = 0
    verbose_name = 'Subject assignment'
    verbose_name_plural = 'Subject assignments'


@admin.register(User)
class UserAdmin(BaseUserAdmin, ModelAdmin):
    form = UserChangeForm
    add_form = UserCreationForm
    change_password_form = AdminPasswordChangeForm

    list_display = ('email', 'first_name', 'last_name', 'role_display', 'is_active', 'last_login')
    list_filter = ('is_school_admin', 'is_teacher', 'is_student', 'is_active')
    search_fields = ('email', 'first_name', 'last_name')
    ordering = ('email',)
    inlines = [SubjectAssignmentInline]

    fieldsets = (
        (None, {'fields': ('email', 'password', 'first_name', 'last_name')}),
        (_('Report card role'), {
            'fields': ('is_school_admin', 'is_teacher', 'is_student'),
            'description': 'Admins publish and fill in general details, teachers enter marks '
                           'for their subjects, students read their own published card.',
        }),
        (_('Access'), {
            'classes': ('collapse',),
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
        }),
        (_('Important dates'), {'fields': ('last_login', 'date_joined')}),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'password1', 'password2', 'is_school_admin', 'is_teacher', 'is_student'),
        }),
    )

    readonly_fields = ('date_joined', 'last_login')

    @admin.display(description='Role')
    def role_display(self, obj):
        return obj.role_label
