"""
Django Admin Configuration for authentication
"""
from django.contrib import admin

from .models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    """
    Admin interface for portal users
    """
    list_display = ['email', 'name', 'role', 'is_active', 'require_password_change', 'date_joined']
    list_filter = ['role', 'is_active', 'is_staff']
    search_fields = ['email', 'name']
    ordering = ['-date_joined']
    readonly_fields = ['password', 'date_joined', 'last_login']
    exclude = ['groups', 'user_permissions']

    fieldsets = (
        ('Account', {
            'fields': ('email', 'password', 'name', 'role', 'require_password_change')
        }),
        ('Permissions', {
            'fields': ('is_active', 'is_staff', 'is_superuser')
        }),
        ('Dates', {
            'fields': ('last_login', 'date_joined')
        }),
    )
