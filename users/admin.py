from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from .models import CustomUser


@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin):
    # Columns to show in the list view
    list_display = ('username', 'email', 'first_name', 'last_name', 'role', 'agent_code', 'is_active')
    list_filter = ('role', 'is_active', 'is_superuser')
    search_fields = ('username', 'email', 'first_name', 'last_name', 'agent_code')
    fieldsets = UserAdmin.fieldsets + (
        ('Agency', {'fields': ('role', 'department', 'agent_code', 'phone')}),
    )
    add_fieldsets = UserAdmin.add_fieldsets + (
        ('Agency', {'fields': ('role', 'department', 'agent_code', 'phone')}),
    )
