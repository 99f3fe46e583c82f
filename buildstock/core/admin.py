from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import Company, User, CompanySettings, AuditLog


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    list_display = ['name', 'created_at']
    search_fields = ['name']


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['username', 'email', 'name', 'company', 'type', 'is_active', 'date_joined']
    list_filter = ['type', 'is_active', 'company']
    search_fields = ['username', 'email', 'name']
    ordering = ['username']
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Company', {'fields': ('company', 'name', 'type', 'phone')}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ('Company', {'fields': ('company', 'name', 'type', 'phone')}),
    )


@admin.register(CompanySettings)
class CompanySettingsAdmin(admin.ModelAdmin):
    list_display = ['company', 'shipping_company', 'billing_company', 'updated_at']
    readonly_fields = ['updated_at']


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['user_name', 'action', 'message', 'model_name', 'object_id', 'company', 'created_at']
    list_filter = ['action', 'model_name', 'created_at']
    search_fields = ['user_name', 'message', 'object_reference', 'object_id']
    ordering = ['-created_at']
    readonly_fields = ['user', 'action', 'model_name', 'object_id', 'message', 'changes', 'ip_address', 'created_at']
