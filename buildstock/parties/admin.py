from django.contrib import admin
from .models import Customer, Supplier


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ['name', 'contact_number', 'company', 'created_at']
    list_filter = ['company']
    search_fields = ['name', 'contact_number']


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ['name', 'contact_number', 'company', 'created_at']
    list_filter = ['company']
    search_fields = ['name', 'contact_number']
