from django.contrib import admin
from .models import SalesOrder, SalesOrderItem, SalesOrderPayment


class SalesOrderItemInline(admin.TabularInline):
    model = SalesOrderItem
    extra = 0
    readonly_fields = ['original_quantity', 'logs']


class SalesOrderPaymentInline(admin.TabularInline):
    model = SalesOrderPayment
    extra = 0


@admin.register(SalesOrder)
class SalesOrderAdmin(admin.ModelAdmin):
    list_display = ['so_number', 'customer', 'date', 'order_type', 'status', 'payment_status', 'total_amount', 'company']
    list_filter = ['status', 'order_type', 'payment_status', 'company', 'date']
    search_fields = ['so_number', 'po_number', 'customer__name']
    inlines = [SalesOrderItemInline, SalesOrderPaymentInline]
    readonly_fields = ['created_at', 'updated_at', 'completed_at']
