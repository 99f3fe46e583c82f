from django.contrib import admin
from .models import PurchaseOrder, PurchaseOrderItem, PurchaseOrderPayment


class PurchaseOrderItemInline(admin.TabularInline):
    model = PurchaseOrderItem
    extra = 0
    readonly_fields = ['delivered', 'to_deliver']


class PurchaseOrderPaymentInline(admin.TabularInline):
    model = PurchaseOrderPayment
    extra = 0


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(admin.ModelAdmin):
    list_display = ['po_number', 'supplier', 'date', 'status', 'payment_status', 'total_amount', 'company']
    list_filter = ['status', 'payment_status', 'company', 'date']
    search_fields = ['po_number', 'supplier__name']
    inlines = [PurchaseOrderItemInline, PurchaseOrderPaymentInline]
    readonly_fields = ['created_at', 'updated_at', 'approved_at', 'delivered_at']
