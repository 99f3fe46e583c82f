from decimal import Decimal

from django.db import models
from django.db.models import Sum

from buildstock.catalog.models import Product
from buildstock.core.constants import (
    PAYMENT_STATUS_CHOICES, PAYMENT_TYPE_CHOICES, QUANTITY_FIELD, MONEY_FIELD
)
from buildstock.core.models import Company, User
from buildstock.parties.models import Supplier


class PurchaseOrder(models.Model):
    """Order placed with a supplier; delivery turns its items into stock batches"""
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('approved', 'Approved'),
        ('partially_delivered', 'Partially Delivered'),
        ('delivered', 'Delivered'),
    ]

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name='purchase_orders')
    supplier = models.ForeignKey(Supplier, on_delete=models.PROTECT, related_name='purchase_orders')
    po_number = models.CharField(max_length=100)
    date = models.DateField()
    status = models.CharField(max_length=30, choices=STATUS_CHOICES, default='draft')
    payment_status = models.CharField(max_length=10, choices=PAYMENT_STATUS_CHOICES, default='unpaid')
    total_amount = models.DecimalField(default=Decimal('0.00'), **MONEY_FIELD)
    remarks = models.TextField(blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='purchase_orders')
    approved_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='approved_purchase_orders')
    approved_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.po_number

    def payable_total(self):
        return self.total_amount

    def get_total_paid(self):
        return self.payments.aggregate(total=Sum('amount'))['total'] or Decimal('0.00')

    def audit_refs(self):
        return {'purchase_order_id': self.id}

    class Meta:
        db_table = 'purchase_orders'
        ordering = ['-id']
        constraints = [
            models.UniqueConstraint(fields=['company', 'po_number'], name='uniq_po_company_number'),
        ]
        indexes = [
            models.Index(fields=['company', 'status'], name='idx_po_company_status'),
            models.Index(fields=['supplier', 'status'], name='idx_po_supplier_status'),
        ]


class PurchaseOrderItem(models.Model):
    """Purchase order line; delivered + to_deliver always equals quantity"""
    purchase_order = models.ForeignKey(PurchaseOrder, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='purchase_order_items')
    quantity = models.DecimalField(**QUANTITY_FIELD)
    cost = models.DecimalField(**MONEY_FIELD)
    price = models.DecimalField(default=Decimal('0.00'), help_text='Selling price of the batch created on delivery', **MONEY_FIELD)
    delivered = models.DecimalField(default=Decimal('0'), **QUANTITY_FIELD)
    to_deliver = models.DecimalField(default=Decimal('0'), **QUANTITY_FIELD)

    def __str__(self):
        return f"{self.product} x {self.quantity}"

    def get_line_total(self):
        return self.quantity * self.cost

    class Meta:
        db_table = 'purchase_order_items'
        ordering = ['id']


class PurchaseOrderPayment(models.Model):
    """Payment made to the supplier against a purchase order"""
    purchase_order = models.ForeignKey(PurchaseOrder, on_delete=models.CASCADE, related_name='payments')
    date = models.DateField()
    amount = models.DecimalField(**MONEY_FIELD)
    type = models.CharField(max_length=20, choices=PAYMENT_TYPE_CHOICES, default='Cash')
    bank = models.CharField(max_length=255, blank=True)
    due_date = models.DateField(null=True, blank=True)
    remarks = models.TextField(blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='purchase_order_payments')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.type} {self.amount} for {self.purchase_order}"

    @property
    def order(self):
        return self.purchase_order

    class Meta:
        db_table = 'purchase_order_payments'
        ordering = ['-date', '-id']
