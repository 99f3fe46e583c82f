from decimal import Decimal

from django.db import models
from django.db.models import Sum

from buildstock.core.constants import (
    PAYMENT_STATUS_CHOICES, PAYMENT_TYPE_CHOICES, QUANTITY_FIELD, MONEY_FIELD
)
from buildstock.core.models import Company, User
from buildstock.inventory.models import ProductStock
from buildstock.parties.models import Customer


class SalesOrder(models.Model):
    """Order sold to a customer; each item is bound to a specific stock batch"""
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('reserved', 'Reserved'),
        ('completed', 'Completed'),
    ]
    ORDER_TYPE_CHOICES = [
        ('regular', 'Regular'),
        ('rmc', 'Ready-Mix Concrete'),
        ('other_charges', 'Other Charges'),
    ]

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name='sales_orders')
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name='sales_orders')
    so_number = models.CharField(max_length=20)
    po_number = models.CharField(max_length=100, blank=True, help_text="Customer's purchase order reference")
    date = models.DateField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='reserved')
    order_type = models.CharField(max_length=20, choices=ORDER_TYPE_CHOICES, default='regular')
    payment_status = models.CharField(max_length=10, choices=PAYMENT_STATUS_CHOICES, default='unpaid')
    total_amount = models.DecimalField(default=Decimal('0.00'), **MONEY_FIELD)
    delivery_fee = models.DecimalField(default=Decimal('0.00'), **MONEY_FIELD)
    other_charges = models.CharField(max_length=255, blank=True)
    other_charges_amount = models.DecimalField(default=Decimal('0.00'), **MONEY_FIELD)
    quantity_cu_m = models.DecimalField(null=True, blank=True, **QUANTITY_FIELD)
    price_per_cu_m = models.DecimalField(null=True, blank=True, **MONEY_FIELD)
    modified = models.BooleanField(default=False)
    remarks = models.TextField(blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='sales_orders')
    completed_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='completed_sales_orders')
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.so_number

    def payable_total(self):
        return self.total_amount + self.delivery_fee

    def get_total_paid(self):
        return self.payments.aggregate(total=Sum('amount'))['total'] or Decimal('0.00')

    def audit_refs(self):
        return {'sales_order_id': self.id}

    class Meta:
        db_table = 'sales_orders'
        ordering = ['-id']
        constraints = [
            models.UniqueConstraint(fields=['company', 'so_number'], name='uniq_so_company_number'),
        ]
        indexes = [
            models.Index(fields=['company', 'status'], name='idx_so_company_status'),
            models.Index(fields=['company', 'date'], name='idx_so_company_date'),
            models.Index(fields=['customer', 'status'], name='idx_so_customer_status'),
        ]


class SalesOrderItem(models.Model):
    """Sales order line; total = unit_price x quantity - discount"""
    sales_order = models.ForeignKey(SalesOrder, on_delete=models.CASCADE, related_name='items')
    product_stock = models.ForeignKey(ProductStock, on_delete=models.PROTECT, related_name='sales_order_items')
    quantity = models.DecimalField(**QUANTITY_FIELD)
    unit_price = models.DecimalField(**MONEY_FIELD)
    discount = models.DecimalField(default=Decimal('0.00'), **MONEY_FIELD)
    total = models.DecimalField(**MONEY_FIELD)
    original_quantity = models.DecimalField(**QUANTITY_FIELD)
    # Quantity modification history: [{modified_at, modified_by, previous_quantity, new_quantity}]
    logs = models.JSONField(default=list, blank=True)

    def __str__(self):
        return f"{self.product_stock.product} x {self.quantity}"

    class Meta:
        db_table = 'sales_order_items'
        ordering = ['id']


class SalesOrderPayment(models.Model):
    """Payment received from the customer against a sales order"""
    sales_order = models.ForeignKey(SalesOrder, on_delete=models.CASCADE, related_name='payments')
    date = models.DateField()
    amount = models.DecimalField(**MONEY_FIELD)
    type = models.CharField(max_length=20, choices=PAYMENT_TYPE_CHOICES, default='Cash')
    bank = models.CharField(max_length=255, blank=True)
    due_date = models.DateField(null=True, blank=True)
    remarks = models.TextField(blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='sales_order_payments')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.type} {self.amount} for {self.sales_order}"

    @property
    def order(self):
        return self.sales_order

    class Meta:
        db_table = 'sales_order_payments'
        ordering = ['-date', '-id']
        indexes = [
            models.Index(fields=['type', 'due_date'], name='idx_so_payment_type_due'),
        ]
