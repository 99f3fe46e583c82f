from django.contrib.auth.models import AbstractUser
from django.db import models


class Company(models.Model):
    """Tenant that owns every business row"""
    name = models.CharField(max_length=255)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'companies'
        ordering = ['name']


class User(AbstractUser):
    """Extended user model with company scope and role"""
    TYPE_CHOICES = [
        ('admin', 'Admin'),
        ('user', 'User'),
    ]

    company = models.ForeignKey(Company, on_delete=models.CASCADE, null=True, blank=True, related_name='users')
    name = models.CharField(max_length=255, blank=True)
    type = models.CharField(max_length=10, choices=TYPE_CHOICES, default='user')
    phone = models.CharField(max_length=20, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def is_admin(self):
        return self.type == 'admin' or self.is_superuser

    @property
    def display_name(self):
        return self.name or self.get_full_name() or self.username

    class Meta:
        db_table = 'users'


class CompanySettings(models.Model):
    """Shipping and billing details printed on orders, one row per company"""
    company = models.OneToOneField(Company, on_delete=models.CASCADE, related_name='settings')
    shipping_company = models.CharField(max_length=255, blank=True)
    shipping_address = models.TextField(blank=True)
    shipping_contact_number = models.CharField(max_length=50, blank=True)
    billing_company = models.CharField(max_length=255, blank=True)
    billing_address = models.TextField(blank=True)
    billing_contact_number = models.CharField(max_length=50, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Settings for {self.company}"

    @classmethod
    def for_company(cls, company):
        settings_row, _ = cls.objects.get_or_create(company=company)
        return settings_row

    class Meta:
        db_table = 'company_settings'


class AuditLog(models.Model):
    """Audit trail of order, stock and price operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('approve', 'Approve'),
        ('deliver', 'Deliver'),
        ('partial_deliver', 'Partial Delivery'),
        ('complete', 'Complete'),
        ('modify', 'Modify Quantities'),
        ('payment_add', 'Payment Added'),
        ('payment_delete', 'Payment Deleted'),
        ('payment_received', 'PDC Received'),
        ('stock_add', 'Stock Added'),
        ('stock_remove', 'Stock Removed'),
        ('stock_missing', 'Missing Stock'),
        ('price_change', 'Price Change'),
    ]

    company = models.ForeignKey(Company, on_delete=models.CASCADE, null=True, blank=True, related_name='audit_logs')
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='audit_logs')
    user_name = models.CharField(max_length=255, blank=True)
    action = models.CharField(max_length=30, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_reference = models.CharField(max_length=100, blank=True, null=True)
    message = models.CharField(max_length=500, blank=True)
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    # Plain ids so history survives deletes and core stays free of app dependencies
    product_id = models.BigIntegerField(null=True, blank=True)
    product_stock_id = models.BigIntegerField(null=True, blank=True)
    purchase_order_id = models.BigIntegerField(null=True, blank=True)
    sales_order_id = models.BigIntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.user_name or 'system'} {self.message or self.action} ({self.model_name} #{self.object_id})"

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['company', '-created_at'], name='idx_audit_company_created'),
            models.Index(fields=['model_name', 'object_id'], name='idx_audit_model_object'),
            models.Index(fields=['product_stock_id'], name='idx_audit_stock'),
        ]
