from decimal import Decimal

from django.db import models

from buildstock.catalog.models import Product
from buildstock.core.constants import QUANTITY_FIELD, MONEY_FIELD
from buildstock.core.models import Company, User
from buildstock.purchasing.models import PurchaseOrder


class ProductStock(models.Model):
    """
    A purchased lot of a product with its own cost and price.

    remaining_quantity is a running counter: deliveries and manual entries set
    it, completed sales, removals and missing reports decrement it.
    """
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name='product_stocks')
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='stocks')
    purchase_order = models.ForeignKey(PurchaseOrder, on_delete=models.SET_NULL, null=True, blank=True, related_name='stocks')
    cost = models.DecimalField(**MONEY_FIELD)
    selling_price = models.DecimalField(default=Decimal('0.00'), **MONEY_FIELD)
    hso_price = models.DecimalField(null=True, blank=True, help_text='Wholesale price', **MONEY_FIELD)
    quantity = models.DecimalField(**QUANTITY_FIELD)
    remaining_quantity = models.DecimalField(**QUANTITY_FIELD)
    missing = models.DecimalField(default=Decimal('0'), **QUANTITY_FIELD)
    purchase_date = models.DateField()
    remarks = models.TextField(blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='product_stocks')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.product} ({self.purchase_date}) - {self.remaining_quantity} left"

    class Meta:
        db_table = 'product_stocks'
        ordering = ['-id']
        indexes = [
            models.Index(fields=['product', 'purchase_date'], name='idx_stock_product_date'),
            models.Index(fields=['company', 'remaining_quantity'], name='idx_stock_company_remaining'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(remaining_quantity__gte=0),
                name='chk_stock_remaining_non_negative',
            ),
        ]


class StockRemoval(models.Model):
    """Quantity taken out of a batch outside of a sale"""
    REASON_CHOICES = [
        ('damage', 'Damage'),
        ('missing', 'Missing'),
        ('expired', 'Expired'),
        ('transfer', 'Transfer'),
    ]

    product_stock = models.ForeignKey(ProductStock, on_delete=models.CASCADE, related_name='removals')
    quantity = models.DecimalField(**QUANTITY_FIELD)
    reason = models.CharField(max_length=20, choices=REASON_CHOICES)
    remarks = models.TextField(blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='stock_removals')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.get_reason_display()} {self.quantity} from stock #{self.product_stock_id}"

    class Meta:
        db_table = 'stock_removals'
        ordering = ['-created_at']
