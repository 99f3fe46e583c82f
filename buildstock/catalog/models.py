from decimal import Decimal

from django.db import models
from django.db.models import Sum, Value, DecimalField
from django.db.models.functions import Coalesce

from buildstock.core.models import Company


class Category(models.Model):
    """Product categories"""
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name='categories')
    name = models.CharField(max_length=255)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'categories'
        verbose_name_plural = 'Categories'
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(fields=['company', 'name'], name='uniq_category_company_name'),
        ]


class ProductQuerySet(models.QuerySet):
    def with_current_quantity(self):
        """Annotate current_quantity as the sum of remaining quantity across batches"""
        return self.annotate(
            current_quantity=Coalesce(
                Sum('stocks__remaining_quantity'),
                Value(Decimal('0')),
                output_field=DecimalField(max_digits=12, decimal_places=2),
            )
        )


class Product(models.Model):
    """Sellable item; its stock lives in ProductStock batches"""
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name='products')
    name = models.CharField(max_length=255)
    unit = models.CharField(max_length=50, help_text='Unit of measure, e.g. bags, cu.m, pcs')
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name='products')
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ProductQuerySet.as_manager()

    def __str__(self):
        return self.name

    def get_current_quantity(self):
        total = self.stocks.aggregate(total=Sum('remaining_quantity'))['total']
        return total or Decimal('0')

    class Meta:
        db_table = 'products'
        ordering = ['name']
        indexes = [
            models.Index(fields=['company', 'name'], name='idx_product_company_name'),
            models.Index(fields=['category'], name='idx_product_category'),
        ]
