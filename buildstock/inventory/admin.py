from django.contrib import admin
from .models import ProductStock, StockRemoval


@admin.register(ProductStock)
class ProductStockAdmin(admin.ModelAdmin):
    list_display = ['product', 'purchase_date', 'cost', 'selling_price', 'quantity', 'remaining_quantity', 'missing', 'company']
    list_filter = ['company', 'purchase_date']
    search_fields = ['product__name']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(StockRemoval)
class StockRemovalAdmin(admin.ModelAdmin):
    list_display = ['product_stock', 'quantity', 'reason', 'created_by', 'created_at']
    list_filter = ['reason', 'created_at']
