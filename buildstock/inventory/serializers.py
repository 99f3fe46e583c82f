from decimal import Decimal

from rest_framework import serializers

from buildstock.catalog.models import Product
from buildstock.core.serializers import CompanyPrimaryKeyRelatedField
from .models import ProductStock, StockRemoval


class ProductStockSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_unit = serializers.CharField(source='product.unit', read_only=True)
    category_name = serializers.CharField(source='product.category.name', read_only=True)
    po_number = serializers.CharField(source='purchase_order.po_number', read_only=True, default=None)

    class Meta:
        model = ProductStock
        fields = [
            'id', 'product', 'product_name', 'product_unit', 'category_name',
            'purchase_order', 'po_number', 'cost', 'selling_price', 'hso_price',
            'quantity', 'remaining_quantity', 'missing', 'purchase_date', 'remarks',
            'created_at', 'updated_at'
        ]


class ProductStockCreateSerializer(serializers.Serializer):
    product = CompanyPrimaryKeyRelatedField(queryset=Product.objects.all())
    cost = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0'))
    selling_price = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0'), required=False)
    hso_price = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0'), required=False, allow_null=True)
    quantity = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    purchase_date = serializers.DateField(required=False)
    remarks = serializers.CharField(required=False, allow_blank=True)


class ProductStockUpdateSerializer(serializers.Serializer):
    cost = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0'), required=False)
    selling_price = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0'), required=False)
    hso_price = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0'), required=False, allow_null=True)
    purchase_date = serializers.DateField(required=False)
    remarks = serializers.CharField(required=False, allow_blank=True)


class SellingPriceSerializer(serializers.Serializer):
    selling_price = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0'))


class StockRemovalSerializer(serializers.ModelSerializer):
    quantity = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))

    class Meta:
        model = StockRemoval
        fields = ['id', 'product_stock', 'quantity', 'reason', 'remarks', 'created_by', 'created_at']
        read_only_fields = ['id', 'product_stock', 'created_by', 'created_at']


class MissingStockSerializer(serializers.Serializer):
    quantity = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
