from decimal import Decimal

from rest_framework import serializers

from buildstock.catalog.models import Product
from buildstock.core.serializers import CompanyPrimaryKeyRelatedField
from buildstock.inventory.models import ProductStock
from buildstock.parties.models import Customer
from .models import SalesOrder, SalesOrderItem, SalesOrderPayment


class SalesOrderItemSerializer(serializers.ModelSerializer):
    product = serializers.IntegerField(source='product_stock.product_id', read_only=True)
    product_name = serializers.CharField(source='product_stock.product.name', read_only=True)
    product_unit = serializers.CharField(source='product_stock.product.unit', read_only=True)

    class Meta:
        model = SalesOrderItem
        fields = [
            'id', 'product_stock', 'product', 'product_name', 'product_unit', 'quantity',
            'unit_price', 'discount', 'total', 'original_quantity', 'logs'
        ]


class SalesOrderItemWriteSerializer(serializers.Serializer):
    product_stock = CompanyPrimaryKeyRelatedField(queryset=ProductStock.objects.select_related('product'))
    quantity = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    unit_price = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0'))
    discount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0'), required=False, default=Decimal('0.00'))


class SalesOrderPaymentSerializer(serializers.ModelSerializer):
    created_by_name = serializers.CharField(source='created_by.display_name', read_only=True, default=None)

    class Meta:
        model = SalesOrderPayment
        fields = [
            'id', 'sales_order', 'date', 'amount', 'type', 'bank', 'due_date',
            'remarks', 'created_by', 'created_by_name', 'created_at'
        ]


class SalesOrderListSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source='customer.name', read_only=True)

    class Meta:
        model = SalesOrder
        fields = [
            'id', 'so_number', 'po_number', 'customer', 'customer_name', 'date', 'status',
            'order_type', 'payment_status', 'total_amount', 'delivery_fee', 'modified',
            'created_at', 'updated_at'
        ]


class SalesOrderSerializer(SalesOrderListSerializer):
    items = SalesOrderItemSerializer(many=True, read_only=True)
    payments = SalesOrderPaymentSerializer(many=True, read_only=True)
    total_paid = serializers.SerializerMethodField()
    balance = serializers.SerializerMethodField()
    created_by_name = serializers.CharField(source='created_by.display_name', read_only=True, default=None)

    class Meta(SalesOrderListSerializer.Meta):
        fields = SalesOrderListSerializer.Meta.fields + [
            'other_charges', 'other_charges_amount', 'quantity_cu_m', 'price_per_cu_m', 'remarks',
            'items', 'payments', 'total_paid', 'balance', 'created_by', 'created_by_name',
            'completed_by', 'completed_at'
        ]

    def get_total_paid(self, obj):
        return str(obj.get_total_paid())

    def get_balance(self, obj):
        return str(obj.payable_total() - obj.get_total_paid())


class SalesOrderHeaderSerializer(serializers.Serializer):
    customer = CompanyPrimaryKeyRelatedField(queryset=Customer.objects.all())
    so_number = serializers.RegexField(r'^\d{5,}$', max_length=20, required=False, allow_blank=True)
    po_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    date = serializers.DateField()
    delivery_fee = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0'), required=False)
    remarks = serializers.CharField(required=False, allow_blank=True)


class SalesOrderWriteSerializer(SalesOrderHeaderSerializer):
    status = serializers.ChoiceField(choices=['draft', 'reserved'], required=False)
    items = SalesOrderItemWriteSerializer(many=True, required=False)

    def validate(self, attrs):
        if self.context.get('instance') is None and not attrs.get('items'):
            raise serializers.ValidationError({'items': 'At least one item is required.'})
        return attrs


class OtherChargesSerializer(SalesOrderHeaderSerializer):
    other_charges = serializers.CharField(max_length=255)
    other_charges_amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0.01'))


class RmcPreviewSerializer(serializers.Serializer):
    quantity_cu_m = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    cement_product = CompanyPrimaryKeyRelatedField(queryset=Product.objects.all())
    gravel_product = CompanyPrimaryKeyRelatedField(queryset=Product.objects.all())
    sand_product = CompanyPrimaryKeyRelatedField(queryset=Product.objects.all())
    cement_bags = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'), required=False, allow_null=True)
    gravel_cu_m = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'), required=False, allow_null=True)
    sand_cu_m = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'), required=False, allow_null=True)


class RmcOrderSerializer(SalesOrderHeaderSerializer, RmcPreviewSerializer):
    price_per_cu_m = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0'))


class QuantityChangeSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    quantity = serializers.DecimalField(max_digits=12, decimal_places=2)


class ModifyQuantitiesSerializer(serializers.Serializer):
    items = QuantityChangeSerializer(many=True)

    def to_quantities(self):
        return {line['id']: line['quantity'] for line in self.validated_data['items']}


class ProductSaleSerializer(serializers.ModelSerializer):
    """A sales order line seen from the product's side"""
    so_number = serializers.CharField(source='sales_order.so_number', read_only=True)
    date = serializers.DateField(source='sales_order.date', read_only=True)
    status = serializers.CharField(source='sales_order.status', read_only=True)
    customer_name = serializers.CharField(source='sales_order.customer.name', read_only=True)

    class Meta:
        model = SalesOrderItem
        fields = [
            'id', 'sales_order', 'so_number', 'date', 'status', 'customer_name', 'product_stock',
            'quantity', 'unit_price', 'discount', 'total'
        ]
