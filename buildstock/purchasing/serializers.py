from decimal import Decimal

from rest_framework import serializers

from buildstock.catalog.models import Product
from buildstock.core.serializers import CompanyPrimaryKeyRelatedField
from buildstock.parties.models import Supplier
from .models import PurchaseOrder, PurchaseOrderItem, PurchaseOrderPayment


class PurchaseOrderItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_unit = serializers.CharField(source='product.unit', read_only=True)
    line_total = serializers.SerializerMethodField()

    class Meta:
        model = PurchaseOrderItem
        fields = [
            'id', 'product', 'product_name', 'product_unit', 'quantity', 'cost', 'price',
            'delivered', 'to_deliver', 'line_total'
        ]

    def get_line_total(self, obj):
        return str(obj.get_line_total().quantize(Decimal('0.01')))


class PurchaseOrderItemWriteSerializer(serializers.Serializer):
    product = CompanyPrimaryKeyRelatedField(queryset=Product.objects.all())
    quantity = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    cost = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0'))
    price = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0'), required=False)


class PurchaseOrderPaymentSerializer(serializers.ModelSerializer):
    created_by_name = serializers.CharField(source='created_by.display_name', read_only=True, default=None)

    class Meta:
        model = PurchaseOrderPayment
        fields = [
            'id', 'purchase_order', 'date', 'amount', 'type', 'bank', 'due_date',
            'remarks', 'created_by', 'created_by_name', 'created_at'
        ]


class PurchaseOrderListSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source='supplier.name', read_only=True)

    class Meta:
        model = PurchaseOrder
        fields = [
            'id', 'po_number', 'supplier', 'supplier_name', 'date', 'status', 'payment_status',
            'total_amount', 'remarks', 'created_at', 'updated_at'
        ]


class PurchaseOrderSerializer(PurchaseOrderListSerializer):
    items = PurchaseOrderItemSerializer(many=True, read_only=True)
    payments = PurchaseOrderPaymentSerializer(many=True, read_only=True)
    total_paid = serializers.SerializerMethodField()
    balance = serializers.SerializerMethodField()
    created_by_name = serializers.CharField(source='created_by.display_name', read_only=True, default=None)
    approved_by_name = serializers.CharField(source='approved_by.display_name', read_only=True, default=None)

    class Meta(PurchaseOrderListSerializer.Meta):
        fields = PurchaseOrderListSerializer.Meta.fields + [
            'items', 'payments', 'total_paid', 'balance', 'created_by', 'created_by_name',
            'approved_by', 'approved_by_name', 'approved_at', 'delivered_at'
        ]

    def get_total_paid(self, obj):
        return str(obj.get_total_paid())

    def get_balance(self, obj):
        return str(obj.payable_total() - obj.get_total_paid())


class PurchaseOrderWriteSerializer(serializers.Serializer):
    supplier = CompanyPrimaryKeyRelatedField(queryset=Supplier.objects.all())
    po_number = serializers.CharField(max_length=100)
    date = serializers.DateField()
    remarks = serializers.CharField(required=False, allow_blank=True)
    items = PurchaseOrderItemWriteSerializer(many=True, required=False)

    def validate_po_number(self, value):
        value = value.strip()
        request = self.context['request']
        queryset = PurchaseOrder.objects.filter(company_id=request.user.company_id, po_number=value)
        instance = self.context.get('instance')
        if instance is not None:
            queryset = queryset.exclude(pk=instance.pk)
        if queryset.exists():
            raise serializers.ValidationError('A purchase order with this number already exists.')
        return value

    def validate(self, attrs):
        if self.context.get('instance') is None and not attrs.get('items'):
            raise serializers.ValidationError({'items': 'At least one item is required.'})
        return attrs


class DeliveryLineSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    quantity = serializers.DecimalField(max_digits=12, decimal_places=2)


class PartialDeliverySerializer(serializers.Serializer):
    items = DeliveryLineSerializer(many=True)

    def validate_items(self, value):
        ids = [line['id'] for line in value]
        if len(ids) != len(set(ids)):
            raise serializers.ValidationError('Each item may appear only once.')
        return value

    def to_deliveries(self):
        return {line['id']: line['quantity'] for line in self.validated_data['items']}
