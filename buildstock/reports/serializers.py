from rest_framework import serializers

from buildstock.sales.serializers import SalesOrderListSerializer


class OutstandingOrderSerializer(SalesOrderListSerializer):
    """Sales order annotated with paid and balance"""
    customer_contact_number = serializers.CharField(source='customer.contact_number', read_only=True)
    paid = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    balance = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta(SalesOrderListSerializer.Meta):
        fields = SalesOrderListSerializer.Meta.fields + ['customer_contact_number', 'paid', 'balance']
