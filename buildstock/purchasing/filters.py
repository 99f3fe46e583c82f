import django_filters
from .models import PurchaseOrder


class PurchaseOrderFilter(django_filters.FilterSet):
    po_number = django_filters.CharFilter(field_name='po_number', lookup_expr='icontains')
    supplier = django_filters.NumberFilter(field_name='supplier_id')
    supplier_name = django_filters.CharFilter(field_name='supplier__name', lookup_expr='icontains')
    status = django_filters.CharFilter(field_name='status')
    payment_status = django_filters.CharFilter(field_name='payment_status')
    date_from = django_filters.DateFilter(field_name='date', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='date', lookup_expr='lte')

    class Meta:
        model = PurchaseOrder
        fields = ['po_number', 'supplier', 'supplier_name', 'status', 'payment_status', 'date_from', 'date_to']
