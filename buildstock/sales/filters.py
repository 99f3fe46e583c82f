import django_filters
from .models import SalesOrder


class SalesOrderFilter(django_filters.FilterSet):
    so_number = django_filters.CharFilter(field_name='so_number', lookup_expr='icontains')
    po_number = django_filters.CharFilter(field_name='po_number', lookup_expr='icontains')
    customer = django_filters.NumberFilter(field_name='customer_id')
    customer_name = django_filters.CharFilter(field_name='customer__name', lookup_expr='icontains')
    status = django_filters.CharFilter(field_name='status')
    order_type = django_filters.CharFilter(field_name='order_type')
    payment_status = django_filters.CharFilter(field_name='payment_status')
    date_from = django_filters.DateFilter(field_name='date', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='date', lookup_expr='lte')

    class Meta:
        model = SalesOrder
        fields = ['so_number', 'po_number', 'customer', 'customer_name', 'status', 'order_type',
                  'payment_status', 'date_from', 'date_to']
