import django_filters

from .models import AuditLog


class AuditLogFilter(django_filters.FilterSet):
    """Filters for the per-entity history views"""
    action = django_filters.CharFilter(field_name='action', lookup_expr='exact')
    model = django_filters.CharFilter(field_name='model_name', lookup_expr='iexact')
    product_id = django_filters.NumberFilter(field_name='product_id')
    product_stock_id = django_filters.NumberFilter(field_name='product_stock_id')
    purchase_order_id = django_filters.NumberFilter(field_name='purchase_order_id')
    sales_order_id = django_filters.NumberFilter(field_name='sales_order_id')
    date_from = django_filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='created_at', lookup_expr='date__lte')

    class Meta:
        model = AuditLog
        fields = ['action', 'model', 'product_id', 'product_stock_id', 'purchase_order_id',
                  'sales_order_id', 'date_from', 'date_to']
