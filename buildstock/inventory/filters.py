import django_filters
from .models import ProductStock


class ProductStockFilter(django_filters.FilterSet):
    product = django_filters.NumberFilter(field_name='product_id')
    product_name = django_filters.CharFilter(field_name='product__name', lookup_expr='icontains')
    category = django_filters.NumberFilter(field_name='product__category_id')
    purchase_order = django_filters.NumberFilter(field_name='purchase_order_id')
    in_stock = django_filters.BooleanFilter(method='filter_in_stock', label='In Stock')
    date_from = django_filters.DateFilter(field_name='purchase_date', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='purchase_date', lookup_expr='lte')

    class Meta:
        model = ProductStock
        fields = ['product', 'product_name', 'category', 'purchase_order', 'in_stock', 'date_from', 'date_to']

    def filter_in_stock(self, queryset, name, value):
        if value:
            return queryset.filter(remaining_quantity__gt=0)
        return queryset.filter(remaining_quantity__lte=0)
