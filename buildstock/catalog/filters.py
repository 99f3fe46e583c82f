import django_filters
from django.conf import settings

from .models import Category, Product


class CategoryFilter(django_filters.FilterSet):
    name = django_filters.CharFilter(field_name='name', lookup_expr='icontains')

    class Meta:
        model = Category
        fields = ['name']


class ProductFilter(django_filters.FilterSet):
    """Filter for Product model; expects a queryset annotated with current_quantity"""
    name = django_filters.CharFilter(field_name='name', lookup_expr='icontains')
    search = django_filters.CharFilter(method='filter_search', label='Search')
    category = django_filters.NumberFilter(field_name='category_id', lookup_expr='exact')
    low_stock = django_filters.BooleanFilter(method='filter_low_stock', label='Low Stock')

    class Meta:
        model = Product
        fields = ['name', 'search', 'category', 'low_stock']

    def filter_search(self, queryset, name, value):
        """Every word must appear in the product name"""
        for word in value.split():
            queryset = queryset.filter(name__icontains=word)
        return queryset

    def filter_low_stock(self, queryset, name, value):
        threshold = settings.LOW_STOCK_THRESHOLD
        if value:
            return queryset.filter(current_quantity__lt=threshold)
        return queryset.filter(current_quantity__gte=threshold)
