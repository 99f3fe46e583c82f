import django_filters
from .models import Customer, Supplier


class CustomerFilter(django_filters.FilterSet):
    name = django_filters.CharFilter(field_name='name', lookup_expr='icontains')
    contact_number = django_filters.CharFilter(field_name='contact_number', lookup_expr='icontains')

    class Meta:
        model = Customer
        fields = ['name', 'contact_number']


class SupplierFilter(django_filters.FilterSet):
    name = django_filters.CharFilter(field_name='name', lookup_expr='icontains')

    class Meta:
        model = Supplier
        fields = ['name']
