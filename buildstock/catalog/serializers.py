from rest_framework import serializers

from buildstock.core.serializers import CompanyPrimaryKeyRelatedField
from .models import Category, Product


class CategorySerializer(serializers.ModelSerializer):
    product_count = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = ['id', 'name', 'product_count', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']

    def get_product_count(self, obj):
        count = getattr(obj, 'product_count', None)
        return count if count is not None else obj.products.count()

    def validate_name(self, value):
        value = value.strip()
        request = self.context.get('request')
        queryset = Category.objects.filter(company_id=request.user.company_id, name__iexact=value)
        if self.instance:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError('A category with this name already exists.')
        return value


class ProductSerializer(serializers.ModelSerializer):
    category = CompanyPrimaryKeyRelatedField(queryset=Category.objects.all())
    category_name = serializers.CharField(source='category.name', read_only=True)
    current_quantity = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'unit', 'category', 'category_name', 'description',
            'current_quantity', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def get_current_quantity(self, obj):
        quantity = getattr(obj, 'current_quantity', None)
        if quantity is None:
            quantity = obj.get_current_quantity()
        return str(quantity)
