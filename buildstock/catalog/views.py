import logging

from django.db.models import Count
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from buildstock.core.pagination import paginated_response
from buildstock.core.permissions import IsAdminOrReadOnly, IsCompanyMember
from buildstock.core.utils import company_scoped, create_audit_log
from buildstock.inventory.models import ProductStock
from buildstock.inventory.serializers import ProductStockSerializer
from buildstock.sales.models import SalesOrderItem
from buildstock.sales.serializers import ProductSaleSerializer
from .filters import CategoryFilter, ProductFilter
from .models import Category, Product
from .serializers import CategorySerializer, ProductSerializer

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAdminOrReadOnly])
def category_list_create(request):
    """List all categories or create a new category"""
    if request.method == 'GET':
        queryset = company_scoped(Category.objects.all(), request).annotate(product_count=Count('products'))
        queryset = CategoryFilter(request.query_params, queryset=queryset).qs
        return paginated_response(request, queryset.order_by('-id'), CategorySerializer)

    serializer = CategorySerializer(data=request.data, context={'request': request})
    if serializer.is_valid():
        category = serializer.save(company=request.user.company)
        return Response(CategorySerializer(category, context={'request': request}).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdminOrReadOnly])
def category_detail(request, pk):
    """Retrieve, update or delete a category"""
    category = get_object_or_404(company_scoped(Category.objects.all(), request), pk=pk)

    if request.method == 'GET':
        return Response(CategorySerializer(category, context={'request': request}).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CategorySerializer(
            category, data=request.data, partial=request.method == 'PATCH', context={'request': request}
        )
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if category.products.exists():
            return Response(
                {'error': 'Cannot delete a category that still has products.'},
                status=status.HTTP_400_BAD_REQUEST
            )
        category.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAdminOrReadOnly])
def product_list_create(request):
    """List all products or create a new product"""
    if request.method == 'GET':
        queryset = company_scoped(Product.objects.all(), request).select_related('category').with_current_quantity()
        queryset = ProductFilter(request.query_params, queryset=queryset).qs
        return paginated_response(request, queryset.order_by('-id'), ProductSerializer)

    serializer = ProductSerializer(data=request.data, context={'request': request})
    if serializer.is_valid():
        product = serializer.save(company=request.user.company)
        create_audit_log(
            request=request, action='create', model_name='Product', object_id=product.id,
            message='added this product', object_reference=product.name, product_id=product.id
        )
        return Response(ProductSerializer(product, context={'request': request}).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdminOrReadOnly])
def product_detail(request, pk):
    """Retrieve, update or delete a product"""
    queryset = company_scoped(Product.objects.all(), request).select_related('category').with_current_quantity()
    product = get_object_or_404(queryset, pk=pk)

    if request.method == 'GET':
        return Response(ProductSerializer(product, context={'request': request}).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ProductSerializer(
            product, data=request.data, partial=request.method == 'PATCH', context={'request': request}
        )
        if serializer.is_valid():
            serializer.save()
            create_audit_log(
                request=request, action='update', model_name='Product', object_id=product.id,
                message='updated this product', object_reference=product.name,
                changes=dict(request.data), product_id=product.id
            )
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if product.stocks.exists():
            return Response(
                {'error': 'Cannot delete a product that has stock batches.'},
                status=status.HTTP_400_BAD_REQUEST
            )
        if product.purchase_order_items.exists():
            return Response(
                {'error': 'Cannot delete a product that is on a purchase order.'},
                status=status.HTTP_400_BAD_REQUEST
            )
        product.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsCompanyMember])
def product_stocks(request, pk):
    """Stock batches of a product, newest first"""
    product = get_object_or_404(company_scoped(Product.objects.all(), request), pk=pk)
    queryset = product.stocks.select_related('product', 'purchase_order').order_by('-id')
    if request.query_params.get('in_stock') in ('true', '1'):
        queryset = queryset.filter(remaining_quantity__gt=0)
    return paginated_response(request, queryset, ProductStockSerializer)


@api_view(['GET'])
@permission_classes([IsCompanyMember])
def product_sales(request, pk):
    """Sales order lines that sold from any batch of a product"""
    product = get_object_or_404(company_scoped(Product.objects.all(), request), pk=pk)
    queryset = SalesOrderItem.objects.filter(product_stock__product=product).select_related(
        'sales_order', 'sales_order__customer', 'product_stock'
    ).order_by('-id')
    return paginated_response(request, queryset, ProductSaleSerializer)
