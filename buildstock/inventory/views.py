from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from buildstock.core.idempotency import idempotent
from buildstock.core.pagination import paginated_response
from buildstock.core.permissions import IsAdminOrReadOnly, IsCompanyAdmin, IsCompanyMember
from buildstock.core.utils import company_scoped
from . import services
from .filters import ProductStockFilter
from .models import ProductStock
from .serializers import (
    ProductStockSerializer, ProductStockCreateSerializer, ProductStockUpdateSerializer,
    SellingPriceSerializer, StockRemovalSerializer, MissingStockSerializer
)


def _stock_queryset(request):
    return company_scoped(ProductStock.objects.all(), request).select_related(
        'product', 'product__category', 'purchase_order'
    )


@api_view(['GET', 'POST'])
@permission_classes([IsAdminOrReadOnly])
@idempotent
def stock_list_create(request):
    """List stock batches or add a batch by hand"""
    if request.method == 'GET':
        queryset = ProductStockFilter(request.query_params, queryset=_stock_queryset(request)).qs
        return paginated_response(request, queryset.order_by('-id'), ProductStockSerializer)

    serializer = ProductStockCreateSerializer(data=request.data, context={'request': request})
    if serializer.is_valid():
        stock = services.create_stock(request.user.company, request.user, serializer.validated_data, request=request)
        return Response(ProductStockSerializer(stock).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdminOrReadOnly])
def stock_detail(request, pk):
    """Retrieve, edit or delete a stock batch"""
    stock = get_object_or_404(_stock_queryset(request), pk=pk)

    if request.method == 'GET':
        return Response(ProductStockSerializer(stock).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ProductStockUpdateSerializer(data=request.data, partial=True)
        if serializer.is_valid():
            stock = services.update_stock(stock, serializer.validated_data, request=request)
            return Response(ProductStockSerializer(stock).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if stock.sales_order_items.exists() or stock.remaining_quantity != stock.quantity:
            return Response(
                {'error': 'Cannot delete a stock batch that has already been used.'},
                status=status.HTTP_400_BAD_REQUEST
            )
        stock.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsCompanyAdmin])
@idempotent
def stock_remove(request, pk):
    """Remove quantity from a batch (damage, missing, expired, transfer)"""
    stock = get_object_or_404(_stock_queryset(request), pk=pk)
    serializer = StockRemovalSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    removal = services.remove_stock(
        stock,
        serializer.validated_data['quantity'],
        serializer.validated_data['reason'],
        remarks=serializer.validated_data.get('remarks', ''),
        user=request.user,
        request=request,
    )
    return Response({
        'removal': StockRemovalSerializer(removal).data,
        'stock': ProductStockSerializer(removal.product_stock).data,
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsCompanyMember])
def stock_removals(request, pk):
    """History of removals from a batch"""
    stock = get_object_or_404(_stock_queryset(request), pk=pk)
    return paginated_response(request, stock.removals.all().order_by('-id'), StockRemovalSerializer)


@api_view(['POST'])
@permission_classes([IsCompanyAdmin])
@idempotent
def stock_missing(request, pk):
    """Report missing items of a batch"""
    stock = get_object_or_404(_stock_queryset(request), pk=pk)
    serializer = MissingStockSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    stock = services.report_missing(stock, serializer.validated_data['quantity'], request=request)
    return Response(ProductStockSerializer(stock).data)


@api_view(['POST'])
@permission_classes([IsCompanyAdmin])
def stock_price(request, pk):
    """Change the selling price of a batch"""
    stock = get_object_or_404(_stock_queryset(request), pk=pk)
    serializer = SellingPriceSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    stock = services.update_selling_price(stock, serializer.validated_data['selling_price'], request=request)
    return Response(ProductStockSerializer(stock).data)
