from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.utils.dateparse import parse_date
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from buildstock.core import payments
from buildstock.core.idempotency import idempotent
from buildstock.core.pagination import paginated_response
from buildstock.core.permissions import IsCompanyMember, IsCompanyAdmin
from buildstock.core.serializers import PaymentInputSerializer
from buildstock.core.utils import company_scoped
from buildstock.inventory.serializers import ProductStockSerializer
from . import services
from .filters import SalesOrderFilter
from .models import SalesOrder, SalesOrderPayment
from .serializers import (
    SalesOrderSerializer, SalesOrderListSerializer, SalesOrderWriteSerializer,
    SalesOrderPaymentSerializer, ModifyQuantitiesSerializer, OtherChargesSerializer,
    RmcOrderSerializer, RmcPreviewSerializer
)


def _so_queryset(request):
    return company_scoped(SalesOrder.objects.all(), request).select_related('customer', 'created_by')


def _detail_response(so, response_status=status.HTTP_200_OK):
    so = SalesOrder.objects.select_related('customer', 'created_by').prefetch_related(
        'items', 'items__product_stock', 'items__product_stock__product', 'payments', 'payments__created_by'
    ).get(pk=so.pk)
    return Response(SalesOrderSerializer(so).data, status=response_status)


@api_view(['GET', 'POST'])
@permission_classes([IsCompanyMember])
@idempotent
def sales_order_list_create(request):
    """List all sales orders or create a new one"""
    if request.method == 'GET':
        queryset = SalesOrderFilter(request.query_params, queryset=_so_queryset(request)).qs
        return paginated_response(request, queryset.order_by('-id'), SalesOrderListSerializer)

    serializer = SalesOrderWriteSerializer(data=request.data, context={'request': request})
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = dict(serializer.validated_data)
    items = data.pop('items')
    so = services.create_sales_order(request.user.company, request.user, data, items, request=request)
    return _detail_response(so, status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsCompanyMember])
def sales_order_detail(request, pk):
    """Retrieve, update or delete a sales order"""
    so = get_object_or_404(_so_queryset(request), pk=pk)

    if request.method == 'GET':
        return _detail_response(so)
    elif request.method in ('PUT', 'PATCH'):
        serializer = SalesOrderWriteSerializer(
            data=request.data,
            partial=request.method == 'PATCH',
            context={'request': request, 'instance': so},
        )
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = dict(serializer.validated_data)
        items = data.pop('items', None)
        data.pop('so_number', None)
        so = services.update_sales_order(so, data, items, user=request.user, request=request)
        return _detail_response(so)
    else:  # DELETE
        if not request.user.is_admin:
            return Response({'error': 'Admin access required.'}, status=status.HTTP_403_FORBIDDEN)
        services.delete_sales_order(so, user=request.user, request=request)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsCompanyMember])
def sales_order_next_number(request):
    """Preview the next SO number for a date (today by default)"""
    date = parse_date(request.query_params.get('date', '')) or timezone.localdate()
    return Response({'so_number': services.generate_so_number(request.user.company, date)})


@api_view(['POST'])
@permission_classes([IsCompanyMember])
@idempotent
def sales_order_complete(request, pk):
    """Complete a sales order, deducting stock from its batches"""
    so = get_object_or_404(_so_queryset(request), pk=pk)
    so = services.complete_sales_order(so, user=request.user, request=request)
    return _detail_response(so)


@api_view(['POST'])
@permission_classes([IsCompanyMember])
@idempotent
def sales_order_modify(request, pk):
    """Lower item quantities of an open sales order"""
    so = get_object_or_404(_so_queryset(request), pk=pk)
    serializer = ModifyQuantitiesSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    so = services.modify_sales_order(so, serializer.to_quantities(), user=request.user, request=request)
    return _detail_response(so)


@api_view(['POST'])
@permission_classes([IsCompanyMember])
@idempotent
def sales_order_other_charges(request):
    """Create an other-charges order"""
    serializer = OtherChargesSerializer(data=request.data, context={'request': request})
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    so = services.create_other_charges_order(request.user.company, request.user, serializer.validated_data, request=request)
    return _detail_response(so, status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsCompanyMember])
def sales_order_rmc_preview(request):
    """Derived RMC materials and the batches they would come from; writes nothing"""
    serializer = RmcPreviewSerializer(data=request.data, context={'request': request})
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    materials, plan = services.plan_rmc_order(serializer.validated_data)
    return Response({
        'materials': {key: str(value) for key, value in materials.items()},
        'items': [
            {
                'material': line['material'],
                'quantity': str(line['quantity']),
                'product_stock': ProductStockSerializer(line['product_stock']).data,
            }
            for line in plan
        ],
    })


@api_view(['POST'])
@permission_classes([IsCompanyMember])
@idempotent
def sales_order_rmc(request):
    """Create a ready-mix concrete order"""
    serializer = RmcOrderSerializer(data=request.data, context={'request': request})
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    so = services.create_rmc_order(request.user.company, request.user, serializer.validated_data, request=request)
    return _detail_response(so, status.HTTP_201_CREATED)


@api_view(['GET', 'POST'])
@permission_classes([IsCompanyMember])
@idempotent
def sales_order_payments(request, pk):
    """List or add payments of a sales order"""
    so = get_object_or_404(_so_queryset(request), pk=pk)

    if request.method == 'GET':
        queryset = so.payments.select_related('created_by').order_by('-date', '-id')
        return Response(SalesOrderPaymentSerializer(queryset, many=True).data)

    serializer = PaymentInputSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    payment, so = payments.add_payment(so, serializer.validated_data, user=request.user, request=request)
    return Response({
        'payment': SalesOrderPaymentSerializer(payment).data,
        'payment_status': so.payment_status,
    }, status=status.HTTP_201_CREATED)


def _get_payment(request, pk, payment_id):
    so = get_object_or_404(_so_queryset(request), pk=pk)
    return get_object_or_404(SalesOrderPayment.objects.select_related('sales_order'), pk=payment_id, sales_order=so)


@api_view(['DELETE'])
@permission_classes([IsCompanyAdmin])
def sales_order_payment_detail(request, pk, payment_id):
    """Delete a payment of a sales order"""
    payment = _get_payment(request, pk, payment_id)
    so = payments.delete_payment(payment, user=request.user, request=request)
    return Response({'payment_status': so.payment_status})


@api_view(['POST'])
@permission_classes([IsCompanyMember])
def sales_order_payment_received(request, pk, payment_id):
    """Mark a post-dated cheque as received"""
    payment = _get_payment(request, pk, payment_id)
    payment = payments.mark_pdc_received(payment, user=request.user, request=request)
    return Response(SalesOrderPaymentSerializer(payment).data)
