from django.shortcuts import get_object_or_404
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
from .filters import PurchaseOrderFilter
from .models import PurchaseOrder, PurchaseOrderPayment
from .serializers import (
    PurchaseOrderSerializer, PurchaseOrderListSerializer, PurchaseOrderWriteSerializer,
    PurchaseOrderPaymentSerializer, PartialDeliverySerializer
)


def _po_queryset(request):
    return company_scoped(PurchaseOrder.objects.all(), request).select_related(
        'supplier', 'created_by', 'approved_by'
    )


def _detail_response(po, response_status=status.HTTP_200_OK, **extra):
    po = PurchaseOrder.objects.select_related('supplier', 'created_by', 'approved_by').prefetch_related(
        'items', 'items__product', 'payments', 'payments__created_by'
    ).get(pk=po.pk)
    data = PurchaseOrderSerializer(po).data
    data.update(extra)
    return Response(data, status=response_status)


@api_view(['GET', 'POST'])
@permission_classes([IsCompanyMember])
@idempotent
def purchase_order_list_create(request):
    """List all purchase orders or create a new one"""
    if request.method == 'GET':
        queryset = PurchaseOrderFilter(request.query_params, queryset=_po_queryset(request)).qs
        return paginated_response(request, queryset.order_by('-id'), PurchaseOrderListSerializer)

    serializer = PurchaseOrderWriteSerializer(data=request.data, context={'request': request})
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = dict(serializer.validated_data)
    items = data.pop('items')
    po = services.create_purchase_order(request.user.company, request.user, data, items, request=request)
    return _detail_response(po, status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsCompanyMember])
def purchase_order_detail(request, pk):
    """Retrieve, update or delete a purchase order"""
    po = get_object_or_404(_po_queryset(request), pk=pk)

    if request.method == 'GET':
        return _detail_response(po)
    elif request.method in ('PUT', 'PATCH'):
        serializer = PurchaseOrderWriteSerializer(
            data=request.data,
            partial=request.method == 'PATCH',
            context={'request': request, 'instance': po},
        )
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = dict(serializer.validated_data)
        items = data.pop('items', None)
        po = services.update_purchase_order(po, data, items, user=request.user, request=request)
        return _detail_response(po)
    else:  # DELETE
        if not request.user.is_admin:
            return Response({'error': 'Admin access required.'}, status=status.HTTP_403_FORBIDDEN)
        services.delete_purchase_order(po, user=request.user, request=request)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsCompanyMember])
@idempotent
def purchase_order_approve(request, pk):
    """Approve a draft purchase order"""
    po = get_object_or_404(_po_queryset(request), pk=pk)
    po = services.approve_purchase_order(po, user=request.user, request=request)
    return _detail_response(po)


@api_view(['POST'])
@permission_classes([IsCompanyMember])
@idempotent
def purchase_order_deliver(request, pk):
    """Receive every outstanding item of a purchase order"""
    po = get_object_or_404(_po_queryset(request), pk=pk)
    po, stocks = services.deliver_purchase_order(po, user=request.user, request=request)
    return _detail_response(po, stocks=ProductStockSerializer(stocks, many=True).data)


@api_view(['POST'])
@permission_classes([IsCompanyMember])
@idempotent
def purchase_order_partial_deliver(request, pk):
    """Receive part of a purchase order"""
    po = get_object_or_404(_po_queryset(request), pk=pk)
    serializer = PartialDeliverySerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    po, stocks = services.partial_deliver_purchase_order(
        po, serializer.to_deliveries(), user=request.user, request=request
    )
    return _detail_response(po, stocks=ProductStockSerializer(stocks, many=True).data)


@api_view(['GET', 'POST'])
@permission_classes([IsCompanyMember])
@idempotent
def purchase_order_payments(request, pk):
    """List or add payments of a purchase order"""
    po = get_object_or_404(_po_queryset(request), pk=pk)

    if request.method == 'GET':
        queryset = po.payments.select_related('created_by').order_by('-date', '-id')
        return Response(PurchaseOrderPaymentSerializer(queryset, many=True).data)

    serializer = PaymentInputSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    payment, po = payments.add_payment(po, serializer.validated_data, user=request.user, request=request)
    return Response({
        'payment': PurchaseOrderPaymentSerializer(payment).data,
        'payment_status': po.payment_status,
    }, status=status.HTTP_201_CREATED)


def _get_payment(request, pk, payment_id):
    po = get_object_or_404(_po_queryset(request), pk=pk)
    return get_object_or_404(PurchaseOrderPayment.objects.select_related('purchase_order'), pk=payment_id, purchase_order=po)


@api_view(['DELETE'])
@permission_classes([IsCompanyAdmin])
def purchase_order_payment_detail(request, pk, payment_id):
    """Delete a payment of a purchase order"""
    payment = _get_payment(request, pk, payment_id)
    po = payments.delete_payment(payment, user=request.user, request=request)
    return Response({'payment_status': po.payment_status})


@api_view(['POST'])
@permission_classes([IsCompanyMember])
def purchase_order_payment_received(request, pk, payment_id):
    """Mark a post-dated cheque as received"""
    payment = _get_payment(request, pk, payment_id)
    payment = payments.mark_pdc_received(payment, user=request.user, request=request)
    return Response(PurchaseOrderPaymentSerializer(payment).data)
