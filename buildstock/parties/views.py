from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from buildstock.core.pagination import paginated_response
from buildstock.core.permissions import IsCompanyMember
from buildstock.core.utils import company_scoped
from buildstock.sales.models import SalesOrder
from buildstock.sales.serializers import SalesOrderListSerializer
from .filters import CustomerFilter, SupplierFilter
from .models import Customer, Supplier
from .serializers import CustomerSerializer, SupplierSerializer


def _list_create(request, model, filter_class, serializer_class):
    if request.method == 'GET':
        queryset = filter_class(request.query_params, queryset=company_scoped(model.objects.all(), request)).qs
        return paginated_response(request, queryset.order_by('-id'), serializer_class)

    serializer = serializer_class(data=request.data)
    if serializer.is_valid():
        serializer.save(company=request.user.company)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


def _detail(request, instance, serializer_class, in_use_error):
    if request.method == 'GET':
        return Response(serializer_class(instance).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = serializer_class(instance, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if not request.user.is_admin:
            return Response({'error': 'Admin access required.'}, status=status.HTTP_403_FORBIDDEN)
        if in_use_error:
            return Response({'error': in_use_error}, status=status.HTTP_400_BAD_REQUEST)
        instance.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsCompanyMember])
def customer_list_create(request):
    """List all customers or create a new customer"""
    return _list_create(request, Customer, CustomerFilter, CustomerSerializer)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsCompanyMember])
def customer_detail(request, pk):
    """Retrieve, update or delete a customer"""
    customer = get_object_or_404(company_scoped(Customer.objects.all(), request), pk=pk)
    in_use = 'Customer has sales orders.' if request.method == 'DELETE' and customer.sales_orders.exists() else None
    return _detail(request, customer, CustomerSerializer, in_use)


@api_view(['GET'])
@permission_classes([IsCompanyMember])
def customer_orders(request, pk):
    """Sales orders of one customer"""
    customer = get_object_or_404(company_scoped(Customer.objects.all(), request), pk=pk)
    queryset = SalesOrder.objects.filter(customer=customer).select_related('customer').order_by('-id')
    status_filter = request.query_params.get('status')
    if status_filter:
        queryset = queryset.filter(status=status_filter)
    return paginated_response(request, queryset, SalesOrderListSerializer)


@api_view(['GET', 'POST'])
@permission_classes([IsCompanyMember])
def supplier_list_create(request):
    """List all suppliers or create a new supplier"""
    return _list_create(request, Supplier, SupplierFilter, SupplierSerializer)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsCompanyMember])
def supplier_detail(request, pk):
    """Retrieve, update or delete a supplier"""
    supplier = get_object_or_404(company_scoped(Supplier.objects.all(), request), pk=pk)
    in_use = 'Supplier has purchase orders.' if request.method == 'DELETE' and supplier.purchase_orders.exists() else None
    return _detail(request, supplier, SupplierSerializer, in_use)
