import logging
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db.models import Sum, Count, F, Value, DecimalField, ExpressionWrapper
from django.db.models.functions import Coalesce, TruncWeek
from django.utils import timezone
from django.utils.dateparse import parse_date
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from buildstock.catalog.models import Product
from buildstock.core.cache_utils import get_cached_report, cache_report
from buildstock.core.pagination import paginated_response
from buildstock.core.permissions import IsCompanyMember
from buildstock.inventory.models import ProductStock
from buildstock.purchasing.models import PurchaseOrder, PurchaseOrderPayment
from buildstock.sales.models import SalesOrder, SalesOrderItem, SalesOrderPayment
from buildstock.sales.serializers import SalesOrderListSerializer
from .serializers import OutstandingOrderSerializer

logger = logging.getLogger(__name__)

MONEY = DecimalField(max_digits=20, decimal_places=4)
ZERO = Value(Decimal('0'), output_field=MONEY)
TOP_LIMIT = 10


def _sum(queryset, expression):
    return queryset.aggregate(total=Coalesce(Sum(expression, output_field=MONEY), ZERO))['total']


def _date_param(request, name):
    value = request.query_params.get(name)
    return parse_date(value) if value else None


def _open_sales(company_id):
    """Sales that count as sold: everything but drafts"""
    return SalesOrder.objects.filter(company_id=company_id).exclude(status='draft')


def build_dashboard(company_id, date_from=None, date_to=None):
    """Dashboard figures for a company; sales totals honour the optional date range"""
    today = timezone.localdate()
    stocks = ProductStock.objects.filter(company_id=company_id)
    sales = _open_sales(company_id)
    ranged_sales = sales
    if date_from:
        ranged_sales = ranged_sales.filter(date__gte=date_from)
    if date_to:
        ranged_sales = ranged_sales.filter(date__lte=date_to)

    total_payable = _sum(sales, F('total_amount') + F('delivery_fee'))
    total_received = _sum(SalesOrderPayment.objects.filter(sales_order__in=sales), 'amount')

    low_stock = Product.objects.filter(company_id=company_id).with_current_quantity().filter(
        current_quantity__lt=settings.LOW_STOCK_THRESHOLD
    ).select_related('category').order_by('current_quantity', 'name')

    best_sellers = SalesOrderItem.objects.filter(sales_order__in=ranged_sales).values(
        product_id=F('product_stock__product_id'),
        product_name=F('product_stock__product__name'),
        unit=F('product_stock__product__unit'),
    ).annotate(
        quantity_sold=Sum('quantity'),
        amount=Sum('total'),
    ).order_by('-quantity_sold')[:TOP_LIMIT]

    top_customers = ranged_sales.values(
        'customer_id', customer_name=F('customer__name'),
    ).annotate(
        total=Sum('total_amount'),
        orders=Count('id'),
    ).order_by('-total')[:TOP_LIMIT]

    return {
        'stock_cost_value': float(_sum(stocks, F('remaining_quantity') * F('cost'))),
        'stock_price_value': float(_sum(stocks, F('remaining_quantity') * F('selling_price'))),
        'todays_sales': float(_sum(sales.filter(date=today), 'total_amount')),
        'total_sales': float(_sum(ranged_sales, 'total_amount')),
        'total_sales_orders': ranged_sales.count(),
        'total_purchases': float(_sum(
            PurchaseOrder.objects.filter(company_id=company_id).exclude(status='draft'), 'total_amount'
        )),
        'outstanding_payments': float(total_payable - total_received),
        'low_stock_threshold': settings.LOW_STOCK_THRESHOLD,
        'low_stock_products': [
            {
                'id': product.id,
                'name': product.name,
                'unit': product.unit,
                'category_name': product.category.name,
                'current_quantity': float(product.current_quantity),
            }
            for product in low_stock
        ],
        'best_selling_products': [
            {
                'product_id': row['product_id'],
                'product_name': row['product_name'],
                'unit': row['unit'],
                'quantity_sold': float(row['quantity_sold']),
                'amount': float(row['amount']),
            }
            for row in best_sellers
        ],
        'top_customers': [
            {
                'customer_id': row['customer_id'],
                'customer_name': row['customer_name'],
                'total': float(row['total']),
                'orders': row['orders'],
            }
            for row in top_customers
        ],
    }


@api_view(['GET'])
@permission_classes([IsCompanyMember])
def dashboard(request):
    """Dashboard KPIs with optional date range for the sales figures"""
    company_id = request.user.company_id
    date_from = _date_param(request, 'date_from')
    date_to = _date_param(request, 'date_to')

    cached, cache_key = get_cached_report(
        'dashboard', company_id, date_from=str(date_from), date_to=str(date_to), today=str(timezone.localdate())
    )
    if cached is not None:
        return Response(cached)

    data = build_dashboard(company_id, date_from, date_to)
    cache_report(cache_key, data)
    response = Response(data)
    response['Cache-Control'] = 'private, max-age=60'
    return response


def weekly_sales_series(company_id, today=None, weeks=None):
    """
    Sales totals per week (weeks start Monday) from two months back to this
    week; weeks without sales are included with zero.
    """
    today = today or timezone.localdate()
    this_week = today - timedelta(days=today.weekday())
    start = this_week - timedelta(weeks=weeks or 8)

    rows = _open_sales(company_id).filter(date__gte=start, date__lte=today).annotate(
        week=TruncWeek('date')
    ).values('week').annotate(
        total=Sum('total_amount'),
        orders=Count('id'),
    ).order_by('week')
    by_week = {}
    for row in rows:
        week = row['week']
        if hasattr(week, 'date'):
            week = week.date()
        by_week[week] = row

    series = []
    week = start
    while week <= this_week:
        row = by_week.get(week)
        series.append({
            'week_start': week.isoformat(),
            'total': float(row['total']) if row else 0.0,
            'orders': row['orders'] if row else 0,
        })
        week += timedelta(weeks=1)
    return series


@api_view(['GET'])
@permission_classes([IsCompanyMember])
def weekly_sales(request):
    """Weekly sales for the last two months"""
    return Response({'results': weekly_sales_series(request.user.company_id)})


@api_view(['GET'])
@permission_classes([IsCompanyMember])
def outstanding_payments(request):
    """Sales orders that still have a balance to collect"""
    queryset = _open_sales(request.user.company_id).exclude(payment_status='paid').select_related('customer').annotate(
        paid=Coalesce(Sum('payments__amount', output_field=MONEY), ZERO),
    ).annotate(
        balance=ExpressionWrapper(F('total_amount') + F('delivery_fee') - F('paid'), output_field=MONEY),
    ).filter(balance__gt=0)

    customer = request.query_params.get('customer')
    if customer:
        queryset = queryset.filter(customer_id=customer)
    return paginated_response(request, queryset.order_by('date', 'id'), OutstandingOrderSerializer)


@api_view(['GET'])
@permission_classes([IsCompanyMember])
def sales_report(request):
    """Completed sales orders with totals, filtered by customer, dates and payment status"""
    queryset = SalesOrder.objects.filter(
        company_id=request.user.company_id, status='completed'
    ).select_related('customer')

    customer = request.query_params.get('customer')
    payment_status = request.query_params.get('payment_status')
    date_from = _date_param(request, 'date_from')
    date_to = _date_param(request, 'date_to')
    if customer:
        queryset = queryset.filter(customer_id=customer)
    if payment_status:
        queryset = queryset.filter(payment_status=payment_status)
    if date_from:
        queryset = queryset.filter(date__gte=date_from)
    if date_to:
        queryset = queryset.filter(date__lte=date_to)

    total_amount = _sum(queryset, 'total_amount')
    total_paid = _sum(SalesOrderPayment.objects.filter(sales_order__in=queryset), 'amount')

    response = paginated_response(request, queryset.order_by('-date', '-id'), SalesOrderListSerializer)
    response.data['totals'] = {
        'total_amount': float(total_amount),
        'total_paid': float(total_paid),
        'balance': float(_sum(queryset, F('total_amount') + F('delivery_fee')) - total_paid),
    }
    return response


@api_view(['GET'])
@permission_classes([IsCompanyMember])
def pdc_payments(request):
    """Post-dated cheques of sales and purchase orders, soonest due first"""
    company_id = request.user.company_id
    due_before = _date_param(request, 'due_before')
    due_after = _date_param(request, 'due_after')

    sales_pdcs = SalesOrderPayment.objects.filter(
        sales_order__company_id=company_id, type='PDC'
    ).select_related('sales_order', 'sales_order__customer')
    purchase_pdcs = PurchaseOrderPayment.objects.filter(
        purchase_order__company_id=company_id, type='PDC'
    ).select_related('purchase_order', 'purchase_order__supplier')
    if due_before:
        sales_pdcs = sales_pdcs.filter(due_date__lte=due_before)
        purchase_pdcs = purchase_pdcs.filter(due_date__lte=due_before)
    if due_after:
        sales_pdcs = sales_pdcs.filter(due_date__gte=due_after)
        purchase_pdcs = purchase_pdcs.filter(due_date__gte=due_after)

    results = [
        {
            'id': payment.id,
            'kind': 'sales',
            'order_id': payment.sales_order_id,
            'order_number': payment.sales_order.so_number,
            'party_name': payment.sales_order.customer.name,
            'amount': float(payment.amount),
            'bank': payment.bank,
            'date': payment.date.isoformat(),
            'due_date': payment.due_date.isoformat() if payment.due_date else None,
        }
        for payment in sales_pdcs
    ] + [
        {
            'id': payment.id,
            'kind': 'purchase',
            'order_id': payment.purchase_order_id,
            'order_number': payment.purchase_order.po_number,
            'party_name': payment.purchase_order.supplier.name,
            'amount': float(payment.amount),
            'bank': payment.bank,
            'date': payment.date.isoformat(),
            'due_date': payment.due_date.isoformat() if payment.due_date else None,
        }
        for payment in purchase_pdcs
    ]
    results.sort(key=lambda row: (row['due_date'] or '9999-12-31', row['kind'], row['id']))
    return Response({'results': results, 'count': len(results)})
