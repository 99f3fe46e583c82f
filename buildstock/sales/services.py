"""
Sales order lifecycle: draft / reserved -> completed.

Stock is only taken out of batches on completion. Completion checks every
bound batch first and then decrements each one with a conditional UPDATE
inside the same transaction, so an order is either fully applied or not at all.
"""
import logging
import math
from collections import OrderedDict
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from buildstock.core import payments
from buildstock.core.cache_utils import invalidate_reports_cache
from buildstock.core.exceptions import BusinessRuleError, InsufficientStockError, InvalidTransitionError
from buildstock.core.models import Company
from buildstock.core.utils import create_audit_log, format_quantity, round_money
from buildstock.inventory.models import ProductStock
from buildstock.inventory.services import decrement_remaining
from .models import SalesOrder, SalesOrderItem

logger = logging.getLogger(__name__)

OPEN_STATUSES = ('draft', 'reserved')

# Raw materials per 10 cu.m of ready-mix concrete
RMC_BATCH_CU_M = Decimal('10')
RMC_CEMENT_BAGS_PER_BATCH = Decimal('100')
RMC_GRAVEL_CU_M_PER_BATCH = Decimal('1.5')
RMC_SAND_CU_M_PER_BATCH = Decimal('1')

RMC_MATERIALS = (
    ('cement_bags', 'cement_product'),
    ('gravel_cu_m', 'gravel_product'),
    ('sand_cu_m', 'sand_product'),
)


def calculate_item_total(unit_price, quantity, discount=0):
    return round_money(Decimal(str(unit_price)) * Decimal(str(quantity)) - Decimal(str(discount or 0)))


def calculate_total(items):
    """Order total: sum of unit_price x quantity - discount, rounded to cents"""
    return round_money(sum(
        (calculate_item_total(item['unit_price'], item['quantity'], item.get('discount')) for item in items),
        Decimal('0'),
    ))


def generate_so_number(company, date=None):
    """
    Next SO number for the year of date: two-digit year + three-digit series,
    e.g. 25001, 25002. Callers that insert the order should hold the company
    lock (see _lock_company) so two orders cannot take the same number.
    """
    date = date or timezone.localdate()
    prefix = f"{date.year % 100:02d}"
    series = 0
    numbers = SalesOrder.objects.filter(company=company, so_number__startswith=prefix).values_list('so_number', flat=True)
    for number in numbers:
        suffix = number[len(prefix):]
        if suffix.isdigit():
            series = max(series, int(suffix))
    return f"{prefix}{series + 1:03d}"


def _lock_company(company):
    return Company.objects.select_for_update().get(pk=company.pk)


def _so_audit(request, so, action, message, changes=None, user=None):
    create_audit_log(
        request=request,
        user=user,
        action=action,
        model_name='SalesOrder',
        object_id=so.id,
        object_reference=so.so_number,
        message=message,
        changes=changes,
        company=so.company,
        sales_order_id=so.id,
    )


def _lock(so):
    return SalesOrder.objects.select_for_update().get(pk=so.pk)


def _check_items_against_stock(items):
    """Each batch once per order, and never more than it has left"""
    seen = set()
    for item in items:
        stock = item['product_stock']
        if stock.id in seen:
            raise BusinessRuleError(f"Stock #{stock.id} ({stock.product.name}) is listed more than once.")
        seen.add(stock.id)
        if Decimal(str(item['quantity'])) > stock.remaining_quantity:
            raise InsufficientStockError(
                f"Only {format_quantity(stock.remaining_quantity)} of {stock.product.name} left in stock #{stock.id}.",
                stock_ids=[stock.id],
            )


def _create_items(so, items):
    SalesOrderItem.objects.bulk_create([
        SalesOrderItem(
            sales_order=so,
            product_stock=item['product_stock'],
            quantity=item['quantity'],
            unit_price=item['unit_price'],
            discount=item.get('discount') or Decimal('0.00'),
            total=calculate_item_total(item['unit_price'], item['quantity'], item.get('discount')),
            original_quantity=item['quantity'],
        )
        for item in items
    ])


def _new_order(company, user, data, **fields):
    _lock_company(company)
    date = data['date']
    so_number = data.get('so_number') or generate_so_number(company, date)
    if SalesOrder.objects.filter(company=company, so_number=so_number).exists():
        raise BusinessRuleError(f"Sales order number {so_number} is already used.")
    return SalesOrder.objects.create(
        company=company,
        customer=data['customer'],
        so_number=so_number,
        po_number=data.get('po_number') or '',
        date=date,
        delivery_fee=data.get('delivery_fee') or Decimal('0.00'),
        remarks=data.get('remarks') or '',
        payment_status='unpaid',
        created_by=user,
        **fields,
    )


@transaction.atomic
def create_sales_order(company, user, data, items, request=None):
    """Create a regular sales order; stock is reserved, not yet deducted"""
    if not items:
        raise BusinessRuleError('A sales order needs at least one item.')
    _check_items_against_stock(items)

    so = _new_order(
        company, user, data,
        status=data.get('status') or 'reserved',
        order_type='regular',
        total_amount=calculate_total(items),
    )
    _create_items(so, items)
    logger.info(f"Sales order {so.so_number} created with {len(items)} items, total {so.total_amount}")
    _so_audit(request, so, 'create', 'added this sales order', {'total_amount': str(so.total_amount)}, user=user)
    return so


@transaction.atomic
def update_sales_order(so, data, items=None, user=None, request=None):
    """Edit an open order; given items replace the existing ones"""
    so = _lock(so)
    if so.status not in OPEN_STATUSES:
        raise InvalidTransitionError('Completed sales orders cannot be edited.')
    payable_before = so.payable_total()

    for field in ('customer', 'po_number', 'date', 'delivery_fee', 'remarks', 'status'):
        if field in data and data[field] is not None:
            setattr(so, field, data[field])

    if items is not None:
        if so.order_type != 'regular':
            raise BusinessRuleError('Items of RMC and other-charges orders cannot be replaced.')
        if not items:
            raise BusinessRuleError('A sales order needs at least one item.')
        _check_items_against_stock(items)
        so.items.all().delete()
        _create_items(so, items)
        so.total_amount = calculate_total(items)
        so.modified = False

    so.save()
    if so.payable_total() != payable_before:
        payments.refresh_payment_status(so)
    _so_audit(request, so, 'update', 'updated this sales order', {'total_amount': str(so.total_amount)}, user=user)
    return so


@transaction.atomic
def delete_sales_order(so, user=None, request=None):
    so = _lock(so)
    if so.status not in OPEN_STATUSES:
        raise InvalidTransitionError('Completed sales orders cannot be deleted.')
    _so_audit(request, so, 'delete', 'deleted this sales order', user=user)
    so.delete()


@transaction.atomic
def complete_sales_order(so, user=None, request=None):
    """
    Deduct every item's quantity from its batch and mark the order completed.

    All batches are locked and checked before the first write; if any would go
    negative nothing is written and InsufficientStockError lists the batches.
    """
    so = _lock(so)
    if so.status not in OPEN_STATUSES:
        raise InvalidTransitionError('Sales order is already completed.')

    required = OrderedDict()
    for item in so.items.all().order_by('product_stock_id'):
        if item.quantity <= 0:
            continue
        required[item.product_stock_id] = required.get(item.product_stock_id, Decimal('0')) + item.quantity

    stocks = {
        stock.id: stock
        for stock in ProductStock.objects.select_for_update().filter(pk__in=required.keys()).order_by('pk')
    }
    short = [stock_id for stock_id, quantity in required.items() if stocks[stock_id].remaining_quantity < quantity]
    if short:
        logger.warning(f"Sales order {so.so_number} not completed, insufficient stock in batches {short}")
        raise InsufficientStockError(
            'Insufficient stock to complete this sales order.', stock_ids=short
        )

    for stock_id, quantity in required.items():
        if not decrement_remaining(stock_id, quantity):
            # Rolls back the decrements already applied in this transaction
            raise InsufficientStockError(
                'Insufficient stock to complete this sales order.', stock_ids=[stock_id]
            )

    so.status = 'completed'
    so.completed_by = user
    so.completed_at = timezone.now()
    so.save(update_fields=['status', 'completed_by', 'completed_at', 'updated_at'])
    invalidate_reports_cache(so.company_id)

    logger.info(f"Sales order {so.so_number} completed, {len(required)} batches deducted")
    _so_audit(
        request, so, 'complete', 'completed this sales order',
        {'deducted': {str(stock_id): str(quantity) for stock_id, quantity in required.items()}},
        user=user,
    )
    return so


@transaction.atomic
def modify_sales_order(so, quantities, user=None, request=None):
    """
    Lower item quantities of an open order.

    quantities maps item id -> new quantity, clamped to [0, original_quantity].
    Every change is appended to the item's logs and totals are recomputed.
    """
    so = _lock(so)
    if so.status not in OPEN_STATUSES:
        raise InvalidTransitionError('Completed sales orders cannot be modified.')

    items = {item.id: item for item in so.items.select_for_update()}
    unknown = set(quantities) - set(items)
    if unknown:
        raise BusinessRuleError(f"Items {sorted(unknown)} do not belong to this sales order.")

    modified_at = timezone.now().isoformat()
    modified_by = user.display_name if user else ''
    changed = {}
    for item_id, requested in quantities.items():
        item = items[item_id]
        new_quantity = min(max(Decimal(str(requested)), Decimal('0')), item.original_quantity)
        if new_quantity == item.quantity:
            continue
        item.logs = list(item.logs or []) + [{
            'modified_at': modified_at,
            'modified_by': modified_by,
            'previous_quantity': str(item.quantity),
            'new_quantity': str(new_quantity),
        }]
        changed[str(item_id)] = {'old': str(item.quantity), 'new': str(new_quantity)}
        item.quantity = new_quantity
        item.total = calculate_item_total(item.unit_price, item.quantity, item.discount)
        item.save(update_fields=['quantity', 'total', 'logs'])

    if not changed:
        return so

    so.modified = True
    if so.order_type == 'regular':
        so.total_amount = round_money(sum((item.total for item in items.values()), Decimal('0')))
        so.save(update_fields=['total_amount', 'modified', 'updated_at'])
        payments.refresh_payment_status(so)
    else:
        # RMC and other-charges totals do not follow item quantities
        so.save(update_fields=['modified', 'updated_at'])
    _so_audit(request, so, 'modify', 'modified item quantities', changed, user=user)
    return so


@transaction.atomic
def create_other_charges_order(company, user, data, request=None):
    """An order with no items that bills a described charge"""
    amount = round_money(data['other_charges_amount'])
    so = _new_order(
        company, user, data,
        status='reserved',
        order_type='other_charges',
        other_charges=data['other_charges'],
        other_charges_amount=amount,
        total_amount=amount,
    )
    _so_audit(request, so, 'create', f"added other charges ({so.other_charges})", {'total_amount': str(amount)}, user=user)
    return so


def derive_rmc_materials(quantity_cu_m, overrides=None):
    """
    Raw materials for a ready-mix concrete volume.

    Per 10 cu.m: 100 bags of cement, 1.5 cu.m gravel, 1 cu.m sand. Cement is
    rounded up to whole bags. A non-None override replaces the derived value.
    """
    quantity_cu_m = Decimal(str(quantity_cu_m))
    batches = quantity_cu_m / RMC_BATCH_CU_M
    materials = {
        'cement_bags': Decimal(math.ceil(batches * RMC_CEMENT_BAGS_PER_BATCH)),
        'gravel_cu_m': round_money(batches * RMC_GRAVEL_CU_M_PER_BATCH),
        'sand_cu_m': round_money(batches * RMC_SAND_CU_M_PER_BATCH),
    }
    for key, value in (overrides or {}).items():
        if key in materials and value is not None:
            materials[key] = Decimal(str(value))
    return materials


def first_in_stock(product):
    """Oldest batch of a product that still has stock"""
    return ProductStock.objects.filter(
        product=product, remaining_quantity__gt=0
    ).select_related('product').order_by('purchase_date', 'id').first()


def plan_rmc_order(data):
    """
    Materials and the batch each is drawn from. Only the first-in batch of each
    product is used; a material that needs more than that batch has is rejected,
    and so is a batch that would supply two materials.
    """
    overrides = {key: data.get(key) for key, _ in RMC_MATERIALS}
    materials = derive_rmc_materials(data['quantity_cu_m'], overrides)

    plan = []
    for key, product_field in RMC_MATERIALS:
        quantity = materials[key]
        if quantity <= 0:
            continue
        product = data[product_field]
        stock = first_in_stock(product)
        if stock is None:
            raise InsufficientStockError(f"{product.name} is out of stock.")
        if any(line['product_stock'].id == stock.id for line in plan):
            raise BusinessRuleError(f"{product.name} is selected for more than one material.")
        if quantity > stock.remaining_quantity:
            raise InsufficientStockError(
                f"{product.name} needs {format_quantity(quantity)} but stock #{stock.id} "
                f"has only {format_quantity(stock.remaining_quantity)} left.",
                stock_ids=[stock.id],
            )
        plan.append({'material': key, 'product_stock': stock, 'quantity': quantity})
    return materials, plan


@transaction.atomic
def create_rmc_order(company, user, data, request=None):
    """Create a reserved RMC order with one zero-priced item per raw material"""
    materials, plan = plan_rmc_order(data)
    if not plan:
        raise BusinessRuleError('An RMC order needs at least one material.')

    quantity_cu_m = Decimal(str(data['quantity_cu_m']))
    price_per_cu_m = Decimal(str(data['price_per_cu_m']))
    so = _new_order(
        company, user, data,
        status='reserved',
        order_type='rmc',
        quantity_cu_m=quantity_cu_m,
        price_per_cu_m=price_per_cu_m,
        total_amount=round_money(quantity_cu_m * price_per_cu_m),
    )
    _create_items(so, [
        {'product_stock': line['product_stock'], 'quantity': line['quantity'], 'unit_price': Decimal('0.00')}
        for line in plan
    ])

    logger.info(f"RMC order {so.so_number} created for {quantity_cu_m} cu.m")
    _so_audit(
        request, so, 'create', f"created RMC order for {format_quantity(quantity_cu_m)} cu.m",
        {key: str(value) for key, value in materials.items()}, user=user,
    )
    return so
