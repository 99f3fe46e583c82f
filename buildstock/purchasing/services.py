"""
Purchase order lifecycle: draft -> approved -> partially_delivered -> delivered.

Each transition runs in one transaction: item updates, the stock batches a
delivery creates and the order status either all commit or none do.
"""
import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from buildstock.core import payments
from buildstock.core.exceptions import BusinessRuleError, InvalidTransitionError
from buildstock.core.utils import create_audit_log, round_money
from buildstock.inventory.models import ProductStock
from .models import PurchaseOrder, PurchaseOrderItem

logger = logging.getLogger(__name__)

DELIVERABLE_STATUSES = ('approved', 'partially_delivered')


def calculate_total(items):
    """Order total: sum of cost x quantity, rounded to cents"""
    return round_money(sum(
        (Decimal(str(item['cost'])) * Decimal(str(item['quantity'])) for item in items),
        Decimal('0'),
    ))


def _po_audit(request, po, action, message, changes=None, user=None):
    create_audit_log(
        request=request,
        user=user,
        action=action,
        model_name='PurchaseOrder',
        object_id=po.id,
        object_reference=po.po_number,
        message=message,
        changes=changes,
        company=po.company,
        purchase_order_id=po.id,
    )


def _create_items(po, items):
    PurchaseOrderItem.objects.bulk_create([
        PurchaseOrderItem(
            purchase_order=po,
            product=item['product'],
            quantity=item['quantity'],
            cost=item['cost'],
            price=item.get('price') or Decimal('0.00'),
            delivered=Decimal('0'),
            to_deliver=item['quantity'],
        )
        for item in items
    ])


def _lock(po):
    return PurchaseOrder.objects.select_for_update().get(pk=po.pk)


@transaction.atomic
def create_purchase_order(company, user, data, items, request=None):
    """Create a draft purchase order with its items"""
    if not items:
        raise BusinessRuleError('A purchase order needs at least one item.')

    po = PurchaseOrder.objects.create(
        company=company,
        supplier=data['supplier'],
        po_number=data['po_number'],
        date=data['date'],
        remarks=data.get('remarks', ''),
        status='draft',
        payment_status='unpaid',
        total_amount=calculate_total(items),
        created_by=user,
    )
    _create_items(po, items)
    logger.info(f"Purchase order {po.po_number} created with {len(items)} items, total {po.total_amount}")
    _po_audit(request, po, 'create', 'added this purchase order', {'total_amount': str(po.total_amount)}, user=user)
    return po


@transaction.atomic
def update_purchase_order(po, data, items=None, user=None, request=None):
    """
    Edit a draft order. When items are given they replace the existing ones
    and the total is recomputed; header-only edits keep the items.
    """
    po = _lock(po)
    if po.status != 'draft':
        raise InvalidTransitionError('Only draft purchase orders can be edited.')

    for field in ('supplier', 'po_number', 'date', 'remarks'):
        if field in data:
            setattr(po, field, data[field])

    if items is not None:
        if not items:
            raise BusinessRuleError('A purchase order needs at least one item.')
        po.items.all().delete()
        _create_items(po, items)
        po.total_amount = calculate_total(items)

    po.save()
    if items is not None:
        payments.refresh_payment_status(po)
    _po_audit(request, po, 'update', 'updated this purchase order', {'total_amount': str(po.total_amount)}, user=user)
    return po


@transaction.atomic
def delete_purchase_order(po, user=None, request=None):
    po = _lock(po)
    if po.status != 'draft':
        raise InvalidTransitionError('Only draft purchase orders can be deleted.')
    _po_audit(request, po, 'delete', 'deleted this purchase order', user=user)
    po.delete()


@transaction.atomic
def approve_purchase_order(po, user=None, request=None):
    po = _lock(po)
    if po.status != 'draft':
        raise InvalidTransitionError(f"Cannot approve a purchase order that is {po.get_status_display().lower()}.")
    po.status = 'approved'
    po.approved_by = user
    po.approved_at = timezone.now()
    po.save(update_fields=['status', 'approved_by', 'approved_at', 'updated_at'])
    logger.info(f"Purchase order {po.po_number} approved")
    _po_audit(request, po, 'approve', 'approved this purchase order', user=user)
    return po


def _receive(po, item, quantity, user):
    """Turn quantity of an item into a new stock batch dated today"""
    stock = ProductStock.objects.create(
        company=po.company,
        product=item.product,
        purchase_order=po,
        cost=item.cost,
        selling_price=item.price,
        quantity=quantity,
        remaining_quantity=quantity,
        purchase_date=timezone.localdate(),
        created_by=user,
    )
    item.delivered += quantity
    item.to_deliver = max(Decimal('0'), item.to_deliver - quantity)
    item.save(update_fields=['delivered', 'to_deliver'])
    return stock


def _finish_delivery(po, items):
    po.status = 'delivered' if all(item.to_deliver == 0 for item in items) else 'partially_delivered'
    if po.status == 'delivered':
        po.delivered_at = timezone.now()
    po.save(update_fields=['status', 'delivered_at', 'updated_at'])


@transaction.atomic
def deliver_purchase_order(po, user=None, request=None):
    """Receive everything still outstanding; one batch per item"""
    po = _lock(po)
    if po.status not in DELIVERABLE_STATUSES:
        raise InvalidTransitionError('Only approved or partially delivered purchase orders can be delivered.')

    items = list(po.items.select_related('product').select_for_update())
    stocks = [_receive(po, item, item.to_deliver, user) for item in items if item.to_deliver > 0]
    _finish_delivery(po, items)

    logger.info(f"Purchase order {po.po_number} delivered, {len(stocks)} stock batches created")
    _po_audit(
        request, po, 'deliver', 'delivered this purchase order',
        {'stock_ids': [stock.id for stock in stocks]}, user=user,
    )
    return po, stocks


@transaction.atomic
def partial_deliver_purchase_order(po, deliveries, user=None, request=None):
    """
    Receive part of an order.

    deliveries maps item id -> quantity received. Each quantity is clamped to
    what the item still has to deliver; zero or negative quantities are ignored.
    """
    po = _lock(po)
    if po.status not in DELIVERABLE_STATUSES:
        raise InvalidTransitionError('Only approved or partially delivered purchase orders can receive deliveries.')

    items = list(po.items.select_related('product').select_for_update())
    known_ids = {item.id for item in items}
    unknown = set(deliveries) - known_ids
    if unknown:
        raise BusinessRuleError(f"Items {sorted(unknown)} do not belong to this purchase order.")

    stocks = []
    received = {}
    for item in items:
        requested = Decimal(str(deliveries.get(item.id, 0)))
        quantity = min(requested, item.to_deliver)
        if quantity <= 0:
            continue
        stocks.append(_receive(po, item, quantity, user))
        received[str(item.id)] = str(quantity)

    if not stocks:
        raise BusinessRuleError('Nothing to deliver.')

    _finish_delivery(po, items)
    logger.info(f"Purchase order {po.po_number} partial delivery: {received}, status {po.status}")
    _po_audit(request, po, 'partial_deliver', 'received partial delivery', {'received': received}, user=user)
    return po, stocks
