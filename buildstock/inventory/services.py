"""
Stock batch operations.

Every decrement of remaining_quantity goes through a conditional UPDATE so two
concurrent writers can never take a batch below zero.
"""
import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from buildstock.core.cache_utils import invalidate_reports_cache
from buildstock.core.exceptions import BusinessRuleError, InsufficientStockError
from buildstock.core.utils import create_audit_log, format_quantity
from .models import ProductStock, StockRemoval

logger = logging.getLogger(__name__)


def decrement_remaining(stock_id, quantity):
    """
    Atomically take quantity out of a batch.

    Returns True when the row had enough remaining and was updated, False
    otherwise (nothing is written in that case).
    """
    updated = ProductStock.objects.filter(
        pk=stock_id,
        remaining_quantity__gte=quantity,
    ).update(
        remaining_quantity=F('remaining_quantity') - quantity,
        updated_at=timezone.now(),
    )
    return updated == 1


def _stock_audit(request, stock, action, message, changes=None):
    create_audit_log(
        request=request,
        action=action,
        model_name='ProductStock',
        object_id=stock.id,
        object_reference=stock.product.name,
        message=message,
        changes=changes,
        company=stock.company,
        product_id=stock.product_id,
        product_stock_id=stock.id,
        purchase_order_id=stock.purchase_order_id,
    )


def create_stock(company, user, data, request=None):
    """Manual stock entry; a new batch starts with remaining equal to quantity"""
    stock = ProductStock.objects.create(
        company=company,
        product=data['product'],
        cost=data['cost'],
        selling_price=data.get('selling_price') or Decimal('0.00'),
        hso_price=data.get('hso_price'),
        quantity=data['quantity'],
        remaining_quantity=data['quantity'],
        purchase_date=data.get('purchase_date') or timezone.localdate(),
        remarks=data.get('remarks', ''),
        created_by=user,
    )
    logger.info(f"Stock #{stock.id} added for {stock.product.name}: {stock.quantity}")
    _stock_audit(request, stock, 'stock_add', f"added stock ({format_quantity(stock.quantity)})")
    return stock


def update_stock(stock, data, request=None):
    """Edit the pricing and dating of a batch; quantities are not editable here"""
    editable = ('cost', 'selling_price', 'hso_price', 'purchase_date', 'remarks')
    changes = {}
    for field in editable:
        if field in data and getattr(stock, field) != data[field]:
            changes[field] = {'old': str(getattr(stock, field)), 'new': str(data[field])}
            setattr(stock, field, data[field])

    if not changes:
        return stock

    stock.save(update_fields=[*changes.keys(), 'updated_at'])
    if 'selling_price' in changes:
        message = f"Updated selling price from {changes['selling_price']['old']} to {changes['selling_price']['new']}"
        _stock_audit(request, stock, 'price_change', message, changes)
    else:
        _stock_audit(request, stock, 'update', 'updated this stock', changes)
    return stock


def update_selling_price(stock, selling_price, request=None):
    return update_stock(stock, {'selling_price': selling_price}, request=request)


@transaction.atomic
def remove_stock(stock, quantity, reason, remarks='', user=None, request=None):
    """Take quantity out of a batch for damage, loss, expiry or transfer"""
    if quantity <= 0:
        raise BusinessRuleError('Quantity must be greater than zero.')
    if quantity > stock.remaining_quantity or not decrement_remaining(stock.id, quantity):
        logger.warning(f"Rejected removal of {quantity} from stock #{stock.id} (remaining {stock.remaining_quantity})")
        raise InsufficientStockError(
            'Quantity exceeds the remaining quantity of this stock.', stock_ids=[stock.id]
        )

    removal = StockRemoval.objects.create(
        product_stock=stock, quantity=quantity, reason=reason, remarks=remarks, created_by=user
    )
    stock.refresh_from_db()
    invalidate_reports_cache(stock.company_id)
    _stock_audit(
        request, stock, 'stock_remove',
        f"removed {format_quantity(quantity)} ({reason})",
        {'quantity': str(quantity), 'reason': reason, 'remarks': remarks},
    )
    return removal


@transaction.atomic
def report_missing(stock, quantity, request=None):
    """Missing items leave the batch for good: quantity and remaining drop, missing grows"""
    if quantity <= 0:
        raise BusinessRuleError('Quantity must be greater than zero.')
    updated = ProductStock.objects.filter(
        pk=stock.pk,
        remaining_quantity__gte=quantity,
        quantity__gte=quantity,
    ).update(
        quantity=F('quantity') - quantity,
        remaining_quantity=F('remaining_quantity') - quantity,
        missing=F('missing') + quantity,
        updated_at=timezone.now(),
    )
    if updated != 1:
        raise InsufficientStockError(
            'Missing quantity exceeds the remaining quantity of this stock.', stock_ids=[stock.id]
        )

    stock.refresh_from_db()
    invalidate_reports_cache(stock.company_id)
    _stock_audit(
        request, stock, 'stock_missing',
        f"Added missing item({format_quantity(quantity)})",
        {'quantity': str(quantity)},
    )
    return stock
