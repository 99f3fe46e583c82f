"""
Payment tracking shared by purchase and sales orders.

An order exposes ``payments`` (reverse FK), ``payable_total()``,
``payment_status`` and ``audit_refs()``; both order models do.
"""
import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Sum

from .exceptions import BusinessRuleError
from .utils import compute_payment_status, create_audit_log

logger = logging.getLogger(__name__)


def total_paid(order):
    return order.payments.aggregate(total=Sum('amount'))['total'] or Decimal('0.00')


def refresh_payment_status(order):
    """Recompute payment_status from the payments that exist now"""
    order.payment_status = compute_payment_status(order.payable_total(), total_paid(order))
    order.save(update_fields=['payment_status', 'updated_at'])
    return order.payment_status


def _lock(order):
    return order.__class__.objects.select_for_update().get(pk=order.pk)


def _order_reference(order):
    return getattr(order, 'so_number', None) or getattr(order, 'po_number', None)


@transaction.atomic
def add_payment(order, data, user=None, request=None):
    """
    Record a payment and update the order's payment status.

    Rejected when the amount is not positive or the order is already fully
    paid. The order row is locked so two payments cannot both read the same
    prior total.
    """
    order = _lock(order)
    amount = Decimal(str(data['amount']))
    if amount <= 0:
        raise BusinessRuleError('Payment amount must be greater than zero.')

    paid_before = total_paid(order)
    if paid_before >= order.payable_total():
        raise BusinessRuleError('Order is already fully paid.')

    payment = order.payments.create(
        date=data['date'],
        amount=amount,
        type=data.get('type') or 'Cash',
        bank=data.get('bank') or '',
        due_date=data.get('due_date'),
        remarks=data.get('remarks') or '',
        created_by=user,
    )
    status_after = refresh_payment_status(order)
    logger.info(f"Payment {amount} ({payment.type}) added to {order.__class__.__name__} {_order_reference(order)}: {status_after}")

    create_audit_log(
        request=request,
        user=user,
        action='payment_add',
        model_name=order.__class__.__name__,
        object_id=order.id,
        object_reference=_order_reference(order),
        message=f"received payment ({payment.type})",
        changes={'amount': str(amount), 'payment_status': status_after},
        company=order.company,
        **order.audit_refs(),
    )
    return payment, order


@transaction.atomic
def delete_payment(payment, user=None, request=None):
    """Remove a payment and recompute the order's payment status"""
    order = _lock(payment.order)
    amount, payment_type = payment.amount, payment.type
    payment.delete()
    status_after = refresh_payment_status(order)

    create_audit_log(
        request=request,
        user=user,
        action='payment_delete',
        model_name=order.__class__.__name__,
        object_id=order.id,
        object_reference=_order_reference(order),
        message=f"deleted payment ({payment_type})",
        changes={'amount': str(amount), 'payment_status': status_after},
        company=order.company,
        **order.audit_refs(),
    )
    return order


def mark_pdc_received(payment, user=None, request=None):
    """A post-dated cheque that has been received becomes a plain cheque"""
    if payment.type != 'PDC':
        raise BusinessRuleError('Only post-dated cheques can be marked as received.')
    payment.type = 'Cheque'
    payment.save(update_fields=['type'])

    order = payment.order
    create_audit_log(
        request=request,
        user=user,
        action='payment_received',
        model_name=order.__class__.__name__,
        object_id=order.id,
        object_reference=_order_reference(order),
        message='received post-dated cheque',
        changes={'payment_id': payment.id, 'amount': str(payment.amount)},
        company=order.company,
        **order.audit_refs(),
    )
    return payment
