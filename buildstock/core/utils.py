"""Audit logging and shared money helpers"""
import logging
from decimal import Decimal, ROUND_HALF_UP

from django.db import transaction

from .models import AuditLog

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal('0.01')


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     message='', changes=None, user=None, company=None,
                     object_reference=None, product_id=None, product_stock_id=None,
                     purchase_order_id=None, sales_order_id=None):
    """
    Create an audit log entry

    Args:
        request: DRF/Django request (for user and IP), optional if user is given
        action: Action type (create, deliver, payment_add, ...)
        model_name: Name of the model being acted upon
        object_id: Primary key of the object
        message: Human readable description, e.g. "received partial delivery"
        changes: Dictionary of changes made
        user: Optional user override (defaults to request.user)
        company: Optional company override (defaults to the user's company)
        object_reference: Reference number (po_number, so_number)
        product_id, product_stock_id, purchase_order_id, sales_order_id:
            ids that the per-entity history views filter on
    """
    audit_user = user
    if audit_user is None and request is not None and hasattr(request, 'user'):
        audit_user = request.user
    if audit_user is not None and not audit_user.is_authenticated:
        audit_user = None

    if not action or not model_name or object_id is None:
        logger.warning(f"Audit log creation skipped: missing required fields (action={action}, model_name={model_name}, object_id={object_id})")
        return None

    try:
        # Savepoint keeps a failed insert from poisoning the caller's transaction
        with transaction.atomic():
            return AuditLog.objects.create(
                company=company or getattr(audit_user, 'company', None),
                user=audit_user,
                user_name=audit_user.display_name if audit_user else '',
                action=action,
                model_name=model_name,
                object_id=str(object_id),
                object_reference=object_reference,
                message=message,
                changes=changes or {},
                ip_address=get_client_ip(request) if request else None,
                product_id=product_id,
                product_stock_id=product_stock_id,
                purchase_order_id=purchase_order_id,
                sales_order_id=sales_order_id,
            )
    except Exception as e:
        # Don't fail the main operation if audit logging fails
        logger.error(f"Failed to create audit log: {str(e)}")
        return None


def round_money(value):
    """Round a Decimal (or number) to two places, half up"""
    return Decimal(str(value)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def compute_payment_status(total, paid):
    """
    Payment status from an order total and the sum of its payments.

    unpaid when nothing is paid, paid once payments cover the total,
    partial in between.
    """
    total = Decimal(str(total or 0))
    paid = Decimal(str(paid or 0))
    if paid <= 0:
        return 'unpaid'
    if paid >= total:
        return 'paid'
    return 'partial'


def company_scoped(queryset, request):
    """Restrict a queryset to the requesting user's company"""
    return queryset.filter(company_id=request.user.company_id)


def format_quantity(value):
    """Render a quantity without trailing zeros: Decimal('3.00') -> '3'"""
    value = Decimal(str(value)).normalize()
    return f"{value:f}"
