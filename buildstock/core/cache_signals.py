"""
Cache invalidation signals
Invalidate cached reports when rows that feed them change
"""
import logging

from django.core.exceptions import ObjectDoesNotExist
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver

from .cache_utils import invalidate_reports_cache

logger = logging.getLogger(__name__)

REPORT_MODELS = {
    'Product', 'ProductStock',
    'PurchaseOrder', 'PurchaseOrderPayment',
    'SalesOrder', 'SalesOrderPayment',
}


def _company_id_for(instance):
    company_id = getattr(instance, 'company_id', None)
    if company_id is not None:
        return company_id
    for attr in ('sales_order', 'purchase_order'):
        try:
            order = getattr(instance, attr, None)
        except ObjectDoesNotExist:
            order = None
        if order is not None:
            return order.company_id
    return None


@receiver([post_save, post_delete])
def invalidate_reports_on_change(sender, instance, **kwargs):
    """Queryset.update() bypasses this; services call invalidate_reports_cache directly there"""
    if sender.__name__ not in REPORT_MODELS:
        return
    invalidate_reports_cache(_company_id_for(instance))
