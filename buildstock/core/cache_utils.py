"""
Caching for report queries.

Report payloads are cached per company under a generation number; bumping the
generation makes every cached report for that company stale at once, which
works the same on Redis and the local-memory backend.
"""
import hashlib
import logging

from django.conf import settings
from django.core.cache import cache

logger = logging.getLogger(__name__)


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def _generation_key(company_id):
    return f"reports_generation:{company_id}"


def get_reports_generation(company_id):
    return cache.get(_generation_key(company_id), 0)


def invalidate_reports_cache(company_id):
    """Mark every cached report for the company as stale"""
    if not company_id:
        return
    key = _generation_key(company_id)
    if cache.add(key, 1, None):
        return
    try:
        cache.incr(key)
    except ValueError:
        # Key expired between add and incr
        cache.set(key, 1, None)
    logger.debug(f"Invalidated reports cache for company {company_id}")


def get_cached_report(name, company_id, **params):
    """Returns tuple: (cached_data, cache_key)"""
    cache_key = make_cache_key(name, company_id, get_reports_generation(company_id), **params)
    return cache.get(cache_key), cache_key


def cache_report(cache_key, data, ttl=None):
    cache.set(cache_key, data, ttl if ttl is not None else settings.DASHBOARD_CACHE_TTL)
    logger.debug(f"Cached report: {cache_key}")
