"""
In-flight guard for write endpoints.

A client sends an ``Idempotency-Key`` header with a create or transition
request. The first request claims the key; a second request with the same key
while the first is running gets 409, and once it has finished the stored
response is replayed instead of applying the write twice.
"""
import logging
from functools import wraps

from django.conf import settings
from django.core.cache import cache
from rest_framework import status
from rest_framework.response import Response

logger = logging.getLogger(__name__)

IN_FLIGHT = 'in-flight'
HEADER = 'HTTP_IDEMPOTENCY_KEY'


def make_idempotency_key(request, key):
    user_id = getattr(request.user, 'pk', None) or 'anon'
    return f"idempotency:{user_id}:{request.path}:{key}"


def idempotent(view_func):
    """Decorator for function views; only POST requests are guarded"""
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        key = request.META.get(HEADER)
        if request.method != 'POST' or not key:
            return view_func(request, *args, **kwargs)

        cache_key = make_idempotency_key(request, key)
        ttl = settings.IDEMPOTENCY_TTL
        if not cache.add(cache_key, IN_FLIGHT, ttl):
            stored = cache.get(cache_key)
            if stored == IN_FLIGHT or stored is None:
                logger.warning(f"Duplicate submission rejected for key {key} on {request.path}")
                return Response({'error': 'Request already in progress'}, status=status.HTTP_409_CONFLICT)
            logger.info(f"Replaying stored response for key {key} on {request.path}")
            response = Response(stored['data'], status=stored['status'])
            response['Idempotent-Replay'] = 'true'
            return response

        try:
            response = view_func(request, *args, **kwargs)
        except Exception:
            cache.delete(cache_key)
            raise

        if response.status_code >= 500:
            cache.delete(cache_key)
        else:
            cache.set(cache_key, {'status': response.status_code, 'data': response.data}, ttl)
        return response
    return wrapper
