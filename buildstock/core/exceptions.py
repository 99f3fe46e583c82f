"""Domain errors raised by the service layer and their API rendering"""
import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class BusinessRuleError(APIException):
    """A domain rule rejected the operation before anything was written"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Operation not allowed.'
    default_code = 'business_rule'

    def __init__(self, detail=None, code=None, **extra):
        super().__init__(detail, code)
        self.extra = extra


class InvalidTransitionError(BusinessRuleError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Invalid status transition.'
    default_code = 'invalid_transition'


class InsufficientStockError(BusinessRuleError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Insufficient stock.'
    default_code = 'insufficient_stock'

    def __init__(self, detail=None, stock_ids=None, **extra):
        super().__init__(detail, stock_ids=list(stock_ids or []), **extra)
        self.stock_ids = self.extra['stock_ids']


def api_exception_handler(exc, context):
    """Render business rule errors as {'error': ...} like the rest of the API"""
    if isinstance(exc, BusinessRuleError):
        response = exception_handler(exc, context)
        view = context.get('view')
        logger.warning(f"{exc.__class__.__name__} in {getattr(view, '__name__', view)}: {exc.detail}")
        response.data = {'error': str(exc.detail), **exc.extra}
        return response
    return exception_handler(exc, context)
