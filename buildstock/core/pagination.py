from django.conf import settings
from django.core.paginator import Paginator
from rest_framework.response import Response


def _positive_int(value, default):
    try:
        value = int(value)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def paginated_response(request, queryset, serializer_class, context=None):
    """Paginate a queryset and wrap it in the list envelope used by every screen"""
    page = _positive_int(request.query_params.get('page'), 1)
    page_size = _positive_int(request.query_params.get('page_size'), settings.PAGE_SIZE)
    page_size = min(page_size, settings.MAX_PAGE_SIZE)

    paginator = Paginator(queryset, page_size)
    page_obj = paginator.get_page(page)

    serializer = serializer_class(page_obj, many=True, context=context or {'request': request})
    return Response({
        'results': serializer.data,
        'count': paginator.count,
        'next': page_obj.next_page_number() if page_obj.has_next() else None,
        'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
        'page': page_obj.number,
        'page_size': page_size,
        'total_pages': paginator.num_pages,
    })
