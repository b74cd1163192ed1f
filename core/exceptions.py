import logging

from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.response import Response

logger = logging.getLogger(__name__)


def message_of(detail):
    """Flatten a DRF error detail into a single human readable string."""
    if isinstance(detail, dict):
        if 'detail' in detail:
            return message_of(detail['detail'])
        parts = [f"{key}: {message_of(value)}" for key, value in detail.items()]
        return '; '.join(parts)
    if isinstance(detail, (list, tuple)):
        return ' '.join(message_of(item) for item in detail)
    return str(detail)


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        view = context.get('view') if context else None
        logger.exception("Unhandled error in %s", getattr(view, '__name__', view))
        return Response(
            {'ok': False, 'message': 'Server error', 'error': {'code': 'server_error', 'message': str(exc)}},
            status=500,
        )
    # normalize response
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = resp.data
    code = getattr(exc, 'default_code', None) or 'api_error'
    message = message_of(detail)
    return Response(
        {'ok': False, 'message': message, 'error': {'code': code, 'message': detail}},
        status=resp.status_code,
        headers={k: v for k, v in resp.items()},
    )
