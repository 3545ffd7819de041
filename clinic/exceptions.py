import logging

from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.response import Response

logger = logging.getLogger(__name__)


class InvalidInput(ValueError):
    """An appointment record has an unknown urgency level or a bad time slot."""


def api_exception_handler(exc, context):
    if isinstance(exc, InvalidInput):
        return Response({'ok': False, 'error': {'code': 'invalid_input', 'message': str(exc)}}, status=400)
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception("Unhandled error in %s", context.get('view'))
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': 'internal server error'}}, status=500)
    # normalize response
    detail = None
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = str(resp.data)
    return Response({'ok': False, 'error': {'code': 'api_error', 'message': detail}}, status=resp.status_code)
