import logging
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class LoanServiceError(Exception):
    """Base exception for loan lifecycle failures that are not the client's fault."""


class LoanIdUnavailableError(LoanServiceError):
    """Raised when no unused loan id could be drawn within the allowed attempts."""


def api_exception_handler(exc, context):
    """
    DRF exception handler that reports every error as {"error": ...}.

    Framework errors (malformed JSON, wrong method, ...) keep their status code. Anything
    else is logged with its traceback and answered with a generic 500.
    """
    response = exception_handler(exc, context)
    if response is None:
        view = context.get('view')
        logger.exception(f"Unhandled error in {type(view).__name__}")
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(response.data, dict) and 'detail' in response.data:
        response.data = {'error': response.data['detail']}
    else:
        response.data = {'error': response.data}
    return response
