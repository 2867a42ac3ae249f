"""
Error model and the project-wide DRF exception handler.

Services raise the stock DRF exceptions (ValidationError, NotFound,
PermissionDenied, NotAuthenticated) or InternalError below. The handler
turns every one of them, plus database failures and anything unexpected,
into the error envelope with a stable machine-readable code.
"""
import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.db import DatabaseError
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.views import exception_handler

from .responses import error_payload, error_response

logger = logging.getLogger('shipdeck.core')


class InternalError(exceptions.APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'An unexpected error occurred.'
    default_code = 'internal_error'


# First match wins, so subclasses must come before their bases.
ERROR_CODES = [
    (exceptions.ValidationError, 'VALIDATION_ERROR'),
    (exceptions.ParseError, 'VALIDATION_ERROR'),
    (exceptions.UnsupportedMediaType, 'VALIDATION_ERROR'),
    (exceptions.NotAuthenticated, 'UNAUTHORIZED'),
    (exceptions.AuthenticationFailed, 'UNAUTHORIZED'),
    (exceptions.PermissionDenied, 'FORBIDDEN'),
    (exceptions.NotFound, 'NOT_FOUND'),
    (exceptions.MethodNotAllowed, 'METHOD_NOT_ALLOWED'),
    (exceptions.Throttled, 'THROTTLED'),
    (InternalError, 'INTERNAL_ERROR'),
]


def get_error_code(exc):
    """Resolve the envelope code for an APIException"""
    explicit = getattr(exc, 'error_code', None)
    if explicit:
        return explicit
    for exc_class, code in ERROR_CODES:
        if isinstance(exc, exc_class):
            return code
    if getattr(exc, 'status_code', 500) >= 500:
        return 'INTERNAL_ERROR'
    return 'ERROR'


def describe_detail(detail):
    """
    Split an APIException detail into (message, details).

    Field errors from serializers come back as a dict and are passed through
    as details under a generic message; a single error string becomes the
    message itself. Token errors carry their message under 'detail'.
    """
    if isinstance(detail, dict):
        if 'detail' in detail:
            rest = {key: value for key, value in detail.items() if key != 'detail'}
            return str(detail['detail']), rest or None
        return 'Invalid input.', detail
    if isinstance(detail, list):
        if len(detail) == 1:
            return str(detail[0]), None
        return 'Invalid input.', [str(item) for item in detail]
    return str(detail), None


def envelope_exception_handler(exc, context):
    """DRF EXCEPTION_HANDLER producing the error envelope"""
    view = context.get('view')
    view_name = view.__class__.__name__ if view else 'unknown view'

    if isinstance(exc, Http404):
        exc = exceptions.NotFound()
    elif isinstance(exc, DjangoPermissionDenied):
        exc = exceptions.PermissionDenied()
    elif isinstance(exc, DatabaseError):
        logger.error(f"Database error in {view_name}: {str(exc)}", exc_info=exc)
        exc = InternalError()

    response = exception_handler(exc, context)
    if response is None:
        logger.error(f"Unexpected error in {view_name}: {str(exc)}", exc_info=exc)
        return error_response(
            'INTERNAL_ERROR',
            InternalError.default_detail,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    message, details = describe_detail(exc.detail)
    response.data = error_payload(get_error_code(exc), message, details)
    return response
