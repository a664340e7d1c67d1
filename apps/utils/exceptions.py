"""API error taxonomy and the envelope exception handler."""
import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger('apps.utils')


class NotFoundError(exceptions.NotFound):
    """Resource is missing or outside the caller's ownership scope."""
    default_detail = 'Resource not found.'
    default_code = 'not_found'


class UploadError(exceptions.APIException):
    """A file in an upload batch could not be stored."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Error uploading images.'
    default_code = 'upload_error'


class UnauthorizedError(exceptions.PermissionDenied):
    """Caller role is insufficient for the operation."""
    default_detail = 'Admin privileges are required.'
    default_code = 'unauthorized'


class ConflictError(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Resource conflict.'
    default_code = 'conflict'


class InternalError(exceptions.APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'An unexpected error occurred. Please try again.'
    default_code = 'internal_error'


def _message_from(detail) -> str:
    if isinstance(detail, list) and detail:
        return str(detail[0])
    if isinstance(detail, dict):
        return 'Validation error'
    return str(detail)


def _code_from(exc) -> str:
    codes = exc.get_codes() if hasattr(exc, 'get_codes') else None
    if isinstance(codes, str):
        return codes
    return getattr(exc, 'default_code', 'error')


def envelope_exception_handler(exc, context):
    """
    Render every API error as ``{success: false, message, error|errors}``.

    Exceptions that are not API exceptions are logged with their traceback
    and reported to the client as a generic 500.
    """
    if isinstance(exc, Http404):
        exc = NotFoundError()
    elif isinstance(exc, DjangoPermissionDenied):
        exc = exceptions.PermissionDenied()

    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.exception(f"Unhandled error in {view.__class__.__name__ if view else 'unknown view'}: {exc}")
        error = InternalError()
        return Response(
            {'success': False, 'message': str(error.detail), 'error': error.default_code},
            status=error.status_code,
        )

    detail = response.data.get('detail') if isinstance(response.data, dict) else response.data
    if isinstance(exc, exceptions.ValidationError):
        response.data = {
            'success': False,
            'message': 'Validation error',
            'errors': exc.detail,
        }
    else:
        response.data = {
            'success': False,
            'message': _message_from(detail if detail is not None else exc.detail),
            'error': _code_from(exc),
        }
    return response
