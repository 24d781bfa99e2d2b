"""
Response envelope for the REST API.

Every response body has the shape::

    {"success": true, "data": ...}                      # success
    {"success": true, "data": ..., "warnings": [...]}   # degraded success
    {"success": false, "error": "...", "code": "..."}   # failure

The renderer wraps plain view payloads; the exception handler turns
exceptions into failure envelopes so views never build them by hand.
"""

import logging

from django.core.exceptions import PermissionDenied, ValidationError as DjangoValidationError
from django.db.models import ProtectedError
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.renderers import JSONRenderer
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def success(data, warnings=None):
    """Build a success envelope, adding warnings only when there are any."""
    body = {'success': True, 'data': data}
    if warnings:
        body['warnings'] = list(warnings)
    return body


class EnvelopeJSONRenderer(JSONRenderer):
    """JSON renderer that wraps bare payloads in the success envelope."""

    def render(self, data, accepted_media_type=None, renderer_context=None):
        response = (renderer_context or {}).get('response')
        if response is not None and response.status_code == status.HTTP_204_NO_CONTENT:
            return b''
        if not (isinstance(data, dict) and 'success' in data):
            data = success(data)
        return super().render(data, accepted_media_type, renderer_context)


def _first_message(detail):
    """Pull a human-readable message out of a DRF error detail structure."""
    if isinstance(detail, dict):
        if 'detail' in detail:
            return _first_message(detail['detail'])
        for field, value in detail.items():
            message = _first_message(value)
            if field == 'non_field_errors':
                return message
            return f'{field}: {message}'
        return 'Invalid request.'
    if isinstance(detail, list):
        return _first_message(detail[0]) if detail else 'Invalid request.'
    return str(detail)


def envelope_exception_handler(exc, context):
    """
    Map exceptions onto failure envelopes.

    APIException subclasses (including every domain exception in apps/*)
    keep their status code. ProtectedError is a referential conflict (400).
    Anything else is logged with its traceback and reported as a 500.
    """
    if isinstance(exc, DjangoValidationError):
        exc = exceptions.ValidationError(
            exc.message_dict if hasattr(exc, 'error_dict') else exc.messages
        )
    elif isinstance(exc, ProtectedError):
        exc = exceptions.ValidationError(
            {'detail': 'Cannot delete this record because other records still reference it.'}
        )

    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.exception(
            'Unhandled error in %s', view.__class__.__name__ if view else 'unknown view'
        )
        return Response(
            {'success': False, 'error': 'Internal server error', 'code': 'internal_error'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, (Http404, PermissionDenied)):
        code = 'not_found' if isinstance(exc, Http404) else 'permission_denied'
    else:
        code = getattr(exc, 'default_code', 'error')
        codes = exc.get_codes() if isinstance(exc, exceptions.APIException) else None
        if isinstance(codes, str):
            code = codes

    body = {
        'success': False,
        'error': _first_message(response.data),
        'code': code,
    }
    if isinstance(exc, exceptions.ValidationError) and isinstance(response.data, (dict, list)):
        body['details'] = response.data

    response.data = body
    return response
