"""
Project-wide API error envelope

Every API failure is returned as ``{"error": "<message>", ...extra}`` so the
frontend can surface ``error`` directly and inspect machine-readable fields.
"""
import logging

from rest_framework import exceptions, status

logger = logging.getLogger(__name__)


class APIError(exceptions.APIException):
    """
    APIException carrying extra top-level fields for the error envelope.

    DRF would stringify values nested in ``detail``; keeping them in ``extra``
    preserves ints and booleans such as ``limit`` or ``needsVerification``.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Request failed'
    default_code = 'error'

    def __init__(self, detail=None, code=None, status_code=None, **extra):
        super().__init__(detail=detail, code=code)
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra


def _first_message(detail):
    if isinstance(detail, dict):
        for value in detail.values():
            return _first_message(value)
        return 'Invalid request'
    if isinstance(detail, list):
        return _first_message(detail[0]) if detail else 'Invalid request'
    return str(detail)


def api_exception_handler(exc, context):
    """Wrap DRF's handler and reshape its payload into the error envelope."""
    # rest_framework.views loads DEFAULT_AUTHENTICATION_CLASSES on import,
    # and accounts.authentication imports this module.
    from rest_framework.views import exception_handler

    if isinstance(exc, exceptions.NotAuthenticated):
        exc.detail = exceptions.ErrorDetail('Authentication required', code='not_authenticated')

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, exceptions.ValidationError):
        response.data = {
            'error': _first_message(exc.detail),
            'details': exc.detail,
        }
    else:
        response.data = {'error': _first_message(exc.detail)}

    extra = getattr(exc, 'extra', None)
    if extra:
        response.data.update(extra)

    if response.status_code >= 500:
        view = context.get('view')
        logger.error('API error in %s: %s', type(view).__name__ if view else 'unknown', response.data['error'])
    return response
