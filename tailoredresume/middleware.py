"""
Project middleware

Security headers, development request logging, and the last-resort JSON
envelope for exceptions nothing else handled.
"""
import logging

from django.conf import settings
from django.http import JsonResponse

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    'X-Content-Type-Options': 'nosniff',
    'X-Frame-Options': 'DENY',
    'X-XSS-Protection': '1; mode=block',
    'Referrer-Policy': 'strict-origin-when-cross-origin',
}


class SecurityHeadersMiddleware:
    """Attach hardening headers to every response in production."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)
        if getattr(settings, 'IS_PRODUCTION', False):
            for header, value in SECURITY_HEADERS.items():
                response[header] = value
        return response


class RequestLoggingMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if settings.DEBUG:
            logger.info('%s %s', request.method, request.path)
        return self.get_response(request)


class UnhandledExceptionMiddleware:
    """
    Convert uncaught exceptions into ``{"error": ...}`` with status 500.

    Production hides the message; development returns it verbatim.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        logger.exception('Unhandled error on %s %s', request.method, request.path)
        if getattr(settings, 'IS_PRODUCTION', False):
            message = 'Internal server error'
        else:
            message = str(exception) or 'Internal server error'
        return JsonResponse({'error': message}, status=500)
