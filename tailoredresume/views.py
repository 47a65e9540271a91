"""
Project-level views

Health check and JSON replacements for Django's HTML error pages.
"""
from django.conf import settings
from django.http import JsonResponse
from django.utils import timezone


def health(request):
    return JsonResponse({
        'status': 'ok',
        'timestamp': timezone.now().isoformat(),
        'environment': settings.ENVIRONMENT,
    })


def not_found(request, exception=None):
    return JsonResponse({'error': 'Not found'}, status=404)


def server_error(request):
    return JsonResponse({'error': 'Internal server error'}, status=500)
