"""
Cloudflare Turnstile bot check for signup and login.
"""
import logging

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

TURNSTILE_TIMEOUT_SECONDS = 10


def turnstile_enabled() -> bool:
    return bool(getattr(settings, 'TURNSTILE_SECRET_KEY', ''))


def verify_turnstile(token: str, remote_ip: str = None) -> bool:
    """
    Ask Cloudflare whether ``token`` was issued to a human.

    Returns True without a network call when no secret is configured.
    Network failures count as a failed check.
    """
    if not turnstile_enabled():
        logger.warning('Turnstile not configured, skipping verification')
        return True

    data = {'secret': settings.TURNSTILE_SECRET_KEY, 'response': token}
    if remote_ip:
        data['remoteip'] = remote_ip

    try:
        response = requests.post(
            settings.TURNSTILE_VERIFY_URL,
            data=data,
            timeout=TURNSTILE_TIMEOUT_SECONDS,
        )
        payload = response.json()
    except (requests.RequestException, ValueError) as exc:
        logger.error('Turnstile verification error: %s', exc)
        return False

    if not payload.get('success'):
        logger.warning('Turnstile verification failed: %s', payload.get('error-codes'))
    return payload.get('success') is True
