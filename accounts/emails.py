"""
Accounts app transactional email

Messages are rendered from Django templates and delivered through the Resend
HTTP API. Without an API key the send is skipped and logged.
"""
import logging

import requests
from django.conf import settings
from django.template.loader import render_to_string

logger = logging.getLogger(__name__)

RESEND_TIMEOUT_SECONDS = 15


class EmailDeliveryError(Exception):
    """Raised when the email provider rejects a message."""


def send_email(*, to: str, subject: str, html: str, text: str = '') -> dict:
    api_key = getattr(settings, 'RESEND_API_KEY', '')
    if not api_key:
        logger.warning('Resend API key not configured, skipping email to %s', to)
        return {'id': 'skipped', 'success': False}

    payload = {
        'from': settings.EMAIL_FROM,
        'to': [to],
        'subject': subject,
        'html': html,
    }
    if text:
        payload['text'] = text

    try:
        response = requests.post(
            settings.RESEND_API_URL,
            json=payload,
            headers={'Authorization': f'Bearer {api_key}'},
            timeout=RESEND_TIMEOUT_SECONDS,
        )
    except requests.RequestException as exc:
        logger.error('Failed to send email to %s: %s', to, exc)
        raise EmailDeliveryError(str(exc)) from exc

    if response.status_code >= 400:
        logger.error('Resend email error (%s): %s', response.status_code, response.text)
        raise EmailDeliveryError(f'Email provider returned {response.status_code}')

    return {'id': response.json().get('id'), 'success': True}


def _render(template_name: str, context: dict) -> str:
    base_context = {
        'app_name': settings.APP_NAME,
        'frontend_url': settings.FRONTEND_URL,
    }
    base_context.update(context)
    return render_to_string(f'accounts/emails/{template_name}', base_context)


def send_verification_email(to: str, token: str, full_name: str = '') -> dict:
    verify_url = f'{settings.FRONTEND_URL}/verify-email?token={token}'
    return send_email(
        to=to,
        subject=f'Verify your {settings.APP_NAME} account',
        html=_render('verification.html', {'full_name': full_name, 'verify_url': verify_url}),
        text=f'Verify your email: {verify_url}',
    )


def send_welcome_email(to: str, name: str = '') -> dict:
    profile_url = f'{settings.FRONTEND_URL}/profile'
    return send_email(
        to=to,
        subject=f'Welcome to {settings.APP_NAME}!',
        html=_render('welcome.html', {'name': name, 'profile_url': profile_url}),
        text=f"Welcome to {settings.APP_NAME}, {name or 'there'}! "
             f"Start by completing your Master Profile at {profile_url}",
    )


def send_subscription_confirmation(to: str, plan_name: str) -> dict:
    return send_email(
        to=to,
        subject=f'Your {plan_name} subscription is active!',
        html=_render('subscription_confirmation.html', {'plan_name': plan_name}),
        text=f'Your {plan_name} subscription is now active. Start creating tailored CVs today!',
    )
