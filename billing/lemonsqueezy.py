"""
LemonSqueezy integration: hosted checkout, customer portal and webhook
handling over the JSON:API REST endpoints.
"""
import hashlib
import hmac
import json
import logging
from typing import Optional

import requests
from django.conf import settings
from django.utils.dateparse import parse_datetime

from accounts.models import SubscriptionTier

from .services import (
    apply_subscription_change,
    notify_subscription_started,
    parse_tier,
    tier_for_lemon_variant,
)

logger = logging.getLogger(__name__)

LEMONSQUEEZY_TIMEOUT_SECONDS = 15
JSON_API = 'application/vnd.api+json'


class LemonSqueezyError(Exception):
    """Raised when the LemonSqueezy API call fails or answers unexpectedly."""


def is_configured() -> bool:
    return bool(settings.LEMONSQUEEZY_API_KEY)


def _headers() -> dict:
    return {
        'Authorization': f'Bearer {settings.LEMONSQUEEZY_API_KEY}',
        'Content-Type': JSON_API,
        'Accept': JSON_API,
    }


def variant_for_plan(plan_key: str) -> Optional[str]:
    """Configured variant id for a plan key such as LEMON_PRO_MONTHLY."""
    return settings.LEMON_VARIANT_IDS.get(plan_key) or None


def create_checkout(*, user, variant_id: str, tier: str, billing_cycle: str = '') -> str:
    """
    Create a hosted checkout for one variant and return its URL.

    The user id and tier travel as custom data so the webhook can find the
    account again.
    """
    success_url = f'{settings.FRONTEND_URL}/billing?success=true&tier={tier}'
    body = {
        'data': {
            'type': 'checkouts',
            'attributes': {
                'custom_price': None,
                'product_options': {
                    'enabled_variants': [int(variant_id) if str(variant_id).isdigit() else variant_id],
                    'redirect_url': success_url,
                },
                'checkout_data': {
                    'email': user.email,
                    'custom': {
                        'user_id': str(user.pk),
                        'tier': tier,
                        'billing_cycle': billing_cycle,
                    },
                },
            },
            'relationships': {
                'store': {'data': {'type': 'stores', 'id': str(settings.LEMONSQUEEZY_STORE_ID)}},
                'variant': {'data': {'type': 'variants', 'id': str(variant_id)}},
            },
        }
    }

    try:
        response = requests.post(
            f'{settings.LEMONSQUEEZY_API_URL}/checkouts',
            data=json.dumps(body),
            headers=_headers(),
            timeout=LEMONSQUEEZY_TIMEOUT_SECONDS,
        )
        payload = response.json()
    except (requests.RequestException, ValueError) as exc:
        logger.error('LemonSqueezy checkout request failed: %s', exc)
        raise LemonSqueezyError('Failed to create checkout session') from exc

    if not response.ok:
        logger.error('LemonSqueezy checkout error (%s): %s', response.status_code, payload)
        raise LemonSqueezyError('Failed to create checkout session')

    try:
        url = payload['data']['attributes']['url']
    except (KeyError, TypeError) as exc:
        raise LemonSqueezyError('Failed to create checkout session') from exc

    logger.info('LemonSqueezy checkout created for user %s (%s)', user.pk, tier)
    return url


def customer_portal_url(customer_id: str) -> str:
    try:
        response = requests.get(
            f'{settings.LEMONSQUEEZY_API_URL}/customers/{customer_id}',
            headers=_headers(),
            timeout=LEMONSQUEEZY_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        return response.json()['data']['attributes']['urls']['customer_portal']
    except (requests.RequestException, ValueError, KeyError, TypeError) as exc:
        logger.error('LemonSqueezy portal lookup failed for customer %s: %s', customer_id, exc)
        raise LemonSqueezyError('Failed to get customer data') from exc


def verify_signature(raw_body: bytes, signature: str, secret: str) -> bool:
    """HMAC-SHA256 of the raw request body, hex encoded, compared in constant time."""
    if not signature:
        return False
    expected = hmac.new(secret.encode('utf-8'), raw_body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature.strip())


def _object(value) -> dict:
    """JSON:API members that are not objects are treated as empty."""
    return value if isinstance(value, dict) else {}


def _text(value) -> Optional[str]:
    return str(value) if value not in (None, '') else None


def handle_webhook_event(event: dict) -> None:
    """
    Apply one verified webhook event.

    The account is found through the user id placed in the checkout's custom
    data, falling back to the stored LemonSqueezy customer id.
    """
    meta = _object(event.get('meta'))
    data = _object(event.get('data'))
    attributes = _object(data.get('attributes'))
    custom_data = _object(meta.get('custom_data'))

    event_name = meta.get('event_name')
    user_id = custom_data.get('user_id')
    customer_id = _text(attributes.get('customer_id'))
    lookup = {'pk': user_id} if user_id else {'lemon_squeezy_customer_id': customer_id}

    logger.info('LemonSqueezy webhook: %s (user %s)', event_name, user_id or customer_id)

    if event_name in ('subscription_created', 'subscription_updated'):
        tier = tier_for_lemon_variant(attributes.get('variant_id')) or parse_tier(custom_data.get('tier'))
        if not tier:
            logger.error('LemonSqueezy %s without a known tier (variant %s)', event_name, attributes.get('variant_id'))
            return

        changes = {
            'subscription_tier': tier,
            'lemon_squeezy_subscription_id': _text(data.get('id')),
            'usage_count': 0,
        }
        if customer_id:
            changes['lemon_squeezy_customer_id'] = customer_id
        period_end = parse_datetime(attributes.get('renews_at') or attributes.get('ends_at') or '')
        if period_end:
            changes['subscription_end_date'] = period_end

        if apply_subscription_change(lookup, **changes) and event_name == 'subscription_created' and user_id:
            notify_subscription_started(user_id, tier)
        logger.info('Updated user %s to tier %s', user_id or customer_id, tier)

    elif event_name in ('subscription_cancelled', 'subscription_expired'):
        apply_subscription_change(
            lookup,
            subscription_tier=SubscriptionTier.FREE,
            lemon_squeezy_subscription_id=None,
        )
        logger.info('Cancelled subscription for user %s', user_id or customer_id)

    elif event_name == 'subscription_payment_success':
        # New billing period
        apply_subscription_change(lookup, usage_count=0)

    elif event_name == 'subscription_payment_failed':
        logger.warning('LemonSqueezy payment failed for user %s', user_id or customer_id)

    else:
        logger.info('Unhandled LemonSqueezy event: %s', event_name)
