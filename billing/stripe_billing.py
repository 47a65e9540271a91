"""
Stripe integration: subscription checkout, billing portal and webhook
handling through the official SDK.
"""
import logging
from datetime import datetime, timezone as dt_timezone
from typing import Optional

import stripe
from django.conf import settings

from accounts.models import SubscriptionTier, User

from .services import (
    apply_subscription_change,
    notify_subscription_started,
    tier_for_stripe_price,
    users_matching,
)

logger = logging.getLogger(__name__)


class StripeBillingError(Exception):
    """Raised when a Stripe API call fails."""


def _client_ready() -> None:
    stripe.api_key = settings.STRIPE_SECRET_KEY


def ensure_customer(user) -> str:
    """Return the user's Stripe customer id, creating the customer on first use."""
    if user.stripe_customer_id:
        return user.stripe_customer_id

    _client_ready()
    customer = stripe.Customer.create(email=user.email, metadata={'userId': str(user.pk)})
    User.objects.filter(pk=user.pk).update(stripe_customer_id=customer['id'])
    user.stripe_customer_id = customer['id']
    logger.info('Created Stripe customer %s for user %s', customer['id'], user.pk)
    return customer['id']


def create_checkout_session(*, user, price_id: str, tier: str = '') -> str:
    _client_ready()
    try:
        customer_id = ensure_customer(user)
        session = stripe.checkout.Session.create(
            customer=customer_id,
            payment_method_types=['card'],
            line_items=[{'price': price_id, 'quantity': 1}],
            mode='subscription',
            success_url=f'{settings.FRONTEND_URL}/billing?success=true&tier={tier}',
            cancel_url=f'{settings.FRONTEND_URL}/billing?canceled=true',
            metadata={'userId': str(user.pk), 'tier': tier},
            subscription_data={'metadata': {'userId': str(user.pk)}},
        )
    except stripe.StripeError as exc:
        logger.error('Stripe checkout session failed for user %s: %s', user.pk, exc)
        raise StripeBillingError(getattr(exc, 'user_message', None) or 'Failed to create checkout session') from exc
    return session['url']


def create_portal_session(customer_id: str) -> str:
    _client_ready()
    try:
        session = stripe.billing_portal.Session.create(
            customer=customer_id,
            return_url=f'{settings.FRONTEND_URL}/billing',
        )
    except stripe.StripeError as exc:
        logger.error('Stripe portal session failed for customer %s: %s', customer_id, exc)
        raise StripeBillingError('Failed to create portal session') from exc
    return session['url']


def construct_event(payload: bytes, signature: str):
    """
    Verify the ``Stripe-Signature`` header against the raw body.

    Raises:
        ValueError: Malformed payload.
        stripe.SignatureVerificationError: Signature mismatch.
    """
    return stripe.Webhook.construct_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)


def _lookup(obj, *path):
    """Walk nested keys of a dict or StripeObject, returning None when any is missing."""
    for key in path:
        try:
            obj = obj[key]
        except (KeyError, IndexError, TypeError):
            return None
        if obj is None:
            return None
    return obj


def _price_id(subscription) -> Optional[str]:
    return _lookup(subscription, 'items', 'data', 0, 'price', 'id')


def _period_end(subscription) -> Optional[datetime]:
    # Newer API versions carry the period on the subscription item
    timestamp = _lookup(subscription, 'current_period_end') or _lookup(
        subscription, 'items', 'data', 0, 'current_period_end'
    )
    if timestamp is None:
        return None
    return datetime.fromtimestamp(int(timestamp), tz=dt_timezone.utc)


def _metadata_user_id(obj) -> Optional[str]:
    return _lookup(obj, 'metadata', 'userId')


def handle_checkout_completed(session) -> None:
    user_id = _metadata_user_id(session)
    if not user_id:
        logger.error('No userId in checkout session metadata')
        return

    subscription_id = _lookup(session, 'subscription')
    if not subscription_id:
        logger.error('Checkout session for user %s has no subscription', user_id)
        return

    _client_ready()
    try:
        subscription = stripe.Subscription.retrieve(subscription_id)
    except stripe.StripeError as exc:
        logger.error('Could not load Stripe subscription %s: %s', subscription_id, exc)
        raise StripeBillingError('Webhook handler failed') from exc
    tier = tier_for_stripe_price(_price_id(subscription))

    updated = apply_subscription_change(
        {'pk': user_id},
        stripe_subscription_id=subscription_id,
        subscription_tier=tier,
        subscription_end_date=_period_end(subscription),
        usage_count=0,
    )
    if updated:
        notify_subscription_started(user_id, tier)
    logger.info('User %s upgraded to %s', user_id, tier)


def handle_subscription_updated(subscription) -> None:
    user_id = _metadata_user_id(subscription)
    if not user_id:
        return
    tier = tier_for_stripe_price(_price_id(subscription))
    apply_subscription_change(
        {'pk': user_id},
        subscription_tier=tier,
        subscription_end_date=_period_end(subscription),
    )
    logger.info('User %s subscription updated to %s', user_id, tier)


def handle_subscription_deleted(subscription) -> None:
    user_id = _metadata_user_id(subscription)
    if not user_id:
        return
    apply_subscription_change(
        {'pk': user_id},
        subscription_tier=SubscriptionTier.FREE,
        stripe_subscription_id=None,
        subscription_end_date=None,
    )
    logger.info('User %s subscription canceled, downgraded to FREE', user_id)


def handle_invoice_paid(invoice) -> None:
    # New billing period
    apply_subscription_change({'stripe_customer_id': _lookup(invoice, 'customer')}, usage_count=0)


def handle_invoice_failed(invoice) -> None:
    user = users_matching(stripe_customer_id=_lookup(invoice, 'customer')).only('pk').first()
    if user:
        logger.warning('Stripe payment failed for user %s', user.pk)


EVENT_HANDLERS = {
    'checkout.session.completed': handle_checkout_completed,
    'customer.subscription.updated': handle_subscription_updated,
    'customer.subscription.deleted': handle_subscription_deleted,
    'invoice.payment_succeeded': handle_invoice_paid,
    'invoice.payment_failed': handle_invoice_failed,
}


def handle_webhook_event(event) -> None:
    handler = EVENT_HANDLERS.get(event['type'])
    if handler is None:
        logger.info('Unhandled Stripe event type: %s', event['type'])
        return
    handler(event['data']['object'])
