"""
Billing app services

Provider-independent subscription mutations. Every change is a single
UPDATE of the user row that assigns absolute values, so a replayed webhook
leaves the row as it was.
"""
import logging
import uuid
from typing import Optional

from django.conf import settings

from accounts.emails import EmailDeliveryError, send_subscription_confirmation
from accounts.models import SubscriptionTier, User

logger = logging.getLogger(__name__)

PLAN_NAMES = {
    SubscriptionTier.STARTER: 'Starter',
    SubscriptionTier.PRO: 'Pro',
    SubscriptionTier.UNLIMITED: 'Unlimited',
}


def parse_tier(value) -> Optional[str]:
    """Return the tier named by ``value`` (any case) or None."""
    if not value:
        return None
    tier = str(value).strip().upper()
    return tier if tier in SubscriptionTier.values else None


def tier_for_plan_key(plan_key: str) -> Optional[str]:
    """LEMON_PRO_ANNUAL -> PRO"""
    parts = str(plan_key or '').split('_')
    return parse_tier(parts[1]) if len(parts) == 3 else None


def tier_for_lemon_variant(variant_id) -> Optional[str]:
    """Look up the tier sold by a LemonSqueezy variant id."""
    if variant_id in (None, ''):
        return None
    for plan_key, configured in settings.LEMON_VARIANT_IDS.items():
        if configured and str(configured) == str(variant_id):
            return tier_for_plan_key(plan_key)
    return None


def tier_for_stripe_price(price_id) -> str:
    """Unknown prices map to STARTER."""
    return parse_tier(settings.STRIPE_PRICE_TIERS.get(price_id)) or SubscriptionTier.STARTER


def users_matching(**lookup):
    """
    Queryset for a webhook-supplied lookup.

    A malformed user id matches nobody instead of raising.
    """
    if 'pk' in lookup:
        try:
            lookup['pk'] = uuid.UUID(str(lookup['pk']))
        except ValueError:
            return User.objects.none()
    if any(value in (None, '') for value in lookup.values()):
        return User.objects.none()
    return User.objects.filter(**lookup)


def apply_subscription_change(lookup: dict, **changes) -> int:
    """Apply ``changes`` to the matching user in one UPDATE and return the row count."""
    updated = users_matching(**lookup).update(**changes)
    if not updated:
        logger.warning('Billing update matched no user for %s', lookup)
    return updated


def notify_subscription_started(user_id, tier: str) -> None:
    """Send the confirmation email. Failures are logged, never raised."""
    user = users_matching(pk=user_id).only('email').first()
    if user is None:
        return
    try:
        send_subscription_confirmation(user.email, PLAN_NAMES.get(tier, tier.title()))
    except EmailDeliveryError as exc:
        logger.error('Subscription confirmation email failed for user %s: %s', user_id, exc)
