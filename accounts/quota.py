"""
Accounts app usage quota

Monthly generation limits per subscription tier. Usage is taken as a slot
with a conditional UPDATE before the AI call and handed back if the call
fails, so concurrent requests cannot push a user past the limit.
"""
import logging
from contextlib import contextmanager

from django.db.models import F
from django.utils import timezone
from rest_framework import status

from tailoredresume.exceptions import APIError

from .models import SubscriptionTier, User

logger = logging.getLogger(__name__)

TIER_LIMITS = {
    SubscriptionTier.FREE: 0,
    SubscriptionTier.STARTER: 20,
    SubscriptionTier.PRO: 70,
    # Soft cap, effectively unlimited
    SubscriptionTier.UNLIMITED: 1000,
}

UPGRADE_URL = '/settings/billing'


class QuotaExceeded(APIError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Monthly usage limit reached'
    default_code = 'quota_exceeded'


def tier_limit(tier) -> int:
    return TIER_LIMITS.get(tier, 0)


def quota_error(user) -> QuotaExceeded:
    return QuotaExceeded(
        tier=user.subscription_tier,
        limit=tier_limit(user.subscription_tier),
        current=user.usage_count,
        upgradeUrl=UPGRADE_URL,
    )


def reset_usage_if_new_month(user, now=None) -> bool:
    """
    Zero the counter when the last reset happened in an earlier calendar month.

    The check and the reset are one conditional UPDATE, so two requests at a
    month boundary reset the counter only once. ``user`` is refreshed in place.

    Returns:
        True if this call performed the reset.
    """
    now = now or timezone.now()
    updated = (
        User.objects.filter(pk=user.pk)
        .exclude(last_reset_date__year=now.year, last_reset_date__month=now.month)
        .update(usage_count=0, last_reset_date=now)
    )
    if updated:
        logger.info('Monthly usage reset for user %s', user.pk)
    user.refresh_from_db(fields=['usage_count', 'last_reset_date', 'subscription_tier'])
    return bool(updated)


def check_usage_limit(user) -> int:
    """
    Apply the monthly reset and verify the user still has quota left.

    Returns:
        The user's current usage count.

    Raises:
        QuotaExceeded: If usage already reached the tier limit.
    """
    reset_usage_if_new_month(user)
    if user.usage_count >= tier_limit(user.subscription_tier):
        raise quota_error(user)
    return user.usage_count


def reserve_generation(user) -> bool:
    """Atomically take one generation if the user is still under the limit."""
    limit = tier_limit(user.subscription_tier)
    updated = (
        User.objects.filter(pk=user.pk, usage_count__lt=limit)
        .update(usage_count=F('usage_count') + 1)
    )
    user.refresh_from_db(fields=['usage_count'])
    return bool(updated)


def release_generation(user) -> None:
    User.objects.filter(pk=user.pk, usage_count__gt=0).update(usage_count=F('usage_count') - 1)
    user.refresh_from_db(fields=['usage_count'])


@contextmanager
def generation_slot(user):
    """
    Hold one unit of quota for the duration of an AI generation.

    The unit is returned if the body raises.

    Raises:
        QuotaExceeded: If no unit is left.
    """
    reset_usage_if_new_month(user)
    if not reserve_generation(user):
        raise quota_error(user)
    try:
        yield user
    except BaseException:
        release_generation(user)
        raise
