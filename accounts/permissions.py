"""
Accounts app permissions

Quota gate for endpoints that call the AI provider.
"""
from rest_framework import permissions

from .quota import check_usage_limit


class HasGenerationQuota(permissions.BasePermission):
    """
    Permission that rejects users whose monthly usage reached their tier limit.

    Runs the monthly reset first. Raises instead of returning False so the
    response carries the tier, limit and upgrade hint.
    """

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        check_usage_limit(request.user)
        return True
