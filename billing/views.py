"""
Billing app views

Checkout and portal endpoints for signed-in users, plus the public,
signature-verified webhooks of both payment providers.
"""
import json
import logging

import stripe
from django.conf import settings
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from tailoredresume.exceptions import APIError

from . import lemonsqueezy, stripe_billing
from .services import parse_tier, tier_for_plan_key

logger = logging.getLogger(__name__)

WEBHOOK_NOT_CONFIGURED = 'Webhook not configured'


class WebhookView(APIView):
    """
    Public endpoint authenticated by the provider's signature over the raw body.

    The body is read before ``request.data`` is ever touched.
    """

    authentication_classes = []
    permission_classes = [AllowAny]


class LemonSqueezyCheckoutView(APIView):
    """
    POST /api/lemonsqueezy/checkout
    Body: {variantId: "LEMON_PRO_MONTHLY", tier, billingCycle}
    """

    permission_classes = [IsAuthenticated]

    def post(self, request):
        if not lemonsqueezy.is_configured():
            return Response({'error': 'Payment provider not configured'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        plan_key = request.data.get('variantId') or ''
        variant_id = lemonsqueezy.variant_for_plan(plan_key)
        if not variant_id:
            logger.error('Invalid LemonSqueezy plan %r, available: %s', plan_key, list(settings.LEMON_VARIANT_IDS))
            return Response({'error': 'Invalid plan selected'}, status=status.HTTP_400_BAD_REQUEST)

        tier = parse_tier(request.data.get('tier')) or tier_for_plan_key(plan_key) or ''
        try:
            url = lemonsqueezy.create_checkout(
                user=request.user,
                variant_id=variant_id,
                tier=tier,
                billing_cycle=request.data.get('billingCycle') or '',
            )
        except lemonsqueezy.LemonSqueezyError as exc:
            raise APIError(str(exc), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR) from exc

        return Response({'url': url})


class LemonSqueezyPortalView(APIView):
    """POST /api/lemonsqueezy/portal"""

    permission_classes = [IsAuthenticated]

    def post(self, request):
        customer_id = request.user.lemon_squeezy_customer_id
        if not customer_id:
            return Response({'error': 'No subscription found'}, status=status.HTTP_404_NOT_FOUND)

        try:
            url = lemonsqueezy.customer_portal_url(customer_id)
        except lemonsqueezy.LemonSqueezyError as exc:
            raise APIError(str(exc), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR) from exc

        return Response({'url': url})


class LemonSqueezyWebhookView(WebhookView):
    """POST /api/lemonsqueezy/webhook"""

    def post(self, request):
        raw_body = request.body
        secret = settings.LEMONSQUEEZY_WEBHOOK_SECRET
        if not secret:
            logger.error('LemonSqueezy webhook secret not configured')
            return Response({'error': WEBHOOK_NOT_CONFIGURED}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        if not lemonsqueezy.verify_signature(raw_body, request.headers.get('X-Signature', ''), secret):
            logger.error('Invalid LemonSqueezy webhook signature')
            return Response({'error': 'Invalid signature'}, status=status.HTTP_401_UNAUTHORIZED)

        try:
            event = json.loads(raw_body)
        except ValueError:
            return Response({'error': 'Invalid payload'}, status=status.HTTP_400_BAD_REQUEST)
        if not isinstance(event, dict):
            return Response({'error': 'Invalid payload'}, status=status.HTTP_400_BAD_REQUEST)

        lemonsqueezy.handle_webhook_event(event)
        return Response({'received': True})


class StripeCheckoutView(APIView):
    """
    POST /api/stripe/checkout
    Body: {priceId, tier}
    """

    permission_classes = [IsAuthenticated]

    def post(self, request):
        price_id = request.data.get('priceId')
        if not price_id:
            return Response({'error': 'Price ID is required'}, status=status.HTTP_400_BAD_REQUEST)

        try:
            url = stripe_billing.create_checkout_session(
                user=request.user,
                price_id=price_id,
                tier=request.data.get('tier') or '',
            )
        except stripe_billing.StripeBillingError as exc:
            raise APIError(str(exc), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR) from exc

        return Response({'url': url})


class StripePortalView(APIView):
    """POST /api/stripe/portal"""

    permission_classes = [IsAuthenticated]

    def post(self, request):
        customer_id = request.user.stripe_customer_id
        if not customer_id:
            return Response(
                {'error': 'No billing account found. Please subscribe to a plan first.'},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            url = stripe_billing.create_portal_session(customer_id)
        except stripe_billing.StripeBillingError as exc:
            raise APIError(str(exc), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR) from exc

        return Response({'url': url})


class StripeWebhookView(WebhookView):
    """POST /api/stripe/webhook"""

    def post(self, request):
        raw_body = request.body
        if not settings.STRIPE_WEBHOOK_SECRET:
            logger.error('Stripe webhook secret not configured')
            return Response({'error': WEBHOOK_NOT_CONFIGURED}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        try:
            stripe_billing.construct_event(raw_body, request.headers.get('Stripe-Signature', ''))
        except (ValueError, stripe.SignatureVerificationError) as exc:
            logger.error('Stripe webhook signature verification failed: %s', exc)
            return Response({'error': f'Webhook Error: {exc}'}, status=status.HTTP_400_BAD_REQUEST)

        try:
            stripe_billing.handle_webhook_event(json.loads(raw_body))
        except stripe_billing.StripeBillingError as exc:
            return Response({'error': str(exc)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response({'received': True})
