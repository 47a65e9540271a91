from django.urls import path

from .views import (
    LemonSqueezyCheckoutView,
    LemonSqueezyPortalView,
    LemonSqueezyWebhookView,
    StripeCheckoutView,
    StripePortalView,
    StripeWebhookView,
)

urlpatterns = [
    path('lemonsqueezy/checkout', LemonSqueezyCheckoutView.as_view(), name='lemonsqueezy-checkout'),
    path('lemonsqueezy/portal', LemonSqueezyPortalView.as_view(), name='lemonsqueezy-portal'),
    path('lemonsqueezy/webhook', LemonSqueezyWebhookView.as_view(), name='lemonsqueezy-webhook'),
    path('stripe/checkout', StripeCheckoutView.as_view(), name='stripe-checkout'),
    path('stripe/portal', StripePortalView.as_view(), name='stripe-portal'),
    path('stripe/webhook', StripeWebhookView.as_view(), name='stripe-webhook'),
]
