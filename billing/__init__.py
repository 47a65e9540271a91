"""
Billing app

Purpose: Sell subscription tiers through LemonSqueezy (primary) or Stripe and
apply provider webhook events to the user's tier and usage counter.
"""
