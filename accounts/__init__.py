"""
Accounts app

Email/password authentication with a JWT session cookie, email verification,
and the per-tier monthly generation quota.
"""
