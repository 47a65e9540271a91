"""
Accounts app session and verification tokens

Session tokens are HS256 JWTs carrying ``{userId, email, tier}``; verification
tokens are random hex strings stored on the user.
"""
import secrets

import jwt
from django.conf import settings
from django.utils import timezone


def issue_session_token(user) -> str:
    now = timezone.now()
    payload = {
        'userId': str(user.pk),
        'email': user.email,
        'tier': user.subscription_tier,
        'iat': now,
        'exp': now + settings.JWT_TTL,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_session_token(token: str) -> dict:
    """
    Decode and verify a session token.

    Raises:
        jwt.InvalidTokenError: If the signature is wrong or the token expired.
    """
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])


def set_session_cookie(response, user):
    """Attach a fresh session token to ``response`` as an httpOnly cookie."""
    response.set_cookie(
        settings.AUTH_COOKIE_NAME,
        issue_session_token(user),
        max_age=int(settings.JWT_TTL.total_seconds()),
        httponly=True,
        secure=settings.AUTH_COOKIE_SECURE,
        samesite='Lax',
    )
    return response


def clear_session_cookie(response):
    response.delete_cookie(settings.AUTH_COOKIE_NAME, samesite='Lax')
    return response


def generate_verification_token() -> str:
    return secrets.token_hex(32)


def verification_expiry():
    return timezone.now() + settings.EMAIL_VERIFICATION_TTL
