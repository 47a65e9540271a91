"""
Accounts app authentication

DRF authentication class reading the session JWT from the ``auth_token``
cookie, falling back to an ``Authorization: Bearer`` header.
"""
import uuid

import jwt
from django.conf import settings
from rest_framework import authentication, status

from tailoredresume.exceptions import APIError

from .models import User
from .tokens import decode_session_token


class InvalidSessionToken(APIError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Invalid or expired token'
    default_code = 'invalid_token'


class JWTCookieAuthentication(authentication.BaseAuthentication):
    """
    Authenticate requests carrying a session token.

    A request without any token is anonymous (DRF answers 401 through
    ``authenticate_header``); a token that fails verification is rejected
    with 403.
    """

    keyword = 'Bearer'

    def get_raw_token(self, request):
        token = request.COOKIES.get(settings.AUTH_COOKIE_NAME)
        if token:
            return token
        header = authentication.get_authorization_header(request).split()
        if len(header) == 2 and header[0].lower() == self.keyword.lower().encode():
            return header[1].decode('latin-1')
        return None

    def authenticate(self, request):
        token = self.get_raw_token(request)
        if not token:
            return None

        try:
            payload = decode_session_token(token)
        except jwt.InvalidTokenError:
            raise InvalidSessionToken()

        try:
            user_id = uuid.UUID(str(payload.get('userId')))
        except ValueError:
            raise InvalidSessionToken()

        user = User.objects.filter(pk=user_id, is_active=True).first()
        if user is None:
            raise InvalidSessionToken()
        return (user, payload)

    def authenticate_header(self, request):
        return self.keyword
