"""
Accounts app views

Endpoints for registration, login, session management and email
verification.
"""
import logging

from django.db import IntegrityError
from django.utils import timezone
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from tailoredresume.exceptions import APIError

from .emails import EmailDeliveryError, send_verification_email, send_welcome_email
from .models import SubscriptionTier, User
from .serializers import (
    CredentialsSerializer,
    RegisterSerializer,
    ResendVerificationSerializer,
    UserSerializer,
)
from .tokens import (
    clear_session_cookie,
    generate_verification_token,
    set_session_cookie,
    verification_expiry,
)
from .turnstile import turnstile_enabled, verify_turnstile

logger = logging.getLogger(__name__)

BOT_CHECK_FAILED = 'Bot verification failed. Please try again.'


def _passes_bot_check(request, token: str) -> bool:
    if not (turnstile_enabled() and token):
        return True
    return verify_turnstile(token, request.META.get('REMOTE_ADDR'))


class PublicAPIView(APIView):
    """Endpoint reachable without a session."""

    authentication_classes = []
    permission_classes = [AllowAny]


class RegisterView(PublicAPIView):
    """
    Create an email/password account on the FREE tier.

    POST /api/auth/register
    """

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if not _passes_bot_check(request, data.get('turnstileToken')):
            return Response({'error': BOT_CHECK_FAILED}, status=status.HTTP_400_BAD_REQUEST)

        if User.objects.filter(email__iexact=data['email']).exists():
            return Response({'error': 'User already exists'}, status=status.HTTP_409_CONFLICT)

        try:
            user = User.objects.create_user(
                email=data['email'],
                password=data['password'],
                full_name=data.get('fullName', ''),
                subscription_tier=SubscriptionTier.FREE,
                email_verified=False,
                verification_token=generate_verification_token(),
                verification_expires=verification_expiry(),
                auth_provider='email',
            )
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            return Response({'error': 'User already exists'}, status=status.HTTP_409_CONFLICT)

        try:
            send_verification_email(user.email, user.verification_token, user.full_name)
        except EmailDeliveryError as exc:
            logger.error('Verification email for %s failed: %s', user.email, exc)

        logger.info('Registered user %s', user.pk)
        response = Response(
            {
                'user': UserSerializer(user).data,
                'message': 'Please check your email to verify your account',
            },
            status=status.HTTP_201_CREATED,
        )
        return set_session_cookie(response, user)


class LoginView(PublicAPIView):
    """POST /api/auth/login"""

    def post(self, request):
        serializer = CredentialsSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({'error': 'Invalid credentials'}, status=status.HTTP_401_UNAUTHORIZED)
        data = serializer.validated_data

        if not _passes_bot_check(request, data.get('turnstileToken')):
            return Response({'error': BOT_CHECK_FAILED}, status=status.HTTP_400_BAD_REQUEST)

        user = User.objects.filter(email__iexact=data['email']).first()
        if user is None or not user.has_usable_password() or not user.check_password(data['password']):
            return Response({'error': 'Invalid credentials'}, status=status.HTTP_401_UNAUTHORIZED)

        if not user.email_verified:
            raise APIError(
                'Please verify your email before logging in',
                status_code=status.HTTP_403_FORBIDDEN,
                needsVerification=True,
            )

        User.objects.filter(pk=user.pk).update(last_login=timezone.now())
        response = Response({'user': UserSerializer(user).data})
        return set_session_cookie(response, user)


class LogoutView(PublicAPIView):
    def post(self, request):
        return clear_session_cookie(Response({'message': 'Logged out'}))


class MeView(APIView):
    """GET /api/auth/me"""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({'user': UserSerializer(request.user).data})


class VerifyEmailView(PublicAPIView):
    """
    Confirm an email address from the link sent at signup.

    GET /api/auth/verify-email/<token>

    Marks the account verified, logs the user in and sends the welcome email.
    """

    def get(self, request, token):
        user = User.objects.filter(
            verification_token=token,
            verification_expires__gt=timezone.now(),
        ).first()
        if user is None:
            return Response(
                {'error': 'Invalid or expired verification link'},
                status=status.HTTP_400_BAD_REQUEST,
            )

        user.email_verified = True
        user.verification_token = None
        user.verification_expires = None
        user.save(update_fields=['email_verified', 'verification_token', 'verification_expires', 'updated_at'])

        try:
            send_welcome_email(user.email, user.full_name)
        except EmailDeliveryError as exc:
            logger.error('Welcome email for %s failed: %s', user.email, exc)

        response = Response({'success': True, 'message': 'Email verified successfully'})
        return set_session_cookie(response, user)


class ResendVerificationView(PublicAPIView):
    """POST /api/auth/resend-verification"""

    def post(self, request):
        serializer = ResendVerificationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data['email']

        user = User.objects.filter(email__iexact=email).first()
        if user is None:
            # Do not reveal whether the address is registered
            return Response({'message': 'If the email exists, a verification link has been sent'})

        if user.email_verified:
            return Response({'error': 'Email already verified'}, status=status.HTTP_400_BAD_REQUEST)

        user.verification_token = generate_verification_token()
        user.verification_expires = verification_expiry()
        user.save(update_fields=['verification_token', 'verification_expires', 'updated_at'])

        try:
            send_verification_email(user.email, user.verification_token, user.full_name)
        except EmailDeliveryError:
            return Response(
                {'error': 'Failed to resend verification email'},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        return Response({'message': 'Verification email sent'})
