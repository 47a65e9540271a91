"""
Accounts app serializers

Serializers for the public user payload and the auth request bodies.
"""
from rest_framework import serializers

from .models import User

CREDENTIALS_REQUIRED = 'Email and password required'


class UserSerializer(serializers.ModelSerializer):
    """
    Serializer for User model.

    Emits the camelCase shape the frontend consumes. The password hash and
    the verification token are never exposed.
    """

    fullName = serializers.CharField(source='full_name', read_only=True)
    subscriptionTier = serializers.CharField(source='subscription_tier', read_only=True)
    usageCount = serializers.IntegerField(source='usage_count', read_only=True)
    lastResetDate = serializers.DateTimeField(source='last_reset_date', read_only=True)
    emailVerified = serializers.BooleanField(source='email_verified', read_only=True)
    authProvider = serializers.CharField(source='auth_provider', read_only=True)
    stripeCustomerId = serializers.CharField(source='stripe_customer_id', read_only=True)
    lemonSqueezyCustomerId = serializers.CharField(source='lemon_squeezy_customer_id', read_only=True)
    subscriptionEndDate = serializers.DateTimeField(source='subscription_end_date', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'fullName',
            'subscriptionTier',
            'usageCount',
            'lastResetDate',
            'emailVerified',
            'authProvider',
            'stripeCustomerId',
            'lemonSqueezyCustomerId',
            'subscriptionEndDate',
            'createdAt',
            'updatedAt',
        ]
        read_only_fields = fields


class CredentialsSerializer(serializers.Serializer):
    email = serializers.EmailField(
        error_messages={'required': CREDENTIALS_REQUIRED, 'blank': CREDENTIALS_REQUIRED},
    )
    password = serializers.CharField(
        trim_whitespace=False,
        error_messages={'required': CREDENTIALS_REQUIRED, 'blank': CREDENTIALS_REQUIRED},
    )
    turnstileToken = serializers.CharField(required=False, allow_blank=True)

    def validate_email(self, value):
        return User.objects.normalize_email(value)


class RegisterSerializer(CredentialsSerializer):
    fullName = serializers.CharField(required=False, allow_blank=True, max_length=255)


class ResendVerificationSerializer(serializers.Serializer):
    email = serializers.EmailField(
        error_messages={'required': 'Email required', 'blank': 'Email required'},
    )
