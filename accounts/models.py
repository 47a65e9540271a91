"""
Accounts app models

Custom User model keyed by UUID with email login, subscription tier and the
monthly generation counter.
"""
import uuid

from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models
from django.utils import timezone


class SubscriptionTier(models.TextChoices):
    FREE = 'FREE', 'Free'
    STARTER = 'STARTER', 'Starter'
    PRO = 'PRO', 'Pro'
    UNLIMITED = 'UNLIMITED', 'Unlimited'


class UserManager(BaseUserManager):
    """Manager for users identified by email instead of username."""

    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError('The email address must be set')
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', False)
        extra_fields.setdefault('is_superuser', False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('email_verified', True)
        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')
        return self._create_user(email, password, **extra_fields)


class User(AbstractUser):
    """
    Custom user model with subscription and usage tracking.

    Extends Django's AbstractUser to add:
    - subscription_tier: Plan that decides the monthly generation limit
    - usage_count / last_reset_date: Generations consumed this calendar month
    - email verification state for the signup flow
    - customer and subscription identifiers from both payment providers
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    username = None
    email = models.EmailField(unique=True)
    full_name = models.CharField(max_length=255, blank=True)

    subscription_tier = models.CharField(
        max_length=20,
        choices=SubscriptionTier.choices,
        default=SubscriptionTier.FREE,
    )
    usage_count = models.IntegerField(default=0)
    last_reset_date = models.DateTimeField(default=timezone.now)

    email_verified = models.BooleanField(default=False)
    verification_token = models.CharField(max_length=64, blank=True, null=True, unique=True)
    verification_expires = models.DateTimeField(blank=True, null=True)
    auth_provider = models.CharField(max_length=20, default='email')

    stripe_customer_id = models.CharField(max_length=255, blank=True, null=True, unique=True)
    stripe_subscription_id = models.CharField(max_length=255, blank=True, null=True)
    lemon_squeezy_customer_id = models.CharField(max_length=255, blank=True, null=True, unique=True)
    lemon_squeezy_subscription_id = models.CharField(max_length=255, blank=True, null=True)
    subscription_end_date = models.DateTimeField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    objects = UserManager()

    def __str__(self):
        return f"{self.email} ({self.subscription_tier})"

    @property
    def is_subscribed(self) -> bool:
        return self.subscription_tier != SubscriptionTier.FREE

    class Meta:
        verbose_name = 'User'
        verbose_name_plural = 'Users'
