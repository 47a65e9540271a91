from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin interface for custom User model."""

    ordering = ['-created_at']
    list_display = [
        'email',
        'full_name',
        'subscription_tier',
        'usage_count',
        'email_verified',
        'is_staff',
    ]
    list_filter = ['subscription_tier', 'email_verified', 'is_staff', 'is_superuser']
    search_fields = ['email', 'full_name']

    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        ('Personal info', {'fields': ('full_name', 'first_name', 'last_name')}),
        ('Subscription', {
            'fields': (
                'subscription_tier',
                'usage_count',
                'last_reset_date',
                'subscription_end_date',
            )
        }),
        ('Verification', {'fields': ('email_verified', 'verification_expires', 'auth_provider')}),
        ('Billing', {
            'fields': (
                'stripe_customer_id',
                'stripe_subscription_id',
                'lemon_squeezy_customer_id',
                'lemon_squeezy_subscription_id',
            ),
            'classes': ('collapse',)
        }),
        ('Permissions', {'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions')}),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'password1', 'password2', 'subscription_tier'),
        }),
    )
