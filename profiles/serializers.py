"""
Profiles app serializers

Request body validation for saving the master profile.
"""
from rest_framework import serializers


class MasterProfileUpdateSerializer(serializers.Serializer):
    """
    Body of PUT /api/profile.

    The document itself is free-form; only its top-level type is checked.
    """

    profile = serializers.JSONField(
        error_messages={'required': 'Profile must be an object', 'null': 'Profile must be an object'},
    )

    def validate_profile(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError('Profile must be an object')
        return value
