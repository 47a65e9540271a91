"""
Tailoring app serializers

Serializers for the Application model and the CV endpoint request bodies.
"""
from rest_framework import serializers

from .models import Application

APPLICATION_FIELDS_REQUIRED = 'Job title and company name are required'
INVALID_STATUS = f"Invalid status. Must be one of: {', '.join(Application.Status.values)}"


class ApplicationSerializer(serializers.ModelSerializer):
    """
    Serializer for Application.

    Emits the shape the application tracker renders: camelCase keys and a
    lower-case status.
    """

    jobTitle = serializers.CharField(source='job_title', read_only=True)
    companyName = serializers.CharField(source='company', read_only=True)
    dateApplied = serializers.DateTimeField(source='created_at', read_only=True)
    lastUpdated = serializers.DateTimeField(source='updated_at', read_only=True)
    status = serializers.SerializerMethodField()
    jobDescription = serializers.CharField(source='original_description', read_only=True)
    tailoredProfile = serializers.JSONField(source='tailored_resume', read_only=True)
    matchScore = serializers.IntegerField(source='match_score', read_only=True)
    hasCoverLetter = serializers.SerializerMethodField()
    notes = serializers.CharField(read_only=True)

    class Meta:
        model = Application
        fields = [
            'id',
            'jobTitle',
            'companyName',
            'dateApplied',
            'lastUpdated',
            'status',
            'jobDescription',
            'tailoredProfile',
            'matchScore',
            'hasCoverLetter',
            'notes',
        ]
        read_only_fields = fields

    def get_status(self, obj: Application) -> str:
        return obj.status.lower()

    def get_hasCoverLetter(self, obj: Application) -> bool:
        return bool(obj.cover_letter)


class ApplicationCreateSerializer(serializers.Serializer):
    jobTitle = serializers.CharField(
        max_length=255,
        error_messages={'required': APPLICATION_FIELDS_REQUIRED, 'blank': APPLICATION_FIELDS_REQUIRED,
                        'null': APPLICATION_FIELDS_REQUIRED},
    )
    companyName = serializers.CharField(
        max_length=255,
        error_messages={'required': APPLICATION_FIELDS_REQUIRED, 'blank': APPLICATION_FIELDS_REQUIRED,
                        'null': APPLICATION_FIELDS_REQUIRED},
    )
    jobDescription = serializers.CharField(required=False, allow_blank=True, allow_null=True, trim_whitespace=False)
    tailoredProfile = serializers.JSONField(required=False, allow_null=True)
    matchScore = serializers.FloatField(required=False, allow_null=True)

    def validate_tailoredProfile(self, value):
        if value in (None, ''):
            return {}
        if not isinstance(value, dict):
            raise serializers.ValidationError('Tailored profile must be an object')
        return value

    def validate_matchScore(self, value):
        if value is None:
            return 0
        return max(0, min(100, int(round(value))))


class ApplicationUpdateSerializer(serializers.Serializer):
    status = serializers.CharField(
        error_messages={'required': INVALID_STATUS, 'blank': INVALID_STATUS, 'null': INVALID_STATUS},
    )
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate_status(self, value):
        status = value.strip().upper()
        if status not in Application.Status.values:
            raise serializers.ValidationError(INVALID_STATUS)
        return status


class ProfilePayloadSerializer(serializers.Serializer):
    profile = serializers.JSONField(
        error_messages={'required': 'Profile is required', 'null': 'Profile is required'},
    )

    def validate_profile(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError('Profile must be an object')
        return value


class ATSScoreSerializer(ProfilePayloadSerializer):
    jobDescription = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class RenderSerializer(ProfilePayloadSerializer):
    layoutStrategy = serializers.JSONField(required=False, allow_null=True)
    templateStyle = serializers.CharField(required=False, allow_blank=True, default='harvard')
