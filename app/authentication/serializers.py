"""
Serializers for authentication models.

This module provides DRF serializers for:
- User model (read operations, embedded in messaging payloads)
- PrivacySettings (read/update)

Related files:
    - models.py: User, Profile and PrivacySettings models
    - views.py: Views that use these serializers
"""

from rest_framework import serializers

from authentication.models import PrivacySettings, User


class UserSerializer(serializers.ModelSerializer):
    """
    Serializer for User model (read operations).

    Used for /api/v1/auth/me/ and for participant data nested in
    conversation and message responses.
    """

    full_name = serializers.SerializerMethodField()
    username = serializers.CharField(source="profile.username", read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "full_name",
            "username",
            "role",
        ]
        read_only_fields = fields

    def get_full_name(self, obj):
        """Return the user's full name from profile."""
        return obj.get_full_name()


class PrivacySettingsSerializer(serializers.ModelSerializer):
    """
    Serializer for PrivacySettings (read and partial update).

    allow_messages is the flag consulted by the messaging privacy gate.
    """

    class Meta:
        model = PrivacySettings
        fields = [
            "profile_visibility",
            "show_activity",
            "allow_messages",
            "updated_at",
        ]
        read_only_fields = ["updated_at"]
