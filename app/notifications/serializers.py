"""
Serializers for notification API.

Serializers:
    NotificationSerializer: Read-only serializer for notification details
    UnreadCountSerializer: Response for unread count endpoint
    MarkAllReadResponseSerializer: Response for mark all read endpoint
    GlobalPreferenceSerializer: Update global mute setting
    TypePreferenceSerializer: Update type-level preferences
    UserPreferencesResponseSerializer: Complete preferences response
    NotificationTypeSerializer: Available notification types

Usage:
    from notifications.serializers import NotificationSerializer

    serializer = NotificationSerializer(notification)
    data = serializer.data
"""

from __future__ import annotations

from rest_framework import serializers

from notifications.models import Notification, NotificationType


class NotificationSerializer(serializers.ModelSerializer):
    """
    Serializer for Notification model.

    Read-only serializer that includes:
    - Basic notification fields (id, title, body, data, is_read, created_at)
    - type_key from related NotificationType
    - actor_name derived from actor user (handles SET_NULL)
    """

    type_key = serializers.CharField(source="notification_type.key", read_only=True)
    actor_name = serializers.SerializerMethodField()

    class Meta:
        model = Notification
        fields = [
            "id",
            "type_key",
            "title",
            "body",
            "data",
            "actor_name",
            "is_read",
            "created_at",
        ]
        read_only_fields = fields

    def get_actor_name(self, obj: Notification) -> str | None:
        """None when there is no actor or the actor was deleted."""
        if obj.actor is None:
            return None
        return obj.actor.get_full_name()


class UnreadCountSerializer(serializers.Serializer):
    unread_count = serializers.IntegerField()


class MarkAllReadResponseSerializer(serializers.Serializer):
    marked_count = serializers.IntegerField()


# ============================================================================
# Preference Serializers
# ============================================================================


class GlobalPreferenceSerializer(serializers.Serializer):
    """
    Serializer for updating global notification preferences.

    Fields:
        all_disabled: If True, mute all notifications for the user
    """

    all_disabled = serializers.BooleanField(
        help_text="Set to true to disable all notifications"
    )


class TypePreferenceSerializer(serializers.Serializer):
    """
    Serializer for updating type-level notification preferences.

    Fields:
        type_key: The notification type key to update
        disabled: If True, disable this notification type entirely
        websocket_enabled: Override websocket channel (null = inherit from type)
    """

    type_key = serializers.CharField(
        max_length=100,
        help_text="Notification type key to update",
    )
    disabled = serializers.BooleanField(
        required=False,
        allow_null=True,
        default=None,
        help_text="Set to true to disable this notification type entirely",
    )
    websocket_enabled = serializers.BooleanField(
        required=False,
        allow_null=True,
        default=None,
        help_text="Override websocket channel (null = inherit from type default)",
    )

    def validate_type_key(self, value: str) -> str:
        if not NotificationType.objects.filter(key=value).exists():
            raise serializers.ValidationError(
                f"Notification type '{value}' does not exist"
            )
        return value


class TypePreferenceResponseSerializer(serializers.Serializer):
    type_key = serializers.CharField()
    type_name = serializers.CharField()
    disabled = serializers.BooleanField()
    websocket_enabled = serializers.BooleanField(allow_null=True)


class GlobalPreferenceResponseSerializer(serializers.Serializer):
    all_disabled = serializers.BooleanField()


class UserPreferencesResponseSerializer(serializers.Serializer):
    """
    Complete response serializer for all user preferences.

    Returns the global mute status and every type preference with its
    channel override.
    """

    global_preferences = GlobalPreferenceResponseSerializer(source="global")
    types = TypePreferenceResponseSerializer(many=True)


class ResetPreferencesResponseSerializer(serializers.Serializer):
    deleted_count = serializers.IntegerField()


class NotificationTypeSerializer(serializers.ModelSerializer):
    """Lists available notification types with their settings."""

    class Meta:
        model = NotificationType
        fields = [
            "key",
            "display_name",
            "category",
            "supports_websocket",
            "is_active",
        ]
        read_only_fields = fields
