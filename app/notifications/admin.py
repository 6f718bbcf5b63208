"""
Django admin configuration for notification models.

Registers all notification models with the admin site:
- NotificationType
- Notification
- UserGlobalPreference
- UserNotificationPreference
- NotificationDelivery
"""

from django.contrib import admin

from notifications.models import (
    Notification,
    NotificationDelivery,
    NotificationType,
    UserGlobalPreference,
    UserNotificationPreference,
)


@admin.register(NotificationType)
class NotificationTypeAdmin(admin.ModelAdmin):
    """
    Admin configuration for NotificationType.

    Templates use str.format placeholders filled from the event data
    (sender_name, message_preview, reaction, preview_excerpt).
    """

    list_display = [
        "key",
        "display_name",
        "category",
        "is_active",
        "supports_websocket",
    ]
    list_filter = ["is_active", "category", "supports_websocket"]
    search_fields = ["key", "display_name"]
    ordering = ["category", "key"]
    fieldsets = (
        (None, {"fields": ("key", "display_name", "category", "is_active")}),
        ("Templates", {"fields": ("title_template", "body_template")}),
        ("Channel Support", {"fields": ("supports_websocket",)}),
    )


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    """Read-only view of notifications for debugging and support."""

    list_display = [
        "id",
        "notification_type",
        "recipient",
        "title",
        "is_read",
        "created_at",
    ]
    list_filter = ["is_read", "notification_type", "created_at"]
    search_fields = ["title", "recipient__email", "idempotency_key"]
    ordering = ["-created_at"]
    readonly_fields = [
        "notification_type",
        "recipient",
        "actor",
        "title",
        "body",
        "data",
        "idempotency_key",
        "created_at",
        "updated_at",
    ]
    raw_id_fields = ["recipient", "actor"]


@admin.register(UserGlobalPreference)
class UserGlobalPreferenceAdmin(admin.ModelAdmin):
    list_display = ["user", "all_disabled", "updated_at"]
    list_filter = ["all_disabled"]
    search_fields = ["user__email"]
    raw_id_fields = ["user"]
    readonly_fields = ["created_at", "updated_at"]


@admin.register(UserNotificationPreference)
class UserNotificationPreferenceAdmin(admin.ModelAdmin):
    list_display = [
        "user",
        "notification_type",
        "disabled",
        "websocket_enabled",
        "updated_at",
    ]
    list_filter = ["notification_type", "disabled", "websocket_enabled"]
    search_fields = ["user__email", "notification_type__key"]
    raw_id_fields = ["user"]
    readonly_fields = ["created_at", "updated_at"]


@admin.register(NotificationDelivery)
class NotificationDeliveryAdmin(admin.ModelAdmin):
    """Shows WebSocket delivery status for each notification."""

    list_display = [
        "id",
        "notification",
        "channel",
        "status",
        "attempt_count",
        "delivered_at",
        "failed_at",
    ]
    list_filter = ["channel", "status"]
    search_fields = ["notification__recipient__email"]
    ordering = ["-created_at"]
    readonly_fields = [
        "notification",
        "channel",
        "status",
        "delivered_at",
        "failed_at",
        "failure_reason",
        "attempt_count",
        "skipped_reason",
        "created_at",
        "updated_at",
    ]
    raw_id_fields = ["notification"]

    def has_add_permission(self, request):
        """Deliveries are created by the system, not manually."""
        return False

    def has_delete_permission(self, request, obj=None):
        """Deliveries are kept for audit purposes."""
        return False
