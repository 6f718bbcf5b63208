"""
Notification system models.

This module defines the core models for the notification system:
- NotificationType: Configuration for notification types with templates
- Notification: Individual notifications sent to users
- UserGlobalPreference: Global notification mute setting per user
- UserNotificationPreference: Type-level notification preferences
- NotificationDelivery: Per-channel delivery tracking

Design Decisions:
    - NotificationType uses integer PK (internal lookup table), seeded by a
      data migration with the messaging types
    - Notification inherits from BaseModel (timestamps, ordering)
    - Actor uses SET_NULL (preserve notification when actor deleted)
    - NotificationType uses PROTECT (prevent deletion with existing notifications)
    - Preference hierarchy: Global -> Type -> Channel
    - Delivery records track status per channel for retry/analytics

Usage:
    from notifications.models import NotificationType, Notification

    nt = NotificationType.objects.get(key="new_message")

    notification = Notification.objects.create(
        notification_type=nt,
        recipient=user,
        title="New message from John Doe",
        actor=john_doe,
    )
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.models import BaseModel


# =============================================================================
# Enums
# =============================================================================


class NotificationCategory(models.TextChoices):
    """Categories for grouping notification types."""

    TRANSACTIONAL = "transactional", "Transactional"
    SOCIAL = "social", "Social"
    SYSTEM = "system", "System"


class NotificationTypeKey(models.TextChoices):
    """Keys of the notification types emitted by messaging."""

    NEW_MESSAGE = "new_message", "New Message"
    MESSAGE_REACTION = "message_reaction", "Message Reaction"
    ADMIN_MESSAGE = "admin_message", "Admin Message"


class DeliveryChannel(models.TextChoices):
    """Delivery channels for notifications."""

    WEBSOCKET = "websocket", "WebSocket"


class DeliveryStatus(models.TextChoices):
    """
    Status of a notification delivery attempt.

    State Flow:
        PENDING -> DELIVERED (broadcast reached the channel layer)
        PENDING -> FAILED (retries exhausted)
        SKIPPED (user preference disabled)
    """

    PENDING = "pending", "Pending"
    DELIVERED = "delivered", "Delivered"
    FAILED = "failed", "Failed"
    SKIPPED = "skipped", "Skipped"


class SkipReason(models.TextChoices):
    """Standardized reasons for skipped deliveries."""

    GLOBAL_DISABLED = "global_disabled", "Global notifications disabled"
    TYPE_DISABLED = "type_disabled", "Type disabled"
    CHANNEL_DISABLED = "channel_disabled", "Channel disabled by user"


# =============================================================================
# Configuration Models
# =============================================================================


class NotificationType(models.Model):
    """
    Lookup table for notification type definitions.

    Fields:
        key: Unique programmatic identifier (e.g., "new_message")
        display_name: Human-readable name for admin/UI display
        title_template: Python format string for notification title
        body_template: Python format string for notification body
        is_active: Whether this notification type is currently enabled
        supports_websocket: Can be broadcast in real-time via WebSocket
        category: Grouping for display

    Note:
        - Templates use Python str.format() syntax: {placeholder}
        - Missing placeholders raise KeyError during rendering
    """

    key = models.CharField(
        max_length=100,
        unique=True,
        db_index=True,
        help_text="Unique programmatic identifier (e.g., 'new_message')",
    )

    display_name = models.CharField(
        max_length=200,
        help_text="Human-readable name for display",
    )

    title_template = models.CharField(
        max_length=500,
        blank=True,
        default="",
        help_text="Python format string template for title (e.g., 'New message from {sender_name}')",
    )

    body_template = models.TextField(
        blank=True,
        default="",
        help_text="Python format string template for body",
    )

    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Whether this notification type is currently enabled",
    )

    supports_websocket = models.BooleanField(
        default=True,
        help_text="Can be broadcast via WebSocket",
    )

    category = models.CharField(
        max_length=20,
        choices=NotificationCategory.choices,
        default=NotificationCategory.TRANSACTIONAL,
        db_index=True,
        help_text="Category for preference grouping",
    )

    class Meta:
        db_table = "notifications_notification_type"
        verbose_name = "notification type"
        verbose_name_plural = "notification types"
        ordering = ["key"]

    def __str__(self) -> str:
        return f"{self.display_name} ({self.key})"


class Notification(BaseModel):
    """
    Individual notification record for a user.

    Notifications are immutable once created - title and body are
    fully rendered strings serving as historical records.

    Fields:
        notification_type: FK to NotificationType (defines behavior)
        recipient: User receiving the notification (scopes all queries)
        actor: Optional user who triggered the notification
        title: Fully rendered title string
        body: Fully rendered body string
        data: JSON context (conversation_id, message_id, preview, ...)
        is_read: Whether recipient has read this notification
        idempotency_key: One notification per messaging event

    Note:
        - recipient CASCADE: Notifications deleted when user deleted
        - actor SET_NULL: Notification preserved when actor deleted
        - notification_type PROTECT: Cannot delete type with existing notifications
    """

    notification_type = models.ForeignKey(
        NotificationType,
        on_delete=models.PROTECT,
        related_name="notifications",
        help_text="Type of this notification",
    )

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
        db_index=True,
        help_text="User receiving this notification",
    )

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="triggered_notifications",
        help_text="User who triggered this notification (optional)",
    )

    title = models.CharField(
        max_length=500,
        help_text="Fully rendered notification title",
    )

    body = models.TextField(
        blank=True,
        default="",
        help_text="Fully rendered notification body",
    )

    data = models.JSONField(
        default=dict,
        blank=True,
        help_text="Arbitrary context data (deep links, metadata)",
    )

    is_read = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether recipient has read this notification",
    )

    idempotency_key = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="Idempotency key to prevent duplicate notifications",
    )

    class Meta:
        db_table = "notifications_notification"
        ordering = ["-created_at"]
        indexes = [
            # Primary query: user's unread notifications
            models.Index(
                fields=["recipient", "is_read", "-created_at"],
                name="notif_recipient_unread_idx",
            ),
            models.Index(
                fields=["recipient", "notification_type"],
                name="notif_recipient_type_idx",
            ),
        ]
        constraints = [
            # Unique constraint on idempotency_key when not null
            models.UniqueConstraint(
                fields=["idempotency_key"],
                name="notif_idempotency_key_unique",
                condition=models.Q(idempotency_key__isnull=False),
            ),
        ]

    def __str__(self) -> str:
        read_status = "read" if self.is_read else "unread"
        return (
            f"Notification({self.notification_type.key}) -> "
            f"User {self.recipient_id} [{read_status}]"
        )


# =============================================================================
# Preference Models
# =============================================================================


class UserGlobalPreference(BaseModel):
    """
    Global notification preferences for a user.

    One-to-One with User. If all_disabled is True, all notifications
    are suppressed regardless of other preference settings, admin
    messages included.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name="notification_global_preference",
    )

    all_disabled = models.BooleanField(
        default=False,
        help_text="Master switch to disable all notifications",
    )

    class Meta:
        db_table = "notifications_user_global_preference"
        verbose_name = "user global preference"
        verbose_name_plural = "user global preferences"

    def __str__(self) -> str:
        status = "disabled" if self.all_disabled else "enabled"
        return f"GlobalPreference(user={self.user_id}, {status})"


class UserNotificationPreference(BaseModel):
    """
    Per-notification-type preferences for a user.

    websocket_enabled of None means "inherit from NotificationType default".

    Usage:
        UserNotificationPreference.objects.update_or_create(
            user=user,
            notification_type=notification_type,
            defaults={"disabled": True},
        )
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notification_type_preferences",
    )

    notification_type = models.ForeignKey(
        NotificationType,
        on_delete=models.CASCADE,
        related_name="user_preferences",
    )

    disabled = models.BooleanField(
        default=False,
        help_text="Disable all channels for this notification type",
    )

    websocket_enabled = models.BooleanField(
        null=True,
        blank=True,
        default=None,
        help_text="Override websocket preference (null = use type default)",
    )

    class Meta:
        db_table = "notifications_user_notification_preference"
        verbose_name = "user notification preference"
        verbose_name_plural = "user notification preferences"
        constraints = [
            models.UniqueConstraint(
                fields=["user", "notification_type"],
                name="unique_user_notif_type_pref",
            ),
        ]

    def __str__(self) -> str:
        status = "disabled" if self.disabled else "enabled"
        return f"TypePreference(user={self.user_id}, type={self.notification_type_id}, {status})"


# =============================================================================
# Delivery Tracking Models
# =============================================================================


class NotificationDelivery(BaseModel):
    """
    Tracks delivery status for each channel of a notification.

    One NotificationDelivery record per (notification, channel) combination.

    Fields:
        notification: The notification being delivered
        channel: Delivery channel
        status: Current delivery status
        attempt_count: Number of delivery attempts
        skipped_reason: Why delivery was skipped (if status=SKIPPED)
        failure_reason: Detailed error message if failed
    """

    notification = models.ForeignKey(
        Notification,
        on_delete=models.CASCADE,
        related_name="deliveries",
    )

    channel = models.CharField(
        max_length=20,
        choices=DeliveryChannel.choices,
        help_text="Delivery channel",
    )

    status = models.CharField(
        max_length=20,
        choices=DeliveryStatus.choices,
        default=DeliveryStatus.PENDING,
        db_index=True,
        help_text="Current delivery status",
    )

    delivered_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the payload reached the channel layer",
    )

    failed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When delivery failed",
    )

    failure_reason = models.TextField(
        blank=True,
        default="",
        help_text="Detailed failure message",
    )

    attempt_count = models.PositiveSmallIntegerField(
        default=0,
        help_text="Number of delivery attempts",
    )

    skipped_reason = models.CharField(
        max_length=30,
        choices=SkipReason.choices,
        blank=True,
        default="",
        help_text="Reason if status=SKIPPED",
    )

    class Meta:
        db_table = "notifications_notification_delivery"
        verbose_name = "notification delivery"
        verbose_name_plural = "notification deliveries"
        constraints = [
            models.UniqueConstraint(
                fields=["notification", "channel"],
                name="unique_notification_channel",
            ),
        ]
        indexes = [
            models.Index(
                fields=["status", "channel", "-created_at"],
                name="notif_delivery_status_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"Delivery({self.notification_id}, {self.channel}, {self.status})"
