"""
Notification service layer.

This module provides the business logic for the notification system,
encapsulating all operations for creating and managing notifications.

Services:
    NotificationService: Notification creation and read status management
    PreferenceService: User notification preference management

Design Principles:
    - Services are stateless (use class methods)
    - Expected failures return ServiceResult carrying a core.exceptions
      instance
    - Template rendering raises KeyError on missing placeholders
    - Celery tasks are enqueued based on user preferences and channel support
    - Delivery records track per-channel status for retry and analytics

Usage:
    from notifications.services import NotificationService, PreferenceService

    # Create a notification with template rendering
    result = NotificationService.create_notification(
        recipient=user,
        type_key="new_message",
        data={"sender_name": "John Doe", "message_preview": "Hi"},
        actor=john_doe,
        idempotency_key="new_message:42",
    )

    # Mark all as read
    result = NotificationService.mark_all_as_read(user)

    # Mute everything
    result = PreferenceService.set_global_preference(user, all_disabled=True)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.db import IntegrityError, transaction

from core.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from core.services import BaseService, ServiceResult

from notifications.models import (
    DeliveryChannel,
    DeliveryStatus,
    Notification,
    NotificationDelivery,
    NotificationType,
    SkipReason,
    UserGlobalPreference,
    UserNotificationPreference,
)
from notifications.preferences import PreferenceResolver

if TYPE_CHECKING:
    from authentication.models import User

logger = logging.getLogger(__name__)


class NotificationService(BaseService):
    """
    Service for notification operations.

    Methods:
        create_notification: Create a new notification with template rendering
        mark_as_read: Mark a single notification as read
        mark_all_as_read: Mark all user's unread notifications as read
    """

    @classmethod
    def create_notification(
        cls,
        recipient: User,
        type_key: str,
        data: dict | None = None,
        title: str | None = None,
        body: str | None = None,
        actor: User | None = None,
        idempotency_key: str | None = None,
    ) -> ServiceResult[Notification]:
        """
        Create a new notification for a user.

        If title/body are not provided, templates from NotificationType are
        rendered using the data dict. Explicit title/body override templates.

        Implementation:
            1. Look up NotificationType by key
            2. Validate type is active
            3. Idempotency check (if key provided)
            4. Resolve user preferences
            5. Render templates (or use explicit values)
            6. Create notification with delivery records in transaction
            7. Enqueue Celery tasks for PENDING deliveries only

        Args:
            recipient: User receiving the notification
            type_key: NotificationType.key to look up
            data: Dict for template rendering, stored on the notification
            title: Explicit title (overrides template)
            body: Explicit body (overrides template)
            actor: User who triggered the notification (optional)
            idempotency_key: Optional key to prevent duplicate notifications

        Returns:
            ServiceResult with created Notification if successful

        Error codes:
            TYPE_NOT_FOUND: Notification type key doesn't exist
            TYPE_INACTIVE: Notification type is deactivated
            DUPLICATE: Notification with this idempotency_key already exists

        Raises:
            KeyError: If template placeholder is missing from data
        """
        # Import tasks here to avoid circular imports
        from notifications import tasks

        data = data or {}

        notification_type = NotificationType.objects.filter(key=type_key).first()
        if notification_type is None:
            cls.get_logger().warning(f"Notification type not found: {type_key}")
            return ServiceResult.from_exception(
                NotFoundError(
                    f"Notification type not found: {type_key}",
                    error_code="TYPE_NOT_FOUND",
                )
            )

        if not notification_type.is_active:
            cls.get_logger().info(
                f"Notification type inactive: {type_key} - skipping creation"
            )
            return ServiceResult.from_exception(
                ValidationError(
                    f"Notification type is inactive: {type_key}",
                    error_code="TYPE_INACTIVE",
                )
            )

        duplicate = ServiceResult.from_exception(
            ConflictError(
                f"Notification with idempotency_key already exists: {idempotency_key}",
                error_code="DUPLICATE",
            )
        )
        if idempotency_key and Notification.objects.filter(
            idempotency_key=idempotency_key
        ).exists():
            cls.get_logger().info(
                f"Duplicate notification prevented: idempotency_key={idempotency_key}"
            )
            return duplicate

        prefs = PreferenceResolver.resolve(recipient, notification_type)
        if prefs.blocked:
            cls.get_logger().info(
                f"User {recipient.id} has blocked notifications: {prefs.blocked_reason}"
            )

        # KeyError is raised if placeholder is missing
        rendered_title = title or notification_type.title_template.format(**data)
        rendered_body = body or notification_type.body_template.format(**data)

        deliveries = []
        try:
            with transaction.atomic():
                notification = Notification.objects.create(
                    notification_type=notification_type,
                    recipient=recipient,
                    actor=actor,
                    title=rendered_title,
                    body=rendered_body,
                    data=data,
                    idempotency_key=idempotency_key,
                )

                if notification_type.supports_websocket:
                    if prefs.blocked:
                        status = DeliveryStatus.SKIPPED
                        reason = prefs.blocked_reason or SkipReason.GLOBAL_DISABLED
                    elif not prefs.websocket_enabled:
                        status = DeliveryStatus.SKIPPED
                        reason = SkipReason.CHANNEL_DISABLED
                    else:
                        status = DeliveryStatus.PENDING
                        reason = ""
                    deliveries.append(
                        NotificationDelivery.objects.create(
                            notification=notification,
                            channel=DeliveryChannel.WEBSOCKET,
                            status=status,
                            skipped_reason=reason,
                        )
                    )
        except IntegrityError:
            # Concurrent emit with the same idempotency key
            cls.get_logger().info(
                f"Duplicate notification prevented on insert: idempotency_key={idempotency_key}"
            )
            return duplicate

        cls.get_logger().info(
            f"Created notification {notification.id} of type {type_key} "
            f"for user {recipient.id} with {len(deliveries)} delivery records"
        )

        for delivery in deliveries:
            if delivery.status == DeliveryStatus.PENDING:
                tasks.broadcast_websocket_notification.delay(delivery.id)

        return ServiceResult.success(notification)

    @classmethod
    def mark_as_read(
        cls,
        notification: Notification,
        user: User,
    ) -> ServiceResult[Notification]:
        """
        Mark a single notification as read.

        Operation is idempotent - marking an already-read notification succeeds.

        Error codes:
            NOT_OWNER: User doesn't own the notification
        """
        if notification.recipient_id != user.id:
            cls.get_logger().warning(
                f"User {user.id} attempted to mark notification {notification.id} "
                f"owned by user {notification.recipient_id}"
            )
            return ServiceResult.from_exception(
                PermissionDeniedError(
                    "Cannot mark notification you don't own",
                    error_code="NOT_OWNER",
                )
            )

        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=["is_read", "updated_at"])
            cls.get_logger().debug(f"Marked notification {notification.id} as read")

        return ServiceResult.success(notification)

    @classmethod
    def mark_all_as_read(cls, user: User) -> ServiceResult[int]:
        """
        Mark all user's unread notifications as read.

        Returns:
            ServiceResult with count of notifications marked as read
        """
        count = Notification.objects.filter(
            recipient=user,
            is_read=False,
        ).update(is_read=True)

        cls.get_logger().info(
            f"Marked {count} notifications as read for user {user.id}"
        )

        return ServiceResult.success(count)


class PreferenceService(BaseService):
    """
    Service for user notification preference management.

    Methods:
        get_user_preferences: Get all preferences for API display
        set_global_preference: Update global mute setting
        set_type_preference: Update type-level preferences
        reset_preferences: Reset all preferences to defaults
    """

    @classmethod
    def get_user_preferences(cls, user: User) -> ServiceResult[dict]:
        """
        Get all notification preferences for a user.

        Returns:
            ServiceResult with preferences dict:
            {
                "global": {"all_disabled": bool},
                "types": [{"type_key": str, "type_name": str, "disabled": bool,
                           "websocket_enabled": bool|None}, ...]
            }
        """
        global_pref = UserGlobalPreference.objects.filter(user=user).first()
        global_data = {"all_disabled": bool(global_pref and global_pref.all_disabled)}

        type_prefs = UserNotificationPreference.objects.filter(
            user=user
        ).select_related("notification_type")
        types_data = [
            {
                "type_key": pref.notification_type.key,
                "type_name": pref.notification_type.display_name,
                "disabled": pref.disabled,
                "websocket_enabled": pref.websocket_enabled,
            }
            for pref in type_prefs
        ]

        return ServiceResult.success({"global": global_data, "types": types_data})

    @classmethod
    def set_global_preference(
        cls,
        user: User,
        all_disabled: bool,
    ) -> ServiceResult[UserGlobalPreference]:
        """
        Update global mute setting for a user.

        When all_disabled is True, no notifications will be delivered to
        this user, admin messages included.
        """
        pref, created = UserGlobalPreference.objects.update_or_create(
            user=user,
            defaults={"all_disabled": all_disabled},
        )

        PreferenceResolver.invalidate_cache(user.id)

        action = "created" if created else "updated"
        cls.get_logger().info(
            f"Global preference {action} for user {user.id}: "
            f"all_disabled={all_disabled}"
        )

        return ServiceResult.success(pref)

    @classmethod
    def set_type_preference(
        cls,
        user: User,
        type_key: str,
        disabled: bool | None = None,
        websocket_enabled: bool | None = None,
    ) -> ServiceResult[UserNotificationPreference]:
        """
        Update type-level preferences for a user.

        Args:
            user: The user to update
            type_key: The notification type key
            disabled: Whether to disable this type entirely
            websocket_enabled: Override for websocket channel (None = unchanged)

        Error codes:
            TYPE_NOT_FOUND: Notification type key doesn't exist
        """
        notification_type = NotificationType.objects.filter(key=type_key).first()
        if notification_type is None:
            return ServiceResult.from_exception(
                NotFoundError(
                    f"Notification type not found: {type_key}",
                    error_code="TYPE_NOT_FOUND",
                )
            )

        defaults = {}
        if disabled is not None:
            defaults["disabled"] = disabled
        if websocket_enabled is not None:
            defaults["websocket_enabled"] = websocket_enabled

        pref, created = UserNotificationPreference.objects.update_or_create(
            user=user,
            notification_type=notification_type,
            defaults=defaults,
        )

        PreferenceResolver.invalidate_cache(user.id, notification_type.id)

        action = "created" if created else "updated"
        cls.get_logger().info(
            f"Type preference {action} for user {user.id}: "
            f"type={type_key}, disabled={pref.disabled}"
        )

        return ServiceResult.success(pref)

    @classmethod
    def reset_preferences(cls, user: User) -> ServiceResult[int]:
        """
        Reset all user preferences to defaults.

        Returns:
            ServiceResult with count of deleted preference records
        """
        with transaction.atomic():
            global_count, _ = UserGlobalPreference.objects.filter(user=user).delete()
            type_count, _ = UserNotificationPreference.objects.filter(
                user=user
            ).delete()

        total = global_count + type_count
        PreferenceResolver.invalidate_cache(user.id)

        cls.get_logger().info(
            f"Reset {total} preferences for user {user.id}: "
            f"global={global_count}, type={type_count}"
        )

        return ServiceResult.success(total)
