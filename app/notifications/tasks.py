"""
Celery tasks for notification delivery.

Tasks:
    broadcast_websocket_notification: Broadcast notification via WebSocket

Design:
    - Tasks receive delivery_id instead of notification_id
    - Each task updates the NotificationDelivery status
    - Tasks are idempotent: re-running on non-PENDING delivery is a no-op
    - Channel layer errors are retried; the final failure marks the
      delivery FAILED

Usage:
    from notifications.tasks import broadcast_websocket_notification

    # Called automatically by NotificationService.create_notification()
    broadcast_websocket_notification.delay(delivery_id)
"""

from __future__ import annotations

import logging

from asgiref.sync import async_to_sync
from celery import shared_task
from channels.layers import get_channel_layer
from django.utils import timezone as django_timezone

from notifications.models import DeliveryStatus, NotificationDelivery

logger = logging.getLogger(__name__)

MAX_RETRIES = 3


def user_group_name(user_id: int) -> str:
    """Channel layer group joined by every socket of a user."""
    return f"notifications_user_{user_id}"


def _get_delivery(delivery_id: int) -> NotificationDelivery | None:
    """
    Fetch delivery with related notification.

    Returns None if delivery not found or not in PENDING status.
    """
    delivery = (
        NotificationDelivery.objects.select_related(
            "notification",
            "notification__notification_type",
        )
        .filter(id=delivery_id)
        .first()
    )
    if delivery is None:
        logger.warning(f"Delivery {delivery_id} not found")
        return None
    if delivery.status != DeliveryStatus.PENDING:
        logger.info(f"Delivery {delivery_id} status is {delivery.status}, skipping")
        return None
    return delivery


def _build_payload(delivery: NotificationDelivery) -> dict:
    notification = delivery.notification
    return {
        "type": "notification.message",
        "notification": {
            "id": notification.id,
            "type_key": notification.notification_type.key,
            "title": notification.title,
            "body": notification.body,
            "data": notification.data,
            "created_at": notification.created_at.isoformat(),
        },
    }


def _mark_failed(delivery: NotificationDelivery, error: Exception) -> None:
    delivery.status = DeliveryStatus.FAILED
    delivery.failed_at = django_timezone.now()
    delivery.failure_reason = str(error)
    delivery.save(
        update_fields=["status", "failed_at", "failure_reason", "attempt_count", "updated_at"]
    )


@shared_task(bind=True, max_retries=MAX_RETRIES)
def broadcast_websocket_notification(self, delivery_id: int) -> bool:
    """
    Broadcast notification via WebSocket using Django Channels.

    Flow:
        1. Fetch delivery + notification
        2. Skip if status != PENDING
        3. group_send to the recipient's notification group
        4. Mark as DELIVERED

    Args:
        delivery_id: ID of the NotificationDelivery

    Returns:
        True if broadcast or skipped, False once retries are exhausted
    """
    delivery = _get_delivery(delivery_id)
    if delivery is None:
        return True

    recipient_id = delivery.notification.recipient_id
    logger.info(
        f"Broadcasting websocket notification for delivery {delivery_id} "
        f"to user {recipient_id}"
    )

    delivery.attempt_count += 1
    try:
        channel_layer = get_channel_layer()
        async_to_sync(channel_layer.group_send)(
            user_group_name(recipient_id), _build_payload(delivery)
        )
    except Exception as exc:
        if self.request.retries >= MAX_RETRIES:
            _mark_failed(delivery, exc)
            logger.exception(
                f"WebSocket broadcast failed permanently for delivery {delivery_id}"
            )
            return False
        delivery.save(update_fields=["attempt_count", "updated_at"])
        logger.warning(
            f"WebSocket broadcast failed for delivery {delivery_id}: {exc}, will retry"
        )
        raise self.retry(exc=exc, countdown=2**self.request.retries)

    delivery.status = DeliveryStatus.DELIVERED
    delivery.delivered_at = django_timezone.now()
    delivery.save(update_fields=["status", "delivered_at", "attempt_count", "updated_at"])

    logger.info(f"WebSocket notification broadcast for delivery {delivery_id}")
    return True
