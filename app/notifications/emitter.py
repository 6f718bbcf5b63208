"""
Notification emitter for messaging events.

Maps messaging.events to NotificationService.create_notification. This is
the default target of settings.MESSAGING_NOTIFICATION_EMITTER.

Mapping:
    NewMessage    -> new_message       (recipient: message receiver)
    ReactionAdded -> message_reaction  (recipient: message sender)
    AdminMessage  -> admin_message     (recipient: message receiver)

Idempotency keys:
    new_message:<message_id>
    message_reaction:<message_id>:<reactor_id>:<reaction>
    admin_message:<message_id>

Errors raised here are logged and swallowed by messaging.events.emit.
"""

from __future__ import annotations

import logging

from django.contrib.auth import get_user_model

from messaging.events import AdminMessage, MessagingEvent, NewMessage, ReactionAdded
from notifications.models import NotificationTypeKey
from notifications.services import NotificationService

logger = logging.getLogger(__name__)

ADMIN_PREVIEW_LENGTH = 50


def _admin_excerpt(preview: str) -> str:
    if len(preview) > ADMIN_PREVIEW_LENGTH:
        return preview[:ADMIN_PREVIEW_LENGTH] + "..."
    return preview


class NotificationEmitter:
    """Turns messaging events into persisted, broadcast notifications."""

    @classmethod
    def emit(cls, event: MessagingEvent) -> None:
        if isinstance(event, ReactionAdded):
            recipient_id, actor_id = event.recipient_id, event.reactor_id
        else:
            recipient_id, actor_id = event.receiver_id, event.sender_id

        User = get_user_model()
        users = {
            user.id: user
            for user in User.objects.filter(
                pk__in=[recipient_id, actor_id]
            ).select_related("profile")
        }
        recipient = users.get(recipient_id)
        if recipient is None or not recipient.is_active:
            logger.info(
                f"Skipping {event.event_type} notification: "
                f"recipient {recipient_id} missing or inactive"
            )
            return
        actor = users.get(actor_id)

        data = {
            "conversation_id": event.conversation_id,
            "sender_id": actor_id,
            "message_id": event.message_id,
            "message_preview": event.preview,
            "is_admin_message": isinstance(event, AdminMessage),
            "sender_name": actor.get_full_name() if actor else "Someone",
        }

        if isinstance(event, NewMessage):
            type_key = NotificationTypeKey.NEW_MESSAGE
            idempotency_key = f"{type_key.value}:{event.message_id}"
        elif isinstance(event, ReactionAdded):
            type_key = NotificationTypeKey.MESSAGE_REACTION
            idempotency_key = (
                f"{type_key.value}:{event.message_id}:{event.reactor_id}:{event.reaction}"
            )
            data["reaction"] = event.reaction
        else:
            type_key = NotificationTypeKey.ADMIN_MESSAGE
            idempotency_key = f"{type_key.value}:{event.message_id}"
            data["preview_excerpt"] = _admin_excerpt(event.preview)

        result = NotificationService.create_notification(
            recipient=recipient,
            type_key=type_key,
            data=data,
            actor=actor,
            idempotency_key=idempotency_key,
        )
        if not result.success and result.error_code != "DUPLICATE":
            logger.warning(
                f"{event.event_type} notification for message {event.message_id} "
                f"not created: {result.error_code} {result.error}"
            )
