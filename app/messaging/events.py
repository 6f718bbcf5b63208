"""
Domain events emitted by the messaging services.

Events are immutable snapshots built from a Message inside the writing
transaction and handed to the configured notification emitter only after
that transaction commits. A rolled-back write never emits.

Events:
    NewMessage: A participant sent a message
    ReactionAdded: A participant reacted to someone else's message
    AdminMessage: An admin sent a message through the bypass path

Emitter contract:
    settings.MESSAGING_NOTIFICATION_EMITTER is a dotted path to an object
    exposing emit(event). Emission is fire-and-forget: any exception it
    raises is logged and swallowed, it never affects the message write.

Usage:
    from messaging.events import NewMessage, emit_on_commit

    with transaction.atomic():
        message = Message.objects.create(...)
        emit_on_commit(NewMessage.from_message(message))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from django.conf import settings
from django.db import transaction
from django.utils.module_loading import import_string

if TYPE_CHECKING:
    from messaging.models import Message

logger = logging.getLogger(__name__)

DEFAULT_EMITTER = "notifications.emitter.NotificationEmitter"


@dataclass(frozen=True)
class NewMessage:
    """A participant sent a message to the other participant."""

    event_type: ClassVar[str] = "new_message"

    message_id: int
    conversation_id: int
    sender_id: int
    receiver_id: int
    message_type: str
    preview: str

    @classmethod
    def from_message(cls, message: Message) -> NewMessage:
        return cls(
            message_id=message.pk,
            conversation_id=message.conversation_id,
            sender_id=message.sender_id,
            receiver_id=message.receiver_id,
            message_type=message.message_type,
            preview=message.preview,
        )


@dataclass(frozen=True)
class ReactionAdded:
    """
    A participant reacted to a message.

    recipient_id is the message sender; reactions on one's own messages
    are never emitted.
    """

    event_type: ClassVar[str] = "message_reaction"

    message_id: int
    conversation_id: int
    reactor_id: int
    recipient_id: int
    reaction: str
    preview: str

    @classmethod
    def from_message(cls, message: Message, reactor_id: int, reaction: str) -> ReactionAdded:
        return cls(
            message_id=message.pk,
            conversation_id=message.conversation_id,
            reactor_id=reactor_id,
            recipient_id=message.sender_id,
            reaction=reaction,
            preview=message.preview,
        )


@dataclass(frozen=True)
class AdminMessage:
    """An admin sent a message through the admin messaging path."""

    event_type: ClassVar[str] = "admin_message"

    message_id: int
    conversation_id: int
    sender_id: int
    receiver_id: int
    preview: str

    @classmethod
    def from_message(cls, message: Message) -> AdminMessage:
        return cls(
            message_id=message.pk,
            conversation_id=message.conversation_id,
            sender_id=message.sender_id,
            receiver_id=message.receiver_id,
            preview=message.preview,
        )


MessagingEvent = NewMessage | ReactionAdded | AdminMessage


def get_emitter():
    """Resolve the configured emitter from settings."""
    return import_string(
        getattr(settings, "MESSAGING_NOTIFICATION_EMITTER", DEFAULT_EMITTER)
    )


def emit(event: MessagingEvent) -> None:
    """
    Hand an event to the emitter, swallowing any failure.

    Called from on_commit callbacks; an exception here must not propagate
    into the committing request.
    """
    try:
        get_emitter().emit(event)
    except Exception:
        logger.exception(
            f"Notification emission failed for {event.event_type} "
            f"(message {event.message_id})"
        )


def emit_on_commit(event: MessagingEvent) -> None:
    """
    Emit an event once the current transaction commits.

    Outside a transaction the event is emitted immediately.
    """
    transaction.on_commit(lambda: emit(event))
