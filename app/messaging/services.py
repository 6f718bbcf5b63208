"""
Messaging service layer.

This module provides the business logic for direct messaging, encapsulating
every write that touches conversations, messages, unread counters and
reactions.

Services:
    ConversationService: Conversation registry (get-or-create on a canonical
        pair), listings and counter reconciliation
    MessageService: Sending and the delivery state machine (delivered, read,
        batch read, failed) plus sender soft delete
    ReactionService: Reaction toggle and per-glyph summaries
    AdminMessagingService: Admin bypass path with an in-transaction role check
    MessageDispatcher: Two-path entry point (participant path runs the privacy
        gate, admin path runs the role check)

Design Principles:
    - Services are stateless (use class methods)
    - Failures are returned as ServiceResult carrying a core.exceptions
      instance; views call unwrap() and the API exception handler maps it
    - The conversation row is the single point of write contention: every
      path that changes a counter locks it first (select_for_update), then
      locks or updates messages, always in that order
    - Message insert, counter change and last message pointer update happen
      in one transaction
    - Notifications are registered with transaction.on_commit and never
      roll back a write

Usage:
    from messaging.services import MessageDispatcher, MessageService

    # Normal path (privacy gate applies)
    result = MessageDispatcher.send_as_participant(
        sender=request.user, receiver_id=other.id, content="Hi"
    )

    # Receiver viewed the message
    MessageService.mark_read(message_id=result.data.id, user=other)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Case, Count, Exists, F, OuterRef, Q, Value, When
from django.utils import timezone
from django_fsm import can_proceed

from authentication.services import PrivacyGate, RoleResolver
from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    StorageError,
    ValidationError,
)
from core.services import BaseService, ServiceResult

from messaging.constants import (
    ADMIN_CONFIG,
    MESSAGE_CONFIG,
    REACTION_CONFIG,
    REGISTRY_CONFIG,
)
from messaging.events import AdminMessage, NewMessage, ReactionAdded, emit_on_commit
from messaging.models import (
    UNREAD_STATUSES,
    Conversation,
    DeliveryStatus,
    Message,
    MessageReaction,
    MessageType,
    ParticipantKind,
    ReactionOutcome,
)

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from authentication.models import User


# =============================================================================
# Value objects
# =============================================================================


@dataclass(frozen=True)
class Attachment:
    """Attachment metadata for image and file messages."""

    url: str
    name: str = ""
    size: int | None = None
    mime_type: str = ""
    thumbnail_url: str = ""


@dataclass(frozen=True)
class ReactionSummary:
    """Reactions on a message grouped by glyph."""

    reaction: str
    count: int
    user_ids: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class AdminConversationRow:
    """Read-only projection of a conversation for the admin inbox."""

    conversation_id: int
    other_participant_id: int
    other_participant_kind: str
    last_message_content: str | None
    last_message_at: datetime
    unread_count: int


@dataclass(frozen=True)
class UnreadConversation:
    conversation_id: int
    unread_count: int
    last_message_at: datetime


@dataclass(frozen=True)
class UnreadSummary:
    total: int
    conversations: list[UnreadConversation]


# =============================================================================
# Shared helpers
# =============================================================================


def _lock_conversation(conversation_id: int) -> Conversation:
    """
    Fetch and row-lock a conversation. Must run inside a transaction.

    Raises:
        NotFoundError: CONVERSATION_NOT_FOUND
    """
    conversation = (
        Conversation.objects.select_for_update().filter(pk=conversation_id).first()
    )
    if conversation is None:
        raise NotFoundError(
            f"Conversation {conversation_id} not found",
            error_code="CONVERSATION_NOT_FOUND",
            details={"conversation_id": conversation_id},
        )
    return conversation


def _require_reader(conversation: Conversation, user: User) -> None:
    """
    Participants and admins may read a conversation.

    Raises:
        PermissionDeniedError: NOT_PARTICIPANT
    """
    if conversation.has_participant(user.id):
        return
    if RoleResolver.is_admin(user.id):
        return
    raise PermissionDeniedError(
        "You are not a participant in this conversation",
        error_code="NOT_PARTICIPANT",
    )


def _profile_matches(participant_field: str, term: str) -> Q:
    """Case-insensitive match of one search term against a participant's profile."""
    return (
        Q(**{f"{participant_field}__profile__first_name__icontains": term})
        | Q(**{f"{participant_field}__profile__last_name__icontains": term})
        | Q(**{f"{participant_field}__profile__username__icontains": term})
    )


def _decrement_unread(
    conversation: Conversation,
    user_id: int,
    amount: int,
    logger,
) -> None:
    """
    Decrement a participant's unread counter, clamping at zero.

    The conversation must already be row-locked by the caller. A counter
    that would go negative is clamped and logged as an anomaly.
    """
    if amount <= 0:
        return
    field_name = conversation.unread_field_for(user_id)
    current = getattr(conversation, field_name)
    if current < amount:
        logger.warning(
            f"Unread counter anomaly on conversation {conversation.pk}: "
            f"{field_name}={current}, decrement by {amount}; clamping at 0"
        )
    Conversation.objects.filter(pk=conversation.pk).update(
        **{
            field_name: Case(
                When(**{f"{field_name}__gte": amount}, then=F(field_name) - amount),
                default=Value(0),
            ),
            "updated_at": timezone.now(),
        }
    )
    setattr(conversation, field_name, max(0, current - amount))


def _storage_failure(service, exc: DatabaseError, context: str) -> ServiceResult:
    """Log a database error and return it as STORAGE_FAILURE."""
    return service.handle_exception(
        StorageError(f"{context} could not be committed", details={"reason": str(exc)}),
        context=context,
    )


# =============================================================================
# Conversation Registry
# =============================================================================


class ConversationService(BaseService):
    """
    Service for the conversation registry.

    Methods:
        get_or_create_conversation: Resolve the single conversation of a pair
        get_conversation: Fetch a conversation visible to a participant/admin
        list_conversations: Conversations of a participant, newest first
        search_conversations: Filter those by participant name or message text
        reconcile_unread_counts: Recompute counters from the message set
    """

    @classmethod
    def _max_attempts(cls) -> int:
        return getattr(
            settings,
            "MESSAGING_REGISTRY_MAX_ATTEMPTS",
            REGISTRY_CONFIG.MAX_CREATE_ATTEMPTS,
        )

    @classmethod
    def _insert(
        cls,
        lower_id: int,
        lower_kind: str,
        higher_id: int,
        higher_kind: str,
    ) -> Conversation:
        """
        Insert a conversation for a canonical pair.

        Raises:
            ConflictError: A concurrent insert won the canonical key
        """
        try:
            with transaction.atomic():
                return Conversation.objects.create(
                    participant_one_id=lower_id,
                    participant_one_kind=lower_kind,
                    participant_two_id=higher_id,
                    participant_two_kind=higher_kind,
                )
        except IntegrityError as exc:
            raise ConflictError(
                "Conversation for this pair was created concurrently",
                details={"pair": [lower_id, higher_id]},
            ) from exc

    @classmethod
    def get_or_create_conversation(
        cls,
        user_a: User,
        user_b: User,
        kind_a: str | None = None,
        kind_b: str | None = None,
    ) -> ServiceResult[tuple[Conversation, bool]]:
        """
        Resolve the conversation between two users, creating it if absent.

        Conversations are unique per unordered pair. The first call fixes
        the participant kinds; later calls never overwrite them.

        Implementation:
            1. Validate users are different and kinds are known
            2. Canonicalize order (lower user id first)
            3. Look up by canonical pair; return it if found
            4. Insert; if a concurrent insert wins the unique key, re-read
            5. Give up after MAX_CREATE_ATTEMPTS with STORAGE_FAILURE

        Args:
            user_a: First participant
            user_b: Second participant
            kind_a: Participant kind of user_a (defaults to their role)
            kind_b: Participant kind of user_b (defaults to their role)

        Returns:
            ServiceResult with (Conversation, created)

        Error codes:
            SAME_USER: Cannot create a conversation with yourself
            INVALID_PARTICIPANT: Unknown participant kind
            STORAGE_FAILURE: Could not resolve the pair after retries
        """
        if user_a.id == user_b.id:
            return ServiceResult.from_exception(
                ValidationError(
                    "Cannot create a conversation with yourself",
                    error_code="SAME_USER",
                )
            )

        kind_a = kind_a or RoleResolver.participant_kind(user_a)
        kind_b = kind_b or RoleResolver.participant_kind(user_b)
        for kind in (kind_a, kind_b):
            if kind not in ParticipantKind.values:
                return ServiceResult.from_exception(
                    ValidationError(
                        f"Unknown participant kind '{kind}'",
                        error_code="INVALID_PARTICIPANT",
                    )
                )

        if user_a.id < user_b.id:
            lower_id, lower_kind, higher_id, higher_kind = user_a.id, kind_a, user_b.id, kind_b
        else:
            lower_id, lower_kind, higher_id, higher_kind = user_b.id, kind_b, user_a.id, kind_a

        max_attempts = cls._max_attempts()
        try:
            for attempt in range(1, max_attempts + 1):
                existing = Conversation.objects.filter(
                    participant_one_id=lower_id,
                    participant_two_id=higher_id,
                ).first()
                if existing is not None:
                    cls.get_logger().debug(
                        f"Found existing conversation {existing.pk} "
                        f"between users {lower_id} and {higher_id}"
                    )
                    return ServiceResult.success((existing, False))

                try:
                    conversation = cls._insert(lower_id, lower_kind, higher_id, higher_kind)
                except ConflictError:
                    cls.get_logger().warning(
                        f"Concurrent create for pair ({lower_id}, {higher_id}), "
                        f"re-reading (attempt {attempt}/{max_attempts})"
                    )
                    continue

                cls.get_logger().info(
                    f"Created conversation {conversation.pk} "
                    f"between users {lower_id} and {higher_id}"
                )
                return ServiceResult.success((conversation, True))
        except DatabaseError as exc:
            return _storage_failure(cls, exc, "get_or_create_conversation")

        return cls.handle_exception(
            StorageError(
                "Could not resolve conversation after concurrent inserts",
                details={"pair": [lower_id, higher_id], "attempts": max_attempts},
            ),
            context="get_or_create_conversation",
        )

    @classmethod
    def get_conversation(
        cls,
        conversation_id: int,
        user: User,
    ) -> ServiceResult[Conversation]:
        """
        Fetch a conversation for a participant or an admin.

        Error codes:
            CONVERSATION_NOT_FOUND: No such conversation
            NOT_PARTICIPANT: Caller is neither participant nor admin
        """
        conversation = (
            Conversation.objects.select_related(
                "participant_one__profile",
                "participant_two__profile",
                "last_message",
            )
            .filter(pk=conversation_id)
            .first()
        )
        if conversation is None:
            return ServiceResult.from_exception(
                NotFoundError(
                    f"Conversation {conversation_id} not found",
                    error_code="CONVERSATION_NOT_FOUND",
                )
            )
        try:
            _require_reader(conversation, user)
        except PermissionDeniedError as exc:
            return ServiceResult.from_exception(exc)
        return ServiceResult.success(conversation)

    @classmethod
    def list_conversations(cls, user: User) -> QuerySet[Conversation]:
        """
        Conversations the user participates in, newest activity first.

        Returns a queryset so the API layer can cursor-paginate it.
        """
        return (
            Conversation.objects.filter(
                Q(participant_one=user) | Q(participant_two=user)
            )
            .select_related(
                "participant_one__profile",
                "participant_two__profile",
                "last_message",
            )
            .order_by("-last_message_at", "-created_at", "-id")
        )

    @classmethod
    def search_conversations(cls, user: User, query: str = "") -> QuerySet[Conversation]:
        """
        Filter the user's conversations by a search query.

        A conversation matches when every word of the query appears in the
        other participant's first name, last name or username, or when the
        whole query appears in one of its live messages. Matching is
        case-insensitive. A blank query returns every conversation.
        """
        queryset = cls.list_conversations(user)
        query = (query or "").strip()
        if not query:
            return queryset

        other_is_two = Q(participant_one=user)
        other_is_one = Q(participant_two=user)
        for term in query.split():
            other_is_two &= _profile_matches("participant_two", term)
            other_is_one &= _profile_matches("participant_one", term)

        in_messages = Exists(
            Message.objects.filter(
                conversation_id=OuterRef("pk"), content__icontains=query
            )
        )
        return queryset.filter(other_is_two | other_is_one | in_messages)

    @classmethod
    def reconcile_unread_counts(
        cls,
        conversation_id: int | None = None,
    ) -> ServiceResult[int]:
        """
        Recompute unread counters from the live message set.

        Counters are expected to be exact; this is a safety net that fixes
        and logs any drift. Each conversation is corrected in its own short
        transaction under the conversation row lock.

        Args:
            conversation_id: Limit to one conversation (all when None)

        Returns:
            ServiceResult with the number of conversations corrected
        """
        ids = Conversation.objects.order_by("pk").values_list("pk", flat=True)
        if conversation_id is not None:
            ids = ids.filter(pk=conversation_id)

        fixed = 0
        try:
            for pk in list(ids):
                with cls.atomic():
                    conversation = (
                        Conversation.objects.select_for_update().filter(pk=pk).first()
                    )
                    if conversation is None:
                        continue
                    counts = dict(
                        Message.objects.filter(
                            conversation=conversation,
                            delivery_status__in=UNREAD_STATUSES,
                        )
                        .order_by()
                        .values("receiver_id")
                        .annotate(n=Count("id"))
                        .values_list("receiver_id", "n")
                    )
                    expected_one = counts.get(conversation.participant_one_id, 0)
                    expected_two = counts.get(conversation.participant_two_id, 0)
                    if (
                        conversation.unread_count_one == expected_one
                        and conversation.unread_count_two == expected_two
                    ):
                        continue

                    cls.get_logger().warning(
                        f"Unread drift on conversation {pk}: "
                        f"one {conversation.unread_count_one}->{expected_one}, "
                        f"two {conversation.unread_count_two}->{expected_two}"
                    )
                    Conversation.objects.filter(pk=pk).update(
                        unread_count_one=expected_one,
                        unread_count_two=expected_two,
                        updated_at=timezone.now(),
                    )
                    fixed += 1
        except DatabaseError as exc:
            return _storage_failure(cls, exc, "reconcile_unread_counts")

        if fixed:
            cls.get_logger().info(f"Reconciled unread counters on {fixed} conversation(s)")
        return ServiceResult.success(fixed)


# =============================================================================
# Message Store and Delivery State Machine
# =============================================================================


class MessageService(BaseService):
    """
    Service for message operations and delivery state.

    Methods:
        send_message: Append a message and bump the receiver's counter
        list_messages: Messages of a conversation, oldest first
        mark_delivered: sent -> delivered
        mark_read: sent/delivered -> read, decrement counter
        mark_all_as_read: Batch read, reset counter to 0
        mark_failed: sent -> failed, reverse the increment
        delete_message: Sender-only soft delete
        get_unread_summary: Total and per-conversation unread counts

    Transitions to an equal or earlier state are no-ops returning the
    unchanged message, never errors.
    """

    @classmethod
    def validate_payload(
        cls,
        message_type: str,
        content: str,
        attachment: Attachment | None,
    ) -> str:
        """
        Validate message content for its type.

        Returns:
            The stripped content

        Raises:
            ValidationError: INVALID_MESSAGE_TYPE, EMPTY_CONTENT,
                MISSING_ATTACHMENT or CONTENT_TOO_LONG
        """
        if message_type not in MessageType.values:
            raise ValidationError(
                f"Unknown message type '{message_type}'",
                error_code="INVALID_MESSAGE_TYPE",
            )

        content = (content or "").strip()
        if len(content) > MESSAGE_CONFIG.MAX_CONTENT_LENGTH:
            raise ValidationError(
                f"Message content exceeds {MESSAGE_CONFIG.MAX_CONTENT_LENGTH} characters",
                error_code="CONTENT_TOO_LONG",
            )

        if message_type in (MessageType.IMAGE, MessageType.FILE):
            if attachment is None or not attachment.url:
                raise ValidationError(
                    f"{message_type} messages require an attachment",
                    error_code="MISSING_ATTACHMENT",
                )
        elif not content:
            raise ValidationError(
                "Message content cannot be empty",
                error_code="EMPTY_CONTENT",
            )
        return content

    @classmethod
    def append(
        cls,
        conversation_id: int,
        sender: User,
        content: str,
        message_type: str = MessageType.TEXT,
        receiver_id: int | None = None,
        attachment: Attachment | None = None,
        reply_to_id: int | None = None,
        is_admin_message: bool = False,
    ) -> Message:
        """
        Insert a message and apply the initial-state side effects.

        Must run inside a transaction. Locks the conversation, inserts the
        message in SENT, increments the receiver's counter and moves the
        last message pointer forward.

        Raises:
            NotFoundError: CONVERSATION_NOT_FOUND
            PermissionDeniedError: NOT_PARTICIPANT
            ValidationError: INVALID_PARTICIPANT, INVALID_REPLY_TO and the
                payload errors from validate_payload
        """
        content = cls.validate_payload(message_type, content, attachment)

        conversation = _lock_conversation(conversation_id)
        if not conversation.has_participant(sender.id):
            raise PermissionDeniedError(
                "You are not a participant in this conversation",
                error_code="NOT_PARTICIPANT",
            )

        expected_receiver = conversation.other_participant_id(sender.id)
        if receiver_id is not None and receiver_id != expected_receiver:
            raise ValidationError(
                "Receiver is not the other participant of this conversation",
                error_code="INVALID_PARTICIPANT",
            )

        reply_to = None
        if reply_to_id is not None:
            reply_to = Message.objects.filter(
                pk=reply_to_id, conversation_id=conversation.pk
            ).first()
            if reply_to is None:
                raise ValidationError(
                    "Reply target not found in this conversation",
                    error_code="INVALID_REPLY_TO",
                )

        attachment = attachment or Attachment(url="")
        message = Message.objects.create(
            conversation=conversation,
            sender=sender,
            receiver_id=expected_receiver,
            content=content,
            message_type=message_type,
            is_admin_message=is_admin_message,
            file_url=attachment.url,
            file_name=attachment.name,
            file_size=attachment.size,
            file_mime_type=attachment.mime_type,
            thumbnail_url=attachment.thumbnail_url,
            reply_to=reply_to,
        )

        counter = conversation.unread_field_for(expected_receiver)
        updates = {counter: F(counter) + 1, "updated_at": timezone.now()}
        # last_message_at never moves backward
        if message.created_at >= conversation.last_message_at:
            updates["last_message"] = message
            updates["last_message_at"] = message.created_at
        Conversation.objects.filter(pk=conversation.pk).update(**updates)

        cls.get_logger().debug(
            f"User {sender.id} sent message {message.pk} "
            f"to conversation {conversation.pk}"
        )
        return message

    @classmethod
    def send_message(
        cls,
        conversation_id: int,
        sender: User,
        content: str = "",
        message_type: str = MessageType.TEXT,
        receiver_id: int | None = None,
        attachment: Attachment | None = None,
        reply_to_id: int | None = None,
    ) -> ServiceResult[Message]:
        """
        Send a message to an existing conversation (normal path).

        The caller is responsible for the privacy gate; MessageDispatcher
        does that for API requests.

        Args:
            conversation_id: Target conversation
            sender: Participant sending the message
            content: Text (required for text messages)
            message_type: text, image, file or system
            receiver_id: Optional explicit receiver, must be the other participant
            attachment: Attachment metadata for image/file messages
            reply_to_id: Optional message in the same conversation

        Returns:
            ServiceResult with the new Message (delivery_status=sent)

        Error codes:
            CONVERSATION_NOT_FOUND, NOT_PARTICIPANT, INVALID_PARTICIPANT,
            INVALID_REPLY_TO, INVALID_MESSAGE_TYPE, EMPTY_CONTENT,
            MISSING_ATTACHMENT, CONTENT_TOO_LONG, STORAGE_FAILURE
        """
        if message_type == MessageType.ADMIN:
            # Admin messages only come from AdminMessagingService
            return ServiceResult.from_exception(
                ValidationError(
                    "Admin messages must be sent through the admin path",
                    error_code="INVALID_MESSAGE_TYPE",
                )
            )

        try:
            with cls.atomic():
                message = cls.append(
                    conversation_id=conversation_id,
                    sender=sender,
                    content=content,
                    message_type=message_type,
                    receiver_id=receiver_id,
                    attachment=attachment,
                    reply_to_id=reply_to_id,
                )
                emit_on_commit(NewMessage.from_message(message))
        except BaseApplicationError as exc:
            return ServiceResult.from_exception(exc)
        except DatabaseError as exc:
            return _storage_failure(cls, exc, "send_message")

        return ServiceResult.success(message)

    @classmethod
    def list_messages(
        cls,
        conversation_id: int,
        user: User,
    ) -> ServiceResult[QuerySet[Message]]:
        """
        Messages of a conversation ordered by (created_at, id).

        Error codes:
            CONVERSATION_NOT_FOUND, NOT_PARTICIPANT
        """
        result = ConversationService.get_conversation(conversation_id, user)
        if not result:
            return result

        queryset = (
            Message.objects.filter(conversation_id=conversation_id)
            .select_related("sender__profile", "reply_to")
            .prefetch_related("reactions")
            .order_by("created_at", "id")
        )
        return ServiceResult.success(queryset)

    @classmethod
    def _lock_for_transition(cls, message_id: int) -> tuple[Conversation, Message]:
        """
        Lock the parent conversation, then the message.

        Lock order matches send and batch read (conversation first).

        Raises:
            NotFoundError: MESSAGE_NOT_FOUND
        """
        conversation_id = (
            Message.objects.filter(pk=message_id)
            .values_list("conversation_id", flat=True)
            .first()
        )
        if conversation_id is None:
            raise NotFoundError(
                f"Message {message_id} not found",
                error_code="MESSAGE_NOT_FOUND",
                details={"message_id": message_id},
            )
        conversation = _lock_conversation(conversation_id)
        message = Message.objects.select_for_update().get(pk=message_id)
        return conversation, message

    @staticmethod
    def _require_receiver(message: Message, user: User) -> None:
        if message.receiver_id != user.id:
            raise PermissionDeniedError(
                "Only the receiver can acknowledge this message",
                error_code="NOT_RECEIVER",
            )

    @classmethod
    def mark_delivered(cls, message_id: int, user: User) -> ServiceResult[Message]:
        """
        Record that the receiver's client got a message.

        Transition: sent -> delivered. No counter change.

        Error codes:
            MESSAGE_NOT_FOUND, NOT_RECEIVER, STORAGE_FAILURE
        """
        try:
            with cls.atomic():
                _, message = cls._lock_for_transition(message_id)
                cls._require_receiver(message, user)

                if not can_proceed(message.deliver):
                    cls.get_logger().debug(
                        f"mark_delivered no-op for message {message_id} "
                        f"in state {message.delivery_status}"
                    )
                    return ServiceResult.success(message)

                message.deliver()
                message.save(update_fields=["delivery_status", "delivered_at", "updated_at"])
        except BaseApplicationError as exc:
            return ServiceResult.from_exception(exc)
        except DatabaseError as exc:
            return _storage_failure(cls, exc, "mark_delivered")

        return ServiceResult.success(message)

    @classmethod
    def mark_read(cls, message_id: int, user: User) -> ServiceResult[Message]:
        """
        Record that the receiver viewed a message.

        Transition: sent/delivered -> read, backfilling delivered_at.
        Decrements the receiver's counter by one in the same transaction.

        Error codes:
            MESSAGE_NOT_FOUND, NOT_RECEIVER, STORAGE_FAILURE
        """
        try:
            with cls.atomic():
                conversation, message = cls._lock_for_transition(message_id)
                cls._require_receiver(message, user)

                if not can_proceed(message.read):
                    cls.get_logger().debug(
                        f"mark_read no-op for message {message_id} "
                        f"in state {message.delivery_status}"
                    )
                    return ServiceResult.success(message)

                message.read()
                message.save(
                    update_fields=[
                        "delivery_status",
                        "is_read",
                        "read_at",
                        "delivered_at",
                        "updated_at",
                    ]
                )
                _decrement_unread(conversation, user.id, 1, cls.get_logger())
        except BaseApplicationError as exc:
            return ServiceResult.from_exception(exc)
        except DatabaseError as exc:
            return _storage_failure(cls, exc, "mark_read")

        return ServiceResult.success(message)

    @classmethod
    def mark_all_as_read(cls, conversation_id: int, user: User) -> ServiceResult[int]:
        """
        Read every pending message addressed to user in a conversation.

        Resets the user's counter to exactly 0 rather than decrementing, so
        the counter converges even if an earlier increment was lost. Failed
        messages are terminal and stay failed.

        Returns:
            ServiceResult with the number of messages transitioned

        Error codes:
            CONVERSATION_NOT_FOUND, NOT_PARTICIPANT, STORAGE_FAILURE
        """
        try:
            with cls.atomic():
                conversation = _lock_conversation(conversation_id)
                if not conversation.has_participant(user.id):
                    raise PermissionDeniedError(
                        "You are not a participant in this conversation",
                        error_code="NOT_PARTICIPANT",
                    )

                now = timezone.now()
                pending = Message.objects.filter(
                    conversation=conversation,
                    receiver_id=user.id,
                    delivery_status__in=UNREAD_STATUSES,
                )
                pending.filter(delivered_at__isnull=True).update(delivered_at=now)
                transitioned = pending.update(
                    delivery_status=DeliveryStatus.READ,
                    is_read=True,
                    read_at=now,
                    updated_at=now,
                )

                field_name = conversation.unread_field_for(user.id)
                previous = getattr(conversation, field_name)
                if previous != transitioned:
                    cls.get_logger().warning(
                        f"Unread counter drift on conversation {conversation.pk}: "
                        f"{field_name}={previous} but {transitioned} message(s) pending; "
                        f"resetting to 0"
                    )
                Conversation.objects.filter(pk=conversation.pk).update(
                    **{field_name: 0, "updated_at": now}
                )
        except BaseApplicationError as exc:
            return ServiceResult.from_exception(exc)
        except DatabaseError as exc:
            return _storage_failure(cls, exc, "mark_all_as_read")

        cls.get_logger().debug(
            f"User {user.id} read {transitioned} message(s) in conversation {conversation_id}"
        )
        return ServiceResult.success(transitioned)

    @classmethod
    def mark_failed(cls, message_id: int, user: User) -> ServiceResult[Message]:
        """
        Mark a message as undeliverable.

        Transition: sent -> failed (terminal). Reverses the receiver counter
        increment made when the message was sent.

        Error codes:
            MESSAGE_NOT_FOUND, NOT_SENDER, STORAGE_FAILURE
        """
        try:
            with cls.atomic():
                conversation, message = cls._lock_for_transition(message_id)
                if message.sender_id != user.id:
                    raise PermissionDeniedError(
                        "Only the sender can mark a message as failed",
                        error_code="NOT_SENDER",
                    )

                if not can_proceed(message.fail):
                    cls.get_logger().debug(
                        f"mark_failed no-op for message {message_id} "
                        f"in state {message.delivery_status}"
                    )
                    return ServiceResult.success(message)

                message.fail()
                message.save(update_fields=["delivery_status", "updated_at"])
                _decrement_unread(conversation, message.receiver_id, 1, cls.get_logger())
        except BaseApplicationError as exc:
            return ServiceResult.from_exception(exc)
        except DatabaseError as exc:
            return _storage_failure(cls, exc, "mark_failed")

        cls.get_logger().info(f"Message {message_id} marked as failed")
        return ServiceResult.success(message)

    @classmethod
    def delete_message(
        cls,
        message_id: int,
        user: User,
        conversation_id: int | None = None,
    ) -> ServiceResult[None]:
        """
        Soft delete a message. Only the sender may delete.

        When conversation_id is given, a message from any other conversation
        is reported as not found.

        If the message still counted as unread, the receiver's counter is
        decremented. If it was the conversation's last message, the pointer
        moves to the newest remaining message (last_message_at is kept).

        Error codes:
            MESSAGE_NOT_FOUND, NOT_SENDER, STORAGE_FAILURE
        """
        try:
            with cls.atomic():
                conversation, message = cls._lock_for_transition(message_id)
                if conversation_id is not None and conversation.pk != conversation_id:
                    raise NotFoundError(
                        f"Message {message_id} not found in conversation {conversation_id}",
                        error_code="MESSAGE_NOT_FOUND",
                        details={"message_id": message_id},
                    )
                if message.sender_id != user.id:
                    raise PermissionDeniedError(
                        "You can only delete your own messages",
                        error_code="NOT_SENDER",
                    )

                was_unread = message.counts_as_unread
                message.soft_delete()
                if was_unread:
                    _decrement_unread(
                        conversation, message.receiver_id, 1, cls.get_logger()
                    )

                if conversation.last_message_id == message.pk:
                    newest = (
                        Message.objects.filter(conversation=conversation)
                        .order_by("-created_at", "-id")
                        .first()
                    )
                    Conversation.objects.filter(pk=conversation.pk).update(
                        last_message=newest,
                        updated_at=timezone.now(),
                    )
        except BaseApplicationError as exc:
            return ServiceResult.from_exception(exc)
        except DatabaseError as exc:
            return _storage_failure(cls, exc, "delete_message")

        cls.get_logger().info(f"User {user.id} deleted message {message_id}")
        return ServiceResult.success(None)

    @classmethod
    def get_unread_summary(cls, user: User) -> ServiceResult[UnreadSummary]:
        """
        Unread totals for a participant.

        Only conversations with unread messages are listed, newest
        activity first.
        """
        rows = []
        queryset = Conversation.objects.filter(
            Q(participant_one=user, unread_count_one__gt=0)
            | Q(participant_two=user, unread_count_two__gt=0)
        ).order_by("-last_message_at", "-created_at", "-id")
        for conversation in queryset:
            rows.append(
                UnreadConversation(
                    conversation_id=conversation.pk,
                    unread_count=conversation.unread_count_for(user.id),
                    last_message_at=conversation.last_message_at,
                )
            )
        return ServiceResult.success(
            UnreadSummary(
                total=sum(row.unread_count for row in rows),
                conversations=rows,
            )
        )


# =============================================================================
# Reaction Aggregator
# =============================================================================


class ReactionService(BaseService):
    """
    Service for message reactions.

    Methods:
        toggle_reaction: Add the reaction if absent, remove it if present
        get_reactions_summary: Counts per glyph, count desc then glyph asc
    """

    @classmethod
    def _get_visible_message(cls, message_id: int, user: User, lock: bool = False) -> Message:
        """
        Fetch a live message the user may see.

        Raises:
            NotFoundError: MESSAGE_NOT_FOUND
            PermissionDeniedError: NOT_PARTICIPANT
        """
        queryset = Message.objects.select_related("conversation")
        if lock:
            queryset = queryset.select_for_update(of=("self",))
        message = queryset.filter(pk=message_id).first()
        if message is None:
            raise NotFoundError(
                f"Message {message_id} not found",
                error_code="MESSAGE_NOT_FOUND",
                details={"message_id": message_id},
            )
        _require_reader(message.conversation, user)
        return message

    @classmethod
    def toggle_reaction(
        cls,
        message_id: int,
        user: User,
        reaction: str,
    ) -> ServiceResult[str]:
        """
        Toggle a reaction on a message.

        The message row is locked for the check-and-flip so two toggles on
        the same message serialize instead of interleaving.

        Args:
            message_id: Message to react to
            user: Participant (or admin) reacting
            reaction: Glyph code from REACTION_CONFIG.ALLOWED_REACTIONS

        Returns:
            ServiceResult with ReactionOutcome.ADDED or ReactionOutcome.REMOVED

        Error codes:
            INVALID_REACTION, MESSAGE_NOT_FOUND, NOT_PARTICIPANT, STORAGE_FAILURE
        """
        reaction = (reaction or "").strip().lower()
        if reaction not in REACTION_CONFIG.ALLOWED_REACTIONS:
            return ServiceResult.from_exception(
                ValidationError(
                    f"Invalid reaction '{reaction}'",
                    error_code="INVALID_REACTION",
                    details={"allowed": list(REACTION_CONFIG.ALLOWED_REACTIONS)},
                )
            )

        try:
            with cls.atomic():
                message = cls._get_visible_message(message_id, user, lock=True)
                deleted, _ = MessageReaction.objects.filter(
                    message=message, user=user, reaction=reaction
                ).delete()
                if deleted:
                    outcome = ReactionOutcome.REMOVED
                else:
                    MessageReaction.objects.create(
                        message=message, user=user, reaction=reaction
                    )
                    outcome = ReactionOutcome.ADDED
                    if user.id != message.sender_id:
                        emit_on_commit(
                            ReactionAdded.from_message(message, user.id, reaction)
                        )
        except BaseApplicationError as exc:
            return ServiceResult.from_exception(exc)
        except DatabaseError as exc:
            return _storage_failure(cls, exc, "toggle_reaction")

        cls.get_logger().debug(
            f"User {user.id} {outcome} reaction {reaction} on message {message_id}"
        )
        return ServiceResult.success(outcome)

    @classmethod
    def get_reactions_summary(
        cls,
        message_id: int,
        user: User,
    ) -> ServiceResult[list[ReactionSummary]]:
        """
        Reactions grouped by glyph.

        Ordered by count descending, then glyph ascending. Reactor ids are
        listed in the order they reacted.

        Error codes:
            MESSAGE_NOT_FOUND, NOT_PARTICIPANT
        """
        try:
            message = cls._get_visible_message(message_id, user)
        except BaseApplicationError as exc:
            return ServiceResult.from_exception(exc)

        reactors: dict[str, list[int]] = {}
        for reaction, user_id in (
            MessageReaction.objects.filter(message=message)
            .order_by("created_at", "id")
            .values_list("reaction", "user_id")
        ):
            reactors.setdefault(reaction, []).append(user_id)

        summary = [
            ReactionSummary(reaction=reaction, count=len(user_ids), user_ids=user_ids)
            for reaction, user_ids in reactors.items()
        ]
        summary.sort(key=lambda row: (-row.count, row.reaction))
        return ServiceResult.success(summary)


# =============================================================================
# Admin Bypass Gateway
# =============================================================================


class AdminMessagingService(BaseService):
    """
    Privileged messaging path for admins.

    Every method checks the admin role itself, inside its own transaction,
    because this path skips the privacy gate.

    Methods:
        send_admin_message: Inject a message into a conversation with any user
        get_admin_conversations: Admin inbox projection
        search_users: Find non-admin users to message
    """

    @classmethod
    def _require_admin(cls, user: User) -> None:
        if not RoleResolver.is_admin(user.id):
            cls.get_logger().warning(f"Non-admin user {user.id} called the admin messaging path")
            raise PermissionDeniedError(
                "Admin role required",
                error_code="NOT_ADMIN",
            )

    @classmethod
    def send_admin_message(
        cls,
        admin: User,
        receiver_id: int,
        content: str,
        conversation_id: int | None = None,
    ) -> ServiceResult[Message]:
        """
        Send a message as an admin, bypassing the privacy gate.

        The role check, conversation resolution and message insert run in
        one transaction; a non-admin caller leaves no trace.

        Args:
            admin: Caller, must hold the admin role
            receiver_id: User to message
            content: Message text
            conversation_id: Optional existing conversation between the two

        Returns:
            ServiceResult with the new Message (is_admin_message=True)

        Error codes:
            NOT_ADMIN, USER_NOT_FOUND, SAME_USER, CONVERSATION_NOT_FOUND,
            INVALID_PARTICIPANT, EMPTY_CONTENT, CONTENT_TOO_LONG,
            STORAGE_FAILURE
        """
        User = get_user_model()
        try:
            with cls.atomic():
                cls._require_admin(admin)

                receiver = User.objects.filter(pk=receiver_id, is_active=True).first()
                if receiver is None:
                    raise NotFoundError(
                        f"User {receiver_id} not found",
                        error_code="USER_NOT_FOUND",
                        details={"user_id": receiver_id},
                    )
                if receiver.id == admin.id:
                    raise ValidationError(
                        "Cannot message yourself",
                        error_code="SAME_USER",
                    )

                if conversation_id is not None:
                    conversation = _lock_conversation(conversation_id)
                    if not (
                        conversation.has_participant(admin.id)
                        and conversation.has_participant(receiver.id)
                    ):
                        raise ValidationError(
                            "Conversation is not between this admin and receiver",
                            error_code="INVALID_PARTICIPANT",
                        )
                else:
                    conversation, _ = ConversationService.get_or_create_conversation(
                        admin,
                        receiver,
                        kind_a=ParticipantKind.ADMIN,
                    ).unwrap()

                message = MessageService.append(
                    conversation_id=conversation.pk,
                    sender=admin,
                    content=content,
                    message_type=MessageType.ADMIN,
                    receiver_id=receiver.id,
                    is_admin_message=True,
                )
                emit_on_commit(AdminMessage.from_message(message))
        except BaseApplicationError as exc:
            return ServiceResult.from_exception(exc)
        except DatabaseError as exc:
            return _storage_failure(cls, exc, "send_admin_message")

        cls.get_logger().info(
            f"Admin {admin.id} sent message {message.pk} to user {receiver_id}"
        )
        return ServiceResult.success(message)

    @classmethod
    def get_admin_conversations(
        cls,
        admin: User,
    ) -> ServiceResult[list[AdminConversationRow]]:
        """
        Every conversation the admin participates in, newest activity first.

        Each row carries the other participant, the last message content and
        the admin's unread count.

        Error codes:
            NOT_ADMIN
        """
        try:
            cls._require_admin(admin)
        except PermissionDeniedError as exc:
            return ServiceResult.from_exception(exc)

        rows = []
        for conversation in ConversationService.list_conversations(admin):
            last = conversation.last_message
            rows.append(
                AdminConversationRow(
                    conversation_id=conversation.pk,
                    other_participant_id=conversation.other_participant_id(admin.id),
                    other_participant_kind=conversation.other_participant_kind(admin.id),
                    last_message_content=last.get_display_content() if last else None,
                    last_message_at=conversation.last_message_at,
                    unread_count=conversation.unread_count_for(admin.id),
                )
            )
        return ServiceResult.success(rows)

    @classmethod
    def search_users(
        cls,
        admin: User,
        query: str = "",
    ) -> ServiceResult[list[User]]:
        """
        List non-admin users, optionally filtered by name, username or email.

        Matching is case-insensitive. Ordered by full name then username.

        Error codes:
            NOT_ADMIN
        """
        try:
            cls._require_admin(admin)
        except PermissionDeniedError as exc:
            return ServiceResult.from_exception(exc)

        User = get_user_model()
        queryset = (
            User.objects.filter(is_active=True)
            .exclude(role=User.Role.ADMIN)
            .select_related("profile")
        )
        query = (query or "").strip()
        if len(query) >= ADMIN_CONFIG.SEARCH_MIN_QUERY_LENGTH:
            queryset = queryset.filter(
                Q(profile__first_name__icontains=query)
                | Q(profile__last_name__icontains=query)
                | Q(profile__username__icontains=query)
                | Q(email__icontains=query)
            )
        users = list(
            queryset.order_by(
                "profile__first_name", "profile__last_name", "profile__username", "id"
            )[: ADMIN_CONFIG.SEARCH_MAX_RESULTS]
        )
        return ServiceResult.success(users)


# =============================================================================
# Two-path dispatcher
# =============================================================================


class MessageDispatcher(BaseService):
    """
    Entry point for sends coming from the API.

    send_as_participant: privacy gate, then registry, then send_message
    send_as_admin: role check inside AdminMessagingService, no privacy gate
    """

    @classmethod
    def send_as_participant(
        cls,
        sender: User,
        content: str = "",
        receiver_id: int | None = None,
        conversation_id: int | None = None,
        message_type: str = MessageType.TEXT,
        attachment: Attachment | None = None,
        reply_to_id: int | None = None,
    ) -> ServiceResult[Message]:
        """
        Send a message on the normal path.

        Exactly one of receiver_id or conversation_id identifies the target.
        The receiver's privacy settings are checked before anything is
        written.

        Error codes:
            INVALID_PARTICIPANT, INVALID_MESSAGE_TYPE, USER_NOT_FOUND,
            MESSAGING_NOT_ALLOWED, plus everything send_message and
            get_or_create_conversation return
        """
        if (receiver_id is None) == (conversation_id is None):
            return ServiceResult.from_exception(
                ValidationError(
                    "Provide either a receiver or a conversation",
                    error_code="INVALID_PARTICIPANT",
                )
            )
        if message_type in (MessageType.ADMIN, MessageType.SYSTEM):
            return ServiceResult.from_exception(
                ValidationError(
                    f"Participants cannot send {message_type} messages",
                    error_code="INVALID_MESSAGE_TYPE",
                )
            )

        try:
            MessageService.validate_payload(message_type, content, attachment)

            if conversation_id is not None:
                conversation = ConversationService.get_conversation(
                    conversation_id, sender
                ).unwrap()
                if not conversation.has_participant(sender.id):
                    raise PermissionDeniedError(
                        "You are not a participant in this conversation",
                        error_code="NOT_PARTICIPANT",
                    )
                receiver_id = conversation.other_participant_id(sender.id)
            else:
                if receiver_id == sender.id:
                    raise ValidationError(
                        "Cannot message yourself",
                        error_code="SAME_USER",
                    )
                User = get_user_model()
                receiver = User.objects.filter(pk=receiver_id, is_active=True).first()
                if receiver is None:
                    raise NotFoundError(
                        f"User {receiver_id} not found",
                        error_code="USER_NOT_FOUND",
                    )

            if not PrivacyGate.may_message(sender.id, receiver_id):
                raise PermissionDeniedError(
                    "This user does not accept messages",
                    error_code="MESSAGING_NOT_ALLOWED",
                )

            if conversation_id is None:
                conversation, _ = ConversationService.get_or_create_conversation(
                    sender, receiver
                ).unwrap()
        except BaseApplicationError as exc:
            return ServiceResult.from_exception(exc)

        return MessageService.send_message(
            conversation_id=conversation.pk,
            sender=sender,
            content=content,
            message_type=message_type,
            receiver_id=receiver_id,
            attachment=attachment,
            reply_to_id=reply_to_id,
        )

    @classmethod
    def send_as_admin(
        cls,
        admin: User,
        receiver_id: int,
        content: str,
        conversation_id: int | None = None,
    ) -> ServiceResult[Message]:
        """Send through the admin bypass path (no privacy gate)."""
        return AdminMessagingService.send_admin_message(
            admin=admin,
            receiver_id=receiver_id,
            content=content,
            conversation_id=conversation_id,
        )
