"""
Messaging models.

This module defines the data models for direct messaging:
- Conversation: One conversation per unordered pair of participants
- Message: Append-only message with a delivery state machine
- MessageReaction: A participant's reaction glyph on a message

Design Decisions:
    - The pair is stored in canonical order (lower user id in slot one), so a
      single UniqueConstraint on the two slots enforces one conversation per
      pair regardless of who initiates it
    - Unread counters are denormalized per slot for O(1) badge reads; every
      service path that changes delivery state updates them in the same
      transaction
    - Message content is immutable; only the delivery fields change after
      creation
    - delivery_status is an FSMField; transitions never move backward
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import F, Q
from django.utils import timezone
from django_fsm import FSMField, transition

from core.managers import SoftDeleteManager
from core.model_mixins import SoftDeleteMixin
from core.models import BaseModel

from messaging.constants import MESSAGE_CONFIG


class ParticipantKind(models.TextChoices):
    """Kind of participant occupying a conversation slot."""

    USER = "user", "User"
    TRAINER = "trainer", "Trainer"
    ADMIN = "admin", "Admin"


class MessageType(models.TextChoices):
    """
    Type of message content.

    TEXT: Participant-authored text (content required)
    IMAGE: Image attachment (file_url required, content optional caption)
    FILE: File attachment (file_url required, content optional caption)
    SYSTEM: Generated notice
    ADMIN: Message injected through the admin messaging path
    """

    TEXT = "text", "Text"
    IMAGE = "image", "Image"
    FILE = "file", "File"
    SYSTEM = "system", "System"
    ADMIN = "admin", "Admin"


class DeliveryStatus(models.TextChoices):
    """
    Delivery lifecycle of a message.

    SENT -> DELIVERED -> READ
    SENT -> READ (delivered_at is backfilled)
    SENT -> FAILED (terminal)
    """

    SENT = "sent", "Sent"
    DELIVERED = "delivered", "Delivered"
    READ = "read", "Read"
    FAILED = "failed", "Failed"


# Statuses that still count toward the receiver's unread counter
UNREAD_STATUSES = (DeliveryStatus.SENT, DeliveryStatus.DELIVERED)


class ReactionOutcome(models.TextChoices):
    """Result of toggling a reaction."""

    ADDED = "added", "Added"
    REMOVED = "removed", "Removed"


class Conversation(BaseModel):
    """
    A direct conversation between exactly two participants.

    Slots:
        Slot one always holds the participant with the lower user id and
        slot two the higher one. Participant kinds are captured when the
        conversation is created and never overwritten afterwards.

    Fields:
        participant_one / participant_one_kind: Lower-id participant
        participant_two / participant_two_kind: Higher-id participant
        last_message: Most recent live message (weak reference)
        last_message_at: Time of the most recent message, never decreases
        unread_count_one / unread_count_two: Unread messages addressed to
            the participant in that slot

    Constraints:
        - UniqueConstraint(participant_one, participant_two): one per pair
        - CheckConstraint(participant_one < participant_two): canonical order
    """

    participant_one = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="conversations_as_one",
        help_text="Participant with the lower user id",
    )
    participant_one_kind = models.CharField(
        max_length=10,
        choices=ParticipantKind.choices,
        default=ParticipantKind.USER,
        help_text="Kind of the slot one participant at creation time",
    )
    participant_two = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="conversations_as_two",
        help_text="Participant with the higher user id",
    )
    participant_two_kind = models.CharField(
        max_length=10,
        choices=ParticipantKind.choices,
        default=ParticipantKind.USER,
        help_text="Kind of the slot two participant at creation time",
    )

    last_message = models.ForeignKey(
        "messaging.Message",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="Most recent live message in this conversation",
    )
    last_message_at = models.DateTimeField(
        default=timezone.now,
        db_index=True,
        help_text="Timestamp of most recent message (for sorting conversation lists)",
    )

    unread_count_one = models.PositiveIntegerField(
        default=0,
        help_text="Unread messages addressed to participant_one",
    )
    unread_count_two = models.PositiveIntegerField(
        default=0,
        help_text="Unread messages addressed to participant_two",
    )

    class Meta:
        db_table = "messaging_conversation"
        ordering = ["-last_message_at", "-created_at"]
        constraints = [
            # Ensure only one conversation exists per participant pair
            models.UniqueConstraint(
                fields=["participant_one", "participant_two"],
                name="unique_conversation_pair",
            ),
            # Enforce canonical ordering: lower id first
            models.CheckConstraint(
                condition=Q(participant_one_id__lt=F("participant_two_id")),
                name="participant_one_less_than_two",
            ),
        ]
        indexes = [
            models.Index(
                fields=["participant_one", "-last_message_at"],
                name="msg_conv_one_activity_idx",
            ),
            models.Index(
                fields=["participant_two", "-last_message_at"],
                name="msg_conv_two_activity_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"Conversation({self.participant_one_id}, {self.participant_two_id})"

    @staticmethod
    def canonical_pair(user_a_id: int, user_b_id: int) -> tuple[int, int]:
        """Return the pair ordered as (lower id, higher id)."""
        return (user_a_id, user_b_id) if user_a_id < user_b_id else (user_b_id, user_a_id)

    def slot_for(self, user_id: int) -> int | None:
        """Return 1 or 2 for a participant, None for anyone else."""
        if user_id == self.participant_one_id:
            return 1
        if user_id == self.participant_two_id:
            return 2
        return None

    def has_participant(self, user_id: int) -> bool:
        return self.slot_for(user_id) is not None

    def other_participant_id(self, user_id: int) -> int:
        """Return the id of the participant opposite to user_id."""
        if self.slot_for(user_id) == 1:
            return self.participant_two_id
        return self.participant_one_id

    def other_participant_kind(self, user_id: int) -> str:
        if self.slot_for(user_id) == 1:
            return self.participant_two_kind
        return self.participant_one_kind

    def unread_field_for(self, user_id: int) -> str:
        """
        Return the counter field name for a participant.

        Raises:
            ValueError: If user_id is not a participant
        """
        slot = self.slot_for(user_id)
        if slot is None:
            raise ValueError(f"User {user_id} is not a participant of conversation {self.pk}")
        return "unread_count_one" if slot == 1 else "unread_count_two"

    def unread_count_for(self, user_id: int) -> int:
        """Unread count for a participant (0 for non-participants)."""
        if not self.has_participant(user_id):
            return 0
        return getattr(self, self.unread_field_for(user_id))


class Message(SoftDeleteMixin, BaseModel):
    """
    A message within a conversation.

    Delivery State Machine (delivery_status):
        sent -> delivered: receiver acknowledged reception
        sent/delivered -> read: receiver viewed the message
        sent -> failed: sender-side transport gave up (terminal)

    Invariants:
        - read_at is set iff is_read iff delivery_status == read
        - delivered_at is set whenever delivery_status is delivered or read
        - reply_to references a message in the same conversation

    Soft Delete Behavior:
        Only the sender may delete. Deleted messages are excluded from
        listings and from unread counters (default manager filters them).

    Fields:
        conversation: Owning conversation (cascade)
        sender / receiver: The two participants
        content: Text, required for text and admin messages
        message_type: text, image, file, system or admin
        is_admin_message: Set by the admin messaging path
        file_*: Optional attachment metadata
        reply_to: Optional message this one replies to
        delivery_status, delivered_at, is_read, read_at: Delivery state
    """

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name="messages",
        help_text="Conversation this message belongs to",
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sent_messages",
        help_text="User who sent this message",
    )
    receiver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="received_messages",
        help_text="User this message is addressed to",
    )

    content = models.TextField(
        blank=True,
        default="",
        help_text="Message text (optional caption for attachments)",
    )
    message_type = models.CharField(
        max_length=10,
        choices=MessageType.choices,
        default=MessageType.TEXT,
        db_index=True,
        help_text="Type of message",
    )
    is_admin_message = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether this message was sent through the admin messaging path",
    )

    # Attachment metadata
    file_url = models.URLField(
        max_length=500,
        blank=True,
        default="",
        help_text="Attachment URL (required for image and file messages)",
    )
    file_name = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Original attachment file name",
    )
    file_size = models.PositiveBigIntegerField(
        null=True,
        blank=True,
        help_text="Attachment size in bytes",
    )
    file_mime_type = models.CharField(
        max_length=100,
        blank=True,
        default="",
        help_text="Attachment MIME type",
    )
    thumbnail_url = models.URLField(
        max_length=500,
        blank=True,
        default="",
        help_text="Thumbnail URL for image attachments",
    )

    reply_to = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="replies",
        help_text="Message this one replies to (same conversation)",
    )

    # Delivery state
    delivery_status = FSMField(
        default=DeliveryStatus.SENT,
        choices=DeliveryStatus.choices,
        db_index=True,
        protected=False,
        help_text="Delivery state of the message (managed by FSM)",
    )
    delivered_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the receiver's client acknowledged the message",
    )
    is_read = models.BooleanField(
        default=False,
        help_text="Whether the receiver has read the message",
    )
    read_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the receiver read the message",
    )

    objects = SoftDeleteManager()
    all_objects = models.Manager()

    class Meta:
        db_table = "messaging_message"
        ordering = ["created_at", "id"]
        indexes = [
            # Messages in a conversation (cursor pagination)
            models.Index(
                fields=["conversation", "created_at", "id"],
                name="msg_conv_cursor_idx",
            ),
            # Unread lookups and counter reconciliation
            models.Index(
                fields=["conversation", "receiver", "delivery_status"],
                name="msg_conv_receiver_status_idx",
            ),
            models.Index(
                fields=["sender", "-created_at"],
                name="msg_sender_idx",
            ),
        ]

    def __str__(self) -> str:
        content_preview = (
            self.content[:50] + "..." if len(self.content) > 50 else self.content
        )
        deleted_str = " [deleted]" if self.is_deleted else ""
        return f"User {self.sender_id}: {content_preview}{deleted_str}"

    # ==========================================================================
    # Transitions
    # ==========================================================================

    @transition(
        field=delivery_status,
        source=DeliveryStatus.SENT,
        target=DeliveryStatus.DELIVERED,
    )
    def deliver(self, at=None):
        """
        Record that the receiver's client got the message.

        Transition: SENT -> DELIVERED
        """
        if self.delivered_at is None:
            self.delivered_at = at or timezone.now()

    @transition(
        field=delivery_status,
        source=[DeliveryStatus.SENT, DeliveryStatus.DELIVERED],
        target=DeliveryStatus.READ,
    )
    def read(self, at=None):
        """
        Record that the receiver viewed the message.

        Transition: SENT/DELIVERED -> READ

        Skipping DELIVERED is allowed; delivered_at is backfilled with the
        read time.
        """
        now = at or timezone.now()
        self.is_read = True
        self.read_at = now
        if self.delivered_at is None:
            self.delivered_at = now

    @transition(
        field=delivery_status,
        source=DeliveryStatus.SENT,
        target=DeliveryStatus.FAILED,
    )
    def fail(self):
        """
        Mark the message as undeliverable.

        Transition: SENT -> FAILED (terminal)
        """
        pass

    # ==========================================================================
    # Helpers
    # ==========================================================================

    @property
    def counts_as_unread(self) -> bool:
        """Whether this message contributes to the receiver's unread counter."""
        return not self.is_deleted and self.delivery_status in UNREAD_STATUSES

    @property
    def has_attachment(self) -> bool:
        return bool(self.file_url)

    @property
    def preview(self) -> str:
        """Content truncated for events and conversation lists."""
        return self.content[: MESSAGE_CONFIG.PREVIEW_LENGTH]

    def get_display_content(self) -> str:
        """Return a placeholder for deleted messages, the content otherwise."""
        if self.is_deleted:
            return MESSAGE_CONFIG.DELETED_PLACEHOLDER
        return self.content


class MessageReaction(BaseModel):
    """
    A participant's reaction on a message.

    The (message, user, reaction) triple is unique: a user may hold several
    distinct reactions on one message but never the same one twice.
    Reactions are toggled, never updated.
    """

    message = models.ForeignKey(
        Message,
        on_delete=models.CASCADE,
        related_name="reactions",
        help_text="Message this reaction is attached to",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="message_reactions",
        help_text="User who reacted",
    )
    reaction = models.CharField(
        max_length=20,
        help_text="Reaction glyph code (see REACTION_CONFIG.ALLOWED_REACTIONS)",
    )

    class Meta:
        db_table = "messaging_message_reaction"
        ordering = ["created_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["message", "user", "reaction"],
                name="unique_message_user_reaction",
            ),
        ]
        indexes = [
            models.Index(
                fields=["message", "reaction"],
                name="msg_reaction_glyph_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.reaction} by {self.user_id} on message {self.message_id}"
