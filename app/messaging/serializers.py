"""
Serializers for messaging API.

This module provides serializers for the messaging system:
- Conversation serializers (list/detail, create)
- Message serializers (read, create, preview)
- Reaction serializers (toggle input, summary output)
- Admin serializers (admin send, admin inbox rows, user search)
- Unread summary serializer

Serializer Hierarchy:
    ConversationSerializer: Conversation seen from the requesting user
    ConversationCreateSerializer: Get-or-create with another user

    MessageSerializer: Message with soft-delete handling
    MessageCreateSerializer: Send new message (text or attachment)
    MessagePreviewSerializer: Minimal message for list preview

Design Decisions:
    - Read and write serializers are separate for clarity
    - Write serializers only shape input; business rules (privacy, roles,
      content limits) are enforced by the services
    - Soft-deleted message content is replaced with a placeholder
    - Service dataclasses are serialized with plain Serializers
"""

from __future__ import annotations

from rest_framework import serializers

from authentication.serializers import UserSerializer
from messaging.constants import MESSAGE_CONFIG, REACTION_CONFIG
from messaging.models import Conversation, Message, MessageType


# =============================================================================
# Message Serializers
# =============================================================================


class MessagePreviewSerializer(serializers.ModelSerializer):
    """
    Minimal message serializer for conversation list preview.

    Used to show the last message in conversation lists.
    """

    content = serializers.SerializerMethodField(
        help_text="Message content (replaced if deleted)"
    )

    class Meta:
        model = Message
        fields = [
            "id",
            "sender_id",
            "content",
            "message_type",
            "delivery_status",
            "created_at",
        ]
        read_only_fields = fields

    def get_content(self, obj: Message) -> str:
        return obj.get_display_content()[: MESSAGE_CONFIG.PREVIEW_LENGTH]


class MessageSerializer(serializers.ModelSerializer):
    """
    Full message serializer for message lists.

    Includes sender details, delivery state and reply reference.
    """

    sender = UserSerializer(read_only=True)
    content = serializers.SerializerMethodField(
        help_text="Message content (replaced if deleted)"
    )
    reply_to_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = Message
        fields = [
            "id",
            "conversation_id",
            "sender",
            "receiver_id",
            "content",
            "message_type",
            "is_admin_message",
            "file_url",
            "file_name",
            "file_size",
            "file_mime_type",
            "thumbnail_url",
            "reply_to_id",
            "delivery_status",
            "delivered_at",
            "is_read",
            "read_at",
            "is_deleted",
            "created_at",
        ]
        read_only_fields = fields

    def get_content(self, obj: Message) -> str:
        return obj.get_display_content()


class MessageCreateSerializer(serializers.Serializer):
    """
    Serializer for sending messages on the normal path.

    Text messages need content; image and file messages need file_url.
    """

    content = serializers.CharField(
        max_length=MESSAGE_CONFIG.MAX_CONTENT_LENGTH,
        required=False,
        allow_blank=True,
        default="",
        help_text=f"Message text (max {MESSAGE_CONFIG.MAX_CONTENT_LENGTH} characters)",
    )
    message_type = serializers.ChoiceField(
        choices=[
            (MessageType.TEXT, "Text"),
            (MessageType.IMAGE, "Image"),
            (MessageType.FILE, "File"),
        ],
        default=MessageType.TEXT,
        help_text="Type of message",
    )
    file_url = serializers.URLField(
        max_length=500,
        required=False,
        allow_blank=True,
        default="",
        help_text="Attachment URL (image and file messages)",
    )
    file_name = serializers.CharField(
        max_length=255, required=False, allow_blank=True, default=""
    )
    file_size = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    file_mime_type = serializers.CharField(
        max_length=100, required=False, allow_blank=True, default=""
    )
    thumbnail_url = serializers.URLField(
        max_length=500, required=False, allow_blank=True, default=""
    )
    reply_to_id = serializers.IntegerField(
        required=False,
        allow_null=True,
        help_text="Message being replied to (same conversation)",
    )

    def validate(self, attrs: dict) -> dict:
        message_type = attrs.get("message_type", MessageType.TEXT)
        if message_type in (MessageType.IMAGE, MessageType.FILE):
            if not attrs.get("file_url"):
                raise serializers.ValidationError(
                    {"file_url": "Attachments require a file URL"}
                )
        elif not attrs.get("content", "").strip():
            raise serializers.ValidationError(
                {"content": "Message content cannot be empty"}
            )
        return attrs


# =============================================================================
# Conversation Serializers
# =============================================================================


class ConversationSerializer(serializers.ModelSerializer):
    """
    Conversation seen from the requesting user.

    Computed fields:
    - other_participant: The user in the opposite slot
    - other_participant_kind: Kind captured at creation
    - unread_count: Requesting user's counter (O(1), no message scan)
    - last_message: Preview of the most recent live message
    """

    other_participant = serializers.SerializerMethodField(
        help_text="The other participant"
    )
    other_participant_kind = serializers.SerializerMethodField(
        help_text="Kind of the other participant"
    )
    unread_count = serializers.SerializerMethodField(
        help_text="Unread messages for the requesting user"
    )
    last_message = MessagePreviewSerializer(read_only=True, allow_null=True)

    class Meta:
        model = Conversation
        fields = [
            "id",
            "other_participant",
            "other_participant_kind",
            "unread_count",
            "last_message",
            "last_message_at",
            "created_at",
        ]
        read_only_fields = fields

    def _viewer_id(self) -> int | None:
        request = self.context.get("request")
        if not request or not request.user.is_authenticated:
            return None
        return request.user.id

    def get_other_participant(self, obj: Conversation) -> dict | None:
        viewer_id = self._viewer_id()
        if viewer_id is None:
            return None
        if obj.slot_for(viewer_id) == 1:
            other = obj.participant_two
        else:
            # Admins viewing a conversation they are not in see slot one
            other = obj.participant_one
        return UserSerializer(other).data

    def get_other_participant_kind(self, obj: Conversation) -> str | None:
        viewer_id = self._viewer_id()
        if viewer_id is None:
            return None
        return obj.other_participant_kind(viewer_id)

    def get_unread_count(self, obj: Conversation) -> int:
        viewer_id = self._viewer_id()
        if viewer_id is None:
            return 0
        return obj.unread_count_for(viewer_id)


class ConversationCreateSerializer(serializers.Serializer):
    """Serializer for get-or-create of a conversation with another user."""

    participant_id = serializers.IntegerField(
        help_text="User to open a conversation with"
    )


# =============================================================================
# Reaction Serializers
# =============================================================================


class ReactionToggleSerializer(serializers.Serializer):
    reaction = serializers.ChoiceField(
        choices=[(code, code) for code in REACTION_CONFIG.ALLOWED_REACTIONS],
        help_text="Reaction code",
    )


class ReactionToggleResultSerializer(serializers.Serializer):
    reaction = serializers.CharField()
    outcome = serializers.ChoiceField(choices=["added", "removed"])


class ReactionSummarySerializer(serializers.Serializer):
    """One glyph with its count and reactors."""

    reaction = serializers.CharField()
    count = serializers.IntegerField()
    user_ids = serializers.ListField(child=serializers.IntegerField())


# =============================================================================
# Unread Serializers
# =============================================================================


class UnreadConversationSerializer(serializers.Serializer):
    conversation_id = serializers.IntegerField()
    unread_count = serializers.IntegerField()
    last_message_at = serializers.DateTimeField()


class UnreadSummarySerializer(serializers.Serializer):
    total = serializers.IntegerField()
    conversations = UnreadConversationSerializer(many=True)


# =============================================================================
# Admin Serializers
# =============================================================================


class AdminMessageCreateSerializer(serializers.Serializer):
    """Serializer for the admin send endpoint."""

    receiver_id = serializers.IntegerField(help_text="User to message")
    content = serializers.CharField(
        max_length=MESSAGE_CONFIG.MAX_CONTENT_LENGTH,
        help_text="Message text",
    )
    conversation_id = serializers.IntegerField(
        required=False,
        allow_null=True,
        help_text="Existing conversation with the receiver (optional)",
    )


class AdminConversationSerializer(serializers.Serializer):
    """Row of the admin inbox projection."""

    conversation_id = serializers.IntegerField()
    other_participant_id = serializers.IntegerField()
    other_participant_kind = serializers.CharField()
    last_message_content = serializers.CharField(allow_null=True)
    last_message_at = serializers.DateTimeField()
    unread_count = serializers.IntegerField()
