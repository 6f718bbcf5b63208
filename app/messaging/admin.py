"""
Django admin configuration for messaging models.

Provides admin interfaces for:
- Conversation inspection (counters are read-only)
- Message moderation
- Reaction viewing
"""

from django.contrib import admin

from messaging.models import Conversation, Message, MessageReaction


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    """Admin interface for Conversation model."""

    list_display = [
        "id",
        "participant_one",
        "participant_one_kind",
        "participant_two",
        "participant_two_kind",
        "unread_count_one",
        "unread_count_two",
        "last_message_at",
    ]
    list_filter = ["participant_one_kind", "participant_two_kind", "created_at"]
    search_fields = ["participant_one__email", "participant_two__email", "id"]
    readonly_fields = [
        "created_at",
        "updated_at",
        "last_message",
        "last_message_at",
        "unread_count_one",
        "unread_count_two",
    ]
    raw_id_fields = ["participant_one", "participant_two"]
    ordering = ["-last_message_at"]


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """Admin interface for Message model."""

    list_display = [
        "id",
        "conversation",
        "sender",
        "receiver",
        "message_type",
        "content_preview",
        "delivery_status",
        "is_admin_message",
        "is_deleted",
        "created_at",
    ]
    list_filter = [
        "message_type",
        "delivery_status",
        "is_admin_message",
        "is_deleted",
        "created_at",
    ]
    search_fields = ["content", "sender__email", "receiver__email"]
    readonly_fields = [
        "created_at",
        "updated_at",
        "deleted_at",
        "delivery_status",
        "delivered_at",
        "is_read",
        "read_at",
    ]
    raw_id_fields = ["conversation", "sender", "receiver", "reply_to"]
    ordering = ["-created_at"]

    def get_queryset(self, request):
        return Message.all_objects.select_related("sender", "receiver")

    @admin.display(description="Content Preview")
    def content_preview(self, obj: Message) -> str:
        """Return truncated content for list display."""
        max_length = 50
        if len(obj.content) > max_length:
            return obj.content[:max_length] + "..."
        return obj.content


@admin.register(MessageReaction)
class MessageReactionAdmin(admin.ModelAdmin):
    list_display = ["id", "message", "user", "reaction", "created_at"]
    list_filter = ["reaction"]
    raw_id_fields = ["message", "user"]
