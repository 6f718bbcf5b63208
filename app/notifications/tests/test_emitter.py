"""
Tests for NotificationEmitter: messaging events become notifications.
"""

import pytest
from django.core.cache import cache

from messaging.events import AdminMessage, NewMessage, ReactionAdded
from messaging.services import (
    AdminMessagingService,
    ConversationService,
    MessageService,
    ReactionService,
)
from notifications.emitter import NotificationEmitter
from notifications.models import Notification
from notifications.preferences import PREFERENCE_CACHE_PREFIX
from notifications.tests.factories import (
    UserGlobalPreferenceFactory,
    UserNotificationPreferenceFactory,
)


def _new_message(sender, receiver, preview="Ready for the long run?", message_id=10):
    return NewMessage(
        message_id=message_id,
        conversation_id=1,
        sender_id=sender.id,
        receiver_id=receiver.id,
        message_type="text",
        preview=preview,
    )


class TestEventMapping:
    def test_new_message(self, user, actor_user, mock_broadcast):
        NotificationEmitter.emit(_new_message(actor_user, user))

        notification = Notification.objects.get()
        assert notification.recipient == user
        assert notification.actor == actor_user
        assert notification.notification_type.key == "new_message"
        assert notification.title == "New message from Bob Coach"
        assert notification.body == "Ready for the long run?"
        assert notification.idempotency_key == "new_message:10"
        assert notification.data["is_admin_message"] is False
        assert notification.data["sender_id"] == actor_user.id

    def test_reaction_goes_to_message_sender(self, user, actor_user, mock_broadcast):
        event = ReactionAdded(
            message_id=10,
            conversation_id=1,
            reactor_id=actor_user.id,
            recipient_id=user.id,
            reaction="fire",
            preview="PR today",
        )

        NotificationEmitter.emit(event)

        notification = Notification.objects.get()
        assert notification.recipient == user
        assert notification.title == "Bob Coach reacted to your message"
        assert notification.body == "fire"
        assert notification.idempotency_key == f"message_reaction:10:{actor_user.id}:fire"

    def test_admin_message_excerpt(self, user, admin_user, mock_broadcast):
        event = AdminMessage(
            message_id=11,
            conversation_id=2,
            sender_id=admin_user.id,
            receiver_id=user.id,
            preview="x" * 60,
        )

        NotificationEmitter.emit(event)

        notification = Notification.objects.get()
        assert notification.title == "Admin Message"
        assert notification.body.endswith(": " + "x" * 50 + "...")
        assert notification.data["is_admin_message"] is True

    def test_same_event_twice_creates_one_notification(self, user, actor_user, mock_broadcast):
        event = _new_message(actor_user, user)

        NotificationEmitter.emit(event)
        NotificationEmitter.emit(event)

        assert Notification.objects.count() == 1

    def test_inactive_recipient_skipped(self, user, actor_user, mock_broadcast):
        user.is_active = False
        user.save(update_fields=["is_active"])

        NotificationEmitter.emit(_new_message(actor_user, user))

        assert not Notification.objects.exists()

    def test_missing_actor_falls_back(self, user, mock_broadcast):
        event = NewMessage(
            message_id=12,
            conversation_id=1,
            sender_id=987654,
            receiver_id=user.id,
            message_type="text",
            preview="hi",
        )

        NotificationEmitter.emit(event)

        assert Notification.objects.get().title == "New message from Someone"


class TestEmissionFromMessaging:
    """Messaging writes reach notifications once their transaction commits."""

    @pytest.fixture
    def conversation(self, user, actor_user):
        conversation, _ = ConversationService.get_or_create_conversation(
            user, actor_user
        ).unwrap()
        return conversation

    def test_send_notifies_receiver(
        self, conversation, user, actor_user, mock_broadcast, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            message = MessageService.send_message(
                conversation.pk, actor_user, content="Stretch first"
            ).unwrap()

        notification = Notification.objects.get(recipient=user)
        assert notification.data["message_id"] == message.pk
        assert notification.data["conversation_id"] == conversation.pk

    def test_reaction_notifies_sender(
        self, conversation, user, actor_user, mock_broadcast, django_capture_on_commit_callbacks
    ):
        message = MessageService.send_message(conversation.pk, user, content="Done!").unwrap()

        with django_capture_on_commit_callbacks(execute=True):
            ReactionService.toggle_reaction(message.pk, actor_user, "clap").unwrap()

        notification = Notification.objects.get(recipient=user)
        assert notification.notification_type.key == "message_reaction"

    def test_admin_message_ignores_type_switch(
        self,
        user,
        admin_user,
        admin_message_type,
        mock_broadcast,
        django_capture_on_commit_callbacks,
    ):
        UserNotificationPreferenceFactory(
            user=user, notification_type=admin_message_type, disabled=True
        )

        with django_capture_on_commit_callbacks(execute=True):
            AdminMessagingService.send_admin_message(admin_user, user.id, "Gym closed").unwrap()

        delivery = Notification.objects.get(recipient=user).deliveries.get()
        assert delivery.status == "pending"

    def test_admin_message_muted_globally(
        self, user, admin_user, mock_broadcast, django_capture_on_commit_callbacks
    ):
        UserGlobalPreferenceFactory(user=user, all_disabled=True)

        with django_capture_on_commit_callbacks(execute=True):
            AdminMessagingService.send_admin_message(admin_user, user.id, "Gym closed").unwrap()

        delivery = Notification.objects.get(recipient=user).deliveries.get()
        assert delivery.status == "skipped"
        mock_broadcast.assert_not_called()


class TestPreferenceCacheBetweenTests:
    """Cached preference resolutions must not survive into the next test."""

    def test_emit_caches_resolution(self, user, admin_message_type, admin_user, mock_broadcast):
        NotificationEmitter.emit(
            AdminMessage(
                message_id=30,
                conversation_id=3,
                sender_id=admin_user.id,
                receiver_id=user.id,
                preview="Gym closed",
            )
        )

        assert cache.get(f"{PREFERENCE_CACHE_PREFIX}:{user.id}:{admin_message_type.id}")

    def test_next_test_starts_with_empty_cache(
        self, user, admin_message_type, admin_user, mock_broadcast
    ):
        assert cache.get(f"{PREFERENCE_CACHE_PREFIX}:{user.id}:{admin_message_type.id}") is None

        UserGlobalPreferenceFactory(user=user, all_disabled=True)
        NotificationEmitter.emit(
            AdminMessage(
                message_id=31,
                conversation_id=3,
                sender_id=admin_user.id,
                receiver_id=user.id,
                preview="Gym closed",
            )
        )

        delivery = Notification.objects.get(recipient=user).deliveries.get()
        assert delivery.status == "skipped"
