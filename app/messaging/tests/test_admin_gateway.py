"""
Tests for the admin bypass path (AdminMessagingService / send_as_admin).
"""

from unittest import mock

from authentication.models import User
from authentication.tests.factories import AdminUserFactory, PrivacySettingsFactory, UserFactory
from messaging.models import Conversation, Message, MessageType, ParticipantKind
from messaging.services import (
    AdminMessagingService,
    ConversationService,
    MessageDispatcher,
    MessageService,
)


class TestSendAdminMessage:
    def test_admin_message_bypasses_privacy_gate(self, admin_user, user):
        PrivacySettingsFactory(user=user, allow_messages=False)

        with mock.patch("authentication.services.PrivacyGate.may_message") as gate:
            message = MessageDispatcher.send_as_admin(
                admin_user, user.id, "Reminder"
            ).unwrap()

        gate.assert_not_called()
        assert message.is_admin_message is True
        assert message.message_type == MessageType.ADMIN
        assert message.receiver_id == user.id

    def test_creates_conversation_with_admin_kind(self, admin_user, user):
        message = AdminMessagingService.send_admin_message(
            admin_user, user.id, "Welcome"
        ).unwrap()

        conversation = message.conversation
        assert conversation.other_participant_kind(user.id) == ParticipantKind.ADMIN
        assert conversation.other_participant_kind(admin_user.id) == ParticipantKind.USER

    def test_increments_receiver_counter(self, admin_user, user):
        message = AdminMessagingService.send_admin_message(
            admin_user, user.id, "Welcome"
        ).unwrap()

        conversation = Conversation.objects.get(pk=message.conversation_id)
        assert conversation.unread_count_for(user.id) == 1
        assert conversation.unread_count_for(admin_user.id) == 0

    def test_reuses_given_conversation(self, admin_user, user):
        conversation, _ = ConversationService.get_or_create_conversation(
            admin_user, user
        ).unwrap()

        message = AdminMessagingService.send_admin_message(
            admin_user, user.id, "Again", conversation_id=conversation.pk
        ).unwrap()

        assert message.conversation_id == conversation.pk

    def test_given_conversation_must_be_between_them(self, admin_user, conversation, user):
        result = AdminMessagingService.send_admin_message(
            admin_user, user.id, "Hi", conversation_id=conversation.pk
        )

        assert result.error_code == "INVALID_PARTICIPANT"

    def test_non_admin_leaves_no_trace(self, user, trainer):
        result = AdminMessagingService.send_admin_message(user, trainer.id, "hi")

        assert not result.success
        assert result.error_code == "NOT_ADMIN"
        assert result.exception.status_code == 403
        assert not Conversation.objects.exists()
        assert not Message.objects.exists()

    def test_non_admin_existing_conversation_counters_untouched(self, conversation, user, trainer):
        AdminMessagingService.send_admin_message(
            user, trainer.id, "hi", conversation_id=conversation.pk
        )

        conversation.refresh_from_db()
        assert conversation.unread_count_one == 0
        assert conversation.unread_count_two == 0
        assert not Message.objects.exists()

    def test_demoted_admin_rejected(self, admin_user, user):
        admin_user.role = User.Role.USER
        admin_user.save(update_fields=["role"])

        result = AdminMessagingService.send_admin_message(admin_user, user.id, "hi")

        assert result.error_code == "NOT_ADMIN"

    def test_unknown_receiver(self, admin_user):
        result = AdminMessagingService.send_admin_message(admin_user, 999999, "hi")

        assert result.error_code == "USER_NOT_FOUND"

    def test_cannot_message_self(self, admin_user):
        result = AdminMessagingService.send_admin_message(admin_user, admin_user.id, "hi")

        assert result.error_code == "SAME_USER"

    def test_empty_content_rolls_back_new_conversation(self, admin_user, user):
        result = AdminMessagingService.send_admin_message(admin_user, user.id, "   ")

        assert result.error_code == "EMPTY_CONTENT"
        assert not Conversation.objects.exists()

    def test_admin_can_message_another_admin(self, admin_user):
        other_admin = AdminUserFactory()

        message = AdminMessagingService.send_admin_message(
            admin_user, other_admin.id, "Ops sync"
        ).unwrap()

        assert message.conversation.other_participant_kind(admin_user.id) == "admin"


class TestAdminConversations:
    def test_rows_for_admin_inbox(self, admin_user, user, trainer):
        AdminMessagingService.send_admin_message(admin_user, user.id, "to user").unwrap()
        message = AdminMessagingService.send_admin_message(
            admin_user, trainer.id, "to trainer"
        ).unwrap()
        MessageService.send_message(message.conversation_id, trainer, content="thanks").unwrap()

        rows = AdminMessagingService.get_admin_conversations(admin_user).unwrap()

        assert [row.other_participant_id for row in rows] == [trainer.id, user.id]
        assert rows[0].other_participant_kind == "trainer"
        assert rows[0].last_message_content == "thanks"
        assert rows[0].unread_count == 1
        assert rows[1].unread_count == 0

    def test_non_admin_rejected(self, user):
        result = AdminMessagingService.get_admin_conversations(user)

        assert result.error_code == "NOT_ADMIN"


class TestSearchUsers:
    def test_excludes_admins(self, admin_user, user, trainer):
        AdminUserFactory()

        users = AdminMessagingService.search_users(admin_user).unwrap()

        assert {u.id for u in users} == {user.id, trainer.id}

    def test_matches_names_case_insensitively(self, admin_user, user, trainer):
        users = AdminMessagingService.search_users(admin_user, "COACH").unwrap()

        assert [u.id for u in users] == [trainer.id]

    def test_matches_email(self, admin_user):
        target = UserFactory(email="findme@gym.example")

        users = AdminMessagingService.search_users(admin_user, "findme").unwrap()

        assert [u.id for u in users] == [target.id]

    def test_non_admin_rejected(self, user):
        result = AdminMessagingService.search_users(user, "a")

        assert result.error_code == "NOT_ADMIN"
