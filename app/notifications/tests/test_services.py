"""
Tests for NotificationService and PreferenceService.

The broadcast task is mocked (mock_broadcast) unless a test checks the
delivery end to end.
"""

import pytest

from notifications.models import (
    DeliveryStatus,
    Notification,
    NotificationDelivery,
    SkipReason,
    UserGlobalPreference,
    UserNotificationPreference,
)
from notifications.services import NotificationService, PreferenceService
from notifications.tests.factories import (
    NotificationFactory,
    NotificationTypeFactory,
    UserGlobalPreferenceFactory,
    UserNotificationPreferenceFactory,
)


# =============================================================================
# NotificationService.create_notification
# =============================================================================


class TestCreateNotification:
    def test_renders_templates(self, user, actor_user, new_message_data, mock_broadcast):
        notification = NotificationService.create_notification(
            recipient=user,
            type_key="new_message",
            data=new_message_data,
            actor=actor_user,
        ).unwrap()

        assert notification.title == "New message from Bob Coach"
        assert notification.body == "Ready for the long run?"
        assert notification.data == new_message_data
        assert notification.actor == actor_user

    def test_explicit_title_and_body_override_templates(self, user, mock_broadcast):
        notification = NotificationService.create_notification(
            recipient=user,
            type_key="new_message",
            title="Custom",
            body="Text",
        ).unwrap()

        assert (notification.title, notification.body) == ("Custom", "Text")

    def test_missing_placeholder_raises(self, user, mock_broadcast):
        with pytest.raises(KeyError):
            NotificationService.create_notification(
                recipient=user, type_key="new_message", data={}
            )

    def test_creates_pending_delivery_and_enqueues_broadcast(
        self, user, new_message_data, mock_broadcast
    ):
        notification = NotificationService.create_notification(
            recipient=user, type_key="new_message", data=new_message_data
        ).unwrap()

        delivery = NotificationDelivery.objects.get(notification=notification)
        assert delivery.channel == "websocket"
        assert delivery.status == DeliveryStatus.PENDING
        mock_broadcast.assert_called_once_with(delivery.id)

    def test_unknown_type(self, user):
        result = NotificationService.create_notification(recipient=user, type_key="nope")

        assert result.error_code == "TYPE_NOT_FOUND"

    def test_inactive_type(self, user):
        NotificationTypeFactory(key="paused", is_active=False)

        result = NotificationService.create_notification(recipient=user, type_key="paused")

        assert result.error_code == "TYPE_INACTIVE"
        assert not Notification.objects.exists()

    def test_duplicate_idempotency_key(self, user, new_message_data, mock_broadcast):
        NotificationService.create_notification(
            recipient=user,
            type_key="new_message",
            data=new_message_data,
            idempotency_key="new_message:10",
        ).unwrap()

        result = NotificationService.create_notification(
            recipient=user,
            type_key="new_message",
            data=new_message_data,
            idempotency_key="new_message:10",
        )

        assert result.error_code == "DUPLICATE"
        assert Notification.objects.count() == 1
        assert mock_broadcast.call_count == 1

    def test_global_mute_records_skipped_delivery(
        self, user, new_message_data, mock_broadcast
    ):
        UserGlobalPreferenceFactory(user=user, all_disabled=True)

        notification = NotificationService.create_notification(
            recipient=user, type_key="new_message", data=new_message_data
        ).unwrap()

        delivery = notification.deliveries.get()
        assert delivery.status == DeliveryStatus.SKIPPED
        assert delivery.skipped_reason == SkipReason.GLOBAL_DISABLED
        mock_broadcast.assert_not_called()

    def test_channel_disabled_records_skipped_delivery(
        self, user, new_message_type, new_message_data, mock_broadcast
    ):
        UserNotificationPreferenceFactory(
            user=user, notification_type=new_message_type, websocket_enabled=False
        )

        notification = NotificationService.create_notification(
            recipient=user, type_key="new_message", data=new_message_data
        ).unwrap()

        assert notification.deliveries.get().skipped_reason == SkipReason.CHANNEL_DISABLED
        mock_broadcast.assert_not_called()

    def test_type_without_websocket_has_no_delivery(self, user, mock_broadcast):
        NotificationTypeFactory(key="quiet", supports_websocket=False)

        notification = NotificationService.create_notification(
            recipient=user, type_key="quiet"
        ).unwrap()

        assert not notification.deliveries.exists()
        mock_broadcast.assert_not_called()


# =============================================================================
# NotificationService read status
# =============================================================================


class TestMarkAsRead:
    def test_marks_read(self, user, unread_notification):
        notification = NotificationService.mark_as_read(unread_notification, user).unwrap()

        notification.refresh_from_db()
        assert notification.is_read is True

    def test_idempotent(self, user, read_notification):
        assert NotificationService.mark_as_read(read_notification, user).success

    def test_not_owner(self, other_user, unread_notification):
        result = NotificationService.mark_as_read(unread_notification, other_user)

        assert result.error_code == "NOT_OWNER"
        unread_notification.refresh_from_db()
        assert unread_notification.is_read is False


class TestMarkAllAsRead:
    def test_marks_only_own_unread(
        self, user, new_message_type, read_notification, other_user_notification
    ):
        NotificationFactory.create_batch(3, recipient=user, notification_type=new_message_type)

        count = NotificationService.mark_all_as_read(user).unwrap()

        assert count == 3
        assert not Notification.objects.filter(recipient=user, is_read=False).exists()
        other_user_notification.refresh_from_db()
        assert other_user_notification.is_read is False


# =============================================================================
# PreferenceService
# =============================================================================


class TestPreferenceService:
    def test_defaults_without_rows(self, user):
        prefs = PreferenceService.get_user_preferences(user).unwrap()

        assert prefs == {"global": {"all_disabled": False}, "types": []}

    def test_set_global_preference(self, user):
        PreferenceService.set_global_preference(user, all_disabled=True).unwrap()
        pref = PreferenceService.set_global_preference(user, all_disabled=False).unwrap()

        assert pref.all_disabled is False
        assert UserGlobalPreference.objects.filter(user=user).count() == 1

    def test_set_type_preference_keeps_unset_fields(self, user):
        PreferenceService.set_type_preference(
            user, "message_reaction", websocket_enabled=False
        ).unwrap()
        pref = PreferenceService.set_type_preference(
            user, "message_reaction", disabled=True
        ).unwrap()

        assert pref.disabled is True
        assert pref.websocket_enabled is False

    def test_set_type_preference_unknown_type(self, user):
        result = PreferenceService.set_type_preference(user, "nope", disabled=True)

        assert result.error_code == "TYPE_NOT_FOUND"

    def test_writes_invalidate_cached_resolution(self, user, new_message_type):
        from notifications.preferences import PreferenceResolver

        assert PreferenceResolver.resolve(user, new_message_type).blocked is False

        PreferenceService.set_type_preference(user, "new_message", disabled=True).unwrap()

        assert PreferenceResolver.resolve(user, new_message_type).blocked is True

    def test_listing(self, user):
        PreferenceService.set_global_preference(user, all_disabled=True).unwrap()
        PreferenceService.set_type_preference(user, "new_message", disabled=True).unwrap()

        prefs = PreferenceService.get_user_preferences(user).unwrap()

        assert prefs["global"] == {"all_disabled": True}
        assert prefs["types"] == [
            {
                "type_key": "new_message",
                "type_name": "New Message",
                "disabled": True,
                "websocket_enabled": None,
            }
        ]

    def test_reset(self, user, other_user):
        PreferenceService.set_global_preference(user, all_disabled=True).unwrap()
        PreferenceService.set_type_preference(user, "new_message", disabled=True).unwrap()
        PreferenceService.set_global_preference(other_user, all_disabled=True).unwrap()

        deleted = PreferenceService.reset_preferences(user).unwrap()

        assert deleted == 2
        assert not UserNotificationPreference.objects.filter(user=user).exists()
        assert UserGlobalPreference.objects.filter(user=other_user).exists()
