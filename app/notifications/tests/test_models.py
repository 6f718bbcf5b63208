"""
Unit tests for notification models.

Test Classes:
    TestSeededTypes: Messaging types created by the data migration
    TestNotificationType: Field constraints and defaults
    TestNotification: Relations, constraints and ordering
    TestNotificationDelivery: One delivery per channel
"""

import pytest
from django.db import IntegrityError
from django.db.models import ProtectedError

from notifications.models import (
    Notification,
    NotificationDelivery,
    NotificationType,
    NotificationTypeKey,
)
from notifications.tests.factories import (
    NotificationDeliveryFactory,
    NotificationFactory,
    NotificationTypeFactory,
)


class TestSeededTypes:
    def test_every_messaging_type_is_seeded(self, db):
        keys = set(NotificationType.objects.values_list("key", flat=True))

        assert set(NotificationTypeKey.values) <= keys

    def test_seeded_templates(self, new_message_type, reaction_type, admin_message_type):
        assert new_message_type.title_template == "New message from {sender_name}"
        assert reaction_type.title_template == "{sender_name} reacted to your message"
        assert admin_message_type.title_template == "Admin Message"
        assert "{preview_excerpt}" in admin_message_type.body_template

    def test_seeded_types_support_websocket(self, db):
        assert not NotificationType.objects.filter(
            key__in=NotificationTypeKey.values, supports_websocket=False
        ).exists()


class TestNotificationType:
    def test_key_must_be_unique(self, db):
        NotificationTypeFactory(key="unique_key")

        with pytest.raises(IntegrityError):
            NotificationTypeFactory(key="unique_key")

    def test_defaults(self, db):
        nt = NotificationType.objects.create(key="plain", display_name="Plain")

        assert nt.is_active is True
        assert nt.supports_websocket is True
        assert nt.title_template == ""
        assert nt.category == "transactional"

    def test_str_representation(self, new_message_type):
        assert str(new_message_type) == "New Message (new_message)"


class TestNotification:
    def test_defaults(self, user, new_message_type):
        notification = Notification.objects.create(
            notification_type=new_message_type,
            recipient=user,
            title="Hello",
        )

        assert notification.is_read is False
        assert notification.body == ""
        assert notification.data == {}
        assert notification.actor is None

    def test_default_ordering_newest_first(self, user, new_message_type):
        first = NotificationFactory(recipient=user, notification_type=new_message_type)
        second = NotificationFactory(recipient=user, notification_type=new_message_type)

        assert list(Notification.objects.filter(recipient=user)) == [second, first]

    def test_idempotency_key_unique_when_set(self, user, new_message_type):
        NotificationFactory(
            recipient=user, notification_type=new_message_type, idempotency_key="new_message:1"
        )

        with pytest.raises(IntegrityError):
            NotificationFactory(
                recipient=user,
                notification_type=new_message_type,
                idempotency_key="new_message:1",
            )

    def test_null_idempotency_keys_do_not_collide(self, user, new_message_type):
        NotificationFactory(recipient=user, notification_type=new_message_type)
        NotificationFactory(recipient=user, notification_type=new_message_type)

        assert Notification.objects.filter(idempotency_key__isnull=True).count() == 2

    def test_cascade_delete_on_recipient_delete(self, user, unread_notification):
        user.delete()

        assert not Notification.objects.filter(pk=unread_notification.pk).exists()

    def test_actor_set_null_on_delete(self, actor_user, unread_notification):
        actor_user.delete()

        unread_notification.refresh_from_db()
        assert unread_notification.actor is None

    def test_type_protected_while_referenced(self, new_message_type, unread_notification):
        with pytest.raises(ProtectedError):
            new_message_type.delete()

    def test_str_representation(self, user, unread_notification):
        assert str(unread_notification) == (
            f"Notification(new_message) -> User {user.id} [unread]"
        )


class TestNotificationDelivery:
    def test_one_delivery_per_channel(self, unread_notification):
        NotificationDeliveryFactory(notification=unread_notification)

        with pytest.raises(IntegrityError):
            NotificationDeliveryFactory(notification=unread_notification)

    def test_deleted_with_notification(self, unread_notification):
        delivery = NotificationDeliveryFactory(notification=unread_notification)

        unread_notification.delete()

        assert not NotificationDelivery.objects.filter(pk=delivery.pk).exists()
