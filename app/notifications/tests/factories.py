"""
Factory Boy factories for notification models.

Provides test data generation for:
- NotificationType: Extra notification types (the messaging types are seeded
  by migration; fetch them with NotificationType.objects.get(key=...))
- Notification: Individual user notifications
- UserGlobalPreference: Global mute
- UserNotificationPreference: Type-level preferences
- NotificationDelivery: WebSocket delivery records

Usage:
    from notifications.tests.factories import NotificationFactory

    notification = NotificationFactory(recipient=user)
    notification = NotificationFactory(recipient=user, is_read=True)
"""

import factory

from authentication.tests.factories import UserFactory


class NotificationTypeFactory(factory.django.DjangoModelFactory):
    """
    Factory for NotificationType model.

    Examples:
        nt = NotificationTypeFactory()
        nt = NotificationTypeFactory(title_template="Hi {sender_name}")
        nt = NotificationTypeFactory(is_active=False)
    """

    class Meta:
        model = "notifications.NotificationType"

    key = factory.Sequence(lambda n: f"notification_type_{n}")
    display_name = factory.LazyAttribute(lambda obj: obj.key.replace("_", " ").title())
    category = "social"
    title_template = factory.LazyAttribute(lambda obj: f"{obj.display_name} Title")
    body_template = factory.LazyAttribute(lambda obj: f"{obj.display_name} body message.")
    is_active = True
    supports_websocket = True


class NotificationFactory(factory.django.DjangoModelFactory):
    """
    Factory for Notification model.

    By default creates an unread notification without actor.
    """

    class Meta:
        model = "notifications.Notification"

    notification_type = factory.SubFactory(NotificationTypeFactory)
    recipient = factory.SubFactory(UserFactory)
    actor = None
    title = factory.Faker("sentence", nb_words=5)
    body = factory.Faker("sentence", nb_words=10)
    data = factory.LazyFunction(dict)
    is_read = False


class UserGlobalPreferenceFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = "notifications.UserGlobalPreference"

    user = factory.SubFactory(UserFactory)
    all_disabled = False


class UserNotificationPreferenceFactory(factory.django.DjangoModelFactory):
    """
    Factory for UserNotificationPreference model.

    websocket_enabled defaults to None (inherit from the type).
    """

    class Meta:
        model = "notifications.UserNotificationPreference"

    user = factory.SubFactory(UserFactory)
    notification_type = factory.SubFactory(NotificationTypeFactory)
    disabled = False
    websocket_enabled = None


class NotificationDeliveryFactory(factory.django.DjangoModelFactory):
    """
    Factory for NotificationDelivery model.

    By default creates a PENDING websocket delivery.
    """

    class Meta:
        model = "notifications.NotificationDelivery"

    notification = factory.SubFactory(NotificationFactory)
    channel = "websocket"
    status = "pending"
    delivered_at = None
    failed_at = None
    failure_reason = ""
    attempt_count = 0
    skipped_reason = ""
