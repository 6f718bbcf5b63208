"""
Test configuration and fixtures for notification tests.

This module provides:
- Users (recipient, actor, another user)
- The seeded messaging notification types
- Notification fixtures (read/unread, owned by another user)
- API client helpers for authenticated requests

Usage:
    def test_example(user, unread_notification, authenticated_client):
        response = authenticated_client.get('/api/v1/notifications/')
        assert response.status_code == 200
"""

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.tests.factories import AdminUserFactory, UserFactory
from notifications.tests.factories import NotificationFactory


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def user(db):
    """User receiving notifications."""
    return UserFactory(first_name="Alice", last_name="Runner")


@pytest.fixture
def other_user(db):
    return UserFactory(first_name="Carol", last_name="Lifter")


@pytest.fixture
def actor_user(db):
    """User triggering notifications (message sender or reactor)."""
    return UserFactory(first_name="Bob", last_name="Coach")


@pytest.fixture
def admin_user(db):
    return AdminUserFactory(first_name="Site", last_name="Admin")


# =============================================================================
# NotificationType Fixtures
# =============================================================================


@pytest.fixture
def new_message_type(db):
    """Seeded by notifications/migrations/0002."""
    from notifications.models import NotificationType

    return NotificationType.objects.get(key="new_message")


@pytest.fixture
def reaction_type(db):
    from notifications.models import NotificationType

    return NotificationType.objects.get(key="message_reaction")


@pytest.fixture
def admin_message_type(db):
    from notifications.models import NotificationType

    return NotificationType.objects.get(key="admin_message")


@pytest.fixture
def new_message_data(actor_user):
    """Template data accepted by the new_message type."""
    return {
        "conversation_id": 1,
        "sender_id": actor_user.id,
        "message_id": 10,
        "message_preview": "Ready for the long run?",
        "is_admin_message": False,
        "sender_name": actor_user.get_full_name(),
    }


# =============================================================================
# Notification Fixtures
# =============================================================================


@pytest.fixture
def unread_notification(user, new_message_type, actor_user):
    return NotificationFactory(
        recipient=user,
        notification_type=new_message_type,
        actor=actor_user,
        title="New message from Bob Coach",
        body="Ready for the long run?",
    )


@pytest.fixture
def read_notification(user, new_message_type):
    return NotificationFactory(
        recipient=user,
        notification_type=new_message_type,
        is_read=True,
    )


@pytest.fixture
def other_user_notification(other_user, new_message_type):
    return NotificationFactory(recipient=other_user, notification_type=new_message_type)


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def authenticated_client(user):
    """API client authenticated with JWT token for the default user fixture."""
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return client


# =============================================================================
# Task Fixtures
# =============================================================================


@pytest.fixture
def mock_broadcast(mocker):
    """Replace the broadcast task so services can be tested in isolation."""
    return mocker.patch("notifications.tasks.broadcast_websocket_notification.delay")
