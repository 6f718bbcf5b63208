"""
Test configuration and fixtures for messaging tests.

This module provides:
- Participants of every kind (user, trainer, admin) and an outsider
- A conversation between the default user and trainer
- API client helpers for authenticated requests
- A recording emitter that captures events handed to notifications

Usage:
    def test_example(conversation, user_client):
        response = user_client.get(f"/api/v1/messaging/conversations/{conversation.id}/")
        assert response.status_code == 200
"""

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.tests.factories import (
    AdminUserFactory,
    TrainerFactory,
    UserFactory,
)
from messaging.services import ConversationService


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def user(db):
    """A regular member."""
    return UserFactory(first_name="Alice", last_name="Runner")


@pytest.fixture
def trainer(db):
    return TrainerFactory(first_name="Bob", last_name="Coach")


@pytest.fixture
def outsider(db):
    """A user who is not part of the default conversation."""
    return UserFactory(first_name="Eve", last_name="Outsider")


@pytest.fixture
def admin_user(db):
    return AdminUserFactory(first_name="Site", last_name="Admin")


# =============================================================================
# Conversation Fixtures
# =============================================================================


@pytest.fixture
def conversation(user, trainer):
    """Conversation between user and trainer created through the registry."""
    conversation, _ = ConversationService.get_or_create_conversation(
        user, trainer
    ).unwrap()
    return conversation


# =============================================================================
# Emitter Fixtures
# =============================================================================


class RecordingEmitter:
    """Emitter stand-in that stores every event it receives."""

    events = []

    @classmethod
    def emit(cls, event):
        cls.events.append(event)


@pytest.fixture
def recorded_events(settings):
    """
    Route messaging events to RecordingEmitter and return its event list.

    Events are only recorded once their transaction commits; wrap the call
    in django_capture_on_commit_callbacks(execute=True).
    """
    RecordingEmitter.events = []
    settings.MESSAGING_NOTIFICATION_EMITTER = "messaging.tests.conftest.RecordingEmitter"
    return RecordingEmitter.events


# =============================================================================
# API Client Fixtures
# =============================================================================


def _client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return client


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def user_client(user):
    return _client_for(user)


@pytest.fixture
def trainer_client(trainer):
    return _client_for(trainer)


@pytest.fixture
def outsider_client(outsider):
    return _client_for(outsider)


@pytest.fixture
def admin_api_client(admin_user):
    return _client_for(admin_user)
