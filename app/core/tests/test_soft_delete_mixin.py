"""
Tests for SoftDeleteMixin in core/model_mixins.py.

Exercised through messaging.Message, the soft-deletable model of the
project.

This module tests:
- soft_delete() sets is_deleted and deleted_at, idempotently
- restore() clears them, idempotently
- hard_delete() permanently removes the record
- Optional hooks (on_soft_delete, on_restore)
"""

from unittest.mock import patch

import pytest

from messaging.models import Message
from messaging.tests.factories import MessageFactory


@pytest.fixture
def message(db):
    return MessageFactory()


# =============================================================================
# soft_delete() Tests
# =============================================================================


@pytest.mark.django_db
class TestSoftDelete:
    def test_sets_flag_and_timestamp(self, message):
        message.soft_delete()

        assert message.is_deleted is True
        assert message.deleted_at is not None

    def test_persists_to_database(self, message):
        message.soft_delete()

        stored = Message.all_objects.get(pk=message.pk)
        assert stored.is_deleted is True
        assert stored.deleted_at == message.deleted_at

    def test_is_idempotent(self, message):
        message.soft_delete()
        first_deleted_at = message.deleted_at

        message.soft_delete()

        assert message.deleted_at == first_deleted_at

    def test_calls_hook_once(self, message):
        with patch.object(message, "on_soft_delete", create=True) as hook:
            message.soft_delete()
            message.soft_delete()

        hook.assert_called_once()


# =============================================================================
# restore() Tests
# =============================================================================


@pytest.mark.django_db
class TestRestore:
    def test_clears_flag_and_timestamp(self, message):
        message.soft_delete()

        message.restore()

        stored = Message.objects.get(pk=message.pk)
        assert stored.is_deleted is False
        assert stored.deleted_at is None

    def test_noop_when_not_deleted(self, message):
        with patch.object(message, "on_restore", create=True) as hook:
            message.restore()

        hook.assert_not_called()

    def test_calls_hook(self, message):
        message.soft_delete()

        with patch.object(message, "on_restore", create=True) as hook:
            message.restore()

        hook.assert_called_once()


# =============================================================================
# hard_delete() Tests
# =============================================================================


@pytest.mark.django_db
class TestHardDelete:
    def test_removes_row(self, message):
        message.hard_delete()

        assert not Message.all_objects.filter(pk=message.pk).exists()

    def test_works_on_soft_deleted_record(self, message):
        message.soft_delete()

        message.hard_delete()

        assert not Message.all_objects.filter(pk=message.pk).exists()
