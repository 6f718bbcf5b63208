"""
Tests for RoleResolver, PrivacyGate and PrivacySettingsService.
"""

import pytest

from authentication.models import PrivacySettings, User
from authentication.services import (
    PrivacyGate,
    PrivacySettingsService,
    RoleResolver,
)
from authentication.tests.factories import PrivacySettingsFactory
from core.exceptions import NotFoundError


class TestRoleResolver:
    def test_role_returns_stored_role(self, trainer):
        assert RoleResolver.role(trainer.id) == User.Role.TRAINER

    def test_role_unknown_user_raises_not_found(self, db):
        with pytest.raises(NotFoundError) as exc_info:
            RoleResolver.role(999999)

        assert exc_info.value.error_code == "USER_NOT_FOUND"

    def test_role_inactive_user_raises_not_found(self, deactivated_user):
        with pytest.raises(NotFoundError):
            RoleResolver.role(deactivated_user.id)

    def test_is_admin_true_for_admin_role(self, admin_user):
        assert RoleResolver.is_admin(admin_user.id) is True

    def test_is_admin_false_for_regular_user(self, user):
        assert RoleResolver.is_admin(user.id) is False

    def test_is_admin_false_for_unknown_id(self, db):
        assert RoleResolver.is_admin(999999) is False

    def test_is_admin_false_for_deactivated_admin(self, admin_user):
        admin_user.is_active = False
        admin_user.save(update_fields=["is_active"])

        assert RoleResolver.is_admin(admin_user.id) is False

    def test_participant_kind_maps_role(self, trainer):
        assert RoleResolver.participant_kind(trainer) == "trainer"


class TestPrivacyGate:
    def test_missing_settings_row_allows(self, user, other_user):
        assert PrivacyGate.may_message(user.id, other_user.id) is True

    def test_receiver_disallowing_messages_blocks(self, user, other_user):
        PrivacySettingsFactory(user=other_user, allow_messages=False)

        assert PrivacyGate.may_message(user.id, other_user.id) is False

    def test_sender_setting_does_not_matter(self, user, other_user):
        PrivacySettingsFactory(user=user, allow_messages=False)

        assert PrivacyGate.may_message(user.id, other_user.id) is True

    def test_self_message_always_allowed(self, user):
        PrivacySettingsFactory(user=user, allow_messages=False)

        assert PrivacyGate.may_message(user.id, user.id) is True


class TestPrivacySettingsService:
    def test_get_settings_creates_default_row(self, user):
        settings_obj = PrivacySettingsService.get_settings(user)

        assert settings_obj.allow_messages is True
        assert PrivacySettings.objects.filter(user=user).count() == 1

    def test_update_settings_changes_allowed_fields(self, user):
        settings_obj = PrivacySettingsService.update_settings(
            user, allow_messages=False, show_activity=False
        )

        settings_obj.refresh_from_db()
        assert settings_obj.allow_messages is False
        assert settings_obj.show_activity is False

    def test_update_settings_ignores_unknown_fields(self, user):
        settings_obj = PrivacySettingsService.update_settings(user, user_id=12345)

        assert settings_obj.user_id == user.id
