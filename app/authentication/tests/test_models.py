"""
Tests for authentication models.

Test Organization:
    - TestUserModel: role defaults, names, manager behavior
    - TestProfileModel: username normalization and validation
    - TestPrivacySettingsModel: defaults
"""

import pytest
from django.core.exceptions import ValidationError

from authentication.models import (
    PrivacySettings,
    Profile,
    User,
    validate_username_format,
    validate_username_not_reserved,
)
from authentication.tests.factories import AdminUserFactory, UserFactory


class TestUserModel:
    def test_user_email_is_required(self, db):
        with pytest.raises(ValueError):
            User.objects.create_user(email=None, password="TestPass123!")

    def test_new_user_defaults_to_user_role(self, db):
        user = User.objects.create_user(email="plain@example.com", password="pw")

        assert user.role == User.Role.USER
        assert user.is_admin_role is False

    def test_superuser_gets_admin_role(self, superuser):
        assert superuser.role == User.Role.ADMIN
        assert superuser.is_admin_role is True

    def test_admin_role_does_not_imply_staff(self, db):
        admin = AdminUserFactory()

        assert admin.is_admin_role is True
        assert admin.is_staff is False

    def test_profile_created_by_signal(self, db):
        user = UserFactory()

        assert Profile.objects.filter(user=user).exists()

    def test_get_full_name_uses_profile(self, db):
        user = UserFactory(first_name="Ada", last_name="Lovelace")

        assert user.get_full_name() == "Ada Lovelace"

    def test_get_full_name_falls_back_to_email(self, db):
        user = UserFactory(email="nameless@example.com")

        assert user.get_full_name() == "nameless@example.com"

    def test_get_short_name_falls_back_to_email_local_part(self, db):
        user = UserFactory(email="shorty@example.com")

        assert user.get_short_name() == "shorty"

    def test_str_is_email(self, db):
        user = UserFactory(email="str@example.com")

        assert str(user) == "str@example.com"


class TestProfileModel:
    def test_username_is_lowercased_on_save(self, user):
        user.profile.username = "MixedCase"
        user.profile.save()
        user.profile.refresh_from_db()

        assert user.profile.username == "mixedcase"

    def test_full_name_strips_missing_parts(self, user):
        user.profile.first_name = "Solo"
        user.profile.last_name = ""

        assert user.profile.full_name == "Solo"

    @pytest.mark.parametrize("value", ["ab", "has space", "x" * 31])
    def test_invalid_username_format_rejected(self, value):
        with pytest.raises(ValidationError):
            validate_username_format(value)

    def test_reserved_username_rejected(self):
        with pytest.raises(ValidationError):
            validate_username_not_reserved("Trainer")


class TestPrivacySettingsModel:
    def test_defaults_allow_messages(self, user):
        settings_obj = PrivacySettings.objects.create(user=user)

        assert settings_obj.allow_messages is True
        assert settings_obj.profile_visibility == PrivacySettings.Visibility.PUBLIC
