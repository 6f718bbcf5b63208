"""
Factory Boy factories for authentication models.

Provides realistic test data generation for:
- User: Custom user model with email-based authentication and a role
- PrivacySettings: Per-user privacy choices

Usage:
    from authentication.tests.factories import UserFactory, AdminUserFactory

    user = UserFactory()
    trainer = TrainerFactory()
    admin = AdminUserFactory()

    # Profile is created by signal; names can be passed through
    user = UserFactory(profile__first_name="Ada", profile__last_name="Lovelace")
"""

import factory

from authentication.models import PrivacySettings, User


class UserFactory(factory.django.DjangoModelFactory):
    """
    Factory for User model.

    Creates active, verified users with the default "user" role.

    Examples:
        user = UserFactory()
        inactive = UserFactory(is_active=False)
        named = UserFactory(first_name="Ada", last_name="Lovelace")
    """

    class Meta:
        model = User
        skip_postgeneration_save = True

    email = factory.Sequence(lambda n: f"user{n}@example.com")
    role = User.Role.USER
    email_verified = True
    is_active = True
    is_staff = False

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        """Override create to use UserManager.create_user()."""
        password = kwargs.pop("password", "TestPass123!")
        first_name = kwargs.pop("first_name", "")
        last_name = kwargs.pop("last_name", "")
        username = kwargs.pop("username", "")

        user = model_class.objects.create_user(
            email=kwargs.pop("email"), password=password, **kwargs
        )

        if first_name or last_name or username:
            profile = user.profile
            profile.first_name = first_name
            profile.last_name = last_name
            profile.username = username
            profile.save()
        return user


class TrainerFactory(UserFactory):
    role = User.Role.TRAINER
    email = factory.Sequence(lambda n: f"trainer{n}@example.com")


class AdminUserFactory(UserFactory):
    """Admin role without Django admin access (is_staff stays False)."""

    role = User.Role.ADMIN
    email = factory.Sequence(lambda n: f"admin{n}@example.com")


class PrivacySettingsFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = PrivacySettings

    user = factory.SubFactory(UserFactory)
    allow_messages = True
