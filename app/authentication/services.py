"""
Identity and privacy services consumed by messaging.

This module provides:
- RoleResolver: role(user_id) / is_admin(user_id) lookups
- PrivacyGate: may_message(sender_id, receiver_id) for the normal send path
- PrivacySettingsService: read/update a user's privacy settings

Related files:
    - models.py: User.Role, PrivacySettings
    - messaging/services.py: MessageDispatcher and AdminMessagingService
      are the only callers of the gate and the resolver

Security:
    - The admin messaging path calls RoleResolver inside its own transaction
    - PrivacyGate is never consulted by the admin path
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from core.exceptions import NotFoundError
from core.services import BaseService

if TYPE_CHECKING:
    from authentication.models import PrivacySettings, User

logger = logging.getLogger(__name__)


class RoleResolver(BaseService):
    """
    Resolve platform roles for participant ids.

    Usage:
        from authentication.services import RoleResolver

        if RoleResolver.is_admin(request.user.id):
            ...

        kind = RoleResolver.participant_kind(user)  # "user" | "trainer" | "admin"
    """

    @classmethod
    def role(cls, user_id: int) -> str:
        """
        Return the role of a user.

        Args:
            user_id: Primary key of the user

        Returns:
            One of User.Role values

        Raises:
            NotFoundError: If no active user has this id (USER_NOT_FOUND)
        """
        from authentication.models import User

        role = (
            User.objects.filter(pk=user_id, is_active=True)
            .values_list("role", flat=True)
            .first()
        )
        if role is None:
            raise NotFoundError(
                f"User {user_id} not found",
                error_code="USER_NOT_FOUND",
                details={"user_id": user_id},
            )
        return role

    @classmethod
    def is_admin(cls, user_id: int) -> bool:
        """
        Check whether a user holds the admin role.

        Unknown or inactive ids are simply not admins.
        """
        from authentication.models import User

        return User.objects.filter(
            pk=user_id, is_active=True, role=User.Role.ADMIN
        ).exists()

    @staticmethod
    def participant_kind(user: User) -> str:
        """Map a user's role to a conversation participant kind."""
        return user.role


class PrivacyGate(BaseService):
    """
    Privacy check for participant-to-participant messaging.

    Rules:
        - A user may always message themselves (no-op guard for callers)
        - Otherwise the receiver's allow_messages setting decides
        - A receiver without a PrivacySettings row accepts messages
    """

    @classmethod
    def may_message(cls, sender_id: int, receiver_id: int) -> bool:
        """
        Check whether sender may message receiver.

        Args:
            sender_id: Id of the sending user
            receiver_id: Id of the receiving user

        Returns:
            True if the message is allowed
        """
        from authentication.models import PrivacySettings

        if sender_id == receiver_id:
            return True

        allow = (
            PrivacySettings.objects.filter(user_id=receiver_id)
            .values_list("allow_messages", flat=True)
            .first()
        )
        if allow is None:
            return True

        if not allow:
            cls.get_logger().info(
                f"Privacy gate refused message from user {sender_id} to {receiver_id}"
            )
        return allow


class PrivacySettingsService(BaseService):
    """Read and update privacy settings."""

    @classmethod
    def get_settings(cls, user: User) -> PrivacySettings:
        """Return the user's settings, creating the default row if missing."""
        from authentication.models import PrivacySettings

        settings_obj, _ = PrivacySettings.objects.get_or_create(user=user)
        return settings_obj

    @classmethod
    def update_settings(cls, user: User, **data) -> PrivacySettings:
        """
        Update privacy settings.

        Args:
            user: Owner of the settings
            **data: Any of profile_visibility, show_activity, allow_messages

        Returns:
            The updated PrivacySettings instance
        """
        settings_obj = cls.get_settings(user)
        allowed = {"profile_visibility", "show_activity", "allow_messages"}
        update_fields = []
        for field_name, value in data.items():
            if field_name in allowed:
                setattr(settings_obj, field_name, value)
                update_fields.append(field_name)

        if update_fields:
            settings_obj.save(update_fields=[*update_fields, "updated_at"])
            logger.info(
                f"Privacy settings updated for user {user.id}: {', '.join(update_fields)}"
            )
        return settings_obj
