"""
Notification preference resolution.

This module handles the hierarchical preference resolution:
Global -> Type -> Channel

The resolution returns a ResolvedPreferences dataclass indicating
which channels are enabled for a specific user/notification-type combination.

Design Decisions:
    - TTL-based caching (5 min) for preference lookups
    - Preference writes invalidate the cached entries of the user
    - Admin messages ignore the per-type kill switch; the global mute
      still applies

Usage:
    from notifications.preferences import PreferenceResolver

    prefs = PreferenceResolver.resolve(user, notification_type)
    if prefs.websocket_enabled:
        # Broadcast
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.core.cache import cache

if TYPE_CHECKING:
    from authentication.models import User

    from notifications.models import NotificationType

logger = logging.getLogger(__name__)


# Cache configuration
PREFERENCE_CACHE_TTL = 300  # 5 minutes
PREFERENCE_CACHE_PREFIX = "notif_pref"


@dataclass(frozen=True)
class ResolvedPreferences:
    """
    Resolved notification preferences for a user/type combination.

    Attributes:
        websocket_enabled: Whether websocket notifications are enabled
        blocked: True if all channels are blocked (any level disabled)
        blocked_reason: If blocked, the reason why (for SkipReason)
    """

    websocket_enabled: bool
    blocked: bool = False
    blocked_reason: str | None = None

    def is_channel_enabled(self, channel: str) -> bool:
        """Check if a specific channel is enabled."""
        if self.blocked:
            return False
        return getattr(self, f"{channel}_enabled", False)


class PreferenceResolver:
    """
    Resolves notification preferences using the hierarchy:
    Global -> Type -> Channel

    Uses TTL-based caching to reduce database queries.
    """

    @staticmethod
    def _get_cache_key(user_id: int, notification_type_id: int) -> str:
        """Build cache key for preferences."""
        return f"{PREFERENCE_CACHE_PREFIX}:{user_id}:{notification_type_id}"

    @classmethod
    def resolve(
        cls,
        user: User,
        notification_type: NotificationType,
        use_cache: bool = True,
    ) -> ResolvedPreferences:
        """
        Resolve preferences for a single user/type combination.

        Args:
            user: The user to resolve preferences for
            notification_type: The notification type
            use_cache: Whether to use cache (default True)

        Returns:
            ResolvedPreferences with enabled channels
        """
        cache_key = cls._get_cache_key(user.id, notification_type.id)
        if use_cache:
            cached = cache.get(cache_key)
            if cached is not None:
                return cached

        resolved = cls._resolve_from_db(user, notification_type)

        if use_cache:
            cache.set(cache_key, resolved, timeout=PREFERENCE_CACHE_TTL)

        return resolved

    @classmethod
    def _resolve_from_db(
        cls,
        user: User,
        notification_type: NotificationType,
    ) -> ResolvedPreferences:
        """
        Resolve preferences from database without caching.

        Hierarchy:
        1. Global disabled -> block all
        2. Type disabled -> block all (not for admin messages)
        3. Per-channel: user override if set, else type default
        """
        from notifications.models import (
            NotificationTypeKey,
            SkipReason,
            UserGlobalPreference,
            UserNotificationPreference,
        )

        # 1. Check global preference
        global_pref = UserGlobalPreference.objects.filter(user=user).first()
        if global_pref is not None and global_pref.all_disabled:
            return ResolvedPreferences(
                websocket_enabled=False,
                blocked=True,
                blocked_reason=SkipReason.GLOBAL_DISABLED,
            )

        # 2. Check type preference
        type_pref = UserNotificationPreference.objects.filter(
            user=user,
            notification_type=notification_type,
        ).first()
        is_admin_type = notification_type.key == NotificationTypeKey.ADMIN_MESSAGE
        if type_pref is not None and type_pref.disabled and not is_admin_type:
            return ResolvedPreferences(
                websocket_enabled=False,
                blocked=True,
                blocked_reason=SkipReason.TYPE_DISABLED,
            )

        # 3. Resolve channel
        websocket_enabled = notification_type.supports_websocket
        if websocket_enabled and type_pref is not None and type_pref.websocket_enabled is not None:
            websocket_enabled = type_pref.websocket_enabled

        return ResolvedPreferences(websocket_enabled=websocket_enabled)

    @classmethod
    def invalidate_cache(
        cls,
        user_id: int,
        notification_type_id: int | None = None,
    ) -> None:
        """
        Invalidate cached preferences for a user.

        Args:
            user_id: User whose cache to invalidate
            notification_type_id: Specific type to invalidate (all types when None)
        """
        from notifications.models import NotificationType

        if notification_type_id is not None:
            cache.delete(cls._get_cache_key(user_id, notification_type_id))
            return

        keys = [
            cls._get_cache_key(user_id, type_id)
            for type_id in NotificationType.objects.values_list("id", flat=True)
        ]
        if keys:
            cache.delete_many(keys)
        logger.debug(f"Invalidated {len(keys)} cached preference(s) for user {user_id}")
