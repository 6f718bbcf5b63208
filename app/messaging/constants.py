"""
Constants and configuration for the messaging module.

This module centralizes configuration values for:
- Message content limits
- Reaction glyphs
- Conversation registry retries
- Admin tooling limits

Values marked as overridable are read through django.conf.settings at
call time. Import example:
    from messaging.constants import MESSAGE_CONFIG, REACTION_CONFIG
"""

from typing import Final


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message operations."""

    # Content limits
    MAX_CONTENT_LENGTH: Final[int] = 5000  # Characters

    # Length of the preview carried by events and list rows
    PREVIEW_LENGTH: Final[int] = 100

    # Placeholder shown instead of the content of a deleted message
    DELETED_PLACEHOLDER: Final[str] = "[Message deleted]"


# =============================================================================
# Reaction Configuration
# =============================================================================


class REACTION_CONFIG:
    """Configuration for message reactions."""

    # Named glyph codes; clients map them to emoji
    ALLOWED_REACTIONS: Final[tuple] = (
        "like",
        "love",
        "laugh",
        "wow",
        "sad",
        "angry",
        "clap",
        "fire",
        "flex",
        "thinking",
        "party",
        "smile",
    )


# =============================================================================
# Conversation Registry Configuration
# =============================================================================


class REGISTRY_CONFIG:
    """Configuration for conversation get-or-create."""

    # Insert attempts before a canonical-key race escalates to STORAGE_FAILURE.
    # Overridable via settings.MESSAGING_REGISTRY_MAX_ATTEMPTS.
    MAX_CREATE_ATTEMPTS: Final[int] = 3


# =============================================================================
# Admin Configuration
# =============================================================================


class ADMIN_CONFIG:
    """Configuration for the admin messaging tools."""

    SEARCH_MAX_RESULTS: Final[int] = 50
    SEARCH_MIN_QUERY_LENGTH: Final[int] = 1
