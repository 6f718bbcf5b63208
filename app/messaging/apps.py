"""
Messaging application configuration.

This app provides direct messaging with:
- One conversation per unordered pair of participants
- Per-message delivery tracking (sent, delivered, read, failed)
- Denormalized per-participant unread counters
- Reactions and an admin bypass messaging path
"""

from django.apps import AppConfig


class MessagingConfig(AppConfig):
    """Configuration for the messaging application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "messaging"
    verbose_name = "Messaging"
