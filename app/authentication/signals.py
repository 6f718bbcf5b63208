"""
Django signals for authentication.

This module defines signal handlers for:
- Auto-creating Profile when User is created
- Logging role changes

Related files:
    - models.py: User and Profile models
    - apps.py: Signal import in ready()
"""

import logging

from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

logger = logging.getLogger(__name__)


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_user_profile(sender, instance, created, **kwargs):
    """
    Create a Profile for newly created users.

    Args:
        sender: The User model class
        instance: The User instance that was saved
        created: Boolean indicating if this is a new record
        **kwargs: Additional signal arguments
    """
    if created:
        from authentication.models import Profile

        Profile.objects.get_or_create(user=instance)
        logger.debug(f"Profile created for user: {instance.email}")


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def log_role_change(sender, instance, created, update_fields, **kwargs):
    """Log when a user's role is explicitly updated."""
    if not created and update_fields and "role" in update_fields:
        logger.info(f"Role for user {instance.id} set to {instance.role}")
