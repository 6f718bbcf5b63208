"""
Celery tasks for messaging app.

This module defines async tasks for:
- Unread counter reconciliation (scheduled hourly via CELERY_BEAT_SCHEDULE)

Related files:
    - services.py: ConversationService.reconcile_unread_counts

Usage:
    from messaging.tasks import reconcile_unread_counts

    reconcile_unread_counts.delay()
    reconcile_unread_counts.delay(conversation_id=42)
"""

import logging

from celery import shared_task

from core.exceptions import StorageError
from messaging.services import ConversationService

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    autoretry_for=(StorageError,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def reconcile_unread_counts(self, conversation_id: int | None = None) -> int:
    """
    Recompute unread counters from the message table and fix drift.

    Args:
        conversation_id: Limit to a single conversation (all when omitted)

    Returns:
        Number of conversations whose counters were corrected

    Raises:
        StorageError: On database failure (triggers retry)
    """
    fixed = ConversationService.reconcile_unread_counts(conversation_id).unwrap()
    if fixed:
        logger.warning(f"Unread counter reconciliation corrected {fixed} conversation(s)")
    else:
        logger.debug("Unread counter reconciliation found no drift")
    return fixed
