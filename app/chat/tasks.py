"""
Celery tasks for chat app.

This module defines periodic housekeeping tasks for:
- Typing indicator cleanup

Related files:
    - services.py: TypingService
    - config/settings.py: CELERY_BEAT_SCHEDULE

Usage:
    from chat.tasks import purge_expired_typing_indicators

    purge_expired_typing_indicators.delay()
"""

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def purge_expired_typing_indicators(self) -> int:
    """
    Delete typing indicators whose expiry has passed.

    Reads already ignore expired indicators, so this only keeps the
    table small.

    Returns:
        Number of indicators deleted
    """
    from chat.services import TypingService

    deleted = TypingService.purge_expired()
    logger.debug(f"Typing indicator purge removed {deleted} rows")
    return deleted
