"""
Expiry Tasks

Celery beat task that collects expired objects whose expiry notification
was never delivered, e.g. while the listener was down.
"""

import logging

from flask import current_app

from burnbox.application.share_service import ShareService
from burnbox.celery_app import celery_app
from burnbox.domain.errors import DomainError

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name="burnbox.sweep_expired_objects")
def sweep_expired_objects(self, limit: int = 100):
    """
    Sweep objects past their expiry time.

    Cleanup goes through the same exactly-once path as the listener, so
    a sweep racing a notification frees each object once.

    Returns:
        dict: examined, cleaned and errors counts
    """
    logger.info("Starting expiry sweep")

    share_service = current_app.container.resolve(ShareService)
    try:
        result = share_service.sweep_expired(limit=limit)
    except DomainError as e:
        logger.error(f"Expiry sweep failed: {e}", exc_info=True)
        raise self.retry(exc=e, countdown=30, max_retries=3)

    stats = result.to_dict()
    logger.info(
        f"Expiry sweep completed - Examined: {result.examined}, "
        f"Cleaned: {result.cleaned}, Errors: {len(result.errors or [])}"
    )
    return stats
