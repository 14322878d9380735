"""
Celery tasks for recurring services.

Usage:
    from recurring.tasks import generate_recurring_services

    # Typically run daily at 02:00 via celery-beat (see migration 0002)
    generate_recurring_services.delay()
"""

from __future__ import annotations

import logging

from celery import shared_task

from recurring.generator import RecurringServiceGenerator

logger = logging.getLogger(__name__)


@shared_task(acks_late=True)
def generate_recurring_services() -> dict:
    """
    Run one generator pass over all active schedules.

    Overlapping runs are safe: days already booked are skipped and the
    bookings unique constraint rejects concurrent duplicates.

    Returns:
        Dict with processed, created and failed counts
    """
    summary = RecurringServiceGenerator.generate_recurring_services()
    if summary.failed:
        logger.warning(
            f"Recurring generation finished with {summary.failed} failed schedules",
            extra={"schedules_failed": summary.failed},
        )
    return summary.to_dict()
