"""
Celery tasks for payment processing.

This module provides periodic tasks for:
- Releasing escrow custody once the scheduled release time has passed
- Reminding professionals about releases due within the next day

Usage:
    from payments.tasks import notify_upcoming_releases, process_escrow_releases

    # Both run hourly via celery-beat (see migrations 0002 and 0004)
    process_escrow_releases.delay()
    notify_upcoming_releases.delay()
"""

from __future__ import annotations

import logging

from celery import shared_task

from payments.exceptions import LockAcquisitionError
from payments.locks import DistributedLock
from payments.workers.escrow_release import release_due_payments
from payments.workers.upcoming_releases import remind_upcoming_releases

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

ESCROW_RELEASE_LOCK_KEY = "payments:escrow-release"

# Longer than any realistic pass; expires on its own if a worker dies
ESCROW_RELEASE_LOCK_TTL = 30 * 60


# =============================================================================
# Escrow Release
# =============================================================================


@shared_task(acks_late=True)
def process_escrow_releases() -> dict:
    """
    Run one escrow release pass.

    Passes never overlap: the pass runs under a non-blocking distributed
    lock and a worker that cannot take it skips the run. Anything left
    behind is picked up by the next scheduled pass.

    Returns:
        Dict with:
        - status: "completed" or "skipped"
        - processed, released, skipped, failed: pass counts (completed only)
    """
    try:
        with DistributedLock(
            ESCROW_RELEASE_LOCK_KEY,
            ttl=ESCROW_RELEASE_LOCK_TTL,
            blocking=False,
        ):
            summary = release_due_payments()
    except LockAcquisitionError:
        logger.info("Escrow release pass already running, skipping")
        return {"status": "skipped"}

    return {"status": "completed", **summary.to_dict()}


# =============================================================================
# Upcoming Release Reminders
# =============================================================================


@shared_task(acks_late=True)
def notify_upcoming_releases() -> dict:
    """
    Remind professionals about payments released within the next day.

    Overlapping runs are harmless: each payment's reminder carries an
    idempotency key, so it is recorded at most once.

    Returns:
        Dict with status "completed" and the upcoming, notified, skipped
        and failed counts
    """
    summary = remind_upcoming_releases()
    return {"status": "completed", **summary.to_dict()}
