"""
Escrow release pass.

Custody must not last indefinitely: once an approved payment's scheduled
release time has passed it is released to the professional. Disputed,
refunded and partially refunded payments are never picked up because the
scan only matches state APPROVED.

Each payment is released independently through PaymentLedgerService.release()
(row lock + state re-check). A failure on one payment is logged and the pass
moves on; the payment still matches the scan condition next cycle, so missed
releases heal on their own.

Usage:
    from payments.workers.escrow_release import release_due_payments

    summary = release_due_payments()
    summary.released  # payments moved to RELEASED by this pass
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime

from django.conf import settings
from django.utils import timezone

from payments.models import Payment
from payments.services import PaymentLedgerService
from payments.state_machines import PaymentState

logger = logging.getLogger(__name__)

RELEASE_TRIGGER = "scheduler"


@dataclass
class ReleasePassSummary:
    """
    Counts from one release pass.

    Attributes:
        processed: Due payments examined
        released: Payments this pass moved to RELEASED
        skipped: Payments already released or no longer approved when locked
        failed: Payments whose release raised
    """

    processed: int = 0
    released: int = 0
    skipped: int = 0
    failed: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def due_payment_ids(now: datetime, limit: int, exclude=()) -> list:
    """IDs of approved payments whose release time has passed, oldest first."""
    return list(
        Payment.objects.filter(
            state=PaymentState.APPROVED,
            scheduled_release_at__lte=now,
        )
        .exclude(id__in=list(exclude))
        .order_by("scheduled_release_at")
        .values_list("id", flat=True)[:limit]
    )


def release_due_payments(
    now: datetime | None = None,
    batch_size: int | None = None,
) -> ReleasePassSummary:
    """
    Release every approved payment whose scheduled release time has passed.

    Pages through due payments batch_size at a time until none remain.
    Payments that stay APPROVED after an attempt (a failure) are excluded
    from later pages of the same pass so a poisoned row cannot loop.

    Args:
        now: Cut-off time (defaults to timezone.now())
        batch_size: Payments fetched per query (defaults to
            settings.ESCROW_RELEASE_BATCH_SIZE)

    Returns:
        ReleasePassSummary with processed/released/skipped/failed counts
    """
    now = now or timezone.now()
    batch_size = batch_size or settings.ESCROW_RELEASE_BATCH_SIZE
    summary = ReleasePassSummary()
    attempted: set = set()

    logger.info(
        "Starting escrow release pass",
        extra={"cutoff": now.isoformat(), "batch_size": batch_size},
    )

    while True:
        batch = due_payment_ids(now, batch_size, exclude=attempted)
        if not batch:
            break

        for payment_id in batch:
            attempted.add(payment_id)
            summary.processed += 1
            try:
                result = PaymentLedgerService.release(payment_id, trigger=RELEASE_TRIGGER)
            except Exception:
                summary.failed += 1
                logger.error(
                    f"Failed to release payment {payment_id}",
                    extra={"payment_id": str(payment_id)},
                    exc_info=True,
                )
                continue

            if result.success and result.data.changed:
                summary.released += 1
            elif result.success:
                summary.skipped += 1
            else:
                # State moved on between the scan and the row lock
                summary.skipped += 1
                logger.info(
                    f"Skipped release of payment {payment_id}: {result.error}",
                    extra={"payment_id": str(payment_id), "error_code": result.error_code},
                )

    logger.info(
        f"Escrow release pass complete: released {summary.released} of {summary.processed}",
        extra=summary.to_dict(),
    )
    return summary
