"""
Upcoming escrow release reminders.

Professionals are told ahead of time when custody of an approved payment
is about to end. The pass matches approved payments whose scheduled
release falls inside the reminder window and notifies each professional
once per payment; the notification idempotency key keeps hourly reruns
from repeating a reminder.

Usage:
    from payments.workers.upcoming_releases import remind_upcoming_releases

    summary = remind_upcoming_releases()
    summary.notified  # reminders handed off by this pass
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta

from django.conf import settings
from django.utils import timezone

from notifications.models import Notification, NotificationKind
from notifications.services import NotificationService
from payments.models import Payment
from payments.state_machines import PaymentState

logger = logging.getLogger(__name__)


@dataclass
class UpcomingReleaseSummary:
    """
    Counts from one reminder pass.

    Attributes:
        upcoming: Approved payments releasing inside the window
        notified: Reminders handed off by this pass
        skipped: Payments already reminded about by an earlier pass
        failed: Reminders that could not be recorded
    """

    upcoming: int = 0
    notified: int = 0
    skipped: int = 0
    failed: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def reminder_key(payment: Payment) -> str:
    return f"upcoming-release:{payment.id}"


def remind_upcoming_releases(
    now: datetime | None = None,
    window: timedelta | None = None,
) -> UpcomingReleaseSummary:
    """
    Remind professionals about payments releasing within the window.

    Args:
        now: Start of the window (defaults to timezone.now())
        window: Window length (defaults to
            settings.ESCROW_UPCOMING_RELEASE_WINDOW_HOURS)

    Returns:
        UpcomingReleaseSummary with upcoming/notified/skipped/failed counts
    """
    now = now or timezone.now()
    window = window or timedelta(hours=settings.ESCROW_UPCOMING_RELEASE_WINDOW_HOURS)
    summary = UpcomingReleaseSummary()

    payments = (
        Payment.objects.filter(
            state=PaymentState.APPROVED,
            scheduled_release_at__gte=now,
            scheduled_release_at__lte=now + window,
        )
        .select_related("professional")
        .order_by("scheduled_release_at")
    )

    for payment in payments:
        summary.upcoming += 1
        key = reminder_key(payment)
        if Notification.objects.filter(idempotency_key=key).exists():
            summary.skipped += 1
            continue

        hours_left = round((payment.scheduled_release_at - now).total_seconds() / 3600)
        notification = NotificationService.notify(
            recipient=payment.professional,
            kind=NotificationKind.FUNDS_RELEASE_UPCOMING,
            title="Funds release upcoming",
            body=(
                f"The funds of ${payment.amount_total} will be released "
                f"automatically in {hours_left} hours."
            ),
            data={
                "payment_id": str(payment.id),
                "release_date": payment.scheduled_release_at.isoformat(),
                "hours_left": hours_left,
            },
            idempotency_key=key,
        )
        if notification is None:
            summary.failed += 1
        else:
            summary.notified += 1

    logger.info(
        f"Upcoming release reminders sent: {summary.notified} of {summary.upcoming}",
        extra=summary.to_dict(),
    )
    return summary
