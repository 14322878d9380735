"""
Background job bodies for payments.

Job bodies are plain functions; payments.tasks wraps them as Celery tasks
so they can be exercised directly in tests without a broker.

Usage:
    from payments.workers import remind_upcoming_releases, release_due_payments

    summary = release_due_payments()
    reminders = remind_upcoming_releases()
"""

from payments.workers.escrow_release import ReleasePassSummary, release_due_payments
from payments.workers.upcoming_releases import (
    UpcomingReleaseSummary,
    remind_upcoming_releases,
)

__all__ = [
    "ReleasePassSummary",
    "UpcomingReleaseSummary",
    "remind_upcoming_releases",
    "release_due_payments",
]
