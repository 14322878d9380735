"""
Recurring service generator.

Turns active recurrence schedules into pending bookings ahead of time.
Runs daily from Celery beat (see tasks.py) and once for a schedule right
after it is created.

Idempotency:
    Days that already have a booking for the schedule are skipped, so
    rerunning the generator creates nothing new. The bookings table also
    carries a unique constraint on (schedule, client, professional, day);
    a concurrent run that slips past the check fails its insert instead of
    duplicating.

Failure handling:
    Each schedule is generated in its own transaction. An error on one
    schedule is logged and counted, and the pass continues with the rest.

Usage:
    from recurring.generator import RecurringServiceGenerator

    summary = RecurringServiceGenerator.generate_recurring_services()
    summary.created  # bookings created across all schedules
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING

from django.conf import settings
from django.db.models import Q
from django.utils import timezone

from bookings.models import Booking, BookingState
from core.services import BaseService
from notifications.models import NotificationKind
from notifications.services import NotificationService
from recurring.models import RecurrenceSchedule
from recurring.scheduling import calculate_service_dates, occurrence_datetime

if TYPE_CHECKING:
    from datetime import date

    from django.db.models import QuerySet

GENERATED_DESCRIPTION_SUFFIX = " - Recurring service"


@dataclass
class GenerationSummary:
    """
    Counts from one generator pass.

    Attributes:
        processed: Active schedules examined
        created: Bookings created
        failed: Schedules whose generation raised
    """

    processed: int = 0
    created: int = 0
    failed: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class RecurringServiceGenerator(BaseService):
    """Materialize recurrence schedules into bookings."""

    @classmethod
    def active_schedules(cls, today: date) -> QuerySet[RecurrenceSchedule]:
        """Schedules that are active and have not ended before today."""
        return (
            RecurrenceSchedule.objects.filter(is_active=True)
            .filter(Q(end_date__isnull=True) | Q(end_date__gte=today))
            .select_related("client", "professional")
            .order_by("created_at")
        )

    @classmethod
    def generate_recurring_services(cls, today: date | None = None) -> GenerationSummary:
        """
        Generate bookings for every active schedule.

        Args:
            today: Local date to generate from (defaults to today)

        Returns:
            GenerationSummary with processed, created and failed counts
        """
        today = today or timezone.localdate()
        horizon_days = settings.RECURRING_GENERATION_HORIZON_DAYS
        summary = GenerationSummary()

        for schedule in cls.active_schedules(today):
            summary.processed += 1
            try:
                summary.created += cls.generate_for_schedule(
                    schedule, today=today, horizon_days=horizon_days
                )
            except Exception:
                summary.failed += 1
                cls.get_logger().error(
                    f"Error generating bookings for schedule {schedule.id}",
                    exc_info=True,
                    extra={"schedule_id": str(schedule.id)},
                )

        cls.get_logger().info(
            f"Recurring generation complete: {summary.created} bookings "
            f"from {summary.processed} schedules",
            extra={
                "schedules_processed": summary.processed,
                "bookings_created": summary.created,
                "schedules_failed": summary.failed,
            },
        )
        return summary

    @classmethod
    def generate_for_schedule(
        cls,
        schedule: RecurrenceSchedule,
        today: date | None = None,
        horizon_days: int | None = None,
    ) -> int:
        """
        Create the missing bookings of one schedule.

        Returns:
            Number of bookings created

        Raises:
            PersistenceError: If the insert fails (including a duplicate day
                created concurrently)
        """
        today = today or timezone.localdate()
        if horizon_days is None:
            horizon_days = settings.RECURRING_GENERATION_HORIZON_DAYS

        dates = calculate_service_dates(schedule, today, horizon_days)
        if not dates:
            return 0

        with cls.atomic():
            existing = set(
                Booking.objects.filter(
                    recurring_schedule=schedule,
                    client_id=schedule.client_id,
                    professional_id=schedule.professional_id,
                    scheduled_date__in=dates,
                ).values_list("scheduled_date", flat=True)
            )
            new_bookings = [
                Booking(
                    client_id=schedule.client_id,
                    professional_id=schedule.professional_id,
                    recurring_schedule=schedule,
                    description=f"{schedule.description}{GENERATED_DESCRIPTION_SUFFIX}",
                    state=BookingState.PENDING,
                    scheduled_at=occurrence_datetime(schedule, day),
                    scheduled_date=day,
                    duration_hours=schedule.duration_hours,
                )
                for day in dates
                if day not in existing
            ]
            if new_bookings:
                Booking.objects.bulk_create(new_bookings)

        if not new_bookings:
            cls.get_logger().debug(
                f"Schedule {schedule.id} already generated through the horizon",
                extra={"schedule_id": str(schedule.id)},
            )
            return 0

        cls._notify_scheduled(schedule, len(new_bookings))
        cls.get_logger().info(
            f"Created {len(new_bookings)} bookings for schedule {schedule.id}",
            extra={"schedule_id": str(schedule.id), "count": len(new_bookings)},
        )
        return len(new_bookings)

    @classmethod
    def _notify_scheduled(cls, schedule: RecurrenceSchedule, count: int) -> None:
        data = {"schedule_id": str(schedule.id), "count": count}
        body = f'{count} new services were scheduled for "{schedule.description}".'
        NotificationService.notify(
            schedule.client,
            NotificationKind.RECURRING_SERVICES_SCHEDULED,
            "Recurring services scheduled",
            body=body,
            data=data,
        )
        NotificationService.notify(
            schedule.professional,
            NotificationKind.RECURRING_SERVICES_SCHEDULED,
            "New recurring services",
            body=body,
            data=data,
        )
