"""
Recurrence schedule operations for the two parties of a schedule.

Clients create schedules; either the client or the professional can read,
edit and cancel them. Creating a schedule materializes its first bookings
right away instead of waiting for the nightly generator.

Usage:
    from recurring.services import RecurrenceService

    result = RecurrenceService.create_schedule(
        client=request.user,
        professional_id=42,
        description="Garden maintenance",
        frequency=Frequency.WEEKLY,
        start_time=time(9, 0),
        duration_hours=Decimal("2"),
        base_rate=Decimal("80.00"),
        start_date=date(2025, 3, 3),
    )
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING

from django.db.models import Q
from django.utils import timezone

from authentication.models import User
from bookings.models import Booking, BookingState
from core.exceptions import PersistenceError
from core.services import BaseService, ErrorCode, ServiceResult
from notifications.models import NotificationKind
from notifications.services import NotificationService
from recurring.generator import RecurringServiceGenerator
from recurring.models import Frequency, RecurrenceSchedule

if TYPE_CHECKING:
    from datetime import date, time
    from uuid import UUID

UPCOMING_BOOKINGS_LIMIT = 10

EDITABLE_FIELDS = frozenset(
    {
        "description",
        "frequency",
        "day_of_week",
        "day_of_month",
        "start_time",
        "duration_hours",
        "base_rate",
        "recurrence_discount",
        "end_date",
    }
)


@dataclass
class ScheduleDetail:
    """A schedule with its next bookings."""

    schedule: RecurrenceSchedule
    upcoming_bookings: list[Booking] = field(default_factory=list)


@dataclass
class CancellationOutcome:
    """
    Result of cancelling a schedule.

    Attributes:
        schedule: The (now inactive) schedule
        cancelled_bookings: Future bookings moved to CANCELLED
        changed: False if the schedule was already inactive
    """

    schedule: RecurrenceSchedule
    cancelled_bookings: int
    changed: bool


def validate_schedule_rules(values: dict) -> dict[str, list[str]]:
    """
    Check the rule fields of a schedule.

    Args:
        values: Field values; absent keys are not checked

    Returns:
        Field errors, empty when the values are acceptable
    """
    errors: dict[str, list[str]] = {}

    frequency = values.get("frequency")
    if "frequency" in values and frequency not in Frequency.values:
        errors["frequency"] = [f"Must be one of {', '.join(Frequency.values)}"]

    day_of_week = values.get("day_of_week")
    if day_of_week is not None and not 0 <= day_of_week <= 6:
        errors["day_of_week"] = ["Must be between 0 (Sunday) and 6 (Saturday)"]

    day_of_month = values.get("day_of_month")
    if day_of_month is not None and not 1 <= day_of_month <= 31:
        errors["day_of_month"] = ["Must be between 1 and 31"]

    duration_hours = values.get("duration_hours")
    if "duration_hours" in values and (duration_hours is None or duration_hours <= 0):
        errors["duration_hours"] = ["Must be greater than zero"]

    base_rate = values.get("base_rate")
    if "base_rate" in values and (base_rate is None or base_rate < 0):
        errors["base_rate"] = ["Must not be negative"]

    discount = values.get("recurrence_discount")
    if discount is not None and not Decimal("0") <= discount <= Decimal("100"):
        errors["recurrence_discount"] = ["Must be a percentage between 0 and 100"]

    start_date = values.get("start_date")
    end_date = values.get("end_date")
    if start_date and end_date and end_date < start_date:
        errors["end_date"] = ["Must not be before start_date"]

    return errors


class RecurrenceService(BaseService):
    """Create, read, update and cancel recurrence schedules."""

    @classmethod
    def create_schedule(
        cls,
        client: User,
        professional_id: int,
        description: str,
        frequency: str,
        start_time: time,
        duration_hours: Decimal,
        base_rate: Decimal,
        start_date: date,
        day_of_week: int | None = None,
        day_of_month: int | None = None,
        recurrence_discount: Decimal | None = None,
        end_date: date | None = None,
    ) -> ServiceResult[RecurrenceSchedule]:
        """
        Create a schedule and generate its first bookings.

        Error codes:
            FORBIDDEN: Caller is not a client
            NOT_FOUND: Professional does not exist
            VALIDATION_ERROR: Professional lacks the professional role, or a
                rule field is out of range
        """
        if not client.is_client:
            return ServiceResult.failure(
                "Only clients can create recurring services",
                ErrorCode.FORBIDDEN,
            )

        if not description or not description.strip():
            return ServiceResult.failure(
                "A description is required",
                ErrorCode.VALIDATION_ERROR,
                errors={"description": ["This field is required."]},
            )

        values = {
            "frequency": frequency,
            "day_of_week": day_of_week,
            "day_of_month": day_of_month,
            "duration_hours": duration_hours,
            "base_rate": base_rate,
            "recurrence_discount": recurrence_discount or Decimal("0"),
            "start_date": start_date,
            "end_date": end_date,
        }
        errors = validate_schedule_rules(values)
        if errors:
            return ServiceResult.failure(
                "Invalid recurrence schedule",
                ErrorCode.VALIDATION_ERROR,
                errors=errors,
            )

        professional = User.objects.filter(pk=professional_id, is_active=True).first()
        if professional is None:
            return ServiceResult.failure("Professional not found", ErrorCode.NOT_FOUND)
        if not professional.is_professional:
            return ServiceResult.failure(
                "The selected user is not a professional",
                ErrorCode.VALIDATION_ERROR,
                errors={"professional_id": ["User is not a professional."]},
            )

        with cls.atomic():
            schedule = RecurrenceSchedule.objects.create(
                client=client,
                professional=professional,
                description=description.strip(),
                start_time=start_time,
                **values,
            )

        cls.get_logger().info(
            f"Recurrence schedule {schedule.id} created by client {client.pk}",
            extra={
                "schedule_id": str(schedule.id),
                "frequency": frequency,
                "professional_id": professional.pk,
            },
        )

        # The nightly pass retries anything missed here
        try:
            RecurringServiceGenerator.generate_for_schedule(schedule)
        except PersistenceError as exc:
            cls.get_logger().warning(
                f"Initial generation failed for schedule {schedule.id}: {exc}",
                extra={"schedule_id": str(schedule.id)},
            )

        return ServiceResult.success(schedule)

    @classmethod
    def list_user_schedules(cls, user: User) -> ServiceResult[list[RecurrenceSchedule]]:
        """Schedules where the user is client or professional, newest first."""
        schedules = (
            RecurrenceSchedule.objects.filter(Q(client=user) | Q(professional=user))
            .select_related("client", "professional")
            .order_by("-created_at")
        )
        return ServiceResult.success(list(schedules))

    @classmethod
    def get_schedule(cls, schedule_id: UUID, user: User) -> ServiceResult[ScheduleDetail]:
        """
        Schedule with its next bookings.

        Error codes:
            NOT_FOUND: Schedule does not exist
            FORBIDDEN: Caller is not a party to the schedule
        """
        schedule = (
            RecurrenceSchedule.objects.select_related("client", "professional")
            .filter(id=schedule_id)
            .first()
        )
        if schedule is None:
            return ServiceResult.failure("Recurring service not found", ErrorCode.NOT_FOUND)
        if not schedule.is_party(user):
            return ServiceResult.failure(
                "You do not have access to this recurring service",
                ErrorCode.FORBIDDEN,
            )

        upcoming = list(
            schedule.bookings.filter(scheduled_at__gte=timezone.now()).order_by(
                "scheduled_at"
            )[:UPCOMING_BOOKINGS_LIMIT]
        )
        return ServiceResult.success(ScheduleDetail(schedule, upcoming))

    @classmethod
    def update_schedule(
        cls,
        schedule_id: UUID,
        user: User,
        changes: dict,
    ) -> ServiceResult[RecurrenceSchedule]:
        """
        Apply a partial update to a schedule.

        Bookings already generated keep their original date and time; the
        new rule applies from the next generation onward.

        Error codes:
            NOT_FOUND: Schedule does not exist
            FORBIDDEN: Caller is not a party to the schedule
            INVALID_STATE: Schedule has been cancelled
            VALIDATION_ERROR: Non-editable field or out-of-range value
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            return ServiceResult.failure(
                f"Fields cannot be changed: {', '.join(sorted(unknown))}",
                ErrorCode.VALIDATION_ERROR,
                errors={name: ["This field cannot be changed."] for name in sorted(unknown)},
            )
        if "description" in changes and not (changes["description"] or "").strip():
            return ServiceResult.failure(
                "A description is required",
                ErrorCode.VALIDATION_ERROR,
                errors={"description": ["This field may not be blank."]},
            )

        with cls.atomic():
            schedule = RecurrenceSchedule.objects.select_for_update().filter(id=schedule_id).first()
            if schedule is None:
                return ServiceResult.failure("Recurring service not found", ErrorCode.NOT_FOUND)
            if not schedule.is_party(user):
                return ServiceResult.failure(
                    "You do not have permission to modify this recurring service",
                    ErrorCode.FORBIDDEN,
                )
            if not schedule.is_active:
                return ServiceResult.failure(
                    "Cancelled recurring services cannot be modified",
                    ErrorCode.INVALID_STATE,
                )

            merged = {
                "frequency": schedule.frequency,
                "day_of_week": schedule.day_of_week,
                "day_of_month": schedule.day_of_month,
                "duration_hours": schedule.duration_hours,
                "base_rate": schedule.base_rate,
                "recurrence_discount": schedule.recurrence_discount,
                "start_date": schedule.start_date,
                "end_date": schedule.end_date,
                **changes,
            }
            errors = validate_schedule_rules(merged)
            if errors:
                return ServiceResult.failure(
                    "Invalid recurrence schedule",
                    ErrorCode.VALIDATION_ERROR,
                    errors=errors,
                )

            for name, value in changes.items():
                setattr(schedule, name, value)
            schedule.save(update_fields=[*changes, "updated_at"])

        cls.get_logger().info(
            f"Recurrence schedule {schedule.id} updated by user {user.pk}",
            extra={"schedule_id": str(schedule.id), "fields": sorted(changes)},
        )
        return ServiceResult.success(schedule)

    @classmethod
    def cancel_recurring_service(
        cls,
        schedule_id: UUID,
        user: User,
    ) -> ServiceResult[CancellationOutcome]:
        """
        Deactivate a schedule and cancel its future bookings.

        Only bookings still pending or scheduled and not yet started are
        cancelled. Cancelling an inactive schedule succeeds without changes.

        Error codes:
            NOT_FOUND: Schedule does not exist
            FORBIDDEN: Caller is not a party to the schedule
        """
        now = timezone.now()

        with cls.atomic():
            schedule = (
                RecurrenceSchedule.objects.select_for_update()
                .select_related("client", "professional")
                .filter(id=schedule_id)
                .first()
            )
            if schedule is None:
                return ServiceResult.failure("Recurring service not found", ErrorCode.NOT_FOUND)
            if not schedule.is_party(user):
                return ServiceResult.failure(
                    "You do not have permission to cancel this recurring service",
                    ErrorCode.FORBIDDEN,
                )

            if not schedule.is_active:
                cls.get_logger().info(
                    f"Recurrence schedule {schedule.id} already cancelled",
                    extra={"schedule_id": str(schedule.id)},
                )
                return ServiceResult.success(
                    CancellationOutcome(schedule, cancelled_bookings=0, changed=False)
                )

            schedule.is_active = False
            schedule.save(update_fields=["is_active", "updated_at"])

            cancelled = Booking.objects.filter(
                recurring_schedule=schedule,
                state__in=BookingState.cancellable_states(),
                scheduled_at__gt=now,
            ).update(state=BookingState.CANCELLED, updated_at=now)

        cls._notify_cancelled(schedule, user)
        cls.get_logger().info(
            f"Recurrence schedule {schedule.id} cancelled by user {user.pk}",
            extra={"schedule_id": str(schedule.id), "cancelled_bookings": cancelled},
        )
        return ServiceResult.success(
            CancellationOutcome(schedule, cancelled_bookings=cancelled, changed=True)
        )

    @classmethod
    def _notify_cancelled(cls, schedule: RecurrenceSchedule, cancelled_by: User) -> None:
        party = "client" if cancelled_by.pk == schedule.client_id else "professional"
        body = f'The recurring service "{schedule.description}" was cancelled by the {party}.'
        for recipient in (schedule.client, schedule.professional):
            NotificationService.notify(
                recipient,
                NotificationKind.RECURRING_SERVICE_CANCELLED,
                "Recurring service cancelled",
                body=body,
                data={"schedule_id": str(schedule.id), "cancelled_by": cancelled_by.pk},
                actor=cancelled_by,
            )
