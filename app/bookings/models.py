"""
Booking models.

A Booking is one concrete, dated service between a client and a
professional. Bookings are created either directly by the marketplace or
by the recurring-service generator; payments reference the booking they
pay for.

State Flow:
    PENDING -> SCHEDULED -> IN_PROGRESS -> COMPLETED
    PENDING | SCHEDULED -> CANCELLED

The lifecycle after creation belongs to the booking flow of the
marketplace; this project only creates bookings, cancels future ones when
a recurrence is cancelled and checks payability.
"""

from django.conf import settings
from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class BookingState(models.TextChoices):
    PENDING = "pending", "Pending"
    SCHEDULED = "scheduled", "Scheduled"
    IN_PROGRESS = "in_progress", "In progress"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"

    @classmethod
    def cancellable_states(cls) -> frozenset[str]:
        """States a future booking can still be cancelled from."""
        return frozenset({cls.PENDING, cls.SCHEDULED})


class Booking(UUIDPrimaryKeyMixin, BaseModel):
    """
    A single service occurrence.

    Fields:
        client: User buying the service
        professional: User providing the service
        description: Free text shown to both parties
        state: BookingState value
        scheduled_at: Date and time the service takes place
        scheduled_date: Calendar day of scheduled_at in the active time zone
        duration_hours: Expected duration, copied from the recurrence
        recurring_schedule: Recurrence this booking was generated from

    Constraints:
        A recurrence produces at most one booking per calendar day
        (schedule, client, professional, scheduled_date), so concurrent or
        repeated generator runs fail the insert instead of duplicating.
    """

    client = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="client_bookings",
    )
    professional = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="professional_bookings",
    )
    description = models.TextField()
    state = models.CharField(
        max_length=20,
        choices=BookingState.choices,
        default=BookingState.PENDING,
        db_index=True,
    )
    scheduled_at = models.DateTimeField(db_index=True)
    scheduled_date = models.DateField(
        help_text="Calendar day of scheduled_at, used for recurrence dedup",
    )
    duration_hours = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
    )
    recurring_schedule = models.ForeignKey(
        "recurring.RecurrenceSchedule",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="bookings",
    )

    class Meta:
        ordering = ["scheduled_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["recurring_schedule", "client", "professional", "scheduled_date"],
                condition=models.Q(recurring_schedule__isnull=False),
                name="booking_recurring_occurrence_unique",
            ),
        ]
        indexes = [
            models.Index(
                fields=["recurring_schedule", "state", "scheduled_at"],
                name="booking_schedule_state_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"Booking({self.id}, {self.state}, {self.scheduled_at:%Y-%m-%d %H:%M})"

    @property
    def is_payable(self) -> bool:
        """A booking can only be paid for before work is scheduled."""
        return self.state == BookingState.PENDING
