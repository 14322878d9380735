"""
Recurrence schedule model.

A RecurrenceSchedule is a standing rule: "this professional serves this
client every <frequency>, at <start_time>, from <start_date>". The
generator turns it into concrete Booking rows a few weeks ahead.

Schedules are never deleted. Cancelling one clears is_active and cancels
the bookings that have not happened yet.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

if TYPE_CHECKING:
    from datetime import date

    from authentication.models import User


class Frequency(models.TextChoices):
    WEEKLY = "weekly", "Weekly"
    BIWEEKLY = "biweekly", "Every two weeks"
    MONTHLY = "monthly", "Monthly"
    BIMONTHLY = "bimonthly", "Every two months"
    QUARTERLY = "quarterly", "Quarterly"


class RecurrenceSchedule(UUIDPrimaryKeyMixin, BaseModel):
    """
    Standing service arrangement.

    Fields:
        client: User receiving the service (schedule owner)
        professional: User providing the service
        description: Copied into every generated booking
        frequency: Frequency value
        day_of_week: Weekly only, 0=Sunday .. 6=Saturday
        day_of_month: Monthly only, 1..31
        start_time: Time of day each occurrence starts
        duration_hours: Expected duration of each occurrence
        base_rate: Price per occurrence before discount
        recurrence_discount: Percentage discount for the standing arrangement
        start_date: First day occurrences may fall on
        end_date: Last day occurrences may fall on (open-ended if null)
        is_active: Cleared on cancellation
    """

    client = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="client_recurrences",
    )
    professional = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="professional_recurrences",
    )
    description = models.TextField()
    frequency = models.CharField(max_length=20, choices=Frequency.choices)
    day_of_week = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MaxValueValidator(6)],
        help_text="0=Sunday .. 6=Saturday; weekly schedules only",
    )
    day_of_month = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1), MaxValueValidator(31)],
        help_text="Monthly schedules only",
    )
    start_time = models.TimeField()
    duration_hours = models.DecimalField(max_digits=5, decimal_places=2)
    base_rate = models.DecimalField(max_digits=12, decimal_places=2)
    recurrence_discount = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0"),
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        help_text="Percentage off base_rate",
    )
    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                check=models.Q(end_date__isnull=True)
                | models.Q(end_date__gte=models.F("start_date")),
                name="recurrence_end_after_start",
            ),
            models.CheckConstraint(
                check=models.Q(duration_hours__gt=0),
                name="recurrence_duration_positive",
            ),
        ]
        indexes = [
            models.Index(fields=["is_active", "end_date"], name="recurrence_active_idx"),
        ]

    def __str__(self) -> str:
        return f"RecurrenceSchedule({self.id}, {self.frequency}, active={self.is_active})"

    def is_party(self, user: User) -> bool:
        return user.pk in (self.client_id, self.professional_id)

    def runs_on(self, today: date) -> bool:
        """Whether the generator should consider this schedule on the given day."""
        return self.is_active and (self.end_date is None or self.end_date >= today)

    @property
    def discounted_rate(self) -> Decimal:
        factor = (Decimal("100") - self.recurrence_discount) / Decimal("100")
        return (self.base_rate * factor).quantize(Decimal("0.01"))
