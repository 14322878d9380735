"""
DRF serializers for recurring services.

Request serializers only check types; ranges and cross-field rules are
enforced by RecurrenceService so direct callers get the same checks.
"""

from __future__ import annotations

from rest_framework import serializers

from bookings.models import Booking
from recurring.models import Frequency, RecurrenceSchedule

RATE_FIELD_OPTIONS = {"max_digits": 12, "decimal_places": 2}
HOURS_FIELD_OPTIONS = {"max_digits": 5, "decimal_places": 2}
PERCENT_FIELD_OPTIONS = {"max_digits": 5, "decimal_places": 2}


# =============================================================================
# Request Serializers
# =============================================================================


class CreateRecurrenceScheduleSerializer(serializers.Serializer):
    """
    Request body for POST /recurring-services/.

    day_of_week uses 0=Sunday .. 6=Saturday.
    """

    professional_id = serializers.IntegerField()
    description = serializers.CharField(max_length=2000)
    frequency = serializers.ChoiceField(choices=Frequency.choices)
    day_of_week = serializers.IntegerField(required=False, allow_null=True)
    day_of_month = serializers.IntegerField(required=False, allow_null=True)
    start_time = serializers.TimeField()
    duration_hours = serializers.DecimalField(**HOURS_FIELD_OPTIONS)
    base_rate = serializers.DecimalField(**RATE_FIELD_OPTIONS)
    recurrence_discount = serializers.DecimalField(required=False, **PERCENT_FIELD_OPTIONS)
    start_date = serializers.DateField()
    end_date = serializers.DateField(required=False, allow_null=True)


class UpdateRecurrenceScheduleSerializer(serializers.Serializer):
    """Request body for PUT /recurring-services/<id>/; every field is optional."""

    description = serializers.CharField(max_length=2000, required=False)
    frequency = serializers.ChoiceField(choices=Frequency.choices, required=False)
    day_of_week = serializers.IntegerField(required=False, allow_null=True)
    day_of_month = serializers.IntegerField(required=False, allow_null=True)
    start_time = serializers.TimeField(required=False)
    duration_hours = serializers.DecimalField(required=False, **HOURS_FIELD_OPTIONS)
    base_rate = serializers.DecimalField(required=False, **RATE_FIELD_OPTIONS)
    recurrence_discount = serializers.DecimalField(required=False, **PERCENT_FIELD_OPTIONS)
    end_date = serializers.DateField(required=False, allow_null=True)


# =============================================================================
# Response Serializers
# =============================================================================


class RecurrenceScheduleSerializer(serializers.ModelSerializer):
    client_id = serializers.IntegerField(read_only=True)
    professional_id = serializers.IntegerField(read_only=True)
    discounted_rate = serializers.DecimalField(read_only=True, **RATE_FIELD_OPTIONS)

    class Meta:
        model = RecurrenceSchedule
        fields = [
            "id",
            "client_id",
            "professional_id",
            "description",
            "frequency",
            "day_of_week",
            "day_of_month",
            "start_time",
            "duration_hours",
            "base_rate",
            "recurrence_discount",
            "discounted_rate",
            "start_date",
            "end_date",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BookingSummarySerializer(serializers.ModelSerializer):
    """Generated booking as listed under its schedule."""

    class Meta:
        model = Booking
        fields = ["id", "description", "state", "scheduled_at", "scheduled_date", "duration_hours"]
        read_only_fields = fields


class ScheduleDetailSerializer(serializers.Serializer):
    """Serializes a ScheduleDetail."""

    schedule = RecurrenceScheduleSerializer()
    upcoming_bookings = BookingSummarySerializer(many=True)


class CancellationResultSerializer(serializers.Serializer):
    """Serializes a CancellationOutcome."""

    schedule_id = serializers.UUIDField(source="schedule.id")
    is_active = serializers.BooleanField(source="schedule.is_active")
    cancelled_bookings = serializers.IntegerField()
    already_cancelled = serializers.SerializerMethodField()

    def get_already_cancelled(self, obj) -> bool:
        return not obj.changed


class GenerationSummarySerializer(serializers.Serializer):
    processed = serializers.IntegerField()
    created = serializers.IntegerField()
    failed = serializers.IntegerField()
