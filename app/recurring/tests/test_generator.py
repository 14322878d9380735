"""
Tests for RecurringServiceGenerator.

Tests cover:
- Booking materialization for active schedules
- Idempotent reruns
- Per-schedule failure isolation
- Notifications to both parties
"""

import logging
from datetime import date, time, timedelta
from decimal import Decimal

import pytest
from django.db import DatabaseError
from django.utils import timezone

from bookings.models import Booking, BookingState
from bookings.tests.factories import BookingFactory
from notifications.models import Notification, NotificationKind
from recurring.generator import GenerationSummary, RecurringServiceGenerator
from recurring.tests.factories import RecurrenceScheduleFactory


@pytest.mark.django_db
class TestGenerateRecurringServices:
    def test_weekly_schedule_starting_today(self, weekly_schedule, today):
        summary = RecurringServiceGenerator.generate_recurring_services(today=today)

        assert summary == GenerationSummary(processed=1, created=5, failed=0)
        dates = list(
            Booking.objects.filter(recurring_schedule=weekly_schedule)
            .order_by("scheduled_date")
            .values_list("scheduled_date", flat=True)
        )
        assert dates == [today + timedelta(days=7 * n) for n in range(5)]

    def test_second_run_creates_nothing(self, weekly_schedule, today):
        RecurringServiceGenerator.generate_recurring_services(today=today)

        summary = RecurringServiceGenerator.generate_recurring_services(today=today)

        assert summary.created == 0
        assert Booking.objects.filter(recurring_schedule=weekly_schedule).count() == 5

    def test_next_day_run_only_adds_new_dates(self, weekly_schedule, today):
        RecurringServiceGenerator.generate_recurring_services(today=today)

        summary = RecurringServiceGenerator.generate_recurring_services(
            today=today + timedelta(days=7)
        )

        # Window now reaches 2025-04-09; only the 7th of April is new
        assert summary.created == 1
        assert Booking.objects.filter(recurring_schedule=weekly_schedule).count() == 6

    def test_booking_fields(self, weekly_schedule, today):
        RecurringServiceGenerator.generate_recurring_services(today=today)

        booking = Booking.objects.filter(recurring_schedule=weekly_schedule).first()
        assert booking.client_id == weekly_schedule.client_id
        assert booking.professional_id == weekly_schedule.professional_id
        assert booking.description == "Pool cleaning - Recurring service"
        assert booking.state == BookingState.PENDING
        assert booking.duration_hours == Decimal("2.00")
        assert timezone.localtime(booking.scheduled_at).time() == time(9, 0)
        assert timezone.localtime(booking.scheduled_at).date() == booking.scheduled_date

    def test_existing_day_is_skipped(self, weekly_schedule, today):
        BookingFactory(
            client=weekly_schedule.client,
            professional=weekly_schedule.professional,
            recurring_schedule=weekly_schedule,
            scheduled_date=today + timedelta(days=7),
        )

        summary = RecurringServiceGenerator.generate_recurring_services(today=today)

        assert summary.created == 4
        assert Booking.objects.filter(recurring_schedule=weekly_schedule).count() == 5

    def test_one_off_booking_on_same_day_does_not_block(self, weekly_schedule, today):
        BookingFactory(
            client=weekly_schedule.client,
            professional=weekly_schedule.professional,
            scheduled_date=today,
        )

        summary = RecurringServiceGenerator.generate_recurring_services(today=today)

        assert summary.created == 5

    def test_inactive_and_ended_schedules_are_ignored(self, today):
        RecurrenceScheduleFactory(is_active=False, start_date=today)
        RecurrenceScheduleFactory(
            start_date=today - timedelta(days=60),
            end_date=today - timedelta(days=1),
        )

        summary = RecurringServiceGenerator.generate_recurring_services(today=today)

        assert summary == GenerationSummary(processed=0, created=0, failed=0)
        assert not Booking.objects.exists()

    def test_schedule_ending_today_is_processed(self, today):
        RecurrenceScheduleFactory(start_date=today - timedelta(days=7), end_date=today)

        summary = RecurringServiceGenerator.generate_recurring_services(today=today)

        assert summary.processed == 1
        assert summary.created == 1

    def test_horizon_comes_from_settings(self, weekly_schedule, today, settings):
        settings.RECURRING_GENERATION_HORIZON_DAYS = 7

        summary = RecurringServiceGenerator.generate_recurring_services(today=today)

        assert summary.created == 2

    def test_failed_schedule_does_not_stop_the_pass(self, mocker, caplog, today):
        broken = RecurrenceScheduleFactory(start_date=today)
        healthy = RecurrenceScheduleFactory(start_date=today)
        original = RecurringServiceGenerator.generate_for_schedule

        def flaky(schedule, **kwargs):
            if schedule.id == broken.id:
                raise RuntimeError("boom")
            return original(schedule, **kwargs)

        mocker.patch.object(
            RecurringServiceGenerator, "generate_for_schedule", side_effect=flaky
        )

        with caplog.at_level(logging.ERROR):
            summary = RecurringServiceGenerator.generate_recurring_services(today=today)

        assert summary == GenerationSummary(processed=2, created=5, failed=1)
        assert Booking.objects.filter(recurring_schedule=healthy).count() == 5
        assert not Booking.objects.filter(recurring_schedule=broken).exists()
        assert any(str(broken.id) in record.getMessage() for record in caplog.records)


@pytest.mark.django_db
class TestGenerationNotifications:
    def test_both_parties_notified_with_count(self, weekly_schedule, today):
        RecurringServiceGenerator.generate_recurring_services(today=today)

        notifications = Notification.objects.filter(
            kind=NotificationKind.RECURRING_SERVICES_SCHEDULED
        )
        assert {n.recipient_id for n in notifications} == {
            weekly_schedule.client_id,
            weekly_schedule.professional_id,
        }
        assert all(n.data["count"] == 5 for n in notifications)
        assert all(n.data["schedule_id"] == str(weekly_schedule.id) for n in notifications)

    def test_no_notification_when_nothing_created(self, weekly_schedule, today):
        RecurringServiceGenerator.generate_recurring_services(today=today)
        Notification.objects.all().delete()

        RecurringServiceGenerator.generate_recurring_services(today=today)

        assert not Notification.objects.exists()

    def test_notification_failure_keeps_bookings(self, weekly_schedule, today, mocker):
        mocker.patch(
            "notifications.services.NotificationService.create_notification",
            side_effect=DatabaseError("store down"),
        )

        created = RecurringServiceGenerator.generate_for_schedule(weekly_schedule, today=today)

        assert created == 5
        assert Booking.objects.filter(recurring_schedule=weekly_schedule).count() == 5
        assert not Notification.objects.exists()


@pytest.mark.django_db
class TestGenerateForSchedule:
    def test_returns_zero_when_no_dates(self, today):
        schedule = RecurrenceScheduleFactory(start_date=date(2026, 1, 1))

        assert RecurringServiceGenerator.generate_for_schedule(schedule, today=today) == 0

    def test_explicit_horizon(self, weekly_schedule, today):
        created = RecurringServiceGenerator.generate_for_schedule(
            weekly_schedule, today=today, horizon_days=14
        )

        assert created == 3
