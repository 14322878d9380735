"""
Tests for the upcoming release reminder pass.
"""

from datetime import timedelta

import pytest
from django.utils import timezone
from freezegun import freeze_time

from bookings.tests.factories import BookingFactory
from notifications.models import Notification, NotificationKind
from notifications.services import NotificationService
from payments.tests.factories import PaymentFactory
from payments.workers.upcoming_releases import remind_upcoming_releases


def releasing_in(delta: timedelta, **kwargs):
    return PaymentFactory(
        booking=BookingFactory(),
        approved=True,
        scheduled_release_at=timezone.now() + delta,
        **kwargs,
    )


@pytest.mark.django_db
@freeze_time("2026-03-10 12:00:00")
class TestRemindUpcomingReleases:
    def test_notifies_professional_of_release_within_a_day(self):
        payment = releasing_in(timedelta(hours=5))

        summary = remind_upcoming_releases()

        assert summary.upcoming == 1
        assert summary.notified == 1
        notification = Notification.objects.get(recipient=payment.professional)
        assert notification.kind == NotificationKind.FUNDS_RELEASE_UPCOMING
        assert notification.data["payment_id"] == str(payment.id)
        assert notification.data["hours_left"] == 5
        assert notification.data["release_date"] == payment.scheduled_release_at.isoformat()
        assert "in 5 hours" in notification.body

    @pytest.mark.parametrize(
        "delta",
        [timedelta(hours=25), timedelta(minutes=-5)],
        ids=["beyond_window", "already_due"],
    )
    def test_ignores_releases_outside_window(self, delta):
        releasing_in(delta)

        summary = remind_upcoming_releases()

        assert summary.upcoming == 0
        assert not Notification.objects.exists()

    @pytest.mark.parametrize("trait", ["released", "disputed"])
    def test_ignores_payments_no_longer_in_custody(self, trait):
        PaymentFactory(
            booking=BookingFactory(),
            scheduled_release_at=timezone.now() + timedelta(hours=2),
            **{trait: True},
        )

        summary = remind_upcoming_releases()

        assert summary.upcoming == 0

    def test_each_payment_reminded_once(self):
        payment = releasing_in(timedelta(hours=10))
        remind_upcoming_releases()

        with freeze_time("2026-03-10 13:00:00"):
            summary = remind_upcoming_releases()

        assert summary.upcoming == 1
        assert summary.skipped == 1
        assert summary.notified == 0
        assert Notification.objects.filter(recipient=payment.professional).count() == 1

    def test_window_is_configurable(self, settings):
        settings.ESCROW_UPCOMING_RELEASE_WINDOW_HOURS = 2
        releasing_in(timedelta(hours=1))
        releasing_in(timedelta(hours=3))

        summary = remind_upcoming_releases()

        assert summary.upcoming == 1

    def test_dropped_reminder_counted_as_failed(self, mocker):
        releasing_in(timedelta(hours=1))
        mocker.patch.object(NotificationService, "notify", return_value=None)

        summary = remind_upcoming_releases()

        assert summary.failed == 1
        assert summary.notified == 0
