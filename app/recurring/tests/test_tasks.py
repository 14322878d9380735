"""
Tests for recurring Celery tasks.
"""

import pytest

from bookings.models import Booking
from recurring.generator import GenerationSummary, RecurringServiceGenerator
from recurring.tasks import generate_recurring_services


@pytest.mark.django_db
class TestGenerateRecurringServicesTask:
    def test_runs_generator_and_returns_counts(self, weekly_schedule):
        result = generate_recurring_services()

        assert result == {"processed": 1, "created": 5, "failed": 0}
        assert Booking.objects.filter(recurring_schedule=weekly_schedule).count() == 5

    def test_reports_failures(self, mocker, caplog):
        mocker.patch.object(
            RecurringServiceGenerator,
            "generate_recurring_services",
            return_value=GenerationSummary(processed=3, created=2, failed=1),
        )

        result = generate_recurring_services()

        assert result["failed"] == 1
        assert "1 failed schedules" in caplog.text
