"""
Factory Boy factories for recurring services.

Usage:
    from recurring.tests.factories import RecurrenceScheduleFactory

    schedule = RecurrenceScheduleFactory(frequency=Frequency.MONTHLY, day_of_month=15)

    # Unsaved, for pure date arithmetic
    schedule = RecurrenceScheduleFactory.build(start_date=date(2025, 3, 3))
"""

from datetime import time
from decimal import Decimal

import factory
from django.utils import timezone

from authentication.tests.factories import ClientUserFactory, ProfessionalUserFactory
from recurring.models import Frequency, RecurrenceSchedule


class RecurrenceScheduleFactory(factory.django.DjangoModelFactory):
    """
    Factory for RecurrenceSchedule.

    Default creates an active weekly schedule starting today at 09:00.
    """

    class Meta:
        model = RecurrenceSchedule

    client = factory.SubFactory(ClientUserFactory)
    professional = factory.SubFactory(ProfessionalUserFactory)
    description = factory.Sequence(lambda n: f"Garden maintenance {n}")
    frequency = Frequency.WEEKLY
    start_time = time(9, 0)
    duration_hours = Decimal("2.00")
    base_rate = Decimal("80.00")
    recurrence_discount = Decimal("0")
    start_date = factory.LazyFunction(timezone.localdate)
    is_active = True
