"""
Pytest fixtures for recurring service tests.

TODAY is a Monday; tests pass it to the generator explicitly so results
do not depend on the real date.
"""

from datetime import date

import pytest

from authentication.tests.factories import (
    AdminUserFactory,
    ClientUserFactory,
    ProfessionalUserFactory,
)
from recurring.tests.factories import RecurrenceScheduleFactory

TODAY = date(2025, 3, 3)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def client_user(db):
    return ClientUserFactory()


@pytest.fixture
def professional(db):
    return ProfessionalUserFactory()


@pytest.fixture
def outsider(db):
    return ClientUserFactory()


@pytest.fixture
def admin_user(db):
    return AdminUserFactory()


@pytest.fixture
def weekly_schedule(db, client_user, professional, today):
    """Weekly schedule between client_user and professional starting today."""
    return RecurrenceScheduleFactory(
        client=client_user,
        professional=professional,
        description="Pool cleaning",
        start_date=today,
    )
