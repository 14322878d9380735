"""
Pytest fixtures for payment tests.

This module provides parties, payments in the states the services care
about, and a mocked Redis connection for lock tests.

Usage:
    def test_release(approved_payment):
        result = PaymentLedgerService.release(approved_payment.id)
        assert result.success
"""

from datetime import timedelta

import pytest
from django.utils import timezone

from authentication.tests.factories import (
    AdminUserFactory,
    ClientUserFactory,
    ProfessionalUserFactory,
)
from bookings.tests.factories import BookingFactory
from payments.tests.factories import DisputeFactory, PaymentFactory


# =============================================================================
# Parties
# =============================================================================


@pytest.fixture
def client_user(db):
    return ClientUserFactory()


@pytest.fixture
def professional(db):
    return ProfessionalUserFactory()


@pytest.fixture
def outsider(db):
    """A user who is party to nothing."""
    return ClientUserFactory()


@pytest.fixture
def admin_user(db):
    return AdminUserFactory()


@pytest.fixture
def booking(db, client_user, professional):
    """Pending booking between client_user and professional."""
    return BookingFactory(client=client_user, professional=professional)


# =============================================================================
# Payments
# =============================================================================


@pytest.fixture
def pending_payment(db, booking):
    return PaymentFactory(booking=booking)


@pytest.fixture
def approved_payment(db, booking):
    return PaymentFactory(booking=booking, approved=True)


@pytest.fixture
def due_payment(db, booking):
    """Approved payment whose release time has passed."""
    return PaymentFactory(
        booking=booking,
        approved=True,
        scheduled_release_at=timezone.now() - timedelta(minutes=5),
    )


@pytest.fixture
def released_payment(db, booking):
    return PaymentFactory(booking=booking, released=True)


@pytest.fixture
def disputed_payment(db, booking):
    """Disputed payment with its open dispute."""
    payment = PaymentFactory(booking=booking, disputed=True)
    DisputeFactory(payment=payment, opened_by=payment.client)
    return payment


# =============================================================================
# Infrastructure
# =============================================================================


@pytest.fixture
def mock_redis(mocker):
    """
    Mock Redis client for distributed lock tests.

    Returns a MagicMock configured so locks can be acquired and released.
    """
    mock_client = mocker.MagicMock()
    mock_client.set.return_value = True
    mock_client.eval.return_value = 1

    mocker.patch(
        "payments.locks.get_redis_connection",
        return_value=mock_client,
    )

    return mock_client


@pytest.fixture
def silence_notifications(mocker):
    """Patch notification hand-off so tests can assert on calls."""
    return mocker.patch("notifications.services.NotificationService.notify")
