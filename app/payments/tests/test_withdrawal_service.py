"""
Tests for WithdrawalService.

Tests cover:
- Role, limit and bank detail validation
- Withdrawable balance checks, including earlier withdrawals
- Notification with the CVU masked
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from freezegun import freeze_time

from authentication.models import User
from bookings.tests.factories import BookingFactory
from core.services import ErrorCode
from notifications.models import Notification, NotificationKind
from payments.models import Withdrawal
from payments.services import WithdrawalService
from payments.state_machines import WithdrawalState
from payments.tests.factories import PaymentFactory, WithdrawalFactory

CVU = "0000003100010000000001"


@pytest.fixture
def funded_professional(professional):
    """Professional with 9000.00 of released funds."""
    for _ in range(10):
        PaymentFactory(booking=BookingFactory(professional=professional), released=True)
    return professional


def withdraw(professional, amount="1000", cvu=CVU, alias="mi.alias.mp"):
    return WithdrawalService.withdraw_funds(professional, amount, cvu=cvu, alias=alias)


@pytest.mark.django_db
class TestWithdrawFunds:
    @freeze_time("2026-03-10 12:00:00")
    def test_records_processing_withdrawal(self, funded_professional):
        result = withdraw(funded_professional, "1500.50")

        assert result.success
        withdrawal = result.data
        assert withdrawal.state == WithdrawalState.PROCESSING
        assert withdrawal.amount == Decimal("1500.50")
        assert withdrawal.cvu == CVU
        assert withdrawal.alias == "mi.alias.mp"
        assert withdrawal.estimated_arrival == timezone.now() + timedelta(days=2)

    def test_notifies_with_masked_cvu(self, funded_professional):
        result = withdraw(funded_professional)

        notification = Notification.objects.get(recipient=funded_professional)
        assert notification.kind == NotificationKind.WITHDRAWAL_REQUESTED
        assert notification.data["withdrawal_id"] == str(result.data.id)
        assert notification.data["bank_details"] == {
            "cvu": "***0001",
            "alias": "mi.alias.mp",
            "masked": True,
        }
        assert CVU not in notification.body

    def test_client_forbidden(self, client_user):
        result = withdraw(client_user)

        assert result.error_code == ErrorCode.FORBIDDEN

    @pytest.mark.parametrize("amount", ["99.99", "50000.01", "-1", "abc"])
    def test_amount_outside_limits(self, funded_professional, amount):
        result = withdraw(funded_professional, amount)

        assert result.error_code == ErrorCode.INVALID_AMOUNT
        assert not Withdrawal.objects.exists()

    def test_limits_come_from_settings(self, funded_professional, settings):
        settings.MIN_WITHDRAWAL_AMOUNT = 2000

        result = withdraw(funded_professional, "1500")

        assert result.error_code == ErrorCode.INVALID_AMOUNT
        assert "2000" in result.error

    def test_insufficient_funds(self, professional):
        PaymentFactory(booking=BookingFactory(professional=professional), released=True)

        result = withdraw(professional, "900.01")

        assert result.error_code == ErrorCode.INVALID_AMOUNT
        assert not Withdrawal.objects.exists()

    def test_earlier_withdrawals_are_spent(self, professional):
        PaymentFactory(booking=BookingFactory(professional=professional), released=True)
        assert withdraw(professional, "600").success

        result = withdraw(professional, "400")

        assert result.error_code == ErrorCode.INVALID_AMOUNT
        assert Withdrawal.objects.filter(professional=professional).count() == 1

    def test_failed_withdrawal_can_be_retried(self, professional):
        PaymentFactory(booking=BookingFactory(professional=professional), released=True)
        bounced = WithdrawalFactory(professional=professional, amount=Decimal("900"))
        bounced.fail(reason="Account closed")
        bounced.save()

        assert withdraw(professional, "900").success

    @pytest.mark.parametrize(
        "cvu",
        ["", "123", "00000031000100000000012", "000000310001000000000a"],
        ids=["empty", "short", "long", "letters"],
    )
    def test_cvu_must_have_22_digits(self, funded_professional, cvu):
        result = withdraw(funded_professional, cvu=cvu)

        assert result.error_code == ErrorCode.VALIDATION_ERROR
        assert "cvu" in result.errors

    @pytest.mark.parametrize("alias", ["", "ab", "  a  "])
    def test_alias_needs_three_characters(self, funded_professional, alias):
        result = withdraw(funded_professional, alias=alias)

        assert result.error_code == ErrorCode.VALIDATION_ERROR
        assert "alias" in result.errors

    def test_locks_professional_row(self, funded_professional, mocker):
        spy = mocker.spy(User.objects, "select_for_update")

        assert withdraw(funded_professional).success

        spy.assert_called_once_with()


@pytest.mark.django_db
class TestListWithdrawals:
    def test_own_withdrawals_newest_first(self, professional):
        with freeze_time("2026-03-01"):
            older = WithdrawalFactory(professional=professional)
        with freeze_time("2026-03-05"):
            newer = WithdrawalFactory(professional=professional)
        WithdrawalFactory()

        result = WithdrawalService.list_withdrawals(professional)

        assert [w.id for w in result.data] == [newer.id, older.id]

    def test_client_forbidden(self, client_user):
        result = WithdrawalService.list_withdrawals(client_user)

        assert result.error_code == ErrorCode.FORBIDDEN
