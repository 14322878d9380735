"""
Tests for RefundService.

Tests cover:
- Partial and full refunds and the resulting payment state
- Refundable balance bound
- Client-only authorization
- Refunds resolving an open dispute
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from core.services import ErrorCode
from notifications.models import Notification, NotificationKind
from payments.models import Dispute, Payment, PaymentEvent
from payments.services import RefundService
from payments.state_machines import DisputeState, PaymentEventType, PaymentState


def refund(payment, user, amount, reason="Service cancelled"):
    return RefundService.process_refund(payment.id, amount, reason, user)


@pytest.mark.django_db
class TestProcessRefund:
    def test_partial_then_full_then_nothing_left(self, released_payment, client_user):
        first = refund(released_payment, client_user, Decimal("500"))
        assert first.success
        assert first.data.is_full is False
        assert Payment.objects.get(id=released_payment.id).state == PaymentState.PARTIALLY_REFUNDED

        second = refund(released_payment, client_user, Decimal("500"))
        assert second.success
        assert second.data.is_full is True
        payment = Payment.objects.get(id=released_payment.id)
        assert payment.state == PaymentState.REFUNDED
        assert payment.amount_refunded == Decimal("1000")

        third = refund(released_payment, client_user, Decimal("0.01"))
        assert third.error_code == ErrorCode.INVALID_STATE

    def test_full_refund_of_approved_payment(self, approved_payment, client_user):
        result = refund(approved_payment, client_user, "1000.00")

        assert result.success
        assert Payment.objects.get(id=approved_payment.id).state == PaymentState.REFUNDED

    def test_amount_above_balance(self, released_payment, client_user):
        refund(released_payment, client_user, Decimal("400"))

        result = refund(released_payment, client_user, Decimal("600.01"))

        assert result.error_code == ErrorCode.INVALID_AMOUNT
        payment = Payment.objects.get(id=released_payment.id)
        assert payment.state == PaymentState.PARTIALLY_REFUNDED
        assert payment.amount_refunded == Decimal("400")

    @pytest.mark.parametrize("amount", ["0", "-10", "abc", None])
    def test_non_positive_or_invalid_amount(self, approved_payment, client_user, amount):
        result = refund(approved_payment, client_user, amount)

        assert result.error_code == ErrorCode.INVALID_AMOUNT
        assert Payment.objects.get(id=approved_payment.id).state == PaymentState.APPROVED

    def test_professional_cannot_refund(self, released_payment, professional):
        result = refund(released_payment, professional, Decimal("100"))

        assert result.error_code == ErrorCode.FORBIDDEN
        assert Payment.objects.get(id=released_payment.id).amount_refunded == Decimal("0")

    def test_pending_payment_not_refundable(self, pending_payment, client_user):
        result = refund(pending_payment, client_user, Decimal("100"))

        assert result.error_code == ErrorCode.INVALID_STATE

    def test_unknown_payment(self, client_user):
        result = RefundService.process_refund(uuid4(), "10", "reason", client_user)

        assert result.error_code == ErrorCode.NOT_FOUND

    def test_records_event_with_resulting_state(self, released_payment, client_user):
        result = refund(released_payment, client_user, Decimal("250"))

        event = PaymentEvent.objects.get(
            payment=released_payment, event_type=PaymentEventType.REFUND_PROCESSED
        )
        assert event.data["refund_id"] == str(result.data.refund_id)
        assert event.data["amount"] == "250"
        assert event.data["resulting_state"] == PaymentState.PARTIALLY_REFUNDED
        assert event.data["previous_state"] == PaymentState.RELEASED

    def test_notifies_professional(self, released_payment, client_user, professional):
        refund(released_payment, client_user, Decimal("250"))

        notification = Notification.objects.get(kind=NotificationKind.REFUND_PROCESSED)
        assert notification.recipient == professional


@pytest.mark.django_db
class TestRefundResolvesDispute:
    def test_full_refund_resolves_open_dispute(self, disputed_payment, client_user):
        result = refund(disputed_payment, client_user, Decimal("1000"))

        assert result.success
        dispute = Dispute.objects.get(payment=disputed_payment)
        assert dispute.state == DisputeState.RESOLVED
        assert dispute.resolved_at is not None
        assert result.data.resolved_dispute.id == dispute.id
        assert PaymentEvent.objects.filter(
            payment=disputed_payment, event_type=PaymentEventType.DISPUTE_RESOLVED
        ).exists()

    def test_partial_refund_resolves_dispute(self, disputed_payment, client_user):
        result = refund(disputed_payment, client_user, Decimal("300"))

        assert result.success
        assert Payment.objects.get(id=disputed_payment.id).state == PaymentState.PARTIALLY_REFUNDED
        assert Dispute.objects.get(payment=disputed_payment).state == DisputeState.RESOLVED

    def test_no_dispute_to_resolve(self, released_payment, client_user):
        result = refund(released_payment, client_user, Decimal("300"))

        assert result.data.resolved_dispute is None
