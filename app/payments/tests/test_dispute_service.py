"""
Tests for DisputeService.

Tests cover:
- Opening disputes from approved and released payments
- Party, state and duplicate checks
- Listing a user's disputes with a state filter
- Platform-wide listing with state and date filters
"""

from datetime import date
from uuid import uuid4

import pytest
from freezegun import freeze_time

from core.services import ErrorCode
from notifications.models import Notification, NotificationKind
from payments.models import Dispute, Payment, PaymentEvent
from payments.services import DisputeService
from payments.state_machines import (
    DisputeReason,
    DisputeState,
    PaymentEventType,
    PaymentState,
)
from payments.tests.factories import DisputeFactory, PaymentFactory


def open_dispute(payment, user, reason=DisputeReason.QUALITY_ISSUE, description="Leaking pipe"):
    return DisputeService.create_dispute(payment.id, user, reason, description)


@pytest.mark.django_db
class TestCreateDispute:
    @pytest.mark.parametrize("trait", ["approved", "released"])
    def test_client_disputes(self, booking, client_user, trait):
        payment = PaymentFactory(booking=booking, **{trait: True})

        result = open_dispute(payment, client_user)

        assert result.success
        dispute = result.data
        assert dispute.state == DisputeState.OPEN
        assert dispute.opened_by == client_user
        assert Payment.objects.get(id=payment.id).state == PaymentState.DISPUTED

    def test_professional_can_dispute(self, approved_payment, professional):
        result = open_dispute(approved_payment, professional)

        assert result.success

    def test_records_event(self, approved_payment, client_user):
        result = open_dispute(approved_payment, client_user)

        event = PaymentEvent.objects.get(
            payment=approved_payment, event_type=PaymentEventType.DISPUTE_CREATED
        )
        assert event.data["dispute_id"] == str(result.data.id)
        assert event.data["previous_state"] == PaymentState.APPROVED

    def test_notifies_other_party(self, approved_payment, client_user, professional):
        open_dispute(approved_payment, client_user)

        notification = Notification.objects.get(kind=NotificationKind.DISPUTE_OPENED)
        assert notification.recipient == professional
        assert notification.actor == client_user

    def test_outsider_forbidden(self, approved_payment, outsider):
        result = open_dispute(approved_payment, outsider)

        assert result.error_code == ErrorCode.FORBIDDEN
        assert not Dispute.objects.exists()

    def test_pending_payment_not_disputable(self, pending_payment, client_user):
        result = open_dispute(pending_payment, client_user)

        assert result.error_code == ErrorCode.INVALID_STATE
        assert Payment.objects.get(id=pending_payment.id).state == PaymentState.PENDING

    def test_failed_payment_not_disputable(self, pending_payment, client_user):
        pending_payment.fail()
        pending_payment.save()

        result = open_dispute(pending_payment, client_user)

        assert result.error_code == ErrorCode.INVALID_STATE

    def test_second_dispute_rejected(self, disputed_payment, professional):
        result = open_dispute(disputed_payment, professional)

        assert result.error_code == ErrorCode.INVALID_STATE
        assert Dispute.objects.filter(payment=disputed_payment).count() == 1

    def test_unknown_payment(self, client_user):
        result = DisputeService.create_dispute(
            uuid4(), client_user, DisputeReason.OTHER, "Never happened"
        )

        assert result.error_code == ErrorCode.NOT_FOUND

    def test_unknown_reason(self, approved_payment, client_user):
        result = open_dispute(approved_payment, client_user, reason="bad_vibes")

        assert result.error_code == ErrorCode.VALIDATION_ERROR
        assert "reason" in result.errors

    def test_blank_description(self, approved_payment, client_user):
        result = open_dispute(approved_payment, client_user, description="   ")

        assert result.error_code == ErrorCode.VALIDATION_ERROR
        assert "description" in result.errors


@pytest.mark.django_db
class TestListUserDisputes:
    def test_lists_only_own_disputes(self, client_user, outsider):
        own = DisputeFactory(payment__booking__client=client_user)
        DisputeFactory(payment__booking__client=outsider)

        result = DisputeService.list_user_disputes(client_user)

        assert result.success
        assert [d.id for d in result.data] == [own.id]

    def test_filters_by_state(self, client_user):
        open_dispute_ = DisputeFactory(payment__booking__client=client_user)
        reviewed = DisputeFactory(payment__booking__client=client_user)
        reviewed.start_review()
        reviewed.save()

        result = DisputeService.list_user_disputes(client_user, state=DisputeState.UNDER_REVIEW)

        assert [d.id for d in result.data] == [reviewed.id]
        assert open_dispute_.id not in [d.id for d in result.data]

    def test_unknown_state_filter(self, client_user):
        result = DisputeService.list_user_disputes(client_user, state="closed")

        assert result.error_code == ErrorCode.VALIDATION_ERROR


@pytest.mark.django_db
class TestListAllDisputes:
    def test_every_dispute_newest_first(self):
        with freeze_time("2026-03-01"):
            older = DisputeFactory()
        with freeze_time("2026-03-05"):
            newer = DisputeFactory()

        result = DisputeService.list_all_disputes()

        assert [d.id for d in result.data] == [newer.id, older.id]

    def test_filters_by_state(self):
        DisputeFactory()
        reviewed = DisputeFactory()
        reviewed.start_review()
        reviewed.save()

        result = DisputeService.list_all_disputes(state=DisputeState.UNDER_REVIEW)

        assert [d.id for d in result.data] == [reviewed.id]

    def test_filters_by_opening_date_inclusive(self):
        with freeze_time("2026-02-28 23:00:00"):
            DisputeFactory()
        with freeze_time("2026-03-01 08:00:00"):
            first_day = DisputeFactory()
        with freeze_time("2026-03-10 18:00:00"):
            last_day = DisputeFactory()
        with freeze_time("2026-03-11 09:00:00"):
            DisputeFactory()

        result = DisputeService.list_all_disputes(
            opened_from=date(2026, 3, 1),
            opened_to=date(2026, 3, 10),
        )

        assert [d.id for d in result.data] == [last_day.id, first_day.id]

    def test_capped_at_limit(self):
        for _ in range(3):
            DisputeFactory()

        result = DisputeService.list_all_disputes(limit=2)

        assert len(result.data) == 2

    def test_inverted_date_range(self):
        result = DisputeService.list_all_disputes(
            opened_from=date(2026, 3, 10),
            opened_to=date(2026, 3, 1),
        )

        assert result.error_code == ErrorCode.VALIDATION_ERROR

    def test_unknown_state_filter(self):
        result = DisputeService.list_all_disputes(state="closed")

        assert result.error_code == ErrorCode.VALIDATION_ERROR
