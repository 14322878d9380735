"""
DRF serializers for payments app.

This module provides serializers for:
- Request validation (payment creation, release, disputes, refunds, withdrawals)
- Payment status, audit events, disputes, receipts and withdrawals in
  API responses

Related files:
    - services/: Ledger, dispute, refund and funds services
    - views.py: Payment API views

Usage:
    serializer = CreatePaymentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    result = PaymentLedgerService.create_payment(
        booking_id=serializer.validated_data["service_id"],
        amount=serializer.validated_data["amount"],
        client=request.user,
    )
"""

from __future__ import annotations

from rest_framework import serializers

from payments.models import Dispute, Payment, PaymentEvent, Withdrawal
from payments.state_machines import DisputeReason, DisputeState

# Wide enough to reach the service layer, which enforces the real bounds
AMOUNT_FIELD_OPTIONS = {"max_digits": 14, "decimal_places": 2}


# =============================================================================
# Request Serializers
# =============================================================================


class CreatePaymentSerializer(serializers.Serializer):
    """
    Request body for POST /payments/create-preference/.

    Fields:
        service_id: Booking being paid for
        amount: Total charged to the client
        professional_email: Optional, kept in payment metadata
        specialty: Optional, kept in payment metadata
    """

    service_id = serializers.UUIDField()
    amount = serializers.DecimalField(**AMOUNT_FIELD_OPTIONS)
    professional_email = serializers.EmailField(required=False, allow_blank=True)
    specialty = serializers.CharField(required=False, allow_blank=True, max_length=100)


class ReleaseFundsSerializer(serializers.Serializer):
    """Request body for POST /payments/release-funds/."""

    payment_id = serializers.UUIDField()
    service_id = serializers.UUIDField(required=False)


class CreateDisputeSerializer(serializers.Serializer):
    """Request body for POST /payments/<id>/dispute/."""

    reason = serializers.ChoiceField(choices=DisputeReason.choices)
    description = serializers.CharField(max_length=2000)


class RefundSerializer(serializers.Serializer):
    """Request body for POST /payments/<id>/refund/."""

    amount = serializers.DecimalField(**AMOUNT_FIELD_OPTIONS)
    reason = serializers.CharField(max_length=500)


class DisputeFilterSerializer(serializers.Serializer):
    """Query parameters for GET /payments/disputes/."""

    status = serializers.ChoiceField(choices=DisputeState.choices, required=False)


class AdminDisputeFilterSerializer(DisputeFilterSerializer):
    """Query parameters for GET /payments/admin/disputes/."""

    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)

    def validate(self, attrs):
        date_from, date_to = attrs.get("date_from"), attrs.get("date_to")
        if date_from and date_to and date_from > date_to:
            raise serializers.ValidationError({"date_to": "Must not be before date_from."})
        return attrs


class WithdrawFundsSerializer(serializers.Serializer):
    """
    Request body for POST /payments/withdrawals/.

    Bank details are validated by WithdrawalService so the error messages
    stay in one place.
    """

    amount = serializers.DecimalField(**AMOUNT_FIELD_OPTIONS)
    cvu = serializers.CharField(max_length=64, allow_blank=True)
    alias = serializers.CharField(max_length=50, allow_blank=True)


# =============================================================================
# Response Serializers
# =============================================================================


class PaymentSerializer(serializers.ModelSerializer):
    """Payment as returned right after creation."""

    service_id = serializers.UUIDField(source="booking_id", read_only=True)

    class Meta:
        model = Payment
        fields = [
            "id",
            "service_id",
            "state",
            "amount_total",
            "platform_commission",
            "professional_amount",
            "currency",
            "preference_id",
            "created_at",
        ]
        read_only_fields = fields


class PaymentStatusSerializer(serializers.Serializer):
    """Serializes a PaymentStatus projection."""

    payment_id = serializers.UUIDField()
    service_id = serializers.UUIDField(source="booking_id")
    state = serializers.CharField()
    amount_total = serializers.DecimalField(**AMOUNT_FIELD_OPTIONS)
    platform_commission = serializers.DecimalField(**AMOUNT_FIELD_OPTIONS)
    professional_amount = serializers.DecimalField(**AMOUNT_FIELD_OPTIONS)
    amount_refunded = serializers.DecimalField(**AMOUNT_FIELD_OPTIONS)
    provider_payment_id = serializers.CharField(allow_null=True)
    created_at = serializers.DateTimeField()
    approved_at = serializers.DateTimeField(allow_null=True)
    scheduled_release_at = serializers.DateTimeField(allow_null=True)
    released_at = serializers.DateTimeField(allow_null=True)
    refunded_at = serializers.DateTimeField(allow_null=True)


class ReleaseResultSerializer(serializers.Serializer):
    """Serializes a TransitionOutcome from a release."""

    payment_id = serializers.UUIDField(source="payment.id")
    state = serializers.CharField(source="payment.state")
    released_at = serializers.DateTimeField(source="payment.released_at")
    already_released = serializers.SerializerMethodField()

    def get_already_released(self, obj) -> bool:
        return not obj.changed


class PaymentEventSerializer(serializers.ModelSerializer):
    """Audit trail entry."""

    class Meta:
        model = PaymentEvent
        fields = ["id", "event_type", "data", "processed", "created_at"]
        read_only_fields = fields


class DisputeSerializer(serializers.ModelSerializer):
    """Dispute with the payment it contests."""

    payment_id = serializers.UUIDField(read_only=True)
    opened_by = serializers.PrimaryKeyRelatedField(read_only=True)
    payment_state = serializers.CharField(source="payment.state", read_only=True)

    class Meta:
        model = Dispute
        fields = [
            "id",
            "payment_id",
            "opened_by",
            "reason",
            "description",
            "state",
            "resolution",
            "payment_state",
            "created_at",
            "resolved_at",
        ]
        read_only_fields = fields


class RefundResultSerializer(serializers.Serializer):
    """Serializes a RefundOutcome."""

    refund_id = serializers.UUIDField()
    payment_id = serializers.UUIDField(source="payment.id")
    amount = serializers.DecimalField(**AMOUNT_FIELD_OPTIONS)
    state = serializers.CharField(source="payment.state")
    amount_refunded = serializers.DecimalField(
        source="payment.amount_refunded", **AMOUNT_FIELD_OPTIONS
    )
    is_full = serializers.BooleanField()
    resolved_dispute_id = serializers.SerializerMethodField()

    def get_resolved_dispute_id(self, obj) -> str | None:
        if obj.resolved_dispute is None:
            return None
        return str(obj.resolved_dispute.id)


class AvailableFundsSerializer(serializers.Serializer):
    """Professional balance."""

    professional_id = serializers.IntegerField()
    available_funds = serializers.DecimalField(**AMOUNT_FIELD_OPTIONS)
    withdrawn_funds = serializers.DecimalField(**AMOUNT_FIELD_OPTIONS)
    withdrawable_funds = serializers.DecimalField(**AMOUNT_FIELD_OPTIONS)


class ReceiptSerializer(serializers.ModelSerializer):
    """Receipt link of a payment."""

    payment_id = serializers.UUIDField(source="id", read_only=True)

    class Meta:
        model = Payment
        fields = ["payment_id", "receipt_url", "receipt_generated_at"]
        read_only_fields = fields


class WithdrawalSerializer(serializers.ModelSerializer):
    """Withdrawal with the CVU masked to its last four digits."""

    cvu = serializers.CharField(source="masked_cvu", read_only=True)

    class Meta:
        model = Withdrawal
        fields = [
            "id",
            "amount",
            "currency",
            "cvu",
            "alias",
            "state",
            "estimated_arrival",
            "completed_at",
            "created_at",
        ]
        read_only_fields = fields
