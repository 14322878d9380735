"""
Dispute intake.

Either party of a payment can contest it while it is approved or already
released. Opening a dispute freezes the payment in DISPUTED, which keeps
the escrow scheduler away from it. Administrative resolution happens
outside this service; a full refund resolves the dispute as well (see
RefundService).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.services import BaseService, ErrorCode, ServiceResult
from notifications.models import NotificationKind
from notifications.services import NotificationService
from payments.models import Dispute, Payment
from payments.services.event_log import PaymentEventLog
from payments.state_machines import (
    DisputeReason,
    DisputeState,
    PaymentEventType,
    PaymentState,
)

if TYPE_CHECKING:
    from datetime import date
    from uuid import UUID

    from authentication.models import User

ADMIN_DISPUTE_LIST_LIMIT = 50


class DisputeService(BaseService):
    """Open and list payment disputes."""

    @classmethod
    def create_dispute(
        cls,
        payment_id: UUID,
        user: User,
        reason: str,
        description: str,
    ) -> ServiceResult[Dispute]:
        """
        Open a dispute against a payment.

        Args:
            payment_id: Payment being contested
            user: Caller; must be the payment's client or professional
            reason: DisputeReason value
            description: Free-text explanation

        Returns:
            ServiceResult with the new Dispute (state OPEN)

        Error codes:
            VALIDATION_ERROR: Unknown reason or empty description
            NOT_FOUND: Payment does not exist
            FORBIDDEN: Caller is not a party to the payment
            INVALID_STATE: Payment is not approved/released, or already has
                an active dispute
        """
        if reason not in DisputeReason.values:
            return ServiceResult.failure(
                f"Unknown dispute reason: {reason}",
                ErrorCode.VALIDATION_ERROR,
                errors={"reason": [f"Must be one of {', '.join(DisputeReason.values)}"]},
            )
        if not description or not description.strip():
            return ServiceResult.failure(
                "A description is required",
                ErrorCode.VALIDATION_ERROR,
                errors={"description": ["This field is required."]},
            )

        with cls.atomic():
            payment = Payment.objects.select_for_update().filter(id=payment_id).first()
            if payment is None:
                return ServiceResult.failure("Payment not found", ErrorCode.NOT_FOUND)

            if not payment.is_party(user):
                return ServiceResult.failure(
                    "Only the client or the professional can dispute this payment",
                    ErrorCode.FORBIDDEN,
                )

            has_active = Dispute.objects.filter(
                payment=payment,
                state__in=DisputeState.active_states(),
            ).exists()
            if has_active:
                return ServiceResult.failure(
                    "Payment already has an open dispute",
                    ErrorCode.INVALID_STATE,
                )

            if payment.state not in PaymentState.disputable_states():
                return ServiceResult.failure(
                    f"Cannot dispute payment in state '{payment.state}'",
                    ErrorCode.INVALID_STATE,
                )

            previous_state = payment.state
            dispute = Dispute.objects.create(
                payment=payment,
                opened_by=user,
                reason=reason,
                description=description.strip(),
            )
            payment.mark_disputed()
            payment.save()

        PaymentEventLog.record(
            payment.id,
            PaymentEventType.DISPUTE_CREATED,
            {
                "dispute_id": str(dispute.id),
                "opened_by": user.pk,
                "reason": reason,
                "previous_state": previous_state,
            },
        )

        other_party = payment.professional if user.pk == payment.client_id else payment.client
        NotificationService.notify(
            other_party,
            NotificationKind.DISPUTE_OPENED,
            "A payment was disputed",
            body=f"A dispute was opened on a payment of {payment.amount_total}.",
            data={"payment_id": str(payment.id), "dispute_id": str(dispute.id)},
            actor=user,
        )

        cls.get_logger().info(
            f"Dispute {dispute.id} opened on payment {payment.id}",
            extra={
                "payment_id": str(payment.id),
                "dispute_id": str(dispute.id),
                "reason": reason,
            },
        )
        return ServiceResult.success(dispute)

    @classmethod
    def list_user_disputes(
        cls,
        user: User,
        state: str | None = None,
    ) -> ServiceResult[list[Dispute]]:
        """
        Disputes opened by the user, newest first.

        Error codes:
            VALIDATION_ERROR: Unknown state filter
        """
        if state and state not in DisputeState.values:
            return ServiceResult.failure(
                f"Unknown dispute state: {state}",
                ErrorCode.VALIDATION_ERROR,
            )

        disputes = Dispute.objects.filter(opened_by=user).select_related("payment")
        if state:
            disputes = disputes.filter(state=state)
        return ServiceResult.success(list(disputes.order_by("-created_at")))

    @classmethod
    def list_all_disputes(
        cls,
        state: str | None = None,
        opened_from: date | None = None,
        opened_to: date | None = None,
        limit: int = ADMIN_DISPUTE_LIST_LIMIT,
    ) -> ServiceResult[list[Dispute]]:
        """
        Every dispute on the platform, newest first, for administrators.

        Args:
            state: Only disputes in this DisputeState
            opened_from: Only disputes opened on or after this date
            opened_to: Only disputes opened on or before this date
            limit: Maximum number of disputes returned

        Error codes:
            VALIDATION_ERROR: Unknown state filter or inverted date range
        """
        if state and state not in DisputeState.values:
            return ServiceResult.failure(
                f"Unknown dispute state: {state}",
                ErrorCode.VALIDATION_ERROR,
            )
        if opened_from and opened_to and opened_from > opened_to:
            return ServiceResult.failure(
                "Start date must not be after end date",
                ErrorCode.VALIDATION_ERROR,
            )

        disputes = Dispute.objects.select_related("payment", "opened_by")
        if state:
            disputes = disputes.filter(state=state)
        if opened_from:
            disputes = disputes.filter(created_at__date__gte=opened_from)
        if opened_to:
            disputes = disputes.filter(created_at__date__lte=opened_to)
        return ServiceResult.success(list(disputes.order_by("-created_at")[:limit]))
