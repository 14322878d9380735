"""
Refund processing.

Refunds move money back to the client, fully or partially. A refund on an
approved payment returns funds that never reached the professional; on a
released payment it is a clawback. Both are recorded identically here;
moving the money with the provider is the provider integration's job.

Rules:
    - Only the payment's client may request a refund
    - 0 < amount <= amount_total - amount_refunded
    - amount == remaining balance -> REFUNDED, otherwise PARTIALLY_REFUNDED
    - A refund on a disputed payment resolves its active dispute

Usage:
    from payments.services import RefundService

    result = RefundService.process_refund(
        payment_id=payment.id,
        amount=Decimal("500"),
        reason="Service cancelled",
        requester=request.user,
    )
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from core.services import BaseService, ErrorCode, ServiceResult
from notifications.models import NotificationKind
from notifications.services import NotificationService
from payments.models import Dispute, Payment
from payments.services.event_log import PaymentEventLog
from payments.services.ledger_service import parse_amount
from payments.state_machines import DisputeState, PaymentEventType, PaymentState

if TYPE_CHECKING:
    from authentication.models import User


@dataclass(frozen=True)
class RefundOutcome:
    """
    Result of a processed refund.

    Attributes:
        refund_id: Identifier of this refund, also stored in the audit event
        payment: Payment after the refund
        amount: Amount refunded by this call
        resolved_dispute: Dispute closed by this refund, if any
    """

    refund_id: uuid.UUID
    payment: Payment
    amount: Decimal
    resolved_dispute: Dispute | None = None

    @property
    def is_full(self) -> bool:
        return self.payment.state == PaymentState.REFUNDED


class RefundService(BaseService):
    """Validate and apply refunds against a payment."""

    @classmethod
    def process_refund(
        cls,
        payment_id: uuid.UUID,
        amount,
        reason: str,
        requester: User,
    ) -> ServiceResult[RefundOutcome]:
        """
        Refund part or all of a payment's remaining balance.

        Returns:
            ServiceResult with RefundOutcome

        Error codes:
            NOT_FOUND: Payment does not exist
            FORBIDDEN: Requester is not the payment's client
            INVALID_STATE: Payment is pending, failed or fully refunded
            INVALID_AMOUNT: Amount not in (0, remaining refundable balance]
        """
        refund_amount = parse_amount(amount)
        resolved_dispute = None

        with cls.atomic():
            payment = Payment.objects.select_for_update().filter(id=payment_id).first()
            if payment is None:
                return ServiceResult.failure("Payment not found", ErrorCode.NOT_FOUND)

            if payment.client_id != requester.pk:
                return ServiceResult.failure(
                    "Only the client can request a refund",
                    ErrorCode.FORBIDDEN,
                )

            if payment.state not in PaymentState.refundable_states():
                return ServiceResult.failure(
                    f"Cannot refund payment in state '{payment.state}'",
                    ErrorCode.INVALID_STATE,
                )

            refundable = payment.refundable_amount
            if refund_amount is None or refund_amount <= 0:
                return ServiceResult.failure(
                    "Refund amount must be greater than 0",
                    ErrorCode.INVALID_AMOUNT,
                )
            if refund_amount > refundable:
                return ServiceResult.failure(
                    f"Amount greater than refundable balance ({refundable})",
                    ErrorCode.INVALID_AMOUNT,
                )

            previous_state = payment.state
            if refund_amount == refundable:
                payment.refund_full(refund_amount)
            else:
                payment.refund_partial(refund_amount)
            payment.save()

            if previous_state == PaymentState.DISPUTED:
                resolved_dispute = (
                    Dispute.objects.select_for_update()
                    .filter(payment=payment, state__in=DisputeState.active_states())
                    .first()
                )
                if resolved_dispute is not None:
                    resolved_dispute.resolve(resolution=f"Refunded {refund_amount} to client")
                    resolved_dispute.save()

        refund_id = uuid.uuid4()
        PaymentEventLog.record(
            payment.id,
            PaymentEventType.REFUND_PROCESSED,
            {
                "refund_id": str(refund_id),
                "amount": str(refund_amount),
                "reason": reason,
                "previous_state": previous_state,
                "resulting_state": payment.state,
                "amount_refunded": str(payment.amount_refunded),
            },
        )
        if resolved_dispute is not None:
            PaymentEventLog.record(
                payment.id,
                PaymentEventType.DISPUTE_RESOLVED,
                {"dispute_id": str(resolved_dispute.id), "resolution": "refund"},
            )

        NotificationService.notify(
            payment.professional,
            NotificationKind.REFUND_PROCESSED,
            "Refund processed",
            body=f"A refund of {refund_amount} was issued on one of your payments.",
            data={"payment_id": str(payment.id), "amount": str(refund_amount)},
            actor=requester,
        )

        cls.get_logger().info(
            f"Refunded {refund_amount} on payment {payment.id} -> {payment.state}",
            extra={
                "payment_id": str(payment.id),
                "refund_id": str(refund_id),
                "amount": str(refund_amount),
                "state": payment.state,
            },
        )
        return ServiceResult.success(
            RefundOutcome(
                refund_id=refund_id,
                payment=payment,
                amount=refund_amount,
                resolved_dispute=resolved_dispute,
            )
        )
