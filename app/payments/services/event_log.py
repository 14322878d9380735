"""
Append-only payment audit trail.

Every ledger, dispute and refund operation records an event here after
its own transaction has committed. Recording is best-effort: a failure to
write the event is logged and dropped, never propagated to the business
operation that triggered it.

Usage:
    from payments.services import PaymentEventLog
    from payments.state_machines import PaymentEventType

    PaymentEventLog.record(
        payment.id,
        PaymentEventType.FUNDS_RELEASED,
        {"trigger": "scheduler"},
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import PersistenceError
from core.services import BaseService
from payments.models import PaymentEvent

if TYPE_CHECKING:
    from uuid import UUID

    from django.db.models import QuerySet


class PaymentEventLog(BaseService):
    """Write and read the per-payment audit trail."""

    @classmethod
    def record(
        cls,
        payment_id: UUID,
        event_type: str,
        data: dict | None = None,
    ) -> PaymentEvent | None:
        """
        Append an event for a payment.

        Runs in its own savepoint so a failed insert never poisons an
        enclosing transaction.

        Returns:
            The stored PaymentEvent, or None if it could not be written
        """
        try:
            with cls.atomic():
                event = PaymentEvent.objects.create(
                    payment_id=payment_id,
                    event_type=event_type,
                    data=data or {},
                )
        except PersistenceError as exc:
            cls.get_logger().warning(
                f"Dropped {event_type} event for payment {payment_id}: {exc}",
                extra={"payment_id": str(payment_id), "event_type": event_type},
            )
            return None

        cls.get_logger().debug(
            f"Recorded {event_type} for payment {payment_id}",
            extra={"payment_id": str(payment_id), "event_type": event_type},
        )
        return event

    @classmethod
    def for_payment(cls, payment_id: UUID) -> QuerySet[PaymentEvent]:
        """Audit trail of one payment, newest first."""
        return PaymentEvent.objects.filter(payment_id=payment_id).order_by("-created_at")
