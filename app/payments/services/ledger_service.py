"""
Payment ledger: owns Payment state and enforces legal transitions.

Every mutating operation follows the same shape:

    1. Lock the payment row (select_for_update inside a transaction)
    2. Re-check the current state under the lock
    3. Apply the django-fsm transition and save
    4. After commit, record the audit event and notify the parties

Manual release (client confirmation) and scheduled release (escrow timer)
both go through release(). Whichever commits first performs the
transition; the other observes RELEASED under the lock and returns a
no-op success, so funds are never credited twice.

Usage:
    from payments.services import PaymentLedgerService

    result = PaymentLedgerService.create_payment(
        booking_id=booking.id,
        amount=Decimal("1000"),
        client=request.user,
    )
    if result.success:
        payment = result.data

    PaymentLedgerService.mark_approved(payment.id, provider_payment_id="mp-123")
    PaymentLedgerService.release(payment.id, trigger="scheduler")
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import TYPE_CHECKING

from django.conf import settings
from django.utils import timezone

from bookings.models import Booking
from core.services import BaseService, ErrorCode, ServiceResult
from notifications.models import NotificationKind
from notifications.services import NotificationService
from payments.models import Payment
from payments.services.event_log import PaymentEventLog
from payments.state_machines import PaymentEventType, PaymentState

if TYPE_CHECKING:
    from uuid import UUID

    from authentication.models import User


# =============================================================================
# Result Types
# =============================================================================


@dataclass(frozen=True)
class TransitionOutcome:
    """
    Result of an idempotent ledger transition.

    Attributes:
        payment: Payment after the operation
        changed: False when the payment was already in the target state
            and the call was a no-op
    """

    payment: Payment
    changed: bool


@dataclass(frozen=True)
class PaymentStatus:
    """Read-only projection of a payment."""

    payment_id: UUID
    booking_id: UUID
    state: str
    amount_total: Decimal
    platform_commission: Decimal
    professional_amount: Decimal
    amount_refunded: Decimal
    provider_payment_id: str | None
    created_at: datetime
    approved_at: datetime | None
    scheduled_release_at: datetime | None
    released_at: datetime | None
    refunded_at: datetime | None

    @classmethod
    def from_payment(cls, payment: Payment) -> PaymentStatus:
        return cls(
            payment_id=payment.id,
            booking_id=payment.booking_id,
            state=payment.state,
            amount_total=payment.amount_total,
            platform_commission=payment.platform_commission,
            professional_amount=payment.professional_amount,
            amount_refunded=payment.amount_refunded,
            provider_payment_id=payment.provider_payment_id,
            created_at=payment.created_at,
            approved_at=payment.approved_at,
            scheduled_release_at=payment.scheduled_release_at,
            released_at=payment.released_at,
            refunded_at=payment.refunded_at,
        )


# =============================================================================
# Helpers
# =============================================================================


def parse_amount(value) -> Decimal | None:
    """Coerce a request value to Decimal, or None if it is not a finite number."""
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
        # Money is stored with two decimal places
        if not amount.is_finite() or amount != amount.quantize(Decimal("0.01")):
            return None
    except (InvalidOperation, TypeError, ValueError):
        return None
    return amount


def calculate_commission(amount: Decimal) -> tuple[Decimal, Decimal]:
    """
    Split an amount into platform commission and professional net.

    The commission is rounded half-up to whole currency units; the net is
    the exact remainder so commission + net always equals the amount.

    Returns:
        (platform_commission, professional_amount)
    """
    rate = Decimal(settings.PLATFORM_COMMISSION_PERCENT) / Decimal(100)
    commission = (amount * rate).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return commission, amount - commission


# =============================================================================
# Service
# =============================================================================


class PaymentLedgerService(BaseService):
    """Create payments and move them through the custody state machine."""

    @classmethod
    def create_payment(
        cls,
        booking_id: UUID,
        amount,
        client: User,
        preference_id: str = "",
        metadata: dict | None = None,
    ) -> ServiceResult[Payment]:
        """
        Create a pending payment for a booking.

        Args:
            booking_id: Booking being paid for
            amount: Total amount charged to the client
            client: Requesting user; must be the booking's client
            preference_id: Provider checkout preference id, if known
            metadata: Provider-specific details to keep with the payment

        Returns:
            ServiceResult with the new Payment

        Error codes:
            NOT_FOUND: Booking does not exist
            FORBIDDEN: Booking belongs to another client
            INVALID_STATE: Booking is not payable or already has a live payment
            INVALID_AMOUNT: Amount not in (0, MAX_PAYMENT_AMOUNT]
        """
        with cls.atomic():
            # Concurrent requests for the same booking queue here
            booking = Booking.objects.select_for_update().filter(id=booking_id).first()
            if booking is None:
                return ServiceResult.failure("Service not found", ErrorCode.NOT_FOUND)

            if booking.client_id != client.pk:
                return ServiceResult.failure(
                    "You are not allowed to pay for this service",
                    ErrorCode.FORBIDDEN,
                )

            if not booking.is_payable:
                return ServiceResult.failure(
                    f"Service in state '{booking.state}' cannot be paid",
                    ErrorCode.INVALID_STATE,
                )

            live_payment = (
                Payment.objects.filter(booking=booking)
                .exclude(state=PaymentState.FAILED)
                .exists()
            )
            if live_payment:
                return ServiceResult.failure(
                    "Service already has a payment in progress",
                    ErrorCode.INVALID_STATE,
                )

            total = parse_amount(amount)
            max_amount = Decimal(settings.MAX_PAYMENT_AMOUNT)
            if total is None or total <= 0 or total > max_amount:
                return ServiceResult.failure(
                    f"Amount must be greater than 0 and at most {max_amount}",
                    ErrorCode.INVALID_AMOUNT,
                )

            commission, net = calculate_commission(total)
            payment = Payment.objects.create(
                booking=booking,
                client_id=booking.client_id,
                professional_id=booking.professional_id,
                amount_total=total,
                platform_commission=commission,
                professional_amount=net,
                preference_id=preference_id,
                metadata=metadata or {},
            )

        PaymentEventLog.record(
            payment.id,
            PaymentEventType.PAYMENT_CREATED,
            {
                "booking_id": str(booking.id),
                "amount_total": str(total),
                "platform_commission": str(commission),
                "professional_amount": str(net),
            },
        )

        cls.get_logger().info(
            f"Created payment {payment.id} for booking {booking.id}",
            extra={
                "payment_id": str(payment.id),
                "booking_id": str(booking.id),
                "amount_total": str(total),
            },
        )
        return ServiceResult.success(payment)

    @classmethod
    def mark_approved(
        cls,
        payment_id: UUID,
        provider_payment_id: str,
    ) -> ServiceResult[TransitionOutcome]:
        """
        Record provider approval and schedule the automatic release.

        Idempotent: a redelivered approval carrying the same provider id is
        a no-op success, whatever state the payment has moved on to.

        Error codes:
            NOT_FOUND: Payment does not exist
            INVALID_STATE: Payment failed, was approved under another
                provider id, or the provider id belongs to another payment
        """
        delay = timedelta(hours=settings.ESCROW_RELEASE_DELAY_HOURS)

        with cls.atomic():
            payment = Payment.objects.select_for_update().filter(id=payment_id).first()
            if payment is None:
                return ServiceResult.failure("Payment not found", ErrorCode.NOT_FOUND)

            if payment.state in PaymentState.post_approval_states():
                if payment.provider_payment_id == provider_payment_id:
                    cls.get_logger().info(
                        f"Duplicate approval for payment {payment.id} ignored",
                        extra={"payment_id": str(payment.id), "state": payment.state},
                    )
                    return ServiceResult.success(TransitionOutcome(payment, changed=False))
                return ServiceResult.failure(
                    "Payment was already approved under a different provider id",
                    ErrorCode.INVALID_STATE,
                )

            if payment.state != PaymentState.PENDING:
                return ServiceResult.failure(
                    f"Cannot approve payment in state '{payment.state}'",
                    ErrorCode.INVALID_STATE,
                )

            claimed_elsewhere = (
                Payment.objects.filter(provider_payment_id=provider_payment_id)
                .exclude(id=payment.id)
                .exists()
            )
            if claimed_elsewhere:
                return ServiceResult.failure(
                    "Provider payment id is already recorded on another payment",
                    ErrorCode.INVALID_STATE,
                )

            payment.approve(release_delay=delay)
            payment.provider_payment_id = provider_payment_id
            payment.save()

        PaymentEventLog.record(
            payment.id,
            PaymentEventType.PAYMENT_APPROVED,
            {
                "provider_payment_id": provider_payment_id,
                "scheduled_release_at": payment.scheduled_release_at.isoformat(),
            },
        )
        for recipient in (payment.client, payment.professional):
            NotificationService.notify(
                recipient,
                NotificationKind.PAYMENT_APPROVED,
                "Payment approved",
                body=(
                    f"Payment of {payment.amount_total} is held in custody and will be "
                    f"released on {payment.scheduled_release_at:%Y-%m-%d %H:%M}."
                ),
                data={"payment_id": str(payment.id)},
            )

        cls.get_logger().info(
            f"Payment {payment.id} approved, release scheduled",
            extra={
                "payment_id": str(payment.id),
                "scheduled_release_at": payment.scheduled_release_at.isoformat(),
            },
        )
        return ServiceResult.success(TransitionOutcome(payment, changed=True))

    @classmethod
    def mark_failed(
        cls,
        payment_id: UUID,
        reason: str = "",
        provider_payment_id: str | None = None,
    ) -> ServiceResult[TransitionOutcome]:
        """
        Record provider rejection.

        Idempotent against an already failed payment.

        Error codes:
            NOT_FOUND: Payment does not exist
            INVALID_STATE: Payment is past the pending state
        """
        with cls.atomic():
            payment = Payment.objects.select_for_update().filter(id=payment_id).first()
            if payment is None:
                return ServiceResult.failure("Payment not found", ErrorCode.NOT_FOUND)

            if payment.state == PaymentState.FAILED:
                return ServiceResult.success(TransitionOutcome(payment, changed=False))

            if payment.state != PaymentState.PENDING:
                return ServiceResult.failure(
                    f"Cannot fail payment in state '{payment.state}'",
                    ErrorCode.INVALID_STATE,
                )

            payment.fail(reason=reason)
            if provider_payment_id:
                payment.metadata = {
                    **payment.metadata,
                    "rejected_provider_payment_id": provider_payment_id,
                }
            payment.save()

        PaymentEventLog.record(
            payment.id,
            PaymentEventType.PAYMENT_FAILED,
            {"reason": reason, "provider_payment_id": provider_payment_id},
        )
        cls.get_logger().info(
            f"Payment {payment.id} failed: {reason or 'rejected by provider'}",
            extra={"payment_id": str(payment.id)},
        )
        return ServiceResult.success(TransitionOutcome(payment, changed=True))

    @classmethod
    def release(
        cls,
        payment_id: UUID,
        trigger: str = "manual",
    ) -> ServiceResult[TransitionOutcome]:
        """
        Release custody to the professional.

        Args:
            payment_id: Payment to release
            trigger: Who asked ("client_confirmation", "scheduler", ...),
                kept in the audit event

        Returns:
            ServiceResult with TransitionOutcome; changed=False when the
            payment was already released

        Error codes:
            NOT_FOUND: Payment does not exist
            INVALID_STATE: Payment is not approved (pending, disputed, refunded, ...)
        """
        with cls.atomic():
            payment = Payment.objects.select_for_update().filter(id=payment_id).first()
            if payment is None:
                return ServiceResult.failure("Payment not found", ErrorCode.NOT_FOUND)

            if payment.state == PaymentState.RELEASED:
                cls.get_logger().info(
                    f"Payment {payment.id} already released, {trigger} release skipped",
                    extra={"payment_id": str(payment.id), "trigger": trigger},
                )
                return ServiceResult.success(TransitionOutcome(payment, changed=False))

            if payment.state != PaymentState.APPROVED:
                return ServiceResult.failure(
                    f"Cannot release payment in state '{payment.state}'",
                    ErrorCode.INVALID_STATE,
                )

            payment.release()
            payment.save()

        PaymentEventLog.record(
            payment.id,
            PaymentEventType.FUNDS_RELEASED,
            {
                "trigger": trigger,
                "professional_amount": str(payment.professional_amount),
            },
        )
        NotificationService.notify(
            payment.professional,
            NotificationKind.FUNDS_RELEASED,
            "Funds released",
            body=f"{payment.professional_amount} is now available for withdrawal.",
            data={"payment_id": str(payment.id)},
        )

        cls.get_logger().info(
            f"Released payment {payment.id} ({trigger})",
            extra={"payment_id": str(payment.id), "trigger": trigger},
        )
        return ServiceResult.success(TransitionOutcome(payment, changed=True))

    @classmethod
    def release_for_client(
        cls,
        payment_id: UUID,
        user: User,
        booking_id: UUID | None = None,
    ) -> ServiceResult[TransitionOutcome]:
        """
        Manual release after the client confirms the service was completed.

        Error codes:
            NOT_FOUND: Payment does not exist
            FORBIDDEN: Caller is not the payment's client
            VALIDATION_ERROR: booking_id does not match the payment
            INVALID_STATE: see release()
        """
        payment = Payment.objects.filter(id=payment_id).first()
        if payment is None:
            return ServiceResult.failure("Payment not found", ErrorCode.NOT_FOUND)

        if payment.client_id != user.pk:
            return ServiceResult.failure(
                "Only the client can confirm this payment",
                ErrorCode.FORBIDDEN,
            )

        if booking_id is not None and str(payment.booking_id) != str(booking_id):
            return ServiceResult.failure(
                "Payment does not belong to this service",
                ErrorCode.VALIDATION_ERROR,
            )

        return cls.release(payment.id, trigger="client_confirmation")

    @classmethod
    def get_payment_for_party(
        cls,
        payment_id: UUID,
        user: User,
    ) -> ServiceResult[Payment]:
        """
        Fetch a payment the caller is allowed to see.

        Parties (client, professional) and platform admins may read.

        Error codes:
            NOT_FOUND, FORBIDDEN
        """
        payment = Payment.objects.filter(id=payment_id).first()
        if payment is None:
            return ServiceResult.failure("Payment not found", ErrorCode.NOT_FOUND)

        if not (payment.is_party(user) or user.is_platform_admin):
            return ServiceResult.failure(
                "You are not a party to this payment",
                ErrorCode.FORBIDDEN,
            )
        return ServiceResult.success(payment)

    @classmethod
    def get_status(
        cls,
        payment_id: UUID,
        user: User | None = None,
    ) -> ServiceResult[PaymentStatus]:
        """
        Read-only projection of a payment.

        When user is given, the caller must be a party or an admin.
        """
        if user is None:
            payment = Payment.objects.filter(id=payment_id).first()
            if payment is None:
                return ServiceResult.failure("Payment not found", ErrorCode.NOT_FOUND)
            return ServiceResult.success(PaymentStatus.from_payment(payment))

        result = cls.get_payment_for_party(payment_id, user)
        if not result.success:
            return result
        return ServiceResult.success(PaymentStatus.from_payment(result.data))

    @classmethod
    def list_events(cls, payment_id: UUID, user: User) -> ServiceResult[list]:
        """Audit trail of a payment, newest first, for parties and admins."""
        result = cls.get_payment_for_party(payment_id, user)
        if not result.success:
            return result
        return ServiceResult.success(list(PaymentEventLog.for_payment(payment_id)))

    @classmethod
    def generate_payment_receipt(cls, payment_id: UUID, user: User) -> ServiceResult[Payment]:
        """
        Assign the payment its receipt link on the frontend.

        The link is FRONTEND_URL/receipts/<payment id>. Generating again
        returns the existing link unchanged.

        Error codes:
            NOT_FOUND: Payment does not exist
            FORBIDDEN: Caller is neither a party nor an admin
            INVALID_STATE: Payment was never approved
        """
        result = cls.get_payment_for_party(payment_id, user)
        if not result.success:
            return result

        with cls.atomic():
            payment = Payment.objects.select_for_update().get(id=payment_id)
            if payment.state not in PaymentState.post_approval_states():
                return ServiceResult.failure(
                    f"No receipt for a payment in state '{payment.state}'",
                    ErrorCode.INVALID_STATE,
                )
            if payment.receipt_url:
                return ServiceResult.success(payment)

            payment.receipt_url = f"{settings.FRONTEND_URL.rstrip('/')}/receipts/{payment.id}"
            payment.receipt_generated_at = timezone.now()
            payment.save()

        PaymentEventLog.record(
            payment.id,
            PaymentEventType.RECEIPT_GENERATED,
            {"receipt_url": payment.receipt_url, "requested_by": user.pk},
        )
        cls.get_logger().info(
            f"Generated receipt for payment {payment.id}",
            extra={"payment_id": str(payment.id)},
        )
        return ServiceResult.success(payment)
