"""
State enums for payment models.

These are Django TextChoices for database storage and admin integration,
driven by django-fsm transitions on the models.

State Machines Overview:

Payment States:
    pending → approved → released               (happy path)
    pending → failed                            (provider rejected)
    approved → disputed
    released → disputed
    approved | released | partially_refunded | disputed → refunded | partially_refunded

Dispute States:
    open → under_review → resolved
    open → resolved

Withdrawal States:
    processing → completed
    processing → failed
"""

from django.db import models


class PaymentState(models.TextChoices):
    """
    States for the Payment custody lifecycle.

    Terminal states: FAILED, REFUNDED
    RELEASED and PARTIALLY_REFUNDED still accept refunds.

    State Flow (Escrow):
        PENDING → APPROVED → RELEASED

    Diversion Flow:
        APPROVED | RELEASED → DISPUTED
        APPROVED | RELEASED | PARTIALLY_REFUNDED | DISPUTED → REFUNDED
        APPROVED | RELEASED | PARTIALLY_REFUNDED | DISPUTED → PARTIALLY_REFUNDED

    Rejection Flow:
        PENDING → FAILED
    """

    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    RELEASED = "released", "Released"
    REFUNDED = "refunded", "Refunded"
    PARTIALLY_REFUNDED = "partially_refunded", "Partially Refunded"
    FAILED = "failed", "Failed"
    DISPUTED = "disputed", "Disputed"

    @classmethod
    def disputable_states(cls) -> list[str]:
        return [cls.APPROVED, cls.RELEASED]

    @classmethod
    def refundable_states(cls) -> list[str]:
        return [cls.APPROVED, cls.RELEASED, cls.PARTIALLY_REFUNDED, cls.DISPUTED]

    @classmethod
    def post_approval_states(cls) -> frozenset[str]:
        """States a payment can only reach after provider approval."""
        return frozenset(
            {
                cls.APPROVED,
                cls.RELEASED,
                cls.REFUNDED,
                cls.PARTIALLY_REFUNDED,
                cls.DISPUTED,
            }
        )


class DisputeState(models.TextChoices):
    """
    States for a Dispute.

    OPEN and UNDER_REVIEW count as active: a payment has at most one
    active dispute.
    """

    OPEN = "open", "Open"
    UNDER_REVIEW = "under_review", "Under Review"
    RESOLVED = "resolved", "Resolved"

    @classmethod
    def active_states(cls) -> list[str]:
        return [cls.OPEN, cls.UNDER_REVIEW]


class WithdrawalState(models.TextChoices):
    """
    States for a professional's withdrawal request.

    PROCESSING and COMPLETED withdrawals count against the available
    balance; FAILED ones give the amount back.
    """

    PROCESSING = "processing", "Processing"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"


class DisputeReason(models.TextChoices):
    """Reason codes a party can give when opening a dispute."""

    SERVICE_NOT_COMPLETED = "service_not_completed", "Service not completed"
    QUALITY_ISSUE = "quality_issue", "Quality issue"
    NO_SHOW = "no_show", "Professional did not show up"
    OVERCHARGED = "overcharged", "Overcharged"
    UNAUTHORIZED_CHARGE = "unauthorized_charge", "Unauthorized charge"
    OTHER = "other", "Other"


class PaymentEventType:
    """
    Event tags written to the payment audit trail.

    The column is free-form; these are the tags this project writes.
    """

    PAYMENT_CREATED = "payment_created"
    PAYMENT_APPROVED = "payment_approved"
    PAYMENT_FAILED = "payment_failed"
    FUNDS_RELEASED = "funds_released"
    DISPUTE_CREATED = "dispute_created"
    DISPUTE_RESOLVED = "dispute_resolved"
    REFUND_PROCESSED = "refund_processed"
    RECEIPT_GENERATED = "receipt_generated"
