"""
Payment model for escrow custody lifecycle management.

A Payment is created once per paid booking. Its identity and money fields
are fixed at creation; only state, refunded amount and timestamps change
afterwards, always through the django-fsm transitions below.

Usage:
    from payments.models import Payment
    from payments.state_machines import PaymentState

    payment = Payment.objects.create(
        booking=booking,
        client=booking.client,
        professional=booking.professional,
        amount_total=Decimal("1000.00"),
        platform_commission=Decimal("100"),
        professional_amount=Decimal("900.00"),
    )

    payment.approve(release_delay=timedelta(hours=24))  # pending -> approved
    payment.save()
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone
from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin, VersionedMixin
from core.models import BaseModel
from payments.state_machines import PaymentState


class Payment(UUIDPrimaryKeyMixin, VersionedMixin, BaseModel):
    """
    Payment held in custody until released, refunded or failed.

    State Flow:
        PENDING -> APPROVED -> RELEASED
        PENDING -> FAILED
        APPROVED | RELEASED -> DISPUTED
        APPROVED | RELEASED | PARTIALLY_REFUNDED | DISPUTED
            -> REFUNDED | PARTIALLY_REFUNDED

    Fields:
        booking: Booking this payment pays for
        client: User who paid
        professional: User who receives the net amount on release
        amount_total: Amount charged to the client
        platform_commission: Platform cut, rounded to whole currency units
        professional_amount: amount_total - platform_commission
        amount_refunded: Sum of all refunds processed so far
        state: Current custody state (protected FSM field)
        provider_payment_id: Correlation id assigned by the payment provider
        preference_id: Provider checkout preference id (optional)
        scheduled_release_at: When the scheduler may release the funds
        metadata: Provider-specific details
        receipt_url: Frontend link to the payment receipt, once generated

    Note:
        A booking has at most one payment that has not failed.
        The version field auto-increments on every save. Ledger operations
        lock the row with select_for_update() and re-check state before
        applying a transition.
    """

    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.PROTECT,
        related_name="payments",
    )
    client = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="payments_made",
    )
    professional = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="payments_received",
    )

    amount_total = models.DecimalField(max_digits=12, decimal_places=2)
    platform_commission = models.DecimalField(max_digits=12, decimal_places=2)
    professional_amount = models.DecimalField(max_digits=12, decimal_places=2)
    amount_refunded = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0"),
    )
    currency = models.CharField(max_length=3, default="ars")

    state = FSMField(
        default=PaymentState.PENDING,
        choices=PaymentState.choices,
        protected=True,
        db_index=True,
    )

    provider_payment_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        unique=True,
        help_text="Payment id assigned by the provider on approval",
    )
    preference_id = models.CharField(max_length=255, blank=True, default="")
    failure_reason = models.CharField(max_length=255, blank=True, default="")
    metadata = models.JSONField(default=dict, blank=True)

    scheduled_release_at = models.DateTimeField(null=True, blank=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    released_at = models.DateTimeField(null=True, blank=True)
    disputed_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)
    failed_at = models.DateTimeField(null=True, blank=True)

    receipt_url = models.URLField(max_length=500, blank=True, default="")
    receipt_generated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["state", "scheduled_release_at"],
                name="payment_release_due_idx",
            ),
            models.Index(fields=["professional", "state"], name="payment_pro_state_idx"),
            models.Index(fields=["client", "created_at"], name="payment_client_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(amount_total__gt=0),
                name="payment_amount_positive",
            ),
            models.CheckConstraint(
                check=models.Q(professional_amount__gte=0)
                & models.Q(professional_amount__lte=models.F("amount_total")),
                name="payment_net_within_total",
            ),
            models.CheckConstraint(
                check=models.Q(amount_refunded__gte=0)
                & models.Q(amount_refunded__lte=models.F("amount_total")),
                name="payment_refund_within_total",
            ),
            models.UniqueConstraint(
                fields=["booking"],
                condition=~models.Q(state=PaymentState.FAILED),
                name="payment_one_live_per_booking",
            ),
        ]

    def __str__(self) -> str:
        return f"Payment({self.id}, {self.state}, {self.amount_total} {self.currency.upper()})"

    @property
    def refundable_amount(self) -> Decimal:
        """Amount that can still be refunded to the client."""
        return self.amount_total - self.amount_refunded

    def is_party(self, user) -> bool:
        return user.pk in (self.client_id, self.professional_id)

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=state,
        source=PaymentState.PENDING,
        target=PaymentState.APPROVED,
    )
    def approve(self, release_delay: timedelta):
        """
        Provider approved the charge; funds are now in custody.

        Transition: PENDING -> APPROVED
        """
        self.approved_at = timezone.now()
        self.scheduled_release_at = self.approved_at + release_delay

    @transition(
        field=state,
        source=PaymentState.PENDING,
        target=PaymentState.FAILED,
    )
    def fail(self, reason: str = ""):
        """
        Provider rejected the charge.

        Transition: PENDING -> FAILED
        """
        self.failed_at = timezone.now()
        self.failure_reason = reason[:255]

    @transition(
        field=state,
        source=PaymentState.APPROVED,
        target=PaymentState.RELEASED,
    )
    def release(self):
        """
        Move custody to the professional's available balance.

        Transition: APPROVED -> RELEASED
        """
        self.released_at = timezone.now()

    @transition(
        field=state,
        source=PaymentState.disputable_states(),
        target=PaymentState.DISPUTED,
    )
    def mark_disputed(self):
        """
        Freeze the payment pending an administrative decision.

        Transition: APPROVED | RELEASED -> DISPUTED
        """
        self.disputed_at = timezone.now()

    @transition(
        field=state,
        source=PaymentState.refundable_states(),
        target=PaymentState.REFUNDED,
    )
    def refund_full(self, amount: Decimal):
        """
        Return the whole remaining balance to the client.

        Transition: APPROVED | RELEASED | PARTIALLY_REFUNDED | DISPUTED -> REFUNDED
        """
        self.amount_refunded += amount
        self.refunded_at = timezone.now()

    @transition(
        field=state,
        source=PaymentState.refundable_states(),
        target=PaymentState.PARTIALLY_REFUNDED,
    )
    def refund_partial(self, amount: Decimal):
        """
        Return part of the remaining balance to the client.

        Transition: APPROVED | RELEASED | PARTIALLY_REFUNDED | DISPUTED
            -> PARTIALLY_REFUNDED
        """
        self.amount_refunded += amount
        self.refunded_at = timezone.now()
