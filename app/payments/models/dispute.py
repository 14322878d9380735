"""
Dispute model.

A dispute is opened by either party of a payment and freezes the payment
in DISPUTED until an administrator decides, or until a refund
resolves it.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone
from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from payments.state_machines import DisputeReason, DisputeState


class Dispute(UUIDPrimaryKeyMixin, BaseModel):
    """
    A contest over a payment.

    State Flow:
        OPEN -> UNDER_REVIEW -> RESOLVED
        OPEN -> RESOLVED

    Constraints:
        At most one active (OPEN or UNDER_REVIEW) dispute per payment.
    """

    payment = models.ForeignKey(
        "payments.Payment",
        on_delete=models.PROTECT,
        related_name="disputes",
    )
    opened_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="disputes_opened",
    )
    reason = models.CharField(max_length=40, choices=DisputeReason.choices)
    description = models.TextField()
    state = FSMField(
        default=DisputeState.OPEN,
        choices=DisputeState.choices,
        protected=True,
        db_index=True,
    )
    resolution = models.TextField(blank=True, default="")
    resolved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["payment"],
                condition=models.Q(state__in=DisputeState.active_states()),
                name="dispute_one_active_per_payment",
            ),
        ]

    def __str__(self) -> str:
        return f"Dispute({self.id}, {self.state}, payment={self.payment_id})"

    @transition(
        field=state,
        source=DisputeState.OPEN,
        target=DisputeState.UNDER_REVIEW,
    )
    def start_review(self):
        """An administrator picked the dispute up."""

    @transition(
        field=state,
        source=DisputeState.active_states(),
        target=DisputeState.RESOLVED,
    )
    def resolve(self, resolution: str = ""):
        self.resolution = resolution
        self.resolved_at = timezone.now()
