"""
Withdrawal model.

A professional moves released funds out of the platform to a bank account
identified by CVU and alias. The transfer itself happens outside the
platform; this row records the request and its outcome.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone
from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from payments.state_machines import WithdrawalState


class Withdrawal(UUIDPrimaryKeyMixin, BaseModel):
    """
    A request to pay released funds out to a professional.

    State Flow:
        PROCESSING -> COMPLETED
        PROCESSING -> FAILED
    """

    professional = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="withdrawals",
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default="ars")
    cvu = models.CharField(max_length=22)
    alias = models.CharField(max_length=50)
    state = FSMField(
        default=WithdrawalState.PROCESSING,
        choices=WithdrawalState.choices,
        protected=True,
        db_index=True,
    )
    estimated_arrival = models.DateTimeField()
    completed_at = models.DateTimeField(null=True, blank=True)
    failure_reason = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["professional", "state"], name="withdrawal_pro_state_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(amount__gt=0),
                name="withdrawal_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"Withdrawal({self.id}, {self.state}, {self.amount} {self.currency.upper()})"

    @property
    def masked_cvu(self) -> str:
        return f"***{self.cvu[-4:]}"

    @transition(
        field=state,
        source=WithdrawalState.PROCESSING,
        target=WithdrawalState.COMPLETED,
    )
    def complete(self):
        """The bank transfer landed."""
        self.completed_at = timezone.now()

    @transition(
        field=state,
        source=WithdrawalState.PROCESSING,
        target=WithdrawalState.FAILED,
    )
    def fail(self, reason: str = ""):
        self.failure_reason = reason[:255]
