"""
Available-funds accounting for professionals.

Balances are recomputed from released payments and withdrawals on every
call; there is no cached running total to drift out of sync.
"""

from __future__ import annotations

from decimal import Decimal

from django.db.models import Sum

from core.services import BaseService
from payments.models import Payment, Withdrawal
from payments.state_machines import PaymentState, WithdrawalState


class FundsService(BaseService):
    """Read-only balance queries."""

    @classmethod
    def calculate_available_funds(cls, professional_id) -> Decimal:
        """
        Sum of the net amounts of a professional's released payments.

        Payments in any other state (pending, approved, disputed, refunded,
        partially refunded, failed) do not contribute.
        """
        total = Payment.objects.filter(
            professional_id=professional_id,
            state=PaymentState.RELEASED,
        ).aggregate(total=Sum("professional_amount"))["total"]
        return total if total is not None else Decimal("0")

    @classmethod
    def calculate_withdrawn_funds(cls, professional_id) -> Decimal:
        """Sum of withdrawals that are processing or completed."""
        total = (
            Withdrawal.objects.filter(professional_id=professional_id)
            .exclude(state=WithdrawalState.FAILED)
            .aggregate(total=Sum("amount"))["total"]
        )
        return total if total is not None else Decimal("0")

    @classmethod
    def calculate_withdrawable_funds(cls, professional_id) -> Decimal:
        """Released funds not yet taken out by a withdrawal."""
        return cls.calculate_available_funds(professional_id) - cls.calculate_withdrawn_funds(
            professional_id
        )
