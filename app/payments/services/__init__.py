"""
Payment services.

Exports:
    PaymentEventLog: Best-effort append-only audit trail
    PaymentLedgerService: Payment creation and custody transitions
    DisputeService: Dispute intake and listing
    RefundService: Full and partial refunds
    FundsService: Professional available and withdrawable balance
    WithdrawalService: Payouts of released funds
"""

from payments.services.dispute_service import DisputeService
from payments.services.event_log import PaymentEventLog
from payments.services.funds_service import FundsService
from payments.services.ledger_service import (
    PaymentLedgerService,
    PaymentStatus,
    TransitionOutcome,
    calculate_commission,
)
from payments.services.refund_service import RefundOutcome, RefundService
from payments.services.withdrawal_service import WithdrawalService

__all__ = [
    "DisputeService",
    "FundsService",
    "PaymentEventLog",
    "PaymentLedgerService",
    "PaymentStatus",
    "RefundOutcome",
    "RefundService",
    "TransitionOutcome",
    "WithdrawalService",
    "calculate_commission",
]
