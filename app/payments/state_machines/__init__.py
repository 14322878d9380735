"""
State machine enums for payment models.
"""

from payments.state_machines.states import (
    DisputeReason,
    DisputeState,
    PaymentEventType,
    PaymentState,
    WithdrawalState,
)

__all__ = [
    "DisputeReason",
    "DisputeState",
    "PaymentEventType",
    "PaymentState",
    "WithdrawalState",
]
