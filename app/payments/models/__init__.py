"""
Payment models.

Exports:
    Payment: Custody lifecycle of one paid booking
    PaymentEvent: Append-only audit trail entry
    Dispute: Contest raised by a payment party
    Withdrawal: Payout of released funds to a professional
"""

from payments.models.dispute import Dispute
from payments.models.payment import Payment
from payments.models.payment_event import PaymentEvent
from payments.models.withdrawal import Withdrawal

__all__ = [
    "Dispute",
    "Payment",
    "PaymentEvent",
    "Withdrawal",
]
