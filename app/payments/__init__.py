"""
Payments app: escrow ledger for service bookings.

This app handles:
- Payment creation with platform commission split
- Provider approval via webhook, then custody until release
- Release by client confirmation or by the scheduled escrow pass
- Disputes that freeze a payment and refunds that settle it
- Upcoming release reminders, payment receipts and withdrawals of released funds
- An append-only audit trail of payment events

Related apps:
    - bookings: The service a payment is for
    - notifications: Party notifications on payment events

Usage:
    from payments.services import PaymentLedgerService

    result = PaymentLedgerService.create_payment(
        booking_id=booking.id, amount=Decimal("150.00"), client=request.user
    )
    PaymentLedgerService.mark_approved(result.data.id, provider_payment_id="mp-123")
"""
