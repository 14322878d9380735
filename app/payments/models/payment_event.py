"""
Append-only audit trail of payment lifecycle events.
"""

from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin


class PaymentEvent(UUIDPrimaryKeyMixin, models.Model):
    """
    One entry in a payment's audit trail.

    Rows are only ever inserted. event_type is a free-form tag (see
    payments.state_machines.PaymentEventType for the tags this project
    writes) and data holds the JSON payload for reconstruction.
    """

    payment = models.ForeignKey(
        "payments.Payment",
        on_delete=models.CASCADE,
        related_name="events",
    )
    event_type = models.CharField(max_length=64, db_index=True)
    data = models.JSONField(default=dict, blank=True)
    processed = models.BooleanField(
        default=True,
        help_text="Whether downstream consumers have handled this event",
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["payment", "created_at"], name="payment_event_trail_idx"),
        ]

    def __str__(self) -> str:
        return f"PaymentEvent({self.event_type}, payment={self.payment_id})"
