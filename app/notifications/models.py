"""
Notification models.

A Notification is the in-app record handed off to the recipient. Push or
email delivery of these records is outside this project; the store is the
hand-off point.

Fields are immutable once created except is_read.
"""

from django.conf import settings
from django.db import models

from core.models import BaseModel


class NotificationKind(models.TextChoices):
    """Business events that produce notifications."""

    PAYMENT_APPROVED = "payment_approved", "Payment approved"
    FUNDS_RELEASE_UPCOMING = "funds_release_upcoming", "Funds release upcoming"
    FUNDS_RELEASED = "funds_released", "Funds released"
    DISPUTE_OPENED = "dispute_opened", "Dispute opened"
    REFUND_PROCESSED = "refund_processed", "Refund processed"
    WITHDRAWAL_REQUESTED = "withdrawal_requested", "Withdrawal requested"
    RECURRING_SERVICES_SCHEDULED = (
        "recurring_services_scheduled",
        "Recurring services scheduled",
    )
    RECURRING_SERVICE_CANCELLED = (
        "recurring_service_cancelled",
        "Recurring service cancelled",
    )


class Notification(BaseModel):
    """
    Individual notification record for a user.

    Fields:
        kind: Business event that produced the notification
        recipient: User receiving the notification (scopes all queries)
        actor: Optional user who triggered the notification
        title: Fully rendered title string
        body: Fully rendered body string
        data: Arbitrary JSON context (payment id, schedule id, counts)
        is_read: Whether recipient has read this notification
        idempotency_key: Optional key preventing duplicate hand-offs

    Note:
        - recipient CASCADE: Notifications deleted when user deleted
        - actor SET_NULL: Notification preserved when actor deleted
    """

    kind = models.CharField(
        max_length=50,
        choices=NotificationKind.choices,
        db_index=True,
        help_text="Business event that produced this notification",
    )

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
        help_text="User receiving this notification",
    )

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="triggered_notifications",
        help_text="User who triggered this notification (optional)",
    )

    title = models.CharField(
        max_length=500,
        help_text="Fully rendered notification title",
    )

    body = models.TextField(
        blank=True,
        default="",
        help_text="Fully rendered notification body",
    )

    data = models.JSONField(
        default=dict,
        blank=True,
        help_text="Arbitrary context data",
    )

    is_read = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether recipient has read this notification",
    )

    idempotency_key = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="Idempotency key to prevent duplicate notifications",
    )

    class Meta:
        db_table = "notifications_notification"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["recipient", "is_read", "-created_at"],
                name="notif_recipient_unread_idx",
            ),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["idempotency_key"],
                name="notif_idempotency_key_unique",
                condition=models.Q(idempotency_key__isnull=False),
            ),
        ]

    def __str__(self) -> str:
        read_status = "read" if self.is_read else "unread"
        return f"Notification({self.kind}) -> User {self.recipient_id} [{read_status}]"
