"""
Notification service.

Business services never depend on a notification being stored: they call
NotificationService.notify(), which hands the notification off inside a
savepoint and logs (rather than raises) any failure.

Usage:
    from notifications.services import NotificationService
    from notifications.models import NotificationKind

    NotificationService.notify(
        recipient=payment.professional,
        kind=NotificationKind.REFUND_PROCESSED,
        title="Refund processed",
        body="A refund of 500.00 was issued on one of your payments.",
        data={"payment_id": str(payment.id)},
        actor=payment.client,
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import DatabaseError, IntegrityError

from core.exceptions import PersistenceError
from core.services import BaseService, ErrorCode, ServiceResult
from notifications.models import Notification, NotificationKind

if TYPE_CHECKING:
    from authentication.models import User


class NotificationService(BaseService):
    """Create in-app notifications for users."""

    @classmethod
    def create_notification(
        cls,
        recipient: User,
        kind: str,
        title: str,
        body: str = "",
        data: dict | None = None,
        actor: User | None = None,
        idempotency_key: str | None = None,
    ) -> ServiceResult[Notification]:
        """
        Create a new notification for a user.

        Args:
            recipient: User receiving the notification
            kind: NotificationKind value
            title: Rendered title
            body: Rendered body
            data: JSON context for clients (ids, counts)
            actor: User who triggered the notification (optional)
            idempotency_key: Optional key to prevent duplicate notifications

        Returns:
            ServiceResult with created Notification if successful

        Error codes:
            VALIDATION_ERROR: Unknown notification kind
            DUPLICATE: Notification with this idempotency_key already exists
        """
        if kind not in NotificationKind.values:
            return ServiceResult.failure(
                f"Unknown notification kind: {kind}",
                error_code=ErrorCode.VALIDATION_ERROR,
            )

        try:
            with cls.atomic():
                notification = Notification.objects.create(
                    kind=kind,
                    recipient=recipient,
                    actor=actor,
                    title=title,
                    body=body,
                    data=data or {},
                    idempotency_key=idempotency_key,
                )
        except PersistenceError as exc:
            if idempotency_key and isinstance(exc.__cause__, IntegrityError):
                cls.get_logger().info(
                    f"Duplicate notification prevented: idempotency_key={idempotency_key}"
                )
                return ServiceResult.failure(
                    f"Notification with idempotency_key already exists: {idempotency_key}",
                    error_code="DUPLICATE",
                )
            raise

        cls.get_logger().debug(
            f"Notification {kind} created for user {recipient.pk}",
            extra={"notification_id": notification.pk, "kind": kind},
        )
        return ServiceResult.success(notification)

    @classmethod
    def notify(cls, recipient: User, kind: str, title: str, **kwargs) -> Notification | None:
        """
        Best-effort hand-off used by business services.

        Never raises for store failures: the triggering operation must not
        fail because a notification could not be recorded.

        Returns:
            The created Notification, or None if it was not recorded
        """
        try:
            result = cls.create_notification(recipient, kind, title, **kwargs)
        except (PersistenceError, DatabaseError) as exc:
            cls.get_logger().warning(
                f"Notification {kind} for user {recipient.pk} dropped: {exc}",
                extra={"kind": kind, "recipient_id": recipient.pk},
            )
            return None

        if not result.success:
            cls.get_logger().warning(
                f"Notification {kind} for user {recipient.pk} not created: {result.error}",
                extra={"kind": kind, "recipient_id": recipient.pk},
            )
            return None
        return result.data
