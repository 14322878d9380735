"""
Payment provider notification handlers.

The provider posts a notification whenever a charge changes status:

    {"type": "payment", "data": {"id": "<provider payment id>"}}

Only type and data.id are read from the body. parse_notification()
validates that shape; dispatch_notification() fetches the payment from the
provider and routes it by the provider-reported status to the ledger,
using the provider-reported external_reference as our Payment id. Unknown
types, statuses and references are acknowledged without action so the
provider stops redelivering them.

Usage:
    from payments.webhooks.handlers import dispatch_notification, parse_notification

    notification = parse_notification(payload)
    result = dispatch_notification(notification)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from core.services import ServiceResult
from payments.exceptions import ExternalProviderError
from payments.provider import PaymentProviderClient, ProviderPayment
from payments.services import PaymentLedgerService

logger = logging.getLogger(__name__)

PAYMENT_NOTIFICATION_TYPE = "payment"


@dataclass(frozen=True)
class ProviderNotification:
    """Validated provider notification."""

    type: str
    provider_payment_id: str


def parse_notification(payload) -> ProviderNotification:
    """
    Validate a decoded notification body.

    Raises:
        ExternalProviderError: If the payload is not a notification object
            or misses data.id
    """
    if not isinstance(payload, dict):
        raise ExternalProviderError("Provider notification must be a JSON object")

    data = payload.get("data")
    if not isinstance(data, dict) or not data.get("id"):
        raise ExternalProviderError(
            "Provider notification is missing data.id",
            details={"payload_keys": sorted(payload)},
        )

    return ProviderNotification(
        type=str(payload.get("type") or ""),
        provider_payment_id=str(data["id"]),
    )


# =============================================================================
# Handler Registry
# =============================================================================


STATUS_HANDLERS: dict[str, Callable[[ProviderPayment], ServiceResult]] = {}


def register_handler(*statuses: str) -> Callable:
    """
    Decorator to register a handler for one or more provider statuses.

    Usage:
        @register_handler("approved")
        def handle_approved(provider_payment: ProviderPayment) -> ServiceResult:
            ...
    """

    def decorator(func: Callable[[ProviderPayment], ServiceResult]) -> Callable:
        for status in statuses:
            STATUS_HANDLERS[status] = func
        return func

    return decorator


def dispatch_notification(
    notification: ProviderNotification,
    client: PaymentProviderClient | None = None,
) -> ServiceResult | None:
    """
    Look the payment up at the provider and route it to its handler.

    Returns:
        The handler's ServiceResult, or None if the notification needs no action

    Raises:
        ExternalProviderError: The provider lookup failed (see
            PaymentProviderClient.fetch_payment)
    """
    log_extra = {"provider_payment_id": notification.provider_payment_id}

    if notification.type != PAYMENT_NOTIFICATION_TYPE:
        logger.info(
            f"Ignoring provider notification of type '{notification.type}'",
            extra=log_extra,
        )
        return None

    provider_payment = (client or PaymentProviderClient()).fetch_payment(
        notification.provider_payment_id
    )
    log_extra["payment_id"] = provider_payment.external_reference

    if provider_payment.payment_id is None:
        logger.info(
            "Provider payment has no usable external_reference",
            extra=log_extra,
        )
        return None

    handler = STATUS_HANDLERS.get(provider_payment.status)
    if handler is None:
        logger.info(
            f"No handler for provider status '{provider_payment.status}'",
            extra=log_extra,
        )
        return None

    logger.info(
        f"Dispatching provider status '{provider_payment.status}'",
        extra=log_extra,
    )
    return handler(provider_payment)


@register_handler("approved")
def handle_payment_approved(provider_payment: ProviderPayment) -> ServiceResult:
    return PaymentLedgerService.mark_approved(
        provider_payment.payment_id,
        provider_payment_id=provider_payment.id,
    )


@register_handler("rejected", "cancelled")
def handle_payment_rejected(provider_payment: ProviderPayment) -> ServiceResult:
    return PaymentLedgerService.mark_failed(
        provider_payment.payment_id,
        reason=f"Provider status: {provider_payment.status}",
        provider_payment_id=provider_payment.id,
    )
