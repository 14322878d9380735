"""
Payment provider webhook endpoint.

The provider keeps redelivering until it gets a 2xx, so processed,
ignored and rule-rejected notifications all answer 200. Malformed or
badly signed payloads, and ids the provider does not know, answer 400.
Provider lookup failures answer 502 and store failures propagate as 5xx
so the provider retries later.
"""

from __future__ import annotations

import json
import logging

from django.http import HttpRequest, HttpResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from payments.exceptions import (
    ExternalProviderError,
    ProviderPaymentNotFoundError,
    WebhookSignatureError,
)
from payments.provider import verify_webhook_signature
from payments.webhooks.handlers import dispatch_notification, parse_notification

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def provider_webhook(request: HttpRequest) -> HttpResponse:
    """
    Receive a payment provider notification and apply it to the ledger.

    The body only names the provider payment; its status and our payment
    id are fetched from the provider before anything changes.

    Returns:
        HttpResponse with status:
        - 200: Notification processed, ignored, or rejected by business rules
        - 400: Body is not a valid notification, signature is invalid, or
          the provider does not know the payment
        - 502: Provider lookup failed
    """
    try:
        payload = json.loads(request.body or b"{}")
        notification = parse_notification(payload)
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("Provider webhook body is not valid JSON")
        return HttpResponse("Invalid payload", status=400)
    except ExternalProviderError as e:
        logger.warning(
            f"Rejected provider notification: {e.message}",
            extra={"details": e.details},
        )
        return HttpResponse("Invalid notification", status=400)

    try:
        verify_webhook_signature(
            notification.provider_payment_id,
            request.headers.get("x-signature", ""),
            request.headers.get("x-request-id", ""),
        )
    except WebhookSignatureError as e:
        logger.warning(
            "Webhook signature verification failed",
            extra={"error": e.message, "provider_payment_id": notification.provider_payment_id},
        )
        return HttpResponse("Invalid signature", status=400)

    try:
        result = dispatch_notification(notification)
    except ProviderPaymentNotFoundError:
        logger.warning(
            "Notification names a payment the provider does not know",
            extra={"provider_payment_id": notification.provider_payment_id},
        )
        return HttpResponse("Unknown provider payment", status=400)
    except ExternalProviderError as e:
        logger.error(
            f"Provider lookup failed: {e.message}",
            extra={"provider_payment_id": notification.provider_payment_id},
        )
        return HttpResponse("Provider unavailable", status=502)

    if result is None:
        return HttpResponse("Ignored", status=200)

    if not result.success:
        logger.warning(
            f"Provider notification not applied: {result.error}",
            extra={
                "provider_payment_id": notification.provider_payment_id,
                "error_code": result.error_code,
            },
        )
        return HttpResponse("Not applied", status=200)

    return HttpResponse("Processed", status=200)
