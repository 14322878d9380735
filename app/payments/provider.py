"""
Payment provider API client.

Notification bodies are not trusted for payment status. A webhook only
tells us which provider payment changed; the status and the
external_reference (our Payment id) are read back from the provider with
fetch_payment().

Notifications may also carry a signature. When
PAYMENT_PROVIDER_WEBHOOK_SECRET is set, verify_webhook_signature() checks
the x-signature header against an HMAC-SHA256 of:

    id:<data.id>;request-id:<x-request-id header>;ts:<ts>;

Usage:
    from payments.provider import PaymentProviderClient, verify_webhook_signature

    verify_webhook_signature(data_id, request.headers.get("x-signature", ""),
                             request.headers.get("x-request-id", ""))
    provider_payment = PaymentProviderClient().fetch_payment(data_id)
    provider_payment.status  # "approved", "rejected", ...
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import uuid
from dataclasses import dataclass
from urllib.parse import quote

import requests
from django.conf import settings

from payments.exceptions import (
    ExternalProviderError,
    ProviderPaymentNotFoundError,
    WebhookSignatureError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderPayment:
    """
    Payment as reported by the provider.

    Attributes:
        id: Provider payment id
        status: Lower-cased provider status ("approved", "rejected", ...)
        external_reference: Reference we attached at checkout (our Payment id)
    """

    id: str
    status: str
    external_reference: str

    @property
    def payment_id(self) -> uuid.UUID | None:
        """Our Payment id, or None if the reference is not one of ours."""
        try:
            return uuid.UUID(self.external_reference)
        except ValueError:
            return None


class PaymentProviderClient:
    """Read-only client for the provider's payments API."""

    def __init__(
        self,
        base_url: str | None = None,
        access_token: str | None = None,
        timeout: int | None = None,
    ):
        self.base_url = (base_url or settings.PAYMENT_PROVIDER_API_URL).rstrip("/")
        self.access_token = (
            access_token if access_token is not None else settings.PAYMENT_PROVIDER_ACCESS_TOKEN
        )
        self.timeout = timeout or settings.PAYMENT_PROVIDER_TIMEOUT_SECONDS

    def _get_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
        }

    def fetch_payment(self, provider_payment_id: str) -> ProviderPayment:
        """
        Look up a payment's current status at the provider.

        Raises:
            ProviderPaymentNotFoundError: The provider has no such payment
            ExternalProviderError: Network failure, non-200 answer or an
                unusable response body
        """
        url = f"{self.base_url}/v1/payments/{quote(str(provider_payment_id), safe='')}"
        log_extra = {"provider_payment_id": str(provider_payment_id)}

        try:
            response = requests.get(url, headers=self._get_headers(), timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"Payment provider request failed: {e}", extra=log_extra)
            raise ExternalProviderError(
                "Payment provider is unreachable",
                details=log_extra,
            ) from e

        if response.status_code == 404:
            raise ProviderPaymentNotFoundError(
                "Payment provider does not know this payment",
                details=log_extra,
            )

        if response.status_code != 200:
            logger.error(
                f"Payment provider lookup failed with status {response.status_code}",
                extra={**log_extra, "status_code": response.status_code},
            )
            raise ExternalProviderError(
                f"Payment provider answered {response.status_code}",
                details={**log_extra, "status_code": response.status_code},
            )

        try:
            body = response.json()
        except ValueError as e:
            raise ExternalProviderError(
                "Payment provider returned invalid JSON",
                details=log_extra,
            ) from e

        if not isinstance(body, dict) or body.get("id") is None:
            raise ExternalProviderError(
                "Payment provider response has no payment id",
                details=log_extra,
            )

        return ProviderPayment(
            id=str(body["id"]),
            status=str(body.get("status") or "").lower(),
            external_reference=str(body.get("external_reference") or ""),
        )


def verify_webhook_signature(
    data_id: str,
    signature_header: str,
    request_id: str,
    secret: str | None = None,
) -> None:
    """
    Check a notification's x-signature header.

    Does nothing when no webhook secret is configured.

    Raises:
        WebhookSignatureError: Header missing, malformed or not matching
    """
    secret = settings.PAYMENT_PROVIDER_WEBHOOK_SECRET if secret is None else secret
    if not secret:
        return

    parts = {}
    for part in signature_header.split(","):
        key, _, value = part.strip().partition("=")
        if value:
            parts[key] = value

    timestamp = parts.get("ts")
    received = parts.get("v1")
    if not timestamp or not received:
        raise WebhookSignatureError("Notification signature is missing")

    manifest = f"id:{str(data_id).lower()};request-id:{request_id};ts:{timestamp};"
    expected = hmac.new(secret.encode(), manifest.encode(), hashlib.sha256).hexdigest()
    if not hmac.compare_digest(expected, received):
        raise WebhookSignatureError(
            "Notification signature does not match",
            details={"provider_payment_id": str(data_id)},
        )
