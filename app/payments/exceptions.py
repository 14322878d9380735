"""
Payment-specific exceptions.

Exception Hierarchy:
    ExternalProviderError - Failures talking to the payment provider
        (inherits ExternalServiceError)
        ├── ProviderPaymentNotFoundError - Provider has no such payment
        └── WebhookSignatureError - Notification signature missing or wrong
    LockAcquisitionError - Distributed lock not acquired (inherits ConflictError)

Usage:
    from payments.exceptions import ExternalProviderError

    raise ExternalProviderError(
        "Provider notification is missing data.id",
        details={"payload_keys": sorted(payload)},
    )
"""

from __future__ import annotations

from core.exceptions import ConflictError, ExternalServiceError


class ExternalProviderError(ExternalServiceError):
    """
    Raised when the payment provider misbehaves.

    Covers malformed notifications as well as provider API failures.
    Never retried synchronously; the provider redelivers notifications
    and the scheduler re-scans every cycle.
    """

    default_error_code: str = "EXTERNAL_PROVIDER_ERROR"


class ProviderPaymentNotFoundError(ExternalProviderError):
    """
    Raised when the provider does not know the payment id it was asked about.

    A notification naming such an id did not come from the provider, so
    it is rejected rather than retried.
    """

    default_error_code: str = "PROVIDER_PAYMENT_NOT_FOUND"
    http_status: int = 400


class WebhookSignatureError(ExternalProviderError):
    """Raised when a notification's signature header is missing or does not match."""

    default_error_code: str = "INVALID_SIGNATURE"
    http_status: int = 400


class LockAcquisitionError(ConflictError):
    """
    Raised when a distributed lock cannot be acquired.

    Example:
        lock = DistributedLock("escrow-release", ttl=600, blocking=False)
        lock.acquire()  # raises if another worker holds it
    """

    default_error_code: str = "LOCK_ACQUISITION_FAILED"
