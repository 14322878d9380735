"""
Base exception classes for application-wide error handling.

Expected business-rule failures are returned from services as
ServiceResult failures (see core.services). The exceptions below are for
faults that propagate: they carry a machine-readable error code and an
HTTP status so the API boundary can render them.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ConflictError - Resource busy or in a conflicting state
    ├── ExternalServiceError - Third-party service failures
    └── PersistenceError - Store-level failure (database unavailable, etc.)

Usage:
    from core.exceptions import ExternalServiceError

    raise ExternalServiceError(
        "Provider lookup failed",
        details={"provider_payment_id": provider_payment_id},
    )

    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=e.http_status)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, identifiers, etc.)
    """

    default_error_code: str = "APPLICATION_ERROR"
    http_status: int = 500

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Example:
            {
                "error": "Provider lookup failed",
                "error_code": "EXTERNAL_PROVIDER_ERROR",
                "details": {"provider_payment_id": "..."}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ConflictError(BaseApplicationError):
    """
    Raised when operation conflicts with current resource state.

    HTTP 409 Conflict is the appropriate status for these errors.
    """

    default_error_code: str = "CONFLICT"
    http_status: int = 409


class ExternalServiceError(BaseApplicationError):
    """
    Raised when an external service call fails.

    Log the original error for debugging but don't expose internal
    details to clients in production.
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
    http_status: int = 502


class PersistenceError(BaseApplicationError):
    """
    Raised when the data store fails underneath a service operation.

    Wraps django.db.DatabaseError so callers outside the service layer
    handle one application exception type.
    """

    default_error_code: str = "PERSISTENCE_ERROR"
    http_status: int = 503
