"""
Base service layer patterns for business logic encapsulation.

This module provides foundational patterns for the service layer:
- ServiceResult: Standard result wrapper for consistent success/failure handling
- BaseService: Base class with common service utilities
- ErrorCode: Machine-readable failure codes shared by all services

Pattern Comparison:
    - ServiceResult: Use for expected failures (validation, business rules)
    - Exceptions: Use for unexpected failures (database errors, bugs)

Usage:
    from core.services import BaseService, ErrorCode, ServiceResult

    class DisputeService(BaseService):
        @classmethod
        def create_dispute(cls, payment_id, user, ...) -> ServiceResult[Dispute]:
            payment = Payment.objects.filter(id=payment_id).first()
            if payment is None:
                return ServiceResult.failure("Payment not found", ErrorCode.NOT_FOUND)

            with cls.atomic():
                ...

            cls.get_logger().info("Dispute opened", extra={...})
            return ServiceResult.success(dispute)

    # In view
    result = DisputeService.create_dispute(...)
    if not result.success:
        return service_failure_response(result)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import DatabaseError, transaction

from core.exceptions import PersistenceError

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

# Generic type for ServiceResult data
T = TypeVar("T")


class ErrorCode:
    """Failure codes carried by ServiceResult.error_code."""

    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    INVALID_STATE = "INVALID_STATE"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    VALIDATION_ERROR = "VALIDATION_ERROR"


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Provides consistent success/failure handling without exceptions.
    Use this for expected failures (validation errors, business rule violations).

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful (None if failed)
        error: Error message if failed (None if successful)
        error_code: Machine-readable error code for client handling
        errors: Field-level errors for validation failures

    Usage:
        return ServiceResult.success(payment)
        return ServiceResult.failure("Payment not found", ErrorCode.NOT_FOUND)

        result = PaymentLedgerService.release(payment_id)
        if result.success:
            payment = result.data.payment
        else:
            print(f"Error: {result.error} ({result.error_code})")
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        """Create a successful result."""
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code (see ErrorCode)
            errors: Field-level errors (for validation failures)
        """
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
        )

    def to_response(self) -> dict[str, Any]:
        """
        Convert a failed result to API response format.

        Returns:
            Dict with success status and error details
        """
        if self.success:
            return {"success": True, "data": self.data}

        response: dict[str, Any] = {
            "success": False,
            "error": self.error,
        }
        if self.error_code:
            response["error_code"] = self.error_code
        if self.errors:
            response["errors"] = self.errors
        return response

    def __bool__(self) -> bool:
        """Allow using result in boolean context."""
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Provides common utilities for services:
    - Logging setup per service
    - Database transaction management

    Design Notes:
        - Use @staticmethod or @classmethod (no instance state)
        - Use ServiceResult for expected failures
        - Raise exceptions for unexpected failures
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get a logger named after the service class."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        Thin wrapper around transaction.atomic() that converts store-level
        failures into PersistenceError. Nested use creates a savepoint.

        Example:
            with cls.atomic():
                payment = Payment.objects.select_for_update().get(id=payment_id)
                payment.release()
                payment.save()

        Raises:
            PersistenceError: If the database raises during the block
        """
        try:
            with transaction.atomic():
                yield
        except DatabaseError as exc:
            cls.get_logger().error(
                f"Database failure in {cls.__name__}: {exc}",
                exc_info=True,
            )
            raise PersistenceError(
                "Data store operation failed",
                details={"service": cls.__name__},
            ) from exc
