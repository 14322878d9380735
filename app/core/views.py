"""
Core views providing infrastructure endpoints and HTTP error mapping.

This module contains views that are not part of the business domain but are
essential for application infrastructure, such as health checks, plus the
helpers every API view uses to turn service failures into responses.
"""

import logging

from django.db import DatabaseError, connection
from django.http import JsonResponse
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.exceptions import BaseApplicationError
from core.services import ErrorCode

logger = logging.getLogger(__name__)

ERROR_CODE_STATUS = {
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.INVALID_STATE: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_AMOUNT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
}


def service_failure_response(result) -> Response:
    """
    Build a DRF response for a failed ServiceResult.

    Unknown error codes map to 400.
    """
    http_status = ERROR_CODE_STATUS.get(result.error_code, status.HTTP_400_BAD_REQUEST)
    return Response(result.to_response(), status=http_status)


def api_exception_handler(exc, context):
    """
    DRF exception handler that understands BaseApplicationError.

    Application exceptions escaping a view are rendered with their own
    error code and HTTP status; everything else falls through to DRF.
    """
    if isinstance(exc, BaseApplicationError):
        logger.warning(
            f"Application error in {context.get('view').__class__.__name__}: {exc}",
            extra={"error_code": exc.error_code},
        )
        return Response(
            {"success": False, **exc.to_dict()},
            status=exc.http_status,
        )
    return exception_handler(exc, context)


def health_check(request):
    """
    Health check endpoint for monitoring and orchestration.

    Returns:
        JsonResponse with status and component health:
        - status: "healthy" or "unhealthy"
        - database: "connected" or "disconnected"
        - cache: "connected" or "disconnected"

    HTTP Status Codes:
        200: All systems operational
        503: Database unreachable
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "cache": "unknown",
    }
    is_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except DatabaseError:
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    # Cache failure is not critical: report it but stay healthy
    from django.core.cache import cache

    try:
        cache.set("health_check", "ok", timeout=1)
        cache_ok = cache.get("health_check") == "ok"
    except Exception:
        cache_ok = False
    health_status["cache"] = "connected" if cache_ok else "disconnected"

    status_code = 200 if is_healthy else 503
    return JsonResponse(health_status, status=status_code)
