"""
Role-based permission classes shared across apps.

Party checks on individual records live in the services; the classes
here only gate whole endpoints by role.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import permissions

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView


class IsPlatformAdmin(permissions.BasePermission):
    """Allows access only to platform administrators (admin role or staff)."""

    message = "Administrator permissions are required."

    def has_permission(self, request: Request, view: APIView) -> bool:
        user = request.user
        return bool(user and user.is_authenticated and user.is_platform_admin)
