"""
Permission classes for messaging API.

This module provides DRF permission classes for the messaging system:
- IsAdminRole: Caller holds the admin platform role

Design Decisions:
    - Permissions are a fast first line at the HTTP layer; services check
      again inside their transactions and are the source of truth
    - Participant access is checked by the services, which admins may
      bypass for reads
    - Admin role is resolved from the database (RoleResolver), never from
      token claims
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import permissions

from authentication.services import RoleResolver

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView


class IsAdminRole(permissions.BasePermission):
    """Allows access only to users with the admin platform role."""

    message = "Admin role required."

    def has_permission(self, request: Request, view: APIView) -> bool:
        if not request.user.is_authenticated:
            return False
        return RoleResolver.is_admin(request.user.id)
