# api/permissions.py
from __future__ import annotations

from rest_framework.permissions import BasePermission


def _is_signed_in(user) -> bool:
    return bool(user is not None and getattr(user, "is_authenticated", False))


class IsStorefrontAuthenticated(BasePermission):
    message = "Not authorized, no token"

    def has_permission(self, request, view) -> bool:
        return _is_signed_in(getattr(request, "user", None))


class IsStorefrontAdmin(BasePermission):
    message = "Not authorized as an admin"

    def has_permission(self, request, view) -> bool:
        user = getattr(request, "user", None)
        return _is_signed_in(user) and bool(getattr(user, "is_admin", False))
