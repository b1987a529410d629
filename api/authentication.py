# api/authentication.py
from __future__ import annotations

from typing import Any, Dict, Optional

from rest_framework.authentication import SessionAuthentication

from stores import AuthStore


class StorefrontUser:
    """
    The visitor as known to the backend. There is no local user table, so
    DRF's `request.user` wraps the cached profile and the bearer token.
    """

    is_authenticated = True
    is_anonymous = False

    def __init__(self, user_info: Optional[Dict[str, Any]], token: str) -> None:
        self.info = user_info or {}
        self.token = token

    @property
    def id(self) -> Optional[str]:
        return self.info.get("_id")

    @property
    def username(self) -> str:
        return self.info.get("username", "")

    @property
    def is_admin(self) -> bool:
        return self.info.get("role") == "admin"

    def __str__(self) -> str:
        return self.username


class StorefrontSessionAuthentication(SessionAuthentication):
    """Authenticate page scripts by the storefront session (CSRF enforced on writes)."""

    def authenticate(self, request):
        auth = AuthStore(request._request)
        if not auth.is_authenticated:
            return None
        self.enforce_csrf(request)
        return (StorefrontUser(auth.user_info, auth.token), auth.token)
