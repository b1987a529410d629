# stores/auth.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from django.contrib import messages

from backend_api import BackendError, services

from .base import TOKEN_KEY, USER_INFO_KEY
from .signals import storefront_login, storefront_logout

logger = logging.getLogger(__name__)


class AuthStore:
    """
    Persisted auth token + cached user profile (the session plays the role
    of browser storage). A 401 from the current-user check logs out.
    """

    def __init__(self, request) -> None:
        self.request = request
        self.session = request.session

    # ---- state ----
    @property
    def token(self) -> Optional[str]:
        return self.session.get(TOKEN_KEY)

    @property
    def user_info(self) -> Optional[Dict[str, Any]]:
        return self.session.get(USER_INFO_KEY)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def is_admin(self) -> bool:
        return bool(self.user_info and self.user_info.get("role") == "admin")

    def _persist(self, data: Dict[str, Any]) -> None:
        # An anonymous session key never carries a token.
        self.session.cycle_key()
        self.session[TOKEN_KEY] = data.get("token")
        self.session[USER_INFO_KEY] = data.get("user")
        self.session.modified = True

    # ---- actions ----
    def login(self, email: str = "", password: str = "") -> bool:
        try:
            data = services.login(email, password)
        except BackendError as exc:
            messages.error(self.request, exc.message, fail_silently=True)
            return False
        self._persist(data or {})
        logger.info("User %s logged in.", (self.user_info or {}).get("username"))
        messages.success(self.request, "Logged In Successfully!!", fail_silently=True)
        storefront_login.send(sender=type(self), request=self.request, user=self.user_info)
        return True

    def signup(self, username: str = "", email: str = "", password: str = "") -> bool:
        try:
            data = services.signup(username, email, password)
        except BackendError as exc:
            messages.error(self.request, exc.message, fail_silently=True)
            return False
        self._persist(data or {})
        logger.info("User %s signed up.", username)
        messages.success(self.request, "Signed Up Successfully!!", fail_silently=True)
        storefront_login.send(sender=type(self), request=self.request, user=self.user_info)
        return True

    def logout(self, notify: bool = True) -> None:
        """Drop the token and every per-visitor store, under a fresh session key."""
        user = self.user_info
        self.session.flush()
        if notify:
            messages.info(self.request, "Logged out successfully!!", fail_silently=True)
        storefront_logout.send(sender=type(self), request=self.request, user=user)

    def refresh_user_data(self) -> Optional[Dict[str, Any]]:
        """Re-fetch the profile; an invalid token (401) logs the visitor out."""
        if not self.token:
            return None
        try:
            data = services.get_current_user(self.token)
        except BackendError as exc:
            logger.warning("Failed to refresh user data: %s", exc)
            if exc.is_unauthorized:
                self.logout()
            return None
        user = (data or {}).get("user")
        if user:
            self.session[USER_INFO_KEY] = user
            self.session.modified = True
        return user
