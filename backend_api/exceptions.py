# backend_api/exceptions.py
from __future__ import annotations

from typing import Any, List, Optional

GENERIC_ERROR = "Some Error Occurred!!"
UNREACHABLE_ERROR = "Unable to reach the server"


def extract_message(body: Any, default: str = GENERIC_ERROR) -> str:
    """
    Pick the user-facing message out of a backend error body.
    Order: errors[0].msg, errors[0] (string), message, default.
    """
    if not isinstance(body, dict):
        return default
    errors = body.get("errors")
    if isinstance(errors, list) and errors:
        first = errors[0]
        if isinstance(first, dict) and first.get("msg"):
            return str(first["msg"])
        if isinstance(first, str) and first:
            return first
    message = body.get("message")
    if message:
        return str(message)
    return default


class BackendError(Exception):
    """A backend call failed (non-2xx response or transport failure)."""

    def __init__(
        self,
        message: str = GENERIC_ERROR,
        status_code: Optional[int] = None,
        errors: Optional[List[Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.errors = errors or []

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"{self.message} (HTTP {self.status_code})"
