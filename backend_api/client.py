# backend_api/client.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests
from django.conf import settings

from .exceptions import UNREACHABLE_ERROR, BackendError, extract_message

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:5000/api"
DEFAULT_TIMEOUT = 15


class BackendClient:
    """
    Minimal JSON client for the storefront backend:
    - Bearer token auth when a token is given.
    - Unwraps the {"success", "message", "data"} envelope and returns `data`.
    - Raises BackendError for non-2xx responses and transport failures.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.token = token
        self.base_url = (base_url or getattr(settings, "BACKEND_API_URL", DEFAULT_API_URL)).rstrip("/")
        self.timeout = timeout or getattr(settings, "BACKEND_TIMEOUT", DEFAULT_TIMEOUT)
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        url = self.url(path)
        if params:
            params = {k: v for k, v in params.items() if v is not None and v != ""}
        try:
            r = self.session.request(
                method,
                url,
                params=params or None,
                json=json,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Backend %s %s unreachable: %s", method, url, exc)
            raise BackendError(UNREACHABLE_ERROR) from exc

        try:
            body = r.json()
        except ValueError:
            body = None

        if not 200 <= r.status_code < 300:
            message = extract_message(body)
            logger.info("Backend %s %s failed: %s %s", method, url, r.status_code, message)
            errors = body.get("errors") if isinstance(body, dict) else None
            raise BackendError(message, status_code=r.status_code, errors=errors)

        if isinstance(body, dict) and "data" in body:
            return body["data"]
        return body

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Any = None) -> Any:
        return self.request("POST", path, json=json if json is not None else {})

    def put(self, path: str, json: Any = None) -> Any:
        return self.request("PUT", path, json=json if json is not None else {})

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)
