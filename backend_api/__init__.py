"""Thin wrappers over the storefront's REST backend."""

from .client import BackendClient
from .exceptions import BackendError

__all__ = ["BackendClient", "BackendError"]
