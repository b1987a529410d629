# stores/wishlist.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from django.contrib import messages

from backend_api import BackendError, services

from .base import SessionStore, State
from .cart import CartStore, normalize_item

logger = logging.getLogger(__name__)

INITIALIZE_WISHLIST = "INITIALIZE_WISHLIST"
ADD_PRODUCT_TO_WISHLIST = "ADD_PRODUCT_TO_WISHLIST"
DELETE_PRODUCTS_FROM_WISHLIST = "DELETE_PRODUCTS_FROM_WISHLIST"


def wishlist_reducer(state: State, act: Dict[str, Any]) -> State:
    if act["type"] in (INITIALIZE_WISHLIST, ADD_PRODUCT_TO_WISHLIST, DELETE_PRODUCTS_FROM_WISHLIST):
        return {**state, "wishlist": list(act["payload"] or [])}
    return state


def _entries(data: Any) -> List[Dict[str, Any]]:
    # The backend answers either {"wishlist": [...]} or the bare list.
    if isinstance(data, dict):
        data = data.get("wishlist") or []
    return [normalize_item(entry, qty=1) for entry in (data or [])]


class WishlistStore(SessionStore):
    session_key = "wishlist"
    initial_state = {"wishlist": []}
    reducer = staticmethod(wishlist_reducer)

    @property
    def items(self) -> List[Dict[str, Any]]:
        return self.state.get("wishlist") or []

    def find(self, product_id: str) -> Optional[Dict[str, Any]]:
        return next((item for item in self.items if item["id"] == product_id), None)

    def contains(self, product_id: str) -> bool:
        return self.find(product_id) is not None

    def load(self) -> bool:
        if not self.token:
            return False
        try:
            data = services.get_wishlist(self.token)
        except BackendError as exc:
            self.fail(exc)
            return False
        self.dispatch(INITIALIZE_WISHLIST, _entries(data))
        return True

    def add_product(self, product: Dict[str, Any]) -> bool:
        item = normalize_item(product, qty=1)
        if self.contains(item["id"]):
            return True
        try:
            services.add_to_wishlist(item["id"], self.token)
        except BackendError as exc:
            self.fail(exc)
            return False
        self.dispatch(ADD_PRODUCT_TO_WISHLIST, [item, *self.items])
        self.notify(messages.SUCCESS, "Product Added to Wishlist")
        return True

    def remove_product(self, product_id: str) -> bool:
        try:
            services.remove_from_wishlist(product_id, self.token)
        except BackendError as exc:
            self.fail(exc)
            return False
        self.dispatch(
            DELETE_PRODUCTS_FROM_WISHLIST,
            [item for item in self.items if item["id"] != product_id],
        )
        self.notify(messages.INFO, "Product Removed from Wishlist")
        return True

    def clear(self) -> bool:
        try:
            services.clear_wishlist(self.token)
        except BackendError as exc:
            self.fail(exc)
            return False
        self.dispatch(DELETE_PRODUCTS_FROM_WISHLIST, [])
        self.notify(messages.INFO, "Wishlist cleared.")
        return True

    def move_to_cart(self, product_id: str, quantity: int = 1) -> bool:
        """Backend moves the item; both stores re-sync from it afterwards."""
        try:
            services.move_wishlist_item_to_cart(product_id, self.token, quantity=quantity)
        except BackendError as exc:
            self.fail(exc)
            return False
        self.load()
        CartStore(self.request).load()
        self.notify(messages.SUCCESS, "Product Moved to Bag")
        return True
