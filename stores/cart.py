# stores/cart.py
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from django.contrib import messages

from backend_api import BackendError, services

from .base import SessionStore, State

logger = logging.getLogger(__name__)

INITIALIZE_CART = "INITIALIZE_CART"
ADD_PRODUCT_TO_CART = "ADD_PRODUCT_TO_CART"
UPDATE_PRODUCT_QTY_IN_CART = "UPDATE_PRODUCT_QTY_IN_CART"
DELETE_PRODUCTS_FROM_CART = "DELETE_PRODUCTS_FROM_CART"


def to_decimal(value: Any) -> Decimal:
    if value in (None, ""):
        return Decimal("0")
    return Decimal(str(value))


def effective_price(item: Dict[str, Any]) -> Decimal:
    """Discounted price when present, otherwise the list price."""
    new_price = item.get("new_price")
    if new_price not in (None, ""):
        return to_decimal(new_price)
    return to_decimal(item.get("price"))


def normalize_item(raw: Dict[str, Any], qty: Optional[int] = None) -> Dict[str, Any]:
    """
    Flatten a backend cart/wishlist entry ({product, quantity}) or a bare
    product into the item shape the pages render.
    """
    product = raw.get("product") if isinstance(raw.get("product"), dict) else raw
    if qty is None:
        qty = int(raw.get("quantity") or raw.get("qty") or 1)
    return {
        "id": product.get("_id") or product.get("id"),
        "qty": qty,
        "price": product.get("price"),
        "new_price": product.get("newPrice", product.get("new_price")),
        "name": product.get("name"),
        "brand": product.get("brand"),
        "images": product.get("images") or [],
        "category": product.get("category"),
        "rating": product.get("rating"),
        "trending": bool(product.get("trending")),
    }


def cart_reducer(state: State, act: Dict[str, Any]) -> State:
    kind = act["type"]
    if kind in (INITIALIZE_CART, ADD_PRODUCT_TO_CART, UPDATE_PRODUCT_QTY_IN_CART, DELETE_PRODUCTS_FROM_CART):
        return {**state, "cart": list(act["payload"] or [])}
    return state


def cart_totals(cart: List[Dict[str, Any]]) -> Dict[str, Any]:
    total = Decimal("0.00")
    actual = Decimal("0.00")
    count = 0
    for item in cart:
        qty = int(item.get("qty") or 0)
        total += qty * effective_price(item)
        actual += qty * to_decimal(item.get("price"))
        count += qty
    return {
        "total_price": total,
        "actual_price": actual,
        "discount": actual - total,
        "item_count": count,
    }


class CartStore(SessionStore):
    """Cart mirrored from the backend; totals are recomputed on read."""

    session_key = "cart"
    initial_state = {"cart": []}
    reducer = staticmethod(cart_reducer)

    @property
    def items(self) -> List[Dict[str, Any]]:
        return self.state.get("cart") or []

    @property
    def totals(self) -> Dict[str, Any]:
        return cart_totals(self.items)

    def find(self, product_id: str) -> Optional[Dict[str, Any]]:
        return next((item for item in self.items if item["id"] == product_id), None)

    def contains(self, product_id: str) -> bool:
        return self.find(product_id) is not None

    def _replace_from_backend(self, data: Any, action_type: str) -> None:
        entries = (data or {}).get("cart") or []
        self.dispatch(action_type, [normalize_item(entry) for entry in entries])

    # ---- actions ----
    def load(self) -> bool:
        if not self.token:
            return False
        try:
            data = services.get_cart(self.token)
        except BackendError as exc:
            self.fail(exc)
            return False
        self._replace_from_backend(data, INITIALIZE_CART)
        return True

    def add_product(self, product: Dict[str, Any]) -> bool:
        item = normalize_item(product, qty=1)
        try:
            services.add_to_cart(item["id"], self.token)
        except BackendError as exc:
            self.fail(exc)
            return False
        rest = [existing for existing in self.items if existing["id"] != item["id"]]
        current = self.find(item["id"])
        if current:
            item["qty"] = int(current["qty"]) + 1
        self.dispatch(ADD_PRODUCT_TO_CART, [item, *rest])
        self.notify(messages.SUCCESS, "Product Added to Bag")
        return True

    def update_qty(self, product_id: str, change: str) -> bool:
        """`change` is "increment" or "decrement"; dropping below 1 removes the item."""
        current = self.find(product_id)
        if current is None:
            return False
        new_qty = int(current["qty"]) + (1 if change == "increment" else -1)
        if new_qty < 1:
            return self.remove_product(product_id)
        try:
            services.update_cart_item(product_id, new_qty, self.token)
        except BackendError as exc:
            self.fail(exc)
            return False
        self.dispatch(
            UPDATE_PRODUCT_QTY_IN_CART,
            [{**item, "qty": new_qty} if item["id"] == product_id else item for item in self.items],
        )
        return True

    def remove_product(self, product_id: str) -> bool:
        try:
            data = services.remove_from_cart(product_id, self.token)
        except BackendError as exc:
            self.fail(exc)
            return False
        if isinstance(data, dict) and "cart" in data:
            self._replace_from_backend(data, DELETE_PRODUCTS_FROM_CART)
        else:
            self.dispatch(DELETE_PRODUCTS_FROM_CART, [i for i in self.items if i["id"] != product_id])
        self.notify(messages.INFO, "Product Removed from Bag")
        return True

    def clear(self, notify: bool = True) -> bool:
        try:
            services.clear_cart(self.token)
        except BackendError as exc:
            self.fail(exc)
            return False
        self.dispatch(DELETE_PRODUCTS_FROM_CART, [])
        if notify:
            self.notify(messages.INFO, "Cart cleared.")
        return True
