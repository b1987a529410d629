# stores/products.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.contrib import messages
from django.core.cache import cache

from backend_api import BackendError, services

from .base import SessionStore, State
from .cart import CartStore
from .filters import apply_all, product_price
from .wishlist import WishlistStore

logger = logging.getLogger(__name__)

PRODUCTS_CACHE_KEY = "catalogue:products"
CATEGORIES_CACHE_KEY = "catalogue:categories"

FILTERS = "FILTERS"
CLEAR_FILTER = "CLEAR_FILTER"
INITIALIZE_ADDRESSES = "INITIALIZE_ADDRESSES"

FILTER_TYPES = ("sort_by", "gender", "price_range", "rating", "categories", "search")

ADDRESS_FIELDS = ("fullname", "mobile", "flat", "area", "city", "state", "pincode")

DEFAULT_FILTERS: Dict[str, Any] = {
    "sort_by": "",
    "gender": "all",
    "price_range": None,
    "rating": 0,
    "categories": [],
    "search": "",
}


def products_reducer(state: State, act: Dict[str, Any]) -> State:
    kind = act["type"]
    payload = act.get("payload")
    if kind == FILTERS:
        filter_type = payload["filter_type"]
        value = payload["filter_value"]
        filters = dict(state.get("filters") or DEFAULT_FILTERS)
        if filter_type == "categories":
            # Checkbox toggle.
            current = list(filters.get("categories") or [])
            value = (value or "").lower()
            filters["categories"] = [c for c in current if c != value] if value in current else [*current, value]
        else:
            filters[filter_type] = value
        return {**state, "filters": filters}
    if kind == CLEAR_FILTER:
        return {**state, "filters": dict(DEFAULT_FILTERS)}
    if kind == INITIALIZE_ADDRESSES:
        return {**state, "addresses": list(payload or [])}
    return state


def _cache_ttl() -> int:
    return getattr(settings, "PRODUCTS_CACHE_TTL", 120)


def _address_list(data: Any) -> List[Dict[str, Any]]:
    if not isinstance(data, dict):
        return list(data or [])
    if data.get("addresses"):
        return list(data["addresses"])
    shipping = data.get("shippingAddress")
    if shipping:
        return [{"_id": shipping.get("_id", "default"), "isDefault": True, **shipping}]
    return []


class ProductsStore(SessionStore):
    """
    Public catalogue (shared, cached) plus the visitor's listing filters and
    address book (per-session).
    """

    session_key = "products"
    initial_state = {"filters": dict(DEFAULT_FILTERS), "addresses": []}
    reducer = staticmethod(products_reducer)

    # ---- catalogue ----
    @property
    def all_products(self) -> List[Dict[str, Any]]:
        products = cache.get(PRODUCTS_CACHE_KEY)
        if products is None:
            products = self._load_products()
        return products

    @property
    def categories(self) -> List[Dict[str, Any]]:
        categories = cache.get(CATEGORIES_CACHE_KEY)
        if categories is None:
            categories = self._load_categories()
        return categories

    def _load_products(self) -> List[Dict[str, Any]]:
        try:
            data = services.get_products()
        except BackendError as exc:
            logger.warning("Could not load products: %s", exc)
            return []
        products = (data or {}).get("products") or [] if isinstance(data, dict) else list(data or [])
        cache.set(PRODUCTS_CACHE_KEY, products, _cache_ttl())
        return products

    def _load_categories(self) -> List[Dict[str, Any]]:
        try:
            data = services.get_categories()
        except BackendError as exc:
            logger.warning("Could not load categories: %s", exc)
            return []
        categories = (data or {}).get("categories") or [] if isinstance(data, dict) else list(data or [])
        cache.set(CATEGORIES_CACHE_KEY, categories, _cache_ttl())
        return categories

    def load(self, force: bool = False) -> None:
        if force:
            self.invalidate()
        self._load_products()
        self._load_categories()

    @staticmethod
    def invalidate() -> None:
        cache.delete_many([PRODUCTS_CACHE_KEY, CATEGORIES_CACHE_KEY])

    def get_product_by_id(self, product_id: str) -> Optional[Dict[str, Any]]:
        product = next((p for p in self.all_products if p.get("_id") == product_id), None)
        if product is not None:
            return product
        try:
            data = services.get_product(product_id)
        except BackendError as exc:
            logger.info("Product %s not found: %s", product_id, exc)
            return None
        if isinstance(data, dict) and "product" in data:
            return data["product"]
        return data

    @property
    def trending_products(self) -> List[Dict[str, Any]]:
        return [p for p in self.all_products if p.get("trending")]

    @property
    def max_range(self) -> int:
        prices = [product_price(p) for p in self.all_products]
        return int(max(prices)) if prices else 0

    # ---- filters ----
    @property
    def filters(self) -> Dict[str, Any]:
        return {**DEFAULT_FILTERS, **(self.state.get("filters") or {})}

    def apply_filter(self, filter_type: str, filter_value: Any) -> None:
        if filter_type not in FILTER_TYPES:
            raise ValueError(f"Unknown filter: {filter_type}")
        self.dispatch(FILTERS, {"filter_type": filter_type, "filter_value": filter_value})

    def clear_filters(self) -> None:
        self.dispatch(CLEAR_FILTER)

    @property
    def filtered_products(self) -> List[Dict[str, Any]]:
        return apply_all(self.filters, self.all_products)

    # ---- cart / wishlist flags ----
    def is_in_cart(self, product_id: str) -> bool:
        return CartStore(self.request).contains(product_id)

    def is_in_wishlist(self, product_id: str) -> bool:
        return WishlistStore(self.request).contains(product_id)

    # ---- addresses ----
    @property
    def addresses(self) -> List[Dict[str, Any]]:
        return self.state.get("addresses") or []

    @property
    def current_address(self) -> Optional[Dict[str, Any]]:
        addresses = self.addresses
        if not addresses:
            return None
        return next((a for a in addresses if a.get("isDefault")), addresses[0])

    def get_address(self, address_id: str) -> Optional[Dict[str, Any]]:
        return next((a for a in self.addresses if a.get("_id") == address_id), None)

    def load_addresses(self) -> bool:
        if not self.token:
            return False
        try:
            data = services.get_addresses(self.token)
        except BackendError as exc:
            self.fail(exc)
            return False
        self.dispatch(INITIALIZE_ADDRESSES, _address_list(data))
        return True

    def add_address(self, address: Dict[str, Any]) -> bool:
        try:
            data = services.add_address(address, self.token)
        except BackendError as exc:
            self.fail(exc)
            return False
        self._after_address_change(data)
        self.notify(messages.SUCCESS, "Address added.")
        return True

    def update_address(self, address_id: str, address: Dict[str, Any]) -> bool:
        try:
            data = services.update_address(address_id, address, self.token)
        except BackendError as exc:
            self.fail(exc)
            return False
        self._after_address_change(data)
        self.notify(messages.SUCCESS, "Address updated.")
        return True

    def delete_address(self, address_id: str) -> bool:
        try:
            data = services.delete_address(address_id, self.token)
        except BackendError as exc:
            self.fail(exc)
            return False
        if isinstance(data, dict) and ("addresses" in data or "shippingAddress" in data):
            self.dispatch(INITIALIZE_ADDRESSES, _address_list(data))
        else:
            self.dispatch(INITIALIZE_ADDRESSES, [a for a in self.addresses if a.get("_id") != address_id])
        self.notify(messages.INFO, "Address removed.")
        return True

    def _after_address_change(self, data: Any) -> None:
        addresses = _address_list(data)
        if addresses:
            self.dispatch(INITIALIZE_ADDRESSES, addresses)
        else:
            self.load_addresses()
