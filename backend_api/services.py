# backend_api/services.py
"""
One function per backend endpoint.

Every function returns the unwrapped `data` payload of the backend response
and raises BackendError on failure. Authenticated endpoints take the bearer
token explicitly.
"""
from __future__ import annotations

import threading
from typing import Any, Dict, Iterable, Optional

import requests

from .client import BackendClient

# One pooled HTTP session per thread (request workers and chat pollers).
_local = threading.local()


def _session() -> requests.Session:
    session = getattr(_local, "session", None)
    if session is None:
        session = _local.session = requests.Session()
    return session


def _client(token: Optional[str] = None) -> BackendClient:
    return BackendClient(token=token, session=_session())


# ---- Auth ------------------------------------------------------------------------

def login(email: str, password: str):
    return _client().post("/auth/login", {"email": email, "password": password})


def signup(username: str, email: str, password: str):
    return _client().post("/auth/signup", {"username": username, "email": email, "password": password})


def get_current_user(token: str):
    return _client(token).get("/auth/me")


def update_profile(profile: Dict[str, Any], token: str):
    return _client(token).put("/auth/profile", profile)


def change_password(current_password: str, new_password: str, token: str):
    return _client(token).put(
        "/auth/change-password",
        {"currentPassword": current_password, "newPassword": new_password},
    )


# ---- Addresses ---------------------------------------------------------------------

def get_addresses(token: str):
    return _client(token).get("/auth/addresses")


def add_address(address: Dict[str, Any], token: str):
    return _client(token).post("/auth/addresses", address)


def update_address(address_id: str, address: Dict[str, Any], token: str):
    return _client(token).put(f"/auth/addresses/{address_id}", address)


def delete_address(address_id: str, token: str):
    return _client(token).delete(f"/auth/addresses/{address_id}")


# ---- Catalog -----------------------------------------------------------------------

def get_products(params: Optional[Dict[str, Any]] = None):
    return _client().get("/products", params=params)


def get_product(product_id: str):
    return _client().get(f"/products/{product_id}")


def get_categories():
    return _client().get("/categories")


# ---- Cart --------------------------------------------------------------------------

def get_cart(token: str):
    return _client(token).get("/user/cart")


def add_to_cart(product_id: str, token: str, quantity: int = 1):
    return _client(token).post("/user/cart", {"productId": product_id, "quantity": quantity})


def update_cart_item(product_id: str, quantity: int, token: str):
    return _client(token).put(f"/user/cart/{product_id}", {"quantity": quantity})


def remove_from_cart(product_id: str, token: str):
    return _client(token).delete(f"/user/cart/{product_id}")


def clear_cart(token: str):
    return _client(token).delete("/user/cart")


# ---- Wishlist ----------------------------------------------------------------------

def get_wishlist(token: str):
    return _client(token).get("/user/wishlist")


def add_to_wishlist(product_id: str, token: str):
    return _client(token).post("/user/wishlist", {"productId": product_id})


def remove_from_wishlist(product_id: str, token: str):
    return _client(token).delete(f"/user/wishlist/{product_id}")


def clear_wishlist(token: str):
    return _client(token).delete("/user/wishlist")


def move_wishlist_item_to_cart(product_id: str, token: str, quantity: int = 1):
    return _client(token).post(f"/user/wishlist/{product_id}/move-to-cart", {"quantity": quantity})


# ---- Payments & orders -----------------------------------------------------------------

def get_payment_methods():
    return _client().get("/payments/methods")


def create_checkout_session(checkout: Dict[str, Any], token: str):
    return _client(token).post("/payments/create-checkout-session", checkout)


def create_order_from_session(session_id: str, token: str):
    return _client(token).post("/payments/create-order-from-session", {"sessionId": session_id})


def get_user_orders(token: str, params: Optional[Dict[str, Any]] = None):
    return _client(token).get("/payments/orders", params=params)


def get_order(order_id: str, token: str):
    return _client(token).get(f"/payments/orders/{order_id}")


def cancel_order(order_id: str, token: str):
    return _client(token).put(f"/orders/{order_id}/cancel")


# ---- Admin -------------------------------------------------------------------------

def get_admin_orders(token: str, params: Optional[Dict[str, Any]] = None):
    return _client(token).get("/admin/orders", params=params)


def update_order_status(order_id: str, status: str, token: str, notes: Optional[str] = None):
    payload: Dict[str, Any] = {"status": status}
    if notes:
        payload["notes"] = notes
    return _client(token).put(f"/admin/orders/{order_id}/status", payload)


def update_order_payment_status(order_id: str, payment_status: str, token: str):
    return _client(token).put(f"/admin/orders/{order_id}/payment-status", {"paymentStatus": payment_status})


def get_admin_products(token: str, params: Optional[Dict[str, Any]] = None):
    return _client(token).get("/admin/products", params=params)


def create_admin_product(product: Dict[str, Any], token: str):
    return _client(token).post("/admin/products", product)


def update_admin_product(product_id: str, product: Dict[str, Any], token: str):
    return _client(token).put(f"/admin/products/{product_id}", product)


def delete_admin_product(product_id: str, token: str):
    return _client(token).delete(f"/admin/products/{product_id}")


# ---- Messages ----------------------------------------------------------------------

def get_order_messages(order_id: str, token: str):
    return _client(token).get(f"/messages/order/{order_id}")


def send_message(order_id: str, receiver_id: str, message: str, token: str):
    return _client(token).post(
        "/messages/send",
        {"orderId": order_id, "receiverId": receiver_id, "message": message},
    )


def mark_messages_read(message_ids: Iterable[str], token: str):
    return _client(token).put("/messages/mark-read", {"messageIds": list(message_ids)})


def get_unread_message_count(token: str):
    return _client(token).get("/messages/unread-count")


# ---- Reviews -----------------------------------------------------------------------

def create_review(product_id: str, order_id: str, rating: int, comment: str, token: str):
    return _client(token).post(
        "/reviews",
        {"productId": product_id, "orderId": order_id, "rating": rating, "comment": comment},
    )


def get_product_reviews(product_id: str, params: Optional[Dict[str, Any]] = None):
    return _client().get(f"/reviews/product/{product_id}", params=params)


def get_user_reviews(token: str):
    return _client(token).get("/reviews/user")


def can_review(product_id: str, order_id: str, token: str):
    return _client(token).get(f"/reviews/can-review/{product_id}/{order_id}")


def update_review(review_id: str, changes: Dict[str, Any], token: str):
    return _client(token).put(f"/reviews/{review_id}", changes)


def delete_review(review_id: str, token: str):
    return _client(token).delete(f"/reviews/{review_id}")


def mark_review_helpful(review_id: str, token: str):
    return _client(token).post(f"/reviews/{review_id}/helpful")


# ---- Notifications ---------------------------------------------------------------------

def get_notifications(token: str, params: Optional[Dict[str, Any]] = None):
    return _client(token).get("/notifications", params=params)


def get_notification_unread_count(token: str):
    return _client(token).get("/notifications/unread-count")


def mark_notification_read(notification_id: str, token: str):
    return _client(token).put(f"/notifications/{notification_id}/read")


def mark_all_notifications_read(token: str):
    return _client(token).put("/notifications/mark-all-read")


def delete_notification(notification_id: str, token: str):
    return _client(token).delete(f"/notifications/{notification_id}")


def clear_notifications(token: str):
    return _client(token).delete("/notifications")


# ---- Analytics ---------------------------------------------------------------------

def get_dashboard_analytics(token: str, params: Optional[Dict[str, Any]] = None):
    return _client(token).get("/analytics/dashboard", params=params)


def get_sales_analytics(token: str, params: Optional[Dict[str, Any]] = None):
    return _client(token).get("/analytics/sales", params=params)


def get_user_analytics(token: str, params: Optional[Dict[str, Any]] = None):
    return _client(token).get("/analytics/users", params=params)


def get_product_analytics(token: str, params: Optional[Dict[str, Any]] = None):
    return _client(token).get("/analytics/products", params=params)


def get_search_analytics(token: str, params: Optional[Dict[str, Any]] = None):
    return _client(token).get("/analytics/search", params=params)


def track_event(event: Dict[str, Any], token: Optional[str] = None):
    return _client(token).post("/analytics/track", event)


def track_page_view(page: str, token: str, metadata: Optional[Dict[str, Any]] = None):
    payload: Dict[str, Any] = {"page": page}
    if metadata:
        payload["metadata"] = metadata
    return _client(token).post("/analytics/track-page-view", payload)
