# shop/checkout.py
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.urls import reverse

from backend_api import BackendError, services
from stores.cart import effective_price

logger = logging.getLogger(__name__)

# Smallest amount the payment processor will charge.
MINIMUM_CHARGE = Decimal("0.50")
DEFAULT_PAYMENT_METHODS = [{"id": "card", "name": "Credit / Debit Card"}]


class CheckoutError(Exception):
    """Checkout refused before or after contacting the backend."""


def payment_methods() -> List[Dict[str, Any]]:
    try:
        data = services.get_payment_methods() or {}
    except BackendError as exc:
        logger.warning("Payment methods unavailable, using defaults: %s", exc)
        return list(DEFAULT_PAYMENT_METHODS)
    return list(data.get("paymentMethods") or DEFAULT_PAYMENT_METHODS)


def _site_url() -> str:
    return getattr(settings, "SITE_URL", "http://localhost:8000").rstrip("/")


def success_url() -> str:
    # Placeholder is substituted by the payment processor.
    return f"{_site_url()}{reverse('shop:payment_success')}?session_id={{CHECKOUT_SESSION_ID}}"


def cancel_url() -> str:
    return f"{_site_url()}{reverse('shop:checkout')}"


def build_checkout_payload(
    items: List[Dict[str, Any]],
    total: Decimal,
    payment_method: str,
    shipping_address: Optional[Dict[str, Any]],
) -> Dict[str, Any]:
    if not items:
        raise CheckoutError("Your cart is empty.")
    if total < MINIMUM_CHARGE:
        raise CheckoutError(f"Order total must be at least ${MINIMUM_CHARGE}.")
    return {
        "items": [
            {
                "product": item["id"],
                "quantity": item["qty"],
                "price": float(effective_price(item)),
                "name": item.get("name"),
                "image": (item.get("images") or [None])[0],
            }
            for item in items
        ],
        "totalAmount": float(total),
        "paymentMethod": payment_method,
        "shippingAddress": shipping_address,
        "successUrl": success_url(),
        "cancelUrl": cancel_url(),
    }


def start_checkout(payload: Dict[str, Any], token: str) -> str:
    """Create the hosted checkout session and return the URL to redirect to."""
    data = services.create_checkout_session(payload, token) or {}
    checkout_url = data.get("checkoutUrl")
    if not checkout_url:
        raise CheckoutError("No checkout URL received from the payment provider.")
    logger.info("Checkout session %s created", data.get("sessionId"))
    return checkout_url
