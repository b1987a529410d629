# stores/filters.py
"""
Product-listing filters. Each function takes the selected value and a list of
backend product dicts and returns a new list; `apply_all` chains them in the
order the listing page uses.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from django.utils import timezone
from django.utils.dateparse import parse_datetime

Product = Dict[str, Any]

NEW_ARRIVAL_DAYS = 30


def product_price(product: Product) -> Decimal:
    value = product.get("newPrice")
    if value in (None, ""):
        value = product.get("price")
    return Decimal(str(value or 0))


def sort_by_price(sort_by: Optional[str], data: List[Product]) -> List[Product]:
    if sort_by == "low_to_high":
        return sorted(data, key=product_price)
    if sort_by == "high_to_low":
        return sorted(data, key=product_price, reverse=True)
    return data


def filter_by_gender(gender: Optional[str], data: List[Product]) -> List[Product]:
    if not gender or gender.lower() == "all":
        return data
    return [p for p in data if (p.get("gender") or "").lower() == gender.lower()]


def filter_by_price_range(price_range: Any, data: List[Product]) -> List[Product]:
    if not price_range:
        return data
    limit = Decimal(str(price_range))
    return [p for p in data if product_price(p) <= limit]


def filter_by_rating(rating: Any, data: List[Product]) -> List[Product]:
    selected = float(rating or 0)
    return [p for p in data if float(p.get("rating") or 0) >= selected]


def filter_by_categories(categories: Iterable[str], data: List[Product]) -> List[Product]:
    selected = {c.lower() for c in categories or []}
    if not selected:
        return data
    return [p for p in data if (p.get("category") or "").lower() in selected]


def _created_at(product: Product) -> Optional[datetime]:
    raw = product.get("createdAt")
    if not raw:
        return None
    # JS-style ISO strings end in "Z".
    parsed = parse_datetime(str(raw).replace("Z", "+00:00"))
    if parsed is not None and timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, dt_timezone.utc)
    return parsed


def filter_by_search(search: Optional[str], data: List[Product], now: Optional[datetime] = None) -> List[Product]:
    """
    Keywords select collections (featured, new, sale, trending); anything else
    is a case-insensitive substring match on name, brand or category.
    """
    if not search:
        return data
    term = search.strip().lower()

    if term == "featured":
        return [p for p in data if float(p.get("rating") or 0) >= 4 and p.get("trending") is True]
    if term == "new":
        cutoff = (now or timezone.now()) - timedelta(days=NEW_ARRIVAL_DAYS)
        result = []
        for p in data:
            created = _created_at(p)
            if created is not None and created >= cutoff:
                result.append(p)
        return result
    if term == "sale":
        return [
            p
            for p in data
            if p.get("newPrice") and p.get("price")
            and Decimal(str(p["newPrice"])) < Decimal(str(p["price"]))
        ]
    if term == "trending":
        return [p for p in data if p.get("trending") is True]

    def matches(p: Product) -> bool:
        return any(term in (p.get(field) or "").lower() for field in ("name", "brand", "category"))

    return [p for p in data if matches(p)]


def apply_all(filters: Dict[str, Any], data: List[Product]) -> List[Product]:
    result = filter_by_search(filters.get("search"), list(data))
    result = filter_by_categories(filters.get("categories") or [], result)
    result = filter_by_gender(filters.get("gender"), result)
    result = filter_by_price_range(filters.get("price_range"), result)
    result = filter_by_rating(filters.get("rating"), result)
    return sort_by_price(filters.get("sort_by"), result)
