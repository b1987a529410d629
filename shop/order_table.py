# shop/order_table.py
"""
Admin order console: filtering, sorting, pagination, statistics and bulk
actions over the order list returned by the backend. Everything except the
bulk status updates runs in memory.
"""
from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from django.core.paginator import Page, Paginator
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from backend_api import BackendError, services

logger = logging.getLogger(__name__)

Order = Dict[str, Any]

ORDER_STATUSES = ("pending", "confirmed", "processing", "shipped", "delivered", "cancelled")
PAYMENT_STATUSES = ("pending", "completed", "failed", "refunded")

BULK_ACTIONS = {
    "mark-confirmed": "confirmed",
    "mark-processing": "processing",
    "mark-shipped": "shipped",
    "mark-delivered": "delivered",
    "mark-cancelled": "cancelled",
}
EXPORT_CSV = "export-csv"

DEFAULT_SORT = "created_at"
DEFAULT_PER_PAGE = 10
# The backend pages its own results; fetch everything for in-memory work.
FETCH_LIMIT = 1000

CSV_HEADER = [
    "Order Number",
    "Customer",
    "Email",
    "Items",
    "Total",
    "Status",
    "Payment Status",
    "Payment Method",
    "Created At",
]


def created_at(order: Order) -> Optional[datetime]:
    raw = order.get("createdAt")
    if not raw:
        return None
    return parse_datetime(str(raw).replace("Z", "+00:00"))


def order_total(order: Order) -> Decimal:
    return Decimal(str(order.get("totalAmount") or 0))


def _customer(order: Order) -> Dict[str, Any]:
    user = order.get("user")
    return user if isinstance(user, dict) else {}


def _product_names(order: Order) -> List[str]:
    names = []
    for item in order.get("items") or []:
        product = item.get("product")
        if isinstance(product, dict) and product.get("name"):
            names.append(product["name"])
        elif item.get("name"):
            names.append(item["name"])
    return names


SORT_KEYS: Dict[str, Callable[[Order], Any]] = {
    "created_at": created_at,
    "total": order_total,
    "status": lambda o: o.get("status") or "",
    "order_number": lambda o: o.get("orderNumber") or "",
    "customer": lambda o: (_customer(o).get("username") or "").lower(),
}


@dataclass
class OrderQuery:
    status: str = ""
    payment_status: str = ""
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    search: str = ""
    sort: str = DEFAULT_SORT
    descending: bool = True
    page: Any = 1
    per_page: int = DEFAULT_PER_PAGE

    @classmethod
    def from_params(cls, params) -> "OrderQuery":
        """Build from request.GET; unknown values fall back to defaults."""
        status = params.get("status", "")
        payment_status = params.get("payment_status", "")
        sort = params.get("sort", DEFAULT_SORT)
        try:
            per_page = max(1, int(params.get("per_page", DEFAULT_PER_PAGE)))
        except (TypeError, ValueError):
            per_page = DEFAULT_PER_PAGE
        return cls(
            status=status if status in ORDER_STATUSES else "",
            payment_status=payment_status if payment_status in PAYMENT_STATUSES else "",
            date_from=parse_date(params.get("date_from") or "") if params.get("date_from") else None,
            date_to=parse_date(params.get("date_to") or "") if params.get("date_to") else None,
            search=(params.get("search") or "").strip(),
            sort=sort if sort in SORT_KEYS else DEFAULT_SORT,
            descending=params.get("direction", "desc") != "asc",
            page=params.get("page", 1),
            per_page=per_page,
        )


def matches_search(order: Order, term: str) -> bool:
    term = term.lower()
    customer = _customer(order)
    haystack = [order.get("orderNumber"), customer.get("username"), customer.get("email"), *_product_names(order)]
    return any(term in (value or "").lower() for value in haystack)


def filter_orders(orders: Iterable[Order], query: OrderQuery) -> List[Order]:
    result = list(orders)
    if query.status:
        result = [o for o in result if o.get("status") == query.status]
    if query.payment_status:
        result = [o for o in result if o.get("paymentStatus") == query.payment_status]
    if query.date_from or query.date_to:
        dated = []
        for order in result:
            when = created_at(order)
            if when is None:
                continue
            day = when.date()
            if query.date_from and day < query.date_from:
                continue
            if query.date_to and day > query.date_to:
                continue
            dated.append(order)
        result = dated
    if query.search:
        result = [o for o in result if matches_search(o, query.search)]
    return result


def sort_orders(orders: List[Order], sort: str = DEFAULT_SORT, descending: bool = True) -> List[Order]:
    if sort not in SORT_KEYS or sort == "created_at":
        # Undated orders always sink to the end.
        dated = [o for o in orders if created_at(o) is not None]
        undated = [o for o in orders if created_at(o) is None]
        return sorted(dated, key=created_at, reverse=descending) + undated
    return sorted(orders, key=SORT_KEYS[sort], reverse=descending)


def paginate(orders: List[Order], page: Any = 1, per_page: int = DEFAULT_PER_PAGE) -> Page:
    """Out-of-range or malformed page numbers are clamped to 1..num_pages."""
    return Paginator(orders, per_page).get_page(page)


def order_stats(orders: Iterable[Order]) -> Dict[str, Any]:
    orders = list(orders)
    return {
        "total_orders": len(orders),
        "pending": sum(1 for o in orders if o.get("status") == "pending"),
        "completed": sum(1 for o in orders if o.get("status") == "delivered"),
        "revenue": sum((order_total(o) for o in orders), Decimal("0")),
    }


def build_table(orders: List[Order], query: OrderQuery) -> Dict[str, Any]:
    filtered = filter_orders(orders, query)
    ordered = sort_orders(filtered, query.sort, query.descending)
    return {
        "page": paginate(ordered, query.page, query.per_page),
        "filtered_count": len(filtered),
        "stats": order_stats(orders),
        "query": query,
    }


def fetch_orders(token: str) -> List[Order]:
    data = services.get_admin_orders(token, {"limit": FETCH_LIMIT}) or {}
    return list(data.get("orders") or [])


# ---- Customer order list ----------------------------------------------------------

# Days back from the start of today.
TIME_WINDOWS = {"today": 0, "this_week": 7, "this_month": 30}

CUSTOMER_SORTS = {
    "newest": ("created_at", True),
    "oldest": ("created_at", False),
    "amount_high": ("total", True),
    "amount_low": ("total", False),
    "status": ("status", False),
}


def customer_query(params, today: Optional[date] = None) -> OrderQuery:
    """Search, status, time window and sort from the customer's order list controls."""
    today = today or timezone.localdate()
    status = params.get("status", "")
    window = TIME_WINDOWS.get(params.get("time", ""))
    sort, descending = CUSTOMER_SORTS.get(params.get("sort", ""), CUSTOMER_SORTS["newest"])
    return OrderQuery(
        status=status if status in ORDER_STATUSES else "",
        date_from=today - timedelta(days=window) if window is not None else None,
        search=(params.get("search") or "").strip(),
        sort=sort,
        descending=descending,
    )


def customer_orders(orders: Iterable[Order], params, today: Optional[date] = None) -> List[Order]:
    query = customer_query(params, today)
    return sort_orders(filter_orders(orders, query), query.sort, query.descending)


# ---- Bulk actions -------------------------------------------------------------------

@dataclass
class BulkResult:
    action: str
    succeeded: List[str] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def run_bulk_action(action: str, order_ids: Iterable[str], token: str) -> BulkResult:
    """One status update per order; a failure never stops the rest."""
    if action not in BULK_ACTIONS:
        raise ValueError(f"Unknown bulk action: {action}")
    status = BULK_ACTIONS[action]
    result = BulkResult(action=action)
    for order_id in order_ids:
        try:
            services.update_order_status(order_id, status, token)
        except BackendError as exc:
            logger.warning("Bulk %s failed for order %s: %s", action, order_id, exc)
            result.failed.append((order_id, exc.message))
        else:
            result.succeeded.append(order_id)
    logger.info("Bulk %s: %d ok, %d failed", action, len(result.succeeded), len(result.failed))
    return result


def export_csv(orders: Iterable[Order], order_ids: Optional[Iterable[str]] = None) -> str:
    selected = set(order_ids) if order_ids else None
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_HEADER)
    for order in orders:
        if selected is not None and order.get("_id") not in selected:
            continue
        customer = _customer(order)
        when = created_at(order)
        writer.writerow(
            [
                order.get("orderNumber", ""),
                customer.get("username", ""),
                customer.get("email", ""),
                "; ".join(_product_names(order)),
                f"{order_total(order):.2f}",
                order.get("status", ""),
                order.get("paymentStatus", ""),
                order.get("paymentMethod", ""),
                when.isoformat() if when else "",
            ]
        )
    return buffer.getvalue()
