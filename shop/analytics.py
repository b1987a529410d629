# shop/analytics.py
"""
Admin analytics dashboard: fetch the backend aggregates for a date range and
shape them into chart-ready series ({"labels": [...], "datasets": [...]})
that templates embed with `json_script`.
"""
from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from django.utils import timezone
from django.utils.dateparse import parse_date

from backend_api import BackendError, services

logger = logging.getLogger(__name__)

DEFAULT_RANGE_DAYS = 30

FUNNEL_STEPS = (
    ("page_view", "Page Views"),
    ("product_view", "Product Views"),
    ("cart_add", "Added to Cart"),
    ("order_created", "Orders"),
)

COLORS = {
    "primary": "#F59E0B",
    "secondary": "#10B981",
    "accent": "#3B82F6",
    "warning": "#EF4444",
}


def date_range(params=None, today: Optional[date] = None) -> Tuple[date, date]:
    """Start/end from `start_date`/`end_date` params, defaulting to the last 30 days."""
    params = params or {}
    end = parse_date(params.get("end_date") or "") or today or timezone.localdate()
    start = parse_date(params.get("start_date") or "") or end - timedelta(days=DEFAULT_RANGE_DAYS)
    if start > end:
        start, end = end, start
    return start, end


def range_params(start: date, end: date) -> Dict[str, str]:
    return {"startDate": start.isoformat(), "endDate": end.isoformat()}


def bucket_date(bucket: Any) -> Optional[date]:
    """Aggregates are keyed by `_id: {year, month, day}`."""
    if not isinstance(bucket, dict):
        return None
    try:
        return date(int(bucket["year"]), int(bucket.get("month", 1)), int(bucket.get("day", 1)))
    except (KeyError, TypeError, ValueError):
        return None


def _chronological(rows: Iterable[Dict[str, Any]]) -> List[Tuple[date, Dict[str, Any]]]:
    dated = [(bucket_date(row.get("_id")), row) for row in rows or []]
    return sorted(((d, row) for d, row in dated if d is not None), key=lambda pair: pair[0])


def _label(day: date, today: Optional[date] = None) -> str:
    today = today or timezone.localdate()
    label = f"{day:%b} {day.day}"
    if day.year != today.year:
        label = f"{label}, {day.year}"
    return label


def _number(value: Any) -> float:
    try:
        return round(float(value or 0), 2)
    except (TypeError, ValueError):
        return 0.0


# ---- Chart shaping --------------------------------------------------------------------

def activity_chart(rows, today: Optional[date] = None) -> Dict[str, Any]:
    series = _chronological(rows)
    return {
        "labels": [_label(d, today) for d, _ in series],
        "datasets": [
            {"label": "Total Events", "data": [int(row.get("count") or 0) for _, row in series],
             "borderColor": COLORS["primary"]},
            {"label": "Unique Users", "data": [_unique(row) for _, row in series],
             "borderColor": COLORS["secondary"]},
        ],
    }


def _unique(row: Dict[str, Any]) -> int:
    users = row.get("uniqueUsers")
    if isinstance(users, list):
        return len(users)
    return int(users or 0)


def top_products_chart(rows) -> Dict[str, Any]:
    rows = list(rows or [])
    return {
        "labels": [row.get("productName") or row.get("productId") or "" for row in rows],
        "datasets": [{"label": "Views", "data": [int(row.get("views") or 0) for row in rows],
                      "backgroundColor": COLORS["primary"]}],
    }


def top_searches_chart(rows) -> Dict[str, Any]:
    rows = list(rows or [])
    return {
        "labels": [row.get("query") or row.get("_id") or "" for row in rows],
        "datasets": [{"label": "Searches", "data": [int(row.get("searches") or 0) for row in rows],
                      "backgroundColor": COLORS["accent"]}],
    }


def funnel_chart(rows) -> Dict[str, Any]:
    counts = {(row.get("type") or row.get("_id")): int(row.get("count") or 0) for row in rows or []}
    return {
        "labels": [label for _, label in FUNNEL_STEPS],
        "datasets": [{"label": "Events", "data": [counts.get(step, 0) for step, _ in FUNNEL_STEPS],
                      "backgroundColor": COLORS["secondary"]}],
    }


def sales_chart(rows, today: Optional[date] = None) -> Dict[str, Any]:
    series = _chronological(rows)
    return {
        "labels": [_label(d, today) for d, _ in series],
        "datasets": [
            {"label": "Revenue", "data": [_number(row.get("totalRevenue")) for _, row in series],
             "borderColor": COLORS["primary"]},
            {"label": "Orders", "data": [int(row.get("totalOrders") or 0) for _, row in series],
             "borderColor": COLORS["accent"]},
        ],
    }


def top_selling_chart(rows) -> Dict[str, Any]:
    rows = list(rows or [])
    return {
        "labels": [row.get("productName") or "" for row in rows],
        "datasets": [
            {"label": "Units Sold", "data": [int(row.get("totalSold") or 0) for row in rows],
             "backgroundColor": COLORS["secondary"]},
            {"label": "Revenue", "data": [_number(row.get("totalRevenue")) for row in rows],
             "backgroundColor": COLORS["primary"]},
        ],
    }


def overview_kpis(overview: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    overview = overview or {}
    return {
        "total_users": int(overview.get("totalUsers") or 0),
        "total_products": int(overview.get("totalProducts") or 0),
        "total_orders": int(overview.get("totalOrders") or 0),
        "total_revenue": _number(overview.get("totalRevenue")),
        "revenue_growth": round(_number(overview.get("revenueGrowth")), 1),
        "order_growth": round(_number(overview.get("orderGrowth")), 1),
    }


# ---- Loading ----------------------------------------------------------------------------

SECTIONS = (
    ("sales", "get_sales_analytics"),
    ("users", "get_user_analytics"),
    ("products", "get_product_analytics"),
    ("search", "get_search_analytics"),
)


def build_dashboard(dashboard: Dict[str, Any], sales: Dict[str, Any], today: Optional[date] = None) -> Dict[str, Any]:
    dashboard = dashboard or {}
    sales = sales or {}
    return {
        "kpis": overview_kpis(dashboard.get("overview")),
        "engagement": dashboard.get("userEngagement") or {},
        "charts": {
            "activity": activity_chart(dashboard.get("analytics"), today),
            "top_products": top_products_chart(dashboard.get("topProducts")),
            "top_searches": top_searches_chart(dashboard.get("topSearches")),
            "funnel": funnel_chart(dashboard.get("conversionFunnel")),
            "sales": sales_chart(sales.get("salesData"), today),
            "top_selling": top_selling_chart(sales.get("topSellingProducts")),
        },
    }


def load_dashboard(token: str, start: date, end: date) -> Dict[str, Any]:
    """
    Dashboard aggregates are required; the secondary breakdowns (sales,
    users, products, search) degrade to empty sections when the backend
    can't produce them.
    """
    params = range_params(start, end)
    dashboard = services.get_dashboard_analytics(token, params)
    sections = {}
    for name, service in SECTIONS:
        try:
            sections[name] = getattr(services, service)(token, params) or {}
        except BackendError as exc:
            logger.warning("%s analytics unavailable: %s", name.capitalize(), exc)
            sections[name] = {}
    context = build_dashboard(dashboard, sections["sales"])
    context["sections"] = sections
    context.update({"start_date": start, "end_date": end})
    return context
