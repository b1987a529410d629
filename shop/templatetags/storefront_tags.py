# shop/templatetags/storefront_tags.py
from django import template

from stores.cart import effective_price as _cart_price
from stores.filters import product_price

register = template.Library()


@register.filter
def oid(record):
    """Backend records carry `_id`, which templates cannot reach directly."""
    if isinstance(record, dict):
        return record.get("_id") or record.get("id") or ""
    return record or ""


@register.filter
def field(record, key):
    if isinstance(record, dict):
        return record.get(key)
    return None


@register.filter
def first_image(record):
    images = (record or {}).get("images") or []
    return images[0] if images else ""


@register.filter
def price(record):
    """Effective price of a catalogue product or a cart item."""
    if not isinstance(record, dict):
        return ""
    if "qty" in record:
        return _cart_price(record)
    return product_price(record)


@register.filter
def line_total(item):
    return _cart_price(item) * int(item.get("qty") or 0)


@register.simple_tag(takes_context=True)
def url_replace(context, **kwargs):
    """Current query string with some parameters replaced (pagination, sorting)."""
    params = context["request"].GET.copy()
    for key, value in kwargs.items():
        params[key] = value
    return params.urlencode()


@register.filter
def category_value(category):
    """Name products are tagged with; what the category filter matches on."""
    if not isinstance(category, dict):
        return category or ""
    return category.get("categoryName") or category.get("name") or ""


@register.filter
def category_label(category):
    if not isinstance(category, dict):
        return category or ""
    return category.get("displayName") or category_value(category)


@register.filter
def item_name(record):
    """Name of an order line or review target; the product may be populated or a bare id."""
    if isinstance(record, dict):
        if record.get("name"):
            return record["name"]
        return item_name(record.get("product"))
    return record or ""
