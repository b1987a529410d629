"""Views for the shop app: catalogue, cart, wishlist, checkout, orders, chat, addresses, notifications, reviews and the admin console."""

import logging

from django.conf import settings
from django.contrib import messages
from django.http import Http404, HttpRequest, HttpResponse
from django.shortcuts import redirect, render
from django.urls import reverse
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.http import require_POST

from backend_api import BackendError, services
from stores import AuthStore, CartStore, NotificationStore, ProductsStore, WishlistStore

from . import analytics, order_table
from .chat import ChatSession, order_for_viewer
from .checkout import CheckoutError, build_checkout_payload, payment_methods, start_checkout
from .decorators import admin_required, storefront_login_required
from .forms import (
    AddressForm,
    CheckoutForm,
    OrderStatusForm,
    PaymentStatusForm,
    ProductForm,
    ReviewEditForm,
    ReviewForm,
)

logger = logging.getLogger(__name__)

# Orders past these stages can no longer be cancelled by the customer.
NON_CANCELLABLE = ("shipped", "delivered", "cancelled")


# ---- Helpers ------------------------------------------------------------------

def _get_next_url(request: HttpRequest) -> str:
    """
    Return a safe 'next' URL from POST or GET (empty string if absent/unsafe).
    Prevents open-redirects by restricting to the current host.
    """
    raw = (request.POST.get("next") or request.GET.get("next", "")).strip()
    if raw and url_has_allowed_host_and_scheme(raw, allowed_hosts={request.get_host()}):
        return raw
    return ""


def _token(request: HttpRequest) -> str:
    return AuthStore(request).token


def _unwrap(data, key, default=None):
    """Backend payloads nest records under a key ({"order": {...}})."""
    if isinstance(data, dict) and key in data:
        return data[key]
    return default if data is None else data


def _product_or_404(request: HttpRequest, product_id: str) -> dict:
    product = ProductsStore(request).get_product_by_id(product_id)
    if not product:
        raise Http404("Product not found")
    return product


# ---- Catalogue -----------------------------------------------------------------

def product_list(request: HttpRequest):
    """
    Product listing with the filter panel. Filters live in the session;
    a `?search=` query (from the navbar) is applied before rendering.
    """
    store = ProductsStore(request)
    query = request.GET.get("search", "").strip() if "search" in request.GET else None
    if query is not None:
        store.apply_filter("search", query)
    products = store.filtered_products
    if query:
        _track_search(request, query, len(products))

    cart, wishlist = CartStore(request), WishlistStore(request)
    return render(
        request,
        "shop/product_list.html",
        {
            "products": products,
            "filters": store.filters,
            "categories": store.categories,
            "max_range": store.max_range,
            "cart_ids": {item["id"] for item in cart.items},
            "wishlist_ids": {item["id"] for item in wishlist.items},
        },
    )


def _track_search(request: HttpRequest, query: str, results_count: int) -> None:
    try:
        services.track_event(
            {"type": "search", "data": {"query": query, "resultsCount": results_count}},
            AuthStore(request).token,
        )
    except BackendError as exc:
        logger.debug("Search not tracked: %s", exc)


@require_POST
def apply_filter(request: HttpRequest):
    """Set one filter (sort_by, gender, price_range, rating, categories, search)."""
    filter_type = request.POST.get("filter_type", "")
    value = request.POST.get("filter_value", "")
    if filter_type in ("rating", "price_range"):
        try:
            value = int(float(value)) if value not in ("", None) else (0 if filter_type == "rating" else None)
        except (ValueError, OverflowError):
            messages.error(request, "Invalid filter value.")
            return redirect("shop:product_list")
    try:
        ProductsStore(request).apply_filter(filter_type, value)
    except ValueError:
        messages.error(request, "Unknown filter.")
    return redirect("shop:product_list")


@require_POST
def clear_filters(request: HttpRequest):
    ProductsStore(request).clear_filters()
    return redirect("shop:product_list")


def product_detail(request: HttpRequest, product_id: str):
    """Single product with its reviews and add-to-cart / wishlist actions."""
    product = _product_or_404(request, product_id)
    try:
        review_data = services.get_product_reviews(product_id) or {}
    except BackendError as exc:
        logger.warning("Reviews for %s unavailable: %s", product_id, exc)
        review_data = {}

    auth = AuthStore(request)
    if auth.is_authenticated:
        try:
            services.track_event({"type": "product_view", "data": {"productId": product_id}}, auth.token)
        except BackendError as exc:
            logger.debug("Product view not tracked: %s", exc)

    return render(
        request,
        "shop/product_detail.html",
        {
            "product": product,
            "reviews": _unwrap(review_data, "reviews", []),
            "review_stats": review_data.get("stats") if isinstance(review_data, dict) else None,
            "in_cart": CartStore(request).contains(product_id),
            "in_wishlist": WishlistStore(request).contains(product_id),
        },
    )


# ---- Cart ----------------------------------------------------------------------

@storefront_login_required
def cart_view(request: HttpRequest):
    """Render the cart mirrored from the backend with its totals."""
    cart = CartStore(request)
    cart.load()
    return render(request, "shop/cart.html", {"items": cart.items, "totals": cart.totals})


@require_POST
@storefront_login_required
def cart_add(request: HttpRequest):
    product_id = request.POST.get("product_id", "").strip()
    product = _product_or_404(request, product_id) if product_id else None
    if product is None:
        messages.error(request, "Invalid product.")
        return redirect("shop:product_list")
    CartStore(request).add_product(product)
    return redirect(_get_next_url(request) or "shop:cart")


@require_POST
@storefront_login_required
def cart_update(request: HttpRequest, product_id: str):
    """Increment or decrement; a decrement from 1 removes the item."""
    change = request.POST.get("change", "increment")
    if change not in ("increment", "decrement"):
        messages.error(request, "Invalid quantity change.")
    else:
        CartStore(request).update_qty(product_id, change)
    return redirect("shop:cart")


@require_POST
@storefront_login_required
def cart_remove(request: HttpRequest, product_id: str):
    CartStore(request).remove_product(product_id)
    return redirect(_get_next_url(request) or "shop:cart")


@require_POST
@storefront_login_required
def cart_clear(request: HttpRequest):
    CartStore(request).clear()
    return redirect("shop:cart")


# ---- Wishlist ------------------------------------------------------------------

@storefront_login_required
def wishlist_view(request: HttpRequest):
    wishlist = WishlistStore(request)
    wishlist.load()
    cart_ids = {item["id"] for item in CartStore(request).items}
    return render(request, "shop/wishlist.html", {"items": wishlist.items, "cart_ids": cart_ids})


@require_POST
@storefront_login_required
def wishlist_add(request: HttpRequest):
    product_id = request.POST.get("product_id", "").strip()
    if not product_id:
        messages.error(request, "Invalid product.")
        return redirect("shop:product_list")
    WishlistStore(request).add_product(_product_or_404(request, product_id))
    return redirect(_get_next_url(request) or "shop:wishlist")


@require_POST
@storefront_login_required
def wishlist_remove(request: HttpRequest, product_id: str):
    WishlistStore(request).remove_product(product_id)
    return redirect(_get_next_url(request) or "shop:wishlist")


@require_POST
@storefront_login_required
def wishlist_move_to_cart(request: HttpRequest, product_id: str):
    WishlistStore(request).move_to_cart(product_id)
    return redirect("shop:wishlist")


@require_POST
@storefront_login_required
def wishlist_clear(request: HttpRequest):
    WishlistStore(request).clear()
    return redirect("shop:wishlist")


# ---- Checkout ------------------------------------------------------------------

@storefront_login_required
def checkout(request: HttpRequest):
    """
    Pick a delivery address and payment method, then redirect the browser to
    the hosted checkout page. Nothing is charged here.
    """
    cart = CartStore(request)
    cart.load()
    if not cart.items:
        messages.error(request, "Your cart is empty.")
        return redirect("shop:cart")

    products = ProductsStore(request)
    products.load_addresses()
    if not products.addresses:
        messages.info(request, "Add a delivery address to continue.")
        return redirect(f"{reverse('shop:address_create')}?next={reverse('shop:checkout')}")

    methods = payment_methods()
    form = CheckoutForm(
        request.POST or None,
        addresses=products.addresses,
        payment_methods=methods,
        initial={"address_id": (products.current_address or {}).get("_id")},
    )
    if request.method == "POST" and form.is_valid():
        address = products.get_address(form.cleaned_data["address_id"])
        totals = cart.totals
        try:
            payload = build_checkout_payload(
                cart.items, totals["total_price"], form.cleaned_data["payment_method"], address
            )
            return redirect(start_checkout(payload, _token(request)))
        except CheckoutError as exc:
            messages.error(request, str(exc))
        except BackendError as exc:
            messages.error(request, exc.message)

    return render(
        request,
        "shop/checkout.html",
        {"form": form, "items": cart.items, "totals": cart.totals, "addresses": products.addresses},
    )


@storefront_login_required
def payment_success(request: HttpRequest):
    """Landing page after the hosted checkout; requires `session_id`."""
    session_id = request.GET.get("session_id", "").strip()
    if not session_id:
        messages.error(request, "Invalid payment success page")
        return redirect("core:home")

    order = None
    try:
        order = _unwrap(services.create_order_from_session(session_id, _token(request)), "order")
    except BackendError as exc:
        # The payment webhook may already have created the order.
        logger.warning("Order from session %s not created here: %s", session_id, exc)
    CartStore(request).load()
    messages.success(request, "Payment successful! Your order has been confirmed.")
    return render(request, "shop/payment_success.html", {"session_id": session_id, "order": order})


# ---- Orders --------------------------------------------------------------------

@storefront_login_required
def order_list(request: HttpRequest):
    """Customer orders with search, status/time filters, sorting and the unread chat badge."""
    token = _token(request)
    try:
        orders = _unwrap(services.get_user_orders(token), "orders", []) or []
    except BackendError as exc:
        messages.error(request, exc.message)
        orders = []

    try:
        unread_messages = int((services.get_unread_message_count(token) or {}).get("unreadCount") or 0)
    except BackendError as exc:
        logger.warning("Unread message count unavailable: %s", exc)
        unread_messages = 0

    return render(
        request,
        "shop/order_list.html",
        {
            "orders": order_table.customer_orders(orders, request.GET),
            "total_orders": len(orders),
            "unread_messages": unread_messages,
            "params": request.GET,
            "statuses": order_table.ORDER_STATUSES,
            "non_cancellable": NON_CANCELLABLE,
        },
    )


@storefront_login_required
def order_detail(request: HttpRequest, order_id: str):
    try:
        order = _unwrap(services.get_order(order_id, _token(request)), "order")
    except BackendError as exc:
        if exc.is_not_found:
            raise Http404("Order not found") from exc
        messages.error(request, exc.message)
        return redirect("shop:order_list")
    return render(
        request,
        "shop/order_detail.html",
        {"order": order, "can_cancel": (order or {}).get("status") not in NON_CANCELLABLE},
    )


@require_POST
@storefront_login_required
def order_cancel(request: HttpRequest, order_id: str):
    try:
        services.cancel_order(order_id, _token(request))
    except BackendError as exc:
        messages.error(request, exc.message)
    else:
        messages.success(request, "Order cancelled successfully")
    return redirect("shop:order_detail", order_id=order_id)


@storefront_login_required
def order_chat(request: HttpRequest, order_id: str):
    """
    Chat page for one order. The page renders the current thread and then
    polls the chat API; sending goes through the same API.
    """
    auth = AuthStore(request)
    try:
        order = order_for_viewer(order_id, auth.token, auth.user_info or {})
        if not order:
            raise Http404("Order not found")
        chat = ChatSession(order_id, auth.token, auth.user_info or {}, order=order)
        chat.load()
        chat.mark_read()
    except BackendError as exc:
        messages.error(request, exc.message)
        return redirect("shop:admin_orders" if auth.is_admin else "shop:order_list")

    return render(
        request,
        "shop/order_chat.html",
        {
            "order": order,
            "chat_messages": chat.messages,
            "other_user": chat.other_user,
            "poll_interval_ms": getattr(settings, "CHAT_POLL_INTERVAL", 3) * 1000,
        },
    )


# ---- Addresses -----------------------------------------------------------------

@storefront_login_required
def address_list(request: HttpRequest):
    store = ProductsStore(request)
    store.load_addresses()
    return render(
        request,
        "shop/address_list.html",
        {"addresses": store.addresses, "current_address": store.current_address},
    )


@storefront_login_required
def address_create(request: HttpRequest):
    next_url = _get_next_url(request)
    form = AddressForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        if ProductsStore(request).add_address(form.to_backend()):
            return redirect(next_url or "shop:address_list")
    return render(request, "shop/address_form.html", {"form": form, "title": "New Address", "next": next_url})


@storefront_login_required
def address_update(request: HttpRequest, address_id: str):
    store = ProductsStore(request)
    address = store.get_address(address_id)
    if address is None:
        store.load_addresses()
        address = store.get_address(address_id)
    if address is None:
        raise Http404("Address not found")

    if request.method == "POST":
        form = AddressForm(request.POST)
        if form.is_valid() and store.update_address(address_id, form.to_backend()):
            return redirect("shop:address_list")
    else:
        form = AddressForm.from_backend(address)
    return render(request, "shop/address_form.html", {"form": form, "title": "Edit Address"})


@require_POST
@storefront_login_required
def address_delete(request: HttpRequest, address_id: str):
    ProductsStore(request).delete_address(address_id)
    return redirect("shop:address_list")


# ---- Notifications -------------------------------------------------------------

@storefront_login_required
def notification_list(request: HttpRequest):
    store = NotificationStore(request)
    store.fetch(unreadOnly=request.GET.get("unread") == "1" or None)
    if store.error:
        messages.error(request, store.error)
        store.clear_error()
    return render(
        request,
        "shop/notifications.html",
        {"notifications": store.notifications, "unread_count": store.unread_count},
    )


def _notification_action(request: HttpRequest, action, *args):
    store = NotificationStore(request)
    if not getattr(store, action)(*args) and store.error:
        messages.error(request, store.error)
        store.clear_error()
    return redirect(_get_next_url(request) or "shop:notifications")


@require_POST
@storefront_login_required
def notification_read(request: HttpRequest, notification_id: str):
    return _notification_action(request, "mark_as_read", notification_id)


@require_POST
@storefront_login_required
def notification_read_all(request: HttpRequest):
    return _notification_action(request, "mark_all_as_read")


@require_POST
@storefront_login_required
def notification_delete(request: HttpRequest, notification_id: str):
    return _notification_action(request, "delete", notification_id)


@require_POST
@storefront_login_required
def notification_clear(request: HttpRequest):
    return _notification_action(request, "clear_all")


# ---- Reviews -------------------------------------------------------------------

@storefront_login_required
def review_create(request: HttpRequest, product_id: str, order_id: str):
    """Review a product from a delivered order (the backend decides eligibility)."""
    token = _token(request)
    product = _product_or_404(request, product_id)
    try:
        eligibility = services.can_review(product_id, order_id, token) or {}
    except BackendError as exc:
        messages.error(request, exc.message)
        return redirect("shop:order_detail", order_id=order_id)
    if not eligibility.get("canReview", True):
        messages.error(request, eligibility.get("reason") or "You cannot review this product.")
        return redirect("shop:order_detail", order_id=order_id)

    form = ReviewForm(request.POST or None, initial={"order_id": order_id})
    if request.method == "POST":
        if not form.is_valid():
            messages.error(request, "Please provide a rating between 1 and 5.")
        else:
            try:
                services.create_review(
                    product_id,
                    form.cleaned_data["order_id"],
                    form.cleaned_data["rating"],
                    form.cleaned_data["comment"],
                    token,
                )
            except BackendError as exc:
                messages.error(request, exc.message)
            else:
                messages.success(request, "Thanks for your review!")
                return redirect("shop:product_detail", product_id=product_id)
    return render(request, "shop/review_form.html", {"form": form, "product": product})


@storefront_login_required
def my_reviews(request: HttpRequest):
    try:
        reviews = _unwrap(services.get_user_reviews(_token(request)), "reviews", [])
    except BackendError as exc:
        messages.error(request, exc.message)
        reviews = []
    return render(request, "shop/my_reviews.html", {"reviews": reviews})


@require_POST
@storefront_login_required
def review_update(request: HttpRequest, review_id: str):
    form = ReviewEditForm(request.POST)
    if not form.is_valid():
        messages.error(request, "Please provide a rating between 1 and 5.")
        return redirect("shop:my_reviews")
    try:
        services.update_review(review_id, form.cleaned_data, _token(request))
    except BackendError as exc:
        messages.error(request, exc.message)
    else:
        messages.success(request, "Review updated.")
    return redirect("shop:my_reviews")


@require_POST
@storefront_login_required
def review_delete(request: HttpRequest, review_id: str):
    try:
        services.delete_review(review_id, _token(request))
    except BackendError as exc:
        messages.error(request, exc.message)
    else:
        messages.info(request, "Review deleted.")
    return redirect(_get_next_url(request) or "shop:my_reviews")


@require_POST
@storefront_login_required
def review_helpful(request: HttpRequest, review_id: str):
    try:
        services.mark_review_helpful(review_id, _token(request))
    except BackendError as exc:
        messages.error(request, exc.message)
    return redirect(_get_next_url(request) or "shop:product_list")


# ---- Admin: orders -------------------------------------------------------------

@admin_required
def admin_orders(request: HttpRequest) -> HttpResponse:
    """
    Order console. GET renders the filtered/sorted/paginated table; POST runs
    a bulk action over the selected order ids.
    """
    token = _token(request)
    try:
        orders = order_table.fetch_orders(token)
    except BackendError as exc:
        messages.error(request, exc.message)
        orders = []

    if request.method == "POST":
        action = request.POST.get("action", "")
        selected = request.POST.getlist("order_ids")
        if action == order_table.EXPORT_CSV:
            response = HttpResponse(order_table.export_csv(orders, selected), content_type="text/csv")
            response["Content-Disposition"] = 'attachment; filename="orders.csv"'
            return response
        if not selected:
            messages.error(request, "Select at least one order.")
        elif action not in order_table.BULK_ACTIONS:
            messages.error(request, "Unknown bulk action.")
        else:
            result = order_table.run_bulk_action(action, selected, token)
            if result.succeeded:
                messages.success(request, f"Updated {len(result.succeeded)} order(s).")
            for order_id, reason in result.failed:
                messages.error(request, f"Order {order_id}: {reason}")
        return redirect(f"{reverse('shop:admin_orders')}?{request.GET.urlencode()}")

    query = order_table.OrderQuery.from_params(request.GET)
    context = order_table.build_table(orders, query)
    context.update(
        {
            "order_statuses": order_table.ORDER_STATUSES,
            "payment_statuses": order_table.PAYMENT_STATUSES,
            "bulk_actions": list(order_table.BULK_ACTIONS) + [order_table.EXPORT_CSV],
            "querystring": request.GET.copy(),
        }
    )
    return render(request, "shop/admin/orders.html", context)


@require_POST
@admin_required
def admin_order_status(request: HttpRequest, order_id: str):
    form = OrderStatusForm(request.POST)
    if not form.is_valid():
        messages.error(request, "Invalid order status")
    else:
        try:
            services.update_order_status(
                order_id, form.cleaned_data["status"], _token(request), notes=form.cleaned_data.get("notes")
            )
        except BackendError as exc:
            messages.error(request, exc.message)
        else:
            messages.success(request, "Order status updated.")
    return redirect(_get_next_url(request) or "shop:admin_orders")


@require_POST
@admin_required
def admin_order_payment_status(request: HttpRequest, order_id: str):
    form = PaymentStatusForm(request.POST)
    if not form.is_valid():
        messages.error(request, "Invalid payment status")
    else:
        try:
            services.update_order_payment_status(order_id, form.cleaned_data["payment_status"], _token(request))
        except BackendError as exc:
            messages.error(request, exc.message)
        else:
            messages.success(request, "Payment status updated.")
    return redirect(_get_next_url(request) or "shop:admin_orders")


# ---- Admin: products -----------------------------------------------------------

@admin_required
def admin_product_list(request: HttpRequest):
    params = {"search": request.GET.get("search", "").strip(), "page": request.GET.get("page", 1)}
    try:
        data = services.get_admin_products(_token(request), params) or {}
    except BackendError as exc:
        messages.error(request, exc.message)
        data = {}
    return render(
        request,
        "shop/admin/product_list.html",
        {"products": _unwrap(data, "products", []), "search": params["search"]},
    )


@admin_required
def admin_product_create(request: HttpRequest):
    categories = ProductsStore(request).categories
    form = ProductForm(request.POST or None, categories=categories)
    if request.method == "POST" and form.is_valid():
        try:
            services.create_admin_product(form.to_backend(), _token(request))
        except BackendError as exc:
            messages.error(request, exc.message)
        else:
            ProductsStore.invalidate()
            messages.success(request, "Product created.")
            return redirect("shop:admin_products")
    return render(request, "shop/admin/product_form.html", {"form": form, "title": "New Product"})


@admin_required
def admin_product_update(request: HttpRequest, product_id: str):
    categories = ProductsStore(request).categories
    if request.method == "POST":
        form = ProductForm(request.POST, categories=categories)
        if form.is_valid():
            try:
                services.update_admin_product(product_id, form.to_backend(), _token(request))
            except BackendError as exc:
                messages.error(request, exc.message)
            else:
                ProductsStore.invalidate()
                messages.success(request, "Product updated.")
                return redirect("shop:admin_products")
    else:
        product = _product_or_404(request, product_id)
        form = ProductForm(initial=ProductForm.initial_from_backend(product), categories=categories)
    return render(request, "shop/admin/product_form.html", {"form": form, "title": "Edit Product"})


@admin_required
def admin_product_delete(request: HttpRequest, product_id: str):
    product = _product_or_404(request, product_id)
    if request.method == "POST":
        try:
            services.delete_admin_product(product_id, _token(request))
        except BackendError as exc:
            messages.error(request, exc.message)
        else:
            ProductsStore.invalidate()
            messages.success(request, "Product deleted.")
        return redirect("shop:admin_products")
    return render(request, "shop/admin/confirm_delete.html", {"object": product, "type": "Product"})


# ---- Admin: analytics ----------------------------------------------------------

@admin_required
def analytics_dashboard(request: HttpRequest):
    """KPIs and chart series for the selected range (last 30 days by default)."""
    start, end = analytics.date_range(request.GET)
    try:
        services.track_page_view(request.path, _token(request), {
            "userAgent": request.META.get("HTTP_USER_AGENT", ""),
            "referrer": request.META.get("HTTP_REFERER", ""),
        })
    except BackendError as exc:
        logger.debug("Dashboard page view not tracked: %s", exc)

    try:
        context = analytics.load_dashboard(_token(request), start, end)
    except BackendError as exc:
        messages.error(request, exc.message)
        context = analytics.build_dashboard({}, {})
        context.update({"start_date": start, "end_date": end, "sections": {}})
    return render(request, "shop/admin/analytics.html", context)
