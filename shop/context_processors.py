# shop/context_processors.py
from django.conf import settings

from stores import AuthStore, CartStore, NotificationStore, WishlistStore


def storefront(request):
    """Navbar state: who is signed in and the cart/wishlist/notification badges."""
    if not hasattr(request, "session"):
        return {}
    auth = AuthStore(request)
    context = {
        "user_info": auth.user_info,
        "is_authenticated": auth.is_authenticated,
        "is_admin": auth.is_admin,
        "cart_count": 0,
        "wishlist_count": 0,
        "unread_notifications": 0,
        "notification_poll_interval_ms": getattr(settings, "NOTIFICATION_POLL_INTERVAL", 30) * 1000,
    }
    if auth.is_authenticated:
        context.update(
            {
                "cart_count": CartStore(request).totals["item_count"],
                "wishlist_count": len(WishlistStore(request).items),
                "unread_notifications": NotificationStore(request).unread_count,
            }
        )
    return context
