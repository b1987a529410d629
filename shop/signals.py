# shop/signals.py
import logging

from django.dispatch import receiver

from stores import CartStore, NotificationStore, WishlistStore
from stores.signals import storefront_login, storefront_logout

logger = logging.getLogger(__name__)


@receiver(storefront_login, dispatch_uid="shop_sync_visitor_state_v1")
def sync_visitor_state(sender, request, user, **kwargs) -> None:
    """
    A fresh token means fresh per-visitor state: pull the cart, wishlist and
    unread notification count from the backend.
    """
    CartStore(request).load()
    WishlistStore(request).load()
    NotificationStore(request).fetch_unread_count()


@receiver(storefront_logout, dispatch_uid="shop_log_logout_v1")
def visitor_logged_out(sender, request, user, **kwargs) -> None:
    logger.info("User %s logged out.", (user or {}).get("username"))
