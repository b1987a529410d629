from .auth import AuthStore
from .cart import CartStore
from .notifications import NotificationStore
from .products import ProductsStore
from .wishlist import WishlistStore

__all__ = ["AuthStore", "CartStore", "NotificationStore", "ProductsStore", "WishlistStore"]
