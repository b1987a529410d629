# storefront_project/urls.py
from django.shortcuts import render
from django.urls import include, path


# --- Custom 403 handler (PermissionDenied) ---
def permission_denied_view(request, exception):
    return render(request, "403.html", status=403)


# Django looks for these names at module level in the *root* URLconf
handler403 = "storefront_project.urls.permission_denied_view"

urlpatterns = [
    path("", include(("core.urls", "core"), namespace="core")),
    path("accounts/", include(("accounts.urls", "accounts"), namespace="accounts")),

    # Catalogue, cart, checkout, orders, chat, reviews and the admin console
    path("", include(("shop.urls", "shop"), namespace="shop")),

    # JSON endpoints for the page scripts
    path("api/", include(("api.urls", "api"), namespace="api")),
]
