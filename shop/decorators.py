# shop/decorators.py
from functools import wraps

from django.contrib.auth.views import redirect_to_login
from django.core.exceptions import PermissionDenied

from stores import AuthStore


def storefront_login_required(view_func):
    """Redirect anonymous visitors (no backend token) to the login page."""
    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        if not AuthStore(request).is_authenticated:
            return redirect_to_login(request.get_full_path())
        return view_func(request, *args, **kwargs)
    return _wrapped


def admin_required(view_func):
    """Login first, then 403 unless the backend user has the admin role."""
    @wraps(view_func)
    @storefront_login_required
    def _wrapped(request, *args, **kwargs):
        if not AuthStore(request).is_admin:
            raise PermissionDenied
        return view_func(request, *args, **kwargs)
    return _wrapped
