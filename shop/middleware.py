# shop/middleware.py
import logging

from stores import AuthStore

logger = logging.getLogger(__name__)

# Token the cached profile was last refreshed for.
REFRESHED_KEY = "refreshedFor"


class RefreshUserMiddleware:
    """
    Re-validate the stored token against the backend once per token.

    A stale token (401) logs the visitor out before the view runs; any other
    backend failure keeps the cached profile.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        session = getattr(request, "session", None)
        if session is not None:
            auth = AuthStore(request)
            token = auth.token
            if token and session.get(REFRESHED_KEY) != token:
                session[REFRESHED_KEY] = token
                auth.refresh_user_data()
        return self.get_response(request)
