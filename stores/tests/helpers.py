# stores/tests/helpers.py
from django.contrib.messages import get_messages
from django.contrib.messages.storage.fallback import FallbackStorage
from django.contrib.sessions.backends.db import SessionStore
from django.test import RequestFactory


def make_request(path: str = "/", token: str = None, user: dict = None):
    """Bare request with a session and message storage attached."""
    request = RequestFactory().get(path)
    request.session = SessionStore()
    request._messages = FallbackStorage(request)
    if token:
        request.session["token"] = token
        request.session["userInfo"] = user or {"_id": "u1", "username": "bob", "role": "user"}
    return request


def flashed(request):
    return [str(m) for m in get_messages(request)]


def product(pid: str, price=100, new_price=80, **extra):
    data = {
        "_id": pid,
        "name": f"Product {pid}",
        "brand": "Acme",
        "category": "Shoes",
        "gender": "Men",
        "price": price,
        "newPrice": new_price,
        "rating": 4.2,
        "trending": False,
        "images": [f"https://img.example.com/{pid}.png"],
    }
    data.update(extra)
    return data
