# api/tests/test_permissions.py
from types import SimpleNamespace

from django.contrib.messages.storage.fallback import FallbackStorage
from django.contrib.sessions.backends.db import SessionStore
from django.test import TestCase
from rest_framework.request import Request
from rest_framework.test import APIRequestFactory

from api.authentication import StorefrontSessionAuthentication, StorefrontUser
from api.permissions import IsStorefrontAdmin, IsStorefrontAuthenticated


class PermissionTests(TestCase):
    def setUp(self):
        self.factory = APIRequestFactory()
        self.customer = StorefrontUser({"_id": "u1", "username": "bob", "role": "user"}, "tok")
        self.admin = StorefrontUser({"_id": "a1", "username": "root", "role": "admin"}, "admin-tok")
        self.view = SimpleNamespace()

    def request(self, user):
        req = self.factory.get("/api/cart/summary/")
        req.user = user
        return req

    # ---- IsStorefrontAuthenticated ----
    def test_authenticated_allows_signed_in(self):
        self.assertTrue(IsStorefrontAuthenticated().has_permission(self.request(self.customer), self.view))

    def test_authenticated_denies_anonymous(self):
        self.assertFalse(IsStorefrontAuthenticated().has_permission(self.request(None), self.view))

    # ---- IsStorefrontAdmin ----
    def test_admin_requires_admin_role(self):
        self.assertTrue(IsStorefrontAdmin().has_permission(self.request(self.admin), self.view))
        self.assertFalse(IsStorefrontAdmin().has_permission(self.request(self.customer), self.view))
        self.assertFalse(IsStorefrontAdmin().has_permission(self.request(None), self.view))


class AuthenticationTests(TestCase):
    def make_request(self, session_data=None):
        django_request = APIRequestFactory().get("/api/cart/summary/")
        django_request.session = SessionStore()
        django_request.session.update(session_data or {})
        django_request._messages = FallbackStorage(django_request)
        django_request._dont_enforce_csrf_checks = True
        return Request(django_request)

    def test_no_token_means_anonymous(self):
        self.assertIsNone(StorefrontSessionAuthentication().authenticate(self.make_request()))

    def test_session_token_becomes_user(self):
        request = self.make_request({"token": "tok", "userInfo": {"_id": "u1", "username": "bob", "role": "admin"}})
        user, token = StorefrontSessionAuthentication().authenticate(request)
        self.assertEqual(token, "tok")
        self.assertEqual((user.id, user.username, str(user)), ("u1", "bob", "bob"))
        self.assertTrue(user.is_admin)
        self.assertTrue(user.is_authenticated)
