from unittest import mock

from django.conf import settings
from django.test import TestCase
from django.urls import reverse

from backend_api import BackendError

USER = {"_id": "u1", "username": "bob", "email": "bob@example.com", "role": "user"}


@mock.patch("backend_api.services.get_notification_unread_count", return_value={"unreadCount": 0})
@mock.patch("backend_api.services.get_wishlist", return_value={"wishlist": []})
@mock.patch("backend_api.services.get_cart", return_value={"cart": [{"product": {"_id": "p1", "price": 10}, "quantity": 2}]})
class AuthFlowTests(TestCase):
    @mock.patch("backend_api.services.login")
    def test_login_syncs_cart_and_honors_next(self, login, *_):
        login.return_value = {"token": "tok", "user": USER}
        resp = self.client.post(
            reverse("accounts:login"),
            {"email": "bob@example.com", "password": "secret", "next": "/orders/"},
        )
        self.assertRedirects(resp, "/orders/", fetch_redirect_response=False)
        self.assertEqual(self.client.session["token"], "tok")
        self.assertEqual(self.client.session["cart"]["cart"][0]["qty"], 2)

    @mock.patch("backend_api.services.login")
    def test_login_ignores_offsite_next(self, login, *_):
        login.return_value = {"token": "tok", "user": USER}
        resp = self.client.post(
            reverse("accounts:login"),
            {"email": "bob@example.com", "password": "secret", "next": "https://evil.example.com/"},
        )
        self.assertRedirects(resp, reverse("core:home"), fetch_redirect_response=False)

    @mock.patch("backend_api.services.login")
    def test_login_rotates_session_key(self, login, *_):
        login.return_value = {"token": "tok", "user": USER}
        session = self.client.session
        session["products"] = {"filters": {"sort_by": "low_to_high"}}
        session.save()
        before = session.session_key
        self.client.post(reverse("accounts:login"), {"email": "bob@example.com", "password": "secret"})
        after = self.client.cookies[settings.SESSION_COOKIE_NAME].value
        self.assertNotEqual(before, after)
        self.assertEqual(self.client.session["token"], "tok")
        # Anonymous state carries over to the new key.
        self.assertEqual(self.client.session["products"]["filters"]["sort_by"], "low_to_high")

    @mock.patch("backend_api.services.login")
    def test_bad_credentials_rerender_form(self, login, *_):
        login.side_effect = BackendError("Invalid email or password", status_code=401)
        resp = self.client.post(reverse("accounts:login"), {"email": "bob@example.com", "password": "nope"})
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, "Invalid email or password")
        self.assertNotIn("token", self.client.session)

    @mock.patch("backend_api.services.signup")
    def test_signup_password_mismatch_never_reaches_backend(self, signup, *_):
        resp = self.client.post(reverse("accounts:signup"), {
            "username": "bob", "email": "bob@example.com", "password1": "secret1", "password2": "secret2",
        })
        self.assertEqual(resp.status_code, 200)
        signup.assert_not_called()

    @mock.patch("backend_api.services.signup")
    def test_signup_signs_in(self, signup, *_):
        signup.return_value = {"token": "tok", "user": USER}
        resp = self.client.post(reverse("accounts:signup"), {
            "username": "bob", "email": "bob@example.com", "password1": "secret1", "password2": "secret1",
        })
        self.assertRedirects(resp, reverse("core:home"), fetch_redirect_response=False)
        signup.assert_called_once_with("bob", "bob@example.com", "secret1")

    def test_logout_is_post_only_and_wipes_session(self, *_):
        session = self.client.session
        session.update({"token": "tok", "userInfo": USER, "refreshedFor": "tok", "cart": {"cart": []}})
        session.save()
        self.assertEqual(self.client.get(reverse("accounts:logout")).status_code, 405)
        resp = self.client.post(reverse("accounts:logout"))
        self.assertRedirects(resp, reverse("core:home"), fetch_redirect_response=False)
        self.assertNotIn("token", self.client.session)
        self.assertNotIn("cart", self.client.session)
        self.assertNotIn("refreshedFor", self.client.session)
        self.assertNotEqual(self.client.cookies[settings.SESSION_COOKIE_NAME].value, session.session_key)


class ProfileTests(TestCase):
    def setUp(self):
        session = self.client.session
        session.update({"token": "tok", "userInfo": USER, "refreshedFor": "tok"})
        session.save()

    @mock.patch("backend_api.services.update_profile")
    def test_profile_update_refreshes_cached_user(self, update_profile):
        update_profile.return_value = {"user": {**USER, "username": "robert"}}
        resp = self.client.post(reverse("accounts:profile"), {"username": "robert", "email": "bob@example.com"})
        self.assertRedirects(resp, reverse("accounts:profile"), fetch_redirect_response=False)
        self.assertEqual(self.client.session["userInfo"]["username"], "robert")

    @mock.patch("backend_api.services.change_password")
    def test_change_password_failure(self, change_password):
        change_password.side_effect = BackendError("Current password is incorrect", status_code=400)
        resp = self.client.post(reverse("accounts:change_password"), {
            "current_password": "wrong", "new_password": "secret9", "confirm_password": "secret9",
        })
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, "Current password is incorrect")
        change_password.assert_called_once_with("wrong", "secret9", "tok")
