from unittest import mock

from django.core.cache import cache
from django.test import SimpleTestCase, TestCase

from backend_api import BackendError
from stores.auth import AuthStore
from stores.cart import normalize_item
from stores.notifications import (
    MARK_ALL_AS_READ,
    MARK_AS_READ,
    REMOVE_NOTIFICATION,
    NotificationStore,
    notification_reducer,
)
from stores.products import ProductsStore

from .helpers import flashed, make_request, product


# ---------------- Auth ----------------

class AuthStoreTests(TestCase):
    @mock.patch("backend_api.services.get_notification_unread_count", return_value={"unreadCount": 2})
    @mock.patch("backend_api.services.get_wishlist", return_value={"wishlist": []})
    @mock.patch("backend_api.services.get_cart", return_value={"cart": []})
    @mock.patch("backend_api.services.login")
    def test_login_persists_token_and_user(self, login, get_cart, get_wishlist, unread):
        login.return_value = {"token": "abc", "user": {"_id": "u1", "username": "bob", "role": "admin"}}
        request = make_request()
        auth = AuthStore(request)
        self.assertTrue(auth.login("bob@example.com", "secret"))
        self.assertEqual(request.session["token"], "abc")
        self.assertTrue(auth.is_admin)
        self.assertIn("Logged In Successfully!!", flashed(request))
        # Per-visitor state is synced right after login.
        get_cart.assert_called_once_with("abc")
        self.assertEqual(request.session["notifications"]["unread_count"], 2)

    @mock.patch("backend_api.services.get_notification_unread_count", return_value={"unreadCount": 0})
    @mock.patch("backend_api.services.get_wishlist", return_value={"wishlist": []})
    @mock.patch("backend_api.services.get_cart", return_value={"cart": []})
    @mock.patch("backend_api.services.login")
    def test_login_issues_new_session_key(self, login, *_):
        login.return_value = {"token": "abc", "user": {"_id": "u1", "username": "bob"}}
        request = make_request()
        request.session.save()
        planted = request.session.session_key
        AuthStore(request).login("bob@example.com", "secret")
        self.assertNotEqual(request.session.session_key, planted)
        self.assertEqual(request.session["token"], "abc")

    @mock.patch("backend_api.services.login")
    def test_login_failure_shows_backend_message(self, login):
        login.side_effect = BackendError("Invalid credentials", status_code=401)
        request = make_request()
        self.assertFalse(AuthStore(request).login("bob@example.com", "bad"))
        self.assertNotIn("token", request.session)
        self.assertIn("Invalid credentials", flashed(request))

    def test_logout_wipes_visitor_state(self):
        request = make_request(token="tok")
        request.session["cart"] = {"cart": [{"id": "p1"}]}
        AuthStore(request).logout()
        self.assertNotIn("token", request.session)
        self.assertNotIn("cart", request.session)
        self.assertIsNone(request.session.session_key)

    @mock.patch("backend_api.services.get_current_user")
    def test_refresh_401_logs_out(self, get_current_user):
        get_current_user.side_effect = BackendError("Not authorized", status_code=401)
        request = make_request(token="stale")
        self.assertIsNone(AuthStore(request).refresh_user_data())
        self.assertFalse(AuthStore(request).is_authenticated)

    @mock.patch("backend_api.services.get_current_user")
    def test_refresh_other_errors_keep_session(self, get_current_user):
        get_current_user.side_effect = BackendError("Unable to reach the server")
        request = make_request(token="tok")
        AuthStore(request).refresh_user_data()
        self.assertTrue(AuthStore(request).is_authenticated)

    @mock.patch("backend_api.services.get_current_user")
    def test_refresh_updates_profile(self, get_current_user):
        get_current_user.return_value = {"user": {"_id": "u1", "username": "renamed"}}
        request = make_request(token="tok")
        AuthStore(request).refresh_user_data()
        self.assertEqual(request.session["userInfo"]["username"], "renamed")


# ---------------- Notifications ----------------

class NotificationReducerTests(SimpleTestCase):
    def state(self, unread=1):
        return {
            "notifications": [{"_id": "n1", "isRead": False}, {"_id": "n2", "isRead": False}],
            "unread_count": unread,
            "loading": False,
            "error": None,
            "last_fetch": None,
        }

    def test_mark_as_read_never_goes_negative(self):
        state = notification_reducer(self.state(unread=0), {"type": MARK_AS_READ, "payload": "n1"})
        self.assertEqual(state["unread_count"], 0)
        self.assertTrue(state["notifications"][0]["isRead"])
        self.assertFalse(state["notifications"][1]["isRead"])

    def test_remove_decrements(self):
        state = notification_reducer(self.state(unread=2), {"type": REMOVE_NOTIFICATION, "payload": "n2"})
        self.assertEqual(state["unread_count"], 1)
        self.assertEqual([n["_id"] for n in state["notifications"]], ["n1"])

    def test_mark_all(self):
        state = notification_reducer(self.state(unread=5), {"type": MARK_ALL_AS_READ})
        self.assertEqual(state["unread_count"], 0)
        self.assertTrue(all(n["isRead"] for n in state["notifications"]))


class NotificationStoreTests(SimpleTestCase):
    @mock.patch("backend_api.services.get_notifications")
    def test_fetch(self, get_notifications):
        get_notifications.return_value = {"notifications": [{"_id": "n1"}], "unreadCount": 1}
        store = NotificationStore(make_request(token="tok"))
        self.assertTrue(store.fetch())
        self.assertEqual(store.unread_count, 1)
        self.assertIsNotNone(store.state["last_fetch"])

    @mock.patch("backend_api.services.mark_notification_read")
    def test_failure_sets_error(self, mark_read):
        mark_read.side_effect = BackendError("Notification not found", status_code=404)
        store = NotificationStore(make_request(token="tok"))
        self.assertFalse(store.mark_as_read("n1"))
        self.assertEqual(store.error, "Notification not found")
        self.assertFalse(store.state["loading"])

    @mock.patch("backend_api.services.get_notification_unread_count")
    def test_fetch_unread_count(self, unread):
        unread.return_value = {"unreadCount": 4}
        self.assertEqual(NotificationStore(make_request(token="tok")).fetch_unread_count(), 4)

    def test_anonymous_is_noop(self):
        self.assertEqual(NotificationStore(make_request()).fetch_unread_count(), 0)


# ---------------- Products ----------------

class ProductsStoreTests(SimpleTestCase):
    def setUp(self):
        cache.clear()
        self.request = make_request(token="tok")
        self.catalogue = [
            product("p1", price=100, new_price=90, trending=True),
            product("p2", price=300, new_price=250, category="Bags"),
        ]

    @mock.patch("backend_api.services.get_categories")
    @mock.patch("backend_api.services.get_products")
    def test_catalogue_is_cached(self, get_products, get_categories):
        get_products.return_value = {"products": self.catalogue}
        store = ProductsStore(self.request)
        self.assertEqual(len(store.all_products), 2)
        self.assertEqual(len(ProductsStore(make_request()).all_products), 2)
        get_products.assert_called_once()
        self.assertEqual(store.max_range, 250)
        self.assertEqual([p["_id"] for p in store.trending_products], ["p1"])

    @mock.patch("backend_api.services.get_products")
    def test_backend_down_gives_empty_catalogue(self, get_products):
        get_products.side_effect = BackendError("Unable to reach the server")
        self.assertEqual(ProductsStore(self.request).all_products, [])

    @mock.patch("backend_api.services.get_products")
    def test_filters_live_in_session(self, get_products):
        get_products.return_value = {"products": self.catalogue}
        store = ProductsStore(self.request)
        store.apply_filter("categories", "Bags")
        self.assertEqual(store.filters["categories"], ["bags"])
        self.assertEqual([p["_id"] for p in store.filtered_products], ["p2"])
        store.apply_filter("categories", "bags")
        self.assertEqual(store.filters["categories"], [])
        store.apply_filter("sort_by", "high_to_low")
        store.clear_filters()
        self.assertEqual(store.filters["sort_by"], "")

    def test_unknown_filter_rejected(self):
        with self.assertRaises(ValueError):
            ProductsStore(self.request).apply_filter("colour", "red")

    def test_in_cart_and_wishlist_flags(self):
        self.request.session["cart"] = {"cart": [normalize_item(product("p1"))]}
        store = ProductsStore(self.request)
        self.assertTrue(store.is_in_cart("p1"))
        self.assertFalse(store.is_in_wishlist("p1"))

    @mock.patch("backend_api.services.get_addresses")
    def test_addresses_from_shipping_address(self, get_addresses):
        get_addresses.return_value = {"shippingAddress": {"fullname": "Bob", "city": "Paris"}}
        store = ProductsStore(self.request)
        self.assertTrue(store.load_addresses())
        self.assertEqual(store.current_address["city"], "Paris")

    @mock.patch("backend_api.services.add_address")
    def test_add_address_failure(self, add_address):
        add_address.side_effect = BackendError("Pincode is required", status_code=400)
        self.assertFalse(ProductsStore(self.request).add_address({"fullname": "Bob"}))
        self.assertIn("Pincode is required", flashed(self.request))
