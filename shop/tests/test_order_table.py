from datetime import date
from decimal import Decimal
from unittest import mock

from django.http import QueryDict
from django.test import SimpleTestCase

from backend_api import BackendError
from shop import order_table
from shop.order_table import OrderQuery


def make_order(oid, number, status="pending", payment="pending", total=100, created="2024-03-01T10:00:00Z",
               username="bob", email="bob@example.com", items=None):
    return {
        "_id": oid,
        "orderNumber": number,
        "status": status,
        "paymentStatus": payment,
        "totalAmount": total,
        "createdAt": created,
        "paymentMethod": "card",
        "user": {"_id": f"u-{username}", "username": username, "email": email},
        "items": items if items is not None else [{"product": {"name": "Runner Shoe"}, "quantity": 1}],
    }


class OrderTableTests(SimpleTestCase):
    def setUp(self):
        self.orders = [
            make_order("o1", "ORD-001", status="pending", total=50, created="2024-03-01T10:00:00Z", username="alice"),
            make_order("o2", "ORD-002", status="delivered", payment="completed", total=200,
                       created="2024-03-05T10:00:00Z", username="bob",
                       items=[{"product": {"name": "Leather Bag"}, "quantity": 2}]),
            make_order("o3", "ORD-003", status="shipped", payment="completed", total=125.5,
                       created="2024-02-20T10:00:00Z", username="carol", email="carol@shop.io"),
            make_order("o4", "ORD-004", status="pending", total=10, created=None, username="dave"),
        ]

    # ---- filtering ----
    def test_filter_by_status_and_payment(self):
        query = OrderQuery(status="pending")
        self.assertEqual([o["_id"] for o in order_table.filter_orders(self.orders, query)], ["o1", "o4"])
        query = OrderQuery(payment_status="completed")
        self.assertEqual([o["_id"] for o in order_table.filter_orders(self.orders, query)], ["o2", "o3"])

    def test_date_range_drops_undated_orders(self):
        query = OrderQuery(date_from=date(2024, 3, 1), date_to=date(2024, 3, 4))
        self.assertEqual([o["_id"] for o in order_table.filter_orders(self.orders, query)], ["o1"])

    def test_search_matches_number_customer_email_and_product(self):
        def ids(term):
            return [o["_id"] for o in order_table.filter_orders(self.orders, OrderQuery(search=term))]

        self.assertEqual(ids("ord-003"), ["o3"])
        self.assertEqual(ids("ALICE"), ["o1"])
        self.assertEqual(ids("shop.io"), ["o3"])
        self.assertEqual(ids("leather"), ["o2"])

    # ---- sorting ----
    def test_default_sort_newest_first_with_undated_last(self):
        ordered = order_table.sort_orders(self.orders)
        self.assertEqual([o["_id"] for o in ordered], ["o2", "o1", "o3", "o4"])
        ordered = order_table.sort_orders(self.orders, descending=False)
        self.assertEqual([o["_id"] for o in ordered], ["o3", "o1", "o2", "o4"])

    def test_sort_by_total_and_customer(self):
        ordered = order_table.sort_orders(self.orders, "total", descending=False)
        self.assertEqual([o["_id"] for o in ordered], ["o4", "o1", "o3", "o2"])
        ordered = order_table.sort_orders(self.orders, "customer", descending=True)
        self.assertEqual([o["_id"] for o in ordered], ["o4", "o3", "o2", "o1"])

    # ---- pagination ----
    def test_page_is_clamped(self):
        orders = [make_order(f"o{i}", f"ORD-{i:03d}") for i in range(25)]
        self.assertEqual(order_table.paginate(orders, 99, 10).number, 3)
        self.assertEqual(order_table.paginate(orders, "abc", 10).number, 1)
        self.assertEqual(len(order_table.paginate(orders, 3, 10).object_list), 5)

    def test_query_from_params_falls_back_to_defaults(self):
        query = OrderQuery.from_params(QueryDict("status=bogus&sort=nope&per_page=x&direction=asc&date_from=2024-03-01"))
        self.assertEqual(query.status, "")
        self.assertEqual(query.sort, "created_at")
        self.assertEqual(query.per_page, 10)
        self.assertFalse(query.descending)
        self.assertEqual(query.date_from, date(2024, 3, 1))

    def test_stats_are_over_unfiltered_orders(self):
        table = order_table.build_table(self.orders, OrderQuery(status="shipped"))
        self.assertEqual(table["filtered_count"], 1)
        self.assertEqual(table["stats"]["total_orders"], 4)
        self.assertEqual(table["stats"]["pending"], 2)
        self.assertEqual(table["stats"]["completed"], 1)
        self.assertEqual(table["stats"]["revenue"], Decimal("385.5"))

    # ---- bulk actions ----
    @mock.patch("backend_api.services.update_order_status")
    def test_bulk_action_reports_successes_and_failures(self, update):
        update.side_effect = [None, BackendError("Order not found", status_code=404), None]
        result = order_table.run_bulk_action("mark-shipped", ["o1", "o2", "o3"], "tok")
        self.assertEqual(result.succeeded, ["o1", "o3"])
        self.assertEqual(result.failed, [("o2", "Order not found")])
        self.assertFalse(result.ok)
        update.assert_any_call("o1", "shipped", "tok")

    def test_unknown_bulk_action(self):
        with self.assertRaises(ValueError):
            order_table.run_bulk_action("mark-lost", ["o1"], "tok")

    def test_export_csv_selected_orders(self):
        content = order_table.export_csv(self.orders, ["o2"])
        lines = content.strip().splitlines()
        self.assertEqual(len(lines), 2)
        self.assertTrue(lines[0].startswith("Order Number,Customer"))
        self.assertIn("ORD-002,bob,bob@example.com,Leather Bag,200.00,delivered,completed,card", lines[1])

    @mock.patch("backend_api.services.get_admin_orders")
    def test_fetch_orders_asks_for_everything(self, get_admin_orders):
        get_admin_orders.return_value = {"orders": self.orders}
        self.assertEqual(len(order_table.fetch_orders("tok")), 4)
        get_admin_orders.assert_called_once_with("tok", {"limit": order_table.FETCH_LIMIT})


class CustomerOrderListTests(SimpleTestCase):
    today = date(2024, 3, 5)

    def setUp(self):
        self.orders = [
            make_order("o1", "ORD-001", status="pending", total=50, created="2024-03-05T08:00:00Z"),
            make_order("o2", "ORD-002", status="delivered", total=200, created="2024-03-01T10:00:00Z",
                       items=[{"product": {"name": "Leather Bag"}, "quantity": 2}]),
            make_order("o3", "ORD-003", status="shipped", total=125, created="2024-01-10T10:00:00Z"),
        ]

    def ids(self, query_string):
        return [o["_id"] for o in order_table.customer_orders(self.orders, QueryDict(query_string), self.today)]

    def test_time_windows(self):
        self.assertEqual(self.ids("time=today"), ["o1"])
        self.assertEqual(self.ids("time=this_week"), ["o1", "o2"])
        self.assertEqual(self.ids("time=this_month"), ["o1", "o2"])
        self.assertEqual(self.ids("time=someday"), ["o1", "o2", "o3"])

    def test_sort_options(self):
        self.assertEqual(self.ids(""), ["o1", "o2", "o3"])
        self.assertEqual(self.ids("sort=oldest"), ["o3", "o2", "o1"])
        self.assertEqual(self.ids("sort=amount_high"), ["o2", "o3", "o1"])
        self.assertEqual(self.ids("sort=amount_low"), ["o1", "o3", "o2"])
        self.assertEqual(self.ids("sort=status"), ["o2", "o1", "o3"])

    def test_search_and_status(self):
        self.assertEqual(self.ids("search=leather"), ["o2"])
        self.assertEqual(self.ids("search=ord-003"), ["o3"])
        self.assertEqual(self.ids("status=pending"), ["o1"])
        self.assertEqual(self.ids("status=bogus"), ["o1", "o2", "o3"])
