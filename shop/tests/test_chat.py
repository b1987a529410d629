from unittest import mock

from django.test import SimpleTestCase

from backend_api import BackendError
from shop.chat import ADMIN_PLACEHOLDER, ChatSession, order_for_viewer, resolve_other_user

CUSTOMER = {"_id": "u1", "username": "bob", "role": "user"}
ADMIN = {"_id": "a1", "username": "root", "role": "admin"}


def message(mid, sender, receiver, text="hi", is_read=False, order="o1"):
    return {
        "_id": mid,
        "order": order,
        "sender": sender,
        "receiver": receiver,
        "message": text,
        "senderType": "admin" if sender.get("role") == "admin" else "customer",
        "isRead": is_read,
    }


class FakeTransport:
    def __init__(self):
        self.joined = []
        self.sent = []
        self.handler = None
        self.disconnected = False

    def join_order(self, order_id):
        self.joined.append(order_id)

    def on_message(self, handler):
        self.handler = handler

    def send_message(self, payload):
        self.sent.append(payload)
        return True

    def disconnect(self):
        self.disconnected = True


class ResolveOtherUserTests(SimpleTestCase):
    def test_admin_viewer_gets_the_non_admin_side(self):
        msgs = [message("m1", CUSTOMER, ADMIN)]
        self.assertEqual(resolve_other_user(msgs, ADMIN), CUSTOMER)
        msgs = [message("m1", ADMIN, CUSTOMER)]
        self.assertEqual(resolve_other_user(msgs, ADMIN), CUSTOMER)

    def test_customer_viewer_gets_the_admin_side(self):
        self.assertEqual(resolve_other_user([message("m1", CUSTOMER, ADMIN)], CUSTOMER), ADMIN)
        self.assertEqual(resolve_other_user([message("m1", ADMIN, CUSTOMER)], CUSTOMER), ADMIN)

    def test_empty_thread(self):
        self.assertEqual(resolve_other_user([], ADMIN, {"user": CUSTOMER}), CUSTOMER)
        self.assertEqual(resolve_other_user([], CUSTOMER), ADMIN_PLACEHOLDER)


class OrderForViewerTests(SimpleTestCase):
    @mock.patch("backend_api.services.get_admin_orders")
    def test_admin_searches_admin_orders(self, get_admin_orders):
        get_admin_orders.return_value = {"orders": [{"_id": "o1"}, {"_id": "o2", "user": CUSTOMER}]}
        self.assertEqual(order_for_viewer("o2", "tok", ADMIN)["user"], CUSTOMER)
        self.assertIsNone(order_for_viewer("o9", "tok", ADMIN))

    @mock.patch("backend_api.services.get_order")
    def test_customer_fetches_own_order(self, get_order):
        get_order.return_value = {"order": {"_id": "o1"}}
        self.assertEqual(order_for_viewer("o1", "tok", CUSTOMER), {"_id": "o1"})


class ChatSessionTests(SimpleTestCase):
    def setUp(self):
        self.transport = FakeTransport()
        self.chat = ChatSession("o1", "tok", CUSTOMER, transport=self.transport)

    @mock.patch("backend_api.services.get_order_messages")
    def test_open_joins_room_and_loads(self, get_messages):
        get_messages.return_value = {"messages": [message("m1", ADMIN, CUSTOMER)]}
        with self.chat as chat:
            self.assertEqual(self.transport.joined, ["o1"])
            self.assertEqual(self.transport.handler, chat.receive)
            self.assertEqual(chat.other_user, ADMIN)
            self.assertEqual(len(chat.messages), 1)
        self.assertTrue(self.transport.disconnected)
        self.assertIsNone(self.chat.transport)

    @mock.patch("backend_api.services.get_order_messages")
    def test_failed_history_load_disconnects(self, get_messages):
        get_messages.side_effect = BackendError("Order not found", status_code=404)
        with self.assertRaises(BackendError):
            with self.chat:
                self.fail("body must not run")
        self.assertEqual(self.transport.joined, ["o1"])
        self.assertTrue(self.transport.disconnected)
        self.assertIsNone(self.chat.transport)

    def test_receive_dedups_and_ignores_other_orders(self):
        incoming = message("m1", ADMIN, CUSTOMER)
        self.assertTrue(self.chat.receive(incoming))
        self.assertFalse(self.chat.receive(dict(incoming)))
        self.assertFalse(self.chat.receive(message("m2", ADMIN, CUSTOMER, order="o2")))
        self.assertEqual([m["_id"] for m in self.chat.messages], ["m1"])

    @mock.patch("backend_api.services.send_message")
    def test_send_replaces_temp_and_broadcasts(self, send):
        self.chat.other_user = ADMIN
        send.return_value = {"message": message("m5", CUSTOMER, ADMIN, text="where is it?")}

        saved = self.chat.send("  where is it?  ")

        send.assert_called_once_with("o1", "a1", "where is it?", "tok")
        self.assertEqual(saved["_id"], "m5")
        self.assertEqual([m["_id"] for m in self.chat.messages], ["m5"])
        self.assertEqual(self.transport.sent[0]["receiverId"], "a1")
        self.assertEqual(self.transport.sent[0]["senderType"], "customer")

    @mock.patch("backend_api.services.send_message")
    def test_send_skips_duplicate_delivered_by_realtime(self, send):
        self.chat.other_user = ADMIN
        saved = message("m5", CUSTOMER, ADMIN)

        def deliver_first(*args):
            self.chat.receive(saved)
            return {"message": saved}

        send.side_effect = deliver_first
        self.chat.send("hi")
        self.assertEqual([m["_id"] for m in self.chat.messages], ["m5"])

    @mock.patch("backend_api.services.send_message")
    def test_send_failure_restores_draft(self, send):
        self.chat.other_user = ADMIN
        send.side_effect = BackendError("Receiver not found", status_code=404)
        with self.assertRaises(BackendError):
            self.chat.send("hello")
        self.assertEqual(self.chat.messages, [])
        self.assertEqual(self.chat.draft, "hello")
        self.assertEqual(self.transport.sent, [])

    @mock.patch("backend_api.services.send_message")
    def test_send_ignores_blank_or_unknown_receiver(self, send):
        self.assertIsNone(self.chat.send("hello"))
        self.chat.other_user = ADMIN
        self.assertIsNone(self.chat.send("   "))
        send.assert_not_called()

    @mock.patch("backend_api.services.get_order_messages")
    def test_load_keeps_pending_temp_messages(self, get_messages):
        self.chat.other_user = ADMIN
        temp = self.chat._temp_message("in flight")
        self.chat._messages.append(temp)
        get_messages.return_value = {"messages": [message("m1", ADMIN, CUSTOMER)]}
        self.chat.load()
        self.assertEqual([m["_id"] for m in self.chat.messages], ["m1", temp["_id"]])

    @mock.patch("backend_api.services.mark_messages_read")
    def test_mark_read_only_touches_messages_addressed_to_viewer(self, mark_read):
        self.chat._messages = [
            message("m1", ADMIN, CUSTOMER),
            message("m2", CUSTOMER, ADMIN),
            message("m3", ADMIN, CUSTOMER, is_read=True),
        ]
        self.assertEqual(self.chat.mark_read(), ["m1"])
        mark_read.assert_called_once_with(["m1"], "tok")
        self.assertTrue(all(m["isRead"] for m in self.chat.messages if m["_id"] != "m2"))

    @mock.patch("backend_api.services.get_order_messages")
    def test_polling_thread_stops(self, get_messages):
        get_messages.return_value = {"messages": []}
        self.chat.start_polling(0.01)
        poller = self.chat._poller
        self.assertTrue(poller.is_alive())
        self.chat.stop_polling()
        self.assertFalse(poller.is_alive())
