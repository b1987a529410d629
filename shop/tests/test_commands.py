import threading
from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import SimpleTestCase, override_settings

from backend_api import BackendError
from shop.management.commands.order_chat import Command

CUSTOMER = {"_id": "u1", "username": "bob", "role": "user"}


@override_settings(REALTIME_ENABLED=False)
class OrderChatCommandTests(SimpleTestCase):
    def test_credentials_required(self):
        with self.assertRaises(CommandError):
            call_command("order_chat", "o1", email="", password="")

    @mock.patch("backend_api.services.login")
    def test_login_failure(self, login):
        login.side_effect = BackendError("Invalid email or password", status_code=401)
        with self.assertRaisesMessage(CommandError, "Invalid email or password"):
            call_command("order_chat", "o1", email="bob@example.com", password="x")

    @mock.patch("backend_api.services.send_message")
    @mock.patch("backend_api.services.mark_messages_read")
    @mock.patch("backend_api.services.get_order_messages")
    @mock.patch("backend_api.services.get_order", return_value={"order": {"_id": "o1", "orderNumber": "ORD-1"}})
    @mock.patch("backend_api.services.login", return_value={"token": "tok", "user": CUSTOMER})
    def test_session_prints_history_and_sends(self, login, get_order, get_messages, mark_read, send):
        get_messages.return_value = {"messages": [{
            "_id": "m1", "order": "o1", "message": "Hi Bob", "senderType": "admin",
            "sender": {"_id": "a1", "username": "root", "role": "admin"},
            "receiver": {"_id": "u1", "username": "bob", "role": "user"},
            "isRead": False, "createdAt": "2024-03-01T10:00:00Z",
        }]}
        send.return_value = {"message": {
            "_id": "m2", "order": "o1", "message": "Hello!", "senderType": "customer",
            "sender": CUSTOMER, "receiver": {"_id": "a1"}, "createdAt": "2024-03-01T10:01:00Z",
        }}
        out = StringIO()
        with mock.patch("builtins.input", side_effect=["Hello!", "/quit"]):
            call_command("order_chat", "o1", email="bob@example.com", password="x", interval=60, stdout=out)

        output = out.getvalue()
        self.assertIn("Chatting with root about order ORD-1.", output)
        self.assertIn("Admin: Hi Bob", output)
        self.assertIn("You: Hello!", output)
        send.assert_called_once_with("o1", "a1", "Hello!", "tok")
        mark_read.assert_called_with(["m1"], "tok")

    def test_each_message_printed_once_across_threads(self):
        out = StringIO()
        command = Command(stdout=out)
        command._seen, command._user, command._print_lock = set(), CUSTOMER, threading.Lock()
        chat = mock.Mock(messages=[
            {"_id": f"m{i}", "message": f"note {i}", "senderType": "admin", "sender": {"_id": "a1"}}
            for i in range(50)
        ])
        start = threading.Barrier(4)

        def worker():
            start.wait()
            command._print_new(chat)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        lines = out.getvalue().splitlines()
        self.assertEqual(len(lines), 50)
        self.assertEqual(len(set(lines)), 50)
