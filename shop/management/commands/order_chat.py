# shop/management/commands/order_chat.py
import os
import threading

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from backend_api import BackendError, services
from shop.chat import TEMP_PREFIX, ChatSession, order_for_viewer


class Command(BaseCommand):
    help = "Chat about an order from the terminal (live transport with polling fallback)."

    def add_arguments(self, parser):
        parser.add_argument("order_id")
        parser.add_argument("--email", default=os.environ.get("STOREFRONT_EMAIL", ""))
        parser.add_argument("--password", default=os.environ.get("STOREFRONT_PASSWORD", ""))
        parser.add_argument("--interval", type=float, default=settings.CHAT_POLL_INTERVAL)

    def handle(self, *args, **options):
        if not options["email"] or not options["password"]:
            raise CommandError("Provide --email/--password or STOREFRONT_EMAIL/STOREFRONT_PASSWORD.")
        try:
            auth = services.login(options["email"], options["password"]) or {}
            token, user = auth.get("token"), auth.get("user") or {}
            order = order_for_viewer(options["order_id"], token, user)
        except BackendError as exc:
            raise CommandError(exc.message) from exc
        if not order:
            raise CommandError(f"Order {options['order_id']} not found.")

        self._seen = set()
        self._print_lock = threading.Lock()
        self._user = user
        stop = threading.Event()
        try:
            chat = ChatSession(options["order_id"], token, user, order=order).open()
        except BackendError as exc:
            raise CommandError(exc.message) from exc

        try:
            other = (chat.other_user or {}).get("username") or "Admin"
            label = order.get("orderNumber") or order.get("_id")
            self.stdout.write(self.style.SUCCESS(f"Chatting with {other} about order {label}."))
            self.stdout.write("Type a message and press enter. /refresh reloads, /quit exits.")
            self._print_new(chat)
            chat.mark_read()
            chat.start_polling(options["interval"])
            printer = threading.Thread(target=self._printer, args=(chat, stop, options["interval"]), daemon=True)
            printer.start()
            self._input_loop(chat)
        finally:
            stop.set()
            chat.close()

    def _input_loop(self, chat):
        while True:
            try:
                line = input()
            except (EOFError, KeyboardInterrupt):
                return
            text = line.strip()
            if text == "/quit":
                return
            if text == "/refresh":
                try:
                    chat.load()
                except BackendError as exc:
                    self.stderr.write(exc.message)
                self._print_new(chat)
                continue
            try:
                chat.send(text)
            except BackendError as exc:
                self.stderr.write(f"Not sent: {exc.message}")
                continue
            self._print_new(chat)

    def _printer(self, chat, stop, interval):
        while not stop.wait(min(interval, 1)):
            if self._print_new(chat):
                chat.mark_read()

    def _print_new(self, chat):
        """Print messages not shown yet; called from both the printer thread and the input loop."""
        printed = False
        with self._print_lock:
            for message in chat.messages:
                message_id = str(message.get("_id", ""))
                if message_id in self._seen or message_id.startswith(TEMP_PREFIX):
                    continue
                self._seen.add(message_id)
                sender = message.get("sender")
                sender = sender if isinstance(sender, dict) else {}
                if sender.get("_id") == self._user.get("_id"):
                    name = "You"
                else:
                    name = "Admin" if message.get("senderType") == "admin" else sender.get("username", "Customer")
                self.stdout.write(f"[{(message.get('createdAt') or '')[:16]}] {name}: {message.get('message', '')}")
                printed = True
        return printed
