# shop/chat.py
"""
Buyer/admin conversation about a single order.

Messages are persisted through the backend REST API; the realtime transport
only broadcasts them. Local state is a plain list of backend message dicts
shared between the caller, transport callbacks and the polling thread, so it
is always touched under `self._lock`.
"""
from __future__ import annotations

import logging
import threading
import uuid
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.utils import timezone

from backend_api import BackendError, services
from functions.realtime import get_realtime_client

from .order_table import fetch_orders

logger = logging.getLogger(__name__)

ADMIN_PLACEHOLDER = {"_id": "admin", "username": "Admin", "role": "admin"}
TEMP_PREFIX = "temp-"


def _party_id(party: Any) -> Optional[str]:
    if isinstance(party, dict):
        return party.get("_id")
    return party


def sender_type(user_info: Dict[str, Any]) -> str:
    return "admin" if user_info.get("role") == "admin" else "customer"


def resolve_other_user(
    messages: List[Dict[str, Any]],
    user_info: Dict[str, Any],
    order: Optional[Dict[str, Any]] = None,
) -> Optional[Dict[str, Any]]:
    """
    Who the viewer is talking to.

    Admin viewer: whichever side of the first message isn't the admin.
    Customer viewer: the admin side of the first message.
    Without messages, the order's customer (admin) or a placeholder admin.
    """
    is_admin = user_info.get("role") == "admin"
    if messages:
        first = messages[0]
        sender, receiver = first.get("sender") or {}, first.get("receiver") or {}
        if is_admin:
            return receiver if _party_id(sender) == user_info.get("_id") else sender
        return sender if (sender or {}).get("role") == "admin" else receiver
    if is_admin:
        return (order or {}).get("user")
    return dict(ADMIN_PLACEHOLDER)


def order_for_viewer(order_id: str, token: str, user_info: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    The order a chat is about. Admins look it up in the admin order list;
    customers can only fetch their own.
    """
    if user_info.get("role") == "admin":
        return next((o for o in fetch_orders(token) if o.get("_id") == order_id), None)
    data = services.get_order(order_id, token) or {}
    return data.get("order") if isinstance(data, dict) and "order" in data else data or None


class ChatSession:
    def __init__(
        self,
        order_id: str,
        token: str,
        user_info: Dict[str, Any],
        order: Optional[Dict[str, Any]] = None,
        transport=None,
    ) -> None:
        self.order_id = order_id
        self.token = token
        self.user_info = user_info or {}
        self.order = order
        self.transport = transport
        self.other_user: Optional[Dict[str, Any]] = None
        self.draft = ""
        self._messages: List[Dict[str, Any]] = []
        self._lock = threading.RLock()
        self._stop = threading.Event()
        self._poller: Optional[threading.Thread] = None

    # ---- state ----
    @property
    def messages(self) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self._messages)

    def _has(self, message_id: Any) -> bool:
        return any(m.get("_id") == message_id for m in self._messages)

    # ---- lifecycle ----
    def open(self) -> "ChatSession":
        if self.transport is None:
            self.transport = get_realtime_client(token=self.token)
        try:
            self.transport.join_order(self.order_id)
            self.transport.on_message(self.receive)
            self.load()
        except BackendError:
            # __exit__ never runs when __enter__ raises.
            self.close()
            raise
        return self

    def close(self) -> None:
        self.stop_polling()
        if self.transport is not None:
            self.transport.disconnect()
            self.transport = None

    def __enter__(self) -> "ChatSession":
        return self.open()

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ---- history ----
    def load(self) -> List[Dict[str, Any]]:
        data = services.get_order_messages(self.order_id, self.token) or {}
        loaded = list(data.get("messages") or [])
        with self._lock:
            # Optimistic messages still in flight survive a refresh.
            pending = [m for m in self._messages if str(m.get("_id", "")).startswith(TEMP_PREFIX)]
            self._messages = loaded + pending
            other = resolve_other_user(loaded, self.user_info, self.order)
            if other is not None or self.other_user is None:
                self.other_user = other
        return self.messages

    def receive(self, message: Dict[str, Any]) -> bool:
        """Realtime `new-message` handler; duplicates (same _id) are dropped."""
        if not isinstance(message, dict):
            return False
        order = message.get("order")
        if order is not None and _party_id(order) != self.order_id:
            return False
        with self._lock:
            if message.get("_id") is not None and self._has(message.get("_id")):
                return False
            self._messages.append(message)
        return True

    # ---- sending ----
    def _temp_message(self, text: str) -> Dict[str, Any]:
        kind = sender_type(self.user_info)
        return {
            "_id": f"{TEMP_PREFIX}{uuid.uuid4().hex}",
            "order": self.order_id,
            "sender": {
                "_id": self.user_info.get("_id"),
                "username": "Admin" if kind == "admin" else self.user_info.get("username"),
                "role": self.user_info.get("role"),
            },
            "receiver": self.other_user,
            "message": text,
            "senderType": kind,
            "isRead": False,
            "createdAt": timezone.now().isoformat(),
        }

    def send(self, text: str) -> Optional[Dict[str, Any]]:
        text = (text or "").strip()
        if not text or not self.other_user:
            return None

        temp = self._temp_message(text)
        with self._lock:
            self.draft = ""
            self._messages.append(temp)

        try:
            data = services.send_message(self.order_id, _party_id(self.other_user), text, self.token)
        except BackendError:
            with self._lock:
                self._messages = [m for m in self._messages if m["_id"] != temp["_id"]]
                self.draft = text
            raise

        saved = (data or {}).get("message") or temp
        with self._lock:
            if saved.get("_id") is not None and any(
                m.get("_id") == saved["_id"] for m in self._messages if m is not temp
            ):
                # Already delivered by realtime or a refresh.
                self._messages = [m for m in self._messages if m["_id"] != temp["_id"]]
            else:
                self._messages = [saved if m["_id"] == temp["_id"] else m for m in self._messages]

        if self.transport is not None:
            self.transport.send_message(
                {
                    "orderId": self.order_id,
                    "senderId": self.user_info.get("_id"),
                    "receiverId": _party_id(self.other_user),
                    "message": text,
                    "senderType": sender_type(self.user_info),
                }
            )
        return saved

    # ---- read receipts ----
    def unread_ids(self) -> List[str]:
        viewer = self.user_info.get("_id")
        with self._lock:
            return [
                m["_id"]
                for m in self._messages
                if not m.get("isRead")
                and _party_id(m.get("receiver")) == viewer
                and not str(m.get("_id", "")).startswith(TEMP_PREFIX)
            ]

    def mark_read(self) -> List[str]:
        ids = self.unread_ids()
        if not ids:
            return []
        try:
            services.mark_messages_read(ids, self.token)
        except BackendError as exc:
            logger.warning("Could not mark messages read for order %s: %s", self.order_id, exc)
            return []
        with self._lock:
            self._messages = [{**m, "isRead": True} if m.get("_id") in ids else m for m in self._messages]
        return ids

    # ---- polling fallback ----
    def start_polling(self, interval: Optional[float] = None) -> None:
        if self._poller is not None and self._poller.is_alive():
            return
        interval = interval or getattr(settings, "CHAT_POLL_INTERVAL", 3)
        self._stop.clear()
        self._poller = threading.Thread(
            target=self._poll, args=(interval,), name=f"chat-poll-{self.order_id}", daemon=True
        )
        self._poller.start()

    def _poll(self, interval: float) -> None:
        while not self._stop.wait(interval):
            try:
                self.load()
            except BackendError as exc:
                logger.warning("Chat refresh for order %s failed: %s", self.order_id, exc)

    def stop_polling(self) -> None:
        self._stop.set()
        poller, self._poller = self._poller, None
        if poller is not None and poller is not threading.current_thread():
            poller.join(timeout=1)
