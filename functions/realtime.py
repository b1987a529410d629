# functions/realtime.py
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

import socketio
from socketio.exceptions import ConnectionError as RealtimeConnectionError
from django.conf import settings

logger = logging.getLogger(__name__)

JOIN_ORDER = "join-order"
SEND_MESSAGE = "send-message"
NEW_MESSAGE = "new-message"

MessageHandler = Callable[[Dict[str, Any]], None]


class _NoOpRealtimeClient:
    """
    Safe default transport:
    - Never opens a connection.
    - Logs what would have been broadcast; the chat relies on polling instead.
    """
    enabled = False

    def connect(self) -> bool:
        return False

    def join_order(self, order_id: str) -> None:
        logger.debug("[Realtime:DISABLED] join %s", order_id)

    def on_message(self, handler: MessageHandler) -> None:
        pass

    def send_message(self, payload: Dict[str, Any]) -> bool:
        logger.info("[Realtime:DISABLED] %s -> order %s", SEND_MESSAGE, payload.get("orderId"))
        return False

    def disconnect(self) -> None:
        pass


class _SocketIORealtimeClient:
    """
    socket.io transport for one chat session:
    - One connection per instance, opened by connect().
    - Joins the order room and forwards `new-message` events to the handler.
    """
    enabled = True

    def __init__(self, url: Optional[str] = None, token: Optional[str] = None) -> None:
        self.url = url or getattr(settings, "REALTIME_URL", None)
        if not self.url:
            raise RuntimeError("Realtime client misconfigured: REALTIME_URL is not set")
        self.token = token
        self.sio = socketio.Client(reconnection=True, logger=False)
        self._handler: Optional[MessageHandler] = None
        self.sio.on(NEW_MESSAGE, self._dispatch)
        self.sio.on("disconnect", self._on_disconnect)

    def _dispatch(self, data: Dict[str, Any]) -> None:
        if self._handler is not None:
            self._handler(data)

    def _on_disconnect(self, *args) -> None:
        logger.info("Realtime connection to %s closed.", self.url)

    @property
    def connected(self) -> bool:
        return bool(self.sio.connected)

    def connect(self) -> bool:
        auth = {"token": self.token} if self.token else None
        self.sio.connect(self.url, auth=auth, wait_timeout=getattr(settings, "BACKEND_TIMEOUT", 15))
        logger.info("Realtime connected to %s", self.url)
        return True

    def join_order(self, order_id: str) -> None:
        self.sio.emit(JOIN_ORDER, order_id)

    def on_message(self, handler: MessageHandler) -> None:
        self._handler = handler

    def send_message(self, payload: Dict[str, Any]) -> bool:
        if not self.connected:
            logger.warning("Realtime not connected; %s for order %s not broadcast", SEND_MESSAGE, payload.get("orderId"))
            return False
        self.sio.emit(SEND_MESSAGE, payload)
        return True

    def disconnect(self) -> None:
        if self.connected:
            self.sio.disconnect()


# ----- Public API --------------------------------------------------------------

def _realtime_globally_enabled() -> bool:
    return bool(getattr(settings, "REALTIME_ENABLED", False))


def get_realtime_client(token: Optional[str] = None, connect: bool = True):
    """
    Returns a fresh transport exposing connect/join_order/on_message/
    send_message/disconnect.
    - If globally disabled, returns a no-op client.
    - If enabled but the server can't be reached, logs a warning and still
      returns a no-op client.
    """
    if not _realtime_globally_enabled():
        return _NoOpRealtimeClient()

    try:
        client = _SocketIORealtimeClient(token=token)
        if connect:
            client.connect()
    except (RuntimeError, RealtimeConnectionError) as exc:
        logger.warning("Falling back to No-Op realtime client: %s", exc)
        return _NoOpRealtimeClient()

    return client


__all__ = ["get_realtime_client", "JOIN_ORDER", "SEND_MESSAGE", "NEW_MESSAGE"]
