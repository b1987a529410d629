# api/views.py
"""JSON endpoints polled by the page scripts (chat thread, navbar badges)."""
from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from backend_api import BackendError, services
from shop.chat import ChatSession, order_for_viewer
from stores import CartStore, NotificationStore, WishlistStore

from .serializers import (
    CartSummarySerializer,
    ChatMessageSerializer,
    MarkReadSerializer,
    SendMessageSerializer,
)

logger = logging.getLogger(__name__)


# ---------- helpers ----------

def _backend_error(exc: BackendError) -> Response:
    """Relay a backend failure with the backend's own message."""
    code = exc.status_code if exc.status_code and exc.status_code >= 400 else status.HTTP_502_BAD_GATEWAY
    return Response({"success": False, "message": exc.message}, status=code)


def _thread(chat: ChatSession, viewer_id) -> dict:
    return {
        "messages": ChatMessageSerializer(chat.messages, many=True, context={"viewer_id": viewer_id}).data,
        "other_user": chat.other_user,
        "unread": len(chat.unread_ids()),
    }


# ---------- Chat ----------

class ChatMessagesAPIView(APIView):
    """GET: current thread for an order • POST: send a message (persisted, then broadcast)."""

    def get(self, request, order_id: str):
        user = request.user
        chat = ChatSession(order_id, user.token, user.info)
        try:
            chat.load()
        except BackendError as exc:
            return _backend_error(exc)
        return Response(_thread(chat, user.id))

    def post(self, request, order_id: str):
        serializer = SendMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = request.user
        try:
            with ChatSession(order_id, user.token, user.info) as chat:
                if chat.other_user is None:
                    # Admin on an empty thread: talk to the order's customer.
                    chat.order = order_for_viewer(order_id, user.token, user.info)
                    chat.load()
                saved = chat.send(serializer.validated_data["message"])
                if saved is None:
                    return Response(
                        {"success": False, "message": "No one to send this message to."},
                        status=status.HTTP_400_BAD_REQUEST,
                    )
                logger.info("Message sent on order %s by %s.", order_id, user.username)
                return Response(_thread(chat, user.id), status=status.HTTP_201_CREATED)
        except BackendError as exc:
            return _backend_error(exc)


class ChatReadAPIView(APIView):
    """POST: mark messages addressed to the viewer as read."""

    def post(self, request, order_id: str):
        serializer = MarkReadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = request.user
        ids = serializer.validated_data.get("message_ids") or []
        try:
            if ids:
                services.mark_messages_read(ids, user.token)
            else:
                chat = ChatSession(order_id, user.token, user.info)
                chat.load()
                ids = chat.mark_read()
        except BackendError as exc:
            return _backend_error(exc)
        return Response({"marked": ids})


# ---------- Navbar badges ----------

class NotificationUnreadCountAPIView(APIView):
    def get(self, request):
        return Response({"unreadCount": NotificationStore(request).fetch_unread_count()})


class CartSummaryAPIView(APIView):
    """Cart totals and wishlist size straight from the session mirror (no backend call)."""

    def get(self, request):
        summary = dict(CartStore(request).totals)
        summary["wishlist_count"] = len(WishlistStore(request).items)
        return Response(CartSummarySerializer(summary).data)
