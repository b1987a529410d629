# api/urls.py
from django.urls import path

from .views import (
    CartSummaryAPIView,
    ChatMessagesAPIView,
    ChatReadAPIView,
    NotificationUnreadCountAPIView,
)

app_name = "api"

urlpatterns = [
    # Chat
    path("chat/<str:order_id>/messages/", ChatMessagesAPIView.as_view(), name="chat-messages"),
    path("chat/<str:order_id>/read/", ChatReadAPIView.as_view(), name="chat-read"),

    # Badges
    path("notifications/unread-count/", NotificationUnreadCountAPIView.as_view(), name="notification-unread-count"),
    path("cart/summary/", CartSummaryAPIView.as_view(), name="cart-summary"),
]
