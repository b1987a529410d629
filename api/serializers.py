# api/serializers.py
from __future__ import annotations

from typing import Any, Dict

from rest_framework import serializers


class SendMessageSerializer(serializers.Serializer):
    message = serializers.CharField(max_length=1000, trim_whitespace=True)

    def validate_message(self, value: str) -> str:
        if not value or not value.strip():
            raise serializers.ValidationError("Message cannot be blank.")
        return value.strip()


class MarkReadSerializer(serializers.Serializer):
    """Explicit ids are optional; without them every unread message addressed to the viewer is marked."""

    message_ids = serializers.ListField(child=serializers.CharField(), required=False, allow_empty=True)


class ChatMessageSerializer(serializers.Serializer):
    """Backend message dict trimmed to what the chat page renders."""

    _id = serializers.CharField()
    message = serializers.CharField(allow_blank=True)
    senderType = serializers.CharField(required=False, allow_blank=True, default="")
    isRead = serializers.BooleanField(required=False, default=False)
    createdAt = serializers.CharField(required=False, allow_null=True, default=None)
    sender = serializers.SerializerMethodField()
    is_mine = serializers.SerializerMethodField()

    def _sender(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        sender = obj.get("sender")
        if isinstance(sender, dict):
            return sender
        return {"_id": sender}

    def get_sender(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        sender = self._sender(obj)
        return {"_id": sender.get("_id"), "username": sender.get("username", ""), "role": sender.get("role", "")}

    def get_is_mine(self, obj: Dict[str, Any]) -> bool:
        viewer = self.context.get("viewer_id")
        return viewer is not None and self._sender(obj).get("_id") == viewer


class CartSummarySerializer(serializers.Serializer):
    item_count = serializers.IntegerField()
    total_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    actual_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    discount = serializers.DecimalField(max_digits=12, decimal_places=2)
    wishlist_count = serializers.IntegerField()
