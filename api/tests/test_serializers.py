# api/tests/test_serializers.py
from django.test import SimpleTestCase

from api.serializers import ChatMessageSerializer, MarkReadSerializer, SendMessageSerializer


class SendMessageSerializerTests(SimpleTestCase):
    def test_trims_text(self):
        s = SendMessageSerializer(data={"message": "  hello  "})
        self.assertTrue(s.is_valid(), s.errors)
        self.assertEqual(s.validated_data["message"], "hello")

    def test_blank_rejected(self):
        s = SendMessageSerializer(data={"message": "   "})
        self.assertFalse(s.is_valid())
        self.assertIn("message", s.errors)

    def test_too_long_rejected(self):
        s = SendMessageSerializer(data={"message": "x" * 1001})
        self.assertFalse(s.is_valid())


class MarkReadSerializerTests(SimpleTestCase):
    def test_ids_optional(self):
        s = MarkReadSerializer(data={})
        self.assertTrue(s.is_valid(), s.errors)
        self.assertNotIn("message_ids", s.validated_data)


class ChatMessageSerializerTests(SimpleTestCase):
    def test_sender_id_only_and_ownership(self):
        data = ChatMessageSerializer(
            {"_id": "m1", "message": "hi", "sender": "u1", "createdAt": "2024-03-01T10:00:00Z"},
            context={"viewer_id": "u1"},
        ).data
        self.assertEqual(data["sender"], {"_id": "u1", "username": "", "role": ""})
        self.assertTrue(data["is_mine"])
        self.assertFalse(data["isRead"])
        self.assertEqual(data["senderType"], "")
