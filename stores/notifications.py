# stores/notifications.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from django.utils import timezone

from backend_api import BackendError, services

from .base import SessionStore, State

logger = logging.getLogger(__name__)

SET_LOADING = "SET_LOADING"
SET_ERROR = "SET_ERROR"
SET_NOTIFICATIONS = "SET_NOTIFICATIONS"
ADD_NOTIFICATION = "ADD_NOTIFICATION"
UPDATE_NOTIFICATION = "UPDATE_NOTIFICATION"
REMOVE_NOTIFICATION = "REMOVE_NOTIFICATION"
SET_UNREAD_COUNT = "SET_UNREAD_COUNT"
MARK_AS_READ = "MARK_AS_READ"
MARK_ALL_AS_READ = "MARK_ALL_AS_READ"
CLEAR_ERROR = "CLEAR_ERROR"


def _now() -> str:
    return timezone.now().isoformat()


def notification_reducer(state: State, act: Dict[str, Any]) -> State:
    kind = act["type"]
    payload = act.get("payload")

    if kind == SET_LOADING:
        return {**state, "loading": bool(payload), "error": None}
    if kind == SET_ERROR:
        return {**state, "loading": False, "error": payload}
    if kind == SET_NOTIFICATIONS:
        return {
            **state,
            "loading": False,
            "notifications": list(payload.get("notifications") or []),
            "unread_count": int(payload.get("unread_count") or 0),
            "last_fetch": _now(),
            "error": None,
        }
    if kind == ADD_NOTIFICATION:
        return {
            **state,
            "notifications": [payload, *state["notifications"]],
            "unread_count": state["unread_count"] + 1,
        }
    if kind == UPDATE_NOTIFICATION:
        return {
            **state,
            "notifications": [
                {**n, **payload} if n.get("_id") == payload.get("_id") else n
                for n in state["notifications"]
            ],
        }
    if kind == REMOVE_NOTIFICATION:
        return {
            **state,
            "notifications": [n for n in state["notifications"] if n.get("_id") != payload],
            "unread_count": max(0, state["unread_count"] - 1),
        }
    if kind == SET_UNREAD_COUNT:
        return {**state, "unread_count": int(payload or 0)}
    if kind == MARK_AS_READ:
        return {
            **state,
            "notifications": [
                {**n, "isRead": True, "readAt": _now()} if n.get("_id") == payload else n
                for n in state["notifications"]
            ],
            "unread_count": max(0, state["unread_count"] - 1),
        }
    if kind == MARK_ALL_AS_READ:
        read_at = _now()
        return {
            **state,
            "notifications": [{**n, "isRead": True, "readAt": read_at} for n in state["notifications"]],
            "unread_count": 0,
        }
    if kind == CLEAR_ERROR:
        return {**state, "error": None}
    return state


class NotificationStore(SessionStore):
    session_key = "notifications"
    initial_state = {
        "notifications": [],
        "unread_count": 0,
        "loading": False,
        "error": None,
        "last_fetch": None,
    }
    reducer = staticmethod(notification_reducer)

    @property
    def notifications(self) -> List[Dict[str, Any]]:
        return self.state["notifications"]

    @property
    def unread_count(self) -> int:
        return self.state["unread_count"]

    @property
    def error(self) -> Optional[str]:
        return self.state.get("error")

    def _error(self, exc: BackendError, default: str) -> bool:
        logger.info("Notification action failed: %s", exc)
        self.dispatch(SET_ERROR, exc.message or default)
        return False

    def fetch(self, **params) -> bool:
        if not self.token:
            return False
        self.dispatch(SET_LOADING, True)
        try:
            data = services.get_notifications(self.token, params or None)
        except BackendError as exc:
            return self._error(exc, "Failed to fetch notifications")
        data = data or {}
        self.dispatch(
            SET_NOTIFICATIONS,
            {"notifications": data.get("notifications"), "unread_count": data.get("unreadCount")},
        )
        return True

    def fetch_unread_count(self) -> int:
        if not self.token:
            return 0
        try:
            data = services.get_notification_unread_count(self.token)
        except BackendError as exc:
            logger.info("Fetch unread count failed: %s", exc)
            return self.unread_count
        self.dispatch(SET_UNREAD_COUNT, (data or {}).get("unreadCount"))
        return self.unread_count

    def mark_as_read(self, notification_id: str) -> bool:
        if not self.token:
            return False
        try:
            services.mark_notification_read(notification_id, self.token)
        except BackendError as exc:
            return self._error(exc, "Failed to mark notification as read")
        self.dispatch(MARK_AS_READ, notification_id)
        return True

    def mark_all_as_read(self) -> bool:
        if not self.token:
            return False
        try:
            services.mark_all_notifications_read(self.token)
        except BackendError as exc:
            return self._error(exc, "Failed to mark all notifications as read")
        self.dispatch(MARK_ALL_AS_READ)
        return True

    def delete(self, notification_id: str) -> bool:
        if not self.token:
            return False
        try:
            services.delete_notification(notification_id, self.token)
        except BackendError as exc:
            return self._error(exc, "Failed to delete notification")
        self.dispatch(REMOVE_NOTIFICATION, notification_id)
        return True

    def clear_all(self) -> bool:
        if not self.token:
            return False
        try:
            services.clear_notifications(self.token)
        except BackendError as exc:
            return self._error(exc, "Failed to clear notifications")
        self.dispatch(SET_NOTIFICATIONS, {"notifications": [], "unread_count": 0})
        return True

    def add(self, notification: Dict[str, Any]) -> None:
        self.dispatch(ADD_NOTIFICATION, notification)

    def clear_error(self) -> None:
        self.dispatch(CLEAR_ERROR)
