# stores/base.py
from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Dict, Optional

from django.contrib import messages

from backend_api import BackendError

logger = logging.getLogger(__name__)

State = Dict[str, Any]
Action = Dict[str, Any]
Reducer = Callable[[State, Action], State]

# Browser-storage equivalents: persisted auth token and cached user profile.
TOKEN_KEY = "token"
USER_INFO_KEY = "userInfo"


def action(action_type: str, payload: Any = None) -> Action:
    return {"type": action_type, "payload": payload}


class SessionStore:
    """
    Reducer-backed state container persisted in the visitor's session.

    Subclasses set `session_key`, `initial_state` and `reducer`. State must
    stay JSON-serializable (the session serializer is JSON).
    """

    session_key: str = ""
    initial_state: State = {}

    def __init__(self, request) -> None:
        self.request = request

    @staticmethod
    def reducer(state: State, act: Action) -> State:
        return state

    # ---- state ----
    @property
    def state(self) -> State:
        stored = self.request.session.get(self.session_key)
        if stored is None:
            return copy.deepcopy(self.initial_state)
        return stored

    def dispatch(self, action_type: str, payload: Any = None) -> State:
        new_state = self.reducer(self.state, action(action_type, payload))
        self.request.session[self.session_key] = new_state
        self.request.session.modified = True
        return new_state

    def reset(self) -> None:
        if self.session_key in self.request.session:
            del self.request.session[self.session_key]
        self.request.session.modified = True

    # ---- auth ----
    @property
    def token(self) -> Optional[str]:
        return self.request.session.get(TOKEN_KEY)

    # ---- toasts ----
    def notify(self, level: int, text: str) -> None:
        """Flash a user-facing message (toast)."""
        messages.add_message(self.request, level, text, fail_silently=True)

    def fail(self, exc: BackendError, default: Optional[str] = None) -> None:
        """Uniform failure path: log and show the backend's message."""
        logger.info("%s action failed: %s", type(self).__name__, exc)
        self.notify(messages.ERROR, exc.message or default or "Some Error Occurred!!")
