"""
Session-change notifications.

The auth service publishes an event whenever a user's session state changes
(sign-in, token refresh, one device signing out, full sign-out). Anything that caches per-user state
derived from the session, such as an effective role, subscribes here and
re-evaluates on every notification.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class AuthEventType(StrEnum):
    SIGNED_IN = "signed_in"
    TOKEN_REFRESHED = "token_refreshed"
    # One refresh token revoked; the user may still be signed in elsewhere.
    SESSION_REVOKED = "session_revoked"
    SIGNED_OUT = "signed_out"


@dataclass(frozen=True)
class AuthEvent:
    type: AuthEventType
    user_id: str


Listener = Callable[[AuthEvent], Awaitable[None]]


class Subscription:
    def __init__(self, hub: "AuthEventHub", listener: Listener) -> None:
        self._hub = hub
        self._listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._hub._listeners.remove(self._listener)
            self.active = False


class AuthEventHub:
    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self, listener)

    async def publish(self, event: AuthEvent) -> None:
        # Snapshot: listeners may unsubscribe while being notified.
        for listener in list(self._listeners):
            try:
                await listener(event)
            except Exception:
                logger.exception("auth_listener_failed event=%s user_id=%s", event.type, event.user_id)

    def __len__(self) -> int:
        return len(self._listeners)


hub = AuthEventHub()
