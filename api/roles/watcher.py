"""
Effective-role subscription.

A `RoleWatcher` owns one subscription to the auth-change hub for a single
user. The role is re-evaluated on every notification for that user and the
subscription is released by `close()`. Editing sessions hold one each, so a
full sign-out immediately revokes their authoring rights, while revoking one
device only triggers a re-check.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from auth import events

from . import gate, service

logger = logging.getLogger(__name__)

RoleResolver = Callable[[str], Awaitable["gate.Role | None"]]


class RoleWatcher:
    def __init__(
        self,
        user_id: str,
        *,
        hub: events.AuthEventHub | None = None,
        resolve: RoleResolver | None = None,
    ) -> None:
        self.user_id = user_id
        self._hub = hub or events.hub
        self._resolve = resolve or service.fetch_effective_role
        self._subscription: events.Subscription | None = None
        self.role: gate.Role | None = None

    @property
    def viewer(self) -> gate.Viewer:
        if self.role is None:
            return gate.ANONYMOUS
        return gate.Viewer(user_id=self.user_id, role=self.role)

    @property
    def active(self) -> bool:
        return self._subscription is not None and self._subscription.active

    async def start(self, initial_role: gate.Role | None = None) -> gate.Role | None:
        if initial_role is None:
            initial_role = await self._resolve(self.user_id)
        self.role = initial_role
        if self._subscription is None:
            self._subscription = self._hub.subscribe(self._on_event)
        return self.role

    async def _on_event(self, event: events.AuthEvent) -> None:
        if event.user_id != self.user_id:
            return
        if event.type == events.AuthEventType.SIGNED_OUT:
            self.role = None
        else:
            self.role = await self._resolve(self.user_id)
        logger.info("role_reevaluated user_id=%s event=%s role=%s", self.user_id, event.type, self.role)

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
