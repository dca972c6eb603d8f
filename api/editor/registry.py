"""
In-process registry of live editing sessions.

Each session is owned by the user who opened it and holds a `RoleWatcher`
for that user, so the session loses its authoring rights as soon as the
owner signs out or is demoted. Closing a session releases the watcher.

Sessions that go unused for longer than `EDITOR_SESSION_TTL_S` are evicted
the next time the registry is touched.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from core import config, errors
from roles import gate
from roles.watcher import RoleWatcher

from .session import EditorSession

logger = logging.getLogger(__name__)


class SessionRegistry:
    def __init__(
        self,
        *,
        ttl_s: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._sessions: dict[str, EditorSession] = {}
        self._last_access: dict[str, float] = {}
        self._ttl_s = ttl_s
        self._clock = clock

    @property
    def ttl_s(self) -> float:
        return self._ttl_s if self._ttl_s is not None else config.editor_session_ttl_s()

    async def open(self, session: EditorSession, *, role: gate.Role | None = None) -> EditorSession:
        self.evict_idle()
        watcher = RoleWatcher(session.owner_id)
        await watcher.start(initial_role=role)
        session.watcher = watcher
        self._sessions[session.id] = session
        self._last_access[session.id] = self._clock()
        logger.info("editor_session_opened session_id=%s post_id=%s", session.id, session.post_id)
        return session

    def get(self, session_id: str, *, owner_id: str) -> EditorSession:
        self.evict_idle()
        session = self._sessions.get(session_id)
        # Other users' sessions are indistinguishable from missing ones.
        if session is None or session.owner_id != owner_id:
            raise errors.NotFoundError("Editor session not found.")
        if session.watcher is not None:
            gate.require_authoring_area(session.watcher.viewer)
        self._last_access[session_id] = self._clock()
        return session

    def close(self, session_id: str, *, owner_id: str) -> None:
        session = self._sessions.get(session_id)
        if session is None or session.owner_id != owner_id:
            raise errors.NotFoundError("Editor session not found.")
        self._discard(session_id)
        logger.info("editor_session_closed session_id=%s", session_id)

    def evict_idle(self) -> int:
        cutoff = self._clock() - self.ttl_s
        expired = [sid for sid, seen in self._last_access.items() if seen < cutoff]
        for session_id in expired:
            self._discard(session_id)
        if expired:
            logger.info("editor_sessions_evicted count=%s remaining=%s", len(expired), len(self._sessions))
        return len(expired)

    def close_all(self) -> None:
        for session in list(self._sessions.values()):
            if session.watcher is not None:
                session.watcher.close()
        self._sessions.clear()
        self._last_access.clear()

    def _discard(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        self._last_access.pop(session_id, None)
        if session is not None and session.watcher is not None:
            session.watcher.close()

    def __len__(self) -> int:
        return len(self._sessions)


registry = SessionRegistry()
