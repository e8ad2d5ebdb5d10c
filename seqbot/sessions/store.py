"""In-memory session store.

The store is the single point of synchronization for session state: every
read and mutation happens under one ``asyncio.Lock`` and callers only ever see
copies, so the session manager and the idle reaper cannot race each other.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Dict, List, Optional

from seqbot.errors import (
    CapacityExceeded,
    NoActiveSession,
    SessionAlreadyActive,
    SessionBusy,
)
from seqbot.models.items import Item
from seqbot.models.sessions import SequenceSession, SessionPhase

logger = logging.getLogger(__name__)


class SessionStore:
    """Map of user id to that user's single active session."""

    def __init__(self) -> None:
        self._sessions: Dict[int, SequenceSession] = {}
        self._lock = asyncio.Lock()

    async def create(self, user_id: int, now: datetime) -> SequenceSession:
        """Open an empty session, or raise if the user already has one."""
        async with self._lock:
            existing = self._sessions.get(user_id)
            if existing is not None:
                if not existing.is_open:
                    raise SessionBusy(user_id)
                raise SessionAlreadyActive(user_id, existing.item_count)
            session = SequenceSession(user_id=user_id, started_at=now, last_activity=now)
            self._sessions[user_id] = session
            return session.model_copy(deep=True)

    async def exists(self, user_id: int) -> bool:
        async with self._lock:
            return user_id in self._sessions

    async def get(self, user_id: int) -> Optional[SequenceSession]:
        async with self._lock:
            session = self._sessions.get(user_id)
            return session.model_copy(deep=True) if session else None

    async def append(
        self, user_id: int, item: Item, max_items: int, now: datetime
    ) -> int:
        """Append an item to an open session and return the new item count."""
        async with self._lock:
            session = self._require_open(user_id)
            if session.item_count >= max_items:
                raise CapacityExceeded(user_id, max_items)
            session.items.append(item)
            session.touch(now)
            return session.item_count

    async def begin_close(self, user_id: int) -> SequenceSession:
        """Mark an open session as closing and return a snapshot of it."""
        async with self._lock:
            session = self._require_open(user_id)
            session.phase = SessionPhase.CLOSING
            return session.model_copy(deep=True)

    async def discard(self, user_id: int) -> SequenceSession:
        """Remove an open session. Sessions being delivered are left alone."""
        async with self._lock:
            session = self._require_open(user_id)
            del self._sessions[user_id]
            return session

    async def remove(self, user_id: int) -> Optional[SequenceSession]:
        """Remove a session in any phase. Removing a missing session is a no-op."""
        async with self._lock:
            return self._sessions.pop(user_id, None)

    async def remove_idle(self, cutoff: datetime) -> List[SequenceSession]:
        """Remove open sessions whose last activity is before ``cutoff``."""
        async with self._lock:
            stale = [
                session
                for session in self._sessions.values()
                if session.is_open and session.last_activity < cutoff
            ]
            for session in stale:
                del self._sessions[session.user_id]
            return stale

    async def count(self) -> int:
        async with self._lock:
            return len(self._sessions)

    def _require_open(self, user_id: int) -> SequenceSession:
        session = self._sessions.get(user_id)
        if session is None:
            raise NoActiveSession(user_id)
        if not session.is_open:
            raise SessionBusy(user_id)
        return session
