"""Session lifecycle orchestration.

Per user: NONE -> OPEN -> CLOSING -> NONE. Every transition for a user runs
under that user's lock, so concurrent commands from one user are serialized
while different users proceed independently. Delivery itself runs outside
the lock with the session marked CLOSING; commands that arrive meanwhile are
rejected with ``SessionBusy``.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from datetime import datetime, timezone
from typing import Callable, Optional

from seqbot.delivery.engine import DeliveryEngine, Transport
from seqbot.delivery.retry import RetryPolicy
from seqbot.errors import (
    EmptySession,
    NoActiveSession,
    UnsupportedKind,
)
from seqbot.models.delivery import DeliveryReport
from seqbot.models.items import Item, MediaKind
from seqbot.models.sessions import IngestReceipt, SessionStatus
from seqbot.sequencing.ordering import order_items
from seqbot.sessions.store import SessionStore
from seqbot.stats.store import UserStatsStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionManager:
    """Start, fill, close and cancel per-user sequencing sessions."""

    def __init__(
        self,
        store: SessionStore,
        engine: DeliveryEngine,
        stats: Optional[UserStatsStore] = None,
        *,
        max_items: int = 200,
        progress_interval: int = 50,
        progress_initial_items: int = 3,
        stats_retry: Optional[RetryPolicy] = None,
        clock: Clock = _utcnow,
    ) -> None:
        self.store = store
        self.engine = engine
        self.stats = stats
        self.max_items = max_items
        self.progress_interval = progress_interval
        self.progress_initial_items = progress_initial_items
        self.stats_retry = stats_retry or engine.retry_policy
        self._clock = clock
        self._locks: "weakref.WeakValueDictionary[int, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, user_id: int) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def start(self, user_id: int) -> None:
        """Open a new session.

        Raises:
            SessionAlreadyActive: the user already has an open session.
            SessionBusy: the user's previous session is still being delivered.
        """
        async with self._lock_for(user_id):
            await self.store.create(user_id, self._clock())
        logger.info("Session started for user %s", user_id)

    async def ingest(
        self,
        user_id: int,
        kind: Optional[str],
        file_id: str,
        *,
        file_unique_id: Optional[str] = None,
        file_name: Optional[str] = None,
        file_size: Optional[int] = None,
        caption: Optional[str] = None,
    ) -> IngestReceipt:
        """Add a received file to the user's session.

        Raises:
            NoActiveSession: no session is open for the user.
            UnsupportedKind: ``kind`` is not document, video or audio.
            CapacityExceeded: the session already holds ``max_items`` items.
            SessionBusy: the session is being delivered.
        """
        async with self._lock_for(user_id):
            if not await self.store.exists(user_id):
                raise NoActiveSession(user_id)
            try:
                media_kind = MediaKind(kind)
            except ValueError:
                raise UnsupportedKind(kind) from None

            now = self._clock()
            item = Item(
                file_id=file_id,
                kind=media_kind,
                file_unique_id=file_unique_id,
                file_name=file_name,
                file_size=file_size or 0,
                caption=caption,
                received_at=now,
            )
            count = await self.store.append(user_id, item, self.max_items, now)

        logger.debug("User %s added %s (%d items)", user_id, item.display_name, count)
        return IngestReceipt(item_count=count, announce=self._should_announce(count))

    async def close(self, user_id: int, transport: Transport) -> DeliveryReport:
        """Order and deliver the session's items, then drop the session.

        The session is removed on every exit path, including failures during
        delivery.

        Raises:
            NoActiveSession: no session is open for the user.
            EmptySession: the session had no items (it is removed anyway).
            SessionBusy: a delivery is already running for the user.
        """
        async with self._lock_for(user_id):
            session = await self.store.begin_close(user_id)
            if not session.items:
                await self.store.remove(user_id)
                raise EmptySession(user_id)

        logger.info(
            "Closing session for user %s with %d items", user_id, session.item_count
        )
        try:
            ordered = order_items(session.items)
            report = await self.engine.deliver(ordered, transport)
            await self._record_stats(user_id, report)
            return report
        finally:
            await self.store.remove(user_id)

    async def cancel(self, user_id: int) -> int:
        """Discard the user's session and return how many items were dropped.

        Raises:
            NoActiveSession: no session is open for the user.
            SessionBusy: the session is being delivered.
        """
        async with self._lock_for(user_id):
            session = await self.store.discard(user_id)
        logger.info(
            "Session cancelled for user %s (%d items discarded)",
            user_id,
            session.item_count,
        )
        return session.item_count

    async def status(self, user_id: int) -> SessionStatus:
        """Report the user's current session.

        Raises:
            NoActiveSession: no session exists for the user.
        """
        session = await self.store.get(user_id)
        if session is None:
            raise NoActiveSession(user_id)
        return SessionStatus(
            item_count=session.item_count,
            started_at=session.started_at,
            elapsed=session.elapsed(self._clock()),
            delivering=not session.is_open,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _should_announce(self, count: int) -> bool:
        return count <= self.progress_initial_items or count % self.progress_interval == 0

    async def _record_stats(self, user_id: int, report: DeliveryReport) -> None:
        """Best-effort statistics update; failures never affect the report."""
        if self.stats is None or report.succeeded == 0:
            return
        try:
            await self.stats_retry.run(
                lambda: self.stats.record_success(user_id, report.succeeded),
                description=f"Recording statistics for user {user_id}",
            )
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error(
                "Error updating statistics for user %s: %s", user_id, exc, exc_info=True
            )
