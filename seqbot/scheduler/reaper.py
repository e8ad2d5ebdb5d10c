"""
Periodic sweep that discards idle sessions, driven by APScheduler.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from seqbot.sessions.store import SessionStore

logger = logging.getLogger(__name__)

REAPER_JOB_ID = "idle-session-reaper"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IdleReaper:
    """
    Removes sessions with no activity for longer than ``idle_timeout``.

    Reaping performs no delivery and no statistics update. Sessions that are
    being delivered are skipped by the store.
    """

    def __init__(
        self,
        store: SessionStore,
        idle_timeout: timedelta = timedelta(minutes=30),
        interval: timedelta = timedelta(minutes=10),
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.idle_timeout = idle_timeout
        self.interval = interval
        self._clock = clock
        self.scheduler: Optional[AsyncIOScheduler] = None

    async def sweep(self) -> List[int]:
        """
        Remove every idle session once.

        Returns:
            User ids whose sessions were reaped
        """
        cutoff = self._clock() - self.idle_timeout
        reaped = await self.store.remove_idle(cutoff)
        for session in reaped:
            logger.info(
                f"Reaped idle session for user {session.user_id} "
                f"({session.item_count} items, last active {session.last_activity.isoformat()})"
            )
        return [session.user_id for session in reaped]

    def start(self) -> None:
        """Schedule the sweep on the running event loop."""
        if self.scheduler is not None:
            logger.warning("Idle reaper already started")
            return

        self.scheduler = AsyncIOScheduler()
        self.scheduler.add_job(
            self.sweep,
            trigger=IntervalTrigger(seconds=self.interval.total_seconds()),
            id=REAPER_JOB_ID,
            name="Reap idle sequencing sessions",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()
        logger.info(
            f"Idle reaper started (timeout {self.idle_timeout}, every {self.interval})"
        )

    def shutdown(self) -> None:
        """Stop the periodic sweep."""
        if self.scheduler:
            self.scheduler.shutdown(wait=False)
            self.scheduler = None
            logger.info("Idle reaper shut down")
