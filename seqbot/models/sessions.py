"""Session models for in-progress file sequences."""

from datetime import datetime, timedelta
from enum import Enum

from pydantic import BaseModel, Field

from seqbot.models.items import Item, utcnow


class SessionPhase(str, Enum):
    """Lifecycle phase of a session held in the store."""

    OPEN = "open"
    CLOSING = "closing"


class SequenceSession(BaseModel):
    """One user's in-progress sequencing request."""

    user_id: int
    items: list[Item] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=utcnow)
    last_activity: datetime = Field(default_factory=utcnow)
    phase: SessionPhase = SessionPhase.OPEN

    @property
    def item_count(self) -> int:
        return len(self.items)

    @property
    def is_open(self) -> bool:
        return self.phase == SessionPhase.OPEN

    def touch(self, now: datetime) -> None:
        """Refresh last activity without ever moving it backwards."""
        if now > self.last_activity:
            self.last_activity = now

    def elapsed(self, now: datetime) -> timedelta:
        return now - self.started_at


class IngestReceipt(BaseModel):
    """Result of adding an item to a session."""

    item_count: int
    announce: bool = False


class SessionStatus(BaseModel):
    """Read-only view of a session for the status command."""

    item_count: int
    started_at: datetime
    elapsed: timedelta
    delivering: bool = False
