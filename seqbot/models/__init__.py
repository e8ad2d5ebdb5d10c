"""Data models shared by the sequencing core."""

from .delivery import DeliveryReport
from .items import Item, MediaKind
from .sessions import IngestReceipt, SequenceSession, SessionPhase, SessionStatus
from .stats import AggregateStats, UserStats

__all__ = [
    "AggregateStats",
    "DeliveryReport",
    "IngestReceipt",
    "Item",
    "MediaKind",
    "SequenceSession",
    "SessionPhase",
    "SessionStatus",
    "UserStats",
]
