"""Media item models."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MediaKind(str, Enum):
    """Media kinds accepted into a session."""

    DOCUMENT = "document"
    VIDEO = "video"
    AUDIO = "audio"


class Item(BaseModel):
    """One media file submitted by a user. Immutable once ingested."""

    model_config = ConfigDict(frozen=True)

    file_id: str
    kind: MediaKind
    file_unique_id: Optional[str] = None
    file_name: Optional[str] = None
    file_size: int = 0
    caption: Optional[str] = None
    received_at: datetime = Field(default_factory=utcnow)

    @property
    def display_name(self) -> str:
        return self.file_name or f"unnamed {self.kind.value}"
