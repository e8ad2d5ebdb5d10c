"""User statistics models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class UserStats(BaseModel):
    """Lifetime statistics for a single user."""

    user_id: int
    username: Optional[str] = None
    name: Optional[str] = None
    total_sequences: int = 0
    last_sequence_count: int = 0
    last_sequence_at: Optional[datetime] = None
    last_active: Optional[datetime] = None


class AggregateStats(BaseModel):
    """Totals across all users."""

    total_users: int = 0
    total_sequences: int = 0
