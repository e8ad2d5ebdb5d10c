"""Lifetime per-user statistics in MongoDB.

Document schema (collection ``users``)::

    {
        "user_id": 123456789,
        "username": "someone",
        "name": "Some",
        "last_active": "2026-02-08T10:30:00Z",
        "total_sequences": 412,
        "last_sequence_count": 24,
        "last_sequence_at": "2026-02-08T11:00:00Z"
    }

``total_sequences`` only ever grows via ``$inc``; it is never overwritten.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo.errors import PyMongoError

from seqbot.config import Settings
from seqbot.errors import StatisticsUpdateFailure
from seqbot.models.stats import AggregateStats, UserStats

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class UserStatsStore:
    """Upsert, increment and aggregate user statistics."""

    def __init__(self, collection: AsyncIOMotorCollection) -> None:
        self._collection = collection

    @classmethod
    def from_settings(
        cls, settings: Settings
    ) -> tuple["UserStatsStore", AsyncIOMotorClient]:
        """Build a store and the client that owns its connection pool."""
        logger.info("Connecting to MongoDB at %s", settings.mongodb_uri)
        client: AsyncIOMotorClient = AsyncIOMotorClient(
            settings.mongodb_uri,
            serverSelectionTimeoutMS=5_000,
        )
        collection = client[settings.mongodb_database][settings.users_collection]
        return cls(collection), client

    async def ensure_indexes(self) -> None:
        await self._collection.create_index("user_id", unique=True)

    async def ping(self) -> bool:
        try:
            await self._collection.database.command("ping")
        except PyMongoError as exc:
            logger.warning("MongoDB ping failed: %s", exc)
            return False
        return True

    async def upsert_user(
        self, user_id: int, username: Optional[str], name: Optional[str]
    ) -> None:
        """Record the user's profile and mark them active now."""
        try:
            await self._collection.update_one(
                {"user_id": user_id},
                {
                    "$set": {
                        "username": username,
                        "name": name,
                        "last_active": _now(),
                    },
                    "$setOnInsert": {"total_sequences": 0},
                },
                upsert=True,
            )
        except PyMongoError as exc:
            raise StatisticsUpdateFailure(f"Could not update user {user_id}: {exc}") from exc

    async def record_success(self, user_id: int, count: int) -> None:
        """Add ``count`` delivered files to the user's lifetime total."""
        now = _now()
        try:
            await self._collection.update_one(
                {"user_id": user_id},
                {
                    "$inc": {"total_sequences": count},
                    "$set": {
                        "last_sequence_count": count,
                        "last_sequence_at": now,
                        "last_active": now,
                    },
                },
                upsert=True,
            )
        except PyMongoError as exc:
            raise StatisticsUpdateFailure(
                f"Could not record {count} files for user {user_id}: {exc}"
            ) from exc
        logger.info("Recorded %d sequenced files for user %s", count, user_id)

    async def get_user(self, user_id: int) -> Optional[UserStats]:
        try:
            doc = await self._collection.find_one({"user_id": user_id}, {"_id": 0})
        except PyMongoError as exc:
            raise StatisticsUpdateFailure(f"Could not read user {user_id}: {exc}") from exc
        return UserStats(**doc) if doc else None

    async def read_aggregate(self) -> AggregateStats:
        """Return the number of users and their combined lifetime total."""
        try:
            total_users = await self._collection.count_documents({})
            cursor = self._collection.aggregate(
                [{"$group": {"_id": None, "total": {"$sum": "$total_sequences"}}}]
            )
            rows = await cursor.to_list(length=1)
        except PyMongoError as exc:
            raise StatisticsUpdateFailure(f"Could not read aggregate stats: {exc}") from exc

        total = rows[0]["total"] if rows else 0
        return AggregateStats(total_users=total_users, total_sequences=total)
