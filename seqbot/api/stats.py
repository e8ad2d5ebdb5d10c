"""Aggregate and per-user statistics endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from seqbot.dependencies import get_stats_store
from seqbot.errors import StatisticsUpdateFailure
from seqbot.models.stats import AggregateStats, UserStats
from seqbot.stats.store import UserStatsStore

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=AggregateStats)
async def aggregate_stats(
    stats: UserStatsStore = Depends(get_stats_store),
) -> AggregateStats:
    """Return total users and total sequenced files."""
    try:
        return await stats.read_aggregate()
    except StatisticsUpdateFailure as exc:
        logger.error("Failed to read aggregate stats: %s", exc)
        raise HTTPException(status_code=503, detail="Statistics unavailable")


@router.get("/users/{user_id}", response_model=UserStats)
async def user_stats(
    user_id: int,
    stats: UserStatsStore = Depends(get_stats_store),
) -> UserStats:
    """Return lifetime statistics for one user."""
    try:
        found = await stats.get_user(user_id)
    except StatisticsUpdateFailure as exc:
        logger.error("Failed to read stats for user %s: %s", user_id, exc)
        raise HTTPException(status_code=503, detail="Statistics unavailable")

    if found is None:
        raise HTTPException(status_code=404, detail="User not found")
    return found
