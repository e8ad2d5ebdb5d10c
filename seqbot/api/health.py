"""Health check endpoint for infrastructure monitoring."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends

from seqbot.dependencies import get_stats_store
from seqbot.stats.store import UserStatsStore

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("")
async def health_check(
    stats: UserStatsStore = Depends(get_stats_store),
) -> dict[str, Any]:
    """Return aggregate health of backend services."""
    mongo_ok = await stats.ping()
    services = {"mongodb": {"status": "healthy" if mongo_ok else "unhealthy"}}

    overall = (
        "healthy"
        if all(s["status"] == "healthy" for s in services.values())
        else "degraded"
    )

    return {
        "status": overall,
        "services": services,
    }
