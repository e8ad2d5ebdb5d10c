"""Central API router that aggregates all route modules."""

from fastapi import APIRouter

from seqbot.api.health import router as health_router
from seqbot.api.stats import router as stats_router

api_router = APIRouter()

api_router.include_router(health_router, prefix="/health", tags=["health"])
api_router.include_router(stats_router, prefix="/stats", tags=["stats"])
