"""FastAPI application exposing health and usage statistics."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from seqbot import __version__
from seqbot.api.router import api_router
from seqbot.config import settings
from seqbot.dependencies import close_stats_store, get_stats_store
from seqbot.sequencing.ordering import use_system_collation

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle."""
    logger.info("Starting %s reporting API...", settings.app_name)
    use_system_collation()

    stats = get_stats_store()
    await stats.ensure_indexes()
    logger.info("Statistics store initialized successfully")

    yield

    close_stats_store()
    logger.info("%s reporting API shut down cleanly", settings.app_name)


app = FastAPI(
    title=f"{settings.app_name} API",
    description="Health and usage statistics for the file sequencer bot",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api")

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
