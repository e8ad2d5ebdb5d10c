"""Dependency providers shared by the bot process and the FastAPI app."""

from datetime import timedelta

from motor.motor_asyncio import AsyncIOMotorClient

from seqbot.config import settings
from seqbot.delivery.engine import DeliveryEngine
from seqbot.delivery.retry import RetryPolicy
from seqbot.scheduler.reaper import IdleReaper
from seqbot.sessions.manager import SessionManager
from seqbot.sessions.store import SessionStore
from seqbot.stats.store import UserStatsStore

# Global singleton instances (safe within a single event loop)
_mongo_client: AsyncIOMotorClient | None = None
_stats_store: UserStatsStore | None = None
_session_store: SessionStore | None = None
_session_manager: SessionManager | None = None


def get_stats_store() -> UserStatsStore:
    """Return singleton UserStatsStore instance."""
    global _stats_store, _mongo_client
    if _stats_store is None:
        _stats_store, _mongo_client = UserStatsStore.from_settings(settings)
    return _stats_store


def close_stats_store() -> None:
    """Close the MongoDB client behind the stats store, if one was opened."""
    global _stats_store, _mongo_client
    if _mongo_client is not None:
        _mongo_client.close()
    _stats_store = None
    _mongo_client = None


def get_session_store() -> SessionStore:
    """Return singleton SessionStore instance."""
    global _session_store
    if _session_store is None:
        _session_store = SessionStore()
    return _session_store


def build_retry_policy() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=settings.max_retry_attempts,
        base_delay=settings.retry_base_delay_ms / 1000,
    )


def get_session_manager() -> SessionManager:
    """Return singleton SessionManager wired from settings."""
    global _session_manager
    if _session_manager is None:
        engine = DeliveryEngine(
            retry_policy=build_retry_policy(),
            batch_size=settings.batch_size,
            item_delay=settings.item_delay_ms / 1000,
            batch_delay=settings.batch_delay_ms / 1000,
            failure_display_limit=settings.failure_display_limit,
        )
        _session_manager = SessionManager(
            store=get_session_store(),
            engine=engine,
            stats=get_stats_store(),
            max_items=settings.max_items_per_session,
            progress_interval=settings.progress_interval,
            progress_initial_items=settings.progress_initial_items,
        )
    return _session_manager


def build_reaper() -> IdleReaper:
    return IdleReaper(
        get_session_store(),
        idle_timeout=timedelta(minutes=settings.idle_timeout_minutes),
        interval=timedelta(minutes=settings.reaper_interval_minutes),
    )
