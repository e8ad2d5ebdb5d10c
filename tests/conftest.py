"""Shared test fixtures for the file sequencer bot."""

from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

import pytest

from seqbot.delivery.engine import DeliveryEngine
from seqbot.delivery.retry import RetryPolicy
from seqbot.errors import StatisticsUpdateFailure, TransportDeliveryFailure
from seqbot.models.items import Item, MediaKind
from seqbot.models.stats import AggregateStats, UserStats
from seqbot.sessions.manager import SessionManager
from seqbot.sessions.store import SessionStore

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_item(
    name: Optional[str],
    kind: MediaKind = MediaKind.DOCUMENT,
    file_id: Optional[str] = None,
) -> Item:
    return Item(file_id=file_id or f"id-{name}", kind=kind, file_name=name)


class RecordingSleep:
    """Stand-in for ``asyncio.sleep`` that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeClock:
    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeTransport:
    """Records deliveries; fails on demand.

    ``failing`` names always fail, ``flaky`` maps a name to how many attempts
    fail before one succeeds.
    """

    def __init__(
        self,
        failing: Iterable[str] = (),
        flaky: Optional[dict] = None,
        fail_all: bool = False,
    ) -> None:
        self.failing = set(failing)
        self.flaky = dict(flaky or {})
        self.fail_all = fail_all
        self.sent: list[Item] = []
        self.notifications: list[str] = []
        self.attempts: Counter = Counter()

    @property
    def sent_names(self) -> list[Optional[str]]:
        return [item.file_name for item in self.sent]

    async def send_item(self, item: Item) -> None:
        self.attempts[item.file_name] += 1
        if self.fail_all or item.file_name in self.failing:
            raise TransportDeliveryFailure("Bad Request: file is gone")
        if self.attempts[item.file_name] <= self.flaky.get(item.file_name, 0):
            raise TransportDeliveryFailure("Timed out")
        self.sent.append(item)

    async def notify(self, text: str) -> None:
        self.notifications.append(text)


class FakeStatsStore:
    """In-memory stand-in for ``UserStatsStore``."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls = 0
        self.totals: Counter = Counter()
        self.profiles: dict[int, tuple] = {}

    async def upsert_user(self, user_id, username, name) -> None:
        if self.fail:
            raise StatisticsUpdateFailure("mongo down")
        self.profiles[user_id] = (username, name)

    async def record_success(self, user_id: int, count: int) -> None:
        self.calls += 1
        if self.fail:
            raise StatisticsUpdateFailure("mongo down")
        self.totals[user_id] += count

    async def read_aggregate(self) -> AggregateStats:
        if self.fail:
            raise StatisticsUpdateFailure("mongo down")
        users = set(self.totals) | set(self.profiles)
        return AggregateStats(
            total_users=len(users), total_sequences=sum(self.totals.values())
        )

    async def get_user(self, user_id: int) -> Optional[UserStats]:
        if self.fail:
            raise StatisticsUpdateFailure("mongo down")
        if user_id not in self.totals and user_id not in self.profiles:
            return None
        return UserStats(user_id=user_id, total_sequences=self.totals[user_id])

    async def ping(self) -> bool:
        return not self.fail


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def retry_policy(sleep: RecordingSleep) -> RetryPolicy:
    return RetryPolicy(max_attempts=3, base_delay=1.0, sleep=sleep)


@pytest.fixture
def engine(retry_policy: RetryPolicy, sleep: RecordingSleep) -> DeliveryEngine:
    return DeliveryEngine(
        retry_policy=retry_policy,
        batch_size=50,
        item_delay=0.1,
        batch_delay=0.1,
        failure_display_limit=5,
        sleep=sleep,
    )


@pytest.fixture
def session_store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def stats() -> FakeStatsStore:
    return FakeStatsStore()


@pytest.fixture
def manager(
    session_store: SessionStore,
    engine: DeliveryEngine,
    stats: FakeStatsStore,
    clock: FakeClock,
) -> SessionManager:
    return SessionManager(
        session_store,
        engine,
        stats,
        max_items=5,
        progress_interval=2,
        progress_initial_items=1,
        clock=clock,
    )
