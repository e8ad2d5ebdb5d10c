"""Tests for session lifecycle orchestration."""

import asyncio

import pytest

from conftest import FakeClock, FakeStatsStore, FakeTransport
from seqbot.errors import (
    CapacityExceeded,
    EmptySession,
    NoActiveSession,
    SessionAlreadyActive,
    SessionBusy,
    UnsupportedKind,
)
from seqbot.sessions.manager import SessionManager

USER = 42


async def add(manager: SessionManager, name: str, kind: str = "document"):
    return await manager.ingest(USER, kind, f"id-{name}", file_name=name)


@pytest.mark.asyncio
async def test_start_twice_reports_existing_count(manager: SessionManager) -> None:
    await manager.start(USER)
    await add(manager, "a.pdf")

    with pytest.raises(SessionAlreadyActive) as exc_info:
        await manager.start(USER)

    assert exc_info.value.item_count == 1
    assert (await manager.status(USER)).item_count == 1


@pytest.mark.asyncio
async def test_ingest_requires_session(manager: SessionManager) -> None:
    with pytest.raises(NoActiveSession):
        await add(manager, "a.pdf")


@pytest.mark.asyncio
async def test_ingest_rejects_unsupported_kind(manager: SessionManager) -> None:
    await manager.start(USER)
    with pytest.raises(UnsupportedKind):
        await add(manager, "pic.jpg", kind="photo")
    with pytest.raises(UnsupportedKind):
        await manager.ingest(USER, None, "")
    assert (await manager.status(USER)).item_count == 0


@pytest.mark.asyncio
async def test_ingest_beyond_capacity_leaves_count_unchanged(manager: SessionManager) -> None:
    await manager.start(USER)
    for n in range(5):
        await add(manager, f"{n}.pdf")

    with pytest.raises(CapacityExceeded):
        await add(manager, "overflow.pdf")
    assert (await manager.status(USER)).item_count == 5


@pytest.mark.asyncio
async def test_ingest_announces_first_items_and_every_interval(manager: SessionManager) -> None:
    await manager.start(USER)
    receipts = [await add(manager, f"{n}.pdf", kind="audio") for n in range(5)]
    assert [r.announce for r in receipts] == [True, True, False, True, False]
    assert [r.item_count for r in receipts] == [1, 2, 3, 4, 5]


@pytest.mark.asyncio
async def test_ingest_refreshes_activity(manager: SessionManager, clock: FakeClock) -> None:
    await manager.start(USER)
    clock.advance(minutes=3)
    await add(manager, "a.pdf")
    clock.advance(minutes=2)

    session = await manager.store.get(USER)
    assert (session.last_activity - session.started_at).total_seconds() == 180
    assert (clock.now - session.last_activity).total_seconds() == 120
    assert (await manager.status(USER)).elapsed.total_seconds() == 300


@pytest.mark.asyncio
async def test_close_delivers_in_order_and_records_stats(
    manager: SessionManager, stats: FakeStatsStore
) -> None:
    await manager.start(USER)
    for name in ("Show.480p.E02.mkv", "Show.720p.E01.mkv", "Show.480p.E01.mkv"):
        await add(manager, name, kind="video")
    transport = FakeTransport()

    report = await manager.close(USER, transport)

    assert transport.sent_names == [
        "Show.480p.E01.mkv",
        "Show.480p.E02.mkv",
        "Show.720p.E01.mkv",
    ]
    assert report.succeeded == 3
    assert stats.totals[USER] == 3
    assert await manager.store.get(USER) is None


@pytest.mark.asyncio
async def test_close_empty_session(manager: SessionManager, stats: FakeStatsStore) -> None:
    await manager.start(USER)
    with pytest.raises(EmptySession):
        await manager.close(USER, FakeTransport())
    assert await manager.store.get(USER) is None
    assert stats.calls == 0


@pytest.mark.asyncio
async def test_close_without_session(manager: SessionManager) -> None:
    with pytest.raises(NoActiveSession):
        await manager.close(USER, FakeTransport())


@pytest.mark.asyncio
async def test_close_removes_session_when_every_item_fails(
    manager: SessionManager, stats: FakeStatsStore
) -> None:
    await manager.start(USER)
    for n in range(3):
        await add(manager, f"{n}.pdf")

    report = await manager.close(USER, FakeTransport(fail_all=True))

    assert report.succeeded == 0
    assert report.failed == 3
    assert await manager.store.get(USER) is None
    assert stats.calls == 0


@pytest.mark.asyncio
async def test_close_removes_session_on_unexpected_error(manager: SessionManager) -> None:
    class Exploding:
        async def deliver(self, items, transport):
            raise RuntimeError("bug")

    manager.engine = Exploding()
    await manager.start(USER)
    await add(manager, "a.pdf")

    with pytest.raises(RuntimeError):
        await manager.close(USER, FakeTransport())
    assert await manager.store.get(USER) is None


@pytest.mark.asyncio
async def test_statistics_failure_does_not_affect_report(
    manager: SessionManager, stats: FakeStatsStore
) -> None:
    stats.fail = True
    await manager.start(USER)
    await add(manager, "a.pdf")

    report = await manager.close(USER, FakeTransport())

    assert report.succeeded == 1
    assert stats.calls == 3  # retried with the shared policy
    assert await manager.store.get(USER) is None


@pytest.mark.asyncio
async def test_unexpected_statistics_error_does_not_affect_report(
    manager: SessionManager, stats: FakeStatsStore
) -> None:
    async def encode_failure(user_id: int, count: int) -> None:
        stats.calls += 1
        raise TypeError("cannot encode object")

    stats.record_success = encode_failure
    await manager.start(USER)
    await add(manager, "a.pdf")

    report = await manager.close(USER, FakeTransport())

    assert report.succeeded == 1
    assert report.failed == 0
    assert stats.calls == 3
    assert await manager.store.get(USER) is None


@pytest.mark.asyncio
async def test_cancel(manager: SessionManager, stats: FakeStatsStore) -> None:
    with pytest.raises(NoActiveSession):
        await manager.cancel(USER)

    await manager.start(USER)
    await add(manager, "a.pdf")
    await add(manager, "b.pdf")

    assert await manager.cancel(USER) == 2
    assert await manager.store.get(USER) is None
    assert stats.calls == 0


@pytest.mark.asyncio
async def test_status_without_session(manager: SessionManager) -> None:
    with pytest.raises(NoActiveSession):
        await manager.status(USER)


@pytest.mark.asyncio
async def test_commands_during_delivery_are_rejected(manager: SessionManager) -> None:
    release = asyncio.Event()
    started = asyncio.Event()

    class SlowTransport(FakeTransport):
        async def send_item(self, item) -> None:
            started.set()
            await release.wait()
            await super().send_item(item)

    await manager.start(USER)
    await add(manager, "a.pdf")
    closing = asyncio.create_task(manager.close(USER, SlowTransport()))
    await started.wait()

    assert (await manager.status(USER)).delivering is True
    with pytest.raises(SessionBusy):
        await manager.cancel(USER)
    with pytest.raises(SessionBusy):
        await add(manager, "b.pdf")
    with pytest.raises(SessionBusy):
        await manager.close(USER, FakeTransport())
    with pytest.raises(SessionBusy):
        await manager.start(USER)

    release.set()
    report = await closing
    assert report.succeeded == 1
    assert await manager.store.get(USER) is None


@pytest.mark.asyncio
async def test_other_users_proceed_during_delivery(manager: SessionManager) -> None:
    release = asyncio.Event()
    started = asyncio.Event()

    class SlowTransport(FakeTransport):
        async def send_item(self, item) -> None:
            started.set()
            await release.wait()
            await super().send_item(item)

    await manager.start(USER)
    await add(manager, "a.pdf")
    closing = asyncio.create_task(manager.close(USER, SlowTransport()))
    await started.wait()

    other = USER + 1
    await manager.start(other)
    await manager.ingest(other, "video", "id-x", file_name="x.mkv")
    other_report = await manager.close(other, FakeTransport())
    assert other_report.succeeded == 1

    release.set()
    await closing
