"""Batched delivery of ordered items through a transport.

Items go out in fixed-size batches, strictly one after another. Each item is
sent with the retry policy; an item that still fails is recorded in the report
and delivery moves on. Pacing delays separate items within a batch and
consecutive batches, with nothing after the final item.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol, Sequence

from seqbot.delivery.retry import RetryPolicy, Sleep
from seqbot.models.delivery import DeliveryReport
from seqbot.models.items import Item

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Channel that can send an item back to the user."""

    async def send_item(self, item: Item) -> None:
        ...

    async def notify(self, text: str) -> None:
        ...


def split_batches(items: Sequence[Item], size: int) -> list[Sequence[Item]]:
    """Partition items into contiguous batches of ``size`` (last may be short)."""
    return [items[start : start + size] for start in range(0, len(items), size)]


class DeliveryEngine:
    """Send ordered items with batching, pacing and per-item retry."""

    def __init__(
        self,
        retry_policy: RetryPolicy,
        batch_size: int = 50,
        item_delay: float = 0.1,
        batch_delay: float = 0.1,
        failure_display_limit: int = 5,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.retry_policy = retry_policy
        self.batch_size = batch_size
        self.item_delay = item_delay
        self.batch_delay = batch_delay
        self.failure_display_limit = failure_display_limit
        self._sleep = sleep

    async def deliver(self, items: Sequence[Item], transport: Transport) -> DeliveryReport:
        """Deliver ``items`` in the given order. Never raises for transport errors."""
        batches = split_batches(list(items), self.batch_size)
        report = DeliveryReport(total=len(items), batches=len(batches))

        for batch_index, batch in enumerate(batches, start=1):
            if len(batches) > 1:
                await self._notify(
                    transport,
                    f"📦 Sending batch {batch_index}/{len(batches)} "
                    f"({len(batch)} files)...",
                )

            for position, item in enumerate(batch):
                await self._deliver_one(item, transport, report)
                if position < len(batch) - 1 and self.item_delay > 0:
                    await self._sleep(self.item_delay)

            if batch_index < len(batches) and self.batch_delay > 0:
                await self._sleep(self.batch_delay)

        logger.info(
            "Delivery finished: %d/%d sent, %d failed in %d batches",
            report.succeeded,
            report.total,
            report.failed,
            report.batches,
        )
        return report

    async def _deliver_one(
        self, item: Item, transport: Transport, report: DeliveryReport
    ) -> None:
        try:
            await self.retry_policy.run(
                lambda: transport.send_item(item),
                description=f"Sending {item.display_name}",
            )
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error(f"Giving up on {item.display_name}: {exc}")
            report.failed += 1
            if len(report.failures) < self.failure_display_limit:
                report.failures.append(f"{item.display_name}: {exc}")
            else:
                report.failures_omitted += 1
        else:
            report.succeeded += 1

    async def _notify(self, transport: Transport, text: str) -> None:
        try:
            await transport.notify(text)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning(f"Progress notification failed: {exc}")
