"""Bounded retry with exponential backoff."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class RetryPolicy:
    """Retry an async operation up to ``max_attempts`` times.

    The wait before attempt ``n + 1`` is ``base_delay * 2 ** (n - 1)`` seconds.
    An exception carrying a ``retry_after`` hint larger than that delay (e.g.
    Telegram flood control) stretches the wait to the hint.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    sleep: Sleep = field(default=asyncio.sleep, compare=False, repr=False)

    def delay_for(self, attempt: int) -> float:
        return self.base_delay * (2 ** (attempt - 1))

    async def run(
        self,
        factory: Callable[[], Awaitable[T]],
        *,
        description: str = "operation",
    ) -> T:
        """Await ``factory()`` until it succeeds or attempts run out.

        Raises:
            The last exception once all attempts have failed.
        """
        attempts = max(1, self.max_attempts)
        for attempt in range(1, attempts + 1):
            try:
                return await factory()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                if attempt >= attempts:
                    raise
                delay = self.delay_for(attempt)
                hint = getattr(exc, "retry_after", None)
                if hint is not None and hint > delay:
                    delay = float(hint)
                logger.warning(
                    "%s failed (attempt %d/%d): %s; retrying in %.2fs",
                    description,
                    attempt,
                    attempts,
                    exc,
                    delay,
                )
                if delay > 0:
                    await self.sleep(delay)
        raise RuntimeError("Retry loop exited unexpectedly")
