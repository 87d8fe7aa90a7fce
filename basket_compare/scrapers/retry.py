# basket_compare/scrapers/retry.py

"""Exponential-backoff retry policy applied around source attempts."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from basket_compare.config.settings import Settings

logger = logging.getLogger("basket_compare.retry")

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Max attempts plus a capped exponential backoff between them."""

    max_attempts: int = 3
    base_delay: float = 1.0
    multiplier: float = 2.0
    max_delay: float = 8.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            msg = f"max_attempts must be >= 1, got {self.max_attempts}"
            raise ValueError(msg)

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            max_attempts=Settings.MAX_RETRIES,
            base_delay=Settings.RETRY_BASE_DELAY,
            multiplier=Settings.RETRY_MULTIPLIER,
            max_delay=Settings.RETRY_MAX_DELAY,
        )

    def delay_for(self, attempt: int) -> float:
        """Backoff to wait after failed *attempt* (1-based)."""
        delay = self.base_delay * self.multiplier ** (attempt - 1)
        return min(delay, self.max_delay)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        retry_on: tuple[type[BaseException], ...],
        label: str = "operation",
        on_error: Callable[[int, BaseException], None] | None = None,
    ) -> T:
        """Await *operation* until it succeeds or attempts run out.

        Only exceptions in *retry_on* are retried; anything else
        propagates immediately.  *on_error* sees every retryable
        failure.  The last retryable exception is re-raised once the
        attempts are exhausted.
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await operation()
            except retry_on as exc:
                if on_error is not None:
                    on_error(attempt, exc)
                if attempt >= self.max_attempts:
                    logger.warning(
                        "[%s] Giving up after %d attempts: %s",
                        label,
                        attempt,
                        exc,
                    )
                    raise
                delay = self.delay_for(attempt)
                logger.info(
                    "[%s] Attempt %d/%d failed (%s), retrying in %.1fs",
                    label,
                    attempt,
                    self.max_attempts,
                    exc,
                    delay,
                )
                await asyncio.sleep(delay)
        msg = "unreachable: retry loop exited without result"
        raise AssertionError(msg)
