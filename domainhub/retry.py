"""Bounded retry policies for external calls."""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeVar

import structlog

from domainhub.metrics import retry_attempts_total, retry_exhausted_total

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = structlog.get_logger()

T = TypeVar("T")


class RetryExhaustedError(Exception):
    """All retry attempts failed."""


def _retry_everything(_exc: BaseException) -> bool:
    return True


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Max attempts, backoff schedule and retryable-error predicate for one call site.

    ``backoff=1.0`` gives a fixed delay of *base_delay* between attempts;
    larger values grow the delay geometrically up to *max_delay*.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0
    backoff: float = 2.0
    jitter: bool = False
    retryable: Callable[[BaseException], bool] = field(default=_retry_everything)
    name: str = "fn"

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after the *attempt*-th failure (1-based)."""
        delay = min(self.base_delay * (self.backoff ** max(attempt - 1, 0)), self.max_delay)
        if self.jitter:
            delay = delay * (0.5 + random.random())
        return delay

    async def call(self, fn: Callable[[], Awaitable[T]]) -> T:
        """Await *fn* until it succeeds or the policy gives up.

        Non-retryable errors propagate unchanged. Raises RetryExhaustedError
        (chained to the last error) once *max_attempts* retryable failures
        have happened.
        """
        last_exc: BaseException | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await fn()
            except Exception as exc:
                if not self.retryable(exc):
                    raise
                last_exc = exc
                if attempt == self.max_attempts:
                    break
                retry_attempts_total.labels(fn_name=self.name).inc()
                delay = self.delay_for(attempt)
                logger.warning(
                    "Retry attempt",
                    fn=self.name,
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    delay_s=round(delay, 2),
                    error=str(exc),
                )
                await asyncio.sleep(delay)
        retry_exhausted_total.labels(fn_name=self.name).inc()
        raise RetryExhaustedError(
            f"{self.name} failed after {self.max_attempts} attempts"
        ) from last_exc

