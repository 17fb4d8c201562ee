"""Availability checker: price normalization and transient-failure retries."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import httpx
import structlog

from domainhub.clients.godaddy import MICRO_UNITS
from domainhub.exceptions import ProviderError
from domainhub.models.purchase import CandidateDomain
from domainhub.retry import RetryExhaustedError, RetryPolicy

if TYPE_CHECKING:
    from domainhub.clients.godaddy import GoDaddyClient

logger = structlog.get_logger()

# Answers without a price are treated as the standard registration price.
DEFAULT_PRICE = Decimal("0.99")


def is_transient(exc: BaseException) -> bool:
    """Timeouts, connection failures, 429 and 5xx are worth retrying; nothing else is."""
    if isinstance(exc, ProviderError):
        return exc.is_transient
    return isinstance(exc, httpx.TransportError)


class AvailabilityChecker:
    def __init__(self, client: GoDaddyClient, policy: RetryPolicy | None = None) -> None:
        self._client = client
        self._policy = policy or RetryPolicy(
            max_attempts=3,
            base_delay=1.0,
            jitter=True,
            retryable=is_transient,
            name="availability_check",
        )

    @property
    def is_available(self) -> bool:
        return self._client.is_available

    async def check(self, name: str) -> CandidateDomain:
        """Return the availability answer for *name* with its price in USD.

        Raises:
            ProviderError: terminal API error, or transient errors that
                outlasted the retry policy.
            ConfigurationError: the availability provider is not configured.
        """
        try:
            response = await self._policy.call(lambda: self._client.check(name))
        except RetryExhaustedError as exc:
            raise ProviderError("godaddy", f"availability check failed: {exc.__cause__}") from exc

        micros = response["price_micros"]
        price = Decimal(micros) / MICRO_UNITS if micros is not None else DEFAULT_PRICE
        candidate = CandidateDomain(
            name=name,
            price=price,
            available=response["available"],
            definitive=response["definitive"],
        )
        logger.info(
            "Availability checked",
            domain=name,
            available=candidate.available,
            price=str(candidate.price),
        )
        return candidate
