"""Tests for the availability checker."""

from __future__ import annotations

from decimal import Decimal

import httpx
import pytest
import respx

from domainhub.availability import AvailabilityChecker, is_transient
from domainhub.clients.godaddy import GoDaddyClient
from domainhub.exceptions import ConfigurationError, ProviderError
from domainhub.retry import RetryPolicy

GODADDY_URL = "https://api.godaddy.com/v1/domains/available"


def _checker(max_attempts: int = 3) -> AvailabilityChecker:
    return AvailabilityChecker(
        GoDaddyClient(api_key="k", api_secret="s"),
        RetryPolicy(max_attempts=max_attempts, base_delay=0.0, retryable=is_transient),
    )


class TestIsTransient:
    @pytest.mark.parametrize(
        ("exc", "expected"),
        [
            (ProviderError("godaddy", "busy", status_code=429), True),
            (ProviderError("godaddy", "down", status_code=502), True),
            (ProviderError("godaddy", "bad", status_code=422), False),
            (ProviderError("godaddy", "odd"), False),
            (httpx.ConnectTimeout("slow"), True),
            (ConfigurationError("no key"), False),
        ],
    )
    def test_classification(self, exc: Exception, expected: bool):
        assert is_transient(exc) is expected


class TestAvailabilityChecker:
    @respx.mock
    async def test_price_converted_from_micros(self):
        respx.get(GODADDY_URL).mock(
            return_value=httpx.Response(
                200, json={"available": True, "domain": "a.online", "price": 1_490_000}
            )
        )

        candidate = await _checker().check("a.online")

        assert candidate.available
        assert candidate.price == Decimal("1.49")

    @respx.mock
    async def test_missing_price_uses_default(self):
        respx.get(GODADDY_URL).mock(
            return_value=httpx.Response(200, json={"available": True, "domain": "a.online"})
        )

        candidate = await _checker().check("a.online")

        assert candidate.price == Decimal("0.99")

    @respx.mock
    async def test_transient_failure_retried(self):
        route = respx.get(GODADDY_URL).mock(
            side_effect=[
                httpx.Response(503, json={"message": "busy"}),
                httpx.Response(200, json={"available": False, "domain": "a.online"}),
            ]
        )

        candidate = await _checker().check("a.online")

        assert not candidate.available
        assert route.call_count == 2

    @respx.mock
    async def test_terminal_failure_not_retried(self):
        route = respx.get(GODADDY_URL).mock(return_value=httpx.Response(422, json={}))

        with pytest.raises(ProviderError):
            await _checker().check("a.online")
        assert route.call_count == 1

    @respx.mock
    async def test_exhausted_retries_become_provider_error(self):
        respx.get(GODADDY_URL).mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(ProviderError, match="availability check failed"):
            await _checker(max_attempts=2).check("a.online")
