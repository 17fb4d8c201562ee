"""Tests for bounded retry policies."""

from __future__ import annotations

import pytest

from domainhub.retry import RetryExhaustedError, RetryPolicy


class TestRetryPolicy:
    def test_fixed_delay(self):
        policy = RetryPolicy(base_delay=5.0, backoff=1.0)
        assert [policy.delay_for(n) for n in (1, 2, 3)] == [5.0, 5.0, 5.0]

    def test_exponential_delay_is_capped(self):
        policy = RetryPolicy(base_delay=1.0, backoff=2.0, max_delay=5.0)
        assert [policy.delay_for(n) for n in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 5.0]

    def test_jitter_stays_within_bounds(self):
        policy = RetryPolicy(base_delay=2.0, backoff=1.0, jitter=True)
        for _ in range(20):
            assert 1.0 <= policy.delay_for(1) <= 3.0

    async def test_succeeds_after_failures(self):
        calls = []

        async def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise ConnectionError("fail")
            return "ok"

        policy = RetryPolicy(max_attempts=3, base_delay=0.0)
        assert await policy.call(flaky) == "ok"
        assert len(calls) == 3

    async def test_exhaustion_chains_last_error(self):
        async def always_fails():
            raise ConnectionError("down")

        policy = RetryPolicy(max_attempts=2, base_delay=0.0, name="probe")
        with pytest.raises(RetryExhaustedError, match="probe failed after 2 attempts") as info:
            await policy.call(always_fails)
        assert isinstance(info.value.__cause__, ConnectionError)

    async def test_non_retryable_propagates_immediately(self):
        calls = []

        async def bad_input():
            calls.append(1)
            raise ValueError("bad")

        policy = RetryPolicy(
            max_attempts=5, base_delay=0.0, retryable=lambda e: isinstance(e, ConnectionError)
        )
        with pytest.raises(ValueError):
            await policy.call(bad_input)
        assert len(calls) == 1

