"""Tests for the retry policy."""

import asyncio

import pytest

from sitegen.config import PipelineSettings
from sitegen.schema import (
    PermanentFailure,
    RateLimited,
    Success,
    TransientFailure,
    ValidationFailure,
)

from .lib import RetryConfig, RetryPolicy


class RecordingSleep:
    """Sleep stand-in that records requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def scripted(*results):
    """Build a call that returns the given results in order."""
    calls = []

    async def call(attempt: int):
        calls.append(attempt)
        return results[min(len(calls) - 1, len(results) - 1)]

    call.calls = calls
    return call


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


class TestRetryConfig:
    """Tests for RetryConfig."""

    @pytest.mark.unit
    def test_defaults(self):
        """Default values match configuration defaults."""
        config = RetryConfig()
        assert config.max_retries == 2
        assert config.base_delay == 1.0
        assert config.max_delay == 30.0
        assert config.attempt_timeout == 15.0

    @pytest.mark.unit
    def test_from_settings(self):
        """Settings feed the policy."""
        settings = PipelineSettings(max_retries=4, base_delay=0.5, provider_timeout=3)
        config = RetryConfig.from_settings(settings)
        assert config.max_retries == 4
        assert config.base_delay == 0.5
        assert config.attempt_timeout == 3

    @pytest.mark.unit
    def test_negative_retries_rejected(self):
        """Negative retry counts are invalid."""
        with pytest.raises(ValueError):
            RetryConfig(max_retries=-1)


class TestBackoff:
    """Tests for delay calculation."""

    @pytest.mark.unit
    def test_exponential(self):
        """Delay doubles per attempt."""
        policy = RetryPolicy(RetryConfig(base_delay=1.0, max_delay=30.0))
        assert [policy.get_backoff_delay(n) for n in range(4)] == [1, 2, 4, 8]

    @pytest.mark.unit
    def test_capped(self):
        """Delay never exceeds max_delay."""
        policy = RetryPolicy(RetryConfig(base_delay=1.0, max_delay=10.0))
        assert policy.get_backoff_delay(10) == 10.0

    @pytest.mark.unit
    def test_retry_after_honoured(self):
        """Advertised waits replace the exponential schedule."""
        policy = RetryPolicy(RetryConfig(base_delay=1.0, max_delay=30.0))
        assert policy.delay_for(RateLimited(retry_after=7), 0) == 7
        assert policy.delay_for(RateLimited(retry_after=120), 0) == 30.0
        assert policy.delay_for(RateLimited(), 2) == 4

    @pytest.mark.unit
    def test_retry_after_ignored_when_disabled(self):
        """honor_retry_after=False uses the schedule."""
        policy = RetryPolicy(RetryConfig(honor_retry_after=False))
        assert policy.delay_for(RateLimited(retry_after=7), 1) == 2


class TestRun:
    """Tests for RetryPolicy.run."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_success_first_try(self, sleep):
        """Successful calls return without waiting."""
        policy = RetryPolicy(RetryConfig(max_retries=2), sleep=sleep)
        call = scripted(Success("ok"))
        outcome = await policy.run(call)
        assert outcome.ok
        assert outcome.attempts == 1
        assert sleep.delays == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_recovers_after_transient(self, sleep):
        """Transient failures are retried."""
        policy = RetryPolicy(RetryConfig(max_retries=2), sleep=sleep)
        call = scripted(TransientFailure("503"), Success("ok"))
        outcome = await policy.run(call)
        assert outcome.result == Success("ok")
        assert outcome.attempts == 2
        assert call.calls == [0, 1]
        assert sleep.delays == [1.0]

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize("max_retries", [0, 1, 2, 3])
    async def test_attempt_budget(self, sleep, max_retries):
        """Never more than max_retries + 1 attempts."""
        policy = RetryPolicy(RetryConfig(max_retries=max_retries), sleep=sleep)
        call = scripted(TransientFailure("down"))
        outcome = await policy.run(call)
        assert not outcome.ok
        assert outcome.attempts == max_retries + 1
        assert len(call.calls) == max_retries + 1
        assert len(sleep.delays) == max_retries

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_delays_non_decreasing(self, sleep):
        """Waits never shrink for a fixed failure type."""
        policy = RetryPolicy(
            RetryConfig(max_retries=5, base_delay=0.5, max_delay=4.0), sleep=sleep
        )
        outcome = await policy.run(scripted(RateLimited()))
        assert outcome.delays == sleep.delays
        assert outcome.delays == sorted(outcome.delays)
        assert outcome.delays == [0.5, 1.0, 2.0, 4.0, 4.0]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_rate_limit_uses_retry_after(self, sleep):
        """Rate-limit waits come from the provider."""
        policy = RetryPolicy(RetryConfig(max_retries=1), sleep=sleep)
        await policy.run(scripted(RateLimited(retry_after=3), Success("ok")))
        assert sleep.delays == [3]

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "failure", [PermanentFailure("401"), ValidationFailure("tiny")]
    )
    async def test_terminal_failures_not_retried(self, sleep, failure):
        """Permanent and validation failures return immediately."""
        policy = RetryPolicy(RetryConfig(max_retries=3), sleep=sleep)
        call = scripted(failure)
        outcome = await policy.run(call)
        assert outcome.result is failure
        assert outcome.attempts == 1
        assert sleep.delays == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_hung_call_times_out(self, sleep):
        """A hung attempt counts as a transient failure."""
        policy = RetryPolicy(
            RetryConfig(max_retries=1, attempt_timeout=0.01), sleep=sleep
        )

        async def hang(attempt):
            await asyncio.sleep(10)

        outcome = await policy.run(hang)
        assert isinstance(outcome.result, TransientFailure)
        assert "timed out" in outcome.result.cause
        assert outcome.attempts == 2

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_exceptions_are_classified(self, sleep):
        """Stray exceptions become classified results instead of raising."""
        policy = RetryPolicy(RetryConfig(max_retries=2), sleep=sleep)

        async def broken(attempt):
            raise KeyError("predictions")

        outcome = await policy.run(broken)
        assert isinstance(outcome.result, PermanentFailure)
        assert outcome.attempts == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_cancellation_propagates(self):
        """Cancelling the caller cancels the in-flight attempt."""
        started = asyncio.Event()
        cancelled = asyncio.Event()

        async def slow(attempt):
            started.set()
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        policy = RetryPolicy(RetryConfig(attempt_timeout=None))
        task = asyncio.create_task(policy.run(slow))
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert cancelled.is_set()
