"""Retry policy for provider calls.

Wraps a single provider call with bounded retries, exponential backoff,
rate-limit aware waits and a hard per-attempt timeout. The policy never
raises for upstream failures: it returns the last classified result and
lets the caller decide whether to move on to the next tier.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Awaitable, Callable

from sitegen.schema import (
    ProviderResult,
    RateLimited,
    TransientFailure,
    classify_exception,
)

if TYPE_CHECKING:
    from sitegen.config import PipelineSettings

logger = logging.getLogger(__name__)

ProviderCall = Callable[[int], Awaitable[ProviderResult]]
SleepFunc = Callable[[float], Awaitable[None]]


@dataclass
class RetryConfig:
    """Configuration for the retry policy.

    Attributes:
        max_retries: Retries beyond the first attempt.
        base_delay: Backoff base (seconds); attempt n waits base * 2**n.
        max_delay: Upper bound for any single wait (seconds).
        attempt_timeout: Hard timeout per attempt (seconds), None to disable.
        honor_retry_after: Use the provider's advertised wait when present.
    """

    max_retries: int = 2
    base_delay: float = 1.0
    max_delay: float = 30.0
    attempt_timeout: float | None = 15.0
    honor_retry_after: bool = True

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("Backoff delays must be non-negative")

    @classmethod
    def from_settings(cls, settings: PipelineSettings) -> RetryConfig:
        return cls(
            max_retries=settings.max_retries,
            base_delay=settings.base_delay,
            max_delay=settings.max_delay,
            attempt_timeout=settings.provider_timeout,
        )


@dataclass
class RetryOutcome:
    """Terminal result of a retried call.

    Attributes:
        result: Last result returned (success or terminal failure).
        attempts: Number of attempts made.
        delays: Waits taken between attempts, in order.
    """

    result: ProviderResult
    attempts: int
    delays: list[float] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.result.ok


class RetryPolicy:
    """Runs provider calls with bounded retries.

    Only retryable results (RateLimited, TransientFailure) are retried.
    Permanent and validation failures return immediately.

    Example:
        >>> policy = RetryPolicy(RetryConfig(max_retries=2))
        >>> outcome = await policy.run(lambda attempt: provider.generate(req, attempt))
        >>> outcome.result.ok
        True
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        sleep: SleepFunc | None = None,
    ):
        """Initialize retry policy.

        Args:
            config: Retry configuration options.
            sleep: Awaitable sleep used between attempts (injectable for tests).
        """
        self._config = config or RetryConfig()
        self._sleep = sleep or asyncio.sleep

    @property
    def config(self) -> RetryConfig:
        return self._config

    @property
    def max_attempts(self) -> int:
        return self._config.max_retries + 1

    def get_backoff_delay(self, attempt: int) -> float:
        """Exponential backoff for the given 0-based attempt, capped."""
        delay = self._config.base_delay * (2**attempt)
        return min(delay, self._config.max_delay)

    def delay_for(self, result: ProviderResult, attempt: int) -> float:
        """Wait before the attempt following `attempt`."""
        if (
            isinstance(result, RateLimited)
            and self._config.honor_retry_after
            and result.retry_after is not None
        ):
            return min(result.retry_after, self._config.max_delay)
        return self.get_backoff_delay(attempt)

    async def _attempt(self, call: ProviderCall, attempt: int) -> ProviderResult:
        timeout = self._config.attempt_timeout
        try:
            if timeout is None:
                return await call(attempt)
            return await asyncio.wait_for(call(attempt), timeout=timeout)
        except asyncio.TimeoutError:
            return TransientFailure(cause=f"attempt timed out after {timeout:g}s")
        except Exception as e:
            return classify_exception(e)

    async def run(self, call: ProviderCall, label: str = "provider") -> RetryOutcome:
        """Run `call(attempt)` until success, a terminal failure or exhaustion.

        Args:
            call: Coroutine factory taking the 0-based attempt number.
            label: Name used in log messages.

        Returns:
            RetryOutcome with the last result, attempts made and waits taken.
        """
        delays: list[float] = []
        attempt = 0
        while True:
            result = await self._attempt(call, attempt)
            if result.ok or not result.retryable:
                return RetryOutcome(result=result, attempts=attempt + 1, delays=delays)
            if attempt >= self._config.max_retries:
                logger.debug(
                    "%s: giving up after %d attempts (%s)",
                    label,
                    attempt + 1,
                    result.describe(),
                )
                return RetryOutcome(result=result, attempts=attempt + 1, delays=delays)

            delay = self.delay_for(result, attempt)
            logger.info(
                "%s: %s, retrying in %.2fs (attempt %d/%d)",
                label,
                result.describe(),
                delay,
                attempt + 2,
                self.max_attempts,
            )
            delays.append(delay)
            await self._sleep(delay)
            attempt += 1


__all__ = [
    "ProviderCall",
    "RetryConfig",
    "RetryOutcome",
    "RetryPolicy",
]
