"""LLM provider client.

Adapts an LLMBackend to the ProviderResult contract so LLM calls go
through the same retry policy as every other provider.
"""

from __future__ import annotations

import logging

from sitegen.llm.backend import (
    GenerationConfig,
    LLMBackend,
    LLMError,
    ProviderUnavailableError,
    RateLimitError,
)
from sitegen.retry import RetryOutcome, RetryPolicy
from sitegen.schema import (
    PermanentFailure,
    ProviderResult,
    RateLimited,
    Success,
    TransientFailure,
)

logger = logging.getLogger(__name__)


def classify_llm_error(error: LLMError) -> ProviderResult:
    """Map an LLM backend exception onto a ProviderResult variant."""
    if isinstance(error, RateLimitError):
        return RateLimited(retry_after=error.retry_after, cause=str(error))
    if error.transient:
        return TransientFailure(cause=str(error), status_code=error.status_code)
    return PermanentFailure(cause=str(error), status_code=error.status_code)


class LLMClient:
    """Structured-content provider client.

    Example:
        >>> client = LLMClient(backend, RetryPolicy(RetryConfig(max_retries=2)))
        >>> text = await client.complete_text(prompt, label="design-spec")
    """

    def __init__(self, backend: LLMBackend, policy: RetryPolicy | None = None):
        self._backend = backend
        self._policy = policy or RetryPolicy()

    @property
    def backend(self) -> LLMBackend:
        return self._backend

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def complete(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        config: GenerationConfig | None = None,
    ) -> ProviderResult:
        """Single generation attempt, classified.

        Returns:
            Success with the response text, or a classified failure.
        """
        try:
            result = await self._backend.generate(
                prompt, system_prompt=system_prompt, config=config
            )
        except LLMError as e:
            return classify_llm_error(e)
        return Success(result.content)

    async def run(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        config: GenerationConfig | None = None,
        label: str = "llm",
    ) -> RetryOutcome:
        """Generation under the retry policy; never raises for provider errors."""

        async def call(attempt: int) -> ProviderResult:
            logger.debug("%s: %s attempt %d", label, self._backend.name, attempt + 1)
            return await self.complete(
                prompt, system_prompt=system_prompt, config=config
            )

        return await self._policy.run(call, label=f"{label}[{self._backend.name}]")

    async def complete_text(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        config: GenerationConfig | None = None,
        label: str = "llm",
    ) -> str:
        """Generation under the retry policy, returning the text.

        Raises:
            ProviderUnavailableError: If every attempt failed.
        """
        outcome = await self.run(
            prompt, system_prompt=system_prompt, config=config, label=label
        )
        if not outcome.ok:
            cause = outcome.result.describe()
            raise ProviderUnavailableError(
                f"{label}: {self._backend.name} unavailable after "
                f"{outcome.attempts} attempt(s): {cause}",
                cause=cause,
                attempts=outcome.attempts,
            )
        return outcome.result.value


__all__ = ["LLMClient", "classify_llm_error"]
