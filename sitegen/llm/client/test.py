"""Tests for the LLM provider client."""

import pytest

from sitegen.llm.backend import (
    AuthenticationError,
    LLMError,
    ProviderUnavailableError,
    RateLimitError,
)
from sitegen.retry import RetryConfig, RetryPolicy
from sitegen.schema import PermanentFailure, RateLimited, Success, TransientFailure
from sitegen.testing import MockLLMBackend, no_sleep

from .lib import LLMClient, classify_llm_error


def policy(max_retries: int = 2) -> RetryPolicy:
    return RetryPolicy(RetryConfig(max_retries=max_retries, base_delay=0.0), no_sleep)


class TestClassifyLLMError:
    """Tests for mapping backend exceptions onto results."""

    @pytest.mark.unit
    def test_rate_limit(self):
        """RateLimitError keeps its retry-after."""
        result = classify_llm_error(RateLimitError("slow down", retry_after=7))
        assert isinstance(result, RateLimited)
        assert result.retry_after == 7

    @pytest.mark.unit
    def test_transient(self):
        """Transient errors map to TransientFailure."""
        result = classify_llm_error(LLMError("503", status_code=503, transient=True))
        assert isinstance(result, TransientFailure)
        assert result.status_code == 503

    @pytest.mark.unit
    def test_auth_is_permanent(self):
        """Authentication failures are permanent."""
        result = classify_llm_error(AuthenticationError("bad key", status_code=401))
        assert isinstance(result, PermanentFailure)


class TestLLMClient:
    """Tests for LLMClient."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_complete_success(self, mock_llm_backend):
        """Successful generation is wrapped in Success."""
        client = LLMClient(mock_llm_backend, policy())
        result = await client.complete("Convert these search terms")
        assert isinstance(result, Success)
        assert result.value == "artisan bread"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_rate_limit_then_success(self):
        """Rate limits are retried under the policy."""
        backend = MockLLMBackend(
            {"search": [RateLimitError("429", retry_after=0), "coffee beans"]}
        )
        outcome = await LLMClient(backend, policy()).run("search terms please")
        assert outcome.ok
        assert outcome.attempts == 2
        assert outcome.delays == [0]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_permanent_not_retried(self):
        """Permanent failures stop after one attempt."""
        backend = MockLLMBackend({"search": AuthenticationError("nope")})
        outcome = await LLMClient(backend, policy()).run("search terms please")
        assert not outcome.ok
        assert outcome.attempts == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_complete_text_raises_when_exhausted(self):
        """complete_text raises ProviderUnavailableError after the budget."""
        backend = MockLLMBackend(
            {"search": LLMError("down", status_code=502, transient=True)}
        )
        with pytest.raises(ProviderUnavailableError, match="after 3 attempt"):
            await LLMClient(backend, policy(2)).complete_text(
                "search terms please", label="search"
            )
        assert backend.calls_of("search") == 3
