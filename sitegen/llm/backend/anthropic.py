"""Anthropic Claude backend implementation.

Anthropic has no native JSON mode; JSON requests are enforced through
prompt instructions and the generators' JSON extraction.
"""

import logging
from typing import Any

from .base import (
    AuthenticationError,
    ContextLengthError,
    GenerationConfig,
    GenerationResult,
    LLMBackend,
    LLMError,
    RateLimitError,
)
from .model_spec import DEFAULT_ANTHROPIC_MODEL, get_llm_spec

logger = logging.getLogger(__name__)


class AnthropicBackend(LLMBackend):
    """Anthropic Claude backend.

    Example:
        >>> backend = AnthropicBackend(api_key=settings.anthropic_api_key)
        >>> result = await backend.generate("Generate a design spec as JSON")
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_ANTHROPIC_MODEL.spec.name,
        timeout: float = 60.0,
        max_retries: int = 0,
    ):
        """Initialize Anthropic backend.

        Args:
            api_key: Anthropic API key.
            model: Model name (claude-sonnet-4-5, claude-haiku-4-5).
            timeout: Request timeout in seconds.
            max_retries: SDK-level retries for transient errors.

        Raises:
            AuthenticationError: If no API key available.
        """
        if not api_key:
            raise AuthenticationError(
                "Anthropic API key required. Set ANTHROPIC_API_KEY environment "
                "variable or pass api_key parameter."
            )
        self._api_key = api_key
        self._spec = get_llm_spec(model)
        self._timeout = timeout
        self._max_retries = max_retries
        self._client: Any = None

    def _get_client(self) -> Any:
        """Lazily initialize the async Anthropic client.

        Raises:
            ImportError: If anthropic package not installed.
        """
        if self._client is None:
            try:
                import anthropic

                self._client = anthropic.AsyncAnthropic(
                    api_key=self._api_key,
                    timeout=self._timeout,
                    max_retries=self._max_retries,
                )
            except ImportError as e:
                raise ImportError(
                    "anthropic package required. Install with: pip install anthropic"
                ) from e
        return self._client

    @property
    def model_name(self) -> str:
        """Get the model identifier."""
        return self._spec.name

    @property
    def provider(self) -> str:
        """Get the provider identifier."""
        return "anthropic"

    @property
    def supports_json_mode(self) -> bool:
        """Anthropic does not have native JSON mode."""
        return False

    @property
    def context_window(self) -> int:
        """Get maximum context window size."""
        return self._spec.context_window

    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        config: GenerationConfig | None = None,
    ) -> GenerationResult:
        """Generate text using Anthropic API."""
        config = config or GenerationConfig()
        client = self._get_client()

        effective_prompt = prompt
        if config.json_mode:
            effective_prompt = (
                f"{prompt}\n\n"
                "IMPORTANT: Respond with valid JSON only. "
                "Do not include any text, explanation, or markdown formatting "
                "before or after the JSON object."
            )

        kwargs: dict[str, Any] = {
            "model": self._spec.name,
            "messages": [{"role": "user", "content": effective_prompt}],
            "max_tokens": config.max_tokens,
            "temperature": config.temperature,
        }
        if system_prompt:
            kwargs["system"] = system_prompt
        if config.stop_sequences:
            kwargs["stop_sequences"] = config.stop_sequences

        try:
            response = await client.messages.create(**kwargs)
        except Exception as e:
            self._handle_error(e)
            raise

        content = "".join(
            block.text for block in response.content if getattr(block, "text", None)
        )
        return GenerationResult(
            content=content,
            finish_reason=response.stop_reason or "unknown",
            usage={
                "prompt_tokens": response.usage.input_tokens,
                "completion_tokens": response.usage.output_tokens,
                "total_tokens": (
                    response.usage.input_tokens + response.usage.output_tokens
                ),
            },
            model=response.model,
            raw_response=response,
        )

    def _handle_error(self, error: Exception) -> None:
        """Convert SDK errors to standard exceptions."""
        import anthropic

        if isinstance(error, anthropic.RateLimitError):
            retry_after = None
            header = error.response.headers.get("retry-after")
            if header:
                try:
                    retry_after = float(header)
                except ValueError:
                    retry_after = None
            raise RateLimitError(str(error), retry_after=retry_after) from error
        if isinstance(
            error, (anthropic.AuthenticationError, anthropic.PermissionDeniedError)
        ):
            raise AuthenticationError(
                str(error), status_code=error.status_code
            ) from error
        if isinstance(error, (anthropic.APITimeoutError, anthropic.APIConnectionError)):
            raise LLMError(str(error), transient=True) from error
        if isinstance(error, anthropic.APIStatusError):
            if "prompt is too long" in str(error).lower():
                raise ContextLengthError(
                    str(error), status_code=error.status_code
                ) from error
            raise LLMError(
                str(error),
                status_code=error.status_code,
                transient=error.status_code == 408 or error.status_code >= 500,
            ) from error
        raise LLMError(str(error)) from error

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None


__all__ = ["AnthropicBackend"]
