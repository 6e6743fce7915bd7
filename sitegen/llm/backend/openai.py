"""OpenAI GPT backend implementation.

Uses the async OpenAI SDK client. SDK-level retries are disabled; the
pipeline's retry policy owns the attempt budget.
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
from .model_spec import DEFAULT_OPENAI_MODEL, LLMCapability, get_llm_spec

logger = logging.getLogger(__name__)


class OpenAIBackend(LLMBackend):
    """OpenAI GPT backend.

    Example:
        >>> backend = OpenAIBackend(api_key=settings.openai_api_key)
        >>> result = await backend.generate("Generate a design spec as JSON")
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_OPENAI_MODEL.spec.name,
        base_url: str | None = None,
        timeout: float = 60.0,
        max_retries: int = 0,
    ):
        """Initialize OpenAI backend.

        Args:
            api_key: OpenAI API key.
            model: Model name (gpt-4.1-mini, gpt-4.1, etc.).
            base_url: Optional custom API endpoint.
            timeout: Request timeout in seconds.
            max_retries: SDK-level retries for transient errors.

        Raises:
            AuthenticationError: If no API key available.
        """
        if not api_key:
            raise AuthenticationError(
                "OpenAI API key required. Set OPENAI_API_KEY environment "
                "variable or pass api_key parameter."
            )
        self._api_key = api_key
        self._spec = get_llm_spec(model)
        self._base_url = base_url
        self._timeout = timeout
        self._max_retries = max_retries
        self._client: Any = None

    def _get_client(self) -> Any:
        """Lazily initialize the async OpenAI client.

        Raises:
            ImportError: If openai package not installed.
        """
        if self._client is None:
            try:
                from openai import AsyncOpenAI

                self._client = AsyncOpenAI(
                    api_key=self._api_key,
                    base_url=self._base_url,
                    timeout=self._timeout,
                    max_retries=self._max_retries,
                )
            except ImportError as e:
                raise ImportError(
                    "openai package required. Install with: pip install openai"
                ) from e
        return self._client

    @property
    def model_name(self) -> str:
        """Get the model identifier."""
        return self._spec.name

    @property
    def provider(self) -> str:
        """Get the provider identifier."""
        return "openai"

    @property
    def supports_json_mode(self) -> bool:
        """Check if backend natively supports JSON mode."""
        return self._spec.supports(LLMCapability.JSON_MODE)

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
        """Generate text using OpenAI API."""
        config = config or GenerationConfig()
        client = self._get_client()

        messages: list[dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        kwargs: dict[str, Any] = {
            "model": self._spec.name,
            "messages": messages,
            "temperature": config.temperature,
            "max_tokens": config.max_tokens,
            "top_p": config.top_p,
        }

        if config.json_mode and self.supports_json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        if config.stop_sequences:
            kwargs["stop"] = config.stop_sequences

        if config.seed is not None and self._spec.supports(LLMCapability.SEED):
            kwargs["seed"] = config.seed

        try:
            response = await client.chat.completions.create(**kwargs)
        except Exception as e:
            self._handle_error(e)
            raise

        choice = response.choices[0]
        usage = response.usage
        return GenerationResult(
            content=choice.message.content or "",
            finish_reason=choice.finish_reason or "unknown",
            usage={
                "prompt_tokens": usage.prompt_tokens if usage else 0,
                "completion_tokens": usage.completion_tokens if usage else 0,
                "total_tokens": usage.total_tokens if usage else 0,
            },
            model=response.model,
            raw_response=response,
        )

    def _handle_error(self, error: Exception) -> None:
        """Convert SDK errors to standard exceptions.

        Raises:
            RateLimitError: For rate limit errors.
            AuthenticationError: For auth errors.
            ContextLengthError: For context length errors.
            LLMError: For other errors.
        """
        import openai

        if isinstance(error, openai.RateLimitError):
            retry_after = None
            header = error.response.headers.get("retry-after")
            if header:
                try:
                    retry_after = float(header)
                except ValueError:
                    retry_after = None
            raise RateLimitError(str(error), retry_after=retry_after) from error
        if isinstance(error, (openai.AuthenticationError, openai.PermissionDeniedError)):
            raise AuthenticationError(
                str(error), status_code=error.status_code
            ) from error
        if isinstance(error, (openai.APITimeoutError, openai.APIConnectionError)):
            raise LLMError(str(error), transient=True) from error
        if isinstance(error, openai.APIStatusError):
            if "context length" in str(error).lower():
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


__all__ = ["OpenAIBackend"]
