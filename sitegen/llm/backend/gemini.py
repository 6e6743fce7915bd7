"""Google Gemini backend implementation.

Talks to the Generative Language REST API (`:generateContent`) over a
shared `httpx.AsyncClient`, so cancelling the caller cancels the request.
"""

import logging
from typing import Any

import httpx

from sitegen.schema import parse_retry_after

from .base import (
    AuthenticationError,
    ContextLengthError,
    GenerationConfig,
    GenerationResult,
    InvalidResponseError,
    LLMBackend,
    LLMError,
    RateLimitError,
)
from .model_spec import DEFAULT_GEMINI_MODEL, LLMCapability, get_llm_spec

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class GeminiBackend(LLMBackend):
    """Google Gemini backend.

    Example:
        >>> backend = GeminiBackend(api_key=settings.gemini_api_key)
        >>> result = await backend.generate("Generate a design spec as JSON")
        >>> print(result.content)
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_GEMINI_MODEL.spec.name,
        base_url: str | None = None,
        timeout: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize Gemini backend.

        Args:
            api_key: Gemini API key.
            model: Model name (gemini-2.5-flash, gemini-2.5-pro, etc.).
            base_url: Optional custom API endpoint.
            timeout: Request timeout in seconds.
            http_client: Shared client; one is created (and owned) if None.

        Raises:
            AuthenticationError: If no API key available.
        """
        if not api_key:
            raise AuthenticationError(
                "Gemini API key required. Set GEMINI_API_KEY environment "
                "variable or pass api_key parameter."
            )
        self._api_key = api_key
        self._spec = get_llm_spec(model)
        self._base_url = (base_url or GEMINI_BASE_URL).rstrip("/")
        self._timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    @property
    def model_name(self) -> str:
        """Get the model identifier."""
        return self._spec.name

    @property
    def provider(self) -> str:
        """Get the provider identifier."""
        return "gemini"

    @property
    def supports_json_mode(self) -> bool:
        """Check if backend natively supports JSON mode."""
        return self._spec.supports(LLMCapability.JSON_MODE)

    @property
    def context_window(self) -> int:
        """Get maximum context window size."""
        return self._spec.context_window

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/models/{self._spec.name}:generateContent"

    def _build_payload(
        self, prompt: str, system_prompt: str | None, config: GenerationConfig
    ) -> dict[str, Any]:
        generation_config: dict[str, Any] = {
            "temperature": config.temperature,
            "topP": config.top_p,
            "maxOutputTokens": config.max_tokens,
        }
        if config.json_mode and self.supports_json_mode:
            generation_config["responseMimeType"] = "application/json"
        if config.stop_sequences:
            generation_config["stopSequences"] = config.stop_sequences
        if config.seed is not None and self._spec.supports(LLMCapability.SEED):
            generation_config["seed"] = config.seed

        payload: dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": generation_config,
        }
        if system_prompt:
            payload["systemInstruction"] = {"parts": [{"text": system_prompt}]}
        return payload

    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        config: GenerationConfig | None = None,
    ) -> GenerationResult:
        """Generate text using the Gemini API.

        Args:
            prompt: User prompt text.
            system_prompt: Optional system instruction.
            config: Generation configuration.

        Returns:
            GenerationResult with content and metadata.

        Raises:
            LLMError: If generation fails.
            RateLimitError: If rate limit exceeded.
            AuthenticationError: If the key is rejected.
        """
        config = config or GenerationConfig()
        client = self._get_client()
        headers = {"x-goog-api-key": self._api_key, "Content-Type": "application/json"}

        try:
            response = await client.post(
                self.endpoint,
                headers=headers,
                json=self._build_payload(prompt, system_prompt, config),
                timeout=self._timeout,
            )
        except httpx.TimeoutException as e:
            raise LLMError(f"Gemini request timed out: {e}", transient=True) from e
        except httpx.TransportError as e:
            raise LLMError(f"Gemini connection failed: {e}", transient=True) from e

        if response.status_code != 200:
            self._handle_error(response)

        try:
            data = response.json()
            candidate = data["candidates"][0]
            parts = candidate["content"]["parts"]
            content = "".join(part.get("text", "") for part in parts)
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise InvalidResponseError(
                f"Unexpected Gemini response shape: {response.text[:500]}"
            ) from e

        usage = data.get("usageMetadata", {})
        return GenerationResult(
            content=content,
            finish_reason=str(candidate.get("finishReason", "unknown")).lower(),
            usage={
                "prompt_tokens": usage.get("promptTokenCount", 0),
                "completion_tokens": usage.get("candidatesTokenCount", 0),
                "total_tokens": usage.get("totalTokenCount", 0),
            },
            model=data.get("modelVersion", self._spec.name),
            raw_response=data,
        )

    def _handle_error(self, response: httpx.Response) -> None:
        """Convert HTTP error responses to standard exceptions.

        Raises:
            RateLimitError: For 429 responses.
            AuthenticationError: For 401/403 responses.
            ContextLengthError: For token-limit rejections.
            LLMError: For other errors (transient for 408/5xx).
        """
        status = response.status_code
        body = response.text[:500]

        if status == 429:
            raise RateLimitError(
                f"Gemini rate limit exceeded: {body}",
                retry_after=parse_retry_after(response.headers.get("retry-after")),
            )
        if status in (401, 403):
            raise AuthenticationError(
                f"Gemini authentication failed: {body}", status_code=status
            )
        if status == 400 and "token" in body.lower() and "exceed" in body.lower():
            raise ContextLengthError(body, status_code=status)
        raise LLMError(
            f"Gemini API returned {status}: {body}",
            status_code=status,
            transient=status == 408 or status >= 500,
        )

    async def aclose(self) -> None:
        """Close the HTTP client if this backend created it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None


__all__ = ["GEMINI_BASE_URL", "GeminiBackend"]
