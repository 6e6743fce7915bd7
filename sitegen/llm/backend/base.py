"""Abstract base class for LLM backends.

Defines the async interface that all LLM provider implementations follow,
and the exception hierarchy they raise.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class GenerationConfig:
    """Configuration for LLM text generation.

    Attributes:
        temperature: Sampling temperature (0.0-2.0). Lower = more deterministic.
        max_tokens: Maximum tokens to generate in response.
        json_mode: Whether to enforce JSON output format.
        stop_sequences: Optional sequences that stop generation.
        top_p: Nucleus sampling parameter (0.0-1.0).
        seed: Optional seed for reproducible generation.
    """

    temperature: float = 0.7
    max_tokens: int = 4096
    json_mode: bool = True
    stop_sequences: list[str] = field(default_factory=list)
    top_p: float = 1.0
    seed: int | None = None


@dataclass
class GenerationResult:
    """Result from LLM text generation.

    Attributes:
        content: Generated text content.
        finish_reason: Why generation stopped ('stop', 'length', 'content_filter').
        usage: Token usage dict (prompt_tokens, completion_tokens, total_tokens).
        model: Model identifier that was used.
        raw_response: Provider-specific raw response for debugging.
    """

    content: str
    finish_reason: str
    usage: dict[str, int]
    model: str
    raw_response: Any = None


class LLMBackend(ABC):
    """Abstract interface for async LLM text generation backends.

    Example:
        >>> backend = GeminiBackend(api_key=settings.gemini_api_key)
        >>> result = await backend.generate("Describe a bakery website")
        >>> print(result.content)
    """

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        config: GenerationConfig | None = None,
    ) -> GenerationResult:
        """Generate text from a prompt.

        Args:
            prompt: User prompt text.
            system_prompt: Optional system instruction for context.
            config: Generation configuration options.

        Returns:
            GenerationResult with generated content and metadata.

        Raises:
            LLMError: If generation fails.
            RateLimitError: If API rate limit is exceeded.
            AuthenticationError: If the key is missing or rejected.
        """

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the model identifier.

        Returns:
            String model name (e.g., 'gemini-2.5-flash', 'gpt-4.1-mini').
        """

    @property
    @abstractmethod
    def provider(self) -> str:
        """Get the provider identifier.

        Returns:
            String provider name (e.g., 'gemini', 'openai').
        """

    @property
    def name(self) -> str:
        """Get backend identifier for logging.

        Returns:
            String in format 'provider:model'.
        """
        return f"{self.provider}:{self.model_name}"

    @property
    @abstractmethod
    def supports_json_mode(self) -> bool:
        """Check if backend natively supports JSON mode."""

    @property
    @abstractmethod
    def context_window(self) -> int:
        """Get maximum context window size in tokens."""

    async def aclose(self) -> None:
        """Release network resources owned by the backend."""


class LLMError(Exception):
    """Base exception for LLM backend errors.

    Attributes:
        status_code: HTTP status reported by the provider, if any.
        transient: True for network errors, timeouts and 5xx responses.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        transient: bool = False,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.transient = transient


class RateLimitError(LLMError):
    """Raised when API rate limit is exceeded.

    Attributes:
        retry_after: Suggested wait time in seconds before retry.
    """

    def __init__(self, message: str, retry_after: float | None = None):
        super().__init__(message, status_code=429, transient=True)
        self.retry_after = retry_after


class ContextLengthError(LLMError):
    """Raised when prompt exceeds the model's context window."""


class InvalidResponseError(LLMError):
    """Raised when response cannot be parsed as expected format."""


class AuthenticationError(LLMError):
    """Raised when API authentication fails (invalid or missing key)."""


class ProviderUnavailableError(LLMError):
    """Raised when a provider call still fails after all retries.

    Attributes:
        cause: Description of the last classified failure.
        attempts: Number of attempts made.
    """

    def __init__(self, message: str, cause: str = "", attempts: int = 0):
        super().__init__(message)
        self.cause = cause
        self.attempts = attempts


class SpecParseError(InvalidResponseError):
    """Raised when an LLM response cannot be parsed into the expected structure.

    Attributes:
        content: The offending response (truncated).
    """

    def __init__(self, message: str, content: str = ""):
        super().__init__(message)
        self.content = content[:500]


__all__ = [
    "LLMBackend",
    "GenerationConfig",
    "GenerationResult",
    "LLMError",
    "RateLimitError",
    "ContextLengthError",
    "InvalidResponseError",
    "AuthenticationError",
    "ProviderUnavailableError",
    "SpecParseError",
]
