"""LLM integration for sitegen.

Submodules:
    backend: Provider backends (Gemini, OpenAI, Anthropic)
    client: Backend adapter returning classified results under retry
    generator: Design spec, image prompt and keyword generators
"""

from .backend import (
    AuthenticationError,
    GenerationConfig,
    GenerationResult,
    LLMBackend,
    LLMError,
    ProviderUnavailableError,
    RateLimitError,
    SpecParseError,
    create_backend_from_settings,
    create_llm_backend,
)
from .client import LLMClient
from .generator import (
    DesignSpecGenerator,
    ImagePromptGenerator,
    SearchKeywordGenerator,
    extract_json,
)

__all__ = [
    "AuthenticationError",
    "DesignSpecGenerator",
    "GenerationConfig",
    "GenerationResult",
    "ImagePromptGenerator",
    "LLMBackend",
    "LLMClient",
    "LLMError",
    "ProviderUnavailableError",
    "RateLimitError",
    "SearchKeywordGenerator",
    "SpecParseError",
    "create_backend_from_settings",
    "create_llm_backend",
    "extract_json",
]
