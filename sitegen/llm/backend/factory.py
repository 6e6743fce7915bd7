"""Backend factory for creating LLM backends from model specifications.

Provides a unified entry point for creating any supported LLM backend.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import AuthenticationError, LLMBackend
from .model_spec import (
    DEFAULT_MODEL,
    DEFAULT_MODEL_BY_PROVIDER,
    LLMModel,
    LLMProviderType,
    LLMSpec,
    get_llm_spec,
)

if TYPE_CHECKING:
    import httpx

    from sitegen.config import PipelineSettings


def create_llm_backend(
    model: str | LLMModel | LLMSpec = DEFAULT_MODEL,
    *,
    api_key: str | None = None,
    base_url: str | None = None,
    http_client: httpx.AsyncClient | None = None,
    **kwargs,
) -> LLMBackend:
    """Create an LLM backend from a model specification.

    Routes to the backend class matching the model's provider.

    Args:
        model: Model to use. Can be:
            - String model name (e.g., "gemini-2.5-flash", "gpt-4.1-mini")
            - LLMModel enum value (e.g., LLMModel.GPT_4_1_MINI)
            - LLMSpec instance
        api_key: API key for the provider.
        base_url: Optional custom API endpoint. Uses provider default if None.
        http_client: Shared httpx client (used by the Gemini backend).
        **kwargs: Additional arguments passed to backend constructor
            (e.g., timeout).

    Returns:
        Configured LLMBackend instance.

    Raises:
        ValueError: If model is unknown or configuration invalid.
        AuthenticationError: If API key required but not provided.

    Example:
        >>> backend = create_llm_backend(api_key="...")
        >>> backend = create_llm_backend("claude-sonnet-4-5", api_key="...")
    """
    spec = get_llm_spec(model)

    if spec.provider == LLMProviderType.GEMINI:
        from .gemini import GeminiBackend

        return GeminiBackend(
            api_key=api_key,
            model=spec.name,
            base_url=base_url,
            http_client=http_client,
            **kwargs,
        )

    if spec.provider == LLMProviderType.OPENAI:
        from .openai import OpenAIBackend

        return OpenAIBackend(
            api_key=api_key,
            model=spec.name,
            base_url=base_url,
            **kwargs,
        )

    if spec.provider == LLMProviderType.ANTHROPIC:
        from .anthropic import AnthropicBackend

        return AnthropicBackend(
            api_key=api_key,
            model=spec.name,
            **kwargs,
        )

    raise ValueError(f"Unsupported provider type: {spec.provider}")


def _api_key_for(provider: LLMProviderType, settings: PipelineSettings) -> str | None:
    return {
        LLMProviderType.GEMINI: settings.gemini_api_key,
        LLMProviderType.OPENAI: settings.openai_api_key,
        LLMProviderType.ANTHROPIC: settings.anthropic_api_key,
    }[provider]


def create_backend_from_settings(
    settings: PipelineSettings,
    http_client: httpx.AsyncClient | None = None,
) -> LLMBackend:
    """Create the configured LLM backend.

    Resolution order: explicit LLM_MODEL, then LLM_PROVIDER's default
    model, then the first provider with a key (gemini, openai, anthropic).

    Raises:
        AuthenticationError: If no provider has credentials.
        ValueError: If LLM_MODEL or LLM_PROVIDER is unknown.
    """
    if settings.llm_model:
        spec = get_llm_spec(settings.llm_model)
    elif settings.llm_provider:
        try:
            provider = LLMProviderType(settings.llm_provider.lower())
        except ValueError as e:
            raise ValueError(f"Unknown LLM provider: {settings.llm_provider}") from e
        spec = DEFAULT_MODEL_BY_PROVIDER[provider].spec
    else:
        spec = None
        for provider in LLMProviderType:
            if _api_key_for(provider, settings):
                spec = DEFAULT_MODEL_BY_PROVIDER[provider].spec
                break
        if spec is None:
            raise AuthenticationError(
                "No LLM credentials configured. Set GEMINI_API_KEY, "
                "OPENAI_API_KEY or ANTHROPIC_API_KEY."
            )

    return create_llm_backend(
        spec,
        api_key=_api_key_for(spec.provider, settings),
        http_client=http_client,
        timeout=settings.provider_timeout,
    )


__all__ = ["create_backend_from_settings", "create_llm_backend"]
