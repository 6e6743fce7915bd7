"""Centralized environment configuration management for sitegen.

Provides a unified interface for all environment variables with:
- Single `get_environment()` function for all configuration
- Type-safe enum with metadata (default, type, description)
- Consistent resolution: override > environment > default
- `PipelineSettings`: the struct handed to every pipeline component

Example:
    >>> from sitegen.config import EnvVar, get_environment
    >>>
    >>> timeout = get_environment(EnvVar.PROVIDER_TIMEOUT)  # Returns float
    >>> api_key = get_environment(EnvVar.GEMINI_API_KEY)  # Returns str | None
    >>>
    >>> # Override at runtime
    >>> deadline = get_environment(EnvVar.REQUEST_DEADLINE, override=30.0)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, overload

# =============================================================================
# Environment Variable Configuration
# =============================================================================


@dataclass(frozen=True)
class EnvConfig:
    """Metadata for an environment variable.

    Attributes:
        name: Environment variable name (e.g., "PROVIDER_TIMEOUT").
        default: Default value if not set in environment.
        var_type: Python type for value conversion (str, int, float, bool, Path).
        description: Human-readable description.
        category: Grouping category for documentation.
    """

    name: str
    default: Any
    var_type: type
    description: str = ""
    category: str = "general"


class EnvVar(Enum):
    """All environment variables used by sitegen.

    Each member contains an EnvConfig with name, default, type, and description.
    Use with `get_environment()` for type-safe access.

    Categories:
        - llm: structured-content provider keys and model selection
        - image: image generation and stock photo providers
        - pipeline: timeouts, retry budget, validation and concurrency
    """

    # -------------------------------------------------------------------------
    # LLM Providers
    # -------------------------------------------------------------------------
    GEMINI_API_KEY = EnvConfig(
        name="GEMINI_API_KEY",
        default=None,
        var_type=str,
        description="Google Gemini API key (LLM and Imagen)",
        category="llm",
    )
    OPENAI_API_KEY = EnvConfig(
        name="OPENAI_API_KEY",
        default=None,
        var_type=str,
        description="OpenAI API key for GPT models",
        category="llm",
    )
    ANTHROPIC_API_KEY = EnvConfig(
        name="ANTHROPIC_API_KEY",
        default=None,
        var_type=str,
        description="Anthropic API key for Claude models",
        category="llm",
    )
    LLM_PROVIDER = EnvConfig(
        name="LLM_PROVIDER",
        default=None,
        var_type=str,
        description="Preferred LLM provider (gemini, openai, anthropic)",
        category="llm",
    )
    LLM_MODEL = EnvConfig(
        name="LLM_MODEL",
        default=None,
        var_type=str,
        description="Explicit LLM model name (overrides LLM_PROVIDER)",
        category="llm",
    )

    # -------------------------------------------------------------------------
    # Image Providers
    # -------------------------------------------------------------------------
    IMAGEN_MODEL = EnvConfig(
        name="IMAGEN_MODEL",
        default="imagen-3.0-generate-001",
        var_type=str,
        description="Imagen model used by the primary image provider",
        category="image",
    )
    HUGGING_FACE_TOKEN = EnvConfig(
        name="HUGGING_FACE_TOKEN",
        default=None,
        var_type=str,
        description="Hugging Face inference token (secondary image provider)",
        category="image",
    )
    UNSPLASH_ACCESS_KEY = EnvConfig(
        name="UNSPLASH_ACCESS_KEY",
        default=None,
        var_type=str,
        description="Unsplash API access key (keyless source endpoint if unset)",
        category="image",
    )

    # -------------------------------------------------------------------------
    # Pipeline Behaviour
    # -------------------------------------------------------------------------
    PROVIDER_TIMEOUT = EnvConfig(
        name="PROVIDER_TIMEOUT",
        default=15.0,
        var_type=float,
        description="Hard timeout for a single provider attempt (seconds)",
        category="pipeline",
    )
    REQUEST_DEADLINE = EnvConfig(
        name="REQUEST_DEADLINE",
        default=90.0,
        var_type=float,
        description="Overall deadline for one design package (seconds)",
        category="pipeline",
    )
    RETRY_MAX_RETRIES = EnvConfig(
        name="RETRY_MAX_RETRIES",
        default=2,
        var_type=int,
        description="Retries beyond the first attempt for each provider call",
        category="pipeline",
    )
    RETRY_BASE_DELAY = EnvConfig(
        name="RETRY_BASE_DELAY",
        default=1.0,
        var_type=float,
        description="Base delay for exponential backoff (seconds)",
        category="pipeline",
    )
    RETRY_MAX_DELAY = EnvConfig(
        name="RETRY_MAX_DELAY",
        default=30.0,
        var_type=float,
        description="Upper bound for a single backoff wait (seconds)",
        category="pipeline",
    )
    MIN_IMAGE_BYTES = EnvConfig(
        name="MIN_IMAGE_BYTES",
        default=1000,
        var_type=int,
        description="Binary payloads below this size count as failures",
        category="pipeline",
    )
    SLOT_CONCURRENCY = EnvConfig(
        name="SLOT_CONCURRENCY",
        default=4,
        var_type=int,
        description="Maximum image slots resolved in parallel",
        category="pipeline",
    )
    SPEC_FAILURE_POLICY = EnvConfig(
        name="SPEC_FAILURE_POLICY",
        default="abort",
        var_type=str,
        description="On design spec failure: 'abort' or substitute a 'default' spec",
        category="pipeline",
    )


# =============================================================================
# Type Conversion Helpers
# =============================================================================


def _parse_bool(value: str) -> bool | None:
    """Parse string to boolean.

    Recognizes: true/false, 1/0, yes/no (case-insensitive).
    Returns None for unrecognized values.
    """
    normalized = value.lower().strip()
    if normalized in ("true", "1", "yes"):
        return True
    if normalized in ("false", "0", "no"):
        return False
    return None


def _convert_value(value: str | None, var_type: type, default: Any) -> Any:
    """Convert string value to target type.

    Args:
        value: Raw string value from environment (or None).
        var_type: Target Python type.
        default: Default value if conversion fails or value is None.

    Returns:
        Converted value or default.
    """
    if value is None:
        return default

    if var_type is str:
        return value

    if var_type is int:
        try:
            return int(value)
        except ValueError:
            return default

    if var_type is float:
        try:
            return float(value)
        except ValueError:
            return default

    if var_type is bool:
        result = _parse_bool(value)
        return result if result is not None else default

    if var_type is Path:
        return Path(value)

    # Unknown type, return as-is
    return value


# =============================================================================
# Main Interface
# =============================================================================


@overload
def get_environment(env_var: EnvVar, override: int) -> int: ...
@overload
def get_environment(env_var: EnvVar, override: float) -> float: ...
@overload
def get_environment(env_var: EnvVar, override: str) -> str: ...
@overload
def get_environment(env_var: EnvVar, override: bool) -> bool: ...
@overload
def get_environment(env_var: EnvVar, override: None = None) -> Any: ...


def get_environment(env_var: EnvVar, override: Any = None) -> Any:
    """Get environment variable value with type conversion.

    Resolution priority:
        1. Explicit override parameter (highest)
        2. Environment variable value
        3. Default from EnvConfig (lowest)

    Args:
        env_var: Environment variable enum member.
        override: Optional override value (bypasses env lookup).

    Returns:
        Value converted to the appropriate type.

    Example:
        >>> get_environment(EnvVar.MIN_IMAGE_BYTES)
        1000
        >>> get_environment(EnvVar.MIN_IMAGE_BYTES, override=2048)
        2048
    """
    config: EnvConfig = env_var.value

    if override is not None:
        return override

    raw_value = os.environ.get(config.name)
    return _convert_value(raw_value, config.var_type, config.default)


def get_environment_info(env_var: EnvVar) -> EnvConfig:
    """Get metadata for an environment variable."""
    return env_var.value


def list_environment_variables(category: str | None = None) -> list[EnvVar]:
    """List all environment variables, optionally filtered by category.

    Args:
        category: Filter by category (llm, image, pipeline).
                 None returns all variables.

    Returns:
        List of EnvVar enum members.
    """
    if category is None:
        return list(EnvVar)

    return [var for var in EnvVar if var.value.category == category]


# =============================================================================
# Pipeline Settings
# =============================================================================


@dataclass(frozen=True)
class PipelineSettings:
    """Resolved configuration passed through to every pipeline component.

    Credentials live here and nowhere else; adapters receive them from this
    struct rather than reading the environment themselves.

    Attributes:
        gemini_api_key: Key for the Gemini LLM and the Imagen image provider.
        openai_api_key: Key for OpenAI models.
        anthropic_api_key: Key for Anthropic models.
        llm_provider: Preferred LLM provider name.
        llm_model: Explicit LLM model name.
        imagen_model: Imagen model identifier.
        hugging_face_token: Token for the secondary image provider.
        unsplash_access_key: Optional key for the Unsplash search API.
        provider_timeout: Per-attempt timeout in seconds.
        request_deadline: Overall deadline in seconds.
        max_retries: Retries beyond the first attempt.
        base_delay: Exponential backoff base in seconds.
        max_delay: Backoff cap in seconds.
        min_image_bytes: Minimum accepted binary payload size.
        slot_concurrency: Parallel image slot limit.
        spec_failure_policy: 'abort' or 'default'.
    """

    gemini_api_key: str | None = None
    openai_api_key: str | None = None
    anthropic_api_key: str | None = None
    llm_provider: str | None = None
    llm_model: str | None = None
    imagen_model: str = "imagen-3.0-generate-001"
    hugging_face_token: str | None = None
    unsplash_access_key: str | None = None
    provider_timeout: float = 15.0
    request_deadline: float = 90.0
    max_retries: int = 2
    base_delay: float = 1.0
    max_delay: float = 30.0
    min_image_bytes: int = 1000
    slot_concurrency: int = 4
    spec_failure_policy: str = "abort"

    def __post_init__(self) -> None:
        """Validate numeric settings."""
        if self.provider_timeout <= 0:
            raise ValueError(
                f"provider_timeout must be positive, got {self.provider_timeout}"
            )
        if self.request_deadline <= 0:
            raise ValueError(
                f"request_deadline must be positive, got {self.request_deadline}"
            )
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.slot_concurrency < 1:
            raise ValueError(
                f"slot_concurrency must be >= 1, got {self.slot_concurrency}"
            )
        if self.spec_failure_policy not in ("abort", "default"):
            raise ValueError(
                "spec_failure_policy must be 'abort' or 'default', "
                f"got {self.spec_failure_policy!r}"
            )

    def with_overrides(self, **overrides: Any) -> PipelineSettings:
        """Return a copy with non-None overrides applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


# Mapping from settings field to the variable that feeds it
_SETTINGS_SOURCES: dict[str, EnvVar] = {
    "gemini_api_key": EnvVar.GEMINI_API_KEY,
    "openai_api_key": EnvVar.OPENAI_API_KEY,
    "anthropic_api_key": EnvVar.ANTHROPIC_API_KEY,
    "llm_provider": EnvVar.LLM_PROVIDER,
    "llm_model": EnvVar.LLM_MODEL,
    "imagen_model": EnvVar.IMAGEN_MODEL,
    "hugging_face_token": EnvVar.HUGGING_FACE_TOKEN,
    "unsplash_access_key": EnvVar.UNSPLASH_ACCESS_KEY,
    "provider_timeout": EnvVar.PROVIDER_TIMEOUT,
    "request_deadline": EnvVar.REQUEST_DEADLINE,
    "max_retries": EnvVar.RETRY_MAX_RETRIES,
    "base_delay": EnvVar.RETRY_BASE_DELAY,
    "max_delay": EnvVar.RETRY_MAX_DELAY,
    "min_image_bytes": EnvVar.MIN_IMAGE_BYTES,
    "slot_concurrency": EnvVar.SLOT_CONCURRENCY,
    "spec_failure_policy": EnvVar.SPEC_FAILURE_POLICY,
}


def load_settings(**overrides: Any) -> PipelineSettings:
    """Build PipelineSettings from the environment.

    Args:
        **overrides: Field values that take priority over the environment.
            Unknown field names raise TypeError.

    Returns:
        Frozen PipelineSettings instance.
    """
    known = {f.name for f in fields(PipelineSettings)}
    unknown = set(overrides) - known
    if unknown:
        raise TypeError(f"Unknown settings: {sorted(unknown)}")

    values = {
        name: get_environment(env_var, override=overrides.get(name))
        for name, env_var in _SETTINGS_SOURCES.items()
    }
    return PipelineSettings(**values)


def get_available_llm_providers(settings: PipelineSettings | None = None) -> list[str]:
    """Get list of LLM providers with credentials configured.

    Returns:
        Provider names in preference order (e.g., ["gemini", "openai"]).
    """
    settings = settings or load_settings()
    providers = []
    if settings.gemini_api_key:
        providers.append("gemini")
    if settings.openai_api_key:
        providers.append("openai")
    if settings.anthropic_api_key:
        providers.append("anthropic")
    return providers


def get_available_image_providers(
    settings: PipelineSettings | None = None,
) -> list[str]:
    """Get list of image providers usable with the current settings.

    The keyless Unsplash source endpoint is always listed.
    """
    settings = settings or load_settings()
    providers = []
    if settings.gemini_api_key:
        providers.append("imagen")
    if settings.hugging_face_token:
        providers.append("huggingface")
    providers.append("unsplash")
    return providers


__all__ = [
    # Core types
    "EnvConfig",
    "EnvVar",
    "PipelineSettings",
    # Main interface
    "get_environment",
    "get_environment_info",
    "load_settings",
    # Convenience functions
    "get_available_llm_providers",
    "get_available_image_providers",
    # Introspection
    "list_environment_variables",
]
