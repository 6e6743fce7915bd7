"""Centralized configuration management for sitegen.

Provides unified access to all configuration via the `get_environment()` function
and the `PipelineSettings` struct built by `load_settings()`.

Example:
    >>> from sitegen.config import EnvVar, get_environment, load_settings
    >>>
    >>> timeout = get_environment(EnvVar.PROVIDER_TIMEOUT)  # float: 15.0
    >>> settings = load_settings(request_deadline=30.0)
    >>>
    >>> for var in list_environment_variables("image"):
    ...     info = get_environment_info(var)
    ...     print(f"{info.name}: {info.description}")

Environment Variable Categories:
    llm: API keys and model selection for structured content generation
    image: Image generation and stock photo providers
    pipeline: Timeouts, retry budget, validation thresholds and concurrency
"""

from .lib import (
    # Core types
    EnvConfig,
    EnvVar,
    PipelineSettings,
    # Main interface
    get_available_image_providers,
    get_available_llm_providers,
    get_environment,
    get_environment_info,
    # Introspection
    list_environment_variables,
    load_settings,
)

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
