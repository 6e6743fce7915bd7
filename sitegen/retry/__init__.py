"""Retry policy with exponential backoff and rate-limit handling."""

from .lib import ProviderCall, RetryConfig, RetryOutcome, RetryPolicy

__all__ = ["ProviderCall", "RetryConfig", "RetryOutcome", "RetryPolicy"]
