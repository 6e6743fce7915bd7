"""LLM provider client returning classified results."""

from .lib import LLMClient, classify_llm_error

__all__ = ["LLMClient", "classify_llm_error"]
