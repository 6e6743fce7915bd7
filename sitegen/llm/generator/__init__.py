"""Structured-content generators built on the LLM client."""

from .lib import (
    DesignSpecGenerator,
    GeneratorConfig,
    ImagePromptGenerator,
    SearchKeywordGenerator,
    clean_keywords,
    fallback_keywords,
)
from .repair import extract_json, strip_code_fences

__all__ = [
    "DesignSpecGenerator",
    "GeneratorConfig",
    "ImagePromptGenerator",
    "SearchKeywordGenerator",
    "clean_keywords",
    "extract_json",
    "fallback_keywords",
    "strip_code_fences",
]
