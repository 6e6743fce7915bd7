"""Prompt templates for design spec, image prompt and keyword generation."""

from .lib import (
    ART_DIRECTOR_SYSTEM_PROMPT,
    DESIGN_SYSTEM_PROMPT,
    build_design_spec_prompt,
    build_image_prompts_prompt,
    build_search_terms_prompt,
)

__all__ = [
    "ART_DIRECTOR_SYSTEM_PROMPT",
    "DESIGN_SYSTEM_PROMPT",
    "build_design_spec_prompt",
    "build_image_prompts_prompt",
    "build_search_terms_prompt",
]
