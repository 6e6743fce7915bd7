"""Generators turning LLM responses into validated structures.

Each generator builds one fixed prompt, runs it through an `LLMClient`
(which owns retries for provider failures) and parses the reply. Parse
and validation failures raise `SpecParseError` and are not retried here.
"""

import logging
import re
from dataclasses import dataclass

from pydantic import ValidationError

from sitegen.color import vibrant
from sitegen.prompt import (
    ART_DIRECTOR_SYSTEM_PROMPT,
    DESIGN_SYSTEM_PROMPT,
    build_design_spec_prompt,
    build_image_prompts_prompt,
    build_search_terms_prompt,
)
from sitegen.schema import DEFAULT_BUSINESS_TYPE, DesignSpec, ImagePrompts

from ..backend.base import GenerationConfig, SpecParseError
from ..client import LLMClient
from .repair import extract_json

logger = logging.getLogger(__name__)


@dataclass
class GeneratorConfig:
    """Sampling settings for the generators.

    Attributes:
        spec_temperature: Temperature for design-spec generation.
        prompt_temperature: Temperature for image-prompt generation.
        search_temperature: Temperature for keyword compression.
        max_tokens: Response token cap for structured calls.
    """

    spec_temperature: float = 0.7
    prompt_temperature: float = 0.8
    search_temperature: float = 0.2
    max_tokens: int = 4096


def _format_validation_errors(error: ValidationError) -> str:
    parts = []
    for err in error.errors()[:5]:
        location = ".".join(str(p) for p in err["loc"]) or "root"
        parts.append(f"{location}: {err['msg']}")
    return "; ".join(parts)


class DesignSpecGenerator:
    """Generates a validated DesignSpec from a business description.

    The returned spec has every field except `generatedImages`. Brand
    colours are boosted with `vibrant` when the model returns muted ones.

    Example:
        >>> generator = DesignSpecGenerator(LLMClient(backend))
        >>> spec = await generator.generate("Sweet Haven", "bakery", "warm, rustic")
        >>> spec.primary_color
        '#FF6B35'
    """

    def __init__(self, client: LLMClient, config: GeneratorConfig | None = None):
        self._client = client
        self._config = config or GeneratorConfig()

    async def generate(
        self, business_name: str, business_type: str = "", requirements: str = ""
    ) -> DesignSpec:
        """Generate a design spec.

        Args:
            business_name: Non-empty business name.
            business_type: Business type; empty becomes "General Business".
            requirements: Free-text requirements.

        Returns:
            DesignSpec without generated images.

        Raises:
            ValueError: If business_name is empty.
            SpecParseError: If the response is not a valid spec.
            ProviderUnavailableError: If the LLM failed after retries.
        """
        if not business_name or not business_name.strip():
            raise ValueError("business_name must not be empty")
        business_type = business_type.strip() or DEFAULT_BUSINESS_TYPE

        prompt = build_design_spec_prompt(business_name, business_type, requirements)
        content = await self._client.complete_text(
            prompt,
            system_prompt=DESIGN_SYSTEM_PROMPT,
            config=GenerationConfig(
                temperature=self._config.spec_temperature,
                max_tokens=self._config.max_tokens,
            ),
            label="design-spec",
        )
        spec = self._parse_response(content)

        boosted = spec.with_colors(
            vibrant(spec.primary_color),
            vibrant(spec.secondary_color),
            vibrant(spec.accent_color),
        )
        if boosted != spec:
            logger.info("Boosted muted brand colours for %s", business_name)
        return boosted

    def _parse_response(self, content: str) -> DesignSpec:
        data = extract_json(content)
        if data is None:
            raise SpecParseError("Design spec response is not valid JSON", content)
        try:
            return DesignSpec.model_validate(data)
        except ValidationError as e:
            raise SpecParseError(
                f"Design spec failed validation: {_format_validation_errors(e)}",
                content,
            ) from e


class ImagePromptGenerator:
    """Expands a business description into four image prompts."""

    def __init__(self, client: LLMClient, config: GeneratorConfig | None = None):
        self._client = client
        self._config = config or GeneratorConfig()

    async def generate(
        self, business_name: str, business_type: str = "", description: str = ""
    ) -> ImagePrompts:
        """Generate hero and feature prompts.

        Raises:
            SpecParseError: If any of the four prompts is missing or empty.
            ProviderUnavailableError: If the LLM failed after retries.
        """
        prompt = build_image_prompts_prompt(business_name, business_type, description)
        content = await self._client.complete_text(
            prompt,
            system_prompt=ART_DIRECTOR_SYSTEM_PROMPT,
            config=GenerationConfig(
                temperature=self._config.prompt_temperature,
                max_tokens=self._config.max_tokens,
            ),
            label="image-prompts",
        )
        data = extract_json(content)
        if data is None:
            raise SpecParseError("Image prompt response is not valid JSON", content)
        # Accept prompts nested under imagePrompts as well as at top level
        if isinstance(data.get("imagePrompts"), dict):
            data = data["imagePrompts"]
        try:
            return ImagePrompts.model_validate(data)
        except ValidationError as e:
            raise SpecParseError(
                f"Image prompts failed validation: {_format_validation_errors(e)}",
                content,
            ) from e


_STOPWORDS = frozenset(
    {
        "a", "an", "and", "at", "by", "for", "from", "in", "into", "of", "on",
        "or", "the", "to", "with", "while", "showing", "featuring", "image",
        "photo", "picture", "professional", "high", "quality", "detailed",
    }
)

_SEPARATORS = re.compile(r"[\"'`,;:\n]+")
# Leading "Keywords:" / "Search terms:" style label
_LABEL = re.compile(r"^\s*[A-Za-z][A-Za-z ]{0,30}:\s*(?=\S)")


def fallback_keywords(prompt: str, limit: int = 2) -> str:
    """First `limit` significant words of a prompt, lower-cased."""
    words = re.findall(r"[A-Za-z][A-Za-z-]+", prompt.lower())
    significant = [w for w in words if w not in _STOPWORDS and len(w) > 2]
    return " ".join(significant[:limit]) or "business"


def clean_keywords(text: str, limit: int = 2) -> str:
    """Normalize an LLM keyword reply to at most `limit` lower-case terms."""
    text = _LABEL.sub("", text, count=1)
    terms = [t.strip().lower() for t in _SEPARATORS.split(text) if t.strip()]
    if not terms:
        return ""
    # "or" joins alternatives in replies like: modern office or team meeting
    first = re.split(r"\s+or\s+", terms[0])[0]
    words = first.split()
    return " ".join(words[:limit])


class SearchKeywordGenerator:
    """Compresses an image prompt into 1-2 stock-photo search terms.

    Never raises for provider failures: when the LLM is unavailable or
    replies with nothing usable, the first significant words of the
    prompt are used instead.
    """

    def __init__(self, client: LLMClient, config: GeneratorConfig | None = None):
        self._client = client
        self._config = config or GeneratorConfig()

    async def generate(self, image_prompt: str) -> str:
        outcome = await self._client.run(
            build_search_terms_prompt(image_prompt),
            config=GenerationConfig(
                temperature=self._config.search_temperature,
                max_tokens=50,
                json_mode=False,
            ),
            label="search-terms",
        )
        if outcome.ok:
            terms = clean_keywords(outcome.result.value)
            if terms:
                return terms
            logger.debug("Empty keyword reply, using prompt words")
        else:
            logger.warning(
                "Keyword compression unavailable (%s), using prompt words",
                outcome.result.describe(),
            )
        return fallback_keywords(image_prompt)


__all__ = [
    "DesignSpecGenerator",
    "GeneratorConfig",
    "ImagePromptGenerator",
    "SearchKeywordGenerator",
    "clean_keywords",
    "fallback_keywords",
]
