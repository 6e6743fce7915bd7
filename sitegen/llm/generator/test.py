"""Tests for JSON recovery and the LLM generators."""

import json

import pytest

from sitegen.color import is_muted
from sitegen.llm.backend import LLMError, ProviderUnavailableError, SpecParseError
from sitegen.llm.client import LLMClient
from sitegen.retry import RetryConfig, RetryPolicy
from sitegen.schema import DEFAULT_BUSINESS_TYPE, ImageSlot
from sitegen.testing import SWEET_HAVEN_SPEC, MockLLMBackend, no_sleep

from .lib import (
    DesignSpecGenerator,
    ImagePromptGenerator,
    SearchKeywordGenerator,
    clean_keywords,
    fallback_keywords,
)
from .repair import extract_json, strip_code_fences


def client_for(backend: MockLLMBackend, max_retries: int = 2) -> LLMClient:
    policy = RetryPolicy(
        RetryConfig(max_retries=max_retries, base_delay=0.0), sleep=no_sleep
    )
    return LLMClient(backend, policy)


# =============================================================================
# JSON recovery
# =============================================================================


class TestExtractJson:
    """Tests for extract_json."""

    @pytest.mark.unit
    def test_plain_object(self):
        """Valid JSON parses directly."""
        assert extract_json('{"a": 1}') == {"a": 1}

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "wrapped",
        [
            '```json\n{"a": 1, "b": [1, 2]}\n```',
            '```\n{"a": 1, "b": [1, 2]}\n```',
            'Sure! Here it is:\n```json\n{"a": 1, "b": [1, 2]}\n```\nEnjoy.',
        ],
    )
    def test_code_fences_equivalent_to_unwrapped(self, wrapped):
        """Fenced responses parse to the same object as the bare JSON."""
        assert extract_json(wrapped) == extract_json('{"a": 1, "b": [1, 2]}')

    @pytest.mark.unit
    def test_trailing_commas(self):
        """Trailing commas are repaired."""
        assert extract_json('{"a": [1, 2,], "b": 3,}') == {"a": [1, 2], "b": 3}

    @pytest.mark.unit
    def test_mixed_content(self):
        """Objects embedded in prose are extracted."""
        content = 'The spec is {"title": "Hi {there}"} as requested.'
        assert extract_json(content) == {"title": "Hi {there}"}

    @pytest.mark.unit
    def test_prefix_removed(self):
        """Chatty prefixes are stripped."""
        assert extract_json('Here is the JSON: {"a": 1}') == {"a": 1}

    @pytest.mark.unit
    @pytest.mark.parametrize("content", ["", "   ", "no json here", "[1, 2, 3]"])
    def test_unrecoverable(self, content):
        """Non-object content yields None."""
        assert extract_json(content) is None

    @pytest.mark.unit
    def test_strip_code_fences_passthrough(self):
        """Unfenced content is returned stripped."""
        assert strip_code_fences('  {"a": 1} ') == '{"a": 1}'


# =============================================================================
# DesignSpecGenerator
# =============================================================================


class TestDesignSpecGenerator:
    """Tests for DesignSpecGenerator."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_generates_spec(self, mock_llm_backend):
        """A valid response becomes a DesignSpec without images."""
        spec = await DesignSpecGenerator(client_for(mock_llm_backend)).generate(
            "Sweet Haven", "bakery", "warm and rustic"
        )
        assert spec.hero_title == "Sweet Haven Bakery"
        assert spec.primary_color == "#FF6B35"
        assert spec.generated_images is None
        assert spec.image_prompts.for_slot(ImageSlot.HERO).startswith("Golden")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_prompt_contents(self, mock_llm_backend):
        """Name, type and requirements reach the prompt."""
        await DesignSpecGenerator(client_for(mock_llm_backend)).generate(
            "Sweet Haven", "bakery", "gluten-free focus"
        )
        _, prompt = mock_llm_backend.calls[0]
        assert "Business Name: Sweet Haven" in prompt
        assert "Business Type: bakery" in prompt
        assert "gluten-free focus" in prompt

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_type_defaults(self, mock_llm_backend):
        """Empty business type becomes General Business."""
        await DesignSpecGenerator(client_for(mock_llm_backend)).generate("Acme", "")
        _, prompt = mock_llm_backend.calls[0]
        assert f"Business Type: {DEFAULT_BUSINESS_TYPE}" in prompt

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_name_rejected(self, mock_llm_backend):
        """Empty business name raises ValueError without calling the LLM."""
        with pytest.raises(ValueError):
            await DesignSpecGenerator(client_for(mock_llm_backend)).generate("  ")
        assert mock_llm_backend.calls == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_fenced_response(self):
        """Code-fenced responses are accepted."""
        backend = MockLLMBackend(
            {"design": f"```json\n{json.dumps(SWEET_HAVEN_SPEC)}\n```"}
        )
        spec = await DesignSpecGenerator(client_for(backend)).generate(
            "Sweet Haven", "bakery"
        )
        assert spec.secondary_color == "#3A0CA3"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_muted_colors_boosted(self):
        """Muted colours come back vibrant."""
        muted = dict(SWEET_HAVEN_SPEC, primaryColor="#8A7F7A", accentColor="#7A8A80")
        backend = MockLLMBackend({"design": json.dumps(muted)})
        spec = await DesignSpecGenerator(client_for(backend)).generate("X", "bakery")
        assert not is_muted(spec.primary_color)
        assert not is_muted(spec.accent_color)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unparseable_raises_without_retry(self):
        """Garbage raises SpecParseError after a single call."""
        backend = MockLLMBackend({"design": "I cannot help with that."})
        with pytest.raises(SpecParseError) as exc_info:
            await DesignSpecGenerator(client_for(backend)).generate("X", "bakery")
        assert "I cannot help" in exc_info.value.content
        assert backend.calls_of("design") == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_field_raises(self):
        """Schema violations raise SpecParseError naming the field."""
        incomplete = {k: v for k, v in SWEET_HAVEN_SPEC.items() if k != "heroTitle"}
        backend = MockLLMBackend({"design": json.dumps(incomplete)})
        with pytest.raises(SpecParseError, match="heroTitle"):
            await DesignSpecGenerator(client_for(backend)).generate("X", "bakery")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_invalid_color_raises(self):
        """Invalid hex colours raise SpecParseError."""
        bad = dict(SWEET_HAVEN_SPEC, primaryColor="orange")
        backend = MockLLMBackend({"design": json.dumps(bad)})
        with pytest.raises(SpecParseError):
            await DesignSpecGenerator(client_for(backend)).generate("X", "bakery")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_transient_errors_retried(self):
        """Provider failures are retried before succeeding."""
        backend = MockLLMBackend(
            {
                "design": [
                    LLMError("boom", status_code=503, transient=True),
                    json.dumps(SWEET_HAVEN_SPEC),
                ]
            }
        )
        spec = await DesignSpecGenerator(client_for(backend)).generate("X", "bakery")
        assert spec.is_complete is False
        assert backend.calls_of("design") == 2

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_unavailable(self):
        """Persistent provider failure surfaces as ProviderUnavailableError."""
        backend = MockLLMBackend(
            {"design": LLMError("down", status_code=503, transient=True)}
        )
        with pytest.raises(ProviderUnavailableError) as exc_info:
            await DesignSpecGenerator(client_for(backend, max_retries=1)).generate(
                "X", "bakery"
            )
        assert exc_info.value.attempts == 2


# =============================================================================
# ImagePromptGenerator
# =============================================================================


class TestImagePromptGenerator:
    """Tests for ImagePromptGenerator."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_four_prompts(self, mock_llm_backend):
        """All four slots are filled."""
        prompts = await ImagePromptGenerator(client_for(mock_llm_backend)).generate(
            "Sweet Haven", "bakery", "artisan breads"
        )
        assert len(prompts.as_list()) == 4
        assert "sunrise" in prompts.hero

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_nested_prompts_accepted(self):
        """Prompts wrapped in imagePrompts are unwrapped."""
        backend = MockLLMBackend(
            {"prompts": json.dumps({"imagePrompts": SWEET_HAVEN_SPEC["imagePrompts"]})}
        )
        prompts = await ImagePromptGenerator(client_for(backend)).generate("X", "bakery")
        assert prompts.feature1.startswith("Close-up")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_prompt_rejected(self):
        """A blank prompt raises SpecParseError."""
        prompts = dict(SWEET_HAVEN_SPEC["imagePrompts"], feature2="  ")
        backend = MockLLMBackend({"prompts": json.dumps(prompts)})
        with pytest.raises(SpecParseError):
            await ImagePromptGenerator(client_for(backend)).generate("X", "bakery")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_prompt_rejected(self):
        """A missing slot raises SpecParseError."""
        prompts = {"hero": "a", "feature1": "b", "feature2": "c"}
        backend = MockLLMBackend({"prompts": json.dumps(prompts)})
        with pytest.raises(SpecParseError, match="feature3"):
            await ImagePromptGenerator(client_for(backend)).generate("X", "bakery")


# =============================================================================
# SearchKeywordGenerator
# =============================================================================


class TestKeywordHelpers:
    """Tests for keyword normalization helpers."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "reply,expected",
        [
            ('"Artisan Bread"', "artisan bread"),
            ("fresh bread, bakery", "fresh bread"),
            ("modern office or team meeting", "modern office"),
            ("sourdough loaf on wooden board", "sourdough loaf"),
            ("  ", ""),
            ("Keywords: bakery bread", "bakery bread"),
            ('Search terms: "artisan bread"', "artisan bread"),
        ],
    )
    def test_clean_keywords(self, reply, expected):
        """Replies are trimmed to at most two lower-case words."""
        assert clean_keywords(reply) == expected

    @pytest.mark.unit
    def test_fallback_skips_stopwords(self):
        """Fallback uses significant words only."""
        prompt = "A close-up of the crusty sourdough loaf with flour"
        assert fallback_keywords(prompt) == "close-up crusty"

    @pytest.mark.unit
    def test_fallback_default(self):
        """Prompts with no usable words fall back to a generic term."""
        assert fallback_keywords("a of the") == "business"


class TestSearchKeywordGenerator:
    """Tests for SearchKeywordGenerator."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_uses_llm_terms(self, mock_llm_backend):
        """LLM replies are normalized."""
        generator = SearchKeywordGenerator(client_for(mock_llm_backend))
        assert await generator.generate("warm bakery interior") == "artisan bread"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_falls_back_when_unavailable(self):
        """Provider failure uses words from the prompt instead of raising."""
        backend = MockLLMBackend(
            {"search": LLMError("down", status_code=500, transient=True)}
        )
        generator = SearchKeywordGenerator(client_for(backend, max_retries=0))
        assert await generator.generate("Sourdough loaf on a board") == "sourdough loaf"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_falls_back_on_empty_reply(self):
        """Blank replies use words from the prompt."""
        backend = MockLLMBackend({"search": "   "})
        generator = SearchKeywordGenerator(client_for(backend))
        assert await generator.generate("Espresso machine steaming") == (
            "espresso machine"
        )
