"""Tests for prompt templates."""

import pytest

from .lib import (
    build_design_spec_prompt,
    build_image_prompts_prompt,
    build_search_terms_prompt,
)


class TestDesignSpecPrompt:
    """Tests for the design spec instruction."""

    @pytest.mark.unit
    def test_includes_business_details(self):
        """Name, type and requirements are embedded."""
        prompt = build_design_spec_prompt("Sweet Haven", "bakery", "warm and cozy")
        assert "Business Name: Sweet Haven" in prompt
        assert "Business Type: bakery" in prompt
        assert "warm and cozy" in prompt

    @pytest.mark.unit
    def test_empty_type_defaults(self):
        """Empty business type becomes General Business."""
        prompt = build_design_spec_prompt("Acme", "  ", "")
        assert "Business Type: General Business" in prompt

    @pytest.mark.unit
    def test_lists_every_wire_field(self):
        """All required JSON fields are requested."""
        prompt = build_design_spec_prompt("Acme", "tech", "")
        for name in (
            "primaryColor",
            "secondaryColor",
            "accentColor",
            "heroTitle",
            "heroSubtitle",
            "sections",
            "features",
            "imagePrompts",
        ):
            assert f'"{name}"' in prompt

    @pytest.mark.unit
    def test_color_contract(self):
        """Vibrancy and contrast instructions are present."""
        prompt = build_design_spec_prompt("Acme", "tech", "")
        assert "VIBRANT" in prompt
        assert "4.5:1" in prompt


class TestImagePromptsPrompt:
    """Tests for the image prompt instruction."""

    @pytest.mark.unit
    def test_requests_four_prompts(self):
        """Hero and three features are requested."""
        prompt = build_image_prompts_prompt("Sweet Haven", "bakery", "artisan bread")
        for key in ("hero", "feature1", "feature2", "feature3"):
            assert f'"{key}"' in prompt
        assert "30-50 words" in prompt
        assert "lighting" in prompt


class TestSearchTermsPrompt:
    """Tests for the keyword instruction."""

    @pytest.mark.unit
    def test_embeds_prompt(self):
        """The image prompt is quoted in the instruction."""
        prompt = build_search_terms_prompt("A cozy bakery at dawn")
        assert '"A cozy bakery at dawn"' in prompt
        assert "1-2" in prompt
