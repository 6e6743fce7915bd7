"""End-to-end scenarios for design package generation.

All upstreams are faked with httpx.MockTransport; nothing touches the
network.
"""

import pytest

from sitegen.catalog import get_catalog
from sitegen.color import (
    DARK_TEXT,
    LIGHT_TEXT,
    LUMINANCE_THRESHOLD,
    MIN_CONTRAST_RATIO,
    Palette,
    is_muted,
)
from sitegen.llm.backend import SpecParseError
from sitegen.orchestrator import Orchestrator, generate_design_package
from sitegen.schema import DesignSpec, ImageSlot
from sitegen.testing import FakeUpstream, MockLLMBackend


@pytest.mark.e2e
class TestSweetHavenScenarios:
    """Sweet Haven bakery across healthy and failing upstreams."""

    @pytest.mark.asyncio
    async def test_all_providers_healthy(self, fast_settings):
        """Four distinct generated images and a vibrant, legible palette."""
        upstream = FakeUpstream()
        async with Orchestrator(
            fast_settings, llm_backend=MockLLMBackend(), http_client=upstream.client()
        ) as orchestrator:
            package = await orchestrator.generate("Sweet Haven", "bakery", "rustic")

        images = package.images.as_list()
        assert len(set(images)) == 4
        assert all(ref.startswith("data:image/png;base64,") for ref in images)
        assert package.report.degraded_slots(("imagen", "huggingface")) == []

        spec = package.spec
        for color in (spec.primary_color, spec.secondary_color, spec.accent_color):
            assert not is_muted(color)
        palette = Palette.from_spec(spec)
        for pair in (palette.primary, palette.secondary, palette.accent):
            expected = DARK_TEXT if pair.luminance > LUMINANCE_THRESHOLD else LIGHT_TEXT
            assert pair.text == expected
        assert palette.secondary.contrast >= MIN_CONTRAST_RATIO

    @pytest.mark.asyncio
    async def test_all_image_providers_fail(self, fast_settings):
        """Every image tier failing yields exactly the bakery catalog entry."""
        upstream = FakeUpstream(imagen="fail", huggingface="ratelimit", unsplash="fail")
        async with Orchestrator(
            fast_settings, llm_backend=MockLLMBackend(), http_client=upstream.client()
        ) as orchestrator:
            package = await orchestrator.generate("Sweet Haven", "bakery")

        assert package.images == get_catalog().images_for("bakery")
        assert all(package.report.tier_for(s) == "catalog" for s in ImageSlot)
        # Each generation tier used its whole retry budget per slot
        attempts = fast_settings.max_retries + 1
        assert upstream.count("imagen") == 4 * attempts
        assert upstream.count("huggingface") == 4 * attempts

    @pytest.mark.asyncio
    async def test_unparseable_spec_abort(self, fast_settings):
        """ABORT surfaces SpecParseError to the caller."""
        backend = MockLLMBackend({"design": "Sorry, I can't do JSON today."})
        async with Orchestrator(
            fast_settings, llm_backend=backend, http_client=FakeUpstream().client()
        ) as orchestrator:
            with pytest.raises(SpecParseError):
                await orchestrator.generate("Sweet Haven", "bakery")
        assert backend.calls_of("design") == 1

    @pytest.mark.asyncio
    async def test_unparseable_spec_default(self, fast_settings):
        """DEFAULT returns the documented default spec with images attached."""
        backend = MockLLMBackend({"design": "Sorry, I can't do JSON today."})
        settings = fast_settings.with_overrides(spec_failure_policy="default")
        async with Orchestrator(
            settings, llm_backend=backend, http_client=FakeUpstream().client()
        ) as orchestrator:
            package = await orchestrator.generate("Sweet Haven", "bakery")

        expected = DesignSpec.default("Sweet Haven", "bakery")
        assert package.spec.primary_color == expected.primary_color
        assert package.spec.sections == expected.sections
        assert package.spec.is_complete
        assert package.report.spec_source == "default"

    def test_sync_wrapper(self, fast_settings):
        """generate_design_package runs the orchestrator to completion."""
        package = generate_design_package(
            "Sweet Haven",
            "bakery",
            settings=fast_settings,
            llm_backend=MockLLMBackend(),
            http_client=FakeUpstream().client(),
        )
        assert package.spec.is_complete
