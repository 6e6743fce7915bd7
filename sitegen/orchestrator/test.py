"""Tests for the orchestrator."""

import asyncio
import logging

import pytest

from sitegen.catalog import get_catalog
from sitegen.llm.backend import LLMBackend, LLMError, SpecParseError
from sitegen.schema import DesignPackage, ImageSlot
from sitegen.testing import FakeUpstream, MockLLMBackend

from .lib import DeadlineExceeded, Orchestrator, SpecFailurePolicy


class HangingBackend(MockLLMBackend):
    """Backend whose calls of one kind never finish."""

    hang_on = "website design specification"

    async def generate(self, prompt, *, system_prompt=None, config=None):
        if self.hang_on in prompt.lower():
            await asyncio.sleep(3600)
        return await super().generate(
            prompt, system_prompt=system_prompt, config=config
        )


class HangingPromptsBackend(HangingBackend):
    """Backend whose image-prompt calls never finish."""

    hang_on = "art director"


def make_orchestrator(settings, backend=None, upstream=None, **overrides):
    upstream = upstream or FakeUpstream()
    return Orchestrator(
        settings.with_overrides(**overrides),
        llm_backend=backend or MockLLMBackend(),
        http_client=upstream.client(),
    )


class TestOrchestrator:
    """Tests for Orchestrator.generate."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_healthy_run(self, fast_settings, fake_upstream):
        """Healthy providers give generated images for every slot."""
        async with make_orchestrator(fast_settings, upstream=fake_upstream) as orch:
            package = await orch.generate("Sweet Haven", "bakery", "warm")
        assert isinstance(package, DesignPackage)
        assert package.spec.is_complete
        assert all(
            package.report.tier_for(slot) == "imagen" for slot in ImageSlot
        )
        assert package.report.spec_source == "llm"
        assert not package.report.deadline_expired

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_prompts_drive_image_requests(self, fast_settings, fake_upstream):
        """Image requests use the generated prompts."""
        backend = MockLLMBackend()
        async with make_orchestrator(fast_settings, backend, fake_upstream) as orch:
            await orch.generate("Sweet Haven", "bakery")
        bodies = [r.content.decode() for r in fake_upstream.requests]
        assert any("cozy artisan bakery" in body for body in bodies)
        assert backend.calls_of("design") == 1
        assert backend.calls_of("prompts") == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_name_rejected(self, fast_settings):
        """Empty business names raise ValueError."""
        async with make_orchestrator(fast_settings) as orch:
            with pytest.raises(ValueError):
                await orch.generate("", "bakery")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_prompt_failure_uses_catalog(self, fast_settings, fake_upstream):
        """Without prompts no generation tier runs and the catalog fills every slot."""
        backend = MockLLMBackend({"prompts": "not json"})
        async with make_orchestrator(fast_settings, backend, fake_upstream) as orch:
            package = await orch.generate("Sweet Haven", "bakery")
        assert package.images == get_catalog().images_for("bakery")
        assert package.report.prompt_source == "catalog"
        assert fake_upstream.requests == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_abort_policy_raises(self, fast_settings):
        """ABORT propagates SpecParseError."""
        backend = MockLLMBackend({"design": "nonsense"})
        async with make_orchestrator(fast_settings, backend) as orch:
            assert orch.spec_failure_policy is SpecFailurePolicy.ABORT
            with pytest.raises(SpecParseError):
                await orch.generate("Sweet Haven", "bakery")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_default_policy_substitutes(self, fast_settings):
        """DEFAULT substitutes the default spec and still attaches images."""
        backend = MockLLMBackend(
            {"design": LLMError("down", status_code=500, transient=True)}
        )
        async with make_orchestrator(
            fast_settings, backend, spec_failure_policy="default", max_retries=0
        ) as orch:
            package = await orch.generate("Sweet Haven", "bakery")
        assert package.report.spec_source == "default"
        assert package.spec.hero_title == "Welcome to Sweet Haven"
        assert package.spec.is_complete

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_spec_deadline_abort(self, fast_settings):
        """A hung spec call past the deadline raises DeadlineExceeded."""
        async with make_orchestrator(
            fast_settings, HangingBackend(), request_deadline=0.1
        ) as orch:
            with pytest.raises(DeadlineExceeded):
                await orch.generate("Sweet Haven", "bakery")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_spec_deadline_default(self, fast_settings):
        """Under DEFAULT a hung spec call yields the default spec and catalog images."""
        async with make_orchestrator(
            fast_settings,
            HangingBackend(),
            request_deadline=0.1,
            spec_failure_policy="default",
        ) as orch:
            package = await orch.generate("Sweet Haven", "bakery")
        assert package.report.spec_source == "default"
        assert package.report.deadline_expired
        assert package.images == get_catalog().images_for("bakery")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_prompt_deadline_reported(
        self, fast_settings, fake_upstream, caplog
    ):
        """Prompts cut off by the deadline mark the report and log every slot."""
        with caplog.at_level(logging.WARNING, logger="sitegen"):
            async with make_orchestrator(
                fast_settings,
                HangingPromptsBackend(),
                fake_upstream,
                request_deadline=0.2,
            ) as orch:
                package = await orch.generate("Sweet Haven", "bakery")

        report = package.report
        assert report.spec_source == "llm"
        assert report.prompt_source == "catalog"
        assert report.deadline_expired
        assert package.images == get_catalog().images_for("bakery")
        assert fake_upstream.requests == []
        for slot in ImageSlot:
            assert report.images[slot].outcomes[0].tier == "deadline"
        messages = [r.getMessage() for r in caplog.records]
        deadline_lines = [m for m in messages if "missed the deadline" in m]
        assert deadline_lines
        assert all(slot.value in deadline_lines[0] for slot in ImageSlot)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_leaves_supplied_backend_open(self, fast_settings):
        """Backends passed in are not closed by the orchestrator."""
        backend = MockLLMBackend()
        async with make_orchestrator(fast_settings, backend):
            pass
        assert backend.closed is False

    @pytest.mark.unit
    def test_backend_is_llm_backend(self):
        """The mock satisfies the backend ABC."""
        assert isinstance(MockLLMBackend(), LLMBackend)
