"""Top-level orchestration of one design-package request.

Sequence:
1. Design spec and image prompts are generated concurrently.
2. Four image requests are resolved concurrently through the tier cascade.
3. Images are attached to the spec exactly once.

The whole request runs under `settings.request_deadline`. Image slots
still in flight when it expires are cancelled and take curated images.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum

import httpx

from sitegen.catalog import CuratedCatalog, get_catalog
from sitegen.config import PipelineSettings, load_settings
from sitegen.llm.backend import LLMBackend, LLMError, create_backend_from_settings
from sitegen.llm.client import LLMClient
from sitegen.llm.generator import (
    DesignSpecGenerator,
    ImagePromptGenerator,
    SearchKeywordGenerator,
)
from sitegen.pipeline import (
    GenerationTier,
    ImageAcquisitionPipeline,
    StockSearchTier,
)
from sitegen.providers import (
    ImageProvider,
    StockPhotoProvider,
    create_image_providers,
    create_stock_provider,
)
from sitegen.retry import RetryConfig, RetryPolicy
from sitegen.schema import (
    DEFAULT_BUSINESS_TYPE,
    AcquisitionReport,
    DesignPackage,
    DesignSpec,
    GeneratedImages,
    ImagePrompts,
    ImageRequest,
    ImageSlot,
    TierOutcome,
)

logger = logging.getLogger(__name__)


class SpecFailurePolicy(str, Enum):
    """What to do when the design spec cannot be generated.

    ABORT: Propagate the error to the caller.
    DEFAULT: Substitute `DesignSpec.default(...)` and carry on.
    """

    ABORT = "abort"
    DEFAULT = "default"


class DeadlineExceeded(Exception):
    """Design spec generation did not finish within the request deadline."""

    def __init__(self, deadline: float):
        super().__init__(f"Design spec not generated within {deadline:g}s deadline")
        self.deadline = deadline


async def _cancel_all(tasks: list[asyncio.Task]) -> None:
    """Cancel tasks and wait until they have finished unwinding."""
    for task in tasks:
        task.cancel()
    if tasks:
        await asyncio.wait(tasks)


class Orchestrator:
    """Builds design packages from business descriptions.

    Components not supplied are built from `settings`. An HTTP client and
    LLM backend created here are closed by `aclose()` (or on leaving the
    async context).

    Example:
        >>> async with Orchestrator(load_settings()) as orchestrator:
        ...     package = await orchestrator.generate("Sweet Haven", "bakery")
        >>> package.images.hero
        'data:image/png;base64,...'
    """

    def __init__(
        self,
        settings: PipelineSettings | None = None,
        llm_backend: LLMBackend | None = None,
        providers: list[ImageProvider] | None = None,
        stock_provider: StockPhotoProvider | None = None,
        http_client: httpx.AsyncClient | None = None,
        catalog: CuratedCatalog | None = None,
    ):
        self._settings = settings or load_settings()
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(follow_redirects=True)
        self._owns_backend = llm_backend is None
        self._backend = llm_backend or create_backend_from_settings(
            self._settings, self._http_client
        )
        self._catalog = catalog or get_catalog()
        self._policy = RetryPolicy(RetryConfig.from_settings(self._settings))

        llm = LLMClient(self._backend, self._policy)
        self._spec_generator = DesignSpecGenerator(llm)
        self._prompt_generator = ImagePromptGenerator(llm)

        if providers is None:
            providers = create_image_providers(self._settings, self._http_client)
        if stock_provider is None:
            stock_provider = create_stock_provider(self._settings, self._http_client)
        tiers = [GenerationTier(p, self._policy) for p in providers]
        tiers.append(
            StockSearchTier(stock_provider, SearchKeywordGenerator(llm), self._policy)
        )
        self._pipeline = ImageAcquisitionPipeline(
            tiers, self._catalog, self._settings.min_image_bytes
        )
        logger.debug("Image tiers: %s", " -> ".join(self._pipeline.tier_names))

    @property
    def settings(self) -> PipelineSettings:
        return self._settings

    @property
    def pipeline(self) -> ImageAcquisitionPipeline:
        return self._pipeline

    @property
    def spec_failure_policy(self) -> SpecFailurePolicy:
        return SpecFailurePolicy(self._settings.spec_failure_policy)

    async def __aenter__(self) -> Orchestrator:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_backend:
            await self._backend.aclose()
        if self._owns_client:
            await self._http_client.aclose()

    async def _resolve_spec(
        self, business_name: str, business_type: str, requirements: str
    ) -> DesignSpec | None:
        """Generated spec, or None when it failed under the DEFAULT policy."""
        try:
            return await self._spec_generator.generate(
                business_name, business_type, requirements
            )
        except LLMError as e:
            if self.spec_failure_policy is SpecFailurePolicy.ABORT:
                logger.error("Design spec generation failed: %s", e)
                raise
            logger.warning("Design spec generation failed, using default spec: %s", e)
            return None

    async def _resolve_prompts(
        self, business_name: str, business_type: str, requirements: str
    ) -> ImagePrompts | None:
        """Generated image prompts, or None to send every slot to the catalog."""
        try:
            return await self._prompt_generator.generate(
                business_name, business_type, requirements
            )
        except LLMError as e:
            logger.warning("Image prompt generation failed, using catalog: %s", e)
            return None

    async def generate(
        self,
        business_name: str,
        business_type: str = "",
        requirements: str = "",
    ) -> DesignPackage:
        """Generate a complete design package.

        Args:
            business_name: Non-empty business name.
            business_type: Business type; empty becomes "General Business".
            requirements: Free-text requirements.

        Returns:
            DesignPackage whose spec always has all four images.

        Raises:
            ValueError: If business_name is empty.
            SpecParseError: Unparseable spec under the ABORT policy.
            ProviderUnavailableError: LLM unavailable under the ABORT policy.
            DeadlineExceeded: Spec not ready in time under the ABORT policy.
        """
        if not business_name or not business_name.strip():
            raise ValueError("business_name must not be empty")
        business_type = business_type.strip() or DEFAULT_BUSINESS_TYPE
        loop = asyncio.get_running_loop()
        deadline = self._settings.request_deadline
        started = loop.time()
        logger.info("Generating design package for %s (%s)", business_name, business_type)

        spec_task = asyncio.ensure_future(
            self._resolve_spec(business_name, business_type, requirements)
        )
        prompts_task = asyncio.ensure_future(
            self._resolve_prompts(business_name, business_type, requirements)
        )
        tasks = [spec_task, prompts_task]
        try:
            await asyncio.wait(
                tasks, timeout=deadline, return_when=asyncio.FIRST_EXCEPTION
            )
        finally:
            await _cancel_all([task for task in tasks if not task.done()])

        for task in tasks:
            if not task.cancelled() and task.exception() is not None:
                raise task.exception()

        report = AcquisitionReport()
        if spec_task.cancelled():
            if self.spec_failure_policy is SpecFailurePolicy.ABORT:
                raise DeadlineExceeded(deadline)
            logger.warning("Design spec missed the deadline, using default spec")
            report.deadline_expired = True
            spec = None
        else:
            spec = spec_task.result()
        if spec is None:
            spec = DesignSpec.default(business_name, business_type)
            report.spec_source = "default"

        prompts = None
        outcomes: tuple[TierOutcome, ...] = ()
        if prompts_task.cancelled():
            report.deadline_expired = True
            outcomes = (TierOutcome("deadline", "cancelled", "deadline expired", 0),)
            logger.warning(
                "Image prompts missed the deadline, using curated catalog for %s",
                ", ".join(slot.value for slot in ImageSlot),
            )
        else:
            prompts = prompts_task.result()

        if prompts is None:
            report.prompt_source = "catalog"
            for slot in ImageSlot:
                request = ImageRequest.for_slot(slot, business_type, business_type)
                report.images[slot] = self._pipeline.fallback(request, outcomes)
        else:
            requests = [
                ImageRequest.for_slot(slot, prompts.for_slot(slot), business_type)
                for slot in ImageSlot
            ]
            remaining = max(0.0, deadline - (loop.time() - started))
            batch = await self._pipeline.acquire_all(
                requests, self._settings.slot_concurrency, timeout=remaining
            )
            report.images.update(batch.images)
            report.deadline_expired = report.deadline_expired or bool(batch.timed_out)

        images = GeneratedImages.from_mapping(
            {slot: image.reference for slot, image in report.images.items()}
        )
        package = DesignPackage(spec=spec.with_images(images), report=report)
        self._log_summary(business_name, report, loop.time() - started)
        return package

    def _log_summary(
        self, business_name: str, report: AcquisitionReport, elapsed: float
    ) -> None:
        generated = tuple(
            name for name in self._pipeline.tier_names if name != "catalog"
        )
        degraded = [slot.value for slot in report.degraded_slots(generated)]
        tiers = ", ".join(f"{s.value}={report.tier_for(s)}" for s in ImageSlot)
        logger.info("%s done in %.2fs: %s", business_name, elapsed, tiers)
        if report.spec_source != "llm" or degraded or report.deadline_expired:
            logger.warning(
                "Degraded result for %s: spec=%s prompts=%s catalog_slots=%s "
                "deadline_expired=%s",
                business_name,
                report.spec_source,
                report.prompt_source,
                degraded,
                report.deadline_expired,
            )


def generate_design_package(
    business_name: str,
    business_type: str = "",
    requirements: str = "",
    settings: PipelineSettings | None = None,
    **kwargs,
) -> DesignPackage:
    """Synchronous wrapper around `Orchestrator.generate`.

    Extra keyword arguments are passed to `Orchestrator`.
    """

    async def _run() -> DesignPackage:
        async with Orchestrator(settings, **kwargs) as orchestrator:
            return await orchestrator.generate(
                business_name, business_type, requirements
            )

    return asyncio.run(_run())


__all__ = [
    "DeadlineExceeded",
    "Orchestrator",
    "SpecFailurePolicy",
    "generate_design_package",
]
