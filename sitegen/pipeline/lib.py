"""Tiered image acquisition.

Each slot walks an ordered list of tiers (primary generation, secondary
generation, stock search) and stops at the first validated image. The
curated catalog is the terminal tier and cannot fail, so `acquire`
always returns an image.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from sitegen.catalog import CuratedCatalog, get_catalog
from sitegen.llm.generator import SearchKeywordGenerator
from sitegen.providers import ImageProvider, StockPhotoProvider
from sitegen.retry import RetryPolicy
from sitegen.schema import (
    AcquiredImage,
    ImagePayload,
    ImageRequest,
    ImageSlot,
    PermanentFailure,
    ProviderResult,
    Success,
    TierOutcome,
    ValidationFailure,
)

logger = logging.getLogger(__name__)

CATALOG_TIER = "catalog"
DEFAULT_MIN_IMAGE_BYTES = 1000


@dataclass(frozen=True)
class TierResult:
    """Result of one tier for one request.

    Attributes:
        result: Success(ImagePayload) or a classified failure.
        attempts: Provider calls the tier made.
    """

    result: ProviderResult
    attempts: int = 1

    @property
    def ok(self) -> bool:
        return self.result.ok


@runtime_checkable
class ImageTier(Protocol):
    """One strategy in the fallback cascade."""

    @property
    def name(self) -> str: ...

    async def attempt(self, request: ImageRequest) -> TierResult: ...


def validate_payload(
    payload: object, min_bytes: int = DEFAULT_MIN_IMAGE_BYTES
) -> ValidationFailure | None:
    """Check a tier's payload before accepting it.

    Rejects non-payloads, placeholder-tagged images, binary bodies under
    `min_bytes` and empty URLs.

    Returns:
        None when the payload is acceptable, otherwise the failure.
    """
    if not isinstance(payload, ImagePayload):
        return ValidationFailure(cause=f"unexpected payload {type(payload).__name__}")
    if payload.placeholder:
        return ValidationFailure(cause="placeholder image")
    if payload.data is not None and len(payload.data) < min_bytes:
        return ValidationFailure(
            cause=f"payload {len(payload.data)} bytes < {min_bytes} byte minimum"
        )
    if payload.url is not None and not payload.url.strip():
        return ValidationFailure(cause="empty image URL")
    return None


class GenerationTier:
    """Image-generation provider under a retry policy."""

    def __init__(self, provider: ImageProvider, policy: RetryPolicy):
        self._provider = provider
        self._policy = policy

    @property
    def name(self) -> str:
        return self._provider.name

    async def attempt(self, request: ImageRequest) -> TierResult:
        outcome = await self._policy.run(
            lambda attempt: self._provider.generate(request, attempt),
            label=f"{self.name}/{request.slot.value}",
        )
        return TierResult(result=outcome.result, attempts=outcome.attempts)


class StockSearchTier:
    """Stock-photo search driven by LLM-compressed keywords.

    The found URL must pass the provider's reachability check.
    """

    def __init__(
        self,
        stock: StockPhotoProvider,
        keywords: SearchKeywordGenerator,
        policy: RetryPolicy,
    ):
        self._stock = stock
        self._keywords = keywords
        self._policy = policy

    @property
    def name(self) -> str:
        return self._stock.name

    async def attempt(self, request: ImageRequest) -> TierResult:
        terms = await self._keywords.generate(request.prompt)
        logger.debug("%s: searching stock photos for '%s'", request.slot.value, terms)
        outcome = await self._policy.run(
            lambda attempt: self._stock.search(
                terms, request.target_width, request.target_height
            ),
            label=f"{self.name}/{request.slot.value}",
        )
        if not outcome.ok:
            return TierResult(result=outcome.result, attempts=outcome.attempts)

        url = outcome.result.value.url
        if url is None or not await self._stock.verify(url):
            return TierResult(
                result=ValidationFailure(cause=f"unreachable URL {url}"),
                attempts=outcome.attempts,
            )
        return TierResult(result=outcome.result, attempts=outcome.attempts)


class CatalogTier:
    """Terminal tier: curated catalog lookup by business type."""

    name = CATALOG_TIER

    def __init__(self, catalog: CuratedCatalog | None = None):
        self._catalog = catalog or get_catalog()

    async def attempt(self, request: ImageRequest) -> TierResult:
        return TierResult(result=Success(ImagePayload(url=self.resolve(request))))

    def resolve(self, request: ImageRequest) -> str:
        return self._catalog.image_for(
            request.business_type,
            request.slot,
            request.target_width,
            request.target_height,
        )


@dataclass
class AcquisitionBatch:
    """Images for a set of requests.

    Attributes:
        images: Acquired image per slot (always complete).
        timed_out: Slots filled from the catalog because time ran out.
    """

    images: dict[ImageSlot, AcquiredImage] = field(default_factory=dict)
    timed_out: list[ImageSlot] = field(default_factory=list)


class ImageAcquisitionPipeline:
    """Resolves image requests through an ordered tier cascade.

    Tiers are tried in order; the first validated payload wins and later
    tiers never run. Earlier tiers are not revisited. When every tier
    fails the catalog supplies the image.

    Example:
        >>> pipeline = ImageAcquisitionPipeline([GenerationTier(imagen, policy)])
        >>> image = await pipeline.acquire(request)
        >>> image.tier
        'imagen'
    """

    def __init__(
        self,
        tiers: list[ImageTier] | None = None,
        catalog: CuratedCatalog | None = None,
        min_image_bytes: int = DEFAULT_MIN_IMAGE_BYTES,
    ):
        self._tiers = list(tiers or [])
        self._catalog_tier = CatalogTier(catalog)
        self._min_image_bytes = min_image_bytes

    @property
    def tier_names(self) -> list[str]:
        return [tier.name for tier in self._tiers] + [CATALOG_TIER]

    def fallback(
        self,
        request: ImageRequest,
        outcomes: tuple[TierOutcome, ...] = (),
    ) -> AcquiredImage:
        """Catalog image for a request, carrying any earlier outcomes."""
        return AcquiredImage(
            slot=request.slot,
            reference=self._catalog_tier.resolve(request),
            tier=CATALOG_TIER,
            outcomes=outcomes + (TierOutcome(CATALOG_TIER, "success"),),
        )

    async def _run_tier(self, tier: ImageTier, request: ImageRequest) -> TierResult:
        try:
            tier_result = await tier.attempt(request)
        except Exception as e:
            logger.exception("Tier %s raised for %s", tier.name, request.slot.value)
            return TierResult(result=PermanentFailure(cause=f"{type(e).__name__}: {e}"))
        if not tier_result.ok:
            return tier_result
        failure = validate_payload(tier_result.result.value, self._min_image_bytes)
        if failure is not None:
            return TierResult(result=failure, attempts=tier_result.attempts)
        return tier_result

    async def acquire(self, request: ImageRequest) -> AcquiredImage:
        """Resolve one request. Never raises for provider failures."""
        outcomes: list[TierOutcome] = []
        for tier in self._tiers:
            tier_result = await self._run_tier(tier, request)
            outcome = TierOutcome(
                tier=tier.name,
                kind=tier_result.result.kind.value,
                detail=tier_result.result.describe(),
                attempts=tier_result.attempts,
            )
            outcomes.append(outcome)
            if tier_result.ok:
                logger.info(
                    "%s resolved by %s after %d attempt(s)",
                    request.slot.value,
                    tier.name,
                    tier_result.attempts,
                )
                return AcquiredImage(
                    slot=request.slot,
                    reference=tier_result.result.value.reference,
                    tier=tier.name,
                    outcomes=tuple(outcomes),
                )
            logger.info(
                "%s: tier %s failed (%s)", request.slot.value, tier.name, outcome.detail
            )

        if self._tiers:
            logger.warning(
                "%s: all %d tiers failed, using curated catalog",
                request.slot.value,
                len(self._tiers),
            )
        return self.fallback(request, tuple(outcomes))

    async def acquire_all(
        self,
        requests: list[ImageRequest],
        concurrency: int = 4,
        timeout: float | None = None,
    ) -> AcquisitionBatch:
        """Resolve requests concurrently with bounded parallelism.

        When `timeout` expires, slots still in flight are cancelled
        (cancelling their HTTP requests) and filled from the catalog.
        """
        semaphore = asyncio.Semaphore(max(1, concurrency))

        async def limited(request: ImageRequest) -> AcquiredImage:
            async with semaphore:
                return await self.acquire(request)

        tasks = {
            asyncio.ensure_future(limited(request)): request for request in requests
        }
        batch = AcquisitionBatch()
        if not tasks:
            return batch
        try:
            done, pending = await asyncio.wait(tasks, timeout=timeout)
        finally:
            unfinished = [task for task in tasks if not task.done()]
            for task in unfinished:
                task.cancel()
            if unfinished:
                await asyncio.wait(unfinished)

        for task, request in tasks.items():
            if task in done:
                batch.images[request.slot] = task.result()
            else:
                logger.warning(
                    "%s: deadline expired, using curated catalog", request.slot.value
                )
                batch.timed_out.append(request.slot)
                batch.images[request.slot] = self.fallback(
                    request, (TierOutcome("deadline", "cancelled", "deadline expired", 0),)
                )
        return batch


__all__ = [
    "AcquisitionBatch",
    "CATALOG_TIER",
    "CatalogTier",
    "GenerationTier",
    "ImageAcquisitionPipeline",
    "ImageTier",
    "StockSearchTier",
    "TierResult",
    "validate_payload",
]
