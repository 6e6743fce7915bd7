"""Tests for the image acquisition pipeline."""

import asyncio

import httpx
import pytest

from sitegen.catalog import get_catalog
from sitegen.llm.client import LLMClient
from sitegen.llm.generator import SearchKeywordGenerator
from sitegen.providers import HuggingFaceProvider, ImagenProvider, UnsplashProvider
from sitegen.retry import RetryConfig, RetryPolicy
from sitegen.schema import (
    ImagePayload,
    ImageRequest,
    ImageSlot,
    PermanentFailure,
    Success,
    TransientFailure,
)
from sitegen.testing import FakeUpstream, MockLLMBackend, fake_png, no_sleep

from .lib import (
    CATALOG_TIER,
    CatalogTier,
    GenerationTier,
    ImageAcquisitionPipeline,
    ImageTier,
    StockSearchTier,
    TierResult,
    validate_payload,
)


def policy(max_retries: int = 2) -> RetryPolicy:
    return RetryPolicy(
        RetryConfig(max_retries=max_retries, base_delay=0.0, attempt_timeout=5.0),
        no_sleep,
    )


def bakery_request(slot: ImageSlot = ImageSlot.HERO) -> ImageRequest:
    return ImageRequest.for_slot(slot, f"fresh bread for {slot.value}", "bakery")


class ScriptedTier:
    """Tier returning a fixed result (or raising) and counting calls."""

    def __init__(self, name, result=None, error=None, delay=0.0):
        self.name = name
        self._result = result
        self._error = error
        self._delay = delay
        self.calls = 0

    async def attempt(self, request):
        self.calls += 1
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return TierResult(result=self._result)


def build_tiers(upstream: FakeUpstream, backend: MockLLMBackend | None = None):
    client = upstream.client()
    keywords = SearchKeywordGenerator(LLMClient(backend or MockLLMBackend(), policy()))
    return [
        GenerationTier(ImagenProvider(client, api_key="g"), policy()),
        GenerationTier(HuggingFaceProvider(client, token="hf"), policy()),
        StockSearchTier(UnsplashProvider(client), keywords, policy()),
    ]


# =============================================================================
# validate_payload
# =============================================================================


class TestValidatePayload:
    """Tests for payload validation."""

    @pytest.mark.unit
    def test_accepts_large_binary(self):
        """Binary bodies over the threshold pass."""
        assert validate_payload(ImagePayload(data=b"x" * 1000), 1000) is None

    @pytest.mark.unit
    def test_rejects_small_binary(self):
        """Degenerate bodies under the threshold fail."""
        failure = validate_payload(ImagePayload(data=b"x" * 999), 1000)
        assert "999 bytes" in failure.cause

    @pytest.mark.unit
    def test_rejects_placeholder(self):
        """Placeholder-tagged payloads fail regardless of size."""
        payload = ImagePayload(data=b"<svg/>" * 1000, placeholder=True)
        assert validate_payload(payload).cause == "placeholder image"

    @pytest.mark.unit
    def test_accepts_url(self):
        """URLs carry no size and pass."""
        assert validate_payload(ImagePayload(url="https://x.test/a.jpg")) is None

    @pytest.mark.unit
    def test_rejects_non_payload(self):
        """Plain strings are not payloads."""
        assert validate_payload("https://x.test/a.jpg") is not None


# =============================================================================
# Tiers
# =============================================================================


class TestTiers:
    """Tests for the concrete tiers."""

    @pytest.mark.unit
    def test_tiers_satisfy_protocol(self, fake_upstream):
        """Concrete tiers implement ImageTier."""
        for tier in build_tiers(fake_upstream) + [CatalogTier()]:
            assert isinstance(tier, ImageTier)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_generation_tier_retries(self):
        """Secondary generation rotates endpoints across retries."""
        upstream = FakeUpstream(huggingface="fail")
        tier = GenerationTier(
            HuggingFaceProvider(upstream.client(), token="hf"), policy(max_retries=2)
        )
        result = await tier.attempt(bakery_request())
        assert isinstance(result.result, TransientFailure)
        assert result.attempts == 3
        paths = {r.url.path for r in upstream.requests}
        assert len(paths) == 3

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_stock_tier_uses_keywords(self, fake_upstream):
        """Stock search uses the compressed keywords."""
        tier = build_tiers(fake_upstream)[2]
        result = await tier.attempt(bakery_request())
        assert result.ok
        assert "artisan%20bread" in result.result.value.url

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_stock_tier_rejects_unreachable(self):
        """Unreachable URLs are validation failures."""
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda r: httpx.Response(404))
        )
        keywords = SearchKeywordGenerator(LLMClient(MockLLMBackend(), policy()))
        tier = StockSearchTier(UnsplashProvider(client), keywords, policy())
        result = await tier.attempt(bakery_request())
        assert result.result.kind.value == "validation"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_catalog_tier_sized(self):
        """Catalog tier returns the sized catalog URL."""
        request = bakery_request(ImageSlot.FEATURE2)
        result = await CatalogTier().attempt(request)
        assert result.result.value.url == get_catalog().image_for(
            "bakery", ImageSlot.FEATURE2, 1200, 800
        )


# =============================================================================
# ImageAcquisitionPipeline
# =============================================================================


class TestImageAcquisitionPipeline:
    """Tests for the tier cascade."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_primary_success_stops_cascade(self):
        """Later tiers do not run once a tier succeeds."""
        first = ScriptedTier("first", Success(ImagePayload(data=fake_png("a"))))
        second = ScriptedTier("second", Success(ImagePayload(url="https://x.test/b")))
        image = await ImageAcquisitionPipeline([first, second]).acquire(
            bakery_request()
        )
        assert image.tier == "first"
        assert image.reference.startswith("data:image/png;base64,")
        assert second.calls == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_falls_through_in_order(self):
        """Failures advance to the next tier exactly once each."""
        first = ScriptedTier("first", TransientFailure(cause="503"))
        second = ScriptedTier("second", Success(ImagePayload(data=b"tiny")))
        third = ScriptedTier("third", Success(ImagePayload(url="https://x.test/c")))
        image = await ImageAcquisitionPipeline([first, second, third]).acquire(
            bakery_request()
        )
        assert image.tier == "third"
        assert [o.tier for o in image.outcomes] == ["first", "second", "third"]
        assert [o.kind for o in image.outcomes] == [
            "transient",
            "validation",
            "success",
        ]
        assert (first.calls, second.calls, third.calls) == (1, 1, 1)

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "tiers",
        [
            [],
            [ScriptedTier("a", TransientFailure(cause="x"))],
            [
                ScriptedTier("a", PermanentFailure(cause="x")),
                ScriptedTier("b", error=RuntimeError("bug")),
                ScriptedTier("c", Success(ImagePayload(data=b"x", placeholder=True))),
            ],
        ],
    )
    async def test_never_raises(self, tiers):
        """Any sequence of failures ends at the catalog."""
        request = bakery_request(ImageSlot.FEATURE1)
        image = await ImageAcquisitionPipeline(tiers).acquire(request)
        assert image.tier == CATALOG_TIER
        assert image.reference == get_catalog().image_for(
            "bakery", ImageSlot.FEATURE1, 1200, 800
        )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_cancellation_propagates(self):
        """Cancelling acquire cancels the running tier."""
        slow = ScriptedTier("slow", Success(ImagePayload(url="u")), delay=10)
        task = asyncio.ensure_future(
            ImageAcquisitionPipeline([slow]).acquire(bakery_request())
        )
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_real_tiers_healthy(self, fake_upstream):
        """With healthy upstreams the primary provider wins."""
        pipeline = ImageAcquisitionPipeline(build_tiers(fake_upstream))
        image = await pipeline.acquire(bakery_request())
        assert image.tier == "imagen"
        assert fake_upstream.count("huggingface") == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_real_tiers_primary_rate_limited(self):
        """A rate-limited primary falls to the secondary after retries."""
        upstream = FakeUpstream(imagen="ratelimit")
        image = await ImageAcquisitionPipeline(build_tiers(upstream)).acquire(
            bakery_request()
        )
        assert image.tier == "huggingface"
        assert upstream.count("imagen") == 3

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_real_tiers_degenerate_bodies(self):
        """Tiny generation bodies fall through to stock search."""
        upstream = FakeUpstream(imagen="tiny", huggingface="tiny")
        image = await ImageAcquisitionPipeline(build_tiers(upstream)).acquire(
            bakery_request()
        )
        assert image.tier == "unsplash"


class TestAcquireAll:
    """Tests for concurrent acquisition."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_all_slots(self, fake_upstream):
        """Every request gets an image."""
        pipeline = ImageAcquisitionPipeline(build_tiers(fake_upstream))
        requests = [bakery_request(slot) for slot in ImageSlot]
        batch = await pipeline.acquire_all(requests, concurrency=4)
        assert set(batch.images) == set(ImageSlot)
        assert batch.timed_out == []
        assert len({img.reference for img in batch.images.values()}) == 4

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_bounded_concurrency(self):
        """No more than `concurrency` slots run at once."""
        running = 0
        peak = 0

        class CountingTier:
            name = "counting"

            async def attempt(self, request):
                nonlocal running, peak
                running += 1
                peak = max(peak, running)
                await asyncio.sleep(0.01)
                running -= 1
                return TierResult(result=Success(ImagePayload(url="https://x.test")))

        pipeline = ImageAcquisitionPipeline([CountingTier()])
        await pipeline.acquire_all(
            [bakery_request(slot) for slot in ImageSlot], concurrency=2
        )
        assert peak == 2

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_timeout_fills_from_catalog(self):
        """Slots still running at the timeout are cancelled and use the catalog."""
        slow = ScriptedTier("slow", Success(ImagePayload(url="https://x.test")), delay=5)
        pipeline = ImageAcquisitionPipeline([slow])
        requests = [bakery_request(slot) for slot in ImageSlot]
        batch = await pipeline.acquire_all(requests, timeout=0.05)
        assert sorted(batch.timed_out) == sorted(ImageSlot)
        assert batch.images[ImageSlot.HERO].reference == get_catalog().image_for(
            "bakery", ImageSlot.HERO
        )
        assert batch.images[ImageSlot.HERO].outcomes[0].tier == "deadline"
