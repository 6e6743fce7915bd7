"""Tests for the Unsplash provider."""

import httpx
import pytest

from sitegen.schema import Success, ValidationFailure

from .lib import UnsplashProvider, orientation_for


def provider_for(handler, access_key=None) -> UnsplashProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return UnsplashProvider(client, access_key=access_key)


class TestOrientation:
    """Tests for orientation_for."""

    @pytest.mark.unit
    def test_orientations(self):
        """Wide, tall and square targets."""
        assert orientation_for(1920, 1080) == "landscape"
        assert orientation_for(800, 1200) == "portrait"
        assert orientation_for(500, 500) == "squarish"


class TestKeylessSearch:
    """Tests for the keyless source endpoint."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_builds_source_url(self):
        """Terms are URL-quoted into a sized source URL."""
        provider = provider_for(lambda r: httpx.Response(200))
        result = await provider.search("artisan bread", 2400, 1600)
        assert isinstance(result, Success)
        assert result.value.url == "https://source.unsplash.com/1920x1080/?artisan%20bread"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_terms(self):
        """Blank terms are rejected."""
        provider = provider_for(lambda r: httpx.Response(200))
        assert isinstance(await provider.search("  ", 100, 100), ValidationFailure)


class TestApiSearch:
    """Tests for keyed search."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_first_result_sized(self):
        """First result's raw URL is returned with sizing parameters."""
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            seen["auth"] = request.headers["authorization"]
            return httpx.Response(
                200,
                json={"results": [{"urls": {"raw": "https://images.unsplash.com/photo-1"}}]},
            )

        provider = provider_for(handler, access_key="u-key")
        result = await provider.search("bread", 1200, 800)

        assert seen["auth"] == "Client-ID u-key"
        assert seen["params"]["query"] == "bread"
        assert seen["params"]["orientation"] == "landscape"
        assert result.value.url.startswith("https://images.unsplash.com/photo-1?")
        assert "w=1200" in result.value.url

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_raw_url_with_query_sized(self):
        """Raw URLs carrying ixid/ixlib still get usable sizing parameters."""
        raw = "https://images.unsplash.com/photo-1?ixid=abc&ixlib=rb-4.0.3"
        provider = provider_for(
            lambda r: httpx.Response(200, json={"results": [{"urls": {"raw": raw}}]}),
            access_key="u-key",
        )
        result = await provider.search("bread", 1200, 800)

        params = httpx.URL(result.value.url).params
        assert params["w"] == "1200"
        assert params["h"] == "800"
        assert params["ixlib"] == "rb-4.0.3"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_no_results(self):
        """Empty result lists are validation failures."""
        provider = provider_for(
            lambda r: httpx.Response(200, json={"results": []}), access_key="k"
        )
        assert isinstance(await provider.search("zzz", 10, 10), ValidationFailure)


class TestVerify:
    """Tests for URL verification."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_reachable(self):
        """2xx HEAD means reachable."""
        provider = provider_for(lambda r: httpx.Response(200))
        assert await provider.verify("https://images.example.test/a.jpg")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_head_not_allowed_falls_back_to_get(self):
        """405 on HEAD retries with GET."""
        methods = []

        def handler(request):
            methods.append(request.method)
            return httpx.Response(405 if request.method == "HEAD" else 200)

        assert await provider_for(handler).verify("https://x.test/a.jpg")
        assert methods == ["HEAD", "GET"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_not_found(self):
        """404 is unreachable."""
        assert not await provider_for(lambda r: httpx.Response(404)).verify(
            "https://x.test/missing.jpg"
        )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_network_error(self):
        """Transport errors count as unreachable."""

        def handler(request):
            raise httpx.ConnectError("down", request=request)

        assert not await provider_for(handler).verify("https://x.test/a.jpg")
