"""Tests for the provider registry and factories."""

import httpx
import pytest

from sitegen.config import PipelineSettings
from sitegen.schema import PermanentFailure, RateLimited, TransientFailure

from . import (
    HuggingFaceProvider,
    ImagenProvider,
    UnsplashProvider,
    create_image_providers,
    create_stock_provider,
    get_provider_class,
    list_providers,
)
from .lib import HttpProvider


def make_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestRegistry:
    """Tests for provider registration."""

    @pytest.mark.unit
    def test_all_adapters_registered(self):
        """Importing the package registers every adapter."""
        assert list_providers() == ["huggingface", "imagen", "unsplash"]

    @pytest.mark.unit
    def test_lookup(self):
        """Classes resolve by name."""
        assert get_provider_class("imagen") is ImagenProvider

    @pytest.mark.unit
    def test_unknown_provider(self):
        """Unknown names raise KeyError listing what exists."""
        with pytest.raises(KeyError, match="Available"):
            get_provider_class("midjourney")


class TestFactories:
    """Tests for building providers from settings."""

    @pytest.mark.unit
    def test_no_keys_no_generation_providers(self):
        """Without credentials no generation tier is built."""
        client = make_client(lambda r: httpx.Response(200))
        assert create_image_providers(PipelineSettings(), client) == []

    @pytest.mark.unit
    def test_tier_order(self):
        """Imagen comes before Hugging Face."""
        client = make_client(lambda r: httpx.Response(200))
        settings = PipelineSettings(gemini_api_key="g", hugging_face_token="hf")
        providers = create_image_providers(settings, client)
        assert [type(p) for p in providers] == [ImagenProvider, HuggingFaceProvider]
        assert providers[0].timeout == settings.provider_timeout

    @pytest.mark.unit
    def test_stock_provider_keyless(self):
        """Stock search is built without a key."""
        client = make_client(lambda r: httpx.Response(200))
        stock = create_stock_provider(PipelineSettings(), client)
        assert isinstance(stock, UnsplashProvider)
        assert not stock.uses_api


class TestHttpProvider:
    """Tests for shared request classification."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_success_returns_response(self):
        """2xx responses are returned for parsing."""
        provider = HttpProvider(make_client(lambda r: httpx.Response(204)))
        response = await provider._request("GET", "https://example.test/")
        assert isinstance(response, httpx.Response)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_rate_limit_classified(self):
        """429 carries Retry-After."""
        provider = HttpProvider(
            make_client(lambda r: httpx.Response(429, headers={"Retry-After": "3"}))
        )
        result = await provider._request("GET", "https://example.test/")
        assert result == RateLimited(retry_after=3.0, cause="HTTP 429")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_server_error_transient(self):
        """5xx is transient."""
        provider = HttpProvider(make_client(lambda r: httpx.Response(503)))
        result = await provider._request("GET", "https://example.test/")
        assert isinstance(result, TransientFailure)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_client_error_permanent(self):
        """4xx other than 408/429 is permanent."""
        provider = HttpProvider(make_client(lambda r: httpx.Response(403)))
        result = await provider._request("GET", "https://example.test/")
        assert isinstance(result, PermanentFailure)
        assert result.status_code == 403

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_transport_error_transient(self):
        """Connection failures are transient."""

        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        provider = HttpProvider(make_client(handler))
        result = await provider._request("GET", "https://example.test/")
        assert isinstance(result, TransientFailure)
