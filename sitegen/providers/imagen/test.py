"""Tests for the Imagen provider."""

import base64
import json

import httpx
import pytest

from sitegen.schema import (
    ImageRequest,
    ImageSlot,
    PermanentFailure,
    Success,
    TransientFailure,
    ValidationFailure,
)

from .lib import ImagenProvider, closest_aspect_ratio

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 2048


def provider_for(handler) -> ImagenProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ImagenProvider(client, api_key="g-key", model="imagen-test")


@pytest.fixture
def hero_request() -> ImageRequest:
    return ImageRequest.for_slot(ImageSlot.HERO, "warm bakery interior", "Bakery")


class TestAspectRatio:
    """Tests for aspect ratio selection."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "size,expected",
        [((1920, 1080), "16:9"), ((1200, 800), "4:3"), ((512, 512), "1:1")],
    )
    def test_closest(self, size, expected):
        """Target sizes map to the nearest supported ratio."""
        assert closest_aspect_ratio(*size) == expected


class TestImagenProvider:
    """Tests for ImagenProvider.generate."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_request_shape(self, hero_request):
        """Prompt, key and aspect ratio are sent to :predict."""
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["key"] = request.headers["x-goog-api-key"]
            seen["body"] = json.loads(request.content)
            encoded = base64.b64encode(PNG_BYTES).decode()
            return httpx.Response(
                200, json={"predictions": [{"bytesBase64Encoded": encoded}]}
            )

        result = await provider_for(handler).generate(hero_request)

        assert seen["url"].endswith("/models/imagen-test:predict")
        assert seen["key"] == "g-key"
        assert seen["body"]["instances"][0]["prompt"] == "warm bakery interior"
        assert seen["body"]["parameters"]["aspectRatio"] == "16:9"
        assert isinstance(result, Success)
        assert result.value.data == PNG_BYTES

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_url_prediction(self, hero_request):
        """URL predictions become URL payloads."""
        url = "https://cdn.example.test/img.png"
        result = await provider_for(
            lambda r: httpx.Response(200, json={"predictions": [{"image": url}]})
        ).generate(hero_request)
        assert result.value.url == url

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_mime_type_respected(self, hero_request):
        """mimeType sets the payload content type."""
        encoded = base64.b64encode(PNG_BYTES).decode()
        body = {"predictions": [{"bytesBase64Encoded": encoded, "mimeType": "image/jpeg"}]}
        result = await provider_for(lambda r: httpx.Response(200, json=body)).generate(
            hero_request
        )
        assert result.value.content_type == "image/jpeg"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_predictions(self, hero_request):
        """No predictions is a validation failure."""
        result = await provider_for(
            lambda r: httpx.Response(200, json={"predictions": []})
        ).generate(hero_request)
        assert isinstance(result, ValidationFailure)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_short_base64_rejected(self, hero_request):
        """Tiny base64 strings are not images."""
        result = await provider_for(
            lambda r: httpx.Response(
                200, json={"predictions": [{"bytesBase64Encoded": "aGVsbG8="}]}
            )
        ).generate(hero_request)
        assert isinstance(result, ValidationFailure)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_non_json_body(self, hero_request):
        """Non-JSON 200 bodies are permanent failures."""
        result = await provider_for(
            lambda r: httpx.Response(200, text="<html>")
        ).generate(hero_request)
        assert isinstance(result, PermanentFailure)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_server_error(self, hero_request):
        """5xx surfaces as transient."""
        result = await provider_for(lambda r: httpx.Response(500)).generate(
            hero_request
        )
        assert isinstance(result, TransientFailure)
