"""Tests for the Hugging Face provider."""

import json

import httpx
import pytest

from sitegen.retry import RetryConfig, RetryPolicy
from sitegen.schema import (
    ImageRequest,
    ImageSlot,
    PermanentFailure,
    Success,
    TransientFailure,
    ValidationFailure,
)
from sitegen.testing import fake_png, no_sleep

from .lib import HF_ENDPOINTS, HuggingFaceProvider


def provider_for(handler) -> HuggingFaceProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HuggingFaceProvider(client, token="hf-token")


@pytest.fixture
def feature_request() -> ImageRequest:
    return ImageRequest.for_slot(ImageSlot.FEATURE1, "fresh croissants", "Bakery")


class TestHuggingFaceProvider:
    """Tests for HuggingFaceProvider."""

    @pytest.mark.unit
    def test_endpoint_rotation(self):
        """Attempts cycle through the endpoint list."""
        provider = provider_for(lambda r: httpx.Response(200))
        assert [provider.endpoint_for(i) for i in range(4)] == [
            HF_ENDPOINTS[0],
            HF_ENDPOINTS[1],
            HF_ENDPOINTS[2],
            HF_ENDPOINTS[0],
        ]

    @pytest.mark.unit
    def test_requires_endpoints(self):
        """An empty endpoint list is rejected."""
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: None))
        with pytest.raises(ValueError):
            HuggingFaceProvider(client, token="t", endpoints=())

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_request_shape(self, feature_request):
        """Dimensions are capped and the token is sent as a bearer."""
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200, content=b"\x89PNG" + b"\x00" * 4096,
                headers={"content-type": "image/png"},
            )

        result = await provider_for(handler).generate(feature_request, attempt=1)

        assert seen["url"] == HF_ENDPOINTS[1]
        assert seen["auth"] == "Bearer hf-token"
        assert seen["body"]["inputs"] == "fresh croissants"
        assert seen["body"]["parameters"]["width"] == 512
        assert seen["body"]["parameters"]["height"] == 512
        assert isinstance(result, Success)
        assert not result.value.placeholder

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_svg_marked_placeholder(self, feature_request):
        """SVG bodies are flagged as placeholders."""
        result = await provider_for(
            lambda r: httpx.Response(
                200, content=b"<svg/>" * 500, headers={"content-type": "image/svg+xml"}
            )
        ).generate(feature_request)
        assert result.value.placeholder

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_json_body_rejected(self, feature_request):
        """A JSON 200 (model loading notice) is not an image."""
        result = await provider_for(
            lambda r: httpx.Response(200, json={"estimated_time": 20})
        ).generate(feature_request)
        assert isinstance(result, ValidationFailure)

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [404, 410])
    async def test_missing_model_is_transient(self, feature_request, status):
        """A removed model lets the next attempt rotate endpoints."""
        result = await provider_for(lambda r: httpx.Response(status)).generate(
            feature_request
        )
        assert isinstance(result, TransientFailure)
        assert result.status_code == status

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403])
    async def test_auth_errors_stay_permanent(self, feature_request, status):
        """Credential failures do not rotate endpoints."""
        result = await provider_for(lambda r: httpx.Response(status)).generate(
            feature_request
        )
        assert isinstance(result, PermanentFailure)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_retry_moves_past_missing_endpoint(self, feature_request):
        """First endpoint 404s; the retry reaches the second endpoint."""
        seen = []

        def handler(request):
            seen.append(str(request.url))
            if str(request.url) == HF_ENDPOINTS[0]:
                return httpx.Response(404)
            return httpx.Response(
                200, content=fake_png("hf-rotation"), headers={"content-type": "image/png"}
            )

        provider = provider_for(handler)
        policy = RetryPolicy(
            RetryConfig(max_retries=2, base_delay=0.0, attempt_timeout=5.0),
            sleep=no_sleep,
        )
        outcome = await policy.run(
            lambda attempt: provider.generate(feature_request, attempt)
        )

        assert isinstance(outcome.result, Success)
        assert outcome.attempts == 2
        assert seen == [HF_ENDPOINTS[0], HF_ENDPOINTS[1]]
