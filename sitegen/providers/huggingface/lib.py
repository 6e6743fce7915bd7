"""Hugging Face provider: secondary image generation tier.

Rotates across interchangeable Stable Diffusion inference endpoints by
attempt number, so retries route around a single unavailable model.
"""

import logging

import httpx

from sitegen.schema import (
    ImagePayload,
    ImageRequest,
    PermanentFailure,
    ProviderResult,
    Success,
    TransientFailure,
    ValidationFailure,
)

from ..lib import HttpProvider, ImageProvider, register_provider

logger = logging.getLogger(__name__)

HF_ENDPOINTS: tuple[str, ...] = (
    "https://api-inference.huggingface.co/models/runwayml/stable-diffusion-v1-5",
    "https://api-inference.huggingface.co/models/stabilityai/stable-diffusion-2-1",
    "https://api-inference.huggingface.co/models/stabilityai/stable-diffusion-2",
)

MAX_DIMENSION = 512
INFERENCE_STEPS = 20

# Statuses meaning this model is gone; another endpoint may still serve.
ROTATE_STATUSES = frozenset({404, 410})


@register_provider
class HuggingFaceProvider(HttpProvider, ImageProvider):
    """Stable Diffusion via the Hugging Face inference API.

    The response body is the raw image. SVG bodies are tagged as
    placeholders so they never count as generated images.
    """

    provider_name = "huggingface"

    def __init__(
        self,
        client: httpx.AsyncClient,
        token: str,
        endpoints: tuple[str, ...] = HF_ENDPOINTS,
        timeout: float = 15.0,
    ):
        super().__init__(client, timeout)
        if not endpoints:
            raise ValueError("At least one endpoint is required")
        self._token = token
        self._endpoints = tuple(endpoints)

    @property
    def name(self) -> str:
        return self.provider_name

    def endpoint_for(self, attempt: int) -> str:
        return self._endpoints[attempt % len(self._endpoints)]

    async def generate(self, request: ImageRequest, attempt: int = 0) -> ProviderResult:
        endpoint = self.endpoint_for(attempt)
        logger.debug("Hugging Face attempt %d via %s", attempt + 1, endpoint)
        payload = {
            "inputs": request.prompt,
            "parameters": {
                "height": min(request.target_height, MAX_DIMENSION),
                "width": min(request.target_width, MAX_DIMENSION),
                "num_inference_steps": INFERENCE_STEPS,
            },
        }
        response = await self._request(
            "POST",
            endpoint,
            json=payload,
            headers={
                "Authorization": f"Bearer {self._token}",
                "Accept": "image/png",
            },
        )
        if (
            isinstance(response, PermanentFailure)
            and response.status_code in ROTATE_STATUSES
        ):
            logger.info(
                "Hugging Face endpoint %s unavailable (%s)", endpoint, response.cause
            )
            return TransientFailure(
                cause=f"endpoint unavailable: {response.cause}",
                status_code=response.status_code,
            )
        if not isinstance(response, httpx.Response):
            return response

        content_type = response.headers.get("content-type", "image/png").split(";")[0]
        if not content_type.startswith("image/"):
            return ValidationFailure(
                cause=f"Hugging Face returned {content_type}, not an image"
            )
        return Success(
            ImagePayload(
                data=response.content,
                content_type=content_type,
                placeholder=content_type == "image/svg+xml",
            )
        )


__all__ = ["HF_ENDPOINTS", "HuggingFaceProvider", "MAX_DIMENSION", "ROTATE_STATUSES"]
