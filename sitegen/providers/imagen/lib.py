"""Imagen provider: primary image generation tier.

Calls the Generative Language `:predict` endpoint and reads the first
prediction, which carries either base64 image bytes or an image URL.
"""

import base64
import binascii
import logging

import httpx

from sitegen.schema import (
    ImagePayload,
    ImageRequest,
    PermanentFailure,
    ProviderResult,
    Success,
    ValidationFailure,
)

from ..lib import HttpProvider, ImageProvider, register_provider

logger = logging.getLogger(__name__)

IMAGEN_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_IMAGEN_MODEL = "imagen-3.0-generate-001"

# Aspect ratios accepted by the API, as width / height
_ASPECT_RATIOS = {
    "1:1": 1.0,
    "4:3": 4 / 3,
    "3:4": 3 / 4,
    "16:9": 16 / 9,
    "9:16": 9 / 16,
}

# Base64 strings shorter than this are not image data
_MIN_BASE64_LENGTH = 100


def closest_aspect_ratio(width: int, height: int) -> str:
    """Closest supported aspect ratio for the target dimensions."""
    target = width / height
    return min(_ASPECT_RATIOS, key=lambda k: abs(_ASPECT_RATIOS[k] - target))


@register_provider
class ImagenProvider(HttpProvider, ImageProvider):
    """Google Imagen image generation.

    Example:
        >>> provider = ImagenProvider(client, api_key=settings.gemini_api_key)
        >>> result = await provider.generate(request)
    """

    provider_name = "imagen"

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        model: str = DEFAULT_IMAGEN_MODEL,
        base_url: str = IMAGEN_BASE_URL,
        timeout: float = 15.0,
    ):
        super().__init__(client, timeout)
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")

    @property
    def name(self) -> str:
        return self.provider_name

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/models/{self._model}:predict"

    async def generate(self, request: ImageRequest, attempt: int = 0) -> ProviderResult:
        payload = {
            "instances": [{"prompt": request.prompt}],
            "parameters": {
                "sampleCount": 1,
                "aspectRatio": closest_aspect_ratio(
                    request.target_width, request.target_height
                ),
            },
        }
        response = await self._request(
            "POST",
            self.endpoint,
            json=payload,
            headers={"x-goog-api-key": self._api_key},
        )
        if not isinstance(response, httpx.Response):
            return response

        try:
            data = response.json()
        except ValueError:
            return PermanentFailure(cause="Imagen returned non-JSON body")
        return self._parse_prediction(data)

    def _parse_prediction(self, data: dict) -> ProviderResult:
        predictions = data.get("predictions") or data.get("output") or []
        if not predictions:
            return ValidationFailure(cause="Imagen response has no predictions")

        prediction = predictions[0]
        value = (
            prediction.get("bytesBase64Encoded")
            or prediction.get("image")
            or prediction.get("imageBase64")
        )
        if not isinstance(value, str):
            return ValidationFailure(cause="Imagen prediction has no image")

        if value.startswith(("http://", "https://")):
            return Success(ImagePayload(url=value))

        if len(value) <= _MIN_BASE64_LENGTH:
            return ValidationFailure(cause="Imagen prediction image too short")
        try:
            raw = base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError):
            return ValidationFailure(cause="Imagen prediction is not valid base64")
        mime = prediction.get("mimeType", "image/png")
        return Success(ImagePayload(data=raw, content_type=mime))


__all__ = ["DEFAULT_IMAGEN_MODEL", "IMAGEN_BASE_URL", "ImagenProvider"]
