"""Unsplash stock-photo search.

With an access key the official search API is used. Without one the
keyless source endpoint builds a URL directly from the search terms.
Either way the URL is verified reachable before the tier accepts it.
"""

import logging
from urllib.parse import quote

import httpx

from sitegen.catalog import sized_url
from sitegen.schema import (
    ImagePayload,
    ProviderResult,
    Success,
    ValidationFailure,
)

from ..lib import HttpProvider, StockPhotoProvider, register_provider

logger = logging.getLogger(__name__)

UNSPLASH_API_URL = "https://api.unsplash.com"
UNSPLASH_SOURCE_URL = "https://source.unsplash.com"

MAX_SOURCE_WIDTH = 1920
MAX_SOURCE_HEIGHT = 1080


def orientation_for(width: int, height: int) -> str:
    """Unsplash orientation filter for the target dimensions."""
    if width > height:
        return "landscape"
    if height > width:
        return "portrait"
    return "squarish"


@register_provider
class UnsplashProvider(HttpProvider, StockPhotoProvider):
    """Stock photo lookup on Unsplash."""

    provider_name = "unsplash"

    def __init__(
        self,
        client: httpx.AsyncClient,
        access_key: str | None = None,
        timeout: float = 15.0,
    ):
        super().__init__(client, timeout)
        self._access_key = access_key

    @property
    def name(self) -> str:
        return self.provider_name

    @property
    def uses_api(self) -> bool:
        return bool(self._access_key)

    def source_url(self, terms: str, width: int, height: int) -> str:
        """Keyless source URL for the given terms and size."""
        w = min(width, MAX_SOURCE_WIDTH)
        h = min(height, MAX_SOURCE_HEIGHT)
        return f"{UNSPLASH_SOURCE_URL}/{w}x{h}/?{quote(terms)}"

    async def search(self, terms: str, width: int, height: int) -> ProviderResult:
        terms = terms.strip()
        if not terms:
            return ValidationFailure(cause="empty search terms")
        if not self.uses_api:
            return Success(ImagePayload(url=self.source_url(terms, width, height)))

        response = await self._request(
            "GET",
            f"{UNSPLASH_API_URL}/search/photos",
            params={
                "query": terms,
                "per_page": 1,
                "orientation": orientation_for(width, height),
            },
            headers={
                "Authorization": f"Client-ID {self._access_key}",
                "Accept-Version": "v1",
            },
        )
        if not isinstance(response, httpx.Response):
            return response

        try:
            results = response.json().get("results") or []
        except ValueError:
            return ValidationFailure(cause="Unsplash returned non-JSON body")
        if not results:
            return ValidationFailure(cause=f"no Unsplash results for '{terms}'")

        raw = (results[0].get("urls") or {}).get("raw")
        if not raw:
            return ValidationFailure(cause="Unsplash result has no image URL")
        return Success(ImagePayload(url=sized_url(raw, width, height)))

    async def verify(self, url: str) -> bool:
        try:
            response = await self.client.head(
                url, timeout=self.timeout, follow_redirects=True
            )
            if response.status_code == 405:
                response = await self.client.get(
                    url, timeout=self.timeout, follow_redirects=True
                )
        except httpx.HTTPError as e:
            logger.debug("Verification of %s failed: %s", url, e)
            return False
        return response.is_success


__all__ = [
    "UNSPLASH_API_URL",
    "UNSPLASH_SOURCE_URL",
    "UnsplashProvider",
    "orientation_for",
]
