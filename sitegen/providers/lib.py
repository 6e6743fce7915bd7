"""Image and stock-photo provider abstraction.

Adapters wrap one upstream API each and return a classified
ProviderResult instead of raising. All adapters share one
`httpx.AsyncClient` owned by the orchestrator, so cancelling a slot
cancels its in-flight request.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import httpx

from sitegen.schema import (
    ImageRequest,
    ProviderResult,
    classify_exception,
    classify_response,
)

if TYPE_CHECKING:
    from sitegen.config import PipelineSettings

logger = logging.getLogger(__name__)


class HttpProvider:
    """Shared HTTP plumbing for provider adapters.

    Attributes:
        client: Shared async HTTP client.
        timeout: Per-request timeout in seconds.
    """

    def __init__(self, client: httpx.AsyncClient, timeout: float = 15.0):
        self.client = client
        self.timeout = timeout

    async def _request(
        self, method: str, url: str, **kwargs: Any
    ) -> httpx.Response | ProviderResult:
        """Send a request, returning the 2xx response or a classified failure.

        Cancellation is not intercepted.
        """
        kwargs.setdefault("timeout", self.timeout)
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            return classify_exception(e)
        failure = classify_response(response.status_code, response.headers)
        if failure is not None:
            logger.debug(
                "%s %s -> %s (%s)",
                method,
                url.split("?")[0],
                response.status_code,
                response.text[:200],
            )
            return failure
        return response


class ImageProvider(ABC):
    """Abstract base class for image-generation providers.

    Subclasses must implement:
        - name: Provider identifier string
        - generate: ImageRequest to classified result

    A successful result carries an `ImagePayload` (URL or bytes).
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier string."""
        ...

    @abstractmethod
    async def generate(self, request: ImageRequest, attempt: int = 0) -> ProviderResult:
        """Generate one image.

        Args:
            request: Slot request with prompt and target dimensions.
            attempt: 0-based attempt number (adapters may rotate endpoints).

        Returns:
            Success(ImagePayload) or a classified failure.
        """
        ...


class StockPhotoProvider(ABC):
    """Abstract base class for stock-photo search providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier string."""
        ...

    @abstractmethod
    async def search(self, terms: str, width: int, height: int) -> ProviderResult:
        """Resolve search terms to an image URL.

        Returns:
            Success(ImagePayload(url=...)) or a classified failure.
        """
        ...

    @abstractmethod
    async def verify(self, url: str) -> bool:
        """Check that the URL resolves to a reachable resource."""
        ...


# Provider registry - populated by provider modules on import
_registry: dict[str, type[ImageProvider] | type[StockPhotoProvider]] = {}


def register_provider(provider_cls):
    """Register a provider class under its `provider_name`.

    Example:
        >>> @register_provider
        ... class MyProvider(ImageProvider):
        ...     provider_name = "mine"
    """
    _registry[provider_cls.provider_name] = provider_cls
    return provider_cls


def list_providers() -> list[str]:
    """Names of all registered providers."""
    return sorted(_registry)


def get_provider_class(name: str):
    """Look up a registered provider class.

    Raises:
        KeyError: If no provider with the given name is registered.
    """
    if name not in _registry:
        available = ", ".join(sorted(_registry))
        raise KeyError(f"Unknown provider: {name}. Available: {available}")
    return _registry[name]


def create_image_providers(
    settings: PipelineSettings, client: httpx.AsyncClient
) -> list[ImageProvider]:
    """Build the credentialed image-generation providers in tier order.

    Primary (Imagen) needs GEMINI_API_KEY, secondary (Hugging Face) needs
    HUGGING_FACE_TOKEN. Providers without credentials are skipped.
    """
    providers: list[ImageProvider] = []
    if settings.gemini_api_key:
        providers.append(
            get_provider_class("imagen")(
                client,
                api_key=settings.gemini_api_key,
                model=settings.imagen_model,
                timeout=settings.provider_timeout,
            )
        )
    else:
        logger.info("Imagen disabled: GEMINI_API_KEY not set")
    if settings.hugging_face_token:
        providers.append(
            get_provider_class("huggingface")(
                client,
                token=settings.hugging_face_token,
                timeout=settings.provider_timeout,
            )
        )
    else:
        logger.info("Hugging Face disabled: HUGGING_FACE_TOKEN not set")
    return providers


def create_stock_provider(
    settings: PipelineSettings, client: httpx.AsyncClient
) -> StockPhotoProvider:
    """Build the stock-photo provider (always available)."""
    return get_provider_class("unsplash")(
        client,
        access_key=settings.unsplash_access_key,
        timeout=settings.provider_timeout,
    )


__all__ = [
    "HttpProvider",
    "ImageProvider",
    "StockPhotoProvider",
    "create_image_providers",
    "create_stock_provider",
    "get_provider_class",
    "list_providers",
    "register_provider",
]
