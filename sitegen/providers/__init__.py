"""Image providers for sitegen.

Each adapter lives in its own subpackage and registers itself on import.

Example:
    >>> from sitegen.providers import create_image_providers, list_providers
    >>> list_providers()
    ['huggingface', 'imagen', 'unsplash']
"""

from .lib import (
    HttpProvider,
    ImageProvider,
    StockPhotoProvider,
    create_image_providers,
    create_stock_provider,
    get_provider_class,
    list_providers,
    register_provider,
)

# Import adapters to populate the registry
from .huggingface import HuggingFaceProvider
from .imagen import ImagenProvider
from .unsplash import UnsplashProvider

__all__ = [
    # Base classes
    "HttpProvider",
    "ImageProvider",
    "StockPhotoProvider",
    # Registry
    "register_provider",
    "list_providers",
    "get_provider_class",
    # Factories
    "create_image_providers",
    "create_stock_provider",
    # Adapters
    "HuggingFaceProvider",
    "ImagenProvider",
    "UnsplashProvider",
]
