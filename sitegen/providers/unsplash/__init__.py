"""Unsplash stock-photo provider."""

from .lib import (
    UNSPLASH_API_URL,
    UNSPLASH_SOURCE_URL,
    UnsplashProvider,
    orientation_for,
)

__all__ = [
    "UNSPLASH_API_URL",
    "UNSPLASH_SOURCE_URL",
    "UnsplashProvider",
    "orientation_for",
]
