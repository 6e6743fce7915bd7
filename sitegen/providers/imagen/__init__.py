"""Imagen primary image-generation provider."""

from .lib import DEFAULT_IMAGEN_MODEL, IMAGEN_BASE_URL, ImagenProvider

__all__ = ["DEFAULT_IMAGEN_MODEL", "IMAGEN_BASE_URL", "ImagenProvider"]
