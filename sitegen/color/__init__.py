"""Palette colour utilities: luminance, contrast and vibrancy."""

from .lib import (
    DARK_TEXT,
    LIGHT_TEXT,
    LUMINANCE_THRESHOLD,
    MIN_CONTRAST_RATIO,
    Palette,
    PaletteColor,
    contrast_ratio,
    contrast_text_color,
    is_muted,
    normalize_hex,
    parse_hex,
    relative_luminance,
    to_hex,
    vibrant,
)

__all__ = [
    "DARK_TEXT",
    "LIGHT_TEXT",
    "LUMINANCE_THRESHOLD",
    "MIN_CONTRAST_RATIO",
    "Palette",
    "PaletteColor",
    "contrast_ratio",
    "contrast_text_color",
    "is_muted",
    "normalize_hex",
    "parse_hex",
    "relative_luminance",
    "to_hex",
    "vibrant",
]
