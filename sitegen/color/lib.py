"""Colour utilities for generated palettes.

Implements the WCAG 2.x relative luminance formula used to choose legible
text over palette colours, plus a saturation boost that keeps
model-supplied colours vibrant.
"""

from __future__ import annotations

import colorsys
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sitegen.schema import DesignSpec

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

DARK_TEXT = "#1A1A1A"
LIGHT_TEXT = "#FFFFFF"
LUMINANCE_THRESHOLD = 0.5
MIN_CONTRAST_RATIO = 4.5

# Colours with HLS saturation below this are boosted
MUTED_SATURATION = 0.5
_VIBRANT_SATURATION = 0.75

_HEX_RE = re.compile(r"^#?([0-9A-Fa-f]{3}|[0-9A-Fa-f]{6})$")


def normalize_hex(value: str) -> str:
    """Normalize a hex colour to ``#RRGGBB`` upper case.

    Accepts an optional leading ``#`` and ``RGB`` shorthand.

    Raises:
        ValueError: If the value is not a 3 or 6 digit hex colour.
    """
    match = _HEX_RE.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise ValueError(f"Invalid hex colour: {value!r}")
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(c * 2 for c in digits)
    return f"#{digits.upper()}"


def parse_hex(value: str) -> tuple[int, int, int]:
    """Parse a hex colour into an (r, g, b) tuple of 0-255 ints."""
    digits = normalize_hex(value)[1:]
    return (int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))


def to_hex(rgb: tuple[int, int, int]) -> str:
    """Format an (r, g, b) tuple as ``#RRGGBB``."""
    r, g, b = (max(0, min(255, round(c))) for c in rgb)
    return f"#{r:02X}{g:02X}{b:02X}"


def _linearize(channel: int) -> float:
    c = channel / 255
    if c <= 0.03928:
        return c / 12.92
    return ((c + 0.055) / 1.055) ** 2.4


def relative_luminance(value: str) -> float:
    """WCAG relative luminance of a hex colour, in [0, 1]."""
    r, g, b = (_linearize(c) for c in parse_hex(value))
    return 0.2126 * r + 0.7152 * g + 0.0722 * b


def contrast_ratio(first: str, second: str) -> float:
    """WCAG contrast ratio between two colours, in [1, 21]."""
    l1 = relative_luminance(first)
    l2 = relative_luminance(second)
    lighter, darker = max(l1, l2), min(l1, l2)
    return (lighter + 0.05) / (darker + 0.05)


def contrast_text_color(background: str) -> str:
    """Pick the text colour to place over a background.

    Dark text for backgrounds with luminance above 0.5, light text otherwise.
    """
    if relative_luminance(background) > LUMINANCE_THRESHOLD:
        return DARK_TEXT
    return LIGHT_TEXT


def _to_hls(value: str) -> tuple[float, float, float]:
    r, g, b = parse_hex(value)
    return colorsys.rgb_to_hls(r / 255, g / 255, b / 255)


def is_muted(value: str) -> bool:
    """True when the colour's saturation is below the vibrancy floor.

    Greys (zero saturation) count as muted.
    """
    _, _, saturation = _to_hls(value)
    return saturation < MUTED_SATURATION


def vibrant(value: str) -> str:
    """Return a vibrant version of the colour.

    Muted colours have their HLS saturation raised while hue and lightness
    are preserved; already vibrant colours are returned normalized. Pure
    greys have no hue to saturate and are returned unchanged.
    """
    normalized = normalize_hex(value)
    hue, lightness, saturation = _to_hls(normalized)
    if saturation >= MUTED_SATURATION:
        return normalized
    r, g, b = parse_hex(normalized)
    if r == g == b:
        return normalized
    boosted = colorsys.hls_to_rgb(hue, lightness, _VIBRANT_SATURATION)
    return to_hex(tuple(c * 255 for c in boosted))


@dataclass(frozen=True)
class PaletteColor:
    """A background colour paired with its legible text colour."""

    background: str
    text: str

    @property
    def luminance(self) -> float:
        return relative_luminance(self.background)

    @property
    def contrast(self) -> float:
        return contrast_ratio(self.background, self.text)

    @classmethod
    def for_background(cls, background: str) -> PaletteColor:
        background = normalize_hex(background)
        return cls(background=background, text=contrast_text_color(background))


@dataclass(frozen=True)
class Palette:
    """Background/text pairs for a design spec's three brand colours."""

    primary: PaletteColor
    secondary: PaletteColor
    accent: PaletteColor

    @classmethod
    def from_spec(cls, spec: DesignSpec) -> Palette:
        return cls(
            primary=PaletteColor.for_background(spec.primary_color),
            secondary=PaletteColor.for_background(spec.secondary_color),
            accent=PaletteColor.for_background(spec.accent_color),
        )

    def as_dict(self) -> dict[str, dict[str, str]]:
        return {
            name: {"background": color.background, "text": color.text}
            for name, color in (
                ("primary", self.primary),
                ("secondary", self.secondary),
                ("accent", self.accent),
            )
        }
