"""Tests for palette colour utilities."""

import pytest

from .lib import (
    DARK_TEXT,
    LIGHT_TEXT,
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


class TestNormalizeHex:
    """Tests for hex parsing and normalization."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("#ff6b35", "#FF6B35"),
            ("FF6B35", "#FF6B35"),
            ("#abc", "#AABBCC"),
            ("  #00b4d8 ", "#00B4D8"),
        ],
    )
    def test_normalizes(self, raw, expected):
        """Accepts case, shorthand and missing hash."""
        assert normalize_hex(raw) == expected

    @pytest.mark.unit
    @pytest.mark.parametrize("raw", ["", "#12345", "#GGGGGG", "red", "#1234567"])
    def test_rejects_invalid(self, raw):
        """Non-hex values raise ValueError."""
        with pytest.raises(ValueError):
            normalize_hex(raw)

    @pytest.mark.unit
    def test_parse_and_format(self):
        """parse_hex and to_hex are inverses."""
        assert parse_hex("#1A2B3C") == (26, 43, 60)
        assert to_hex((26, 43, 60)) == "#1A2B3C"

    @pytest.mark.unit
    def test_to_hex_clamps(self):
        """Out of range channels are clamped."""
        assert to_hex((300, -5, 127.6)) == "#FF0080"


class TestLuminance:
    """Tests for WCAG luminance and contrast."""

    @pytest.mark.unit
    def test_extremes(self):
        """White is 1, black is 0."""
        assert relative_luminance("#FFFFFF") == pytest.approx(1.0)
        assert relative_luminance("#000000") == pytest.approx(0.0)

    @pytest.mark.unit
    def test_orange_is_below_threshold(self):
        """#FF6B35 sits around 0.32."""
        assert relative_luminance("#FF6B35") == pytest.approx(0.32, abs=0.01)

    @pytest.mark.unit
    def test_black_white_ratio(self):
        """Maximum contrast ratio is 21:1."""
        assert contrast_ratio("#000000", "#FFFFFF") == pytest.approx(21.0)
        assert contrast_ratio("#FFFFFF", "#000000") == pytest.approx(21.0)

    @pytest.mark.unit
    def test_same_colour_ratio(self):
        """A colour against itself has ratio 1."""
        assert contrast_ratio("#FF6B35", "#FF6B35") == pytest.approx(1.0)


class TestContrastTextColor:
    """Text colour selection against known backgrounds."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "background,expected",
        [
            ("#FFFFFF", DARK_TEXT),
            ("#000000", LIGHT_TEXT),
            ("#FF6B35", LIGHT_TEXT),
            ("#1A1A2E", LIGHT_TEXT),
            ("#FFFF00", DARK_TEXT),
            ("#00FF00", DARK_TEXT),
            ("#0000FF", LIGHT_TEXT),
        ],
    )
    def test_known_colours(self, background, expected):
        """Dark text above luminance 0.5, light text at or below."""
        assert contrast_text_color(background) == expected

    @pytest.mark.unit
    @pytest.mark.parametrize("background", ["#FFFFFF", "#000000", "#1A1A2E", "#FFFF00"])
    def test_chosen_text_meets_ratio(self, background):
        """Chosen text meets 4.5:1 on extreme backgrounds."""
        text = contrast_text_color(background)
        assert contrast_ratio(background, text) >= 4.5


class TestVibrancy:
    """Tests for muted detection and saturation boost."""

    @pytest.mark.unit
    def test_saturated_colour_not_muted(self):
        """Bright orange is vibrant already."""
        assert not is_muted("#FF6B35")
        assert vibrant("#ff6b35") == "#FF6B35"

    @pytest.mark.unit
    def test_muted_colour_boosted(self):
        """A dusty rose becomes saturated."""
        assert is_muted("#996666")
        boosted = vibrant("#996666")
        assert not is_muted(boosted)
        r, g, b = parse_hex(boosted)
        assert r > g and g == b

    @pytest.mark.unit
    def test_grey_unchanged(self):
        """Pure greys have no hue to boost."""
        assert vibrant("#808080") == "#808080"


class TestPalette:
    """Tests for Palette construction."""

    @pytest.mark.unit
    def test_palette_color_pairs_text(self):
        """PaletteColor picks text and reports contrast."""
        color = PaletteColor.for_background("#ffffff")
        assert color.background == "#FFFFFF"
        assert color.text == DARK_TEXT
        assert color.contrast > 4.5

    @pytest.mark.unit
    def test_from_spec(self):
        """Palette reads the spec's three colours."""
        from sitegen.schema import DesignSpec

        spec = DesignSpec.default("Sweet Haven", "bakery")
        palette = Palette.from_spec(spec)
        assert palette.primary.background == "#FF6B35"
        assert palette.primary.text == LIGHT_TEXT
        assert set(palette.as_dict()) == {"primary", "secondary", "accent"}
