"""Unit tests for the schema module."""

import base64
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime

import httpx
import pytest
from pydantic import ValidationError

from sitegen.schema import (
    AcquiredImage,
    AcquisitionReport,
    DesignPackage,
    DesignSpec,
    GeneratedImages,
    ImagePayload,
    ImagePrompts,
    ImageRequest,
    ImageSlot,
    PermanentFailure,
    RateLimited,
    ResultKind,
    Success,
    TransientFailure,
    ValidationFailure,
    classify_exception,
    classify_response,
    parse_retry_after,
)


def _wire_spec(**overrides):
    data = {
        "primaryColor": "#ff6b35",
        "secondaryColor": "#1A1A2E",
        "accentColor": "#0bd",
        "heroTitle": "Sweet Haven",
        "heroSubtitle": "Fresh bread every morning",
        "sections": ["Home", "Menu", "Contact"],
        "features": ["Sourdough", "Pastries", "Catering"],
        "imagePrompts": {
            "hero": "Rustic bakery counter",
            "feature1": "Sourdough loaves",
            "feature2": "Croissants",
            "feature3": "Cake display",
        },
        "unexpected": "ignored",
    }
    data.update(overrides)
    return data


_IMAGES = GeneratedImages(
    hero="https://example.com/h.jpg",
    feature1="https://example.com/1.jpg",
    feature2="https://example.com/2.jpg",
    feature3="https://example.com/3.jpg",
)


class TestDesignSpec:
    """Tests for DesignSpec parsing and lifecycle."""

    @pytest.mark.unit
    def test_parses_wire_format(self):
        """camelCase wire names map to snake_case attributes."""
        spec = DesignSpec.model_validate(_wire_spec())
        assert spec.hero_title == "Sweet Haven"
        assert spec.image_prompts.feature2 == "Croissants"
        assert spec.generated_images is None

    @pytest.mark.unit
    def test_colors_normalized(self):
        """Colours are upper-cased and shorthand expanded."""
        spec = DesignSpec.model_validate(_wire_spec())
        assert spec.primary_color == "#FF6B35"
        assert spec.accent_color == "#00BBDD"

    @pytest.mark.unit
    @pytest.mark.parametrize("bad", ["orange", "#12345", 123, None])
    def test_invalid_color_rejected(self, bad):
        """Non-hex colours fail validation."""
        with pytest.raises(ValidationError):
            DesignSpec.model_validate(_wire_spec(primaryColor=bad))

    @pytest.mark.unit
    def test_missing_field_rejected(self):
        """Required fields must be present."""
        data = _wire_spec()
        del data["heroTitle"]
        with pytest.raises(ValidationError):
            DesignSpec.model_validate(data)

    @pytest.mark.unit
    def test_blank_sections_rejected(self):
        """Lists of only blank strings fail validation."""
        with pytest.raises(ValidationError):
            DesignSpec.model_validate(_wire_spec(sections=["", "  "]))

    @pytest.mark.unit
    def test_with_images_once(self):
        """Images attach exactly once."""
        spec = DesignSpec.model_validate(_wire_spec())
        final = spec.with_images(_IMAGES)
        assert final.is_complete
        assert not spec.is_complete
        with pytest.raises(ValueError, match="already attached"):
            final.with_images(_IMAGES)

    @pytest.mark.unit
    def test_frozen(self):
        """Specs cannot be mutated in place."""
        spec = DesignSpec.model_validate(_wire_spec())
        with pytest.raises(ValidationError):
            spec.hero_title = "Changed"

    @pytest.mark.unit
    def test_to_wire_uses_aliases(self):
        """Serialization uses camelCase and omits unset optionals."""
        wire = DesignSpec.model_validate(_wire_spec()).with_images(_IMAGES).to_wire()
        assert wire["primaryColor"] == "#FF6B35"
        assert wire["generatedImages"]["hero"] == "https://example.com/h.jpg"
        assert "designStyle" not in wire
        assert "unexpected" not in wire

    @pytest.mark.unit
    def test_default_spec(self):
        """Default spec uses the documented palette and sections."""
        spec = DesignSpec.default("Sweet Haven", "")
        assert (spec.primary_color, spec.secondary_color, spec.accent_color) == (
            "#FF6B35",
            "#1A1A2E",
            "#00B4D8",
        )
        assert spec.sections == ["Home", "About", "Services", "Contact"]
        assert len(spec.features) == 6
        assert "Sweet Haven" in spec.hero_title
        assert "general business" in spec.hero_subtitle


class TestSlotModels:
    """Tests for ImagePrompts and GeneratedImages."""

    @pytest.mark.unit
    def test_empty_prompt_rejected(self):
        """Blank prompts fail validation."""
        with pytest.raises(ValidationError):
            ImagePrompts(hero=" ", feature1="a", feature2="b", feature3="c")

    @pytest.mark.unit
    def test_for_slot_and_as_list(self):
        """Slot accessors follow slot order."""
        assert _IMAGES.for_slot(ImageSlot.FEATURE1) == "https://example.com/1.jpg"
        assert _IMAGES.as_list()[0] == "https://example.com/h.jpg"

    @pytest.mark.unit
    def test_from_mapping_requires_all_slots(self):
        """Partial mappings are rejected."""
        with pytest.raises(ValueError, match="Missing image slots"):
            GeneratedImages.from_mapping({ImageSlot.HERO: "x"})


class TestImageRequest:
    """Tests for ImageRequest."""

    @pytest.mark.unit
    def test_slot_defaults(self):
        """Hero is 1920x1080, features are 1200x800."""
        hero = ImageRequest.for_slot(ImageSlot.HERO, "p", "bakery")
        feature = ImageRequest.for_slot(ImageSlot.FEATURE3, "p", "bakery")
        assert (hero.target_width, hero.target_height) == (1920, 1080)
        assert (feature.target_width, feature.target_height) == (1200, 800)

    @pytest.mark.unit
    def test_non_positive_dimensions_rejected(self):
        """Dimensions must be positive."""
        with pytest.raises(ValueError):
            ImageRequest(ImageSlot.HERO, "p", "bakery", 0, 100)


class TestImagePayload:
    """Tests for ImagePayload."""

    @pytest.mark.unit
    def test_binary_reference_is_data_uri(self):
        """Bytes render as a base64 data URI."""
        payload = ImagePayload(data=b"\x89PNG", content_type="image/png")
        assert payload.size == 4
        assert payload.reference == "data:image/png;base64," + base64.b64encode(
            b"\x89PNG"
        ).decode("ascii")

    @pytest.mark.unit
    def test_url_reference(self):
        """URL payloads reference the URL directly."""
        payload = ImagePayload(url="https://example.com/x.jpg")
        assert payload.reference == "https://example.com/x.jpg"
        assert payload.size is None

    @pytest.mark.unit
    def test_exactly_one_source(self):
        """Exactly one of url and data is required."""
        with pytest.raises(ValueError):
            ImagePayload()
        with pytest.raises(ValueError):
            ImagePayload(url="u", data=b"d")


class TestDesignPackage:
    """Tests for DesignPackage and AcquisitionReport."""

    @pytest.mark.unit
    def test_requires_complete_spec(self):
        """Packages cannot be built from specs without images."""
        spec = DesignSpec.model_validate(_wire_spec())
        with pytest.raises(ValueError):
            DesignPackage(spec=spec, report=AcquisitionReport())

    @pytest.mark.unit
    def test_to_dict(self):
        """Serialization includes spec and per-slot report."""
        spec = DesignSpec.model_validate(_wire_spec()).with_images(_IMAGES)
        report = AcquisitionReport(
            images={
                ImageSlot.HERO: AcquiredImage(ImageSlot.HERO, _IMAGES.hero, "catalog")
            }
        )
        package = DesignPackage(spec=spec, report=report)
        data = package.to_dict()
        assert data["designSpec"]["heroTitle"] == "Sweet Haven"
        assert data["report"]["slots"][0] == {
            "slot": "hero",
            "tier": "catalog",
            "outcomes": [],
        }
        assert package.images is spec.generated_images
        assert report.degraded_slots(("imagen",)) == [ImageSlot.HERO]


class TestProviderResults:
    """Tests for result variants and HTTP classification."""

    @pytest.mark.unit
    def test_variant_flags(self):
        """Only transient and rate-limited results are retryable."""
        assert Success("x").ok
        assert RateLimited().retryable
        assert TransientFailure("boom").retryable
        assert not PermanentFailure("nope").retryable
        assert not ValidationFailure("tiny").retryable
        assert ValidationFailure("tiny").kind is ResultKind.VALIDATION

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "status,expected",
        [
            (200, None),
            (204, None),
            (429, RateLimited),
            (408, TransientFailure),
            (500, TransientFailure),
            (503, TransientFailure),
            (400, PermanentFailure),
            (401, PermanentFailure),
            (404, PermanentFailure),
        ],
    )
    def test_classify_response(self, status, expected):
        """Status codes map to the documented variants."""
        result = classify_response(status, {})
        if expected is None:
            assert result is None
        else:
            assert isinstance(result, expected)

    @pytest.mark.unit
    def test_rate_limit_reads_retry_after(self):
        """Retry-After seconds are carried on RateLimited."""
        headers = httpx.Headers({"Retry-After": "7"})
        result = classify_response(429, headers)
        assert result == RateLimited(retry_after=7.0, cause="HTTP 429")

    @pytest.mark.unit
    def test_parse_retry_after_http_date(self):
        """HTTP dates convert to seconds from now."""
        when = datetime.now(timezone.utc) + timedelta(seconds=30)
        seconds = parse_retry_after(format_datetime(when, usegmt=True))
        assert 25 <= seconds <= 31

    @pytest.mark.unit
    @pytest.mark.parametrize("value", [None, "", "soon"])
    def test_parse_retry_after_invalid(self, value):
        """Absent or garbage values give None."""
        assert parse_retry_after(value) is None

    @pytest.mark.unit
    def test_classify_exception(self):
        """Transport errors and timeouts are transient."""
        request = httpx.Request("GET", "https://example.com")
        assert isinstance(
            classify_exception(httpx.ConnectError("down", request=request)),
            TransientFailure,
        )
        assert isinstance(
            classify_exception(httpx.ReadTimeout("slow", request=request)),
            TransientFailure,
        )
        assert isinstance(classify_exception(TimeoutError()), TransientFailure)
        assert isinstance(classify_exception(KeyError("x")), PermanentFailure)
