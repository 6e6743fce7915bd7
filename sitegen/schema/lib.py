"""Design package data model.

Defines the structured design spec returned by the LLM (with camelCase
wire names), the per-slot image request, provider payloads and the final
package handed to callers.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from sitegen.color import normalize_hex

__all__ = [
    "AcquiredImage",
    "AcquisitionReport",
    "DEFAULT_BUSINESS_TYPE",
    "DesignPackage",
    "DesignSpec",
    "GeneratedImages",
    "ImagePayload",
    "ImagePrompts",
    "ImageRequest",
    "ImageSlot",
    "TierOutcome",
]

DEFAULT_BUSINESS_TYPE = "General Business"


class ImageSlot(str, Enum):
    """The four image positions on a generated site."""

    HERO = "hero"
    FEATURE1 = "feature1"
    FEATURE2 = "feature2"
    FEATURE3 = "feature3"

    @property
    def default_size(self) -> tuple[int, int]:
        """(width, height) used when requesting images for this slot."""
        if self is ImageSlot.HERO:
            return (1920, 1080)
        return (1200, 800)


class _SlotModel(BaseModel):
    """Four-slot model keyed by ImageSlot values."""

    model_config = {"frozen": True, "extra": "ignore"}

    hero: str
    feature1: str
    feature2: str
    feature3: str

    def for_slot(self, slot: ImageSlot) -> str:
        return getattr(self, slot.value)

    def as_list(self) -> list[str]:
        return [self.for_slot(slot) for slot in ImageSlot]


class ImagePrompts(_SlotModel):
    """Text prompts for the hero image and three feature images."""

    @field_validator("hero", "feature1", "feature2", "feature3")
    @classmethod
    def _require_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("prompt must not be empty")
        return value


class GeneratedImages(_SlotModel):
    """Image references (URLs or data URIs) for the four slots."""

    @field_validator("hero", "feature1", "feature2", "feature3")
    @classmethod
    def _require_reference(cls, value: str) -> str:
        if not value:
            raise ValueError("image reference must not be empty")
        return value

    @classmethod
    def from_mapping(cls, mapping: dict[ImageSlot, str]) -> GeneratedImages:
        """Build from a slot-keyed mapping that covers every slot."""
        missing = [slot.value for slot in ImageSlot if slot not in mapping]
        if missing:
            raise ValueError(f"Missing image slots: {missing}")
        return cls(**{slot.value: mapping[slot] for slot in ImageSlot})


class DesignSpec(BaseModel):
    """Structured visual and content parameters for one generated site.

    Attributes use snake_case; the wire format (LLM responses and JSON
    output) uses the camelCase aliases. Instances are frozen: images are
    attached once through `with_images`, which returns the final copy.
    """

    model_config = {
        "frozen": True,
        "extra": "ignore",
        "populate_by_name": True,
    }

    primary_color: str = Field(..., alias="primaryColor")
    secondary_color: str = Field(..., alias="secondaryColor")
    accent_color: str = Field(..., alias="accentColor")
    hero_title: str = Field(..., alias="heroTitle", min_length=1)
    hero_subtitle: str = Field(..., alias="heroSubtitle")
    sections: list[str] = Field(..., min_length=1)
    features: list[str] = Field(..., min_length=1)
    image_prompts: ImagePrompts = Field(..., alias="imagePrompts")
    design_style: str | None = Field(default=None, alias="designStyle")
    full_description: str | None = Field(default=None, alias="fullDescription")
    generated_images: GeneratedImages | None = Field(
        default=None, alias="generatedImages"
    )

    @field_validator("primary_color", "secondary_color", "accent_color", mode="before")
    @classmethod
    def _normalize_color(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError(f"colour must be a hex string, got {type(value).__name__}")
        return normalize_hex(value)

    @field_validator("sections", "features")
    @classmethod
    def _drop_blank_items(cls, value: list[str]) -> list[str]:
        cleaned = [item.strip() for item in value if item and item.strip()]
        if not cleaned:
            raise ValueError("list must contain at least one non-empty item")
        return cleaned

    @property
    def is_complete(self) -> bool:
        """True once generated images are attached."""
        return self.generated_images is not None

    def with_images(self, images: GeneratedImages) -> DesignSpec:
        """Return the final spec with generated images attached.

        Raises:
            ValueError: If images were already attached.
        """
        if self.generated_images is not None:
            raise ValueError("generatedImages already attached to this spec")
        return self.model_copy(update={"generated_images": images})

    def with_colors(self, primary: str, secondary: str, accent: str) -> DesignSpec:
        """Return a copy with replaced (normalized) brand colours."""
        return self.model_copy(
            update={
                "primary_color": normalize_hex(primary),
                "secondary_color": normalize_hex(secondary),
                "accent_color": normalize_hex(accent),
            }
        )

    def to_wire(self) -> dict[str, Any]:
        """Serialize with camelCase names, omitting unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")

    @classmethod
    def default(cls, business_name: str, business_type: str = "") -> DesignSpec:
        """Minimal spec used when the LLM spec cannot be obtained.

        Uses a fixed vibrant palette, the business name as title and generic
        sections and features.
        """
        name = business_name.strip() or "Your Business"
        kind = business_type.strip() or DEFAULT_BUSINESS_TYPE
        subject = f"{kind.lower()} business"
        return cls(
            primary_color="#FF6B35",
            secondary_color="#1A1A2E",
            accent_color="#00B4D8",
            hero_title=f"Welcome to {name}",
            hero_subtitle=f"Quality {kind.lower()} services you can trust",
            sections=["Home", "About", "Services", "Contact"],
            features=[
                "Professional Service",
                "Experienced Team",
                "Customer Satisfaction",
                "Competitive Pricing",
                "Quality Guaranteed",
                "Easy Booking",
            ],
            image_prompts=ImagePrompts(
                hero=f"Welcoming storefront of a {subject}, warm natural light, "
                "wide composition, inviting professional mood",
                feature1=f"Team at work in a {subject}, candid, soft daylight",
                feature2=f"Close-up of products or services of a {subject}, "
                "shallow depth of field",
                feature3=f"Happy customers at a {subject}, bright and friendly",
            ),
            design_style="modern",
        )


@dataclass(frozen=True)
class ImageRequest:
    """Read-only request for one image slot."""

    slot: ImageSlot
    prompt: str
    business_type: str
    target_width: int
    target_height: int

    def __post_init__(self) -> None:
        if self.target_width <= 0 or self.target_height <= 0:
            raise ValueError(
                f"Image dimensions must be positive, got "
                f"{self.target_width}x{self.target_height}"
            )

    @classmethod
    def for_slot(cls, slot: ImageSlot, prompt: str, business_type: str) -> ImageRequest:
        """Create a request using the slot's default dimensions."""
        width, height = slot.default_size
        return cls(
            slot=slot,
            prompt=prompt,
            business_type=business_type,
            target_width=width,
            target_height=height,
        )


@dataclass(frozen=True)
class ImagePayload:
    """Image returned by a provider: either a URL or raw bytes.

    Attributes:
        url: Remote image URL.
        data: Binary image body.
        content_type: MIME type of `data`.
        placeholder: Set by adapters for locally generated diagnostic
            images, which must never count as a real result.
    """

    url: str | None = None
    data: bytes | None = None
    content_type: str = "image/png"
    placeholder: bool = False

    def __post_init__(self) -> None:
        if (self.url is None) == (self.data is None):
            raise ValueError("ImagePayload needs exactly one of url or data")

    @property
    def size(self) -> int | None:
        """Byte length of binary payloads, None for URLs."""
        return len(self.data) if self.data is not None else None

    @property
    def reference(self) -> str:
        """URL, or a base64 data URI for binary payloads."""
        if self.url is not None:
            return self.url
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.content_type};base64,{encoded}"


@dataclass(frozen=True)
class TierOutcome:
    """Outcome of one tier for one slot."""

    tier: str
    kind: str
    detail: str = ""
    attempts: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "tier": self.tier,
            "kind": self.kind,
            "detail": self.detail,
            "attempts": self.attempts,
        }


@dataclass(frozen=True)
class AcquiredImage:
    """Resolved image for one slot and how it was obtained."""

    slot: ImageSlot
    reference: str
    tier: str
    outcomes: tuple[TierOutcome, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "slot": self.slot.value,
            "tier": self.tier,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


@dataclass
class AcquisitionReport:
    """Per-slot record of which tier produced each image.

    Attributes:
        images: Acquired image per slot.
        spec_source: "llm" or "default".
        prompt_source: "llm" or "catalog" when prompt generation failed.
        deadline_expired: True if the overall deadline cut acquisition short.
    """

    images: dict[ImageSlot, AcquiredImage] = field(default_factory=dict)
    spec_source: str = "llm"
    prompt_source: str = "llm"
    deadline_expired: bool = False

    def tier_for(self, slot: ImageSlot) -> str | None:
        image = self.images.get(slot)
        return image.tier if image else None

    def degraded_slots(self, generated_tiers: tuple[str, ...]) -> list[ImageSlot]:
        """Slots not resolved by any of the given generation tiers."""
        return [
            slot
            for slot, image in self.images.items()
            if image.tier not in generated_tiers
        ]

    def to_dict(self) -> dict[str, Any]:
        return {
            "specSource": self.spec_source,
            "promptSource": self.prompt_source,
            "deadlineExpired": self.deadline_expired,
            "slots": [self.images[s].to_dict() for s in ImageSlot if s in self.images],
        }


@dataclass(frozen=True)
class DesignPackage:
    """Final result: the completed spec and its acquisition report."""

    spec: DesignSpec
    report: AcquisitionReport

    def __post_init__(self) -> None:
        if not self.spec.is_complete:
            raise ValueError("DesignPackage requires a spec with generated images")

    @property
    def images(self) -> GeneratedImages:
        return self.spec.generated_images

    def to_dict(self) -> dict[str, Any]:
        return {"designSpec": self.spec.to_wire(), "report": self.report.to_dict()}
