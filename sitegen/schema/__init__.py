"""Schema module - data model for design packages.

This module provides:
- DesignSpec and its wire (camelCase) representation
- Image slots, requests and provider payloads
- The ProviderResult tagged union shared by every provider adapter

Example usage:
    >>> from sitegen.schema import DesignSpec, ImageSlot
    >>> spec = DesignSpec.model_validate(llm_json)
    >>> ImageSlot.HERO.default_size
    (1920, 1080)
"""

from .lib import (
    DEFAULT_BUSINESS_TYPE,
    AcquiredImage,
    AcquisitionReport,
    DesignPackage,
    DesignSpec,
    GeneratedImages,
    ImagePayload,
    ImagePrompts,
    ImageRequest,
    ImageSlot,
    TierOutcome,
)
from .result import (
    PermanentFailure,
    ProviderResult,
    RateLimited,
    ResultKind,
    Success,
    TransientFailure,
    ValidationFailure,
    classify_exception,
    classify_response,
    parse_retry_after,
)

__all__ = [
    # Design data
    "DEFAULT_BUSINESS_TYPE",
    "DesignPackage",
    "DesignSpec",
    "GeneratedImages",
    "ImagePrompts",
    # Images
    "AcquiredImage",
    "AcquisitionReport",
    "ImagePayload",
    "ImageRequest",
    "ImageSlot",
    "TierOutcome",
    # Provider results
    "PermanentFailure",
    "ProviderResult",
    "RateLimited",
    "ResultKind",
    "Success",
    "TransientFailure",
    "ValidationFailure",
    "classify_exception",
    "classify_response",
    "parse_retry_after",
]
