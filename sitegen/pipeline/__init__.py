"""Image acquisition pipeline.

Ordered tiers resolve each image slot, with the curated catalog as the
terminal, always-successful fallback.
"""

from .lib import (
    CATALOG_TIER,
    AcquisitionBatch,
    CatalogTier,
    GenerationTier,
    ImageAcquisitionPipeline,
    ImageTier,
    StockSearchTier,
    TierResult,
    validate_payload,
)

__all__ = [
    "AcquisitionBatch",
    "CATALOG_TIER",
    "CatalogTier",
    "GenerationTier",
    "ImageAcquisitionPipeline",
    "ImageTier",
    "StockSearchTier",
    "TierResult",
    "validate_payload",
]
