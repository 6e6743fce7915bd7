"""sitegen: design-package generation for marketing sites.

Turns a business description into a validated design spec (palette, copy,
sections) plus four images, degrading through image tiers down to a
curated catalog so a complete package is always produced.

Example:
    >>> from sitegen import generate_design_package
    >>> package = generate_design_package("Sweet Haven", "bakery", "warm, rustic")
    >>> package.spec.hero_title
    'Sweet Haven Bakery'
"""

from sitegen.config import PipelineSettings, load_settings
from sitegen.orchestrator import (
    DeadlineExceeded,
    Orchestrator,
    SpecFailurePolicy,
    generate_design_package,
)
from sitegen.schema import DesignPackage, DesignSpec, GeneratedImages, ImageSlot

__version__ = "0.1.0"

__all__ = [
    "DeadlineExceeded",
    "DesignPackage",
    "DesignSpec",
    "GeneratedImages",
    "ImageSlot",
    "Orchestrator",
    "PipelineSettings",
    "SpecFailurePolicy",
    "generate_design_package",
    "load_settings",
]
