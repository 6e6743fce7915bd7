"""Curated catalog of business-type stock imagery."""

from .lib import (
    CATALOG_ENTRIES,
    DEFAULT_KEYWORD,
    CatalogEntry,
    CuratedCatalog,
    get_catalog,
    sized_url,
)

__all__ = [
    "CATALOG_ENTRIES",
    "DEFAULT_KEYWORD",
    "CatalogEntry",
    "CuratedCatalog",
    "get_catalog",
    "sized_url",
]
