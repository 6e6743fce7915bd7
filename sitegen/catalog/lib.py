"""Curated image catalog: the terminal, never-failing image tier.

A static table maps business-type keywords to four hand-picked stock
photos. Matching is a case-insensitive substring test against the
keywords in a fixed order, so inputs naming several business types
resolve the same way every time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

import httpx

from sitegen.schema import GeneratedImages, ImageSlot

logger = logging.getLogger(__name__)

__all__ = [
    "CATALOG_ENTRIES",
    "DEFAULT_KEYWORD",
    "CatalogEntry",
    "CuratedCatalog",
    "get_catalog",
]

_UNSPLASH = "https://images.unsplash.com/"
DEFAULT_KEYWORD = "business"


@dataclass(frozen=True)
class CatalogEntry:
    """Four base image URLs for one business-type keyword.

    Attributes:
        keyword: Catalog key, also the primary match term.
        images: Base URLs in slot order (hero, feature1-3).
        aliases: Additional match terms.
    """

    keyword: str
    images: tuple[str, str, str, str]
    aliases: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if len(self.images) != 4 or not all(self.images):
            raise ValueError(f"Catalog entry {self.keyword!r} needs 4 images")

    @property
    def terms(self) -> tuple[str, ...]:
        return (self.keyword, *self.aliases)

    def matches(self, business_type: str) -> bool:
        """Case-insensitive substring match of any term in business_type."""
        text = business_type.lower()
        return any(term in text for term in self.terms)

    def base_url(self, slot: ImageSlot) -> str:
        return self.images[list(ImageSlot).index(slot)]


def _entry(keyword: str, *photos: str, aliases: tuple[str, ...] = ()) -> CatalogEntry:
    return CatalogEntry(
        keyword=keyword,
        images=tuple(f"{_UNSPLASH}photo-{photo}" for photo in photos),
        aliases=aliases,
    )


# Order matters: the first matching keyword wins.
CATALOG_ENTRIES: tuple[CatalogEntry, ...] = (
    _entry(
        "bakery",
        "1509440159596-0249088772ff",
        "1555507036-ab1f4038808a",
        "1517433670267-08bbd4be890f",
        "1486427944299-d1955d23e34d",
    ),
    _entry(
        "restaurant",
        "1414235077428-338989a2e8c0",
        "1504674900247-0877df9cc836",
        "1517248135467-4c7edcad34c4",
        "1476224203421-9ac39bcb3327",
    ),
    _entry(
        "fitness",
        "1534438327276-14e5300c3a48",
        "1571019613454-1cb2f99b2d8b",
        "1517836357463-d25dfeac3438",
        "1574680088814-a440b08b9c43",
    ),
    _entry(
        "gym",
        "1534438327276-14e5300c3a48",
        "1571019613454-1cb2f99b2d8b",
        "1517836357463-d25dfeac3438",
        "1574680088814-a440b08b9c43",
    ),
    _entry(
        "consulting",
        "1454165804606-c3d57bc86b40",
        "1552664730-d307ca884978",
        "1600880292203-757bb62b4baf",
        "1542744173-8e7e53415bb0",
    ),
    _entry(
        "business",
        "1497366216548-37526070297c",
        "1557804506-669a67965ba0",
        "1522071820081-009f0129c71c",
        "1553877522-43269d4ea984",
    ),
    _entry(
        "office",
        "1497366216548-37526070297c",
        "1497366811353-6870744d04b2",
        "1542744094-24638eff58bb",
        "1556761175-4b46a572b786",
    ),
    _entry(
        "coffee",
        "1501339847302-ac426a4a7cbb",
        "1509042239860-f550ce710b93",
        "1442512595331-e89e73853f31",
        "1495474472287-4d71bcdd2085",
    ),
    _entry(
        "shop",
        "1441986300917-64674bd600d8",
        "1472851294608-062f824d29cc",
        "1556742049-0cfed4f6a45d",
        "1534452203293-494d7ddbf7e0",
    ),
    _entry(
        "retail",
        "1441986300917-64674bd600d8",
        "1472851294608-062f824d29cc",
        "1556742049-0cfed4f6a45d",
        "1534452203293-494d7ddbf7e0",
    ),
    _entry(
        "tech",
        "1518770660439-4636190af475",
        "1504639725590-34d0984388bd",
        "1451187580459-43490279c0fa",
        "1550751827-4bd374c3f58b",
    ),
    _entry(
        "spa",
        "1544161515-4ab6ce6db874",
        "1540555700478-4be289fbecef",
        "1507652313519-d4e9174996dd",
        "1544161515-4ab6ce6db874",
    ),
    _entry(
        "salon",
        "1560066984-138dadb4c035",
        "1522337660859-02fbefca4702",
        "1582095133179-bfd08e2fc6b3",
        "1562322140-8baeececf3df",
    ),
    _entry(
        "photography",
        "1542038784456-1ea8e935640e",
        "1452587925148-ce544e77e70d",
        "1606857521015-7f9fcf423740",
        "1554048612-b6a482bc67e5",
    ),
    _entry(
        "design",
        "1561070791-2526d30994b5",
        "1572044162444-ad60f128bdea",
        "1558655146-d09347e92766",
        "1600132806370-bf17e65e942f",
    ),
    _entry(
        "marketing",
        "1460925895917-afdab827c52f",
        "1533750516457-a7f992034fec",
        "1557838923-2985c318be48",
        "1542744094-3a31f272c490",
    ),
    _entry(
        "construction",
        "1541888946425-d81bb19240f5",
        "1504917595217-d4dc5ebe6122",
        "1503387762-592deb58ef4e",
        "1590856029826-c7a73142bbf1",
    ),
    _entry(
        "real_estate",
        "1560518883-ce09059eeffa",
        "1512917774080-9991f1c4c750",
        "1580587771525-78b9dba3b914",
        "1600596542815-ffad4c1539a9",
        aliases=("real estate",),
    ),
    _entry(
        "education",
        "1524178232363-1fb2b075b655",
        "1509062522246-3755977927d7",
        "1503676260728-1c00da094a0b",
        "1523050854058-8df90110c9f1",
    ),
    _entry(
        "healthcare",
        "1551601651-2a8555f1a136",
        "1505751172876-fa1923c5c528",
        "1576091160399-112ba8d25d1d",
        "1504439468489-c8920d796a29",
    ),
    _entry(
        "food",
        "1504674900247-0877df9cc836",
        "1476224203421-9ac39bcb3327",
        "1490818387583-1baba5e638af",
        "1498837167922-ddd27525d352",
    ),
)


def sized_url(base_url: str, width: int, height: int) -> str:
    """Parameterize an image URL with crop dimensions.

    Existing query parameters (Unsplash `ixid`/`ixlib`) are kept; sizing
    keys already present are replaced.
    """
    url = httpx.URL(base_url).copy_merge_params(
        {"w": width, "h": height, "fit": "crop", "q": 80, "auto": "format"}
    )
    return str(url)


class CuratedCatalog:
    """Immutable keyword -> image table with deterministic matching."""

    def __init__(
        self,
        entries: tuple[CatalogEntry, ...] = CATALOG_ENTRIES,
        default_keyword: str = DEFAULT_KEYWORD,
    ) -> None:
        self._entries = tuple(entries)
        self._by_keyword: Mapping[str, CatalogEntry] = MappingProxyType(
            {entry.keyword: entry for entry in self._entries}
        )
        if default_keyword not in self._by_keyword:
            raise ValueError(f"Default keyword {default_keyword!r} not in catalog")
        self._default = self._by_keyword[default_keyword]

    @property
    def entries(self) -> tuple[CatalogEntry, ...]:
        return self._entries

    @property
    def keywords(self) -> list[str]:
        return [entry.keyword for entry in self._entries]

    @property
    def default(self) -> CatalogEntry:
        return self._default

    def get(self, keyword: str) -> CatalogEntry | None:
        return self._by_keyword.get(keyword)

    def match(self, business_type: str) -> CatalogEntry:
        """Resolve a business type to its catalog entry.

        Never fails: unmatched (or empty) input yields the default entry.
        """
        text = (business_type or "").lower()
        for entry in self._entries:
            if entry.matches(text):
                logger.debug("Catalog match %r -> %s", business_type, entry.keyword)
                return entry
        logger.debug("No catalog match for %r, using default", business_type)
        return self._default

    def image_for(
        self,
        business_type: str,
        slot: ImageSlot,
        width: int | None = None,
        height: int | None = None,
    ) -> str:
        """Sized catalog URL for one slot; dimensions default to the slot's."""
        default_width, default_height = slot.default_size
        entry = self.match(business_type)
        return sized_url(
            entry.base_url(slot), width or default_width, height or default_height
        )

    def images_for(self, business_type: str) -> GeneratedImages:
        """All four sized catalog images for a business type."""
        return GeneratedImages.from_mapping(
            {slot: self.image_for(business_type, slot) for slot in ImageSlot}
        )


_CATALOG = CuratedCatalog()


def get_catalog() -> CuratedCatalog:
    """Process-wide catalog instance."""
    return _CATALOG
