"""Tests for the curated image catalog."""

import httpx
import pytest

from sitegen.schema import GeneratedImages, ImageSlot

from .lib import CATALOG_ENTRIES, CatalogEntry, CuratedCatalog, get_catalog, sized_url

BAKERY_HERO = "https://images.unsplash.com/photo-1509440159596-0249088772ff"


@pytest.fixture
def catalog() -> CuratedCatalog:
    return get_catalog()


class TestMatching:
    """Tests for keyword matching."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "business_type,keyword",
        [
            ("bakery", "bakery"),
            ("Artisan BAKERY & Cafe", "bakery"),
            ("24h Gym", "gym"),
            ("Fitness studio", "fitness"),
            ("Real Estate Agency", "real_estate"),
            ("real_estate", "real_estate"),
            ("Day spa", "spa"),
            ("", "business"),
            ("Quantum widgets", "business"),
        ],
    )
    def test_match(self, catalog, business_type, keyword):
        """Substring match, case-insensitive, default business."""
        assert catalog.match(business_type).keyword == keyword

    @pytest.mark.unit
    def test_first_keyword_wins(self, catalog):
        """Ambiguous inputs resolve by catalog order."""
        assert catalog.match("coffee bakery").keyword == "bakery"
        assert catalog.match("tech consulting").keyword == "consulting"

    @pytest.mark.unit
    def test_none_input(self, catalog):
        """None is treated like an empty type."""
        assert catalog.match(None).keyword == "business"


class TestImages:
    """Tests for sized image references."""

    @pytest.mark.unit
    def test_images_for_bakery(self, catalog):
        """Bakery hero uses the first bakery photo at 1920x1080."""
        images = catalog.images_for("bakery")
        assert isinstance(images, GeneratedImages)
        assert images.hero == sized_url(BAKERY_HERO, 1920, 1080)
        assert images.feature1.endswith("?w=1200&h=800&fit=crop&q=80&auto=format")

    @pytest.mark.unit
    def test_image_for_custom_size(self, catalog):
        """Explicit dimensions override slot defaults."""
        url = catalog.image_for("bakery", ImageSlot.HERO, 640, 480)
        assert url == f"{BAKERY_HERO}?w=640&h=480&fit=crop&q=80&auto=format"

    @pytest.mark.unit
    def test_sized_url_keeps_existing_query(self):
        """Sizing merges into a URL that already has a query string."""
        url = httpx.URL(
            sized_url(
                "https://images.unsplash.com/photo-1?ixid=abc&ixlib=rb-4.0.3", 1200, 800
            )
        )
        assert url.params["ixid"] == "abc"
        assert url.params["ixlib"] == "rb-4.0.3"
        assert url.params["w"] == "1200"
        assert url.params["h"] == "800"
        assert str(url).count("?") == 1

    @pytest.mark.unit
    def test_sized_url_replaces_existing_size(self):
        """Sizing keys already on the URL are overwritten."""
        url = httpx.URL(sized_url(f"{BAKERY_HERO}?w=10&h=10", 640, 480))
        assert url.params.get_list("w") == ["640"]
        assert url.params.get_list("h") == ["480"]

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "business_type",
        ["bakery", "", "Consulting", "unknown", "real estate", "x" * 500, "ü🍞"],
    )
    def test_always_four_references(self, catalog, business_type):
        """Every input yields four non-empty references, deterministically."""
        first = catalog.images_for(business_type).as_list()
        second = catalog.images_for(business_type).as_list()
        assert len(first) == 4
        assert all(first)
        assert first == second


class TestCatalogIntegrity:
    """Tests for the static table."""

    @pytest.mark.unit
    def test_every_entry_has_four_images(self):
        """All entries hold exactly four URLs."""
        for entry in CATALOG_ENTRIES:
            assert len(entry.images) == 4
            assert all(url.startswith("https://") for url in entry.images)

    @pytest.mark.unit
    def test_keywords_unique(self):
        """Keywords are unique."""
        keywords = [entry.keyword for entry in CATALOG_ENTRIES]
        assert len(keywords) == len(set(keywords))

    @pytest.mark.unit
    def test_entry_requires_four_images(self):
        """Entries with the wrong image count are rejected."""
        with pytest.raises(ValueError):
            CatalogEntry(keyword="x", images=("a", "b", "c"))

    @pytest.mark.unit
    def test_unknown_default_rejected(self):
        """The default keyword must exist."""
        with pytest.raises(ValueError):
            CuratedCatalog(default_keyword="missing")
