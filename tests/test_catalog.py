"""Tests for the switch catalog store."""

from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from keyswitch_api.catalog import (
    SEED_ENTRIES,
    SEED_MANUFACTURERS,
    CatalogEntry,
    CatalogRepository,
    SeedCatalogRepository,
    create_catalog_repository,
)
from keyswitch_api.errors import CatalogUnavailableError


class TestCatalogEntry:
    """Tests for CatalogEntry."""

    def test_describe_full_entry(self):
        """Test description with force, housings and stem."""
        entry = CatalogEntry(
            name="Gateron Yellow",
            manufacturer="Gateron",
            category="linear",
            numeric_attributes={"actuation_force": 50.0},
            top_housing="PC",
            bottom_housing="Nylon",
            stem="POM",
        )
        assert entry.describe() == "Linear by Gateron - 50g, (PC/Nylon/POM stem)"

    def test_describe_same_housings_collapsed(self):
        """Test that identical top and bottom housings are named once."""
        entry = CatalogEntry(
            name="NovelKeys Cream",
            manufacturer="NovelKeys",
            category="linear",
            top_housing="POM",
            bottom_housing="POM",
            stem="POM",
        )
        assert entry.describe() == "Linear by NovelKeys - (POM/POM stem)"

    def test_describe_minimal_entry(self):
        """Test description without attributes."""
        entry = CatalogEntry(name="Mystery", manufacturer="Outemu")
        assert entry.describe() == "Switch by Outemu"

    def test_numeric_attributes_are_read_only(self):
        """Test attributes cannot be changed through a shared entry."""
        source = {"actuation_force": 50.0}
        entry = CatalogEntry(name="Gateron Yellow", manufacturer="Gateron", numeric_attributes=source)

        with pytest.raises(TypeError):
            entry.numeric_attributes["actuation_force"] = 35.0
        with pytest.raises(TypeError):
            SEED_ENTRIES[0].numeric_attributes["actuation_force"] = 35.0

        source["actuation_force"] = 35.0
        assert entry.numeric_attributes["actuation_force"] == 50.0


class TestSeedCatalogRepository:
    """Tests for the in-memory seed repository."""

    def test_names_sorted(self, seed_repository):
        """Test product names are returned in name order."""
        names = seed_repository.list_all_product_names()
        assert names == sorted(names)
        assert len(names) == len(SEED_ENTRIES)
        assert "Cherry MX Red" in names

    def test_manufacturers_and_categories(self, seed_repository):
        """Test distinct manufacturers and categories."""
        assert "Gateron" in seed_repository.list_all_manufacturers()
        assert seed_repository.list_all_categories() == ["clicky", "linear", "tactile"]

    def test_find_products_matching_text(self, seed_repository):
        """Test case-insensitive containment matching."""
        matches = seed_repository.find_products_matching_text("  mx re ")
        assert [entry.name for entry in matches] == ["Cherry MX Red"]
        assert seed_repository.find_products_matching_text("   ") == []

    def test_custom_entries(self):
        """Test a repository over custom entries."""
        repository = SeedCatalogRepository(
            entries=[
                CatalogEntry(name="B", manufacturer="X"),
                CatalogEntry(name="A", manufacturer="Y"),
            ]
        )
        assert repository.list_all_product_names() == ["A", "B"]
        assert repository.list_all_manufacturers() == ["X", "Y"]

    def test_seed_manufacturers_without_products(self, seed_repository):
        """Test the default seed lists every seed manufacturer, with or without products."""
        manufacturers = seed_repository.list_all_manufacturers()
        assert manufacturers == list(SEED_MANUFACTURERS)
        assert "Outemu" in manufacturers
        assert "TTC" in manufacturers


class TestCatalogRepository:
    """Tests for the SQL repository against in-memory SQLite."""

    def test_list_all_product_names(self, sqlite_repository):
        """Test names come back sorted from the store."""
        names = sqlite_repository.list_all_product_names()
        assert names == sorted(entry.name for entry in SEED_ENTRIES)

    def test_list_all_manufacturers(self, sqlite_repository):
        """Test manufacturers are distinct and sorted."""
        manufacturers = sqlite_repository.list_all_manufacturers()
        assert manufacturers == sorted({entry.manufacturer for entry in SEED_ENTRIES})

    def test_list_all_categories(self, sqlite_repository):
        """Test categories are distinct."""
        assert sqlite_repository.list_all_categories() == ["clicky", "linear", "tactile"]

    def test_list_all_entries_round_trip(self, sqlite_repository):
        """Test entries keep their attributes through the store."""
        entries = {entry.name: entry for entry in sqlite_repository.list_all_entries()}
        red = entries["Cherry MX Red"]

        assert red.manufacturer == "Cherry"
        assert red.category == "linear"
        assert red.numeric_attributes["actuation_force"] == 45
        assert red.stem == "POM"

    def test_find_products_matching_text(self, sqlite_repository):
        """Test case-insensitive substring search."""
        matches = sqlite_repository.find_products_matching_text("BOX")
        assert [entry.name for entry in matches] == [
            "Kailh Box Jade",
            "Kailh Box Red",
            "Kailh Box White",
        ]

    def test_find_products_escapes_wildcards(self, sqlite_repository):
        """Test that LIKE wildcards in the pattern are literal."""
        assert sqlite_repository.find_products_matching_text("%") == []

    def test_find_products_respects_limit(self, sqlite_repository):
        """Test the match limit caps results."""
        limited = CatalogRepository(engine=sqlite_repository.engine, match_limit=2)
        assert len(limited.find_products_matching_text("e")) == 2

    def test_query_error_raises_catalog_unavailable(self):
        """Test that store errors surface as CatalogUnavailableError."""
        repository = CatalogRepository(engine=MagicMock())
        session = MagicMock()
        session.__enter__.return_value = session
        session.scalars.side_effect = OperationalError("SELECT", {}, Exception("db down"))

        with patch.object(repository, "_session_factory", return_value=session):
            with pytest.raises(CatalogUnavailableError, match="list_all_product_names failed"):
                repository.list_all_product_names()


class TestCreateCatalogRepository:
    """Tests for create_catalog_repository."""

    def test_mock_catalog_uses_seed(self, mock_settings):
        """Test MOCK_CATALOG=true selects the seed repository."""
        mock_settings(mock_catalog="true")
        assert isinstance(create_catalog_repository(), SeedCatalogRepository)

    def test_store_repository(self, mock_settings):
        """Test the SQL repository is used otherwise."""
        mock_settings(mock_catalog="false", database_url="sqlite://")
        repository = create_catalog_repository()
        assert isinstance(repository, CatalogRepository)
        repository.engine.dispose()
