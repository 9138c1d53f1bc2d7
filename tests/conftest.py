"""Pytest configuration and fixtures."""

import os
from collections.abc import Callable, Iterator

import pytest

from keyswitch_api.config import Settings

# Set test environment variables before importing app modules
os.environ.setdefault("ENVIRONMENT", "development")
# Serve the catalog from seed entries in tests
os.environ.setdefault("MOCK_CATALOG", "true")


@pytest.fixture(autouse=True)
def reset_caches() -> Iterator[None]:
    """Reset cached settings and singletons before each test."""
    from keyswitch_api.catalog_cache import reset_catalog_cache
    from keyswitch_api.config import get_settings
    from keyswitch_api.entity_resolver import reset_entity_resolver
    from keyswitch_api.pipeline import reset_response_pipeline

    get_settings.cache_clear()
    reset_catalog_cache()
    reset_entity_resolver()
    reset_response_pipeline()
    yield
    get_settings.cache_clear()
    reset_catalog_cache()
    reset_entity_resolver()
    reset_response_pipeline()


@pytest.fixture
def mock_settings(monkeypatch: pytest.MonkeyPatch) -> Callable[..., Settings]:
    """Fixture to set test settings."""

    def _mock_settings(**kwargs: str) -> Settings:
        for key, value in kwargs.items():
            monkeypatch.setenv(key.upper(), str(value))
        from keyswitch_api.config import get_settings

        get_settings.cache_clear()
        return get_settings()

    return _mock_settings


@pytest.fixture
def seed_repository():
    """In-memory seed catalog."""
    from keyswitch_api.catalog import SeedCatalogRepository

    return SeedCatalogRepository()


@pytest.fixture
def sqlite_repository():
    """SQL catalog repository over an in-memory SQLite database, loaded with seed entries."""
    from sqlalchemy import create_engine
    from sqlalchemy.pool import StaticPool

    from keyswitch_api.catalog import SEED_ENTRIES, CatalogRepository

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    repository = CatalogRepository(engine=engine)
    repository.load_entries(SEED_ENTRIES)
    yield repository
    engine.dispose()


@pytest.fixture
def catalog_cache(seed_repository):
    """Catalog cache over the seed repository."""
    from keyswitch_api.catalog_cache import CatalogCache

    return CatalogCache(repository=seed_repository, ttl_seconds=300)


@pytest.fixture
def resolver(catalog_cache):
    """Entity resolver over the seed catalog."""
    from keyswitch_api.entity_resolver import EntityResolver

    return EntityResolver(cache=catalog_cache)
