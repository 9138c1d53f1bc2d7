"""Process-wide catalog snapshot with TTL-based refresh.

The cache holds one immutable CatalogSnapshot. Refreshing builds a complete
new snapshot and swaps the reference, so readers always see either the old
or the new snapshot and never a partially updated one.
"""

import re
import time
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Callable, Mapping

import structlog

from keyswitch_api.catalog import (
    SEED_CATEGORIES,
    SEED_ENTRIES,
    SEED_MANUFACTURERS,
    CatalogEntry,
    CatalogSource,
    SeedCatalogRepository,
    create_catalog_repository,
)
from keyswitch_api.config import get_settings
from keyswitch_api.errors import CatalogUnavailableError, ErrorKind
from keyswitch_api.observability import catalog_refresh_total

logger = structlog.get_logger()


@dataclass(frozen=True)
class CatalogSnapshot:
    """Immutable view of the catalog at one point in time."""

    names: tuple[str, ...]
    manufacturers: tuple[str, ...]
    categories: tuple[str, ...]
    entries: tuple[CatalogEntry, ...]
    loaded_at: float
    source: str  # store, seed, degraded
    entry_index: Mapping[str, CatalogEntry] = field(default_factory=lambda: MappingProxyType({}))
    # (name, whole-word pattern), longest name first
    name_patterns: tuple[tuple[str, re.Pattern], ...] = ()

    @classmethod
    def build(
        cls,
        names: list[str] | tuple[str, ...],
        manufacturers: list[str] | tuple[str, ...],
        categories: list[str] | tuple[str, ...],
        entries: list[CatalogEntry] | tuple[CatalogEntry, ...],
        loaded_at: float,
        source: str,
    ) -> "CatalogSnapshot":
        index: dict[str, CatalogEntry] = {}
        for entry in entries:
            index.setdefault(entry.name.lower(), entry)
        return cls(
            names=tuple(names),
            manufacturers=tuple(manufacturers),
            categories=tuple(categories),
            entries=tuple(entries),
            loaded_at=loaded_at,
            source=source,
            entry_index=MappingProxyType(index),
            name_patterns=tuple(
                (name, re.compile(rf"(?<![a-z0-9]){re.escape(name.lower())}(?![a-z0-9])"))
                for name in sorted(names, key=len, reverse=True)
            ),
        )

    @property
    def version(self) -> tuple[float, str]:
        """Identity used to key per-snapshot memoisation."""
        return (self.loaded_at, self.source)


class CatalogCache:
    """TTL cache over the catalog repository.

    Each collection is loaded with its own repository query. A failing query
    keeps the previous value of that collection, or the seed list when there
    is none yet, so the cache always answers.
    """

    def __init__(
        self,
        repository: CatalogSource | None = None,
        ttl_seconds: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the cache.

        Args:
            repository: Catalog collaborator. Defaults to the configured repository.
            ttl_seconds: Snapshot lifetime. Defaults to config value.
            clock: Monotonic time source, injectable for tests.
        """
        settings = get_settings()
        self._repository = repository if repository is not None else create_catalog_repository()
        self._ttl = ttl_seconds if ttl_seconds is not None else settings.catalog_cache_ttl_seconds
        self._clock = clock
        self._snapshot: CatalogSnapshot | None = None

    @property
    def repository(self) -> CatalogSource:
        return self._repository

    @property
    def ttl_seconds(self) -> int:
        return self._ttl

    def is_expired(self) -> bool:
        """Check whether the current snapshot is missing or older than the TTL."""
        snapshot = self._snapshot
        if snapshot is None:
            return True
        return self._clock() - snapshot.loaded_at >= self._ttl

    def get(self) -> CatalogSnapshot:
        """Current snapshot, refreshed first if the TTL elapsed."""
        return self.refresh_if_expired()

    def refresh_if_expired(self) -> CatalogSnapshot:
        snapshot = self._snapshot
        if snapshot is not None and not self.is_expired():
            return snapshot
        return self.refresh()

    def refresh(self) -> CatalogSnapshot:
        """Rebuild the snapshot from the repository and swap it in."""
        previous = self._snapshot
        statuses: dict[str, str] = {}

        names = self._load(
            "names",
            self._repository.list_all_product_names,
            previous.names if previous else None,
            sorted(entry.name for entry in SEED_ENTRIES),
            statuses,
        )
        manufacturers = self._load(
            "manufacturers",
            self._repository.list_all_manufacturers,
            previous.manufacturers if previous else None,
            SEED_MANUFACTURERS,
            statuses,
        )
        categories = self._load(
            "categories",
            self._repository.list_all_categories,
            previous.categories if previous else None,
            SEED_CATEGORIES,
            statuses,
        )
        entries = self._load(
            "entries",
            self._repository.list_all_entries,
            previous.entries if previous else None,
            sorted(SEED_ENTRIES, key=lambda e: e.name),
            statuses,
        )

        if isinstance(self._repository, SeedCatalogRepository):
            source = "seed"
        elif all(status == "fresh" for status in statuses.values()):
            source = "store"
        else:
            source = "degraded"

        snapshot = CatalogSnapshot.build(
            names=names,
            manufacturers=manufacturers,
            categories=categories,
            entries=entries,
            loaded_at=self._clock(),
            source=source,
        )
        self._snapshot = snapshot

        logger.info(
            "catalog_refreshed",
            source=source,
            products=len(snapshot.names),
            manufacturers=len(snapshot.manufacturers),
            categories=len(snapshot.categories),
            statuses=statuses,
        )
        return snapshot

    def _load(self, collection, query, previous, seed, statuses) -> tuple:
        try:
            values = tuple(query())
            status = "fresh"
        except CatalogUnavailableError as e:
            if previous is not None:
                values, status = tuple(previous), "stale"
            else:
                values, status = tuple(seed), "seed"
            logger.warning(
                "catalog_collection_unavailable",
                collection=collection,
                error_kind=ErrorKind.CATALOG_UNAVAILABLE.value,
                error=str(e),
                fallback=status,
            )
        statuses[collection] = status
        catalog_refresh_total.labels(collection=collection, status=status).inc()
        return values

    def invalidate(self) -> None:
        """Mark the snapshot expired; the next read rebuilds it."""
        snapshot = self._snapshot
        if snapshot is not None:
            self._snapshot = replace(snapshot, loaded_at=float("-inf"))

    def list_names(self) -> tuple[str, ...]:
        return self.get().names

    def list_manufacturers(self) -> tuple[str, ...]:
        return self.get().manufacturers

    def list_categories(self) -> tuple[str, ...]:
        return self.get().categories

    def list_entries(self) -> tuple[CatalogEntry, ...]:
        return self.get().entries


# Global catalog cache instance
_catalog_cache: CatalogCache | None = None


def get_catalog_cache() -> CatalogCache:
    """Get the global catalog cache instance."""
    global _catalog_cache
    if _catalog_cache is None:
        _catalog_cache = CatalogCache()
    return _catalog_cache


def reset_catalog_cache() -> None:
    """Reset the global catalog cache (useful for testing)."""
    global _catalog_cache
    _catalog_cache = None
