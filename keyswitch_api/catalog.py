"""Switch catalog store: SQLAlchemy table, repositories and seed data.

The pipeline only ever reads from the catalog. `CatalogRepository` queries the
relational store; `SeedCatalogRepository` serves the built-in seed entries
and backs MOCK_CATALOG=true as well as the cache's degraded-availability path.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Protocol

import structlog
from sqlalchemy import Column, Float, Integer, String, create_engine, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from keyswitch_api.config import get_settings
from keyswitch_api.errors import CatalogUnavailableError

logger = structlog.get_logger()

Base = declarative_base()

NUMERIC_ATTRIBUTES = ("actuation_force", "bottom_force", "pre_travel", "total_travel")


# =============================================================================
# Catalog Entry
# =============================================================================


@dataclass(frozen=True)
class CatalogEntry:
    """Immutable snapshot of one catalog product."""

    name: str
    manufacturer: str
    category: str | None = None
    numeric_attributes: Mapping[str, float | None] = field(default_factory=lambda: MappingProxyType({}))
    top_housing: str | None = None
    bottom_housing: str | None = None
    stem: str | None = None

    def __post_init__(self):
        # Entries are shared across snapshots, so attributes are read-only
        if not isinstance(self.numeric_attributes, MappingProxyType):
            object.__setattr__(self, "numeric_attributes", MappingProxyType(dict(self.numeric_attributes)))

    def describe(self) -> str:
        """One-line description such as 'Linear by Gateron - 35g, (Nylon/Nylon/POM stem)'."""
        parts: list[str] = []
        force = self.numeric_attributes.get("actuation_force")
        if force:
            parts.append(f"{force:g}g")
        materials = [m for m in (self.top_housing, self.bottom_housing) if m]
        if len(materials) == 2 and materials[0] == materials[1]:
            materials = materials[:1]
        if self.stem:
            materials.append(f"{self.stem} stem")
        if materials:
            parts.append(f"({'/'.join(materials)})")
        kind = (self.category or "Switch").capitalize()
        suffix = f" - {', '.join(parts)}" if parts else ""
        return f"{kind} by {self.manufacturer}{suffix}"


# =============================================================================
# Relational Schema
# =============================================================================


class SwitchRecord(Base):
    __tablename__ = "switches"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    manufacturer = Column(String, nullable=False, index=True)
    type = Column(String)
    top_housing = Column(String)
    bottom_housing = Column(String)
    stem = Column(String)
    actuation_force = Column(Float)
    bottom_force = Column(Float)
    pre_travel = Column(Float)
    total_travel = Column(Float)

    def to_entry(self) -> CatalogEntry:
        return CatalogEntry(
            name=self.name,
            manufacturer=self.manufacturer,
            category=self.type,
            numeric_attributes={attr: getattr(self, attr) for attr in NUMERIC_ATTRIBUTES},
            top_housing=self.top_housing,
            bottom_housing=self.bottom_housing,
            stem=self.stem,
        )


class CatalogSource(Protocol):
    """Read-only catalog collaborator used by the cache and resolver."""

    def list_all_product_names(self) -> list[str]: ...

    def list_all_manufacturers(self) -> list[str]: ...

    def list_all_categories(self) -> list[str]: ...

    def list_all_entries(self) -> list[CatalogEntry]: ...

    def find_products_matching_text(self, pattern: str) -> list[CatalogEntry]: ...


# =============================================================================
# SQL Repository
# =============================================================================


class CatalogRepository:
    """Read-only queries against the relational switch catalog."""

    def __init__(self, engine=None, match_limit: int = 10):
        """Initialize the repository.

        Args:
            engine: SQLAlchemy engine. Defaults to one built from DATABASE_URL.
            match_limit: Maximum rows returned by text matching.
        """
        if engine is None:
            engine = build_engine()
        self._engine = engine
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        self._match_limit = match_limit

    @property
    def engine(self):
        return self._engine

    def _scalars(self, statement, operation: str) -> list:
        try:
            with self._session_factory() as session:
                return list(session.scalars(statement).all())
        except SQLAlchemyError as e:
            logger.error("Catalog query failed", operation=operation, error=str(e))
            raise CatalogUnavailableError(f"{operation} failed: {e}") from e

    def list_all_product_names(self) -> list[str]:
        statement = (
            select(SwitchRecord.name)
            .where(SwitchRecord.name.is_not(None))
            .order_by(SwitchRecord.name)
        )
        return self._scalars(statement, "list_all_product_names")

    def list_all_manufacturers(self) -> list[str]:
        statement = (
            select(SwitchRecord.manufacturer)
            .where(SwitchRecord.manufacturer.is_not(None))
            .group_by(SwitchRecord.manufacturer)
            .order_by(SwitchRecord.manufacturer)
        )
        return self._scalars(statement, "list_all_manufacturers")

    def list_all_categories(self) -> list[str]:
        statement = (
            select(SwitchRecord.type)
            .where(SwitchRecord.type.is_not(None))
            .group_by(SwitchRecord.type)
            .order_by(SwitchRecord.type)
        )
        return self._scalars(statement, "list_all_categories")

    def list_all_entries(self) -> list[CatalogEntry]:
        statement = select(SwitchRecord).order_by(SwitchRecord.name)
        return [record.to_entry() for record in self._scalars(statement, "list_all_entries")]

    def find_products_matching_text(self, pattern: str) -> list[CatalogEntry]:
        """Products whose name contains `pattern` (case-insensitive)."""
        cleaned = pattern.strip().lower()
        if not cleaned:
            return []
        statement = (
            select(SwitchRecord)
            .where(func.lower(SwitchRecord.name).contains(cleaned, autoescape=True))
            .order_by(SwitchRecord.name)
            .limit(self._match_limit)
        )
        records = self._scalars(statement, "find_products_matching_text")
        return [record.to_entry() for record in records]

    def load_entries(self, entries: Iterable[CatalogEntry]) -> int:
        """Create the table if needed and insert entries. Returns rows added."""
        Base.metadata.create_all(self._engine)
        records = [
            SwitchRecord(
                name=entry.name,
                manufacturer=entry.manufacturer,
                type=entry.category,
                top_housing=entry.top_housing,
                bottom_housing=entry.bottom_housing,
                stem=entry.stem,
                **{attr: entry.numeric_attributes.get(attr) for attr in NUMERIC_ATTRIBUTES},
            )
            for entry in entries
        ]
        with self._session_factory() as session:
            session.add_all(records)
            session.commit()
        logger.info("Catalog entries loaded", count=len(records))
        return len(records)


def build_engine(database_url: str | None = None):
    """Create a SQLAlchemy engine for the catalog store."""
    settings = get_settings()
    url = database_url or settings.database_url
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, echo=settings.database_echo, connect_args=connect_args)


# =============================================================================
# Seed Data
# =============================================================================


def _seed(
    name: str,
    manufacturer: str,
    category: str,
    actuation: float,
    bottom: float | None,
    pre: float,
    total: float,
    top: str,
    bottom_housing: str,
    stem: str,
) -> CatalogEntry:
    return CatalogEntry(
        name=name,
        manufacturer=manufacturer,
        category=category,
        numeric_attributes={
            "actuation_force": actuation,
            "bottom_force": bottom,
            "pre_travel": pre,
            "total_travel": total,
        },
        top_housing=top,
        bottom_housing=bottom_housing,
        stem=stem,
    )


SEED_ENTRIES: tuple[CatalogEntry, ...] = (
    _seed("Akko CS Lavender Purple", "Akko", "tactile", 36, 50, 2.0, 4.0, "PC", "Nylon", "POM"),
    _seed("Cherry MX Black", "Cherry", "linear", 60, 80, 2.0, 4.0, "Nylon", "Nylon", "POM"),
    _seed("Cherry MX Blue", "Cherry", "clicky", 50, 60, 2.2, 4.0, "Nylon", "Nylon", "POM"),
    _seed("Cherry MX Brown", "Cherry", "tactile", 45, 55, 2.0, 4.0, "Nylon", "Nylon", "POM"),
    _seed("Cherry MX Clear", "Cherry", "tactile", 65, 90, 2.0, 4.0, "Nylon", "Nylon", "POM"),
    _seed("Cherry MX Red", "Cherry", "linear", 45, 75, 2.0, 4.0, "Nylon", "Nylon", "POM"),
    _seed("Cherry MX Silver", "Cherry", "linear", 45, 80, 1.2, 3.4, "Nylon", "Nylon", "POM"),
    _seed("Durock T1", "Durock", "tactile", 67, 72, 2.0, 4.0, "PC", "Nylon", "POM"),
    _seed("Gateron Black Ink V2", "Gateron", "linear", 60, 70, 2.0, 4.0, "Black Ink", "Black Ink", "POM"),
    _seed("Gateron Brown", "Gateron", "tactile", 55, 60, 2.0, 4.0, "PC", "Nylon", "POM"),
    _seed("Gateron Milky Yellow", "Gateron", "linear", 50, 67, 2.0, 4.0, "Nylon", "Nylon", "POM"),
    _seed("Gateron Oil King", "Gateron", "linear", 55, 65, 2.0, 4.0, "Nylon", "Nylon", "POM"),
    _seed("Gateron Red", "Gateron", "linear", 45, 50, 2.0, 4.0, "PC", "Nylon", "POM"),
    _seed("Gateron Yellow", "Gateron", "linear", 50, 60, 2.0, 4.0, "PC", "Nylon", "POM"),
    _seed("Kailh Box Jade", "Kailh", "clicky", 50, 65, 1.8, 3.6, "PC", "Nylon", "POM"),
    _seed("Kailh Box Red", "Kailh", "linear", 45, 60, 1.8, 3.6, "PC", "Nylon", "POM"),
    _seed("Kailh Box White", "Kailh", "clicky", 45, 55, 1.8, 3.6, "PC", "Nylon", "POM"),
    _seed("NovelKeys Cream", "NovelKeys", "linear", 55, 70, 2.0, 4.0, "POM", "POM", "POM"),
    _seed("Drop Holy Panda", "Drop", "tactile", 67, 67, 2.0, 4.0, "PC", "Nylon", "POM"),
    _seed("JWK Alpaca", "JWK", "linear", 62, 67, 2.0, 4.0, "PC", "Nylon", "POM"),
    _seed("ZealPC Zealios V2", "ZealPC", "tactile", 67, 67, 2.0, 4.0, "PC", "Nylon", "POM"),
)

SEED_MANUFACTURERS: tuple[str, ...] = (
    "Akko",
    "Cherry",
    "Drop",
    "Durock",
    "Gateron",
    "JWK",
    "Kailh",
    "NovelKeys",
    "Outemu",
    "TTC",
    "ZealPC",
)

SEED_CATEGORIES: tuple[str, ...] = ("clicky", "linear", "tactile")


class SeedCatalogRepository:
    """In-memory catalog over a fixed entry list (MOCK_CATALOG=true)."""

    def __init__(self, entries: Iterable[CatalogEntry] | None = None):
        self._entries = tuple(sorted(entries if entries is not None else SEED_ENTRIES, key=lambda e: e.name))
        # The default seed also knows makers without a seeded product
        self._known_manufacturers = SEED_MANUFACTURERS if entries is None else ()

    def list_all_product_names(self) -> list[str]:
        return [entry.name for entry in self._entries]

    def list_all_manufacturers(self) -> list[str]:
        return sorted({entry.manufacturer for entry in self._entries} | set(self._known_manufacturers))

    def list_all_categories(self) -> list[str]:
        return sorted({entry.category for entry in self._entries if entry.category})

    def list_all_entries(self) -> list[CatalogEntry]:
        return list(self._entries)

    def find_products_matching_text(self, pattern: str) -> list[CatalogEntry]:
        cleaned = pattern.strip().lower()
        if not cleaned:
            return []
        return [entry for entry in self._entries if cleaned in entry.name.lower()][:10]


def create_catalog_repository() -> CatalogSource:
    """Build the configured catalog repository."""
    settings = get_settings()
    if settings.mock_catalog:
        logger.info("MOCK_CATALOG=true: Using seed catalog repository")
        return SeedCatalogRepository()
    return CatalogRepository()
