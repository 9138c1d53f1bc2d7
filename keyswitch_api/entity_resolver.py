"""Fuzzy resolution of informal switch names against the catalog.

Resolution runs a cascade and the first strategy that succeeds wins:

1. exact (case-insensitive) name match, confidence 1.0
2. substring containment ranked by Levenshtein similarity, kept at >= 0.5
3. word overlap (>= 70% of significant words), fixed confidence 0.7
4. optional store-side text match, same similarity threshold

Results are memoised per catalog snapshot.
"""

import re
import threading
from dataclasses import dataclass

import structlog
from cachetools import TTLCache
from rapidfuzz.distance import Levenshtein

from keyswitch_api.catalog import CatalogEntry, CatalogSource
from keyswitch_api.catalog_cache import CatalogCache, CatalogSnapshot, get_catalog_cache
from keyswitch_api.config import get_settings
from keyswitch_api.errors import CatalogUnavailableError
from keyswitch_api.observability import entity_resolution_total
from keyswitch_api.text_processing import strip_inline_markdown

logger = structlog.get_logger()

WORD_PATTERN = re.compile(r"[a-z0-9]+(?:[-'][a-z0-9]+)*")
MANUFACTURER_WINDOW = 3

# Words that never narrow a brand or category down to one product
GENERIC_WORDS = frozenset({"switch", "switches", "stem", "stems", "housing", "housings", "series"})


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance between two strings."""
    return Levenshtein.distance(a, b)


def name_similarity(a: str, b: str) -> float:
    """Similarity in [0, 1]: (len(longer) - distance) / len(longer), case-insensitive."""
    a, b = a.lower(), b.lower()
    longer = max(len(a), len(b))
    if longer == 0:
        return 1.0
    return (longer - levenshtein_distance(a, b)) / longer


def words(text: str) -> list[str]:
    """Lower-cased word tokens."""
    return WORD_PATTERN.findall(text.lower())


def significant_words(text: str) -> list[str]:
    """Word tokens longer than two characters."""
    return [word for word in words(text) if len(word) > 2]


@dataclass(frozen=True)
class ResolutionResult:
    """Outcome of resolving one candidate string."""

    is_valid: bool
    best_match: str | None = None
    confidence: float = 0.0
    strategy: str | None = None  # exact, substring, word_overlap, store


INVALID = ResolutionResult(is_valid=False)


class EntityResolver:
    """Maps informal product mentions to canonical catalog names."""

    def __init__(
        self,
        cache: CatalogCache | None = None,
        repository: CatalogSource | None = None,
        min_similarity: float | None = None,
        word_overlap_ratio: float | None = None,
        word_overlap_confidence: float | None = None,
        memo_size: int | None = None,
    ):
        """Initialize the resolver.

        Args:
            cache: Catalog cache. Defaults to the global cache.
            repository: Store queried when in-process matching fails. None disables it.
            min_similarity: Substring strategy threshold. Defaults to config value.
            word_overlap_ratio: Fraction of words that must match. Defaults to config value.
            word_overlap_confidence: Confidence reported for overlap matches.
            memo_size: Maximum memoised resolutions.
        """
        settings = get_settings()
        self._cache = cache if cache is not None else get_catalog_cache()
        self._repository = repository
        self._min_similarity = (
            min_similarity if min_similarity is not None else settings.resolver_min_similarity
        )
        self._overlap_ratio = (
            word_overlap_ratio
            if word_overlap_ratio is not None
            else settings.resolver_word_overlap_ratio
        )
        self._overlap_confidence = (
            word_overlap_confidence
            if word_overlap_confidence is not None
            else settings.resolver_word_overlap_confidence
        )
        self._memo: TTLCache[tuple, ResolutionResult] = TTLCache(
            maxsize=memo_size or settings.resolution_memo_size,
            ttl=max(self._cache.ttl_seconds, 1),
        )
        self._lock = threading.Lock()

    @property
    def cache(self) -> CatalogCache:
        return self._cache

    # =========================================================================
    # Resolution
    # =========================================================================

    def resolve(self, candidate: str | None) -> ResolutionResult:
        """Resolve a candidate name to the best catalog product.

        Args:
            candidate: Informal product mention, e.g. "gaterom yellow".

        Returns:
            ResolutionResult; invalid with confidence 0 when nothing matches.
        """
        cleaned = (candidate or "").strip()
        if len(cleaned) < 2:
            return INVALID

        snapshot = self._cache.get()
        key = (snapshot.version, cleaned.lower())
        with self._lock:
            cached = self._memo.get(key)
        if cached is not None:
            return cached

        result = self._resolve_uncached(cleaned, snapshot)
        with self._lock:
            self._memo[key] = result

        entity_resolution_total.labels(strategy=result.strategy or "none").inc()
        logger.debug(
            "entity_resolved",
            candidate=cleaned,
            best_match=result.best_match,
            confidence=round(result.confidence, 3),
            strategy=result.strategy,
        )
        return result

    def _resolve_uncached(self, cleaned: str, snapshot: CatalogSnapshot) -> ResolutionResult:
        lowered = cleaned.lower()
        names = snapshot.names

        for name in names:
            if name.lower() == lowered:
                return ResolutionResult(True, name, 1.0, "exact")

        result = self._match_substring(lowered, names)
        if result is not None:
            return result

        result = self._match_word_overlap(lowered, names)
        if result is not None:
            return result

        if self._repository is not None:
            result = self._match_store(cleaned)
            if result is not None:
                return result

        return INVALID

    def _match_substring(self, lowered: str, names: tuple[str, ...]) -> ResolutionResult | None:
        tokens = significant_words(lowered)
        best_name, best_score = None, 0.0
        for name in names:
            name_lower = name.lower()
            contained = lowered in name_lower or name_lower in lowered
            if not contained:
                name_tokens = significant_words(name_lower)
                contained = any(token in name_lower for token in tokens) or any(
                    token in lowered for token in name_tokens
                )
            if not contained:
                continue
            score = name_similarity(lowered, name_lower)
            # Strict comparison keeps the earliest name on ties
            if score > best_score:
                best_name, best_score = name, score

        if best_name is not None and best_score >= self._min_similarity:
            return ResolutionResult(True, best_name, best_score, "substring")
        return None

    def _match_word_overlap(self, lowered: str, names: tuple[str, ...]) -> ResolutionResult | None:
        tokens = significant_words(lowered)
        if not tokens:
            return None
        best_name, best_ratio = None, 0.0
        for name in names:
            name_words = set(words(name))
            matched = sum(1 for token in tokens if token in name_words)
            ratio = matched / len(tokens)
            if ratio > best_ratio:
                best_name, best_ratio = name, ratio

        if best_name is not None and best_ratio >= self._overlap_ratio:
            return ResolutionResult(True, best_name, self._overlap_confidence, "word_overlap")
        return None

    def _match_store(self, cleaned: str) -> ResolutionResult | None:
        try:
            matches = self._repository.find_products_matching_text(cleaned)
        except CatalogUnavailableError as e:
            logger.warning("store_match_failed", candidate=cleaned, error=str(e))
            return None

        best_name, best_score = None, 0.0
        for entry in matches:
            score = name_similarity(cleaned, entry.name)
            if score > best_score:
                best_name, best_score = entry.name, score
        if best_name is not None and best_score >= self._min_similarity:
            return ResolutionResult(True, best_name, best_score, "store")
        return None

    def is_generic_term(self, text: str | None) -> bool:
        """Check if text names only a manufacturer or category, not a product.

        "Gateron", "Cherry switches" and "linear" are generic; catalog names
        never are.
        """
        cleaned = strip_inline_markdown(text or "").strip().lower()
        if not cleaned:
            return False
        snapshot = self._cache.get()
        if any(name.lower() == cleaned for name in snapshot.names):
            return False
        terms = {term.lower() for term in snapshot.manufacturers + snapshot.categories}
        if cleaned in terms:
            return True
        tokens = significant_words(cleaned)
        if not tokens:
            return False
        generic = {word for term in terms for word in words(term)} | GENERIC_WORDS
        return all(token in generic for token in tokens)

    def resolve_many(self, candidates: list[str]) -> list[str]:
        """Resolve candidates, keeping unique valid matches in input order."""
        resolved: list[str] = []
        for candidate in candidates:
            result = self.resolve(candidate)
            if result.is_valid and result.best_match not in resolved:
                resolved.append(result.best_match)
        return resolved

    def is_likely_product_name(self, text: str) -> bool:
        """Check if text resolves to a product with confidence above 0.6."""
        result = self.resolve(text)
        return result.is_valid and result.confidence > 0.6

    # =========================================================================
    # Extraction
    # =========================================================================

    def extract_from_text(self, text: str | None) -> list[str]:
        """Find catalog products mentioned in free text.

        Full names are matched first and masked out, then multi-word names
        with at least 70% of their significant words present, then a
        manufacturer followed within three words by the rest of one of its
        product names.

        Returns:
            Unique canonical names ordered by first appearance.
        """
        if not text:
            return []
        snapshot = self._cache.get()
        haystack = text.lower()
        found: dict[str, int] = {}

        # Longest names first so "Gateron Milky Yellow" masks its span before "Gateron Yellow"
        for name, pattern in snapshot.name_patterns:
            match = pattern.search(haystack)
            if not match:
                continue
            found.setdefault(name, match.start())
            haystack = pattern.sub(lambda m: " " * len(m.group(0)), haystack)

        word_positions: dict[str, int] = {}
        for match in WORD_PATTERN.finditer(haystack):
            word_positions.setdefault(match.group(0), match.start())

        for name in snapshot.names:
            if name in found:
                continue
            name_words = significant_words(name)
            if len(name_words) < 2:
                continue
            present = [word_positions[word] for word in name_words if word in word_positions]
            if len(present) / len(name_words) >= self._overlap_ratio:
                found[name] = min(present)

        for name, position in self._manufacturer_mentions(haystack, snapshot):
            found.setdefault(name, position)

        return [name for name, _ in sorted(found.items(), key=lambda item: item[1])]

    def _manufacturer_mentions(self, haystack: str, snapshot: CatalogSnapshot) -> list[tuple[str, int]]:
        tokens = [(m.group(0), m.start()) for m in WORD_PATTERN.finditer(haystack)]
        mentions: list[tuple[str, int]] = []
        for manufacturer in snapshot.manufacturers:
            maker = manufacturer.lower()
            products = self._products_of(manufacturer, snapshot)
            if not products:
                continue
            for index, (token, position) in enumerate(tokens):
                if token != maker:
                    continue
                window = [t for t, _ in tokens[index + 1 : index + 1 + MANUFACTURER_WINDOW]]
                for name in products:
                    rest = words(name)
                    if rest and rest[0] == maker:
                        rest = rest[1:]
                    if rest and all(word in window for word in rest):
                        mentions.append((name, position))
        return mentions

    def _products_of(self, manufacturer: str, snapshot: CatalogSnapshot) -> list[str]:
        maker = manufacturer.lower()
        products = [e.name for e in snapshot.entries if e.manufacturer.lower() == maker]
        if products:
            return products
        return [name for name in snapshot.names if name.lower().startswith(maker + " ")]

    # =========================================================================
    # Lookups
    # =========================================================================

    def lookup_entry(self, name: str | None) -> CatalogEntry | None:
        """Catalog entry for a canonical or resolvable name."""
        if not name:
            return None
        snapshot = self._cache.get()
        entry = snapshot.entry_index.get(name.strip().lower())
        if entry is not None:
            return entry
        if self.is_generic_term(name):
            return None
        result = self.resolve(name)
        if result.is_valid:
            return snapshot.entry_index.get(result.best_match.lower())
        return None

    def manufacturer_for(self, name: str | None) -> str | None:
        """Manufacturer of a product, from its entry or its name prefix."""
        entry = self.lookup_entry(name)
        if entry is not None:
            return entry.manufacturer
        if not name:
            return None
        lowered = name.strip().lower()
        for manufacturer in self._cache.get().manufacturers:
            if lowered.startswith(manufacturer.lower()):
                return manufacturer
        return None


# Global resolver instance
_entity_resolver: EntityResolver | None = None


def get_entity_resolver() -> EntityResolver:
    """Get the global entity resolver instance."""
    global _entity_resolver
    if _entity_resolver is None:
        settings = get_settings()
        cache = get_catalog_cache()
        repository = cache.repository if settings.resolver_store_fallback else None
        _entity_resolver = EntityResolver(cache=cache, repository=repository)
    return _entity_resolver


def reset_entity_resolver() -> None:
    """Reset the global entity resolver (useful for testing)."""
    global _entity_resolver
    _entity_resolver = None
