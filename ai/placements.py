"""Placement matching against the canonical placement taxonomy.

Resolves free-text benefit phrases ("3x5 field banner", "logo on jersey")
to canonical placements with an auditable confidence tier.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence

from rapidfuzz.utils import default_process

from config.placement_taxonomy import CATEGORY_KEYWORDS, PLACEMENT_TAXONOMY, TAXONOMY_VERSION
from sponsorship.config import MatchingSettings, settings

logger = logging.getLogger(__name__)

# Dropped before token-set comparison
STOP_WORDS = frozenset(
    {"a", "an", "and", "at", "by", "for", "in", "of", "on", "or", "the", "to", "with", "per", "plus", "includes"}
)


class MatchConfidence(str, Enum):
    """Coarse trust level of a placement match."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


class MatchMethod(str, Enum):
    """Stage that produced a match."""
    ALIAS = "alias"
    EXACT = "exact"
    FUZZY = "fuzzy"
    UNMATCHED = "unmatched"


@dataclass(frozen=True)
class PlacementTaxonomyEntry:
    """One canonical placement."""
    id: int
    canonical_name: str
    category: str
    is_popular: bool = False
    aliases: tuple[str, ...] = ()


@dataclass(frozen=True)
class MatchResult:
    """Outcome of matching one raw phrase."""
    raw_text: str
    entry: PlacementTaxonomyEntry | None
    confidence: MatchConfidence
    method: MatchMethod
    score: float = 0.0

    @property
    def matched(self) -> bool:
        return self.entry is not None

    @property
    def display_text(self) -> str:
        """Canonical name when matched, otherwise the raw phrase."""
        return self.entry.canonical_name if self.entry is not None else self.raw_text


@dataclass(frozen=True)
class MatchStats:
    """Diagnostics for a batch of matches."""
    total: int = 0
    matched: int = 0
    unmatched: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "matched": self.matched,
            "unmatched": self.unmatched,
            "high": self.high,
            "medium": self.medium,
            "low": self.low,
        }


@dataclass(frozen=True)
class BatchMatchResult:
    """Per-phrase results plus aggregate statistics."""
    matches: tuple[MatchResult, ...] = field(default_factory=tuple)
    stats: MatchStats = field(default_factory=MatchStats)


def normalize_phrase(text: str) -> str:
    """Lowercase, map multiplication signs to ``x``, turn punctuation and
    separators into spaces and collapse whitespace."""
    if not text:
        return ""
    text = text.replace("×", "x").replace("Ã—", "x")
    return " ".join(default_process(text).split())


def tokenize(text: str) -> frozenset[str]:
    """Punctuation-stripped lowercase tokens without stop words."""
    return frozenset(t for t in normalize_phrase(text).split() if t not in STOP_WORDS)


def jaccard(a: frozenset[str], b: frozenset[str]) -> float:
    """Token-set Jaccard similarity ``|a & b| / |a | b|``."""
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)


def _contains_words(haystack: str, needle: str) -> bool:
    return f" {needle} " in f" {haystack} "


def confidence_for_score(score: float, matching: MatchingSettings | None = None) -> MatchConfidence:
    """Map a similarity score to a confidence tier.

    Pure and monotone: a higher score never yields a lower tier.
    """
    cfg = matching or settings.matching
    if score >= cfg.high_threshold:
        return MatchConfidence.HIGH
    if score >= cfg.medium_threshold:
        return MatchConfidence.MEDIUM
    if score >= cfg.fuzzy_threshold:
        return MatchConfidence.LOW
    return MatchConfidence.NONE


class PlacementTaxonomy:
    """Immutable, loaded-once placement taxonomy with lookup indexes.

    Safe to share across concurrent jobs: nothing is mutated after
    construction.
    """

    def __init__(
        self,
        entries: Iterable[PlacementTaxonomyEntry],
        *,
        category_keywords: Mapping[str, Sequence[str]] | None = None,
        version: str = TAXONOMY_VERSION,
    ) -> None:
        self.version = version
        self._entries: tuple[PlacementTaxonomyEntry, ...] = tuple(entries)

        categories: list[str] = []
        grouped: dict[str, list[PlacementTaxonomyEntry]] = {}
        alias_index: dict[str, PlacementTaxonomyEntry] = {}
        name_forms: list[tuple[PlacementTaxonomyEntry, str]] = []
        token_sets: dict[int, tuple[frozenset[str], ...]] = {}

        for entry in self._entries:
            if entry.category not in grouped:
                categories.append(entry.category)
                grouped[entry.category] = []
            grouped[entry.category].append(entry)

            normalized_name = normalize_phrase(entry.canonical_name)
            name_forms.append((entry, normalized_name))

            for form in (entry.canonical_name, *entry.aliases):
                key = normalize_phrase(form)
                if not key:
                    continue
                existing = alias_index.get(key)
                if existing is not None and existing.id != entry.id:
                    logger.debug(f"Alias '{key}' already registered to {existing.canonical_name}; keeping first")
                    continue
                alias_index[key] = entry

            sets = [tokenize(entry.canonical_name)] + [tokenize(a) for a in entry.aliases]
            token_sets[entry.id] = tuple(s for s in sets if s)

        self._categories = tuple(categories)
        self._by_category = MappingProxyType({c: tuple(es) for c, es in grouped.items()})
        self._alias_index = MappingProxyType(alias_index)
        self._name_forms = tuple(name_forms)
        self._token_sets = MappingProxyType(token_sets)

        keyword_index: dict[str, set[str]] = {}
        for category, keywords in (category_keywords or {}).items():
            for keyword in keywords:
                keyword_index.setdefault(keyword.lower(), set()).add(category)
        self._keyword_index = MappingProxyType({k: frozenset(v) for k, v in keyword_index.items()})

        logger.info(
            f"Loaded {len(self._entries)} placements in {len(self._categories)} categories "
            f"with {len(self._alias_index)} aliases ({self.version})"
        )

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping],
        *,
        category_keywords: Mapping[str, Sequence[str]] | None = None,
        version: str = TAXONOMY_VERSION,
    ) -> "PlacementTaxonomy":
        entries = [
            PlacementTaxonomyEntry(
                id=int(r["id"]),
                canonical_name=r["canonical_name"],
                category=r["category"],
                is_popular=bool(r.get("is_popular", False)),
                aliases=tuple(r.get("aliases", ())),
            )
            for r in records
        ]
        return cls(entries, category_keywords=category_keywords, version=version)

    @property
    def entries(self) -> tuple[PlacementTaxonomyEntry, ...]:
        return self._entries

    @property
    def categories(self) -> tuple[str, ...]:
        return self._categories

    def __len__(self) -> int:
        return len(self._entries)

    def in_category(self, category: str) -> tuple[PlacementTaxonomyEntry, ...]:
        return self._by_category.get(category, ())

    def lookup_alias(self, normalized: str) -> PlacementTaxonomyEntry | None:
        return self._alias_index.get(normalized)

    def name_forms(self) -> tuple[tuple[PlacementTaxonomyEntry, str], ...]:
        """``(entry, normalized canonical name)`` in registration order."""
        return self._name_forms

    def token_sets(self, entry: PlacementTaxonomyEntry) -> tuple[frozenset[str], ...]:
        return self._token_sets.get(entry.id, ())

    def classify(self, tokens: Iterable[str]) -> tuple[str, ...]:
        """Categories implied by a phrase's tokens, in taxonomy category order."""
        implied: set[str] = set()
        for token in tokens:
            implied |= self._keyword_index.get(token, frozenset())
        return tuple(c for c in self._categories if c in implied)


@lru_cache(maxsize=1)
def get_taxonomy() -> PlacementTaxonomy:
    """Build the process-wide taxonomy from the versioned config module."""
    return PlacementTaxonomy.from_records(
        PLACEMENT_TAXONOMY,
        category_keywords=CATEGORY_KEYWORDS,
        version=settings.matching.taxonomy_version,
    )


def list_placements() -> list[PlacementTaxonomyEntry]:
    """All canonical placements, cached for the process lifetime."""
    return list(get_taxonomy().entries)


class PlacementMatcher:
    """Staged matcher: alias → exact/substring → category-constrained fuzzy.

    The first stage that succeeds wins. Alias and exact hits are
    authoritative; fuzzy matching is restricted to the categories the phrase
    implies so a jersey placement never lands on a digital entry.
    """

    def __init__(
        self,
        taxonomy: PlacementTaxonomy | None = None,
        matching: MatchingSettings | None = None,
    ) -> None:
        self.taxonomy = taxonomy or get_taxonomy()
        self.matching = matching or settings.matching

    def match(self, raw_text: str) -> MatchResult:
        """Resolve one raw phrase to a canonical placement."""
        normalized = normalize_phrase(raw_text)
        if not normalized:
            return self._unmatched(raw_text)

        return (
            self._match_alias(raw_text, normalized)
            or self._match_exact(raw_text, normalized)
            or self._match_fuzzy(raw_text, normalized)
            or self._unmatched(raw_text)
        )

    def match_batch(self, phrases: Iterable[str]) -> BatchMatchResult:
        """Match phrases independently and collect tier counts."""
        matches = tuple(self.match(p) for p in phrases)
        stats = MatchStats(
            total=len(matches),
            matched=sum(1 for m in matches if m.matched),
            unmatched=sum(1 for m in matches if not m.matched),
            high=sum(1 for m in matches if m.confidence is MatchConfidence.HIGH),
            medium=sum(1 for m in matches if m.confidence is MatchConfidence.MEDIUM),
            low=sum(1 for m in matches if m.confidence is MatchConfidence.LOW),
        )
        logger.debug(f"Matched {stats.matched}/{stats.total} placements", extra={"match_stats": stats.as_dict()})
        return BatchMatchResult(matches=matches, stats=stats)

    def _match_alias(self, raw_text: str, normalized: str) -> MatchResult | None:
        entry = self.taxonomy.lookup_alias(normalized)
        if entry is None:
            return None
        return MatchResult(raw_text, entry, MatchConfidence.HIGH, MatchMethod.ALIAS, 1.0)

    def _match_exact(self, raw_text: str, normalized: str) -> MatchResult | None:
        for entry, name in self.taxonomy.name_forms():
            if not name:
                continue
            if _contains_words(name, normalized) or _contains_words(normalized, name):
                ratio = min(len(name), len(normalized)) / max(len(name), len(normalized))
                if ratio <= self.matching.exact_min_ratio:
                    continue
                confidence = MatchConfidence.HIGH if ratio > self.matching.exact_high_ratio else MatchConfidence.MEDIUM
                return MatchResult(raw_text, entry, confidence, MatchMethod.EXACT, ratio)
        return None

    def _match_fuzzy(self, raw_text: str, normalized: str) -> MatchResult | None:
        tokens = frozenset(t for t in normalized.split() if t not in STOP_WORDS)
        if not tokens:
            return None

        categories = self.taxonomy.classify(tokens)
        if not categories:
            # no implied category, no fuzzy candidates
            return None
        candidates = [e for c in categories for e in self.taxonomy.in_category(c)]

        best_entry: PlacementTaxonomyEntry | None = None
        best_score = 0.0
        for entry in candidates:
            score = max((jaccard(tokens, s) for s in self.taxonomy.token_sets(entry)), default=0.0)
            # strict: earlier candidates win ties
            if score > best_score:
                best_entry, best_score = entry, score

        if best_entry is None or best_score < self.matching.fuzzy_threshold:
            return None

        confidence = confidence_for_score(best_score, self.matching)
        return MatchResult(raw_text, best_entry, confidence, MatchMethod.FUZZY, best_score)

    @staticmethod
    def _unmatched(raw_text: str) -> MatchResult:
        return MatchResult(raw_text, None, MatchConfidence.NONE, MatchMethod.UNMATCHED, 0.0)
