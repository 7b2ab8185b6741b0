"""Venue matching against the CCF catalog.

This module resolves noisy venue strings (arXiv comments, DBLP venues, page
text) to catalog entries with a graded confidence:

- exact: normalized input equals an abbreviation or full name
- cleaned: equality after stripping years, volume/issue markers and punctuation
- partial: word-boundary containment of a catalog name or alias that covers
  most of the input
- acronym: the string or one of its tokens is a known acronym
- none: no match
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from rapidfuzz import fuzz, process

from ccf_lens.catalog import CatalogEntry, CCFCatalog
from ccf_lens.config import MatcherConfig
from ccf_lens.utils import normalize_venue_key

__all__ = [
    "Confidence",
    "MatchResult",
    "VenueMatcher",
    "normalize_venue",
    "clean_venue",
]


class Confidence(str, Enum):
    """Match confidence tiers, strongest first."""

    EXACT = "exact"
    CLEANED = "cleaned"
    PARTIAL = "partial"
    ACRONYM = "acronym"
    NONE = "none"


@dataclass(frozen=True)
class MatchResult:
    """Outcome of matching one venue string."""

    matched: bool
    entry: CatalogEntry | None
    confidence: Confidence
    original_venue: str
    cleaned_venue: str

    @property
    def rank(self) -> str | None:
        return self.entry.rank if self.matched and self.entry else None

    @classmethod
    def empty(cls, original_venue: str = "", cleaned_venue: str = "") -> MatchResult:
        """Zero result used when no venue is available or nothing matched."""
        return cls(
            matched=False,
            entry=None,
            confidence=Confidence.NONE,
            original_venue=original_venue,
            cleaned_venue=cleaned_venue,
        )


# ------------- Normalization -------------

_STATUS_PREFIXES = [
    re.compile(r"^(?:accepted|submitted)\s+(?:to|at|by|for|in)\s+(?:the\s+)?"),
    re.compile(r"^published\s+(?:in|at|by)\s+(?:the\s+)?"),
    re.compile(r"^(?:to\s+)?appear(?:s|ing)?\s+(?:in|at)\s+(?:the\s+)?"),
    re.compile(r"^presented\s+(?:at|in)\s+(?:the\s+)?"),
]
_TRAILING_YEAR_RE = re.compile(r"\s+(?:19|20)\d{2}$")

_PAREN_RE = re.compile(r"\(([^)]*)\)|\[([^\]]*)\]")
_VOLUME_RE = re.compile(
    r"\b(?:vol|volume|no|num|number|issue|iss|pp|pages?|p)\.?\s*\d+(?:\s*[-–]\s*\d+)?\b"
)
_ORDINAL_RE = re.compile(r"\b\d+(?:st|nd|rd|th)\b")
_GLUED_YEAR_RE = re.compile(r"(?<=[a-z])(?:19|20)\d{2}\b")
_APOSTROPHE_YEAR_RE = re.compile(r"['’`]\d{2}\b")
_YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")
_PUNCT_RE = re.compile(r"[^\w\s&+]|_")
_NUMBER_RE = re.compile(r"\b\d+\b")
_PROCEEDINGS_RE = re.compile(r"^(?:in\s+)?(?:the\s+)?(?:proceedings|proc)\s+(?:of\s+)?(?:the\s+)?")
_LEADING_IN_RE = re.compile(r"^(?:in|the)\s+")

# Words that may surround a catalog name without changing which venue it is
_PARTIAL_FILLER = frozenset(
    {"proceedings", "proc", "annual", "international", "ieee", "acm", "cvf", "the", "of", "in", "on"}
)


def normalize_venue(raw: str | None) -> str:
    """Lowercase, collapse whitespace, drop a status phrase and one trailing year.

    'Accepted to CVPR 2024' -> 'cvpr'
    """
    s = normalize_venue_key(raw)
    for pattern in _STATUS_PREFIXES:
        stripped = pattern.sub("", s, count=1)
        if stripped != s:
            s = stripped
            break
    s = _TRAILING_YEAR_RE.sub("", s)
    return s.strip()


def clean_venue(raw: str | None) -> str:
    """Aggressive cleanup used by every tier after exact.

    'Proceedings of the 38th International Conference on Machine Learning, ICML 2021, vol. 139'
    -> 'international conference on machine learning icml'
    """
    s = normalize_venue(raw)
    if not s:
        return ""

    without_parens = _PAREN_RE.sub(" ", s)
    if without_parens.strip():
        s = without_parens
    else:
        s = _PAREN_RE.sub(lambda m: f" {m.group(1) or m.group(2) or ''} ", s)

    s = _VOLUME_RE.sub(" ", s)
    s = _ORDINAL_RE.sub(" ", s)
    s = _APOSTROPHE_YEAR_RE.sub(" ", s)
    s = _GLUED_YEAR_RE.sub(" ", s)
    s = _YEAR_RE.sub(" ", s)
    s = _PUNCT_RE.sub(" ", s)
    s = _NUMBER_RE.sub(" ", s)
    s = " ".join(s.split())

    # "proceedings of the", "in", "the" may be stacked
    previous = None
    while previous != s:
        previous = s
        s = _PROCEEDINGS_RE.sub("", s)
        s = _LEADING_IN_RE.sub("", s)
    return s.strip()


# ------------- Matcher -------------


class VenueMatcher:
    """Resolve raw venue strings to catalog entries.

    Indexes are built once from the catalog; match() is a pure function of
    its input afterwards.
    """

    def __init__(self, catalog: CCFCatalog, config: MatcherConfig | None = None) -> None:
        self.catalog = catalog
        self.config = config or MatcherConfig()

        self._exact: dict[str, CatalogEntry] = {}
        self._cleaned: dict[str, CatalogEntry] = {}
        self._acronyms: dict[str, CatalogEntry] = {}
        self._own_acronyms: dict[CatalogEntry, frozenset[str]] = {}
        partial: dict[str, CatalogEntry] = {}

        for entry in catalog:
            for key in (entry.abbr, entry.name):
                self._exact.setdefault(normalize_venue_key(key), entry)
                cleaned = clean_venue(key)
                if cleaned:
                    self._cleaned.setdefault(cleaned, entry)
            for key in (entry.name, *entry.aliases):
                cleaned = clean_venue(key)
                if len(cleaned) >= self.config.min_partial_length:
                    partial.setdefault(cleaned, entry)
            for key in (entry.abbr, *entry.acronyms):
                cleaned = clean_venue(key)
                if cleaned:
                    self._acronyms.setdefault(cleaned, entry)
            self._own_acronyms[entry] = frozenset(clean_venue(key) for key in (entry.abbr, *entry.acronyms))

        # Longest key first so the most specific name wins
        self._partial: list[tuple[str, CatalogEntry]] = sorted(partial.items(), key=lambda kv: -len(kv[0]))

    # --- Tiers ---

    def _match_exact(self, normalized: str) -> CatalogEntry | None:
        return self._exact.get(normalized) if normalized else None

    def _match_cleaned(self, cleaned: str) -> CatalogEntry | None:
        return self._cleaned.get(cleaned) if cleaned else None

    def _match_partial(self, cleaned: str) -> CatalogEntry | None:
        if len(cleaned) < self.config.min_partial_length:
            return None
        padded = f" {cleaned} "
        for key, entry in self._partial:
            start = padded.find(f" {key} ")
            if start >= 0:
                leftover = (padded[:start] + padded[start + len(key) + 1 :]).split()
                if self._covers(key, cleaned, leftover, entry):
                    return entry
                continue
            if f" {cleaned} " in f" {key} " and len(cleaned) / len(key) >= self.config.min_partial_ratio:
                return entry
        return None

    def _covers(self, key: str, cleaned: str, leftover: list[str], entry: CatalogEntry) -> bool:
        """A name found inside a longer input must account for most of it.

        Words outside the name are fine when they are venue boilerplate or
        the entry's own abbreviation; anything else counts against coverage.
        """
        own = self._own_acronyms[entry]
        if all(token in _PARTIAL_FILLER or token in own for token in leftover):
            return True
        return len(key) / len(cleaned) >= self.config.min_partial_coverage

    def _match_acronym(self, cleaned: str) -> CatalogEntry | None:
        if not cleaned:
            return None
        entry = self._acronyms.get(cleaned)
        if entry is not None:
            return entry
        for token in cleaned.split():
            if len(token) < self.config.min_acronym_length:
                continue
            entry = self._acronyms.get(token)
            if entry is not None:
                return entry
        return None

    def _resolve(self, raw: str) -> tuple[CatalogEntry, Confidence] | None:
        normalized = normalize_venue(raw)
        entry = self._match_exact(normalized)
        if entry is not None:
            return entry, Confidence.EXACT

        cleaned = clean_venue(raw)
        for tier, confidence in (
            (self._match_cleaned, Confidence.CLEANED),
            (self._match_partial, Confidence.PARTIAL),
            (self._match_acronym, Confidence.ACRONYM),
        ):
            entry = tier(cleaned)
            if entry is not None:
                return entry, confidence
        return None

    # --- Public API ---

    def match(self, raw_venue: str | None) -> MatchResult:
        """Match a raw venue string; the highest applicable tier wins."""
        raw = raw_venue or ""
        cleaned = clean_venue(raw)
        resolved = self._resolve(raw) if raw.strip() else None
        if resolved is None:
            return MatchResult.empty(original_venue=raw, cleaned_venue=cleaned)
        entry, confidence = resolved
        return MatchResult(
            matched=True,
            entry=entry,
            confidence=confidence,
            original_venue=raw,
            cleaned_venue=cleaned,
        )

    def has(self, venue: str | None) -> bool:
        """True if match() would report anything above 'none'."""
        if not venue or not venue.strip():
            return False
        return self._resolve(venue) is not None

    def suggest(self, venue: str, limit: int = 3, score_cutoff: float = 50.0) -> list[tuple[CatalogEntry, float]]:
        """Closest catalog venues by token_sort_ratio, for explaining misses.

        Never used by match(); purely diagnostic.
        """
        query = clean_venue(venue)
        if not query:
            return []
        choices = list(self._cleaned.keys())
        hits = process.extract(
            query, choices, scorer=fuzz.token_sort_ratio, limit=limit * 3, score_cutoff=score_cutoff
        )
        seen: set[str] = set()
        suggestions: list[tuple[CatalogEntry, float]] = []
        for key, score, _ in hits:
            entry = self._cleaned[key]
            if entry.abbr in seen:
                continue
            seen.add(entry.abbr)
            suggestions.append((entry, float(score)))
            if len(suggestions) >= limit:
                break
        return suggestions
