"""Shared text utilities for venue and title handling.

This module provides common functionality used by:
- catalog.py / matcher.py (venue key normalization)
- dblp.py (title normalization and similarity)
- cache.py (cache key normalization)
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterable

# ------------- Constants & Regex -------------

_HTML_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")

# Years between 1900 and 2099
YEAR_RE = re.compile(r"(?:^|[^\d])((?:19|20)\d{2})(?!\d)")
SHORT_YEAR_RE = re.compile(r"['’](\d{2})(?!\d)")


# ------------- Text Normalization -------------


def safe_lower(x: str | None) -> str:
    """Null-safe lowercase and strip."""
    return (x or "").lower().strip()


def strip_diacritics(text: str) -> str:
    """Remove diacritics from text (e.g., 'café' -> 'cafe')."""
    nfkd = unicodedata.normalize("NFKD", text)
    return "".join([c for c in nfkd if not unicodedata.combining(c)])


def strip_html(text: str) -> str:
    """Remove HTML/XML tags (DBLP titles sometimes carry <i>, <sub>, ...)."""
    return _HTML_TAG_RE.sub("", text or "")


def collapse_whitespace(text: str, sep: str = " ") -> str:
    """Collapse runs of whitespace to a single separator and trim."""
    return _WS_RE.sub(sep, (text or "").strip())


def normalize_venue_key(venue: str | None) -> str:
    """Normalize a venue name for catalog lookups.

    Lowercases, strips diacritics and collapses whitespace. Punctuation is
    kept so that names such as 'S&P' stay distinguishable.
    """
    return collapse_whitespace(strip_diacritics(venue or "").lower())


def normalize_title_for_match(title: str) -> str:
    """Normalize a title for token comparison.

    Removes HTML tags, diacritics and non-word characters, collapses
    whitespace and lowercases.
    """
    t = strip_html(title)
    t = strip_diacritics(t).lower()
    t = re.sub(r"[^\w\s]", "", t)
    return collapse_whitespace(t)


def normalize_cache_key(key: str) -> str:
    """Normalize a cache key so that case and spacing variants share a slot."""
    return collapse_whitespace((key or "").lower(), sep="_")


# ------------- Matching Utilities -------------


def jaccard_similarity(a: Iterable[str], b: Iterable[str]) -> float:
    """Compute Jaccard similarity between two iterables of strings."""
    sa, sb = set(a), set(b)
    if not sa and not sb:
        return 0.0
    inter = len(sa & sb)
    union = len(sa | sb)
    return inter / union if union else 0.0


def title_similarity(title_a: str, title_b: str) -> float:
    """Word-set Jaccard index of two normalized titles."""
    words_a = normalize_title_for_match(title_a).split()
    words_b = normalize_title_for_match(title_b).split()
    return jaccard_similarity(words_a, words_b)


# ------------- Year Extraction -------------


def extract_year(text: str | None) -> str | None:
    """Best-effort year extraction.

    Supports '2024', 'CVPR2024' and "CVPR'24" forms. Two-digit years up to 50
    map to the 2000s, the rest to the 1900s.
    """
    value = (text or "").strip()
    if not value:
        return None

    m = YEAR_RE.search(value)
    if m:
        return m.group(1)

    m = SHORT_YEAR_RE.search(value)
    if m:
        yy = int(m.group(1))
        century = 2000 if yy <= 50 else 1900
        return str(century + yy)

    return None
