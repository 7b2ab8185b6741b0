"""Configuration dataclasses for the venue resolution pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ccf_lens._version import __version__


@dataclass
class MatcherConfig:
    """Thresholds for the venue matcher.

    Attributes:
        min_partial_length: Catalog names/aliases shorter than this never take
            part in partial matching, and shorter inputs are not tried
        min_partial_ratio: When the input is contained in a longer catalog name,
            len(input) / len(name) must reach this ratio
        min_partial_coverage: When a catalog name is found inside a longer input
            that has other words around it, len(name) / len(input) must reach
            this ratio
        min_acronym_length: Tokens shorter than this are not compared against
            acronyms (a whole-string acronym match is always tried)
    """

    min_partial_length: int = 4
    min_partial_ratio: float = 0.5
    min_partial_coverage: float = 0.8
    min_acronym_length: int = 3


@dataclass
class LookupConfig:
    """Settings for the DBLP lookup client.

    Attributes:
        timeout: Request timeout in seconds
        min_similarity: Minimum title Jaccard index for accepting a hit
        max_hits: Number of hits requested from DBLP
        batch_delay: Delay in seconds between requests in a batch
        user_agent: User-Agent header value
    """

    timeout: float = 10.0
    min_similarity: float = 0.5
    max_hits: int = 5
    batch_delay: float = 0.2
    user_agent: str = f"ccf-lens/{__version__}"


@dataclass
class AnnotatorConfig:
    """Configuration for the annotation pipeline.

    Attributes:
        concurrency: Maximum number of DBLP lookups running at once
        cache_path: Path to the JSON cache file; None keeps the cache in memory
        cache_ttl_days: Optional expiry for cached lookups; None never expires
        matcher: MatcherConfig thresholds
        lookup: LookupConfig for the DBLP client
    """

    concurrency: int = 2
    cache_path: str | None = ".cache.ccf_lens.json"
    cache_ttl_days: int | None = None
    matcher: MatcherConfig = field(default_factory=MatcherConfig)
    lookup: LookupConfig = field(default_factory=LookupConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnnotatorConfig:
        """Create config from a dictionary (e.g., loaded from YAML)."""
        data = dict(data)
        matcher = MatcherConfig(**(data.pop("matcher", None) or {}))
        lookup = LookupConfig(**(data.pop("lookup", None) or {}))
        return cls(matcher=matcher, lookup=lookup, **data)

    def to_dict(self) -> dict[str, Any]:
        """Convert config to a dictionary for serialization."""
        return {
            "concurrency": self.concurrency,
            "cache_path": self.cache_path,
            "cache_ttl_days": self.cache_ttl_days,
            "matcher": {
                "min_partial_length": self.matcher.min_partial_length,
                "min_partial_ratio": self.matcher.min_partial_ratio,
                "min_partial_coverage": self.matcher.min_partial_coverage,
                "min_acronym_length": self.matcher.min_acronym_length,
            },
            "lookup": {
                "timeout": self.lookup.timeout,
                "min_similarity": self.lookup.min_similarity,
                "max_hits": self.lookup.max_hits,
                "batch_delay": self.lookup.batch_delay,
                "user_agent": self.lookup.user_agent,
            },
        }
