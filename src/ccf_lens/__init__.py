"""ccf-lens - CCF rank annotation for academic paper listings.

This package provides tools for:
- Matching raw venue strings ("Accepted to CVPR 2024") against the CCF catalog
- Looking up the venue of a paper title on DBLP, with a persistent cache
- Annotating arXiv and IEEE Xplore listings with rank badges, processing each paper once

Example usage:
    from ccf_lens import CCFCatalog, VenueMatcher

    matcher = VenueMatcher(CCFCatalog.default())
    result = matcher.match("Accepted to CVPR 2024")
    print(result.entry.abbr, result.rank, result.confidence)
"""

from ccf_lens._version import __version__

# Adapters
from ccf_lens.adapters import (
    PROCESSED_MARKER,
    ArxivAdapter,
    AttributeMarker,
    IeeeAdapter,
    PaperElement,
    PaperInfo,
    ProcessedMarker,
    SiteAdapter,
    VenueSource,
)

# Pipeline
from ccf_lens.annotator import LOOKUP_SITES, BadgeState, LoggingBadgeRenderer, RankAnnotator
from ccf_lens.cache import CacheStore

# Catalog and matching
from ccf_lens.catalog import RANKS, CatalogEntry, CCFCatalog
from ccf_lens.config import AnnotatorConfig, LookupConfig, MatcherConfig
from ccf_lens.dblp import DblpClient, LookupResult
from ccf_lens.matcher import Confidence, MatchResult, VenueMatcher, clean_venue, normalize_venue
from ccf_lens.settings import Settings, load_settings, save_settings
from ccf_lens.site_manager import ProcessedPaperInfo, SiteManager
from ccf_lens.task_queue import LookupQueue

__all__ = [
    "__version__",
    # Catalog and matching
    "RANKS",
    "CatalogEntry",
    "CCFCatalog",
    "Confidence",
    "MatchResult",
    "VenueMatcher",
    "clean_venue",
    "normalize_venue",
    # Lookup
    "CacheStore",
    "DblpClient",
    "LookupResult",
    "LookupQueue",
    # Pages
    "PROCESSED_MARKER",
    "ArxivAdapter",
    "AttributeMarker",
    "IeeeAdapter",
    "PaperElement",
    "PaperInfo",
    "ProcessedMarker",
    "ProcessedPaperInfo",
    "SiteAdapter",
    "SiteManager",
    "VenueSource",
    # Pipeline
    "LOOKUP_SITES",
    "AnnotatorConfig",
    "BadgeState",
    "LoggingBadgeRenderer",
    "LookupConfig",
    "MatcherConfig",
    "RankAnnotator",
    "Settings",
    "load_settings",
    "save_settings",
]
