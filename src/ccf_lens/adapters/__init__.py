"""Site adapters: extract papers and their venues from academic sites."""

from ccf_lens.adapters.arxiv import ArxivAdapter, create_arxiv_adapter
from ccf_lens.adapters.base import (
    PROCESSED_MARKER,
    AttributeMarker,
    PaperElement,
    PaperInfo,
    ProcessedMarker,
    SiteAdapter,
    VenueSource,
)
from ccf_lens.adapters.ieee import IeeeAdapter, create_ieee_adapter, normalize_ieee_venue

__all__ = [
    "PROCESSED_MARKER",
    "ArxivAdapter",
    "AttributeMarker",
    "IeeeAdapter",
    "PaperElement",
    "PaperInfo",
    "ProcessedMarker",
    "SiteAdapter",
    "VenueSource",
    "create_arxiv_adapter",
    "create_ieee_adapter",
    "normalize_ieee_venue",
]
