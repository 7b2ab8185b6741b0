"""Adapter registry and per-page processing ledger.

SiteManager picks the adapter for the current URL, extracts papers through
it and keeps one ProcessedPaperInfo per paper id. A paper counts as already
processed when either the in-memory ledger knows its id or its host element
carries the durable processed marker; the second check survives a reset of
the ledger (e.g. after re-initialization on the same page).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ccf_lens.adapters.base import AttributeMarker, PaperInfo, ProcessedMarker, SiteAdapter, VenueSource
from ccf_lens.catalog import RANKS
from ccf_lens.dblp import LookupResult
from ccf_lens.matcher import MatchResult, VenueMatcher

logger = logging.getLogger(__name__)

__all__ = ["ProcessedPaperInfo", "SiteManager"]

AdapterFactory = Callable[[], SiteAdapter]


@dataclass(eq=False)
class ProcessedPaperInfo(PaperInfo):
    """PaperInfo plus its match result, processed flag and last lookup status."""

    match_result: MatchResult | None = None
    processed: bool = False
    lookup: LookupResult | None = None

    @property
    def rank(self) -> str | None:
        return self.match_result.rank if self.match_result is not None else None


class SiteManager:
    """Owns the adapter registry and the processed-paper ledger."""

    def __init__(
        self,
        matcher: VenueMatcher,
        marker: ProcessedMarker | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.matcher = matcher
        self.marker = marker or AttributeMarker()
        self.logger = logger or logging.getLogger(__name__)
        self._adapters: dict[str, SiteAdapter] = {}
        self._factories: dict[str, AdapterFactory] = {}
        self._current: SiteAdapter | None = None
        self._ledger: dict[str, ProcessedPaperInfo] = {}

    # ------------- Adapter registry -------------

    def register_adapter(self, adapter: SiteAdapter) -> None:
        if not adapter.site_id:
            raise ValueError("Adapter has no site_id")
        self._adapters[adapter.site_id] = adapter

    def register_adapter_factory(self, site_id: str, factory: AdapterFactory) -> None:
        """Register a factory that builds the adapter on first use."""
        self._factories[site_id] = factory

    def get_adapter(self, site_id: str) -> SiteAdapter | None:
        adapter = self._adapters.get(site_id)
        if adapter is None and site_id in self._factories:
            adapter = self._factories.pop(site_id)()
            self._adapters[site_id] = adapter
        return adapter

    def registered_site_ids(self) -> list[str]:
        return sorted(set(self._adapters) | set(self._factories))

    def unregister_adapter(self, site_id: str) -> None:
        adapter = self._adapters.pop(site_id, None)
        self._factories.pop(site_id, None)
        if adapter is not None and adapter is self._current:
            adapter.disconnect()
            self._current = None

    def detect_current_site(self, url: str) -> SiteAdapter | None:
        """First registered adapter whose URL patterns match."""
        for site_id in self.registered_site_ids():
            adapter = self.get_adapter(site_id)
            if adapter is not None and adapter.is_match(url):
                return adapter
        return None

    def initialize(self, url: str) -> bool:
        """Select the adapter for url. Returns False when no adapter matches."""
        adapter = self.detect_current_site(url)
        if adapter is None:
            self.logger.debug("No adapter for %s", url)
            return False
        if self._current is not None and self._current is not adapter:
            self._current.disconnect()
        self._current = adapter
        self.logger.debug("Using %s adapter for %s", adapter.site_name, url)
        return True

    @property
    def current_adapter(self) -> SiteAdapter | None:
        return self._current

    # ------------- Processing ledger -------------

    def has_element_been_processed(self, paper_id: str, element: Any = None) -> bool:
        """True if the ledger knows the id or the element carries the marker."""
        if paper_id in self._ledger:
            return True
        return element is not None and self.marker.is_marked(element)

    def mark_element_as_processed(self, element: Any) -> None:
        self.marker.mark(element)

    def process_current_page(self) -> list[ProcessedPaperInfo]:
        """Extract papers from the current adapter and record the new ones.

        Returns:
            Newly recorded papers; papers seen before are skipped.
        """
        if self._current is None:
            return []

        new_papers: list[ProcessedPaperInfo] = []
        for paper in self._current.get_papers():
            if self.has_element_been_processed(paper.id, paper.element):
                continue
            match_result = self.matcher.match(paper.venue) if paper.venue else MatchResult.empty()
            record = ProcessedPaperInfo(
                id=paper.id,
                title=paper.title,
                venue=paper.venue,
                venue_source=paper.venue_source,
                year=paper.year,
                element=paper.element,
                insertion_point=self._current.get_insertion_point(paper),
                match_result=match_result,
            )
            self._ledger[paper.id] = record
            new_papers.append(record)

        if new_papers:
            self.logger.debug("Recorded %d new papers", len(new_papers))
        return new_papers

    def mark_as_processed(self, paper_id: str) -> None:
        """Flag a paper as processed and stamp its element. Idempotent."""
        record = self._ledger.get(paper_id)
        if record is None or record.processed:
            return
        record.processed = True
        self.mark_element_as_processed(record.element)

    def is_processed(self, paper_id: str, element: Any = None) -> bool:
        record = self._ledger.get(paper_id)
        if record is not None:
            return record.processed
        return element is not None and self.marker.is_marked(element)

    def apply_lookup(self, paper_id: str, result: LookupResult) -> ProcessedPaperInfo | None:
        """Store a lookup outcome; a found venue replaces the paper's venue.

        Returns:
            The updated record, or None if the id is not in the ledger.
        """
        record = self._ledger.get(paper_id)
        if record is None:
            return None
        record.lookup = result
        if result.found and result.venue:
            record.venue = result.venue
            if result.year:
                record.year = result.year
            record.venue_source = VenueSource.DBLP
            record.match_result = self.matcher.match(result.venue)
        return record

    def get(self, paper_id: str) -> ProcessedPaperInfo | None:
        return self._ledger.get(paper_id)

    def results(self) -> list[ProcessedPaperInfo]:
        return list(self._ledger.values())

    def papers_by_rank(self, rank: str | None) -> list[ProcessedPaperInfo]:
        """Papers with the given rank; None selects unranked papers."""
        return [p for p in self._ledger.values() if p.rank == rank]

    def statistics(self) -> dict[str, Any]:
        by_rank = {rank: 0 for rank in RANKS}
        by_rank["unknown"] = 0
        for record in self._ledger.values():
            rank = record.rank
            by_rank[rank if rank in by_rank else "unknown"] += 1
        return {"total": len(self._ledger), "by_rank": by_rank}

    def reset(self, clear_markers: bool = False) -> None:
        """Forget every paper; optionally strip the durable markers too."""
        if clear_markers:
            for record in self._ledger.values():
                self.marker.unmark(record.element)
        self._ledger.clear()

    def __len__(self) -> int:
        return len(self._ledger)

    # ------------- Change observation -------------

    def start_observing(self, callback: Callable[[], None]) -> None:
        if self._current is not None:
            self._current.observe_changes(callback)

    def disconnect(self) -> None:
        if self._current is not None:
            self._current.disconnect()

    def release(self) -> None:
        """Disconnect and forget the current adapter; the ledger is kept."""
        self.disconnect()
        self._current = None
