"""Annotation pipeline.

RankAnnotator wires the site manager, matcher, DBLP client and lookup queue
together: each scan records newly seen papers, renders a badge per paper and
schedules one DBLP lookup for every paper that has no venue on a site where
lookups are allowed.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Protocol

from ccf_lens.adapters.arxiv import ArxivAdapter, create_arxiv_adapter
from ccf_lens.adapters.ieee import create_ieee_adapter
from ccf_lens.cache import CacheStore
from ccf_lens.catalog import CCFCatalog
from ccf_lens.config import AnnotatorConfig
from ccf_lens.dblp import DblpClient, LookupResult
from ccf_lens.matcher import VenueMatcher
from ccf_lens.settings import Settings
from ccf_lens.site_manager import ProcessedPaperInfo, SiteManager
from ccf_lens.task_queue import LookupQueue

logger = logging.getLogger(__name__)

# Sites whose listings often lack a venue and are worth a DBLP lookup
LOOKUP_SITES = frozenset({"arxiv"})


class BadgeState(str, Enum):
    """Non-rank badge states."""

    LOADING = "loading"
    UNKNOWN = "unknown"
    ERROR = "error"
    TIMEOUT = "timeout"


class BadgeRenderer(Protocol):
    def render(self, paper: ProcessedPaperInfo, state: str) -> None:
        """Show ``state`` (a rank letter or a BadgeState value) for paper."""

    def remove(self, paper_id: str) -> None:
        """Remove the badge of one paper, if any."""

    def clear(self) -> None:
        """Remove every badge."""


class LoggingBadgeRenderer:
    """Renderer that records badges in memory and logs them."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self.badges: dict[str, str] = {}

    def render(self, paper: ProcessedPaperInfo, state: str) -> None:
        self.badges[paper.id] = state
        self.logger.debug("Badge %s -> %s", paper.id, state)

    def remove(self, paper_id: str) -> None:
        self.badges.pop(paper_id, None)

    def clear(self) -> None:
        self.badges.clear()


def badge_state_for(paper: ProcessedPaperInfo) -> str:
    """Badge for a paper from its match result and lookup status."""
    if paper.rank:
        return paper.rank
    lookup = paper.lookup
    if lookup is not None and lookup.failed:
        return BadgeState.TIMEOUT.value if lookup.timed_out else BadgeState.ERROR.value
    return BadgeState.UNKNOWN.value


class RankAnnotator:
    """Drives scanning, badge rendering and DBLP lookups for one page."""

    def __init__(
        self,
        catalog: CCFCatalog | None = None,
        config: AnnotatorConfig | None = None,
        settings: Settings | None = None,
        renderer: BadgeRenderer | None = None,
        dblp: DblpClient | None = None,
        site_manager: SiteManager | None = None,
        enable_lookup: bool = True,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config or AnnotatorConfig()
        self.settings = settings or Settings()
        self.logger = logger or logging.getLogger(__name__)
        self.matcher = VenueMatcher(catalog or CCFCatalog.default(), self.config.matcher)
        self.renderer = renderer or LoggingBadgeRenderer()
        self.enable_lookup = enable_lookup

        if dblp is None:
            cache = CacheStore(self.config.cache_path, ttl_days=self.config.cache_ttl_days)
            dblp = DblpClient(cache=cache, config=self.config.lookup)
        self.dblp = dblp
        self.queue = LookupQueue(concurrency=self.config.concurrency)

        if site_manager is None:
            site_manager = SiteManager(self.matcher)
            site_manager.register_adapter_factory("arxiv", self._build_arxiv_adapter)
            site_manager.register_adapter_factory("ieee", create_ieee_adapter)
        self.site_manager = site_manager

    def _build_arxiv_adapter(self) -> ArxivAdapter:
        adapter = create_arxiv_adapter()
        adapter.venue_validator = self.matcher.has
        return adapter

    # ------------- Lifecycle -------------

    def start(self, url: str) -> bool:
        """Pick the adapter for url, scan once and rescan on page changes.

        Returns:
            False when no adapter handles the URL or the site is disabled.
        """
        if not self.site_manager.initialize(url):
            return False
        adapter = self.site_manager.current_adapter
        if not self.settings.enabled_sites.is_enabled(adapter.site_id):
            self.logger.info("%s is disabled in settings", adapter.site_name)
            self.site_manager.release()
            return False
        self.scan()
        self.site_manager.start_observing(self.scan)
        return True

    def _active_site(self) -> str | None:
        """Site id of the current page, or None when it must not be badged."""
        adapter = self.site_manager.current_adapter
        if adapter is None or not self.settings.enabled_sites.is_enabled(adapter.site_id):
            return None
        return adapter.site_id

    def scan(self) -> list[ProcessedPaperInfo]:
        """Record new papers, render their badges and schedule lookups.

        Does nothing after teardown or while the current site is disabled.
        """
        site_id = self._active_site()
        if site_id is None:
            return []
        new_papers = self.site_manager.process_current_page()
        lookup_allowed = self.enable_lookup and site_id in LOOKUP_SITES

        for paper in new_papers:
            needs_lookup = lookup_allowed and not paper.venue
            if needs_lookup:
                self._render(paper, BadgeState.LOADING.value)
                self._schedule_lookup(paper)
            else:
                self._render(paper, badge_state_for(paper))
            self.site_manager.mark_as_processed(paper.id)
        return new_papers

    def _render(self, paper: ProcessedPaperInfo, state: str) -> None:
        if state != BadgeState.LOADING.value and not self.settings.show_ranks.shows(paper.rank):
            self.renderer.remove(paper.id)
            return
        self.renderer.render(paper, state)

    def _schedule_lookup(self, paper: ProcessedPaperInfo) -> None:
        paper_id, title = paper.id, paper.title

        async def work() -> LookupResult:
            return await self.dblp.query_by_title(title)

        def on_result(result: LookupResult) -> None:
            record = self.site_manager.apply_lookup(paper_id, result)
            if record is not None:
                self._render(record, badge_state_for(record))

        self.queue.enqueue_guarded(work, on_result, key=paper_id)

    def update_settings(self, settings: Settings) -> None:
        """Apply new settings by rebuilding every badge.

        Running lookups from before the change are discarded; rescheduled
        lookups are answered from the cache.
        """
        self.settings = settings
        self.queue.invalidate()
        self.site_manager.reset(clear_markers=True)
        self.renderer.clear()
        self.scan()

    def teardown(self) -> None:
        """Drop pending lookups and leave the page.

        The ledger stays readable, but later scans and settings changes no
        longer touch this page.
        """
        self.queue.invalidate()
        self.site_manager.release()

    async def wait_idle(self) -> None:
        """Wait until every scheduled lookup has finished."""
        await self.queue.join()

    async def aclose(self) -> None:
        self.teardown()
        await self.dblp.close()

    def statistics(self) -> dict[str, Any]:
        return self.site_manager.statistics()
