"""Tests for the annotation pipeline."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from ccf_lens.annotator import BadgeState, LoggingBadgeRenderer, RankAnnotator, badge_state_for
from ccf_lens.cache import CacheStore
from ccf_lens.config import AnnotatorConfig
from ccf_lens.dblp import DblpClient
from ccf_lens.settings import Settings

LISTING_URL = "https://arxiv.org/list/cs.CL/recent"


@pytest.fixture
def build_annotator(catalog, make_feed, sample_papers):
    """Factory for an annotator over the sample feed and a mock DBLP transport."""

    def _build(transport, settings=None, cache=None, papers=None, **kwargs):
        cache = cache if cache is not None else CacheStore(None)
        annotator = RankAnnotator(
            catalog=catalog,
            config=AnnotatorConfig(cache_path=None),
            settings=settings,
            renderer=LoggingBadgeRenderer(),
            dblp=DblpClient(cache=cache, transport=transport),
            **kwargs,
        )
        annotator.site_manager.get_adapter("arxiv").load_feed(make_feed(papers or sample_papers))
        return annotator

    return _build


def run_pipeline(annotator, url=LISTING_URL, after_start=None):
    async def run():
        started = annotator.start(url)
        if after_start is not None:
            after_start(annotator)
        await annotator.wait_idle()
        await annotator.aclose()
        return started

    return asyncio.run(run())


class TestAttentionScenario:
    """A venue-less arXiv paper is resolved through exactly one DBLP lookup."""

    def test_single_lookup_resolves_neurips(self, build_annotator, attention_transport):
        cache = CacheStore(None)
        annotator = build_annotator(attention_transport, cache=cache)
        assert run_pipeline(annotator)

        assert len(attention_transport.requests) == 1
        assert attention_transport.requests[0].url.params["q"] == "Attention Is All You Need"
        assert cache.get("dblp_attention_is_all_you_need")["found"] is True

        record = annotator.site_manager.get("1706.03762")
        assert record.lookup.found
        assert record.venue == "NeurIPS"
        assert record.venue_source.value == "dblp"
        assert record.rank == "A"
        assert annotator.renderer.badges["1706.03762"] == "A"

    def test_statistics_after_lookup(self, build_annotator, attention_transport):
        annotator = build_annotator(attention_transport)
        run_pipeline(annotator)
        assert annotator.statistics() == {"total": 3, "by_rank": {"A": 3, "B": 0, "C": 0, "unknown": 0}}

    def test_rescan_does_not_requeue(self, build_annotator, attention_transport):
        annotator = build_annotator(attention_transport)
        run_pipeline(annotator, after_start=lambda a: (a.scan(), a.scan()))
        assert len(attention_transport.requests) == 1


class TestBadges:
    """Badges reflect the rank, the lookup state and the settings."""

    def test_initial_badges(self, build_annotator, attention_transport):
        annotator = build_annotator(attention_transport)
        seen = {}
        run_pipeline(annotator, after_start=lambda a: seen.update(a.renderer.badges))
        assert seen == {"2403.00001": "A", "1706.03762": "loading", "2301.00003": "A"}

    def test_timeout_badge(self, build_annotator, dblp_server):
        def handler(request):
            raise httpx.ConnectTimeout("slow", request=request)

        annotator = build_annotator(dblp_server(handler))
        run_pipeline(annotator)
        assert annotator.renderer.badges["1706.03762"] == BadgeState.TIMEOUT.value
        assert annotator.site_manager.get("1706.03762").rank is None

    def test_error_badge(self, build_annotator, dblp_server):
        annotator = build_annotator(dblp_server(lambda request: httpx.Response(500)))
        run_pipeline(annotator)
        assert annotator.renderer.badges["1706.03762"] == BadgeState.ERROR.value

    def test_not_found_badge(self, build_annotator, dblp_server):
        transport = dblp_server(lambda request: httpx.Response(200, json={"result": {"hits": {"@total": "0"}}}))
        annotator = build_annotator(transport)
        run_pipeline(annotator)
        assert annotator.renderer.badges["1706.03762"] == BadgeState.UNKNOWN.value

    def test_hidden_rank_not_rendered(self, build_annotator, attention_transport):
        settings = Settings()
        settings.show_ranks.A = False
        annotator = build_annotator(attention_transport, settings=settings)
        run_pipeline(annotator)
        assert annotator.renderer.badges == {}

    def test_papers_marked_processed(self, build_annotator, attention_transport):
        annotator = build_annotator(attention_transport)
        run_pipeline(annotator)
        assert all(p.processed for p in annotator.site_manager.results())

    def test_badge_state_for_unmatched(self, build_annotator, attention_transport):
        annotator = build_annotator(attention_transport, enable_lookup=False)
        run_pipeline(annotator)
        assert badge_state_for(annotator.site_manager.get("1706.03762")) == "unknown"
        assert attention_transport.requests == []


class TestLookupGating:
    """Lookups only run for allowed, enabled sites."""

    def test_disabled_site(self, build_annotator, attention_transport):
        settings = Settings()
        settings.enabled_sites.arxiv = False
        annotator = build_annotator(attention_transport, settings=settings)
        assert not run_pipeline(annotator)
        assert attention_transport.requests == []
        assert annotator.statistics()["total"] == 0

    def test_unknown_url(self, build_annotator, attention_transport):
        annotator = build_annotator(attention_transport)
        assert not run_pipeline(annotator, url="https://example.org/papers")

    def test_disabled_site_stays_unbadged_after_settings_change(self, build_annotator, attention_transport):
        settings = Settings()
        settings.enabled_sites.arxiv = False
        annotator = build_annotator(attention_transport, settings=settings)

        async def run():
            assert not annotator.start(LISTING_URL)
            changed = Settings()
            changed.enabled_sites.arxiv = False
            changed.show_ranks.C = False
            annotator.update_settings(changed)
            await annotator.wait_idle()
            await annotator.aclose()

        asyncio.run(run())
        assert annotator.renderer.badges == {}
        assert annotator.statistics()["total"] == 0
        assert attention_transport.requests == []

    def test_disabling_active_site_removes_badges(self, build_annotator, attention_transport):
        annotator = build_annotator(attention_transport)

        async def run():
            annotator.start(LISTING_URL)
            await annotator.wait_idle()
            changed = Settings()
            changed.enabled_sites.arxiv = False
            annotator.update_settings(changed)
            annotator.scan()
            await annotator.aclose()

        asyncio.run(run())
        assert annotator.renderer.badges == {}
        assert annotator.statistics()["total"] == 0


class TestDynamicContent:
    """Papers appended after start are scanned through the change callback."""

    def test_added_feed_is_scanned(self, build_annotator, attention_transport, make_feed):
        annotator = build_annotator(attention_transport)

        def add_more(a):
            adapter = a.site_manager.current_adapter
            late = {"id": "2405.00009v1", "title": "Late Paper", "comment": "Accepted to ICML 2024"}
            adapter.add_feed(make_feed([late]))

        run_pipeline(annotator, after_start=add_more)
        assert annotator.statistics()["total"] == 4
        assert annotator.renderer.badges["2405.00009"] == "A"


class TestSettingsUpdate:
    """update_settings rebuilds badges; DBLP answers come from the cache."""

    def test_rescan_uses_cache(self, build_annotator, attention_transport):
        annotator = build_annotator(attention_transport)

        async def run():
            annotator.start(LISTING_URL)
            await annotator.wait_idle()
            settings = Settings()
            settings.show_ranks.unknown = False
            annotator.update_settings(settings)
            await annotator.wait_idle()
            await annotator.aclose()

        asyncio.run(run())
        assert len(attention_transport.requests) == 1
        assert annotator.statistics()["by_rank"]["A"] == 3
        assert annotator.renderer.badges["1706.03762"] == "A"

    def test_settings_change_after_teardown(self, build_annotator, attention_transport):
        annotator = build_annotator(attention_transport)

        async def run():
            annotator.start(LISTING_URL)
            await annotator.wait_idle()
            annotator.teardown()
            annotator.renderer.clear()
            annotator.update_settings(Settings())
            await annotator.wait_idle()
            await annotator.dblp.close()

        asyncio.run(run())
        assert annotator.site_manager.current_adapter is None
        assert annotator.renderer.badges == {}
        assert annotator.statistics()["total"] == 0
        assert len(attention_transport.requests) == 1

    def test_stale_lookup_discarded(self, build_annotator):
        gate = {}

        async def slow_handler(request):
            await gate["event"].wait()
            info = {"title": "Attention Is All You Need", "venue": "NeurIPS"}
            return httpx.Response(200, json={"result": {"hits": {"hit": [{"info": info}]}}})

        transport = httpx.MockTransport(slow_handler)
        annotator = build_annotator(transport)

        async def run():
            gate["event"] = asyncio.Event()
            annotator.start(LISTING_URL)
            await asyncio.sleep(0)
            annotator.teardown()
            gate["event"].set()
            await annotator.wait_idle()
            await annotator.dblp.close()

        asyncio.run(run())
        record = annotator.site_manager.get("1706.03762")
        assert record.lookup is None
        assert record.venue is None
        assert annotator.renderer.badges["1706.03762"] == "loading"


class TestIeeePages:
    """IEEE Xplore results carry their venue; no DBLP lookups are made."""

    IEEE_URL = "https://ieeexplore.ieee.org/search/searchresult.jsp?queryText=graph"

    def test_registry(self, build_annotator, attention_transport):
        annotator = build_annotator(attention_transport)
        assert annotator.site_manager.registered_site_ids() == ["arxiv", "ieee"]

    def test_badges_from_publication_titles(self, build_annotator, attention_transport, ieee_results):
        annotator = build_annotator(attention_transport)
        annotator.site_manager.get_adapter("ieee").load_results(ieee_results)
        assert run_pipeline(annotator, url=self.IEEE_URL)
        assert annotator.renderer.badges == {
            "ieee-10203050": "A",
            "ieee-9999001": "A",
            "ieee-8888123": "unknown",
            "ieee-7777001": "A",
        }
        assert attention_transport.requests == []

    def test_disabled_ieee(self, build_annotator, attention_transport, ieee_results):
        settings = Settings()
        settings.enabled_sites.ieee = False
        annotator = build_annotator(attention_transport, settings=settings)
        annotator.site_manager.get_adapter("ieee").load_results(ieee_results)
        assert not run_pipeline(annotator, url=self.IEEE_URL)
        assert annotator.renderer.badges == {}
