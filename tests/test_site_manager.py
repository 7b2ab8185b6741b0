"""Tests for the adapter registry and the processing ledger."""

from __future__ import annotations

import pytest

from ccf_lens.adapters import PROCESSED_MARKER, ArxivAdapter, PaperInfo, SiteAdapter, VenueSource
from ccf_lens.dblp import LookupResult
from ccf_lens.matcher import Confidence
from ccf_lens.site_manager import SiteManager

LISTING_URL = "https://arxiv.org/list/cs.LG/recent"


class StaticAdapter(SiteAdapter):
    """Adapter serving a fixed list of papers."""

    site_id = "static"
    site_name = "Static"

    def __init__(self, papers):
        super().__init__()
        self.papers = papers

    def is_match(self, url):
        return url.startswith("static://")

    def get_papers(self):
        return list(self.papers)


@pytest.fixture
def loaded_adapter(matcher, make_feed, sample_papers) -> ArxivAdapter:
    adapter = ArxivAdapter(venue_validator=matcher.has)
    adapter.load_feed(make_feed(sample_papers))
    return adapter


@pytest.fixture
def manager(matcher, loaded_adapter) -> SiteManager:
    manager = SiteManager(matcher)
    manager.register_adapter(loaded_adapter)
    assert manager.initialize(LISTING_URL)
    return manager


class TestRegistry:
    """Tests for adapter registration and site detection."""

    def test_register_and_detect(self, matcher, loaded_adapter):
        manager = SiteManager(matcher)
        manager.register_adapter(loaded_adapter)
        assert manager.get_adapter("arxiv") is loaded_adapter
        assert manager.detect_current_site(LISTING_URL) is loaded_adapter
        assert manager.detect_current_site("https://example.org") is None

    def test_factory_is_lazy(self, matcher):
        built = []

        def factory():
            built.append(1)
            return ArxivAdapter()

        manager = SiteManager(matcher)
        manager.register_adapter_factory("arxiv", factory)
        assert manager.registered_site_ids() == ["arxiv"]
        assert built == []
        adapter = manager.get_adapter("arxiv")
        assert manager.get_adapter("arxiv") is adapter
        assert built == [1]

    def test_initialize_unknown_site(self, matcher, loaded_adapter):
        manager = SiteManager(matcher)
        manager.register_adapter(loaded_adapter)
        assert not manager.initialize("https://example.org/papers")
        assert manager.current_adapter is None
        assert manager.process_current_page() == []

    def test_unregister_current(self, manager):
        manager.unregister_adapter("arxiv")
        assert manager.current_adapter is None
        assert manager.registered_site_ids() == []

    def test_adapter_without_site_id(self, matcher):
        adapter = StaticAdapter([])
        adapter.site_id = ""
        with pytest.raises(ValueError):
            SiteManager(matcher).register_adapter(adapter)


class TestProcessing:
    """Tests for process_current_page and the processed state."""

    def test_records_new_papers(self, manager):
        new = manager.process_current_page()
        assert [p.id for p in new] == ["2403.00001", "1706.03762", "2301.00003"]
        assert all(not p.processed for p in new)

    def test_match_results(self, manager):
        manager.process_current_page()
        cvpr = manager.get("2403.00001")
        assert cvpr.match_result.entry.abbr == "CVPR"
        assert cvpr.rank == "A"
        attention = manager.get("1706.03762")
        assert not attention.match_result.matched
        assert attention.match_result.confidence is Confidence.NONE
        assert manager.get("2301.00003").match_result.entry.abbr == "TKDE"

    def test_repeated_scans_are_idempotent(self, manager):
        first = manager.process_current_page()
        second = manager.process_current_page()
        assert len(first) == 3
        assert second == []
        assert len(manager) == 3

    def test_mark_as_processed(self, manager):
        manager.process_current_page()
        manager.mark_as_processed("2403.00001")
        record = manager.get("2403.00001")
        assert record.processed
        assert record.element.get_attribute(PROCESSED_MARKER) == "true"
        assert manager.is_processed("2403.00001")
        assert not manager.is_processed("1706.03762")

    def test_mark_as_processed_twice_is_noop(self, manager):
        manager.process_current_page()
        manager.mark_as_processed("2403.00001")
        before = manager.results()
        manager.mark_as_processed("2403.00001")
        manager.mark_as_processed("unknown-id")
        assert manager.results() == before

    def test_marker_survives_ledger_reset(self, manager):
        manager.process_current_page()
        for paper in manager.results():
            manager.mark_as_processed(paper.id)
        manager.reset()
        assert len(manager) == 0
        assert manager.process_current_page() == []

    def test_reset_with_marker_cleanup_reprocesses(self, manager):
        manager.process_current_page()
        for paper in manager.results():
            manager.mark_as_processed(paper.id)
        manager.reset(clear_markers=True)
        assert len(manager.process_current_page()) == 3

    def test_has_element_been_processed(self, manager, loaded_adapter):
        element = loaded_adapter.elements[0]
        assert not manager.has_element_been_processed("2403.00001", element)
        manager.mark_element_as_processed(element)
        assert manager.has_element_been_processed("2403.00001", element)
        assert manager.is_processed("2403.00001", element)

    def test_papers_without_venue_get_zero_result(self, matcher):
        adapter = StaticAdapter([PaperInfo(id="p1", title="Untitled Work")])
        manager = SiteManager(matcher)
        manager.register_adapter(adapter)
        manager.initialize("static://page")
        (record,) = manager.process_current_page()
        assert record.match_result.matched is False
        assert record.match_result.cleaned_venue == ""


class TestApplyLookup:
    """Tests for upgrading papers with DBLP results."""

    def test_found_venue_recomputes_match(self, manager):
        manager.process_current_page()
        result = LookupResult(found=True, venue="NeurIPS", year="2017", url="https://dblp.org/rec/x")
        record = manager.apply_lookup("1706.03762", result)
        assert record.venue == "NeurIPS"
        assert record.year == "2017"
        assert record.venue_source is VenueSource.DBLP
        assert record.rank == "A"
        assert record.lookup is result

    def test_apply_twice_is_idempotent(self, manager):
        manager.process_current_page()
        result = LookupResult(found=True, venue="NeurIPS", year="2017")
        manager.apply_lookup("1706.03762", result)
        manager.apply_lookup("1706.03762", result)
        assert manager.statistics()["by_rank"]["A"] == 3
        assert len(manager) == 3

    def test_failure_keeps_venue(self, manager):
        manager.process_current_page()
        record = manager.apply_lookup("1706.03762", LookupResult.failure("Request timeout", timed_out=True))
        assert record.venue is None
        assert record.lookup.timed_out
        assert record.venue_source is VenueSource.UNKNOWN

    def test_unknown_id(self, manager):
        assert manager.apply_lookup("missing", LookupResult.not_found()) is None


class TestQueries:
    """Tests for statistics and filtering."""

    def test_statistics(self, manager):
        manager.process_current_page()
        assert manager.statistics() == {"total": 3, "by_rank": {"A": 2, "B": 0, "C": 0, "unknown": 1}}

    def test_papers_by_rank(self, manager):
        manager.process_current_page()
        assert {p.id for p in manager.papers_by_rank("A")} == {"2403.00001", "2301.00003"}
        assert [p.id for p in manager.papers_by_rank(None)] == ["1706.03762"]

    def test_empty_statistics(self, matcher):
        assert SiteManager(matcher).statistics() == {"total": 0, "by_rank": {"A": 0, "B": 0, "C": 0, "unknown": 0}}


class TestObservation:
    """Change notifications are delegated to the current adapter."""

    def test_start_observing_and_disconnect(self, manager, loaded_adapter, make_feed):
        calls = []
        manager.start_observing(lambda: calls.append(1))
        loaded_adapter.add_feed(make_feed([{"id": "9999.00001", "title": "Late Arrival"}]))
        assert calls == [1]
        manager.disconnect()
        loaded_adapter.add_feed(make_feed([{"id": "9999.00002", "title": "Later Arrival"}]))
        assert calls == [1]

    def test_release_forgets_current_adapter(self, manager, loaded_adapter, make_feed):
        manager.process_current_page()
        calls = []
        manager.start_observing(lambda: calls.append(1))
        manager.release()
        assert manager.current_adapter is None
        assert len(manager) == 3
        assert manager.process_current_page() == []
        loaded_adapter.add_feed(make_feed([{"id": "9999.00003", "title": "After Release"}]))
        assert calls == []
