"""Tests for the CCF catalog index."""

from __future__ import annotations

import pytest

from ccf_lens.catalog import RANKS, CatalogEntry, CCFCatalog


class TestDefaultCatalog:
    """Tests for the bundled catalog table."""

    def test_not_empty(self, catalog):
        assert len(catalog) > 100

    def test_ranks_are_valid(self, catalog):
        assert all(entry.rank in RANKS for entry in catalog)

    def test_abbreviations_unique(self, catalog):
        abbrs = [entry.abbr.lower() for entry in catalog]
        assert len(abbrs) == len(set(abbrs))

    def test_known_ranks(self, catalog):
        assert catalog.get_by_abbr("CVPR").rank == "A"
        assert catalog.get_by_abbr("NeurIPS").rank == "A"
        assert catalog.get_by_abbr("ECCV").rank == "B"


class TestLookups:
    """Tests for abbreviation, name, alias and acronym lookups."""

    def test_get_by_abbr_is_case_insensitive(self, catalog):
        assert catalog.get_by_abbr("cvpr").abbr == "CVPR"

    def test_get_by_name(self, catalog):
        entry = catalog.get_by_name("International Conference on Machine Learning")
        assert entry.abbr == "ICML"

    def test_get_by_alias(self, catalog):
        entry = catalog.get_by_alias("Advances in Neural Information Processing Systems")
        assert entry.abbr == "NeurIPS"

    def test_get_by_acronym(self, catalog):
        assert catalog.get_by_acronym("NIPS").abbr == "NeurIPS"
        assert catalog.get_by_acronym("PAMI").abbr == "TPAMI"

    def test_get_tries_every_index(self, catalog):
        assert catalog.get("NIPS").abbr == "NeurIPS"
        assert catalog.get("  icml ").abbr == "ICML"

    def test_get_unknown(self, catalog):
        assert catalog.get("Workshop on Nothing") is None
        assert catalog.get("") is None

    def test_has_and_contains(self, catalog):
        assert catalog.has("CVPR")
        assert "NIPS" in catalog
        assert "nonsense venue" not in catalog
        assert 42 not in catalog


class TestCustomCatalog:
    """Tests for catalogs built from plain records."""

    def test_from_records(self):
        catalog = CCFCatalog.from_records(
            [
                {"abbr": "FOO", "name": "Foo Conference", "rank": "b", "acronyms": ["FOOC"]},
                {"abbr": "BARJ", "name": "Journal of Bar", "rank": None, "type": "journal"},
            ]
        )
        assert len(catalog) == 2
        assert catalog.get_by_abbr("foo").rank == "B"
        assert catalog.get("FOOC").abbr == "FOO"
        assert catalog.get_by_abbr("BARJ").rank is None
        assert catalog.get_by_abbr("BARJ").type == "journal"

    def test_invalid_rank_rejected(self):
        with pytest.raises(ValueError, match="Invalid CCF rank"):
            CatalogEntry.from_dict({"abbr": "X", "name": "X Conf", "rank": "D"})

    def test_first_entry_wins_on_duplicate_key(self):
        first = CatalogEntry("DUP", "Duplicate Conference", "A")
        second = CatalogEntry("DUP", "Another Name", "C")
        catalog = CCFCatalog([first, second])
        assert catalog.get_by_abbr("DUP") is first
        assert catalog.get_by_name("Another Name") is second
        assert catalog.entries == [first, second]
