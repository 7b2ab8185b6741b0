"""IEEE Xplore site adapter.

Papers come from IEEE Xplore search results in JSON form, either the records
behind the search page (``records`` with ``articleNumber`` /
``publicationTitle``) or the metadata API (``articles`` with
``article_number`` / ``publication_title``). The venue is the publication
title, mapped to a CCF abbreviation where IEEE's naming differs.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from typing import Any

from ccf_lens.adapters.base import PaperElement, PaperInfo, SiteAdapter, VenueSource
from ccf_lens.utils import collapse_whitespace, extract_year, strip_html

logger = logging.getLogger(__name__)

# IEEE publication titles and short forms -> CCF abbreviations
IEEE_VENUE_MAPPINGS: dict[str, str] = {
    # Journals
    "ieee transactions on pattern analysis and machine intelligence": "TPAMI",
    "ieee trans. pattern anal. mach. intell.": "TPAMI",
    "tpami": "TPAMI",
    "ieee transactions on image processing": "TIP",
    "ieee trans. image process.": "TIP",
    "ieee transactions on neural networks and learning systems": "TNNLS",
    "ieee trans. neural netw. learn. syst.": "TNNLS",
    "ieee transactions on knowledge and data engineering": "TKDE",
    "ieee trans. knowl. data eng.": "TKDE",
    "ieee transactions on software engineering": "TSE",
    "ieee trans. softw. eng.": "TSE",
    "ieee transactions on visualization and computer graphics": "TVCG",
    "ieee trans. vis. comput. graph.": "TVCG",
    "ieee transactions on computers": "TC",
    "ieee trans. comput.": "TC",
    "ieee transactions on parallel and distributed systems": "TPDS",
    "ieee trans. parallel distrib. syst.": "TPDS",
    "ieee transactions on mobile computing": "TMC",
    "ieee trans. mob. comput.": "TMC",
    "ieee transactions on information forensics and security": "TIFS",
    "ieee trans. inf. forensics secur.": "TIFS",
    "ieee transactions on multimedia": "TMM",
    "ieee trans. multimedia": "TMM",
    "ieee transactions on circuits and systems for video technology": "TCSVT",
    "ieee trans. circuits syst. video technol.": "TCSVT",
    "ieee transactions on cybernetics": "TCYB",
    "ieee trans. cybern.": "TCYB",
    "ieee transactions on information theory": "TIT",
    "ieee trans. inf. theory": "TIT",
    "ieee transactions on automatic control": "TAC",
    "ieee trans. autom. control": "TAC",
    "ieee transactions on signal processing": "TSP",
    "ieee trans. signal process.": "TSP",
    "ieee transactions on communications": "TCOM",
    "ieee trans. commun.": "TCOM",
    "ieee transactions on wireless communications": "TWC",
    "ieee trans. wirel. commun.": "TWC",
    "ieee/acm transactions on networking": "TON",
    "ieee/acm trans. netw.": "TON",
    "proceedings of the ieee": "PIEEE",
    "proc. ieee": "PIEEE",
    # Conferences
    "ieee/cvf conference on computer vision and pattern recognition": "CVPR",
    "cvpr": "CVPR",
    "ieee/cvf international conference on computer vision": "ICCV",
    "ieee international conference on computer vision": "ICCV",
    "iccv": "ICCV",
    "ieee symposium on security and privacy": "S&P",
    "ieee s&p": "S&P",
    "s&p": "S&P",
    "ieee infocom": "INFOCOM",
    "infocom": "INFOCOM",
    "ieee international conference on data engineering": "ICDE",
    "icde": "ICDE",
    "ieee international conference on robotics and automation": "ICRA",
    "icra": "ICRA",
    "ieee/rsj international conference on intelligent robots and systems": "IROS",
    "iros": "IROS",
    "ieee international conference on acoustics, speech and signal processing": "ICASSP",
    "icassp": "ICASSP",
    "ieee visualization": "IEEE VIS",
    "ieee vis": "IEEE VIS",
    "ieee virtual reality": "VR",
    "ieee vr": "VR",
    "ieee international symposium on high-performance computer architecture": "HPCA",
    "hpca": "HPCA",
    "ieee international symposium on microarchitecture": "MICRO",
    "micro": "MICRO",
    "ieee real-time systems symposium": "RTSS",
    "rtss": "RTSS",
    "ieee international conference on software engineering": "ICSE",
    "icse": "ICSE",
    "ieee/acm international conference on automated software engineering": "ASE",
    "ase": "ASE",
    "ieee international symposium on software testing and analysis": "ISSTA",
    "issta": "ISSTA",
}

# Longest key first, matched on word boundaries so "ase" never hits "database"
_MAPPING_RES = [
    (re.compile(rf"(?<![\w&]){re.escape(key)}(?![\w&])"), abbr)
    for key, abbr in sorted(IEEE_VENUE_MAPPINGS.items(), key=lambda kv: -len(kv[0]))
]

_DOCUMENT_RE = re.compile(r"/document/(\d+)")
_DESCRIPTION_RES = [
    re.compile(r"(?:published\s+in|appears\s+in|in)\s*:\s*([^,\n]+)", re.I),
    re.compile(r"(?:conference|journal|proceedings)\s*:\s*([^,\n]+)", re.I),
]


def clean_ieee_venue(name: str) -> str | None:
    """Drop years and volume/issue/page markers from a publication title."""
    cleaned = re.sub(r"\s*\(\d{4}\)\s*", " ", name)
    cleaned = re.sub(r"\s*\b\d{4}\b\s*", " ", cleaned)
    cleaned = re.sub(r"\s*vol\.\s*\d+", "", cleaned, flags=re.I)
    cleaned = re.sub(r"\s*no\.\s*\d+", "", cleaned, flags=re.I)
    cleaned = re.sub(r"\s*pp?\.\s*\d+[-–]\d+", "", cleaned, flags=re.I)
    cleaned = re.sub(r"[\s,.;:]+$", "", collapse_whitespace(cleaned))
    return cleaned if len(cleaned) >= 2 else None


def normalize_ieee_venue(name: str | None) -> str | None:
    """Map an IEEE publication title to a CCF abbreviation, else clean it.

    >>> normalize_ieee_venue("2023 IEEE/CVF Conference on Computer Vision and Pattern Recognition (CVPR)")
    'CVPR'
    """
    if not name or not name.strip():
        return None
    lower = collapse_whitespace(name).lower()
    if lower in IEEE_VENUE_MAPPINGS:
        return IEEE_VENUE_MAPPINGS[lower]
    for pattern, abbr in _MAPPING_RES:
        if pattern.search(lower):
            return abbr
    return clean_ieee_venue(name)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return collapse_whitespace(strip_html(str(value)))


class IeeeAdapter(SiteAdapter):
    """Adapter for IEEE Xplore search, author, document and proceedings pages."""

    site_id = "ieee"
    site_name = "IEEE Xplore"
    url_patterns = (
        re.compile(r"ieeexplore\.ieee\.org/search"),
        re.compile(r"ieeexplore\.ieee\.org/author"),
        re.compile(r"ieeexplore\.ieee\.org/document"),
        re.compile(r"ieeexplore\.ieee\.org/xpl/conhome"),
        re.compile(r"ieeexplore\.ieee\.org/xpl/tocresult"),
    )

    def __init__(self) -> None:
        super().__init__()
        self.elements: list[PaperElement] = []
        # Venue shown in the page header of proceedings/issue pages
        self.page_venue: str | None = None

    # --- Result handling ---

    @staticmethod
    def parse_results(data: str | Mapping[str, Any]) -> list[PaperElement]:
        """Turn IEEE Xplore search results into page elements.

        Raises:
            ValueError: If the JSON cannot be parsed or has no result list.
        """
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid IEEE Xplore results: {e}") from e
        if not isinstance(data, Mapping):
            raise ValueError("Invalid IEEE Xplore results: expected a JSON object")

        records = data.get("records")
        if records is None:
            records = data.get("articles", [])
        if not isinstance(records, list):
            raise ValueError("Invalid IEEE Xplore results: 'records' is not a list")

        elements = []
        for record in records:
            if not isinstance(record, Mapping):
                continue
            link = str(record.get("documentLink") or record.get("html_url") or "")
            number = str(record.get("articleNumber") or record.get("article_number") or "")
            if not number:
                m = _DOCUMENT_RE.search(link)
                number = m.group(1) if m else ""
            elements.append(
                PaperElement(
                    fields={
                        "article_number": number,
                        "title": _text(record.get("articleTitle") or record.get("title")),
                        "publication_title": _text(
                            record.get("publicationTitle")
                            or record.get("displayPublicationTitle")
                            or record.get("publication_title")
                        ),
                        "description": _text(record.get("description")),
                        "year": _text(record.get("publicationYear") or record.get("publication_year")),
                        "document_link": link,
                    }
                )
            )
        return elements

    def load_results(self, data: str | Mapping[str, Any], page_venue: str | None = None) -> list[PaperElement]:
        """Load the initial page content without notifying subscribers."""
        elements = self.parse_results(data)
        self.elements.extend(elements)
        if page_venue:
            self.page_venue = page_venue
        return elements

    def add_results(self, data: str | Mapping[str, Any]) -> list[PaperElement]:
        """Append dynamically loaded results and notify subscribers."""
        elements = self.load_results(data)
        if elements:
            self.notify_changes()
        return elements

    # --- Extraction ---

    def get_papers(self) -> list[PaperInfo]:
        papers = []
        for index, element in enumerate(self.elements):
            paper = self.process_paper(element, index)
            if paper is not None:
                papers.append(paper)
        return papers

    def process_paper(self, element: PaperElement, index: int = 0) -> PaperInfo | None:
        """Extract a PaperInfo from one element; None when it has no title."""
        title = element.get("title")
        if not title:
            return None
        number = element.get("article_number")
        paper_id = f"ieee-{number}" if number else f"ieee-search-{index}"

        venue = self.extract_venue(element)
        year = element.get("year") or extract_year(element.get("publication_title"))
        return PaperInfo(
            id=paper_id,
            title=title,
            venue=venue,
            venue_source=VenueSource.PAGE if venue else VenueSource.UNKNOWN,
            year=year or None,
            element=element,
            insertion_point=element,
        )

    def extract_venue(self, element: PaperElement) -> str | None:
        """Venue from the publication title, the description, then the page header."""
        venue = normalize_ieee_venue(element.get("publication_title"))
        if venue:
            return venue
        description = element.get("description")
        for pattern in _DESCRIPTION_RES:
            m = pattern.search(description)
            if m:
                venue = normalize_ieee_venue(m.group(1).strip())
                if venue:
                    return venue
        return normalize_ieee_venue(self.page_venue)


def create_ieee_adapter() -> IeeeAdapter:
    """Factory for lazy registration with SiteManager."""
    return IeeeAdapter()
