"""arXiv site adapter.

Papers come from arXiv Atom feeds (the export API and listing feeds). The
venue is taken from the author comments ("Accepted to CVPR 2024") and, if the
comments carry none, from the journal reference.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from collections.abc import Callable

from ccf_lens.adapters.base import PaperElement, PaperInfo, SiteAdapter, VenueSource
from ccf_lens.utils import collapse_whitespace, extract_year

logger = logging.getLogger(__name__)

ATOM_NS = "{http://www.w3.org/2005/Atom}"
ARXIV_NS = "{http://arxiv.org/schemas/atom}"

_ABS_ID_RE = re.compile(r"/abs/([^\s?]+)")
_VERSION_RE = re.compile(r"v\d+$")

_VENUE_TAIL = r"(?:\s+\d{4}|\s*$|[,.;])"
VENUE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"(?:accepted|submitted)\s+(?:to|at|by|for)\s+([A-Z][A-Za-z0-9\s\-&]+?)" + _VENUE_TAIL, re.I),
    re.compile(r"published\s+(?:in|at)\s+([A-Z][A-Za-z0-9\s\-&]+?)" + _VENUE_TAIL, re.I),
    re.compile(r"(?:to\s+)?appear(?:s|ing)?\s+(?:in|at)\s+([A-Z][A-Za-z0-9\s\-&]+?)" + _VENUE_TAIL, re.I),
    re.compile(r"presented\s+(?:at|in)\s+([A-Z][A-Za-z0-9\s\-&]+?)" + _VENUE_TAIL, re.I),
    re.compile(r"(?:IEEE|ACM)\s+([A-Z][A-Za-z0-9\s\-&]+?)" + _VENUE_TAIL, re.I),
]

KNOWN_VENUES: tuple[str, ...] = (
    # AI/ML
    "CVPR", "ICCV", "ECCV", "NEURIPS", "NIPS", "ICML", "ICLR", "AAAI", "IJCAI",
    "ACL", "EMNLP", "NAACL", "COLING", "KDD", "WWW", "WSDM", "SIGIR", "CIKM",
    # Systems
    "OSDI", "SOSP", "NSDI", "SIGCOMM", "MOBICOM", "INFOCOM", "IMC",
    # Security
    "CCS", "USENIX", "NDSS", "OAKLAND",
    # SE/PL
    "ICSE", "FSE", "ASE", "ISSTA", "PLDI", "POPL", "OOPSLA",
    # Databases
    "SIGMOD", "VLDB", "ICDE", "PODS",
    # Graphics/HCI
    "SIGGRAPH", "CHI", "UIST",
    # Theory
    "STOC", "FOCS", "SODA",
    # Journals
    "TPAMI", "TIP", "TNNLS", "TKDE", "TOG", "TOCHI", "TSE", "TOSEM",
    "JMLR", "TACL", "AIJ", "JAIR",
)
_KNOWN_VENUE_RES = [(v, re.compile(rf"\b{v}(?:'?\d{{2,4}})?\b", re.I)) for v in KNOWN_VENUES]

_VENUE_KEYWORDS_RE = re.compile(
    r"\b(conference|conf\.?|symposium|workshop|journal|transactions|trans\.?|proceedings|letters|review)\b", re.I
)


def _clean_extracted_venue(venue: str) -> str | None:
    cleaned = re.sub(r"\s*['’]?\d{2,4}\s*$", "", venue).strip()
    cleaned = re.sub(r"[,.:;]+$", "", cleaned).strip()
    cleaned = re.sub(r"^(?:the\s+)?(?:proceedings\s+of\s+)?", "", cleaned, flags=re.I).strip()
    return cleaned if len(cleaned) >= 2 else None


class ArxivAdapter(SiteAdapter):
    """Adapter for arXiv search, listing and abstract pages."""

    site_id = "arxiv"
    site_name = "arXiv"
    url_patterns = (
        re.compile(r"arxiv\.org/search"),
        re.compile(r"arxiv\.org/list"),
        re.compile(r"arxiv\.org/abs/"),
    )

    def __init__(self, venue_validator: Callable[[str], bool] | None = None) -> None:
        """Initialize the adapter.

        Args:
            venue_validator: Predicate accepting venue names known to the
                catalog, typically VenueMatcher.has
        """
        super().__init__()
        self.venue_validator = venue_validator
        self.elements: list[PaperElement] = []

    # --- Feed handling ---

    @staticmethod
    def parse_feed(xml_text: str) -> list[PaperElement]:
        """Turn an arXiv Atom feed into page elements.

        Raises:
            ValueError: If the XML cannot be parsed.
        """
        try:
            root = ET.fromstring(xml_text)
        except ET.ParseError as e:
            raise ValueError(f"Invalid arXiv feed: {e}") from e

        elements = []
        for entry in root.iter(f"{ATOM_NS}entry"):
            raw_id = entry.findtext(f"{ATOM_NS}id", default="")
            m = _ABS_ID_RE.search(raw_id)
            paper_id = _VERSION_RE.sub("", m.group(1)) if m else raw_id.strip()
            elements.append(
                PaperElement(
                    fields={
                        "id": paper_id,
                        "title": collapse_whitespace(entry.findtext(f"{ATOM_NS}title", default="")),
                        "comments": collapse_whitespace(entry.findtext(f"{ARXIV_NS}comment", default="")),
                        "journal_ref": collapse_whitespace(entry.findtext(f"{ARXIV_NS}journal_ref", default="")),
                        "published": entry.findtext(f"{ATOM_NS}published", default="").strip(),
                    }
                )
            )
        return elements

    def load_feed(self, xml_text: str) -> list[PaperElement]:
        """Load the initial page content without notifying subscribers."""
        elements = self.parse_feed(xml_text)
        self.elements.extend(elements)
        return elements

    def add_feed(self, xml_text: str) -> list[PaperElement]:
        """Append dynamically loaded content and notify subscribers."""
        elements = self.load_feed(xml_text)
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
        paper_id = element.get("id") or f"arxiv-list-{index}"

        comments = re.sub(r"^\s*Comments:\s*", "", element.get("comments"), flags=re.I).strip()
        venue = self.parse_venue_from_comments(comments)
        source = VenueSource.COMMENT if venue else VenueSource.UNKNOWN
        year = extract_year(comments)

        journal_ref = element.get("journal_ref")
        if venue is None and journal_ref:
            venue = journal_ref
            source = VenueSource.PAGE
            year = year or extract_year(journal_ref)

        return PaperInfo(
            id=paper_id,
            title=title,
            venue=venue,
            venue_source=source,
            year=year,
            element=element,
            insertion_point=element,
        )

    def parse_venue_from_comments(self, comments: str) -> str | None:
        """Extract a venue name from the comments field.

        Tries status phrases first ("Accepted to X", "To appear in X", ...),
        then scans for known venue abbreviations anywhere in the text.
        """
        if not comments or not comments.strip():
            return None

        for pattern in VENUE_PATTERNS:
            m = pattern.search(comments)
            if not m:
                continue
            venue = m.group(1).strip()
            if len(venue) < 2 or venue.isdigit():
                continue
            cleaned = _clean_extracted_venue(venue)
            if cleaned and self._is_likely_venue(cleaned):
                return cleaned

        for venue, pattern in _KNOWN_VENUE_RES:
            if pattern.search(comments):
                return venue
        return None

    def _is_likely_venue(self, venue: str) -> bool:
        trimmed = venue.strip()
        if len(trimmed) < 2:
            return False
        if trimmed.upper() in KNOWN_VENUES:
            return True
        if self.venue_validator is not None and self.venue_validator(trimmed):
            return True
        has_keywords = _VENUE_KEYWORDS_RE.search(trimmed) is not None
        return has_keywords and len(trimmed.split()) >= 2


def create_arxiv_adapter() -> ArxivAdapter:
    """Factory for lazy registration with SiteManager."""
    return ArxivAdapter()
