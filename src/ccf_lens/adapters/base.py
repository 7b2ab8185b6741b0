"""Site adapter interface and the records adapters produce."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

__all__ = [
    "PROCESSED_MARKER",
    "AttributeMarker",
    "PaperElement",
    "PaperInfo",
    "ProcessedMarker",
    "SiteAdapter",
    "VenueSource",
]

# Attribute stamped on elements whose badge has been inserted
PROCESSED_MARKER = "data-ccf-rank-processed"


class VenueSource(str, Enum):
    """Where a paper's venue string came from."""

    COMMENT = "comment"
    DBLP = "dblp"
    PAGE = "page"
    UNKNOWN = "unknown"


@dataclass(eq=False)
class PaperElement:
    """Minimal host element: raw extracted fields plus a mutable attribute map.

    Attributes survive a re-created ledger, which is what makes them usable
    as a durable processed marker.
    """

    fields: dict[str, str] = field(default_factory=dict)
    attributes: dict[str, str] = field(default_factory=dict)

    def get(self, name: str, default: str = "") -> str:
        return self.fields.get(name, default)

    def has_attribute(self, name: str) -> bool:
        return name in self.attributes

    def get_attribute(self, name: str) -> str | None:
        return self.attributes.get(name)

    def set_attribute(self, name: str, value: str) -> None:
        self.attributes[name] = value

    def remove_attribute(self, name: str) -> None:
        self.attributes.pop(name, None)


@dataclass
class PaperInfo:
    """A paper extracted from a page.

    Attributes:
        id: Site-scoped unique identifier (e.g. arXiv ID)
        title: Paper title
        venue: Extracted venue string, None if not found
        venue_source: Origin of the venue string
        year: Publication year (best effort)
        element: Host element the processed marker is stamped on
        insertion_point: Host element the badge is attached to
    """

    id: str
    title: str
    venue: str | None = None
    venue_source: VenueSource = VenueSource.UNKNOWN
    year: str | None = None
    element: Any = None
    insertion_point: Any = None


class ProcessedMarker(ABC):
    """Durable 'already processed' flag stored on the host resource."""

    @abstractmethod
    def is_marked(self, resource: Any) -> bool: ...

    @abstractmethod
    def mark(self, resource: Any) -> None: ...

    @abstractmethod
    def unmark(self, resource: Any) -> None: ...


class AttributeMarker(ProcessedMarker):
    """Processed marker kept as an element attribute."""

    def __init__(self, attribute: str = PROCESSED_MARKER) -> None:
        self.attribute = attribute

    def is_marked(self, resource: Any) -> bool:
        return resource is not None and resource.has_attribute(self.attribute)

    def mark(self, resource: Any) -> None:
        if resource is not None:
            resource.set_attribute(self.attribute, "true")

    def unmark(self, resource: Any) -> None:
        if resource is not None:
            resource.remove_attribute(self.attribute)


class SiteAdapter(ABC):
    """Extracts papers from one academic site.

    Subclasses set site_id, site_name and url_patterns and implement
    get_papers(). Change notification is a single subscriber callback that
    the adapter fires when new candidate papers may exist.
    """

    site_id: str = ""
    site_name: str = ""
    url_patterns: tuple[re.Pattern[str], ...] = ()

    def __init__(self) -> None:
        self._on_change: Callable[[], None] | None = None

    def is_match(self, url: str) -> bool:
        """Check if the adapter can handle the given URL."""
        return any(pattern.search(url) for pattern in self.url_patterns)

    @abstractmethod
    def get_papers(self) -> list[PaperInfo]:
        """All papers currently present on the page."""

    def get_insertion_point(self, paper: PaperInfo) -> Any:
        return paper.insertion_point if paper.insertion_point is not None else paper.element

    def observe_changes(self, callback: Callable[[], None]) -> None:
        """Subscribe to change notifications, replacing any previous subscriber."""
        self._on_change = callback

    def disconnect(self) -> None:
        """Stop delivering change notifications."""
        self._on_change = None

    def notify_changes(self) -> None:
        if self._on_change is not None:
            self._on_change()
