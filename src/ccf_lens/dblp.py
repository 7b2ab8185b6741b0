"""DBLP title lookup.

Queries the DBLP publication search API for a paper title and reports the
venue/year/URL of the best-matching hit. Results are memoized in a CacheStore;
network failures and timeouts are returned as error results and never cached
so that the next request retries.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass
from typing import Any

import httpx

from ccf_lens.cache import CacheStore
from ccf_lens.config import LookupConfig
from ccf_lens.utils import normalize_cache_key, strip_html, title_similarity

logger = logging.getLogger(__name__)

__all__ = [
    "DBLP_API_SEARCH",
    "DBLP_CACHE_PREFIX",
    "DblpClient",
    "LookupResult",
    "dblp_cache_key",
    "parse_hits",
    "select_best_hit",
]

DBLP_API_SEARCH = "https://dblp.org/search/publ/api"
DBLP_CACHE_PREFIX = "dblp_"


@dataclass
class LookupResult:
    """Outcome of a DBLP title query.

    Attributes:
        found: Whether a sufficiently similar paper was found
        venue: Venue name reported by DBLP
        year: Publication year as reported by DBLP
        url: DBLP record URL
        error: Error message when the request itself failed
        timed_out: Whether the failure was a timeout
    """

    found: bool
    venue: str | None = None
    year: str | None = None
    url: str | None = None
    error: str | None = None
    timed_out: bool = False

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LookupResult:
        return cls(
            found=bool(data.get("found")),
            venue=data.get("venue"),
            year=data.get("year"),
            url=data.get("url"),
            error=data.get("error"),
            timed_out=bool(data.get("timed_out", False)),
        )

    @classmethod
    def not_found(cls) -> LookupResult:
        return cls(found=False)

    @classmethod
    def failure(cls, message: str, timed_out: bool = False) -> LookupResult:
        return cls(found=False, error=message, timed_out=timed_out)


class DblpLookupError(Exception):
    """Raised internally when a DBLP request fails."""

    def __init__(self, message: str, timed_out: bool = False) -> None:
        super().__init__(message)
        self.timed_out = timed_out


def dblp_cache_key(title: str) -> str:
    """Cache key for a title: prefix + lower-cased, whitespace-collapsed title."""
    return f"{DBLP_CACHE_PREFIX}{normalize_cache_key(title)}"


# ------------- Response Parsing -------------


def parse_hits(data: Any) -> list[dict[str, Any]]:
    """Extract the hit list from a DBLP search response.

    DBLP omits 'hit' when there are no results and returns a single object
    instead of a list when there is exactly one.
    """
    if not isinstance(data, dict):
        raise ValueError("DBLP response is not a JSON object")
    raw_hits = ((data.get("result") or {}).get("hits") or {}).get("hit")
    if raw_hits is None:
        return []
    if isinstance(raw_hits, dict):
        return [raw_hits]
    if isinstance(raw_hits, list):
        return [h for h in raw_hits if isinstance(h, dict)]
    raise ValueError("Unexpected DBLP hit shape")


def _info_text(value: Any) -> str | None:
    """DBLP fields can be strings, numbers or lists of strings."""
    if value is None:
        return None
    if isinstance(value, list):
        value = value[0] if value else None
        if value is None:
            return None
    text = str(value).strip()
    return text or None


def select_best_hit(
    hits: list[dict[str, Any]], title: str, min_similarity: float = 0.5
) -> tuple[dict[str, Any] | None, float]:
    """Pick the hit whose title has the highest word-set Jaccard index.

    Returns:
        (best hit info dict or None, its similarity). The hit is None when no
        candidate reaches min_similarity.
    """
    best: dict[str, Any] | None = None
    best_score = 0.0
    for hit in hits:
        info = hit.get("info") or {}
        hit_title = _info_text(info.get("title"))
        if not hit_title:
            continue
        score = title_similarity(title, strip_html(hit_title))
        if score > best_score:
            best, best_score = info, score
    if best is None or best_score < min_similarity:
        return None, best_score
    return best, best_score


# ------------- Client -------------


class DblpClient:
    """Async DBLP title lookup with result caching.

    The httpx.AsyncClient is created lazily; pass ``transport`` to route
    requests through a custom httpx transport.
    """

    def __init__(
        self,
        cache: CacheStore | None = None,
        config: LookupConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.cache = cache if cache is not None else CacheStore(None)
        self.config = config or LookupConfig()
        self.transport = transport
        self.logger = logger or logging.getLogger(__name__)
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client instance."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.timeout),
                headers={"User-Agent": self.config.user_agent},
                follow_redirects=True,
                transport=self.transport,
            )
        return self._client

    async def _fetch(self, title: str) -> LookupResult:
        params = {"q": title, "format": "json", "h": str(self.config.max_hits)}
        try:
            resp = await self.client.get(DBLP_API_SEARCH, params=params, headers={"Accept": "application/json"})
        except httpx.TimeoutException as e:
            raise DblpLookupError("Request timeout", timed_out=True) from e
        except httpx.HTTPError as e:
            raise DblpLookupError(f"Network error: {str(e) or type(e).__name__}") from e

        if resp.status_code != 200:
            raise DblpLookupError(f"DBLP API returned status {resp.status_code}")

        try:
            hits = parse_hits(resp.json())
        except ValueError as e:
            raise DblpLookupError("Failed to parse DBLP response") from e

        info, score = select_best_hit(hits, title, self.config.min_similarity)
        if info is None:
            self.logger.debug("DBLP: no hit for %r (best similarity %.2f)", title, score)
            return LookupResult.not_found()

        self.logger.debug("DBLP: %r matched with similarity %.2f", title, score)
        return LookupResult(
            found=True,
            venue=_info_text(info.get("venue")),
            year=_info_text(info.get("year")),
            url=_info_text(info.get("url")),
        )

    async def query_by_title(self, title: str) -> LookupResult:
        """Look up a paper title on DBLP.

        Args:
            title: Paper title as shown on the page

        Returns:
            LookupResult; on failure found=False with error set.
        """
        if not title or not title.strip():
            return LookupResult.failure("Empty title provided")

        cache_key = dblp_cache_key(title)
        cached = self.cache.get(cache_key)
        if cached is not None:
            return LookupResult.from_dict(cached)

        try:
            result = await asyncio.wait_for(self._fetch(title), timeout=self.config.timeout)
        except asyncio.TimeoutError:
            self.logger.warning("DBLP lookup for %r exceeded %.1fs", title, self.config.timeout)
            return LookupResult.failure("Request timeout", timed_out=True)
        except DblpLookupError as e:
            self.logger.warning("DBLP lookup failed for %r: %s", title, e)
            return LookupResult.failure(str(e), timed_out=e.timed_out)

        self.cache.set(cache_key, result.to_dict())
        return result

    async def query_batch(self, titles: list[str], delay: float | None = None) -> dict[str, LookupResult]:
        """Query titles one after another with a pause between requests.

        Args:
            titles: Paper titles
            delay: Seconds between requests (defaults to LookupConfig.batch_delay)

        Returns:
            Mapping of title to LookupResult
        """
        pause = self.config.batch_delay if delay is None else delay
        results: dict[str, LookupResult] = {}
        for i, title in enumerate(titles):
            results[title] = await self.query_by_title(title)
            if i < len(titles) - 1 and pause > 0:
                await asyncio.sleep(pause)
        return results

    def clear_cache(self) -> None:
        """Drop every cached lookup."""
        self.cache.clear()

    async def close(self) -> None:
        """Close the async HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> DblpClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
