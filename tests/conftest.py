"""Shared fixtures for ccf_lens tests."""

from __future__ import annotations

from typing import Any
from xml.sax.saxutils import escape

import httpx
import pytest

from ccf_lens import CacheStore, CCFCatalog, DblpClient, LookupConfig, VenueMatcher


@pytest.fixture(scope="session")
def catalog() -> CCFCatalog:
    """The bundled CCF catalog."""
    return CCFCatalog.default()


@pytest.fixture
def matcher(catalog) -> VenueMatcher:
    return VenueMatcher(catalog)


@pytest.fixture
def make_feed():
    """Factory fixture for arXiv Atom feeds.

    Each paper is a dict with 'id', 'title' and optional 'comment' and
    'journal_ref' keys.
    """

    def _make_feed(papers: list[dict[str, str]]) -> str:
        entries = []
        for paper in papers:
            parts = [
                f"<id>http://arxiv.org/abs/{escape(paper['id'])}</id>",
                f"<title>{escape(paper['title'])}</title>",
                "<published>2024-03-01T00:00:00Z</published>",
            ]
            if paper.get("comment"):
                parts.append(f"<arxiv:comment>{escape(paper['comment'])}</arxiv:comment>")
            if paper.get("journal_ref"):
                parts.append(f"<arxiv:journal_ref>{escape(paper['journal_ref'])}</arxiv:journal_ref>")
            entries.append("<entry>" + "".join(parts) + "</entry>")
        return (
            '<?xml version="1.0" encoding="UTF-8"?>'
            '<feed xmlns="http://www.w3.org/2005/Atom" xmlns:arxiv="http://arxiv.org/schemas/atom">'
            "<title>arXiv listing</title>" + "".join(entries) + "</feed>"
        )

    return _make_feed


@pytest.fixture
def sample_papers() -> list[dict[str, str]]:
    """Three listing entries: venue in comments, no venue, journal reference."""
    return [
        {"id": "2403.00001v2", "title": "Fast Diffusion Sampling", "comment": "Accepted to CVPR 2024"},
        {"id": "1706.03762v7", "title": "Attention Is All You Need"},
        {
            "id": "2301.00003v1",
            "title": "Scalable Graph Partitioning",
            "journal_ref": "IEEE Transactions on Knowledge and Data Engineering, vol. 35, 2023",
        },
    ]


@pytest.fixture
def ieee_results() -> dict[str, Any]:
    """IEEE Xplore search records: mapped conference, journal, unranked journal,
    venue only in the description, and an untitled record."""
    return {
        "totalRecords": 5,
        "records": [
            {
                "articleNumber": "10203050",
                "articleTitle": "Efficient <b>Diffusion</b> Sampling",
                "publicationTitle": "2023 IEEE/CVF Conference on Computer Vision and Pattern Recognition (CVPR)",
                "publicationYear": "2023",
                "documentLink": "/document/10203050/",
            },
            {
                "articleNumber": "9999001",
                "articleTitle": "Graph Stream Summaries",
                "publicationTitle": "IEEE Transactions on Knowledge and Data Engineering",
                "publicationYear": "2022",
            },
            {
                "articleTitle": "Edge Caching for Vehicular Networks",
                "publicationTitle": "IEEE Transactions on Wireless Communications",
                "documentLink": "/document/8888123/",
            },
            {
                "articleNumber": "7777001",
                "articleTitle": "Mutation Testing at Scale",
                "description": "Published in: IEEE Transactions on Software Engineering, 2021",
            },
            {"articleNumber": "1", "articleTitle": ""},
        ],
    }


def _dblp_response(*hits: dict[str, Any]) -> dict[str, Any]:
    """Build a DBLP search API payload from hit info dicts."""
    if not hits:
        return {"result": {"hits": {"@total": "0"}}}
    return {"result": {"hits": {"@total": str(len(hits)), "hit": [{"info": info} for info in hits]}}}


@pytest.fixture
def dblp_server():
    """Factory for a recording httpx.MockTransport that serves DBLP responses.

    ``handler`` maps a request to an httpx.Response (or raises an httpx error);
    every request is appended to ``transport.requests``.
    """

    def _make(handler) -> httpx.MockTransport:
        requests: list[httpx.Request] = []

        def _handle(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return handler(request)

        transport = httpx.MockTransport(_handle)
        transport.requests = requests
        return transport

    return _make


@pytest.fixture
def attention_transport(dblp_server):
    """Transport answering every query with the Transformer paper."""
    payload = _dblp_response(
        {
            "title": "Attention is All you Need.",
            "venue": "NeurIPS",
            "year": "2017",
            "url": "https://dblp.org/rec/conf/nips/VaswaniSPUJGKP17",
        }
    )
    return dblp_server(lambda request: httpx.Response(200, json=payload))


@pytest.fixture
def make_client():
    """Factory for DblpClient instances over a given transport with a memory cache."""

    def _make(transport: httpx.MockTransport, cache: CacheStore | None = None, **config: Any) -> DblpClient:
        cache = cache if cache is not None else CacheStore(None)
        return DblpClient(cache=cache, config=LookupConfig(**config), transport=transport)

    return _make
