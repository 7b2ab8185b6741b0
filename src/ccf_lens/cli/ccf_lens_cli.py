#!/usr/bin/env python3
"""CLI for ccf-lens.

Look up CCF ranks for venue strings, query DBLP for paper titles, or annotate
every paper of an arXiv Atom feed or an IEEE Xplore results file.

Usage:
    ccf-lens match "Accepted to CVPR 2024" "NeurIPS'23"
    ccf-lens lookup "Attention Is All You Need" --cache .cache.ccf_lens.json
    ccf-lens annotate listing.xml --settings settings.yaml
    ccf-lens annotate results.json --site ieee
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

import yaml

from ccf_lens._version import __version__
from ccf_lens.annotator import RankAnnotator, badge_state_for
from ccf_lens.cache import CacheStore
from ccf_lens.catalog import CCFCatalog
from ccf_lens.config import AnnotatorConfig
from ccf_lens.dblp import DblpClient
from ccf_lens.matcher import VenueMatcher
from ccf_lens.settings import load_settings

# Pseudo URLs used to select the adapter for input files
SITE_URLS = {
    "arxiv": "https://arxiv.org/list/feed",
    "ieee": "https://ieeexplore.ieee.org/search/searchresult.jsp",
}


def load_yaml_file(path: str) -> Any:
    """Load a YAML document from path."""
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f)


def load_catalog(path: str | None) -> CCFCatalog:
    """Built-in catalog, or one loaded from a YAML list of entries."""
    if not path:
        return CCFCatalog.default()
    data = load_yaml_file(path)
    if isinstance(data, dict):
        data = data.get("entries")
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of catalog entries")
    return CCFCatalog.from_records(data)


def load_config(path: str | None) -> AnnotatorConfig:
    if not path:
        return AnnotatorConfig()
    data = load_yaml_file(path) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping")
    return AnnotatorConfig.from_dict(data)


# ------------- Subcommands -------------


def cmd_match(args: argparse.Namespace, catalog: CCFCatalog, config: AnnotatorConfig) -> int:
    matcher = VenueMatcher(catalog, config.matcher)
    for venue in args.venues:
        result = matcher.match(venue)
        if result.matched:
            entry = result.entry
            print(
                f"{venue!r}: {entry.abbr} [{entry.rank or '?'}] "
                f"({result.confidence.value}, cleaned={result.cleaned_venue!r})"
            )
            continue
        print(f"{venue!r}: no match (cleaned={result.cleaned_venue!r})")
        if args.suggest:
            for entry, score in matcher.suggest(venue):
                print(f"    did you mean {entry.abbr} ({entry.name}) [{entry.rank or '?'}]? score={score:.0f}")
    return 0


async def _run_lookup(titles: list[str], cache_path: str | None, delay: float, config: AnnotatorConfig) -> int:
    cache = CacheStore(cache_path, ttl_days=config.cache_ttl_days)
    failures = 0
    async with DblpClient(cache=cache, config=config.lookup) as client:
        results = await client.query_batch(titles, delay=delay)
    for title, result in results.items():
        if result.failed:
            failures += 1
            print(f"{title!r}: error ({result.error})")
        elif result.found:
            print(f"{title!r}: {result.venue} {result.year or ''} {result.url or ''}".rstrip())
        else:
            print(f"{title!r}: not found")
    return 1 if failures else 0


def cmd_lookup(args: argparse.Namespace, catalog: CCFCatalog, config: AnnotatorConfig) -> int:
    cache_path = args.cache if args.cache is not None else config.cache_path
    delay = args.delay if args.delay is not None else config.lookup.batch_delay
    return asyncio.run(_run_lookup(args.titles, cache_path, delay, config))


def print_annotations(annotator: RankAnnotator) -> None:
    """Print one row per paper followed by rank statistics."""
    for paper in annotator.site_manager.results():
        badge = badge_state_for(paper)
        venue = paper.venue or "-"
        print(f"[{badge:>7}] {paper.id:<20} {paper.title[:60]:<60} {venue} ({paper.venue_source.value})")

    stats = annotator.statistics()
    by_rank = stats["by_rank"]
    print("\n" + "=" * 60)
    print("SUMMARY")
    print("=" * 60)
    print(f"Total papers:  {stats['total']}")
    for rank in ("A", "B", "C", "unknown"):
        print(f"  {rank:<8} {by_rank[rank]}")


async def _run_annotate(annotator: RankAnnotator, site: str) -> bool:
    try:
        started = annotator.start(SITE_URLS[site])
        await annotator.wait_idle()
        return started
    finally:
        await annotator.aclose()


def cmd_annotate(args: argparse.Namespace, catalog: CCFCatalog, config: AnnotatorConfig) -> int:
    feed_path = Path(args.feed)
    if not feed_path.exists():
        print(f"Error: feed not found: {feed_path}", file=sys.stderr)
        return 1

    settings = load_settings(args.settings)
    if settings.debug_mode:
        logging.getLogger().setLevel(logging.DEBUG)
    annotator = RankAnnotator(catalog=catalog, config=config, settings=settings, enable_lookup=not args.no_lookup)
    adapter = annotator.site_manager.get_adapter(args.site)
    text = feed_path.read_text(encoding="utf-8")
    try:
        if args.site == "ieee":
            adapter.load_results(text, page_venue=args.page_venue)
        else:
            adapter.load_feed(text)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not asyncio.run(_run_annotate(annotator, args.site)):
        print(f"Error: {adapter.site_name} annotation is disabled in settings", file=sys.stderr)
        return 1
    print_annotations(annotator)
    return 0


# ------------- Entry point -------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ccf-lens",
        description="Resolve CCF ranks for publication venues",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Rank venue strings, with suggestions for misses
  ccf-lens match "Accepted to CVPR 2024" "Proc. of the 38th AAAI" --suggest

  # Find the venue of a paper on DBLP
  ccf-lens lookup "Attention Is All You Need"

  # Annotate an arXiv Atom feed without network lookups
  ccf-lens annotate listing.xml --no-lookup

  # Annotate IEEE Xplore search results of a proceedings page
  ccf-lens annotate results.json --site ieee --page-venue "2023 IEEE ICDE"
""",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    parser.add_argument("--settings", help="Path to settings YAML file")
    parser.add_argument("--catalog", help="Path to a YAML list of catalog entries")
    parser.add_argument("--config", dest="config_file", help="Path to YAML config file (thresholds, cache)")

    sub = parser.add_subparsers(dest="command", required=True)

    match_p = sub.add_parser("match", help="Match venue strings against the catalog")
    match_p.add_argument("venues", nargs="+", help="Venue strings")
    match_p.add_argument("--suggest", action="store_true", help="Show closest venues for misses")
    match_p.set_defaults(func=cmd_match)

    lookup_p = sub.add_parser("lookup", help="Query DBLP for paper titles")
    lookup_p.add_argument("titles", nargs="+", help="Paper titles")
    lookup_p.add_argument("--cache", help="Cache file (default: from config)")
    lookup_p.add_argument("--delay", type=float, help="Seconds between requests (default: 0.2)")
    lookup_p.set_defaults(func=cmd_lookup)

    annotate_p = sub.add_parser("annotate", help="Annotate the papers of a saved listing")
    annotate_p.add_argument("feed", help="Path to an arXiv Atom feed or IEEE Xplore results JSON")
    annotate_p.add_argument(
        "--site", choices=sorted(SITE_URLS), default="arxiv", help="Site the listing comes from (default: arxiv)"
    )
    annotate_p.add_argument("--page-venue", help="IEEE only: venue shown in the page header")
    annotate_p.add_argument("--no-lookup", action="store_true", help="Skip DBLP lookups")
    annotate_p.set_defaults(func=cmd_annotate)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")

    try:
        catalog = load_catalog(args.catalog)
        config = load_config(args.config_file)
    except (OSError, ValueError, KeyError, TypeError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return args.func(args, catalog, config)


if __name__ == "__main__":
    sys.exit(main())
