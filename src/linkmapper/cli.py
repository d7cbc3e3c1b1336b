"""
Command-line interface for the link mapper.
"""
from __future__ import annotations

import argparse
import json
import logging
import re
import sys
from pathlib import Path
from typing import Iterable, List, Optional

from linkmapper.core import CrawlConfig, CrawlResult, CrawlStats, crawl
from linkmapper.errors import SeedNavigationError
from linkmapper.export import generate_output_path, render, write_result
from linkmapper.session import DEFAULT_USER_AGENT, HttpPageSession

URL_RE = re.compile(r"^https?://\S+$", re.IGNORECASE)


def print_summary(result: CrawlResult) -> None:
    """Print crawl summary to stderr."""
    stats: CrawlStats = result.stats
    graph = result.graph
    sys.stderr.write("=" * 50 + "\n")
    sys.stderr.write("CRAWL SUMMARY\n")
    sys.stderr.write("=" * 50 + "\n\n")

    sys.stderr.write(f"Total pages crawled:    {stats.pages_crawled}\n")
    sys.stderr.write(f"Pages left pending:     {len(result.frontier.pending)}\n")
    sys.stderr.write(f"Links observed:         {stats.links_seen}\n")
    sys.stderr.write(f"Internal link edges:    {len(graph.internal_edges())}\n")
    sys.stderr.write(f"External link edges:    {len(graph.external_edges())}\n")
    sys.stderr.write(f"Off-site redirects:     {stats.offsite_redirects}\n\n")

    if stats.error_counts:
        sys.stderr.write("Skipped pages:\n")
        for error_type, count in sorted(stats.error_counts.items()):
            label = "Timeouts" if error_type == "timeout" else "Navigation errors"
            sys.stderr.write(f"  {label}: {count}\n")
    else:
        sys.stderr.write("No errors encountered.\n")

    if result.interrupted:
        sys.stderr.write("\nCrawl was interrupted; results are partial.\n")

    sys.stderr.write("\n")


def _urls_from_file(path: Path) -> List[str]:
    lines = path.read_text(encoding="utf-8").splitlines()
    return [line.strip() for line in lines if URL_RE.match(line.strip())]


def load_seed_urls(values: Iterable[str]) -> List[str]:
    """
    Expand seed arguments into URLs.

    Each value may be a URL, a JSON array of URLs, or the path of a text
    file listing one URL per line. Anything else raises ValueError.
    """
    urls: List[str] = []
    for value in values:
        value = value.strip()
        if URL_RE.match(value):
            urls.append(value)
            continue

        if value.startswith("["):
            try:
                parsed = json.loads(value)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON list of URLs: {e}") from e
            urls.extend(u.strip() for u in parsed if isinstance(u, str) and URL_RE.match(u.strip()))
            continue

        path = Path(value)
        if path.is_file():
            urls.extend(_urls_from_file(path))
            continue

        raise ValueError(f"Not a URL, JSON list or file of URLs: {value}")

    if not urls:
        raise ValueError("No valid start URLs supplied")
    # Keep order, drop repeats
    return list(dict.fromkeys(urls))


def configure_logging(verbose: bool, debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="linkmapper",
        description="Map every internal and external link on a site, starting from one or more URLs.",
    )
    parser.add_argument("seeds", nargs="+",
                        help="Start URL(s), a JSON list of URLs, or a file with one URL per line")
    parser.add_argument("--max-pages", type=int, default=500, help="Maximum pages to scan (default: 500, 0 for no limit)")
    parser.add_argument("--timeout", type=float, default=15.0, help="Page ready timeout in seconds (default: 15)")
    parser.add_argument("--user-agent", default=DEFAULT_USER_AGENT, help="User-Agent header")
    parser.add_argument(
        "--path-prefix",
        help="Limit crawling to URLs whose path starts with this prefix (e.g., '/news')"
    )
    parser.add_argument("--ignore-www", action="store_true", help="Treat www.host and host as the same origin")
    parser.add_argument("--noisy-pattern", action="append", default=[],
                        help="Extra path regex to keep out of the crawl (repeatable)")
    parser.add_argument("--delay", type=float, default=0.0, help="Pause between pages in seconds (default: 0)")
    parser.add_argument("--jitter", type=float, default=0.0, help="Random +/- variation on the pause in seconds")
    parser.add_argument("--browser", action="store_true", help="Render pages in headless Chromium (Playwright)")
    parser.add_argument("--ready-selector", help="CSS selector that marks a page as ready")
    parser.add_argument("--headed", action="store_true", help="Show the browser window (with --browser)")
    parser.add_argument("--format", choices=("csv", "json"), default="csv", help="Output format (default: csv)")
    parser.add_argument("--out", help="Output file path, or '-' for stdout (default: auto-generated in crawls/)")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON")
    parser.add_argument("--verbose", action="store_true", help="Show progress and summary")
    parser.add_argument("--debug", action="store_true", help="Log every skipped link")
    return parser


def open_session(args: argparse.Namespace):
    if args.browser:
        from linkmapper.browser import PlaywrightPageSession

        return PlaywrightPageSession(
            ready_selector=args.ready_selector or "body",
            user_agent=args.user_agent,
            headless=not args.headed,
            navigation_timeout_s=max(args.timeout, 30.0),
        )
    return HttpPageSession(
        user_agent=args.user_agent,
        timeout_s=args.timeout,
        ready_selector=args.ready_selector,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the link mapper CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose, args.debug)

    try:
        seeds = load_seed_urls(args.seeds)
    except ValueError as e:
        parser.error(str(e))

    config = CrawlConfig(
        max_pages=args.max_pages or None,
        timeout_s=args.timeout,
        path_prefix=args.path_prefix,
        ignore_www=args.ignore_www,
        extra_noisy_patterns=tuple(args.noisy_pattern),
        delay_s=args.delay,
        delay_jitter_s=args.jitter,
    )

    try:
        with open_session(args) as session:
            result = crawl(seeds, session, config)
    except SeedNavigationError as e:
        sys.stderr.write(f"Crawl aborted: {e}\n")
        return 1
    except ValueError as e:
        parser.error(str(e))

    # Print summary if verbose
    if args.verbose:
        print_summary(result)

    if args.out == "-":
        sys.stdout.write(render(result, args.format, args.pretty))
    else:
        # Auto-generate path if not specified
        output_path = Path(args.out) if args.out else generate_output_path(seeds[0], args.format)
        write_result(result, output_path, args.format, args.pretty)
        if args.verbose:
            sys.stderr.write(f"Results written to: {output_path}\n")

    return 130 if result.interrupted else 0


if __name__ == "__main__":
    raise SystemExit(main())
