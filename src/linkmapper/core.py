"""
Core crawling logic and data structures.
"""
from __future__ import annotations

import logging
import random
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Pattern, Sequence, Set, Tuple

from linkmapper.classify import (
    OFF_SITE,
    Rejection,
    canonicalize,
    classify,
    compile_patterns,
    origin_hosts_for,
)
from linkmapper.errors import NavigationError, NavigationTimeout, SeedNavigationError
from linkmapper.extract import RawLink, extract_links
from linkmapper.session import PageSession

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CrawlConfig:
    """Options for one crawl."""
    max_pages: Optional[int] = None
    timeout_s: float = 15.0
    path_prefix: Optional[str] = None
    ignore_www: bool = False
    extra_noisy_patterns: Tuple[str, ...] = ()
    delay_s: float = 0.0
    delay_jitter_s: float = 0.0


@dataclass(slots=True)
class LinkEdge:
    """Every observation of one href across the whole crawl."""
    href: str
    internal: bool = False
    contexts: Set[str] = field(default_factory=set)
    texts: Set[str] = field(default_factory=set)
    page_counts: Dict[str, int] = field(default_factory=dict)

    @property
    def locations(self) -> Set[str]:
        return set(self.page_counts)

    @property
    def instances(self) -> int:
        return sum(self.page_counts.values())


class SiteLinkGraph(dict):
    """Mapping of raw href -> LinkEdge, in order of first discovery."""

    def merge(self, link: RawLink, page: str, internal: bool = False) -> LinkEdge:
        """
        Fold one page's RawLink into the edge for its href.

        Each page contributes its own instance count once, so merging the
        same page's link again leaves the edge unchanged.
        """
        edge = self.get(link.href)
        if edge is None:
            edge = self[link.href] = LinkEdge(href=link.href, internal=internal)
        edge.contexts.update(link.contexts)
        edge.texts.update(link.texts)
        edge.page_counts[page] = max(edge.page_counts.get(page, 0), link.instances)
        return edge

    def internal_edges(self) -> List[LinkEdge]:
        return [e for e in self.values() if e.internal]

    def external_edges(self) -> List[LinkEdge]:
        return [e for e in self.values() if not e.internal]


class Frontier:
    """
    Pending and visited page addresses.

    Pending addresses form an insertion-ordered set served oldest first.
    An address is accepted at most once over the life of the frontier,
    whether it is still pending or already visited.
    """

    def __init__(self, seeds: Sequence[str] = ()) -> None:
        self._pending: Dict[str, None] = {}
        self._visited: Set[str] = set()
        self._visit_order: List[str] = []
        for seed in seeds:
            self.add(seed)

    def add(self, address: str) -> bool:
        """Insert an address if it was never seen. Returns True when added."""
        if address in self:
            return False
        self._pending[address] = None
        return True

    def next_pending(self) -> Optional[str]:
        return next(iter(self._pending), None)

    def mark_visited(self, address: str) -> None:
        self._pending.pop(address, None)
        if address not in self._visited:
            self._visited.add(address)
            self._visit_order.append(address)

    def has_pending(self) -> bool:
        return bool(self._pending)

    @property
    def pending(self) -> List[str]:
        return list(self._pending)

    @property
    def visited(self) -> List[str]:
        """Visited addresses in the order they were processed."""
        return list(self._visit_order)

    def is_visited(self, address: str) -> bool:
        return address in self._visited

    def entries(self) -> Dict[str, bool]:
        """Address -> visited flag, visited pages first."""
        result = {address: True for address in self._visit_order}
        result.update((address, False) for address in self._pending)
        return result

    def __contains__(self, address: object) -> bool:
        return address in self._pending or address in self._visited

    def __len__(self) -> int:
        return len(self._pending) + len(self._visited)

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries())


@dataclass(slots=True)
class CrawlStats:
    """Statistics collected during crawl for summary output."""
    pages_crawled: int = 0
    pages_failed: int = 0
    links_seen: int = 0
    offsite_redirects: int = 0
    error_counts: Dict[str, int] = field(default_factory=lambda: defaultdict(int))
    rejection_counts: Dict[str, int] = field(default_factory=lambda: defaultdict(int))

    def record_error(self, error: NavigationError) -> None:
        """Record a skipped page by failure kind."""
        self.pages_failed += 1
        if isinstance(error, NavigationTimeout):
            self.error_counts["timeout"] += 1
        else:
            self.error_counts["navigation_error"] += 1

    def record_rejection(self, rejection: Rejection) -> None:
        self.rejection_counts[rejection.value] += 1


@dataclass(slots=True)
class CrawlResult:
    """Everything a crawl produced; pass it back to ``crawl(resume=...)`` to continue."""
    seeds: List[str]
    graph: SiteLinkGraph
    frontier: Frontier
    stats: CrawlStats
    interrupted: bool = False
    # Visited page whose links were not fully folded into the graph yet
    in_progress: Optional[Tuple[str, List[RawLink]]] = None

    @property
    def complete(self) -> bool:
        return not self.frontier.has_pending() and self.in_progress is None


def pause(delay_s: float, jitter_s: float) -> None:
    """Sleep for ``delay_s`` give or take a uniform ``jitter_s``."""
    if delay_s <= 0 and jitter_s <= 0:
        return
    wait = max(0.0, random.uniform(delay_s - jitter_s, delay_s + jitter_s))
    if wait:
        time.sleep(wait)


def visit(session: PageSession, address: str, timeout_s: float) -> None:
    """Load a page and wait for it to be ready. Raises NavigationError on failure."""
    session.navigate(address)
    if not session.wait_ready(timeout_s):
        raise NavigationTimeout(address, f"not ready after {timeout_s:g}s")


def fold_links(
    result: CrawlResult,
    address: str,
    links: List[RawLink],
    origin_hosts: frozenset,
    config: CrawlConfig,
    extra_patterns: Tuple[Pattern[str], ...],
) -> int:
    """
    Record a page's links in the graph and queue the crawlable ones.

    Safe to repeat for the same page. Statistics are only updated once
    every link is folded. Returns the number of newly queued pages.
    """
    new_pages = 0
    links_seen = 0
    rejections: List[Rejection] = []
    for link in links:
        rejection = classify(
            link.href,
            origin_hosts,
            ignore_www=config.ignore_www,
            path_prefix=config.path_prefix,
            extra_patterns=extra_patterns,
        )
        result.graph.merge(link, address, internal=rejection not in OFF_SITE)
        links_seen += link.instances

        if rejection is not None:
            rejections.append(rejection)
            logger.debug("Not queueing %s (%s)", link.href, rejection.value)
            continue

        if result.frontier.add(canonicalize(link.href)):
            new_pages += 1

    result.in_progress = None
    result.stats.links_seen += links_seen
    for rejection in rejections:
        result.stats.record_rejection(rejection)
    return new_pages


def crawl(
    seed_urls: Sequence[str],
    session: PageSession,
    config: Optional[CrawlConfig] = None,
    *,
    resume: Optional[CrawlResult] = None,
) -> CrawlResult:
    """
    Map the links of every same-origin page reachable from the seeds.

    Pages are visited one at a time, oldest discovery first. Every href on
    a visited page becomes a LinkEdge, including cross-origin and file
    links; only hrefs the classifier accepts are queued as pages. A page
    that redirects to another origin counts as visited but its links are
    not read.

    Args:
        seed_urls: Start URLs. Their hosts define the crawl's origin.
        session: Page session used to load pages and read their links.
        config: Crawl options (page budget, timeouts, filters, pacing).
        resume: A previous, unfinished result to continue from.

    Returns:
        CrawlResult with the graph, the frontier and statistics. If the
        crawl is interrupted the partial result is returned with
        ``interrupted=True``.

    Raises:
        ValueError: No valid seed URL was given, or max_pages is below 1.
        SeedNavigationError: The first seed could not be loaded or
            redirected off-site.
    """
    config = config or CrawlConfig()
    if config.max_pages is not None and config.max_pages < 1:
        raise ValueError(f"max_pages must be at least 1 or None, got {config.max_pages}")

    if resume is not None:
        seeds = list(resume.seeds)
        result = resume
        result.interrupted = False
    else:
        seeds = []
        for url in seed_urls:
            address = canonicalize(url)
            if not address:
                raise ValueError(f"Invalid start URL: {url}")
            seeds.append(address)
        if not seeds:
            raise ValueError("At least one start URL is required")
        result = CrawlResult(
            seeds=seeds,
            graph=SiteLinkGraph(),
            frontier=Frontier(seeds),
            stats=CrawlStats(),
        )

    origin_hosts = origin_hosts_for(seeds, config.ignore_www)
    extra_patterns = compile_patterns(config.extra_noisy_patterns)
    frontier, stats = result.frontier, result.stats
    first_seed = seeds[0]

    logger.info("Starting crawl from %s (%d pending)", ", ".join(seeds), len(frontier.pending))

    try:
        if result.in_progress is not None:
            address, links = result.in_progress
            logger.info("Finishing links of %s", address)
            if not frontier.is_visited(address):
                frontier.mark_visited(address)
                stats.pages_crawled += 1
            fold_links(result, address, links, origin_hosts, config, extra_patterns)

        while frontier.has_pending():
            if config.max_pages is not None and stats.pages_crawled >= config.max_pages:
                logger.info("Page budget of %d reached; %d pages left pending",
                            config.max_pages, len(frontier.pending))
                break

            address = frontier.next_pending()
            if stats.pages_crawled:
                pause(config.delay_s, config.delay_jitter_s)

            try:
                visit(session, address, config.timeout_s)
                final_url = getattr(session, "current_url", None) or address
                if classify(final_url, origin_hosts, ignore_www=config.ignore_www) in OFF_SITE:
                    if address == first_seed and stats.pages_crawled == 0:
                        raise SeedNavigationError(address, f"redirected off-site to {final_url}")
                    logger.info("Not reading %s: redirected off-site to %s", address, final_url)
                    links = []
                    stats.offsite_redirects += 1
                else:
                    links = extract_links(session)
            except NavigationError as e:
                frontier.mark_visited(address)
                stats.pages_crawled += 1
                if isinstance(e, SeedNavigationError):
                    raise
                if address == first_seed and stats.pages_crawled == 1:
                    raise SeedNavigationError(address, e.reason or str(e)) from e
                stats.record_error(e)
                logger.warning("Skipping %s: %s", address, e)
                continue

            result.in_progress = (address, links)
            frontier.mark_visited(address)
            stats.pages_crawled += 1
            new_pages = fold_links(result, address, links, origin_hosts, config, extra_patterns)

            logger.info("→ %s (+%d pages) [%d visited, %d pending]",
                        address, new_pages, len(frontier.visited), len(frontier.pending))
    except KeyboardInterrupt:
        logger.warning("Crawl interrupted; %d pages left pending", len(frontier.pending))
        result.interrupted = True

    return result
