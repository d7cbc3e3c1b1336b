"""
Site link mapper that performs BFS traversal of same-origin pages from seed URLs.
Records every link found, with the pages it appears on, its landmark context,
its link text and how often it occurs.
"""
from linkmapper.classify import Rejection, canonicalize, classify, should_enqueue
from linkmapper.core import (
    CrawlConfig,
    CrawlResult,
    CrawlStats,
    Frontier,
    LinkEdge,
    SiteLinkGraph,
    crawl,
)
from linkmapper.errors import (
    LinkMapperError,
    NavigationError,
    NavigationTimeout,
    SeedNavigationError,
)
from linkmapper.extract import Element, RawLink, RawLinkObservation, context_of, extract_links
from linkmapper.session import HttpPageSession, PageSession

__version__ = "1.0.0"
__all__ = [
    "crawl",
    "CrawlConfig",
    "CrawlResult",
    "CrawlStats",
    "Frontier",
    "LinkEdge",
    "SiteLinkGraph",
    "Rejection",
    "canonicalize",
    "classify",
    "should_enqueue",
    "Element",
    "RawLink",
    "RawLinkObservation",
    "context_of",
    "extract_links",
    "PageSession",
    "HttpPageSession",
    "LinkMapperError",
    "NavigationError",
    "NavigationTimeout",
    "SeedNavigationError",
]
