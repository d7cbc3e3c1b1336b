"""
Link classification: decides which discovered hrefs become frontier pages.
"""
from __future__ import annotations

import enum
import re
from typing import Collection, Iterable, Optional, Pattern, Tuple, Union
from urllib.parse import urlparse, urlunparse

# Pre-defined file extensions to skip (frozen set for O(1) lookup)
SKIP_EXTENSIONS: frozenset[str] = frozenset((
    ".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".bmp", ".tif", ".tiff", ".ico",
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx", ".odt", ".ods", ".odp", ".rtf",
    ".zip", ".rar", ".7z", ".tar", ".gz", ".tgz", ".bz2",
    ".mp4", ".mp3", ".wav", ".webm", ".ogg", ".m4a", ".mov", ".avi", ".wmv", ".mkv",
    ".css", ".js", ".map",
    ".woff", ".woff2", ".ttf", ".eot",
))

# Event calendar widget views that generate endless date-based navigation
NOISY_PATH_PATTERNS: Tuple[str, ...] = (
    r"/events/(?:list|month|week|day|today|photo|map|summary)/?$",
    r"/events/(?:list/)?page/\d+/?$",
    r"/events/\d{4}-\d{2}(?:-\d{2})?/?$",
    r"/events/(?:category|tag)/.+/(?:list|month|week|day|photo|map)/?$",
    r"/events/(?:category|tag)/.+/\d{4}-\d{2}(?:-\d{2})?/?$",
    r"/event/[^/]+/\d{4}-\d{2}-\d{2}/?$",
    r"/calendar/(?:action~|month|week|day|agenda)",
)

_NOISY_RE: Tuple[Pattern[str], ...] = tuple(re.compile(p, re.IGNORECASE) for p in NOISY_PATH_PATTERNS)

OriginHosts = Union[str, Collection[str]]


class Rejection(enum.Enum):
    """Reasons an href is kept out of the frontier (it is still recorded as an edge)."""
    MALFORMED = "malformed"
    UNSUPPORTED_SCHEME = "unsupported_scheme"
    CROSS_ORIGIN = "cross_origin"
    FILE_DOWNLOAD = "file_download"
    NOISY_UI = "noisy_ui"
    OUT_OF_SCOPE = "out_of_scope"


# Rejections meaning the URL is not part of the crawled site at all
OFF_SITE: frozenset[Rejection] = frozenset((
    Rejection.MALFORMED, Rejection.UNSUPPORTED_SCHEME, Rejection.CROSS_ORIGIN,
))


def normalize_host(host: str, ignore_www: bool = False) -> str:
    """Lower-case a host name, optionally dropping a leading ``www.``."""
    host = host.lower().rstrip(".")
    if ignore_www and host.startswith("www."):
        host = host[4:]
    return host


def origin_hosts_for(seed_urls: Iterable[str], ignore_www: bool = False) -> frozenset[str]:
    """Collect the normalized hosts of the seed URLs."""
    hosts = set()
    for url in seed_urls:
        hostname = urlparse(url).hostname
        if hostname:
            hosts.add(normalize_host(hostname, ignore_www))
    return frozenset(hosts)


def canonicalize(href: str) -> Optional[str]:
    """
    Derive the frontier identity of an absolute URL.

    - Lower-cases scheme and host, dropping a trailing dot on the host
    - Removes default ports (:80, :443)
    - Drops the query string and fragment
    - Uses "/" for an empty path

    Returns None when the href is not an absolute http(s) URL.
    """
    if not href:
        return None

    parsed = urlparse(href.strip())
    scheme = parsed.scheme.lower()
    if scheme not in ("http", "https") or not parsed.hostname:
        return None

    try:
        port = parsed.port
    except ValueError:
        return None

    hostname = normalize_host(parsed.hostname)
    if ":" in hostname:
        # IPv6 literal
        hostname = f"[{hostname}]"
    if (scheme == "http" and port == 80) or (scheme == "https" and port == 443):
        netloc = hostname
    elif port:
        netloc = f"{hostname}:{port}"
    else:
        netloc = hostname

    return urlunparse((scheme, netloc, parsed.path or "/", "", "", ""))


def is_file_download(path: str) -> bool:
    path_lower = path.lower()
    return any(path_lower.endswith(ext) for ext in SKIP_EXTENSIONS)


def is_noisy(path: str, extra_patterns: Iterable[Pattern[str]] = ()) -> bool:
    return any(p.search(path) for p in _NOISY_RE) or any(p.search(path) for p in extra_patterns)


def compile_patterns(patterns: Iterable[str]) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


def classify(
    href: str,
    origin_hosts: OriginHosts,
    *,
    ignore_www: bool = False,
    path_prefix: Optional[str] = None,
    extra_patterns: Iterable[Pattern[str]] = (),
) -> Optional[Rejection]:
    """
    Check an href against the frontier rules, first match wins.

    Returns the Rejection that keeps it out of the frontier, or None when
    the href may be crawled.
    """
    if isinstance(origin_hosts, str):
        origin_hosts = {normalize_host(origin_hosts, ignore_www)}

    if not href:
        return Rejection.MALFORMED
    parsed = urlparse(href.strip())
    if not parsed.scheme or not parsed.netloc or not parsed.hostname:
        return Rejection.MALFORMED
    try:
        parsed.port
    except ValueError:
        return Rejection.MALFORMED

    if parsed.scheme.lower() not in ("http", "https"):
        return Rejection.UNSUPPORTED_SCHEME

    if normalize_host(parsed.hostname, ignore_www) not in origin_hosts:
        return Rejection.CROSS_ORIGIN

    path = parsed.path or "/"
    if is_file_download(path):
        return Rejection.FILE_DOWNLOAD

    if is_noisy(path, extra_patterns):
        return Rejection.NOISY_UI

    if path_prefix is not None and not path.startswith(path_prefix):
        return Rejection.OUT_OF_SCOPE

    return None


def should_enqueue(href: str, origin_hosts: OriginHosts, **options) -> bool:
    """True when the href points at a same-origin page worth visiting."""
    return classify(href, origin_hosts, **options) is None
