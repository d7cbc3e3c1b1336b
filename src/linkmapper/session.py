"""
Page sessions: the page-loading capability the crawler drives.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Protocol
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from linkmapper.errors import NavigationError, NavigationTimeout
from linkmapper.extract import Element, RawLinkObservation, clean_text, context_of

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "LinkMapper/1.0"


class PageSession(Protocol):
    """One loaded page at a time: navigate, wait until ready, read its links."""

    def navigate(self, url: str) -> None:
        """Load ``url``. Raises NavigationError (or NavigationTimeout) on failure."""

    @property
    def current_url(self) -> Optional[str]:
        """Address of the loaded page after redirects."""

    def wait_ready(self, timeout_s: float) -> bool:
        """Wait for the content-ready marker. False means it never appeared."""

    def extract_raw_links(self) -> List[RawLinkObservation]:
        """Report every anchor on the loaded page."""


def _anchor_text(anchor) -> str:
    text = clean_text(anchor.get_text(" ", strip=True))
    if text:
        return text
    for attr in ("aria-label", "title"):
        if anchor.get(attr):
            return clean_text(anchor[attr])
    img = anchor.find("img", alt=True)
    return clean_text(img["alt"]) if img else ""


def _ancestors(anchor) -> List[Element]:
    chain = []
    for parent in anchor.parents:
        if parent.name is None or parent.name == "[document]":
            break
        classes = parent.get("class") or ()
        if isinstance(classes, str):
            classes = classes.split()
        chain.append(Element(tag=parent.name, id=parent.get("id") or "", classes=tuple(classes)))
    return chain


def observations_from_soup(soup: BeautifulSoup, page_url: str) -> List[RawLinkObservation]:
    """Walk every <a href> in a parsed document."""
    base_tag = soup.find("base", href=True)
    base_url = urljoin(page_url, base_tag["href"].strip()) if base_tag else page_url

    observations = []
    for anchor in soup.find_all("a", href=True):
        href = urljoin(base_url, anchor["href"].strip())
        observations.append(RawLinkObservation(
            href=href,
            context=context_of(_ancestors(anchor)),
            text=_anchor_text(anchor),
        ))
    return observations


def observations_from_html(html: str, page_url: str) -> List[RawLinkObservation]:
    """Extract link observations from raw HTML loaded from ``page_url``."""
    return observations_from_soup(BeautifulSoup(html, "lxml"), page_url)


class HttpPageSession:
    """
    Page session backed by plain HTTP requests.

    Pages are fetched with ``requests`` and parsed with BeautifulSoup, so
    links added by client-side scripts are not seen. Non-HTML responses
    load fine but report no links.
    """

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout_s: float = 15.0,
        ready_selector: Optional[str] = None,
        http: Optional[requests.Session] = None,
    ) -> None:
        self.timeout_s = timeout_s
        self.ready_selector = ready_selector
        self.http = http or requests.Session()
        self.http.headers["User-Agent"] = user_agent
        self.url: Optional[str] = None
        self.status_code: Optional[int] = None
        self._soup: Optional[BeautifulSoup] = None

    def navigate(self, url: str) -> None:
        self.url, self.status_code, self._soup = url, None, None
        try:
            resp = self.http.get(url, timeout=self.timeout_s, allow_redirects=True)
        except requests.Timeout as e:
            raise NavigationTimeout(url, str(e)) from e
        except requests.RequestException as e:
            raise NavigationError(url, str(e)) from e

        self.url = resp.url
        self.status_code = resp.status_code
        if resp.status_code >= 400:
            logger.info("HTTP %d for %s", resp.status_code, url)

        # Only parse HTML content
        content_type = (resp.headers.get("content-type") or "").lower()
        if "text/html" in content_type:
            self._soup = BeautifulSoup(resp.text, "lxml")
        else:
            logger.debug("Not parsing %s (%s)", url, content_type or "no content-type")

    @property
    def current_url(self) -> Optional[str]:
        return self.url

    def wait_ready(self, timeout_s: float) -> bool:
        # The document is complete once fetched; only a marker can be missing.
        if self._soup is None or not self.ready_selector:
            return True
        return self._soup.select_one(self.ready_selector) is not None

    def extract_raw_links(self) -> List[RawLinkObservation]:
        if self._soup is None or self.url is None:
            return []
        return observations_from_soup(self._soup, self.url)

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "HttpPageSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
