"""
Headless Chromium page session (Playwright).
"""
from __future__ import annotations

import logging
from typing import List, Optional

from playwright.sync_api import (  # type: ignore[import-not-found]
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
    sync_playwright,
)

from linkmapper.errors import NavigationError, NavigationTimeout
from linkmapper.extract import Element, RawLinkObservation, clean_text, context_of
from linkmapper.session import DEFAULT_USER_AGENT

logger = logging.getLogger(__name__)

# Runs inside the page; reports each anchor with its resolved href and ancestor chain
ANCHOR_SCRIPT = """
() => Array.from(document.querySelectorAll('a[href]')).map((a) => {
    const ancestors = [];
    for (let el = a.parentElement; el; el = el.parentElement) {
        ancestors.push({
            tag: el.tagName.toLowerCase(),
            id: el.id || '',
            classes: Array.from(el.classList || []),
        });
    }
    const img = a.querySelector('img[alt]');
    return {
        href: typeof a.href === 'string' ? a.href : (a.href && a.href.baseVal) || '',
        text: a.innerText || a.textContent || '',
        label: a.getAttribute('aria-label') || a.getAttribute('title') || (img ? img.alt : ''),
        ancestors,
    };
})
"""


def observations_from_entries(entries: List[dict]) -> List[RawLinkObservation]:
    """Turn the anchor script's output into link observations."""
    observations = []
    for entry in entries:
        href = entry.get("href") if isinstance(entry, dict) else None
        if not href:
            continue
        chain = [Element.from_dict(a) for a in entry.get("ancestors") or ()]
        text = clean_text(entry.get("text")) or clean_text(entry.get("label"))
        observations.append(RawLinkObservation(href=href, context=context_of(chain), text=text))
    return observations


class PlaywrightPageSession:
    """
    Page session that renders pages in headless Chromium.

    Use as a context manager; the browser is started on enter and closed
    on exit. ``ready_selector`` is the marker waited for after each load.
    """

    def __init__(
        self,
        ready_selector: str = "body",
        user_agent: str = DEFAULT_USER_AGENT,
        headless: bool = True,
        navigation_timeout_s: float = 30.0,
        viewport: Optional[dict] = None,
    ) -> None:
        self.ready_selector = ready_selector
        self.user_agent = user_agent
        self.headless = headless
        self.navigation_timeout_s = navigation_timeout_s
        self.viewport = viewport or {"width": 1680, "height": 1050}
        self._playwright = None
        self._browser = None
        self.page = None

    def start(self) -> "PlaywrightPageSession":
        logger.info("Opening headless browser")
        self._playwright = sync_playwright().start()
        self._browser = self._playwright.chromium.launch(headless=self.headless)
        context = self._browser.new_context(user_agent=self.user_agent, viewport=self.viewport)
        self.page = context.new_page()
        return self

    def close(self) -> None:
        if self._browser is not None:
            self._browser.close()
            self._browser = None
        if self._playwright is not None:
            self._playwright.stop()
            self._playwright = None
        self.page = None

    def __enter__(self) -> "PlaywrightPageSession":
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.close()

    def navigate(self, url: str) -> None:
        if self.page is None:
            raise RuntimeError("Browser session is not started")
        try:
            self.page.goto(url, wait_until="domcontentloaded",
                           timeout=self.navigation_timeout_s * 1000)
        except PlaywrightTimeoutError as e:
            raise NavigationTimeout(url, str(e)) from e
        except PlaywrightError as e:
            raise NavigationError(url, str(e)) from e

    @property
    def current_url(self) -> Optional[str]:
        # Reflects client-side redirects too, once the page is ready
        return self.page.url if self.page is not None else None

    def wait_ready(self, timeout_s: float) -> bool:
        try:
            self.page.wait_for_selector(self.ready_selector, timeout=timeout_s * 1000)
        except PlaywrightTimeoutError:
            return False
        return True

    def extract_raw_links(self) -> List[RawLinkObservation]:
        try:
            entries = self.page.evaluate(ANCHOR_SCRIPT)
        except PlaywrightError as e:
            raise NavigationError(self.page.url, f"link extraction failed: {e}") from e
        return observations_from_entries(entries)
