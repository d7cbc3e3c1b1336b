"""
Exceptions raised while mapping a site.
"""
from __future__ import annotations


class LinkMapperError(Exception):
    """Base class for crawl failures."""


class NavigationError(LinkMapperError):
    """A page could not be loaded."""

    def __init__(self, url: str, reason: str = "") -> None:
        self.url = url
        self.reason = reason
        message = f"Could not load {url}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class NavigationTimeout(NavigationError):
    """A page did not load (or become ready) within the timeout."""


class SeedNavigationError(NavigationError):
    """The first seed address failed, so there is nothing to crawl from."""
