"""Shared fixtures: an in-memory page session."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Union

import pytest

from linkmapper.errors import NavigationError
from linkmapper.extract import RawLinkObservation

PageSpec = Union[Sequence[RawLinkObservation], BaseException]


def link(href: str, context: str = "", text: str = "") -> RawLinkObservation:
    return RawLinkObservation(href=href, context=context, text=text)


class FakeSession:
    """Serves canned link observations per URL.

    A page mapped to an exception raises it on navigation; unknown URLs
    raise NavigationError. Pages listed in ``not_ready`` load but never
    become ready. ``redirects`` maps a requested URL to the URL that is
    actually loaded.
    """

    def __init__(
        self,
        pages: Dict[str, PageSpec],
        not_ready: Iterable[str] = (),
        redirects: Optional[Dict[str, str]] = None,
    ) -> None:
        self.pages = dict(pages)
        self.not_ready = set(not_ready)
        self.redirects = dict(redirects or {})
        self.navigations: List[str] = []
        self.extractions: List[str] = []
        self.current: Optional[str] = None
        self.closed = False

    def navigate(self, url: str) -> None:
        self.navigations.append(url)
        self.current = None
        target = self.redirects.get(url, url)
        page = self.pages.get(target)
        if page is None:
            raise NavigationError(url, "no such page")
        if isinstance(page, BaseException):
            raise page
        self.current = target

    @property
    def current_url(self) -> Optional[str]:
        return self.current

    def wait_ready(self, timeout_s: float) -> bool:
        return self.current not in self.not_ready

    def extract_raw_links(self) -> List[RawLinkObservation]:
        self.extractions.append(self.current)
        return list(self.pages[self.current])

    def __enter__(self) -> "FakeSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.closed = True


@pytest.fixture()
def make_session():
    return FakeSession
