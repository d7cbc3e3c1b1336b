"""
Link extraction: landmark context trails and per-page deduplication.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Set, Tuple

# Tags that always count as landmarks
LANDMARK_TAGS: frozenset[str] = frozenset((
    "nav", "header", "footer", "aside",
    "h1", "h2", "h3", "h4", "h5", "h6",
))

# Structural containers recognized by (tag or "*", id-or-class token)
LANDMARK_CONTAINERS: Tuple[Tuple[str, str], ...] = (
    ("*", "breadcrumbs"),
    ("*", "breadcrumb-trail"),
    ("*", "wsu-breadcrumbs"),
    ("ol", "breadcrumb"),
    ("ul", "breadcrumb"),
    ("*", "wsu-footer-site"),
    ("*", "wsu-footer-site__menu"),
    ("*", "footer-menu"),
    ("*", "site-footer"),
    ("*", "wsu-navigation-site-vertical"),
    ("*", "wsu-navigation-site-horizontal"),
)

CONTEXT_SEPARATOR = " > "

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class Element:
    """Tag/id/class descriptor of one element in an anchor's ancestor chain."""
    tag: str
    id: str = ""
    classes: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "Element":
        classes = data.get("classes") or ()
        if isinstance(classes, str):
            classes = classes.split()
        return cls(
            tag=(data.get("tag") or "").lower(),
            id=data.get("id") or "",
            classes=tuple(c for c in classes if c),
        )

    def describe(self) -> str:
        """Render as TAG#id.class1.class2"""
        text = self.tag.upper()
        if self.id:
            text += f"#{self.id}"
        for cls in self.classes:
            text += f".{cls}"
        return text


class RawLinkObservation(NamedTuple):
    """One anchor on one page, as reported by a page session."""
    href: str
    context: str = ""
    text: str = ""


@dataclass(slots=True)
class RawLink:
    """All observations of one href on one page."""
    href: str
    contexts: Set[str] = field(default_factory=set)
    texts: Set[str] = field(default_factory=set)
    instances: int = 0


def is_landmark(element: Element) -> bool:
    tag = element.tag.lower()
    if tag in LANDMARK_TAGS:
        return True
    tokens = set(element.classes)
    if element.id:
        tokens.add(element.id)
    return any(
        (want_tag == "*" or want_tag == tag) and token in tokens
        for want_tag, token in LANDMARK_CONTAINERS
    )


def context_of(ancestors: Sequence[Element]) -> str:
    """
    Build the landmark trail for an anchor.

    ``ancestors`` runs from the anchor's parent outward to the document
    root. Matching landmarks are joined outermost first, so the innermost
    match comes last: ``"FOOTER.site-footer > NAV#footer-menu"``.
    Returns an empty string for links in plain body content.
    """
    trail = [el.describe() for el in ancestors if is_landmark(el)]
    trail.reverse()
    return CONTEXT_SEPARATOR.join(trail)


def clean_text(text: Optional[str]) -> str:
    """Collapse whitespace in visible link text."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


def collect_links(observations: Iterable[RawLinkObservation]) -> List[RawLink]:
    """
    Deduplicate a page's observations by href.

    Repeats of an href merge their context and text into the first entry
    and bump its per-page instance count. Order of first appearance is kept.
    """
    links: Dict[str, RawLink] = {}
    for obs in observations:
        if not obs.href:
            continue
        link = links.get(obs.href)
        if link is None:
            link = links[obs.href] = RawLink(href=obs.href)
        link.instances += 1
        link.contexts.add(obs.context or "")
        text = clean_text(obs.text)
        if text:
            link.texts.add(text)
    return list(links.values())


def extract_links(session) -> List[RawLink]:
    """Pull the links of the page currently loaded in ``session``."""
    return collect_links(session.extract_raw_links())
