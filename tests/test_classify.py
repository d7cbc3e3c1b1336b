"""Frontier eligibility rules and canonical addresses."""

from __future__ import annotations

import pytest

from linkmapper.classify import (
    Rejection,
    canonicalize,
    classify,
    compile_patterns,
    origin_hosts_for,
    should_enqueue,
)

ORIGIN = "ex.edu"


@pytest.mark.parametrize(
    "href",
    ["", "not a url", "/relative/path", "mailto:web@ex.edu", "javascript:void(0)", "https://ex.edu:port/"],
)
def test_malformed_hrefs(href):
    assert classify(href, ORIGIN) is Rejection.MALFORMED


def test_non_http_scheme():
    assert classify("ftp://ex.edu/pub/", ORIGIN) is Rejection.UNSUPPORTED_SCHEME


def test_cross_origin():
    assert classify("https://other.edu/", ORIGIN) is Rejection.CROSS_ORIGIN
    assert classify("https://sub.ex.edu/", ORIGIN) is Rejection.CROSS_ORIGIN


def test_host_comparison_ignores_case():
    assert should_enqueue("https://EX.EDU/About/", ORIGIN)
    assert should_enqueue("https://ex.edu/", "EX.edu")


def test_www_only_joined_on_request():
    assert classify("https://www.ex.edu/", ORIGIN) is Rejection.CROSS_ORIGIN
    assert classify("https://www.ex.edu/", ORIGIN, ignore_www=True) is None


def test_scheme_does_not_change_origin():
    assert should_enqueue("http://ex.edu/page", ORIGIN)


@pytest.mark.parametrize(
    "href",
    [
        "https://ex.edu/doc.pdf",
        "https://ex.edu/files/Report.PDF",
        "https://ex.edu/doc.pdf?download=1",
        "https://ex.edu/img/photo.jpeg",
        "https://ex.edu/media/intro.mp4",
        "https://ex.edu/forms/budget.xlsx",
        "https://ex.edu/archive.zip",
    ],
)
def test_file_downloads(href):
    assert classify(href, ORIGIN) is Rejection.FILE_DOWNLOAD


@pytest.mark.parametrize(
    "href",
    [
        "https://ex.edu/events/month/",
        "https://ex.edu/events/list/page/4/",
        "https://ex.edu/events/2024-03/",
        "https://ex.edu/events/2024-03-18/",
        "https://ex.edu/events/category/seminars/list/",
        "https://ex.edu/event/brown-bag/2024-03-18/",
    ],
)
def test_calendar_views_are_noisy(href):
    assert classify(href, ORIGIN) is Rejection.NOISY_UI


def test_plain_event_pages_are_crawled():
    assert should_enqueue("https://ex.edu/events/", ORIGIN)
    assert should_enqueue("https://ex.edu/event/brown-bag/", ORIGIN)


def test_extra_noisy_patterns():
    patterns = compile_patterns([r"^/search/"])
    assert classify("https://ex.edu/search/foo", ORIGIN, extra_patterns=patterns) is Rejection.NOISY_UI
    assert classify("https://ex.edu/research/foo", ORIGIN, extra_patterns=patterns) is None


def test_path_prefix():
    assert classify("https://ex.edu/about/", ORIGIN, path_prefix="/news") is Rejection.OUT_OF_SCOPE
    assert classify("https://ex.edu/news/2024/", ORIGIN, path_prefix="/news") is None


def test_rules_apply_in_order():
    # Cross-origin wins over file download
    assert classify("https://other.edu/doc.pdf", ORIGIN) is Rejection.CROSS_ORIGIN


def test_multiple_origin_hosts():
    hosts = origin_hosts_for(["https://a.ex.edu/", "https://B.ex.edu/x"])
    assert hosts == frozenset({"a.ex.edu", "b.ex.edu"})
    assert should_enqueue("https://b.ex.edu/page", hosts)


@pytest.mark.parametrize(
    "href, expected",
    [
        ("https://ex.edu/about/?utm_source=x#team", "https://ex.edu/about/"),
        ("HTTPS://Ex.Edu", "https://ex.edu/"),
        ("https://ex.edu:443/a", "https://ex.edu/a"),
        ("http://ex.edu:80/a", "http://ex.edu/a"),
        ("http://ex.edu:8080/a", "http://ex.edu:8080/a"),
        ("https://ex.edu/Case/Path", "https://ex.edu/Case/Path"),
        ("https://ex.edu./a", "https://ex.edu/a"),
        ("https://EX.edu.:443/", "https://ex.edu/"),
        ("http://[::1]:8080/", "http://[::1]:8080/"),
        ("https://[2001:DB8::1]:443/x?q=1", "https://[2001:db8::1]/x"),
    ],
)
def test_canonicalize(href, expected):
    assert canonicalize(href) == expected


@pytest.mark.parametrize("href", ["", "mailto:a@ex.edu", "/relative", "https://ex.edu:bad/"])
def test_canonicalize_rejects_non_page_urls(href):
    assert canonicalize(href) is None
