"""CSV and JSON output."""

from __future__ import annotations

import csv
import io
import json
from datetime import datetime
from pathlib import Path

import pytest

from linkmapper.core import crawl
from linkmapper.export import CSV_COLUMNS, generate_output_path, render, to_csv, to_json, write_result

from .conftest import FakeSession, link


@pytest.fixture()
def result():
    session = FakeSession({
        "https://ex.edu/": [
            link("https://ex.edu/about/", "NAV", "About"),
            link("https://ex.edu/about/", "FOOTER", "About, us"),
            link("https://other.example/", "", "Partner"),
        ],
        "https://ex.edu/about/": [link("https://ex.edu/about/", "", "")],
    })
    return crawl(["https://ex.edu/"], session)


def test_csv_rows(result):
    rows = list(csv.reader(io.StringIO(to_csv(result))))

    assert tuple(rows[0]) == CSV_COLUMNS
    assert rows[1] == [
        "https://ex.edu/about/",
        "yes",
        "3",
        "https://ex.edu/ | https://ex.edu/about/",
        " | FOOTER | NAV",
        "About | About, us",
    ]
    assert rows[2] == ["https://other.example/", "no", "1", "https://ex.edu/", "", "Partner"]
    assert len(rows) == 3


def test_json_payload(result):
    payload = json.loads(to_json(result, pretty=True))

    assert payload["seeds"] == ["https://ex.edu/"]
    assert payload["pages_visited"] == ["https://ex.edu/", "https://ex.edu/about/"]
    assert payload["pages_pending"] == []
    assert payload["interrupted"] is False
    assert payload["edges"][0] == {
        "href": "https://ex.edu/about/",
        "internal": True,
        "instances": 3,
        "locations": ["https://ex.edu/", "https://ex.edu/about/"],
        "contexts": ["", "FOOTER", "NAV"],
        "texts": ["About", "About, us"],
    }


def test_render_rejects_unknown_format(result):
    with pytest.raises(ValueError):
        render(result, "xml")


def test_write_result_creates_directories(result, tmp_path):
    path = write_result(result, tmp_path / "out" / "links.json", "json")

    assert path.exists()
    assert json.loads(path.read_text(encoding="utf-8"))["edges"]


def test_generate_output_path():
    path = generate_output_path("https://www.ex.edu/news/", "csv", now=datetime(2024, 5, 1, 9, 30, 5))
    assert path == Path("crawls") / "www_ex_edu_20240501_093005.csv"
