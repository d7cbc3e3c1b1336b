"""
Serializers for crawl results (CSV and JSON).
"""
from __future__ import annotations

import csv
import io
import json
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union
from urllib.parse import urlparse

from linkmapper.core import CrawlResult, LinkEdge

CSV_COLUMNS = ("Href", "Internal", "Instances", "Locations", "Contexts", "Texts")
CELL_SEPARATOR = " | "


def _join(values: Iterable[str]) -> str:
    return CELL_SEPARATOR.join(sorted(values))


def edge_to_dict(edge: LinkEdge) -> Dict[str, object]:
    return {
        "href": edge.href,
        "internal": edge.internal,
        "instances": edge.instances,
        "locations": sorted(edge.locations),
        "contexts": sorted(edge.contexts),
        "texts": sorted(edge.texts),
    }


def graph_rows(result: CrawlResult) -> List[List[object]]:
    """One row per edge, in order of discovery."""
    return [
        [
            edge.href,
            "yes" if edge.internal else "no",
            edge.instances,
            _join(edge.locations),
            _join(edge.contexts),
            _join(edge.texts),
        ]
        for edge in result.graph.values()
    ]


def to_csv(result: CrawlResult) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    writer.writerows(graph_rows(result))
    return buffer.getvalue()


def to_json(result: CrawlResult, pretty: bool = False) -> str:
    payload = {
        "seeds": list(result.seeds),
        "pages_visited": result.frontier.visited,
        "pages_pending": result.frontier.pending,
        "interrupted": result.interrupted,
        "edges": [edge_to_dict(e) for e in result.graph.values()],
    }
    return json.dumps(payload, ensure_ascii=False, indent=2 if pretty else None)


def render(result: CrawlResult, fmt: str = "csv", pretty: bool = False) -> str:
    if fmt == "csv":
        return to_csv(result)
    if fmt == "json":
        return to_json(result, pretty=pretty)
    raise ValueError(f"Unknown output format: {fmt}")


def write_result(result: CrawlResult, path: Union[str, Path], fmt: str = "csv", pretty: bool = False) -> Path:
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(render(result, fmt, pretty), encoding="utf-8", newline="")
    return output_path


def generate_output_path(
    start_url: str,
    fmt: str = "csv",
    directory: Union[str, Path] = "crawls",
    now: Optional[datetime] = None,
) -> Path:
    """Generate output path: crawls/{hostname}_{datetime}.{fmt}"""
    parsed = urlparse(start_url)
    hostname = parsed.hostname or "unknown"
    # Sanitize hostname for filename (replace dots with underscores)
    hostname_safe = hostname.replace(".", "_")
    timestamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return Path(directory) / f"{hostname_safe}_{timestamp}.{fmt}"
