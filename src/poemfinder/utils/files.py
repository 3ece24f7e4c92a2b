"""Utility helpers for locating and reading category files."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit


def is_remote(origin: str | Path) -> bool:
    """True for http(s) origins, False for filesystem directories."""
    if isinstance(origin, Path):
        return False
    return urlsplit(origin).scheme in ("http", "https")


def join_location(origin: str | Path, relative_path: str) -> str:
    """Append a relative resource path to an origin URL or directory."""
    relative_path = relative_path.lstrip("/")
    if is_remote(origin):
        base = str(origin)
        if not base.endswith("/"):
            base += "/"
        return base + relative_path
    return str(Path(origin) / relative_path)


def read_json_file(path: Path) -> Any:
    """Load a UTF-8 JSON document from disk."""
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)
