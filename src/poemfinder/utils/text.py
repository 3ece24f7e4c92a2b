"""Text helpers for query matching and highlighting."""

from __future__ import annotations

import re
from typing import Iterable, List, Tuple

Span = Tuple[int, int]


def normalize_query(query: str) -> str:
    """Trim and lower-case a raw query."""
    return query.strip().lower()


def is_match(text: str, query: str, *, fuzzy: bool = True) -> bool:
    """Check whether ``text`` matches an already normalized ``query``.

    Fuzzy mode succeeds when any single query character occurs in the text,
    which tolerates partial or garbled CJK input. Exact mode is a plain
    case-insensitive substring test.
    """
    if not text or not query:
        return False

    text = text.lower()
    if fuzzy:
        return any(char in text for char in query)
    return query in text


def any_match(values: Iterable[str], query: str, *, fuzzy: bool = True) -> bool:
    return any(is_match(value, query, fuzzy=fuzzy) for value in values)


def _pattern(query: str, fuzzy: bool) -> re.Pattern[str]:
    if fuzzy:
        chars = "".join(sorted({re.escape(char) for char in query}))
        return re.compile(f"[{chars}]", re.IGNORECASE)
    return re.compile(re.escape(query), re.IGNORECASE)


def match_spans(text: str, query: str, *, fuzzy: bool = True) -> List[Span]:
    """Return the ``(start, end)`` offsets of every match in ``text``."""
    if not text or not query:
        return []
    return [match.span() for match in _pattern(query, fuzzy).finditer(text)]


def highlight_text(
    text: str,
    spans: Iterable[Span],
    *,
    tags: Tuple[str, str] = ("<mark>", "</mark>"),
) -> str:
    """Wrap each span of ``text`` in the given opening and closing markers."""
    opening, closing = tags
    parts: List[str] = []
    cursor = 0
    for start, end in spans:
        parts.append(text[cursor:start])
        parts.append(f"{opening}{text[start:end]}{closing}")
        cursor = end
    parts.append(text[cursor:])
    return "".join(parts)
