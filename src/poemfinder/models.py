"""Core PoemFinder data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Tuple

_MAPPED_FIELDS = frozenset(
    {
        "title",
        "rhythmic",
        "author",
        "poet",
        "paragraphs",
        "content",
        "chapter",
        "tags",
        "dynasty",
        "notes",
        "translation",
        "appreciation",
    }
)


@dataclass(frozen=True, slots=True)
class PoetryRecord:
    """One poem normalized from any of the source shapes."""

    title: str
    author: str
    body_lines: Tuple[str, ...]
    tags: Tuple[str, ...] = ()
    category: str = ""
    chapter: str | None = None
    dynasty: str | None = None
    notes: Any = None
    translation: str | None = None
    appreciation: str | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    @property
    def content(self) -> str:
        return "\n".join(self.body_lines)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "title": self.title,
            "author": self.author,
            "paragraphs": list(self.body_lines),
            "tags": list(self.tags),
            "category": self.category,
        }
        for name in ("chapter", "dynasty", "notes", "translation", "appreciation"):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data


@dataclass(frozen=True, slots=True)
class CategoryEntry:
    """Static mapping from a category key to the files holding its records."""

    key: str
    path: str
    files: Tuple[str, ...]
    name: str = ""


@dataclass(slots=True)
class CacheEntry:
    """Persisted snapshot of the raw records of one category."""

    category: str
    timestamp: int
    data: list

    def is_expired(self, now: int, expiry: int) -> bool:
        return now - self.timestamp > expiry


@dataclass(frozen=True, slots=True)
class FieldHighlight:
    text: str
    spans: Tuple[Tuple[int, int], ...]


@dataclass(frozen=True, slots=True)
class LineHighlight:
    index: int
    text: str
    spans: Tuple[Tuple[int, int], ...]


@dataclass(frozen=True, slots=True)
class Highlights:
    """Where a query matched inside a record."""

    title: FieldHighlight | None = None
    author: FieldHighlight | None = None
    content: Tuple[LineHighlight, ...] = ()
    tags: Tuple[FieldHighlight, ...] = ()


@dataclass(frozen=True, slots=True)
class SearchResult:
    record: PoetryRecord
    highlights: Highlights | None = None

    @property
    def title(self) -> str:
        return self.record.title

    @property
    def author(self) -> str:
        return self.record.author

    @property
    def category(self) -> str:
        return self.record.category


@dataclass(frozen=True, slots=True)
class SearchOptions:
    category: str = "all"
    search_title: bool = True
    search_author: bool = True
    search_content: bool = True
    search_tags: bool = False


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _body_lines(raw: Mapping[str, Any]) -> Tuple[str, ...]:
    paragraphs = raw.get("paragraphs")
    if isinstance(paragraphs, list):
        return tuple(_as_text(line) for line in paragraphs)

    content = raw.get("content")
    if isinstance(content, list):
        return tuple(_as_text(line) for line in content)
    if isinstance(content, str) and content:
        return tuple(content.splitlines())

    chapter = raw.get("chapter")
    if chapter:
        return (_as_text(chapter),)
    return ()


def _tags(raw: Mapping[str, Any]) -> Tuple[str, ...]:
    tags = raw.get("tags")
    if isinstance(tags, str):
        return (tags,)
    if isinstance(tags, list):
        return tuple(_as_text(tag) for tag in tags if tag)
    return ()


def normalize_record(raw: Mapping[str, Any], category: str) -> PoetryRecord:
    """Map a raw source object of any known shape onto a PoetryRecord.

    Title falls back from ``title`` to ``rhythmic`` (song lyrics) and then to
    ``chapter`` (analects); author falls back from ``author`` to ``poet``.
    The body is taken from ``paragraphs``, ``content`` or ``chapter`` in that
    order. ``category`` is assigned here and never read from the source.
    """
    chapter = raw.get("chapter")
    title = raw.get("title") or raw.get("rhythmic") or chapter or ""
    author = raw.get("author") or raw.get("poet") or ""
    return PoetryRecord(
        title=_as_text(title),
        author=_as_text(author),
        body_lines=_body_lines(raw),
        tags=_tags(raw),
        category=category,
        chapter=_as_text(chapter) if chapter else None,
        dynasty=raw.get("dynasty") or None,
        notes=raw.get("notes"),
        translation=raw.get("translation") or None,
        appreciation=raw.get("appreciation") or None,
        extra={key: value for key, value in raw.items() if key not in _MAPPED_FIELDS},
    )
