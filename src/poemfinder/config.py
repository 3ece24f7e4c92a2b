"""Application configuration defaults."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Tuple

from poemfinder.models import CategoryEntry

DEFAULT_BASE_URL = "https://raw.githubusercontent.com/chinese-poetry/chinese-poetry/master/"
DEFAULT_FALLBACK_URLS = (
    "https://raw.gitmirror.com/chinese-poetry/chinese-poetry/master/",
    "https://cdn.jsdelivr.net/gh/chinese-poetry/chinese-poetry@master/",
)
SEVEN_DAYS_MS = 7 * 24 * 60 * 60 * 1000


def default_categories() -> Dict[str, CategoryEntry]:
    entries = [
        CategoryEntry("shi", "shijing/", ("shijing.json",), "诗经"),
        CategoryEntry("tang", "tang/", ("tang-poems.json",), "唐诗"),
        CategoryEntry("song", "ci/", ("ci-songs.json",), "宋词"),
        CategoryEntry("yuan", "yuan/", ("yuanqu.json",), "元曲"),
        CategoryEntry("lunyu", "lunyu/", ("lunyu.json",), "论语"),
        CategoryEntry("caocao", "caocaoshiji/", ("caocao.json",), "曹操诗集"),
    ]
    return {entry.key: entry for entry in entries}


def _get_default_cache_path() -> Path:
    """Get the default cache database path based on execution context."""
    user_cache = Path.home() / ".cache" / "poemfinder" / "cache.db"

    if getattr(sys, "frozen", False):
        return user_cache

    # When running from source, prefer local data/ if it exists
    local_cache = Path("data/poemfinder-cache.db")
    if local_cache.exists():
        return local_cache

    return user_cache


@dataclass(slots=True)
class DataSourceConfig:
    use_local_data: bool = True
    local_path: Path = Path("data/chinese-poetry")
    base_url: str | None = DEFAULT_BASE_URL
    fallback_urls: Tuple[str, ...] = DEFAULT_FALLBACK_URLS
    categories: Dict[str, CategoryEntry] = field(default_factory=default_categories)


@dataclass(slots=True)
class CacheConfig:
    enabled: bool = True
    expire_ms: int = SEVEN_DAYS_MS
    path: Path | None = None


@dataclass(slots=True)
class SearchConfig:
    min_search_length: int = 1
    highlight_matched_text: bool = True
    fuzzy_search: bool = True
    highlight_tags: Tuple[str, str] = ("<mark>", "</mark>")


@dataclass(slots=True)
class ApiConfig:
    random_poem_api: str = "jinrishici"
    search_api: str = "corpus"
    auto_failover: bool = True
    priority: Tuple[str, ...] = ("jinrishici", "gushiwen", "gushicione", "corpus")


@dataclass(slots=True)
class AppConfig:
    data_source: DataSourceConfig = field(default_factory=DataSourceConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    results_per_page: int = 12
    default_category: str = "tang"
    request_timeout: float = 5.0

    def __post_init__(self) -> None:
        if self.results_per_page < 1:
            raise ValueError("results_per_page must be at least 1")

    @property
    def category_keys(self) -> List[str]:
        return list(self.data_source.categories)

    def resolve_cache_path(self, base_dir: Path | None = None) -> Path:
        if self.cache.path is None:
            self.cache.path = _get_default_cache_path()
        if Path(self.cache.path).is_absolute() or base_dir is None:
            return Path(self.cache.path)
        return base_dir / self.cache.path
