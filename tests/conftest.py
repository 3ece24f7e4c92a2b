"""Shared fixtures for PoemFinder tests."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Dict, List

import pytest

from poemfinder.config import AppConfig, DataSourceConfig
from poemfinder.errors import SourceExhausted
from poemfinder.index.cache import CategoryCache, MemoryCacheStore
from poemfinder.models import CategoryEntry


class FakeReader:
    """Stands in for SourceReader, serving canned arrays per relative path."""

    def __init__(self, files: Dict[str, list], *, delay: float = 0.0) -> None:
        self.files = files
        self.delay = delay
        self.calls: List[str] = []

    @staticmethod
    def origins_for(data_source: DataSourceConfig) -> list:
        return ["memory://"]

    async def fetch_resource(self, origins, relative_path: str) -> list:
        self.calls.append(relative_path)
        if self.delay:
            await asyncio.sleep(self.delay)
        data = self.files.get(relative_path)
        if data is None:
            raise SourceExhausted(relative_path, list(origins))
        return data

    async def aclose(self) -> None:
        pass


TANG = [
    {"title": "春晓", "author": "孟浩然", "paragraphs": ["春眠不觉晓，", "处处闻啼鸟。"]},
    {"title": "静夜思", "author": "李白", "paragraphs": ["床前明月光，", "疑是地上霜。"]},
]
SONG = [
    {"rhythmic": "水调歌头", "author": "苏轼", "paragraphs": ["明月几时有？", "把酒问青天。"]},
]


def make_config(categories: Dict[str, CategoryEntry] | None = None, **kwargs) -> AppConfig:
    if categories is None:
        categories = {
            "tang": CategoryEntry("tang", "tang/", ("tang.json",)),
            "song": CategoryEntry("song", "ci/", ("song.json",)),
        }
    data_source = DataSourceConfig(
        use_local_data=True,
        local_path=Path("unused"),
        base_url=None,
        fallback_urls=(),
        categories=categories,
    )
    return AppConfig(data_source=data_source, **kwargs)


@pytest.fixture
def config() -> AppConfig:
    return make_config()


@pytest.fixture
def reader() -> FakeReader:
    return FakeReader({"tang/tang.json": list(TANG), "ci/song.json": list(SONG)})


@pytest.fixture
def store() -> MemoryCacheStore:
    return MemoryCacheStore()


@pytest.fixture
def category_cache(store: MemoryCacheStore, config: AppConfig) -> CategoryCache:
    return CategoryCache(store, expire_ms=config.cache.expire_ms)
