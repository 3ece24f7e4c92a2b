"""Category loading with caching and in-flight request coalescing."""

from __future__ import annotations

import asyncio
import enum
import logging
import random
import sqlite3
from typing import Dict, List, Tuple

from poemfinder.config import AppConfig
from poemfinder.errors import CategoryLoadError, EmptyCategory, SourceExhausted, UnsupportedCategory
from poemfinder.index.cache import CategoryCache
from poemfinder.models import CategoryEntry, PoetryRecord, normalize_record
from poemfinder.sources.reader import SourceReader

LOGGER = logging.getLogger(__name__)

Records = Tuple[PoetryRecord, ...]


class LoadState(enum.Enum):
    UNCACHED = "uncached"
    LOADING = "loading"
    LOADED = "loaded"


class CategoryLoader:
    """Resolves category keys to normalized, immutable record tuples.

    At most one load runs per category: callers arriving while a load is in
    flight await the same task and receive the same tuple (or exception).
    """

    def __init__(
        self,
        config: AppConfig,
        reader: SourceReader,
        cache: CategoryCache | None = None,
        *,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config
        self.reader = reader
        self.cache = cache
        self.rng = rng or random.Random()
        self._records: Dict[str, Records] = {}
        self._pending: Dict[str, asyncio.Task[Records]] = {}

    def state(self, category: str) -> LoadState:
        if category in self._records:
            return LoadState.LOADED
        if category in self._pending:
            return LoadState.LOADING
        return LoadState.UNCACHED

    def _entry(self, category: str) -> CategoryEntry:
        try:
            return self.config.data_source.categories[category]
        except KeyError:
            raise UnsupportedCategory(category) from None

    async def load(self, category: str) -> Records:
        entry = self._entry(category)

        records = self._records.get(category)
        if records is not None:
            return records

        task = self._pending.get(category)
        if task is None:
            task = asyncio.ensure_future(self._load(entry))
            self._pending[category] = task
            task.add_done_callback(lambda _: self._pending.pop(category, None))
        # A cancelled caller must not cancel the load shared with other callers
        return await asyncio.shield(task)

    async def _load(self, entry: CategoryEntry) -> Records:
        raw = self._from_cache(entry.key)
        if raw is None:
            raw = await self._fetch(entry)
            self._to_cache(entry.key, raw)

        records = tuple(normalize_record(item, entry.key) for item in raw if isinstance(item, dict))
        self._records[entry.key] = records
        LOGGER.info("Loaded %d records for category %s", len(records), entry.key)
        return records

    def _from_cache(self, category: str) -> list | None:
        if self.cache is None or not self.config.cache.enabled:
            return None
        cached = self.cache.load(category)
        if cached is None:
            LOGGER.debug("Cache miss for %s", category)
            return None
        LOGGER.debug("Cache hit for %s (%d records)", category, len(cached.data))
        return cached.data

    def _to_cache(self, category: str, data: list) -> None:
        if self.cache is None or not self.config.cache.enabled:
            return
        try:
            self.cache.save(category, data)
        except (sqlite3.Error, OSError) as exc:
            LOGGER.warning("Failed to persist cache for %s: %s", category, exc)

    async def _fetch(self, entry: CategoryEntry) -> list:
        origins = self.reader.origins_for(self.config.data_source)
        data: list = []
        loaded_any = False
        for file_name in entry.files:
            relative_path = f"{entry.path.rstrip('/')}/{file_name}"
            try:
                data.extend(await self.reader.fetch_resource(origins, relative_path))
            except SourceExhausted as exc:
                LOGGER.error("Skipping %s: %s", relative_path, exc)
                continue
            loaded_any = True

        if not loaded_any:
            raise CategoryLoadError(entry.key, entry.files)
        return data

    async def get_random(self, category: str | None = None) -> PoetryRecord:
        category = category or self.config.default_category
        records = await self.load(category)
        if not records:
            raise EmptyCategory(category)
        return records[self.rng.randrange(len(records))]

    def invalidate(self, category: str | None = None) -> None:
        categories: List[str] = [category] if category else self.config.category_keys
        for key in categories:
            if self.cache is not None:
                self.cache.remove(key)
            self._records.pop(key, None)
        LOGGER.info("Invalidated cache for %s", ", ".join(categories))
