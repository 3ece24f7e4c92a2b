"""Expose the local corpus engine through the provider interface."""

from __future__ import annotations

from typing import List

from poemfinder.index.loader import CategoryLoader
from poemfinder.index.search import SearchEngine
from poemfinder.models import PoetryRecord, SearchOptions


class CorpusProvider:
    name = "corpus"

    def __init__(
        self,
        loader: CategoryLoader,
        engine: SearchEngine,
        *,
        options: SearchOptions | None = None,
    ) -> None:
        self.loader = loader
        self.engine = engine
        self.options = options or SearchOptions()

    async def get_random_poem(self) -> PoetryRecord:
        return await self.loader.get_random()

    async def search_by_keyword(self, keyword: str) -> List[PoetryRecord]:
        await self.engine.search(keyword, self.options)
        return [result.record for result in self.engine.last_results]
