"""In-memory poetry search with highlighting and pagination."""

from __future__ import annotations

import asyncio
import logging
import math
from typing import List, Sequence

from poemfinder.config import AppConfig
from poemfinder.index.loader import CategoryLoader
from poemfinder.models import (
    FieldHighlight,
    Highlights,
    LineHighlight,
    PoetryRecord,
    SearchOptions,
    SearchResult,
)
from poemfinder.utils.text import any_match, highlight_text, is_match, match_spans, normalize_query

LOGGER = logging.getLogger(__name__)


class SearchEngine:
    """High-level API to query loaded categories.

    Holds the results of the last search so callers can page through them.
    """

    def __init__(self, config: AppConfig, loader: CategoryLoader) -> None:
        self.config = config
        self.loader = loader
        self.last_results: List[SearchResult] = []
        self.current_page = 1

    @property
    def page_size(self) -> int:
        return self.config.results_per_page

    @property
    def fuzzy(self) -> bool:
        return self.config.search.fuzzy_search

    def resolve_categories(self, category: str) -> List[str]:
        if category == "all":
            return self.config.category_keys
        return [category]

    async def search(self, query: str, options: SearchOptions | None = None) -> List[SearchResult]:
        options = options or SearchOptions()
        self.current_page = 1

        if len(query.strip()) < self.config.search.min_search_length:
            self.last_results = []
            return []

        needle = normalize_query(query)
        categories = self.resolve_categories(options.category)
        datasets = await asyncio.gather(*(self.loader.load(cat) for cat in categories))

        results: List[SearchResult] = []
        for records in datasets:
            results.extend(self.search_records(records, needle, options))

        LOGGER.debug("Query %r matched %d records in %s", needle, len(results), categories)
        self.last_results = results
        return self.get_page(1)

    def search_records(
        self, records: Sequence[PoetryRecord], needle: str, options: SearchOptions
    ) -> List[SearchResult]:
        matches: List[SearchResult] = []
        for record in records:
            if self.matches(record, needle, options):
                matches.append(
                    SearchResult(record=record, highlights=self.highlights(record, needle, options))
                )
        return matches

    def matches(self, record: PoetryRecord, needle: str, options: SearchOptions) -> bool:
        fuzzy = self.fuzzy
        if options.search_title and is_match(record.title, needle, fuzzy=fuzzy):
            return True
        if options.search_author and is_match(record.author, needle, fuzzy=fuzzy):
            return True
        if options.search_content and is_match(record.content, needle, fuzzy=fuzzy):
            return True
        if options.search_tags and any_match(record.tags, needle, fuzzy=fuzzy):
            return True
        return False

    def _field(self, text: str, needle: str) -> FieldHighlight | None:
        spans = match_spans(text, needle, fuzzy=self.fuzzy)
        if not spans:
            return None
        marked = highlight_text(text, spans, tags=self.config.search.highlight_tags)
        return FieldHighlight(text=marked, spans=tuple(spans))

    def highlights(
        self, record: PoetryRecord, needle: str, options: SearchOptions
    ) -> Highlights | None:
        if not self.config.search.highlight_matched_text:
            return None

        title = self._field(record.title, needle) if options.search_title else None
        author = self._field(record.author, needle) if options.search_author else None

        content: List[LineHighlight] = []
        if options.search_content:
            for index, line in enumerate(record.body_lines):
                marked = self._field(line, needle)
                if marked is not None:
                    content.append(LineHighlight(index=index, text=marked.text, spans=marked.spans))

        tags: List[FieldHighlight] = []
        if options.search_tags:
            tags = [hl for hl in (self._field(tag, needle) for tag in record.tags) if hl]

        return Highlights(title=title, author=author, content=tuple(content), tags=tuple(tags))

    def get_page(self, page: int = 1) -> List[SearchResult]:
        self.current_page = page
        if page < 1:
            return []
        start = (page - 1) * self.page_size
        return self.last_results[start : start + self.page_size]

    def get_next_page(self) -> List[SearchResult]:
        return self.get_page(self.current_page + 1)

    def get_total_results(self) -> int:
        return len(self.last_results)

    def get_total_pages(self) -> int:
        return math.ceil(self.get_total_results() / self.page_size)

    def has_more_pages(self) -> bool:
        return self.current_page < self.get_total_pages()

    def reset(self) -> None:
        self.last_results = []
        self.current_page = 1
