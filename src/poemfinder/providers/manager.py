"""Ordered failover across interchangeable poetry providers."""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Sequence

from poemfinder.config import ApiConfig
from poemfinder.errors import PoemFinderError, ProviderError
from poemfinder.models import PoetryRecord
from poemfinder.providers.base import PLACEHOLDER_POEM, PoemProvider

LOGGER = logging.getLogger(__name__)


class ProviderManager:
    """Tries the configured provider first, then the rest by priority."""

    def __init__(self, providers: Mapping[str, PoemProvider], api: ApiConfig) -> None:
        self.providers: Dict[str, PoemProvider] = dict(providers)
        self.api = api

    def _order(self, preferred: str) -> List[str]:
        names = [preferred] if preferred in self.providers else []
        if self.api.auto_failover or not names:
            names.extend(
                name for name in self._priority() if name != preferred and name in self.providers
            )
        return names

    def _priority(self) -> Sequence[str]:
        extra = [name for name in self.providers if name not in self.api.priority]
        return [*self.api.priority, *extra]

    async def get_random_poem(self, provider: str | None = None) -> PoetryRecord:
        for name in self._order(provider or self.api.random_poem_api):
            try:
                return await self.providers[name].get_random_poem()
            except PoemFinderError as exc:
                LOGGER.error("Random poem from %s failed: %s", name, exc)
        LOGGER.warning("All providers failed, returning placeholder poem")
        return PLACEHOLDER_POEM

    async def search(self, keyword: str, provider: str | None = None) -> List[PoetryRecord]:
        last_error: PoemFinderError | None = None
        for name in self._order(provider or self.api.search_api):
            try:
                return await self.providers[name].search_by_keyword(keyword)
            except PoemFinderError as exc:
                LOGGER.error("Search via %s failed: %s", name, exc)
                last_error = exc
        if last_error is None:
            raise ProviderError("manager", "no search provider configured")
        raise last_error
