"""Wire the loader, search engine and providers from an AppConfig."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from poemfinder.config import AppConfig
from poemfinder.index.cache import CacheStore, CategoryCache, MemoryCacheStore, SQLiteCacheStore
from poemfinder.index.loader import CategoryLoader
from poemfinder.index.search import SearchEngine
from poemfinder.providers.corpus import CorpusProvider
from poemfinder.providers.manager import ProviderManager
from poemfinder.providers.remote import GushiciOneProvider, GushiwenProvider, JinrishiciProvider
from poemfinder.sources.reader import SourceReader


@dataclass(slots=True)
class Services:
    config: AppConfig
    reader: SourceReader
    store: CacheStore
    loader: CategoryLoader
    engine: SearchEngine
    providers: ProviderManager

    async def aclose(self) -> None:
        await self.reader.aclose()
        for provider in self.providers.providers.values():
            close = getattr(provider, "aclose", None)
            if close is not None:
                await close()
        if isinstance(self.store, SQLiteCacheStore):
            self.store.close()


def _open_store(config: AppConfig, base_dir: Path | None) -> CacheStore:
    if not config.cache.enabled:
        return MemoryCacheStore()
    cache_path = config.resolve_cache_path(base_dir)
    cache_path.parent.mkdir(parents=True, exist_ok=True)
    return SQLiteCacheStore(cache_path)


def build_services(
    config: AppConfig | None = None,
    *,
    store: CacheStore | None = None,
    reader: SourceReader | None = None,
    base_dir: Path | None = None,
) -> Services:
    config = config or AppConfig()
    store = store if store is not None else _open_store(config, base_dir)
    reader = reader or SourceReader(timeout=config.request_timeout)
    cache = CategoryCache(store, expire_ms=config.cache.expire_ms)
    loader = CategoryLoader(config, reader, cache)
    engine = SearchEngine(config, loader)

    timeout = config.request_timeout
    providers = ProviderManager(
        {
            "jinrishici": JinrishiciProvider(timeout=timeout),
            "gushiwen": GushiwenProvider(timeout=timeout),
            "gushicione": GushiciOneProvider(timeout=timeout),
            "corpus": CorpusProvider(loader, engine),
        },
        config.api,
    )
    return Services(config, reader, store, loader, engine, providers)
