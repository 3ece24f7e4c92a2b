"""Exceptions raised by PoemFinder."""

from __future__ import annotations

from typing import Sequence


class PoemFinderError(Exception):
    """Base class for all PoemFinder errors."""


class UnsupportedCategory(PoemFinderError):
    """Category key is not present in the configuration."""

    def __init__(self, category: str) -> None:
        super().__init__(f"Unsupported poetry category: {category}")
        self.category = category


class SourceExhausted(PoemFinderError):
    """Every origin candidate failed for a single resource."""

    def __init__(self, relative_path: str, attempts: Sequence[str] = ()) -> None:
        super().__init__(
            f"All {len(attempts)} origins failed for {relative_path}"
        )
        self.relative_path = relative_path
        self.attempts = list(attempts)


class CategoryLoadError(PoemFinderError):
    """No file mapped to a category could be loaded."""

    def __init__(self, category: str, files: Sequence[str] = ()) -> None:
        super().__init__(f"Failed to load any file for category {category}")
        self.category = category
        self.files = list(files)


class EmptyCategory(PoemFinderError):
    """Random pick requested from a category without records."""

    def __init__(self, category: str) -> None:
        super().__init__(f"No poetry records available in category {category}")
        self.category = category


class CacheCorrupt(PoemFinderError):
    """Persisted cache entry could not be decoded."""


class ProviderError(PoemFinderError):
    """A poetry provider failed to answer."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
