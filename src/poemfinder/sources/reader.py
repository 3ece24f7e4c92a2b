"""Fetch category JSON files from an ordered list of origins."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, List, Sequence

import httpx

from poemfinder.config import DataSourceConfig
from poemfinder.errors import SourceExhausted
from poemfinder.utils.files import is_remote, join_location, read_json_file

LOGGER = logging.getLogger(__name__)


class SourceReader:
    """Reads one resource from the first origin able to serve it.

    Origins are either ``http(s)://`` base URLs or local directories. Each
    attempt is bounded by ``timeout`` seconds; a failing origin is logged and
    the next one is tried.
    """

    def __init__(self, *, timeout: float = 5.0, client: httpx.AsyncClient | None = None) -> None:
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    @staticmethod
    def origins_for(data_source: DataSourceConfig) -> List[str | Path]:
        origins: List[str | Path] = []
        if data_source.use_local_data:
            origins.append(Path(data_source.local_path))
        if data_source.base_url:
            origins.append(data_source.base_url)
        origins.extend(data_source.fallback_urls)
        return origins

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "SourceReader":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def fetch_resource(self, origins: Sequence[str | Path], relative_path: str) -> list:
        attempts: List[str] = []
        for origin in origins:
            location = join_location(origin, relative_path)
            attempts.append(location)
            try:
                data = await asyncio.wait_for(self._read(origin, location), self.timeout)
            except asyncio.TimeoutError:
                LOGGER.warning("Timed out after %ss reading %s", self.timeout, location)
                continue
            except (httpx.HTTPError, OSError, ValueError) as exc:
                LOGGER.warning("Failed to read %s: %s", location, exc)
                continue

            if not isinstance(data, list):
                LOGGER.warning("Expected a JSON array at %s, got %s", location, type(data).__name__)
                continue

            LOGGER.debug("Loaded %d records from %s", len(data), location)
            return data

        raise SourceExhausted(relative_path, attempts)

    async def _read(self, origin: str | Path, location: str) -> Any:
        if is_remote(origin):
            response = await self.client.get(location)
            response.raise_for_status()
            return response.json()
        # json.JSONDecodeError is a ValueError
        return await asyncio.to_thread(read_json_file, Path(location))
