"""Persisted, expiring cache of raw category data."""

from __future__ import annotations

import json
import logging
import sqlite3
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Dict, Iterator, Protocol

from poemfinder.errors import CacheCorrupt
from poemfinder.models import CacheEntry

LOGGER = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class CacheStore(Protocol):
    """Minimal string key/value persistence used by ``CategoryCache``."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryCacheStore:
    """Process-local store, mainly for tests and cache-less runs."""

    def __init__(self) -> None:
        self.values: Dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def delete(self, key: str) -> None:
        self.values.pop(key, None)


class SQLiteCacheStore:
    """SQLite-backed key/value store for cache entries."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        # The web app shares one store across request threads
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL;")
        self._conn.execute("PRAGMA synchronous=NORMAL;")
        self._ensure_schema()

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        self._conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            yield self._conn
            self._conn.commit()
        except Exception:
            self._conn.rollback()
            raise

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS cache_entries (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
                """
            )

    def get(self, key: str) -> str | None:
        row = self._conn.execute(
            "SELECT value FROM cache_entries WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO cache_entries(key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (key, value),
            )

    def delete(self, key: str) -> None:
        with self.transaction() as conn:
            conn.execute("DELETE FROM cache_entries WHERE key = ?", (key,))


class CategoryCache:
    """Timestamped category snapshots on top of a ``CacheStore``.

    Entries older than ``expire_ms`` are treated as absent and removed on
    read, as are entries that cannot be decoded.
    """

    key_prefix = "poetry_"

    def __init__(
        self,
        store: CacheStore,
        *,
        expire_ms: int,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.store = store
        self.expire_ms = expire_ms
        self.clock = clock

    def key_for(self, category: str) -> str:
        return f"{self.key_prefix}{category}"

    def load(self, category: str) -> CacheEntry | None:
        key = self.key_for(category)
        raw = self.store.get(key)
        if raw is None:
            return None

        try:
            entry = self._decode(category, raw)
        except CacheCorrupt as exc:
            LOGGER.debug("Discarding corrupt cache entry %s: %s", key, exc)
            self.store.delete(key)
            return None

        if entry.is_expired(self.clock(), self.expire_ms):
            LOGGER.debug("Cache entry %s expired", key)
            self.store.delete(key)
            return None
        return entry

    def save(self, category: str, data: list) -> CacheEntry:
        entry = CacheEntry(category=category, timestamp=self.clock(), data=data)
        payload = json.dumps({"timestamp": entry.timestamp, "data": data}, ensure_ascii=False)
        self.store.set(self.key_for(category), payload)
        return entry

    def remove(self, category: str) -> None:
        self.store.delete(self.key_for(category))

    @staticmethod
    def _decode(category: str, raw: str) -> CacheEntry:
        try:
            payload = json.loads(raw)
            timestamp = int(payload["timestamp"])
            data = payload["data"]
        except (ValueError, TypeError, KeyError) as exc:
            raise CacheCorrupt(str(exc)) from exc
        if not isinstance(data, list):
            raise CacheCorrupt("cached data is not a list")
        return CacheEntry(category=category, timestamp=timestamp, data=data)
