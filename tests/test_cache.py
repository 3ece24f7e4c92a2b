"""Tests for cache stores and the expiring CategoryCache."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path

import pytest

from poemfinder.index.cache import CategoryCache, MemoryCacheStore, SQLiteCacheStore


@pytest.fixture
def sqlite_store(tmp_path):
    """Create a temporary cache database for testing."""
    store = SQLiteCacheStore(tmp_path / "cache.db")
    yield store
    store.close()


class FakeClock:
    def __init__(self, now: int = 1_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


class TestSQLiteCacheStore:
    """Test SQLiteCacheStore persistence."""

    def test_init_creates_database(self, tmp_path: Path) -> None:
        db_path = tmp_path / "new.db"
        assert not db_path.exists()

        store = SQLiteCacheStore(db_path)

        assert db_path.exists()
        assert store.db_path == db_path
        store.close()

    def test_schema_creation(self, sqlite_store: SQLiteCacheStore) -> None:
        cursor = sqlite_store.connection.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='cache_entries'"
        )
        assert cursor.fetchone() is not None

    def test_wal_mode(self, sqlite_store: SQLiteCacheStore) -> None:
        result = sqlite_store.connection.execute("PRAGMA journal_mode").fetchone()
        assert result[0].lower() == "wal"

    def test_set_get_delete(self, sqlite_store: SQLiteCacheStore) -> None:
        assert sqlite_store.get("poetry_tang") is None

        sqlite_store.set("poetry_tang", "value")
        assert sqlite_store.get("poetry_tang") == "value"

        sqlite_store.delete("poetry_tang")
        assert sqlite_store.get("poetry_tang") is None

    def test_set_overwrites(self, sqlite_store: SQLiteCacheStore) -> None:
        sqlite_store.set("k", "one")
        sqlite_store.set("k", "two")

        assert sqlite_store.get("k") == "two"
        count = sqlite_store.connection.execute("SELECT COUNT(*) FROM cache_entries").fetchone()[0]
        assert count == 1

    def test_persists_across_connections(self, tmp_path: Path) -> None:
        db_path = tmp_path / "cache.db"
        first = SQLiteCacheStore(db_path)
        first.set("k", "中文")
        first.close()

        second = SQLiteCacheStore(db_path)
        assert second.get("k") == "中文"
        second.close()

    def test_close(self, tmp_path: Path) -> None:
        store = SQLiteCacheStore(tmp_path / "close.db")
        conn = store.connection
        store.close()

        with pytest.raises(sqlite3.ProgrammingError):
            conn.execute("SELECT 1")

    def test_rollback_on_exception(self, sqlite_store: SQLiteCacheStore) -> None:
        try:
            with sqlite_store.transaction() as conn:
                conn.execute("INSERT INTO cache_entries(key, value) VALUES ('k', 'v')")
                raise ValueError("Test error")
        except ValueError:
            pass

        assert sqlite_store.get("k") is None


class TestMemoryCacheStore:
    def test_round_trip(self) -> None:
        store = MemoryCacheStore()
        store.set("k", "v")
        assert store.get("k") == "v"
        store.delete("k")
        store.delete("k")
        assert store.get("k") is None


class TestCategoryCache:
    """Test timestamped entries, expiry and corruption handling."""

    def test_save_then_load_within_expiry(self) -> None:
        clock = FakeClock()
        cache = CategoryCache(MemoryCacheStore(), expire_ms=1000, clock=clock)
        data = [{"title": "春晓", "paragraphs": ["春眠不觉晓"]}]

        cache.save("tang", data)
        clock.now += 1000
        entry = cache.load("tang")

        assert entry is not None
        assert entry.data == data
        assert entry.category == "tang"
        assert entry.timestamp == 1_000_000

    def test_saved_payload_format(self) -> None:
        store = MemoryCacheStore()
        cache = CategoryCache(store, expire_ms=1000, clock=FakeClock(42))

        cache.save("tang", [{"title": "春晓"}])

        assert json.loads(store.values["poetry_tang"]) == {
            "timestamp": 42,
            "data": [{"title": "春晓"}],
        }

    def test_expired_entry_is_removed(self) -> None:
        clock = FakeClock()
        store = MemoryCacheStore()
        cache = CategoryCache(store, expire_ms=1000, clock=clock)

        cache.save("tang", [])
        clock.now += 1001

        assert cache.load("tang") is None
        assert "poetry_tang" not in store.values

    def test_missing_entry(self) -> None:
        cache = CategoryCache(MemoryCacheStore(), expire_ms=1000)
        assert cache.load("tang") is None

    @pytest.mark.parametrize(
        "raw",
        [
            "not json",
            json.dumps({"data": []}),
            json.dumps({"timestamp": "soon", "data": []}),
            json.dumps({"timestamp": 1, "data": {"title": "x"}}),
            json.dumps([1, 2, 3]),
        ],
    )
    def test_corrupt_entry_is_discarded(self, raw: str) -> None:
        store = MemoryCacheStore()
        store.set("poetry_tang", raw)
        cache = CategoryCache(store, expire_ms=1000, clock=FakeClock(1))

        assert cache.load("tang") is None
        assert "poetry_tang" not in store.values

    def test_remove(self) -> None:
        store = MemoryCacheStore()
        cache = CategoryCache(store, expire_ms=1000)
        cache.save("tang", [])

        cache.remove("tang")

        assert store.values == {}

    def test_works_on_sqlite(self, sqlite_store: SQLiteCacheStore) -> None:
        cache = CategoryCache(sqlite_store, expire_ms=1000, clock=FakeClock())
        cache.save("song", [{"rhythmic": "水调歌头"}])

        entry = cache.load("song")

        assert entry is not None
        assert entry.data == [{"rhythmic": "水调歌头"}]
