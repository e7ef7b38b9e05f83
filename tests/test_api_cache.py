"""Tests for the SQLite response cache."""

from __future__ import annotations

from pathlib import Path

import pytest

from tagsmith.db.database import SCHEMA_VERSION, Database
from tagsmith.db.repositories import ApiCacheRepository


@pytest.fixture
def db(tmp_path: Path):
    database = Database(tmp_path / "cache" / "tagsmith.db")
    database.connect()
    yield database
    database.close()


@pytest.fixture
def cache(db: Database) -> ApiCacheRepository:
    return ApiCacheRepository(db.connection)


def _age(db: Database, key: str, days: int) -> None:
    db.connection.execute(
        "UPDATE api_cache SET created_at = datetime('now', ?) WHERE cache_key = ?",
        (f"-{days} days", key),
    )
    db.connection.commit()


class TestDatabase:
    def test_creates_file_and_folder(self, db: Database):
        assert db.path.exists()

    def test_schema_version_recorded(self, db: Database):
        row = db.connection.execute("SELECT version FROM schema_version").fetchone()
        assert row["version"] == SCHEMA_VERSION

    def test_reopen_keeps_entries(self, tmp_path: Path):
        path = tmp_path / "tagsmith.db"
        with Database(path) as first:
            ApiCacheRepository(first.connection).put("itunes:search:abc", {"n": 1})
        with Database(path) as second:
            assert ApiCacheRepository(second.connection).get("itunes:search:abc") == {"n": 1}

    def test_version_mismatch_rebuilds(self, tmp_path: Path):
        path = tmp_path / "tagsmith.db"
        with Database(path) as first:
            ApiCacheRepository(first.connection).put("itunes:search:abc", {"n": 1})
            first.connection.execute("UPDATE schema_version SET version = ?", (SCHEMA_VERSION + 1,))
            first.connection.commit()

        with Database(path) as second:
            assert ApiCacheRepository(second.connection).count() == 0
            rows = second.connection.execute("SELECT version FROM schema_version").fetchall()
            assert [r["version"] for r in rows] == [SCHEMA_VERSION]

    def test_connect_is_idempotent(self, db: Database):
        assert db.connect() is db.connect()


class TestApiCacheRepository:
    def test_miss(self, cache: ApiCacheRepository):
        assert cache.get("musicbrainz:release:0000") is None

    def test_put_and_get(self, cache: ApiCacheRepository):
        payload = {"results": [{"collectionId": 1, "collectionName": "Café"}]}
        cache.put("itunes:lookup:1234", payload)
        assert cache.get("itunes:lookup:1234") == payload

    def test_list_payload(self, cache: ApiCacheRepository):
        cache.put("lastfm:album:1", [1, 2, 3])
        assert cache.get("lastfm:album:1") == [1, 2, 3]

    def test_put_replaces(self, cache: ApiCacheRepository):
        cache.put("itunes:lookup:1", {"v": 1})
        cache.put("itunes:lookup:1", {"v": 2})
        assert cache.get("itunes:lookup:1") == {"v": 2}
        assert cache.count() == 1

    def test_expired_entry_is_a_miss(self, db: Database, cache: ApiCacheRepository):
        cache.put("itunes:lookup:old", {"v": 1})
        _age(db, "itunes:lookup:old", 40)
        assert cache.get("itunes:lookup:old") is None

    def test_count_and_clear_by_provider(self, cache: ApiCacheRepository):
        cache.put("itunes:search:a", {})
        cache.put("itunes:search:b", {})
        cache.put("musicbrainz:release:c", {})

        assert cache.count() == 3
        assert cache.count("itunes") == 2
        assert cache.clear("itunes") == 2
        assert cache.count() == 1
        assert cache.clear() == 1
        assert cache.count() == 0

    def test_prune(self, db: Database, cache: ApiCacheRepository):
        cache.put("itunes:search:old", {})
        cache.put("itunes:search:new", {})
        _age(db, "itunes:search:old", 40)

        assert cache.prune() == 1
        assert cache.get("itunes:search:new") == {}

    def test_unreadable_entry_is_a_miss(self, db: Database, cache: ApiCacheRepository):
        db.connection.execute(
            "INSERT INTO api_cache (cache_key, provider, response_json) VALUES (?, ?, ?)",
            ("itunes:search:bad", "itunes", "{not json"),
        )
        db.connection.commit()
        assert cache.get("itunes:search:bad") is None
