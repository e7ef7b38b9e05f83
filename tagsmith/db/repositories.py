"""Data access for the provider response cache."""

from __future__ import annotations

import json
import sqlite3

from tagsmith.utils.constants import API_CACHE_MAX_AGE_DAYS
from tagsmith.utils.logger import get_logger

logger = get_logger("db.repositories")


class ApiCacheRepository:
    """Key-value cache of decoded JSON responses.

    Keys look like ``<provider>:<operation>:<hash>``; the provider prefix is
    stored separately so one provider's entries can be counted or cleared.
    Entries older than ``max_age_days`` read as misses.
    """

    def __init__(self, connection: sqlite3.Connection, max_age_days: int = API_CACHE_MAX_AGE_DAYS) -> None:
        self._conn = connection
        self.max_age_days = max_age_days

    def get(self, cache_key: str) -> dict | list | None:
        """Return the cached response, or None on a miss or expired entry."""
        row = self._conn.execute(
            "SELECT response_json FROM api_cache WHERE cache_key = ? AND created_at >= datetime('now', ?)",
            (cache_key, f"-{self.max_age_days} days"),
        ).fetchone()
        if row is None:
            return None
        try:
            return json.loads(row["response_json"])
        except (json.JSONDecodeError, TypeError):
            logger.warning("Discarding unreadable cache entry %s", cache_key)
            return None

    def put(self, cache_key: str, data: dict | list) -> None:
        """Store *data* under *cache_key*, refreshing its timestamp."""
        provider = cache_key.split(":", 1)[0]
        self._conn.execute(
            """INSERT OR REPLACE INTO api_cache (cache_key, provider, response_json, created_at)
               VALUES (?, ?, ?, CURRENT_TIMESTAMP)""",
            (cache_key, provider, json.dumps(data, ensure_ascii=False)),
        )
        self._conn.commit()

    def count(self, provider: str | None = None) -> int:
        if provider is None:
            row = self._conn.execute("SELECT COUNT(*) FROM api_cache").fetchone()
        else:
            row = self._conn.execute("SELECT COUNT(*) FROM api_cache WHERE provider = ?", (provider,)).fetchone()
        return row[0]

    def clear(self, provider: str | None = None) -> int:
        """Delete every entry (or one provider's); returns the number removed."""
        if provider is None:
            cursor = self._conn.execute("DELETE FROM api_cache")
        else:
            cursor = self._conn.execute("DELETE FROM api_cache WHERE provider = ?", (provider,))
        self._conn.commit()
        return cursor.rowcount

    def prune(self, max_age_days: int | None = None) -> int:
        """Delete entries older than *max_age_days* (default: the read horizon)."""
        days = self.max_age_days if max_age_days is None else max_age_days
        cursor = self._conn.execute(
            "DELETE FROM api_cache WHERE created_at < datetime('now', ?)",
            (f"-{days} days",),
        )
        self._conn.commit()
        if cursor.rowcount:
            logger.info("Pruned %d expired API cache entries", cursor.rowcount)
        return cursor.rowcount
