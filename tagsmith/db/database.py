"""SQLite store for catalog responses."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from tagsmith.utils.constants import DEFAULT_DB_FILENAME
from tagsmith.utils.logger import get_logger

logger = get_logger("db.database")

SCHEMA_VERSION = 1

CREATE_TABLES_SQL = """
-- Raw provider responses keyed by provider, operation and query hash
CREATE TABLE IF NOT EXISTS api_cache (
    cache_key TEXT PRIMARY KEY,
    provider TEXT NOT NULL,
    response_json TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_api_cache_created ON api_cache(created_at);
CREATE INDEX IF NOT EXISTS idx_api_cache_provider ON api_cache(provider);
"""


class Database:
    """Owns the SQLite connection and its schema.

    Use as a context manager, or call :meth:`connect` / :meth:`close`.
    """

    def __init__(self, db_path: Path | str | None = None) -> None:
        self._db_path = Path(db_path) if db_path else Path(DEFAULT_DB_FILENAME)
        self._connection: sqlite3.Connection | None = None

    @property
    def path(self) -> Path:
        return self._db_path

    def connect(self) -> sqlite3.Connection:
        """Open the database (creating file and schema on first use)."""
        if self._connection is not None:
            return self._connection

        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection = sqlite3.connect(str(self._db_path))
        self._connection.row_factory = sqlite3.Row
        self._connection.execute("PRAGMA journal_mode=WAL")

        self._ensure_schema()
        logger.info("Cache database connected: %s", self._db_path)
        return self._connection

    def close(self) -> None:
        if self._connection:
            self._connection.close()
            self._connection = None
            logger.debug("Cache database closed")

    @property
    def connection(self) -> sqlite3.Connection:
        if self._connection is None:
            return self.connect()
        return self._connection

    def _ensure_schema(self) -> None:
        conn = self._connection
        if conn is None:
            return

        conn.executescript(CREATE_TABLES_SQL)
        row = conn.execute("SELECT version FROM schema_version").fetchone()
        if row is None:
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
            conn.commit()
            logger.info("Cache schema created (version %d)", SCHEMA_VERSION)
        elif row["version"] != SCHEMA_VERSION:
            self._reset(row["version"])

    def _reset(self, found_version: int) -> None:
        """Cached responses are disposable: an unknown layout is dropped and rebuilt."""
        conn = self._connection
        logger.warning(
            "Cache schema version %d does not match %d; rebuilding", found_version, SCHEMA_VERSION
        )
        conn.executescript("DROP TABLE IF EXISTS api_cache; DELETE FROM schema_version;")
        conn.executescript(CREATE_TABLES_SQL)
        conn.execute("INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
        conn.commit()

    def __enter__(self) -> Database:
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        self.close()
