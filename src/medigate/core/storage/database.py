"""SQLite database management for on-device MediGate state.

Holds the credential tables and the offline feedback list. Handles
connection lifecycle, schema creation, and migrations.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

# Current schema version
SCHEMA_VERSION = 1

# ---------------------------------------------------------------------------
# Schema DDL
# ---------------------------------------------------------------------------

_SCHEMA_V1 = """
-- Fernet-encrypted values (auth token, refresh token, user snapshot)
CREATE TABLE IF NOT EXISTS secure_items (
    key        TEXT PRIMARY KEY,
    value_enc  TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

-- Plain values: credential fallback when no key is configured, feedback list
CREATE TABLE IF NOT EXISTS local_items (
    key        TEXT PRIMARY KEY,
    value      TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS schema_version (
    version    INTEGER NOT NULL,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
);
"""

SECURE_TABLE = "secure_items"
LOCAL_TABLE = "local_items"

_VALUE_COLUMNS = {SECURE_TABLE: "value_enc", LOCAL_TABLE: "value"}


class DatabaseError(Exception):
    """Raised when database operations fail."""


class LocalDatabase:
    """SQLite database manager for on-device key/value state.

    Supports both file-based and in-memory (`:memory:`) databases.
    In-memory mode is used for testing.

    Usage::

        db = LocalDatabase(":memory:")
        db.initialize()
        db.put(LOCAL_TABLE, "medigate_feedback", "[]")
        db.close()
    """

    def __init__(self, db_path: str = ":memory:") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    @property
    def path(self) -> str:
        return self._db_path

    @property
    def connection(self) -> sqlite3.Connection:
        """Get the active database connection.

        Raises:
            DatabaseError: If the database has not been initialized.
        """
        if self._conn is None:
            raise DatabaseError("Database not initialized. Call initialize() first.")
        return self._conn

    def initialize(self) -> None:
        """Create the database connection and ensure schema exists.

        For file-based databases, creates parent directories if needed.
        Idempotent: safe to call multiple times.
        """
        if self._conn is not None:
            return

        if self._db_path != ":memory:":
            db_file = Path(self._db_path).expanduser()
            db_file.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(db_file))
        else:
            self._conn = sqlite3.connect(":memory:")

        self._conn.row_factory = sqlite3.Row
        self._ensure_schema()
        logger.info("Local database initialized: %s", self._db_path)

    def _ensure_schema(self) -> None:
        conn = self.connection
        conn.executescript(_SCHEMA_V1)

        row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
        current_version = row[0] if row[0] is not None else 0

        if current_version < SCHEMA_VERSION:
            conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)",
                (SCHEMA_VERSION,),
            )
            conn.commit()
            logger.info(
                "Schema updated from version %d to %d", current_version, SCHEMA_VERSION
            )

    def get_schema_version(self) -> int:
        """Return the current schema version."""
        row = self.connection.execute("SELECT MAX(version) FROM schema_version").fetchone()
        return row[0] if row[0] is not None else 0

    # ------------------------------------------------------------------
    # Key/value access
    # ------------------------------------------------------------------

    def get(self, table: str, key: str) -> str | None:
        """Return the stored value for ``key``, or None if absent."""
        column = _value_column(table)
        row = self.connection.execute(
            f"SELECT {column} FROM {table} WHERE key = ?", (key,)
        ).fetchone()
        return None if row is None else row[0]

    def put(self, table: str, key: str, value: str) -> None:
        """Insert or replace ``key`` and commit immediately."""
        column = _value_column(table)
        conn = self.connection
        conn.execute(
            f"""INSERT INTO {table} (key, {column}, updated_at)
                VALUES (?, ?, datetime('now'))
                ON CONFLICT(key) DO UPDATE SET
                    {column} = excluded.{column},
                    updated_at = excluded.updated_at""",
            (key, value),
        )
        conn.commit()

    def delete(self, table: str, key: str) -> bool:
        """Delete ``key``. Returns True if a row was removed."""
        _value_column(table)
        conn = self.connection
        cursor = conn.execute(f"DELETE FROM {table} WHERE key = ?", (key,))
        conn.commit()
        return cursor.rowcount > 0

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.info("Local database closed")

    def __enter__(self) -> LocalDatabase:
        self.initialize()
        return self

    def __exit__(self, *args) -> None:
        self.close()


def _value_column(table: str) -> str:
    try:
        return _VALUE_COLUMNS[table]
    except KeyError:
        raise DatabaseError(f"Unknown table: {table!r}") from None
