"""SQLite storage backend.

SQLite keeps each table in a paged B-tree; records live in a single
``records`` table keyed by the record key.
"""

import sqlite3
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path

from walletstore.storage.exceptions import RecordNotFoundError, StorageError

from .base import BaseBackend


class SQLiteBackend(BaseBackend):
    """SQLite-based key-value storage."""

    STORAGE_ID = "SQLite"

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._lock = threading.RLock()
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self.conn: sqlite3.Connection | None = sqlite3.connect(
                str(self.db_path), check_same_thread=False, isolation_level=None
            )
            self.initialize()
        except (sqlite3.Error, OSError) as e:
            raise StorageError(str(e)) from e

    @property
    def connection(self) -> sqlite3.Connection:
        """Get the connection, ensuring it exists."""
        if self.conn is None:
            raise StorageError("Database connection is closed")
        return self.conn

    def initialize(self) -> None:
        """Create database schema."""
        self.connection.execute("PRAGMA journal_mode=WAL")
        self.connection.execute("PRAGMA synchronous=FULL")
        self.connection.execute(
            """
            CREATE TABLE IF NOT EXISTS records (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            ) WITHOUT ROWID
            """
        )

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Run statements in one write transaction."""
        with self._lock:
            conn = self.connection
            try:
                conn.execute("BEGIN IMMEDIATE")
                try:
                    yield conn
                except BaseException:
                    conn.execute("ROLLBACK")
                    raise
                conn.execute("COMMIT")
            except sqlite3.Error as e:
                raise StorageError(str(e)) from e

    def get(self, key: str) -> str:
        """Read a record from the database."""
        with self._lock:
            try:
                row = self.connection.execute(
                    "SELECT value FROM records WHERE key = ?", (key,)
                ).fetchone()
            except sqlite3.Error as e:
                raise StorageError(str(e)) from e

        if row is None:
            raise RecordNotFoundError(key)
        return row[0]

    def set(self, key: str, value: str) -> None:
        """Write a record to the database."""
        self._check_records({key: value})
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO records (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, value),
            )

    def batch_set(self, records: Mapping[str, str]) -> None:
        """Write all records in a single transaction."""
        staged = self._check_records(records)
        with self._transaction() as conn:
            conn.executemany(
                """
                INSERT INTO records (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                list(staged.items()),
            )

    def remove(self, key: str) -> None:
        """Delete a record from the database."""
        with self._transaction() as conn:
            conn.execute("DELETE FROM records WHERE key = ?", (key,))

    def keys(self) -> list[str]:
        """Get all keys."""
        with self._lock:
            try:
                cursor = self.connection.execute("SELECT key FROM records ORDER BY key")
                return [row[0] for row in cursor]
            except sqlite3.Error as e:
                raise StorageError(str(e)) from e

    def close(self) -> None:
        """Close database connection."""
        with self._lock:
            if self.conn:
                self.conn.close()
                self.conn = None

    def __repr__(self) -> str:
        return f"SQLiteBackend({str(self.db_path)!r})"
