"""
SQLite Blob Store: Infrastructure adapter backed by a key/value table.
"""

import logging
import sqlite3
from pathlib import Path

from cramdeck.domain.ports import BlobStore, QuotaExceededError, StorageError

logger = logging.getLogger(__name__)

SCHEMA = "CREATE TABLE IF NOT EXISTS blobs (key TEXT PRIMARY KEY, value TEXT NOT NULL)"


class SqliteBlobStore(BlobStore):
    """
    Stores blobs in a single `blobs` table. A connection is opened per
    call; each write commits on its own.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.execute(SCHEMA)
        return conn

    def get(self, key: str) -> str | None:
        try:
            conn = self._connect()
            try:
                row = conn.execute("SELECT value FROM blobs WHERE key = ?", (key,)).fetchone()
            finally:
                conn.close()
        except (sqlite3.Error, OSError) as e:
            raise StorageError(f"Could not read '{key}' from {self.db_path}: {e}") from e
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        try:
            conn = self._connect()
            try:
                with conn:
                    conn.execute(
                        "INSERT INTO blobs (key, value) VALUES (?, ?) "
                        "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                        (key, value),
                    )
            finally:
                conn.close()
        except sqlite3.Error as e:
            if getattr(e, "sqlite_errorname", None) == "SQLITE_FULL":
                raise QuotaExceededError(f"Database full writing '{key}'") from e
            raise StorageError(f"Could not write '{key}' to {self.db_path}: {e}") from e
        except OSError as e:
            raise StorageError(f"Could not write '{key}' to {self.db_path}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            conn = self._connect()
            try:
                with conn:
                    conn.execute("DELETE FROM blobs WHERE key = ?", (key,))
            finally:
                conn.close()
        except (sqlite3.Error, OSError) as e:
            raise StorageError(f"Could not delete '{key}' from {self.db_path}: {e}") from e
