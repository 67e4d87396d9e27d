"""
Durable key/value records — a single SQLite table of JSON documents.

Each record is overwritten wholesale; put() writes any number of records in
one transaction so related records never diverge on disk.
"""

from __future__ import annotations

import json
import sqlite3
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional


class PersistenceError(Exception):
    """Raised when the durable store cannot be read or written."""


class KeyValueStore:
    """SQLite-backed record store. Opens a fresh connection per operation."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._init_db()

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            with self._conn() as conn:
                row = conn.execute(
                    "SELECT value FROM records WHERE key = ?", (key,)
                ).fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"could not read record {key!r}: {e}") from e
        if row is None:
            return None
        try:
            value = json.loads(row[0])
        except ValueError as e:
            raise PersistenceError(f"record {key!r} is not valid JSON") from e
        if not isinstance(value, dict):
            raise PersistenceError(f"record {key!r} is not an object")
        return value

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def put(self, records: Dict[str, Dict[str, Any]]) -> None:
        """Replace every record in *records* within a single transaction."""
        now = time.time()
        rows = [(key, json.dumps(value), now) for key, value in records.items()]
        try:
            with self._conn() as conn:
                conn.executemany(
                    """
                    INSERT INTO records (key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    rows,
                )
        except sqlite3.Error as e:
            raise PersistenceError(f"could not write {sorted(records)}: {e}") from e

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _init_db(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._conn() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS records (
                    key        TEXT PRIMARY KEY,
                    value      TEXT NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )

    @contextmanager
    def _conn(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        try:
            yield conn
            conn.commit()
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()
