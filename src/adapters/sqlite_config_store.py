"""SQLite option store adapter.

Implements the core ConfigStorePort using a simple SQLite database.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from core.errors import StorageError


class SQLiteConfigStore:
    """Thin SQLite wrapper that satisfies the ConfigStorePort contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create the options table if it does not exist.

        Fields:
        - key: option name (PRIMARY KEY)
        - value: JSON-encoded option value
        - updated_at: timestamp of the last write
        """

        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS options (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at TIMESTAMP NOT NULL
                    )
                    """
                )
        except sqlite3.Error as e:
            raise StorageError(f"Cannot initialize option store at {self._db_path}: {e}") from e

    async def load(self, keys: Iterable[str]) -> dict[str, Any]:
        """Return stored values for ``keys``; absent keys are left out."""

        keys = list(keys)
        if not keys:
            return {}
        placeholders = ", ".join("?" for _ in keys)
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    f"SELECT key, value FROM options WHERE key IN ({placeholders})",
                    keys,
                ).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Option load failed: {e}") from e

        values: dict[str, Any] = {}
        for row in rows:
            try:
                values[row["key"]] = json.loads(row["value"])
            except ValueError as e:
                raise StorageError(f"Stored option {row['key']!r} is not valid JSON") from e
        return values

    async def save(self, values: Mapping[str, Any]) -> bool:
        """Upsert every value. Returns True on success."""

        now = datetime.now(timezone.utc).isoformat()
        try:
            rows = [(key, json.dumps(value), now) for key, value in values.items()]
        except (TypeError, ValueError) as e:
            raise StorageError(f"Option value is not JSON serializable: {e}") from e
        try:
            with self._connect() as conn:
                conn.executemany(
                    """
                    INSERT INTO options (key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    rows,
                )
        except sqlite3.Error as e:
            raise StorageError(f"Option save failed: {e}") from e
        return True

    async def seed(self, values: Mapping[str, Any]) -> int:
        """Store only the values whose keys are not present yet."""

        existing = await self.load(values.keys())
        missing = {key: value for key, value in values.items() if key not in existing}
        if missing:
            await self.save(missing)
        return len(missing)
