"""SQLite key-value store for JSON blobs."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Callable

import orjson


@dataclass(frozen=True)
class StoredValue:
    payload: Any
    saved_at: datetime


class KeyValueStore:
    """SQLite-backed store of ``key -> (payload_json, saved_at)`` rows."""

    def __init__(
        self,
        db_path: Path,
        *,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self.db_path = db_path
        self._clock = clock
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _init_schema(self) -> None:
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    payload_json TEXT NOT NULL,
                    saved_at TEXT NOT NULL
                )
                """
            )

    def now(self) -> datetime:
        return self._clock()

    def put(self, key: str, payload: Any) -> datetime:
        """Insert or replace ``key``; returns the recorded save time."""
        saved_at = self._clock()
        payload_json = orjson.dumps(payload).decode("utf-8")
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO kv_store (key, payload_json, saved_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    payload_json=excluded.payload_json,
                    saved_at=excluded.saved_at
                """,
                (key, payload_json, saved_at.isoformat()),
            )
        return saved_at

    def get(self, key: str) -> StoredValue | None:
        with sqlite3.connect(self.db_path) as conn:
            row = conn.execute(
                "SELECT payload_json, saved_at FROM kv_store WHERE key = ?",
                (key,),
            ).fetchone()
        if row is None:
            return None
        return StoredValue(
            payload=orjson.loads(row[0]),
            saved_at=datetime.fromisoformat(row[1]),
        )

    def delete(self, key: str) -> bool:
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        return cursor.rowcount > 0

    def keys(self, prefix: str = "") -> list[str]:
        with sqlite3.connect(self.db_path) as conn:
            rows = conn.execute(
                "SELECT key FROM kv_store WHERE key LIKE ? ESCAPE '\\' ORDER BY key ASC",
                (prefix.replace("%", r"\%").replace("_", r"\_") + "%",),
            ).fetchall()
        return [row[0] for row in rows]
