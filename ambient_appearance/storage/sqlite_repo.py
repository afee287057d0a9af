from __future__ import annotations
import json
from datetime import datetime, timezone
from typing import Any, Dict

import aiosqlite


class SQLiteRepository:
    """Persists preference overrides as JSON values keyed by setting name."""

    def __init__(self, path: str) -> None:
        self._path = path

    async def init(self) -> None:
        async with aiosqlite.connect(self._path) as db:
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            await db.commit()

    async def get_all_settings(self) -> Dict[str, Any]:
        async with aiosqlite.connect(self._path) as db:
            cur = await db.execute("SELECT key, value FROM settings")
            rows = await cur.fetchall()
        return {k: json.loads(v) for k, v in rows}

    async def set_settings_batch(self, updates: Dict[str, Any]) -> None:
        now = datetime.now(timezone.utc).isoformat()
        async with aiosqlite.connect(self._path) as db:
            for key, value in updates.items():
                await db.execute(
                    "INSERT INTO settings(key, value, updated_at) VALUES (?, ?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at",
                    (key, json.dumps(value), now),
                )
            await db.commit()
