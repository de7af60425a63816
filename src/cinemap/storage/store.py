"""SQLite-backed key-value repository with typed namespaces.

Every consumer (theatre cache, credentials, and the app's search history /
watchlist outside this package) gets its own namespace instead of sharing
ad hoc keys in one flat storage space.
"""

from __future__ import annotations

import logging
import os
from enum import Enum

import aiosqlite

logger = logging.getLogger(__name__)

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS kv (
    namespace   TEXT NOT NULL,
    key         TEXT NOT NULL,
    value       TEXT NOT NULL,
    updated_at  TEXT NOT NULL,
    PRIMARY KEY (namespace, key)
);
"""


class Namespace(str, Enum):
    THEATRE_CACHE = "theatre_cache"
    CREDENTIALS = "credentials"
    SEARCH_HISTORY = "search_history"
    WATCHLIST = "watchlist"


class KeyValueStore:
    """Async SQLite key-value store.

    Call :meth:`init` on app start and :meth:`close` on shutdown. Methods
    also open the database lazily, so tests can skip ``init``.
    """

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def _ensure_db(self) -> aiosqlite.Connection:
        if self._db is not None:
            return self._db

        os.makedirs(os.path.dirname(self.db_path) or ".", exist_ok=True)
        self._db = await aiosqlite.connect(self.db_path)
        await self._db.execute("PRAGMA journal_mode=WAL")
        await self._db.executescript(_CREATE_TABLE)
        return self._db

    async def init(self) -> None:
        await self._ensure_db()
        logger.info("Key-value store ready at %s", self.db_path)

    async def get(self, namespace: Namespace, key: str) -> str | None:
        db = await self._ensure_db()
        async with db.execute(
            "SELECT value FROM kv WHERE namespace = ? AND key = ?",
            (namespace.value, key),
        ) as cursor:
            row = await cursor.fetchone()
            return row[0] if row else None

    async def set(self, namespace: Namespace, key: str, value: str) -> None:
        db = await self._ensure_db()
        await db.execute(
            """
            INSERT INTO kv (namespace, key, value, updated_at)
            VALUES (?, ?, ?, datetime('now'))
            ON CONFLICT(namespace, key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
            """,
            (namespace.value, key, value),
        )
        await db.commit()

    async def remove(self, namespace: Namespace, key: str) -> None:
        db = await self._ensure_db()
        await db.execute(
            "DELETE FROM kv WHERE namespace = ? AND key = ?",
            (namespace.value, key),
        )
        await db.commit()

    async def keys(self, namespace: Namespace) -> list[str]:
        db = await self._ensure_db()
        async with db.execute(
            "SELECT key FROM kv WHERE namespace = ? ORDER BY key",
            (namespace.value,),
        ) as cursor:
            rows = await cursor.fetchall()
            return [row[0] for row in rows]

    async def clear_namespace(self, namespace: Namespace) -> None:
        db = await self._ensure_db()
        await db.execute("DELETE FROM kv WHERE namespace = ?", (namespace.value,))
        await db.commit()

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None
