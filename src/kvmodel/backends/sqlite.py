# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Disk-backed key-value backend on SQLite via :mod:`aiosqlite`.

Entries live in a single ``kv_entries`` table keyed by ``(namespace, key)``.
Expiry timestamps are wall-clock epoch milliseconds so they survive a
restart; expired rows are ignored on read and deleted lazily.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import aiosqlite

from kvmodel.backends.base import KeyValueBackend, Options, namespace_of
from kvmodel.core.constants import ABSENT, NO_EXPIRATION
from kvmodel.filters import KeyFilter

logger = logging.getLogger("kvmodel.backends.sqlite")

_DEFAULT_BATCH_SIZE = 100

_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_entries (
    namespace  TEXT NOT NULL,
    key        TEXT NOT NULL,
    value      TEXT NOT NULL,
    expires_at INTEGER,
    PRIMARY KEY (namespace, key)
)
"""

_LIVE = "(expires_at IS NULL OR expires_at > ?)"


def _now_ms() -> int:
    return int(time.time() * 1000)


class SQLiteKeyValueBackend(KeyValueBackend):
    """Async SQLite key-value store.

    The connection is opened lazily on first use.

    Args:
        db_path: SQLite database file, or ``":memory:"``.
        batch_size: Rows fetched per page by :meth:`iterate_keys`.
    """

    name = "sqlite"

    def __init__(
        self,
        db_path: Path | str = "kvmodel.db",
        batch_size: int = _DEFAULT_BATCH_SIZE,
    ) -> None:
        self._db_path = str(db_path)
        self._batch_size = batch_size
        self._conn: aiosqlite.Connection | None = None

    # ------------------------------------------------------------------
    # KeyValueBackend interface
    # ------------------------------------------------------------------

    async def get(self, key: str, options: Options) -> Any:
        conn = await self._connection()
        cursor = await conn.execute(
            f"SELECT value FROM kv_entries WHERE namespace = ? AND key = ? AND {_LIVE}",
            (namespace_of(options), key, _now_ms()),
        )
        row = await cursor.fetchone()
        if row is None:
            return ABSENT
        return json.loads(row[0])

    async def set(self, key: str, value: Any, ttl: int | None, options: Options) -> None:
        conn = await self._connection()
        expires_at = _now_ms() + ttl if ttl is not None else None
        await conn.execute(
            """
            INSERT INTO kv_entries (namespace, key, value, expires_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT (namespace, key)
            DO UPDATE SET value = excluded.value, expires_at = excluded.expires_at
            """,
            (namespace_of(options), key, json.dumps(value), expires_at),
        )
        await conn.commit()

    async def expire(self, key: str, ttl: int, options: Options) -> bool:
        conn = await self._connection()
        now = _now_ms()
        cursor = await conn.execute(
            f"UPDATE kv_entries SET expires_at = ? WHERE namespace = ? AND key = ? AND {_LIVE}",
            (now + ttl, namespace_of(options), key, now),
        )
        await conn.commit()
        return cursor.rowcount > 0

    async def ttl(self, key: str, options: Options) -> Any:
        conn = await self._connection()
        now = _now_ms()
        cursor = await conn.execute(
            f"SELECT expires_at FROM kv_entries WHERE namespace = ? AND key = ? AND {_LIVE}",
            (namespace_of(options), key, now),
        )
        row = await cursor.fetchone()
        if row is None:
            return ABSENT
        if row[0] is None:
            return NO_EXPIRATION
        return max(0, row[0] - now)

    async def keys(self, key_filter: KeyFilter | None, options: Options) -> list[str]:
        conn = await self._connection()
        await self._purge_expired(conn)
        cursor = await conn.execute(
            "SELECT key FROM kv_entries WHERE namespace = ? ORDER BY key",
            (namespace_of(options),),
        )
        rows = await cursor.fetchall()
        return [r[0] for r in rows if key_filter is None or key_filter.matches(r[0])]

    async def iterate_keys(
        self, key_filter: KeyFilter | None, options: Options
    ) -> AsyncIterator[str]:
        conn = await self._connection()
        ns = namespace_of(options)
        # Keyset pagination: each page resumes after the last key seen, so
        # rows inserted or removed between pages never break the cursor.
        last_key: str | None = None
        while True:
            if last_key is None:
                cursor = await conn.execute(
                    f"SELECT key FROM kv_entries WHERE namespace = ? AND {_LIVE} "
                    "ORDER BY key LIMIT ?",
                    (ns, _now_ms(), self._batch_size),
                )
            else:
                cursor = await conn.execute(
                    f"SELECT key FROM kv_entries WHERE namespace = ? AND key > ? AND {_LIVE} "
                    "ORDER BY key LIMIT ?",
                    (ns, last_key, _now_ms(), self._batch_size),
                )
            rows = await cursor.fetchall()
            if not rows:
                return
            for row in rows:
                if key_filter is None or key_filter.matches(row[0]):
                    yield row[0]
            last_key = rows[-1][0]
            if len(rows) < self._batch_size:
                return

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            conn = await aiosqlite.connect(self._db_path)
            # Enable WAL mode for concurrent read performance
            await conn.execute("PRAGMA journal_mode=WAL")
            await conn.execute(_SCHEMA)
            await conn.commit()
            self._conn = conn
            logger.debug("Opened SQLite key-value store at %s", self._db_path)
        return self._conn

    async def _purge_expired(self, conn: aiosqlite.Connection) -> None:
        cursor = await conn.execute(
            "DELETE FROM kv_entries WHERE expires_at IS NOT NULL AND expires_at <= ?",
            (_now_ms(),),
        )
        await conn.commit()
        if cursor.rowcount:
            logger.debug("Purged %d expired entries", cursor.rowcount)
