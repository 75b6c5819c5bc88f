"""Persistent key -> response body store consulted before network fetches."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class BodyCache(Protocol):
    def get(self, key: str) -> str | None: ...

    def put(self, key: str, body: str) -> None: ...


class SourceCache:
    """SQLite-backed cache; entries never expire, same-key writes replace."""

    def __init__(self, path: Path | str = ":memory:"):
        if str(path) != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        self.path = path
        self._conn = sqlite3.connect(str(path))
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS fetch (
                url TEXT PRIMARY KEY NOT NULL,
                body TEXT NOT NULL
            )
            """
        )
        self._conn.commit()

    def get(self, key: str) -> str | None:
        row = self._conn.execute("SELECT body FROM fetch WHERE url = ?", (key,)).fetchone()
        if row is None:
            logger.debug("Cache miss %s", key)
            return None
        logger.debug("Cache hit %s", key)
        return row[0]

    def put(self, key: str, body: str) -> None:
        self._conn.execute("INSERT OR REPLACE INTO fetch VALUES (?, ?)", (key, body))
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> SourceCache:
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class MemoryCache:
    """Dict-backed stand-in with the same contract."""

    def __init__(self, entries: dict[str, str] | None = None):
        self.entries: dict[str, str] = dict(entries or {})

    def get(self, key: str) -> str | None:
        return self.entries.get(key)

    def put(self, key: str, body: str) -> None:
        self.entries[key] = body
