"""
infrastructure.persistence.connection - Async SQLite connection manager.

Wraps aiosqlite with a context manager: commit on success, rollback on
exception. sqlite and filesystem failures surface as StorageError so callers only deal
with the domain hierarchy.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

from vitalscope.domain.exceptions import StorageError

logger = logging.getLogger(__name__)


class AsyncSQLiteConnection:
    """Async SQLite connection provider with auto-commit/rollback."""

    def __init__(self, db_path: str):
        self._db_path = db_path

    @property
    def db_path(self) -> str:
        return self._db_path

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield an async SQLite connection.

        Commits on success, rolls back on exception.
        """
        try:
            if self._db_path != ":memory:":
                Path(self._db_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
            async with aiosqlite.connect(str(Path(self._db_path).expanduser())) as conn:
                conn.row_factory = aiosqlite.Row
                try:
                    yield conn
                    await conn.commit()
                except StorageError:
                    await conn.rollback()
                    raise
                except Exception:
                    await conn.rollback()
                    logger.exception("Database operation failed, transaction rolled back.")
                    raise
        except (aiosqlite.Error, OSError) as e:
            raise StorageError(f"SQLite error on {self._db_path}: {e}") from e
