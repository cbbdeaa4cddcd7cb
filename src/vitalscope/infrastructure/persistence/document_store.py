"""
infrastructure.persistence.document_store - SQLite key -> JSON document store.

Implements DocumentStorePort. Every document is one row in the ``documents``
table, stored as JSON text and always read or written whole.

An optional byte quota emulates the limited storage of a device: a write
whose documents would together exceed quota_bytes raises
StorageQuotaExceededError and leaves the previous document in place.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any

from vitalscope.domain.exceptions import StorageError, StorageQuotaExceededError
from vitalscope.infrastructure.persistence.connection import AsyncSQLiteConnection

logger = logging.getLogger(__name__)


def encode_document(value: Any) -> str:
    """Serialize a document to compact JSON text."""
    try:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise StorageError(f"Document is not JSON serializable: {e}") from e


def decode_document(key: str, text: str) -> Any | None:
    """Parse JSON text; undecodable documents are logged and treated as absent."""
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning("Document '%s' is not valid JSON, ignoring it: %s", key, e)
        return None


def document_size(text: str) -> int:
    return len(text.encode("utf-8"))


class SQLiteDocumentStore:
    """Async SQLite implementation of DocumentStorePort."""

    def __init__(self, connection: AsyncSQLiteConnection, quota_bytes: int = 0):
        self._conn = connection
        self._quota_bytes = quota_bytes

    async def get(self, key: str) -> Any | None:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                "SELECT value FROM documents WHERE key = ?", (key,),
            )
        if not rows:
            return None
        return decode_document(key, rows[0][0])

    async def set(self, key: str, value: Any) -> None:
        text = encode_document(value)
        size = document_size(text)
        async with self._conn.acquire() as conn:
            if self._quota_bytes:
                rows = await conn.execute_fetchall(
                    "SELECT COALESCE(SUM(LENGTH(CAST(value AS BLOB))), 0) "
                    "FROM documents WHERE key != ?",
                    (key,),
                )
                used = rows[0][0]
                if used + size > self._quota_bytes:
                    raise StorageQuotaExceededError(
                        f"Writing '{key}' ({size} bytes) would exceed the "
                        f"{self._quota_bytes}-byte storage quota ({used} bytes used)"
                    )
            await conn.execute(
                """INSERT INTO documents (key, value, updated_at) VALUES (?, ?, ?)
                   ON CONFLICT(key) DO UPDATE SET
                       value = excluded.value, updated_at = excluded.updated_at""",
                (key, text, datetime.now().isoformat()),
            )
        logger.debug("Stored document '%s' (%d bytes)", key, size)

    async def remove(self, key: str) -> None:
        async with self._conn.acquire() as conn:
            await conn.execute("DELETE FROM documents WHERE key = ?", (key,))
