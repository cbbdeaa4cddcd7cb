"""
infrastructure.persistence.memory_store - In-process document store.

Same contract and quota semantics as SQLiteDocumentStore, without a file.
Used for ephemeral sessions (empty DB_PATH) and in tests. Documents are kept
as JSON text so callers never share mutable objects with the store.
"""

from __future__ import annotations

import logging
from typing import Any

from vitalscope.domain.exceptions import StorageQuotaExceededError
from vitalscope.infrastructure.persistence.document_store import (
    decode_document,
    document_size,
    encode_document,
)

logger = logging.getLogger(__name__)


class InMemoryDocumentStore:
    """Dictionary-backed implementation of DocumentStorePort."""

    def __init__(self, quota_bytes: int = 0):
        self._documents: dict[str, str] = {}
        self._quota_bytes = quota_bytes

    def __contains__(self, key: str) -> bool:
        return key in self._documents

    async def get(self, key: str) -> Any | None:
        text = self._documents.get(key)
        if text is None:
            return None
        return decode_document(key, text)

    async def set(self, key: str, value: Any) -> None:
        text = encode_document(value)
        if self._quota_bytes:
            used = sum(
                document_size(v) for k, v in self._documents.items() if k != key
            )
            size = document_size(text)
            if used + size > self._quota_bytes:
                raise StorageQuotaExceededError(
                    f"Writing '{key}' ({size} bytes) would exceed the "
                    f"{self._quota_bytes}-byte storage quota ({used} bytes used)"
                )
        self._documents[key] = text

    async def remove(self, key: str) -> None:
        self._documents.pop(key, None)
