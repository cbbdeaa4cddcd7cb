"""
application.services.history - Bounded log of past successful scans.

HistoryStore is the only writer of the persisted history document. The log
is newest-first and never longer than the configured limit; the oldest
entries are evicted first.

Storage pressure is handled in two phases:
    1. Write the full log.
    2. If that raises StorageError, write the log again with every
       imagePreviewUrl stripped.
If the stripped write fails too, the failure is logged and swallowed. The
in-memory log keeps the update (previews included) for the session either
way, so a failed history write never looks like a failed scan.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Sequence

from vitalscope.domain.exceptions import StorageError
from vitalscope.domain.models import AnalysisResult, EncodedImage, HistoryEntry
from vitalscope.domain.ports import DocumentStorePort

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_KEY = "vitalscope_history"
DEFAULT_HISTORY_LIMIT = 20


class HistoryStore:
    """Append-only, bounded, newest-first history with a degraded-write fallback."""

    def __init__(
        self,
        store: DocumentStorePort,
        key: str = DEFAULT_HISTORY_KEY,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        if limit < 1:
            raise ValueError("history limit must be at least 1")
        self._store = store
        self._key = key
        self._limit = limit
        self._entries: list[HistoryEntry] = []
        self._loaded = False
        self._write_lock = asyncio.Lock()

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def entries(self) -> list[HistoryEntry]:
        """In-memory log for this session (newest first)."""
        return list(self._entries)

    def get(self, entry_id: str) -> Optional[HistoryEntry]:
        return next((e for e in self._entries if e.id == entry_id), None)

    async def load(self) -> list[HistoryEntry]:
        """Read the persisted log. Absent or malformed documents yield an empty log."""
        document = await self._store.get(self._key)
        self._entries = _parse_log(self._key, document)[: self._limit]
        self._loaded = True
        return list(self._entries)

    async def append(self, entry: HistoryEntry) -> None:
        """Insert entry at the head, evict past the limit, then persist."""
        if entry.result.is_unclear:
            raise ValueError("Unclear analysis results are never stored in history")
        async with self._write_lock:
            if not self._loaded:
                await self.load()

            self._entries.insert(0, entry)
            evicted = len(self._entries) - self._limit
            if evicted > 0:
                del self._entries[self._limit:]
                logger.debug("Evicted %d oldest history entr(ies)", evicted)

            await self._write()

    async def record(
        self, result: AnalysisResult, images: Sequence[EncodedImage],
    ) -> HistoryEntry:
        """Build an entry from a result, using the first image as preview, and append it."""
        preview = images[0].data_uri if images else None
        entry = HistoryEntry.create(result, image_preview_url=preview)
        await self.append(entry)
        return entry

    async def clear(self) -> None:
        """Empty the log and remove the persisted document entirely."""
        async with self._write_lock:
            self._entries = []
            self._loaded = True
            await self._store.remove(self._key)
        logger.info("History cleared")

    async def _write(self) -> None:
        # Caller holds _write_lock.
        snapshot = list(self._entries)
        try:
            await self._store.set(self._key, [e.to_dict() for e in snapshot])
            return
        except StorageError as e:
            logger.warning(
                "History write failed (%s); retrying without image previews", e,
            )

        stripped = [e.without_preview().to_dict() for e in snapshot]
        try:
            await self._store.set(self._key, stripped)
            logger.info("History saved without image previews (%d entries)", len(stripped))
        except StorageError:
            logger.exception(
                "History write failed even without previews; "
                "keeping %d entries in memory only", len(snapshot),
            )


def _parse_log(key: str, document: object) -> list[HistoryEntry]:
    if document is None:
        return []
    if not isinstance(document, list):
        logger.warning("Ignoring malformed history document '%s': not a list", key)
        return []
    try:
        return [HistoryEntry.from_dict(item) for item in document]
    except (KeyError, TypeError, ValueError) as e:
        logger.warning("Ignoring malformed history document '%s': %s", key, e)
        return []
