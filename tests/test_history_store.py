"""Tests for HistoryStore: bound, ordering, clear and the storage fallback."""

import asyncio
import logging

import pytest

from vitalscope.application.services.history import DEFAULT_HISTORY_KEY, HistoryStore
from vitalscope.domain.models import EncodedImage, HistoryEntry
from vitalscope.infrastructure.persistence.memory_store import InMemoryDocumentStore

from conftest import FlakyStore, GatedStore

PREVIEW = "data:image/png;base64," + "A" * 400


def _entry(make_result, n, preview=None):
    return HistoryEntry.create(make_result(summary=f"scan {n}"), preview, timestamp=n)


class TestAppend:
    """Tests for appending and bounding the log."""

    async def test_newest_first(self, history_store, make_result):
        """Test that the latest entry is at the head."""
        for n in range(3):
            await history_store.append(_entry(make_result, n))
        assert [e.timestamp for e in history_store.entries] == [2, 1, 0]

    async def test_twenty_first_evicts_oldest(self, store, make_result):
        """Test that the 21st append drops the very first entry."""
        history = HistoryStore(store)
        for n in range(21):
            await history.append(_entry(make_result, n))

        entries = history.entries
        assert len(entries) == 20
        assert entries[0].timestamp == 20
        assert entries[-1].timestamp == 1
        assert len(await store.get(DEFAULT_HISTORY_KEY)) == 20

    async def test_custom_limit(self, store, make_result):
        """Test a smaller configured bound."""
        history = HistoryStore(store, limit=2)
        for n in range(3):
            await history.append(_entry(make_result, n))
        assert [e.timestamp for e in history.entries] == [2, 1]

    def test_limit_must_be_positive(self, store):
        """Test that a zero bound is refused."""
        with pytest.raises(ValueError):
            HistoryStore(store, limit=0)

    async def test_unclear_result_rejected(self, history_store, make_result):
        """Test that unclear results never enter history."""
        with pytest.raises(ValueError):
            await history_store.append(HistoryEntry.create(make_result(unclear=True)))
        assert history_store.entries == []

    async def test_record_uses_first_image_as_preview(self, history_store, make_result):
        """Test that record() previews the first image of the selection."""
        images = [
            EncodedImage.from_base64("Zmlyc3Q=", "image/png"),
            EncodedImage.from_base64("c2Vjb25k", "image/jpeg"),
        ]
        entry = await history_store.record(make_result(), images)
        assert entry.image_preview_url == images[0].data_uri
        assert history_store.get(entry.id) == entry

    async def test_append_loads_persisted_log_first(self, store, make_result):
        """Test that a fresh store does not clobber entries from a previous session."""
        first = HistoryStore(store)
        await first.append(_entry(make_result, 1))

        second = HistoryStore(store)
        await second.append(_entry(make_result, 2))

        assert [e.timestamp for e in second.entries] == [2, 1]

    async def test_concurrent_first_appends_keep_both(self, make_result):
        """Test that two appends racing the initial load both survive."""
        store = GatedStore()
        history = HistoryStore(store)

        store.hold()
        appends = [
            asyncio.create_task(history.append(_entry(make_result, n))) for n in (1, 2)
        ]
        while not store.parked:
            await asyncio.sleep(0)
        store.release()
        await asyncio.gather(*appends)

        assert [e.timestamp for e in history.entries] == [2, 1]
        persisted = await store.get(DEFAULT_HISTORY_KEY)
        assert [d["timestamp"] for d in persisted] == [2, 1]


class TestLoad:
    """Tests for reading the persisted log."""

    async def test_absent_document_is_empty(self, history_store):
        """Test a first launch."""
        assert await history_store.load() == []

    async def test_round_trip_across_sessions(self, store, make_result):
        """Test that entries written in one session load in the next."""
        history = HistoryStore(store)
        entry = _entry(make_result, 5, PREVIEW)
        await history.append(entry)

        assert await HistoryStore(store).load() == [entry]

    @pytest.mark.parametrize("document", [
        {"not": "a list"},
        [{"id": "x"}],
        ["garbage"],
    ])
    async def test_malformed_document_is_empty(self, store, document, caplog):
        """Test that a corrupted log degrades to empty with a warning."""
        await store.set(DEFAULT_HISTORY_KEY, document)
        with caplog.at_level(logging.WARNING):
            assert await HistoryStore(store).load() == []
        assert "malformed history" in caplog.text


class TestClear:
    """Tests for clearing history."""

    async def test_clear_removes_document(self, store, history_store, make_result):
        """Test that clear deletes the document, not just empties it."""
        await history_store.append(_entry(make_result, 1))
        await history_store.clear()
        assert history_store.entries == []
        assert DEFAULT_HISTORY_KEY not in store
        assert await HistoryStore(store).load() == []


class TestStorageFallback:
    """Tests for the two-phase write under storage pressure."""

    async def test_retry_without_previews(self, make_result):
        """Test that a failed full write is retried with previews stripped."""
        store = FlakyStore(fail_sets=1)
        history = HistoryStore(store)
        entry = _entry(make_result, 1, PREVIEW)

        await history.append(entry)

        assert len(store.set_calls) == 2
        persisted = await store.get(DEFAULT_HISTORY_KEY)
        assert persisted == [entry.without_preview().to_dict()]
        # the session still shows the preview
        assert history.entries[0].image_preview_url == PREVIEW

    async def test_both_writes_fail_is_swallowed(self, make_result, caplog):
        """Test that a failed stripped write is logged, not raised."""
        store = FlakyStore(fail_sets=2)
        history = HistoryStore(store)

        with caplog.at_level(logging.ERROR):
            await history.append(_entry(make_result, 1, PREVIEW))

        assert len(history.entries) == 1
        assert DEFAULT_HISTORY_KEY not in store
        assert "even without previews" in caplog.text

    async def test_quota_triggers_fallback(self, make_result):
        """Test that a real quota overflow takes the stripped path."""
        store = InMemoryDocumentStore(quota_bytes=1500)
        history = HistoryStore(store)
        big_preview = "data:image/png;base64," + "B" * 2000

        await history.append(_entry(make_result, 1, big_preview))

        persisted = await store.get(DEFAULT_HISTORY_KEY)
        assert len(persisted) == 1
        assert "imagePreviewUrl" not in persisted[0]
