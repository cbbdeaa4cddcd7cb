"""
application.services.image_ingestor - Staging photos for one scan.

add_files() decodes a batch concurrently and publishes the Selection once,
after every decode in the batch has finished. Results are appended in the
order the sources were given, never in decode completion order. A source
that fails to decode is dropped from its batch; the rest still land.

Batches are serialized with a lock, so two overlapping add_files() calls
publish in call order.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Iterable

from vitalscope.domain.models import EncodedImage
from vitalscope.domain.ports import ImageDecoderPort, ImageSource

logger = logging.getLogger(__name__)

SelectionListener = Callable[[tuple[EncodedImage, ...]], None]


class ImageIngestor:
    """Owns the ordered Selection of encoded images."""

    def __init__(self, decoder: ImageDecoderPort):
        self._decoder = decoder
        self._selection: list[EncodedImage] = []
        self._listeners: list[SelectionListener] = []
        self._batch_lock = asyncio.Lock()

    @property
    def selection(self) -> tuple[EncodedImage, ...]:
        return tuple(self._selection)

    def __len__(self) -> int:
        return len(self._selection)

    def subscribe(self, listener: SelectionListener) -> Callable[[], None]:
        """Register listener for Selection changes. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def add_files(self, sources: Iterable[ImageSource]) -> list[EncodedImage]:
        """Decode sources concurrently and append the survivors in input order.

        Returns the images accepted from this batch.
        """
        batch = list(sources)
        if not batch:
            return []

        async with self._batch_lock:
            results = await asyncio.gather(
                *(self._decoder.decode(source) for source in batch),
                return_exceptions=True,
            )

            accepted: list[EncodedImage] = []
            for index, outcome in enumerate(results):
                if isinstance(outcome, EncodedImage):
                    accepted.append(outcome)
                elif isinstance(outcome, Exception):
                    logger.warning(
                        "Dropping image %d of %d from batch: %s",
                        index + 1, len(batch), outcome,
                    )
                else:
                    # CancelledError and friends are not decode failures
                    raise outcome

            if not accepted:
                logger.info("No images decoded from batch of %d", len(batch))
                return []

            self._selection.extend(accepted)
            logger.info(
                "Added %d/%d image(s); selection now %d",
                len(accepted), len(batch), len(self._selection),
            )
            self._publish()
            return accepted

    def remove_at(self, index: int) -> EncodedImage:
        """Remove one image by position and publish synchronously."""
        if not 0 <= index < len(self._selection):
            raise IndexError(f"No image at position {index}")
        removed = self._selection.pop(index)
        self._publish()
        return removed

    def clear(self) -> None:
        if not self._selection:
            return
        self._selection = []
        self._publish()

    def _publish(self) -> None:
        snapshot = self.selection
        for listener in list(self._listeners):
            listener(snapshot)
