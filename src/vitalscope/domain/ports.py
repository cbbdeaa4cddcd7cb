"""
domain.ports - Abstract interfaces (Protocols) for all system boundaries.

These define WHAT the scan lifecycle needs without specifying HOW.
Infrastructure modules provide concrete implementations. Application
services depend only on these protocols, never on concrete classes.

Using typing.Protocol (structural typing) instead of ABC — any class that
implements the methods satisfies the port without explicit inheritance.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, Sequence, Union, runtime_checkable

from vitalscope.domain.models import AnalysisResult, EncodedImage, Profile


# ---------------------------------------------------------------------------
# Image sources
# ---------------------------------------------------------------------------

@runtime_checkable
class AsyncReadable(Protocol):
    """Anything with an async read(), e.g. an uploaded multipart file."""

    async def read(self) -> bytes: ...


ImageSource = Union[str, Path, bytes, AsyncReadable]


# ---------------------------------------------------------------------------
# AI Component Ports
# ---------------------------------------------------------------------------

@runtime_checkable
class AnalysisGatewayPort(Protocol):
    """Produce a personalized health verdict from a profile and product photos.

    Raises ConfigurationError or AnalysisServiceError on failure. An unclear
    image is a successful call whose result has is_unclear set.
    """

    async def analyze(
        self, profile: Profile, images: Sequence[EncodedImage],
    ) -> AnalysisResult: ...


@runtime_checkable
class ImageDecoderPort(Protocol):
    """Turn one raw image source into an EncodedImage.

    Raises ImageDecodeError if the source cannot be read or is not an image.
    """

    async def decode(self, source: ImageSource) -> EncodedImage: ...


# ---------------------------------------------------------------------------
# Persistence Ports
# ---------------------------------------------------------------------------

@runtime_checkable
class DocumentStorePort(Protocol):
    """Durable key -> JSON document store.

    Each document is read and written whole. No cross-key transactions.
    Every failure surfaces as StorageError (StorageQuotaExceededError when
    set() runs out of room), never as a raw driver or filesystem error.
    """

    async def get(self, key: str) -> Any | None: ...
    async def set(self, key: str, value: Any) -> None: ...
    async def remove(self, key: str) -> None: ...
