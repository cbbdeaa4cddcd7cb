"""
infrastructure.imaging.decoder - Raw image source -> data URI.

Implements ImageDecoderPort with Pillow. Accepts anything the platform
picker can hand over: a file path, raw bytes, or an object with an async
read() (e.g. FastAPI's UploadFile). The only acceptance rule is "Pillow
recognizes it as an image"; the MIME type comes from the detected format,
not from the file name.

File reads and Pillow work run in the default thread pool so that a batch
of decodes really overlaps.
"""

from __future__ import annotations

import asyncio
import io
import logging
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from vitalscope.domain.exceptions import ImageDecodeError
from vitalscope.domain.models import EncodedImage
from vitalscope.domain.ports import AsyncReadable, ImageSource

logger = logging.getLogger(__name__)


class PillowImageDecoder:
    """Read, verify and base64-encode one image."""

    async def decode(self, source: ImageSource) -> EncodedImage:
        loop = asyncio.get_event_loop()
        raw = await self._read(source, loop)
        if not raw:
            raise ImageDecodeError(f"Image source is empty: {_describe(source)}")
        try:
            return await loop.run_in_executor(None, self._encode, raw)
        except ImageDecodeError:
            raise
        except Exception as e:
            raise ImageDecodeError(
                f"Could not decode {_describe(source)}: {e}"
            ) from e

    @staticmethod
    async def _read(source: ImageSource, loop: asyncio.AbstractEventLoop) -> bytes:
        if isinstance(source, (bytes, bytearray)):
            return bytes(source)
        if isinstance(source, (str, Path)):
            path = Path(source).expanduser()
            if not path.is_file():
                raise ImageDecodeError(f"Image file not found: {source}")
            try:
                return await loop.run_in_executor(None, path.read_bytes)
            except OSError as e:
                raise ImageDecodeError(f"Could not read {source}: {e}") from e
        if isinstance(source, AsyncReadable):
            try:
                return await source.read()
            except Exception as e:
                raise ImageDecodeError(f"Could not read upload: {e}") from e
        raise ImageDecodeError(f"Unsupported image source: {type(source).__name__}")

    @staticmethod
    def _encode(raw: bytes) -> EncodedImage:
        """Verify raw bytes are an image and build the data URI (runs in thread pool)."""
        try:
            with Image.open(io.BytesIO(raw)) as img:
                image_format = img.format
                img.verify()
        except UnidentifiedImageError as e:
            raise ImageDecodeError("Not a recognized image") from e

        mime_type = Image.MIME.get(image_format or "")
        if not mime_type or not mime_type.startswith("image/"):
            raise ImageDecodeError(f"Unsupported image format: {image_format}")

        logger.debug("Encoded %s image (%d bytes)", mime_type, len(raw))
        return EncodedImage.from_bytes(raw, mime_type)


def _describe(source: ImageSource) -> str:
    if isinstance(source, (str, Path)):
        return str(source)
    if isinstance(source, (bytes, bytearray)):
        return f"<{len(source)} bytes>"
    return getattr(source, "filename", None) or type(source).__name__
