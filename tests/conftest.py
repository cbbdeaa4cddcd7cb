"""Shared fixtures and fakes for the VitalScope test suite.

The fakes implement the domain ports structurally (no inheritance), the same
way the infrastructure adapters do.
"""

from __future__ import annotations

import asyncio
import io

import pytest
from PIL import Image

from vitalscope.application.services.history import HistoryStore
from vitalscope.application.services.image_ingestor import ImageIngestor
from vitalscope.application.services.profile import ProfileStore
from vitalscope.application.services.scan import ScanOrchestrator
from vitalscope.domain.exceptions import ImageDecodeError, StorageError
from vitalscope.domain.models import (
    AnalysisResult,
    CalorieAnalysis,
    EncodedImage,
    Gender,
    ImageQualityCheck,
    Profile,
    RecommendedProduct,
)
from vitalscope.infrastructure.persistence.memory_store import InMemoryDocumentStore


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeDecoder:
    """Decodes string sources to PNG data URIs.

    delays maps a source to the seconds it takes; sources listed in
    failures raise ImageDecodeError. completed records finish order.
    """

    def __init__(self, delays: dict | None = None, failures: tuple = ()):
        self.delays = delays or {}
        self.failures = set(failures)
        self.completed: list = []

    async def decode(self, source) -> EncodedImage:
        await asyncio.sleep(self.delays.get(source, 0))
        self.completed.append(source)
        if source in self.failures:
            raise ImageDecodeError(f"not an image: {source}")
        return EncodedImage.from_bytes(str(source).encode(), "image/png")


class ScriptedGateway:
    """Returns (or raises) scripted outcomes in call order.

    An asyncio.Future outcome is awaited first, so a test can hold a call
    in flight and resolve it later.
    """

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls: list = []

    async def analyze(self, profile, images):
        self.calls.append((profile, tuple(images)))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, asyncio.Future):
            outcome = await outcome
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class FlakyStore(InMemoryDocumentStore):
    """In-memory store whose next fail_sets writes raise StorageError."""

    def __init__(self, fail_sets: int = 0, quota_bytes: int = 0):
        super().__init__(quota_bytes=quota_bytes)
        self.fail_sets = fail_sets
        self.set_calls: list = []

    async def set(self, key, value):
        self.set_calls.append((key, value))
        if self.fail_sets:
            self.fail_sets -= 1
            raise StorageError("disk full")
        await super().set(key, value)


class GatedStore(InMemoryDocumentStore):
    """In-memory store whose reads park after hold() until release()."""

    def __init__(self):
        super().__init__()
        self._open = asyncio.Event()
        self._open.set()
        self.parked = 0

    def hold(self):
        self._open.clear()

    def release(self):
        self._open.set()

    async def get(self, key):
        self.parked += 1
        await self._open.wait()
        self.parked -= 1
        return await super().get(key)


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def _make_result(
    *,
    unclear: bool = False,
    summary: str = "High in sodium for your blood pressure goal.",
    calories: bool = True,
) -> AnalysisResult:
    if unclear:
        return AnalysisResult(
            image_quality_check=ImageQualityCheck(is_unclear=True, reason="Too blurry"),
        )
    return AnalysisResult(
        image_quality_check=ImageQualityCheck(is_unclear=False),
        summary=summary,
        pros=["Good source of protein"],
        cons=["1200 mg sodium per serving"],
        recommendations=[
            RecommendedProduct(name="Low-sodium broth", reason="Less salt"),
            RecommendedProduct(name="Plain rice crackers", reason="No added salt"),
            RecommendedProduct(name="Unsalted nuts", reason="Healthy fats"),
        ],
        calorie_analysis=(
            CalorieAnalysis(
                product_calories=450, user_daily_need=2200, percentage=20,
                note="Label value",
            )
            if calories else None
        ),
    )


def _png_bytes(size=(4, 4), color=(200, 30, 30), image_format="PNG") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=image_format)
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def make_result():
    return _make_result


@pytest.fixture
def png_bytes():
    return _png_bytes


@pytest.fixture
def configured_profile() -> Profile:
    return Profile(
        age="54",
        gender=Gender.FEMALE,
        health_context="High blood pressure, trying to cut salt",
    )


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def profile_store(store) -> ProfileStore:
    return ProfileStore(store)


@pytest.fixture
async def saved_profile_store(profile_store, configured_profile) -> ProfileStore:
    await profile_store.save(configured_profile)
    return profile_store


@pytest.fixture
def history_store(store) -> HistoryStore:
    return HistoryStore(store)


@pytest.fixture
def decoder() -> FakeDecoder:
    return FakeDecoder()


@pytest.fixture
def ingestor(decoder) -> ImageIngestor:
    return ImageIngestor(decoder)


@pytest.fixture
def make_orchestrator(profile_store, ingestor, history_store):
    """Build a ScanOrchestrator around a ScriptedGateway with the given outcomes."""
    def _build(*outcomes):
        gateway = ScriptedGateway(*outcomes)
        orchestrator = ScanOrchestrator(
            profile_store=profile_store,
            ingestor=ingestor,
            gateway=gateway,
            history=history_store,
        )
        return orchestrator, gateway

    return _build
