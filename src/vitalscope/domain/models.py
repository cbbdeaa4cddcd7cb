"""
domain.models - Value objects for the scan lifecycle.

These are immutable data containers with no dependencies on infrastructure
(no LangChain, no SQLite, no Pillow). Each persisted type knows how to turn
itself into the camelCase JSON document shape used on disk and by the
analysis service, and how to rebuild itself from one.

from_dict() raises ValueError (or KeyError/TypeError) on malformed input;
callers that must never fail (stores) catch these and degrade.
"""

from __future__ import annotations

import base64
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional
from uuid import uuid4


def _require_str(data: dict, key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise ValueError(f"'{key}' must be a string, got {type(value).__name__}")
    return value


def _require_int(data: dict, key: str) -> int:
    value = data[key]
    # bool is an int subclass; a JSON true is not a calorie count
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'{key}' must be a number, got {type(value).__name__}")
    return int(value)


def _str_list(data: dict, key: str) -> list[str]:
    value = data.get(key, [])
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"'{key}' must be a list of strings")
    return list(value)


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------

class Gender(str, Enum):
    """User gender. UNSET is stored as the empty string."""
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    UNSET = ""

    @classmethod
    def parse(cls, value: Any) -> Gender:
        if isinstance(value, Gender):
            return value
        if value is None:
            return cls.UNSET
        if value == "unset":
            return cls.UNSET
        return cls(value)


@dataclass(frozen=True)
class Profile:
    """The user's demographic and health-context record.

    age is kept as free text exactly as the user typed it; it is only
    forwarded to the analysis service, never computed with.
    """
    age: str = ""
    gender: Gender = Gender.UNSET
    health_context: str = ""

    @classmethod
    def empty(cls) -> Profile:
        return cls()

    @property
    def is_configured(self) -> bool:
        return is_configured(self)

    def to_dict(self) -> dict[str, str]:
        return {
            "age": self.age,
            "gender": self.gender.value,
            "healthContext": self.health_context,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Profile:
        if not isinstance(data, dict):
            raise ValueError("profile document must be an object")
        return cls(
            age=_require_str(data, "age"),
            gender=Gender.parse(data.get("gender", "")),
            health_context=_require_str(data, "healthContext"),
        )


def is_configured(profile: Profile) -> bool:
    """A profile is configured iff age, gender and health context are all set."""
    return (
        profile.age != ""
        and profile.gender is not Gender.UNSET
        and profile.health_context != ""
    )


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EncodedImage:
    """An image as a data URI: ``data:<mime>;base64,<payload>``."""
    data_uri: str

    @classmethod
    def from_base64(cls, payload: str, mime_type: str) -> EncodedImage:
        return cls(f"data:{mime_type};base64,{payload}")

    @classmethod
    def from_bytes(cls, raw: bytes, mime_type: str) -> EncodedImage:
        return cls.from_base64(base64.b64encode(raw).decode("ascii"), mime_type)

    @classmethod
    def parse(cls, value: str) -> EncodedImage:
        """Accept a data URI, or a bare base64 string which is assumed to be JPEG."""
        if value.startswith("data:"):
            return cls(value)
        return cls.from_base64(value, "image/jpeg")

    @property
    def mime_type(self) -> str:
        header = self.data_uri.split(",", 1)[0]
        return header[len("data:"):].split(";", 1)[0]

    @property
    def data(self) -> str:
        return self.data_uri.split(",", 1)[1] if "," in self.data_uri else ""


# ---------------------------------------------------------------------------
# Analysis result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ImageQualityCheck:
    is_unclear: bool
    reason: str = ""

    def to_dict(self) -> dict:
        return {"isUnclear": self.is_unclear, "reason": self.reason}

    @classmethod
    def from_dict(cls, data: dict) -> ImageQualityCheck:
        unclear = data["isUnclear"]
        if not isinstance(unclear, bool):
            raise ValueError("'isUnclear' must be a boolean")
        return cls(is_unclear=unclear, reason=str(data.get("reason") or ""))


@dataclass(frozen=True)
class CalorieAnalysis:
    """Product calories against the user's estimated daily need (kcal)."""
    product_calories: int
    user_daily_need: int
    percentage: int
    note: str = ""

    def to_dict(self) -> dict:
        return {
            "productCalories": self.product_calories,
            "userDailyNeed": self.user_daily_need,
            "percentage": self.percentage,
            "note": self.note,
        }

    @classmethod
    def from_dict(cls, data: dict) -> CalorieAnalysis:
        return cls(
            product_calories=_require_int(data, "productCalories"),
            user_daily_need=_require_int(data, "userDailyNeed"),
            percentage=_require_int(data, "percentage"),
            note=str(data.get("note") or ""),
        )


@dataclass(frozen=True)
class RecommendedProduct:
    name: str
    reason: str

    def to_dict(self) -> dict:
        return {"name": self.name, "reason": self.reason}

    @classmethod
    def from_dict(cls, data: dict) -> RecommendedProduct:
        return cls(name=_require_str(data, "name"), reason=_require_str(data, "reason"))


@dataclass(frozen=True)
class AnalysisResult:
    """Structured verdict returned by the analysis service.

    When image_quality_check.is_unclear is True every other field is
    meaningless and the result must never reach history.
    """
    image_quality_check: ImageQualityCheck
    summary: str = ""
    pros: list[str] = field(default_factory=list)
    cons: list[str] = field(default_factory=list)
    recommendations: list[RecommendedProduct] = field(default_factory=list)
    calorie_analysis: Optional[CalorieAnalysis] = None

    @property
    def is_unclear(self) -> bool:
        return self.image_quality_check.is_unclear

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "imageQualityCheck": self.image_quality_check.to_dict(),
            "summary": self.summary,
            "pros": list(self.pros),
            "cons": list(self.cons),
            "recommendations": [r.to_dict() for r in self.recommendations],
        }
        if self.calorie_analysis is not None:
            data["calorieAnalysis"] = self.calorie_analysis.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> AnalysisResult:
        if not isinstance(data, dict):
            raise ValueError("analysis result must be an object")
        calories = data.get("calorieAnalysis")
        recommendations = data.get("recommendations", [])
        if not isinstance(recommendations, list):
            raise ValueError("'recommendations' must be a list")
        return cls(
            image_quality_check=ImageQualityCheck.from_dict(data["imageQualityCheck"]),
            summary=str(data.get("summary") or ""),
            pros=_str_list(data, "pros"),
            cons=_str_list(data, "cons"),
            recommendations=[RecommendedProduct.from_dict(r) for r in recommendations],
            calorie_analysis=CalorieAnalysis.from_dict(calories) if calories else None,
        )


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------

def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class HistoryEntry:
    """One past successful scan. Never mutated after creation."""
    id: str
    timestamp: int
    result: AnalysisResult
    image_preview_url: Optional[str] = None

    @classmethod
    def create(
        cls,
        result: AnalysisResult,
        image_preview_url: Optional[str] = None,
        timestamp: Optional[int] = None,
    ) -> HistoryEntry:
        ts = _now_ms() if timestamp is None else timestamp
        return cls(
            id=f"{ts}-{uuid4().hex[:8]}",
            timestamp=ts,
            result=result,
            image_preview_url=image_preview_url,
        )

    def without_preview(self) -> HistoryEntry:
        return HistoryEntry(id=self.id, timestamp=self.timestamp, result=self.result)

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "id": self.id,
            "timestamp": self.timestamp,
            "result": self.result.to_dict(),
        }
        if self.image_preview_url is not None:
            data["imagePreviewUrl"] = self.image_preview_url
        return data

    @classmethod
    def from_dict(cls, data: dict) -> HistoryEntry:
        if not isinstance(data, dict):
            raise ValueError("history entry must be an object")
        preview = data.get("imagePreviewUrl")
        if preview is not None and not isinstance(preview, str):
            raise ValueError("'imagePreviewUrl' must be a string")
        return cls(
            id=_require_str(data, "id"),
            timestamp=_require_int(data, "timestamp"),
            result=AnalysisResult.from_dict(data["result"]),
            image_preview_url=preview,
        )


# ---------------------------------------------------------------------------
# Scan lifecycle
# ---------------------------------------------------------------------------

class ScanState(str, Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    RESOLVED_UNCLEAR = "resolved_unclear"
    RESOLVED_SUCCESS = "resolved_success"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (
            ScanState.RESOLVED_UNCLEAR,
            ScanState.RESOLVED_SUCCESS,
            ScanState.FAILED,
        )


@dataclass(frozen=True)
class ScanSnapshot:
    """Published view of the orchestrator after every transition."""
    state: ScanState
    attempt_id: int
    selection: tuple[EncodedImage, ...] = ()
    result: Optional[AnalysisResult] = None
    error_message: Optional[str] = None

    @property
    def is_busy(self) -> bool:
        return self.state is ScanState.ANALYZING
