"""Pydantic models for REST API request/response validation."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from vitalscope.domain.models import HistoryEntry, Profile, ScanSnapshot


# --- Profile ---

class ProfileBody(BaseModel):
    age: str = ""
    gender: Literal["male", "female", "other", ""] = ""
    healthContext: str = ""
    consent: Optional[bool] = Field(
        None,
        description="Consent for this form session. Required on first setup; "
                    "defaults to the edit policy when the profile is already configured.",
    )


class ProfileOut(BaseModel):
    age: str
    gender: str
    healthContext: str
    configured: bool

    @classmethod
    def from_domain(cls, profile: Profile) -> ProfileOut:
        return cls(**profile.to_dict(), configured=profile.is_configured)


# --- Scan ---

class ScanOut(BaseModel):
    state: str
    attemptId: int
    imageCount: int
    result: Optional[dict[str, Any]] = None
    error: Optional[str] = None

    @classmethod
    def from_snapshot(cls, snapshot: ScanSnapshot) -> ScanOut:
        return cls(
            state=snapshot.state.value,
            attemptId=snapshot.attempt_id,
            imageCount=len(snapshot.selection),
            result=snapshot.result.to_dict() if snapshot.result else None,
            error=snapshot.error_message,
        )


class UploadOut(BaseModel):
    accepted: int
    rejected: int
    imageCount: int


# --- History ---

class HistoryItemOut(BaseModel):
    id: str
    timestamp: int
    summary: str
    productCalories: Optional[int] = None
    hasPreview: bool


class HistoryEntryOut(BaseModel):
    id: str
    timestamp: int
    result: dict[str, Any]
    imagePreviewUrl: Optional[str] = None

    @classmethod
    def from_domain(cls, entry: HistoryEntry) -> HistoryEntryOut:
        return cls(**entry.to_dict())


def history_item(entry: HistoryEntry) -> HistoryItemOut:
    calories = entry.result.calorie_analysis
    return HistoryItemOut(
        id=entry.id,
        timestamp=entry.timestamp,
        summary=entry.result.summary,
        productCalories=calories.product_calories if calories else None,
        hasPreview=entry.image_preview_url is not None,
    )
