"""
infrastructure.llm.schema - Pydantic schema for the analysis reply.

Validates the JSON the model returns before it becomes a domain
AnalysisResult. A missing or null calorieAnalysis means "no calorie data".
When the image is unclear the other fields may be absent or dummy values,
so they are dropped before validation and only imageQualityCheck is read.
Calorie numbers are rounded to whole kcal and percent.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from vitalscope.domain.models import (
    AnalysisResult,
    CalorieAnalysis,
    ImageQualityCheck,
    RecommendedProduct,
)


class ImageQualityCheckPayload(BaseModel):
    isUnclear: bool = Field(
        ..., description="True if the image is too blurry, dark, or the product cannot be identified.",
    )
    reason: str = Field("", description="Why the image is unclear (if applicable).")


class CalorieAnalysisPayload(BaseModel):
    productCalories: int = Field(
        ..., description="Estimated calories of the product in kcal.",
    )
    userDailyNeed: int = Field(
        ..., description="Estimated total daily energy expenditure for this user in kcal.",
    )
    percentage: int = Field(
        ..., description="Share of the daily need this product represents, in percent.",
    )
    note: str = Field("", description="Brief explanation of the calorie estimate.")

    @field_validator("productCalories", "userDailyNeed", "percentage", mode="before")
    @classmethod
    def _round_fractional(cls, value: Any) -> Any:
        if isinstance(value, float):
            return round(value)
        return value


class RecommendedProductPayload(BaseModel):
    name: str = Field(..., description="Name of a recommended product.")
    reason: str = Field(..., description="Short reason why this is good for the user.")


class AnalysisPayload(BaseModel):
    imageQualityCheck: ImageQualityCheckPayload
    calorieAnalysis: Optional[CalorieAnalysisPayload] = None
    summary: str = Field("", description="Concise summary of the product analysis.")
    pros: list[str] = Field(default_factory=list, description="Health benefits for this user.")
    cons: list[str] = Field(default_factory=list, description="Health risks for this user.")
    recommendations: list[RecommendedProductPayload] = Field(
        default_factory=list, description="Three products that suit the user's needs better.",
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_fields_when_unclear(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        check = data.get("imageQualityCheck")
        if isinstance(check, dict) and check.get("isUnclear") is True:
            return {
                "imageQualityCheck": {"isUnclear": True, "reason": check.get("reason") or ""},
            }
        return data

    def to_domain(self) -> AnalysisResult:
        calories = self.calorieAnalysis
        return AnalysisResult(
            image_quality_check=ImageQualityCheck(
                is_unclear=self.imageQualityCheck.isUnclear,
                reason=self.imageQualityCheck.reason,
            ),
            summary=self.summary,
            pros=list(self.pros),
            cons=list(self.cons),
            recommendations=[
                RecommendedProduct(name=r.name, reason=r.reason)
                for r in self.recommendations
            ],
            calorie_analysis=(
                CalorieAnalysis(
                    product_calories=calories.productCalories,
                    user_daily_need=calories.userDailyNeed,
                    percentage=calories.percentage,
                    note=calories.note,
                )
                if calories is not None else None
            ),
        )
