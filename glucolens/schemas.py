# glucolens/schemas.py
# Pydantic models for the request payload, the analysis result and the API responses.
# The result models double as the schema declarations sent to Gemini (see declarations.py).

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


# -----------------------------------------------------------------------------
# Inbound
# -----------------------------------------------------------------------------
class AnalysisPayload(_CamelModel):
    """JSON body posted by the client app."""

    image_base64: str = Field(..., min_length=1, description="Photo bytes, base64 encoded.")
    mime_type: str = Field(..., min_length=1, examples=["image/jpeg"])

    @field_validator("image_base64", mode="before")
    @classmethod
    def _drop_data_url_prefix(cls, value: Any) -> Any:
        # Browsers hand out "data:image/jpeg;base64,...." from FileReader.
        value = _strip(value)
        if isinstance(value, str) and value.startswith("data:") and "," in value:
            value = value.split(",", 1)[1]
        return value

    @field_validator("mime_type", mode="before")
    @classmethod
    def _normalize_mime(cls, value: Any) -> Any:
        value = _strip(value)
        return value.lower() if isinstance(value, str) else value


class AnalysisRequest(BaseModel):
    """Validated, decoded request. Lives for one request only."""

    model_config = ConfigDict(frozen=True)

    image_data: bytes = Field(..., min_length=1, repr=False)
    mime_type: str = Field(..., min_length=1)


# -----------------------------------------------------------------------------
# Analysis result
# -----------------------------------------------------------------------------
class Carbohydrates(_CamelModel):
    total: float = Field(..., ge=0, description="Total carbohydrates in grams.")
    sugars: float = Field(..., ge=0, description="Sugars in grams.")
    fiber: float = Field(..., ge=0, description="Dietary fiber in grams.")


class NutritionReport(_CamelModel):
    food_name: str = Field(..., min_length=1, description="Name of the dish, e.g. 'Chicken breast salad'.")
    calories: float = Field(..., ge=0, description="Total energy in kcal.")
    carbohydrates: Carbohydrates = Field(..., description="Carbohydrate breakdown.")
    protein: float = Field(..., ge=0, description="Protein in grams.")
    fat: float = Field(..., ge=0, description="Total fat in grams.")
    glycemic_index: float = Field(..., ge=1, le=100, description="Estimated glycemic index (1-100).")

    @field_validator("food_name", mode="before")
    @classmethod
    def _strip_name(cls, value: Any) -> Any:
        return _strip(value)


class ImpactLevel(str, Enum):
    STABLE = "STABLE"
    MODERATE = "MODERATE"
    HIGH = "HIGH"


class ImpactAssessment(_CamelModel):
    level: ImpactLevel = Field(
        ...,
        description="Blood glucose impact: 'STABLE', 'MODERATE' or 'HIGH'.",
    )
    explanation: str = Field(..., min_length=1, description="Short, plain explanation for a person with diabetes.")

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, value: Any) -> Any:
        # Casing and padding are fixed up; anything outside the enum is still rejected.
        value = _strip(value)
        return value.upper() if isinstance(value, str) else value

    @field_validator("explanation", mode="before")
    @classmethod
    def _strip_explanation(cls, value: Any) -> Any:
        return _strip(value)


class AnalysisResult(_CamelModel):
    nutrition: NutritionReport = Field(..., description="Nutrition estimate for the whole meal.")
    impact: ImpactAssessment = Field(..., description="Expected blood glucose impact.")

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# -----------------------------------------------------------------------------
# API responses
# -----------------------------------------------------------------------------
class HealthResponse(BaseModel):
    status: str = Field(..., examples=["ok"])
    has_gemini_key: bool
    model: str
    strategy: str


class ErrorResponse(BaseModel):
    error: str
