"""Analysis API schemas."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.services.ai.synthesis.contracts import EducationalAnalysis


class AnalyzeRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    image_base64: str = Field(..., min_length=1)


class AnalyzeResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    analysis: Optional[EducationalAnalysis] = None
    error: Optional[str] = None


class ApiStatusResponse(BaseModel):
    status: dict[str, bool] = Field(default_factory=dict)
    available: int = 0
    total: int = 0
