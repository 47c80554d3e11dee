"""Interpretation scope contracts."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.services.ai.common.json_tools import as_str_list

INSIGHT_FIELDS = (
    "style_insights",
    "technique_insights",
    "theme_insights",
    "medium_insights",
    "reflection_questions",
    "learning_objectives",
)


class InterpretationInsight(BaseModel):
    """Keyed bag of string lists; every key is optional."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    style_insights: list[str] = Field(default_factory=list)
    technique_insights: list[str] = Field(default_factory=list)
    theme_insights: list[str] = Field(default_factory=list)
    medium_insights: list[str] = Field(default_factory=list)
    reflection_questions: list[str] = Field(default_factory=list)
    learning_objectives: list[str] = Field(default_factory=list)

    @field_validator(*INSIGHT_FIELDS, mode="before")
    @classmethod
    def _tolerate(cls, value: Any) -> list[str]:
        return as_str_list(value)

    @classmethod
    def from_reply(cls, payload: dict[str, Any]) -> "InterpretationInsight":
        """Build from a parsed reply, ignoring unknown or malformed keys."""
        return cls.model_validate({k: v for k, v in payload.items() if isinstance(k, str)})

    @property
    def is_empty(self) -> bool:
        return not any(getattr(self, f) for f in INSIGHT_FIELDS)
