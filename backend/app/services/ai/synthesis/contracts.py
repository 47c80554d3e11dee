"""Synthesis scope contracts for the final educational analysis.

Every record is partial: any key may be missing or malformed in a
generated reply, so each field coerces to its default instead of failing.
"""

from __future__ import annotations

import types
import typing
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from app.services.ai.common.json_tools import as_float, as_str, as_str_list
from app.services.color.contracts import ColorSample

DIFFICULTIES = ("beginner", "intermediate", "advanced")
QUESTION_CATEGORIES = ("observation", "interpretation", "connection", "technique")


def _unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    origin = typing.get_origin(annotation)
    if origin in (typing.Union, types.UnionType):
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0], True
    return annotation, False


def _is_model(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, BaseModel)


def coerce_field(annotation: Any, value: Any) -> Any:
    """Best-effort coercion of a reply value toward *annotation*."""
    tp, optional = _unwrap_optional(annotation)
    if optional and value is None:
        return None
    if tp is str:
        return as_str(value)
    if tp is float:
        return as_float(value)
    if _is_model(tp):
        if isinstance(value, (dict, BaseModel)):
            return value
        return None if optional else {}
    if typing.get_origin(tp) is list:
        (item_tp,) = typing.get_args(tp) or (Any,)
        if item_tp is str:
            return as_str_list(value)
        if _is_model(item_tp):
            if not isinstance(value, list):
                return []
            text_field = getattr(item_tp, "text_field", None)
            items: list[Any] = []
            for item in value:
                if isinstance(item, (dict, BaseModel)):
                    items.append(item)
                elif text_field and isinstance(item, str) and item.strip():
                    items.append({text_field: item.strip()})
            return items
    return value


class PartialRecord(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    # Field that a bare string list item is promoted into.
    text_field: ClassVar[str | None] = None

    @field_validator("*", mode="before")
    @classmethod
    def _coerce(cls, value: Any, info: ValidationInfo) -> Any:
        field = cls.model_fields.get(info.field_name or "")
        if field is None:
            return value
        return coerce_field(field.annotation, value)


class StyleAnalysis(PartialRecord):
    primary_style: str = ""
    style_characteristics: list[str] = Field(default_factory=list)
    movement_context: str = ""
    stylistic_influences: list[str] = Field(default_factory=list)
    visual_language: str = ""
    educational_insights: list[str] = Field(default_factory=list)


class TechniqueAnalysis(PartialRecord):
    primary_techniques: list[str] = Field(default_factory=list)
    material_properties: list[str] = Field(default_factory=list)
    application_methods: list[str] = Field(default_factory=list)
    technical_innovations: list[str] = Field(default_factory=list)
    skill_level: str = ""
    educational_value: str = ""


class ThemeAnalysis(PartialRecord):
    primary_themes: list[str] = Field(default_factory=list)
    symbolic_elements: list[str] = Field(default_factory=list)
    emotional_tone: str = ""
    cultural_context: str = ""
    narrative_elements: list[str] = Field(default_factory=list)
    interpretive_approaches: list[str] = Field(default_factory=list)


class MediumAnalysis(PartialRecord):
    primary_medium: str = ""
    material_characteristics: list[str] = Field(default_factory=list)
    historical_usage: str = ""
    technical_advantages: list[str] = Field(default_factory=list)
    conservation_notes: str = ""
    educational_significance: str = ""


class PaletteEntry(PartialRecord):
    hex: str = ""
    name: str = ""
    percentage: float = 0.0
    emotional_association: str = ""
    symbolic_meaning: str = ""
    educational_note: str = ""


class ColorStudy(PartialRecord):
    color_palette: list[PaletteEntry] = Field(default_factory=list)
    color_harmony: str = ""
    emotional_impact: str = ""
    symbolic_meaning: str = ""
    color_theory: str = ""
    educational_insights: list[str] = Field(default_factory=list)


class CompositionAnalysis(PartialRecord):
    compositional_principles: list[str] = Field(default_factory=list)
    visual_flow: str = ""
    focal_points: list[str] = Field(default_factory=list)
    spatial_relationships: str = ""
    balance_and_rhythm: str = ""
    educational_applications: list[str] = Field(default_factory=list)


class ReflectionQuestion(PartialRecord):
    text_field: ClassVar[str | None] = "question"

    category: str = "observation"
    question: str = ""
    follow_up: str = ""
    educational_goal: str = ""

    @field_validator("category", mode="after")
    @classmethod
    def _known_category(cls, value: str) -> str:
        value = value.lower()
        return value if value in QUESTION_CATEGORIES else "observation"


class LearningObjective(PartialRecord):
    text_field: ClassVar[str | None] = "description"

    skill: str = ""
    description: str = ""
    assessment_method: str = ""
    difficulty: str = "beginner"

    @field_validator("difficulty", mode="after")
    @classmethod
    def _known_difficulty(cls, value: str) -> str:
        value = value.lower()
        return value if value in DIFFICULTIES else "beginner"


class DiscussionPrompt(PartialRecord):
    text_field: ClassVar[str | None] = "question"

    topic: str = ""
    question: str = ""
    context: str = ""
    suggested_responses: list[str] = Field(default_factory=list)


class ArtisticMovement(PartialRecord):
    text_field: ClassVar[str | None] = "name"

    name: str = ""
    time_period: str = ""
    characteristics: list[str] = Field(default_factory=list)
    key_artists: list[str] = Field(default_factory=list)
    cultural_context: str = ""
    educational_relevance: str = ""


class VisualElement(PartialRecord):
    text_field: ClassVar[str | None] = "description"

    element: str = ""
    description: str = ""
    educational_value: str = ""
    observation_tips: list[str] = Field(default_factory=list)
    related_concepts: list[str] = Field(default_factory=list)


class ComparativeExample(PartialRecord):
    text_field: ClassVar[str | None] = "title"

    title: str = ""
    artist: str = ""
    similarity: str = ""
    contrast: str = ""
    educational_value: str = ""
    image_url: str = ""


class HistoricalContext(PartialRecord):
    time_period: str = ""
    cultural_background: str = ""
    artistic_climate: str = ""
    social_influences: list[str] = Field(default_factory=list)
    educational_significance: str = ""


class LearningResourceSet(PartialRecord):
    key_concepts: list[str] = Field(default_factory=list)
    discussion_prompts: list[str] = Field(default_factory=list)
    learning_activities: list[str] = Field(default_factory=list)
    vocabulary: list[str] = Field(default_factory=list)


class AnalysisStage(PartialRecord):
    stage: str
    description: str = ""
    apis_used: list[str] = Field(default_factory=list)
    insights: list[str] = Field(default_factory=list)
    timestamp: str = ""


class EducationalAnalysis(PartialRecord):
    """Final artifact of one analysis request; never mutated after construction."""

    title: str = ""
    style_analysis: StyleAnalysis = Field(default_factory=StyleAnalysis)
    technique_analysis: TechniqueAnalysis = Field(default_factory=TechniqueAnalysis)
    theme_analysis: ThemeAnalysis = Field(default_factory=ThemeAnalysis)
    medium_analysis: MediumAnalysis = Field(default_factory=MediumAnalysis)
    color_analysis: ColorStudy = Field(default_factory=ColorStudy)
    composition_analysis: CompositionAnalysis = Field(default_factory=CompositionAnalysis)
    reflection_questions: list[ReflectionQuestion] = Field(default_factory=list)
    learning_objectives: list[LearningObjective] = Field(default_factory=list)
    discussion_prompts: list[DiscussionPrompt] = Field(default_factory=list)
    artistic_movements: list[ArtisticMovement] = Field(default_factory=list)
    visual_elements: list[VisualElement] = Field(default_factory=list)
    comparative_examples: list[ComparativeExample] = Field(default_factory=list)
    historical_context: HistoricalContext = Field(default_factory=HistoricalContext)
    learning_resources: LearningResourceSet = Field(default_factory=LearningResourceSet)

    palette: list[ColorSample] = Field(default_factory=list)
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    sources: list[str] = Field(default_factory=list)
    narrative: str = ""
    analysis_stages: list[AnalysisStage] = Field(default_factory=list)
    fallback: bool = False

    @classmethod
    def from_reply(cls, payload: dict[str, Any]) -> "EducationalAnalysis":
        """Build from a parsed reply; metadata keys in the reply are ignored."""
        reserved = {"palette", "confidence", "sources", "narrative", "analysisStages", "fallback"}
        return cls.model_validate({k: v for k, v in payload.items() if isinstance(k, str) and k not in reserved})
