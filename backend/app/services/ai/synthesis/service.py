"""Synthesis stage: combine vision, insights and recall into the final analysis.

Features:
- One large fixed JSON template, one generation call, no retry
- Same tolerant parsing as interpretation (fences, first/last brace)
- Confidence and sources computed locally, never taken from the reply
- Locally derived fallback analysis when synthesis is unavailable
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any

import httpx

from app.core.config import Settings, get_settings
from app.services.ai.common import router as ai_router
from app.services.ai.common.audit import log_ai_run
from app.services.ai.common.errors import ProviderUnavailable, SynthesisUnavailable
from app.services.ai.common.json_tools import extract_json_object
from app.services.ai.interpretation.contracts import InterpretationInsight
from app.services.ai.vision import heuristics
from app.services.ai.vision.contracts import VisionObservation, ordered_unique
from app.services.color.analysis import analyze_colors
from app.services.color.contracts import ColorSample
from app.services.recall.contracts import RecallBundle

from .contracts import (
    ColorStudy,
    CompositionAnalysis,
    ComparativeExample,
    DiscussionPrompt,
    EducationalAnalysis,
    HistoricalContext,
    LearningObjective,
    LearningResourceSet,
    MediumAnalysis,
    PaletteEntry,
    ReflectionQuestion,
    StyleAnalysis,
    TechniqueAnalysis,
    ThemeAnalysis,
    VisualElement,
)

logger = logging.getLogger(__name__)

SCOPE = "synthesis"

BASE_CONFIDENCE = 0.5
CONFIDENCE_STEP = 0.1
MAX_CONTEXT_CHARS = 6000

SYNTHESIS_SYSTEM_PROMPT = (
    "You are a master art educator creating comprehensive educational content. "
    "Teach students how to look at and understand art through style, technique, theme, "
    "medium, color and composition. Respond with valid JSON only."
)

SYNTHESIS_TEMPLATE = """{
  "styleAnalysis": {"primaryStyle": "", "styleCharacteristics": [], "movementContext": "", "stylisticInfluences": [], "visualLanguage": "", "educationalInsights": []},
  "techniqueAnalysis": {"primaryTechniques": [], "materialProperties": [], "applicationMethods": [], "technicalInnovations": [], "skillLevel": "", "educationalValue": ""},
  "themeAnalysis": {"primaryThemes": [], "symbolicElements": [], "emotionalTone": "", "culturalContext": "", "narrativeElements": [], "interpretiveApproaches": []},
  "mediumAnalysis": {"primaryMedium": "", "materialCharacteristics": [], "historicalUsage": "", "technicalAdvantages": [], "conservationNotes": "", "educationalSignificance": ""},
  "colorAnalysis": {"colorPalette": [{"hex": "", "name": "", "percentage": 0, "emotionalAssociation": "", "symbolicMeaning": "", "educationalNote": ""}], "colorHarmony": "", "emotionalImpact": "", "symbolicMeaning": "", "colorTheory": "", "educationalInsights": []},
  "compositionAnalysis": {"compositionalPrinciples": [], "visualFlow": "", "focalPoints": [], "spatialRelationships": "", "balanceAndRhythm": "", "educationalApplications": []},
  "reflectionQuestions": [{"category": "observation|interpretation|connection|technique", "question": "", "followUp": "", "educationalGoal": ""}],
  "learningObjectives": [{"skill": "", "description": "", "assessmentMethod": "", "difficulty": "beginner|intermediate|advanced"}],
  "discussionPrompts": [{"topic": "", "question": "", "context": "", "suggestedResponses": []}],
  "artisticMovements": [{"name": "", "timePeriod": "", "characteristics": [], "keyArtists": [], "culturalContext": "", "educationalRelevance": ""}],
  "visualElements": [{"element": "", "description": "", "educationalValue": "", "observationTips": [], "relatedConcepts": []}],
  "comparativeExamples": [{"title": "", "artist": "", "similarity": "", "contrast": "", "educationalValue": "", "imageUrl": ""}],
  "historicalContext": {"timePeriod": "", "culturalBackground": "", "artisticClimate": "", "socialInfluences": [], "educationalSignificance": ""},
  "learningResources": {"keyConcepts": [], "discussionPrompts": [], "learningActivities": [], "vocabulary": []}
}"""


def _context_block(payload: Any) -> str:
    text = json.dumps(payload, ensure_ascii=False, default=str)
    return text[:MAX_CONTEXT_CHARS]


def build_synthesis_prompt(
    observation: VisionObservation,
    insight: InterpretationInsight | None,
    recall: RecallBundle | None,
) -> str:
    vision_data = observation.model_dump(by_alias=True, exclude={"sources"})
    insight_data = insight.model_dump(by_alias=True) if insight else {}
    recall_data = recall.model_dump(by_alias=True, exclude_none=True) if recall else {}
    return (
        "Create a comprehensive educational analysis that teaches students how to look at "
        "and understand art.\n\n"
        f"Vision data: {_context_block(vision_data)}\n"
        f"Initial insights: {_context_block(insight_data)}\n"
        f"Reference data: {_context_block(recall_data)}\n\n"
        "Respond with a JSON object in exactly this shape:\n"
        f"{SYNTHESIS_TEMPLATE}"
    )


def compute_confidence(
    observation: VisionObservation,
    insight: InterpretationInsight | None,
    recall: RecallBundle | None,
) -> float:
    """Base 0.5 plus 0.1 per present upstream signal, capped at 1.0."""
    signals = (
        bool(observation.labels),
        bool(observation.objects),
        bool(observation.colors),
        bool(insight and insight.style_insights),
        bool(recall and recall.historical_context),
    )
    score = BASE_CONFIDENCE + CONFIDENCE_STEP * sum(signals)
    return round(min(score, 1.0), 2)


def collect_sources(
    observation: VisionObservation,
    recall: RecallBundle | None,
    generation_sources: Sequence[str] = (),
) -> list[str]:
    """Provider names actually used, vision first, then generation, then reference."""
    return ordered_unique([*observation.sources, *generation_sources, *(recall.sources if recall else [])])


def parse_synthesis(raw_text: str) -> EducationalAnalysis:
    parsed = extract_json_object(raw_text)
    if parsed is None:
        raise SynthesisUnavailable("Synthesis reply did not contain a JSON object")
    return EducationalAnalysis.from_reply(parsed)


async def synthesize(
    observation: VisionObservation,
    insight: InterpretationInsight | None,
    recall: RecallBundle | None,
    *,
    palette: Sequence[ColorSample] | None = None,
    upstream_sources: Sequence[str] = (),
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> EducationalAnalysis:
    """Generate the educational analysis with one text-generation call.

    Raises:
        SynthesisUnavailable: credential missing, call failed, or the
            reply could not be parsed.
    """
    settings = settings or get_settings()
    try:
        cfg = ai_router.resolve(SCOPE, settings=settings, transport=transport)
    except ProviderUnavailable as exc:
        raise SynthesisUnavailable(str(exc)) from exc

    prompt = build_synthesis_prompt(observation, insight, recall)
    try:
        result = await cfg.provider.generate(
            prompt,
            system_prompt=SYNTHESIS_SYSTEM_PROMPT,
            model=cfg.model,
            temperature=cfg.temperature,
            max_tokens=cfg.max_tokens,
            timeout_seconds=cfg.timeout_seconds,
        )
    except (httpx.HTTPError, KeyError, ValueError) as exc:
        logger.warning("Synthesis call failed: %s", exc)
        raise SynthesisUnavailable(f"{cfg.provider.name} call failed") from exc

    analysis = parse_synthesis(result.raw_text)
    log_ai_run(
        scope=SCOPE,
        provider_result=result,
        prompt_text=prompt,
        parsed_output={"keys": sorted(analysis.model_fields_set)},
        settings=settings,
    )

    updates: dict[str, Any] = {
        "confidence": compute_confidence(observation, insight, recall),
        "sources": collect_sources(observation, recall, [*upstream_sources, cfg.provider.label]),
        "palette": list(palette or []),
    }
    if not analysis.title:
        updates["title"] = heuristics.title_for(observation)
    if not analysis.color_analysis.color_palette and palette:
        updates["color_analysis"] = analysis.color_analysis.model_copy(
            update={"color_palette": _palette_entries(palette)}
        )
    return analysis.model_copy(update=updates)


def _palette_entries(palette: Sequence[ColorSample]) -> list[PaletteEntry]:
    return [PaletteEntry(hex=s.hex, name=s.name, percentage=s.percentage) for s in palette]


def build_fallback_analysis(
    observation: VisionObservation,
    insight: InterpretationInsight | None,
    recall: RecallBundle | None,
    *,
    palette: Sequence[ColorSample] | None = None,
    upstream_sources: Sequence[str] = (),
) -> EducationalAnalysis:
    """Assemble an analysis from upstream data alone, without a generation call."""
    insight = insight or InterpretationInsight()
    recall = recall or RecallBundle()
    samples = list(palette or [])
    color = recall.color_analysis or analyze_colors(samples)
    emotion = recall.emotional_analysis
    history = recall.historical_context
    resources = recall.learning_resources

    title = heuristics.title_for(observation)
    if heuristics.reads_as_photo(observation):
        style, period = "Photographic Image", heuristics.PHOTO_NOTE
        techniques = insight.technique_insights or ["Photography"]
    else:
        style = heuristics.identify_style(observation)
        period = heuristics.estimate_period(observation)
        techniques = insight.technique_insights or heuristics.identify_techniques(observation)
    elements = heuristics.identify_elements(observation)
    texture_types = recall.texture_analysis.texture_types if recall.texture_analysis else []

    questions = insight.reflection_questions or [
        "What do you notice first when you look at this work?",
        "How do the colors and shapes guide your eye?",
    ]
    prompts = resources.discussion_prompts if resources else []

    return EducationalAnalysis(
        title=title,
        style_analysis=StyleAnalysis(
            primary_style=style,
            style_characteristics=insight.style_insights or [style],
            movement_context=period,
            educational_insights=insight.style_insights,
        ),
        technique_analysis=TechniqueAnalysis(
            primary_techniques=techniques,
            material_properties=texture_types,
            educational_value=recall.texture_analysis.educational_value if recall.texture_analysis else "",
        ),
        theme_analysis=ThemeAnalysis(
            primary_themes=insight.theme_insights or observation.labels[:3],
            emotional_tone=emotion.mood if emotion else color.mood,
            cultural_context=", ".join(history.cultures) if history else "",
        ),
        medium_analysis=MediumAnalysis(
            primary_medium=insight.medium_insights[0] if insight.medium_insights else "",
            material_characteristics=insight.medium_insights[1:],
        ),
        color_analysis=ColorStudy(
            color_palette=_palette_entries(samples),
            color_harmony=color.harmony,
            emotional_impact=color.mood,
            color_theory=f"The palette reads as {color.harmony} with a {color.temperature} temperature.",
            educational_insights=color.insights,
        ),
        composition_analysis=CompositionAnalysis(
            compositional_principles=elements,
            focal_points=observation.objects[:3],
        ),
        reflection_questions=[ReflectionQuestion(question=q) for q in questions],
        learning_objectives=[LearningObjective(description=o) for o in insight.learning_objectives],
        discussion_prompts=[DiscussionPrompt(question=p) for p in prompts],
        visual_elements=[VisualElement(element=e.split(" ", 1)[0], description=e) for e in elements],
        comparative_examples=[
            ComparativeExample(
                title=a.title,
                artist=a.artist,
                similarity=f"Found in the {a.source} collection for a related search",
                image_url=a.image_url,
            )
            for a in recall.similar_artworks or []
        ],
        historical_context=HistoricalContext(
            time_period=", ".join(history.periods or history.dates) if history else "",
            cultural_background=", ".join(history.cultures) if history else "",
            educational_significance=history.summary if history else "",
        ),
        learning_resources=LearningResourceSet(
            key_concepts=resources.key_concepts if resources else [],
            discussion_prompts=prompts,
            learning_activities=resources.learning_activities if resources else [],
            vocabulary=resources.vocabulary if resources else [],
        ),
        palette=samples,
        confidence=compute_confidence(observation, insight, recall),
        sources=collect_sources(observation, recall, upstream_sources),
        fallback=True,
    )
