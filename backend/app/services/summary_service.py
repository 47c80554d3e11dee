"""Summary compositor producing a fixed-length, 40-sentence educational narrative.

Twenty topic slots are filled in a fixed order, each with the best real
sentence available upstream or a canned sentence. Further real sentences
(questions, comparisons, vocabulary) follow, and ``PADDING_SENTENCE``
repeats until the narrative holds exactly ``TOTAL_UNITS`` sentences.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from functools import cached_property

from app.services.ai.interpretation.contracts import InterpretationInsight
from app.services.ai.synthesis.contracts import EducationalAnalysis
from app.services.ai.vision import heuristics
from app.services.ai.vision.contracts import VisionObservation
from app.services.color.analysis import analyze_colors
from app.services.color.contracts import ColorAnalysis, ColorSample
from app.services.recall.contracts import RecallBundle

TOTAL_UNITS = 40

PADDING_SENTENCE = "Returning to the work with fresh eyes often reveals details that were missed at first glance."

# A sentence boundary is a terminator followed by whitespace.
_BOUNDARY_RE = re.compile(r"(?<=[.!?])\s+")


@dataclass(frozen=True)
class PipelineResults:
    """Everything the pipeline gathered; every member may be absent."""

    observation: VisionObservation | None = None
    palette: Sequence[ColorSample] = field(default_factory=tuple)
    analysis: EducationalAnalysis | None = None


def as_sentence(text: str | None) -> str:
    """Normalise *text* to exactly one sentence-unit, or ``""``."""
    if not text:
        return ""
    collapsed = " ".join(str(text).split())
    if not collapsed:
        return ""
    first = _BOUNDARY_RE.split(collapsed, maxsplit=1)[0].strip()
    if not first:
        return ""
    if first[-1] not in ".!?":
        first += "."
    return first[0].upper() + first[1:]


def sentence_units(narrative: str) -> list[str]:
    """Split a narrative back into its sentence-units."""
    return [u for u in _BOUNDARY_RE.split(narrative.strip()) if u]


def _join_natural(items: Sequence[str]) -> str:
    items = [i for i in items if i]
    if len(items) <= 1:
        return "".join(items)
    return f"{', '.join(items[:-1])} and {items[-1]}"


def _first(*candidates: Iterable[str] | str | None) -> str | None:
    for candidate in candidates:
        if not candidate:
            continue
        if isinstance(candidate, str):
            return candidate
        for item in candidate:
            if item:
                return item
    return None


def _lower_first(text: str) -> str:
    return text[:1].lower() + text[1:] if text else text


class _Sources:
    """Read-only view over upstream data with ``None`` treated as empty."""

    def __init__(
        self,
        results: PipelineResults,
        insight: InterpretationInsight | None,
        recall: RecallBundle | None,
    ) -> None:
        self.observation = results.observation or VisionObservation()
        self.palette = list(results.palette or [])
        self.analysis = results.analysis
        self.insight = insight or InterpretationInsight()
        self.recall = recall or RecallBundle()

    @cached_property
    def colors(self) -> ColorAnalysis | None:
        if self.recall.color_analysis is not None:
            return self.recall.color_analysis
        if self.palette:
            return analyze_colors(self.palette)
        return None


def _opening(src: _Sources) -> str | None:
    labels = src.observation.labels[:3]
    if not labels:
        return None
    if heuristics.reads_as_photo(src.observation):
        return f"This image reads as a photograph of {_join_natural(labels)} rather than an artwork"
    if src.analysis and src.analysis.title:
        return f"{src.analysis.title} presents {_join_natural(labels)}"
    return f"At first glance the artwork presents {_join_natural(labels)}"


def _technique(src: _Sources) -> str | None:
    technique = _first(
        src.analysis.technique_analysis.primary_techniques if src.analysis else None,
        src.insight.technique_insights,
    )
    return f"A key technique at work is {_lower_first(technique)}" if technique else None


def _composition(src: _Sources) -> str | None:
    if src.analysis and src.analysis.composition_analysis.visual_flow:
        return src.analysis.composition_analysis.visual_flow
    if src.observation.objects:
        return f"The composition is organised around {_join_natural(src.observation.objects[:2])}"
    return None


def _dominant_colors(src: _Sources) -> str | None:
    if not src.palette:
        return None
    parts = [f"{s.name.lower()} ({s.percentage:.0f}%)" for s in src.palette[:3]]
    return f"The dominant colors are {_join_natural(parts)}"


def _temperature(src: _Sources) -> str | None:
    return f"Overall the palette is {src.colors.temperature} in temperature" if src.colors else None


def _harmony(src: _Sources) -> str | None:
    return f"The hues form a {src.colors.harmony} color harmony" if src.colors else None


def _mood(src: _Sources) -> str | None:
    return f"The color mood reads as {src.colors.mood}" if src.colors else None


def _insight_one(src: _Sources) -> str | None:
    return _first(src.insight.style_insights)


def _insight_two(src: _Sources) -> str | None:
    return _first(src.insight.theme_insights, src.insight.style_insights[1:])


def _composition_notes(src: _Sources) -> str | None:
    if not src.analysis:
        return None
    comp = src.analysis.composition_analysis
    return _first(comp.balance_and_rhythm, comp.spatial_relationships, comp.compositional_principles)


def _color_theory(src: _Sources) -> str | None:
    theory = src.analysis.color_analysis.color_theory if src.analysis else ""
    return _first(theory, src.colors.insights if src.colors else None)


def _technical_analysis(src: _Sources) -> str | None:
    medium = src.analysis.medium_analysis.primary_medium if src.analysis else ""
    if medium:
        return f"The medium appears to be {_lower_first(medium)}"
    return _first(src.insight.medium_insights)


def _themes(src: _Sources) -> str | None:
    themes = src.analysis.theme_analysis.primary_themes[:3] if src.analysis else []
    if themes:
        return f"Key themes include {_join_natural([_lower_first(t) for t in themes])}"
    return None


def _emotional_impact(src: _Sources) -> str | None:
    if src.analysis:
        impact = _first(src.analysis.color_analysis.emotional_impact, src.analysis.theme_analysis.emotional_tone)
        if impact:
            return f"Emotionally, the work feels {_lower_first(impact)}"
    emotion = src.recall.emotional_analysis
    return _first(emotion.insights) if emotion else None


def _historical_context(src: _Sources) -> str | None:
    period = src.analysis.historical_context.time_period if src.analysis else ""
    if period:
        return f"Historically, the work connects to {period}"
    history = src.recall.historical_context
    if history and (history.periods or history.dates):
        return f"Related collection records point to {_join_natural((history.periods or history.dates)[:2])}"
    return None


def _cultural_context(src: _Sources) -> str | None:
    background = ""
    if src.analysis:
        background = src.analysis.historical_context.cultural_background or src.analysis.theme_analysis.cultural_context
    if background:
        return f"Culturally, it reflects {_lower_first(background)}"
    history = src.recall.historical_context
    if history and history.cultures:
        return f"Comparable works come from {_join_natural(history.cultures[:2])} traditions"
    return None


def _educational_excerpt(src: _Sources) -> str | None:
    wiki = src.recall.wikipedia_data
    return wiki.extract if wiki and wiki.extract else None


def _learning_objective(src: _Sources) -> str | None:
    objective = _first(
        [o.description or o.skill for o in src.analysis.learning_objectives] if src.analysis else None,
        src.insight.learning_objectives,
    )
    return f"A learning goal for this work is to {_lower_first(objective)}" if objective else None


def _discussion_prompt(src: _Sources) -> str | None:
    return _first(
        [p.question for p in src.analysis.discussion_prompts] if src.analysis else None,
        src.insight.reflection_questions,
        src.recall.learning_resources.discussion_prompts if src.recall.learning_resources else None,
    )


def _closing(src: _Sources) -> str | None:
    style = src.analysis.style_analysis.primary_style if src.analysis else ""
    if style:
        return f"As an example of {style}, the work rewards close study of how each choice shapes meaning"
    return None


TOPIC_SLOTS: tuple[tuple[Callable[[_Sources], str | None], str], ...] = (
    (_opening, "This artwork invites careful, unhurried looking."),
    (_technique, "The way the material is handled tells us how the work was made."),
    (_composition, "The arrangement of shapes guides the eye across the picture."),
    (_dominant_colors, "Color plays a central role in how the work is experienced."),
    (_temperature, "Warm and cool colors each contribute to the atmosphere."),
    (_harmony, "The relationship between hues creates a sense of harmony or tension."),
    (_mood, "The palette sets an overall mood for the viewer."),
    (_insight_one, "Style can be read in the shapes, lines and surfaces the artist chose."),
    (_insight_two, "Subject matter and style work together to express an idea."),
    (_composition_notes, "Balance and rhythm keep the composition unified."),
    (_color_theory, "Color theory helps explain why certain combinations feel vivid or calm."),
    (_technical_analysis, "The choice of medium affects texture, color and permanence."),
    (_themes, "Themes emerge from what is shown and how it is shown."),
    (_emotional_impact, "The work can provoke different emotional responses in different viewers."),
    (_historical_context, "Every artwork is shaped by the time in which it was made."),
    (_cultural_context, "Cultural context influences both the making and the reading of art."),
    (_educational_excerpt, "Researching related artists and movements deepens understanding."),
    (_learning_objective, "Looking closely trains the ability to describe what we see."),
    (_discussion_prompt, "What do you notice first, and why?"),
    (_closing, "Close looking turns an image into a conversation with the artist."),
)


def _supplementary(src: _Sources) -> list[str]:
    """Further real sentences, in a fixed order."""
    out: list[str] = []
    if src.analysis:
        out += [q.question for q in src.analysis.reflection_questions]
        out += [f"One stylistic characteristic is {_lower_first(c)}" for c in src.analysis.style_analysis.style_characteristics]
        out += [
            f"Compare it with {e.title}" + (f" by {e.artist}" if e.artist else "")
            for e in src.analysis.comparative_examples
            if e.title
        ]
        out += [e.description for e in src.analysis.visual_elements]
    out += src.insight.reflection_questions[1:]
    out += [
        f"A related work is {a.title}" + (f" by {a.artist}" if a.artist else "")
        for a in src.recall.similar_artworks or []
    ]
    if src.recall.texture_analysis:
        out += [f"The surface shows {_lower_first(t)}" for t in src.recall.texture_analysis.texture_types]
    if src.recall.learning_resources:
        out += src.recall.learning_resources.vocabulary
        out += src.recall.learning_resources.learning_activities
    return out


def compose_summary(
    results: PipelineResults | None,
    insight: InterpretationInsight | None = None,
    recall: RecallBundle | None = None,
) -> str:
    """Build the narrative; always exactly ``TOTAL_UNITS`` sentence-units."""
    src = _Sources(results or PipelineResults(), insight, recall)

    units: list[str] = []
    for build, canned in TOPIC_SLOTS:
        units.append(as_sentence(build(src)) or canned)

    for text in _supplementary(src):
        if len(units) == TOTAL_UNITS:
            break
        sentence = as_sentence(text)
        if sentence and sentence not in units:
            units.append(sentence)

    units.extend([PADDING_SENTENCE] * (TOTAL_UNITS - len(units)))
    return " ".join(units)
