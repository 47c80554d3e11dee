"""Recall slots derived locally from data already gathered."""

from __future__ import annotations

from app.services.ai.interpretation.contracts import InterpretationInsight
from app.services.ai.vision.contracts import VisionObservation, ordered_unique
from app.services.color.contracts import ColorAnalysis

from .contracts import (
    EmotionalAnalysis,
    HistoricalContextNote,
    LearningResources,
    MuseumResult,
    TextureAnalysis,
    WikipediaSummary,
)
from .predicates import history_mentions, mentions_any

TEXTURE_VOCABULARY = {
    "impasto": "Impasto",
    "palette knife": "Palette-knife application",
    "brush": "Visible brushwork",
    "glaz": "Glazing",
    "stippl": "Stippling",
    "scumbl": "Scumbling",
    "canvas": "Canvas weave",
    "texture": "Textured surface",
}

MOOD_TONES = {
    "energetic": ["excitement", "vitality"],
    "dramatic": ["tension", "gravity"],
    "muted": ["restraint", "reflection"],
    "airy": ["lightness", "serenity"],
    "balanced": ["harmony", "calm"],
}

EMOTION_KEYWORDS = (
    "joy",
    "calm",
    "peace",
    "melanchol",
    "sorrow",
    "grief",
    "tension",
    "serene",
    "nostalg",
    "hope",
    "fear",
    "love",
    "mood",
    "emotion",
)

# Term -> short definition; terms are matched against labels and insights.
ART_GLOSSARY = {
    "impasto": "Impasto: paint applied thickly so that strokes stand out from the surface",
    "brush": "Brushwork: the visible handling of paint by the artist's brush",
    "composition": "Composition: the arrangement of visual elements within the frame",
    "perspective": "Perspective: techniques for representing depth on a flat surface",
    "portrait": "Portrait: a depiction of a specific person, often focused on the face",
    "landscape": "Landscape: a depiction of natural scenery such as land, water and sky",
    "still life": "Still life: an arrangement of inanimate objects as subject matter",
    "abstract": "Abstraction: imagery that departs from literal representation",
    "light": "Chiaroscuro: the modelling of form through contrasts of light and shade",
    "color": "Hue: the name of a color family such as red, blue or yellow",
    "texture": "Texture: the actual or implied surface quality of a work",
    "sculpture": "Sculpture: three-dimensional art made by carving, modelling or assembling",
    "watercolor": "Watercolor: translucent pigment suspended in water",
    "oil": "Oil paint: slow-drying pigment bound in oil, allowing blending and layering",
}

DEFAULT_VOCABULARY = [
    "Composition: the arrangement of visual elements within the frame",
    "Palette: the range of colors an artist chooses to use",
    "Medium: the materials an artwork is made from",
]


def analyze_texture(
    insight: InterpretationInsight | None,
    observation: VisionObservation | None = None,
) -> TextureAnalysis:
    """Describe surface qualities named in technique/medium text and labels."""
    texts: list[str] = []
    if insight is not None:
        texts += insight.technique_insights + insight.medium_insights
    if observation is not None:
        texts += observation.labels

    lowered = " ".join(texts).lower()
    texture_types = [name for key, name in TEXTURE_VOCABULARY.items() if key in lowered]
    notes = [t for t in (insight.technique_insights if insight else []) if mentions_any([t], TEXTURE_VOCABULARY)]
    return TextureAnalysis(
        texture_types=ordered_unique(texture_types),
        technique_notes=notes,
        educational_value=(
            "Looking closely at surface texture shows how quickly and in what order the artist "
            "applied the material."
        ),
    )


def analyze_emotion(
    insight: InterpretationInsight | None,
    color_analysis: ColorAnalysis | None,
    observation: VisionObservation | None = None,
) -> EmotionalAnalysis:
    mood = color_analysis.mood if color_analysis else "balanced"
    temperature = color_analysis.temperature if color_analysis else "balanced"
    insights: list[str] = []
    if insight is not None:
        insights += [t for t in insight.theme_insights if mentions_any([t], EMOTION_KEYWORDS)]
    insights.append(f"The {mood} palette and {temperature} color temperature set the emotional register.")
    if observation is not None and observation.face_count:
        noun = "figure" if observation.face_count == 1 else "figures"
        insights.append(f"The expressions of the {observation.face_count} {noun} invite an emotional reading.")
    return EmotionalAnalysis(
        mood=mood,
        temperature=temperature,
        tones=list(MOOD_TONES.get(mood, MOOD_TONES["balanced"])),
        insights=insights,
    )


def build_learning_resources(
    observation: VisionObservation,
    insight: InterpretationInsight | None,
    search_terms: list[str],
) -> LearningResources:
    key_concepts: list[str] = []
    prompts: list[str] = []
    if insight is not None:
        key_concepts += insight.style_insights[:2] + insight.technique_insights[:2]
        prompts += insight.reflection_questions[:3]
    key_concepts += [t.title() for t in search_terms[:3]]

    haystack = " ".join(observation.labels + observation.objects + search_terms).lower()
    if insight is not None:
        haystack += " " + " ".join(insight.technique_insights + insight.medium_insights).lower()
    vocabulary = [definition for key, definition in ART_GLOSSARY.items() if key in haystack]

    if not prompts:
        prompts = [
            "What do you notice first, and what makes it stand out?",
            "How do the colors affect the mood of the work?",
        ]
    activities = [
        "Make a quick sketch that records only the main shapes and directions of the composition.",
        "List five words that describe the mood, then find the visual evidence for each.",
    ]
    if observation.colors:
        activities.append("Mix or collect swatches that match the dominant colors and arrange them by temperature.")

    return LearningResources(
        key_concepts=ordered_unique(key_concepts),
        vocabulary=vocabulary or list(DEFAULT_VOCABULARY),
        discussion_prompts=prompts,
        learning_activities=activities,
    )


def build_historical_context(
    wikipedia: WikipediaSummary | None,
    museum_results: list[MuseumResult],
    insight: InterpretationInsight | None = None,
) -> HistoricalContextNote | None:
    """Collect dates, periods and cultures from reference records.

    Returns ``None`` when no reference record carries historical data.
    """
    artworks = [a for r in museum_results for a in r.artworks]
    periods = ordered_unique([a.period for a in artworks] + [s for a in artworks for s in a.styles])
    cultures = ordered_unique(a.culture for a in artworks)
    dates = ordered_unique(a.date for a in artworks)

    historical_insights = history_mentions(insight)

    summary = ""
    sources: list[str] = []
    if wikipedia is not None and wikipedia.extract:
        summary = wikipedia.extract
        sources.append("Wikipedia")
    elif historical_insights:
        summary = historical_insights[0]

    if not (summary or periods or cultures or dates):
        return None

    sources += [r.source for r in museum_results if any(a.period or a.culture or a.date for a in r.artworks)]
    return HistoricalContextNote(
        summary=summary,
        periods=periods[:5],
        cultures=cultures[:5],
        dates=dates[:5],
        sources=ordered_unique(sources),
    )
