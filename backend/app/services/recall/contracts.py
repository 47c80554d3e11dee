"""Recall bundle contracts."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.services.ai.vision.contracts import ordered_unique
from app.services.color.contracts import ColorAnalysis


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class WikipediaSummary(_Record):
    title: str
    extract: str = ""
    description: str = ""
    url: str = ""
    query: str = ""


class MuseumArtwork(_Record):
    title: str
    artist: str = ""
    date: str = ""
    medium: str = ""
    culture: str = ""
    period: str = ""
    styles: list[str] = Field(default_factory=list)
    url: str = ""
    image_url: str = ""
    source: str = ""


class MuseumResult(_Record):
    source: str
    query: str
    total: int = 0
    artworks: list[MuseumArtwork] = Field(default_factory=list)


class TextureAnalysis(_Record):
    texture_types: list[str] = Field(default_factory=list)
    technique_notes: list[str] = Field(default_factory=list)
    educational_value: str = ""


class EmotionalAnalysis(_Record):
    mood: str = "balanced"
    temperature: str = "balanced"
    tones: list[str] = Field(default_factory=list)
    insights: list[str] = Field(default_factory=list)


class LearningResources(_Record):
    key_concepts: list[str] = Field(default_factory=list)
    vocabulary: list[str] = Field(default_factory=list)
    discussion_prompts: list[str] = Field(default_factory=list)
    learning_activities: list[str] = Field(default_factory=list)


class HistoricalContextNote(_Record):
    summary: str = ""
    periods: list[str] = Field(default_factory=list)
    cultures: list[str] = Field(default_factory=list)
    dates: list[str] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)


# Slot -> provider name reported in ``sources`` when the slot is populated.
REFERENCE_SLOT_SOURCES = {
    "wikipedia_data": "Wikipedia",
    "met_museum_data": "Metropolitan Museum of Art",
    "harvard_data": "Harvard Art Museums",
    "art_institute_data": "Art Institute of Chicago",
    "art_search_data": "ArtSearch",
}


class RecallBundle(_Record):
    """Named optional slots; ``None`` means the call was skipped or failed."""

    search_terms: list[str] = Field(default_factory=list)
    color_analysis: ColorAnalysis | None = None
    wikipedia_data: WikipediaSummary | None = None
    met_museum_data: MuseumResult | None = None
    harvard_data: MuseumResult | None = None
    art_institute_data: MuseumResult | None = None
    art_search_data: MuseumResult | None = None
    texture_analysis: TextureAnalysis | None = None
    emotional_analysis: EmotionalAnalysis | None = None
    learning_resources: LearningResources | None = None
    similar_artworks: list[MuseumArtwork] | None = None
    historical_context: HistoricalContextNote | None = None

    @property
    def sources(self) -> list[str]:
        """External reference providers that contributed data, in slot order."""
        names = [label for slot, label in REFERENCE_SLOT_SOURCES.items() if getattr(self, slot) is not None]
        names.extend(a.source for a in self.similar_artworks or [])
        return ordered_unique(names)

    def museum_results(self) -> list[MuseumResult]:
        slots = (self.met_museum_data, self.art_institute_data, self.harvard_data, self.art_search_data)
        return [r for r in slots if r is not None]
