"""Recall dispatcher: gather reference and museum context for an artwork.

Every slot runs concurrently through ``settle_all``; a failed or skipped
slot is left as ``None`` and the dispatcher itself never raises.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import Any

import httpx

from app.core.config import Settings, get_settings
from app.services.ai.common.concurrency import settle_all, successes
from app.services.ai.interpretation.contracts import InterpretationInsight
from app.services.ai.vision.contracts import VisionObservation
from app.services.color.analysis import analyze_colors, samples_from_descriptors
from app.services.color.contracts import ColorAnalysis, ColorSample

from .clients import (
    ArtInstituteClient,
    ArtSearchClient,
    HarvardClient,
    MetMuseumClient,
    ReferenceNotFound,
    WikipediaClient,
)
from .contracts import LearningResources, MuseumArtwork, RecallBundle, TextureAnalysis, WikipediaSummary
from .derived import analyze_emotion, analyze_texture, build_historical_context, build_learning_resources
from .predicates import should_query_reference, should_recall_texture

logger = logging.getLogger(__name__)

GENERIC_ART_TERMS = ("art", "painting", "artwork", "artist", "museum", "gallery", "artistic", "visual")
MAX_SEARCH_TERMS = 5
SIMILAR_TERMS = 2
MAX_SIMILAR_ARTWORKS = 6

_PUNCTUATION_RE = re.compile(r"[^a-zA-Z0-9\s-]")


def extract_search_terms(
    observation: VisionObservation,
    insight: InterpretationInsight | None = None,
) -> list[str]:
    """Seed terms for every downstream query.

    Labels first, then the leading style/theme/technique/medium insights,
    then generic art keywords; punctuation stripped, case-insensitive
    de-duplication, terms of 2 characters or fewer dropped, capped at 5.
    """
    raw: list[str] = list(observation.labels)
    if insight is not None:
        raw += insight.style_insights[:3]
        raw += insight.theme_insights[:3]
        raw += insight.technique_insights[:2]
        raw += insight.medium_insights[:2]
    raw += GENERIC_ART_TERMS

    terms: dict[str, str] = {}
    for item in raw:
        cleaned = " ".join(_PUNCTUATION_RE.sub(" ", item).split())
        if len(cleaned) > 2:
            terms.setdefault(cleaned.lower(), cleaned)
    return list(terms.values())[:MAX_SEARCH_TERMS]


def _artwork_key(artwork: MuseumArtwork) -> tuple[str, str]:
    return artwork.title.strip().casefold(), artwork.artist.strip().casefold()


def merge_similar_artworks(batches: Sequence[Sequence[MuseumArtwork]]) -> list[MuseumArtwork]:
    """Merge in the given order, de-duplicated by (title, artist), capped at 6."""
    merged: dict[tuple[str, str], MuseumArtwork] = {}
    for batch in batches:
        for artwork in batch:
            merged.setdefault(_artwork_key(artwork), artwork)
            if len(merged) == MAX_SIMILAR_ARTWORKS:
                return list(merged.values())
    return list(merged.values())


class RecallDispatcher:
    """Decides which recall slots to run and runs them concurrently."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.wikipedia = WikipediaClient(self.settings, transport=transport)
        self.met = MetMuseumClient(self.settings, transport=transport)
        self.harvard = HarvardClient(self.settings, transport=transport)
        self.artic = ArtInstituteClient(self.settings, transport=transport)
        self.artsearch = ArtSearchClient(self.settings, transport=transport)

    @property
    def similar_sources(self) -> list[Any]:
        # Fixed precedence for the similar-artwork merge.
        return [c for c in (self.met, self.artic, self.harvard) if c.configured]

    async def lookup_wikipedia(self, terms: Sequence[str]) -> WikipediaSummary | None:
        """Summary for the first term, retrying exactly once with a fallback term."""
        primary = terms[0] if terms else ""
        if not should_query_reference(primary):
            logger.debug("Skipping encyclopedia lookup for generic term %r", primary)
            return None
        try:
            return await self.wikipedia.summary(primary)
        except ReferenceNotFound:
            fallback = next((t for t in terms[1:] if should_query_reference(t)), None)
            if fallback is None:
                raise
            logger.info("No article for %r, trying %r", primary, fallback)
            return await self.wikipedia.summary(fallback)

    async def find_similar_artworks(self, terms: Sequence[str]) -> list[MuseumArtwork] | None:
        calls = {
            f"{client.name}:{term}": client.search(term)
            for term in terms[:SIMILAR_TERMS]
            for client in self.similar_sources
        }
        settled = await settle_all(calls, timeout_seconds=self.settings.recall_timeout_seconds)
        batches = [result.artworks for result in successes(settled).values() if result is not None]
        return merge_similar_artworks(batches) or None

    async def _color_analysis(
        self,
        observation: VisionObservation,
        palette: Sequence[ColorSample] | None,
    ) -> ColorAnalysis:
        samples = list(palette) if palette else samples_from_descriptors(observation.colors)
        return analyze_colors(samples)

    async def _texture(
        self,
        insight: InterpretationInsight | None,
        observation: VisionObservation,
    ) -> TextureAnalysis:
        return analyze_texture(insight, observation)

    async def _learning(
        self,
        observation: VisionObservation,
        insight: InterpretationInsight | None,
        terms: list[str],
    ) -> LearningResources:
        return build_learning_resources(observation, insight, terms)

    async def recall(
        self,
        observation: VisionObservation,
        insight: InterpretationInsight | None = None,
        *,
        palette: Sequence[ColorSample] | None = None,
    ) -> RecallBundle:
        terms = extract_search_terms(observation, insight)
        primary = terms[0] if terms else ""

        calls: dict[str, Any] = {
            "color_analysis": self._color_analysis(observation, palette),
            "learning_resources": self._learning(observation, insight, terms),
        }
        if terms:
            calls["wikipedia_data"] = self.lookup_wikipedia(terms)
            calls["met_museum_data"] = self.met.search(primary)
            calls["art_institute_data"] = self.artic.search(primary)
            calls["similar_artworks"] = self.find_similar_artworks(terms)
            if self.harvard.configured:
                calls["harvard_data"] = self.harvard.search(primary)
            if self.artsearch.configured:
                calls["art_search_data"] = self.artsearch.search(primary)
        if should_recall_texture(insight):
            calls["texture_analysis"] = self._texture(insight, observation)

        # Museum slots chain two requests, so allow two request timeouts.
        settled = await settle_all(calls, timeout_seconds=self.settings.recall_timeout_seconds * 2)
        slots = successes(settled)

        color_analysis = slots.get("color_analysis")
        slots["emotional_analysis"] = analyze_emotion(insight, color_analysis, observation)

        bundle = RecallBundle(search_terms=terms, **slots)
        historical = build_historical_context(bundle.wikipedia_data, bundle.museum_results(), insight)
        if historical is not None:
            bundle = bundle.model_copy(update={"historical_context": historical})

        logger.info(
            "Recall finished: %d/%d slots populated, sources=%s",
            sum(1 for v in slots.values() if v is not None),
            len(calls) + 1,
            bundle.sources,
        )
        return bundle


async def recall(
    observation: VisionObservation,
    insight: InterpretationInsight | None = None,
    *,
    palette: Sequence[ColorSample] | None = None,
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> RecallBundle:
    """Gather recall slots for *observation*; never raises."""
    try:
        dispatcher = RecallDispatcher(settings, transport=transport)
        return await dispatcher.recall(observation, insight, palette=palette)
    except Exception:
        logger.warning("Recall dispatch failed, continuing without reference data", exc_info=True)
        return RecallBundle()
