"""Artwork analysis pipeline: vision -> interpretation -> recall -> synthesis -> narrative.

Palette extraction runs alongside vision. Each stage recovers locally;
only a request where nothing at all succeeded raises ``NoDataAvailable``.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from app.core.config import Settings, get_settings
from app.core.image_processing import ImageInput, to_image_bytes
from app.services.ai.common.audit import utc_timestamp
from app.services.ai.common.errors import (
    InterpretationUnavailable,
    NoDataAvailable,
    ProviderUnavailable,
    SynthesisUnavailable,
)
from app.services.ai.common.providers import get_provider
from app.services.ai.interpretation.contracts import InterpretationInsight
from app.services.ai.interpretation.service import interpret
from app.services.ai.synthesis.contracts import AnalysisStage, EducationalAnalysis
from app.services.ai.synthesis.service import build_fallback_analysis, synthesize
from app.services.ai.vision.contracts import VisionObservation
from app.services.ai.vision.providers import build_providers
from app.services.ai.vision.service import aggregate_vision
from app.services.color.palette import extract_palette
from app.services.recall.clients import ArtSearchClient, HarvardClient
from app.services.recall.contracts import RecallBundle
from app.services.recall.service import recall
from app.services.summary_service import PipelineResults, compose_summary

logger = logging.getLogger(__name__)


def _generation_label(scope: str, settings: Settings) -> str:
    name = getattr(settings, f"ai_{scope}_provider") or "openai"
    return {"openai": "OpenAI", "mock": "Mock"}.get(name, name)


def _build_stages(
    observation: VisionObservation,
    insight: InterpretationInsight | None,
    bundle: RecallBundle,
    analysis: EducationalAnalysis,
    *,
    interpretation_source: str | None,
    synthesis_source: str | None,
) -> list[AnalysisStage]:
    return [
        AnalysisStage(
            stage="vision",
            description="Visual features detected by image recognition providers",
            apis_used=observation.sources,
            insights=observation.labels[:5],
            timestamp=utc_timestamp(),
        ),
        AnalysisStage(
            stage="interpretation",
            description="Initial educational reading of style, technique, theme and medium",
            apis_used=[interpretation_source] if interpretation_source else [],
            insights=(insight.style_insights[:2] + insight.theme_insights[:1]) if insight else [],
            timestamp=utc_timestamp(),
        ),
        AnalysisStage(
            stage="recall",
            description="Reference, museum and color context gathered for the artwork",
            apis_used=bundle.sources,
            insights=bundle.search_terms,
            timestamp=utc_timestamp(),
        ),
        AnalysisStage(
            stage="synthesis",
            description="Comprehensive educational analysis",
            apis_used=[synthesis_source] if synthesis_source else [],
            insights=[s for s in (analysis.style_analysis.primary_style, analysis.theme_analysis.emotional_tone) if s],
            timestamp=utc_timestamp(),
        ),
    ]


async def analyze(
    image: ImageInput,
    *,
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> EducationalAnalysis:
    """Run the full pipeline for *image* (bytes, base64 or data URL).

    Raises:
        InvalidImage: the payload is empty, not base64, or too large.
        NoDataAvailable: no vision provider, generation call or reference
            source produced anything.
    """
    settings = settings or get_settings()
    image_bytes = to_image_bytes(image, max_bytes=settings.max_image_bytes)

    palette, observation = await asyncio.gather(
        asyncio.to_thread(extract_palette, image_bytes),
        aggregate_vision(image_bytes, settings=settings, transport=transport),
    )

    insight: InterpretationInsight | None = None
    interpretation_source: str | None = None
    try:
        insight = await interpret(observation, settings=settings, transport=transport)
        interpretation_source = _generation_label("interpretation", settings)
    except InterpretationUnavailable as exc:
        logger.warning("Interpretation unavailable, continuing with empty insights: %s", exc)

    bundle = await recall(observation, insight, palette=palette, settings=settings, transport=transport)

    upstream = [interpretation_source] if interpretation_source else []
    synthesis_source: str | None = None
    try:
        analysis = await synthesize(
            observation,
            insight,
            bundle,
            palette=palette,
            upstream_sources=upstream,
            settings=settings,
            transport=transport,
        )
        synthesis_source = _generation_label("synthesis", settings)
    except SynthesisUnavailable as exc:
        logger.warning("Synthesis unavailable, building fallback analysis: %s", exc)
        if not (observation.sources or interpretation_source or bundle.sources):
            raise NoDataAvailable() from exc
        analysis = build_fallback_analysis(
            observation,
            insight,
            bundle,
            palette=palette,
            upstream_sources=upstream,
        )

    narrative = compose_summary(PipelineResults(observation, palette, analysis), insight, bundle)
    stages = _build_stages(
        observation,
        insight,
        bundle,
        analysis,
        interpretation_source=interpretation_source,
        synthesis_source=synthesis_source,
    )
    result = analysis.model_copy(update={"narrative": narrative, "analysis_stages": stages})
    logger.info(
        "Analysis complete: confidence=%.2f sources=%s fallback=%s",
        result.confidence,
        result.sources,
        result.fallback,
    )
    return result


def check_api_status(settings: Settings | None = None) -> dict[str, bool]:
    """Which providers are configured (not whether they are reachable)."""
    settings = settings or get_settings()
    vision = {p.name: p.configured for p in build_providers(settings)}
    try:
        openai_ready = get_provider("openai", settings=settings) is not None
    except ProviderUnavailable:
        openai_ready = False
    return {
        "googleVision": vision["google"],
        "microsoftVision": vision["microsoft"],
        "clarifai": vision["clarifai"],
        "openai": openai_ready,
        "metMuseum": True,
        "artInstitute": True,
        "wikipedia": True,
        "harvard": HarvardClient(settings).configured,
        "artSearch": ArtSearchClient(settings).configured,
    }
