"""Interpretation stage: turn the vision vocabulary into art-education insights.

Features:
- Fixed prompt embedding labels / objects / colors / text
- Tolerant JSON parsing (fence removal, first-brace/last-brace extraction)
- Raises ``InterpretationUnavailable`` instead of fabricating insights
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import httpx

from app.core.config import Settings, get_settings
from app.services.ai.common import router as ai_router
from app.services.ai.common.audit import log_ai_run
from app.services.ai.common.errors import InterpretationUnavailable, ProviderUnavailable
from app.services.ai.common.json_tools import extract_json_object
from app.services.ai.common.providers.base import ProviderResult
from app.services.ai.vision.contracts import VisionObservation

from .contracts import InterpretationInsight

logger = logging.getLogger(__name__)

SCOPE = "interpretation"

INTERPRETATION_SYSTEM_PROMPT = (
    "You are an expert art educator specializing in visual analysis and art history. "
    "Provide educational insights about artworks focusing on style, technique, theme, "
    "and medium. Respond with valid JSON only."
)

_REPLY_SCHEMA = """{
  "styleInsights": ["insight about artistic style"],
  "techniqueInsights": ["insight about technique and brushwork"],
  "themeInsights": ["insight about themes and subject matter"],
  "mediumInsights": ["insight about materials and medium"],
  "reflectionQuestions": ["open question for the viewer"],
  "learningObjectives": ["what a student can learn from this work"]
}"""


def _join(items: Sequence[str]) -> str:
    return ", ".join(items) if items else "None detected"


def build_interpretation_prompt(observation: VisionObservation) -> str:
    return (
        "Analyze this artwork for educational purposes. Focus on style, technique, "
        "theme, and medium rather than identification.\n\n"
        f"Labels: {_join(observation.labels)}\n"
        f"Objects: {_join(observation.objects)}\n"
        f"Colors: {_join(observation.colors)}\n"
        f"Text: {_join(observation.text)}\n\n"
        "Respond with a JSON object in exactly this shape:\n"
        f"{_REPLY_SCHEMA}"
    )


def parse_interpretation(raw_text: str) -> InterpretationInsight:
    """Parse a reply into insights; raise ``InterpretationUnavailable`` if impossible."""
    parsed = extract_json_object(raw_text)
    if parsed is None:
        raise InterpretationUnavailable("Interpretation reply did not contain a JSON object")
    return InterpretationInsight.from_reply(parsed)


async def interpret(
    observation: VisionObservation,
    *,
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> InterpretationInsight:
    """Ask the text-generation provider for educational insights.

    Raises:
        InterpretationUnavailable: credential missing, call failed, or the
            reply could not be parsed. Callers continue with empty insights.
    """
    settings = settings or get_settings()
    try:
        cfg = ai_router.resolve(SCOPE, settings=settings, transport=transport)
    except ProviderUnavailable as exc:
        raise InterpretationUnavailable(str(exc)) from exc

    prompt = build_interpretation_prompt(observation)
    try:
        result: ProviderResult = await cfg.provider.generate(
            prompt,
            system_prompt=INTERPRETATION_SYSTEM_PROMPT,
            model=cfg.model,
            temperature=cfg.temperature,
            max_tokens=cfg.max_tokens,
            timeout_seconds=cfg.timeout_seconds,
        )
    except (httpx.HTTPError, KeyError, ValueError) as exc:
        logger.warning("Interpretation call failed: %s", exc)
        raise InterpretationUnavailable(f"{cfg.provider.name} call failed") from exc

    insight = parse_interpretation(result.raw_text)
    log_ai_run(
        scope=SCOPE,
        provider_result=result,
        prompt_text=prompt,
        parsed_output=insight.model_dump(by_alias=True),
        settings=settings,
    )
    return insight
