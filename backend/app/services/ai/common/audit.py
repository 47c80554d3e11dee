"""AI run logging and the per-request analysis stage trace."""

from __future__ import annotations

import hashlib
import logging
from datetime import datetime, timezone
from typing import Any

from app.core.config import Settings, get_settings

from .providers.base import ProviderResult

logger = logging.getLogger(__name__)


def log_ai_run(
    *,
    scope: str,
    provider_result: ProviderResult,
    prompt_text: str,
    parsed_output: dict[str, Any] | None,
    settings: Settings | None = None,
) -> dict[str, Any]:
    """Log one text-generation call and return its metadata.

    Prompt and reply are always hashed; the raw reply is only logged (at
    DEBUG) when ``AI_DEBUG_STORE_RAW=true``.
    """
    settings = settings or get_settings()

    metadata: dict[str, Any] = {
        "scope": scope,
        "provider": provider_result.provider,
        "model": provider_result.model,
        "prompt_tokens": provider_result.prompt_tokens,
        "completion_tokens": provider_result.completion_tokens,
        "latency_ms": provider_result.latency_ms,
        "prompt_hash": hashlib.sha256(prompt_text.encode()).hexdigest(),
        "response_hash": hashlib.sha256(provider_result.raw_text.encode()).hexdigest(),
        "parsed": parsed_output is not None,
    }

    logger.info(
        "AI run scope=%s provider=%s model=%s latency_ms=%s parsed=%s",
        scope,
        provider_result.provider,
        provider_result.model,
        provider_result.latency_ms,
        metadata["parsed"],
    )
    if settings.ai_debug_store_raw:
        logger.debug("AI raw reply scope=%s: %s", scope, provider_result.raw_text)

    return metadata


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()
