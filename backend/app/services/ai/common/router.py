"""AI Router: resolves provider + generation parameters for a pipeline scope."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from app.core.config import Settings, get_settings

from .providers import BaseProvider, get_provider

logger = logging.getLogger(__name__)

SCOPES = ("interpretation", "synthesis")


@dataclass(frozen=True)
class ResolvedConfig:
    """Final resolved provider + model for one generation call."""

    provider: BaseProvider
    model: str
    temperature: float
    max_tokens: int
    timeout_seconds: float


def resolve(
    scope: str,
    *,
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ResolvedConfig:
    """Resolve provider + model for a given *scope*.

    Each scope reads its own ``AI_<SCOPE>_PROVIDER`` / ``AI_<SCOPE>_MODEL``
    / temperature / token settings. Raises ``ProviderUnavailable`` when the
    provider cannot be built (missing key, not allowlisted).
    """
    settings = settings or get_settings()
    if scope not in SCOPES:
        raise ValueError(f"Unknown AI scope: {scope!r}")

    provider_name = getattr(settings, f"ai_{scope}_provider") or "openai"
    model = getattr(settings, f"ai_{scope}_model")
    if provider_name == "mock":
        model = ""

    provider = get_provider(provider_name, settings=settings, transport=transport)
    logger.debug("Resolved scope %s to %s/%s", scope, provider.name, model or "default")

    return ResolvedConfig(
        provider=provider,
        model=model,
        temperature=getattr(settings, f"ai_{scope}_temperature"),
        max_tokens=getattr(settings, f"ai_{scope}_max_tokens"),
        timeout_seconds=settings.ai_timeout_seconds,
    )
