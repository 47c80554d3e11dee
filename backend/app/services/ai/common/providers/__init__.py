"""Provider factory: returns the configured provider or reports it unavailable."""

from __future__ import annotations

import logging

import httpx

from app.core.config import Settings, get_settings
from app.services.ai.common.errors import ProviderUnavailable

from .base import BaseProvider, ProviderResult
from .mock import MockProvider
from .openai import OpenAIProvider

logger = logging.getLogger(__name__)

__all__ = ["get_provider", "BaseProvider", "ProviderResult", "MockProvider", "OpenAIProvider"]


def get_provider(
    provider_name: str,
    *,
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> BaseProvider:
    """Return a provider instance for *provider_name*.

    Unlike vision and museum lookups there is no silent fallback here:
    a provider outside the allowlist, or one without an API key, raises
    ``ProviderUnavailable`` so the calling stage can report itself
    unavailable instead of fabricating text. ``mock`` must be selected
    explicitly.
    """
    settings = settings or get_settings()
    name = provider_name.lower().strip()

    if name not in settings.ai_allowed_providers:
        logger.warning("Provider %r not in allowlist", name)
        raise ProviderUnavailable(name, "not in AI_ALLOWED_PROVIDERS")

    if name == "mock":
        return MockProvider()

    if name == "openai":
        if not settings.openai_api_key:
            raise ProviderUnavailable(name, "OPENAI_API_KEY not set")
        return OpenAIProvider(api_key=settings.openai_api_key, transport=transport)

    logger.warning("Unknown provider %r", name)
    raise ProviderUnavailable(name, "unknown provider")
