"""Vision aggregation: fan out to every configured provider and merge."""

from __future__ import annotations

import logging
from collections.abc import Sequence

import httpx

from app.core.config import Settings, get_settings
from app.services.ai.common.concurrency import settle_all

from .contracts import ProviderObservation, VisionObservation, ordered_unique
from .providers import VisionProvider, build_providers

logger = logging.getLogger(__name__)


def merge_observations(contributions: Sequence[ProviderObservation]) -> VisionObservation:
    """Merge per-provider results in the order given.

    Lists are concatenated then de-duplicated by first occurrence; face
    counts are summed over providers that report one.
    """
    faces = [c.face_count for c in contributions if c.face_count is not None]
    return VisionObservation(
        labels=ordered_unique(item for c in contributions for item in c.labels),
        objects=ordered_unique(item for c in contributions for item in c.objects),
        colors=ordered_unique(item for c in contributions for item in c.colors),
        text=ordered_unique(item for c in contributions for item in c.text),
        face_count=sum(faces),
        categories=ordered_unique(item for c in contributions for item in c.categories),
        sources=ordered_unique(c.provider for c in contributions),
    )


async def aggregate_vision(
    image_bytes: bytes,
    *,
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    providers: Sequence[VisionProvider] | None = None,
) -> VisionObservation:
    """Observe *image_bytes* with up to three providers concurrently.

    Never raises for provider failures: a provider without a credential is
    not called, and a failing provider contributes nothing. When every
    provider fails the result has empty containers and ``face_count`` 0.
    """
    settings = settings or get_settings()
    if providers is None:
        providers = build_providers(settings, transport=transport)

    active = [p for p in providers if p.configured]
    for p in providers:
        if not p.configured:
            logger.debug("Vision provider %s not configured, skipping", p.name)

    settled = await settle_all(
        {p.name: p.observe(image_bytes) for p in active},
        timeout_seconds=settings.vision_timeout_seconds,
    )

    labels = {p.name: p.label for p in active}
    contributions = [
        s.value.model_copy(update={"provider": labels[name]})
        for name, s in settled.items()
        if s.ok and s.value is not None
    ]
    observation = merge_observations(contributions)
    logger.info(
        "Vision aggregated: %d/%d providers ok, %d labels, %d objects",
        len(contributions),
        len(providers),
        len(observation.labels),
        len(observation.objects),
    )
    return observation
