"""All-settled fan-out for independent provider calls."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from .errors import ProviderUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Settled(Generic[T]):
    """Outcome of one call: either ``value`` or ``error`` is set."""

    name: str
    value: T | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def _bounded(call: Awaitable[T], timeout_seconds: float | None) -> T:
    if timeout_seconds is None:
        return await call
    return await asyncio.wait_for(call, timeout=timeout_seconds)


async def settle_all(
    calls: Mapping[str, Awaitable[Any]],
    *,
    timeout_seconds: float | None = None,
) -> dict[str, Settled[Any]]:
    """Await every call in *calls* concurrently and collect outcomes.

    A failing call never cancels or affects its siblings. Results keep the
    insertion order of *calls*. ``ProviderUnavailable`` is expected (missing
    credentials, non-2xx replies) and logged without a traceback; anything
    else is logged as a warning with one.
    """
    names = list(calls)
    if not names:
        return {}

    outcomes = await asyncio.gather(
        *(_bounded(calls[name], timeout_seconds) for name in names),
        return_exceptions=True,
    )

    settled: dict[str, Settled[Any]] = {}
    for name, outcome in zip(names, outcomes):
        if isinstance(outcome, BaseException):
            if isinstance(outcome, ProviderUnavailable):
                logger.warning("Call %s unavailable: %s", name, outcome)
            elif isinstance(outcome, asyncio.TimeoutError):
                logger.warning("Call %s timed out after %ss", name, timeout_seconds)
            else:
                logger.warning("Call %s failed", name, exc_info=outcome)
            settled[name] = Settled(name=name, error=outcome)
        else:
            settled[name] = Settled(name=name, value=outcome)
    return settled


def successes(settled: Mapping[str, Settled[T]]) -> dict[str, T]:
    """Return ``{name: value}`` for settled calls that succeeded."""
    return {name: s.value for name, s in settled.items() if s.ok}
