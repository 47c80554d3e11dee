"""All-settled fan-out used by vision and recall."""

import asyncio

import pytest

from app.services.ai.common.concurrency import settle_all, successes
from app.services.ai.common.errors import ProviderUnavailable


async def _value(v, delay=0.0):
    await asyncio.sleep(delay)
    return v


async def _fail(exc):
    raise exc


@pytest.mark.asyncio
async def test_failures_do_not_affect_siblings():
    settled = await settle_all(
        {
            "a": _value(1, delay=0.01),
            "b": _fail(ProviderUnavailable("b", "HTTP 500")),
            "c": _fail(RuntimeError("boom")),
            "d": _value(4),
        }
    )

    assert list(settled) == ["a", "b", "c", "d"]
    assert settled["a"].ok and settled["a"].value == 1
    assert not settled["b"].ok
    assert isinstance(settled["b"].error, ProviderUnavailable)
    assert isinstance(settled["c"].error, RuntimeError)
    assert successes(settled) == {"a": 1, "d": 4}


@pytest.mark.asyncio
async def test_timeout_is_a_failure():
    settled = await settle_all({"slow": _value(1, delay=1.0), "fast": _value(2)}, timeout_seconds=0.05)
    assert isinstance(settled["slow"].error, asyncio.TimeoutError)
    assert successes(settled) == {"fast": 2}


@pytest.mark.asyncio
async def test_nothing_to_do():
    assert await settle_all({}) == {}


def test_provider_unavailable_carries_provider():
    exc = ProviderUnavailable("harvard", "API key not configured")
    assert exc.provider == "harvard"
    assert str(exc) == "harvard: API key not configured"
