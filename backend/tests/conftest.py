import base64
import io
import os

import httpx
import pytest
import pytest_asyncio
from PIL import Image

from app.core.config import Settings, get_settings

BASE_URL = os.getenv("BASE_URL", "http://127.0.0.1:8000")

# Every credential explicitly blank so a developer's environment cannot leak
# real keys into tests.
_BLANK_CREDENTIALS = {
    "google_vision_api_key": "",
    "microsoft_vision_api_key": "",
    "microsoft_vision_endpoint": "",
    "clarifai_api_key": "",
    "openai_api_key": "",
    "harvard_api_key": "",
    "artsearch_api_key": "",
}


def make_settings(**overrides) -> Settings:
    values = dict(_BLANK_CREDENTIALS)
    values.update(overrides)
    return Settings(**values)


def make_image_bytes(color=(200, 40, 40, 255), size=(40, 40), fmt="PNG", stripes=None) -> bytes:
    """Solid image, optionally with vertical stripes ``[(rgba, width), ...]`` from the left."""
    img = Image.new("RGBA", size, color)
    x = 0
    for rgba, width in stripes or []:
        img.paste(rgba, (x, 0, x + width, size[1]))
        x += width
    if fmt == "JPEG":
        img = img.convert("RGB")
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def make_image_base64(**kwargs) -> str:
    return base64.b64encode(make_image_bytes(**kwargs)).decode("ascii")


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    # Some tests mutate env vars and clear the settings cache. Ensure we don't leak
    # a cached Settings instance across tests.
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    from app.utils.rate_limit import rate_limiter

    rate_limiter.reset()
    yield
    rate_limiter.reset()


@pytest.fixture
def settings() -> Settings:
    return make_settings(ai_allowed_providers_raw="openai,mock")


@pytest_asyncio.fixture
async def client():
    from app.main import app

    # Set USE_LIVE_SERVER=true to run against a running server at BASE_URL (useful for manual smoke tests).
    use_live_server = os.getenv("USE_LIVE_SERVER", "").strip().lower() in {"1", "true", "yes"}
    if use_live_server:
        async with httpx.AsyncClient(base_url=BASE_URL) as c:
            yield c
        return

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
