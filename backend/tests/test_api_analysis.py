"""HTTP surface: analysis endpoints, error mapping, rate limiting and headers."""

import os
from unittest.mock import AsyncMock, patch

import pytest

from app.core.config import get_settings
from app.services.ai.common.errors import InvalidImage, NoDataAvailable
from app.services.ai.synthesis.contracts import EducationalAnalysis, StyleAnalysis
from conftest import make_image_base64, make_image_bytes

ANALYSIS = EducationalAnalysis(
    title="Bridge Scene",
    style_analysis=StyleAnalysis(primary_style="Impressionism"),
    confidence=0.8,
    sources=["Google Vision", "OpenAI"],
    narrative="One sentence.",
)


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
    assert resp.headers["x-content-type-options"] == "nosniff"
    assert resp.headers["x-frame-options"] == "DENY"


@pytest.mark.asyncio
async def test_analyze_comprehensive_returns_camel_case(client):
    with patch("app.services.analysis_service.analyze", new=AsyncMock(return_value=ANALYSIS)) as mock_analyze:
        resp = await client.post("/api/v1/analyze-comprehensive", json={"imageBase64": make_image_base64()})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert "error" not in body
    assert body["analysis"]["title"] == "Bridge Scene"
    assert body["analysis"]["styleAnalysis"]["primaryStyle"] == "Impressionism"
    assert body["analysis"]["sources"] == ["Google Vision", "OpenAI"]
    mock_analyze.assert_awaited_once()
    assert resp.headers["cache-control"] == "no-store"


@pytest.mark.asyncio
async def test_analyze_comprehensive_requires_image(client):
    resp = await client.post("/api/v1/analyze-comprehensive", json={})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_no_data_maps_to_503(client):
    with patch("app.services.analysis_service.analyze", new=AsyncMock(side_effect=NoDataAvailable())):
        resp = await client.post("/api/v1/analyze-comprehensive", json={"imageBase64": "aGVsbG8="})

    assert resp.status_code == 503
    assert resp.json() == {"success": False, "error": NoDataAvailable.DEFAULT_MESSAGE}


@pytest.mark.asyncio
async def test_invalid_image_maps_to_400(client):
    resp = await client.post("/api/v1/analyze-comprehensive", json={"imageBase64": "%%% not base64 %%%"})
    assert resp.status_code == 400
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_invalid_image_from_pipeline(client):
    with patch("app.services.analysis_service.analyze", new=AsyncMock(side_effect=InvalidImage("Could not decode image"))):
        resp = await client.post(
            "/api/v1/analyze",
            files={"file": ("art.png", b"garbage", "image/png")},
        )
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Could not decode image"}


@pytest.mark.asyncio
async def test_analyze_upload(client):
    content = make_image_bytes()
    with patch("app.services.analysis_service.analyze", new=AsyncMock(return_value=ANALYSIS)) as mock_analyze:
        resp = await client.post("/api/v1/analyze", files={"file": ("art.png", content, "image/png")})

    assert resp.status_code == 200
    assert resp.json()["analysis"]["confidence"] == 0.8
    assert mock_analyze.await_args.args[0] == content


@pytest.mark.asyncio
async def test_analyze_upload_rejects_non_images(client):
    resp = await client.post("/api/v1/analyze", files={"file": ("notes.txt", b"hello", "text/plain")})
    assert resp.status_code == 415


@pytest.mark.asyncio
async def test_analyze_upload_rejects_large_files(client):
    with patch.dict(os.environ, {"MAX_IMAGE_BYTES": "16"}, clear=False):
        get_settings.cache_clear()
        resp = await client.post("/api/v1/analyze", files={"file": ("art.png", make_image_bytes(), "image/png")})
    assert resp.status_code == 413


@pytest.mark.asyncio
async def test_api_status(client):
    status = {"googleVision": True, "openai": False, "wikipedia": True}
    with patch("app.services.analysis_service.check_api_status", return_value=status):
        resp = await client.get("/api/v1/api-status")

    assert resp.status_code == 200
    assert resp.json() == {"status": status, "available": 2, "total": 3}


RATE_LIMIT_ENV = {"RATE_LIMIT_API_ENABLED": "true", "RATE_LIMIT_ANALYZE_PER_MIN": "1", "RATE_LIMIT_API_PER_MIN": "100"}


@pytest.mark.asyncio
async def test_analyze_rate_limit(client):
    with (
        patch.dict(os.environ, RATE_LIMIT_ENV, clear=False),
        patch("app.services.analysis_service.analyze", new=AsyncMock(return_value=ANALYSIS)),
    ):
        get_settings.cache_clear()
        first = await client.post("/api/v1/analyze-comprehensive", json={"imageBase64": "aGVsbG8="})
        second = await client.post("/api/v1/analyze-comprehensive", json={"imageBase64": "aGVsbG8="})
        status = await client.get("/api/v1/api-status")

    assert first.status_code == 200
    assert second.status_code == 429
    assert second.headers["retry-after"] == "60"
    assert status.status_code == 200


@pytest.mark.asyncio
async def test_rate_limit_disabled_by_default(client):
    with patch("app.services.analysis_service.analyze", new=AsyncMock(return_value=ANALYSIS)):
        for _ in range(10):
            resp = await client.post("/api/v1/analyze-comprehensive", json={"imageBase64": "aGVsbG8="})
            assert resp.status_code == 200


def test_run_serves_the_app_with_uvicorn():
    from app.main import run

    with patch.dict(os.environ, {"SERVER_PORT": "8123"}, clear=False), patch("uvicorn.run") as mock_run:
        get_settings.cache_clear()
        run()

    mock_run.assert_called_once()
    assert mock_run.call_args.args == ("app.main:app",)
    assert mock_run.call_args.kwargs["port"] == 8123
    assert mock_run.call_args.kwargs["host"] == "0.0.0.0"
