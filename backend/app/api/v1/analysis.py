"""Artwork analysis endpoints.

``InvalidImage`` and ``NoDataAvailable`` raised by the pipeline are mapped
to 400 and 503 by the application exception handlers.
"""

from __future__ import annotations

from fastapi import APIRouter, File, HTTPException, UploadFile

from app.core.config import get_settings
from app.core.image_processing import is_image_upload
from app.schemas.analysis import AnalyzeRequest, AnalyzeResponse, ApiStatusResponse
from app.services import analysis_service

router = APIRouter()


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    response_model_exclude_none=True,
    summary="Analyze an uploaded artwork image",
)
async def analyze_upload(file: UploadFile = File(...)):
    if not is_image_upload(file.content_type, file.filename):
        raise HTTPException(415, "Unsupported file type")
    settings = get_settings()
    content = await file.read(settings.max_image_bytes + 1)
    if len(content) > settings.max_image_bytes:
        raise HTTPException(413, "Image too large")
    analysis = await analysis_service.analyze(content, settings=settings)
    return AnalyzeResponse(success=True, analysis=analysis)


@router.post(
    "/analyze-comprehensive",
    response_model=AnalyzeResponse,
    response_model_exclude_none=True,
    summary="Analyze a base64 or data-URL encoded artwork image",
)
async def analyze_base64(payload: AnalyzeRequest):
    analysis = await analysis_service.analyze(payload.image_base64)
    return AnalyzeResponse(success=True, analysis=analysis)


@router.get("/api-status", response_model=ApiStatusResponse)
async def api_status():
    status = analysis_service.check_api_status()
    return ApiStatusResponse(status=status, available=sum(status.values()), total=len(status))
