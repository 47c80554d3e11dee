import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1.analysis import router as analysis_router
from app.core.config import get_settings
from app.services.ai.common.errors import InvalidImage, NoDataAvailable
from app.utils.rate_limit import WINDOW_SECONDS, get_client_ip, limit_for_path, rate_limiter

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="ArtLens API",
    version="0.3.0",
    docs_url="/docs" if settings.docs_enabled else None,
    openapi_url="/openapi.json" if settings.openapi_enabled else None,
)

if settings.cors_allow_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

app.include_router(analysis_router, prefix="/api/v1", tags=["analysis"])


@app.exception_handler(StarletteHTTPException)
async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Hide internal details for 5xx in production unless explicitly enabled.
    if exc.status_code >= 500 and not settings.expose_error_details:
        return JSONResponse(status_code=exc.status_code, content={"detail": "Internal server error"})
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(InvalidImage)
async def _invalid_image_handler(request: Request, exc: InvalidImage):
    return JSONResponse(status_code=400, content={"success": False, "error": str(exc)})


@app.exception_handler(NoDataAvailable)
async def _no_data_handler(request: Request, exc: NoDataAvailable):
    logger.warning("Analysis produced no data: %s", exc)
    return JSONResponse(status_code=503, content={"success": False, "error": str(exc)})


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception")
    if settings.expose_error_details:
        return JSONResponse(status_code=500, content={"detail": str(exc)})
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.middleware("http")
async def api_rate_limit_middleware(request: Request, call_next):
    if request.method == "OPTIONS":
        return await call_next(request)

    path = request.url.path
    if not path.startswith("/api/v1"):
        return await call_next(request)

    settings = get_settings()
    if not settings.rate_limit_api_enabled:
        return await call_next(request)

    ip = get_client_ip(request) or "unknown"
    scope, limit = limit_for_path(path, settings)
    allowed, _ = rate_limiter.allow(f"{scope}:ip:{ip}", limit, WINDOW_SECONDS)
    if not allowed:
        logger.info("Rate limit hit: scope=%s ip=%s path=%s", scope, ip, path)
        return JSONResponse(
            status_code=429,
            content={"detail": "Too Many Requests"},
            headers={"Retry-After": str(WINDOW_SECONDS)},
        )

    return await call_next(request)


@app.middleware("http")
async def security_headers_middleware(request: Request, call_next):
    response = await call_next(request)
    if not settings.security_headers_enabled:
        return response

    headers = response.headers
    if "X-Content-Type-Options" not in headers:
        headers["X-Content-Type-Options"] = "nosniff"
    if "X-Frame-Options" not in headers:
        headers["X-Frame-Options"] = "DENY"
    if "Referrer-Policy" not in headers:
        headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    if "Permissions-Policy" not in headers:
        headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
    if "Cache-Control" not in headers and request.url.path.startswith("/api/v1"):
        headers["Cache-Control"] = "no-store"

    return response


@app.get("/health")
async def health_check():
    return {"status": "ok"}


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    current = get_settings()
    uvicorn.run(
        "app.main:app",
        host=current.server_host,
        port=current.server_port,
        log_level=current.log_level.lower(),
    )
