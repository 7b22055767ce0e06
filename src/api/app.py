"""FastAPI application factory for the token risk analyzer."""

from __future__ import annotations

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from src.api.middleware import SecurityHeadersMiddleware
from src.parsers.exceptions import (
    AnalysisError,
    AnalysisTimeoutError,
    ConfigurationError,
    InvalidApiKeyError,
    TokenNotFoundError,
    UpstreamError,
)

# Rate limiter (shared instance)
limiter = Limiter(key_func=get_remote_address)

STATIC_DIR = Path(__file__).resolve().parent / "static"

# First match wins, so subclasses come before their bases
ERROR_STATUS: list[tuple[type[AnalysisError], int, str]] = [
    (InvalidApiKeyError, 401, "invalid_api_key"),
    (ConfigurationError, 503, "not_configured"),
    (TokenNotFoundError, 404, "not_found"),
    (AnalysisTimeoutError, 504, "timeout"),
    (UpstreamError, 502, "upstream_error"),
]


async def analysis_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map the analysis error taxonomy to HTTP statuses."""
    for exc_type, status_code, kind in ERROR_STATUS:
        if isinstance(exc, exc_type):
            return JSONResponse(status_code=status_code, content={"detail": str(exc), "error": kind})
    logger.error(f"[API] Unmapped analysis error: {exc!r}")
    return JSONResponse(status_code=500, content={"detail": "Analysis error", "error": "internal"})


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    analyzer = getattr(app.state, "analyzer", None)
    if analyzer is not None:
        await analyzer.close()
        app.state.analyzer = None


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    app = FastAPI(
        title="Solana Token Risk Analyzer",
        version="0.1.0",
        docs_url="/api/docs" if os.getenv("DASHBOARD_DEBUG") else None,
        redoc_url=None,
        openapi_url="/api/openapi.json" if os.getenv("DASHBOARD_DEBUG") else None,
        lifespan=lifespan,
    )
    # Built lazily on first request so a missing key is reported per request
    app.state.analyzer = None

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(AnalysisError, analysis_error_handler)

    # Security headers
    app.add_middleware(SecurityHeadersMiddleware)

    from src.api.routers.analyze import router as analyze_router
    from src.api.routers.health import router as health_router

    app.include_router(analyze_router)
    app.include_router(health_router)

    # Single-page form UI
    if STATIC_DIR.exists():
        app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
        index_html = STATIC_DIR / "index.html"

        @app.get("/", include_in_schema=False)
        async def index() -> FileResponse:
            return FileResponse(index_html)

    return app
