"""Health check — no auth required."""

from __future__ import annotations

import time

from fastapi import APIRouter
from pydantic import BaseModel

from config.settings import settings
from src.parsers.exceptions import ConfigurationError
from src.parsers.token_analyzer import require_helius_key

router = APIRouter(prefix="/api/v1", tags=["health"])

_STARTED_AT = time.monotonic()


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_sec: int
    helius_configured: bool
    birdeye_configured: bool


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Report uptime and whether provider keys are configured (not validated)."""
    try:
        require_helius_key(settings.helius_api_key)
        helius_ok = True
    except ConfigurationError:
        helius_ok = False

    return HealthResponse(
        status="ok" if helius_ok else "degraded",
        version="0.1.0",
        uptime_sec=int(time.monotonic() - _STARTED_AT),
        helius_configured=helius_ok,
        birdeye_configured=bool(settings.birdeye_api_key.strip()),
    )
