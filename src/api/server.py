"""HTTP server — runs uvicorn inside the current asyncio event loop."""

from __future__ import annotations

import uvicorn
from loguru import logger

from config.settings import settings


async def run_server() -> None:
    """Start uvicorn serving the FastAPI app until shutdown."""
    from src.api.app import create_app

    app = create_app()
    config = uvicorn.Config(
        app=app,
        host=settings.dashboard_host,
        port=settings.dashboard_port,
        log_level="warning",
        loop="none",  # use the existing event loop
    )
    server = uvicorn.Server(config)
    logger.info(f"Token risk analyzer starting on http://{settings.dashboard_host}:{settings.dashboard_port}")
    await server.serve()
