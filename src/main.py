"""Entry point for the Solana token risk analyzer web service."""

import asyncio

from loguru import logger

from config.settings import settings
from src.api.server import run_server
from src.utils.logger import setup_logger


async def main() -> None:
    setup_logger(json_logs=settings.log_json, level="INFO")
    if not settings.helius_api_key.strip():
        logger.warning("HELIUS_API_KEY is not set; /api/analyze will answer 503 until it is")
    logger.info("Starting token risk analyzer...")
    await run_server()
    logger.info("Shutdown complete")


if __name__ == "__main__":
    asyncio.run(main())
