"""Birdeye Data Services API client.

Optional source: only the token overview is used, for unique traders in
the last 24h. Retry with fixed backoff for transient errors (timeout, 429, 5xx).
"""

import asyncio
from typing import Any

import httpx
from loguru import logger

from src.parsers.birdeye.models import BirdeyeTokenOverview
from src.parsers.rate_limiter import RateLimiter

BASE_URL = "https://public-api.birdeye.so"
MAX_RETRIES = 2
RETRY_DELAYS = [1.0, 3.0]


class BirdeyeApiError(Exception):
    pass


class BirdeyeClient:
    """Async client for Birdeye Data Services API."""

    def __init__(
        self,
        api_key: str,
        rate_limiter: RateLimiter | None = None,
        max_rps: float = 10.0,
    ) -> None:
        self._rate_limiter = rate_limiter or RateLimiter(max_rps)
        self._client = httpx.AsyncClient(
            base_url=BASE_URL,
            timeout=10.0,
            headers={
                "X-API-KEY": api_key,
                "Accept": "application/json",
                "x-chain": "solana",
            },
        )

    async def _request(self, path: str, **kwargs: Any) -> dict[str, Any]:
        """Rate-limited GET with retry for transient errors."""
        last_exc: Exception | None = None

        for attempt in range(MAX_RETRIES + 1):
            await self._rate_limiter.acquire()
            delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
            try:
                resp = await self._client.get(path, **kwargs)
            except httpx.RequestError as e:
                last_exc = e
                if attempt < MAX_RETRIES:
                    logger.debug(f"[BIRDEYE] {type(e).__name__}, retry {attempt + 1} in {delay}s: {path}")
                    await asyncio.sleep(delay)
                    continue
                raise BirdeyeApiError(f"Request failed: {path}: {e}") from e

            if resp.status_code == 401:
                raise BirdeyeApiError("Invalid API key (401)")
            if (resp.status_code == 429 or resp.status_code >= 500) and attempt < MAX_RETRIES:
                logger.debug(f"[BIRDEYE] {resp.status_code}, retry {attempt + 1} in {delay}s: {path}")
                await asyncio.sleep(delay)
                continue
            if resp.status_code != 200:
                raise BirdeyeApiError(f"HTTP {resp.status_code}: {path}")

            data = resp.json()
            if not data.get("success", True):
                raise BirdeyeApiError(f"API error: {data.get('message', 'unknown')}")
            return data.get("data") or {}

        raise BirdeyeApiError(f"Request failed after retries: {path}") from last_exc

    async def get_token_overview(self, address: str) -> BirdeyeTokenOverview:
        """Fetch token overview — liquidity, holders, trade counts, unique wallets."""
        data = await self._request("/defi/token_overview", params={"address": address})
        return BirdeyeTokenOverview.model_validate(data)

    async def close(self) -> None:
        await self._client.aclose()
