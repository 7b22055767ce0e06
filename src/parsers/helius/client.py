"""Helius API client — enhanced transaction history and DAS lookups for Solana."""

import asyncio
import base64
from typing import Any

import httpx
from loguru import logger

from src.parsers.helius.exceptions import (
    HeliusApiError,
    HeliusAuthError,
    HeliusRateLimitError,
)
from src.parsers.helius.models import (
    HeliusAsset,
    HeliusNativeTransfer,
    HeliusTokenAccount,
    HeliusTokenTransfer,
    HeliusTransaction,
)
from src.parsers.rate_limiter import RateLimiter

DEFAULT_API_URL = "https://api-mainnet.helius-rpc.com"
MAX_RETRIES = 2
RETRY_DELAYS = [1.0, 3.0]
MAX_PAGE_SIZE = 100  # Enhanced API hard limit per request

INVALID_KEY_MSG = (
    "Invalid Helius API key. Set HELIUS_API_KEY in .env to your key from "
    "https://dashboard.helius.dev (no quotes or spaces) and restart the server."
)


class HeliusClient:
    """Async HTTP client for the Helius Enhanced API and RPC (DAS).

    Unlike a fire-and-forget enrichment client, every method raises on
    failure so callers can tell "no data" apart from "lookup failed".
    """

    def __init__(
        self,
        api_key: str,
        rpc_url: str = "",
        api_url: str = DEFAULT_API_URL,
        max_rps: float = 10.0,
    ) -> None:
        self._api_key = api_key
        self._rpc_url = rpc_url or f"https://mainnet.helius-rpc.com/?api-key={api_key}"
        self._api_url = api_url.rstrip("/")
        self._rate_limiter = RateLimiter(max_rps)
        self._client = httpx.AsyncClient(timeout=15.0)

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        """Rate-limited request with retry on 429/5xx/timeout. Returns decoded JSON."""
        last_exc: Exception | None = None

        for attempt in range(MAX_RETRIES + 1):
            await self._rate_limiter.acquire()
            delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
            try:
                resp = await self._client.request(method, url, **kwargs)
            except (httpx.TimeoutException, httpx.ConnectError) as e:
                last_exc = e
                if attempt < MAX_RETRIES:
                    logger.debug(f"[HELIUS] {type(e).__name__}, retry {attempt + 1} in {delay}s")
                    await asyncio.sleep(delay)
                    continue
                raise HeliusApiError(f"Request failed after {MAX_RETRIES + 1} attempts: {e}") from e

            if resp.status_code == 401:
                raise HeliusAuthError(INVALID_KEY_MSG)
            if resp.status_code == 429:
                if attempt < MAX_RETRIES:
                    logger.debug(f"[HELIUS] 429 rate limited, retry {attempt + 1} in {delay}s")
                    await asyncio.sleep(delay)
                    continue
                raise HeliusRateLimitError("Rate limited (429)")
            if resp.status_code >= 500 and attempt < MAX_RETRIES:
                logger.debug(f"[HELIUS] {resp.status_code} server error, retry {attempt + 1} in {delay}s")
                await asyncio.sleep(delay)
                continue
            if resp.status_code != 200:
                raise HeliusApiError(f"Helius API error {resp.status_code}: {resp.text[:200]}")

            try:
                return resp.json()
            except ValueError as e:
                raise HeliusApiError(f"Malformed JSON from Helius: {e}") from e

        raise HeliusApiError("Request failed after retries") from last_exc

    async def _rpc(self, method: str, params: Any) -> Any:
        """JSON-RPC call on the Helius RPC endpoint. Returns ``result``."""
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        data = await self._request("POST", self._rpc_url, json=payload)
        if not isinstance(data, dict):
            raise HeliusApiError(f"{method}: unexpected response shape")

        error = data.get("error")
        if error:
            message = str(error.get("message", "Unknown")) if isinstance(error, dict) else str(error)
            if "invalid api key" in message.lower():
                raise HeliusAuthError(INVALID_KEY_MSG)
            raise HeliusApiError(f"{method}: {message}")
        return data.get("result")

    async def get_transactions_by_address(
        self,
        address: str,
        *,
        sort_order: str = "desc",
        limit: int = 100,
        before: str = "",
    ) -> list[HeliusTransaction]:
        """Fetch enhanced parsed transaction history for an address.

        sort_order="asc" returns oldest first, "desc" newest first.
        ``before`` is the pagination cursor (signature of the last seen tx).
        """
        params = {
            "api-key": self._api_key,
            "sort-order": sort_order,
            "limit": str(max(1, min(limit, MAX_PAGE_SIZE))),
        }
        if before:
            params["before-signature"] = before

        url = f"{self._api_url}/v0/addresses/{address}/transactions"
        data = await self._request("GET", url, params=params)
        if not isinstance(data, list):
            raise HeliusApiError("transactions: unexpected response shape")
        return [_parse_tx(tx) for tx in data if isinstance(tx, dict)]

    async def get_asset(self, asset_id: str) -> HeliusAsset | None:
        """Fetch asset metadata via the DAS getAsset method.

        Returns None if the asset is not indexed. Cost: 10 Helius credits.
        """
        try:
            result = await self._rpc("getAsset", {"id": asset_id})
        except HeliusApiError as e:
            if "not found" in str(e).lower():
                return None
            raise
        if not result:
            return None
        return HeliusAsset.model_validate(result)

    async def get_account_bytes(self, address: str) -> bytes | None:
        """Fetch raw account data (getAccountInfo, base64). None if no account."""
        result = await self._rpc("getAccountInfo", [address, {"encoding": "base64"}])
        if not isinstance(result, dict) or not result.get("value"):
            return None

        raw = result["value"].get("data")
        # RPC returns [payload, "base64"]; some proxies return the bare string
        if isinstance(raw, list):
            raw = raw[0] if raw else None
        if not isinstance(raw, str):
            return None
        try:
            return base64.b64decode(raw)
        except ValueError as e:
            raise HeliusApiError(f"getAccountInfo: undecodable data: {e}") from e

    async def get_token_accounts(
        self, mint: str, *, limit: int = 1000
    ) -> list[HeliusTokenAccount]:
        """Fetch token accounts (holders) for a mint via DAS getTokenAccounts."""
        result = await self._rpc("getTokenAccounts", {"mint": mint, "limit": limit})
        if not isinstance(result, dict):
            raise HeliusApiError("getTokenAccounts: unexpected result shape")
        accounts = result.get("token_accounts") or []
        return [HeliusTokenAccount.model_validate(a) for a in accounts]


def _parse_tx(data: dict) -> HeliusTransaction:
    """Parse raw Helius enhanced transaction."""
    token_transfers = [
        HeliusTokenTransfer(
            from_user_account=t.get("fromUserAccount") or "",
            to_user_account=t.get("toUserAccount") or "",
            token_amount=t.get("tokenAmount") or 0,
            mint=t.get("mint") or "",
        )
        for t in data.get("tokenTransfers") or []
    ]

    native_transfers = [
        HeliusNativeTransfer(
            from_user_account=t.get("fromUserAccount") or "",
            to_user_account=t.get("toUserAccount") or "",
            amount=t.get("amount") or 0,
        )
        for t in data.get("nativeTransfers") or []
    ]

    return HeliusTransaction(
        signature=data.get("signature", ""),
        timestamp=data.get("timestamp") or 0,
        fee_payer=data.get("feePayer") or "",
        type=data.get("type") or "",
        source=data.get("source") or "",
        description=data.get("description") or "",
        native_transfers=native_transfers,
        token_transfers=token_transfers,
    )
