"""Pydantic models for Birdeye Data Services API responses."""

from pydantic import BaseModel


class BirdeyeTokenOverview(BaseModel):
    """Response from /defi/token_overview (30 CU).

    Only the unique-trader count is read; the rest of the payload is ignored.
    """

    address: str = ""
    uniqueWallet24h: int | None = None

    model_config = {"extra": "ignore"}
