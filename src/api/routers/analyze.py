"""Token analysis endpoint — GET /api/analyze?mint=<address>."""

from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends, Request

from config.settings import settings
from src.api.app import limiter
from src.api.dependencies import get_analyzer, valid_mint
from src.parsers.evidence import RiskResult
from src.parsers.token_analyzer import TokenAnalyzer

router = APIRouter(prefix="/api", tags=["analyze"])


def serialize_result(result: RiskResult) -> dict[str, Any]:
    """RiskResult as a JSON-ready dict, including derived market fields.

    Raw token amounts can exceed 2**53, so they are sent as decimal strings.
    """
    data = asdict(result)
    holders = data.get("holder_stats")
    if holders is not None:
        holders["total_supply_raw"] = str(holders["total_supply_raw"])
        for holder in holders["top_holders"]:
            holder["amount_raw"] = str(holder["amount_raw"])
    if result.market is not None:
        data["market"]["trades_24h"] = result.market.trades_24h
        data["market"]["migration_label"] = result.market.migration_label
    return data


@router.get("/analyze")
@limiter.limit(settings.analyze_rate_limit)
async def analyze_token(
    request: Request,
    mint: str = Depends(valid_mint),
    analyzer: TokenAnalyzer = Depends(get_analyzer),
) -> dict[str, Any]:
    """Risk score, tier and contributing factors for one token mint."""
    result = await analyzer.analyze(mint)
    return serialize_result(result)
