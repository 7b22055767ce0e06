"""FastAPI dependency injection — analyzer instance and validated mint."""

from __future__ import annotations

from fastapi import HTTPException, Query, Request, status

from config.settings import settings
from src.parsers.token_analyzer import TokenAnalyzer, build_analyzer
from src.utils.address import is_valid_solana_address


def valid_mint(mint: str = Query("", description="Token mint address")) -> str:
    """Reject malformed addresses before any upstream call is made."""
    mint = mint.strip()
    if not mint:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing mint parameter (token mint address)",
        )
    if not is_valid_solana_address(mint):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid Solana address (expected 32-44 base58 characters)",
        )
    return mint


async def get_analyzer(request: Request) -> TokenAnalyzer:
    """Return the app-wide analyzer, building it on first use.

    Runs on the event loop rather than the threadpool, so concurrent first
    requests cannot each build their own set of clients.
    Raises ConfigurationError (-> 503) while HELIUS_API_KEY is missing.
    """
    analyzer = getattr(request.app.state, "analyzer", None)
    if analyzer is None:
        analyzer = build_analyzer(settings)
        request.app.state.analyzer = analyzer
    return analyzer
