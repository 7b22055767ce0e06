"""Market stats from DexScreener pairs — liquidity, 24h trades, migration stage."""

from decimal import Decimal

from src.parsers.dexscreener.models import DexScreenerPair
from src.parsers.evidence import MarketStats, MigrationStatus, TokenPair

# Venues that mean the token trades on an AMM pool (post-migration or native)
AMM_DEX_MARKERS = ("raydium", "pump-amm", "pump_amm", "orca", "meteora", "jupiter", "lifinity", "phoenix")
BONDING_CURVE_MARKER = "pump"


def infer_migration_status(dex_ids: list[str]) -> MigrationStatus:
    """Bonding curve vs migrated vs AMM-only, from the set of venues seen.

    "pump" also matches pump-amm, so a token listed only on pump-amm is
    reported as migrated, which is what that venue means.
    """
    if not dex_ids:
        return MigrationStatus.UNKNOWN
    lower = [d.lower() for d in dex_ids]
    has_pump = any(BONDING_CURVE_MARKER in d for d in lower)
    has_amm = any(marker in d for d in lower for marker in AMM_DEX_MARKERS)

    if has_pump and not has_amm:
        return MigrationStatus.BONDING_CURVE
    if has_pump and has_amm:
        return MigrationStatus.MIGRATED
    if has_amm:
        return MigrationStatus.AMM_ONLY
    return MigrationStatus.UNKNOWN


def best_pairs_by_counter_asset(pairs: list[DexScreenerPair], mint: str) -> list[TokenPair]:
    """Highest-liquidity pair per counter-asset symbol; zero-liquidity ones dropped."""
    best: dict[str, DexScreenerPair] = {}
    for pair in pairs:
        base = pair.baseToken
        quote = pair.quoteToken
        if base is not None and base.address == mint:
            counter = (quote.symbol if quote else None) or "?"
        else:
            counter = (base.symbol if base else None) or "?"
        current = best.get(counter)
        if current is None or pair.liquidity_usd > current.liquidity_usd:
            best[counter] = pair

    return [
        TokenPair(
            counter_symbol=symbol,
            liquidity_usd=float(pair.liquidity_usd),
            dex_id=pair.dexId,
            pair_address=pair.pairAddress,
        )
        for symbol, pair in best.items()
        if pair.liquidity_usd > 0
    ]


def build_market_stats(
    pairs: list[DexScreenerPair],
    mint: str,
    *,
    unique_traders_24h: int | None = None,
) -> MarketStats | None:
    """Aggregate all pairs of a mint. None when there is no market data at all."""
    if not pairs and unique_traders_24h is None:
        return None

    liquidity = Decimal("0")
    buys = sells = 0
    dex_ids: list[str] = []
    for pair in pairs:
        if pair.liquidity_usd > 0:
            liquidity += pair.liquidity_usd
        h24 = pair.txns.h24 if pair.txns else None
        if h24 is not None:
            buys += h24.buys or 0
            sells += h24.sells or 0
        dex_id = pair.dexId.strip()
        if dex_id and dex_id not in dex_ids:
            dex_ids.append(dex_id)

    return MarketStats(
        # Pairs reporting no liquidity at all (fresh bonding curves) leave it unknown
        liquidity_usd=float(liquidity) if liquidity > 0 else None,
        pairs=best_pairs_by_counter_asset(pairs, mint),
        buys_24h=buys,
        sells_24h=sells,
        unique_traders_24h=unique_traders_24h,
        migration_status=infer_migration_status(dex_ids),
    )
