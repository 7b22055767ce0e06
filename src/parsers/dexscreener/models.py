"""Pydantic models for DexScreener /token-pairs responses (subset used for market stats)."""

from decimal import Decimal

from pydantic import BaseModel


class DexScreenerToken(BaseModel):
    address: str = ""
    symbol: str | None = None

    model_config = {"extra": "ignore"}


class DexScreenerLiquidity(BaseModel):
    usd: Decimal | None = None

    model_config = {"extra": "ignore"}


class DexScreenerTxns(BaseModel):
    buys: int | None = None
    sells: int | None = None

    model_config = {"extra": "ignore"}


class DexScreenerTxnsByPeriod(BaseModel):
    h24: DexScreenerTxns | None = None

    model_config = {"extra": "ignore"}


class DexScreenerPair(BaseModel):
    """One trading pair. Counter-asset is whichever side is not the analyzed mint."""

    dexId: str = ""
    pairAddress: str = ""
    baseToken: DexScreenerToken | None = None
    quoteToken: DexScreenerToken | None = None
    liquidity: DexScreenerLiquidity | None = None
    txns: DexScreenerTxnsByPeriod | None = None

    model_config = {"extra": "ignore"}

    @property
    def liquidity_usd(self) -> Decimal:
        """Pool liquidity in USD; 0 when DexScreener reports none (fresh bonding curves)."""
        if self.liquidity is None or self.liquidity.usd is None:
            return Decimal("0")
        return self.liquidity.usd
