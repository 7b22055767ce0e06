"""Evidence records gathered for one token analysis, and the scored result.

Every field the collector may fail to obtain is typed ``X | None``; the
scorer skips a rule when its input is None instead of reading a zero.
All records are built once per request and never mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from src.parsers.helius.models import HeliusTransaction


class MintAuthority(str, Enum):
    ACTIVE = "active"  # creator can still mint supply
    REVOKED = "revoked"
    UNKNOWN = "unknown"


class MigrationStatus(str, Enum):
    BONDING_CURVE = "bonding_curve"
    MIGRATED = "migrated"
    AMM_ONLY = "amm_only"
    UNKNOWN = "unknown"

    @property
    def label(self) -> str:
        return _MIGRATION_LABELS[self]


_MIGRATION_LABELS = {
    MigrationStatus.BONDING_CURVE: "Bonding curve (not migrated)",
    MigrationStatus.MIGRATED: "Migrated (e.g. Raydium)",
    MigrationStatus.AMM_ONLY: "Trading on AMM (no bonding curve)",
    MigrationStatus.UNKNOWN: "Unknown",
}


class FactorSeverity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    POSITIVE = "positive"
    NEUTRAL = "neutral"


class RiskTier(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class EmissionStatus(str, Enum):
    FIXED = "fixed"
    UNLIMITED = "unlimited"


@dataclass(frozen=True)
class CreatorProfile:
    """Identity and behaviour of the wallet that deployed the token."""

    address: str
    first_activity_timestamp: int | None  # unix
    account_age_days: float | None
    sampled_transaction_count: int
    estimated_tokens_created: int  # floor of 1
    mint_authority: MintAuthority = MintAuthority.UNKNOWN
    creation_timestamp: int | None = None  # first tx on the mint itself
    token_name: str | None = None
    token_symbol: str | None = None


@dataclass(frozen=True)
class TopHolder:
    owner: str
    amount_raw: int
    percent_of_supply: float


@dataclass(frozen=True)
class ConnectedHolder:
    """Top holder that received SOL or tokens directly from the creator."""

    owner: str
    percent_of_supply: float
    first_received_at: int | None  # unix


@dataclass(frozen=True)
class HolderDistribution:
    total_supply_raw: int
    total_holders: int
    top_holders: list[TopHolder]
    top10_percent: float
    creator_hold_percent: float
    creator_connected_holders: list[ConnectedHolder] = field(default_factory=list)


@dataclass(frozen=True)
class TokenPair:
    """Best pair for one counter-asset (e.g. TOKEN/SOL, TOKEN/USDC)."""

    counter_symbol: str
    liquidity_usd: float
    dex_id: str = ""
    pair_address: str = ""


@dataclass(frozen=True)
class MarketStats:
    liquidity_usd: float | None = None
    pairs: list[TokenPair] = field(default_factory=list)
    buys_24h: int = 0
    sells_24h: int = 0
    unique_traders_24h: int | None = None
    fresh_holder_percent_1d: float | None = None
    fresh_holder_percent_7d: float | None = None
    migration_status: MigrationStatus = MigrationStatus.UNKNOWN

    @property
    def trades_24h(self) -> int:
        return self.buys_24h + self.sells_24h

    @property
    def migration_label(self) -> str:
        return self.migration_status.label


@dataclass(frozen=True)
class SiblingToken:
    """Another token created by the same wallet."""

    mint: str
    symbol: str | None = None
    name: str | None = None
    liquidity_usd: float = 0.0
    pairs: list[TokenPair] = field(default_factory=list)


@dataclass(frozen=True)
class EvidenceBundle:
    mint: str
    creator: CreatorProfile
    creator_transactions: list[HeliusTransaction] | None = None  # None = lookup failed
    holders: HolderDistribution | None = None
    market: MarketStats | None = None
    sibling_tokens: list[SiblingToken] = field(default_factory=list)


@dataclass(frozen=True)
class RiskFactor:
    id: str
    label: str
    severity: FactorSeverity
    description: str
    impact: int  # negative = riskier


@dataclass(frozen=True)
class RiskResult:
    score: int  # 0-100, higher = safer
    severity: RiskTier
    factors: list[RiskFactor]
    mint: str
    creator: CreatorProfile
    emission_status: EmissionStatus
    creator_sold: bool
    holder_stats: HolderDistribution | None = None
    market: MarketStats | None = None
    sibling_tokens: list[SiblingToken] = field(default_factory=list)
