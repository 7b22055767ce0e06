"""Risk scorer — evidence bundle in, 0-100 score with explainable factors out.

Higher score = safer. Starts from a neutral 50 and runs every rule below in
a fixed order; each rule looks at one signal, and either stays silent or
contributes one factor with a bounded delta. Rules are independent (several
fire together) and are skipped when their evidence is absent. Factor order
in the result is rule order, not impact order.

Tiers: 0-30 high risk, 31-60 medium, 61-100 low.

All thresholds are product-tuned constants, not derived values.
"""

from collections.abc import Callable
from dataclasses import replace

from src.parsers.creation_events import count_creation_events
from src.parsers.evidence import (
    EmissionStatus,
    EvidenceBundle,
    FactorSeverity,
    MintAuthority,
    RiskFactor,
    RiskResult,
    RiskTier,
)

BASE_SCORE = 50
HIGH_RISK_MAX = 30
MEDIUM_RISK_MAX = 60

CREATOR_SOLD_PCT = 1.0
CREATOR_HOLDS_PCT = 10.0
SERIAL_CREATOR_TOKENS = 10
MULTIPLE_TOKENS = 5
VERY_HIGH_ACTIVITY_TXS = 500
CONNECTED_HOLDERS_CRITICAL_COUNT = 3
CONNECTED_HOLDERS_CRITICAL_PCT = 20.0
LOW_LIQUIDITY_USD = 2_000
MODERATE_LIQUIDITY_USD = 10_000
GOOD_LIQUIDITY_USD = 50_000
FRESH_HOLDERS_1D_PCT = 50.0
FRESH_HOLDERS_7D_PCT = 70.0

Rule = Callable[[EvidenceBundle], RiskFactor | None]


def _mint_authority(ev: EvidenceBundle) -> RiskFactor | None:
    status = ev.creator.mint_authority
    if status is MintAuthority.ACTIVE:
        return RiskFactor(
            id="unlimited_mint",
            label="Unlimited supply (creator can mint more)",
            severity=FactorSeverity.CRITICAL,
            description=(
                "Mint authority is not revoked. The deployer can mint more tokens at any "
                "time and crash the price, a typical scam or high-risk sign."
            ),
            impact=-20,
        )
    if status is MintAuthority.REVOKED:
        return RiskFactor(
            id="fixed_supply",
            label="Fixed supply (mint authority revoked)",
            severity=FactorSeverity.POSITIVE,
            description="Creator revoked mint authority. No new tokens can be minted.",
            impact=10,
        )
    return None


def _creator_share(ev: EvidenceBundle) -> RiskFactor | None:
    if ev.holders is None:
        return None
    pct = ev.holders.creator_hold_percent
    if pct < CREATOR_SOLD_PCT:
        return RiskFactor(
            id="creator_sold",
            label="Creator sold (or dumped) tokens",
            severity=FactorSeverity.CRITICAL,
            description=(
                f"Creator's share of supply is now {pct:.2f}%. "
                "A creator selling out is a strong red flag."
            ),
            impact=-18,
        )
    if pct >= CREATOR_HOLDS_PCT:
        return RiskFactor(
            id="creator_holds",
            label="Creator still holds a share",
            severity=FactorSeverity.POSITIVE,
            description=f"Creator holds {pct:.1f}% of supply and did not dump after launch.",
            impact=8,
        )
    return None


def _tokens_created(ev: EvidenceBundle) -> RiskFactor | None:
    if ev.creator_transactions is None:
        return None
    created = count_creation_events(ev.creator_transactions)
    if created >= SERIAL_CREATOR_TOKENS:
        return RiskFactor(
            id="serial_creator",
            label="Many tokens from same creator",
            severity=FactorSeverity.CRITICAL,
            description=f"Creator has launched many tokens (est. {created}+). Often a sign of serial scams.",
            impact=-25,
        )
    if created >= MULTIPLE_TOKENS:
        return RiskFactor(
            id="multiple_tokens",
            label="Multiple tokens from creator",
            severity=FactorSeverity.WARNING,
            description=f"Creator has launched several tokens (est. {created}). Check their history.",
            impact=-15,
        )
    if created <= 1:
        return RiskFactor(
            id="first_or_few",
            label="First or one of few tokens",
            severity=FactorSeverity.POSITIVE,
            description="Creator has few token launches, so no sign of a serial launcher.",
            impact=10,
        )
    return None


def _wallet_age(ev: EvidenceBundle) -> RiskFactor | None:
    age = ev.creator.account_age_days
    if age is None:
        return None
    if age < 1:
        return RiskFactor(
            id="brand_new_account",
            label="Brand new wallet",
            severity=FactorSeverity.CRITICAL,
            description="Creator wallet is less than 1 day old. Typical for scams.",
            impact=-20,
        )
    if age < 7:
        return RiskFactor(
            id="new_account",
            label="New wallet",
            severity=FactorSeverity.WARNING,
            description=f"Creator wallet age: ~{round(age)} days. Proceed with caution.",
            impact=-10,
        )
    if age >= 90:
        return RiskFactor(
            id="established_account",
            label="Established wallet",
            severity=FactorSeverity.POSITIVE,
            description=f"Creator wallet has been active for {round(age)}+ days.",
            impact=10,
        )
    return None


def _activity(ev: EvidenceBundle) -> RiskFactor | None:
    count = ev.creator.sampled_transaction_count
    if count > VERY_HIGH_ACTIVITY_TXS:
        return RiskFactor(
            id="very_high_activity",
            label="Very high activity",
            severity=FactorSeverity.WARNING,
            description=f"Very high tx count ({count}+). May indicate automated activity.",
            impact=-5,
        )
    return None


def _holder_count(ev: EvidenceBundle) -> RiskFactor | None:
    if ev.holders is None or ev.holders.total_holders <= 0:
        return None
    n = ev.holders.total_holders
    if n <= 2:
        return RiskFactor(
            id="very_few_holders",
            label="Very few holders",
            severity=FactorSeverity.CRITICAL,
            description=f"Only {n} holder(s). Typical of scams, illiquid tokens or coordinated wallets.",
            impact=-18,
        )
    if n <= 5:
        return RiskFactor(
            id="few_holders",
            label="Few holders",
            severity=FactorSeverity.WARNING,
            description=f"Only {n} holders. High concentration and manipulation risk.",
            impact=-10,
        )
    if n <= 15:
        return RiskFactor(
            id="low_holder_count",
            label="Low holder count",
            severity=FactorSeverity.WARNING,
            description=f"Only {n} holders. Moderate risk.",
            impact=-4,
        )
    return None


def _concentration(ev: EvidenceBundle) -> RiskFactor | None:
    if ev.holders is None:
        return None
    top10 = ev.holders.top10_percent
    if top10 >= 80:
        return RiskFactor(
            id="extreme_concentration",
            label="Extreme top-holder concentration",
            severity=FactorSeverity.CRITICAL,
            description=f"Top 10 wallets hold {top10:.1f}% of supply. High dump and manipulation risk.",
            impact=-15,
        )
    if top10 >= 50:
        return RiskFactor(
            id="high_concentration",
            label="High top-holder concentration",
            severity=FactorSeverity.WARNING,
            description=f"Top 10 wallets hold {top10:.1f}% of supply. Dump risk if whales sell.",
            impact=-8,
        )
    if top10 <= 30 and ev.holders.total_holders >= 100:
        return RiskFactor(
            id="distributed_holders",
            label="Distributed ownership",
            severity=FactorSeverity.POSITIVE,
            description=(
                f"Top 10 hold {top10:.1f}% across {ev.holders.total_holders} holders."
            ),
            impact=5,
        )
    return None


def _creator_connected(ev: EvidenceBundle) -> RiskFactor | None:
    if ev.holders is None or not ev.holders.creator_connected_holders:
        return None
    connected = ev.holders.creator_connected_holders
    combined = sum(h.percent_of_supply for h in connected)
    if len(connected) >= CONNECTED_HOLDERS_CRITICAL_COUNT or combined >= CONNECTED_HOLDERS_CRITICAL_PCT:
        return RiskFactor(
            id="creator_connected_holders",
            label="Top holders linked to creator",
            severity=FactorSeverity.CRITICAL,
            description=(
                f"{len(connected)} of top 10 ({combined:.1f}% of supply) received SOL or tokens "
                "from the creator. Possible sybil wallets."
            ),
            impact=-14,
        )
    return RiskFactor(
        id="creator_connected_holders",
        label="Some top holders linked to creator",
        severity=FactorSeverity.WARNING,
        description=f"{len(connected)} of top 10 received transfers from the creator. Check for coordination.",
        impact=-6,
    )


def _liquidity(ev: EvidenceBundle) -> RiskFactor | None:
    if ev.market is None or ev.market.liquidity_usd is None or ev.market.liquidity_usd < 0:
        return None
    usd = ev.market.liquidity_usd
    if usd < LOW_LIQUIDITY_USD:
        return RiskFactor(
            id="low_liquidity",
            label="Very low liquidity",
            severity=FactorSeverity.CRITICAL,
            description=f"Pool liquidity: ${usd:,.0f}. High rug / liquidity pull risk.",
            impact=-12,
        )
    if usd < MODERATE_LIQUIDITY_USD:
        return RiskFactor(
            id="moderate_liquidity",
            label="Low liquidity",
            severity=FactorSeverity.WARNING,
            description=f"Pool liquidity: ${usd:,.0f}. Be careful with large trades.",
            impact=-5,
        )
    if usd >= GOOD_LIQUIDITY_USD:
        return RiskFactor(
            id="good_liquidity",
            label="Decent liquidity",
            severity=FactorSeverity.POSITIVE,
            description=f"Pool liquidity: ${usd:,.0f}. Reasonable for trading.",
            impact=5,
        )
    return None


def _fresh_holders(ev: EvidenceBundle) -> RiskFactor | None:
    market = ev.market
    if market is None or (
        market.fresh_holder_percent_1d is None and market.fresh_holder_percent_7d is None
    ):
        return None
    fresh_1d = market.fresh_holder_percent_1d or 0.0
    fresh_7d = market.fresh_holder_percent_7d or 0.0
    if fresh_1d > FRESH_HOLDERS_1D_PCT or fresh_7d > FRESH_HOLDERS_7D_PCT:
        return RiskFactor(
            id="very_fresh_holders",
            label="Very high share of new holders",
            severity=FactorSeverity.WARNING,
            description=f"1D: {fresh_1d:.0f}% new, 7D: {fresh_7d:.0f}%. Possible wash trading or pump.",
            impact=-5,
        )
    return None


# Evaluation order == display order
RULES: tuple[Rule, ...] = (
    _mint_authority,
    _creator_share,
    _tokens_created,
    _wallet_age,
    _activity,
    _holder_count,
    _concentration,
    _creator_connected,
    _liquidity,
    _fresh_holders,
)


def risk_tier(score: int) -> RiskTier:
    if score <= HIGH_RISK_MAX:
        return RiskTier.HIGH
    if score <= MEDIUM_RISK_MAX:
        return RiskTier.MEDIUM
    return RiskTier.LOW


def compute_risk_score(evidence: EvidenceBundle) -> RiskResult:
    """Score an evidence bundle. Pure and deterministic; never raises on missing data."""
    factors: list[RiskFactor] = []
    for rule in RULES:
        factor = rule(evidence)
        if factor is not None:
            factors.append(factor)
    score = BASE_SCORE + sum(f.impact for f in factors)
    score = max(0, min(100, score))

    creator = evidence.creator
    if evidence.creator_transactions is not None:
        estimated = max(count_creation_events(evidence.creator_transactions), 1)
        creator = replace(creator, estimated_tokens_created=estimated)

    holders = evidence.holders
    return RiskResult(
        score=score,
        severity=risk_tier(score),
        factors=factors,
        mint=evidence.mint,
        creator=creator,
        emission_status=(
            EmissionStatus.UNLIMITED
            if creator.mint_authority is MintAuthority.ACTIVE
            else EmissionStatus.FIXED
        ),
        creator_sold=holders is not None and holders.creator_hold_percent < CREATOR_SOLD_PCT,
        holder_stats=holders,
        market=evidence.market,
        sibling_tokens=list(evidence.sibling_tokens),
    )
