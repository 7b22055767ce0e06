"""Holder distribution — supply concentration and creator-linked holders.

Balances are summed with Python ints so supplies beyond 2**53 stay exact;
floats appear only in the final percentage values.
"""

from collections.abc import Iterable

from src.parsers.evidence import ConnectedHolder, HolderDistribution, TopHolder
from src.parsers.helius.models import HeliusTokenAccount, HeliusTransaction

TOP_HOLDER_COUNT = 10


def percent_of_supply(amount: int, total: int) -> float:
    """Share of ``total`` in percent. int/int true division is correctly rounded."""
    if total <= 0:
        return 0.0
    return amount * 100 / total


def aggregate_by_owner(accounts: Iterable[HeliusTokenAccount]) -> list[tuple[str, int]]:
    """Merge accounts per owner and rank owners by balance, descending.

    Owners with a zero total are dropped. Ties keep first-seen order.
    """
    by_owner: dict[str, int] = {}
    for account in accounts:
        if not account.owner:
            continue
        by_owner[account.owner] = by_owner.get(account.owner, 0) + account.amount

    positive = [(owner, amount) for owner, amount in by_owner.items() if amount > 0]
    return sorted(positive, key=lambda item: item[1], reverse=True)


def wallets_funded_by_creator(
    transactions: Iterable[HeliusTransaction], creator: str
) -> dict[str, int]:
    """Recipients of native or token transfers sent by the creator.

    Maps each recipient to the earliest timestamp it received from the creator.
    """
    first_received: dict[str, int] = {}

    def _record(recipient: str, ts: int) -> None:
        if not recipient or recipient == creator:
            return
        known = first_received.get(recipient)
        if known is None or ts < known:
            first_received[recipient] = ts

    for tx in transactions:
        for t in tx.native_transfers:
            if t.from_user_account == creator:
                _record(t.to_user_account, tx.timestamp)
        for t in tx.token_transfers:
            if t.from_user_account == creator:
                _record(t.to_user_account, tx.timestamp)

    return first_received


def build_distribution(
    accounts: Iterable[HeliusTokenAccount],
    creator: str,
    funded_by_creator: dict[str, int] | None = None,
) -> HolderDistribution | None:
    """Holder snapshot for one mint. None when no positive balance is observed."""
    ranked = aggregate_by_owner(accounts)
    total = sum(amount for _, amount in ranked)
    if total == 0:
        return None

    top = ranked[:TOP_HOLDER_COUNT]
    top_holders = [
        TopHolder(owner=owner, amount_raw=amount, percent_of_supply=percent_of_supply(amount, total))
        for owner, amount in top
    ]
    top10_raw = sum(amount for _, amount in top)
    creator_raw = next((amount for owner, amount in ranked if owner == creator), 0)

    funded = funded_by_creator or {}
    connected = [
        ConnectedHolder(
            owner=h.owner,
            percent_of_supply=h.percent_of_supply,
            first_received_at=funded[h.owner],
        )
        for h in top_holders
        if h.owner in funded
    ]

    return HolderDistribution(
        total_supply_raw=total,
        total_holders=len(ranked),
        top_holders=top_holders,
        top10_percent=percent_of_supply(top10_raw, total),
        creator_hold_percent=percent_of_supply(creator_raw, total),
        creator_connected_holders=connected,
    )
