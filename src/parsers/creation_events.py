"""Token-creation event classification for creator transaction samples.

Helius type tags are inconsistently granular across programs, so a tag
counts as a creation event if it matches a known creation/mint/initialize
tag (exactly or as ``TAG_`` prefix) or, failing that, merely contains
MINT, CREATE or INITIALIZE. The substring fallback overcounts (e.g. plain
MINT_TO top-ups on an existing token); scoring thresholds are calibrated
against this behaviour, so it is kept as is.
"""

from collections.abc import Iterable

from src.parsers.helius.models import HeliusTransaction
from src.utils.address import is_valid_solana_address

TOKEN_CREATION_TYPES = (
    "CREATE",
    "CREATE_MINT_METADATA",
    "CREATE_MASTER_EDITION",
    "TOKEN_MINT",
    "MINT_TO",
    "INITIALIZE",
    "INITIALIZE_MINT",
    "NFT_MINT",
    "COMPRESSED_NFT_MINT",
)

_FALLBACK_MARKERS = ("MINT", "CREATE", "INITIALIZE")


def is_creation_type(tx_type: str | None) -> bool:
    t = (tx_type or "").upper()
    for tag in TOKEN_CREATION_TYPES:
        if t == tag or t.startswith(tag + "_"):
            return True
    return any(marker in t for marker in _FALLBACK_MARKERS)


def is_creation_event(tx: HeliusTransaction) -> bool:
    return is_creation_type(tx.type)


def count_creation_events(transactions: Iterable[HeliusTransaction]) -> int:
    """Raw count of creation events in a sample (no floor applied)."""
    return sum(1 for tx in transactions if is_creation_event(tx))


def estimate_tokens_created(transactions: Iterable[HeliusTransaction]) -> int:
    """Creation-event count with a floor of 1: the analyzed token itself."""
    return max(count_creation_events(transactions), 1)


def sibling_mints(
    transactions: Iterable[HeliusTransaction],
    current_mint: str,
    *,
    limit: int = 8,
) -> list[str]:
    """Other mints transferred in the creator's creation events, in sample order."""
    mints: list[str] = []
    seen: set[str] = {current_mint}
    for tx in transactions:
        if not is_creation_event(tx):
            continue
        for transfer in tx.token_transfers:
            mint = transfer.mint.strip()
            if mint in seen or not is_valid_solana_address(mint):
                continue
            seen.add(mint)
            mints.append(mint)
            if len(mints) >= limit:
                return mints
    return mints
