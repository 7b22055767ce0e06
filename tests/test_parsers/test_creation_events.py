"""Tests for creation-event classification and sibling mint discovery."""

import pytest

from src.parsers.creation_events import (
    count_creation_events,
    estimate_tokens_created,
    is_creation_type,
    sibling_mints,
)
from src.parsers.helius.models import HeliusTokenTransfer, HeliusTransaction

MINT = "TokenMint".ljust(44, "1")


@pytest.mark.parametrize(
    "tx_type",
    [
        "CREATE",
        "TOKEN_MINT",
        "MINT_TO",
        "INITIALIZE_MINT",
        "COMPRESSED_NFT_MINT",
        "CREATE_POOL",  # prefix of a known tag
        "create",  # case-insensitive
        "MINT_TO_CHECKED",
        "SOMETHING_INITIALIZE_ACCOUNT",  # substring fallback
    ],
)
def test_creation_types(tx_type):
    assert is_creation_type(tx_type)


@pytest.mark.parametrize("tx_type", ["SWAP", "TRANSFER", "BURN", "", None, "UNKNOWN"])
def test_non_creation_types(tx_type):
    assert not is_creation_type(tx_type)


def _tx(sig: str, tx_type: str, mints: tuple[str, ...] = ()) -> HeliusTransaction:
    return HeliusTransaction(
        signature=sig,
        type=tx_type,
        token_transfers=[HeliusTokenTransfer(mint=m) for m in mints],
    )


def test_count_is_order_independent():
    txs = [_tx("a", "CREATE"), _tx("b", "SWAP"), _tx("c", "TOKEN_MINT"), _tx("d", "TRANSFER")]
    assert count_creation_events(txs) == 2
    assert count_creation_events(list(reversed(txs))) == 2


def test_estimate_has_floor_of_one():
    assert estimate_tokens_created([]) == 1
    assert estimate_tokens_created([_tx("a", "SWAP")]) == 1
    assert estimate_tokens_created([_tx("a", "CREATE"), _tx("b", "CREATE")]) == 2


def test_sibling_mints_skips_current_and_duplicates():
    sister_a = "SisterA".ljust(44, "1")
    sister_b = "SisterB".ljust(44, "1")
    txs = [
        _tx("1", "CREATE", (MINT, sister_a)),
        _tx("2", "SWAP", ("SwapMint".ljust(44, "1"),)),  # not a creation event
        _tx("3", "TOKEN_MINT", (sister_a, sister_b)),
        _tx("4", "CREATE", ("not-an-address",)),
    ]
    assert sibling_mints(txs, MINT) == [sister_a, sister_b]


def test_sibling_mints_respects_limit():
    txs = [_tx(str(i), "CREATE", (f"Sister{i}".ljust(44, "1"),)) for i in range(1, 10)]
    found = sibling_mints(txs, MINT, limit=3)
    assert found == [f"Sister{i}".ljust(44, "1") for i in range(1, 4)]


def test_sibling_mints_empty_sample():
    assert sibling_mints([], MINT) == []
