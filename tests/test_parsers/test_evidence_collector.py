"""Tests for the evidence collector against in-memory Helius/DexScreener fakes."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from src.parsers.birdeye.models import BirdeyeTokenOverview
from src.parsers.dexscreener.client import DexScreenerError
from src.parsers.dexscreener.models import DexScreenerPair
from src.parsers.evidence import MigrationStatus, MintAuthority
from src.parsers.evidence_collector import SECONDS_PER_DAY, EvidenceCollector
from src.parsers.exceptions import InvalidApiKeyError, TokenNotFoundError, UpstreamError
from src.parsers.helius.client import HeliusClient
from src.parsers.helius.exceptions import HeliusApiError, HeliusAuthError, HeliusRateLimitError
from src.parsers.helius.models import (
    HeliusAsset,
    HeliusNativeTransfer,
    HeliusTokenAccount,
    HeliusTokenTransfer,
    HeliusTransaction,
)
from src.parsers.risk_score import compute_risk_score

NOW = 1_700_000_000
MINT = "TokenMint".ljust(44, "1")
CREATOR = "Creator".ljust(44, "1")
SISTER = "Sister".ljust(44, "1")
SOL = "So11111111111111111111111111111111111111112"


class FakeHelius:
    """Helius client stub. History is stored oldest first per address."""

    def __init__(
        self,
        *,
        history: dict[str, list[HeliusTransaction]] | None = None,
        token_accounts: dict[str, list[HeliusTokenAccount]] | None = None,
        assets: dict[str, HeliusAsset] | None = None,
        account_bytes: dict[str, bytes] | None = None,
        fail: dict[tuple[str, str], Exception] | None = None,
    ):
        self.history = history or {}
        self.token_accounts = token_accounts or {}
        self.assets = assets or {}
        self.account_bytes = account_bytes or {}
        self.fail = fail or {}
        self.calls: list[tuple] = []

    def _maybe_fail(self, method: str, address: str) -> None:
        exc = self.fail.get((method, address))
        if exc is not None:
            raise exc

    async def get_transactions_by_address(self, address, *, sort_order="desc", limit=100, before=""):
        self.calls.append((f"history_{sort_order}", address, limit, before))
        self._maybe_fail(f"history_{sort_order}", address)
        txs = list(self.history.get(address, []))
        if sort_order == "desc":
            txs.reverse()
        if before:
            sigs = [t.signature for t in txs]
            txs = txs[sigs.index(before) + 1:]
        return txs[:limit]

    async def get_asset(self, asset_id):
        self.calls.append(("asset", asset_id))
        self._maybe_fail("asset", asset_id)
        return self.assets.get(asset_id)

    async def get_account_bytes(self, address):
        self.calls.append(("account", address))
        self._maybe_fail("account", address)
        return self.account_bytes.get(address)

    async def get_token_accounts(self, mint, *, limit=1000):
        self.calls.append(("token_accounts", mint, limit))
        self._maybe_fail("token_accounts", mint)
        return self.token_accounts.get(mint, [])


class FakeDexScreener:
    """DexScreener stub that tracks how many lookups run at once."""

    def __init__(self, pairs: dict[str, list[DexScreenerPair]] | None = None, fail: set[str] | None = None):
        self.pairs = pairs or {}
        self.fail = fail or set()
        self.in_flight = 0
        self.max_in_flight = 0

    async def get_token_pairs(self, token_address):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if token_address in self.fail:
                raise DexScreenerError("HTTP 503")
            return self.pairs.get(token_address, [])
        finally:
            self.in_flight -= 1


class FakeBirdeye:
    def __init__(self, unique_wallets: int | None):
        self.unique_wallets = unique_wallets

    async def get_token_overview(self, address):
        return BirdeyeTokenOverview(address=address, uniqueWallet24h=self.unique_wallets)


def _tx(
    sig: str,
    ts: int,
    *,
    fee_payer: str = CREATOR,
    tx_type: str = "TRANSFER",
    mints: tuple[str, ...] = (),
    native_to: tuple[str, ...] = (),
) -> HeliusTransaction:
    return HeliusTransaction(
        signature=sig,
        timestamp=ts,
        fee_payer=fee_payer,
        type=tx_type,
        token_transfers=[HeliusTokenTransfer(mint=m, to_user_account=CREATOR) for m in mints],
        native_transfers=[
            HeliusNativeTransfer(from_user_account=CREATOR, to_user_account=to, amount=1_000_000)
            for to in native_to
        ],
    )


def _pair(base: str, liquidity: float, dex: str = "raydium") -> DexScreenerPair:
    return DexScreenerPair.model_validate({
        "chainId": "solana",
        "dexId": dex,
        "pairAddress": f"{dex}-{base[:6]}",
        "baseToken": {"address": base, "symbol": "TKN"},
        "quoteToken": {"address": SOL, "symbol": "SOL"},
        "liquidity": {"usd": liquidity},
        "txns": {"h24": {"buys": 12, "sells": 8}},
    })


def _asset(asset_id: str, *, symbol: str, authority: str | None = None) -> HeliusAsset:
    return HeliusAsset.model_validate({
        "id": asset_id,
        "content": {"metadata": {"name": f"{symbol} Token", "symbol": symbol}},
        "token_info": {"supply": 1_000_000, "decimals": 6, "mint_authority": authority},
    })


def _healthy_helius(**overrides) -> FakeHelius:
    creation_ts = NOW - 10 * SECONDS_PER_DAY
    data = {
        "history": {
            MINT: [_tx("mint-create", creation_ts, tx_type="CREATE", mints=(MINT,))],
            CREATOR: [
                _tx("first", NOW - 200 * SECONDS_PER_DAY, fee_payer="Funder".ljust(44, "1")),
                _tx("mint-create", creation_ts, tx_type="CREATE", mints=(MINT,)),
                _tx("fund", creation_ts + 60, native_to=("Owner1".ljust(44, "1"),)),
                _tx("swap", creation_ts + 120, tx_type="SWAP"),
            ],
        },
        "token_accounts": {
            MINT: [
                HeliusTokenAccount(owner=CREATOR, amount=150),
                HeliusTokenAccount(owner="Owner1".ljust(44, "1"), amount=50),
            ] + [HeliusTokenAccount(owner=f"Owner{i}x".ljust(44, "2"), amount=4) for i in range(200)],
        },
        "assets": {MINT: _asset(MINT, symbol="TST")},
    }
    data.update(overrides)
    return FakeHelius(**data)


def _collector(helius, dex=None, birdeye=None, **kwargs) -> EvidenceCollector:
    return EvidenceCollector(
        helius,
        dex or FakeDexScreener({MINT: [_pair(MINT, 80_000.0)]}),
        birdeye,
        clock=lambda: NOW,
        **kwargs,
    )


# --- Happy path ---


@pytest.mark.asyncio
async def test_collect_full_bundle():
    helius = _healthy_helius()
    bundle = await _collector(helius, birdeye=FakeBirdeye(321)).collect(MINT)

    creator = bundle.creator
    assert creator.address == CREATOR
    assert creator.first_activity_timestamp == NOW - 200 * SECONDS_PER_DAY
    assert creator.account_age_days == pytest.approx(200.0)
    assert creator.sampled_transaction_count == 4
    assert creator.estimated_tokens_created == 1
    assert creator.mint_authority == MintAuthority.REVOKED
    assert creator.creation_timestamp == NOW - 10 * SECONDS_PER_DAY
    assert creator.token_symbol == "TST"
    assert creator.token_name == "TST Token"

    holders = bundle.holders
    assert holders.total_holders == 202
    assert holders.total_supply_raw == 1000
    assert holders.creator_hold_percent == 15.0
    assert [h.owner for h in holders.creator_connected_holders] == ["Owner1".ljust(44, "1")]

    market = bundle.market
    assert market.liquidity_usd == 80_000.0
    assert market.trades_24h == 20
    assert market.unique_traders_24h == 321
    assert market.migration_status == MigrationStatus.AMM_ONLY

    assert len(bundle.creator_transactions) == 4
    assert bundle.sibling_tokens == []


@pytest.mark.asyncio
async def test_holder_lookup_uses_configured_limit():
    helius = _healthy_helius()
    await _collector(helius, holder_account_limit=250).collect(MINT)
    assert ("token_accounts", MINT, 250) in helius.calls


# --- Creator resolution (mandatory) ---


@pytest.mark.asyncio
async def test_no_history_is_not_found():
    """Valid address, no history at all."""
    helius = FakeHelius()
    with pytest.raises(TokenNotFoundError):
        await _collector(helius).collect(MINT)


@pytest.mark.asyncio
async def test_missing_fee_payer_is_not_found():
    helius = FakeHelius(history={MINT: [_tx("x", NOW, fee_payer="")]})
    with pytest.raises(TokenNotFoundError):
        await _collector(helius).collect(MINT)


@pytest.mark.asyncio
async def test_creator_lookup_failure_is_upstream_error():
    helius = _healthy_helius(fail={("history_asc", MINT): HeliusRateLimitError("Rate limited (429)")})
    with pytest.raises(UpstreamError):
        await _collector(helius).collect(MINT)


@pytest.mark.asyncio
async def test_creator_lookup_auth_error():
    helius = _healthy_helius(fail={("history_asc", MINT): HeliusAuthError("invalid api key")})
    with pytest.raises(InvalidApiKeyError):
        await _collector(helius).collect(MINT)


# --- Best-effort lookups ---


@pytest.mark.asyncio
async def test_holder_failure_leaves_holders_absent():
    helius = _healthy_helius(fail={("token_accounts", MINT): HeliusApiError("timeout")})
    bundle = await _collector(helius).collect(MINT)

    assert bundle.holders is None
    result = compute_risk_score(bundle)
    ids = {f.id for f in result.factors}
    assert ids.isdisjoint({
        "creator_sold", "creator_holds", "very_few_holders", "few_holders",
        "low_holder_count", "extreme_concentration", "high_concentration",
        "distributed_holders", "creator_connected_holders",
    })
    assert result.creator_sold is False


@pytest.mark.asyncio
async def test_auth_error_in_secondary_lookup_fails_request():
    helius = _healthy_helius(fail={("token_accounts", MINT): HeliusAuthError("invalid api key")})
    with pytest.raises(InvalidApiKeyError):
        await _collector(helius).collect(MINT)


@pytest.mark.asyncio
async def test_sample_failure_skips_creator_rules():
    helius = _healthy_helius(fail={("history_desc", CREATOR): HeliusApiError("boom")})
    bundle = await _collector(helius).collect(MINT)

    assert bundle.creator_transactions is None
    assert bundle.creator.sampled_transaction_count == 0
    assert bundle.sibling_tokens == []
    # Holders still built, just without creator links
    assert bundle.holders is not None
    assert bundle.holders.creator_connected_holders == []


@pytest.mark.asyncio
async def test_first_activity_failure_leaves_age_absent():
    helius = _healthy_helius(fail={("history_asc", CREATOR): HeliusApiError("boom")})
    bundle = await _collector(helius).collect(MINT)
    assert bundle.creator.first_activity_timestamp is None
    assert bundle.creator.account_age_days is None


@pytest.mark.asyncio
async def test_first_activity_falls_back_to_creation_time():
    helius = _healthy_helius()
    helius.history[CREATOR] = []
    bundle = await _collector(helius).collect(MINT)
    assert bundle.creator.first_activity_timestamp == NOW - 10 * SECONDS_PER_DAY
    assert bundle.creator.account_age_days == pytest.approx(10.0)


@pytest.mark.asyncio
async def test_market_failure_leaves_market_absent():
    dex = FakeDexScreener(fail={MINT})
    bundle = await _collector(_healthy_helius(), dex).collect(MINT)
    assert bundle.market is None


@pytest.mark.asyncio
async def test_authority_falls_back_to_account_bytes():
    flag = bytearray(82)
    flag[10] = 1
    helius = _healthy_helius(assets={}, account_bytes={MINT: bytes(flag)})
    bundle = await _collector(helius).collect(MINT)
    assert bundle.creator.mint_authority == MintAuthority.ACTIVE
    assert bundle.creator.token_symbol is None


@pytest.mark.asyncio
async def test_asset_failure_degrades_to_unknown():
    helius = _healthy_helius(
        fail={("asset", MINT): HeliusApiError("boom"), ("account", MINT): HeliusApiError("boom")}
    )
    bundle = await _collector(helius).collect(MINT)
    assert bundle.creator.mint_authority == MintAuthority.UNKNOWN


# --- Creator sample paging ---


def _long_history(n: int) -> list[HeliusTransaction]:
    return [_tx(f"sig{i}", NOW - (n - i) * 60) for i in range(n)]


@pytest.mark.asyncio
async def test_sample_pages_until_size_reached():
    helius = _healthy_helius()
    helius.history[CREATOR] = _long_history(300)
    bundle = await _collector(helius, creator_sample_size=250).collect(MINT)

    pages = [c for c in helius.calls if c[0] == "history_desc"]
    assert [c[2] for c in pages] == [100, 100, 50]
    assert pages[0][3] == ""
    assert pages[1][3] == "sig200"  # oldest of the first (newest-first) page
    assert bundle.creator.sampled_transaction_count == 250
    assert bundle.creator_transactions[0].signature == "sig299"


@pytest.mark.asyncio
async def test_sample_stops_on_short_page():
    helius = _healthy_helius()
    helius.history[CREATOR] = _long_history(120)
    bundle = await _collector(helius, creator_sample_size=500).collect(MINT)

    pages = [c for c in helius.calls if c[0] == "history_desc"]
    assert len(pages) == 2
    assert bundle.creator.sampled_transaction_count == 120


@pytest.mark.asyncio
async def test_sample_failure_mid_paging_discards_sample():
    helius = _healthy_helius()
    helius.history[CREATOR] = _long_history(300)
    original = helius.get_transactions_by_address

    async def flaky(address, **kwargs):
        if kwargs.get("before"):
            raise HeliusApiError("page 2 failed")
        return await original(address, **kwargs)

    helius.get_transactions_by_address = flaky
    bundle = await _collector(helius, creator_sample_size=200).collect(MINT)
    assert bundle.creator_transactions is None


# --- Sibling tokens ---


@pytest.mark.asyncio
async def test_sibling_tokens_collected():
    helius = _healthy_helius()
    helius.history[CREATOR].append(_tx("sister-create", NOW - 60, tx_type="CREATE", mints=(SISTER,)))
    helius.assets[SISTER] = _asset(SISTER, symbol="SIS")
    dex = FakeDexScreener({
        MINT: [_pair(MINT, 80_000.0)],
        SISTER: [_pair(SISTER, 1_500.0), _pair(SISTER, 500.0, dex="orca")],
    })

    bundle = await _collector(helius, dex).collect(MINT)

    assert len(bundle.sibling_tokens) == 1
    sibling = bundle.sibling_tokens[0]
    assert sibling.mint == SISTER
    assert sibling.symbol == "SIS"
    assert sibling.name == "SIS Token"
    assert sibling.liquidity_usd == 2_000.0
    assert [p.counter_symbol for p in sibling.pairs] == ["SOL"]
    assert bundle.creator.estimated_tokens_created == 2


@pytest.mark.asyncio
async def test_sibling_lookup_failure_keeps_sibling():
    helius = _healthy_helius()
    helius.history[CREATOR].append(_tx("sister-create", NOW - 60, tx_type="CREATE", mints=(SISTER,)))
    dex = FakeDexScreener({MINT: [_pair(MINT, 80_000.0)]}, fail={SISTER})

    bundle = await _collector(helius, dex).collect(MINT)

    assert [s.mint for s in bundle.sibling_tokens] == [SISTER]
    assert bundle.sibling_tokens[0].liquidity_usd == 0.0
    assert bundle.sibling_tokens[0].pairs == []


@pytest.mark.asyncio
async def test_sibling_lookups_are_bounded():
    sisters = [f"Sister{i}".ljust(44, "1") for i in range(1, 7)]
    helius = _healthy_helius()
    for i, sister in enumerate(sisters):
        helius.history[CREATOR].append(_tx(f"c{i}", NOW - 600 + i, tx_type="CREATE", mints=(sister,)))
    dex = FakeDexScreener({s: [_pair(s, 100.0)] for s in sisters})

    bundle = await _collector(
        helius, dex, sibling_max_concurrent=2, sibling_token_limit=5
    ).collect(MINT)

    assert len(bundle.sibling_tokens) == 5
    assert dex.max_in_flight <= 3  # two siblings plus the mint's own pairs lookup


# --- Malformed provider payloads ---


def _http_response(payload) -> MagicMock:
    resp = MagicMock(spec=httpx.Response)
    resp.status_code = 200
    resp.text = ""
    resp.json.return_value = payload
    return resp


def _real_helius(route) -> HeliusClient:
    client = HeliusClient("test-key", rpc_url="https://rpc.test", api_url="https://api.test", max_rps=0)
    client._client = AsyncMock(spec=httpx.AsyncClient)
    client._client.request = AsyncMock(side_effect=route)
    return client


MINT_HISTORY = [{"signature": "mint-create", "timestamp": NOW - 60, "feePayer": CREATOR, "type": "CREATE"}]


@pytest.mark.asyncio
async def test_object_body_for_creator_history_drops_sample():
    """A 200 with an object body is a failed lookup, not an empty history."""

    async def route(method, url, **kwargs):
        if url == f"https://api.test/v0/addresses/{MINT}/transactions":
            return _http_response(MINT_HISTORY)
        if method == "GET":
            return _http_response({"error": "unexpected"})
        return _http_response({"jsonrpc": "2.0", "id": 1, "result": None})

    bundle = await _collector(_real_helius(route)).collect(MINT)

    assert bundle.creator.address == CREATOR
    assert bundle.creator_transactions is None
    assert bundle.creator.sampled_transaction_count == 0
    assert bundle.creator.first_activity_timestamp is None
    assert bundle.creator.account_age_days is None


@pytest.mark.asyncio
async def test_object_body_for_mint_history_is_upstream_error():
    async def route(method, url, **kwargs):
        return _http_response({"error": "unexpected"})

    with pytest.raises(UpstreamError):
        await _collector(_real_helius(route)).collect(MINT)


# --- Cancellation ---


class StalledDexScreener:
    """DexScreener stub whose lookup never finishes on its own."""

    def __init__(self):
        self.started = asyncio.Event()
        self.cancelled = False

    async def get_token_pairs(self, token_address):
        self.started.set()
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise


@pytest.mark.asyncio
async def test_failed_lookup_cancels_pending_ones():
    dex = StalledDexScreener()
    helius = _healthy_helius(fail={("token_accounts", MINT): HeliusAuthError("invalid api key")})
    original = helius.get_token_accounts

    async def after_market_started(mint, **kwargs):
        await dex.started.wait()
        return await original(mint, **kwargs)

    helius.get_token_accounts = after_market_started

    with pytest.raises(InvalidApiKeyError):
        await asyncio.wait_for(_collector(helius, dex).collect(MINT), timeout=5)

    assert dex.started.is_set()
    assert dex.cancelled is True
