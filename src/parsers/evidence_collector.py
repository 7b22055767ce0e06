"""Evidence collector — gathers everything the risk scorer needs for one mint.

Only creator resolution (fee payer of the mint's first transaction) is
mandatory; it fails the analysis with TokenNotFoundError / UpstreamError.
Every other lookup is best-effort and degrades to None on failure.

Call graph per request:

    resolve creator ──┬─ creator first tx (age)
                      ├─ creator recent sample ── sibling tokens (concurrent, bounded)
                      ├─ asset metadata ── raw mint account (fallback)
                      ├─ token accounts (holders)
                      └─ DexScreener pairs + Birdeye overview
    then: holder distribution (needs creator, sample, accounts)
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx
from loguru import logger
from pydantic import ValidationError

from src.parsers.creation_events import estimate_tokens_created, sibling_mints
from src.parsers.evidence import (
    CreatorProfile,
    EvidenceBundle,
    MarketStats,
    MintAuthority,
    SiblingToken,
)
from src.parsers.exceptions import (
    ConfigurationError,
    InvalidApiKeyError,
    TokenNotFoundError,
    UpstreamError,
)
from src.parsers.helius.client import MAX_PAGE_SIZE
from src.parsers.helius.exceptions import HeliusAuthError, HeliusError
from src.parsers.helius.models import HeliusAsset, HeliusTransaction
from src.parsers.holder_distribution import build_distribution, wallets_funded_by_creator
from src.parsers.market_stats import build_market_stats
from src.parsers.mint_authority import resolve_mint_authority
from src.utils.address import short

T = TypeVar("T")

SECONDS_PER_DAY = 86400


async def _gather_or_cancel(*aws: Awaitable[Any]) -> list[Any]:
    """asyncio.gather that cancels the remaining lookups once one of them fails.

    The failed request's other lookups are awaited to completion so no
    exception is left unretrieved.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class EvidenceCollector:
    """Best-effort evidence gathering against Helius, DexScreener and Birdeye.

    Clients are duck-typed so tests can pass in-memory fakes.
    """

    def __init__(
        self,
        helius: Any,
        dexscreener: Any,
        birdeye: Any | None = None,
        *,
        creator_sample_size: int = 100,
        holder_account_limit: int = 1000,
        sibling_token_limit: int = 8,
        sibling_max_concurrent: int = 4,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._helius = helius
        self._dex = dexscreener
        self._birdeye = birdeye
        self._sample_size = creator_sample_size
        self._holder_limit = holder_account_limit
        self._sibling_limit = sibling_token_limit
        self._sibling_concurrency = max(1, sibling_max_concurrent)
        self._clock = clock

    async def collect(self, mint: str) -> EvidenceBundle:
        creation_tx = await self._resolve_creator(mint)
        creator = creation_tx.fee_payer

        first_ts, activity, identity, accounts, market = await _gather_or_cancel(
            self._creator_first_activity(creator, creation_tx),
            self._creator_activity(creator, mint),
            self._token_identity(mint),
            self._best_effort(
                "token accounts", mint,
                lambda: self._helius.get_token_accounts(mint, limit=self._holder_limit),
            ),
            self._market_stats(mint),
        )
        sample, siblings = activity
        asset, mint_authority = identity

        holders = None
        if accounts is not None:
            funded = wallets_funded_by_creator(sample or [], creator)
            holders = build_distribution(accounts, creator, funded)

        age_days = None
        if first_ts:
            age_days = max(self._clock() - first_ts, 0) / SECONDS_PER_DAY

        profile = CreatorProfile(
            address=creator,
            first_activity_timestamp=first_ts,
            account_age_days=age_days,
            sampled_transaction_count=len(sample) if sample is not None else 0,
            estimated_tokens_created=estimate_tokens_created(sample or []),
            mint_authority=mint_authority,
            creation_timestamp=creation_tx.timestamp or None,
            token_name=asset.name if asset else None,
            token_symbol=asset.symbol if asset else None,
        )

        logger.info(
            f"[COLLECTOR] {short(mint)} creator={short(creator)} "
            f"sample={profile.sampled_transaction_count} authority={mint_authority.value} "
            f"holders={'n/a' if holders is None else holders.total_holders} "
            f"market={'n/a' if market is None else 'ok'} siblings={len(siblings)}"
        )

        return EvidenceBundle(
            mint=mint,
            creator=profile,
            creator_transactions=sample,
            holders=holders,
            market=market,
            sibling_tokens=siblings,
        )

    async def _resolve_creator(self, mint: str) -> HeliusTransaction:
        """First transaction on the mint; its fee payer is the creator."""
        try:
            txs = await self._helius.get_transactions_by_address(mint, sort_order="asc", limit=1)
        except HeliusAuthError as e:
            raise InvalidApiKeyError(str(e)) from e
        except (HeliusError, httpx.HTTPError, ValidationError, ValueError) as e:
            logger.warning(f"[COLLECTOR] Creator lookup failed for {short(mint)}: {e}")
            raise UpstreamError(f"Could not fetch transaction history: {e}") from e

        if not txs or not txs[0].fee_payer:
            raise TokenNotFoundError(
                "Could not determine token creator (no transaction history for this address)"
            )
        return txs[0]

    async def _best_effort(
        self, label: str, address: str, call: Callable[[], Awaitable[T]]
    ) -> T | None:
        """Run one secondary lookup; any failure becomes None.

        Configuration problems still propagate: they affect every call.
        """
        try:
            return await call()
        except ConfigurationError:
            raise
        except HeliusAuthError as e:
            raise InvalidApiKeyError(str(e)) from e
        except Exception as e:
            logger.debug(f"[COLLECTOR] {label} unavailable for {short(address)}: {e}")
            return None

    async def _creator_first_activity(
        self, creator: str, creation_tx: HeliusTransaction
    ) -> int | None:
        txs = await self._best_effort(
            "creator first tx", creator,
            lambda: self._helius.get_transactions_by_address(creator, sort_order="asc", limit=1),
        )
        if txs is None:
            return None
        if txs and txs[0].timestamp:
            return txs[0].timestamp
        # Creator cannot be younger than the mint it created
        return creation_tx.timestamp or None

    async def _fetch_creator_sample(self, creator: str) -> list[HeliusTransaction]:
        """Newest-first creator history, paged until the sample size is reached."""
        sample: list[HeliusTransaction] = []
        before = ""
        while len(sample) < self._sample_size:
            page_size = min(MAX_PAGE_SIZE, self._sample_size - len(sample))
            page = await self._helius.get_transactions_by_address(
                creator, sort_order="desc", limit=page_size, before=before
            )
            sample.extend(page)
            if len(page) < page_size or not page[-1].signature:
                break
            before = page[-1].signature
        return sample

    async def _creator_activity(
        self, creator: str, mint: str
    ) -> tuple[list[HeliusTransaction] | None, list[SiblingToken]]:
        sample = await self._best_effort(
            "creator sample", creator, lambda: self._fetch_creator_sample(creator)
        )
        if sample is None:
            return None, []
        mints = sibling_mints(sample, mint, limit=self._sibling_limit)
        return sample, await self._sibling_tokens(mints)

    async def _token_identity(self, mint: str) -> tuple[HeliusAsset | None, MintAuthority]:
        asset = await self._best_effort("asset", mint, lambda: self._helius.get_asset(mint))
        authority = await resolve_mint_authority(self._helius, mint, asset)
        return asset, authority

    async def _unique_traders(self, mint: str) -> int | None:
        if self._birdeye is None:
            return None
        overview = await self._best_effort(
            "birdeye overview", mint, lambda: self._birdeye.get_token_overview(mint)
        )
        return overview.uniqueWallet24h if overview is not None else None

    async def _market_stats(self, mint: str) -> MarketStats | None:
        pairs, unique_traders = await _gather_or_cancel(
            self._best_effort("pairs", mint, lambda: self._dex.get_token_pairs(mint)),
            self._unique_traders(mint),
        )
        return build_market_stats(pairs or [], mint, unique_traders_24h=unique_traders)

    async def _sibling_tokens(self, mints: list[str]) -> list[SiblingToken]:
        if not mints:
            return []
        semaphore = asyncio.Semaphore(self._sibling_concurrency)

        async def _one(sibling: str) -> SiblingToken:
            async with semaphore:
                pairs, asset = await _gather_or_cancel(
                    self._best_effort("sibling pairs", sibling, lambda: self._dex.get_token_pairs(sibling)),
                    self._best_effort("sibling asset", sibling, lambda: self._helius.get_asset(sibling)),
                )
            market = build_market_stats(pairs or [], sibling)
            return SiblingToken(
                mint=sibling,
                symbol=asset.symbol if asset else None,
                name=asset.name if asset else None,
                liquidity_usd=(market.liquidity_usd or 0.0) if market else 0.0,
                pairs=market.pairs if market else [],
            )

        return list(await _gather_or_cancel(*[_one(m) for m in mints]))
