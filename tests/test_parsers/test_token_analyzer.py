"""Tests for the analyzer facade — key checks, time budget, client wiring."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from config.settings import Settings
from src.parsers.birdeye.client import BirdeyeClient
from src.parsers.evidence import CreatorProfile, EvidenceBundle, MintAuthority, RiskTier
from src.parsers.exceptions import AnalysisTimeoutError, ConfigurationError, TokenNotFoundError
from src.parsers.token_analyzer import TokenAnalyzer, build_analyzer, require_helius_key

MINT = "TokenMint".ljust(44, "1")
CREATOR = "Creator".ljust(44, "1")


class FakeCollector:
    def __init__(self, bundle: EvidenceBundle | None = None, *, delay: float = 0.0, error=None):
        self._bundle = bundle
        self._delay = delay
        self._error = error

    async def collect(self, mint):
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return self._bundle


def _bundle() -> EvidenceBundle:
    creator = CreatorProfile(
        address=CREATOR,
        first_activity_timestamp=None,
        account_age_days=None,
        sampled_transaction_count=0,
        estimated_tokens_created=1,
        mint_authority=MintAuthority.ACTIVE,
    )
    return EvidenceBundle(mint=MINT, creator=creator)


@pytest.mark.parametrize("raw", ["", "   ", None, "your_helius_api_key_here", "YOUR_HELIUS_API_KEY_HERE"])
def test_require_key_rejects_missing_or_placeholder(raw):
    with pytest.raises(ConfigurationError):
        require_helius_key(raw)


def test_require_key_strips_whitespace():
    assert require_helius_key("  abc-123 \n") == "abc-123"


@pytest.mark.asyncio
async def test_analyze_scores_collected_evidence():
    analyzer = TokenAnalyzer(FakeCollector(_bundle()))
    result = await analyzer.analyze(MINT)
    assert result.mint == MINT
    assert result.score == 30
    assert result.severity == RiskTier.HIGH
    assert [f.id for f in result.factors] == ["unlimited_mint"]


@pytest.mark.asyncio
async def test_analyze_timeout():
    analyzer = TokenAnalyzer(FakeCollector(_bundle(), delay=5.0), timeout_sec=0.01)
    with pytest.raises(AnalysisTimeoutError):
        await analyzer.analyze(MINT)


@pytest.mark.asyncio
async def test_analyze_propagates_collector_errors():
    analyzer = TokenAnalyzer(FakeCollector(error=TokenNotFoundError("no history")))
    with pytest.raises(TokenNotFoundError):
        await analyzer.analyze(MINT)


@pytest.mark.asyncio
async def test_close_closes_every_client():
    clients = (AsyncMock(), AsyncMock())
    analyzer = TokenAnalyzer(FakeCollector(_bundle()), clients=clients)
    await analyzer.close()
    for client in clients:
        client.close.assert_awaited_once()


def test_build_analyzer_requires_key():
    with pytest.raises(ConfigurationError):
        build_analyzer(Settings(_env_file=None, helius_api_key=""))


@pytest.mark.asyncio
async def test_build_analyzer_birdeye_optional():
    without = build_analyzer(Settings(_env_file=None, helius_api_key="key", birdeye_api_key=""))
    with_birdeye = build_analyzer(Settings(_env_file=None, helius_api_key="key", birdeye_api_key="bk"))
    try:
        assert len(without._clients) == 2
        assert len(with_birdeye._clients) == 3
        assert isinstance(with_birdeye._clients[-1], BirdeyeClient)
    finally:
        await without.close()
        await with_birdeye.close()
