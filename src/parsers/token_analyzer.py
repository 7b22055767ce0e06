"""Token analyzer — ``analyze(mint)``: collect evidence, score it, within a time budget."""

import asyncio

from loguru import logger

from config.settings import Settings
from src.parsers.birdeye.client import BirdeyeClient
from src.parsers.dexscreener.client import DexScreenerClient
from src.parsers.evidence import RiskResult
from src.parsers.evidence_collector import EvidenceCollector
from src.parsers.exceptions import AnalysisTimeoutError, ConfigurationError
from src.parsers.helius.client import HeliusClient
from src.parsers.risk_score import compute_risk_score
from src.utils.address import short

PLACEHOLDER_KEY = "your_helius_api_key_here"


def require_helius_key(raw: str | None) -> str:
    """Validated Helius key, or ConfigurationError with a setup hint."""
    key = (raw or "").strip()
    if not key:
        raise ConfigurationError(
            "Service not configured: HELIUS_API_KEY is missing. Get a free key at "
            "https://dashboard.helius.dev and add HELIUS_API_KEY=<key> to .env"
        )
    if key.lower() == PLACEHOLDER_KEY:
        raise ConfigurationError(
            ".env contains the placeholder key. Replace your_helius_api_key_here "
            "with your key from https://dashboard.helius.dev"
        )
    return key


class TokenAnalyzer:
    """Single entry point for the web layer. Holds no per-request state."""

    def __init__(
        self,
        collector: EvidenceCollector,
        *,
        timeout_sec: float = 30.0,
        clients: tuple = (),
    ) -> None:
        self._collector = collector
        self._timeout_sec = timeout_sec
        self._clients = clients

    async def analyze(self, mint: str) -> RiskResult:
        """Analyze a mint already validated as a well-formed address.

        Raises TokenNotFoundError, UpstreamError, ConfigurationError or
        AnalysisTimeoutError; every other failure degrades inside the collector.
        """
        try:
            evidence = await asyncio.wait_for(self._collector.collect(mint), timeout=self._timeout_sec)
        except asyncio.TimeoutError as e:
            logger.warning(f"[ANALYZE] {short(mint)} exceeded {self._timeout_sec:.0f}s budget")
            raise AnalysisTimeoutError(
                f"Analysis did not finish within {self._timeout_sec:.0f} seconds, try again"
            ) from e

        result = compute_risk_score(evidence)
        logger.info(
            f"[ANALYZE] {short(mint)} score={result.score} ({result.severity.value}) "
            f"factors={[f.id for f in result.factors]}"
        )
        return result

    async def close(self) -> None:
        for client in self._clients:
            await client.close()


def build_analyzer(settings: Settings) -> TokenAnalyzer:
    """Wire provider clients from settings. Raises ConfigurationError on a bad key."""
    api_key = require_helius_key(settings.helius_api_key)

    helius = HeliusClient(
        api_key,
        rpc_url=settings.helius_rpc_url,
        api_url=settings.helius_api_url,
        max_rps=settings.helius_max_rps,
    )
    dexscreener = DexScreenerClient(max_rps=settings.dexscreener_max_rps)
    birdeye = None
    if settings.birdeye_api_key.strip():
        birdeye = BirdeyeClient(settings.birdeye_api_key.strip(), max_rps=settings.birdeye_max_rps)

    collector = EvidenceCollector(
        helius,
        dexscreener,
        birdeye,
        creator_sample_size=settings.creator_sample_size,
        holder_account_limit=settings.holder_account_limit,
        sibling_token_limit=settings.sibling_token_limit,
        sibling_max_concurrent=settings.sibling_max_concurrent,
    )
    clients = tuple(c for c in (helius, dexscreener, birdeye) if c is not None)
    return TokenAnalyzer(collector, timeout_sec=settings.analysis_timeout_sec, clients=clients)
