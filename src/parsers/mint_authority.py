"""Mint authority resolution — can the deployer still mint more supply?

Preferred source is DAS asset metadata (``token_info.mint_authority``).
Plain SPL mints that DAS has no token_info for fall back to the raw mint
account fetched via getAccountInfo, reading a single presence flag byte.
Any failure yields UNKNOWN; the authority check never fails an analysis.
"""

from loguru import logger

from src.parsers.evidence import MintAuthority
from src.parsers.exceptions import InvalidApiKeyError
from src.parsers.helius.exceptions import HeliusAuthError
from src.parsers.helius.models import HeliusAsset
from src.utils.address import short

# Mint-authority presence flag inside the raw mint account (1 = set)
MINT_AUTHORITY_FLAG_OFFSET = 10


def authority_from_asset(asset: HeliusAsset | None) -> MintAuthority:
    if asset is None or asset.token_info is None:
        return MintAuthority.UNKNOWN
    authority = asset.token_info.mint_authority
    if authority and authority != "null":
        return MintAuthority.ACTIVE
    return MintAuthority.REVOKED


def authority_from_account_bytes(raw: bytes | None) -> MintAuthority:
    if raw is None or len(raw) < MINT_AUTHORITY_FLAG_OFFSET + 1:
        return MintAuthority.UNKNOWN
    if raw[MINT_AUTHORITY_FLAG_OFFSET] == 1:
        return MintAuthority.ACTIVE
    return MintAuthority.REVOKED


async def resolve_mint_authority(helius, mint: str, asset: HeliusAsset | None) -> MintAuthority:
    """Asset metadata first, raw account byte flag as fallback."""
    status = authority_from_asset(asset)
    if status is not MintAuthority.UNKNOWN:
        return status

    try:
        raw = await helius.get_account_bytes(mint)
    except HeliusAuthError as e:
        raise InvalidApiKeyError(str(e)) from e
    except Exception as e:
        logger.debug(f"[MINT] Account fetch failed for {short(mint)}: {e}")
        return MintAuthority.UNKNOWN

    return authority_from_account_bytes(raw)
