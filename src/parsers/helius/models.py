"""Pydantic models for Helius Enhanced API and DAS responses."""

from decimal import Decimal

from pydantic import BaseModel


class HeliusTokenTransfer(BaseModel):
    """Token transfer within a transaction."""

    from_user_account: str = ""
    to_user_account: str = ""
    token_amount: Decimal = Decimal("0")
    mint: str = ""


class HeliusNativeTransfer(BaseModel):
    """SOL native transfer within a transaction."""

    from_user_account: str = ""
    to_user_account: str = ""
    amount: int = 0  # lamports


class HeliusTransaction(BaseModel):
    """Enhanced parsed transaction from Helius."""

    signature: str
    timestamp: int = 0  # unix
    fee_payer: str = ""
    type: str = ""  # "CREATE", "TRANSFER", "SWAP", "TOKEN_MINT", etc.
    source: str = ""  # "PUMP_FUN", "RAYDIUM", "SYSTEM_PROGRAM", etc.
    description: str = ""
    native_transfers: list[HeliusNativeTransfer] = []
    token_transfers: list[HeliusTokenTransfer] = []


class HeliusAssetMetadata(BaseModel):
    name: str | None = None
    symbol: str | None = None

    model_config = {"extra": "ignore"}


class HeliusAssetContent(BaseModel):
    metadata: HeliusAssetMetadata | None = None

    model_config = {"extra": "ignore"}


class HeliusTokenInfo(BaseModel):
    supply: int | None = None
    decimals: int | None = None
    mint_authority: str | None = None  # None = revoked

    model_config = {"extra": "ignore"}


class HeliusAssetCreator(BaseModel):
    address: str = ""

    model_config = {"extra": "ignore"}


class HeliusAsset(BaseModel):
    """Subset of the DAS getAsset result used for analysis."""

    id: str = ""
    creators: list[HeliusAssetCreator] = []
    content: HeliusAssetContent | None = None
    token_info: HeliusTokenInfo | None = None

    model_config = {"extra": "ignore"}

    @property
    def name(self) -> str | None:
        if self.content and self.content.metadata:
            return self.content.metadata.name or None
        return None

    @property
    def symbol(self) -> str | None:
        if self.content and self.content.metadata:
            return self.content.metadata.symbol or None
        return None


class HeliusTokenAccount(BaseModel):
    """One token account from DAS getTokenAccounts. Amount in raw units."""

    owner: str = ""
    amount: int = 0

    model_config = {"extra": "ignore"}
