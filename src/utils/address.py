import re

# Base58 alphabet (no 0, O, I, l)
_SOLANA_ADDRESS_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


def is_valid_solana_address(value: str | None) -> bool:
    """Format check only: 32-44 base58 characters. Does not decode the key."""
    if not value or not isinstance(value, str):
        return False
    return _SOLANA_ADDRESS_RE.match(value.strip()) is not None


def short(address: str, n: int = 12) -> str:
    """Truncated address for log lines."""
    return address[:n]
