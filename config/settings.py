from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Helius (Solana RPC + Enhanced API)
    helius_api_key: str = ""
    helius_rpc_url: str = ""  # default: mainnet Helius RPC with the key
    helius_api_url: str = "https://api-mainnet.helius-rpc.com"
    helius_max_rps: float = 10.0

    # DexScreener (no key)
    dexscreener_max_rps: float = 4.0

    # Birdeye (optional, enables unique traders 24h)
    birdeye_api_key: str = ""
    birdeye_max_rps: float = 15.0

    # Analysis budget and sampling
    analysis_timeout_sec: float = 30.0
    creator_sample_size: int = 100  # recent creator txs examined (pages of 100)
    holder_account_limit: int = 1000
    sibling_token_limit: int = 8
    sibling_max_concurrent: int = 4

    # HTTP server
    dashboard_host: str = "0.0.0.0"
    dashboard_port: int = 8080
    analyze_rate_limit: str = "20/minute"

    # Logging
    log_json: bool = False


settings = Settings()
