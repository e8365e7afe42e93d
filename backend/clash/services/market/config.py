from pydantic import BaseModel


class MarketDataConfig(BaseModel):
    """Configuration for the market data providers."""

    geckoterminal_base_url: str = "https://api.geckoterminal.com/api/v2"
    dexscreener_base_url: str = "https://api.dexscreener.com/latest/dex"
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"
    binance_base_url: str = "https://api.binance.com/api/v3"
    network: str = "solana"
    trending_limit: int = 20
    batch_size: int = 30  # DexScreener accepts up to 30 addresses per call
    timeout_seconds: float = 15.0
    max_connections: int = 20
    max_keepalive_connections: int = 10
    user_agent: str = "ClashAI/1.0"
    reference_fallback_prices: dict[str, float] = {
        "BTC": 97000.0,
        "ETH": 2800.0,
        "SOL": 190.0,
    }
