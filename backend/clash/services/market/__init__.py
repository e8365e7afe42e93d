from .client import MarketDataClient, create_market_client
from .config import MarketDataConfig
from .exceptions import (
    MarketDataError,
    MarketDataNotFoundError,
    MarketDataRateLimitError,
)
from .models import (
    CandidateToken,
    DexScreenerPair,
    GeckoTerminalPool,
    Valuation,
)

__all__ = [
    "MarketDataClient",
    "create_market_client",
    "MarketDataConfig",
    "MarketDataError",
    "MarketDataNotFoundError",
    "MarketDataRateLimitError",
    "CandidateToken",
    "DexScreenerPair",
    "GeckoTerminalPool",
    "Valuation",
]
