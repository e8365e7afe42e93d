class MarketDataError(Exception):
    """Base exception for market data provider errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class MarketDataRateLimitError(MarketDataError):
    """Rate limit exceeded (429)."""

    pass


class MarketDataNotFoundError(MarketDataError):
    """Resource not found (404)."""

    pass
