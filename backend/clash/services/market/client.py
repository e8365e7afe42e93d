from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from .config import MarketDataConfig
from .exceptions import (
    MarketDataError,
    MarketDataNotFoundError,
    MarketDataRateLimitError,
)
from .models import (
    COINGECKO_IDS,
    CandidateToken,
    DexScreenerPair,
    GeckoTerminalPool,
    Valuation,
    parse_binance_price,
    parse_coingecko_prices,
)

logger = logging.getLogger(__name__)


class MarketDataClient:
    """Best-effort access to trending tokens, token valuations and reference prices.

    Public methods never raise on provider trouble: they log and return empty or
    partial results so a scheduled cycle can simply try again next time.
    """

    def __init__(
        self,
        config: MarketDataConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or MarketDataConfig()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> MarketDataClient:
        limits = httpx.Limits(
            max_connections=self.config.max_connections,
            max_keepalive_connections=self.config.max_keepalive_connections,
        )
        self._client = httpx.AsyncClient(
            timeout=self.config.timeout_seconds,
            limits=limits,
            headers={"User-Agent": self.config.user_agent},
            transport=self._transport,
        )
        return self

    async def __aexit__(
        self,
        exc_type: type | None,
        exc_val: Exception | None,
        exc_tb: Any,
    ) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.debug("Closed MarketDataClient")

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError(
                "MarketDataClient must be used as async context manager"
            )
        return self._client

    async def _request(
        self,
        url: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        try:
            response = await self.client.get(url, params=params)
        except httpx.TimeoutException as e:
            raise MarketDataError(f"Timeout requesting {url}: {e}") from e
        except httpx.RequestError as e:
            raise MarketDataError(f"Network error requesting {url}: {e}") from e

        if response.status_code == 404:
            raise MarketDataNotFoundError(
                f"Resource not found: {url}", status_code=404
            )
        if response.status_code == 429:
            raise MarketDataRateLimitError(
                f"Rate limited by {url}", status_code=429
            )
        if response.status_code >= 400:
            raise MarketDataError(
                f"HTTP {response.status_code} from {url}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise MarketDataError(f"Malformed JSON from {url}") from e

    async def list_candidate_tokens(self) -> list[CandidateToken]:
        """Trending pools for the configured network, normalized to candidates."""
        url = (
            f"{self.config.geckoterminal_base_url}/networks/"
            f"{self.config.network}/trending_pools"
        )
        try:
            data = await self._request(url, params={"page": 1})
        except MarketDataError as e:
            logger.error(f"Error fetching trending tokens: {e}")
            return []

        pools = data.get("data") if isinstance(data, dict) else None
        if not isinstance(pools, list):
            logger.warning("Trending pools response had no data list")
            return []

        candidates: dict[str, CandidateToken] = {}
        for raw in pools[: self.config.trending_limit]:
            if not isinstance(raw, dict):
                continue
            try:
                candidate = GeckoTerminalPool.from_api(raw).to_candidate(self.config.network)
            except (ValidationError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed trending pool: {e}")
                continue
            # The same base token can trend in several pools
            if candidate is not None and candidate.address not in candidates:
                candidates[candidate.address] = candidate

        logger.info(f"Fetched {len(candidates)} trending candidates")
        return list(candidates.values())

    async def _fetch_pairs(self, addresses: list[str]) -> list[DexScreenerPair]:
        url = f"{self.config.dexscreener_base_url}/tokens/{','.join(addresses)}"
        data = await self._request(url)
        pairs = data.get("pairs") if isinstance(data, dict) else None
        if not isinstance(pairs, list):
            return []

        parsed: list[DexScreenerPair] = []
        for raw in pairs:
            if not isinstance(raw, dict):
                continue
            try:
                parsed.append(DexScreenerPair.from_api(raw))
            except (ValidationError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed DexScreener pair: {e}")
        return parsed

    async def get_valuation(self, address: str) -> Valuation | None:
        """Valuation from the first pair listed for a token, or None."""
        try:
            pairs = await self._fetch_pairs([address])
        except MarketDataError as e:
            logger.error(f"Error fetching valuation for {address}: {e}")
            return None

        if not pairs:
            return None
        try:
            return pairs[0].to_valuation(address)
        except (ValidationError, TypeError, ValueError) as e:
            logger.warning(f"Malformed valuation for {address}: {e}")
            return None

    async def get_valuations_batch(self, addresses: list[str]) -> dict[str, Valuation]:
        """Valuations keyed by address; chunks that fail are simply missing."""
        results: dict[str, Valuation] = {}
        unique = list(dict.fromkeys(addresses))
        size = self.config.batch_size

        for start in range(0, len(unique), size):
            chunk = unique[start:start + size]
            try:
                pairs = await self._fetch_pairs(chunk)
            except MarketDataError as e:
                logger.error(f"Error fetching batch valuations ({len(chunk)} tokens): {e}")
                continue

            for pair in pairs:
                address = pair.base_token_address
                if not address or address in results:
                    continue
                try:
                    results[address] = pair.to_valuation()
                except (ValidationError, TypeError, ValueError) as e:
                    logger.warning(f"Skipping malformed valuation for {address}: {e}")

        return results

    async def _coingecko_prices(self, symbols: list[str]) -> dict[str, float]:
        ids = [COINGECKO_IDS[s] for s in symbols if s in COINGECKO_IDS]
        if not ids:
            return {}
        try:
            data = await self._request(
                f"{self.config.coingecko_base_url}/simple/price",
                params={"ids": ",".join(ids), "vs_currencies": "usd"},
            )
        except MarketDataError as e:
            logger.warning(f"CoinGecko prices unavailable: {e}")
            return {}
        if not isinstance(data, dict):
            return {}
        return parse_coingecko_prices(data, symbols)

    async def _binance_price(self, symbol: str) -> float | None:
        try:
            data = await self._request(
                f"{self.config.binance_base_url}/ticker/price",
                params={"symbol": f"{symbol}USDT"},
            )
        except MarketDataError as e:
            logger.warning(f"Binance price unavailable for {symbol}: {e}")
            return None
        if not isinstance(data, dict):
            return None
        return parse_binance_price(data)

    async def get_reference_prices(
        self,
        symbols: list[str],
        use_fallback: bool = True,
    ) -> dict[str, float]:
        """USD prices: CoinGecko, then Binance, then (optionally) the configured constants."""
        prices = await self._coingecko_prices(symbols)

        for symbol in symbols:
            if symbol in prices:
                continue
            price = await self._binance_price(symbol)
            if price is not None:
                prices[symbol] = price
                continue
            if not use_fallback:
                logger.warning(f"No live reference price for {symbol}")
                continue
            fallback = self.config.reference_fallback_prices.get(symbol)
            if fallback is not None:
                logger.warning(f"Using fallback reference price for {symbol}: ${fallback:,.2f}")
                prices[symbol] = fallback

        return prices


def create_market_client(
    config: MarketDataConfig | None = None,
) -> MarketDataClient:
    return MarketDataClient(config=config)
