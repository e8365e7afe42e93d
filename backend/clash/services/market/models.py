from __future__ import annotations

from typing import Any

from pydantic import BaseModel, field_validator


def _dig(data: Any, *keys: str) -> Any:
    """Walk nested dicts, returning None as soon as a level is missing."""
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


class CandidateToken(BaseModel):
    """Normalized trending token, the only shape the battle core consumes."""

    address: str
    symbol: str
    name: str
    chain: str = "solana"
    price_usd: float = 0.0
    market_cap_usd: float = 0.0
    volume_24h_usd: float = 0.0
    price_change_24h_pct: float = 0.0
    txn_count_24h: int = 0


class Valuation(BaseModel):
    """Current price and market cap for one token address."""

    address: str
    price_usd: float = 0.0
    market_cap_usd: float = 0.0
    symbol: str = ""
    name: str = ""
    chain: str = "solana"

    @property
    def is_valid(self) -> bool:
        return self.market_cap_usd > 0


class GeckoTerminalPool(BaseModel):
    """One entry of GeckoTerminal's trending_pools response."""

    base_token_id: str = ""
    name: str = ""
    base_token_price_usd: float = 0.0
    fdv_usd: float = 0.0
    volume_usd_h24: float = 0.0
    price_change_h24: float = 0.0
    buys_h24: int = 0
    sells_h24: int = 0

    @field_validator(
        "base_token_price_usd",
        "fdv_usd",
        "volume_usd_h24",
        "price_change_h24",
        mode="before",
    )
    @classmethod
    def parse_decimal_string(cls, v: Any) -> float:
        if v is None or v == "":
            return 0.0
        try:
            return float(v)
        except (TypeError, ValueError):
            return 0.0

    @field_validator("buys_h24", "sells_h24", mode="before")
    @classmethod
    def parse_count(cls, v: Any) -> int:
        try:
            return int(v or 0)
        except (TypeError, ValueError):
            return 0

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> GeckoTerminalPool:
        attributes = _dig(data, "attributes")
        return cls(
            base_token_id=_dig(data, "relationships", "base_token", "data", "id") or "",
            name=_dig(attributes, "name") or "",
            base_token_price_usd=_dig(attributes, "base_token_price_usd"),
            fdv_usd=_dig(attributes, "fdv_usd"),
            volume_usd_h24=_dig(attributes, "volume_usd", "h24"),
            price_change_h24=_dig(attributes, "price_change_percentage", "h24"),
            buys_h24=_dig(attributes, "transactions", "h24", "buys"),
            sells_h24=_dig(attributes, "transactions", "h24", "sells"),
        )

    def to_candidate(self, network: str) -> CandidateToken | None:
        address = self.base_token_id.removeprefix(f"{network}_")
        if not address:
            return None
        symbol = self.name.split(" / ")[0]
        return CandidateToken(
            address=address,
            symbol=symbol,
            name=symbol,
            chain=network,
            price_usd=self.base_token_price_usd,
            market_cap_usd=self.fdv_usd,
            volume_24h_usd=self.volume_usd_h24,
            price_change_24h_pct=self.price_change_h24,
            txn_count_24h=self.buys_h24 + self.sells_h24,
        )


class DexScreenerPair(BaseModel):
    """One entry of DexScreener's tokens response."""

    base_token_address: str = ""
    base_token_symbol: str = ""
    base_token_name: str = ""
    chain_id: str = "solana"
    price_usd: float = 0.0
    market_cap: float = 0.0
    fdv: float = 0.0

    @field_validator("price_usd", "market_cap", "fdv", mode="before")
    @classmethod
    def parse_decimal_string(cls, v: Any) -> float:
        if v is None or v == "":
            return 0.0
        try:
            return float(v)
        except (TypeError, ValueError):
            return 0.0

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> DexScreenerPair:
        return cls(
            base_token_address=_dig(data, "baseToken", "address") or "",
            base_token_symbol=_dig(data, "baseToken", "symbol") or "",
            base_token_name=_dig(data, "baseToken", "name") or "",
            chain_id=data.get("chainId") or "solana",
            price_usd=data.get("priceUsd"),
            market_cap=data.get("marketCap"),
            fdv=data.get("fdv"),
        )

    def to_valuation(self, address: str | None = None) -> Valuation:
        return Valuation(
            address=address or self.base_token_address,
            price_usd=self.price_usd,
            market_cap_usd=self.market_cap or self.fdv,
            symbol=self.base_token_symbol,
            name=self.base_token_name,
            chain=self.chain_id,
        )


# Reference assets priced for daily predictions
COINGECKO_IDS: dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "SOL": "solana",
}


def parse_coingecko_prices(data: dict[str, Any], symbols: list[str]) -> dict[str, float]:
    """Extract USD prices from a CoinGecko simple/price body, skipping missing fields."""
    prices: dict[str, float] = {}
    for symbol in symbols:
        coin_id = COINGECKO_IDS.get(symbol)
        value = _dig(data, coin_id, "usd") if coin_id else None
        try:
            price = float(value) if value is not None else 0.0
        except (TypeError, ValueError):
            price = 0.0
        if price > 0:
            prices[symbol] = price
    return prices


def parse_binance_price(data: dict[str, Any]) -> float | None:
    """Extract the price from a Binance ticker/price body."""
    try:
        price = float(data.get("price"))
    except (TypeError, ValueError):
        return None
    return price if price > 0 else None
