"""Shared test helpers: in-memory databases, token factories and a fake market."""

import random
from contextlib import asynccontextmanager

import pytest

from clash.services.market import CandidateToken, Valuation
from clash.storage import build_engine, build_session_factory, create_tables

MEMORY_URL = "sqlite+aiosqlite:///:memory:"


class FixedRandom(random.Random):
    """Random source whose random() always returns the same value."""

    def __init__(self, value: float = 0.0):
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value


class FakeMarket:
    """Stands in for MarketDataClient with canned candidates, valuations and prices."""

    def __init__(self, candidates=(), valuations=None, prices=None):
        self.candidates = list(candidates)
        self.valuations = dict(valuations or {})
        self.prices = dict(prices or {})
        self.batch_requests: list[list[str]] = []
        self.single_requests: list[str] = []

    def set_mcap(self, address: str, market_cap: float) -> None:
        self.valuations[address] = Valuation(
            address=address,
            price_usd=market_cap / 1_000_000,
            market_cap_usd=market_cap,
        )

    async def list_candidate_tokens(self):
        return list(self.candidates)

    async def get_valuation(self, address):
        self.single_requests.append(address)
        return self.valuations.get(address)

    async def get_valuations_batch(self, addresses):
        self.batch_requests.append(list(addresses))
        return {a: self.valuations[a] for a in addresses if a in self.valuations}

    async def get_reference_prices(self, symbols, use_fallback=True):
        return {s: self.prices[s] for s in symbols if s in self.prices}


def token(
    address: str,
    symbol: str | None = None,
    market_cap: float = 1_000_000,
    volume: float = 200_000,
    change: float = 10.0,
    txns: int = 500,
) -> CandidateToken:
    return CandidateToken(
        address=address,
        symbol=symbol or address.upper(),
        name=symbol or address.upper(),
        price_usd=market_cap / 1_000_000,
        market_cap_usd=market_cap,
        volume_24h_usd=volume,
        price_change_24h_pct=change,
        txn_count_24h=txns,
    )


@pytest.fixture
def make_token():
    return token


@pytest.fixture
def fake_market():
    return FakeMarket


@pytest.fixture
def fixed_rng():
    return FixedRandom


@pytest.fixture
def memory_db():
    """
    Returns an async context manager yielding a session on a fresh in-memory database.

    Usage:
        async def run():
            async with memory_db() as db:
                ...
        asyncio.run(run())
    """

    @asynccontextmanager
    async def open_db():
        engine = build_engine(MEMORY_URL)
        await create_tables(engine)
        factory = build_session_factory(engine)
        session = factory()
        try:
            yield session
        finally:
            await session.close()
            await engine.dispose()

    return open_db
