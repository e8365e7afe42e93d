"""
Integration Test: MarketDataClient against mocked provider HTTP

Test cases:
- Trending candidates normalized and limited
- Batch valuations chunked at the batch size
- Provider failures degrade to empty results
- Malformed items skipped without losing valid ones
- Trending tokens de-duplicated by address
- Reference price fallback chain
"""

import asyncio

import httpx
import pytest

from clash.services.market import MarketDataClient, MarketDataConfig


def _pool(address: str, fdv: float) -> dict:
    return {
        "attributes": {
            "name": f"{address.upper()} / SOL",
            "base_token_price_usd": "0.01",
            "fdv_usd": str(fdv),
            "volume_usd": {"h24": "100000"},
            "price_change_percentage": {"h24": "12.5"},
            "transactions": {"h24": {"buys": 10, "sells": 5}},
        },
        "relationships": {"base_token": {"data": {"id": f"solana_{address}"}}},
    }


def _pair(address: str, market_cap: float) -> dict:
    return {
        "chainId": "solana",
        "baseToken": {"address": address, "symbol": address.upper(), "name": address},
        "priceUsd": "0.5",
        "marketCap": market_cap,
    }


def _run_with(handler, coro_fn, config=None):
    async def run():
        client = MarketDataClient(config or MarketDataConfig(), transport=httpx.MockTransport(handler))
        async with client:
            return await coro_fn(client)

    return asyncio.run(run())


def test_client_requires_context_manager():
    with pytest.raises(RuntimeError):
        MarketDataClient().client


def test_list_candidate_tokens():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v2/networks/solana/trending_pools"
        pools = [_pool(f"tok{i}", 50_000 + i) for i in range(25)]
        pools.append({"attributes": {"name": "BROKEN / SOL"}})
        return httpx.Response(200, json={"data": pools})

    candidates = _run_with(handler, lambda c: c.list_candidate_tokens())

    assert len(candidates) == 20
    assert candidates[0].address == "tok0"
    assert candidates[0].symbol == "TOK0"
    assert candidates[0].txn_count_24h == 15


def test_list_candidate_tokens_on_server_error():
    def handler(request):
        return httpx.Response(503, text="unavailable")

    assert _run_with(handler, lambda c: c.list_candidate_tokens()) == []


def test_list_candidate_tokens_on_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    assert _run_with(handler, lambda c: c.list_candidate_tokens()) == []


def test_malformed_body_is_empty():
    def handler(request):
        return httpx.Response(200, content=b"<html>not json</html>")

    assert _run_with(handler, lambda c: c.list_candidate_tokens()) == []


def test_malformed_pools_are_skipped():
    def handler(request):
        broken_name = _pool("named", 70_000)
        broken_name["attributes"]["name"] = 123
        return httpx.Response(200, json={"data": [
            {"attributes": "oops"},
            broken_name,
            {"attributes": {"name": "X / SOL"}, "relationships": "garbage"},
            _pool("good", 60_000),
        ]})

    candidates = _run_with(handler, lambda c: c.list_candidate_tokens())

    assert [c.address for c in candidates] == ["good"]


def test_trending_tokens_deduplicated_by_address():
    def handler(request):
        first = _pool("dup", 90_000)
        second = _pool("dup", 10)
        second["attributes"]["name"] = "DUP / USDC"
        return httpx.Response(200, json={"data": [first, second, _pool("other", 80_000)]})

    candidates = _run_with(handler, lambda c: c.list_candidate_tokens())

    assert [c.address for c in candidates] == ["dup", "other"]
    assert candidates[0].market_cap_usd == 90_000


def test_get_valuation():
    def handler(request):
        assert request.url.path == "/latest/dex/tokens/abc"
        return httpx.Response(200, json={"pairs": [_pair("abc", 250_000), _pair("abc", 1)]})

    valuation = _run_with(handler, lambda c: c.get_valuation("abc"))

    assert valuation.address == "abc"
    assert valuation.market_cap_usd == 250_000


def test_get_valuation_missing():
    def handler(request):
        return httpx.Response(200, json={"pairs": None})

    assert _run_with(handler, lambda c: c.get_valuation("abc")) is None


def test_batch_valuations_are_chunked():
    requested = []

    def handler(request):
        addresses = request.url.path.rsplit("/", 1)[-1].split(",")
        requested.append(addresses)
        pairs = [_pair(a, 100_000 + i) for i, a in enumerate(addresses)]
        # A second pair for the same token must not override the first
        pairs.append(_pair(addresses[0], 1))
        return httpx.Response(200, json={"pairs": pairs})

    addresses = [f"t{i}" for i in range(35)] + ["t0"]
    valuations = _run_with(handler, lambda c: c.get_valuations_batch(addresses))

    assert [len(chunk) for chunk in requested] == [30, 5]
    assert len(valuations) == 35
    assert valuations["t0"].market_cap_usd == 100_000
    assert valuations["t34"].market_cap_usd == 100_004


def test_batch_valuations_partial_failure():
    def handler(request):
        addresses = request.url.path.rsplit("/", 1)[-1].split(",")
        if "t0" in addresses:
            return httpx.Response(429, text="slow down")
        return httpx.Response(200, json={"pairs": [_pair(a, 50_000) for a in addresses]})

    config = MarketDataConfig(batch_size=2)
    valuations = _run_with(handler, lambda c: c.get_valuations_batch(["t0", "t1", "t2", "t3"]), config)

    assert set(valuations) == {"t2", "t3"}


def test_batch_valuations_skip_malformed_pairs():
    def handler(request):
        wrong_type = _pair("typed", 30_000)
        wrong_type["baseToken"]["symbol"] = ["not", "a", "string"]
        return httpx.Response(200, json={"pairs": [
            _pair("good", 2_000_000),
            {"baseToken": "garbage", "marketCap": 5},
            wrong_type,
            "not-a-pair",
        ]})

    valuations = _run_with(
        handler, lambda c: c.get_valuations_batch(["good", "bad", "typed"])
    )

    assert set(valuations) == {"good"}
    assert valuations["good"].market_cap_usd == 2_000_000


def test_get_valuation_malformed_pair():
    def handler(request):
        return httpx.Response(200, json={"pairs": [{"baseToken": {"symbol": 7}, "marketCap": 1}]})

    assert _run_with(handler, lambda c: c.get_valuation("abc")) is None


def test_reference_prices_fall_back_to_binance():
    def handler(request):
        if request.url.host == "api.coingecko.com":
            assert request.url.params["vs_currencies"] == "usd"
            return httpx.Response(200, json={"bitcoin": {"usd": 96_000}, "ethereum": {}})
        if request.url.host == "api.binance.com":
            if request.url.params["symbol"] == "ETHUSDT":
                return httpx.Response(200, json={"symbol": "ETHUSDT", "price": "2750.5"})
            return httpx.Response(400, json={"msg": "Invalid symbol."})
        raise AssertionError(f"unexpected request {request.url}")

    prices = _run_with(handler, lambda c: c.get_reference_prices(["BTC", "ETH", "SOL"]))

    assert prices == {"BTC": 96_000.0, "ETH": 2750.5, "SOL": 190.0}


def test_reference_prices_constants_when_all_down():
    def handler(request):
        return httpx.Response(500)

    prices = _run_with(handler, lambda c: c.get_reference_prices(["BTC", "ETH", "SOL"]))
    assert prices == {"BTC": 97_000.0, "ETH": 2_800.0, "SOL": 190.0}

    live_only = _run_with(
        handler, lambda c: c.get_reference_prices(["BTC"], use_fallback=False)
    )
    assert live_only == {}
