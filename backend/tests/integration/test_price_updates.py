"""
Integration Test: Price Updater

Test cases:
- Current and ATH valuation refresh
- Per-row failure isolation
- Batch misses fall back to single lookups
- Idempotence with unchanged valuations
"""

import asyncio

from clash.battle import call_service, round_service


async def _seed_calls(db, make_token):
    active = await round_service.ensure_active_round(db)
    a = await call_service.create_call(
        db, active.id, "opus", make_token("a", market_cap=100_000), "Strong volume.", 70
    )
    b = await call_service.create_call(
        db, active.id, "codex", make_token("b", market_cap=200_000), "Low mcap gem.", 60
    )
    return active, a, b


def test_update_prices_tracks_current_and_ath(memory_db, make_token, fake_market):
    market = fake_market()

    async def run():
        async with memory_db() as db:
            active, a, b = await _seed_calls(db, make_token)

            market.set_mcap("a", 300_000)
            market.set_mcap("b", 100_000)
            outcome = await call_service.update_prices(db, market, active.id)
            assert (outcome.calls_checked, outcome.calls_updated, outcome.lookups_failed) == (2, 2, 0)

            market.set_mcap("a", 150_000)
            await call_service.update_prices(db, market, active.id)

            calls = {c.token_address: c for c in await call_service.get_round_calls(db, active.id)}
            assert calls["a"].entry_mcap == 100_000
            assert calls["a"].current_mcap == 150_000
            assert calls["a"].ath_mcap == 300_000
            assert calls["a"].current_multiplier == 1.5
            assert calls["a"].ath_multiplier == 3.0
            assert calls["b"].multiplier == 0.5
            assert calls["b"].ath_mcap == 200_000
            assert calls["a"].last_updated is not None

    asyncio.run(run())


def test_failed_lookup_leaves_call_untouched(memory_db, make_token, fake_market):
    market = fake_market()

    async def run():
        async with memory_db() as db:
            active, a, b = await _seed_calls(db, make_token)

            market.set_mcap("a", 400_000)
            market.set_mcap("b", 0)
            outcome = await call_service.update_prices(db, market, active.id)

            assert outcome.calls_updated == 1
            assert outcome.lookups_failed == 1

            refreshed = await call_service.get_call(db, b.id)
            assert refreshed.current_mcap == 200_000
            assert refreshed.last_updated is None
            assert (await call_service.get_call(db, a.id)).current_mcap == 400_000

    asyncio.run(run())


def test_batch_miss_falls_back_to_single_lookup(memory_db, make_token, fake_market):
    class PartialBatchMarket(fake_market):
        async def get_valuations_batch(self, addresses):
            self.batch_requests.append(list(addresses))
            return {}

    market = PartialBatchMarket()

    async def run():
        async with memory_db() as db:
            active, a, b = await _seed_calls(db, make_token)
            market.set_mcap("a", 120_000)

            outcome = await call_service.update_prices(db, market, active.id)

            assert len(market.batch_requests) == 1
            assert sorted(market.batch_requests[0]) == ["a", "b"]
            assert sorted(market.single_requests) == ["a", "b"]
            assert outcome.calls_updated == 1
            assert outcome.lookups_failed == 1

    asyncio.run(run())


def test_update_is_idempotent(memory_db, make_token, fake_market):
    market = fake_market()

    async def run():
        async with memory_db() as db:
            active, a, b = await _seed_calls(db, make_token)
            market.set_mcap("a", 250_000)
            market.set_mcap("b", 250_000)

            first = await call_service.update_prices(db, market, active.id)
            snapshot = {
                c.token_address: (c.current_mcap, c.ath_mcap, c.last_updated)
                for c in await call_service.get_round_calls(db, active.id)
            }

            second = await call_service.update_prices(db, market, active.id)
            after = {
                c.token_address: (c.current_mcap, c.ath_mcap, c.last_updated)
                for c in await call_service.get_round_calls(db, active.id)
            }

            assert first.calls_updated == 2
            assert second.calls_updated == 0
            assert after == snapshot

    asyncio.run(run())


def test_no_calls_no_lookups(memory_db, fake_market):
    market = fake_market()

    async def run():
        async with memory_db() as db:
            active = await round_service.ensure_active_round(db)
            outcome = await call_service.update_prices(db, market, active.id)

            assert outcome.calls_checked == 0
            assert market.batch_requests == []

    asyncio.run(run())
