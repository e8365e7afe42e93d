"""
Integration Test: Prediction generation, resolution and stats

Test cases:
- Generated prediction stores question plus structured terms
- Resolution from structured terms and from question text
- Unparseable and stale predictions stay pending
- Resolved predictions are never mutated again
- Agreement stats
"""

import asyncio
import random
from datetime import timedelta

from clash.predictions import generate_prediction, parse_question, prediction_service, resolve_predictions
from clash.storage import Prediction, utcnow


def _prediction(question, opus="YES", codex="NO", **kwargs) -> Prediction:
    return Prediction(
        question=question,
        opus_position=opus,
        opus_confidence=70,
        codex_position=codex,
        codex_confidence=60,
        **kwargs,
    )


def test_generate_prediction_persists_terms(memory_db, fake_market):
    market = fake_market(prices={"BTC": 97_000.0, "ETH": 2_800.0, "SOL": 190.0})

    async def run():
        async with memory_db() as db:
            prediction = await generate_prediction(db, market, random.Random(3))

            assert prediction.id is not None
            assert prediction.category == "crypto"
            assert prediction.resolved is False
            assert prediction.result is None
            assert prediction.reference_price == {"BTC": 97_000.0, "ETH": 2_800.0, "SOL": 190.0}[prediction.asset]

            terms = parse_question(prediction.question)
            assert (terms.asset, terms.direction, terms.target) == (
                prediction.asset,
                prediction.direction,
                prediction.target_price,
            )
            assert prediction.opus_reasoning
            assert prediction.codex_reasoning

    asyncio.run(run())


def test_generate_prediction_without_prices(memory_db, fake_market):
    async def run():
        async with memory_db() as db:
            assert await generate_prediction(db, fake_market(), random.Random(3)) is None
            assert await prediction_service.get_recent_predictions(db) == []

    asyncio.run(run())


def test_resolve_predictions(memory_db, fake_market):
    market = fake_market(prices={"BTC": 71_200.0, "ETH": 2_900.0})

    async def run():
        async with memory_db() as db:
            structured = _prediction(
                "Will BTC close above $70,000 today (23:59 UTC)?",
                asset="BTC",
                direction="above",
                target_price=70_000.0,
            )
            text_only = _prediction("Will ETH close below $3,000 today (23:59 UTC)?")
            unparseable = _prediction("Will the top trending token maintain its position?")
            stale = _prediction(
                "Will BTC close below $60,000 today (23:59 UTC)?",
                created_at=utcnow() - timedelta(hours=30),
            )
            db.add_all([structured, text_only, unparseable, stale])
            await db.commit()

            outcome = await resolve_predictions(db, market)

            assert (outcome.checked, outcome.resolved, outcome.unresolvable) == (3, 2, 1)
            assert structured.resolved and structured.result == "YES"
            assert text_only.resolved and text_only.result == "YES"
            assert structured.resolved_at is not None
            assert not unparseable.resolved
            assert not stale.resolved and stale.result is None

            # Later runs only reconsider what is still pending
            market.prices["BTC"] = 50_000.0
            again = await resolve_predictions(db, market)
            assert again.checked == 1
            assert again.resolved == 0
            assert structured.result == "YES"

    asyncio.run(run())


def test_below_target_resolves_no_when_price_higher(memory_db, fake_market):
    market = fake_market(prices={"BTC": 69_000.0})

    async def run():
        async with memory_db() as db:
            above = _prediction("Will BTC close above $70,000 today")
            db.add(above)
            await db.commit()

            await resolve_predictions(db, market)
            assert above.result == "NO"

    asyncio.run(run())


def test_missing_live_price_stays_pending(memory_db, fake_market):
    market = fake_market(prices={})

    async def run():
        async with memory_db() as db:
            pending = _prediction("Will SOL close above $200 today (23:59 UTC)?")
            db.add(pending)
            await db.commit()

            outcome = await resolve_predictions(db, market)

            assert outcome.unresolvable == 1
            assert not pending.resolved

    asyncio.run(run())


def test_prediction_stats(memory_db):
    async def run():
        async with memory_db() as db:
            db.add_all([
                _prediction("Will BTC close above $1 today?", opus="YES", codex="YES"),
                _prediction("Will BTC close above $2 today?", opus="YES", codex="NO"),
                _prediction("Will BTC close above $3 today?", opus="NO", codex="YES"),
            ])
            await db.commit()

            stats = await prediction_service.get_prediction_stats(db)
            assert (stats.total, stats.agreements, stats.disagreements, stats.resolved) == (3, 1, 2, 0)

            recent = await prediction_service.get_recent_predictions(db, limit=2)
            assert len(recent) == 2

    asyncio.run(run())
