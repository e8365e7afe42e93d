"""Scheduled entry points: selection cycle, price update, round close, prediction resolution."""

import asyncio
import logging
import random
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, Optional, TypeVar

from clash.battle import (
    CycleResult,
    PriceUpdateResult,
    call_service,
    round_closer,
    round_service,
)
from clash.config import Settings, get_settings
from clash.predictions import ResolutionResult, generate_prediction, resolve_predictions
from clash.services.market import MarketDataClient, create_market_client
from clash.storage import Prediction, RoundResult, close_db, get_db_session

logger = logging.getLogger("clash.pipeline")

T = TypeVar("T")

_rng: Optional[random.Random] = None


def get_rng(settings: Settings) -> random.Random:
    """Process-wide random source, seeded from settings when a seed is configured."""
    global _rng
    if _rng is None:
        _rng = random.Random(settings.random_seed)
    return _rng


@asynccontextmanager
async def _market_client(
    settings: Settings,
    market: Optional[MarketDataClient] = None,
) -> AsyncIterator[MarketDataClient]:
    if market is not None:
        yield market
        return
    async with create_market_client(settings.market) as client:
        yield client


async def run_battle_cycle(
    settings: Optional[Settings] = None,
    market: Optional[MarketDataClient] = None,
    rng: Optional[random.Random] = None,
) -> CycleResult:
    """One selection cycle (both agents pick) followed by prediction generation."""
    settings = settings or get_settings()
    rng = rng or get_rng(settings)

    async with _market_client(settings, market) as client:
        async with get_db_session(settings) as db:

            async def make_prediction(session):
                return await generate_prediction(session, client, rng, settings.predictions)

            return await round_service.run_cycle(
                db,
                client,
                rng,
                settings.battle,
                on_calls_recorded=make_prediction,
            )


async def run_price_update(
    settings: Optional[Settings] = None,
    market: Optional[MarketDataClient] = None,
) -> PriceUpdateResult:
    """Refresh valuations for every call in the active round."""
    settings = settings or get_settings()

    async with _market_client(settings, market) as client:
        async with get_db_session(settings) as db:
            active = await round_service.get_active_round(db)
            if active is None:
                logger.info("No active round; nothing to update")
                return PriceUpdateResult()
            return await call_service.update_prices(db, client, active.id)


async def run_round_close(settings: Optional[Settings] = None) -> Optional[RoundResult]:
    """Snapshot both agents' balances into a RoundResult."""
    settings = settings or get_settings()
    async with get_db_session(settings) as db:
        return await round_closer.close_round(db, settings.battle.starting_balance)


async def run_prediction_generation(
    settings: Optional[Settings] = None,
    market: Optional[MarketDataClient] = None,
    rng: Optional[random.Random] = None,
) -> Optional[Prediction]:
    """Generate a single prediction outside the selection cycle."""
    settings = settings or get_settings()
    rng = rng or get_rng(settings)

    async with _market_client(settings, market) as client:
        async with get_db_session(settings) as db:
            return await generate_prediction(db, client, rng, settings.predictions)


async def run_prediction_resolution(
    settings: Optional[Settings] = None,
    market: Optional[MarketDataClient] = None,
) -> ResolutionResult:
    """Settle pending predictions from the last resolution window."""
    settings = settings or get_settings()

    async with _market_client(settings, market) as client:
        async with get_db_session(settings) as db:
            return await resolve_predictions(db, client, settings.predictions)


async def run_once(settings: Settings) -> None:
    """Run cycle, price update and round close once each; a failing step does not stop the rest."""
    logger.info("Pipeline starting: cycle -> price update -> round close")

    try:
        cycle = await run_battle_cycle(settings)
        if cycle.skipped:
            logger.info(f"Cycle skipped: {cycle.reason}")
        else:
            logger.info(f"Cycle complete: {cycle.to_dict()['calls']}")
    except Exception as e:
        logger.error(f"Battle cycle failed: {e}", exc_info=True)

    try:
        updated = await run_price_update(settings)
        logger.info(f"Price update complete: {updated.calls_updated}/{updated.calls_checked} updated")
    except Exception as e:
        logger.error(f"Price update failed: {e}", exc_info=True)

    try:
        result = await run_round_close(settings)
        if result is not None:
            logger.info(f"Round close complete: {result.winner} ({result.action})")
    except Exception as e:
        logger.error(f"Round close failed: {e}", exc_info=True)

    logger.info("Pipeline complete.")


def _run_job(name: str, job: Callable[[], Awaitable[T]]) -> Optional[T]:
    """
    Run an entry point to completion on a fresh event loop.

    The engine is disposed afterwards because its connections belong to that
    loop. Errors are logged and swallowed so the scheduler keeps running.
    """

    async def runner() -> T:
        try:
            return await job()
        finally:
            await close_db()

    try:
        return asyncio.run(runner())
    except Exception as e:
        logger.error(f"{name} failed: {e}", exc_info=True)
        return None


def battle_cycle_job() -> None:
    """Scheduler job wrapper for the selection cycle (blocking)."""
    result: Any = _run_job("Battle cycle", run_battle_cycle)
    if result is not None:
        if result.skipped:
            logger.info(f"Battle cycle skipped: {result.reason}")
        else:
            logger.info(f"✓ Battle cycle: {len(result.calls)} calls recorded")


def price_update_job() -> None:
    """Scheduler job wrapper for the price updater (blocking)."""
    result = _run_job("Price update", run_price_update)
    if result is not None:
        logger.info(f"✓ Price update: {result.calls_updated}/{result.calls_checked} calls updated")


def round_close_job() -> None:
    """Scheduler job wrapper for round closure (blocking)."""
    result = _run_job("Round close", run_round_close)
    if result is not None:
        logger.info(f"✓ Round closed: {result.winner} -> {result.action}")


def prediction_resolution_job() -> None:
    """Scheduler job wrapper for daily prediction resolution (blocking)."""
    result = _run_job("Prediction resolution", run_prediction_resolution)
    if result is not None:
        logger.info(f"✓ Predictions resolved: {result.resolved}/{result.checked}")
