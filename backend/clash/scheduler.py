"""Job scheduler using APScheduler."""

import logging

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from clash.config import Settings
from clash.pipeline import (
    battle_cycle_job,
    prediction_resolution_job,
    price_update_job,
    round_close_job,
)

logger = logging.getLogger(__name__)


def build_scheduler(settings: Settings) -> BlockingScheduler:
    """Create a scheduler with every battle job registered."""
    config = settings.scheduler
    # A job never overlaps with itself
    scheduler = BlockingScheduler(
        timezone="UTC",
        job_defaults={"max_instances": 1, "coalesce": True},
    )

    scheduler.add_job(
        battle_cycle_job,
        IntervalTrigger(minutes=config.battle_cycle_minutes),
        id="battle-cycle",
        name="Battle: Selection Cycle",
    )
    logger.info(f"Registered job: Battle Selection Cycle (every {config.battle_cycle_minutes} min)")

    scheduler.add_job(
        price_update_job,
        IntervalTrigger(minutes=config.price_update_minutes),
        id="price-update",
        name="Battle: Price Update",
    )
    logger.info(f"Registered job: Price Update (every {config.price_update_minutes} min)")

    scheduler.add_job(
        round_close_job,
        IntervalTrigger(minutes=config.round_close_minutes),
        id="round-close",
        name="Battle: Round Close",
    )
    logger.info(f"Registered job: Round Close (every {config.round_close_minutes} min)")

    scheduler.add_job(
        prediction_resolution_job,
        CronTrigger(
            hour=config.resolution_hour_utc,
            minute=config.resolution_minute_utc,
            timezone="UTC",
        ),
        id="prediction-resolution",
        name="Predictions: Daily Resolution",
    )
    logger.info(
        f"Registered job: Prediction Resolution "
        f"(daily at {config.resolution_hour_utc:02d}:{config.resolution_minute_utc:02d} UTC)"
    )

    return scheduler


def start_scheduler(settings: Settings) -> None:
    """Start the APScheduler with configured jobs; blocks until interrupted."""
    scheduler = build_scheduler(settings)

    try:
        logger.info("✓ Scheduler starting...")
        logger.info(f"✓ {len(scheduler.get_jobs())} jobs registered")
        logger.info("Press Ctrl+C to stop\n")

        scheduler.start()

    except (KeyboardInterrupt, SystemExit):
        logger.info("\nReceived interrupt signal")
        scheduler.shutdown()
        logger.info("✓ Scheduler stopped cleanly")
