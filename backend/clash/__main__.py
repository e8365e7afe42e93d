"""Clash CLI entry point."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

env_file = Path(__file__).parent.parent / ".env"
load_dotenv(env_file)

from clash import __version__
from clash.battle import performance_service, round_closer, round_service
from clash.config import get_settings
from clash.pipeline import (
    run_battle_cycle,
    run_once,
    run_prediction_generation,
    run_prediction_resolution,
    run_price_update,
    run_round_close,
)
from clash.predictions import prediction_service
from clash.scheduler import start_scheduler
from clash.storage import close_db, get_db_session, init_db

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)

CONFIG_TEMPLATE = """# Clash Configuration
# Battle, prediction and scheduling parameters.
# Secrets (database URL, Logfire token) belong in .env, not here.

battle:
  starting_balance: 1000.0
  recency_window_minutes: 5
  min_market_cap: 10000.0
  min_candidates: 2

predictions:
  resolution_window_hours: 24
  contrarian_probability: 0.30

scheduler:
  battle_cycle_minutes: 2
  price_update_minutes: 3
  round_close_minutes: 5
  resolution_hour_utc: 23
  resolution_minute_utc: 59

market:
  network: solana
  trending_limit: 20
  batch_size: 30
  timeout_seconds: 15.0
"""


def _init_logfire() -> None:
    """Initialize Logfire if available, without failing commands."""
    try:
        from clash.observability import initialize_logfire

        initialize_logfire(get_settings())
    except Exception as e:
        logger.warning(f"Failed to initialize Logfire: {e}")


def _run(coro):
    """Run a coroutine on a fresh loop and dispose of the engine afterwards."""

    async def runner():
        try:
            return await coro
        finally:
            await close_db()

    return asyncio.run(runner())


def cmd_init(args: argparse.Namespace) -> int:
    """Initialize data directory, configuration file and database tables."""
    try:
        settings = get_settings()
        data_dir = settings.data_dir
        data_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Created data directory: {data_dir}")

        config_path = data_dir / "config.yaml"
        if not config_path.exists():
            config_path.write_text(CONFIG_TEMPLATE)
            logger.info(f"Created config template: {config_path}")
        else:
            logger.info(f"Config file already exists: {config_path}")

        _run(init_db(settings))

        print(f"\n✓ Data directory initialized at {data_dir}")
        print("\nNext steps:")
        print("1. Copy .env.example to .env and set DATABASE_URL / LOGFIRE_TOKEN")
        print("2. Review and customize data/config.yaml if needed")
        print("3. Run 'python -m clash config' to verify configuration")
        print("4. Run 'python -m clash run' to start the battle\n")

        return 0

    except Exception as e:
        logger.error(f"Failed to initialize: {e}")
        print(f"\n❌ Initialization failed: {e}\n")
        return 1


def cmd_config(args: argparse.Namespace) -> int:
    """Display merged configuration."""
    try:
        settings = get_settings()

        print("\n=== Clash Configuration ===\n")
        print(f"Data Directory: {settings.data_dir}")
        print(f"Database: {'SQLite' if settings.is_sqlite else 'PostgreSQL'}")
        print(f"Random Seed: {settings.random_seed if settings.random_seed is not None else 'unset'}\n")

        battle = settings.battle
        print("Battle:")
        print(f"  Starting Balance: ${battle.starting_balance:,.2f}")
        print(f"  Recency Window: {battle.recency_window_minutes} min")
        print(f"  Min Market Cap: ${battle.min_market_cap:,.0f}")
        print(f"  Min Candidates: {battle.min_candidates}\n")

        predictions = settings.predictions
        print("Predictions:")
        print(f"  Resolution Window: {predictions.resolution_window_hours}h")
        print(f"  Contrarian Probability: {predictions.contrarian_probability:.0%}\n")

        scheduler = settings.scheduler
        print("Scheduler:")
        print(f"  Battle Cycle: every {scheduler.battle_cycle_minutes} min")
        print(f"  Price Update: every {scheduler.price_update_minutes} min")
        print(f"  Round Close: every {scheduler.round_close_minutes} min")
        print(
            f"  Prediction Resolution: daily at "
            f"{scheduler.resolution_hour_utc:02d}:{scheduler.resolution_minute_utc:02d} UTC\n"
        )

        market = settings.market
        print("Market Data:")
        print(f"  Network: {market.network}")
        print(f"  Trending Limit: {market.trending_limit}")
        print(f"  Batch Size: {market.batch_size}")
        print(f"  Timeout: {market.timeout_seconds}s\n")

        print("Observability:")
        print(f"  Logfire: {'✓ Set' if settings.logfire_token else '✗ Not set'}\n")

        return 0

    except ValidationError as e:
        print("\n❌ Configuration Error:\n")
        for error in e.errors():
            print(f"  • {'.'.join(str(x) for x in error['loc'])}: {error['msg']}")
        print()
        return 1
    except Exception as e:
        logger.error(f"Failed to load config: {e}")
        print(f"\n❌ Failed to load configuration: {e}\n")
        return 1


async def _load_status(settings):
    async with get_db_session(settings) as db:
        active = await round_service.get_active_round(db)
        scoreboard = await performance_service.get_scoreboard(
            db, settings.battle.starting_balance
        )
        round_stats = await round_closer.get_round_stats(db)
        prediction_stats = await prediction_service.get_prediction_stats(db)
        return active, scoreboard, round_stats, prediction_stats


def cmd_status(args: argparse.Namespace) -> int:
    """Display the current scoreboard."""
    try:
        settings = get_settings()
        active, scoreboard, round_stats, prediction_stats = _run(_load_status(settings))

        print("\n=== Clash Battle Status ===\n")
        if active:
            print(f"Active Round: {active.id} (since {active.started_at:%Y-%m-%d %H:%M} UTC)\n")
        else:
            print("Active Round: (none)\n")

        for perf in scoreboard.ranked():
            print(f"{perf.agent.capitalize()}:")
            print(f"  Calls: {perf.total_calls}")
            print(f"  Balance: ${perf.balance:,.2f} ({perf.pnl_percent:+.2f}%)")
            print(f"  Avg / Median / Best: {perf.avg_multiplier:.2f}x / "
                  f"{perf.median_multiplier:.2f}x / {perf.best_multiplier:.2f}x\n")
        print(f"Leader: {scoreboard.leader}\n")

        print("Round Results:")
        print(f"  Total: {round_stats.total_rounds}")
        print(f"  Opus Wins: {round_stats.opus_wins} (buybacks {round_stats.buybacks})")
        print(f"  Codex Wins: {round_stats.codex_wins} (airdrops {round_stats.airdrops})\n")

        print("Predictions:")
        print(f"  Total: {prediction_stats.total}")
        print(f"  Agreements: {prediction_stats.agreements}")
        print(f"  Disagreements: {prediction_stats.disagreements}\n")

        return 0

    except Exception as e:
        logger.error(f"Failed to read status: {e}")
        print(f"\n❌ Failed to read status: {e}\n")
        return 1


def cmd_cycle(args: argparse.Namespace) -> int:
    """Run one selection cycle manually."""
    _init_logfire()

    try:
        print("\n=== Battle Cycle ===\n")

        result = _run(run_battle_cycle(get_settings()))

        if result.skipped:
            print(f"Cycle skipped: {result.reason}\n")
            return 0

        print("✓ Cycle complete\n")
        for call in result.calls:
            print(f"  {call.agent}: ${call.token_symbol} "
                  f"(mcap ${call.entry_mcap:,.0f}, confidence {call.confidence})")
            print(f"    {call.reasoning}")
        if result.prediction is not None:
            print(f"\nPrediction: {result.prediction.question}")
        print()

        return 0

    except Exception as e:
        logger.error(f"Battle cycle failed: {e}", exc_info=True)
        print(f"\n❌ Battle cycle failed: {e}\n")
        return 1


def cmd_update_prices(args: argparse.Namespace) -> int:
    """Refresh valuations for the active round's calls."""
    _init_logfire()

    try:
        result = _run(run_price_update(get_settings()))

        print("\n✓ Price update complete\n")
        print(f"Calls Checked: {result.calls_checked}")
        print(f"Calls Updated: {result.calls_updated}")
        print(f"Lookups Failed: {result.lookups_failed}\n")

        return 0

    except Exception as e:
        logger.error(f"Price update failed: {e}", exc_info=True)
        print(f"\n❌ Price update failed: {e}\n")
        return 1


def cmd_close_round(args: argparse.Namespace) -> int:
    """Close a round now and record the winner."""
    _init_logfire()

    try:
        result = _run(run_round_close(get_settings()))

        if result is None:
            print("\nNot enough data to close round (both agents need calls).\n")
            return 0

        print("\n✓ Round closed\n")
        print(f"Winner: {result.winner}")
        print(f"Action: {result.action}")
        print(f"Opus Balance: ${float(result.opus_balance):,.2f}")
        print(f"Codex Balance: ${float(result.codex_balance):,.2f}\n")

        return 0

    except Exception as e:
        logger.error(f"Round close failed: {e}", exc_info=True)
        print(f"\n❌ Round close failed: {e}\n")
        return 1


def cmd_predict(args: argparse.Namespace) -> int:
    """Generate one prediction manually."""
    _init_logfire()

    try:
        prediction = _run(run_prediction_generation(get_settings()))

        if prediction is None:
            print("\nNo prediction generated (no reference price).\n")
            return 0

        print(f"\n✓ {prediction.question}\n")
        print(f"Opus: {prediction.opus_position} ({prediction.opus_confidence}%) - {prediction.opus_reasoning}")
        print(f"Codex: {prediction.codex_position} ({prediction.codex_confidence}%) - {prediction.codex_reasoning}\n")

        return 0

    except Exception as e:
        logger.error(f"Prediction failed: {e}", exc_info=True)
        print(f"\n❌ Prediction failed: {e}\n")
        return 1


def cmd_resolve(args: argparse.Namespace) -> int:
    """Resolve pending predictions against live prices."""
    _init_logfire()

    try:
        result = _run(run_prediction_resolution(get_settings()))

        print("\n✓ Resolution complete\n")
        print(f"Pending Checked: {result.checked}")
        print(f"Resolved: {result.resolved}")
        print(f"Left Pending: {result.unresolvable}\n")

        return 0

    except Exception as e:
        logger.error(f"Resolution failed: {e}", exc_info=True)
        print(f"\n❌ Resolution failed: {e}\n")
        return 1


def cmd_run(args: argparse.Namespace) -> int:
    """Start the battle scheduler."""
    try:
        _init_logfire()

        if args.debug:
            logging.getLogger().setLevel(logging.DEBUG)

        settings = get_settings()

        print("\n=== Clash: Opus vs Codex ===\n")
        print(f"Version: {__version__}")
        print(f"Starting Balance: ${settings.battle.starting_balance:,.2f}")
        print(f"Data Directory: {settings.data_dir}\n")

        _run(init_db(settings))

        if args.once:
            print("Running cycle, price update and round close once...\n")
            _run(run_once(settings))
            print("\nPipeline run complete.\n")
            return 0

        print("Starting scheduler...\n")
        start_scheduler(settings)

        return 0

    except KeyboardInterrupt:
        print("\n\nReceived interrupt signal. Shutting down...\n")
        return 0
    except Exception as e:
        logger.error(f"Failed to start system: {e}", exc_info=True)
        print(f"\nFailed to start: {e}\n")
        return 1


def cmd_serve(args: argparse.Namespace) -> int:
    """Serve the read-only dashboard API."""
    try:
        import uvicorn

        _init_logfire()
        uvicorn.run("clash.api.server:app", host=args.host, port=args.port)
        return 0

    except Exception as e:
        logger.error(f"API server failed: {e}", exc_info=True)
        print(f"\n❌ API server failed: {e}\n")
        return 1


def main() -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Clash: two agents battle over trending tokens and daily predictions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Clash {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    parser_init = subparsers.add_parser(
        "init",
        help="Initialize data directory, configuration and database tables",
    )
    parser_init.set_defaults(func=cmd_init)

    parser_config = subparsers.add_parser(
        "config",
        help="Display merged configuration",
    )
    parser_config.set_defaults(func=cmd_config)

    parser_status = subparsers.add_parser(
        "status",
        help="Display the current scoreboard",
    )
    parser_status.set_defaults(func=cmd_status)

    parser_cycle = subparsers.add_parser(
        "cycle",
        help="Run one selection cycle manually",
    )
    parser_cycle.set_defaults(func=cmd_cycle)

    parser_update = subparsers.add_parser(
        "update-prices",
        help="Refresh valuations for the active round's calls",
    )
    parser_update.set_defaults(func=cmd_update_prices)

    parser_close = subparsers.add_parser(
        "close-round",
        help="Compare balances and record a round result",
    )
    parser_close.set_defaults(func=cmd_close_round)

    parser_predict = subparsers.add_parser(
        "predict",
        help="Generate one daily price prediction",
    )
    parser_predict.set_defaults(func=cmd_predict)

    parser_resolve = subparsers.add_parser(
        "resolve",
        help="Resolve pending predictions against live prices",
    )
    parser_resolve.set_defaults(func=cmd_resolve)

    parser_run = subparsers.add_parser(
        "run",
        help="Start the battle scheduler",
    )
    parser_run.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser_run.add_argument(
        "--once",
        action="store_true",
        help="Run cycle, price update and round close once then exit",
    )
    parser_run.set_defaults(func=cmd_run)

    parser_serve = subparsers.add_parser(
        "serve",
        help="Serve the read-only dashboard API",
    )
    parser_serve.add_argument("--host", default="127.0.0.1", help="Bind address")
    parser_serve.add_argument("--port", type=int, default=8000, help="Bind port")
    parser_serve.set_defaults(func=cmd_serve)

    args = parser.parse_args()

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
