"""Logfire cloud observability initialization and instrumentation."""

import logging

import logfire

from clash import __version__
from clash.config import Settings

logger = logging.getLogger(__name__)


def initialize_logfire(settings: Settings) -> bool:
    """
    Initialize Logfire and instrument the battle engine's I/O.

    Must be called ONCE at process startup, before any jobs run.

    Instruments:
    - HTTPX clients (GeckoTerminal, DexScreener, CoinGecko, Binance)
    - SQLAlchemy (round, call and prediction queries)
    - Python logging (bridged to Logfire)

    Returns True when Logfire is active. Failures are logged, never raised:
    observability is optional.
    """
    if not settings.logfire_token:
        logger.warning("Logfire token not set - observability disabled")
        return False

    try:
        logfire.configure(
            token=settings.logfire_token,
            service_name="clash",
            service_version=__version__,
            environment="sqlite" if settings.is_sqlite else "postgres",
        )

        logfire.instrument_httpx()

        try:
            logfire.instrument_sqlalchemy()
        except Exception as db_error:
            logger.debug(f"SQLAlchemy instrumentation skipped: {db_error}")

        logging.getLogger().addHandler(logfire.LogfireLoggingHandler())

        logger.info("✓ Logfire cloud tracking initialized")
        return True

    except Exception as e:
        logger.warning(f"Failed to initialize Logfire: {e}")
        return False
