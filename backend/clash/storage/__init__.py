"""Storage layer for Clash - SQLAlchemy models and async sessions.

This package provides:
- Models for rounds, calls, round results and predictions
- Engine/session construction and the get_db_session() context manager
"""

from .base import Base, utcnow
from .models import (
    ROUND_ACTIVE,
    ROUND_COMPLETED,
    Call,
    Prediction,
    Round,
    RoundResult,
    compute_multiplier,
)
from .session import (
    build_engine,
    build_session_factory,
    close_db,
    create_tables,
    get_db_session,
    init_db,
)

__all__ = [
    # Models
    "Base",
    "Call",
    "Prediction",
    "Round",
    "RoundResult",
    "ROUND_ACTIVE",
    "ROUND_COMPLETED",
    "compute_multiplier",
    "utcnow",
    # Sessions
    "build_engine",
    "build_session_factory",
    "close_db",
    "create_tables",
    "get_db_session",
    "init_db",
]
