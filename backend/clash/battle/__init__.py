"""Battle engine: token selection, call tracking, performance and round closure."""

from .calls import CallService, PriceUpdateResult, call_service
from .closer import (
    ACTIONS,
    AgentAggregate,
    RoundCloser,
    RoundOutcome,
    RoundStats,
    determine_winner,
    round_closer,
)
from .performance import (
    STARTING_BALANCE,
    AgentPerformance,
    PerformanceService,
    Scoreboard,
    build_scoreboard,
    performance_service,
    summarize_calls,
    summarize_multipliers,
)
from .rounds import CycleResult, RoundService, round_service
from .selector import ScoredToken, eligible_candidates, rank_candidates, select_token

__all__ = [
    "ACTIONS",
    "AgentAggregate",
    "AgentPerformance",
    "CallService",
    "CycleResult",
    "PerformanceService",
    "PriceUpdateResult",
    "RoundCloser",
    "RoundOutcome",
    "RoundService",
    "RoundStats",
    "STARTING_BALANCE",
    "Scoreboard",
    "ScoredToken",
    "build_scoreboard",
    "call_service",
    "determine_winner",
    "eligible_candidates",
    "performance_service",
    "rank_candidates",
    "round_closer",
    "round_service",
    "select_token",
    "summarize_calls",
    "summarize_multipliers",
]
