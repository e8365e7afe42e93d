"""Simulated balance and scoreboard statistics, recomputed from calls on demand."""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from clash.agents.strategies import AGENTS, CODEX, OPUS
from clash.battle.calls import call_service
from clash.storage.models import Call

logger = logging.getLogger(__name__)

STARTING_BALANCE = 1000.0


@dataclass
class AgentPerformance:
    agent: str
    total_calls: int
    balance: float
    pnl: float
    pnl_percent: float
    avg_multiplier: float
    median_multiplier: float
    best_multiplier: float
    score: float

    def to_dict(self) -> dict:
        data = asdict(self)
        for key in ("balance", "pnl", "pnl_percent"):
            data[key] = round(data[key], 2)
        for key in ("avg_multiplier", "median_multiplier", "best_multiplier", "score"):
            data[key] = round(data[key], 4)
        return data


@dataclass
class Scoreboard:
    opus: AgentPerformance
    codex: AgentPerformance

    @property
    def leader(self) -> str:
        if self.opus.balance > self.codex.balance:
            return OPUS
        if self.codex.balance > self.opus.balance:
            return CODEX
        return "draw"

    @property
    def total_calls(self) -> int:
        return self.opus.total_calls + self.codex.total_calls

    def ranked(self) -> list[AgentPerformance]:
        return sorted([self.opus, self.codex], key=lambda p: p.balance, reverse=True)

    def to_dict(self) -> dict:
        return {
            "opus": self.opus.to_dict(),
            "codex": self.codex.to_dict(),
            "leader": self.leader,
            "total_calls": self.total_calls,
        }


def summarize_multipliers(
    agent: str,
    multipliers: Sequence[float],
    starting_balance: float = STARTING_BALANCE,
) -> AgentPerformance:
    """
    Split the starting balance equally across every call and weight each share by its multiplier.

    The median is the element at index n // 2 of the descending sort, so for an
    even count it is the lower of the two middle values.
    """
    n = len(multipliers)
    if n == 0:
        return AgentPerformance(
            agent=agent,
            total_calls=0,
            balance=starting_balance,
            pnl=0.0,
            pnl_percent=0.0,
            avg_multiplier=0.0,
            median_multiplier=0.0,
            best_multiplier=0.0,
            score=0.0,
        )

    per_call = starting_balance / n
    balance = sum(per_call * m for m in multipliers)
    pnl = balance - starting_balance
    total = sum(multipliers)
    ordered = sorted(multipliers, reverse=True)

    return AgentPerformance(
        agent=agent,
        total_calls=n,
        balance=balance,
        pnl=pnl,
        pnl_percent=100 * pnl / starting_balance,
        avg_multiplier=total / n,
        median_multiplier=ordered[n // 2],
        best_multiplier=ordered[0],
        score=total,
    )


def summarize_calls(
    agent: str,
    calls: Iterable[Call],
    starting_balance: float = STARTING_BALANCE,
) -> AgentPerformance:
    multipliers = [c.multiplier for c in calls if c.agent == agent]
    return summarize_multipliers(agent, multipliers, starting_balance)


def build_scoreboard(
    calls: Iterable[Call],
    starting_balance: float = STARTING_BALANCE,
) -> Scoreboard:
    calls = list(calls)
    return Scoreboard(
        opus=summarize_calls(OPUS, calls, starting_balance),
        codex=summarize_calls(CODEX, calls, starting_balance),
    )


class PerformanceService:
    """
    On-demand computation of agent performance from the stored calls.
    """

    async def get_scoreboard(
        self,
        db: AsyncSession,
        starting_balance: float = STARTING_BALANCE,
        limit: Optional[int] = None,
    ) -> Scoreboard:
        """Scoreboard over every call (or the most recent `limit` calls)."""
        calls = await call_service.get_recent_calls(db, limit=limit)
        scoreboard = build_scoreboard(calls, starting_balance)
        logger.debug(
            f"Scoreboard: opus ${scoreboard.opus.balance:,.2f} vs "
            f"codex ${scoreboard.codex.balance:,.2f} ({scoreboard.total_calls} calls)"
        )
        return scoreboard

    async def get_agent_performance(
        self,
        db: AsyncSession,
        agent: str,
        starting_balance: float = STARTING_BALANCE,
    ) -> AgentPerformance:
        if agent not in AGENTS:
            raise ValueError(f"Unknown agent: {agent}")
        calls = await call_service.get_recent_calls(db, limit=None, agent=agent)
        return summarize_calls(agent, calls, starting_balance)


# Singleton instance
performance_service = PerformanceService()
