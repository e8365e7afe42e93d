"""Periodic round closure: compare simulated balances and record the outcome."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from clash.agents.strategies import CODEX, OPUS
from clash.battle.performance import STARTING_BALANCE
from clash.storage.models import Call, RoundResult

logger = logging.getLogger(__name__)

DRAW = "draw"

ACTIONS = {
    OPUS: "buyback_burn",
    CODEX: "airdrop",
    DRAW: "none",
}


@dataclass
class AgentAggregate:
    agent: str
    total_calls: int
    avg_multiplier: float
    best_multiplier: float


@dataclass
class RoundOutcome:
    winner: str
    action: str
    opus_balance: float
    codex_balance: float


@dataclass
class RoundStats:
    total_rounds: int = 0
    opus_wins: int = 0
    codex_wins: int = 0
    buybacks: int = 0
    airdrops: int = 0


def determine_winner(
    opus_avg: float,
    codex_avg: float,
    starting_balance: float = STARTING_BALANCE,
) -> RoundOutcome:
    """Higher balance wins outright; equal balances are a draw."""
    opus_balance = starting_balance * opus_avg
    codex_balance = starting_balance * codex_avg

    if opus_balance > codex_balance:
        winner = OPUS
    elif codex_balance > opus_balance:
        winner = CODEX
    else:
        winner = DRAW

    return RoundOutcome(
        winner=winner,
        action=ACTIONS[winner],
        opus_balance=round(opus_balance, 2),
        codex_balance=round(codex_balance, 2),
    )


def _to_money(value: float) -> Decimal:
    return Decimal(str(round(value, 2)))


class RoundCloser:
    """
    Snapshots all-time agent performance into immutable RoundResult rows.

    Independent of the active round: it never changes a Round's status.
    """

    async def get_agent_aggregates(self, db: AsyncSession) -> dict[str, AgentAggregate]:
        """Per-agent call count, average and best multiplier across every call."""
        multiplier = case(
            (Call.entry_mcap > 0, Call.current_mcap / Call.entry_mcap),
            else_=1.0,
        )
        result = await db.execute(
            select(
                Call.agent,
                func.count(Call.id),
                func.avg(multiplier),
                func.max(multiplier),
            ).group_by(Call.agent)
        )

        aggregates = {}
        for agent, total, avg, best in result.all():
            aggregates[agent] = AgentAggregate(
                agent=agent,
                total_calls=int(total),
                avg_multiplier=round(float(avg), 4),
                best_multiplier=round(float(best), 4),
            )
        return aggregates

    async def close_round(
        self,
        db: AsyncSession,
        starting_balance: float = STARTING_BALANCE,
    ) -> Optional[RoundResult]:
        """Record a RoundResult, or return None while either agent has no calls."""
        aggregates = await self.get_agent_aggregates(db)
        opus = aggregates.get(OPUS)
        codex = aggregates.get(CODEX)

        if opus is None or codex is None:
            logger.info("Not enough data to close round")
            return None

        outcome = determine_winner(opus.avg_multiplier, codex.avg_multiplier, starting_balance)

        result = RoundResult(
            winner=outcome.winner,
            opus_balance=_to_money(outcome.opus_balance),
            codex_balance=_to_money(outcome.codex_balance),
            action=outcome.action,
        )
        db.add(result)
        await db.commit()
        await db.refresh(result)

        logger.info(
            f"Round closed: winner={outcome.winner} action={outcome.action} "
            f"opus=${outcome.opus_balance:,.2f} codex=${outcome.codex_balance:,.2f}"
        )
        return result

    async def get_recent_results(self, db: AsyncSession, limit: int = 20) -> list[RoundResult]:
        result = await db.execute(
            select(RoundResult).order_by(RoundResult.created_at.desc()).limit(limit)
        )
        return list(result.scalars().all())

    async def get_round_stats(self, db: AsyncSession) -> RoundStats:
        result = await db.execute(
            select(
                func.count(RoundResult.id),
                func.sum(case((RoundResult.winner == OPUS, 1), else_=0)),
                func.sum(case((RoundResult.winner == CODEX, 1), else_=0)),
                func.sum(case((RoundResult.action == ACTIONS[OPUS], 1), else_=0)),
                func.sum(case((RoundResult.action == ACTIONS[CODEX], 1), else_=0)),
            )
        )
        total, opus_wins, codex_wins, buybacks, airdrops = result.one()
        return RoundStats(
            total_rounds=int(total or 0),
            opus_wins=int(opus_wins or 0),
            codex_wins=int(codex_wins or 0),
            buybacks=int(buybacks or 0),
            airdrops=int(airdrops or 0),
        )


# Singleton instance
round_closer = RoundCloser()
