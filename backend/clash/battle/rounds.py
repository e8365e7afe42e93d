"""Round lifecycle and the per-cycle selection pass."""

import logging
import math
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clash.agents.strategies import CODEX, OPUS, get_strategy
from clash.battle.calls import call_service
from clash.battle.selector import eligible_candidates, select_token
from clash.config import BattleConfig
from clash.services.market import MarketDataClient
from clash.storage.base import utcnow
from clash.storage.models import ROUND_ACTIVE, Call, Round

logger = logging.getLogger(__name__)

PredictionHook = Callable[[AsyncSession], Awaitable[Any]]


@dataclass
class CycleResult:
    round_id: Optional[UUID] = None
    skipped: bool = False
    reason: Optional[str] = None
    calls: list[Call] = field(default_factory=list)
    prediction: Any = None

    def to_dict(self) -> dict:
        return {
            "round_id": str(self.round_id) if self.round_id else None,
            "skipped": self.skipped,
            "reason": self.reason,
            "calls": {c.agent: c.token_symbol for c in self.calls},
            "prediction": getattr(self.prediction, "question", None),
        }


def draw_confidence(rng: random.Random, base: int, spread: int) -> int:
    return math.floor(base + rng.random() * spread)


class RoundService:
    """
    Keeps exactly one round open and runs one selection pass per cycle.
    """

    async def get_active_round(self, db: AsyncSession) -> Optional[Round]:
        result = await db.execute(
            select(Round).where(Round.status == ROUND_ACTIVE).limit(1)
        )
        return result.scalar_one_or_none()

    async def get_round(self, db: AsyncSession, round_id: UUID) -> Optional[Round]:
        result = await db.execute(select(Round).where(Round.id == round_id))
        return result.scalar_one_or_none()

    async def ensure_active_round(self, db: AsyncSession) -> Round:
        """
        Return the active round, creating one if none exists.

        The single-active-round unique index makes the insert the arbiter: when a
        concurrent caller creates the round first, our insert fails and we return
        theirs.
        """
        existing = await self.get_active_round(db)
        if existing is not None:
            return existing

        new_round = Round(status=ROUND_ACTIVE, started_at=utcnow())
        db.add(new_round)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            winner = await self.get_active_round(db)
            if winner is None:
                raise
            logger.info(f"Active round {winner.id} was created concurrently; reusing it")
            return winner

        await db.refresh(new_round)
        logger.info(f"Started round {new_round.id}")
        return new_round

    async def start_new_round(self, db: AsyncSession, duration_hours: Optional[float] = None) -> Round:
        """Legacy time-boxed entry point; rounds are continuous so the duration is ignored."""
        if duration_hours is not None:
            logger.debug(f"Ignoring round duration of {duration_hours}h")
        return await self.ensure_active_round(db)

    async def check_and_end_round(self, db: Optional[AsyncSession] = None) -> None:
        """Legacy time-boxed entry point; continuous rounds never end on a timer."""
        return None

    async def run_cycle(
        self,
        db: AsyncSession,
        market: MarketDataClient,
        rng: random.Random,
        config: Optional[BattleConfig] = None,
        on_calls_recorded: Optional[PredictionHook] = None,
    ) -> CycleResult:
        """
        One selection pass: opus picks first, codex picks from what is left.

        Recently called tokens (either agent, active round) are excluded for both.
        Skips without writing anything when fewer than two candidates qualify.
        `on_calls_recorded` (prediction generation) runs last and may fail
        without undoing the calls.
        """
        config = config or BattleConfig()
        active = await self.ensure_active_round(db)

        since = utcnow() - timedelta(minutes=config.recency_window_minutes)
        recent = await call_service.get_recent_addresses(db, active.id, since)

        candidates = await market.list_candidate_tokens()
        eligible = eligible_candidates(candidates, recent, config.min_market_cap)
        if len(eligible) < config.min_candidates:
            reason = (
                f"Not enough eligible candidates ({len(eligible)} of {len(candidates)}, "
                f"{len(recent)} recently called)"
            )
            logger.info(f"Skipping cycle: {reason}")
            return CycleResult(round_id=active.id, skipped=True, reason=reason)

        opus = get_strategy(OPUS)
        codex = get_strategy(CODEX)

        opus_token = select_token(opus, eligible, rng, min_market_cap=config.min_market_cap)
        if opus_token is None:
            return CycleResult(round_id=active.id, skipped=True, reason="Opus found no token")

        codex_token = select_token(
            codex,
            eligible,
            rng,
            exclude={opus_token.address},
            min_market_cap=config.min_market_cap,
        )
        if codex_token is None:
            return CycleResult(round_id=active.id, skipped=True, reason="Codex found no token")

        opus_call = await call_service.create_call(
            db,
            round_id=active.id,
            agent=OPUS,
            token=opus_token,
            reasoning=opus.reason(opus_token, rng),
            confidence=draw_confidence(
                rng, config.opus_confidence_base, config.opus_confidence_spread
            ),
        )
        codex_call = await call_service.create_call(
            db,
            round_id=active.id,
            agent=CODEX,
            token=codex_token,
            reasoning=codex.reason(codex_token, rng),
            confidence=draw_confidence(
                rng, config.codex_confidence_base, config.codex_confidence_spread
            ),
        )

        result = CycleResult(round_id=active.id, calls=[opus_call, codex_call])
        logger.info(f"Cycle complete: opus ${opus_token.symbol} vs codex ${codex_token.symbol}")

        if on_calls_recorded is not None:
            try:
                result.prediction = await on_calls_recorded(db)
            except Exception:
                logger.exception("Prediction generation failed; keeping this cycle's calls")
                await db.rollback()
                # Rollback expires loaded rows; reload the committed calls
                for call in result.calls:
                    await db.refresh(call)

        return result


# Singleton instance
round_service = RoundService()
