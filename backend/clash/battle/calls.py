"""Call recording and valuation refresh service."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clash.services.market import CandidateToken, MarketDataClient
from clash.storage.models import Call

logger = logging.getLogger(__name__)


@dataclass
class PriceUpdateResult:
    calls_checked: int = 0
    calls_updated: int = 0
    lookups_failed: int = 0


class CallService:
    """
    Persists agent calls and keeps their valuations current.
    """

    async def create_call(
        self,
        db: AsyncSession,
        round_id: UUID,
        agent: str,
        token: CandidateToken,
        reasoning: str,
        confidence: int,
    ) -> Call:
        """Insert a call; entry, current and ATH valuation all start at the snapshot market cap."""
        mcap = token.market_cap_usd
        call = Call(
            round_id=round_id,
            agent=agent,
            token_address=token.address,
            token_symbol=token.symbol,
            token_name=token.name or None,
            chain=token.chain,
            entry_mcap=mcap,
            current_mcap=mcap,
            ath_mcap=mcap,
            current_multiplier=1.0,
            ath_multiplier=1.0,
            reasoning=reasoning,
            confidence=confidence,
        )
        db.add(call)
        await db.commit()
        await db.refresh(call)

        logger.info(
            f"Recorded call: {agent} -> ${token.symbol} "
            f"(mcap ${mcap:,.0f}, confidence {confidence})"
        )
        return call

    async def get_call(self, db: AsyncSession, call_id: UUID) -> Optional[Call]:
        """Get a call by ID."""
        result = await db.execute(select(Call).where(Call.id == call_id))
        return result.scalar_one_or_none()

    async def get_round_calls(self, db: AsyncSession, round_id: UUID) -> list[Call]:
        """All calls in a round, oldest first."""
        result = await db.execute(
            select(Call)
            .where(Call.round_id == round_id)
            .order_by(Call.created_at)
        )
        return list(result.scalars().all())

    async def get_recent_calls(
        self,
        db: AsyncSession,
        limit: Optional[int] = 100,
        agent: Optional[str] = None,
    ) -> list[Call]:
        """Most recent calls across all rounds, newest first."""
        query = select(Call).order_by(Call.created_at.desc())
        if agent:
            query = query.where(Call.agent == agent)
        if limit:
            query = query.limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_recent_addresses(
        self,
        db: AsyncSession,
        round_id: UUID,
        since: datetime,
    ) -> set[str]:
        """Token addresses either agent called in the round since the given time."""
        result = await db.execute(
            select(Call.token_address)
            .where(Call.round_id == round_id)
            .where(Call.created_at >= since)
        )
        return set(result.scalars().all())

    async def update_call_valuation(
        self,
        db: AsyncSession,
        call: Call,
        market_cap: float,
    ) -> bool:
        """Apply a fresh valuation; invalid or unchanged values write nothing."""
        if not call.apply_valuation(market_cap):
            return False
        await db.commit()
        return True

    async def update_prices(
        self,
        db: AsyncSession,
        market: MarketDataClient,
        round_id: UUID,
    ) -> PriceUpdateResult:
        """
        Refresh current and ATH valuation for every call in a round.

        Each call is independent: a missing or zero valuation leaves that call
        untouched and the rest still update.
        """
        calls = await self.get_round_calls(db, round_id)
        outcome = PriceUpdateResult(calls_checked=len(calls))
        if not calls:
            return outcome

        valuations = await market.get_valuations_batch(
            [c.token_address for c in calls]
        )

        for call in calls:
            valuation = valuations.get(call.token_address)
            if valuation is None:
                valuation = await market.get_valuation(call.token_address)

            if valuation is None or not valuation.is_valid:
                outcome.lookups_failed += 1
                logger.debug(f"No valuation for ${call.token_symbol}; left unchanged")
                continue

            if await self.update_call_valuation(db, call, valuation.market_cap_usd):
                outcome.calls_updated += 1

        logger.info(
            f"Price update: {outcome.calls_updated}/{outcome.calls_checked} calls updated, "
            f"{outcome.lookups_failed} lookups failed"
        )
        return outcome


# Singleton instance
call_service = CallService()
