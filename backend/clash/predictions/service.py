"""Prediction history and agreement statistics."""

import logging
from dataclasses import dataclass

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from clash.storage.models import Prediction

logger = logging.getLogger(__name__)


@dataclass
class PredictionStats:
    total: int = 0
    agreements: int = 0
    disagreements: int = 0
    resolved: int = 0


class PredictionService:
    """Read-side queries over stored predictions."""

    async def get_recent_predictions(self, db: AsyncSession, limit: int = 20) -> list[Prediction]:
        result = await db.execute(
            select(Prediction).order_by(Prediction.created_at.desc()).limit(limit)
        )
        return list(result.scalars().all())

    async def get_prediction_stats(self, db: AsyncSession) -> PredictionStats:
        same = Prediction.opus_position == Prediction.codex_position
        result = await db.execute(
            select(
                func.count(Prediction.id),
                func.sum(case((same, 1), else_=0)),
                func.sum(case((same, 0), else_=1)),
                func.sum(case((Prediction.resolved.is_(True), 1), else_=0)),
            )
        )
        total, agreements, disagreements, resolved = result.one()
        return PredictionStats(
            total=int(total or 0),
            agreements=int(agreements or 0),
            disagreements=int(disagreements or 0),
            resolved=int(resolved or 0),
        )


# Singleton instance
prediction_service = PredictionService()
