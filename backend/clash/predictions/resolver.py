"""Resolve pending predictions against live reference prices."""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clash.config import PredictionConfig
from clash.services.market import MarketDataClient
from clash.storage.base import utcnow
from clash.storage.models import Prediction

from .templates import ABOVE, ASSET_ALIASES, ASSETS, BELOW, NO, YES

logger = logging.getLogger(__name__)

TARGET_PATTERN = re.compile(r"\$([\d,]+(?:\.\d+)?)")


@dataclass(frozen=True)
class PredictionTerms:
    asset: str
    direction: str
    target: float


@dataclass
class ResolutionResult:
    checked: int = 0
    resolved: int = 0
    unresolvable: int = 0


def parse_question(question: str) -> Optional[PredictionTerms]:
    """Pull asset, direction and target out of question text; None if any is missing."""
    upper = question.upper()

    asset = None
    for name in ASSETS + tuple(ASSET_ALIASES):
        if re.search(rf"\b{name}\b", upper):
            asset = ASSET_ALIASES.get(name, name)
            break
    if asset is None:
        return None

    lower = question.lower()
    if ABOVE in lower:
        direction = ABOVE
    elif BELOW in lower:
        direction = BELOW
    else:
        return None

    match = TARGET_PATTERN.search(question)
    if not match:
        return None
    try:
        target = float(match.group(1).replace(",", ""))
    except ValueError:
        return None

    return PredictionTerms(asset=asset, direction=direction, target=target)


def prediction_terms(prediction: Prediction) -> Optional[PredictionTerms]:
    """Structured terms stored at generation time, falling back to the question text."""
    if prediction.asset and prediction.direction and prediction.target_price is not None:
        return PredictionTerms(
            asset=prediction.asset,
            direction=prediction.direction,
            target=prediction.target_price,
        )
    return parse_question(prediction.question)


def resolve_outcome(terms: PredictionTerms, price: float) -> str:
    if terms.direction == ABOVE:
        return YES if price > terms.target else NO
    return YES if price < terms.target else NO


async def get_pending_predictions(
    db: AsyncSession,
    window_hours: int = 24,
    now: Optional[datetime] = None,
) -> list[Prediction]:
    cutoff = (now or utcnow()) - timedelta(hours=window_hours)
    result = await db.execute(
        select(Prediction)
        .where(Prediction.resolved.is_(False))
        .where(Prediction.created_at >= cutoff)
        .order_by(Prediction.created_at)
    )
    return list(result.scalars().all())


async def resolve_predictions(
    db: AsyncSession,
    market: MarketDataClient,
    config: Optional[PredictionConfig] = None,
    now: Optional[datetime] = None,
) -> ResolutionResult:
    """
    Settle unresolved predictions from the resolution window.

    Predictions whose terms cannot be determined, or whose asset has no live
    price right now, stay pending and are reconsidered on the next run.
    """
    config = config or PredictionConfig()
    pending = await get_pending_predictions(db, config.resolution_window_hours, now)
    outcome = ResolutionResult(checked=len(pending))
    if not pending:
        return outcome

    parsed = [(p, prediction_terms(p)) for p in pending]
    assets = sorted({terms.asset for _, terms in parsed if terms is not None})
    prices = await market.get_reference_prices(assets, use_fallback=False) if assets else {}

    for prediction, terms in parsed:
        if terms is None:
            outcome.unresolvable += 1
            logger.debug(f"Cannot parse prediction {prediction.id}: {prediction.question!r}")
            continue

        price = prices.get(terms.asset)
        if price is None:
            outcome.unresolvable += 1
            continue

        prediction.result = resolve_outcome(terms, price)
        prediction.resolved = True
        prediction.resolved_at = utcnow()
        await db.commit()
        outcome.resolved += 1

        logger.info(
            f"Resolved {prediction.question!r} -> {prediction.result} "
            f"({terms.asset} at ${price:,.2f})"
        )

    return outcome
