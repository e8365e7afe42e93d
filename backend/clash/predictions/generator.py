"""
Daily price prediction generation.

Each prediction asks whether an asset closes above or below a rounded target
near its current price. Both agents take a stance through the same noisy
bias function; codex occasionally flips to the opposite side when they agree.
"""

import logging
import math
import random
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from clash.config import PredictionConfig
from clash.services.market import MarketDataClient
from clash.storage.models import Prediction

from .templates import (
    ABOVE,
    ASSETS,
    BELOW,
    CATEGORY,
    CODEX_REASONINGS,
    NO,
    OPUS_REASONINGS,
    TEMPLATES,
    YES,
    PredictionTemplate,
    format_question,
)

logger = logging.getLogger(__name__)


@dataclass
class Stance:
    position: str
    confidence: int
    probability: float


@dataclass
class PredictionDraft:
    question: str
    asset: str
    direction: str
    target_price: float
    reference_price: float
    opus: Stance
    codex: Stance
    opus_reasoning: str
    codex_reasoning: str
    category: str = CATEGORY


def compute_target(
    price: float,
    increment: int,
    rng: random.Random,
    min_variance: float = 0.01,
    max_variance: float = 0.04,
) -> int:
    """Shift the price by a random 1-4% either way and round to the increment."""
    variance = rng.uniform(min_variance, max_variance)
    if rng.random() < 0.5:
        variance = -variance
    shifted = price * (1 + variance)
    return max(increment, int(round(shifted / increment)) * increment)


def premise_holds(direction: str, price: float, target: float) -> bool:
    if direction == ABOVE:
        return price > target
    return price < target


def uncertainty_band(price: float, target: float) -> float:
    """Noise band widens as the target closes in on the current price."""
    distance = abs(price - target) / price if price else 1.0
    if distance < 0.02:
        return 0.5
    if distance < 0.05:
        return 0.3
    return 0.2


def take_stance(
    price: float,
    target: float,
    direction: str,
    rng: random.Random,
    max_confidence: int = 95,
) -> Stance:
    base = 0.65 if premise_holds(direction, price, target) else 0.35
    probability = base + (rng.random() - 0.5) * uncertainty_band(price, target)
    position = YES if probability > 0.5 else NO
    confidence = min(max_confidence, math.floor(50 + abs(probability - 0.5) * 100))
    return Stance(position=position, confidence=confidence, probability=probability)


def flip(position: str) -> str:
    return NO if position == YES else YES


def draft_prediction(
    prices: dict[str, float],
    rng: random.Random,
    config: Optional[PredictionConfig] = None,
    template: Optional[PredictionTemplate] = None,
) -> Optional[PredictionDraft]:
    """Build a prediction from reference prices; None when the asset has no price."""
    config = config or PredictionConfig()
    template = template or rng.choice(TEMPLATES)

    price = prices.get(template.asset)
    if not price or price <= 0:
        logger.warning(f"No reference price for {template.asset}; skipping prediction")
        return None

    target = compute_target(
        price,
        template.increment,
        rng,
        config.min_variance_pct,
        config.max_variance_pct,
    )
    direction = rng.choice((ABOVE, BELOW))

    opus = take_stance(price, target, direction, rng, config.max_confidence)
    codex = take_stance(price, target, direction, rng, config.max_confidence)

    # Contrarian streak: deliberately random, not evidence-based
    if opus.position == codex.position and rng.random() < config.contrarian_probability:
        codex = Stance(
            position=flip(codex.position),
            confidence=rng.randint(50, 80),
            probability=1 - codex.probability,
        )

    return PredictionDraft(
        question=format_question(template.asset, direction, target),
        asset=template.asset,
        direction=direction,
        target_price=float(target),
        reference_price=price,
        opus=opus,
        codex=codex,
        opus_reasoning=rng.choice(OPUS_REASONINGS[opus.position]),
        codex_reasoning=rng.choice(CODEX_REASONINGS[codex.position]),
    )


async def generate_prediction(
    db: AsyncSession,
    market: MarketDataClient,
    rng: random.Random,
    config: Optional[PredictionConfig] = None,
) -> Optional[Prediction]:
    """Fetch reference prices, draft a prediction and store it."""
    prices = await market.get_reference_prices(list(ASSETS))
    draft = draft_prediction(prices, rng, config)
    if draft is None:
        return None

    prediction = Prediction(
        question=draft.question,
        category=draft.category,
        asset=draft.asset,
        direction=draft.direction,
        target_price=draft.target_price,
        reference_price=draft.reference_price,
        opus_position=draft.opus.position,
        opus_confidence=draft.opus.confidence,
        opus_reasoning=draft.opus_reasoning,
        codex_position=draft.codex.position,
        codex_confidence=draft.codex.confidence,
        codex_reasoning=draft.codex_reasoning,
    )
    db.add(prediction)
    await db.commit()
    await db.refresh(prediction)

    logger.info(
        f"New prediction: {draft.question} "
        f"(opus {draft.opus.position}@{draft.opus.confidence}, "
        f"codex {draft.codex.position}@{draft.codex.confidence})"
    )
    return prediction
