"""Pick the single best eligible token for one agent."""

import logging
import random
from collections.abc import Collection, Sequence
from dataclasses import dataclass

from clash.agents.strategies import AgentStrategy
from clash.services.market.models import CandidateToken

logger = logging.getLogger(__name__)

DEFAULT_MIN_MARKET_CAP = 10_000.0


@dataclass
class ScoredToken:
    token: CandidateToken
    score: float


def eligible_candidates(
    candidates: Sequence[CandidateToken],
    exclude: Collection[str] = (),
    min_market_cap: float = DEFAULT_MIN_MARKET_CAP,
) -> list[CandidateToken]:
    """Drop excluded addresses, repeated addresses and untracked tokens
    (market cap at or below the floor)."""
    seen = set(exclude)
    eligible = []
    for t in candidates:
        if t.address in seen or t.market_cap_usd <= min_market_cap:
            continue
        seen.add(t.address)
        eligible.append(t)
    return eligible


def rank_candidates(
    strategy: AgentStrategy,
    candidates: Sequence[CandidateToken],
    rng: random.Random,
    exclude: Collection[str] = (),
    min_market_cap: float = DEFAULT_MIN_MARKET_CAP,
) -> list[ScoredToken]:
    """Score every eligible candidate, best first."""
    scored = [
        ScoredToken(token=t, score=strategy.score(t, rng))
        for t in eligible_candidates(candidates, exclude, min_market_cap)
    ]
    scored.sort(key=lambda s: s.score, reverse=True)
    return scored


def select_token(
    strategy: AgentStrategy,
    candidates: Sequence[CandidateToken],
    rng: random.Random,
    exclude: Collection[str] = (),
    min_market_cap: float = DEFAULT_MIN_MARKET_CAP,
) -> CandidateToken | None:
    """Top-scoring eligible token, or None when nothing is left to pick."""
    ranked = rank_candidates(strategy, candidates, rng, exclude, min_market_cap)
    if not ranked:
        logger.info(f"{strategy.display_name} found no eligible token")
        return None

    best = ranked[0]
    logger.debug(
        f"{strategy.display_name} picked ${best.token.symbol} "
        f"(score={best.score:.1f}, {len(ranked)} eligible)"
    )
    return best.token
