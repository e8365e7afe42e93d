"""Scoring personalities for the two battling agents.

Both strategies read the same metrics (24h volume, market cap, 24h price
change, 24h transaction count) but weight them differently. Scores are only
meaningful relative to other scores from the same selection pass.
"""

import random
from abc import ABC, abstractmethod

from clash.services.market.models import CandidateToken

OPUS = "opus"
CODEX = "codex"
AGENTS = (OPUS, CODEX)


class AgentStrategy(ABC):
    """Pure scoring function plus a reasoning generator for one agent."""

    agent: str
    display_name: str

    @abstractmethod
    def score(self, token: CandidateToken, rng: random.Random) -> float:
        """Desirability of a token; higher is better."""

    @abstractmethod
    def reason(self, token: CandidateToken, rng: random.Random) -> str:
        """Short human-readable justification for picking the token."""


class OpusStrategy(AgentStrategy):
    """Prefers high volume, mid-range market cap and steady positive momentum."""

    agent = OPUS
    display_name = "Claude Opus"
    jitter = 10.0

    def score(self, token: CandidateToken, rng: random.Random) -> float:
        score = 0.0

        volume = token.volume_24h_usd
        if volume > 1_000_000:
            score += 30
        elif volume > 500_000:
            score += 20
        elif volume > 100_000:
            score += 10

        mcap = token.market_cap_usd
        if 100_000 < mcap < 5_000_000:
            score += 25
        elif 50_000 < mcap < 10_000_000:
            score += 15

        change = token.price_change_24h_pct
        if change > 50:
            score += 20
        elif change > 20:
            score += 15
        elif change > 0:
            score += 5

        txns = token.txn_count_24h
        if txns > 5000:
            score += 15
        elif txns > 1000:
            score += 10

        return score + rng.random() * self.jitter

    def reason(self, token: CandidateToken, rng: random.Random) -> str:
        reasons = []
        if token.volume_24h_usd > 500_000:
            reasons.append("Strong volume")
        if token.price_change_24h_pct > 20:
            reasons.append("Positive momentum")
        if token.txn_count_24h > 1000:
            reasons.append("High activity")
        if token.market_cap_usd < 5_000_000:
            reasons.append("Growth potential")
        if not reasons:
            reasons.append("Solid fundamentals")
        return ". ".join(reasons) + "."


class CodexStrategy(AgentStrategy):
    """Hunts low market caps with explosive momentum; volume is secondary."""

    agent = CODEX
    display_name = "OpenAI Codex"
    jitter = 15.0

    VIBES = [
        "High risk/reward setup",
        "Degen energy strong on this one",
        "Chart looks primed for send",
        "Social metrics spiking",
        "Setup too good to ignore",
    ]

    def score(self, token: CandidateToken, rng: random.Random) -> float:
        score = 0.0

        mcap = token.market_cap_usd
        if 50_000 < mcap < 500_000:
            score += 30
        elif mcap < 1_000_000:
            score += 20
        elif mcap < 3_000_000:
            score += 10

        change = token.price_change_24h_pct
        if change > 100:
            score += 30
        elif change > 50:
            score += 20
        elif change > 20:
            score += 10

        volume = token.volume_24h_usd
        if volume > 500_000:
            score += 15
        elif volume > 100_000:
            score += 10

        if token.txn_count_24h > 3000:
            score += 15

        return score + rng.random() * self.jitter

    def reason(self, token: CandidateToken, rng: random.Random) -> str:
        reasons = []
        if token.market_cap_usd < 1_000_000:
            reasons.append("Low mcap gem")
        if token.price_change_24h_pct > 50:
            reasons.append("Explosive momentum")
        if token.txn_count_24h > 2000:
            reasons.append("Organic interest")
        reasons.append(rng.choice(self.VIBES))
        return ". ".join(reasons) + "."


STRATEGIES: dict[str, AgentStrategy] = {
    OPUS: OpusStrategy(),
    CODEX: CodexStrategy(),
}


def get_strategy(agent: str) -> AgentStrategy:
    try:
        return STRATEGIES[agent]
    except KeyError:
        raise ValueError(f"Unknown agent: {agent}") from None
