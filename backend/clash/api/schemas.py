"""Response schemas for the dashboard API."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from clash.storage.models import Call


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
    )


class CallResponse(BaseSchema):
    """A call with multipliers recomputed from its valuations."""

    id: UUID
    round_id: UUID
    agent: str
    token_address: str
    token_symbol: str
    token_name: Optional[str] = None
    chain: str
    entry_mcap: float
    current_mcap: float
    ath_mcap: float
    multiplier: float
    ath_multiplier: float
    reasoning: Optional[str] = None
    confidence: Optional[int] = None
    created_at: datetime
    last_updated: Optional[datetime] = None

    @classmethod
    def from_call(cls, call: Call) -> "CallResponse":
        return cls(
            id=call.id,
            round_id=call.round_id,
            agent=call.agent,
            token_address=call.token_address,
            token_symbol=call.token_symbol,
            token_name=call.token_name,
            chain=call.chain,
            entry_mcap=call.entry_mcap,
            current_mcap=call.current_mcap,
            ath_mcap=call.ath_mcap,
            multiplier=round(call.multiplier, 4),
            ath_multiplier=round(call.ath_multiplier_value, 4),
            reasoning=call.reasoning,
            confidence=call.confidence,
            created_at=call.created_at,
            last_updated=call.last_updated,
        )


class AgentPerformanceResponse(BaseSchema):
    agent: str
    total_calls: int
    balance: float
    pnl: float
    pnl_percent: float
    avg_multiplier: float
    median_multiplier: float
    best_multiplier: float
    score: float


class ScoreboardResponse(BaseSchema):
    opus: AgentPerformanceResponse
    codex: AgentPerformanceResponse
    leader: str
    total_calls: int


class RoundResponse(BaseSchema):
    id: UUID
    status: str
    started_at: datetime
    ends_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    winner: Optional[str] = None


class BattleResponse(BaseSchema):
    round: Optional[RoundResponse] = None
    calls: list[CallResponse]
    scoreboard: ScoreboardResponse


class CallsResponse(BaseSchema):
    opus: list[CallResponse]
    codex: list[CallResponse]
    stats: ScoreboardResponse


class RoundResultResponse(BaseSchema):
    id: UUID
    winner: str
    opus_balance: float
    codex_balance: float
    action: str
    created_at: datetime


class RoundStatsResponse(BaseSchema):
    total_rounds: int
    opus_wins: int
    codex_wins: int
    buybacks: int
    airdrops: int


class RoundsResponse(BaseSchema):
    results: list[RoundResultResponse]
    stats: RoundStatsResponse


class AgentStanceResponse(BaseSchema):
    position: str
    confidence: int
    reasoning: Optional[str] = None


class PredictionResponse(BaseSchema):
    id: UUID
    question: str
    category: str
    asset: Optional[str] = None
    direction: Optional[str] = None
    target_price: Optional[float] = None
    opus: AgentStanceResponse
    codex: AgentStanceResponse
    agreement: bool
    resolved: bool
    result: Optional[str] = None
    created_at: datetime
    resolved_at: Optional[datetime] = None


class PredictionStatsResponse(BaseSchema):
    total: int
    agreements: int
    disagreements: int
    resolved: int


class PredictionsResponse(BaseSchema):
    predictions: list[PredictionResponse]
    stats: PredictionStatsResponse


class HealthResponse(BaseSchema):
    status: str
    version: str
