"""FastAPI dashboard server: read-only views of the battle."""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncSession

from clash import __version__
from clash.agents import CODEX, OPUS
from clash.api.dependencies import get_db
from clash.api.schemas import (
    AgentStanceResponse,
    BattleResponse,
    CallResponse,
    CallsResponse,
    HealthResponse,
    PredictionResponse,
    PredictionsResponse,
    PredictionStatsResponse,
    RoundResponse,
    RoundResultResponse,
    RoundsResponse,
    RoundStatsResponse,
    ScoreboardResponse,
)
from clash.battle import (
    build_scoreboard,
    call_service,
    round_closer,
    round_service,
)
from clash.config import get_settings
from clash.predictions import prediction_service
from clash.storage import Prediction, close_db, init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    logger.info("Clash dashboard API ready")
    yield
    await close_db()


app = FastAPI(title="Clash Dashboard API", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:3001"],
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)


def _starting_balance() -> float:
    return get_settings().battle.starting_balance


def _prediction_response(p: Prediction) -> PredictionResponse:
    return PredictionResponse(
        id=p.id,
        question=p.question,
        category=p.category,
        asset=p.asset,
        direction=p.direction,
        target_price=p.target_price,
        opus=AgentStanceResponse(
            position=p.opus_position,
            confidence=p.opus_confidence,
            reasoning=p.opus_reasoning,
        ),
        codex=AgentStanceResponse(
            position=p.codex_position,
            confidence=p.codex_confidence,
            reasoning=p.codex_reasoning,
        ),
        agreement=p.agreement,
        resolved=p.resolved,
        result=p.result,
        created_at=p.created_at,
        resolved_at=p.resolved_at,
    )


@app.get("/api/health", response_model=HealthResponse)
async def health():
    return HealthResponse(status="ok", version=__version__)


@app.get("/api/battle", response_model=BattleResponse)
async def get_battle(db: AsyncSession = Depends(get_db)):
    """Active round with its calls and the round's scoreboard."""
    active = await round_service.get_active_round(db)
    calls = await call_service.get_round_calls(db, active.id) if active else []
    scoreboard = build_scoreboard(calls, _starting_balance())

    return BattleResponse(
        round=RoundResponse.model_validate(active) if active else None,
        calls=[CallResponse.from_call(c) for c in calls],
        scoreboard=ScoreboardResponse(**scoreboard.to_dict()),
    )


@app.get("/api/calls", response_model=CallsResponse)
async def list_calls(
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """Most recent calls split by agent, with stats over the same calls."""
    calls = await call_service.get_recent_calls(db, limit=limit)
    scoreboard = build_scoreboard(calls, _starting_balance())

    return CallsResponse(
        opus=[CallResponse.from_call(c) for c in calls if c.agent == OPUS],
        codex=[CallResponse.from_call(c) for c in calls if c.agent == CODEX],
        stats=ScoreboardResponse(**scoreboard.to_dict()),
    )


@app.get("/api/rounds", response_model=RoundsResponse)
async def list_round_results(
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    results = await round_closer.get_recent_results(db, limit=limit)
    stats = await round_closer.get_round_stats(db)

    return RoundsResponse(
        results=[RoundResultResponse.model_validate(r) for r in results],
        stats=RoundStatsResponse.model_validate(stats),
    )


@app.get("/api/predictions", response_model=PredictionsResponse)
async def list_predictions(
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    predictions = await prediction_service.get_recent_predictions(db, limit=limit)
    stats = await prediction_service.get_prediction_stats(db)

    return PredictionsResponse(
        predictions=[_prediction_response(p) for p in predictions],
        stats=PredictionStatsResponse.model_validate(stats),
    )
