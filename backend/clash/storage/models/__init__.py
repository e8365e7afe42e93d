"""Database models module."""

from clash.storage.models.call import Call, compute_multiplier
from clash.storage.models.prediction import Prediction
from clash.storage.models.round import ROUND_ACTIVE, ROUND_COMPLETED, Round
from clash.storage.models.round_result import RoundResult

__all__ = [
    "Call",
    "Prediction",
    "Round",
    "RoundResult",
    "ROUND_ACTIVE",
    "ROUND_COMPLETED",
    "compute_multiplier",
]
