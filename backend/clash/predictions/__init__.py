"""Daily yes/no price predictions: generation, resolution and history."""

from .generator import (
    PredictionDraft,
    Stance,
    compute_target,
    draft_prediction,
    generate_prediction,
    take_stance,
    uncertainty_band,
)
from .resolver import (
    PredictionTerms,
    ResolutionResult,
    get_pending_predictions,
    parse_question,
    prediction_terms,
    resolve_outcome,
    resolve_predictions,
)
from .service import PredictionService, PredictionStats, prediction_service
from .templates import ASSETS, TEMPLATES, PredictionTemplate, format_question

__all__ = [
    "ASSETS",
    "PredictionDraft",
    "PredictionService",
    "PredictionStats",
    "PredictionTemplate",
    "PredictionTerms",
    "ResolutionResult",
    "Stance",
    "TEMPLATES",
    "compute_target",
    "draft_prediction",
    "format_question",
    "generate_prediction",
    "get_pending_predictions",
    "parse_question",
    "prediction_service",
    "prediction_terms",
    "resolve_outcome",
    "resolve_predictions",
    "take_stance",
    "uncertainty_band",
]
