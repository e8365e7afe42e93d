"""Prediction database model."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
)

from clash.storage.base import Base, CreatedAtMixin, UUIDMixin


class Prediction(Base, UUIDMixin, CreatedAtMixin):
    """Daily yes/no price question with both agents' stances."""

    __tablename__ = "predictions"

    question = Column(Text, nullable=False)
    category = Column(String(30), nullable=False, default="crypto")

    # Structured terms captured at generation; null on rows that only carry text
    asset = Column(String(10), nullable=True)
    direction = Column(String(5), nullable=True)
    target_price = Column(Float, nullable=True)
    reference_price = Column(Float, nullable=True)

    opus_position = Column(String(3), nullable=False)
    opus_confidence = Column(Integer, nullable=False)
    opus_reasoning = Column(Text, nullable=True)

    codex_position = Column(String(3), nullable=False)
    codex_confidence = Column(Integer, nullable=False)
    codex_reasoning = Column(Text, nullable=True)

    # Resolution, written exactly once
    resolved = Column(Boolean, nullable=False, default=False)
    result = Column(String(3), nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "opus_position IN ('YES', 'NO') AND codex_position IN ('YES', 'NO')",
            name="valid_prediction_positions",
        ),
        CheckConstraint(
            "result IS NULL OR result IN ('YES', 'NO')",
            name="valid_prediction_result",
        ),
        CheckConstraint(
            "direction IS NULL OR direction IN ('above', 'below')",
            name="valid_prediction_direction",
        ),
        Index("idx_predictions_resolved", "resolved"),
    )

    @property
    def agreement(self) -> bool:
        return self.opus_position == self.codex_position

    def __repr__(self) -> str:
        return f"<Prediction {self.question!r} resolved={self.resolved}>"
