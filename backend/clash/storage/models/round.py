"""Round database model."""

from sqlalchemy import CheckConstraint, Column, DateTime, Index, String, text

from clash.storage.base import Base, UUIDMixin, utcnow

ROUND_ACTIVE = "active"
ROUND_COMPLETED = "completed"


class Round(Base, UUIDMixin):
    """Open-ended collection of calls; at most one is active at a time."""

    __tablename__ = "rounds"

    status = Column(String(20), nullable=False, default=ROUND_ACTIVE)
    started_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Time-boxed rounds are legacy; continuous rounds leave these empty
    ends_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    winner = Column(String(10), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'completed')",
            name="valid_round_status",
        ),
        CheckConstraint(
            "winner IS NULL OR winner IN ('opus', 'codex', 'draw')",
            name="valid_round_winner",
        ),
        Index(
            "uq_rounds_single_active",
            "status",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )

    @property
    def is_active(self) -> bool:
        return self.status == ROUND_ACTIVE

    def __repr__(self) -> str:
        return f"<Round {self.id} ({self.status})>"
