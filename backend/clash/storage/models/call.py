"""Call database model."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)

from clash.storage.base import Base, CreatedAtMixin, UUIDMixin, utcnow


def compute_multiplier(value: float | None, entry: float | None) -> float:
    """Valuation relative to entry; 1.0 when the entry valuation is zero or unknown."""
    if not entry or entry <= 0:
        return 1.0
    return (value or 0.0) / entry


class Call(Base, UUIDMixin, CreatedAtMixin):
    """One agent's token pick, valued by market cap from entry onwards."""

    __tablename__ = "calls"

    round_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("rounds.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    agent = Column(String(10), nullable=False)

    # Token
    token_address = Column(String(100), nullable=False)
    token_symbol = Column(String(50), nullable=False)
    token_name = Column(String(200), nullable=True)
    chain = Column(String(20), nullable=False, default="solana")

    # Valuation (USD market cap); entry_mcap never changes after insert
    entry_mcap = Column(Float, nullable=False)
    current_mcap = Column(Float, nullable=False)
    ath_mcap = Column(Float, nullable=False)

    # Convenience cache, recomputed on every valuation update
    current_multiplier = Column(Float, nullable=False, default=1.0)
    ath_multiplier = Column(Float, nullable=False, default=1.0)

    reasoning = Column(Text, nullable=True)
    confidence = Column(Integer, nullable=True)
    last_updated = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "agent IN ('opus', 'codex')",
            name="valid_call_agent",
        ),
        CheckConstraint("entry_mcap >= 0", name="non_negative_entry_mcap"),
        Index("idx_calls_agent_token", "agent", "token_address"),
        Index("idx_calls_round_created", "round_id", "created_at"),
    )

    @property
    def multiplier(self) -> float:
        return compute_multiplier(self.current_mcap, self.entry_mcap)

    @property
    def ath_multiplier_value(self) -> float:
        return compute_multiplier(self.ath_mcap, self.entry_mcap)

    def apply_valuation(self, market_cap: float) -> bool:
        """Record a fresh valuation. Returns False (and changes nothing) when invalid or unchanged."""
        if market_cap is None or market_cap <= 0:
            return False

        new_ath = max(self.ath_mcap or 0.0, market_cap)
        if market_cap == self.current_mcap and new_ath == self.ath_mcap:
            return False

        self.current_mcap = market_cap
        self.ath_mcap = new_ath
        self.current_multiplier = self.multiplier
        self.ath_multiplier = self.ath_multiplier_value
        self.last_updated = utcnow()
        return True

    def __repr__(self) -> str:
        return f"<Call {self.agent} ${self.token_symbol} x{self.multiplier:.2f}>"
