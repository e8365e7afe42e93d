"""Round result database model."""

from sqlalchemy import CheckConstraint, Column, Numeric, String

from clash.storage.base import Base, CreatedAtMixin, UUIDMixin


class RoundResult(Base, UUIDMixin, CreatedAtMixin):
    """Immutable snapshot of a round closure: winner, balances and resulting action."""

    __tablename__ = "round_results"

    winner = Column(String(10), nullable=False)
    opus_balance = Column(Numeric(15, 2), nullable=False)
    codex_balance = Column(Numeric(15, 2), nullable=False)
    action = Column(String(20), nullable=False)

    __table_args__ = (
        CheckConstraint(
            "winner IN ('opus', 'codex', 'draw')",
            name="valid_result_winner",
        ),
        CheckConstraint(
            "action IN ('buyback_burn', 'airdrop', 'none')",
            name="valid_result_action",
        ),
    )

    def __repr__(self) -> str:
        return f"<RoundResult {self.winner} -> {self.action}>"
