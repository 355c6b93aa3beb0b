"""Session ORM: the canonical per-game record shown on every scoreboard.

Invariants:
    - id is an opaque string chosen at creation (8 lowercase alphanumerics)
    - q_number in 0..6, non-decreasing; 0 = not started
    - p{i}_score == sum of p{i}_round{1,2,3}_score after every commit
    - Never deleted by the game engine

Design Decisions:
    - Flat score columns (no child table): the feed ships the whole row as one snapshot
"""

from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from elevenpoints.db.base import Base

SNAPSHOT_FIELDS = (
    "id", "p1_name", "p2_name", "round_name", "q_number", "q_text",
    "p1_score", "p2_score",
    "p1_round1_score", "p1_round2_score", "p1_round3_score",
    "p2_round1_score", "p2_round2_score", "p2_round3_score",
)


class GameSession(Base):
    """Game session row: names, round/question state, and scores."""
    __tablename__ = "sessions"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    p1_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    p2_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    round_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    q_number: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    q_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    p1_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    p2_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    p1_round1_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    p1_round2_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    p1_round3_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    p2_round1_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    p2_round2_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    p2_round3_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def to_snapshot(self) -> dict:
        """Full-row representation pushed to viewers and returned by the API."""
        snapshot = {name: getattr(self, name) for name in SNAPSHOT_FIELDS}
        snapshot["created_at"] = (
            self.created_at.isoformat() if self.created_at else None
        )
        return snapshot
