"""Session Media ORM: append-only log of round 3 images.

Invariants:
    - Always belongs to a GameSession (session_id FK, cascade on delete)
    - Integer id increases with insertion; the newest row is the image on screen
    - Rows are never updated or deleted by the game engine
"""

from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from elevenpoints.db.base import Base


class SessionMedia(Base):
    """One fetched image for a session."""
    __tablename__ = "session_media"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("sessions.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    image_url: Mapped[str] = mapped_column(Text, nullable=False)
    topic: Mapped[str | None] = mapped_column(String(200), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "session_id": self.session_id,
            "image_url": self.image_url,
            "topic": self.topic,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
