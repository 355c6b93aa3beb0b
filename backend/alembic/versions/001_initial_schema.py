"""Initial schema: sessions and session_media.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_SCORE_COLUMNS = (
    "p1_score", "p2_score",
    "p1_round1_score", "p1_round2_score", "p1_round3_score",
    "p2_round1_score", "p2_round2_score", "p2_round3_score",
)


def upgrade() -> None:
    op.create_table(
        "sessions",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("p1_name", sa.String(100), nullable=True),
        sa.Column("p2_name", sa.String(100), nullable=True),
        sa.Column("round_name", sa.String(200), nullable=True),
        sa.Column("q_number", sa.Integer, nullable=False, server_default="0"),
        sa.Column("q_text", sa.Text, nullable=True),
        *(
            sa.Column(name, sa.Integer, nullable=False, server_default="0")
            for name in _SCORE_COLUMNS
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "session_media",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "session_id", sa.String(32),
            sa.ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("image_url", sa.Text, nullable=False),
        sa.Column("topic", sa.String(200), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_session_media_session_id", "session_media", ["session_id"])


def downgrade() -> None:
    op.drop_index("ix_session_media_session_id", table_name="session_media")
    op.drop_table("session_media")
    op.drop_table("sessions")
