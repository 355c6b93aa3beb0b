"""Score Ledger: pure scoring arithmetic for a single marked answer.

Invariants:
    - Delta is 1 for CORRECT, 0 for INCORRECT / UNANSWERED; never negative
    - Round score and total move by the same delta, so total == sum(rounds) is preserved
    - No IO: callers read the current row and persist the returned fields
"""

from collections.abc import Mapping
from dataclasses import dataclass

from elevenpoints.core.domain_types import (
    Player, Verdict, round_score_field, total_score_field,
)


@dataclass(frozen=True)
class ScoreChange:
    """Outcome of applying one verdict to one (player, round)."""
    player: Player
    round_number: int
    verdict: Verdict
    points_awarded: int
    new_round_score: int
    new_total_score: int

    def as_fields(self) -> dict[str, int]:
        """Column updates for the session row."""
        return {
            round_score_field(self.player, self.round_number): self.new_round_score,
            total_score_field(self.player): self.new_total_score,
        }


def points_for(verdict: Verdict) -> int:
    return 1 if verdict is Verdict.CORRECT else 0


def apply_verdict(
    current_round_score: int, current_total_score: int, verdict: Verdict,
) -> tuple[int, int]:
    """Return (new_round_score, new_total_score) after one verdict."""
    delta = points_for(verdict)
    return current_round_score + delta, current_total_score + delta


def parse_verdict_token(token: str | None) -> Verdict:
    """Free-text operator token: case-insensitive "correct", anything else is incorrect."""
    if token is not None and token.strip().lower() == Verdict.CORRECT.value:
        return Verdict.CORRECT
    return Verdict.INCORRECT


def score_change(
    row: Mapping[str, int], player: Player, round_number: int, verdict: Verdict,
) -> ScoreChange:
    """Apply a verdict against the current session row values."""
    current_round = row.get(round_score_field(player, round_number)) or 0
    current_total = row.get(total_score_field(player)) or 0
    new_round, new_total = apply_verdict(current_round, current_total, verdict)
    return ScoreChange(
        player=player,
        round_number=round_number,
        verdict=verdict,
        points_awarded=points_for(verdict),
        new_round_score=new_round,
        new_total_score=new_total,
    )
