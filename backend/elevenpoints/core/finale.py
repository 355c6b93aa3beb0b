"""Finale Evaluator: winner or tie from the final session snapshot.

Invariants:
    - Only ready once q_number == 6 and no live host connection is active
    - Winner has the strictly greater total; equal totals are a tie
    - Read-only: never produces a mutation
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from elevenpoints.core.domain_types import MAX_QUESTION_NUMBER, FinaleOutcome


@dataclass(frozen=True)
class FinaleResult:
    outcome: FinaleOutcome
    p1_score: int
    p2_score: int
    winner_name: str | None

    def to_dict(self) -> dict:
        return {
            "ready": True,
            "outcome": self.outcome.value,
            "winner_name": self.winner_name,
            "p1_score": self.p1_score,
            "p2_score": self.p2_score,
        }


def is_finale_ready(snapshot: Mapping[str, Any], connection_active: bool) -> bool:
    return (snapshot.get("q_number") or 0) >= MAX_QUESTION_NUMBER and not connection_active


def decide_outcome(p1_score: int, p2_score: int) -> FinaleOutcome:
    if p1_score > p2_score:
        return FinaleOutcome.PLAYER1
    if p2_score > p1_score:
        return FinaleOutcome.PLAYER2
    return FinaleOutcome.TIE


def evaluate_finale(
    snapshot: Mapping[str, Any], connection_active: bool = False,
) -> FinaleResult | None:
    """Return the result, or None while the game is still running."""
    if not is_finale_ready(snapshot, connection_active):
        return None
    p1 = snapshot.get("p1_score") or 0
    p2 = snapshot.get("p2_score") or 0
    outcome = decide_outcome(p1, p2)
    winner_name = {
        FinaleOutcome.PLAYER1: snapshot.get("p1_name"),
        FinaleOutcome.PLAYER2: snapshot.get("p2_name"),
    }.get(outcome)
    return FinaleResult(outcome, p1, p2, winner_name)
