"""Score Marking: records one verdict for one player's question.

Invariants:
    - Round score, total and q_number are written in a single commit under the session lock
    - q_number moves to max(current, question_number); it never goes backwards
    - Marking the same question twice adds twice (no deduplication); the repeat is logged
      while the game is in progress. Scoring the last question closes the game and
      forgets its marks
"""

import logging

from elevenpoints.core.domain_types import MAX_QUESTION_NUMBER, Player, Verdict
from elevenpoints.core.score_ledger import ScoreChange, score_change
from elevenpoints.services.session_store import SessionStore

logger = logging.getLogger(__name__)

# Question numbers marked by this process, per game in progress
_marked_questions: dict[str, set[int]] = {}


async def mark_answer(
    store: SessionStore,
    session_id: str,
    player: Player,
    round_number: int,
    question_number: int,
    verdict: Verdict,
) -> tuple[ScoreChange, dict]:
    """Apply the verdict and return (score change, committed snapshot)."""
    outcome: dict[str, ScoreChange] = {}

    def compute(current: dict) -> dict:
        change = score_change(current, player, round_number, verdict)
        outcome["change"] = change
        return {
            **change.as_fields(),
            "q_number": max(current.get("q_number") or 0, question_number),
        }

    snapshot = await store.mutate(session_id, compute)
    change = outcome["change"]

    marked = _marked_questions.setdefault(session_id, set())
    if question_number in marked:
        logger.warning(
            "Question marked more than once; points added again",
            extra={"session_id": session_id, "question_number": question_number},
        )
    marked.add(question_number)
    if question_number == MAX_QUESTION_NUMBER:
        _marked_questions.pop(session_id, None)

    logger.info(
        f"Answer marked: +{change.points_awarded}",
        extra={
            "session_id": session_id,
            "player": player.value,
            "question_number": question_number,
            "verdict": verdict.value,
        },
    )
    return change, snapshot
