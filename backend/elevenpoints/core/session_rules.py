"""Session Field Rules: validation for sparse partial updates of the session row.

Invariants:
    - Only declared fields are accepted; an empty update is rejected
    - q_number stays within 0..6 and never decreases
    - Scores are non-negative integers; round scores never decrease
    - p{i}_score == sum(p{i}_round{1,2,3}_score) holds for the merged row
    - Pure: takes the current row as a mapping, returns the fields to write
"""

from collections.abc import Mapping
from typing import Any

from elevenpoints.core.domain_types import (
    MAX_QUESTION_NUMBER, ROUND_NUMBERS, Player,
    round_score_field, total_score_field,
)
from elevenpoints.core.errors import ValidationError

TEXT_FIELDS = frozenset({"p1_name", "p2_name", "round_name", "q_text"})
ROUND_SCORE_FIELDS = frozenset(
    round_score_field(p, r) for p in Player for r in ROUND_NUMBERS
)
TOTAL_SCORE_FIELDS = frozenset(total_score_field(p) for p in Player)
INT_FIELDS = frozenset({"q_number"}) | ROUND_SCORE_FIELDS | TOTAL_SCORE_FIELDS
UPDATABLE_FIELDS = TEXT_FIELDS | INT_FIELDS


def validate_update(current: Mapping[str, Any], fields: Mapping[str, Any]) -> dict[str, Any]:
    """Check a sparse update against the current row.

    Returns the fields to persist. When a round score is supplied the owning
    player's total is derived from the merged round scores.
    Raises ValidationError on the first violated rule; nothing is written.
    """
    if not fields:
        raise ValidationError("No fields to update", "fields")

    unknown = sorted(set(fields) - UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown field(s): {', '.join(unknown)}", unknown[0])

    for name, value in fields.items():
        if name in TEXT_FIELDS:
            _check_text(name, value)
        else:
            _check_int(name, value)

    if "q_number" in fields:
        _check_q_number(fields["q_number"], current.get("q_number") or 0)

    for name in ROUND_SCORE_FIELDS & fields.keys():
        previous = current.get(name) or 0
        if fields[name] < previous:
            raise ValidationError(
                f"{name} cannot decrease ({previous} -> {fields[name]})", name,
            )

    cleaned = dict(fields)
    for player in Player:
        _reconcile_total(player, current, cleaned)
    return cleaned


def _check_text(name: str, value: Any) -> None:
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{name} must be a string or null", name)


def _check_int(name: str, value: Any) -> None:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer", name)
    if value < 0:
        raise ValidationError(f"{name} must be non-negative", name)


def _check_q_number(value: int, previous: int) -> None:
    if value > MAX_QUESTION_NUMBER:
        raise ValidationError(
            f"q_number must be between 0 and {MAX_QUESTION_NUMBER}", "q_number",
        )
    if value < previous:
        raise ValidationError(
            f"q_number cannot decrease ({previous} -> {value})", "q_number",
        )


def _reconcile_total(
    player: Player, current: Mapping[str, Any], cleaned: dict[str, Any],
) -> None:
    rounds = [round_score_field(player, r) for r in ROUND_NUMBERS]
    total = total_score_field(player)
    if total not in cleaned and not any(f in cleaned for f in rounds):
        return

    merged_sum = sum(
        cleaned[f] if f in cleaned else (current.get(f) or 0) for f in rounds
    )
    if total in cleaned and cleaned[total] != merged_sum:
        raise ValidationError(
            f"{total} must equal the sum of its round scores ({merged_sum})", total,
        )
    cleaned[total] = merged_sum
