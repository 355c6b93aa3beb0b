"""Score ledger tests: pure scoring arithmetic."""

from elevenpoints.core.domain_types import Player, Verdict
from elevenpoints.core.score_ledger import (
    apply_verdict, parse_verdict_token, points_for, score_change,
)


def test_correct_awards_one_point():
    assert points_for(Verdict.CORRECT) == 1


def test_incorrect_and_unanswered_award_nothing():
    assert points_for(Verdict.INCORRECT) == 0
    assert points_for(Verdict.UNANSWERED) == 0


def test_apply_verdict_moves_round_and_total_together():
    assert apply_verdict(0, 0, Verdict.CORRECT) == (1, 1)
    assert apply_verdict(1, 2, Verdict.INCORRECT) == (1, 2)


def test_score_change_reads_current_row():
    row = {"p2_round2_score": 1, "p2_score": 3}
    change = score_change(row, Player.PLAYER2, 2, Verdict.CORRECT)

    assert change.points_awarded == 1
    assert change.new_round_score == 2
    assert change.new_total_score == 4
    assert change.as_fields() == {"p2_round2_score": 2, "p2_score": 4}


def test_score_change_treats_missing_columns_as_zero():
    change = score_change({}, Player.PLAYER1, 1, Verdict.UNANSWERED)
    assert change.as_fields() == {"p1_round1_score": 0, "p1_score": 0}


def test_parse_verdict_token_is_case_insensitive():
    assert parse_verdict_token("correct") is Verdict.CORRECT
    assert parse_verdict_token("  CoRrEcT ") is Verdict.CORRECT


def test_parse_verdict_token_defaults_to_incorrect():
    assert parse_verdict_token("wrong") is Verdict.INCORRECT
    assert parse_verdict_token("") is Verdict.INCORRECT
    assert parse_verdict_token(None) is Verdict.INCORRECT
    assert parse_verdict_token("unanswered") is Verdict.INCORRECT
