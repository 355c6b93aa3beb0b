"""Domain Types: question ownership, round mapping and column naming.

Tests:
    - Odd questions belong to player1, even to player2
    - Questions 1-2, 3-4, 5-6 map to rounds 1, 2, 3
    - Column helpers produce the session row's field names
"""

import pytest

from elevenpoints.core.domain_types import (
    SESSION_ID_ALPHABET, Player, Verdict, name_field, player_for_question,
    round_for_question, round_score_field, total_score_field,
)


@pytest.mark.parametrize("n,player", [
    (1, Player.PLAYER1), (2, Player.PLAYER2), (3, Player.PLAYER1),
    (4, Player.PLAYER2), (5, Player.PLAYER1), (6, Player.PLAYER2),
])
def test_question_parity_decides_player(n, player):
    assert player_for_question(n) is player


@pytest.mark.parametrize("n,round_number", [(1, 1), (2, 1), (3, 2), (4, 2), (5, 3), (6, 3)])
def test_question_maps_to_round(n, round_number):
    assert round_for_question(n) == round_number


def test_field_helpers_use_player_prefix():
    assert round_score_field(Player.PLAYER2, 3) == "p2_round3_score"
    assert total_score_field(Player.PLAYER1) == "p1_score"
    assert name_field(Player.PLAYER2) == "p2_name"


def test_player_enum_serializes_to_wire_value():
    assert Player("player1") is Player.PLAYER1
    assert Player.PLAYER2.value == "player2"


def test_verdict_has_three_members():
    assert {v.value for v in Verdict} == {"correct", "incorrect", "unanswered"}


def test_session_id_alphabet_is_lowercase_alphanumeric():
    assert len(SESSION_ID_ALPHABET) == 36
    assert SESSION_ID_ALPHABET == SESSION_ID_ALPHABET.lower()
