"""Score marking: one verdict, one atomic round/total/q_number update."""

import logging

import pytest

from elevenpoints.core.domain_types import Player, Verdict
from elevenpoints.core.errors import NotFoundError
import elevenpoints.services.scoring as scoring_module
from elevenpoints.services.scoring import mark_answer


async def test_correct_answer_scores_one_point(store, seed_session):
    change, snapshot = await mark_answer(
        store, seed_session.id, Player.PLAYER1, 1, 1, Verdict.CORRECT,
    )

    assert change.points_awarded == 1
    assert change.new_round_score == 1
    assert change.new_total_score == 1
    assert snapshot["p1_round1_score"] == 1
    assert snapshot["p1_score"] == 1
    assert snapshot["q_number"] == 1


async def test_incorrect_answer_advances_question_only(store, seed_session):
    change, snapshot = await mark_answer(
        store, seed_session.id, Player.PLAYER2, 1, 2, Verdict.INCORRECT,
    )

    assert change.points_awarded == 0
    assert snapshot["p2_score"] == 0
    assert snapshot["q_number"] == 2


async def test_q_number_never_moves_backwards(store, seed_session):
    await store.update(seed_session.id, {"q_number": 5})

    _change, snapshot = await mark_answer(
        store, seed_session.id, Player.PLAYER1, 2, 3, Verdict.CORRECT,
    )

    assert snapshot["q_number"] == 5
    assert snapshot["p1_round2_score"] == 1


async def test_marking_twice_adds_twice_and_warns(store, seed_session, caplog):
    await mark_answer(store, seed_session.id, Player.PLAYER1, 1, 1, Verdict.CORRECT)

    with caplog.at_level(logging.WARNING, logger="elevenpoints.services.scoring"):
        _change, snapshot = await mark_answer(
            store, seed_session.id, Player.PLAYER1, 1, 1, Verdict.CORRECT,
        )

    assert snapshot["p1_score"] == 2
    assert any("more than once" in r.getMessage() for r in caplog.records)


async def test_unknown_session(store):
    with pytest.raises(NotFoundError):
        await mark_answer(store, "missing1", Player.PLAYER1, 1, 1, Verdict.CORRECT)


async def test_last_question_forgets_marks(store, seed_session):
    await mark_answer(store, seed_session.id, Player.PLAYER1, 1, 1, Verdict.CORRECT)
    assert scoring_module._marked_questions[seed_session.id] == {1}

    await mark_answer(store, seed_session.id, Player.PLAYER2, 3, 6, Verdict.INCORRECT)

    assert seed_session.id not in scoring_module._marked_questions
