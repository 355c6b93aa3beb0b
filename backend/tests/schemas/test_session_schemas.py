"""Request schemas: aliases, sparse field tracking and enumerations."""

import pytest
from pydantic import ValidationError

from elevenpoints.core.domain_types import Player, Verdict
from elevenpoints.schemas.conversation import FlowAdvanceRequest
from elevenpoints.schemas.session import (
    MarkAnswerRequest, SessionUpdateRequest, SetPlayerNameRequest, UpdateQuestionRequest,
)


def test_update_request_tracks_only_supplied_fields():
    body = SessionUpdateRequest.model_validate({"session_id": "abcd1234", "q_text": None})
    assert body.supplied_fields() == {"q_text": None}


def test_update_request_forbids_unknown_fields():
    with pytest.raises(ValidationError):
        SessionUpdateRequest.model_validate({"session_id": "abcd1234", "score": 3})


def test_update_request_requires_session_id():
    with pytest.raises(ValidationError):
        SessionUpdateRequest.model_validate({"p1_name": "Ann"})


def test_mark_answer_accepts_camel_case():
    body = MarkAnswerRequest.model_validate({
        "sessionId": "abcd1234", "player": "player2", "round": 2,
        "questionNumber": 4, "verdict": "incorrect",
    })
    assert body.player is Player.PLAYER2
    assert body.verdict is Verdict.INCORRECT
    assert body.question_number == 4


@pytest.mark.parametrize("raw,player", [
    ("player1", Player.PLAYER1), (1, Player.PLAYER1), ("2", Player.PLAYER2),
])
def test_player_number_forms(raw, player):
    body = SetPlayerNameRequest.model_validate(
        {"session_id": "abcd1234", "player_number": raw, "name": "Ann"},
    )
    assert body.player_number is player


def test_player_number_rejects_bool():
    with pytest.raises(ValidationError):
        SetPlayerNameRequest.model_validate(
            {"session_id": "abcd1234", "player_number": True, "name": "Ann"},
        )


def test_question_text_is_stripped():
    body = UpdateQuestionRequest.model_validate(
        {"session_id": "abcd1234", "q_number": 3, "q_text": "  Why?  "},
    )
    assert body.q_text == "Why?"


def test_flow_advance_fields_optional():
    assert FlowAdvanceRequest().model_dump() == {
        "name": None, "topic": None, "question": None, "answer": None,
    }
