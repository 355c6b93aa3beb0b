"""Session Schemas: request models for session mutation, scoring, naming, and media.

Invariants:
    - session_id is required and non-empty on every tool request
    - Unknown fields are rejected on sparse updates (no silent drops)
    - Enumerations (player, verdict) and ranges (round 1-3, question 1-6) are enforced here
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from elevenpoints.core.domain_types import Player, Verdict

def _session_id_field():
    return Field(
        min_length=1, max_length=32,
        validation_alias=AliasChoices("session_id", "sessionId"),
    )


def _strip_required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("cannot be empty or whitespace")
    return v


class SessionFields(BaseModel):
    """Sparse set of session columns; only keys present in the payload are applied."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    p1_name: str | None = Field(None, max_length=100)
    p2_name: str | None = Field(None, max_length=100)
    round_name: str | None = Field(None, max_length=200)
    q_number: int | None = Field(None, ge=0, le=6)
    q_text: str | None = Field(None, max_length=2000)
    p1_score: int | None = Field(None, ge=0)
    p2_score: int | None = Field(None, ge=0)
    p1_round1_score: int | None = Field(None, ge=0)
    p1_round2_score: int | None = Field(None, ge=0)
    p1_round3_score: int | None = Field(None, ge=0)
    p2_round1_score: int | None = Field(None, ge=0)
    p2_round2_score: int | None = Field(None, ge=0)
    p2_round3_score: int | None = Field(None, ge=0)

    def supplied_fields(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude={"session_id"})


class SessionUpdateRequest(SessionFields):
    """Generic sparse update issued by the voice host tools or the test console."""
    session_id: str = _session_id_field()


class MarkAnswerRequest(BaseModel):
    session_id: str = _session_id_field()
    player: Player
    round: int = Field(ge=1, le=3)
    question_number: int = Field(
        ge=1, le=6, validation_alias=AliasChoices("question_number", "questionNumber"),
    )
    verdict: Verdict


class SetPlayerNameRequest(BaseModel):
    session_id: str = _session_id_field()
    player_number: Player = Field(
        validation_alias=AliasChoices("player_number", "playerNumber"),
    )
    name: str = Field(min_length=1, max_length=100)

    @field_validator("player_number", mode="before")
    @classmethod
    def accept_numeric_player(cls, v):
        """1 / "1" / 2 / "2" are accepted as player1 / player2."""
        if isinstance(v, bool):
            return v
        if v in (1, "1"):
            return Player.PLAYER1.value
        if v in (2, "2"):
            return Player.PLAYER2.value
        return v

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return _strip_required(v)


class UpdateQuestionRequest(BaseModel):
    session_id: str = _session_id_field()
    q_number: int = Field(ge=0, le=6, validation_alias=AliasChoices("q_number", "qNumber"))
    q_text: str = Field(
        min_length=1, max_length=2000, validation_alias=AliasChoices("q_text", "qText"),
    )

    @field_validator("q_text")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return _strip_required(v)


class FetchImageRequest(BaseModel):
    session_id: str = _session_id_field()
    topic: str = Field(min_length=1, max_length=200)

    @field_validator("topic")
    @classmethod
    def strip_topic(cls, v: str) -> str:
        return _strip_required(v)
