"""Conversation and Flow Schemas: live-mode credential/mode requests and test-mode advances."""

from pydantic import AliasChoices, BaseModel, Field


class SignedUrlRequest(BaseModel):
    session_id: str = Field(
        min_length=1, max_length=32,
        validation_alias=AliasChoices("session_id", "sessionId"),
    )


class ModeSignalRequest(BaseModel):
    """Raw mode from the voice SDK. Unknown values are accepted and ignored."""
    mode: str = Field(max_length=50)


class FlowAdvanceRequest(BaseModel):
    """Values the operator typed for the current step; all optional."""
    name: str | None = Field(None, max_length=100)
    topic: str | None = Field(None, max_length=200)
    question: str | None = Field(None, max_length=2000)
    answer: str | None = Field(None, max_length=100)
