"""Tool Routes: the mutation endpoints called by the AI host's tool layer.

Invariants:
    - Every request names its session in the JSON body (session_id)
    - Success bodies are {"success": true, ...}; failures use the structured error envelope
    - Each endpoint maps to exactly one store, scoring or media-log operation
"""

import logging

from fastapi import APIRouter, Depends

from elevenpoints.api.dependencies import get_media_log, get_session_store
from elevenpoints.schemas.session import (
    FetchImageRequest, MarkAnswerRequest, SessionUpdateRequest,
    SetPlayerNameRequest, UpdateQuestionRequest,
)
from elevenpoints.services.media_log import MediaLog
from elevenpoints.services.scoring import mark_answer
from elevenpoints.services.session_store import SessionStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/tools", tags=["tools"])


@router.post("/update-session")
async def update_session(
    body: SessionUpdateRequest, store: SessionStore = Depends(get_session_store),
):
    """Sparse update of any subset of session fields."""
    snapshot = await store.update(body.session_id, body.supplied_fields())
    return {"success": True, "data": snapshot}


@router.post("/mark-answer")
async def mark_answer_route(
    body: MarkAnswerRequest, store: SessionStore = Depends(get_session_store),
):
    change, _snapshot = await mark_answer(
        store, body.session_id, body.player, body.round,
        body.question_number, body.verdict,
    )
    return {
        "success": True,
        "data": {
            "player": change.player.value,
            "round": change.round_number,
            "question_number": body.question_number,
            "verdict": change.verdict.value,
            "points_awarded": change.points_awarded,
            "new_round_score": change.new_round_score,
            "new_total_score": change.new_total_score,
        },
    }


@router.post("/set-player-name")
async def set_player_name(
    body: SetPlayerNameRequest, store: SessionStore = Depends(get_session_store),
):
    await store.set_player_name(body.session_id, body.player_number, body.name)
    return {
        "success": True,
        "data": {
            "player_number": body.player_number.value,
            "name": body.name,
            "session_id": body.session_id,
        },
    }


@router.post("/update-question")
async def update_question(
    body: UpdateQuestionRequest, store: SessionStore = Depends(get_session_store),
):
    await store.update_question(body.session_id, body.q_number, body.q_text)
    return {
        "success": True,
        "data": {"q_number": body.q_number, "q_text": body.q_text},
    }


@router.post("/fetch-image-url")
async def fetch_image_url(
    body: FetchImageRequest, media_log: MediaLog = Depends(get_media_log),
):
    """Search the topic, store one random result, return its URL."""
    media = await media_log.fetch_and_store(body.session_id, body.topic)
    return {"success": True, "image_url": media["image_url"], "data": media}
