"""Game Flow Routes: the operator-driven test mode.

Invariants:
    - One POST advances exactly one step (or fails and leaves the step unchanged)
    - Advancing past the finale is a 409
"""

import logging

from fastapi import APIRouter, Depends

from elevenpoints.api.dependencies import get_media_log, get_session_store
from elevenpoints.core.game_flow import FlowInputs
from elevenpoints.schemas.conversation import FlowAdvanceRequest
from elevenpoints.services.game_flow_driver import GameFlowDriver, get_flow_state
from elevenpoints.services.media_log import MediaLog
from elevenpoints.services.session_store import SessionStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/sessions", tags=["game-flow"])


@router.get("/{session_id}/flow")
async def get_flow(
    session_id: str, store: SessionStore = Depends(get_session_store),
):
    row = await store.get(session_id)
    state = get_flow_state(session_id, row.q_number)
    return {
        "session_id": session_id,
        "step": state.step.value,
        "topic": state.topic,
        "finished": state.is_finished,
    }


@router.post("/{session_id}/flow/advance")
async def advance_flow(
    session_id: str,
    body: FlowAdvanceRequest,
    store: SessionStore = Depends(get_session_store),
    media_log: MediaLog = Depends(get_media_log),
):
    """Run the current step's effect with the operator's inputs, then move on."""
    driver = GameFlowDriver(store, media_log)
    result = await driver.advance(
        session_id,
        FlowInputs(
            name=body.name, topic=body.topic,
            question=body.question, answer=body.answer,
        ),
    )
    return result.to_dict()
