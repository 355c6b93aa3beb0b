"""Session Routes: create and read the shared session, its media log and the finale.

Invariants:
    - Creation is the only way a session row comes into existence
    - Reads never mutate; the finale is computed on demand from the row and the live connection
"""

import logging

from fastapi import APIRouter, Depends, status

from elevenpoints.api.dependencies import get_session_store
from elevenpoints.core.finale import evaluate_finale
from elevenpoints.services.host_connection import HostConnectionRegistry, get_host_registry
from elevenpoints.services.media_log import load_media
from elevenpoints.services.session_store import SessionStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/sessions", tags=["sessions"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_session(store: SessionStore = Depends(get_session_store)):
    """Create a new game session (scores 0, no names, no question)."""
    return await store.create()


@router.get("/{session_id}")
async def get_session(
    session_id: str, store: SessionStore = Depends(get_session_store),
):
    return await store.read(session_id)


@router.get("/{session_id}/media")
async def list_session_media(
    session_id: str, store: SessionStore = Depends(get_session_store),
):
    """Media rows in insertion order; the last one is on screen."""
    await store.get(session_id)
    media = await load_media(store.db, session_id)
    return {"session_id": session_id, "media": media}


@router.get("/{session_id}/finale")
async def get_finale(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
    registry: HostConnectionRegistry = Depends(get_host_registry),
):
    snapshot = await store.read(session_id)
    result = evaluate_finale(snapshot, registry.is_active(session_id))
    if result is None:
        return {"ready": False}
    return result.to_dict()
