"""Conversation Routes: live-mode credential issuance, host connection and mode signals.

Invariants:
    - Credential issuance fails closed (500) without server configuration and
      propagates the provider's error status otherwise
    - Mode signals are accepted only while the session's host connection is active
    - Ending a connection aborts its in-flight requests before responding
"""

import logging

from fastapi import APIRouter, Depends

from elevenpoints.api.dependencies import get_credential_client, get_session_store
from elevenpoints.core.errors import ConnectionClosedError, ErrorContext
from elevenpoints.schemas.conversation import ModeSignalRequest, SignedUrlRequest
from elevenpoints.services.host_connection import HostConnectionRegistry, get_host_registry
from elevenpoints.services.session_store import SessionStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["conversation"])


@router.post("/conversation/signed-url")
async def issue_signed_url(
    body: SignedUrlRequest, credentials=Depends(get_credential_client),
):
    """Signed connection URL for the voice host, bound to the session."""
    signed_url = await credentials.get_signed_url(body.session_id)
    return {"signedUrl": signed_url}


@router.post("/sessions/{session_id}/conversation/start")
async def start_conversation(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
    registry: HostConnectionRegistry = Depends(get_host_registry),
    credentials=Depends(get_credential_client),
):
    await store.get(session_id)
    conn = registry.get(session_id)
    signed_url = await conn.start(credentials)
    return {**conn.to_dict(), "signed_url": signed_url}


@router.post("/sessions/{session_id}/conversation/end")
async def end_conversation(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
    registry: HostConnectionRegistry = Depends(get_host_registry),
):
    await store.get(session_id)
    return await registry.end(session_id)


@router.post("/sessions/{session_id}/conversation/mode")
async def submit_mode_signal(
    session_id: str,
    body: ModeSignalRequest,
    registry: HostConnectionRegistry = Depends(get_host_registry),
):
    """Apply one host mode signal (speaking mutes, listening unmutes)."""
    conn = registry.peek(session_id)
    if conn is None or not conn.active:
        raise ConnectionClosedError(ErrorContext(session_id=session_id))
    capture_enabled = await conn.actor.submit(body.mode)
    return {
        "session_id": session_id,
        "mode": body.mode,
        "capture_enabled": capture_enabled,
    }


@router.get("/sessions/{session_id}/conversation")
async def get_conversation(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
    registry: HostConnectionRegistry = Depends(get_host_registry),
):
    await store.get(session_id)
    return registry.describe(session_id)
