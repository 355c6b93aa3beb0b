"""Session Feed: SSE stream of session, media and microphone-gate changes.

Invariants:
    - The subscription is opened before the initial state is read, so no commit
      between the two is missed (a row may then arrive twice; media ids are unique)
    - Initial state: one "session" event, one "media" event per stored row, one "capture" event
    - A "resync" marker from the hub is answered with the full state again;
      if that reload fails the stream ends with an "error" event
    - A "ping" is sent after every quiet keep-alive interval
    - The subscription is closed when the client disconnects

Design Decisions:
    - The stream opens its own short DB sessions per state load; a request-scoped
      session would stay checked out for the whole life of the stream
"""

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from elevenpoints.config import get_settings
from elevenpoints.core.errors import GameShowError
from elevenpoints.infrastructure import database
from elevenpoints.services.host_connection import HostConnectionRegistry, get_host_registry
from elevenpoints.services.media_log import load_media
from elevenpoints.services.realtime_sync import (
    CAPTURE_EVENT, MEDIA_EVENT, RESYNC_EVENT, SESSION_EVENT,
    RealtimeHub, Subscription, get_realtime_hub,
)
from elevenpoints.services.session_store import SessionStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/sessions", tags=["sessions"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
    "Connection": "keep-alive",
}

PING_EVENT = "ping"

StateLoader = Callable[[], Awaitable[list[dict]]]


async def feed_events(
    subscription: Subscription,
    load_state: StateLoader,
    keepalive_seconds: float,
) -> AsyncIterator[dict]:
    """Yield feed events for one subscriber until the consumer stops iterating."""
    try:
        for event in await load_state():
            yield event
        while True:
            event = await subscription.get(timeout=keepalive_seconds)
            if event is None:
                yield {"type": PING_EVENT, "data": {}}
            elif event.type == RESYNC_EVENT:
                yield event.to_dict()
                try:
                    state_events = await load_state()
                except GameShowError as e:
                    logger.error(
                        f"Feed reload failed: {e.message}",
                        extra={"session_id": subscription.session_id, "error_code": e.code},
                    )
                    yield e.to_sse_event()
                    return
                for state_event in state_events:
                    yield state_event
            else:
                yield event.to_dict()
    finally:
        subscription.close()


def state_loader(
    session_id: str, hub: RealtimeHub, registry: HostConnectionRegistry,
) -> StateLoader:
    """Loader reading the current row, the media log and the gate for `session_id`."""

    async def load() -> list[dict]:
        if database.db_manager is None:
            raise RuntimeError("Database not initialized")
        async with database.db_manager.session() as db:
            snapshot = await SessionStore(db, hub).read(session_id)
            media = await load_media(db, session_id)
        capture = registry.capture_enabled(session_id)
        return [
            {"type": SESSION_EVENT, "data": snapshot},
            *({"type": MEDIA_EVENT, "data": row} for row in media),
            {"type": CAPTURE_EVENT, "data": {"capture_enabled": capture}},
        ]

    return load


def sse_line(event: dict) -> str:
    """Format event as SSE data line."""
    return f"data: {json.dumps(event, ensure_ascii=False)}\n\n"


@router.get("/{session_id}/feed")
async def stream_session_feed(
    session_id: str,
    hub: RealtimeHub = Depends(get_realtime_hub),
    registry: HostConnectionRegistry = Depends(get_host_registry),
):
    """SSE feed: full state first, then live changes for this session."""
    subscription = hub.subscribe(session_id)
    load = state_loader(session_id, hub, registry)
    try:
        initial = await load()
    except Exception:
        subscription.close()
        raise

    async def first_then_reload() -> list[dict]:
        nonlocal initial
        if initial is not None:
            events, initial = initial, None
            return events
        return await load()

    async def event_generator():
        try:
            async for event in feed_events(
                subscription, first_then_reload, get_settings().feed_keepalive_seconds,
            ):
                yield sse_line(event)
        except asyncio.CancelledError:
            logger.info("Client disconnected from feed", extra={"session_id": session_id})
            return
        finally:
            subscription.close()

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
