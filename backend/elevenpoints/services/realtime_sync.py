"""Realtime Sync: in-process fan-out of session and media changes to feed subscribers.

Invariants:
    - Events for a session reach every current subscriber of that session, in publish order
    - "session" events carry the full row (consumers replace local state)
    - "media" events carry one appended row (consumers append)
    - "capture" events carry the live-mode microphone gate
    - Publishing never blocks: a subscriber whose queue is full is reset to a single
      "resync" event and must reload the full state

Design Decisions:
    - Module-level hub: single-process uvicorn, subscribers live as long as their SSE stream
    - Ordering is per session only; session and media events share one queue per subscriber
"""

import asyncio
import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

SESSION_EVENT = "session"
MEDIA_EVENT = "media"
RESYNC_EVENT = "resync"
CAPTURE_EVENT = "capture"


@dataclass(frozen=True)
class FeedEvent:
    type: str
    data: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"type": self.type, "data": self.data}


class Subscription:
    """One viewer's queue of pending feed events."""

    def __init__(self, hub: "RealtimeHub", session_id: str, maxsize: int):
        self.hub = hub
        self.session_id = session_id
        self.queue: asyncio.Queue[FeedEvent] = asyncio.Queue(maxsize=maxsize)
        self.closed = False

    async def get(self, timeout: float | None = None) -> FeedEvent | None:
        """Next event, or None when `timeout` elapses first."""
        if timeout is None:
            return await self.queue.get()
        try:
            return await asyncio.wait_for(self.queue.get(), timeout)
        except asyncio.TimeoutError:
            return None

    def offer(self, event: FeedEvent) -> bool:
        """Enqueue without blocking. On overflow, collapse the backlog into a resync."""
        try:
            self.queue.put_nowait(event)
            return True
        except asyncio.QueueFull:
            while not self.queue.empty():
                self.queue.get_nowait()
            self.queue.put_nowait(FeedEvent(RESYNC_EVENT))
            logger.warning(
                "Feed subscriber overflowed; forcing resync",
                extra={"session_id": self.session_id},
            )
            return False

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self.hub.unsubscribe(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class RealtimeHub:
    """Per-session subscriber registry with non-blocking publish."""

    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        self._subscribers: dict[str, set[Subscription]] = {}

    def subscribe(self, session_id: str) -> Subscription:
        sub = Subscription(self, session_id, self.queue_size)
        self._subscribers.setdefault(session_id, set()).add(sub)
        logger.info(
            f"Feed subscriber added ({self.subscriber_count(session_id)} active)",
            extra={"session_id": session_id},
        )
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        subs = self._subscribers.get(sub.session_id)
        if not subs:
            return
        subs.discard(sub)
        if not subs:
            del self._subscribers[sub.session_id]

    def subscriber_count(self, session_id: str) -> int:
        return len(self._subscribers.get(session_id, ()))

    def publish_session(self, snapshot: dict) -> int:
        """Fan out a full session row. Returns the number of subscribers reached."""
        return self._deliver(snapshot["id"], FeedEvent(SESSION_EVENT, snapshot))

    def publish_media(self, row: dict) -> int:
        """Fan out one inserted media row."""
        return self._deliver(row["session_id"], FeedEvent(MEDIA_EVENT, row))

    def publish_capture(self, session_id: str, enabled: bool) -> int:
        """Fan out the microphone gate so viewers can enable or disable capture."""
        return self._deliver(
            session_id, FeedEvent(CAPTURE_EVENT, {"capture_enabled": enabled}),
        )

    def _deliver(self, session_id: str, event: FeedEvent) -> int:
        subs = list(self._subscribers.get(session_id, ()))
        for sub in subs:
            sub.offer(event)
        return len(subs)


_hub: RealtimeHub | None = None


def get_realtime_hub() -> RealtimeHub:
    """Lazy singleton. Use as a FastAPI dependency: Depends(get_realtime_hub)."""
    global _hub
    if _hub is None:
        from elevenpoints.config import get_settings
        _hub = RealtimeHub(queue_size=get_settings().feed_queue_size)
    return _hub
