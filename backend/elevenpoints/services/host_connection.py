"""Host Connection: live-mode conversational host lifecycle and microphone gating.

Invariants:
    - At most one HostConnection per session id (module-level registry); an entry
      lives from the first start() until end(), and reads never create one
    - Mode signals are applied one at a time by the ModeSignalActor, in arrival order
    - Capture starts disabled; a new connection resets it to disabled
    - end() cancels every in-flight tracked request and stops the actor
    - A connection counts as active while CONNECTING or CONNECTED
    - start() never leaves CONNECTING behind: a failure of any kind sets ERROR, and a
      handshake whose caller was cancelled settles the status when it completes

Design Decisions:
    - The actor owns the ConversationModeController; callers only submit signals
    - Signed-URL requests run as tracked tasks so teardown can abort them
"""

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any, Protocol

from elevenpoints.core.conversation_mode import (
    ConversationModeController, parse_mode_signal,
)
from elevenpoints.core.domain_types import ConnectionStatus
from elevenpoints.core.errors import ConnectionClosedError, ErrorContext, GameShowError

logger = logging.getLogger(__name__)

CaptureListener = Callable[[str, bool], None]


class CredentialIssuer(Protocol):
    """Structural contract for infrastructure/conversation_credentials.py."""
    async def get_signed_url(self, session_id: str) -> str: ...


class ModeSignalActor:
    """Sequential consumer of host mode signals for one session."""

    def __init__(self, session_id: str, listener: CaptureListener | None = None):
        self.session_id = session_id
        self.controller = ConversationModeController()
        self._listener = listener
        self._queue: asyncio.Queue[tuple[str | None, asyncio.Future]] = asyncio.Queue()
        self._task: asyncio.Task | None = None

    @property
    def capture_enabled(self) -> bool:
        return self.controller.capture_enabled

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if not self.running:
            self._task = asyncio.create_task(self._run())

    def reset(self) -> None:
        self.controller = ConversationModeController()

    async def submit(self, raw_signal: str | None) -> bool:
        """Queue a signal and wait until it is applied. Returns capture-enabled."""
        self.start()
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        await self._queue.put((raw_signal, future))
        return await future

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        while not self._queue.empty():
            _signal, future = self._queue.get_nowait()
            if not future.done():
                future.set_result(self.capture_enabled)

    async def _run(self) -> None:
        while True:
            raw_signal, future = await self._queue.get()
            before = self.controller.capture_enabled
            after = self.controller.apply(raw_signal)
            if after != before:
                logger.info(
                    "Microphone %s (host %s)",
                    "unmuted" if after else "muted", raw_signal,
                    extra={"session_id": self.session_id},
                )
                if self._listener is not None:
                    self._listener(self.session_id, after)
            elif parse_mode_signal(raw_signal) is None:
                logger.debug(
                    f"Ignored mode signal: {raw_signal!r}",
                    extra={"session_id": self.session_id},
                )
            if not future.done():
                future.set_result(after)


class HostConnection:
    """Live-mode connection state for one session."""

    def __init__(self, session_id: str, listener: CaptureListener | None = None):
        self.session_id = session_id
        self.status = ConnectionStatus.IDLE
        self.signed_url: str | None = None
        self.actor = ModeSignalActor(session_id, listener)
        self._listener = listener
        self._tasks: set[asyncio.Task] = set()
        self._handshake: asyncio.Task | None = None

    @property
    def active(self) -> bool:
        return self.status in (ConnectionStatus.CONNECTING, ConnectionStatus.CONNECTED)

    @property
    def pending_requests(self) -> int:
        return len(self._tasks)

    def track(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        """Run `coro` as a task that end() will cancel if still in flight."""
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def start(self, credentials: CredentialIssuer) -> str:
        """Acquire a signed URL and mark the connection established."""
        self.status = ConnectionStatus.CONNECTING
        self._reset_gate()
        task = self.track(credentials.get_signed_url(self.session_id))
        self._handshake = task
        try:
            signed_url = await asyncio.shield(task)
        except asyncio.CancelledError:
            if task.cancelled() and not self.active:
                raise ConnectionClosedError(ErrorContext(session_id=self.session_id))
            # Caller went away; the handshake still settles the status when it finishes
            task.add_done_callback(self._settle_detached)
            raise
        except Exception:
            self.status = ConnectionStatus.ERROR
            logger.error(
                "Failed to start host connection", extra={"session_id": self.session_id},
            )
            raise
        self._connected(signed_url)
        return signed_url

    def _connected(self, signed_url: str) -> None:
        self.signed_url = signed_url
        self.status = ConnectionStatus.CONNECTED
        self.actor.start()
        logger.info("Host connection established", extra={"session_id": self.session_id})

    def _settle_detached(self, task: asyncio.Task) -> None:
        """Done-callback for a handshake whose caller was cancelled."""
        if task is not self._handshake or self.status is not ConnectionStatus.CONNECTING:
            return
        if task.cancelled() or task.exception() is not None:
            self.status = ConnectionStatus.ERROR
            logger.error(
                "Host connection handshake failed after caller left",
                extra={"session_id": self.session_id},
            )
            return
        self._connected(task.result())

    async def end(self) -> None:
        """Release the connection: abort in-flight requests, stop gating."""
        self.status = ConnectionStatus.ENDED
        pending = [t for t in self._tasks if not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        await self.actor.stop()
        self._reset_gate()
        self.signed_url = None
        logger.info(
            f"Host connection ended ({len(pending)} request(s) aborted)",
            extra={"session_id": self.session_id},
        )

    def _reset_gate(self) -> None:
        """Back to muted; viewers are told only if capture was on."""
        was_enabled = self.actor.capture_enabled
        self.actor.reset()
        if was_enabled and self._listener is not None:
            self._listener(self.session_id, False)

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "status": self.status.value,
            "active": self.active,
            "capture_enabled": self.actor.capture_enabled,
            "last_signal": (
                self.actor.controller.last_signal.value
                if self.actor.controller.last_signal else None
            ),
        }


class HostConnectionRegistry:
    def __init__(self, listener: CaptureListener | None = None):
        self._connections: dict[str, HostConnection] = {}
        self._listener = listener

    def get(self, session_id: str) -> HostConnection:
        """Connection for `session_id`, registering a new one if needed."""
        conn = self._connections.get(session_id)
        if conn is None:
            conn = self._connections[session_id] = HostConnection(session_id, self._listener)
        return conn

    def peek(self, session_id: str) -> HostConnection | None:
        return self._connections.get(session_id)

    def is_active(self, session_id: str) -> bool:
        conn = self.peek(session_id)
        return conn is not None and conn.active

    def capture_enabled(self, session_id: str) -> bool:
        conn = self.peek(session_id)
        return conn is not None and conn.actor.capture_enabled

    def describe(self, session_id: str) -> dict:
        """Status dict for `session_id`; an unregistered session reads as idle."""
        conn = self.peek(session_id)
        if conn is not None:
            return conn.to_dict()
        return {
            "session_id": session_id,
            "status": ConnectionStatus.IDLE.value,
            "active": False,
            "capture_enabled": False,
            "last_signal": None,
        }

    async def end(self, session_id: str) -> dict:
        """End and forget the session's connection; returns its final status."""
        conn = self._connections.pop(session_id, None)
        if conn is None:
            return {**self.describe(session_id), "status": ConnectionStatus.ENDED.value}
        await conn.end()
        return conn.to_dict()

    async def shutdown(self) -> None:
        for conn in list(self._connections.values()):
            if conn.active or conn.pending_requests or conn.actor.running:
                await conn.end()
        self._connections.clear()


_registry: HostConnectionRegistry | None = None


def get_host_registry() -> HostConnectionRegistry:
    """Lazy singleton. Use as a FastAPI dependency: Depends(get_host_registry)."""
    global _registry
    if _registry is None:
        from elevenpoints.services.realtime_sync import get_realtime_hub
        _registry = HostConnectionRegistry(
            listener=lambda session_id, enabled: get_realtime_hub().publish_capture(
                session_id, enabled,
            ),
        )
    return _registry
