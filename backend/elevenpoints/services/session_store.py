"""Session Store: the only write path to the canonical session row.

Invariants:
    - Updates are sparse: only supplied fields change, full replacement is not offered
    - Every mutation for a session runs under that session's asyncio.Lock
      (read, validate, write, commit, publish), so read-modify-write cannot lose updates
    - Validation happens before any write; a rejected update changes nothing
    - The realtime snapshot is published only after a successful commit

Design Decisions:
    - Locks are per process: single-worker uvicorn deployment. The map holds them
      weakly, so a lock disappears once no mutation is holding or awaiting it
    - mutate() takes a function of the current snapshot so callers such as score
      marking compute their fields inside the lock
"""

import asyncio
import logging
import random
import weakref
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from elevenpoints.core.domain_types import (
    SESSION_ID_ALPHABET, SESSION_ID_LENGTH, Player, name_field,
)
from elevenpoints.core.errors import ErrorContext, NotFoundError, ValidationError
from elevenpoints.core.session_rules import validate_update
from elevenpoints.models.session import GameSession
from elevenpoints.services.realtime_sync import RealtimeHub

logger = logging.getLogger(__name__)

FieldsFn = Callable[[dict], Mapping[str, Any] | Awaitable[Mapping[str, Any]]]

_session_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
    weakref.WeakValueDictionary()
)


def session_lock(session_id: str) -> asyncio.Lock:
    """Mutation lock for one session (created on first use)."""
    lock = _session_locks.get(session_id)
    if lock is None:
        lock = _session_locks[session_id] = asyncio.Lock()
    return lock


def generate_session_id(rng: random.Random | None = None) -> str:
    chooser = rng or random.SystemRandom()
    return "".join(chooser.choice(SESSION_ID_ALPHABET) for _ in range(SESSION_ID_LENGTH))


class SessionStore:
    """Point reads and partial updates of GameSession rows."""

    def __init__(self, db: AsyncSession, hub: RealtimeHub):
        self.db = db
        self.hub = hub

    async def create(self) -> dict:
        """Insert a fresh session: all scores 0, all text fields null."""
        session_id = generate_session_id()
        while await self._load(session_id) is not None:
            session_id = generate_session_id()
        row = GameSession(id=session_id)
        self.db.add(row)
        await self.db.commit()
        await self.db.refresh(row)
        logger.info("Session created", extra={"session_id": session_id})
        return row.to_snapshot()

    async def get(self, session_id: str) -> GameSession:
        row = await self._load(session_id)
        if row is None:
            raise NotFoundError("Session", session_id, ErrorContext(session_id=session_id))
        return row

    async def read(self, session_id: str) -> dict:
        return (await self.get(session_id)).to_snapshot()

    async def update(self, session_id: str, fields: Mapping[str, Any]) -> dict:
        """Apply a sparse update and return the committed snapshot."""
        if not fields:
            raise ValidationError(
                "No fields to update", "fields", ErrorContext(session_id=session_id),
            )
        return await self.mutate(session_id, lambda _current: fields)

    async def mutate(self, session_id: str, compute: FieldsFn) -> dict:
        """Compute fields from the current snapshot and commit them, under the session lock."""
        lock = session_lock(session_id)
        async with lock:
            row = await self.get(session_id)
            current = row.to_snapshot()
            fields = compute(current)
            if asyncio.iscoroutine(fields):
                fields = await fields
            try:
                cleaned = validate_update(current, fields)
            except ValidationError as e:
                e.context.session_id = session_id
                raise
            for name, value in cleaned.items():
                setattr(row, name, value)
            await self.db.commit()
            snapshot = row.to_snapshot()

        logger.info(
            f"Session updated: {', '.join(sorted(cleaned))}",
            extra={"session_id": session_id},
        )
        self.hub.publish_session(snapshot)
        return snapshot

    async def set_player_name(self, session_id: str, player: Player, name: str) -> dict:
        name = (name or "").strip()
        if not name:
            raise ValidationError("name is required", "name", ErrorContext(session_id=session_id))
        return await self.update(session_id, {name_field(player): name})

    async def update_question(self, session_id: str, q_number: int, q_text: str) -> dict:
        q_text = (q_text or "").strip()
        if not q_text:
            raise ValidationError("q_text is required", "q_text", ErrorContext(session_id=session_id))
        return await self.update(session_id, {"q_number": q_number, "q_text": q_text})

    async def _load(self, session_id: str) -> GameSession | None:
        result = await self.db.execute(
            select(GameSession)
            .where(GameSession.id == session_id)
            .execution_options(populate_existing=True),
        )
        return result.scalar_one_or_none()
