"""Game Flow Driver: runs the test-mode state machine against the store and media log.

Invariants:
    - FlowState is per-session, in-memory (module-level dict), and only for games in
      progress: reaching the finale drops the entry, and a session whose question 6
      is scored reads as finished
    - One advance at a time per session (driver lock)
    - The planned effect runs first; the next state is committed only if it succeeds,
      so any error leaves the step unchanged and the operator can retry
"""

import asyncio
import logging
import weakref
from dataclasses import dataclass

from elevenpoints.core.domain_types import MAX_QUESTION_NUMBER
from elevenpoints.core.game_flow import (
    FlowInputs, FlowState, GameStep, MediaFetch, ScoreAnswer, SessionUpdate, plan_advance,
)
from elevenpoints.core.errors import GameShowError
from elevenpoints.services.media_log import MediaLog
from elevenpoints.services.scoring import mark_answer
from elevenpoints.services.session_store import SessionStore

logger = logging.getLogger(__name__)

# In-memory driver positions; lost on restart (the session row itself is durable)
_flow_states: dict[str, FlowState] = {}
_driver_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
    weakref.WeakValueDictionary()
)


@dataclass(frozen=True)
class AdvanceResult:
    previous: FlowState
    state: FlowState
    effect: str
    session: dict | None = None
    media: dict | None = None

    def to_dict(self) -> dict:
        return {
            "previous_step": self.previous.step.value,
            "step": self.state.step.value,
            "finished": self.state.is_finished,
            "effect": self.effect,
            "session": self.session,
            "media": self.media,
        }


def get_flow_state(session_id: str, q_number: int | None = None) -> FlowState:
    """Driver position. Without one, a session is at the start, or at the
    finale once its last question has been scored.
    """
    state = _flow_states.get(session_id)
    if state is not None:
        return state
    if q_number == MAX_QUESTION_NUMBER:
        return FlowState(GameStep.FINALE)
    return FlowState()


def reset_flow_state(session_id: str) -> None:
    _flow_states.pop(session_id, None)


class GameFlowDriver:
    def __init__(self, store: SessionStore, media_log: MediaLog):
        self.store = store
        self.media_log = media_log

    async def advance(self, session_id: str, inputs: FlowInputs) -> AdvanceResult:
        lock = _driver_locks.setdefault(session_id, asyncio.Lock())
        async with lock:
            row = await self.store.get(session_id)
            state = get_flow_state(session_id, row.q_number)
            try:
                planned = plan_advance(state, inputs)
                result = await self._run_effect(session_id, state, planned.effect)
            except GameShowError as e:
                e.context.session_id = session_id
                e.context.step = state.step.value
                logger.warning(
                    f"Advance rejected: {e.message}",
                    extra={"session_id": session_id, "step": state.step.value,
                           "error_code": e.code},
                )
                raise
            if planned.next_state.is_finished:
                reset_flow_state(session_id)
            else:
                _flow_states[session_id] = planned.next_state

        logger.info(
            f"Flow advanced {state.step.value} -> {planned.next_state.step.value}",
            extra={"session_id": session_id, "step": planned.next_state.step.value},
        )
        return AdvanceResult(previous=state, state=planned.next_state, **result)

    async def _run_effect(self, session_id: str, state: FlowState, effect) -> dict:
        if effect is None:
            return {"effect": "none"}
        if isinstance(effect, SessionUpdate):
            snapshot = await self.store.update(session_id, effect.fields)
            return {"effect": "session_update", "session": snapshot}
        if isinstance(effect, ScoreAnswer):
            _change, snapshot = await mark_answer(
                self.store, session_id, effect.player, effect.round_number,
                effect.question_number, effect.verdict,
            )
            return {"effect": "score_answer", "session": snapshot}
        if isinstance(effect, MediaFetch):
            media = await self.media_log.fetch_and_store(session_id, effect.topic)
            return {"effect": "media_fetch", "media": media}
        raise TypeError(f"Unhandled flow effect at {state.step.value}: {effect!r}")
