"""Game Flow: explicit transition table for the test-mode game show state machine.

Invariants:
    - Steps run strictly forward, one at a time, from WELCOME to FINALE
    - FINALE is absorbing: it has no rule with a next step
    - Each advance plans at most one side effect (session update, score, or image fetch)
    - Question n belongs to player1 when odd, player2 when even
    - TRANSITIONS covers every GameStep; checked when the module is imported

Design Decisions:
    - plan_advance() is pure and returns the effect to run; the driver in services/
      performs it and only then commits the next FlowState
"""

from dataclasses import dataclass, replace
from enum import Enum

from elevenpoints.core.domain_types import (
    IMAGE_ROUND, Player, Verdict, name_field, player_for_question, round_for_question,
)
from elevenpoints.core.errors import FlowStateError, ValidationError
from elevenpoints.core.score_ledger import parse_verdict_token


class GameStep(str, Enum):
    WELCOME = "welcome"
    GET_P1_NAME = "get_p1_name"
    GET_P2_NAME = "get_p2_name"
    READY = "ready"
    ROUND1_INTRO = "round1_intro"
    ROUND1_Q1 = "round1_q1"
    ROUND1_A1 = "round1_a1"
    ROUND1_Q2 = "round1_q2"
    ROUND1_A2 = "round1_a2"
    ROUND2_INTRO = "round2_intro"
    ROUND2_Q1 = "round2_q1"
    ROUND2_A1 = "round2_a1"
    ROUND2_Q2 = "round2_q2"
    ROUND2_A2 = "round2_a2"
    ROUND3_INTRO = "round3_intro"
    ROUND3_TOPIC = "round3_topic"
    ROUND3_Q1_IMAGE = "round3_q1_image"
    ROUND3_Q1 = "round3_q1"
    ROUND3_A1 = "round3_a1"
    ROUND3_Q2_IMAGE = "round3_q2_image"
    ROUND3_Q2 = "round3_q2"
    ROUND3_A2 = "round3_a2"
    FINALE = "finale"


class EffectKind(str, Enum):
    NONE = "none"
    SET_NAME = "set_name"
    SET_ROUND_NAME = "set_round_name"
    SET_QUESTION = "set_question"
    SCORE_ANSWER = "score_answer"
    FETCH_IMAGE = "fetch_image"


ROUND_DEFAULT_TOPICS = {1: "General", 2: "Science", 3: "Images"}


@dataclass(frozen=True)
class StepRule:
    """What one advance from a step does and where it lands."""
    effect: EffectKind
    next_step: GameStep | None
    player: Player | None = None
    round_number: int | None = None
    question_number: int | None = None
    default_topic: str | None = None


def _question(n: int, next_step: GameStep) -> StepRule:
    return StepRule(
        EffectKind.SET_QUESTION, next_step,
        player=player_for_question(n), round_number=round_for_question(n),
        question_number=n,
    )


def _answer(n: int, next_step: GameStep) -> StepRule:
    return StepRule(
        EffectKind.SCORE_ANSWER, next_step,
        player=player_for_question(n), round_number=round_for_question(n),
        question_number=n,
    )


def _round_name(r: int, next_step: GameStep) -> StepRule:
    return StepRule(
        EffectKind.SET_ROUND_NAME, next_step,
        round_number=r, default_topic=ROUND_DEFAULT_TOPICS[r],
    )


S = GameStep
TRANSITIONS: dict[GameStep, StepRule] = {
    S.WELCOME: StepRule(EffectKind.NONE, S.GET_P1_NAME),
    S.GET_P1_NAME: StepRule(EffectKind.SET_NAME, S.GET_P2_NAME, player=Player.PLAYER1),
    S.GET_P2_NAME: StepRule(EffectKind.SET_NAME, S.READY, player=Player.PLAYER2),
    S.READY: StepRule(EffectKind.NONE, S.ROUND1_INTRO),
    S.ROUND1_INTRO: _round_name(1, S.ROUND1_Q1),
    S.ROUND1_Q1: _question(1, S.ROUND1_A1),
    S.ROUND1_A1: _answer(1, S.ROUND1_Q2),
    S.ROUND1_Q2: _question(2, S.ROUND1_A2),
    S.ROUND1_A2: _answer(2, S.ROUND2_INTRO),
    S.ROUND2_INTRO: _round_name(2, S.ROUND2_Q1),
    S.ROUND2_Q1: _question(3, S.ROUND2_A1),
    S.ROUND2_A1: _answer(3, S.ROUND2_Q2),
    S.ROUND2_Q2: _question(4, S.ROUND2_A2),
    S.ROUND2_A2: _answer(4, S.ROUND3_INTRO),
    S.ROUND3_INTRO: StepRule(EffectKind.NONE, S.ROUND3_TOPIC),
    S.ROUND3_TOPIC: _round_name(3, S.ROUND3_Q1_IMAGE),
    S.ROUND3_Q1_IMAGE: StepRule(EffectKind.FETCH_IMAGE, S.ROUND3_Q1, default_topic="nature"),
    S.ROUND3_Q1: _question(5, S.ROUND3_A1),
    S.ROUND3_A1: _answer(5, S.ROUND3_Q2_IMAGE),
    S.ROUND3_Q2_IMAGE: StepRule(EffectKind.FETCH_IMAGE, S.ROUND3_Q2, default_topic="city"),
    S.ROUND3_Q2: _question(6, S.ROUND3_A2),
    S.ROUND3_A2: _answer(6, S.FINALE),
    S.FINALE: StepRule(EffectKind.NONE, None),
}
del S


# ─── Effects ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class SessionUpdate:
    fields: dict


@dataclass(frozen=True)
class ScoreAnswer:
    player: Player
    round_number: int
    question_number: int
    verdict: Verdict


@dataclass(frozen=True)
class MediaFetch:
    topic: str


Effect = SessionUpdate | ScoreAnswer | MediaFetch | None


@dataclass(frozen=True)
class FlowInputs:
    """Values captured by the operator for one advance."""
    name: str | None = None
    topic: str | None = None
    question: str | None = None
    answer: str | None = None


@dataclass(frozen=True)
class FlowState:
    """Per-session driver position plus the round 3 topic carried to image steps."""
    step: GameStep = GameStep.WELCOME
    topic: str | None = None

    @property
    def is_finished(self) -> bool:
        return TRANSITIONS[self.step].next_step is None


@dataclass(frozen=True)
class PlannedAdvance:
    effect: Effect
    next_state: FlowState


def plan_advance(state: FlowState, inputs: FlowInputs) -> PlannedAdvance:
    """Decide the side effect and next state for one advance from `state`.

    Raises FlowStateError from FINALE and ValidationError when a required
    captured value (name, question text) is missing.
    """
    rule = TRANSITIONS[state.step]
    if rule.next_step is None:
        raise FlowStateError(state.step.value)

    effect: Effect = None
    topic = state.topic

    if rule.effect is EffectKind.SET_NAME:
        name = _required(inputs.name, "name")
        effect = SessionUpdate({name_field(rule.player): name})

    elif rule.effect is EffectKind.SET_ROUND_NAME:
        chosen = _clean(inputs.topic)
        effect = SessionUpdate({
            "round_name": f"Round {rule.round_number}: {chosen or rule.default_topic}",
        })
        if rule.round_number == IMAGE_ROUND:
            topic = chosen

    elif rule.effect is EffectKind.SET_QUESTION:
        question = _required(inputs.question, "question")
        effect = SessionUpdate({"q_number": rule.question_number, "q_text": question})

    elif rule.effect is EffectKind.SCORE_ANSWER:
        effect = ScoreAnswer(
            player=rule.player,
            round_number=rule.round_number,
            question_number=rule.question_number,
            verdict=parse_verdict_token(inputs.answer),
        )

    elif rule.effect is EffectKind.FETCH_IMAGE:
        effect = MediaFetch(_clean(inputs.topic) or topic or rule.default_topic)

    return PlannedAdvance(effect, replace(state, step=rule.next_step, topic=topic))


def step_order() -> list[GameStep]:
    """Steps in the order a complete game visits them."""
    order = [GameStep.WELCOME]
    while (nxt := TRANSITIONS[order[-1]].next_step) is not None:
        order.append(nxt)
    return order


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def _required(value: str | None, field: str) -> str:
    cleaned = _clean(value)
    if cleaned is None:
        raise ValidationError(f"{field} is required to advance", field)
    return cleaned


def _check_exhaustive() -> None:
    missing = [s.value for s in GameStep if s not in TRANSITIONS]
    if missing:
        raise RuntimeError(f"Game flow has no rule for: {', '.join(missing)}")
    visited = step_order()
    if len(visited) != len(GameStep) or visited[-1] is not GameStep.FINALE:
        raise RuntimeError("Game flow must visit every step once and end at finale")


_check_exhaustive()
