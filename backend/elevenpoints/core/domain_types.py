"""Domain Types: rich types that replace bare primitives across the codebase.

Invariants:
    - Question numbers are 1..6; question n belongs to player1 if n is odd, player2 if even
    - Round r covers questions 2r-1 (player1) and 2r (player2)
    - All valid states encoded as Enums, no raw string matching in domain logic

Design Decisions:
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum


# ─── Constants ───────────────────────────────────────────────────

MAX_QUESTION_NUMBER = 6
ROUND_NUMBERS = (1, 2, 3)
IMAGE_ROUND = 3
SESSION_ID_LENGTH = 8
SESSION_ID_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789"


# ─── Enums ───────────────────────────────────────────────────────

class Player(str, Enum):
    """Contestant identity as it appears on the wire."""
    PLAYER1 = "player1"
    PLAYER2 = "player2"

    @property
    def prefix(self) -> str:
        """Column prefix used by the session row (p1 / p2)."""
        return "p1" if self is Player.PLAYER1 else "p2"


class Verdict(str, Enum):
    """Classification of a player's answer."""
    CORRECT = "correct"
    INCORRECT = "incorrect"
    UNANSWERED = "unanswered"


class ModeSignal(str, Enum):
    """Conversational host activity reported by the voice connection."""
    SPEAKING = "speaking"
    LISTENING = "listening"


class ConnectionStatus(str, Enum):
    """Live-mode host connection lifecycle."""
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ENDED = "ended"
    ERROR = "error"


class FinaleOutcome(str, Enum):
    PLAYER1 = "player1"
    PLAYER2 = "player2"
    TIE = "tie"


# ─── Helpers ─────────────────────────────────────────────────────

def player_for_question(question_number: int) -> Player:
    """Parity rule: odd questions belong to player1, even to player2."""
    return Player.PLAYER1 if question_number % 2 == 1 else Player.PLAYER2


def round_for_question(question_number: int) -> int:
    """Round that owns a global question index (1-2 → 1, 3-4 → 2, 5-6 → 3)."""
    return (question_number + 1) // 2


def round_score_field(player: Player, round_number: int) -> str:
    return f"{player.prefix}_round{round_number}_score"


def total_score_field(player: Player) -> str:
    return f"{player.prefix}_score"


def name_field(player: Player) -> str:
    return f"{player.prefix}_name"
