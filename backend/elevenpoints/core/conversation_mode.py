"""Conversation Mode Controller: microphone gating from host speaking/listening signals.

Invariants:
    - Initial state is muted (capture disabled) until the host first listens
    - listening → unmuted, speaking → muted; any other signal is ignored
    - Repeating a signal is a no-op on observable state
    - Independent of the session row: reacts only to the signal stream
"""

from dataclasses import dataclass

from elevenpoints.core.domain_types import ModeSignal


def parse_mode_signal(raw: str | None) -> ModeSignal | None:
    """Map a raw mode string to a known signal; unknown values map to None."""
    try:
        return ModeSignal(raw)
    except ValueError:
        return None


def next_muted(muted: bool, signal: ModeSignal | None) -> bool:
    """Pure transition: returns the new muted flag."""
    if signal is ModeSignal.LISTENING:
        return False
    if signal is ModeSignal.SPEAKING:
        return True
    return muted


@dataclass
class ConversationModeController:
    """Two-state machine {muted, unmuted} driven by mode signals."""
    muted: bool = True
    last_signal: ModeSignal | None = None

    @property
    def capture_enabled(self) -> bool:
        return not self.muted

    def apply(self, raw_signal: str | ModeSignal | None) -> bool:
        """Apply one signal and return the capture-enabled flag."""
        signal = (
            raw_signal if isinstance(raw_signal, ModeSignal)
            else parse_mode_signal(raw_signal)
        )
        self.muted = next_muted(self.muted, signal)
        if signal is not None:
            self.last_signal = signal
        return self.capture_enabled
