from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ActionKind(str, Enum):
    NONE = "none"
    START = "start"
    SWITCH = "switch"
    STOP = "stop"


@dataclass(frozen=True)
class Action:
    kind: ActionKind
    label: str | None = None

    @classmethod
    def none(cls) -> "Action":
        return cls(ActionKind.NONE)

    @classmethod
    def start(cls, label: str) -> "Action":
        return cls(ActionKind.START, label)

    @classmethod
    def switch(cls, label: str) -> "Action":
        return cls(ActionKind.SWITCH, label)

    @classmethod
    def stop(cls) -> "Action":
        return cls(ActionKind.STOP)


@dataclass
class PlayingInfo:
    label: str
    non_detection_streak: int = 0


@dataclass
class PendingInfo:
    label: str | None = None
    streak: int = 0


@dataclass
class DetectionState:
    playing: PlayingInfo | None = None
    pending: PendingInfo = field(default_factory=PendingInfo)

    @property
    def is_playing(self) -> bool:
        return self.playing is not None

    @property
    def phase(self) -> str:
        if self.playing is not None:
            return "playing"
        if self.pending.streak > 0:
            return "pending"
        return "idle"

    def reset(self) -> None:
        self.playing = None
        self.pending = PendingInfo()


def advance(result: str | None, state: DetectionState, confirm_n: int = 3, max_misses: int = 2) -> Action:
    """Apply one filtered tick result to ``state`` and return the playback action."""
    playing = state.playing
    if playing is not None:
        if result is None:
            playing.non_detection_streak += 1
            if playing.non_detection_streak >= max_misses:
                state.reset()
                return Action.stop()
            return Action.none()

        if result == playing.label:
            playing.non_detection_streak = 0
            return Action.none()

        # The switching observation already counts as confirmation #1.
        state.playing = None
        state.pending = PendingInfo(label=result, streak=1)
        return Action.switch(result)

    if result is None:
        state.pending = PendingInfo()
        return Action.none()

    if result == state.pending.label:
        streak = state.pending.streak + 1
    else:
        streak = 1

    if streak >= confirm_n:
        state.pending = PendingInfo()
        state.playing = PlayingInfo(label=result)
        return Action.start(result)

    state.pending = PendingInfo(label=result, streak=streak)
    return Action.none()


class DebounceEngine:
    def __init__(self, confirm_n: int = 3, max_misses: int = 2) -> None:
        self.confirm_n = max(1, int(confirm_n))
        self.max_misses = max(1, int(max_misses))
        self.state = DetectionState()

    @property
    def is_playing(self) -> bool:
        return self.state.is_playing

    def advance(self, result: str | None) -> Action:
        return advance(result, self.state, confirm_n=self.confirm_n, max_misses=self.max_misses)

    def complete_playback(self) -> None:
        """Natural end of playback: back to idle whatever the miss streak."""
        self.state.reset()
