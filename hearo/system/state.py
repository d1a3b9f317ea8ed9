"""Monitor state machine and the explicit application state."""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from hearo.system.errors import InvalidTransition
from hearo.system.history import HistoryStore


class MonitorState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    CAPTURING = "capturing"
    CLASSIFYING = "classifying"
    DISPATCHING = "dispatching"
    STOPPED = "stopped"


# STOPPED is reachable from every state and is handled separately.
TRANSITIONS: Dict[MonitorState, FrozenSet[MonitorState]] = {
    MonitorState.IDLE: frozenset({MonitorState.LISTENING}),
    MonitorState.LISTENING: frozenset({MonitorState.CAPTURING}),
    MonitorState.CAPTURING: frozenset({MonitorState.CLASSIFYING, MonitorState.DISPATCHING}),
    MonitorState.CLASSIFYING: frozenset({MonitorState.DISPATCHING}),
    MonitorState.DISPATCHING: frozenset({MonitorState.LISTENING}),
    MonitorState.STOPPED: frozenset(),
}


class StateMachine:
    def __init__(self, initial: MonitorState = MonitorState.IDLE, keep: int = 256) -> None:
        self._state = initial
        self._lock = threading.Lock()
        self._keep = keep
        self.trail: List[MonitorState] = [initial]

    @property
    def state(self) -> MonitorState:
        return self._state

    def can(self, target: MonitorState) -> bool:
        if target is MonitorState.STOPPED:
            return True
        return target in TRANSITIONS[self._state]

    def transition(self, target: MonitorState) -> None:
        with self._lock:
            if not self.can(target):
                raise InvalidTransition(f"{self._state.value} -> {target.value}")
            self._set(target)

    def recover(self, target: MonitorState = MonitorState.LISTENING) -> None:
        """Return to *target* after a failed window, unless already stopped."""
        with self._lock:
            if self._state is not MonitorState.STOPPED:
                self._set(target)

    def _set(self, target: MonitorState) -> None:
        self._state = target
        self.trail.append(target)
        if len(self.trail) > self._keep:
            del self.trail[: len(self.trail) - self._keep]


class Screen(str, Enum):
    HOME = "home"
    SETTINGS = "settings"
    EMERGENCY = "emergency"


@dataclass
class AppState:
    """State the views read; passed explicitly instead of living in globals."""

    history: HistoryStore = field(default_factory=HistoryStore)
    screen: Screen = Screen.HOME
    listening: bool = False
    processing: int = 0
    audio_level: int = 0
    backends: FrozenSet[str] = frozenset()
    last_error: Optional[str] = None

    def show(self, screen: Screen | str) -> None:
        self.screen = Screen(screen)
