"""Capture session lifecycle: STOPPED -> CONFIGURING -> RUNNING -> STOPPED."""
from __future__ import annotations

import logging
import threading
from enum import Enum


class SessionState(str, Enum):
    STOPPED = "STOPPED"
    CONFIGURING = "CONFIGURING"
    RUNNING = "RUNNING"


class InvalidTransition(RuntimeError):
    pass


# event -> (states it may fire from, resulting state)
TRANSITIONS = {
    "request_start": ({SessionState.STOPPED}, SessionState.CONFIGURING),
    "mark_running": ({SessionState.CONFIGURING}, SessionState.RUNNING),
    "mark_failed": ({SessionState.CONFIGURING}, SessionState.STOPPED),
    "mark_stopped": ({SessionState.RUNNING}, SessionState.STOPPED),
}


class SessionStateMachine:
    def __init__(self):
        self._state = SessionState.STOPPED
        self._lock = threading.Lock()

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    def is_running(self) -> bool:
        return self.state is SessionState.RUNNING

    def _fire(self, event: str) -> SessionState:
        allowed, target = TRANSITIONS[event]
        with self._lock:
            if self._state not in allowed:
                raise InvalidTransition(f"{event}: cannot go {self._state.value} -> {target.value}")
            previous, self._state = self._state, target
        logging.debug("[SESSION] %s: %s -> %s", event, previous.value, target.value)
        return target

    def request_start(self) -> SessionState:
        return self._fire("request_start")

    def mark_running(self) -> SessionState:
        return self._fire("mark_running")

    def mark_failed(self) -> SessionState:
        return self._fire("mark_failed")

    def mark_stopped(self) -> SessionState:
        return self._fire("mark_stopped")
