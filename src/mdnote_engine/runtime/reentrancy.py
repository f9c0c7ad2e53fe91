"""Dispatch guard state machine (``Idle -> Repairing | Rebuilding -> Idle``)."""

from __future__ import annotations

from contextlib import contextmanager
from enum import Enum
from typing import Iterator, List


class GuardState(str, Enum):
    IDLE = "idle"
    REPAIRING = "repairing"
    REBUILDING = "rebuilding"


class DispatchGuard:
    """Stack of active states around the session's single dispatch entry point.

    The corruption guard only inspects batches while the stack is empty.
    """

    def __init__(self) -> None:
        self._stack: List[GuardState] = []

    @property
    def state(self) -> GuardState:
        return self._stack[-1] if self._stack else GuardState.IDLE

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def idle(self) -> bool:
        return not self._stack

    def suppresses_guard(self) -> bool:
        return any(
            state in (GuardState.REPAIRING, GuardState.REBUILDING)
            for state in self._stack
        )

    @contextmanager
    def enter(self, state: GuardState) -> Iterator[GuardState]:
        if state is GuardState.IDLE:
            raise ValueError("cannot enter the idle state explicitly")
        self._stack.append(state)
        try:
            yield state
        finally:
            self._stack.pop()

    def repairing(self):
        return self.enter(GuardState.REPAIRING)

    def rebuilding(self):
        return self.enter(GuardState.REBUILDING)


__all__ = ["DispatchGuard", "GuardState"]
