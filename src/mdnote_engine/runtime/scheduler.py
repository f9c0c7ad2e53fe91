"""Cooperative deferred-callback scheduler.

Stands in for the host's microtask / animation-frame queue. Callbacks are keyed:
scheduling a key that is already pending replaces it, so bursts of edits
coalesce into one run. Nothing runs until the host pumps ``run_pending`` (or a
test calls ``flush``).
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from mdnote_engine.runtime import telemetry


@dataclass
class PendingCallback:
    key: str
    deadline: float
    delay_ms: int
    generation: int
    callback: Callable[[], None]


class Scheduler:
    """Owns the pending callbacks of one editing session."""

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._pending: Dict[str, PendingCallback] = {}
        self._generation = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def pending_keys(self) -> tuple[str, ...]:
        return tuple(self._pending)

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    def schedule(
        self, key: str, callback: Callable[[], None], *, delay_ms: int = 0
    ) -> None:
        if self._closed:
            return
        self._generation += 1
        self._pending[key] = PendingCallback(
            key=key,
            deadline=self._clock() + delay_ms / 1000.0,
            delay_ms=delay_ms,
            generation=self._generation,
            callback=callback,
        )

    def cancel(self, key: str) -> bool:
        return self._pending.pop(key, None) is not None

    def cancel_all(self) -> None:
        self._pending.clear()

    def close(self) -> None:
        self.cancel_all()
        self._closed = True

    def run_pending(self, *, now: Optional[float] = None) -> List[str]:
        """Run every callback whose deadline has passed; return their keys."""

        current = self._clock() if now is None else now
        due = sorted(
            (entry for entry in self._pending.values() if entry.deadline <= current),
            key=lambda entry: (entry.deadline, entry.generation),
        )
        return self._run(due)

    def flush(self) -> List[str]:
        """Run everything pending regardless of deadline, including follow-ups."""

        ran: List[str] = []
        while self._pending and not self._closed:
            batch = sorted(
                self._pending.values(),
                key=lambda entry: (entry.deadline, entry.generation),
            )
            ran.extend(self._run(batch))
        return ran

    def _run(self, entries: List[PendingCallback]) -> List[str]:
        ran: List[str] = []
        for entry in entries:
            current = self._pending.get(entry.key)
            if current is None or current.generation != entry.generation:
                continue
            del self._pending[entry.key]
            with telemetry.span(
                f"scheduler::{entry.key}",
                component="scheduler",
                metadata={"delay_ms": entry.delay_ms},
            ):
                entry.callback()
            ran.append(entry.key)
            if self._closed:
                break
        return ran


__all__ = ["PendingCallback", "Scheduler"]
