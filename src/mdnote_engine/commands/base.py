"""Shared types for key-driven editing commands."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from mdnote_engine.config import DEFAULT_CONFIG, EngineConfig
from mdnote_engine.document.changes import EditBatch
from mdnote_engine.document.document import Document, Line
from mdnote_engine.document.state import Selection
from mdnote_engine.lists.indent_store import ListIndentStore


@dataclass(slots=True)
class KeyInput:
    """Normalized key event handed to the session."""

    key: str
    modifiers: Tuple[str, ...] = ()
    text: Optional[str] = None


@dataclass(slots=True)
class CommandResult:
    """Outcome of a command.

    ``consumed=False`` lets the next candidate binding (and finally the host's
    default handling) see the key. A consumed result may carry a ``batch`` to
    dispatch or a bare ``selection`` move.
    """

    consumed: bool
    status: str = "ok"
    message: Optional[str] = None
    batch: Optional[EditBatch] = None
    selection: Optional[Selection] = None

    @classmethod
    def passthrough(cls) -> "CommandResult":
        return cls(consumed=False, status="passthrough")

    @classmethod
    def noop(cls, message: Optional[str] = None) -> "CommandResult":
        return cls(consumed=True, status="noop", message=message)


class EventBus:
    """Minimal event bus the session uses to publish structured signals."""

    def __init__(self) -> None:
        self._subscribers: Dict[str, List[Callable[[object], None]]] = {}

    def subscribe(
        self, event: str, callback: Callable[[object], None]
    ) -> Callable[[], None]:
        self._subscribers.setdefault(event, []).append(callback)

        def unsubscribe() -> None:
            callbacks = self._subscribers.get(event, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def emit(self, event: str, payload: object | None = None) -> None:
        for callback in list(self._subscribers.get(event, [])):
            callback(payload)


@dataclass(slots=True)
class CommandContext:
    """Read-only view of the session a command works against."""

    document: Document
    selection: Selection
    store: ListIndentStore
    bus: EventBus
    config: EngineConfig = DEFAULT_CONFIG
    extras: Dict[str, object] = field(default_factory=dict)

    @property
    def head_line(self) -> Line:
        return self.document.line_at(self.selection.head)

    def level(self, number: int) -> int:
        return self.store.level_or_zero(self.document, number)


__all__ = ["CommandContext", "CommandResult", "EventBus", "KeyInput"]
