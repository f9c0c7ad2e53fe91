"""Minimal Textual adapter that wires EditorSession events into UI callbacks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from mdnote_engine.annotations import AnnotationSet
from mdnote_engine.commands import CommandResult, KeyInput
from mdnote_engine.document import Selection
from mdnote_engine.session import EditorSession


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass(frozen=True, slots=True)
class EditorSnapshot:
    """What the UI renders after each key."""

    text: str
    selection: Selection
    annotations: AnnotationSet
    version: int = 0


@dataclass(slots=True)
class TextualUIHooks:
    """Callbacks invoked by the adapter to update Textual widgets."""

    update_buffer: Callable[[EditorSnapshot], None]
    update_status: Callable[[str], None] = _noop
    handle_event: Callable[[str, object | None], None] = _noop
    log: Callable[[str], None] = _noop


SESSION_EVENTS = (
    "blocks.repaired",
    "indent.restored",
    "annotations.updated",
)


class TextualNoteAdapter:
    """Bridges EditorSession + bus events to a Textual-friendly surface.

    Keys no binding consumes get the plain editor behaviour here (typing,
    newline, backspace and cursor movement), so the demo works without a
    real text area.
    """

    def __init__(self, session: EditorSession, hooks: TextualUIHooks) -> None:
        self.session = session
        self.hooks = hooks
        self._unsubscribers: List[Callable[[], None]] = []
        self._subscribe_events()
        self._refresh_buffer()

    def handle_textual_key(
        self,
        key: str,
        *,
        text: Optional[str] = None,
        modifiers: Iterable[str] = (),
    ) -> CommandResult:
        """Translate a Textual key event into a KeyInput and dispatch it."""

        normalized_modifiers = tuple(str(mod).lower() for mod in modifiers)
        self._log_state("key ->", key=key, text=text, mods=normalized_modifiers)
        result = self.session.handle_key(
            KeyInput(key=key, modifiers=normalized_modifiers, text=text)
        )
        if not result.consumed:
            result = self._default_key(key, text, normalized_modifiers)
        self.session.tick()
        self._after_result(result)
        self._log_state(
            "result <-",
            consumed=result.consumed,
            status=result.status,
            message=result.message,
        )
        return result

    def paste(self, payload: str) -> None:
        self.session.paste(payload)
        self.session.tick()
        self._refresh_buffer()

    def copy(self) -> str:
        return self.session.copy()

    def undo(self) -> None:
        self.session.undo()
        self._refresh_buffer()

    def redo(self) -> None:
        self.session.redo()
        self._refresh_buffer()

    def process_timers(self) -> List[str]:
        """Run due session callbacks and surface the outcome to the UI."""

        ran = self.session.tick()
        for key in ran:
            self._log_state("timer ->", key=key)
        if ran:
            self._refresh_buffer()
        return ran

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        self.session.close()

    def _default_key(
        self, key: str, text: Optional[str], modifiers: tuple[str, ...]
    ) -> CommandResult:
        host = self.session.host
        selection = host.selection
        if key == "Enter":
            self.session.type_text("\n")
        elif key == "Backspace":
            if not selection.empty:
                self.session.delete(selection.start, selection.end)
            elif selection.head > 0:
                self.session.delete(
                    selection.head - 1, selection.head, user_event="delete.backward"
                )
        elif key == "ArrowLeft":
            host.set_selection(Selection.cursor(max(0, selection.head - 1)))
        elif key == "ArrowRight":
            host.set_selection(
                Selection.cursor(min(host.doc_length, selection.head + 1))
            )
        elif text and len(text) == 1 and text.isprintable() and "ctrl" not in modifiers:
            self.session.type_text(text)
        else:
            return CommandResult.passthrough()
        return CommandResult(consumed=True, status="default")

    def _after_result(self, result: CommandResult) -> None:
        status = result.message or result.status
        if status:
            self.hooks.update_status(status)
        self._refresh_buffer()

    def _subscribe_events(self) -> None:
        bus = self.session.bus
        for event in SESSION_EVENTS:
            self._unsubscribers.append(
                bus.subscribe(
                    event, lambda payload, name=event: self._handle_event(name, payload)
                )
            )

    def _handle_event(self, name: str, payload: object | None) -> None:
        self._log_state("event ->", event=name)
        self.hooks.handle_event(name, payload)
        if name == "blocks.repaired":
            self.hooks.update_status(name)

    def _refresh_buffer(self) -> None:
        host = self.session.host
        snapshot = EditorSnapshot(
            text=host.document.text,
            selection=host.selection,
            annotations=self.session.annotations,
            version=getattr(host, "version", 0),
        )
        self.hooks.update_buffer(snapshot)

    def _log_state(self, prefix: str, **fields: object) -> None:
        snapshot = self._state_metadata()
        snapshot.update({k: v for k, v in fields.items() if v is not None})
        parts = [prefix]
        for key, value in snapshot.items():
            parts.append(f"{key}={value!r}")
        self.hooks.log(" ".join(parts))

    def _state_metadata(self) -> Dict[str, object]:
        host = self.session.host
        return {
            "cursor": host.selection.head,
            "anchor": host.selection.anchor,
            "length": host.doc_length,
            "pending": self.session.scheduler.pending_keys(),
            "guard": self.session.dispatch_guard.state.value,
        }


__all__ = ["EditorSnapshot", "TextualNoteAdapter", "TextualUIHooks"]
