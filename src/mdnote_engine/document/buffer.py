"""Reference in-memory host: document, selection, clipboard and undo history."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Callable, ContextManager, List, Optional

from mdnote_engine.runtime import telemetry

from .changes import EditBatch, EditBatchError, diff_batch
from .clipboard import TEXT_PLAIN, Clipboard
from .document import Document, Line
from .state import Selection
from .sync import CommitEvent, CommitListener
from .undo import UndoEntry, UndoTimeline
from .validation import ensure_line_number, ensure_offset


class NoteBuffer:
    """Minimal text-editing host implementing ``EditorHost``.

    Real hosts (a browser editor, a TUI widget) provide the same surface; this
    one backs the test-suite and the Textual demo.
    """

    def __init__(
        self,
        *,
        name: str = "default",
        document: Optional[Document] = None,
        selection: Optional[Selection] = None,
        clipboard: Optional[Clipboard] = None,
        undo: Optional[UndoTimeline] = None,
    ) -> None:
        self.name = name
        self._document = document or Document()
        self._selection = (selection or Selection.cursor(0)).clamp(
            self._document.length
        )
        self.clipboard = clipboard or Clipboard()
        self.history = undo or UndoTimeline()
        self._listeners: List[CommitListener] = []
        self.version = 0

    @classmethod
    def from_text(
        cls, text: str, *, cursor: Optional[int] = None, name: str = "default"
    ) -> "NoteBuffer":
        document = Document.from_text(text)
        offset = document.length if cursor is None else cursor
        return cls(name=name, document=document, selection=Selection.cursor(offset))

    @property
    def document(self) -> Document:
        return self._document

    @property
    def text(self) -> str:
        return self._document.text

    @property
    def doc_length(self) -> int:
        return self._document.length

    @property
    def doc_lines(self) -> int:
        return self._document.line_count

    @property
    def selection(self) -> Selection:
        return self._selection

    def set_selection(self, selection: Selection) -> None:
        ensure_offset(self._document, selection.anchor)
        ensure_offset(self._document, selection.head)
        self._selection = selection

    def read_line(self, number: int) -> Line:
        ensure_line_number(self._document, number)
        return self._document.line(number)

    def line_at(self, offset: int) -> Line:
        return self._document.line_at(offset)

    def subscribe(self, listener: CommitListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def apply_edit_batch(self, batch: EditBatch) -> CommitEvent:
        if batch.doc_length != self._document.length:
            raise EditBatchError(
                f"Batch built for length {batch.doc_length}, "
                f"document has {self._document.length}"
            )
        with Transaction(
            self, batch.user_event or "edit", join=batch.join_history
        ) as tx:
            before = self._document
            selection_before = self._selection
            after = Document.from_text(batch.apply(before.text)) if batch.spans else before
            self._document = after
            self._selection = self._next_selection(batch, after)
            if batch.doc_changed:
                self.version += 1
                if batch.add_to_history:
                    tx.record(before.text, after.text, selection_before, self._selection)
            event = CommitEvent(batch=batch, before=before, after=after)
        self._notify(event)
        return event

    def undo(self) -> Optional[CommitEvent]:
        entry = self.history.undo()
        if entry is None:
            return None
        batch = diff_batch(
            self.text,
            entry.before_text,
            user_event="undo",
            add_to_history=False,
            selection=entry.selection_before.clamp(len(entry.before_text)),
        )
        return self.apply_edit_batch(batch)

    def redo(self) -> Optional[CommitEvent]:
        entry = self.history.redo()
        if entry is None:
            return None
        batch = diff_batch(
            self.text,
            entry.after_text,
            user_event="redo",
            add_to_history=False,
            selection=entry.selection_after.clamp(len(entry.after_text)),
        )
        return self.apply_edit_batch(batch)

    def clipboard_read(self, mime: str = TEXT_PLAIN) -> Optional[str]:
        return self.clipboard.read(mime)

    def clipboard_write(self, text: str, mime: str = TEXT_PLAIN) -> None:
        self.clipboard.write(text, mime)

    def _next_selection(self, batch: EditBatch, after: Document) -> Selection:
        if batch.selection is not None:
            return batch.selection.clamp(after.length)
        anchor = batch.map_pos(self._selection.anchor, -1)
        head = batch.map_pos(self._selection.head, -1)
        return Selection(
            anchor=after.length if anchor is None else anchor,
            head=after.length if head is None else head,
        ).clamp(after.length)

    def _notify(self, event: CommitEvent) -> None:
        for listener in list(self._listeners):
            listener(event)


class Transaction(AbstractContextManager["Transaction"]):
    """Wraps one commit in a telemetry span and records its undo entry."""

    def __init__(self, buffer: NoteBuffer, label: str, *, join: bool = False) -> None:
        self.buffer = buffer
        self.label = label
        self._join = join
        self._span_cm: Optional[ContextManager[object]] = None

    def __enter__(self) -> "Transaction":
        self._span_cm = telemetry.span(
            name=f"buffer::{self.label}",
            component="buffer",
            metadata={"buffer": self.buffer.name},
        )
        self._span_cm.__enter__()
        return self

    def record(
        self,
        before_text: str,
        after_text: str,
        selection_before: Selection,
        selection_after: Selection,
    ) -> None:
        if self._join and self.buffer.history.amend(after_text, selection_after):
            return
        self.buffer.history.push(
            UndoEntry(
                label=self.label,
                before_text=before_text,
                after_text=after_text,
                selection_before=selection_before,
                selection_after=selection_after,
            )
        )

    def __exit__(self, exc_type, exc, tb) -> bool:
        if self._span_cm is not None:
            self._span_cm.__exit__(exc_type, exc, tb)
        return False


__all__ = ["NoteBuffer", "Transaction"]
