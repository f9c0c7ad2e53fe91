"""Host boundary types: what the engine consumes from a text-editing host."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional, Protocol

if TYPE_CHECKING:
    from .changes import EditBatch
    from .document import Document, Line
    from .state import Selection


class PositionError(IndexError):
    """Raised for offsets or line numbers outside the current document."""

    def __init__(self, message: str, *, position: int | None = None) -> None:
        super().__init__(message)
        self.position = position


@dataclass(frozen=True, slots=True)
class CommitEvent:
    """Notification fired by the host after a batch has been applied."""

    batch: "EditBatch"
    before: "Document"
    after: "Document"


CommitListener = Callable[[CommitEvent], None]


class EditorHost(Protocol):
    """Everything the annotation engine needs from the editing host."""

    @property
    def document(self) -> "Document":
        """The committed document."""
        ...

    @property
    def doc_length(self) -> int: ...

    @property
    def doc_lines(self) -> int: ...

    @property
    def selection(self) -> "Selection": ...

    def set_selection(self, selection: "Selection") -> None: ...

    def read_line(self, number: int) -> "Line": ...

    def line_at(self, offset: int) -> "Line": ...

    def apply_edit_batch(self, batch: "EditBatch") -> CommitEvent:
        """Commit ``batch`` and notify subscribers."""
        ...

    def subscribe(self, listener: CommitListener) -> Callable[[], None]:
        """Register a commit listener; the returned callable unsubscribes it."""
        ...

    def clipboard_read(self, mime: str = "text/plain") -> Optional[str]: ...

    def clipboard_write(self, text: str, mime: str = "text/plain") -> None: ...

    def undo(self) -> Optional[CommitEvent]: ...

    def redo(self) -> Optional[CommitEvent]: ...


__all__ = ["CommitEvent", "CommitListener", "EditorHost", "PositionError"]
