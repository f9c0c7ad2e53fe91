"""Document model, edit batches, host boundary and the reference host."""

from .buffer import NoteBuffer, Transaction
from .changes import EditBatch, EditBatchError, MapMode, Span, diff_batch
from .clipboard import TEXT_PLAIN, Clipboard
from .document import Document, Line
from .state import Selection
from .sync import CommitEvent, CommitListener, EditorHost, PositionError
from .undo import UndoEntry, UndoTimeline
from .validation import clamp_offset, ensure_line_number, ensure_offset

__all__ = [
    "Document",
    "Line",
    "Selection",
    "EditBatch",
    "EditBatchError",
    "MapMode",
    "Span",
    "diff_batch",
    "CommitEvent",
    "CommitListener",
    "EditorHost",
    "PositionError",
    "Clipboard",
    "TEXT_PLAIN",
    "UndoEntry",
    "UndoTimeline",
    "NoteBuffer",
    "Transaction",
    "clamp_offset",
    "ensure_line_number",
    "ensure_offset",
]
