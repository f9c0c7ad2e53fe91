"""Completing an opening fence inserts its closing partner."""

from __future__ import annotations

from typing import Optional

from mdnote_engine.document.changes import EditBatch
from mdnote_engine.document.document import Document
from mdnote_engine.document.state import Selection

from .fences import FenceKind, count_preceding_fences, is_inside_block

_KIND_BY_CHAR = {kind.delimiter: kind for kind in FenceKind}


def autoclose_fence(
    document: Document, start: int, text: str, end: Optional[int] = None
) -> Optional[EditBatch]:
    """Batch for typing ``text`` over ``[start, end)``, or ``None`` to type normally.

    Fires when the typed character is the third delimiter at the start of a
    line and the fences above are balanced, so the new fence opens a block.
    """

    kind = _KIND_BY_CHAR.get(text)
    if kind is None:
        return None
    stop = start if end is None else end
    line = document.line_at(start)
    if start != line.start + 2 or not line.text.startswith(kind.delimiter * 2):
        return None
    if stop > line.end:
        return None
    if kind is FenceKind.CODE and is_inside_block(document, start, FenceKind.PROMPT):
        return None
    if count_preceding_fences(document, line.number, kind) % 2:
        return None

    insert = kind.delimiter + "\n\n" + kind.token
    if line.number == document.line_count:
        insert += "\n"
    return EditBatch.replace_range(
        start,
        stop,
        insert,
        document.length,
        selection=Selection.cursor(start + 2),
        user_event="input.type",
    )


__all__ = ["autoclose_fence"]
