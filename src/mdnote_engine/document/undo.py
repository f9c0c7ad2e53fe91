"""Linear undo/redo history kept as before/after text pairs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from .state import Selection


@dataclass(slots=True)
class UndoEntry:
    label: str
    before_text: str
    after_text: str
    selection_before: Selection
    selection_after: Selection


class UndoTimeline:
    """Linear history; pushing after an undo discards the redo branch."""

    def __init__(self) -> None:
        self._entries: List[UndoEntry] = []
        self._index: int = -1

    def __len__(self) -> int:
        return len(self._entries)

    def push(self, entry: UndoEntry) -> None:
        if self._index < len(self._entries) - 1:
            self._entries = self._entries[: self._index + 1]
        self._entries.append(entry)
        self._index = len(self._entries) - 1

    def amend(self, after_text: str, selection_after: Selection) -> bool:
        """Fold a follow-up correction into the newest entry."""

        if self._index < 0 or self._index != len(self._entries) - 1:
            return False
        entry = self._entries[self._index]
        entry.after_text = after_text
        entry.selection_after = selection_after
        return True

    def can_undo(self) -> bool:
        return self._index >= 0

    def can_redo(self) -> bool:
        return self._index < len(self._entries) - 1

    def undo(self) -> Optional[UndoEntry]:
        if not self.can_undo():
            return None
        entry = self._entries[self._index]
        self._index -= 1
        return entry

    def redo(self) -> Optional[UndoEntry]:
        if not self.can_redo():
            return None
        self._index += 1
        return self._entries[self._index]


__all__ = ["UndoEntry", "UndoTimeline"]
