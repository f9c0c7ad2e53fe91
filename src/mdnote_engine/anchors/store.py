"""Offset-keyed state that survives edits by remapping through every batch."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Generic, Iterable, Iterator, List, Optional, Tuple, TypeVar

from mdnote_engine.document.changes import EditBatch, MapMode

V = TypeVar("V")


@dataclass(frozen=True, slots=True)
class Anchor:
    """A tracked offset; ``assoc`` picks the side of insertions exactly at it."""

    pos: int
    assoc: int = -1


class AnchorStore(Generic[V]):
    """Map of anchors to values, kept in document order.

    Feature stores (indent levels, snapshot anchors) are typed views over one
    of these; none of them implement remapping themselves.
    """

    def __init__(self, *, mode: MapMode = MapMode.TRACK_DEL, assoc: int = -1) -> None:
        self.mode = mode
        self.default_assoc = assoc
        self._entries: Dict[int, Tuple[Anchor, V]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, pos: object) -> bool:
        return pos in self._entries

    def __iter__(self) -> Iterator[int]:
        return iter(self.positions())

    def set(self, pos: int, value: V, *, assoc: Optional[int] = None) -> Anchor:
        if pos < 0:
            raise ValueError(f"Anchor position must be >= 0, got {pos}")
        anchor = Anchor(pos=pos, assoc=self.default_assoc if assoc is None else assoc)
        self._entries[pos] = (anchor, value)
        return anchor

    def get(self, pos: int, default: Optional[V] = None) -> Optional[V]:
        entry = self._entries.get(pos)
        if entry is None:
            return default
        return entry[1]

    def anchor(self, pos: int) -> Optional[Anchor]:
        entry = self._entries.get(pos)
        return None if entry is None else entry[0]

    def pop(self, pos: int, default: Optional[V] = None) -> Optional[V]:
        entry = self._entries.pop(pos, None)
        if entry is None:
            return default
        return entry[1]

    def positions(self) -> List[int]:
        return sorted(self._entries)

    def items(self) -> List[Tuple[int, V]]:
        return [(pos, self._entries[pos][1]) for pos in self.positions()]

    def clear(self) -> None:
        self._entries.clear()

    def replace_all(self, entries: Iterable[Tuple[int, V]]) -> None:
        self._entries.clear()
        for pos, value in entries:
            self.set(pos, value)

    def remap(self, batch: EditBatch, new_length: Optional[int] = None) -> int:
        """Move every anchor through ``batch``; returns how many were dropped."""

        if not batch.spans:
            return 0
        limit = batch.new_length if new_length is None else new_length
        remapped: Dict[int, Tuple[Anchor, V]] = {}
        dropped = 0
        for pos in sorted(self._entries):
            anchor, value = self._entries[pos]
            moved = batch.map_pos(anchor.pos, anchor.assoc, self.mode)
            if moved is None or moved < 0 or moved > limit:
                dropped += 1
                continue
            if moved in remapped:
                dropped += 1
            remapped[moved] = (Anchor(pos=moved, assoc=anchor.assoc), value)
        self._entries = remapped
        return dropped


__all__ = ["Anchor", "AnchorStore"]
