"""Per-list-line indent levels kept out of band, anchored at line starts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, Dict, Iterable, Mapping, Optional, Tuple

from mdnote_engine.anchors.store import AnchorStore
from mdnote_engine.config import DEFAULT_CONFIG, EngineConfig
from mdnote_engine.document.changes import EditBatch, MapMode
from mdnote_engine.document.document import Document
from mdnote_engine.runtime import telemetry

from .markers import is_list_line, literal_steps

LOGGER_NAME = "mdnote_engine.lists"


@dataclass(frozen=True, slots=True)
class IndentEntry:
    """Level of one list line plus the literal indent steps it had at last sync."""

    level: int
    literal_steps: int = 0


@dataclass(frozen=True, slots=True)
class SetIndentLevel:
    """Effect: set the level of a (post-edit) line number."""

    line: int
    level: int


@dataclass(frozen=True, slots=True)
class RestoreIndentLevels:
    """Effect: replace every level at once; list lines not named get defaults."""

    levels: Tuple[Tuple[int, int], ...]

    @classmethod
    def of(cls, levels: Mapping[int, int]) -> "RestoreIndentLevels":
        return cls(levels=tuple(sorted(levels.items())))

    def as_dict(self) -> Dict[int, int]:
        return dict(self.levels)


class ListIndentStore:
    """Typed view over an ``AnchorStore`` holding one ``IndentEntry`` per list line.

    Anchors sit at line starts with right bias. After each remap an anchor that
    ended up inside its line (text inserted or rewritten at the line start)
    snaps back to that line's start; an anchor already sitting exactly on a
    line start wins over a snapped one.
    """

    def __init__(self, config: EngineConfig = DEFAULT_CONFIG) -> None:
        self.config = config
        self._anchors: AnchorStore[IndentEntry] = AnchorStore(
            mode=MapMode.TRACK_DEL, assoc=1
        )

    def __len__(self) -> int:
        return len(self._anchors)

    def load(self, document: Document) -> None:
        """Rebuild from scratch for a freshly opened document (levels = literal steps)."""

        self._anchors.clear()
        self.restore(document, {})

    def entry_at(self, offset: int) -> Optional[IndentEntry]:
        return self._anchors.get(offset)

    def level(self, document: Document, number: int) -> Optional[int]:
        line = document.line(number)
        entry = self._anchors.get(line.start)
        return None if entry is None else entry.level

    def level_or_zero(self, document: Document, number: int) -> int:
        value = self.level(document, number)
        return 0 if value is None else value

    def levels(self, document: Document) -> Dict[int, int]:
        """Line number -> level for every tracked list line."""

        result: Dict[int, int] = {}
        for pos, entry in self._anchors.items():
            line = document.line_at(pos)
            if line.start == pos:
                result[line.number] = entry.level
        return result

    def anchored_levels(self, document: Document) -> Dict[int, Tuple[int, int]]:
        """Line number -> (anchor offset, level)."""

        return {
            number: (document.line(number).start, level)
            for number, level in self.levels(document).items()
        }

    def apply(self, batch: EditBatch, document: Document) -> None:
        """Bring the store up to date with a committed batch.

        ``document`` is the post-edit document; effect line numbers refer to it.
        """

        with telemetry.span(
            "lists::indent_sync",
            logger_name=LOGGER_NAME,
            metadata={"spans": len(batch.spans), "effects": len(batch.effects)},
        ):
            self._anchors.remap(batch, document.length)
            self.reconcile(document)
            for effect in batch.effects:
                if isinstance(effect, RestoreIndentLevels):
                    self.restore(document, effect.as_dict())
                elif isinstance(effect, SetIndentLevel):
                    self.set_level(document, effect.line, effect.level)

    def set_level(self, document: Document, number: int, level: int) -> bool:
        if number < 1 or number > document.line_count:
            telemetry.skipped(
                "set_level line out of range", logger_name=LOGGER_NAME, line=number
            )
            return False
        line = document.line(number)
        if not is_list_line(line.text):
            return False
        steps = literal_steps(line.text, self.config.indent_width)
        self._anchors.set(line.start, IndentEntry(max(0, level), steps))
        return True

    def restore(self, document: Document, levels: Mapping[int, int]) -> None:
        entries = []
        for line in document.lines():
            if not is_list_line(line.text):
                continue
            steps = literal_steps(line.text, self.config.indent_width)
            level = levels.get(line.number, steps)
            entries.append((line.start, IndentEntry(max(0, level), steps)))
        self._anchors.replace_all(entries)

    def reconcile(self, document: Document) -> None:
        """Prune entries off list lines, snap displaced anchors, add missing ones."""

        exact: Dict[int, IndentEntry] = {}
        snapped: Dict[int, IndentEntry] = {}
        for pos, entry in self._anchors.items():
            line = document.line_at(min(pos, document.length))
            if not is_list_line(line.text):
                continue
            if pos == line.start:
                exact[line.start] = entry
            else:
                snapped.setdefault(line.start, entry)

        entries: Dict[int, IndentEntry] = {}
        previous: Optional[IndentEntry] = None
        pending: list[int] = []
        for line in document.lines():
            if not is_list_line(line.text):
                previous = None
                continue
            steps = literal_steps(line.text, self.config.indent_width)
            entry = exact.get(line.start) or snapped.get(line.start)
            if entry is None:
                if steps > 0:
                    entry = IndentEntry(steps, steps)
                elif previous is not None:
                    entry = IndentEntry(previous.level, steps)
                else:
                    pending.append(line.start)
                    entry = IndentEntry(0, steps)
            elif entry.literal_steps != steps:
                entry = IndentEntry(
                    max(0, entry.level + steps - entry.literal_steps), steps
                )
            entries[line.start] = entry
            previous = entry

        tracked = exact.keys() | snapped.keys()
        for start in pending:
            entries[start] = self._inherit_from_next(document, start, entries, tracked)
        self._anchors.replace_all(entries.items())

    def _inherit_from_next(
        self,
        document: Document,
        start: int,
        entries: Mapping[int, IndentEntry],
        tracked: AbstractSet[int],
    ) -> IndentEntry:
        line = document.line_at(start)
        current = entries[start]
        if line.number >= document.line_count:
            return current
        following = document.line(line.number + 1)
        entry = entries.get(following.start)
        if entry is None or following.start not in tracked:
            return current
        return IndentEntry(entry.level, current.literal_steps)

    def items(self) -> Iterable[Tuple[int, IndentEntry]]:
        return self._anchors.items()


__all__ = [
    "IndentEntry",
    "ListIndentStore",
    "RestoreIndentLevels",
    "SetIndentLevel",
]
