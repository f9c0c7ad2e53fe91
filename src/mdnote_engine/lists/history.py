"""Indent levels across undo/redo.

Levels live outside the host's undo log, so every edit that touches list content
captures a snapshot keyed by a hash of the list lines. After an undo or redo the
snapshot whose hash matches the restored document (or the closest one by size)
supplies the levels again.
"""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, Mapping, Optional, Tuple

from mdnote_engine.config import DEFAULT_CONFIG, EngineConfig
from mdnote_engine.document.changes import EditBatch
from mdnote_engine.document.document import Document
from mdnote_engine.runtime import telemetry

from .indent_store import ListIndentStore, RestoreIndentLevels
from .markers import is_list_line

LOGGER_NAME = "mdnote_engine.history"


def content_hash(document: Document) -> int:
    """32-bit signed rolling hash (``h * 31 + code``) of the list lines only."""

    text = "\n".join(
        line.text for line in document.lines() if is_list_line(line.text)
    )
    value = 0
    for char in text:
        value = (value * 31 + ord(char)) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return value


@dataclass(frozen=True, slots=True)
class Snapshot:
    id: int
    content_hash: int
    doc_length: int
    line_count: int
    indents: Mapping[int, Tuple[int, int]] = field(default_factory=dict)
    timestamp: float = 0.0

    def level(self, number: int) -> Optional[int]:
        entry = self.indents.get(number)
        return None if entry is None else entry[1]

    def score(self, document: Document, line_weight: int) -> int:
        return abs(document.length - self.doc_length) + line_weight * abs(
            document.line_count - self.line_count
        )


class IndentHistoryReconciler:
    """Ring buffer of snapshots plus a latest-snapshot-per-hash index."""

    def __init__(
        self,
        store: ListIndentStore,
        config: EngineConfig = DEFAULT_CONFIG,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.config = config
        self._clock = clock
        self._snapshots: Deque[Snapshot] = deque()
        self._by_hash: Dict[int, Snapshot] = {}
        self._next_id = 1

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def latest(self) -> Optional[Snapshot]:
        return self._snapshots[-1] if self._snapshots else None

    def snapshots(self) -> Tuple[Snapshot, ...]:
        return tuple(self._snapshots)

    @staticmethod
    def should_capture(batch: EditBatch) -> bool:
        return not (batch.is_undo or batch.is_redo)

    def is_large_insert(self, batch: EditBatch) -> bool:
        return any(
            len(text) > self.config.large_insert_chars for text in batch.inserted
        )

    def capture(self, document: Document) -> Optional[Snapshot]:
        """Record the current levels; skipped when nothing is tracked or unchanged."""

        indents = self.store.anchored_levels(document)
        if not indents:
            return None
        digest = content_hash(document)
        latest = self.latest
        if (
            latest is not None
            and latest.content_hash == digest
            and dict(latest.indents) == indents
        ):
            return latest
        snapshot = Snapshot(
            id=self._next_id,
            content_hash=digest,
            doc_length=document.length,
            line_count=document.line_count,
            indents=indents,
            timestamp=self._clock(),
        )
        self._next_id += 1
        if len(self._snapshots) >= self.config.snapshot_capacity:
            evicted = self._snapshots.popleft()
            if self._by_hash.get(evicted.content_hash) is evicted:
                del self._by_hash[evicted.content_hash]
        self._snapshots.append(snapshot)
        self._by_hash[digest] = snapshot
        telemetry.record_event(
            "history.captured",
            level="debug",
            data={"id": snapshot.id, "hash": digest, "lines": len(indents)},
            logger_name=LOGGER_NAME,
        )
        return snapshot

    def find_match(self, document: Document) -> Optional[Snapshot]:
        exact = self._by_hash.get(content_hash(document))
        if exact is not None:
            return exact
        best: Optional[Snapshot] = None
        best_score = 0
        for snapshot in reversed(self._snapshots):
            score = snapshot.score(document, self.config.line_weight)
            if best is None or score < best_score:
                best, best_score = snapshot, score
        if best is None or best_score >= self.config.match_threshold:
            return None
        return best

    def resolve_levels(self, document: Document, snapshot: Snapshot) -> Dict[int, int]:
        levels: Dict[int, int] = {}
        radius = self.config.nearby_radius
        for line in document.lines():
            if not is_list_line(line.text):
                continue
            level = snapshot.level(line.number)
            offset = 1
            while level is None and offset <= radius:
                level = snapshot.level(line.number - offset)
                if level is None:
                    level = snapshot.level(line.number + offset)
                offset += 1
            levels[line.number] = 0 if level is None else level
        return levels

    def restore_effect(self, document: Document) -> Optional[RestoreIndentLevels]:
        snapshot = self.find_match(document)
        if snapshot is None:
            telemetry.record_event(
                "history.unmatched",
                level="debug",
                data={"length": document.length, "lines": document.line_count},
                logger_name=LOGGER_NAME,
            )
            return None
        return RestoreIndentLevels.of(self.resolve_levels(document, snapshot))

    def clear(self) -> None:
        self._snapshots.clear()
        self._by_hash.clear()


__all__ = ["IndentHistoryReconciler", "Snapshot", "content_hash"]
