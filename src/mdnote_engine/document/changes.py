"""Edit batches: atomic sets of text replacements and position mapping."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, Optional, Sequence

from .state import Selection


class EditBatchError(ValueError):
    """Raised for unsorted, overlapping or out-of-range spans."""


class MapMode(str, Enum):
    """How ``EditBatch.map_pos`` treats positions inside deleted text."""

    SIMPLE = "simple"
    TRACK_DEL = "track_del"
    TRACK_BEFORE = "track_before"
    TRACK_AFTER = "track_after"


@dataclass(frozen=True, slots=True)
class Span:
    """Replace ``[start, end)`` of the pre-edit document with ``insert``."""

    start: int
    end: int
    insert: str = ""

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise EditBatchError(f"Invalid span [{self.start}, {self.end})")

    @property
    def deleted(self) -> int:
        return self.end - self.start

    @property
    def delta(self) -> int:
        return len(self.insert) - (self.end - self.start)

    @property
    def is_deletion(self) -> bool:
        return not self.insert and self.end > self.start


@dataclass(frozen=True, slots=True)
class EditBatch:
    """One atomic edit applied in a single step.

    ``spans`` are expressed in pre-edit coordinates, sorted and non-overlapping.
    ``effects`` carry non-text state changes whose line numbers refer to the
    post-edit document. ``selection`` is the cursor after commit (``None``
    keeps the host's mapped selection).
    """

    spans: tuple[Span, ...]
    doc_length: int
    selection: Optional[Selection] = None
    user_event: Optional[str] = None
    scroll_into_view: bool = True
    add_to_history: bool = True
    join_history: bool = False
    effects: tuple[object, ...] = field(default=())

    def __post_init__(self) -> None:
        previous: Span | None = None
        for span in self.spans:
            if span.end > self.doc_length:
                raise EditBatchError(
                    f"Span [{span.start}, {span.end}) past document end {self.doc_length}"
                )
            if previous is not None and (
                span.start < previous.end
                or (span.start, span.end) < (previous.start, previous.end)
            ):
                raise EditBatchError("Spans must be sorted and non-overlapping")
            previous = span

    @classmethod
    def of(
        cls,
        spans: Iterable[Span],
        doc_length: int,
        **options: object,
    ) -> "EditBatch":
        ordered = tuple(sorted(spans, key=lambda span: (span.start, span.end)))
        return cls(spans=ordered, doc_length=doc_length, **options)  # type: ignore[arg-type]

    @classmethod
    def replace_range(
        cls, start: int, end: int, text: str, doc_length: int, **options: object
    ) -> "EditBatch":
        return cls.of((Span(start, end, text),), doc_length, **options)

    @classmethod
    def insert(
        cls, pos: int, text: str, doc_length: int, **options: object
    ) -> "EditBatch":
        return cls.replace_range(pos, pos, text, doc_length, **options)

    @classmethod
    def delete(
        cls, start: int, end: int, doc_length: int, **options: object
    ) -> "EditBatch":
        return cls.replace_range(start, end, "", doc_length, **options)

    @classmethod
    def effects_only(
        cls, effects: Sequence[object], doc_length: int, **options: object
    ) -> "EditBatch":
        options.setdefault("add_to_history", False)
        return cls(spans=(), doc_length=doc_length, effects=tuple(effects), **options)  # type: ignore[arg-type]

    @property
    def doc_changed(self) -> bool:
        return any(span.deleted or span.insert for span in self.spans)

    @property
    def new_length(self) -> int:
        return self.doc_length + sum(span.delta for span in self.spans)

    @property
    def inserted(self) -> tuple[str, ...]:
        return tuple(span.insert for span in self.spans)

    def is_user_event(self, event: str) -> bool:
        tag = self.user_event
        if tag is None:
            return False
        return tag == event or tag.startswith(event + ".")

    @property
    def is_undo(self) -> bool:
        return self.is_user_event("undo")

    @property
    def is_redo(self) -> bool:
        return self.is_user_event("redo")

    @property
    def is_composition(self) -> bool:
        return self.is_user_event("compose") or self.is_user_event(
            "input.type.compose"
        )

    def with_spans(self, extra: Iterable[Span], **options: object) -> "EditBatch":
        """Return a batch holding this batch's spans plus ``extra``."""

        spans = tuple(
            sorted((*self.spans, *extra), key=lambda span: (span.start, span.end))
        )
        return replace(self, spans=spans, **options)  # type: ignore[arg-type]

    def apply(self, text: str) -> str:
        if len(text) != self.doc_length:
            raise EditBatchError(
                f"Batch built for length {self.doc_length}, document has {len(text)}"
            )
        pieces: list[str] = []
        cursor = 0
        for span in self.spans:
            pieces.append(text[cursor : span.start])
            pieces.append(span.insert)
            cursor = span.end
        pieces.append(text[cursor:])
        return "".join(pieces)

    def map_pos(
        self, pos: int, assoc: int = -1, mode: MapMode = MapMode.SIMPLE
    ) -> Optional[int]:
        """Map a pre-edit offset to the post-edit document.

        ``assoc < 0`` keeps the position before text inserted exactly at it,
        ``assoc > 0`` moves it after. Tracking modes return ``None`` when the
        text around the position was deleted.
        """

        diff = 0
        for span in self.spans:
            if span.start > pos:
                break
            if span.end < pos:
                diff += span.delta
                continue
            inserted = len(span.insert)
            if span.start == span.end:
                if assoc < 0:
                    return pos + diff
                diff += inserted
                continue
            if pos == span.start:
                if mode is MapMode.TRACK_AFTER:
                    return None
                return span.start + diff + (inserted if assoc > 0 else 0)
            if pos == span.end:
                if mode is MapMode.TRACK_BEFORE:
                    return None
                diff += span.delta
                continue
            if mode is not MapMode.SIMPLE:
                return None
            return span.start + diff + (inserted if assoc > 0 else 0)
        return pos + diff


def diff_batch(before: str, after: str, **options: object) -> EditBatch:
    """Smallest single-span batch turning ``before`` into ``after``."""

    limit = min(len(before), len(after))
    prefix = 0
    while prefix < limit and before[prefix] == after[prefix]:
        prefix += 1
    suffix = 0
    while (
        suffix < limit - prefix
        and before[len(before) - 1 - suffix] == after[len(after) - 1 - suffix]
    ):
        suffix += 1
    if prefix == len(before) and prefix == len(after):
        return EditBatch(spans=(), doc_length=len(before), **options)  # type: ignore[arg-type]
    span = Span(prefix, len(before) - suffix, after[prefix : len(after) - suffix])
    return EditBatch(spans=(span,), doc_length=len(before), **options)  # type: ignore[arg-type]


__all__ = ["EditBatch", "EditBatchError", "MapMode", "Span", "diff_batch"]
