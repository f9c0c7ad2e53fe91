"""Ordered-list renumbering, one independent counter per nesting level."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

from mdnote_engine.document.changes import EditBatch, Span
from mdnote_engine.document.document import Document, Line
from mdnote_engine.runtime import telemetry

from .indent_store import ListIndentStore
from .markers import ListLine, literal_steps, parse_list_line

RENUMBER_EVENT = "renumber"
LOGGER_NAME = "mdnote_engine.lists"

_SKIPPED_EVENTS = ("undo", "redo", "compose", "input.type.compose", RENUMBER_EVENT)


@dataclass(frozen=True, slots=True)
class NumberOverride:
    """A number the user typed into an ordered marker during the last edit."""

    line: int
    level: int
    number: int


def find_number_override(
    batch: EditBatch, document: Document, levels: Mapping[int, int]
) -> Optional[NumberOverride]:
    """Last span of ``batch`` whose new position sits in an ordered number token."""

    found: Optional[NumberOverride] = None
    shift = 0
    for span in batch.spans:
        position = span.start + shift
        shift += span.delta
        if position > document.length:
            continue
        line = document.line_at(position)
        parsed = parse_list_line(line.text)
        if parsed is None or parsed.number is None:
            continue
        column = position - line.start
        if parsed.marker_start <= column <= parsed.number_end:
            level = levels.get(line.number, literal_steps(line.text))
            found = NumberOverride(line=line.number, level=level, number=parsed.number)
    return found


def collect_runs(
    document: Document, levels: Mapping[int, int]
) -> List[List[Tuple[Line, ListLine]]]:
    """Group ordered items into runs.

    A non-list line ends every run. An unordered item at level L ends the runs
    at L and deeper, and moving shallower ends the deeper runs.
    """

    runs: List[List[Tuple[Line, ListLine]]] = []
    active: Dict[int, int] = {}
    deepest = -1
    for line in document.lines():
        parsed = parse_list_line(line.text)
        if parsed is None:
            active.clear()
            deepest = -1
            continue
        level = levels.get(line.number, literal_steps(line.text))
        if level < deepest:
            for stale in [key for key in active if key > level]:
                del active[stale]
        deepest = level
        if not parsed.ordered:
            for stale in [key for key in active if key >= level]:
                del active[stale]
            continue
        if level not in active:
            active[level] = len(runs)
            runs.append([])
        runs[active[level]].append((line, parsed))
    return runs


def renumber_spans(
    document: Document,
    levels: Mapping[int, int],
    override: Optional[NumberOverride] = None,
) -> List[Span]:
    spans: List[Span] = []
    for run in collect_runs(document, levels):
        first = run[0][1]
        start = first.number if first.number is not None else 1
        if override is not None and any(line.number == override.line for line, _ in run):
            start = override.number
        for index, (line, parsed) in enumerate(run):
            expected = start + index
            if parsed.number == expected:
                continue
            spans.append(
                Span(
                    line.start + parsed.marker_start,
                    line.start + parsed.number_end,
                    str(expected),
                )
            )
    return spans


def renumber_batch(
    document: Document,
    levels: Mapping[int, int],
    override: Optional[NumberOverride] = None,
) -> Optional[EditBatch]:
    spans = renumber_spans(document, levels, override)
    if not spans:
        return None
    return EditBatch.of(
        spans,
        document.length,
        user_event=RENUMBER_EVENT,
        scroll_into_view=False,
        join_history=True,
    )


class RenumberingEngine:
    """Produces the corrective renumber batch after a committed edit."""

    def __init__(self, store: ListIndentStore) -> None:
        self.store = store

    @staticmethod
    def should_run(batch: EditBatch) -> bool:
        if not batch.doc_changed:
            return False
        return not any(batch.is_user_event(tag) for tag in _SKIPPED_EVENTS)

    def corrections(self, batch: EditBatch, document: Document) -> Optional[EditBatch]:
        if not self.should_run(batch):
            return None
        with telemetry.span("lists::renumber", logger_name=LOGGER_NAME) as handle:
            levels = self.store.levels(document)
            override = find_number_override(batch, document, levels)
            result = renumber_batch(document, levels, override)
            handle.add_metadata("replacements", 0 if result is None else len(result.spans))
            return result


__all__ = [
    "NumberOverride",
    "RENUMBER_EVENT",
    "RenumberingEngine",
    "collect_runs",
    "find_number_override",
    "renumber_batch",
    "renumber_spans",
]
