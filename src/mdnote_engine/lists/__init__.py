"""List items: markers, out-of-band indent levels, renumbering, history, clipboard."""

from .annotations import ListMarkerSpec, compute_list_annotations
from .clipboard import copy_text, detect_indent_unit, has_list_items, paste_text
from .history import IndentHistoryReconciler, Snapshot, content_hash
from .indent_store import (
    IndentEntry,
    ListIndentStore,
    RestoreIndentLevels,
    SetIndentLevel,
)
from .markers import (
    LIST_PATTERN,
    ListLine,
    is_list_line,
    leading_columns,
    literal_steps,
    parse_list_line,
    parse_ordered_marker,
)
from .renumber import (
    RENUMBER_EVENT,
    NumberOverride,
    RenumberingEngine,
    collect_runs,
    find_number_override,
    renumber_batch,
    renumber_spans,
)

__all__ = [
    "IndentEntry",
    "IndentHistoryReconciler",
    "LIST_PATTERN",
    "ListIndentStore",
    "ListLine",
    "ListMarkerSpec",
    "NumberOverride",
    "RENUMBER_EVENT",
    "RenumberingEngine",
    "RestoreIndentLevels",
    "SetIndentLevel",
    "Snapshot",
    "collect_runs",
    "compute_list_annotations",
    "content_hash",
    "copy_text",
    "detect_indent_unit",
    "find_number_override",
    "has_list_items",
    "is_list_line",
    "leading_columns",
    "literal_steps",
    "paste_text",
    "parse_list_line",
    "parse_ordered_marker",
    "renumber_batch",
    "renumber_spans",
]
