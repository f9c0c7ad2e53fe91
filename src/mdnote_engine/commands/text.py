"""Plain Tab / Shift-Tab for lines that are not list items."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, List

from mdnote_engine.document.changes import EditBatch, Span
from mdnote_engine.document.state import Selection
from mdnote_engine.lists.markers import is_list_line

from .base import CommandContext, CommandResult

if TYPE_CHECKING:
    from mdnote_engine.keymaps import ResolutionMatch


def _leading_spaces(width: int) -> "re.Pattern[str]":
    return re.compile(r"^( {1,%d})" % width)


def insert_tab(context: CommandContext, match: "ResolutionMatch") -> CommandResult:
    del match
    document = context.document
    selection = context.selection
    unit = context.config.indent_unit
    if selection.empty:
        line = document.line_at(selection.head)
        if is_list_line(line.text):
            return CommandResult.passthrough()
        batch = EditBatch.insert(
            selection.head,
            unit,
            document.length,
            selection=Selection.cursor(selection.head + len(unit)),
            user_event="input",
        )
        return CommandResult(consumed=True, batch=batch)

    first = document.line_at(selection.start).number
    last = document.line_at(selection.end).number
    spans = [
        Span(line.start, line.start, unit)
        for line in document.lines(first, last)
        if not is_list_line(line.text)
    ]
    if not spans:
        return CommandResult.passthrough()
    return CommandResult(
        consumed=True,
        batch=EditBatch.of(spans, document.length, user_event="indent"),
    )


def remove_tab(context: CommandContext, match: "ResolutionMatch") -> CommandResult:
    del match
    document = context.document
    selection = context.selection
    pattern = _leading_spaces(context.config.indent_width)
    if selection.empty:
        line = document.line_at(selection.head)
        if is_list_line(line.text):
            return CommandResult.passthrough()
        found = pattern.match(line.text)
        if found is None:
            return CommandResult.passthrough()
        batch = EditBatch.delete(
            line.start,
            line.start + len(found.group(1)),
            document.length,
            user_event="delete",
        )
        return CommandResult(consumed=True, batch=batch)

    spans: List[Span] = []
    first = document.line_at(selection.start).number
    last = document.line_at(selection.end).number
    for line in document.lines(first, last):
        if is_list_line(line.text):
            continue
        found = pattern.match(line.text)
        if found is not None:
            spans.append(Span(line.start, line.start + len(found.group(1))))
    if not spans:
        return CommandResult.passthrough()
    return CommandResult(
        consumed=True,
        batch=EditBatch.of(spans, document.length, user_event="unindent"),
    )


__all__ = ["insert_tab", "remove_tab"]
