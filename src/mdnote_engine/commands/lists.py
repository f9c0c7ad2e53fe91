"""Smart list keys: indent, outdent, enter, backspace and marker skipping."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mdnote_engine.document.changes import EditBatch
from mdnote_engine.document.state import Selection
from mdnote_engine.lists.indent_store import SetIndentLevel
from mdnote_engine.lists.markers import is_list_line, parse_list_line

from .base import CommandContext, CommandResult

if TYPE_CHECKING:
    from mdnote_engine.keymaps import ResolutionMatch


def smart_list_indent(context: CommandContext, match: "ResolutionMatch") -> CommandResult:
    del match
    document = context.document
    head = context.selection.head
    line = document.line_at(head)
    parsed = parse_list_line(line.text)
    if parsed is None:
        return CommandResult.passthrough()
    if line.number == 1 or not is_list_line(document.line(line.number - 1).text):
        return CommandResult.noop("no parent item")
    if context.level(line.number) >= context.level(line.number - 1) + 1:
        return CommandResult.noop("already nested under parent")

    unit = context.config.indent_unit
    if parsed.number is None:
        batch = EditBatch.insert(
            line.start,
            unit,
            document.length,
            selection=Selection.cursor(head + len(unit)),
            user_event="input.indent",
        )
        return CommandResult(consumed=True, batch=batch)

    # Ordered items restart at 1 under their new parent; renumbering fixes siblings.
    prefix = parsed.indent + unit + f"1{parsed.separator} "
    rewritten = prefix + parsed.content
    content_offset = head - (line.start + parsed.marker_end)
    cursor = min(line.start + len(prefix) + content_offset, line.start + len(rewritten))
    batch = EditBatch.replace_range(
        line.start,
        line.end,
        rewritten,
        document.length,
        selection=Selection.cursor(max(line.start, cursor)),
        user_event="input.indent",
    )
    return CommandResult(consumed=True, batch=batch)


def smart_list_outdent(context: CommandContext, match: "ResolutionMatch") -> CommandResult:
    del match
    document = context.document
    line = document.line_at(context.selection.start)
    parsed = parse_list_line(line.text)
    if parsed is None or not parsed.indent:
        return CommandResult.passthrough()
    removed = min(len(parsed.indent), context.config.indent_width)
    batch = EditBatch.delete(
        line.start,
        line.start + removed,
        document.length,
        selection=Selection.cursor(max(context.selection.start - removed, line.start)),
        user_event="input.outdent",
    )
    return CommandResult(consumed=True, batch=batch)


def smart_list_enter(context: CommandContext, match: "ResolutionMatch") -> CommandResult:
    del match
    if not context.selection.empty:
        return CommandResult.passthrough()
    document = context.document
    line = document.line_at(context.selection.head)
    parsed = parse_list_line(line.text)
    if parsed is None:
        return CommandResult.passthrough()

    if parsed.content.strip():
        inserted = "\n" + parsed.indent + parsed.next_marker() + " "
        batch = EditBatch.insert(
            line.end,
            inserted,
            document.length,
            selection=Selection.cursor(line.end + len(inserted)),
            user_event="input.list.enter",
        )
        return CommandResult(consumed=True, batch=batch)

    if parsed.indent:
        removed = min(len(parsed.indent), context.config.indent_width)
        after_marker = line.start + parsed.marker_end - removed
        batch = EditBatch.delete(
            line.start,
            line.start + removed,
            document.length,
            selection=Selection.cursor(after_marker),
            user_event="input.outdent",
        )
        return CommandResult(consumed=True, batch=batch)

    level = context.level(line.number)
    if level > 0:
        batch = EditBatch.effects_only(
            [SetIndentLevel(line=line.number, level=level - 1)],
            document.length,
            selection=Selection.cursor(line.start + parsed.marker_end),
            user_event="list.outdent",
        )
        return CommandResult(consumed=True, batch=batch)

    batch = EditBatch.delete(
        line.start,
        line.end,
        document.length,
        selection=Selection.cursor(line.start),
        user_event="delete.list-item",
    )
    return CommandResult(consumed=True, batch=batch)


def list_item_backspace(context: CommandContext, match: "ResolutionMatch") -> CommandResult:
    del match
    if not context.selection.empty:
        return CommandResult.passthrough()
    head = context.selection.head
    line = context.document.line_at(head)
    parsed = parse_list_line(line.text)
    if parsed is None or head != line.start + parsed.marker_end:
        return CommandResult.passthrough()
    marker_start = line.start + parsed.marker_start
    batch = EditBatch.delete(
        marker_start,
        head,
        context.document.length,
        selection=Selection.cursor(marker_start),
        user_event="delete.backward",
    )
    return CommandResult(consumed=True, batch=batch)


def skip_marker_backward(context: CommandContext, match: "ResolutionMatch") -> CommandResult:
    del match
    head = context.selection.head
    if not context.selection.empty or head == 0:
        return CommandResult.passthrough()
    line = context.document.line_at(head)
    parsed = parse_list_line(line.text)
    if parsed is None:
        return CommandResult.passthrough()
    if head == line.start + parsed.marker_end:
        return CommandResult(
            consumed=True, selection=Selection.cursor(line.start + parsed.marker_start)
        )
    if head == line.start + parsed.marker_start and parsed.indent:
        return CommandResult(consumed=True, selection=Selection.cursor(line.start))
    return CommandResult.passthrough()


def skip_marker_forward(context: CommandContext, match: "ResolutionMatch") -> CommandResult:
    del match
    head = context.selection.head
    if not context.selection.empty:
        return CommandResult.passthrough()
    line = context.document.line_at(head)
    parsed = parse_list_line(line.text)
    if parsed is None:
        return CommandResult.passthrough()
    if head == line.start + parsed.marker_start:
        return CommandResult(
            consumed=True, selection=Selection.cursor(line.start + parsed.marker_end)
        )
    if head == line.start:
        return CommandResult(
            consumed=True, selection=Selection.cursor(line.start + parsed.marker_start)
        )
    return CommandResult.passthrough()


__all__ = [
    "list_item_backspace",
    "skip_marker_backward",
    "skip_marker_forward",
    "smart_list_enter",
    "smart_list_indent",
    "smart_list_outdent",
]
