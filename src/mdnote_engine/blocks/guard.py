"""Pre-commit filter that keeps fence pairs from being half-deleted."""

from __future__ import annotations

from typing import List, Optional, Sequence

from mdnote_engine.document.changes import EditBatch, Span
from mdnote_engine.document.document import Document, Line
from mdnote_engine.document.state import Selection
from mdnote_engine.runtime import telemetry
from mdnote_engine.runtime.reentrancy import DispatchGuard

from .fences import Block, FenceKind, detect_blocks, find_block_with_fence, is_fence

CODE_REPAIR_EVENT = "codeblock.combined"
PROMPT_DELETE_EVENT = "prompt.delete-block"
_GUARD_EVENTS = (CODE_REPAIR_EVENT, PROMPT_DELETE_EVENT)

LOGGER_NAME = "mdnote_engine.blocks"


class CorruptionGuard:
    """Rewrites batches that would leave a fence without its partner.

    Code fences are repaired by removing the same backticks from the paired
    fence. Prompt fences have no safe partial form, so the whole block goes.
    """

    def __init__(self, dispatch_guard: Optional[DispatchGuard] = None) -> None:
        self.dispatch_guard = dispatch_guard or DispatchGuard()

    def filter(self, batch: EditBatch, document: Document) -> EditBatch:
        if not batch.doc_changed:
            return batch
        if self.dispatch_guard.suppresses_guard():
            return batch
        if any(batch.is_user_event(tag) for tag in _GUARD_EVENTS):
            return batch
        spans = tuple(
            span for span in batch.spans if not _deletes_whole_lines(span, document)
        )
        if not spans:
            return batch

        replacement = self._prompt_block_deletion(spans, document)
        if replacement is not None:
            return replacement
        return self._code_fence_repair(batch, spans, document)

    def _prompt_block_deletion(
        self, spans: Sequence[Span], document: Document
    ) -> Optional[EditBatch]:
        blocks: Optional[List[Block]] = None
        for span in spans:
            line = document.line_at(span.start)
            if span.end > line.end or not is_fence(line.text, FenceKind.PROMPT):
                continue
            edited = _edited_line_text(line, span)
            if any(is_fence(part, FenceKind.PROMPT) for part in edited.split("\n")):
                continue
            if blocks is None:
                blocks = detect_blocks(document, FenceKind.PROMPT)
            block = find_block_with_fence(blocks, line.number)
            if block is None:
                continue
            telemetry.record_event(
                "blocks.prompt_deleted",
                data={"start_line": block.start_line, "end_line": block.end_line},
                logger_name=LOGGER_NAME,
            )
            return delete_block_batch(block, document)
        return None

    def _code_fence_repair(
        self, batch: EditBatch, spans: Sequence[Span], document: Document
    ) -> EditBatch:
        blocks = [
            block for block in detect_blocks(document, FenceKind.CODE) if block.closed
        ]
        if not blocks:
            return batch
        extra: List[Span] = []
        for span in spans:
            if not span.is_deletion:
                continue
            line = document.line_at(span.start)
            if not is_fence(line.text, FenceKind.CODE):
                continue
            removed = line.text[span.start - line.start : span.end - line.start].count("`")
            if not removed:
                continue
            block = find_block_with_fence(blocks, line.number)
            if block is None:
                continue
            partner_number = (
                block.end_line if line.number == block.start_line else block.start_line
            )
            assert partner_number is not None
            repair = _leading_delimiter_span(
                document.line(partner_number), FenceKind.CODE, removed
            )
            if repair is None or _overlaps(repair, (*batch.spans, *extra)):
                continue
            extra.append(repair)

        if not extra:
            return batch
        telemetry.record_event(
            "blocks.code_repaired",
            data={"spans": len(extra)},
            logger_name=LOGGER_NAME,
        )
        return batch.with_spans(
            extra,
            user_event=CODE_REPAIR_EVENT,
            selection=_shift_selection(batch, extra),
        )


def delete_block_batch(block: Block, document: Document, **options: object) -> EditBatch:
    """Batch removing ``block`` entirely, cursor left at its first offset."""

    start = document.line(block.start_line).start
    end = document.line(block.last_line(document)).end
    if end < document.length:
        end += 1
    options.setdefault("user_event", PROMPT_DELETE_EVENT)
    return EditBatch.delete(
        start, end, document.length, selection=Selection.cursor(start), **options
    )


def _deletes_whole_lines(span: Span, document: Document) -> bool:
    if not span.deleted:
        return False
    first = document.line_at(span.start)
    last = document.line_at(span.end)
    if first.number != last.number:
        return True
    return span.start == first.start and span.end >= last.end


def _edited_line_text(line: Line, span: Span) -> str:
    head = line.text[: span.start - line.start]
    tail = line.text[span.end - line.start :]
    return head + span.insert + tail


def _leading_delimiter_span(line: Line, kind: FenceKind, count: int) -> Optional[Span]:
    offset = len(line.text) - len(line.text.lstrip())
    run = 0
    while offset + run < len(line.text) and line.text[offset + run] == kind.delimiter:
        run += 1
    if not run:
        return None
    start = line.start + offset
    return Span(start, start + min(count, run))


def _overlaps(candidate: Span, spans: tuple[Span, ...]) -> bool:
    return any(
        candidate.start < span.end and span.start < candidate.end
        or candidate.start == span.start
        for span in spans
    )


def _shift_selection(batch: EditBatch, extra: List[Span]) -> Optional[Selection]:
    if batch.selection is None or not batch.spans:
        return batch.selection
    first = batch.spans[0].start
    shift = sum(span.deleted for span in extra if span.end <= first)
    if not shift:
        return batch.selection
    return Selection(
        anchor=max(0, batch.selection.anchor - shift),
        head=max(0, batch.selection.head - shift),
    )


__all__ = [
    "CODE_REPAIR_EVENT",
    "CorruptionGuard",
    "PROMPT_DELETE_EVENT",
    "delete_block_batch",
]
