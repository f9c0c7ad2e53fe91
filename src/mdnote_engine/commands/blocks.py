"""Prompt block keys: Escape removes the block, select-all selects its body."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mdnote_engine.blocks.fences import FenceKind, find_block_containing_line
from mdnote_engine.blocks.guard import delete_block_batch
from mdnote_engine.document.state import Selection

from .base import CommandContext, CommandResult

if TYPE_CHECKING:
    from mdnote_engine.keymaps import ResolutionMatch


def delete_prompt_block(context: CommandContext, match: "ResolutionMatch") -> CommandResult:
    del match
    document = context.document
    block = find_block_containing_line(
        document, context.head_line.number, FenceKind.PROMPT
    )
    if block is None:
        return CommandResult.passthrough()
    batch = delete_block_batch(block, document, user_event="delete.prompt")
    return CommandResult(consumed=True, batch=batch, message="prompt_deleted")


def select_prompt_content(context: CommandContext, match: "ResolutionMatch") -> CommandResult:
    del match
    document = context.document
    number = context.head_line.number
    block = find_block_containing_line(document, number, FenceKind.PROMPT)
    if block is None:
        return CommandResult.passthrough()
    middle = block.middle_lines(document)
    if not middle or number not in middle:
        return CommandResult.passthrough()
    first = document.line(middle[0])
    last = document.line(middle[-1])
    return CommandResult(
        consumed=True, selection=Selection(anchor=first.start, head=last.end)
    )


__all__ = ["delete_prompt_block", "select_prompt_content"]
