"""Fenced code and prompt blocks: detection, repair, auto-close and tags."""

from .annotations import (
    BlockAnnotations,
    FenceMark,
    LineTag,
    compute_block_annotations,
    visible_blocks,
)
from .autoclose import autoclose_fence
from .fences import (
    Block,
    FenceKind,
    count_preceding_fences,
    detect_blocks,
    fence_line_numbers,
    find_block_containing_line,
    find_block_with_fence,
    is_fence,
    is_inside_block,
)
from .guard import (
    CODE_REPAIR_EVENT,
    PROMPT_DELETE_EVENT,
    CorruptionGuard,
    delete_block_batch,
)

__all__ = [
    "Block",
    "BlockAnnotations",
    "CODE_REPAIR_EVENT",
    "CorruptionGuard",
    "FenceKind",
    "FenceMark",
    "LineTag",
    "PROMPT_DELETE_EVENT",
    "autoclose_fence",
    "compute_block_annotations",
    "count_preceding_fences",
    "delete_block_batch",
    "detect_blocks",
    "fence_line_numbers",
    "find_block_containing_line",
    "find_block_with_fence",
    "is_fence",
    "is_inside_block",
    "visible_blocks",
]
