"""Fence grammar and paired-block detection for code and prompt blocks."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from mdnote_engine.document.document import Document


class FenceKind(str, Enum):
    CODE = "code"
    PROMPT = "prompt"

    @property
    def delimiter(self) -> str:
        return "`" if self is FenceKind.CODE else ":"

    @property
    def token(self) -> str:
        return self.delimiter * 3


def is_fence(text: str, kind: FenceKind) -> bool:
    """Whether ``text`` is a syntactically valid fence line of ``kind``.

    Code fences are the token alone or followed by a language tag. Prompt
    fences are exactly the token, or the token plus a space and a label.
    """

    trimmed = text.strip()
    if kind is FenceKind.CODE:
        return trimmed.startswith(kind.token)
    return trimmed == kind.token or trimmed.startswith(kind.token + " ")


def starts_with_token(text: str, kind: FenceKind) -> bool:
    return text.strip().startswith(kind.token)


@dataclass(frozen=True, slots=True)
class Block:
    kind: FenceKind
    start_line: int
    end_line: Optional[int] = None

    @property
    def closed(self) -> bool:
        return self.end_line is not None

    def fence_lines(self) -> tuple[int, ...]:
        if self.end_line is None:
            return (self.start_line,)
        return (self.start_line, self.end_line)

    def last_line(self, document: Document) -> int:
        """Last line belonging to the block (open blocks run to their content)."""

        if self.end_line is not None:
            return self.end_line
        last = self.start_line
        for line in document.lines(self.start_line + 1):
            if line.text.strip():
                last = line.number
        return last

    def contains_line(self, number: int, document: Document) -> bool:
        return self.start_line <= number <= self.last_line(document)

    def middle_lines(self, document: Document) -> range:
        if self.end_line is not None:
            return range(self.start_line + 1, self.end_line)
        return range(self.start_line + 1, self.last_line(document) + 1)


def detect_blocks(document: Document, kind: FenceKind) -> List[Block]:
    """Single scan pairing fences of ``kind`` into blocks.

    A trailing unclosed fence only opens a block when a later non-blank line
    that is not itself a fence exists; otherwise it is an orphan and ignored.
    """

    blocks: List[Block] = []
    open_start: Optional[int] = None
    for line in document.lines():
        if not is_fence(line.text, kind):
            continue
        if open_start is None:
            open_start = line.number
        else:
            blocks.append(Block(kind=kind, start_line=open_start, end_line=line.number))
            open_start = None
    if open_start is not None and _has_content_below(document, open_start, kind):
        blocks.append(Block(kind=kind, start_line=open_start))
    return blocks


def _has_content_below(document: Document, number: int, kind: FenceKind) -> bool:
    for line in document.lines(number + 1):
        if line.text.strip() and not starts_with_token(line.text, kind):
            return True
    return False


def find_block_containing_line(
    document: Document,
    number: int,
    kind: FenceKind,
    blocks: Optional[Iterable[Block]] = None,
) -> Optional[Block]:
    for block in detect_blocks(document, kind) if blocks is None else blocks:
        if block.contains_line(number, document):
            return block
    return None


def find_block_with_fence(
    blocks: Iterable[Block], number: int
) -> Optional[Block]:
    for block in blocks:
        if number in block.fence_lines():
            return block
    return None


def fence_line_numbers(document: Document, kind: FenceKind) -> List[int]:
    return [line.number for line in document.lines() if is_fence(line.text, kind)]


def count_preceding_fences(document: Document, number: int, kind: FenceKind) -> int:
    """Lines above ``number`` whose trimmed text starts with the kind's token."""

    return sum(
        1
        for line in document.lines(1, number - 1)
        if starts_with_token(line.text, kind)
    )


def is_inside_block(document: Document, offset: int, kind: FenceKind) -> bool:
    number = document.line_at(offset).number
    return find_block_containing_line(document, number, kind) is not None


__all__ = [
    "Block",
    "FenceKind",
    "count_preceding_fences",
    "detect_blocks",
    "fence_line_numbers",
    "find_block_containing_line",
    "find_block_with_fence",
    "is_fence",
    "is_inside_block",
    "starts_with_token",
]
