"""Pure computation of block line tags and fence marks for rendering."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from mdnote_engine.document.document import Document

from .fences import Block, FenceKind, detect_blocks


@dataclass(frozen=True, slots=True)
class LineTag:
    """``block-start|middle|end`` tag for one line of a detected block."""

    line: int
    kind: FenceKind
    position: str
    placeholder: bool = False

    @property
    def css_class(self) -> str:
        classes = [f"{self.kind.value}-block", f"{self.kind.value}-block-{self.position}"]
        if self.placeholder:
            classes.append(f"{self.kind.value}-placeholder")
        return " ".join(classes)


@dataclass(frozen=True, slots=True)
class FenceMark:
    """Offsets of the three delimiter characters on a fence line."""

    kind: FenceKind
    start: int
    end: int


@dataclass(frozen=True, slots=True)
class BlockAnnotations:
    tags: Tuple[LineTag, ...] = ()
    marks: Tuple[FenceMark, ...] = ()
    blocks: Tuple[Block, ...] = ()

    def tags_for_line(self, number: int) -> Tuple[LineTag, ...]:
        return tuple(tag for tag in self.tags if tag.line == number)


def visible_blocks(document: Document) -> List[Block]:
    """Prompt blocks plus the code blocks that do not start inside one."""

    prompts = detect_blocks(document, FenceKind.PROMPT)
    codes = [
        block
        for block in detect_blocks(document, FenceKind.CODE)
        if not any(prompt.contains_line(block.start_line, document) for prompt in prompts)
    ]
    return sorted((*prompts, *codes), key=lambda block: block.start_line)


def compute_block_annotations(document: Document) -> BlockAnnotations:
    tags: List[LineTag] = []
    marks: List[FenceMark] = []
    blocks = visible_blocks(document)
    for block in blocks:
        middle = block.middle_lines(document)
        placeholder = (
            block.kind is FenceKind.PROMPT
            and len(middle) == 1
            and not document.line(middle[0]).text.strip()
        )
        tags.append(LineTag(block.start_line, block.kind, "start"))
        for number in middle:
            tags.append(LineTag(number, block.kind, "middle", placeholder=placeholder))
        if block.end_line is not None:
            tags.append(LineTag(block.end_line, block.kind, "end"))
        for number in block.fence_lines():
            marks.append(_fence_mark(document, number, block.kind))
    return BlockAnnotations(tags=tuple(tags), marks=tuple(marks), blocks=tuple(blocks))


def _fence_mark(document: Document, number: int, kind: FenceKind) -> FenceMark:
    line = document.line(number)
    offset = line.start + len(line.text) - len(line.text.lstrip())
    return FenceMark(kind=kind, start=offset, end=offset + len(kind.token))


__all__ = [
    "BlockAnnotations",
    "FenceMark",
    "LineTag",
    "compute_block_annotations",
    "visible_blocks",
]
