"""Immutable line-indexed document model."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Iterator, Sequence

from .sync import PositionError


@dataclass(frozen=True, slots=True)
class Line:
    """One document line; ``end`` excludes the line break."""

    number: int
    start: int
    end: int
    text: str

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass(frozen=True, slots=True)
class Document:
    """Plain text plus a start-offset index for its lines.

    Lines are split on ``"\\n"`` only and numbered from 1. An empty document
    still has one (empty) line.
    """

    text: str = ""
    _starts: tuple[int, ...] = field(default=(), repr=False, compare=False)

    def __post_init__(self) -> None:
        if self._starts:
            return
        starts = [0]
        index = self.text.find("\n")
        while index != -1:
            starts.append(index + 1)
            index = self.text.find("\n", index + 1)
        object.__setattr__(self, "_starts", tuple(starts))

    @classmethod
    def from_text(cls, text: str) -> "Document":
        return cls(text=text)

    @classmethod
    def from_lines(cls, lines: Sequence[str]) -> "Document":
        return cls.from_text("\n".join(lines))

    @property
    def length(self) -> int:
        return len(self.text)

    @property
    def line_count(self) -> int:
        return len(self._starts)

    def line(self, number: int) -> Line:
        if number < 1 or number > len(self._starts):
            raise PositionError(
                f"Line {number} outside 1..{len(self._starts)}", position=number
            )
        start = self._starts[number - 1]
        if number < len(self._starts):
            end = self._starts[number] - 1
        else:
            end = len(self.text)
        return Line(number=number, start=start, end=end, text=self.text[start:end])

    def line_at(self, offset: int) -> Line:
        if offset < 0 or offset > len(self.text):
            raise PositionError(
                f"Offset {offset} outside 0..{len(self.text)}", position=offset
            )
        return self.line(bisect_right(self._starts, offset))

    def lines(self, first: int = 1, last: int | None = None) -> Iterator[Line]:
        stop = self.line_count if last is None else min(last, self.line_count)
        for number in range(max(first, 1), stop + 1):
            yield self.line(number)

    def slice(self, start: int, end: int) -> str:
        return self.text[start:end]

    def line_texts(self) -> list[str]:
        return self.text.split("\n")


__all__ = ["Document", "Line"]
