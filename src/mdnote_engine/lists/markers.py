"""List marker grammar: ``^(\\s*)([*-]|\\d+[.)])\\s``."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

LIST_PATTERN = re.compile(r"^(\s*)([*-]|\d+[.)])\s")
PASTE_LIST_PATTERN = re.compile(r"^[ \t]*([*-]|\d+[.)])[ \t]+")
ORDERED_MARKER = re.compile(r"^(\d+)([.)])(\s)")

TAB_COLUMNS = 8


@dataclass(frozen=True, slots=True)
class ListLine:
    """Parsed list item; column fields are offsets within the line text."""

    indent: str
    marker: str
    content: str
    number: Optional[int] = None
    separator: Optional[str] = None

    @property
    def ordered(self) -> bool:
        return self.number is not None

    @property
    def kind(self) -> str:
        return "ordered" if self.ordered else "unordered"

    @property
    def marker_start(self) -> int:
        return len(self.indent)

    @property
    def marker_end(self) -> int:
        """Column right after the marker and its trailing space."""

        return len(self.indent) + len(self.marker) + 1

    @property
    def number_end(self) -> int:
        if self.separator is None:
            return self.marker_start
        return self.marker_start + len(self.marker) - len(self.separator)

    def next_marker(self) -> str:
        """Marker for a following sibling: ordered numbers increment by one."""

        if self.number is not None:
            return f"{self.number + 1}{self.separator}"
        return self.marker


def is_list_line(text: str) -> bool:
    return LIST_PATTERN.match(text) is not None


def parse_list_line(text: str) -> Optional[ListLine]:
    match = LIST_PATTERN.match(text)
    if match is None:
        return None
    indent, marker = match.group(1), match.group(2)
    content = text[match.end():]
    ordered = parse_ordered_marker(marker + " ")
    if ordered is None:
        return ListLine(indent=indent, marker=marker, content=content)
    number, separator = ordered
    return ListLine(
        indent=indent,
        marker=marker,
        content=content,
        number=number,
        separator=separator,
    )


def parse_ordered_marker(text: str) -> Optional[tuple[int, str]]:
    match = ORDERED_MARKER.match(text)
    if match is None:
        return None
    return int(match.group(1)), match.group(2)


def leading_columns(text: str, tab_width: int = TAB_COLUMNS) -> int:
    """Width of the leading whitespace run, tabs counting ``tab_width`` columns."""

    columns = 0
    for char in text:
        if char == " ":
            columns += 1
        elif char == "\t":
            columns += tab_width
        else:
            break
    return columns


def literal_steps(text: str, indent_width: int = 8) -> int:
    return leading_columns(text) // indent_width


__all__ = [
    "LIST_PATTERN",
    "ListLine",
    "ORDERED_MARKER",
    "PASTE_LIST_PATTERN",
    "is_list_line",
    "leading_columns",
    "literal_steps",
    "parse_list_line",
    "parse_ordered_marker",
]
