"""Validation helpers shared across document services."""

from __future__ import annotations

from .document import Document
from .sync import PositionError


def ensure_offset(document: Document, offset: int) -> int:
    if offset < 0 or offset > document.length:
        raise PositionError("Offset out of range", position=offset)
    return offset


def ensure_line_number(document: Document, number: int) -> int:
    if number < 1 or number > document.line_count:
        raise PositionError("Line number out of range", position=number)
    return number


def clamp_offset(document: Document, offset: int) -> int:
    return max(0, min(offset, document.length))
