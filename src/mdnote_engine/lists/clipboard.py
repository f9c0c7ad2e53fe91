"""Copy serializes out-of-band levels into text; paste turns whitespace back into steps."""

from __future__ import annotations

import re
from typing import List, Mapping, Optional

from mdnote_engine.config import DEFAULT_CONFIG, EngineConfig
from mdnote_engine.document.document import Document
from mdnote_engine.document.state import Selection

from .markers import LIST_PATTERN, PASTE_LIST_PATTERN, is_list_line, leading_columns

_LINE_BREAK = re.compile(r"\r?\n")


def copy_text(
    document: Document,
    selection: Selection,
    levels: Mapping[int, int],
    config: EngineConfig = DEFAULT_CONFIG,
) -> str:
    """Text for the clipboard: every line the selection touches, levels made literal."""

    first = document.line_at(selection.start).number
    last = document.line_at(selection.end).number
    out: List[str] = []
    for line in document.lines(first, last):
        text = line.text
        if is_list_line(text) and not text[:1].isspace():
            text = config.copy_indent * levels.get(line.number, 0) + text
        out.append(text)
    return "\n".join(out)


def has_list_items(payload: str) -> bool:
    return any(PASTE_LIST_PATTERN.match(line) for line in _LINE_BREAK.split(payload))


def _list_indents(lines: List[str]) -> List[int]:
    return [leading_columns(line) for line in lines if LIST_PATTERN.match(line)]


def detect_indent_unit(lines: List[str], default: int = 8) -> int:
    """Smallest non-zero indent of a list line above the payload's shallowest one."""

    indents = _list_indents(lines)
    shallowest = min(indents, default=0)
    steps = [indent - shallowest for indent in indents if indent > shallowest]
    return min(steps) if steps else default


def paste_text(
    payload: str,
    base_indent: str = "",
    config: EngineConfig = DEFAULT_CONFIG,
) -> Optional[str]:
    """Re-levelled payload, or ``None`` when it holds no list items."""

    if not has_list_items(payload):
        return None
    lines = _LINE_BREAK.split(payload)
    unit = detect_indent_unit(lines, config.indent_width)
    shallowest = min(_list_indents(lines))
    out: List[str] = []
    for line in lines:
        match = LIST_PATTERN.match(line)
        if match is None:
            out.append(base_indent + line)
            continue
        steps = (leading_columns(line) - shallowest) // unit
        body = line[len(match.group(1)):]
        out.append(base_indent + config.indent_unit * steps + body)
    return "\n".join(out)


__all__ = ["copy_text", "detect_indent_unit", "has_list_items", "paste_text"]
