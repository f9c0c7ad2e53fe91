"""Pure computation of list-marker replacement specs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Mapping, Optional

from mdnote_engine.document.document import Document

from .markers import parse_list_line


@dataclass(frozen=True, slots=True)
class ListMarkerSpec:
    """What a renderer draws in place of ``[marker_start, marker_end)``."""

    line: int
    level: int
    marker_kind: str
    marker_start: int
    marker_end: int
    number: Optional[int] = None
    separator: Optional[str] = None

    @property
    def label(self) -> str:
        if self.number is None:
            return "•"
        return f"{self.number}{self.separator}"


def compute_list_annotations(
    document: Document, levels: Mapping[int, int]
) -> List[ListMarkerSpec]:
    specs: List[ListMarkerSpec] = []
    for line in document.lines():
        parsed = parse_list_line(line.text)
        if parsed is None:
            continue
        specs.append(
            ListMarkerSpec(
                line=line.number,
                level=levels.get(line.number, 0),
                marker_kind=parsed.kind,
                marker_start=line.start + parsed.marker_start,
                marker_end=line.start + parsed.marker_end,
                number=parsed.number,
                separator=parsed.separator,
            )
        )
    return specs


__all__ = ["ListMarkerSpec", "compute_list_annotations"]
