"""Everything a renderer needs for one document state, computed without side effects."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping, Tuple

from mdnote_engine.blocks.annotations import BlockAnnotations, compute_block_annotations
from mdnote_engine.document.document import Document
from mdnote_engine.lists.annotations import ListMarkerSpec, compute_list_annotations


@dataclass(frozen=True, slots=True)
class AnnotationSet:
    blocks: BlockAnnotations = field(default_factory=BlockAnnotations)
    list_markers: Tuple[ListMarkerSpec, ...] = ()
    levels: Mapping[int, int] = field(default_factory=dict)

    def line_classes(self) -> Dict[int, str]:
        """Line number -> space separated class names."""

        classes: Dict[int, list[str]] = {}
        for tag in self.blocks.tags:
            classes.setdefault(tag.line, []).append(tag.css_class)
        for spec in self.list_markers:
            classes.setdefault(spec.line, []).append(
                f"list-{spec.marker_kind} list-level-{spec.level}"
            )
        return {line: " ".join(names) for line, names in sorted(classes.items())}

    def marker_for_line(self, number: int) -> ListMarkerSpec | None:
        for spec in self.list_markers:
            if spec.line == number:
                return spec
        return None


def compute_annotations(document: Document, levels: Mapping[int, int]) -> AnnotationSet:
    return AnnotationSet(
        blocks=compute_block_annotations(document),
        list_markers=tuple(compute_list_annotations(document, levels)),
        levels=dict(levels),
    )


__all__ = ["AnnotationSet", "compute_annotations"]
