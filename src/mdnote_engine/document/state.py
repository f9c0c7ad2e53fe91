"""Offset-based selection state."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Selection:
    """Main selection range; ``head`` is where the cursor sits."""

    anchor: int
    head: int

    @classmethod
    def cursor(cls, offset: int) -> "Selection":
        return cls(anchor=offset, head=offset)

    @property
    def start(self) -> int:
        return min(self.anchor, self.head)

    @property
    def end(self) -> int:
        return max(self.anchor, self.head)

    @property
    def empty(self) -> bool:
        return self.anchor == self.head

    def clamp(self, length: int) -> "Selection":
        return Selection(
            anchor=max(0, min(self.anchor, length)),
            head=max(0, min(self.head, length)),
        )


__all__ = ["Selection"]
