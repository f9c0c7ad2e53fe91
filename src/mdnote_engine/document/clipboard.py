"""In-memory clipboard keyed by MIME type."""

from __future__ import annotations

from typing import Dict, Optional

TEXT_PLAIN = "text/plain"


class Clipboard:
    """Holds the last written payload per MIME type; hosts may override."""

    def __init__(self) -> None:
        self._payloads: Dict[str, str] = {}

    def read(self, mime: str = TEXT_PLAIN) -> Optional[str]:
        return self._payloads.get(mime)

    def write(self, text: str, mime: str = TEXT_PLAIN) -> None:
        self._payloads[mime] = text

    def clear(self) -> None:
        self._payloads.clear()


__all__ = ["Clipboard", "TEXT_PLAIN"]
