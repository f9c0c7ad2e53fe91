"""Executable Textual app that hosts the note engine."""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence, Tuple

try:  # pragma: no cover - imported only when demo is run
    from rich.text import Text
    from textual import events
    from textual.app import App, ComposeResult
    from textual.containers import Horizontal
    from textual.widgets import Footer, Header, Log, Static
except ModuleNotFoundError as exc:  # pragma: no cover - friendly error for missing dep
    raise RuntimeError(
        "Install the 'textual' package to use mdnote_engine.adapters.textual.app"
    ) from exc

from mdnote_engine.config import EngineConfig
from mdnote_engine.document import NoteBuffer
from mdnote_engine.session import EditorSession

from .controller import EditorSnapshot, TextualNoteAdapter, TextualUIHooks

LINE_STYLES = {
    "prompt-block-start": "bold magenta",
    "prompt-block-end": "bold magenta",
    "prompt-block-middle": "magenta",
    "code-block-start": "bold cyan",
    "code-block-end": "bold cyan",
    "code-block-middle": "cyan",
}

KEY_NAMES = {
    "escape": "Escape",
    "enter": "Enter",
    "tab": "Tab",
    "shift+tab": "Tab",
    "backspace": "Backspace",
    "left": "ArrowLeft",
    "right": "ArrowRight",
}

SAMPLE_TEXT = """# Notes

- first
- second
1. one
2. two

:::
ask something
:::
"""


def create_default_session(
    text: str = SAMPLE_TEXT, *, config: EngineConfig | None = None
) -> EditorSession:
    """Build a session over an in-memory buffer with the default keymaps."""

    buffer = NoteBuffer.from_text(text, name="demo")
    return EditorSession(buffer, config=config)


def render_snapshot(snapshot: EditorSnapshot) -> Text:
    """Rich text for the buffer: a level gutter, fence styling and the cursor."""

    output = Text()
    classes = snapshot.annotations.line_classes()
    offset = 0
    for number, line in enumerate(snapshot.text.split("\n"), start=1):
        marker = snapshot.annotations.marker_for_line(number)
        gutter = f"L{marker.level} " if marker is not None else "   "
        output.append(gutter, style="dim")
        style = ""
        for name in classes.get(number, "").split():
            style = LINE_STYLES.get(name, style)
        head = snapshot.selection.head - offset
        if 0 <= head <= len(line):
            output.append(line[:head], style=style)
            output.append(line[head : head + 1] or " ", style="reverse")
            output.append(line[head + 1 :], style=style)
        else:
            output.append(line, style=style)
        output.append("\n")
        offset += len(line) + 1
    return output


@dataclass
class UIState:
    status_text: str = ""
    last_event: str = ""


class NoteEngineApp(App[None]):
    """Minimal Textual UI embedding the note engine."""

    CSS = """
	Screen {
		layout: vertical;
	}

	#buffer-view {
		width: 2fr;
		border: round $accent;
		padding: 1 1;
		content-align: left top;
		overflow: auto;
	}

	#event-log {
		width: 1fr;
		border: round $secondary;
	}

	#status-line {
		height: 1;
		background: $surface-darken-1;
		padding: 0 1;
	}
	"""

    BINDINGS = [
        ("ctrl+q", "quit", "Quit"),
        ("ctrl+z", "undo", "Undo"),
        ("ctrl+y", "redo", "Redo"),
    ]

    def __init__(self, *, text: str = SAMPLE_TEXT, show_log: bool = True) -> None:
        super().__init__()
        self._state = UIState()
        self._text = text
        self._show_log = show_log
        self.session: EditorSession | None = None
        self.adapter: TextualNoteAdapter | None = None
        self._buffer_widget: Static | None = None
        self._status_widget: Static | None = None
        self._log_widget: Log | None = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Horizontal(id="editor-area"):
            self._buffer_widget = Static("", id="buffer-view")
            yield self._buffer_widget
            if self._show_log:
                self._log_widget = Log(id="event-log")
                yield self._log_widget
        self._status_widget = Static("", id="status-line")
        yield self._status_widget
        yield Footer()

    def on_mount(self) -> None:
        self.session = create_default_session(self._text)
        hooks = TextualUIHooks(
            update_buffer=self._update_buffer,
            update_status=self._update_status,
            handle_event=self._handle_event,
            log=self._log_line,
        )
        self.adapter = TextualNoteAdapter(self.session, hooks)
        self.set_interval(0.05, self._process_timers)

    def on_unmount(self) -> None:
        if self.adapter:
            self.adapter.close()

    def action_undo(self) -> None:
        if self.adapter:
            self.adapter.undo()

    def action_redo(self) -> None:
        if self.adapter:
            self.adapter.redo()

    def on_paste(self, event: events.Paste) -> None:
        if self.adapter:
            self.adapter.paste(event.text)
            event.stop()

    def _process_timers(self) -> None:
        if self.adapter:
            self.adapter.process_timers()

    def on_key(self, event: events.Key) -> None:
        if not self.adapter:
            return
        normalized = self._normalize_key(event)
        if normalized is None:
            return
        key, text, modifiers = normalized
        self.adapter.handle_textual_key(key, text=text, modifiers=modifiers)
        event.stop()

    def _update_buffer(self, snapshot: EditorSnapshot) -> None:
        if self._buffer_widget:
            self._buffer_widget.update(render_snapshot(snapshot))

    def _update_status(self, status: str) -> None:
        self._state.status_text = status
        if self._status_widget:
            self._status_widget.update(status)

    def _handle_event(self, name: str, payload: Any | None) -> None:
        self._state.last_event = name
        if name == "indent.restored":
            self._update_status(name)

    def _log_line(self, line: str) -> None:
        if self._log_widget:
            self._log_widget.write_line(line)

    @staticmethod
    def _normalize_key(
        event: events.Key,
    ) -> Optional[Tuple[str, Optional[str], Tuple[str, ...]]]:
        key = event.key
        if key in {"ctrl+q", "ctrl+z", "ctrl+y"}:
            return None
        if key in KEY_NAMES:
            modifiers = ("shift",) if key == "shift+tab" else ()
            return (KEY_NAMES[key], None, modifiers)
        if key.startswith("ctrl+"):
            return (key.split("+", 1)[1], None, ("ctrl",))
        if event.character and event.is_printable:
            return (event.character, event.character, ())
        return None


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the note engine Textual demo.")
    parser.add_argument(
        "path",
        nargs="?",
        help="Markdown file to load (default: a built-in sample)",
    )
    parser.add_argument(
        "--no-log",
        action="store_true",
        default=os.environ.get("MDNOTE_ENGINE_NO_LOG_PANE") == "1",
        help="Hide the event log pane",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    text = Path(args.path).read_text(encoding="utf-8") if args.path else SAMPLE_TEXT
    app = NoteEngineApp(text=text, show_log=not args.no_log)
    app.run()


if __name__ == "__main__":  # pragma: no cover - manual demo
    main()
