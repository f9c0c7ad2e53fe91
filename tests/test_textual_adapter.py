from __future__ import annotations

from typing import List

from mdnote_engine.adapters.textual import EditorSnapshot, TextualNoteAdapter, TextualUIHooks
from mdnote_engine.config import EngineConfig
from mdnote_engine.document import NoteBuffer
from mdnote_engine.session import EditorSession


class FakeClock:
    def __init__(self) -> None:
        self.now = 10.0

    def __call__(self) -> float:
        return self.now


def make_adapter(
    text: str,
    hooks: TextualUIHooks,
    *,
    cursor: int | None = None,
    clock: FakeClock | None = None,
) -> TextualNoteAdapter:
    buffer = NoteBuffer.from_text(text, cursor=cursor)
    session = EditorSession(buffer, config=EngineConfig(), clock=clock or FakeClock())
    return TextualNoteAdapter(session, hooks)


def test_adapter_updates_buffer_and_status() -> None:
    snapshots: List[EditorSnapshot] = []
    statuses: List[str] = []
    hooks = TextualUIHooks(
        update_buffer=snapshots.append,
        update_status=statuses.append,
    )
    adapter = make_adapter("- a\n- b", hooks)

    result = adapter.handle_textual_key("Tab")

    assert result.consumed
    assert snapshots[-1].text == "- a\n" + " " * 8 + "- b"
    assert snapshots[-1].version == 1
    assert statuses == ["ok"]


def test_adapter_logs_key_and_result() -> None:
    lines: List[str] = []
    hooks = TextualUIHooks(update_buffer=lambda snapshot: None, log=lines.append)
    adapter = make_adapter("- a", hooks)

    adapter.handle_textual_key("Enter")

    assert lines[0].startswith("key ->")
    assert "key='Enter'" in lines[0]
    assert lines[-1].startswith("result <-")
    assert "guard='idle'" in lines[-1]


def test_unbound_keys_get_default_editing() -> None:
    snapshots: List[EditorSnapshot] = []
    statuses: List[str] = []
    hooks = TextualUIHooks(update_buffer=snapshots.append, update_status=statuses.append)
    adapter = make_adapter("ab", hooks)

    adapter.handle_textual_key("c", text="c")
    adapter.handle_textual_key("ArrowLeft")
    adapter.handle_textual_key("Backspace")

    assert snapshots[-1].text == "ac"
    assert snapshots[-1].selection.head == 1
    assert statuses[-1] == "default"


def test_ctrl_keys_pass_through() -> None:
    hooks = TextualUIHooks(update_buffer=lambda snapshot: None)
    adapter = make_adapter("ab", hooks)

    result = adapter.handle_textual_key("s", text="s", modifiers=("CTRL",))

    assert not result.consumed
    assert adapter.session.host.document.text == "ab"


def test_adapter_relays_repair_events() -> None:
    events: List[tuple[str, object | None]] = []
    statuses: List[str] = []
    hooks = TextualUIHooks(
        update_buffer=lambda snapshot: None,
        update_status=statuses.append,
        handle_event=lambda name, payload: events.append((name, payload)),
    )
    adapter = make_adapter(":::\nask\n:::\ntail", hooks, cursor=3)

    adapter.handle_textual_key("Backspace")

    assert adapter.session.host.document.text == "tail"
    assert [name for name, _ in events if name == "blocks.repaired"] == ["blocks.repaired"]
    assert "blocks.repaired" in statuses


def test_process_timers_runs_deferred_restore() -> None:
    clock = FakeClock()
    snapshots: List[EditorSnapshot] = []
    hooks = TextualUIHooks(update_buffer=snapshots.append)
    adapter = make_adapter("- a", hooks, clock=clock)
    adapter.handle_textual_key("Enter")
    adapter.handle_textual_key("b", text="b")

    adapter.undo()
    assert "history.restore" not in adapter.process_timers()

    clock.now += 1.0
    ran = adapter.process_timers()

    assert "history.restore" in ran
    assert snapshots[-1].annotations.levels


def test_close_stops_event_relay() -> None:
    events: List[str] = []
    hooks = TextualUIHooks(
        update_buffer=lambda snapshot: None,
        handle_event=lambda name, payload: events.append(name),
    )
    adapter = make_adapter(":::\nask\n:::\ntail", hooks, cursor=3)

    adapter.close()

    assert adapter.session.closed
    assert adapter.session.delete(2, 3) is None
    assert events == []
