from __future__ import annotations

import pytest

from mdnote_engine.document import (
    Document,
    EditBatch,
    EditBatchError,
    MapMode,
    NoteBuffer,
    PositionError,
    Selection,
    Span,
    diff_batch,
)


def test_document_lines_are_one_based() -> None:
    document = Document.from_text("alpha\nbeta\n")

    assert document.line_count == 3
    assert document.line(1).text == "alpha"
    assert document.line(2).start == 6
    assert document.line(3).text == ""
    assert document.line_at(7).number == 2


def test_document_rejects_out_of_range_line() -> None:
    document = Document.from_text("one")

    with pytest.raises(PositionError):
        document.line(2)


def test_batch_rejects_overlapping_spans() -> None:
    with pytest.raises(EditBatchError):
        EditBatch(spans=(Span(0, 3), Span(2, 4)), doc_length=10)


def test_batch_rejects_span_past_end() -> None:
    with pytest.raises(EditBatchError):
        EditBatch.delete(0, 5, 4)


def test_apply_replaces_spans_in_order() -> None:
    batch = EditBatch.of([Span(6, 10, "gamma"), Span(0, 5, "ALPHA")], 10)

    assert batch.apply("alpha\nbeta") == "ALPHA\ngamma"
    assert batch.new_length == 11


def test_map_pos_respects_assoc_for_insertions() -> None:
    batch = EditBatch.insert(4, "xx", 10)

    assert batch.map_pos(4, -1) == 4
    assert batch.map_pos(4, 1) == 6
    assert batch.map_pos(8) == 10
    assert batch.map_pos(2) == 2


def test_map_pos_tracks_deletions() -> None:
    batch = EditBatch.delete(2, 6, 10)

    assert batch.map_pos(4, -1, MapMode.SIMPLE) == 2
    assert batch.map_pos(4, -1, MapMode.TRACK_DEL) is None
    assert batch.map_pos(2, 1, MapMode.TRACK_DEL) == 2
    assert batch.map_pos(6, -1, MapMode.TRACK_DEL) == 2
    assert batch.map_pos(2, 1, MapMode.TRACK_AFTER) is None
    assert batch.map_pos(6, -1, MapMode.TRACK_BEFORE) is None


def test_user_event_prefix_matching() -> None:
    batch = EditBatch.insert(0, "a", 0, user_event="input.type.compose")

    assert batch.is_user_event("input")
    assert batch.is_user_event("input.type")
    assert not batch.is_user_event("input.typ")
    assert batch.is_composition
    assert not batch.is_undo


def test_effects_only_batches_skip_history() -> None:
    batch = EditBatch.effects_only([object()], 12)

    assert not batch.doc_changed
    assert batch.add_to_history is False
    assert batch.new_length == 12


def test_diff_batch_finds_single_span() -> None:
    batch = diff_batch("- one\n- two", "- one\n        - two")

    assert batch.spans == (Span(6, 6, "        "),)
    assert batch.apply("- one\n- two") == "- one\n        - two"


def test_buffer_apply_and_undo_round_trip() -> None:
    buffer = NoteBuffer.from_text("hello", cursor=5)
    seen = []
    buffer.subscribe(seen.append)

    buffer.apply_edit_batch(
        EditBatch.insert(
            5, " world", 5, selection=Selection.cursor(11), user_event="input.type"
        )
    )
    assert buffer.text == "hello world"
    assert buffer.selection == Selection.cursor(11)

    buffer.undo()
    assert buffer.text == "hello"
    assert seen[-1].batch.is_undo

    buffer.redo()
    assert buffer.text == "hello world"
    assert seen[-1].batch.is_redo


def test_buffer_rejects_stale_batch() -> None:
    buffer = NoteBuffer.from_text("abc")

    with pytest.raises(EditBatchError):
        buffer.apply_edit_batch(EditBatch.insert(0, "x", 10))


def test_joined_batches_share_one_undo_step() -> None:
    buffer = NoteBuffer.from_text("1. a\n1. b")

    buffer.apply_edit_batch(EditBatch.insert(9, "c", 9, user_event="input.type"))
    buffer.apply_edit_batch(
        EditBatch.replace_range(5, 6, "2", 10, user_event="renumber", join_history=True)
    )
    assert buffer.text == "1. a\n2. bc"

    buffer.undo()
    assert buffer.text == "1. a\n1. b"
