from __future__ import annotations

from typing import Dict

from mdnote_engine.config import EngineConfig
from mdnote_engine.document import Document, EditBatch
from mdnote_engine.lists import (
    IndentHistoryReconciler,
    ListIndentStore,
    RestoreIndentLevels,
    content_hash,
)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        self.now += 1.0
        return self.now


def make_reconciler(
    text: str, levels: Dict[int, int] | None = None, **overrides: int
) -> tuple[IndentHistoryReconciler, ListIndentStore, Document]:
    config = EngineConfig(**overrides)
    document = Document.from_text(text)
    store = ListIndentStore(config)
    store.load(document)
    for number, level in (levels or {}).items():
        store.set_level(document, number, level)
    return IndentHistoryReconciler(store, config, clock=FakeClock()), store, document


def test_content_hash_only_sees_list_lines() -> None:
    with_prose = Document.from_text("# title\n- a\nprose\n- b")
    without = Document.from_text("- a\n- b")

    assert content_hash(with_prose) == content_hash(without)
    assert content_hash(without) != content_hash(Document.from_text("- a\n- c"))
    assert content_hash(Document.from_text("no lists")) == 0


def test_content_hash_is_signed_32_bit() -> None:
    value = content_hash(Document.from_text("- " + "z" * 200))

    assert -(2**31) <= value < 2**31


def test_capture_skips_documents_without_list_items() -> None:
    history, _, document = make_reconciler("plain text")

    assert history.capture(document) is None
    assert len(history) == 0


def test_capture_deduplicates_unchanged_state() -> None:
    history, store, document = make_reconciler("- a\n- b", {2: 1})

    first = history.capture(document)
    second = history.capture(document)

    assert first is not None and first is second
    assert len(history) == 1

    store.set_level(document, 2, 2)
    third = history.capture(document)
    assert third is not None and third.id == first.id + 1
    assert third.level(2) == 2


def test_ring_buffer_evicts_oldest_and_its_hash() -> None:
    history, store, document = make_reconciler("- a", snapshot_capacity=2)
    first = history.capture(document)
    assert first is not None

    for level in (1, 2):
        store.set_level(document, 1, level)
        history.capture(document)

    assert len(history) == 2
    assert first not in history.snapshots()
    assert history.find_match(document) is history.latest


def test_exact_hash_match_restores_levels() -> None:
    history, store, document = make_reconciler("- a\n- b", {2: 1})
    history.capture(document)
    store.set_level(document, 2, 0)

    effect = history.restore_effect(document)

    assert effect == RestoreIndentLevels.of({1: 0, 2: 1})


def test_closest_snapshot_used_below_threshold() -> None:
    history, _, document = make_reconciler("- a\n- b", {2: 1})
    history.capture(document)
    edited = Document.from_text("- a\n- bc")

    match = history.find_match(edited)

    assert match is history.latest
    assert history.resolve_levels(edited, match) == {1: 0, 2: 1}


def test_no_match_beyond_threshold() -> None:
    history, _, document = make_reconciler("- a\n- b", {2: 1})
    history.capture(document)
    far = Document.from_text("- a\n- b" + "x" * 60)

    assert history.find_match(far) is None
    assert history.restore_effect(far) is None


def test_ties_prefer_most_recent_snapshot() -> None:
    history, store, document = make_reconciler("- a\n- b")
    history.capture(document)
    store.set_level(document, 2, 1)
    newest = history.capture(document)

    edited = Document.from_text("- a\n- x")

    assert history.find_match(edited) is newest


def test_missing_lines_borrow_from_neighbours() -> None:
    history, _, document = make_reconciler("- a\n- b", {1: 2, 2: 3})
    snapshot = history.capture(document)
    assert snapshot is not None
    grown = Document.from_text("- a\n- b\n- c\n\n\n\n\n\n- far")

    levels = history.resolve_levels(grown, snapshot)

    assert levels[3] == 3
    assert levels[9] == 0


def test_nearby_lookup_checks_before_after() -> None:
    history, _, document = make_reconciler("- a\n\n- c", {1: 1, 3: 2})
    snapshot = history.capture(document)
    assert snapshot is not None
    shifted = Document.from_text("- a\n- b\n- c")

    assert history.resolve_levels(shifted, snapshot)[2] == 1


def test_undo_and_redo_are_not_captured() -> None:
    assert not IndentHistoryReconciler.should_capture(
        EditBatch.insert(0, "x", 0, user_event="undo")
    )
    assert not IndentHistoryReconciler.should_capture(
        EditBatch.insert(0, "x", 0, user_event="redo")
    )
    assert IndentHistoryReconciler.should_capture(EditBatch.insert(0, "x", 0))


def test_large_insert_detection() -> None:
    history, _, _ = make_reconciler("- a")

    assert history.is_large_insert(EditBatch.insert(0, "x" * 21, 0))
    assert not history.is_large_insert(EditBatch.insert(0, "x" * 20, 0))
