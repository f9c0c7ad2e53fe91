from __future__ import annotations

from mdnote_engine.config import EngineConfig
from mdnote_engine.document import Document, EditBatch
from mdnote_engine.lists import (
    ListIndentStore,
    NumberOverride,
    RenumberingEngine,
    collect_runs,
    find_number_override,
    renumber_batch,
)
from mdnote_engine.lists.renumber import RENUMBER_EVENT

INDENT = " " * 8


def renumbered(text: str, override: NumberOverride | None = None) -> str:
    document = Document.from_text(text)
    batch = renumber_batch(document, {}, override)
    return text if batch is None else batch.apply(text)


def test_flat_run_counts_up_from_first_number() -> None:
    assert renumbered("1. a\n1. b\n1. c") == "1. a\n2. b\n3. c"
    assert renumbered("4) a\n9) b") == "4) a\n5) b"


def test_number_width_can_grow() -> None:
    assert renumbered("9. a\n9. b") == "9. a\n10. b"


def test_nested_levels_count_independently() -> None:
    text = f"1. a\n{INDENT}1. x\n{INDENT}5. y\n1. b"

    assert renumbered(text) == f"1. a\n{INDENT}1. x\n{INDENT}2. y\n2. b"


def test_correct_nested_list_is_left_alone() -> None:
    text = f"1. a\n{INDENT}1. x\n{INDENT}2. y\n2. b"

    assert renumber_batch(Document.from_text(text), {}) is None


def test_renumbering_is_idempotent() -> None:
    once = renumbered(f"3. a\n3. b\n{INDENT}7. c\n{INDENT}7. d\n3. e")

    assert renumber_batch(Document.from_text(once), {}) is None


def test_blank_line_starts_a_new_run() -> None:
    assert renumbered("1. a\n2. b\n\n5. c\n5. d") == "1. a\n2. b\n\n5. c\n6. d"


def test_unordered_item_breaks_the_run() -> None:
    assert renumbered("1. a\n- x\n3. b") == "1. a\n- x\n3. b"


def test_shallower_item_ends_deeper_run() -> None:
    text = f"1. a\n{INDENT}1. x\n2. b\n{INDENT}4. y"

    assert renumbered(text) == text


def test_stored_levels_win_over_literal_indent() -> None:
    document = Document.from_text("1. a\n1. x\n1. b")
    batch = renumber_batch(document, {1: 0, 2: 1, 3: 0})

    assert batch is not None
    assert batch.apply(document.text) == "1. a\n1. x\n2. b"
    assert batch.user_event == RENUMBER_EVENT
    assert batch.join_history
    assert not batch.scroll_into_view


def test_runs_group_items_by_level() -> None:
    runs = collect_runs(Document.from_text("1. a\n1. x\n2. b"), {2: 1})

    assert [[line.number for line, _ in run] for run in runs] == [[1, 3], [2]]


def test_typed_number_seeds_its_run() -> None:
    document = Document.from_text("5. a\n2. b\n3. c")
    batch = EditBatch.replace_range(0, 1, "5", document.length)

    override = find_number_override(batch, document, {})

    assert override == NumberOverride(line=1, level=0, number=5)
    assert renumbered(document.text, override) == "5. a\n6. b\n7. c"


def test_override_ignores_edits_outside_number() -> None:
    document = Document.from_text("1. ab")
    batch = EditBatch.insert(4, "b", 4)

    assert find_number_override(batch, document, {}) is None


def test_engine_skips_history_and_own_batches() -> None:
    document = Document.from_text("1. a\n1. b")
    engine = RenumberingEngine(ListIndentStore(EngineConfig()))
    engine.store.load(document)

    edit = EditBatch.insert(9, "", 9, user_event="input.type")
    assert engine.corrections(edit, document) is None

    typed = EditBatch.insert(8, "b", 8, user_event="input.type")
    correction = engine.corrections(typed, document)
    assert correction is not None
    assert correction.apply(document.text) == "1. a\n2. b"

    for tag in ("undo", "redo", RENUMBER_EVENT, "input.type.compose"):
        assert engine.corrections(EditBatch.insert(8, "b", 8, user_event=tag), document) is None
