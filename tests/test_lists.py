from __future__ import annotations

from mdnote_engine.commands import (
    CommandContext,
    EventBus,
    list_item_backspace,
    skip_marker_backward,
    skip_marker_forward,
    smart_list_enter,
    smart_list_indent,
    smart_list_outdent,
)
from mdnote_engine.config import EngineConfig
from mdnote_engine.document import Document, EditBatch, Selection
from mdnote_engine.lists import (
    ListIndentStore,
    RestoreIndentLevels,
    SetIndentLevel,
    compute_list_annotations,
    is_list_line,
    leading_columns,
    literal_steps,
    parse_list_line,
)

INDENT = " " * 8


def make_store(text: str) -> tuple[ListIndentStore, Document]:
    document = Document.from_text(text)
    store = ListIndentStore(EngineConfig())
    store.load(document)
    return store, document


def make_context(text: str, head: int, *, anchor: int | None = None) -> CommandContext:
    store, document = make_store(text)
    return CommandContext(
        document=document,
        selection=Selection(anchor=head if anchor is None else anchor, head=head),
        store=store,
        bus=EventBus(),
        config=EngineConfig(),
    )


def commit(store: ListIndentStore, document: Document, batch: EditBatch) -> Document:
    after = Document.from_text(batch.apply(document.text))
    store.apply(batch, after)
    return after


def test_list_grammar() -> None:
    assert is_list_line("- item")
    assert is_list_line("  * item")
    assert is_list_line("12) item")
    assert not is_list_line("-item")
    assert not is_list_line("1.item")
    assert not is_list_line("text - item")


def test_parse_ordered_marker_columns() -> None:
    parsed = parse_list_line("  12. twelve")

    assert parsed is not None
    assert parsed.number == 12
    assert parsed.separator == "."
    assert parsed.marker_start == 2
    assert parsed.number_end == 4
    assert parsed.marker_end == 6
    assert parsed.content == "twelve"
    assert parsed.next_marker() == "13."


def test_leading_columns_counts_tabs() -> None:
    assert leading_columns("\t  - x") == 10
    assert literal_steps(INDENT + INDENT + "- x") == 2
    assert literal_steps("   - x") == 0


def test_load_reads_literal_indentation() -> None:
    store, document = make_store(f"- a\n{INDENT}- b\nplain")

    assert store.levels(document) == {1: 0, 2: 1}


def test_new_line_inherits_previous_level() -> None:
    store, document = make_store("- a")
    store.set_level(document, 1, 2)

    after = commit(store, document, EditBatch.insert(3, "\n- b", document.length))

    assert store.levels(after) == {1: 2, 2: 2}


def test_first_new_line_inherits_from_next() -> None:
    store, document = make_store("- b")
    store.set_level(document, 1, 2)

    after = commit(store, document, EditBatch.insert(0, "- a\n", document.length))

    assert store.levels(after) == {1: 2, 2: 2}


def test_literal_indent_change_adjusts_level() -> None:
    store, document = make_store("- a\n- b")

    after = commit(store, document, EditBatch.insert(4, INDENT, document.length))

    assert store.levels(after) == {1: 0, 2: 1}

    after = commit(store, after, EditBatch.delete(4, 12, after.length))

    assert store.levels(after) == {1: 0, 2: 0}


def test_entries_leave_lines_that_stop_being_list_items() -> None:
    store, document = make_store("- a\n- b")

    after = commit(store, document, EditBatch.delete(4, 6, document.length))

    assert after.text == "- a\nb"
    assert store.levels(after) == {1: 0}


def test_effects_apply_after_sync() -> None:
    store, document = make_store(f"- a\n{INDENT}- b")

    commit(
        store,
        document,
        EditBatch.effects_only([RestoreIndentLevels.of({1: 3})], document.length),
    )
    assert store.levels(document) == {1: 3, 2: 1}

    commit(store, document, EditBatch.effects_only([SetIndentLevel(2, 0)], document.length))
    assert store.levels(document) == {1: 3, 2: 0}


def test_set_level_ignores_bad_lines() -> None:
    store, document = make_store("- a\nplain")

    assert not store.set_level(document, 7, 1)
    assert not store.set_level(document, 2, 1)
    assert store.set_level(document, 1, 1)


def test_list_annotations_use_stored_levels() -> None:
    store, document = make_store("- a\n3) c")
    store.set_level(document, 2, 1)

    specs = compute_list_annotations(document, store.levels(document))

    assert [(spec.line, spec.level, spec.marker_kind) for spec in specs] == [
        (1, 0, "unordered"),
        (2, 1, "ordered"),
    ]
    assert specs[1].label == "3)"
    assert (specs[1].marker_start, specs[1].marker_end) == (4, 7)


def test_indent_unordered_item() -> None:
    context = make_context("- a\n- b", head=7)

    result = smart_list_indent(context, None)

    assert result.consumed and result.batch is not None
    assert result.batch.apply(context.document.text) == f"- a\n{INDENT}- b"
    assert result.batch.selection == Selection.cursor(15)


def test_indent_ordered_item_restarts_numbering() -> None:
    context = make_context("1. a\n2. bee", head=11)

    result = smart_list_indent(context, None)

    assert result.batch is not None
    assert result.batch.apply(context.document.text) == f"1. a\n{INDENT}1. bee"
    assert result.batch.selection == Selection.cursor(19)


def test_indent_needs_a_parent_item() -> None:
    first = smart_list_indent(make_context("- a", head=3), None)
    assert first.consumed and first.status == "noop"

    context = make_context(f"- a\n{INDENT}- b", head=14)
    nested = smart_list_indent(context, None)
    assert nested.status == "noop"
    assert nested.batch is None


def test_indent_passes_through_plain_lines() -> None:
    result = smart_list_indent(make_context("text", head=2), None)

    assert not result.consumed


def test_outdent_removes_one_step() -> None:
    context = make_context(f"- a\n{INDENT}- b", head=15)

    result = smart_list_outdent(context, None)

    assert result.batch is not None
    assert result.batch.apply(context.document.text) == "- a\n- b"
    assert result.batch.selection == Selection.cursor(7)
    assert not smart_list_outdent(make_context("- a", head=3), None).consumed


def test_enter_continues_list() -> None:
    context = make_context("9. nine", head=4)

    result = smart_list_enter(context, None)

    assert result.batch is not None
    assert result.batch.apply(context.document.text) == "9. nine\n10. "
    assert result.batch.selection == Selection.cursor(12)


def test_enter_on_empty_nested_item_outdents() -> None:
    context = make_context(f"- a\n{INDENT}- ", head=14)

    result = smart_list_enter(context, None)

    assert result.batch is not None
    assert result.batch.apply(context.document.text) == "- a\n- "
    assert result.batch.selection == Selection.cursor(6)


def test_enter_on_empty_stored_level_lowers_it() -> None:
    context = make_context("- a\n- ", head=6)
    context.store.set_level(context.document, 2, 2)

    result = smart_list_enter(context, None)

    assert result.batch is not None
    assert not result.batch.doc_changed
    assert result.batch.effects == (SetIndentLevel(line=2, level=1),)


def test_enter_on_empty_top_item_ends_list() -> None:
    context = make_context("- a\n- ", head=6)

    result = smart_list_enter(context, None)

    assert result.batch is not None
    assert result.batch.apply(context.document.text) == "- a\n"


def test_backspace_after_marker_deletes_it() -> None:
    context = make_context("- a\n  - b", head=8)

    result = list_item_backspace(context, None)

    assert result.batch is not None
    assert result.batch.apply(context.document.text) == "- a\n  b"
    assert not list_item_backspace(make_context("- ab", head=3), None).consumed


def test_cursor_skips_over_marker() -> None:
    back = skip_marker_backward(make_context("- a\n  - b", head=8), None)
    assert back.selection == Selection.cursor(6)

    forward = skip_marker_forward(make_context("- a\n  - b", head=6), None)
    assert forward.selection == Selection.cursor(8)

    from_start = skip_marker_forward(make_context("- a\n  - b", head=4), None)
    assert from_start.selection == Selection.cursor(6)

    assert not skip_marker_backward(make_context("- a", head=0), None).consumed
