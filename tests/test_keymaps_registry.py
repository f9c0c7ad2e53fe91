import pytest

from mdnote_engine.keymaps import (
    ActionRef,
    Binding,
    KeymapConflictError,
    KeymapRegistry,
    KeyStroke,
    WhenClause,
    load_default_keymaps,
)
from mdnote_engine.keymaps.defaults import DEFAULT_ACTIONS, DEFAULT_BINDINGS


def make_action(action_id: str = "list.test") -> ActionRef:
    return ActionRef(id=action_id, handler=lambda *args, **kwargs: None)


def make_binding(
    *,
    binding_id: str,
    scope: str = "editor",
    stroke: KeyStroke | str = "Tab",
    action_id: str = "list.test",
    when: tuple[WhenClause, ...] = (),
    priority: int = 0,
) -> Binding:
    return Binding(
        id=binding_id,
        scope=scope,
        stroke=stroke,
        action_id=action_id,
        when=when,
        priority=priority,
    )


def test_stroke_parsing_normalizes_modifiers() -> None:
    stroke = KeyStroke.parse("Shift+ctrl+Tab")

    assert stroke.key == "Tab"
    assert stroke.modifiers == ("ctrl", "shift")
    assert stroke.token == "ctrl+shift+Tab"
    assert make_binding(binding_id="b", stroke="shift+Tab").key_signature == "shift+Tab"


def test_register_binding_success() -> None:
    registry = KeymapRegistry()
    registry.register_action(make_action())
    binding = make_binding(binding_id="editor.tab")

    registry.register_binding(binding)

    assert registry.stats().binding_count == 1
    assert registry.stats().scopes == ("editor",)
    assert list(registry.iter_bindings(scope="editor")) == [binding]


def test_register_binding_requires_action() -> None:
    registry = KeymapRegistry()

    with pytest.raises(KeyError):
        registry.register_binding(make_binding(binding_id="orphan"))


def test_register_binding_conflict_detection() -> None:
    registry = KeymapRegistry()
    registry.register_action(make_action())
    registry.register_binding(make_binding(binding_id="editor.tab"))

    with pytest.raises(KeymapConflictError):
        registry.register_binding(make_binding(binding_id="editor.tab.duplicate"))


def test_different_priorities_do_not_conflict() -> None:
    registry = KeymapRegistry()
    registry.register_action(make_action())

    registry.register_binding(make_binding(binding_id="high", priority=100))
    registry.register_binding(make_binding(binding_id="low", priority=50))

    assert [b.id for b in registry.bindings_for("Tab", "editor")] == ["high", "low"]


def test_register_binding_non_overlapping_when() -> None:
    registry = KeymapRegistry()
    registry.register_action(make_action())

    registry.register_binding(make_binding(binding_id="default"))
    registry.register_binding(
        make_binding(binding_id="prompt", when=(WhenClause("in_prompt_block"),))
    )
    registry.register_binding(
        make_binding(binding_id="no_prompt", when=(WhenClause.parse("!in_prompt_block"),))
    )

    assert registry.stats().binding_count == 3


def test_register_binding_with_replace() -> None:
    registry = KeymapRegistry()
    registry.register_action(make_action())

    first = make_binding(binding_id="binding")
    second = make_binding(binding_id="binding")

    registry.register_binding(first)
    registry.register_binding(second, replace=True)

    assert list(registry.iter_bindings()) == [second]


def test_update_binding_changes_stroke() -> None:
    registry = KeymapRegistry()
    registry.register_action(make_action())
    registry.register_binding(make_binding(binding_id="binding"))
    before = registry.revision()

    updated = registry.update_binding(
        "binding", stroke=KeyStroke("Enter"), description="continue list"
    )

    assert updated.stroke.token == "Enter"
    assert updated.description == "continue list"
    assert registry.bindings_for("Tab", "editor") == []
    assert registry.revision() == before + 1


def test_unregister_binding() -> None:
    registry = KeymapRegistry()
    registry.register_action(make_action())
    binding = make_binding(binding_id="binding")
    registry.register_binding(binding)

    removed = registry.unregister_binding("binding")

    assert removed == binding
    assert registry.stats().binding_count == 0
    assert registry.unregister_binding("binding") is None


def test_load_default_keymaps_registers_everything() -> None:
    registry = KeymapRegistry()

    load_default_keymaps(registry)

    stats = registry.stats()
    assert stats.action_count == len(DEFAULT_ACTIONS)
    assert stats.binding_count == len(DEFAULT_BINDINGS)
    assert registry.get_binding("prompt.escape").when_map == {"in_prompt_block": True}


def test_load_default_keymaps_include_filters() -> None:
    registry = KeymapRegistry()

    load_default_keymaps(
        registry,
        include_actions=("list.indent",),
        include_bindings=("list.indent_tab",),
    )

    assert registry.stats().binding_count == 1
    assert registry.get_binding("list.indent_tab").action_id == "list.indent"


def test_load_default_keymaps_exclude_and_extra() -> None:
    registry = KeymapRegistry()
    custom = Binding(
        id="list.indent_alt",
        stroke="alt+Right",
        action_id="list.indent",
        priority=100,
    )

    load_default_keymaps(
        registry,
        exclude_actions=("text.insert_tab", "text.remove_tab"),
        extra_bindings=(custom,),
    )

    assert "text.tab" not in {b.id for b in registry.iter_bindings()}
    assert registry.get_binding("list.indent_alt").stroke.token == "alt+ArrowRight"
    assert KeyStroke.parse("alt+Right") == KeyStroke.parse("alt+ArrowRight")
