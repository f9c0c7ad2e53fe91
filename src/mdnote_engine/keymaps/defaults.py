"""Built-in commands and the key bindings that seed every session."""

from __future__ import annotations

from typing import Iterable, Sequence

from mdnote_engine.commands import blocks as block_commands
from mdnote_engine.commands import lists as list_commands
from mdnote_engine.commands import text as text_commands

from .models import ActionRef, Binding, KeyStroke
from .registry import KeymapRegistry

LIST_PRIORITY = 100
PROMPT_PRIORITY = 90
TEXT_PRIORITY = 50

DEFAULT_ACTIONS: tuple[ActionRef, ...] = (
    ActionRef(
        id="list.indent",
        handler=list_commands.smart_list_indent,
        description="Nest the list item under the previous one",
    ),
    ActionRef(
        id="list.outdent",
        handler=list_commands.smart_list_outdent,
        description="Remove one indent step from the list item",
    ),
    ActionRef(
        id="list.enter",
        handler=list_commands.smart_list_enter,
        description="Continue, outdent or end the list",
    ),
    ActionRef(
        id="list.backspace",
        handler=list_commands.list_item_backspace,
        description="Delete the marker right before the cursor",
    ),
    ActionRef(
        id="list.skip_backward",
        handler=list_commands.skip_marker_backward,
        description="Move the cursor back over the marker",
    ),
    ActionRef(
        id="list.skip_forward",
        handler=list_commands.skip_marker_forward,
        description="Move the cursor forward over the marker",
    ),
    ActionRef(
        id="prompt.delete_block",
        handler=block_commands.delete_prompt_block,
        description="Remove the prompt block around the cursor",
    ),
    ActionRef(
        id="prompt.select_content",
        handler=block_commands.select_prompt_content,
        description="Select the body of the prompt block",
    ),
    ActionRef(
        id="text.insert_tab",
        handler=text_commands.insert_tab,
        description="Indent plain lines by one step",
    ),
    ActionRef(
        id="text.remove_tab",
        handler=text_commands.remove_tab,
        description="Outdent plain lines by up to one step",
    ),
)

DEFAULT_BINDINGS: tuple[Binding, ...] = (
    Binding(
        id="list.indent_tab",
        stroke=KeyStroke("Tab"),
        action_id="list.indent",
        description="Indent list item",
        priority=LIST_PRIORITY,
    ),
    Binding(
        id="list.outdent_shift_tab",
        stroke=KeyStroke("Tab", ("shift",)),
        action_id="list.outdent",
        description="Outdent list item",
        priority=LIST_PRIORITY,
    ),
    Binding(
        id="list.enter",
        stroke=KeyStroke("Enter"),
        action_id="list.enter",
        description="Smart list enter",
        priority=LIST_PRIORITY,
    ),
    Binding(
        id="list.backspace",
        stroke=KeyStroke("Backspace"),
        action_id="list.backspace",
        description="Delete list marker",
        priority=LIST_PRIORITY,
    ),
    Binding(
        id="list.skip_left",
        stroke=KeyStroke("ArrowLeft"),
        action_id="list.skip_backward",
        description="Skip back over the bullet",
        priority=LIST_PRIORITY,
    ),
    Binding(
        id="list.skip_right",
        stroke=KeyStroke("ArrowRight"),
        action_id="list.skip_forward",
        description="Skip forward over the bullet",
        priority=LIST_PRIORITY,
    ),
    Binding(
        id="prompt.escape",
        stroke=KeyStroke("Escape"),
        action_id="prompt.delete_block",
        description="Delete prompt block",
        when=("in_prompt_block",),
        priority=PROMPT_PRIORITY,
    ),
    Binding(
        id="prompt.select_all",
        stroke=KeyStroke("a", ("ctrl",)),
        action_id="prompt.select_content",
        description="Select prompt body",
        when=("in_prompt_block",),
        priority=PROMPT_PRIORITY,
    ),
    Binding(
        id="text.tab",
        stroke=KeyStroke("Tab"),
        action_id="text.insert_tab",
        description="Insert indent",
        priority=TEXT_PRIORITY,
    ),
    Binding(
        id="text.shift_tab",
        stroke=KeyStroke("Tab", ("shift",)),
        action_id="text.remove_tab",
        description="Remove indent",
        priority=TEXT_PRIORITY,
    ),
)


def load_default_keymaps(
    registry: KeymapRegistry,
    *,
    replace: bool = False,
    extra_bindings: Iterable[Binding] | None = None,
    include_actions: Sequence[str] | None = None,
    exclude_actions: Sequence[str] | None = None,
    include_bindings: Sequence[str] | None = None,
    exclude_bindings: Sequence[str] | None = None,
) -> None:
    """Register built-in actions and bindings."""

    allowed_actions = _build_filters(include_actions, exclude_actions)
    allowed_bindings = _build_filters(include_bindings, exclude_bindings)

    for action in DEFAULT_ACTIONS:
        if not _selected(action.id, allowed_actions):
            continue
        registry.register_action(action, replace=replace)

    for binding in DEFAULT_BINDINGS:
        if not _selected(binding.id, allowed_bindings):
            continue
        if not _selected(binding.action_id, allowed_actions):
            continue
        registry.register_binding(binding, replace=replace)

    if extra_bindings:
        for binding in extra_bindings:
            registry.register_binding(binding, replace=replace)


def _build_filters(
    include: Sequence[str] | None, exclude: Sequence[str] | None
) -> tuple[set[str] | None, set[str]]:
    include_set = set(include) if include else None
    exclude_set = set(exclude or ())
    return include_set, exclude_set


def _selected(item_id: str, filters: tuple[set[str] | None, set[str]]) -> bool:
    include, exclude = filters
    if include is not None and item_id not in include:
        return False
    if item_id in exclude:
        return False
    return True


__all__ = [
    "DEFAULT_ACTIONS",
    "DEFAULT_BINDINGS",
    "LIST_PRIORITY",
    "PROMPT_PRIORITY",
    "TEXT_PRIORITY",
    "load_default_keymaps",
]
