"""Editing commands bound to keys by the keymap registry."""

from .base import CommandContext, CommandResult, EventBus, KeyInput
from .blocks import delete_prompt_block, select_prompt_content
from .lists import (
    list_item_backspace,
    skip_marker_backward,
    skip_marker_forward,
    smart_list_enter,
    smart_list_indent,
    smart_list_outdent,
)
from .text import insert_tab, remove_tab

__all__ = [
    "CommandContext",
    "CommandResult",
    "EventBus",
    "KeyInput",
    "delete_prompt_block",
    "insert_tab",
    "list_item_backspace",
    "remove_tab",
    "select_prompt_content",
    "skip_marker_backward",
    "skip_marker_forward",
    "smart_list_enter",
    "smart_list_indent",
    "smart_list_outdent",
]
