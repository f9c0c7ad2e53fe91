"""Textual host for the note engine."""

from .controller import EditorSnapshot, TextualNoteAdapter, TextualUIHooks

__all__ = ["EditorSnapshot", "TextualNoteAdapter", "TextualUIHooks"]
