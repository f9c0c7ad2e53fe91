"""UI-agnostic annotation engine for a markdown note editor."""

__all__ = [
    "adapters",
    "anchors",
    "annotations",
    "blocks",
    "commands",
    "config",
    "document",
    "keymaps",
    "lists",
    "runtime",
    "session",
]

__version__ = "0.1.0"
