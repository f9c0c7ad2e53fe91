"""Shared anchored-position index."""

from .store import Anchor, AnchorStore

__all__ = ["Anchor", "AnchorStore"]
