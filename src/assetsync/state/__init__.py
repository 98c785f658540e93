"""Sync state persistence."""

from .cursor_store import CursorStore, JsonCursorStore, MemoryCursorStore, SyncCursor

__all__ = ["CursorStore", "JsonCursorStore", "MemoryCursorStore", "SyncCursor"]
