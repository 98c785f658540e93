"""Persistence of the asset feed continuation cursor.

The cursor is written only after a page has been fully delivered to the
target, so after a crash the last committed page may be delivered again but
never skipped.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol

from filelock import FileLock
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)


class SyncCursor(BaseModel):
    """Opaque continuation token of the asset feed."""

    token: Optional[str] = None
    has_more: bool = True
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class CursorStore(Protocol):
    def get_cursor(self) -> Optional[SyncCursor]:
        ...

    def set_cursor(self, cursor: SyncCursor) -> None:
        ...

    def reset(self) -> None:
        ...


class MemoryCursorStore:
    def __init__(self, cursor: Optional[SyncCursor] = None) -> None:
        self._cursor = cursor

    def get_cursor(self) -> Optional[SyncCursor]:
        return self._cursor

    def set_cursor(self, cursor: SyncCursor) -> None:
        self._cursor = cursor

    def reset(self) -> None:
        self._cursor = None


class JsonCursorStore:
    """Cursor kept in a JSON file, guarded by a file lock.

    Writes go to a temporary file first and are moved into place atomically.
    """

    def __init__(self, path: Path, *, lock_timeout: int = 10) -> None:
        self.path = path.expanduser()
        self._lock_timeout = lock_timeout

    def _lock(self) -> FileLock:
        return FileLock(str(self.path.with_suffix(".lock")), timeout=self._lock_timeout)

    def get_cursor(self) -> Optional[SyncCursor]:
        """Load the committed cursor.

        Returns:
            SyncCursor if one was committed, None otherwise (also when the
            file is unreadable, which restarts the feed from the beginning)
        """
        if not self.path.exists():
            return None

        with self._lock():
            try:
                data = json.loads(self.path.read_text(encoding="utf-8"))
                return SyncCursor.model_validate(data)
            except (json.JSONDecodeError, ValidationError):
                logger.warning(
                    "Cursor file is corrupted, starting from the beginning",
                    extra={"sync_cursor_path": str(self.path)},
                )
                return None

    def set_cursor(self, cursor: SyncCursor) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

        with self._lock():
            tmp_path = self.path.with_suffix(".tmp")
            tmp_path.write_text(cursor.model_dump_json(indent=2), encoding="utf-8")
            os.replace(tmp_path, self.path)

    def reset(self) -> None:
        if not self.path.exists():
            return
        with self._lock():
            self.path.unlink(missing_ok=True)


__all__ = ["CursorStore", "JsonCursorStore", "MemoryCursorStore", "SyncCursor"]
