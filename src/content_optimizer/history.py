"""
Thumbnail History - linear undo/redo over generated thumbnails.

Entries live in a list with a cursor. Pushing while the cursor is not at
the end drops everything after it (redo history is lost on a new branch).
"""

import itertools
from dataclasses import dataclass
from typing import List, Optional

from .models import ImageBlob

_entry_ids = itertools.count(1)


@dataclass(frozen=True)
class HistoryEntry:
    id: int
    image: ImageBlob
    instruction: Optional[str] = None  # None for a fresh generation


class ThumbnailHistory:

    def __init__(self):
        self._entries: List[HistoryEntry] = []
        self._index = -1

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def index(self) -> int:
        return self._index

    @property
    def entries(self) -> List[HistoryEntry]:
        return list(self._entries)

    @property
    def current(self) -> Optional[HistoryEntry]:
        if 0 <= self._index < len(self._entries):
            return self._entries[self._index]
        return None

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._entries) - 1

    def push(self, image: ImageBlob, instruction: Optional[str] = None) -> HistoryEntry:
        """Trim everything after the cursor, append, and move the cursor to the new entry."""
        entry = HistoryEntry(next(_entry_ids), image, instruction)
        del self._entries[self._index + 1:]
        self._entries.append(entry)
        self._index = len(self._entries) - 1
        return entry

    def undo(self) -> bool:
        if not self.can_undo:
            return False
        self._index -= 1
        return True

    def redo(self) -> bool:
        if not self.can_redo:
            return False
        self._index += 1
        return True
