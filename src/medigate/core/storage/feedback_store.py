"""Offline-first feedback persistence.

Feedback submissions are kept as a single JSON list (newest first) under
their own key in the plain ``local_items`` table, independent of the
credential store.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from medigate.core.storage.database import LOCAL_TABLE, LocalDatabase

logger = logging.getLogger(__name__)

FEEDBACK_STORAGE_KEY = "medigate_feedback"


class FeedbackStore:
    """Reads and writes the stored feedback list.

    Write errors propagate to the caller; the feedback service turns them
    into a failed submission.
    """

    def __init__(self, database: LocalDatabase, key: str = FEEDBACK_STORAGE_KEY) -> None:
        self._db = database
        self._key = key

    def load_all(self) -> list[dict[str, Any]]:
        """Return stored submissions, newest first. Corrupt data reads as empty."""
        raw = self._db.get(LOCAL_TABLE, self._key)
        if not raw:
            return []
        try:
            items = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error("Stored feedback list is corrupt, ignoring it: %s", exc)
            return []
        if not isinstance(items, list):
            return []
        return [item for item in items if isinstance(item, dict)]

    def save_all(self, items: list[dict[str, Any]]) -> None:
        self._db.put(LOCAL_TABLE, self._key, json.dumps(items, separators=(",", ":")))

    def prepend(self, item: dict[str, Any]) -> int:
        """Insert ``item`` at the front of the list. Returns the new count."""
        items = self.load_all()
        items.insert(0, item)
        self.save_all(items)
        return len(items)

    def update(self, item_id: str, **changes: Any) -> bool:
        """Apply ``changes`` to the item with ``item_id``. Returns True if found."""
        items = self.load_all()
        for item in items:
            if item.get("id") == item_id:
                item.update(changes)
                self.save_all(items)
                return True
        return False

    def remove(self, item_id: str) -> bool:
        items = self.load_all()
        remaining = [item for item in items if item.get("id") != item_id]
        if len(remaining) == len(items):
            return False
        self.save_all(remaining)
        return True

    def clear(self) -> None:
        self._db.delete(LOCAL_TABLE, self._key)
