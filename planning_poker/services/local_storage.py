from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageEvent:
    """A committed change to one key, as seen by the other contexts."""
    key: str
    new_value: Optional[str]
    origin: str


StorageListener = Callable[[StorageEvent], Awaitable[None]]


# ============================================================================
# SHARED STRING KEY/VALUE MEDIUM
# ============================================================================
class StorageMedium:
    """
    String-keyed storage shared by every client context in the process.

    Values are opaque strings (the room engine stores JSON documents).
    A write replaces the value in one step and then delivers a
    StorageEvent to listeners registered by *other* origins; the writer
    never hears about its own write.

    With a `path`, the whole medium is persisted to a JSON file after every
    write and loaded back on construction, so rooms survive restarts.

    Storage Format (rooms.json):
        {
            "planning-poker:room:ABC12": "{\"id\": \"ABC12\", ...}"
        }
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self.items: Dict[str, str] = {}
        self._listeners: List[Tuple[str, StorageListener]] = []
        if self.path:
            self.load()

    def load(self):
        """
        Load the medium from its JSON file.

        A missing file starts empty. An unreadable file is logged and
        also starts empty; individual corrupt values are left for the
        reader to reject.
        """
        try:
            if os.path.exists(self.path):
                with open(self.path, 'r') as f:
                    data = json.load(f)
                self.items = {str(k): str(v) for k, v in data.items()}
                logger.info(f"✓ Loaded {len(self.items)} keys from {self.path}")
        except Exception as e:
            logger.error(f"Load error: {e}")
            self.items = {}

    def save(self):
        """Persist the medium to its JSON file (no-op without a path)."""
        if not self.path:
            return
        try:
            with open(self.path, 'w') as f:
                json.dump(self.items, f, indent=2)
        except OSError as e:
            logger.error(f"Save error: {e}")

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    async def set_item(self, key: str, value: str, origin: str) -> None:
        """
        Replace the value under `key` and notify the other origins.

        The value is committed before any listener runs. Listener
        failures are logged and never reach the writer.
        """
        self.items[key] = value
        self.save()
        await self._dispatch(StorageEvent(key=key, new_value=value, origin=origin))

    def add_listener(self, origin: str, listener: StorageListener) -> Callable[[], None]:
        """Register `listener` for writes made by origins other than `origin`."""
        entry = (origin, listener)
        self._listeners.append(entry)

        def remove() -> None:
            if entry in self._listeners:
                self._listeners.remove(entry)

        return remove

    async def _dispatch(self, event: StorageEvent) -> None:
        # Copy to avoid modification during iteration
        for origin, listener in list(self._listeners):
            if origin == event.origin:
                continue
            try:
                await listener(event)
            except Exception:
                logger.exception("Storage listener failed for key %s", event.key)
