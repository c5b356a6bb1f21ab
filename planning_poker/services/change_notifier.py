# planning_poker/services/change_notifier.py

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Dict, List

from planning_poker.services.local_storage import StorageEvent, StorageMedium
from planning_poker.services.room_store import room_id_from_key

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[str], Awaitable[None]]
Unsubscribe = Callable[[], None]


# ============================================================================
# CHANGE NOTIFIER
# ============================================================================
class ChangeNotifier:
    """
    Tells this client that *another* client changed a room document.

    Subscribers register per room and get back an unsubscribe callable.
    A callback only receives the room id: it is a trigger to re-read the
    room through the RoomStore, never a payload to trust.

    Delivery is best-effort and unordered relative to this client's own
    writes. The writing client is never notified of its own write; it
    updates its view from the write result instead.

    Data Structures:
        subscribers: Maps room_id -> list of callbacks
                     Example: {"ABC12": [session._on_change, manager._on_room_changed]}
    """

    def __init__(self, origin: str) -> None:
        self.origin = origin
        self.subscribers: Dict[str, List[ChangeCallback]] = {}

    def subscribe(self, room_id: str, callback: ChangeCallback) -> Unsubscribe:
        callbacks = self.subscribers.setdefault(room_id, [])
        callbacks.append(callback)
        logger.debug("→ Subscribed to room %s (%d callbacks)", room_id, len(callbacks))

        def unsubscribe() -> None:
            current = self.subscribers.get(room_id)
            if not current or callback not in current:
                return
            current.remove(callback)
            if not current:
                del self.subscribers[room_id]
            logger.debug("✗ Unsubscribed from room %s", room_id)

        return unsubscribe

    async def notify(self, room_id: str) -> None:
        """
        Run every callback subscribed to `room_id`.

        A failing callback is logged and does not stop the others.
        """
        callbacks = list(self.subscribers.get(room_id, ()))
        if not callbacks:
            logger.debug("[routing] Skipped change: room=%s has 0 subscribers", room_id)
            return

        for callback in callbacks:
            try:
                await callback(room_id)
            except Exception:
                logger.exception("Change callback failed for room %s", room_id)

    async def close(self) -> None:
        self.subscribers.clear()


class LocalChangeNotifier(ChangeNotifier):
    """
    ChangeNotifier fed by StorageMedium events.

    The medium only delivers events written by other origins, which
    gives the "writer is not notified" rule for free.
    """

    def __init__(self, medium: StorageMedium, origin: str) -> None:
        super().__init__(origin)
        self.medium = medium
        self._remove_listener = medium.add_listener(origin, self._on_storage_event)

    async def _on_storage_event(self, event: StorageEvent) -> None:
        room_id = room_id_from_key(event.key)
        if room_id is None:
            return
        await self.notify(room_id)

    async def close(self) -> None:
        self._remove_listener()
        await super().close()
