# planning_poker/core/state.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from planning_poker.core.config import Settings
from planning_poker.services.change_notifier import ChangeNotifier, LocalChangeNotifier
from planning_poker.services.connection_manager import ConnectionManager
from planning_poker.services.local_storage import StorageMedium
from planning_poker.services.redis_pub_sub import RedisChangeNotifier, RedisRoomStore
from planning_poker.services.room_codes import generate_room_code
from planning_poker.services.room_state_machine import RoomStateMachine
from planning_poker.services.room_store import LocalRoomStore, RoomStore

# Global singletons for app state, wired by init_local() / init_redis()
store: Optional[RoomStore] = None
notifier: Optional[ChangeNotifier] = None
machine: Optional[RoomStateMachine] = None
connection_manager: Optional[ConnectionManager] = None

app_start_time: datetime = datetime.now(timezone.utc)


def _wire(settings: Settings, room_store: RoomStore, change_notifier: ChangeNotifier) -> None:
    global store, notifier, machine, connection_manager

    store = room_store
    notifier = change_notifier
    machine = RoomStateMachine(
        room_store,
        id_factory=lambda: generate_room_code(settings.ROOM_CODE_LENGTH),
        write_policy=settings.WRITE_POLICY,
    )
    connection_manager = ConnectionManager(store=room_store, notifier=change_notifier)


def init_local(settings: Settings, medium: Optional[StorageMedium] = None) -> StorageMedium:
    """Wire the app onto an in-process storage medium (file-backed if ROOMS_FILE is set)."""
    if medium is None:
        medium = StorageMedium(path=settings.ROOMS_FILE or None)
    _wire(
        settings,
        LocalRoomStore(medium, origin=settings.INSTANCE_ID),
        LocalChangeNotifier(medium, origin=settings.INSTANCE_ID),
    )
    return medium


def init_redis(settings: Settings, client) -> None:
    """Wire the app onto a connected redis.asyncio client."""
    _wire(
        settings,
        RedisRoomStore(client, origin=settings.INSTANCE_ID),
        RedisChangeNotifier(client, origin=settings.INSTANCE_ID),
    )


async def shutdown() -> None:
    global store, notifier, machine, connection_manager

    if notifier is not None:
        await notifier.close()
    if store is not None:
        await store.close()
    store = notifier = machine = connection_manager = None
