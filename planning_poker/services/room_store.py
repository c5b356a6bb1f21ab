# planning_poker/services/room_store.py

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

from pydantic import ValidationError as SchemaError

from planning_poker.core.exceptions import StaleWrite
from planning_poker.models.models import Room
from planning_poker.services.local_storage import StorageMedium

logger = logging.getLogger(__name__)

ROOM_KEY_PREFIX = "planning-poker:room:"


def room_key(room_id: str) -> str:
    return f"{ROOM_KEY_PREFIX}{room_id}"


def room_id_from_key(key: str) -> Optional[str]:
    if not key or not key.startswith(ROOM_KEY_PREFIX):
        return None
    return key[len(ROOM_KEY_PREFIX):]


def encode_room(room: Room) -> str:
    return room.model_dump_json()


def decode_room(raw: Optional[str]) -> Optional[Room]:
    """
    Parse a stored document.

    A missing value and a corrupt value are the same thing to the
    engine: both read as no room.
    """
    if raw is None:
        return None
    try:
        return Room.model_validate_json(raw)
    except (SchemaError, ValueError) as e:
        logger.warning("Discarding unreadable room document: %s", e)
        return None


def stored_version(room: Optional[Room]) -> int:
    return room.version if room is not None else 0


# ============================================================================
# ROOM STORE CONTRACT
# ============================================================================
class RoomStore(ABC):
    """
    Durable get/put of one Room document per room identifier.

    No business logic lives here. A write replaces the whole document.

    Concurrency:
        Without `expected_version` a write is last-write-wins: whatever
        another client wrote since our read is silently overwritten.
        With `expected_version` the write only goes through when the
        stored document still carries that version (0 = absent), and
        raises StaleWrite otherwise.
    """

    @abstractmethod
    async def read(self, room_id: str) -> Optional[Room]:
        """Return the stored Room, or None when absent or unreadable."""

    @abstractmethod
    async def write(self, room_id: str, room: Room, expected_version: Optional[int] = None) -> Room:
        """Store `room` and return the stored copy with its new version."""

    async def close(self) -> None:
        """Release backend resources."""


class LocalRoomStore(RoomStore):
    """
    RoomStore over a StorageMedium shared with other client contexts.

    Each context gets its own store instance (its own `origin`) on the
    same medium, the way browser tabs share one localStorage.
    """

    def __init__(self, medium: StorageMedium, origin: str):
        self.medium = medium
        self.origin = origin

    async def read(self, room_id: str) -> Optional[Room]:
        return decode_room(self.medium.get_item(room_key(room_id)))

    async def write(self, room_id: str, room: Room, expected_version: Optional[int] = None) -> Room:
        key = room_key(room_id)
        if expected_version is not None:
            # No await between this check and set_item, so no other
            # context can interleave on this event loop.
            current = stored_version(decode_room(self.medium.get_item(key)))
            if current != expected_version:
                raise StaleWrite(room_id, expected_version, current)

        stored = room.model_copy(update={"version": room.version + 1})
        await self.medium.set_item(key, encode_room(stored), origin=self.origin)
        return stored
