# planning_poker/services/room_session.py

from __future__ import annotations

import logging
from typing import Iterable, Optional

from planning_poker.models.models import Room
from planning_poker.services.change_notifier import ChangeNotifier, Unsubscribe
from planning_poker.services.room_codes import normalize_room_id
from planning_poker.services.room_state_machine import RoomStateMachine

logger = logging.getLogger(__name__)


class RoomSession:
    """
    One client's live view of one room.

    Own writes update `room` straight from the write result (optimistic
    local echo); writes by other clients arrive as notifications and
    trigger a re-read through the store.

    Lifecycle:
        session = RoomSession(machine, notifier, "abc12", "Alice")
        await session.open()         # subscribe + first read
        await session.join()
        await session.set_card("5")
        ...
        await session.close()        # unsubscribe
    """

    def __init__(self, machine: RoomStateMachine, notifier: ChangeNotifier, room_id: str, name: str):
        self.machine = machine
        self.notifier = notifier
        self.room_id = normalize_room_id(room_id)
        self.name = name
        self.room: Optional[Room] = None
        self._unsubscribe: Optional[Unsubscribe] = None

    @property
    def is_member(self) -> bool:
        """False once this client has left, been kicked, or the room vanished."""
        return self.room is not None and self.name in self.room.participants

    @property
    def is_owner(self) -> bool:
        return self.room is not None and self.room.owner == self.name

    async def open(self) -> Optional[Room]:
        if self._unsubscribe is None:
            self._unsubscribe = self.notifier.subscribe(self.room_id, self._on_change)
        await self.refresh()
        return self.room

    async def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def refresh(self) -> Optional[Room]:
        self.room = await self.machine.store.read(self.room_id)
        return self.room

    async def _on_change(self, room_id: str) -> None:
        await self.refresh()
        logger.debug("%s refreshed room %s", self.name, room_id)

    def _echo(self, room: Room) -> Room:
        self.room = room
        return room

    async def join(self) -> Room:
        return self._echo(await self.machine.join_room(self.room_id, self.name))

    async def leave(self) -> Room:
        return self._echo(await self.machine.leave_room(self.room_id, self.name))

    async def kick(self, name: str) -> Room:
        return self._echo(await self.machine.kick_participant(self.room_id, name))

    async def set_card(self, card: Optional[str]) -> Room:
        return self._echo(await self.machine.set_card(self.room_id, self.name, card))

    async def heartbeat(self) -> Room:
        return self._echo(await self.machine.heartbeat(self.room_id, self.name))

    async def reveal(self) -> Room:
        return self._echo(await self.machine.reveal(self.room_id))

    async def hide(self) -> Room:
        return self._echo(await self.machine.hide(self.room_id))

    async def toggle_reveal(self) -> Room:
        return self._echo(await self.machine.toggle_reveal(self.room_id))

    async def reset_round(self) -> Room:
        return self._echo(await self.machine.reset_round(self.room_id))

    async def update_deck(self, labels: Iterable[str]) -> Room:
        return self._echo(await self.machine.update_deck(self.room_id, labels))
