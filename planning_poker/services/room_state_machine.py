# planning_poker/services/room_state_machine.py

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from planning_poker.core.exceptions import (
    AlreadyExists,
    NotAParticipant,
    RoomNotFound,
    StaleWrite,
    ValidationError,
)
from planning_poker.models.models import DEFAULT_DECK, Participant, Room, utc_now
from planning_poker.services.room_codes import generate_room_code, normalize_room_id
from planning_poker.services.room_store import RoomStore
from planning_poker.services.round_history import archive_round

logger = logging.getLogger(__name__)

LAST_WRITE_WINS = "last_write_wins"
STRICT = "strict"

# A mutation edits the room in place and returns False when nothing changed
Mutation = Callable[[Room], bool]


def clean_deck(labels: Optional[Iterable[str]]) -> List[str]:
    """Strip labels and drop blanks; an empty result falls back to the default deck."""
    values = [str(label).strip() for label in (labels or ())]
    values = [label for label in values if label]
    return values or list(DEFAULT_DECK)


def clean_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Name required")
    return cleaned


def next_owner(room: Room) -> Optional[str]:
    """Earliest joiner among the remaining participants (ties: smallest name)."""
    if not room.participants:
        return None
    earliest = min(room.participants.values(), key=lambda p: (p.joined_at, p.name))
    return earliest.name


def clear_cards(room: Room) -> None:
    for participant in room.participants.values():
        participant.card = None


# ============================================================================
# ROOM STATE MACHINE
# ============================================================================
class RoomStateMachine:
    """
    Every room mutation: read the current document, apply, write it back.

    Phases:
        Active   (reveal = False) - cards are being picked; initial phase
        Revealed (reveal = True)  - cards are visible to everyone

    Write policy:
        last_write_wins - the write overwrites whatever is stored, even if
                          another client wrote after our read (lost update)
        strict          - the write carries the version we read and fails
                          with StaleWrite if the document moved on

    Errors are raised to the caller as they happen; nothing is retried.

    Usage:
        machine = RoomStateMachine(store)
        room = await machine.create_room()
        room = await machine.join_room(room.id, "Alice")
    """

    def __init__(
        self,
        store: RoomStore,
        id_factory: Callable[[], str] = generate_room_code,
        clock: Callable[[], datetime] = utc_now,
        write_policy: str = LAST_WRITE_WINS,
    ):
        if write_policy not in (LAST_WRITE_WINS, STRICT):
            raise ValueError(f"Unknown write policy: {write_policy}")
        self.store = store
        self.id_factory = id_factory
        self.clock = clock
        self.write_policy = write_policy

    async def create_room(self, deck: Optional[Iterable[str]] = None) -> Room:
        """
        Create an Active room under a freshly generated code.

        Raises:
            AlreadyExists: the code is taken; call again for a new code
        """
        room_id = normalize_room_id(self.id_factory())
        room = Room(id=room_id, created_at=self.clock(), deck=clean_deck(deck))
        try:
            room = await self.store.write(room_id, room, expected_version=0)
        except StaleWrite:
            logger.warning(f"Room code collision detected: {room_id}")
            raise AlreadyExists(room_id)
        logger.info(f"✓ Created room {room_id}")
        return room

    async def get_room(self, room_id: str) -> Room:
        room_id = normalize_room_id(room_id)
        return await self._load(room_id)

    async def join_room(self, room_id: str, name: str) -> Room:
        """
        Add `name` to the room, or reset it if already present (rejoin).

        A rejoin is a fresh join: new joined_at, card cleared. The first
        participant into an ownerless room becomes its owner.
        """
        name = clean_name(name)

        def join(room: Room) -> bool:
            now = self.clock()
            room.participants[name] = Participant(name=name, joined_at=now, card=None, last_seen=now)
            if room.owner is None or room.owner not in room.participants:
                room.owner = name
            return True

        room = await self._apply(room_id, join)
        logger.info("→ %s joined room %s (%d members)", name, room.id, len(room.participants))
        return room

    async def leave_room(self, room_id: str, name: str) -> Room:
        name = clean_name(name)
        room = await self._apply(room_id, lambda room: self._remove(room, name))
        logger.info("✗ %s left room %s", name, room.id)
        return room

    async def kick_participant(self, room_id: str, name: str) -> Room:
        """
        Remove another participant from the room.

        Who may kick is decided by the caller (normally only the owner);
        the engine itself does not check.
        """
        name = clean_name(name)
        room = await self._apply(room_id, lambda room: self._remove(room, name))
        logger.info("✗ %s kicked from room %s", name, room.id)
        return room

    async def set_card(self, room_id: str, name: str, card: Optional[str]) -> Room:
        """
        Select `card` for `name` (None clears the selection).

        Raises:
            NotAParticipant: `name` is not in the room (kicked, or the
                room was reset elsewhere); the caller must re-join
            ValidationError: `card` is not in the room's deck
        """
        name = clean_name(name)

        def select(room: Room) -> bool:
            participant = room.participants.get(name)
            if participant is None:
                raise NotAParticipant(room.id, name)
            if card is not None and card not in room.deck:
                raise ValidationError(f"Card {card!r} is not in the deck")
            participant.card = card
            participant.last_seen = self.clock()
            return True

        return await self._apply(room_id, select)

    async def heartbeat(self, room_id: str, name: str) -> Room:
        """Refresh `last_seen` for `name` without touching its card."""
        name = clean_name(name)

        def touch(room: Room) -> bool:
            participant = room.participants.get(name)
            if participant is None:
                raise NotAParticipant(room.id, name)
            participant.last_seen = self.clock()
            return True

        return await self._apply(room_id, touch)

    async def reveal(self, room_id: str) -> Room:
        def show(room: Room) -> bool:
            if room.reveal:
                return False
            room.reveal = True
            return True

        room = await self._apply(room_id, show)
        logger.info(f"Cards revealed in room {room.id}")
        return room

    async def hide(self, room_id: str) -> Room:
        """
        End the round: archive the selections, clear every card, hide.

        Archives even when the cards were never revealed.
        """
        def archive(room: Room) -> bool:
            self._archive_and_clear(room)
            return True

        room = await self._apply(room_id, archive)
        logger.info(f"Round archived in room {room.id} ({len(room.history)} in history)")
        return room

    async def toggle_reveal(self, room_id: str) -> Room:
        """Reveal when Active; archive, clear and hide when Revealed."""
        def flip(room: Room) -> bool:
            if room.reveal:
                self._archive_and_clear(room)
            else:
                room.reveal = True
            return True

        room = await self._apply(room_id, flip)
        logger.info(f"Room {room.id} reveal={room.reveal}")
        return room

    async def reset_round(self, room_id: str) -> Room:
        """Clear every card and hide, without writing a history entry."""
        def reset(room: Room) -> bool:
            clear_cards(room)
            room.reveal = False
            return True

        room = await self._apply(room_id, reset)
        logger.info(f"Round reset in room {room.id}")
        return room

    async def update_deck(self, room_id: str, labels: Iterable[str]) -> Room:
        deck = clean_deck(labels)

        def replace(room: Room) -> bool:
            room.deck = deck
            return True

        room = await self._apply(room_id, replace)
        logger.info(f"Deck updated in room {room.id}: {len(room.deck)} cards")
        return room

    # ------------------------------------------------------------------
    # internals
    # ------------------------------------------------------------------

    async def _load(self, room_id: str) -> Room:
        room = await self.store.read(room_id)
        if room is None:
            raise RoomNotFound(room_id)
        return room

    async def _apply(self, room_id: str, mutation: Mutation) -> Room:
        room_id = normalize_room_id(room_id)
        room = await self._load(room_id)
        read_version = room.version

        if not mutation(room):
            return room

        expected = read_version if self.write_policy == STRICT else None
        return await self.store.write(room_id, room, expected_version=expected)

    def _archive_and_clear(self, room: Room) -> None:
        archive_round(room, self.clock())
        clear_cards(room)
        room.reveal = False

    def _remove(self, room: Room, name: str) -> bool:
        if room.participants.pop(name, None) is None:
            return False
        if room.owner == name or room.owner not in room.participants:
            room.owner = next_owner(room)
        return True
