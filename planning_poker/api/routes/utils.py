# planning_poker/api/routes/utils.py

from __future__ import annotations

from fastapi import HTTPException

from planning_poker.core import state
from planning_poker.core.exceptions import (
    AlreadyExists,
    NotAParticipant,
    PlanningPokerError,
    RoomNotFound,
    StaleWrite,
    ValidationError,
)
from planning_poker.models.models import Room

STATUS_CODES = {
    RoomNotFound: 404,
    NotAParticipant: 403,
    ValidationError: 400,
    AlreadyExists: 409,
    StaleWrite: 409,
}


def http_error(exc: PlanningPokerError) -> HTTPException:
    """Translate an engine error into the HTTP response the client sees."""
    for error_type, status_code in STATUS_CODES.items():
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


async def broadcast_room_update(room: Room):
    """
    Push a room written by this process to the sockets watching it.

    The change notifier never reports our own writes back to us, so every
    successful mutation in this process goes through here.
    """
    await state.connection_manager.broadcast_room(room.id, room)
