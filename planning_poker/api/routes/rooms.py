# planning_poker/api/routes/rooms.py

import logging

from fastapi import APIRouter, Response

from planning_poker.api.routes.utils import broadcast_room_update, http_error
from planning_poker.core import state
from planning_poker.core.config import settings
from planning_poker.core.exceptions import AlreadyExists, PlanningPokerError
from planning_poker.models.models import (
    AverageResponse,
    CreateRoomRequest,
    JoinRoomRequest,
    ParticipantRequest,
    Room,
    SetCardRequest,
    UpdateDeckRequest,
)
from planning_poker.services.aggregate import compute_average
from planning_poker.services.csv_export import export_csv, export_filename, parse_deck_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rooms", tags=["rooms"])

# ============================================================================
# ROOM ENDPOINTS
# ============================================================================

@router.post("", response_model=Room, status_code=201)
async def create_room(request: CreateRoomRequest):
    """
    Create a new room with a fresh short code.

    A code collision is retried with a new code up to
    ROOM_CREATE_ATTEMPTS times.

    Raises:
        HTTPException: 409 if every attempt collided
    """
    last_error = None
    for attempt in range(1, max(settings.ROOM_CREATE_ATTEMPTS, 1) + 1):
        try:
            return await state.machine.create_room(deck=request.deck)
        except AlreadyExists as e:
            logger.warning(f"Create attempt {attempt} collided: {e}")
            last_error = e
        except PlanningPokerError as e:
            raise http_error(e)
    raise http_error(last_error)


@router.get("/{room_id}", response_model=Room)
async def get_room(room_id: str):
    """
    Get the current room document.

    Raises:
        HTTPException: 404 if room not found
    """
    try:
        return await state.machine.get_room(room_id)
    except PlanningPokerError as e:
        raise http_error(e)


async def _run(operation, *args) -> Room:
    try:
        room = await operation(*args)
    except PlanningPokerError as e:
        raise http_error(e)
    await broadcast_room_update(room)
    return room


@router.post("/{room_id}/join", response_model=Room)
async def join_room(room_id: str, request: JoinRoomRequest):
    """Join (or rejoin) under a name; the first member becomes owner."""
    return await _run(state.machine.join_room, room_id, request.name)


@router.post("/{room_id}/leave", response_model=Room)
async def leave_room(room_id: str, request: ParticipantRequest):
    return await _run(state.machine.leave_room, room_id, request.name)


@router.post("/{room_id}/kick", response_model=Room)
async def kick_participant(room_id: str, request: ParticipantRequest):
    """
    Remove a participant.

    TODO: Add authorization check (only the owner should be able to kick)
    """
    return await _run(state.machine.kick_participant, room_id, request.name)


@router.post("/{room_id}/card", response_model=Room)
async def set_card(room_id: str, request: SetCardRequest):
    """
    Select (or clear, with `card: null`) a card.

    Raises:
        HTTPException: 403 if the name is no longer in the room (rejoin)
    """
    return await _run(state.machine.set_card, room_id, request.name, request.card)


@router.post("/{room_id}/heartbeat", response_model=Room)
async def heartbeat(room_id: str, request: ParticipantRequest):
    return await _run(state.machine.heartbeat, room_id, request.name)


@router.post("/{room_id}/reveal", response_model=Room)
async def reveal(room_id: str):
    return await _run(state.machine.reveal, room_id)


@router.post("/{room_id}/hide", response_model=Room)
async def hide(room_id: str):
    """Archive the round into history, clear cards and hide."""
    return await _run(state.machine.hide, room_id)


@router.post("/{room_id}/toggle-reveal", response_model=Room)
async def toggle_reveal(room_id: str):
    return await _run(state.machine.toggle_reveal, room_id)


@router.post("/{room_id}/reset", response_model=Room)
async def reset_round(room_id: str):
    """Clear cards and hide without archiving."""
    return await _run(state.machine.reset_round, room_id)


@router.put("/{room_id}/deck", response_model=Room)
async def update_deck(room_id: str, request: UpdateDeckRequest):
    """
    Replace the deck.

    Accepts either `labels` (list) or `text` (comma-separated, as typed in
    the deck editor). An empty deck falls back to the default one.
    """
    if request.labels is not None:
        labels = request.labels
    else:
        labels = parse_deck_text(request.text or "")
    return await _run(state.machine.update_deck, room_id, labels)


@router.get("/{room_id}/average", response_model=AverageResponse)
async def get_average(room_id: str):
    """
    Average of the numeric cards, reported only once the cards are revealed.
    """
    try:
        room = await state.machine.get_room(room_id)
    except PlanningPokerError as e:
        raise http_error(e)

    average = compute_average(room) if room.reveal else None
    return AverageResponse(
        room_id=room.id,
        reveal=room.reveal,
        average=str(average) if average is not None else None,
    )


@router.get("/{room_id}/export.csv")
async def export_room_csv(room_id: str):
    try:
        room = await state.machine.get_room(room_id)
    except PlanningPokerError as e:
        raise http_error(e)

    return Response(
        content=export_csv(room),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(room)}"'},
    )
