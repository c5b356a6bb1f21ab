# planning_poker/api/websocket.py

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as SchemaError

from planning_poker.api.routes.utils import broadcast_room_update
from planning_poker.core import state
from planning_poker.core.exceptions import PlanningPokerError, ValidationError
from planning_poker.models.models import ClientAction
from planning_poker.services.csv_export import parse_deck_text
from planning_poker.services.room_codes import normalize_room_id

logger = logging.getLogger(__name__)

router = APIRouter()


def parse_action(message) -> ClientAction:
    """Validate a decoded client message, reporting schema errors as ValidationError."""
    try:
        return ClientAction.model_validate(message)
    except SchemaError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'message'}: {error['msg']}"
            for error in e.errors()
        )
        raise ValidationError(f"Invalid message: {problems}") from e


async def dispatch_action(room_id: str, user_id: str, message: dict):
    """
    Run one client action against the room and return the written room.

    `name` defaults to the socket's user_id; `kick` names its target in
    `target`.
    """
    machine = state.machine
    request = parse_action(message)
    action = request.action
    name = request.name or user_id
    logger.info(f"Websocket input: room={room_id} user={user_id} action={action}")

    if action == "join":
        return await machine.join_room(room_id, name)
    if action == "leave":
        return await machine.leave_room(room_id, name)
    if action == "kick":
        return await machine.kick_participant(room_id, request.target or "")
    if action == "set_card":
        return await machine.set_card(room_id, name, request.card)
    if action == "heartbeat":
        return await machine.heartbeat(room_id, name)
    if action == "reveal":
        return await machine.reveal(room_id)
    if action == "hide":
        return await machine.hide(room_id)
    if action == "toggle_reveal":
        return await machine.toggle_reveal(room_id)
    if action == "reset":
        return await machine.reset_round(room_id)
    if action == "update_deck":
        labels = request.labels
        if labels is None:
            labels = parse_deck_text(request.text or "")
        return await machine.update_deck(room_id, labels)
    raise ValidationError(f"Unknown action: {action}")


# ============================================================================
# WEBSOCKET ENDPOINT
# ============================================================================

@router.websocket("/ws/{room_id}")
async def websocket_endpoint(websocket: WebSocket, room_id: str, user_id: str = "anonymous"):
    """
    Live view of one room.

    Protocol:
    =========

    Server -> Client Messages:
    -------------------------
    Room State (on connect and after every change, by anyone):
        {"type": "room_state", "room": {...}, "average": "5.33" | null}
        `average` is only filled in while the cards are revealed.

    Room Missing (on connect, when the code does not exist):
        {"type": "room_missing", "room_id": "ABC12"}

    Error:
        {"type": "error", "message": "..."}

    Client -> Server Actions:
    -------------------------
        {"action": "join"}                    name defaults to user_id
        {"action": "leave"}
        {"action": "kick", "target": "Bob"}
        {"action": "set_card", "card": "5"}   card null clears
        {"action": "heartbeat"}
        {"action": "reveal"} / {"action": "hide"} / {"action": "toggle_reveal"}
        {"action": "reset"}
        {"action": "update_deck", "labels": ["1", "2"]} or {"text": "1,2,3"}

    Every successful action is answered by a room_state broadcast to all
    sockets of the room.
    """
    try:
        room_id = normalize_room_id(room_id)
    except ValidationError:
        await websocket.close(code=1008)
        return

    await state.connection_manager.connect(websocket, room_id, user_id)

    try:
        while True:
            data = await websocket.receive_text()

            try:
                message = json.loads(data)
                room = await dispatch_action(room_id, user_id, message)
                await broadcast_room_update(room)

            except json.JSONDecodeError:
                await websocket.send_json({"type": "error", "message": "Invalid JSON"})
            except PlanningPokerError as e:
                await websocket.send_json({"type": "error", "message": str(e)})

    except WebSocketDisconnect:
        state.connection_manager.disconnect(websocket)
    except Exception:
        logger.exception("WebSocket error in room %s", room_id)
        state.connection_manager.disconnect(websocket)
