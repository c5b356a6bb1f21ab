# planning_poker/services/connection_manager.py

from __future__ import annotations

import logging
from typing import Dict, Optional, Set

from fastapi import WebSocket

from planning_poker.models.models import Room
from planning_poker.services.aggregate import compute_average
from planning_poker.services.change_notifier import ChangeNotifier, Unsubscribe
from planning_poker.services.room_store import RoomStore

logger = logging.getLogger(__name__)


def room_snapshot(room: Optional[Room], room_id: str) -> dict:
    """
    The message pushed to sockets for a room.

    The average is only included while the cards are revealed.
    """
    if room is None:
        return {"type": "room_missing", "room_id": room_id}
    average = compute_average(room) if room.reveal else None
    return {
        "type": "room_state",
        "room": room.model_dump(mode="json"),
        "average": str(average) if average is not None else None,
    }


# ============================================================================
# WEBSOCKET CONNECTION MANAGER
# ============================================================================

class ConnectionManager:
    """
    Manages WebSocket connections and pushes room snapshots to them.

    Each room with at least one connected socket holds one subscription on
    the ChangeNotifier. When another client changes the room, the manager
    re-reads it from the store and sends the full snapshot to every socket
    in that room. Changes made through this process are pushed by the API
    layer right after the write, since the notifier does not report a
    client's own writes.

    Data Structures:
        rooms: Maps room_id -> Set of WebSocket connections watching it
               Example: {"ABC12": {websocket1, websocket2}}

        connection_users: Maps WebSocket -> participant name (for logging)

        subscriptions: Maps room_id -> unsubscribe callable
    """

    def __init__(self, store: RoomStore, notifier: ChangeNotifier) -> None:
        self.store = store
        self.notifier = notifier
        self.rooms: Dict[str, Set[WebSocket]] = {}
        self.connection_users: Dict[WebSocket, str] = {}
        self.subscriptions: Dict[str, Unsubscribe] = {}

    async def connect(self, websocket: WebSocket, room_id: str, user_id: str = "anonymous") -> None:
        """
        Accept a socket, attach it to `room_id` and send the current snapshot.
        """
        await websocket.accept()

        if room_id not in self.rooms:
            self.rooms[room_id] = set()
            self.subscriptions[room_id] = self.notifier.subscribe(room_id, self._on_room_changed)
        self.rooms[room_id].add(websocket)
        self.connection_users[websocket] = user_id

        logger.info("✓ %s watching room %s (%d sockets)", user_id, room_id, len(self.rooms[room_id]))

        room = await self.store.read(room_id)
        await websocket.send_json(room_snapshot(room, room_id))

    def disconnect(self, websocket: WebSocket) -> None:
        """
        Detach a socket from every room; drop the room's subscription when
        its last socket leaves.
        """
        user_id = self.connection_users.pop(websocket, "unknown")
        for room_id in list(self.rooms):
            connections = self.rooms[room_id]
            if websocket not in connections:
                continue
            connections.discard(websocket)
            if not connections:
                del self.rooms[room_id]
                unsubscribe = self.subscriptions.pop(room_id, None)
                if unsubscribe:
                    unsubscribe()
            logger.info("✗ %s stopped watching room %s", user_id, room_id)

    async def _on_room_changed(self, room_id: str) -> None:
        room = await self.store.read(room_id)
        await self.broadcast_room(room_id, room)

    async def broadcast_room(self, room_id: str, room: Optional[Room]) -> None:
        """
        Send the room snapshot to every socket watching the room.

        A socket that fails to receive is disconnected.
        """
        if room_id not in self.rooms:
            logger.debug("[routing] Skipped broadcast: room=%s has 0 sockets", room_id)
            return

        message = room_snapshot(room, room_id)
        disconnected = set()
        connections = self.rooms[room_id].copy()  # Copy to avoid modification during iteration

        logger.info("📨 Broadcasting room %s: %d clients", room_id, len(connections))

        for connection in connections:
            try:
                await connection.send_json(message)
            except Exception as e:
                logger.error(f"Send error: {e}")
                disconnected.add(connection)

        for conn in disconnected:
            self.disconnect(conn)

    def get_rooms_info(self) -> Dict[str, int]:
        """Socket count per watched room, for /health."""
        return {room_id: len(connections) for room_id, connections in self.rooms.items()}
