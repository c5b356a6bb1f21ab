# planning_poker/models/models.py
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

DEFAULT_DECK = ["0", "1/2", "1", "2", "3", "5", "8", "13", "20", "40", "100", "?", "☕️"]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Participant(BaseModel):
    name: str
    joined_at: datetime
    card: Optional[str] = None
    last_seen: datetime


class Round(BaseModel):
    """Archived round: who held which card when the cards were hidden."""
    at: datetime
    cards: Dict[str, Optional[str]] = Field(default_factory=dict)


class Room(BaseModel):
    """
    The shared session document, stored whole under one key per room.

    `version` counts committed writes (0 = never written) and is the
    token a strict writer hands back to detect concurrent changes.
    """
    id: str
    created_at: datetime
    deck: List[str] = Field(default_factory=lambda: list(DEFAULT_DECK))
    reveal: bool = False
    owner: Optional[str] = None
    participants: Dict[str, Participant] = Field(default_factory=dict)
    history: List[Round] = Field(default_factory=list)
    version: int = 0


# ============================================================================
# API REQUEST / RESPONSE MODELS
# ============================================================================

class CreateRoomRequest(BaseModel):
    deck: Optional[List[str]] = None

class JoinRoomRequest(BaseModel):
    name: str

class ParticipantRequest(BaseModel):
    name: str

class SetCardRequest(BaseModel):
    name: str
    card: Optional[str] = None

class UpdateDeckRequest(BaseModel):
    labels: Optional[List[str]] = None
    text: Optional[str] = None

class AverageResponse(BaseModel):
    room_id: str
    reveal: bool
    average: Optional[str] = None


class ClientAction(BaseModel):
    """One WebSocket message; which fields matter depends on `action`."""
    action: Optional[str] = None
    name: Optional[str] = None
    target: Optional[str] = None
    card: Optional[str] = None
    labels: Optional[List[str]] = None
    text: Optional[str] = None
