"""
Round history: the bounded, newest-first log of archived rounds.
"""
from datetime import datetime

from planning_poker.models.models import Room, Round

HISTORY_LIMIT = 50


def snapshot_cards(room: Room) -> dict:
    """Independent name -> card copy of the current selections."""
    return {name: participant.card for name, participant in room.participants.items()}


def archive_round(room: Room, at: datetime) -> Round:
    """
    Prepend the current selections as a new Round and trim the log.

    Index 0 is always the most recent round; the oldest entries fall off
    once there are more than HISTORY_LIMIT.
    """
    entry = Round(at=at, cards=snapshot_cards(room))
    room.history = [entry, *room.history][:HISTORY_LIMIT]
    return entry
