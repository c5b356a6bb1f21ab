"""
CSV export of a room's participants and deck text parsing.
"""
from typing import Iterable, List, Optional

from planning_poker.models.models import Room

CSV_HEADER = ["name", "card", "joinedAt", "lastSeen"]

_NEEDS_QUOTING = ('"', ",", "\n", "\r")


def quote_field(value: Optional[object]) -> str:
    text = "" if value is None else str(value)
    if any(ch in text for ch in _NEEDS_QUOTING):
        return '"' + text.replace('"', '""') + '"'
    return text


def format_row(fields: Iterable[Optional[object]]) -> str:
    return ",".join(quote_field(field) for field in fields)


def export_csv(room: Room) -> bytes:
    """
    One row per participant under the `name,card,joinedAt,lastSeen` header.

    Rows are joined with "\\n" without a trailing newline; a missing card
    is an empty field.
    """
    rows = [format_row(CSV_HEADER)]
    for participant in room.participants.values():
        rows.append(format_row([
            participant.name,
            participant.card,
            participant.joined_at.isoformat(),
            participant.last_seen.isoformat(),
        ]))
    return "\n".join(rows).encode("utf-8")


def export_filename(room: Room) -> str:
    return f"planning-poker-{room.id}.csv"


def parse_deck_text(text: str) -> List[str]:
    """Split the comma-separated deck editor text, e.g. "1, 2,,3" -> ["1", "2", "3"]."""
    return [label.strip() for label in (text or "").split(",") if label.strip()]
